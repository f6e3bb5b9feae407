from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.dialects import postgresql

from app.database.models import Consultation, ConsultationVersion
from app.repositories.consultation_repository import (
    ConsultationFilters,
    ConsultationRepository,
    escape_like,
)
from app.repositories.draft_repository import DraftRepository
from app.repositories.version_repository import VersionRepository


def _sql(statement) -> str:
    return str(statement.compile(dialect=postgresql.dialect()))


@pytest.fixture
def mock_session():
    session = MagicMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    return session


class TestConsultationFilters:
    def test_user_scope_only(self, mock_session):
        repository = ConsultationRepository(mock_session)

        sql = _sql(repository._apply_filters(select(Consultation), uuid4(), None))

        assert "consultations.user_id =" in sql
        assert "ILIKE" not in sql

    def test_all_filters(self, mock_session):
        repository = ConsultationRepository(mock_session)
        filters = ConsultationFilters(
            status="draft",
            search="acme",
            industry="retail",
            urgency_level="high",
            min_completion=25,
            max_completion=75,
            created_from=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )

        sql = _sql(repository._apply_filters(select(Consultation), uuid4(), filters))

        assert "consultations.status =" in sql
        assert sql.count("ILIKE") == 3
        assert "consultations.completion_percentage >=" in sql
        assert "consultations.completion_percentage <=" in sql
        assert "consultations.created_at >=" in sql

    def test_search_matches_wildcards_literally(self, mock_session):
        repository = ConsultationRepository(mock_session)
        filters = ConsultationFilters(search="100%_off")

        compiled = repository._apply_filters(select(Consultation), uuid4(), filters).compile(
            dialect=postgresql.dialect()
        )

        assert str(compiled).count("ESCAPE") == 3
        assert r"%100\%\_off%" in compiled.params.values()

    def test_escape_like(self):
        assert escape_like(r"a\b%c_d") == r"a\\b\%c\_d"
        assert escape_like("acme") == "acme"

    @pytest.mark.asyncio
    async def test_list_orders_newest_first(self, mock_session):
        result = MagicMock()
        result.scalars.return_value.all.return_value = []
        mock_session.execute.return_value = result

        await ConsultationRepository(mock_session).list_for_user(uuid4(), offset=40, limit=20)

        sql = _sql(mock_session.execute.call_args.args[0])
        assert "ORDER BY consultations.created_at DESC" in sql
        assert "LIMIT" in sql and "OFFSET" in sql


class TestDraftRepository:
    @pytest.mark.asyncio
    async def test_upsert_is_keyed_by_consultation_and_user(self, mock_session):
        result = MagicMock()
        result.scalar_one.return_value = MagicMock()
        mock_session.execute.return_value = result

        await DraftRepository(mock_session).upsert(
            uuid4(), uuid4(), {"contact_info": {"business_name": "Acme"}}, True, None
        )

        sql = _sql(mock_session.execute.call_args.args[0])
        assert "ON CONFLICT (consultation_id, user_id) DO UPDATE" in sql
        assert "RETURNING" in sql

    @pytest.mark.asyncio
    async def test_abandoned_cleanup_only_touches_autosaves(self, mock_session):
        mock_session.execute.return_value = MagicMock(rowcount=4)

        deleted = await DraftRepository(mock_session).delete_abandoned(datetime.now(timezone.utc))

        assert deleted == 4
        sql = _sql(mock_session.execute.call_args.args[0])
        assert "consultation_drafts.auto_saved IS true" in sql
        assert "consultation_drafts.updated_at <" in sql


class TestVersionRepository:
    @pytest.mark.asyncio
    async def test_create_version_uses_next_number(self, mock_session):
        latest = MagicMock()
        latest.scalar_one.return_value = 2
        mock_session.execute.return_value = latest
        consultation_id = uuid4()

        version = await VersionRepository(mock_session).create_version(
            consultation_id=consultation_id,
            user_id=uuid4(),
            snapshot={
                "contact_info": {"business_name": "Acme"},
                "business_context": {},
                "pain_points": {},
                "goals_objectives": {},
                "status": "draft",
                "completion_percentage": 25,
            },
            change_summary="Updated contact_info",
            changed_fields=["contact_info"],
        )

        assert isinstance(version, ConsultationVersion)
        assert version.version_number == 3
        assert version.consultation_id == consultation_id
        mock_session.add.assert_called_once_with(version)
        mock_session.flush.assert_awaited_once()
