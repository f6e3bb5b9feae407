"""Repository for consultation drafts.

Drafts are keyed by (consultation, user) and are only ever written through
an upsert, so concurrent autosaves from the same user collapse into one row.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import SECTION_FIELDS, ConsultationDraft, utcnow
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DraftRepository(BaseRepository[ConsultationDraft]):
    """Repository for ConsultationDraft records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ConsultationDraft)

    async def get_for_user(
        self, consultation_id: UUID, user_id: UUID
    ) -> Optional[ConsultationDraft]:
        """Get the user's draft for a consultation, if any."""
        try:
            query = select(ConsultationDraft).where(
                ConsultationDraft.consultation_id == consultation_id,
                ConsultationDraft.user_id == user_id,
            )
            result = await self.session.execute(query)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error retrieving draft for consultation {consultation_id}: {e}",
                exc_info=True,
            )
            raise

    async def upsert(
        self,
        consultation_id: UUID,
        user_id: UUID,
        sections: Dict[str, Dict[str, Any]],
        auto_saved: bool,
        draft_notes: Optional[str],
    ) -> ConsultationDraft:
        """Insert or replace the user's draft for a consultation.

        Args:
            consultation_id: Consultation the draft belongs to
            user_id: Author of the draft
            sections: Section data; missing sections are stored as {}
            auto_saved: Whether the save was triggered automatically
            draft_notes: Free text notes

        Returns:
            The stored draft
        """
        values = {field: sections.get(field) or {} for field in SECTION_FIELDS}
        now = utcnow()

        stmt = (
            insert(ConsultationDraft)
            .values(
                consultation_id=consultation_id,
                user_id=user_id,
                auto_saved=auto_saved,
                draft_notes=draft_notes,
                created_at=now,
                updated_at=now,
                **values,
            )
            .on_conflict_do_update(
                index_elements=[ConsultationDraft.consultation_id, ConsultationDraft.user_id],
                set_={
                    **values,
                    "auto_saved": auto_saved,
                    "draft_notes": draft_notes,
                    "updated_at": now,
                },
            )
            .returning(ConsultationDraft)
            .execution_options(populate_existing=True)
        )

        try:
            result = await self.session.execute(stmt)
            draft = result.scalar_one()
            LOGGER.debug(f"Upserted draft {draft.id} for consultation {consultation_id}")
            return draft
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error saving draft for consultation {consultation_id}: {e}",
                exc_info=True,
            )
            raise

    async def delete_for_user(self, consultation_id: UUID, user_id: UUID) -> bool:
        """Delete the user's draft. Returns False when there was none."""
        try:
            result = await self.session.execute(
                delete(ConsultationDraft).where(
                    ConsultationDraft.consultation_id == consultation_id,
                    ConsultationDraft.user_id == user_id,
                )
            )
            return result.rowcount > 0
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error deleting draft for consultation {consultation_id}: {e}",
                exc_info=True,
            )
            raise

    async def delete_by_consultation(self, consultation_id: UUID) -> int:
        """Delete every user's draft for a consultation."""
        try:
            result = await self.session.execute(
                delete(ConsultationDraft).where(
                    ConsultationDraft.consultation_id == consultation_id
                )
            )
            return result.rowcount
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error deleting drafts for consultation {consultation_id}: {e}",
                exc_info=True,
            )
            raise

    async def delete_abandoned(self, older_than: datetime) -> int:
        """Delete auto-saved drafts last touched before the cutoff.

        Args:
            older_than: Cutoff timestamp

        Returns:
            Number of drafts removed
        """
        try:
            result = await self.session.execute(
                delete(ConsultationDraft).where(
                    ConsultationDraft.auto_saved.is_(True),
                    ConsultationDraft.updated_at < older_than,
                )
            )
            return result.rowcount
        except SQLAlchemyError as e:
            LOGGER.error(f"Error cleaning up abandoned drafts: {e}", exc_info=True)
            raise
