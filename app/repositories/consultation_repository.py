"""Repository for consultation data access."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import Consultation
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass
class ConsultationFilters:
    """Optional criteria for listing a user's consultations."""

    status: Optional[str] = None
    search: Optional[str] = None
    industry: Optional[str] = None
    urgency_level: Optional[str] = None
    min_completion: Optional[int] = None
    max_completion: Optional[int] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None


class ConsultationRepository(BaseRepository[Consultation]):
    """Repository for Consultation records."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Consultation)

    def _apply_filters(
        self, query: Select, user_id: UUID, filters: Optional[ConsultationFilters]
    ) -> Select:
        query = query.where(Consultation.user_id == user_id)
        if filters is None:
            return query

        if filters.status:
            query = query.where(Consultation.status == filters.status)

        if filters.search:
            pattern = f"%{escape_like(filters.search.strip())}%"
            query = query.where(
                or_(
                    Consultation.contact_info["business_name"].astext.ilike(pattern, escape="\\"),
                    Consultation.contact_info["contact_person"].astext.ilike(pattern, escape="\\"),
                    Consultation.business_context["industry"].astext.ilike(pattern, escape="\\"),
                )
            )

        if filters.industry:
            query = query.where(
                Consultation.business_context["industry"].astext == filters.industry
            )

        if filters.urgency_level:
            query = query.where(
                Consultation.pain_points["urgency_level"].astext == filters.urgency_level
            )

        if filters.min_completion is not None:
            query = query.where(Consultation.completion_percentage >= filters.min_completion)
        if filters.max_completion is not None:
            query = query.where(Consultation.completion_percentage <= filters.max_completion)

        if filters.created_from is not None:
            query = query.where(Consultation.created_at >= filters.created_from)
        if filters.created_to is not None:
            query = query.where(Consultation.created_at <= filters.created_to)

        return query

    async def list_for_user(
        self,
        user_id: UUID,
        offset: int,
        limit: int,
        filters: Optional[ConsultationFilters] = None,
    ) -> List[Consultation]:
        """List a user's consultations, newest first.

        Args:
            user_id: Owner of the consultations
            offset: Number of rows to skip
            limit: Maximum rows to return
            filters: Optional status, search and range criteria

        Returns:
            Matching consultations
        """
        try:
            query = self._apply_filters(select(Consultation), user_id, filters)
            query = (
                query.order_by(Consultation.created_at.desc(), Consultation.id)
                .offset(offset)
                .limit(limit)
            )
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            LOGGER.error(f"Error listing consultations for user {user_id}: {e}", exc_info=True)
            raise

    async def count_for_user(
        self, user_id: UUID, filters: Optional[ConsultationFilters] = None
    ) -> int:
        """Count a user's consultations matching the same criteria as list_for_user."""
        try:
            query = self._apply_filters(
                select(func.count()).select_from(Consultation), user_id, filters
            )
            result = await self.session.execute(query)
            return result.scalar_one()
        except SQLAlchemyError as e:
            LOGGER.error(f"Error counting consultations for user {user_id}: {e}", exc_info=True)
            raise
