"""Repository for the append-only consultation version history."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database.models import ConsultationVersion
from app.repositories.base_repository import BaseRepository
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class VersionRepository(BaseRepository[ConsultationVersion]):
    """Repository for ConsultationVersion records.

    Versions are never updated; rows are only added one at a time and
    removed in bulk together with their consultation.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, ConsultationVersion)

    async def get_latest_version_number(self, consultation_id: UUID) -> int:
        """Return the highest version number, or 0 when there is no history."""
        try:
            result = await self.session.execute(
                select(func.coalesce(func.max(ConsultationVersion.version_number), 0)).where(
                    ConsultationVersion.consultation_id == consultation_id
                )
            )
            return result.scalar_one()
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error reading latest version for consultation {consultation_id}: {e}",
                exc_info=True,
            )
            raise

    async def create_version(
        self,
        consultation_id: UUID,
        user_id: UUID,
        snapshot: Dict[str, Any],
        change_summary: str,
        changed_fields: List[str],
    ) -> ConsultationVersion:
        """Append the next version for a consultation.

        Args:
            consultation_id: Consultation being versioned
            user_id: User who made the change
            snapshot: Sections, status and completion percentage to store
            change_summary: Human readable summary of the change
            changed_fields: Names of the fields that changed

        Returns:
            The new version, numbered max + 1
        """
        version_number = await self.get_latest_version_number(consultation_id) + 1
        version = await self.create(
            consultation_id=consultation_id,
            user_id=user_id,
            version_number=version_number,
            change_summary=change_summary,
            changed_fields=list(changed_fields),
            **snapshot,
        )
        LOGGER.info(
            f"Created version {version_number} for consultation {consultation_id}: {change_summary}"
        )
        return version

    async def get_by_number(
        self, consultation_id: UUID, version_number: int
    ) -> Optional[ConsultationVersion]:
        try:
            result = await self.session.execute(
                select(ConsultationVersion).where(
                    ConsultationVersion.consultation_id == consultation_id,
                    ConsultationVersion.version_number == version_number,
                )
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error retrieving version {version_number} of consultation {consultation_id}: {e}",
                exc_info=True,
            )
            raise

    async def list_by_consultation(
        self, consultation_id: UUID, offset: int, limit: int
    ) -> List[ConsultationVersion]:
        """List versions newest first."""
        try:
            result = await self.session.execute(
                select(ConsultationVersion)
                .where(ConsultationVersion.consultation_id == consultation_id)
                .order_by(ConsultationVersion.version_number.desc())
                .offset(offset)
                .limit(limit)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error listing versions for consultation {consultation_id}: {e}",
                exc_info=True,
            )
            raise

    async def count_by_consultation(self, consultation_id: UUID) -> int:
        return await self.count(filters={"consultation_id": consultation_id})

    async def delete_by_consultation(self, consultation_id: UUID) -> int:
        try:
            result = await self.session.execute(
                delete(ConsultationVersion).where(
                    ConsultationVersion.consultation_id == consultation_id
                )
            )
            return result.rowcount
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error deleting versions for consultation {consultation_id}: {e}",
                exc_info=True,
            )
            raise
