"""Consultation service.

Orchestrates consultations, drafts and version history on top of the
repositories. Each public method is one unit of work: repositories flush,
this service commits (or rolls back) once at the end.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    ConsultationNotFoundError,
    ConsultationStateError,
    DatabaseError,
    DraftNotFoundError,
    ForbiddenError,
    ValidationError,
    VersionNotFoundError,
)
from app.database.models import (
    SECTION_FIELDS,
    Consultation,
    ConsultationDraft,
    ConsultationVersion,
    User,
    utcnow,
)
from app.repositories.consultation_repository import ConsultationFilters, ConsultationRepository
from app.repositories.draft_repository import DraftRepository
from app.repositories.user_repository import UserRepository
from app.repositories.version_repository import VersionRepository
from app.schemas.consultation import ConsultationSummary
from app.services import wizard_service
from app.services.consultation_validator import (
    STATUS_ARCHIVED,
    STATUS_COMPLETED,
    STATUS_DRAFT,
    VALID_STATUSES,
    calculate_completion_percentage,
    detect_changes,
    is_valid_status,
    normalize_sections,
    section_has_data,
    snapshot,
    validate_sections,
    validate_status_transition,
)
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ConsultationService:
    """Business logic for consultation intake."""

    def __init__(self, db_session: AsyncSession):
        """Initialize service with database session.

        Args:
            db_session: SQLAlchemy async session
        """
        self.session = db_session
        self.consultation_repository = ConsultationRepository(db_session)
        self.draft_repository = DraftRepository(db_session)
        self.version_repository = VersionRepository(db_session)
        self.user_repository = UserRepository(db_session)

    async def _commit(self, action: str) -> None:
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            LOGGER.error(f"Failed to {action}: {e}", exc_info=True)
            raise DatabaseError(f"Failed to {action}", original_error=e) from e

    async def _rollback(self) -> None:
        await self.session.rollback()

    async def _get_owned_consultation(self, consultation_id: UUID, user_id: UUID) -> Consultation:
        consultation = await self.consultation_repository.get_by_id(consultation_id)
        if consultation is None:
            raise ConsultationNotFoundError(f"Consultation {consultation_id} not found")
        if consultation.user_id != user_id:
            LOGGER.warning(f"User {user_id} denied access to consultation {consultation_id}")
            raise ForbiddenError("You do not have access to this consultation")
        return consultation

    @staticmethod
    def _validate_pagination(page: int, limit: int, max_limit: int) -> None:
        if page < 1:
            raise ValidationError("page must be greater than or equal to 1")
        if limit < 1 or limit > max_limit:
            raise ValidationError(f"limit must be between 1 and {max_limit}")

    @staticmethod
    def _total_pages(total: int, limit: int) -> int:
        return math.ceil(total / limit) if total else 0

    async def _apply_changes(
        self,
        consultation: Consultation,
        user_id: UUID,
        changes: Dict[str, Any],
        summary: Optional[str] = None,
        force_version: bool = False,
    ) -> List[str]:
        """Write changes, recompute completion and append a version if anything moved.

        Returns:
            Names of the fields that changed
        """
        previous = snapshot(consultation)

        sections = consultation.sections()
        sections.update({k: v for k, v in changes.items() if k in SECTION_FIELDS})
        changes["completion_percentage"] = calculate_completion_percentage(sections)

        await self.consultation_repository.update(consultation, **changes)
        changed_fields = detect_changes(snapshot(consultation), previous)

        if changed_fields or force_version:
            await self.version_repository.create_version(
                consultation_id=consultation.id,
                user_id=user_id,
                snapshot=snapshot(consultation),
                change_summary=summary or f"Updated {', '.join(changed_fields)}",
                changed_fields=changed_fields,
            )
        return changed_fields

    async def create_consultation(
        self, user_id: UUID, sections: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> Consultation:
        """Create a consultation in draft status.

        Args:
            user_id: Owner of the consultation
            sections: Optional initial section data

        Returns:
            The created consultation

        Raises:
            ValidationError: If a supplied, non-empty section is invalid
        """
        sections = normalize_sections(sections or {})
        validate_sections({k: v for k, v in sections.items() if section_has_data(v)})

        values = {field: sections.get(field) or {} for field in SECTION_FIELDS}
        try:
            consultation = await self.consultation_repository.create(
                user_id=user_id,
                status=STATUS_DRAFT,
                completion_percentage=calculate_completion_percentage(values),
                **values,
            )
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError("Failed to create consultation", original_error=e) from e

        await self._commit("create consultation")
        LOGGER.info(f"Created consultation {consultation.id} for user {user_id}")
        return consultation

    async def get_consultation(
        self, consultation_id: UUID, user_id: UUID
    ) -> Tuple[Consultation, Optional[User]]:
        """Get a consultation owned by the user, together with its owner.

        Raises:
            ConsultationNotFoundError: If it does not exist
            ForbiddenError: If another user owns it
        """
        consultation = await self._get_owned_consultation(consultation_id, user_id)
        owner = await self.user_repository.get_by_id(consultation.user_id)
        return consultation, owner

    async def list_consultations(
        self,
        user_id: UUID,
        page: int = 1,
        limit: Optional[int] = None,
        filters: Optional[ConsultationFilters] = None,
    ) -> Dict[str, Any]:
        """List the user's consultations as summaries, newest first.

        Args:
            user_id: Owner of the consultations
            page: 1-based page number
            limit: Page size, defaults to the configured page size
            filters: Optional status, search and range criteria

        Returns:
            Dict with count, consultations, page, limit and total_pages

        Raises:
            ValidationError: On bad pagination or an unknown status
        """
        limit = limit if limit is not None else settings.consultation.default_page_size
        self._validate_pagination(page, limit, settings.consultation.max_page_size)

        if filters and filters.status and not is_valid_status(filters.status):
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}"
            )
        if filters and filters.min_completion is not None and filters.max_completion is not None:
            if filters.min_completion > filters.max_completion:
                raise ValidationError("min_completion cannot be greater than max_completion")

        # One AsyncSession cannot run statements concurrently
        total = await self.consultation_repository.count_for_user(user_id, filters)
        rows = await self.consultation_repository.list_for_user(
            user_id, offset=(page - 1) * limit, limit=limit, filters=filters
        )
        owner = await self.user_repository.get_by_id(user_id)

        return {
            "count": total,
            "consultations": [
                ConsultationSummary.from_consultation(row, owner) for row in rows
            ],
            "page": page,
            "limit": limit,
            "total_pages": self._total_pages(total, limit),
        }

    async def update_consultation(
        self, consultation_id: UUID, user_id: UUID, sections: Dict[str, Dict[str, Any]]
    ) -> Tuple[Consultation, List[str]]:
        """Replace the supplied sections and record a version when something changed.

        Args:
            consultation_id: Consultation to update
            user_id: Acting user
            sections: Sections to replace; omitted sections are left alone

        Returns:
            The consultation and the list of changed fields

        Raises:
            ConsultationStateError: If the consultation is archived
            ValidationError: If a supplied, non-empty section is invalid
        """
        consultation = await self._get_owned_consultation(consultation_id, user_id)
        if consultation.status == STATUS_ARCHIVED:
            raise ConsultationStateError("cannot update an archived consultation")

        sections = normalize_sections(sections)
        validate_sections({k: v for k, v in sections.items() if section_has_data(v)})

        try:
            changed_fields = await self._apply_changes(consultation, user_id, dict(sections))
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError("Failed to update consultation", original_error=e) from e

        await self._commit("update consultation")
        LOGGER.info(f"Updated consultation {consultation_id}: changed={changed_fields}")
        return consultation, changed_fields

    async def delete_consultation(self, consultation_id: UUID, user_id: UUID) -> None:
        """Delete a consultation with its drafts and version history."""
        await self._get_owned_consultation(consultation_id, user_id)

        try:
            drafts = await self.draft_repository.delete_by_consultation(consultation_id)
            versions = await self.version_repository.delete_by_consultation(consultation_id)
            await self.consultation_repository.delete(consultation_id)
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError("Failed to delete consultation", original_error=e) from e

        await self._commit("delete consultation")
        LOGGER.info(
            f"Deleted consultation {consultation_id} ({drafts} drafts, {versions} versions)"
        )

    async def _transition(
        self,
        consultation: Consultation,
        user_id: UUID,
        changes: Dict[str, Any],
        summary: str,
    ) -> Consultation:
        try:
            await self._apply_changes(consultation, user_id, changes, summary)
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError("Failed to change consultation status", original_error=e) from e
        await self._commit("change consultation status")
        LOGGER.info(f"Consultation {consultation.id}: {summary}")
        return consultation

    async def update_status(
        self, consultation_id: UUID, user_id: UUID, status: str
    ) -> Consultation:
        """Move a consultation to a new status through the transition table.

        Raises:
            ValidationError: If the status is unknown
            InvalidStatusTransitionError: If the move is not allowed
        """
        if not is_valid_status(status):
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(VALID_STATUSES)}")

        if status == STATUS_COMPLETED:
            return await self.complete_consultation(consultation_id, user_id)
        if status == STATUS_ARCHIVED:
            return await self.archive_consultation(consultation_id, user_id)

        consultation = await self._get_owned_consultation(consultation_id, user_id)
        validate_status_transition(consultation.status, status)
        return await self._transition(
            consultation, user_id, {"status": status}, f"Status changed to {status}"
        )

    async def complete_consultation(self, consultation_id: UUID, user_id: UUID) -> Consultation:
        """Mark a fully filled, valid consultation as completed.

        Raises:
            ConsultationStateError: If already completed or not 100% complete
            InvalidStatusTransitionError: If the consultation is archived
            ValidationError: If any section fails validation
        """
        consultation = await self._get_owned_consultation(consultation_id, user_id)
        if consultation.status == STATUS_COMPLETED:
            raise ConsultationStateError("consultation is already completed")
        validate_status_transition(consultation.status, STATUS_COMPLETED)

        if calculate_completion_percentage(consultation.sections()) < 100:
            raise ConsultationStateError(
                "consultation must be 100% complete before marking as completed"
            )
        sections = normalize_sections(consultation.sections())
        validate_sections(sections)

        return await self._transition(
            consultation,
            user_id,
            {**sections, "status": STATUS_COMPLETED, "completed_at": utcnow()},
            "Consultation completed",
        )

    async def archive_consultation(self, consultation_id: UUID, user_id: UUID) -> Consultation:
        """Archive a draft or completed consultation."""
        consultation = await self._get_owned_consultation(consultation_id, user_id)
        validate_status_transition(consultation.status, STATUS_ARCHIVED)
        return await self._transition(
            consultation, user_id, {"status": STATUS_ARCHIVED}, "Consultation archived"
        )

    async def restore_consultation(self, consultation_id: UUID, user_id: UUID) -> Consultation:
        """Bring an archived consultation back to draft.

        Raises:
            ConsultationStateError: If the consultation is not archived
        """
        consultation = await self._get_owned_consultation(consultation_id, user_id)
        if consultation.status != STATUS_ARCHIVED:
            raise ConsultationStateError("only archived consultations can be restored")
        return await self._transition(
            consultation,
            user_id,
            {"status": STATUS_DRAFT, "completed_at": None},
            "Consultation restored",
        )

    async def save_draft(
        self,
        consultation_id: UUID,
        user_id: UUID,
        sections: Dict[str, Dict[str, Any]],
        draft_notes: Optional[str] = None,
        auto_saved: bool = True,
    ) -> ConsultationDraft:
        """Upsert the user's draft for a consultation.

        Drafts are work in progress, so sections are normalised but not
        validated. Auto-saves without notes get a timestamp note.

        Raises:
            ConsultationStateError: If the consultation is archived
        """
        consultation = await self._get_owned_consultation(consultation_id, user_id)
        if consultation.status == STATUS_ARCHIVED:
            raise ConsultationStateError("cannot save a draft for an archived consultation")

        if not draft_notes and auto_saved:
            draft_notes = f"Auto-saved at {utcnow():%H:%M:%S}"

        try:
            draft = await self.draft_repository.upsert(
                consultation_id=consultation_id,
                user_id=user_id,
                sections=normalize_sections(sections),
                auto_saved=auto_saved,
                draft_notes=draft_notes,
            )
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError("Failed to save draft", original_error=e) from e

        await self._commit("save draft")
        return draft

    async def get_draft(self, consultation_id: UUID, user_id: UUID) -> ConsultationDraft:
        await self._get_owned_consultation(consultation_id, user_id)
        draft = await self.draft_repository.get_for_user(consultation_id, user_id)
        if draft is None:
            raise DraftNotFoundError(f"No draft found for consultation {consultation_id}")
        return draft

    async def delete_draft(self, consultation_id: UUID, user_id: UUID) -> None:
        await self._get_owned_consultation(consultation_id, user_id)
        try:
            deleted = await self.draft_repository.delete_for_user(consultation_id, user_id)
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError("Failed to delete draft", original_error=e) from e

        if not deleted:
            raise DraftNotFoundError(f"No draft found for consultation {consultation_id}")
        await self._commit("delete draft")

    async def promote_draft(
        self, consultation_id: UUID, user_id: UUID
    ) -> Tuple[Consultation, List[str]]:
        """Copy the user's draft onto the consultation and discard the draft.

        Returns:
            The consultation and the list of changed fields
        """
        consultation = await self._get_owned_consultation(consultation_id, user_id)
        if consultation.status == STATUS_ARCHIVED:
            raise ConsultationStateError("cannot promote a draft for an archived consultation")

        draft = await self.draft_repository.get_for_user(consultation_id, user_id)
        if draft is None:
            raise DraftNotFoundError(f"No draft found for consultation {consultation_id}")

        try:
            changed_fields = await self._apply_changes(
                consultation, user_id, normalize_sections(draft.sections()), "Promoted draft"
            )
            await self.draft_repository.delete_for_user(consultation_id, user_id)
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError("Failed to promote draft", original_error=e) from e

        await self._commit("promote draft")
        LOGGER.info(f"Promoted draft into consultation {consultation_id}: changed={changed_fields}")
        return consultation, changed_fields

    async def has_conflicting_draft(
        self, consultation_id: UUID, user_id: UUID, since: datetime
    ) -> Tuple[bool, Optional[datetime]]:
        """Report whether the user's draft changed after the given time.

        Returns:
            Tuple of (conflict flag, draft updated_at or None when there is no draft)
        """
        if since.tzinfo is None:
            since = since.replace(tzinfo=timezone.utc)

        await self._get_owned_consultation(consultation_id, user_id)
        draft = await self.draft_repository.get_for_user(consultation_id, user_id)
        if draft is None:
            return False, None
        return draft.updated_at > since, draft.updated_at

    async def cleanup_abandoned_drafts(self, older_than_days: Optional[int] = None) -> int:
        """Delete auto-saved drafts untouched for the retention window.

        Args:
            older_than_days: Retention in days, defaults to DRAFT_RETENTION_DAYS

        Returns:
            Number of drafts deleted
        """
        days = older_than_days if older_than_days is not None else settings.consultation.draft_retention_days
        if days < 0:
            raise ValidationError("older_than_days must not be negative")

        cutoff = utcnow() - timedelta(days=days)
        try:
            deleted = await self.draft_repository.delete_abandoned(cutoff)
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError("Failed to clean up drafts", original_error=e) from e

        await self._commit("clean up drafts")
        LOGGER.info(f"Removed {deleted} abandoned drafts older than {days} days")
        return deleted

    async def get_version_history(
        self,
        consultation_id: UUID,
        user_id: UUID,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Page through a consultation's versions, newest first."""
        limit = limit if limit is not None else settings.consultation.default_versions_page_size
        self._validate_pagination(page, limit, settings.consultation.max_versions_page_size)
        await self._get_owned_consultation(consultation_id, user_id)

        total = await self.version_repository.count_by_consultation(consultation_id)
        versions = await self.version_repository.list_by_consultation(
            consultation_id, offset=(page - 1) * limit, limit=limit
        )
        return {
            "total": total,
            "versions": versions,
            "page": page,
            "limit": limit,
            "total_pages": self._total_pages(total, limit),
        }

    async def _get_version(self, consultation_id: UUID, version_number: int) -> ConsultationVersion:
        version = await self.version_repository.get_by_number(consultation_id, version_number)
        if version is None:
            raise VersionNotFoundError(
                f"Version {version_number} not found for consultation {consultation_id}"
            )
        return version

    async def get_version(
        self, consultation_id: UUID, user_id: UUID, version_number: int
    ) -> ConsultationVersion:
        await self._get_owned_consultation(consultation_id, user_id)
        return await self._get_version(consultation_id, version_number)

    async def compare_versions(
        self, consultation_id: UUID, user_id: UUID, from_version: int, to_version: int
    ) -> Dict[str, Any]:
        """Diff two versions field by field.

        Returns:
            Dict matching VersionComparisonResponse
        """
        await self._get_owned_consultation(consultation_id, user_id)
        older = snapshot(await self._get_version(consultation_id, from_version))
        newer = snapshot(await self._get_version(consultation_id, to_version))

        changed_fields = detect_changes(newer, older)
        return {
            "consultation_id": consultation_id,
            "from_version": from_version,
            "to_version": to_version,
            "changed_fields": changed_fields,
            "changes": {
                field: {"from": older[field], "to": newer[field]} for field in changed_fields
            },
        }

    async def rollback_to_version(
        self, consultation_id: UUID, user_id: UUID, version_number: int
    ) -> Tuple[Consultation, List[str]]:
        """Restore sections and status from a stored version.

        The rollback itself is recorded as a new version.

        Raises:
            ConsultationStateError: If the consultation is archived
            VersionNotFoundError: If the version does not exist
        """
        consultation = await self._get_owned_consultation(consultation_id, user_id)
        if consultation.status == STATUS_ARCHIVED:
            raise ConsultationStateError("restore the consultation before rolling back")
        version = await self._get_version(consultation_id, version_number)

        changes: Dict[str, Any] = version.sections()
        changes["status"] = version.status
        if version.status == STATUS_COMPLETED:
            changes["completed_at"] = consultation.completed_at or utcnow()
        else:
            changes["completed_at"] = None

        try:
            changed_fields = await self._apply_changes(
                consultation,
                user_id,
                changes,
                f"Rolled back to version {version_number}",
                force_version=True,
            )
        except SQLAlchemyError as e:
            await self._rollback()
            raise DatabaseError("Failed to roll back consultation", original_error=e) from e

        await self._commit("roll back consultation")
        LOGGER.info(f"Rolled back consultation {consultation_id} to version {version_number}")
        return consultation, changed_fields

    async def get_wizard_state(self, consultation_id: UUID, user_id: UUID) -> Dict[str, Any]:
        """Describe wizard progress, preferring the user's draft over saved data."""
        consultation = await self._get_owned_consultation(consultation_id, user_id)
        draft = await self.draft_repository.get_for_user(consultation_id, user_id)
        return wizard_service.build_wizard_state(consultation, draft)
