"""Repository layer modules."""

from app.repositories.consultation_repository import ConsultationFilters, ConsultationRepository
from app.repositories.draft_repository import DraftRepository
from app.repositories.user_repository import UserRepository
from app.repositories.version_repository import VersionRepository

__all__ = [
    "ConsultationFilters",
    "ConsultationRepository",
    "DraftRepository",
    "UserRepository",
    "VersionRepository",
]
