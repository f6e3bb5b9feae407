"""Database models for consultations, drafts, versions and users."""

from app.database.models import (
    SECTION_FIELDS,
    Consultation,
    ConsultationDraft,
    ConsultationVersion,
    User,
)

__all__ = [
    "SECTION_FIELDS",
    "Consultation",
    "ConsultationDraft",
    "ConsultationVersion",
    "User",
]
