"""Consultation request and response schemas.

Section models are deliberately permissive: every field is optional and
unknown keys are kept, so drafts can hold partial wizard input. Business
rules (required fields, formats) are enforced by the service layer.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ConsultationStatus = Literal["draft", "completed", "archived"]


class SectionModel(BaseModel):
    """Base for the JSON intake sections."""

    model_config = ConfigDict(extra="allow")


class ContactInfo(SectionModel):
    business_name: Optional[str] = Field(None, description="Registered or trading name")
    contact_person: Optional[str] = Field(None, description="Primary contact")
    email: Optional[str] = Field(None, description="Contact email address")
    phone: Optional[str] = Field(None, description="Contact phone number")
    website: Optional[str] = Field(None, description="Business website")
    social_media: Optional[Dict[str, str]] = Field(None, description="Network name to handle or URL")


class BusinessContext(SectionModel):
    industry: Optional[str] = Field(None, description="Industry the business operates in")
    business_type: Optional[str] = Field(None, description="Business model, e.g. b2b or ecommerce")
    team_size: Optional[int] = Field(None, description="Number of people on the team")
    current_platform: Optional[str] = Field(None, description="Current website platform")
    digital_presence: Optional[List[str]] = Field(None, description="Channels the business is present on")
    marketing_channels: Optional[List[str]] = Field(None, description="Active marketing channels")


class PainPoints(SectionModel):
    primary_challenges: Optional[List[str]] = Field(None, description="Main business challenges")
    technical_issues: Optional[List[str]] = Field(None, description="Known technical problems")
    urgency_level: Optional[str] = Field(None, description="low, medium, high or critical")
    impact_assessment: Optional[str] = Field(None, description="Impact of the problems on the business")
    current_solution_gaps: Optional[List[str]] = Field(None, description="Where current tooling falls short")


class Timeline(SectionModel):
    desired_start: Optional[str] = None
    target_completion: Optional[str] = None
    milestones: Optional[List[str]] = None


class GoalsObjectives(SectionModel):
    primary_goals: Optional[List[str]] = Field(None, description="Main goals of the engagement")
    secondary_goals: Optional[List[str]] = Field(None, description="Nice-to-have goals")
    success_metrics: Optional[List[str]] = Field(None, description="How success is measured")
    kpis: Optional[List[str]] = Field(None, description="Tracked KPIs")
    timeline: Optional[Timeline] = Field(None, description="Desired delivery timeline")
    budget_range: Optional[str] = Field(None, description="Preset option or money range such as $10k-25k")
    budget_constraints: Optional[List[str]] = Field(None, description="Budget constraints")


class ConsultationSections(BaseModel):
    """Any subset of the four intake sections."""

    contact_info: Optional[ContactInfo] = None
    business_context: Optional[BusinessContext] = None
    pain_points: Optional[PainPoints] = None
    goals_objectives: Optional[GoalsObjectives] = None

    def provided_sections(self) -> Dict[str, Dict[str, Any]]:
        """Return only the sections present in the request, as plain dicts."""
        provided = {}
        for field in ("contact_info", "business_context", "pain_points", "goals_objectives"):
            section = getattr(self, field)
            if section is not None:
                provided[field] = section.model_dump(exclude_none=True)
        return provided


class ConsultationCreateRequest(ConsultationSections):
    """Create a consultation; sections are optional since the wizard starts empty."""


class ConsultationUpdateRequest(ConsultationSections):
    """Partial update: only supplied sections are replaced."""


class StatusUpdateRequest(BaseModel):
    status: ConsultationStatus = Field(..., description="Target status")


class DraftSaveRequest(ConsultationSections):
    """Autosave payload for the wizard."""

    draft_notes: Optional[str] = Field(None, description="Free text notes; defaults to an autosave stamp")
    auto_saved: bool = Field(default=True, description="False when the user saved explicitly")


class StepValidationRequest(BaseModel):
    step: Literal["contact_info", "business_context", "pain_points", "goals_objectives"]
    data: Dict[str, Any] = Field(default_factory=dict)


class UserSummary(BaseModel):
    """Owner details embedded in consultation responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: Optional[str] = None


class ConsultationResponse(BaseModel):
    """Full consultation record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    contact_info: Dict[str, Any] = Field(default_factory=dict)
    business_context: Dict[str, Any] = Field(default_factory=dict)
    pain_points: Dict[str, Any] = Field(default_factory=dict)
    goals_objectives: Dict[str, Any] = Field(default_factory=dict)
    status: ConsultationStatus
    completion_percentage: int
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    user: Optional[UserSummary] = Field(None, description="Owning user")

    @classmethod
    def from_consultation(cls, consultation: Any, owner: Any = None) -> "ConsultationResponse":
        response = cls.model_validate(consultation)
        if owner is not None:
            response.user = UserSummary.model_validate(owner)
        return response


class ConsultationSummary(BaseModel):
    """Compact row used by list and search results."""

    id: UUID
    user_id: UUID
    business_name: Optional[str] = None
    contact_person: Optional[str] = None
    email: Optional[str] = None
    industry: Optional[str] = None
    status: ConsultationStatus
    completion_percentage: int
    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None
    user: Optional[UserSummary] = None

    @classmethod
    def from_consultation(cls, consultation: Any, owner: Any = None) -> "ConsultationSummary":
        contact = consultation.contact_info or {}
        business = consultation.business_context or {}
        return cls(
            id=consultation.id,
            user_id=consultation.user_id,
            business_name=contact.get("business_name"),
            contact_person=contact.get("contact_person"),
            email=contact.get("email"),
            industry=business.get("industry"),
            status=consultation.status,
            completion_percentage=consultation.completion_percentage,
            created_at=consultation.created_at,
            updated_at=consultation.updated_at,
            completed_at=consultation.completed_at,
            user=UserSummary.model_validate(owner) if owner is not None else None,
        )


class ConsultationListResponse(BaseModel):
    count: int
    consultations: List[ConsultationSummary]
    page: int
    limit: int
    total_pages: int


class DraftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    consultation_id: UUID
    user_id: UUID
    contact_info: Dict[str, Any] = Field(default_factory=dict)
    business_context: Dict[str, Any] = Field(default_factory=dict)
    pain_points: Dict[str, Any] = Field(default_factory=dict)
    goals_objectives: Dict[str, Any] = Field(default_factory=dict)
    auto_saved: bool
    draft_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class DraftConflictResponse(BaseModel):
    has_conflict: bool
    draft_updated_at: Optional[datetime] = None


class VersionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    consultation_id: UUID
    user_id: UUID
    version_number: int
    contact_info: Dict[str, Any] = Field(default_factory=dict)
    business_context: Dict[str, Any] = Field(default_factory=dict)
    pain_points: Dict[str, Any] = Field(default_factory=dict)
    goals_objectives: Dict[str, Any] = Field(default_factory=dict)
    status: ConsultationStatus
    completion_percentage: int
    change_summary: Optional[str] = None
    changed_fields: List[str] = Field(default_factory=list)
    created_at: datetime


class VersionListResponse(BaseModel):
    total: int
    versions: List[VersionResponse]
    page: int
    limit: int
    total_pages: int


class VersionComparisonResponse(BaseModel):
    consultation_id: UUID
    from_version: int
    to_version: int
    changed_fields: List[str]
    changes: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict, description="Field name to {\"from\": old, \"to\": new}"
    )


class WizardStep(BaseModel):
    index: int
    id: str
    title: str
    description: str
    completed: bool
    accessible: bool


class WizardStateResponse(BaseModel):
    consultation_id: UUID
    steps: List[WizardStep]
    current_step: int
    completion_percentage: int
    can_complete: bool
    has_draft: bool


class StepValidationResponse(BaseModel):
    step: str
    valid: bool
    errors: List[str] = Field(default_factory=list)


class FormOption(BaseModel):
    value: str
    label: str


class FormOptionsResponse(BaseModel):
    options: Dict[str, List[FormOption]]
