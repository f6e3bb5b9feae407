"""Server-side model of the four-step consultation wizard."""

from typing import Any, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email

from app.database.models import SECTION_FIELDS
from app.services.consultation_validator import (
    STATUS_DRAFT,
    calculate_completion_percentage,
    is_section_filled,
)

WIZARD_STEPS = [
    {
        "id": "contact_info",
        "title": "Contact Information",
        "description": "Who we are talking to and how to reach them",
    },
    {
        "id": "business_context",
        "title": "Business Context",
        "description": "Industry, team and current digital presence",
    },
    {
        "id": "pain_points",
        "title": "Pain Points",
        "description": "Challenges, technical issues and urgency",
    },
    {
        "id": "goals_objectives",
        "title": "Goals & Objectives",
        "description": "Goals, success metrics, timeline and budget",
    },
]


def effective_sections(
    saved: Dict[str, Dict[str, Any]], draft: Optional[Dict[str, Dict[str, Any]]] = None
) -> Dict[str, Dict[str, Any]]:
    """Overlay draft sections on saved ones; a non-empty draft section wins."""
    if not draft:
        return saved
    return {field: draft.get(field) or saved.get(field) or {} for field in SECTION_FIELDS}


def can_navigate_to(step_index: int, sections: Dict[str, Dict[str, Any]]) -> bool:
    """A step is reachable only when every earlier step is complete."""
    if step_index < 0 or step_index >= len(WIZARD_STEPS):
        return False
    return all(
        is_section_filled(step["id"], sections.get(step["id"]))
        for step in WIZARD_STEPS[:step_index]
    )


def build_wizard_state(
    consultation: Any, draft: Optional[Any] = None
) -> Dict[str, Any]:
    """Describe wizard progress for a consultation.

    Args:
        consultation: The saved consultation
        draft: The user's draft for it, if any

    Returns:
        Dict matching WizardStateResponse
    """
    sections = effective_sections(
        consultation.sections(), draft.sections() if draft is not None else None
    )

    steps: List[Dict[str, Any]] = []
    for index, step in enumerate(WIZARD_STEPS):
        steps.append({
            "index": index,
            **step,
            "completed": is_section_filled(step["id"], sections.get(step["id"])),
            "accessible": can_navigate_to(index, sections),
        })

    incomplete = [step["index"] for step in steps if not step["completed"]]
    current_step = incomplete[0] if incomplete else len(steps) - 1
    completion = calculate_completion_percentage(sections)

    return {
        "consultation_id": consultation.id,
        "steps": steps,
        "current_step": current_step,
        "completion_percentage": completion,
        "can_complete": completion == 100 and consultation.status == STATUS_DRAFT,
        "has_draft": draft is not None,
    }


def validate_step(step: str, data: Dict[str, Any]) -> List[str]:
    """Check the minimum input needed to leave a wizard step.

    Args:
        step: Section id of the step
        data: Section data entered so far

    Returns:
        List of error messages; empty when the step may be left
    """
    errors: List[str] = []
    if step == "contact_info":
        email = data.get("email")
        if not email or not str(email).strip():
            errors.append("email is required")
        else:
            try:
                validate_email(str(email), check_deliverability=False)
            except EmailNotValidError:
                errors.append("invalid email format")
    elif step == "business_context":
        if not data.get("industry"):
            errors.append("industry is required")
    elif step == "pain_points":
        if not data.get("primary_challenges"):
            errors.append("at least one primary challenge is required")
    elif step == "goals_objectives":
        if not data.get("primary_goals"):
            errors.append("at least one primary goal is required")
    else:
        errors.append(f"unknown step: {step}")
    return errors
