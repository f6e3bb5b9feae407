"""Business rules for consultation data.

Section validation, the status transition table, completion percentage
and change detection. Everything here is pure so that the service layer
and the wizard share one definition of each rule.
"""

import re
from typing import Any, Dict, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import InvalidStatusTransitionError, ValidationError
from app.database.models import SECTION_FIELDS
from app.utils.consultation_options import BUDGET_RANGE_VALUES, URGENCY_LEVELS

STATUS_DRAFT = "draft"
STATUS_COMPLETED = "completed"
STATUS_ARCHIVED = "archived"
VALID_STATUSES = (STATUS_DRAFT, STATUS_COMPLETED, STATUS_ARCHIVED)

# Allowed status changes; archived is terminal for ordinary transitions.
STATUS_TRANSITIONS: Dict[str, frozenset] = {
    STATUS_DRAFT: frozenset({STATUS_COMPLETED, STATUS_ARCHIVED}),
    STATUS_COMPLETED: frozenset({STATUS_ARCHIVED}),
    STATUS_ARCHIVED: frozenset(),
}

# Field that must be non-empty for a section to count towards completion.
SECTION_ANCHORS = {
    "contact_info": "business_name",
    "business_context": "industry",
    "pain_points": "primary_challenges",
    "goals_objectives": "primary_goals",
}

TRACKED_FIELDS = SECTION_FIELDS + ("status", "completion_percentage")

MAX_NAME_LENGTH = 255
MAX_PHONE_LENGTH = 50
MAX_SHORT_TEXT_LENGTH = 100
MAX_LIST_ITEM_LENGTH = 500
MAX_LONG_TEXT_LENGTH = 2000
MAX_TEAM_SIZE = 100000

_MONEY = r"\$?\s*\d+(?:[.,]\d+)*(?:\s*[kKmM])?"
BUDGET_RANGE_PATTERN = re.compile(rf"^{_MONEY}\s*(?:-|to)\s*{_MONEY}$")
BUDGET_OPEN_ENDED_PATTERN = re.compile(rf"^{_MONEY}\s*\+$")

_http_url_adapter = TypeAdapter(HttpUrl)


def is_valid_status(status: str) -> bool:
    return status in VALID_STATUSES


def validate_status_transition(from_status: str, to_status: str) -> None:
    """Check a status change against the transition table.

    Args:
        from_status: Current consultation status
        to_status: Requested status

    Raises:
        InvalidStatusTransitionError: If the change is not in the table
    """
    if to_status not in STATUS_TRANSITIONS.get(from_status, frozenset()):
        raise InvalidStatusTransitionError(from_status, to_status)


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) > 0
    return True


def is_section_filled(field: str, section: Optional[Dict[str, Any]]) -> bool:
    """Return True when the section's anchor field holds a value."""
    if not section:
        return False
    return _has_value(section.get(SECTION_ANCHORS[field]))


def section_has_data(section: Optional[Dict[str, Any]]) -> bool:
    """Return True when any field of the section holds a value."""
    if not section:
        return False
    return any(_has_value(value) for value in section.values())


def calculate_completion_percentage(sections: Dict[str, Optional[Dict[str, Any]]]) -> int:
    """Compute completion as filled sections * 100 / 4.

    Args:
        sections: Mapping of section field name to section data

    Returns:
        One of 0, 25, 50, 75 or 100
    """
    filled = sum(
        1 for field in SECTION_FIELDS if is_section_filled(field, sections.get(field))
    )
    return filled * 100 // len(SECTION_FIELDS)


def normalize_website(url: Optional[str]) -> Optional[str]:
    """Prefix bare domains with https://."""
    if not url or not url.strip():
        return url
    url = url.strip()
    if "://" not in url:
        return f"https://{url}"
    return url


def normalize_sections(sections: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Apply input normalisation that is safe for drafts and saved data alike."""
    normalized = {field: dict(data) for field, data in sections.items()}
    contact = normalized.get("contact_info")
    if contact and contact.get("website"):
        contact["website"] = normalize_website(contact["website"])
    return normalized


def _check_length(errors: List[str], name: str, value: Any, limit: int) -> None:
    if isinstance(value, str) and len(value) > limit:
        errors.append(f"{name} must be at most {limit} characters")


def _check_list_items(errors: List[str], name: str, values: Any) -> None:
    if values is None:
        return
    if not isinstance(values, list):
        errors.append(f"{name} must be a list")
        return
    for item in values:
        if not isinstance(item, str):
            errors.append(f"{name} items must be strings")
            return
        if len(item) > MAX_LIST_ITEM_LENGTH:
            errors.append(f"{name} items must be at most {MAX_LIST_ITEM_LENGTH} characters")
            return


def validate_contact_info(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    if not _has_value(data.get("business_name")):
        errors.append("business_name is required")

    email = data.get("email")
    if _has_value(email):
        try:
            validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            errors.append("invalid email format")

    website = data.get("website")
    if _has_value(website):
        try:
            _http_url_adapter.validate_python(normalize_website(website))
        except PydanticValidationError:
            errors.append("invalid website URL")

    for name in ("business_name", "contact_person", "email", "website"):
        _check_length(errors, name, data.get(name), MAX_NAME_LENGTH)
    _check_length(errors, "phone", data.get("phone"), MAX_PHONE_LENGTH)
    return errors


def validate_business_context(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    if not _has_value(data.get("industry")):
        errors.append("industry is required")

    team_size = data.get("team_size")
    if team_size is not None:
        if isinstance(team_size, bool) or not isinstance(team_size, int) or team_size <= 0:
            errors.append("team_size must be positive")
        elif team_size > MAX_TEAM_SIZE:
            errors.append(f"team_size must be at most {MAX_TEAM_SIZE}")

    _check_length(errors, "industry", data.get("industry"), MAX_SHORT_TEXT_LENGTH)
    _check_length(errors, "business_type", data.get("business_type"), MAX_SHORT_TEXT_LENGTH)
    _check_list_items(errors, "digital_presence", data.get("digital_presence"))
    _check_list_items(errors, "marketing_channels", data.get("marketing_channels"))
    return errors


def validate_pain_points(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    urgency = data.get("urgency_level")
    if _has_value(urgency) and urgency not in URGENCY_LEVELS:
        errors.append("invalid urgency level")

    if not _has_value(data.get("primary_challenges")):
        errors.append("at least one primary challenge is required")

    for name in ("primary_challenges", "technical_issues", "current_solution_gaps"):
        _check_list_items(errors, name, data.get(name))
    _check_length(errors, "impact_assessment", data.get("impact_assessment"), MAX_LONG_TEXT_LENGTH)
    return errors


def is_valid_budget_range(value: str) -> bool:
    """Accept preset option values and money ranges like $10k-25k or $50k+."""
    value = value.strip()
    if len(value) > MAX_SHORT_TEXT_LENGTH:
        return False
    if value in BUDGET_RANGE_VALUES:
        return True
    return bool(BUDGET_RANGE_PATTERN.match(value) or BUDGET_OPEN_ENDED_PATTERN.match(value))


def validate_goals_objectives(data: Dict[str, Any]) -> List[str]:
    errors: List[str] = []
    if not _has_value(data.get("primary_goals")):
        errors.append("at least one primary goal is required")

    budget_range = data.get("budget_range")
    if isinstance(budget_range, str) and len(budget_range) > MAX_SHORT_TEXT_LENGTH:
        _check_length(errors, "budget_range", budget_range, MAX_SHORT_TEXT_LENGTH)
    elif _has_value(budget_range) and not is_valid_budget_range(budget_range):
        errors.append("invalid budget range format")

    for name in ("primary_goals", "secondary_goals", "success_metrics", "kpis", "budget_constraints"):
        _check_list_items(errors, name, data.get(name))
    return errors


SECTION_VALIDATORS = {
    "contact_info": validate_contact_info,
    "business_context": validate_business_context,
    "pain_points": validate_pain_points,
    "goals_objectives": validate_goals_objectives,
}


def validate_sections(sections: Dict[str, Dict[str, Any]]) -> None:
    """Validate every supplied section.

    Args:
        sections: Mapping of section field name to section data

    Raises:
        ValidationError: With all collected errors, prefixed by section
    """
    errors: List[str] = []
    for field, data in sections.items():
        validator = SECTION_VALIDATORS.get(field)
        if validator is None:
            continue
        errors.extend(f"{field}: {error}" for error in validator(data or {}))

    if errors:
        raise ValidationError("; ".join(errors), errors=errors)


def snapshot(record: Any) -> Dict[str, Any]:
    """Capture the tracked fields of a consultation or version."""
    return {field: getattr(record, field) for field in TRACKED_FIELDS}


def detect_changes(current: Dict[str, Any], previous: Dict[str, Any]) -> List[str]:
    """List tracked fields whose values differ, in a stable order.

    Values are compared whole; nested JSON is not diffed.
    """
    return [
        field for field in TRACKED_FIELDS
        if (current.get(field) or _empty_for(field)) != (previous.get(field) or _empty_for(field))
    ]


def _empty_for(field: str) -> Any:
    if field in SECTION_FIELDS:
        return {}
    if field == "completion_percentage":
        return 0
    return None
