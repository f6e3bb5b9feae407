from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.services.wizard_service import (
    WIZARD_STEPS,
    build_wizard_state,
    can_navigate_to,
    effective_sections,
    validate_step,
)


def _record(sections, status="draft"):
    record = SimpleNamespace(id=uuid4(), status=status)
    record.sections = lambda: dict(sections)
    return record


def test_steps_are_in_wizard_order():
    assert [step["id"] for step in WIZARD_STEPS] == [
        "contact_info",
        "business_context",
        "pain_points",
        "goals_objectives",
    ]


def test_first_step_always_accessible():
    assert can_navigate_to(0, {})
    assert not can_navigate_to(1, {})
    assert not can_navigate_to(4, {})
    assert not can_navigate_to(-1, {})


def test_navigation_requires_previous_steps(complete_sections):
    sections = {"contact_info": complete_sections["contact_info"]}

    assert can_navigate_to(1, sections)
    assert not can_navigate_to(2, sections)


def test_draft_section_overrides_saved_section():
    saved = {"contact_info": {"business_name": "Saved"}, "business_context": {"industry": "retail"}}
    draft = {"contact_info": {"business_name": "Draft"}, "business_context": {}}

    merged = effective_sections(saved, draft)

    assert merged["contact_info"] == {"business_name": "Draft"}
    assert merged["business_context"] == {"industry": "retail"}
    assert merged["pain_points"] == {}


def test_wizard_state_for_partial_consultation(complete_sections):
    consultation = _record({
        "contact_info": complete_sections["contact_info"],
        "business_context": {},
        "pain_points": {},
        "goals_objectives": {},
    })

    state = build_wizard_state(consultation)

    assert state["current_step"] == 1
    assert state["completion_percentage"] == 25
    assert state["can_complete"] is False
    assert state["has_draft"] is False
    assert [step["completed"] for step in state["steps"]] == [True, False, False, False]
    assert [step["accessible"] for step in state["steps"]] == [True, True, False, False]


def test_wizard_state_uses_draft(complete_sections):
    consultation = _record({field: {} for field in complete_sections})
    draft = _record(complete_sections)

    state = build_wizard_state(consultation, draft)

    assert state["current_step"] == 3
    assert state["completion_percentage"] == 100
    assert state["can_complete"] is True
    assert state["has_draft"] is True


def test_completed_consultation_cannot_complete_again(complete_sections):
    state = build_wizard_state(_record(complete_sections, status="completed"))

    assert state["can_complete"] is False


@pytest.mark.parametrize(
    "step,data,errors",
    [
        ("contact_info", {}, ["email is required"]),
        ("contact_info", {"email": "nope"}, ["invalid email format"]),
        ("contact_info", {"email": "owner@acme.com"}, []),
        ("business_context", {"industry": ""}, ["industry is required"]),
        ("pain_points", {"primary_challenges": []}, ["at least one primary challenge is required"]),
        ("goals_objectives", {"primary_goals": ["other"]}, []),
        ("review", {}, ["unknown step: review"]),
    ],
)
def test_validate_step(step, data, errors):
    assert validate_step(step, data) == errors
