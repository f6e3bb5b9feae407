import pytest

from app.core.exceptions import InvalidStatusTransitionError, ValidationError
from app.services.consultation_validator import (
    calculate_completion_percentage,
    detect_changes,
    is_section_filled,
    is_valid_budget_range,
    normalize_sections,
    normalize_website,
    section_has_data,
    validate_business_context,
    validate_contact_info,
    validate_goals_objectives,
    validate_pain_points,
    validate_sections,
    validate_status_transition,
)


class TestStatusTransitions:
    @pytest.mark.parametrize(
        "from_status,to_status",
        [("draft", "completed"), ("draft", "archived"), ("completed", "archived")],
    )
    def test_allowed(self, from_status, to_status):
        validate_status_transition(from_status, to_status)

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            ("completed", "draft"),
            ("archived", "draft"),
            ("archived", "completed"),
            ("draft", "draft"),
        ],
    )
    def test_rejected(self, from_status, to_status):
        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            validate_status_transition(from_status, to_status)

        assert str(exc_info.value) == f"cannot transition from {from_status} to {to_status}"


class TestCompletion:
    def test_empty_consultation_is_zero(self):
        assert calculate_completion_percentage({}) == 0

    def test_counts_sections_by_anchor_field(self, complete_sections):
        partial = {
            "contact_info": complete_sections["contact_info"],
            "business_context": complete_sections["business_context"],
            "pain_points": {"urgency_level": "high"},
        }

        assert calculate_completion_percentage(partial) == 50
        assert calculate_completion_percentage(complete_sections) == 100

    def test_blank_anchor_does_not_count(self):
        assert not is_section_filled("contact_info", {"business_name": "   "})
        assert not is_section_filled("pain_points", {"primary_challenges": []})
        assert is_section_filled("goals_objectives", {"primary_goals": ["other"]})

    def test_section_has_data(self):
        assert not section_has_data({})
        assert not section_has_data({"email": "", "team_size": None})
        assert section_has_data({"phone": "555-0100"})


class TestSectionValidators:
    def test_contact_info_requires_business_name(self):
        assert validate_contact_info({"email": "a@b.com"}) == ["business_name is required"]

    def test_contact_info_rejects_bad_email(self):
        errors = validate_contact_info({"business_name": "Acme", "email": "not-an-email"})

        assert errors == ["invalid email format"]

    def test_contact_info_accepts_bare_domain(self):
        assert validate_contact_info({"business_name": "Acme", "website": "acme.com"}) == []

    def test_contact_info_rejects_long_name(self):
        errors = validate_contact_info({"business_name": "x" * 300})

        assert errors == ["business_name must be at most 255 characters"]

    @pytest.mark.parametrize("team_size", [0, -3, "12"])
    def test_business_context_team_size_must_be_positive(self, team_size):
        errors = validate_business_context({"industry": "retail", "team_size": team_size})

        assert errors == ["team_size must be positive"]

    def test_business_context_requires_industry(self):
        assert validate_business_context({"team_size": 4}) == ["industry is required"]

    def test_pain_points(self):
        errors = validate_pain_points({"urgency_level": "whenever"})

        assert errors == [
            "invalid urgency level",
            "at least one primary challenge is required",
        ]

    def test_goals_objectives(self):
        assert validate_goals_objectives({"budget_range": "10k-20k"}) == [
            "at least one primary goal is required"
        ]
        assert validate_goals_objectives(
            {"primary_goals": ["generate-leads"], "budget_range": "lots"}
        ) == ["invalid budget range format"]

    @pytest.mark.parametrize(
        "value", ["5k-10k", "tbd", "$10k-25k", "$10,000 - $25,000", "$50k+", "10000 to 20000"]
    )
    def test_budget_range_accepted(self, value):
        assert is_valid_budget_range(value)

    @pytest.mark.parametrize("value", ["cheap", "$", "10k-", "-5k", "1" + " " * 80 + "x"])
    def test_budget_range_rejected(self, value):
        assert not is_valid_budget_range(value)

    def test_overlong_budget_range_reports_length_only(self):
        budget_range = "1" + " " * 20000 + "x"

        assert not is_valid_budget_range(budget_range)
        assert validate_goals_objectives(
            {"primary_goals": ["generate-leads"], "budget_range": budget_range}
        ) == ["budget_range must be at most 100 characters"]


class TestValidateSections:
    def test_valid_sections_pass(self, complete_sections):
        validate_sections(complete_sections)

    def test_errors_are_prefixed_and_collected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_sections(
                {
                    "contact_info": {"email": "bad"},
                    "business_context": {"industry": "retail", "team_size": 0},
                }
            )

        assert exc_info.value.errors == [
            "contact_info: business_name is required",
            "contact_info: invalid email format",
            "business_context: team_size must be positive",
        ]
        assert str(exc_info.value) == "; ".join(exc_info.value.errors)


class TestNormalization:
    def test_normalize_website(self):
        assert normalize_website("acme.com") == "https://acme.com"
        assert normalize_website("http://acme.com") == "http://acme.com"
        assert normalize_website(None) is None

    def test_normalize_sections_does_not_mutate_input(self):
        sections = {"contact_info": {"business_name": "Acme", "website": "acme.com"}}

        normalized = normalize_sections(sections)

        assert normalized["contact_info"]["website"] == "https://acme.com"
        assert sections["contact_info"]["website"] == "acme.com"


class TestDetectChanges:
    def test_reports_changed_fields_in_stable_order(self):
        previous = {
            "contact_info": {"business_name": "Old"},
            "business_context": {},
            "pain_points": {},
            "goals_objectives": {},
            "status": "draft",
            "completion_percentage": 25,
        }
        current = dict(previous, contact_info={"business_name": "New"}, status="completed")

        assert detect_changes(current, previous) == ["contact_info", "status"]

    def test_none_and_empty_section_are_equal(self):
        previous = {"contact_info": None, "status": "draft", "completion_percentage": None}
        current = {"contact_info": {}, "status": "draft", "completion_percentage": 0}

        assert detect_changes(current, previous) == []
