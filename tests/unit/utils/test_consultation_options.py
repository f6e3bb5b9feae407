from app.utils.consultation_options import (
    BUDGET_RANGE_VALUES,
    FORM_OPTIONS,
    URGENCY_LEVELS,
    get_form_options,
)


def test_form_options_shape():
    options = get_form_options()

    assert set(options) == set(FORM_OPTIONS)
    for entries in options.values():
        assert entries
        assert all(set(entry) == {"value", "label"} for entry in entries)


def test_option_values_are_unique_per_field():
    for field, entries in FORM_OPTIONS.items():
        values = [value for value, _ in entries]
        assert len(values) == len(set(values)), field


def test_lookup_sets():
    assert URGENCY_LEVELS == {"low", "medium", "high", "critical"}
    assert "tbd" in BUDGET_RANGE_VALUES
