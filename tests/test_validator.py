"""
Unit tests for the job specification validator.

Every rule is checked on its own, and the validator is expected to report
all violations of a payload together.
"""

import pytest

from models.job_spec import (
    BindingType,
    FreightMode,
    LaminationType,
    PricingMode,
    RawJobSpecification,
    Turnaround,
)
from modules.validator import JobValidator, _sanitize_text


# Fixtures

@pytest.fixture
def validator():
    """Validator allowing up to five quantities."""
    return JobValidator(max_quantities=5)


def _errors_mentioning(outcome, text):
    return [error for error in outcome.errors if text in error]


# Tests for valid payloads

class TestValidPayload:
    """Test normalization of a valid payload."""

    def test_scenario_is_valid(self, validator, scenario_payload):
        """Test the reference payload validates cleanly."""
        outcome = validator.validate(scenario_payload)

        assert outcome.is_valid
        assert outcome.errors == ()

    def test_numbers_are_coerced(self, validator, scenario_payload):
        """Test text numbers become numbers of the right type."""
        spec = validator.validate(scenario_payload).specification

        assert spec.trim_width_mm == 153.0
        assert spec.quantities == (5000,)
        assert isinstance(spec.quantities[0], int)
        assert spec.text_sections[0].pages == 256
        assert spec.text_sections[0].colors_front == 4
        assert spec.pricing.percent == 20.0

    def test_enums_are_resolved(self, validator, scenario_payload):
        """Test enum fields become enum members."""
        spec = validator.validate(scenario_payload).specification

        assert spec.binding_type is BindingType.PERFECT_BINDING
        assert spec.cover.lamination is LaminationType.GLOSS
        assert spec.pricing.mode is PricingMode.MARGIN
        assert spec.pricing.turnaround is Turnaround.STANDARD

    def test_accepts_raw_specification(self, validator, scenario_payload):
        """Test a RawJobSpecification wrapper is accepted as well as a dict."""
        outcome = validator.validate(RawJobSpecification.from_dict(scenario_payload))
        assert outcome.is_valid

    def test_defaults_for_optional_sections(self, validator, scenario_payload):
        """Test missing pricing, delivery and finishing fall back to defaults."""
        del scenario_payload["pricing"]
        spec = validator.validate(scenario_payload).specification

        assert spec.pricing.percent == 0.0
        assert spec.pricing.tax_rate == 0.0
        assert spec.delivery.freight_mode is FreightMode.NONE
        assert spec.finishing.spot_uv is False

    def test_disabled_sections_are_dropped(self, validator, scenario_payload):
        """Test disabled text sections are not validated or kept."""
        scenario_payload["text_sections"].append({"enabled": "false", "pages": "oops"})
        spec = validator.validate(scenario_payload).specification

        assert len(spec.text_sections) == 1

    def test_title_is_sanitized(self, validator, scenario_payload):
        """Test markup is stripped from the title."""
        scenario_payload["title"] = "  <b>Atlas</b> of Birds "
        spec = validator.validate(scenario_payload).specification

        assert spec.title == "Atlas of Birds"

    def test_sanitize_truncates(self):
        """Test the sanitizer truncates to the maximum length."""
        assert _sanitize_text("abcdefgh", 3) == "abc"
        assert _sanitize_text(None) == ""


# Tests for rejected payloads

class TestRejectedPayload:
    """Test each validation rule."""

    def test_fractional_quantity(self, validator, scenario_payload):
        """Test a fractional quantity is rejected as not a whole number."""
        scenario_payload["quantities"] = ["1500.5"]
        outcome = validator.validate(scenario_payload)

        assert not outcome.is_valid
        assert outcome.specification is None
        assert _errors_mentioning(outcome, "whole number")

    def test_unparseable_number(self, validator, scenario_payload):
        """Test text that is not a number is reported."""
        scenario_payload["trim_width_mm"] = "wide"
        outcome = validator.validate(scenario_payload)

        assert _errors_mentioning(outcome, "Trim width must be a number")

    def test_missing_required_field(self, validator, scenario_payload):
        """Test a missing dimension is reported as required."""
        del scenario_payload["trim_height_mm"]
        outcome = validator.validate(scenario_payload)

        assert "Trim height is required" in outcome.errors

    def test_pages_divisible_by_four(self, validator, scenario_payload):
        """Test page counts must be multiples of 4."""
        scenario_payload["text_sections"][0]["pages"] = "250"
        outcome = validator.validate(scenario_payload)

        assert _errors_mentioning(outcome, "divisible by 4")

    def test_upper_bounds(self, validator, scenario_payload):
        """Test dimension, page, quantity and gsm upper bounds."""
        scenario_payload["trim_width_mm"] = "1001"
        scenario_payload["text_sections"][0]["pages"] = "5004"
        scenario_payload["text_sections"][0]["gsm"] = "601"
        scenario_payload["quantities"] = ["1000001"]
        outcome = validator.validate(scenario_payload)

        assert len(outcome.errors) == 4

    def test_cover_gsm_limit_is_higher(self, validator, scenario_payload):
        """Test cover stock may be heavier than text stock."""
        scenario_payload["cover"]["gsm"] = "750"
        assert validator.validate(scenario_payload).is_valid

        scenario_payload["cover"]["gsm"] = "801"
        assert not validator.validate(scenario_payload).is_valid

    def test_non_positive_values(self, validator, scenario_payload):
        """Test zero and negative values are rejected."""
        scenario_payload["trim_width_mm"] = "0"
        scenario_payload["quantities"] = [-5]
        outcome = validator.validate(scenario_payload)

        assert "Trim width must be greater than 0" in outcome.errors
        assert "Quantity must be greater than 0" in outcome.errors

    def test_colour_range(self, validator, scenario_payload):
        """Test colour counts outside 0-4 or fractional are rejected."""
        scenario_payload["text_sections"][0]["colors_front"] = "5"
        scenario_payload["text_sections"][0]["colors_back"] = "1.5"
        outcome = validator.validate(scenario_payload)

        assert _errors_mentioning(outcome, "front colours must be at most 4")
        assert _errors_mentioning(outcome, "back colours must be a whole number")

    def test_percent_of_100_rejected(self, validator, scenario_payload):
        """Test a 100% margin is rejected."""
        scenario_payload["pricing"]["percent"] = "100"
        outcome = validator.validate(scenario_payload)

        assert "Margin/markup percent must be less than 100" in outcome.errors

    def test_tax_rate_range(self, validator, scenario_payload):
        """Test tax above 100% is rejected and 100% is accepted."""
        scenario_payload["pricing"]["tax_rate"] = "100"
        assert validator.validate(scenario_payload).is_valid

        scenario_payload["pricing"]["tax_rate"] = "100.5"
        assert not validator.validate(scenario_payload).is_valid

    def test_unknown_enum(self, validator, scenario_payload):
        """Test an unknown binding type lists the valid options."""
        scenario_payload["binding_type"] = "spiral"
        outcome = validator.validate(scenario_payload)

        assert _errors_mentioning(outcome, "Binding type must be one of")

    def test_hardcase_requires_board(self, validator, scenario_payload):
        """Test section-sewn hardcase needs a board."""
        scenario_payload["binding_type"] = "section_sewn_hardcase"
        outcome = validator.validate(scenario_payload)

        assert _errors_mentioning(outcome, "Board is required")

        scenario_payload["board"] = {"thickness_mm": "2.5"}
        assert validator.validate(scenario_payload).is_valid

    def test_board_thickness_limit(self, validator, scenario_payload):
        """Test board thickness must be at most 10mm."""
        scenario_payload["board"] = {"thickness_mm": "12"}
        outcome = validator.validate(scenario_payload)

        assert _errors_mentioning(outcome, "Board thickness must be at most 10")

    def test_endleaves_pages(self, validator, scenario_payload):
        """Test endleaves pages follow the multiple-of-4 rule."""
        scenario_payload["endleaves"] = {
            "pages": "6", "gsm": "140", "paper_type": "White Uncoated", "machine_id": "fav",
        }
        outcome = validator.validate(scenario_payload)

        assert _errors_mentioning(outcome, "Endleaves pages must be divisible by 4")

    def test_no_enabled_sections(self, validator, scenario_payload):
        """Test at least one enabled text section is required."""
        scenario_payload["text_sections"][0]["enabled"] = False
        outcome = validator.validate(scenario_payload)

        assert "At least one enabled text section is required" in outcome.errors

    def test_too_many_quantities(self, validator, scenario_payload):
        """Test the number of quantities is capped."""
        scenario_payload["quantities"] = [1000, 2000, 3000, 4000, 5000, 6000]
        outcome = validator.validate(scenario_payload)

        assert _errors_mentioning(outcome, "At most 5 quantities")

    def test_freight_needs_destination(self, validator, scenario_payload):
        """Test shipping without a destination is rejected."""
        scenario_payload["delivery"] = {"freight_mode": "sea"}
        outcome = validator.validate(scenario_payload)

        assert "Destination is required when freight is shipped" in outcome.errors

    def test_all_violations_collected(self, validator, scenario_payload):
        """Test violations are reported together, not one at a time."""
        scenario_payload["quantities"] = ["1500.5"]
        scenario_payload["text_sections"][0]["pages"] = "250"
        scenario_payload["pricing"]["tax_rate"] = "-1"
        outcome = validator.validate(scenario_payload)

        assert len(outcome.errors) == 3
        assert outcome.specification is None

    def test_not_an_object(self, validator):
        """Test a non-object payload is rejected."""
        outcome = validator.validate(["not", "a", "job"])
        assert outcome.errors == ("Job specification must be an object",)
