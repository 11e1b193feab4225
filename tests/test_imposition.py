"""Unit tests for the imposition resolver."""

import math

import pytest

from core.exceptions import CalculationFailure
from modules.imposition import (
    FORM_LAYOUTS,
    find_optimal_imposition,
    form_layouts,
    impose_flat,
    mm_to_inch,
    require_imposition,
)


class TestFormLayouts:
    """Test the fold layouts table."""

    def test_layouts_multiply_to_half_the_pages(self):
        """Test each layout carries half the form's pages on one side."""
        for pages_per_form, layouts in FORM_LAYOUTS.items():
            for rows, cols in layouts:
                assert rows * cols * 2 == pages_per_form

    def test_unknown_form_falls_back(self):
        assert form_layouts(12) == [(1, 2)]


class TestFindOptimalImposition:
    """Test the imposition search."""

    def test_scenario_text(self, tables, machines):
        """Test the reference text block on the RMGT."""
        result = find_optimal_imposition(153, 234, 256, tables.imposition, machines["rmgt"])

        assert result is not None
        assert result.sheets_per_copy == pytest.approx(16)
        assert result.pages_per_form == 8
        assert result.number_of_forms == 32
        assert result.ups == 2
        assert result.paper_size_label == "20x30"

    def test_respects_machine_maximum(self, tables, machines):
        """Test no sheet larger than the press maximum is chosen."""
        machine = machines["rmgt"]
        result = find_optimal_imposition(153, 234, 256, tables.imposition, machine)

        short_side = min(result.sheet_width_in, result.sheet_height_in)
        long_side = max(result.sheet_width_in, result.sheet_height_in)
        assert short_side <= machine.max_sheet_width_in
        assert long_side <= machine.max_sheet_height_in

    def test_form_includes_bleed_and_gripper(self, tables):
        """Test the form width is bleed-inclusive pages plus the gripper."""
        result = find_optimal_imposition(153, 234, 256, tables.imposition)
        page_width = mm_to_inch(153 + 2 * tables.imposition.bleed_mm)
        gripper = mm_to_inch(tables.imposition.gripper_mm)

        columns = [cols for _, cols in form_layouts(result.pages_per_form)]
        assert any(
            result.form_width_in == pytest.approx(page_width * cols + gripper) for cols in columns
        )

    def test_forms_cover_every_page(self, tables):
        """Test forms x pages per form covers the page count."""
        result = find_optimal_imposition(210, 297, 100, tables.imposition)

        assert result.number_of_forms == math.ceil(100 / result.pages_per_form)
        assert result.number_of_forms * result.pages_per_form >= 100

    def test_ups_at_least_one(self, tables):
        """Test a returned imposition always has ups >= 1."""
        result = find_optimal_imposition(100, 100, 16, tables.imposition)
        assert result.ups >= 1

    def test_oversize_trim_fits_nowhere(self, tables, machines):
        """Test a trim larger than any sheet yields None."""
        assert find_optimal_imposition(1000, 1000, 16, tables.imposition, machines["rmgt"]) is None


class TestFlatImposition:
    """Test cover and jacket imposition."""

    def test_cover_is_one_four_page_form(self, tables, machines):
        result = impose_flat(2 * 153 + 18.64, 234, tables.imposition, machines["fav"])

        assert result.pages_per_form == 4
        assert result.number_of_forms == 1
        assert result.ups >= 1

    def test_form_is_one_flat_width_across(self, tables, machines):
        """Test the form is the flat cover plus bleed and gripper, not two of them."""
        flat_width = 2 * 153 + 18.64
        result = impose_flat(flat_width, 234, tables.imposition, machines["fav"])

        expected = mm_to_inch(flat_width + 2 * tables.imposition.bleed_mm) + mm_to_inch(12)
        assert result.form_width_in == pytest.approx(expected)
        assert result.form_height_in == pytest.approx(mm_to_inch(234 + 2 * tables.imposition.bleed_mm))

    def test_jacket_fits_a_standard_sheet(self, tables, machines):
        """Test a jacket with 90mm flaps on a hardcase spine still fits the press."""
        result = impose_flat(2 * 153 + 21.64 + 180, 234, tables.imposition, machines["fav"])

        assert result is not None
        assert result.form_width_in < 28
        assert result.ups >= 1


class TestRequireImposition:
    """Test unwrapping an imposition."""

    def test_missing_imposition_fails(self):
        with pytest.raises(CalculationFailure) as exc_info:
            require_imposition(None, "Text", quantity=500)

        assert exc_info.value.stage == "imposition"
        assert exc_info.value.quantity == 500

    def test_valid_imposition_passes_through(self, tables):
        result = find_optimal_imposition(153, 234, 256, tables.imposition)
        assert require_imposition(result, "Text") is result
