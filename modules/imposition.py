"""
Imposition resolver.

Finds the cheapest way to lay a component out on press sheets. Every
pages-per-form option is tried with each of its fold layouts, on every
standard paper size the press can take, in both orientations. The winner
uses the fewest sheets per copy, then wastes the least paper, then carries
more pages per form.

A result with ups < 1 is never produced: a component that fits nowhere
yields None and the caller decides how to report it.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Tuple

from core.exceptions import CalculationFailure
from logging_config import get_logger
from models.cost_result import ImpositionResult
from models.machine import MachineProfile
from models.rate_tables import ImpositionRules


logger = get_logger(__name__)

MM_PER_INCH = 25.4

# (rows, cols) of page images on one side of a form, per pages-per-form
FORM_LAYOUTS: Dict[int, List[Tuple[int, int]]] = {
    4: [(1, 2)],
    8: [(2, 2), (1, 4)],
    16: [(2, 4), (4, 2)],
    32: [(4, 4), (2, 8)],
}

COVER_PAGES = 4

# Covers and jackets are imposed at their flat width, one piece per form
FLAT_LAYOUT: List[Tuple[int, int]] = [(1, 1)]


def mm_to_inch(mm: float) -> float:
    return mm / MM_PER_INCH


def form_layouts(pages_per_form: int) -> List[Tuple[int, int]]:
    return FORM_LAYOUTS.get(pages_per_form, [(1, 2)])


def find_optimal_imposition(
    trim_width_mm: float,
    trim_height_mm: float,
    total_pages: int,
    rules: ImpositionRules,
    machine: Optional[MachineProfile] = None,
    pages_per_form_options: Optional[Tuple[int, ...]] = None,
    layouts: Optional[List[Tuple[int, int]]] = None,
) -> Optional[ImpositionResult]:
    """
    Best imposition for one component, or None if nothing fits.

    Args:
        trim_width_mm: Finished (or flat, for covers) width
        trim_height_mm: Finished height
        total_pages: Pages carried by the component
        rules: Paper sizes, bleed and default gripper
        machine: Press profile; limits the sheet size and sets the gripper
        pages_per_form_options: Restrict the forms tried (covers use 4 only)
        layouts: Fixed (rows, cols) layouts to try instead of FORM_LAYOUTS

    Returns:
        The winning ImpositionResult, or None when ups would be 0 everywhere
    """
    gripper_mm = rules.gripper_mm
    max_width = max_height = None
    if machine is not None:
        if machine.gripper_mm is not None:
            gripper_mm = machine.gripper_mm
        max_width = machine.max_sheet_width_in
        max_height = machine.max_sheet_height_in

    page_width_in = mm_to_inch(trim_width_mm + 2 * rules.bleed_mm)
    page_height_in = mm_to_inch(trim_height_mm + 2 * rules.bleed_mm)
    gripper_in = mm_to_inch(gripper_mm)

    candidates: List[ImpositionResult] = []
    for pages_per_form in pages_per_form_options or rules.pages_per_form_options:
        number_of_forms = math.ceil(total_pages / pages_per_form)

        for rows, cols in layouts or form_layouts(pages_per_form):
            form_width = page_width_in * cols + gripper_in
            form_height = page_height_in * rows

            for size in rules.paper_sizes:
                if max_width and size.width_in > max_width:
                    continue
                if max_height and size.height_in > max_height:
                    continue

                for orientation, sheet_w, sheet_h in (
                    ("portrait", size.width_in, size.height_in),
                    ("landscape", size.height_in, size.width_in),
                ):
                    ups = math.floor(sheet_w / form_width) * math.floor(sheet_h / form_height)
                    if ups < 1:
                        continue

                    sheet_area = sheet_w * sheet_h
                    used_area = form_width * form_height * ups
                    candidates.append(ImpositionResult(
                        pages_per_form=pages_per_form,
                        number_of_forms=number_of_forms,
                        ups=ups,
                        paper_size_label=size.label,
                        sheet_width_in=sheet_w,
                        sheet_height_in=sheet_h,
                        form_width_in=form_width,
                        form_height_in=form_height,
                        orientation=orientation,
                        waste_percent=(sheet_area - used_area) / sheet_area * 100,
                    ))

    if not candidates:
        logger.debug(
            f"No imposition for {trim_width_mm}x{trim_height_mm}mm, {total_pages}pp"
        )
        return None

    candidates.sort(key=lambda c: (
        round(c.sheets_per_copy, 6),
        round(c.waste_percent, 4),
        -c.pages_per_form,
    ))
    best = candidates[0]
    logger.debug(
        f"Imposition {best.pages_per_form}pp x{best.ups} on {best.paper_size_label} "
        f"({best.orientation}), {best.number_of_forms} forms"
    )
    return best


def impose_flat(
    flat_width_mm: float,
    trim_height_mm: float,
    rules: ImpositionRules,
    machine: Optional[MachineProfile] = None,
) -> Optional[ImpositionResult]:
    """Imposition for a cover or jacket: one 4-page form, one flat width across."""
    return find_optimal_imposition(
        flat_width_mm,
        trim_height_mm,
        COVER_PAGES,
        rules,
        machine,
        pages_per_form_options=(COVER_PAGES,),
        layouts=FLAT_LAYOUT,
    )


def require_imposition(
    result: Optional[ImpositionResult],
    component: str,
    quantity: Optional[int] = None,
) -> ImpositionResult:
    """Unwrap an imposition, failing the calculation when nothing fit."""
    if result is None or result.ups < 1:
        raise CalculationFailure(
            "imposition",
            f"{component} does not fit on any press sheet (ups < 1)",
            quantity=quantity,
        )
    return result
