"""
Book geometry: spine thickness and single-copy weight.

Spine = sum over enabled sections of (pages / 2) x caliper, where
caliper = gsm / 1000 x bulk factor of the paper type. Weight follows the
paper area-weight formula: leaves x trim area (m^2) x gsm.
"""

from __future__ import annotations

from typing import Iterable, Optional

from logging_config import get_logger
from models.cost_result import BookGeometry
from models.job_spec import (
    BindingType,
    BoardSpecification,
    EndleavesSpecification,
    JobSpecification,
    TextSection,
)
from models.rate_tables import RateTables


logger = get_logger(__name__)

PERFECT_BINDING_GLUE_ALLOWANCE_MM = 2.0
JACKET_FLAPS_MM = 180.0          # 90 mm each side
BOARD_OVERHANG_HEIGHT_MM = 6.0
BOARD_OVERHANG_WIDTH_MM = 3.0
BOARD_GRAMS_PER_SQM_PER_MM = 1230.0
MISC_WEIGHT_ALLOWANCE = 0.10     # glue, lining, thread


def caliper_mm(gsm: float, paper_type: str, tables: RateTables) -> float:
    """Thickness of one leaf in millimetres."""
    return gsm / 1000.0 * tables.bulk_factor(paper_type)


def spine_thickness(
    sections: Iterable[TextSection],
    tables: RateTables,
    endleaves: Optional[EndleavesSpecification] = None,
) -> float:
    """
    Spine thickness in mm, excluding any board.

    Disabled sections contribute nothing. Endleaves, when present, are
    added like another section.
    """
    spine = 0.0
    for section in sections:
        if not section.enabled:
            continue
        spine += (section.pages / 2) * caliper_mm(section.gsm, section.paper_type, tables)

    if endleaves is not None and endleaves.pages > 0:
        spine += (endleaves.pages / 2) * caliper_mm(endleaves.gsm, endleaves.paper_type, tables)

    return round(spine, 2)


def spine_with_board(
    spine_mm: float,
    binding_type: BindingType,
    board: Optional[BoardSpecification] = None,
) -> float:
    """Spine width the cover has to wrap for a given binding."""
    if binding_type is BindingType.SECTION_SEWN_HARDCASE:
        thickness = board.thickness_mm if board else 0.0
        return round(spine_mm + 2 * thickness, 2)
    if binding_type is BindingType.PERFECT_BINDING:
        return round(spine_mm + PERFECT_BINDING_GLUE_ALLOWANCE_MM, 2)
    if binding_type is BindingType.SADDLE_STITCHING:
        return 0.0
    return spine_mm


def book_geometry(spec: JobSpecification, tables: RateTables) -> BookGeometry:
    """
    Spine and weight of one finished copy.

    Args:
        spec: Validated job specification
        tables: Rate tables (bulk factors)

    Returns:
        BookGeometry with every weight in grams
    """
    spine = spine_thickness(spec.text_sections, tables, spec.endleaves)
    spine_board = spine_with_board(spine, spec.binding_type, spec.board)

    height_m = spec.trim_height_mm / 1000.0
    width_m = spec.trim_width_mm / 1000.0
    page_area = height_m * width_m

    text_weight = sum(
        (section.pages / 2) * page_area * section.gsm
        for section in spec.enabled_sections
    )

    cover_weight = 0.0
    if spec.cover is not None:
        cover_width_m = (2 * spec.trim_width_mm + spine) / 1000.0
        cover_weight = height_m * cover_width_m * spec.cover.gsm

    endleaves_weight = 0.0
    if spec.endleaves is not None and spec.endleaves.pages > 0:
        endleaves_weight = (spec.endleaves.pages / 2) * page_area * spec.endleaves.gsm

    jacket_weight = 0.0
    if spec.jacket is not None:
        jacket_width_m = (2 * spec.trim_width_mm + spine + JACKET_FLAPS_MM) / 1000.0
        jacket_weight = height_m * jacket_width_m * spec.jacket.gsm

    board_weight = 0.0
    if spec.board is not None and spec.board.thickness_mm > 0:
        board_height_m = (spec.trim_height_mm + BOARD_OVERHANG_HEIGHT_MM) / 1000.0
        board_width_m = (spec.trim_width_mm + BOARD_OVERHANG_WIDTH_MM) / 1000.0
        grams_per_sqm = spec.board.thickness_mm * BOARD_GRAMS_PER_SQM_PER_MM
        board_weight = 2 * board_height_m * board_width_m * grams_per_sqm

    subtotal = text_weight + cover_weight + endleaves_weight + jacket_weight + board_weight
    misc_weight = subtotal * MISC_WEIGHT_ALLOWANCE
    total_weight = subtotal + misc_weight

    logger.debug(
        f"Geometry: spine={spine}mm (with board {spine_board}mm), weight={total_weight:.1f}g"
    )

    return BookGeometry(
        spine_mm=spine,
        spine_with_board_mm=spine_board,
        text_weight_g=round(text_weight, 2),
        cover_weight_g=round(cover_weight, 2),
        endleaves_weight_g=round(endleaves_weight, 2),
        jacket_weight_g=round(jacket_weight, 2),
        board_weight_g=round(board_weight, 2),
        misc_weight_g=round(misc_weight, 2),
        total_weight_g=round(total_weight, 2),
    )
