"""
Finishing cost calculator.

Lamination is charged per covered press sheet, scaled by how the flat
cover compares to an A5 reference page (never below the table's per-copy
rate) and lifted to the film's minimum order. Spot UV, embossing, foil
blocking and die cutting are a per-copy rate plus one block or die.
"""

from __future__ import annotations

from typing import Optional

from logging_config import get_logger
from models.cost_result import FinishingCost
from models.job_spec import DieCutComplexity, JobSpecification, LaminationType
from models.rate_tables import FinishingRate, RateTables
from modules.geometry import JACKET_FLAPS_MM


logger = get_logger(__name__)

MM_PER_INCH = 25.4


def flat_cover_width_mm(trim_width_mm: float, spine_with_board_mm: float, jacket: bool = False) -> float:
    """Opened-out width of a cover (or jacket, flaps included)."""
    width = 2 * trim_width_mm + spine_with_board_mm
    if jacket:
        width += JACKET_FLAPS_MM
    return width


def area_scale_factor(flat_width_mm: float, height_mm: float, tables: RateTables) -> float:
    area_sq_in = (flat_width_mm / MM_PER_INCH) * (height_mm / MM_PER_INCH)
    rates = tables.finishing
    return max(rates.minimum_area_factor, area_sq_in / rates.reference_area_sq_in)


def lamination_cost(
    lamination: LaminationType,
    flat_width_mm: float,
    height_mm: float,
    covered_sheets: int,
    tables: RateTables,
) -> float:
    """
    Lamination for one covered component.

    cost = max(rate x area factor x covered sheets, minimum order)
    """
    if lamination is LaminationType.NONE:
        return 0.0
    rate: FinishingRate = tables.finishing.lamination[lamination.value]
    factor = area_scale_factor(flat_width_mm, height_mm, tables)
    cost = max(rate.rate_per_copy * factor * covered_sheets, rate.minimum_order)
    logger.debug(
        f"Lamination {lamination.value}: factor={factor:.3f}, sheets={covered_sheets} -> {cost:.2f}"
    )
    return cost


def _per_copy_with_tooling(rate: FinishingRate, quantity: int) -> float:
    return max(rate.rate_per_copy * quantity + rate.setup_cost, rate.minimum_order)


def calculate_finishing_cost(
    spec: JobSpecification,
    quantity: int,
    spine_with_board_mm: float,
    tables: RateTables,
    cover_sheets: int = 0,
    jacket_sheets: Optional[int] = None,
) -> FinishingCost:
    """
    Finishing for one quantity.

    Args:
        spec: Validated job specification
        quantity: Copies
        spine_with_board_mm: Spine the cover wraps
        tables: Rate tables
        cover_sheets: Gross press sheets of the cover
        jacket_sheets: Gross press sheets of the jacket, if any

    Returns:
        FinishingCost with every figure rounded to 2 decimal places
    """
    lamination = 0.0
    if spec.cover is not None:
        lamination += lamination_cost(
            spec.cover.lamination,
            flat_cover_width_mm(spec.trim_width_mm, spine_with_board_mm),
            spec.trim_height_mm,
            cover_sheets,
            tables,
        )
    if spec.jacket is not None and jacket_sheets is not None:
        lamination += lamination_cost(
            spec.jacket.lamination,
            flat_cover_width_mm(spec.trim_width_mm, spine_with_board_mm, jacket=True),
            spec.trim_height_mm,
            jacket_sheets,
            tables,
        )

    options = spec.finishing
    rates = tables.finishing

    spot_uv = 0.0
    if options.spot_uv:
        tier = tables.spot_uv_tier(quantity)
        spot_uv = tier.rate_per_copy * quantity + tier.block_cost

    embossing = _per_copy_with_tooling(rates.embossing, quantity) if options.embossing else 0.0
    foil = _per_copy_with_tooling(rates.foil_blocking, quantity) if options.foil_blocking else 0.0

    die_cutting = 0.0
    if options.die_cutting is not DieCutComplexity.NONE:
        die_cutting = _per_copy_with_tooling(rates.die_cutting[options.die_cutting.value], quantity)

    return FinishingCost(
        lamination=round(lamination, 2),
        spot_uv=round(spot_uv, 2),
        embossing=round(embossing, 2),
        foil_blocking=round(foil, 2),
        die_cutting=round(die_cutting, 2),
    )
