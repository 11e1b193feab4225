"""
Wastage resolver.

Waste is allowed per form, not per job: total wastage is the per-form
allowance times the number of forms. Above the last flat range the chart
switches to a percentage of the run.
"""

from __future__ import annotations

import math

from logging_config import get_logger
from models.cost_result import WastageResult
from models.rate_tables import RateTables


logger = get_logger(__name__)


def wastage_per_form(quantity: int, max_colors: int, tables: RateTables) -> int:
    """Waste sheets allowed on each form for this quantity and colour class."""
    entry = tables.wastage_entry(quantity)
    value = entry.column_for(max_colors)
    if entry.is_percentage:
        return math.ceil(quantity * value / 100)
    return int(math.ceil(value))


def calculate_wastage(
    quantity: int,
    max_colors: int,
    number_of_forms: int,
    tables: RateTables,
) -> WastageResult:
    """
    Resolve the wastage chart for one component.

    Args:
        quantity: Copies to print
        max_colors: Larger of front and back colour counts
        number_of_forms: Forms in the component
        tables: Rate tables holding the wastage chart

    Returns:
        WastageResult with per-form and total waste sheets
    """
    entry = tables.wastage_entry(quantity)
    per_form = wastage_per_form(quantity, max_colors, tables)

    logger.debug(
        f"Wastage: qty={quantity}, colours={max_colors} -> {per_form}/form "
        f"({'percent' if entry.is_percentage else 'flat'})"
    )

    return WastageResult(
        wastage_per_form=per_form,
        total_wastage=per_form * number_of_forms,
        is_percentage=entry.is_percentage,
    )


def gross_sheets_per_form(quantity: int, wastage_per_form_sheets: int, ups: int) -> int:
    """Press sheets run for one form, waste included."""
    return math.ceil((quantity + wastage_per_form_sheets) / ups)
