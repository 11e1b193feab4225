"""
Paper requirement and cost for one printed component.

Sheets are counted per form: net sheets carry the run, waste sheets are
added per form, and the total is bought in reams of 500.
"""

from __future__ import annotations

import math
from typing import List, Optional

from logging_config import get_logger
from models.cost_result import ImpositionResult, PaperCost, WastageResult
from models.rate_tables import PaperRate, RateTables


logger = get_logger(__name__)

SHEETS_PER_REAM = 500
SQ_M_PER_SQ_IN = 0.0254 * 0.0254


def _matches(rate: PaperRate, paper_type: str) -> bool:
    key = (paper_type or "").strip().lower()
    return rate.paper_type.lower() == key or rate.code.lower() == key


def _same_gsm(a: float, b: float) -> bool:
    return abs(a - b) < 1e-9


def find_paper_rate(
    paper_type: str,
    gsm: float,
    size_label: str,
    tables: RateTables,
) -> float:
    """
    Charge rate per ream for a paper on a given sheet size.

    Lookup order:
        1. Exact paper type (or code), gsm and sheet size
        2. Same paper and gsm on another size, scaled by sheet area
        3. Same paper, rate interpolated between the nearest gsm entries
        4. Weight-based fallback at the table's rate per kg
    """
    candidates: List[PaperRate] = [r for r in tables.paper_rates if _matches(r, paper_type)]

    for rate in candidates:
        if _same_gsm(rate.gsm, gsm) and rate.size_label == size_label:
            return rate.charge_rate

    target_size = tables.paper_size(size_label)
    for rate in candidates:
        if not _same_gsm(rate.gsm, gsm):
            continue
        rate_size = tables.paper_size(rate.size_label)
        if rate_size is not None and target_size is not None:
            ratio = target_size.area_sq_in / rate_size.area_sq_in
            logger.debug(
                f"Paper rate {paper_type} {gsm:g}gsm scaled from {rate.size_label} to {size_label}"
            )
            return float(round(rate.charge_rate * ratio))
        return rate.charge_rate

    if candidates:
        ordered = sorted(candidates, key=lambda r: r.gsm)
        lower: Optional[PaperRate] = None
        upper: Optional[PaperRate] = None
        for rate in ordered:
            if rate.gsm <= gsm:
                lower = rate
            if rate.gsm >= gsm and upper is None:
                upper = rate
        if lower is not None and upper is not None and not _same_gsm(lower.gsm, upper.gsm):
            ratio = (gsm - lower.gsm) / (upper.gsm - lower.gsm)
            return float(round(lower.charge_rate + (upper.charge_rate - lower.charge_rate) * ratio))
        if lower is not None:
            return lower.charge_rate
        if upper is not None:
            return upper.charge_rate

    size = target_size or tables.imposition.paper_sizes[0]
    ream_weight_kg = size.area_sq_in * SQ_M_PER_SQ_IN * gsm / 1000.0 * SHEETS_PER_REAM
    logger.debug(f"No rate for {paper_type} {gsm:g}gsm, using weight-based fallback")
    return float(round(ream_weight_kg * tables.fallback_paper_rate_per_kg))


def calculate_paper_cost(
    quantity: int,
    imposition: ImpositionResult,
    wastage: WastageResult,
    paper_type: str,
    gsm: float,
    tables: RateTables,
) -> PaperCost:
    """
    Sheets, reams and cost of paper for one component.

    Args:
        quantity: Copies to print
        imposition: Chosen layout (forms and ups)
        wastage: Waste allowance for the component
        paper_type: Paper name or code
        gsm: Paper weight
        tables: Rate tables

    Returns:
        PaperCost with cost rounded to 2 decimal places
    """
    net_sheets = math.ceil(quantity * imposition.number_of_forms / imposition.ups)
    gross_sheets = net_sheets + wastage.total_wastage
    reams = gross_sheets / SHEETS_PER_REAM
    rate_per_ream = find_paper_rate(paper_type, gsm, imposition.paper_size_label, tables)

    return PaperCost(
        net_sheets=net_sheets,
        gross_sheets=gross_sheets,
        reams=round(reams, 2),
        rate_per_ream=rate_per_ream,
        cost=round(reams * rate_per_ream, 2),
    )
