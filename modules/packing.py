"""
Packing calculator: books into cartons, cartons onto pallets.

Books lie flat in a standard carton. A carton holds as many books as
fit by volume without going over the carton weight limit. A pallet takes
as many cartons as fit in its footprint and stack height without going
over the pallet weight limit.
"""

from __future__ import annotations

import math

from logging_config import get_logger
from models.cost_result import PackingResult
from models.rate_tables import PackingRates


logger = get_logger(__name__)

MIN_BOOK_THICKNESS_MM = 1.0


def _fit(container_a: float, container_b: float, item_a: float, item_b: float) -> int:
    """Items per layer, trying both rotations of the item."""
    straight = math.floor(container_a / item_a) * math.floor(container_b / item_b)
    rotated = math.floor(container_a / item_b) * math.floor(container_b / item_a)
    return max(straight, rotated)


def books_per_carton(
    book_weight_kg: float,
    trim_width_mm: float,
    trim_height_mm: float,
    thickness_mm: float,
    rates: PackingRates,
) -> int:
    by_weight = math.floor(rates.max_carton_weight_kg / book_weight_kg) if book_weight_kg > 0 else 0
    per_layer = _fit(rates.carton_length_mm, rates.carton_width_mm, trim_width_mm, trim_height_mm)
    layers = math.floor(rates.carton_height_mm / max(thickness_mm, MIN_BOOK_THICKNESS_MM))
    by_volume = per_layer * layers

    limits = [limit for limit in (by_weight, by_volume) if limit > 0]
    return max(min(limits), 1) if limits else 1


def cartons_per_pallet(carton_weight_kg: float, rates: PackingRates) -> int:
    by_weight = math.floor(rates.max_pallet_weight_kg / carton_weight_kg) if carton_weight_kg > 0 else 0
    per_layer = _fit(
        rates.pallet_length_mm, rates.pallet_width_mm,
        rates.carton_length_mm, rates.carton_width_mm,
    )
    stack_height = rates.max_pallet_height_mm - rates.pallet_base_height_mm
    layers = math.floor(stack_height / rates.carton_height_mm)
    by_stack = per_layer * layers

    limits = [limit for limit in (by_weight, by_stack) if limit > 0]
    return max(min(limits), 1) if limits else 1


def calculate_packing(
    quantity: int,
    book_weight_g: float,
    trim_width_mm: float,
    trim_height_mm: float,
    thickness_mm: float,
    rates: PackingRates,
    charge: bool = True,
) -> PackingResult:
    """
    Carton and pallet counts, and their cost.

    Args:
        quantity: Books to pack
        book_weight_g: Weight of one book
        trim_width_mm: Book width
        trim_height_mm: Book height
        thickness_mm: Book thickness
        rates: Packing rates and unit capacities
        charge: False to count units without charging for them

    Returns:
        PackingResult (cost 0 when charge is False)
    """
    book_kg = book_weight_g / 1000.0
    per_carton = books_per_carton(book_kg, trim_width_mm, trim_height_mm, thickness_mm, rates)
    cartons = math.ceil(quantity / per_carton)

    carton_kg = per_carton * book_kg
    per_pallet = cartons_per_pallet(carton_kg, rates)
    pallets = math.ceil(cartons / per_pallet)

    cost = 0.0
    if charge:
        pallet_unit_cost = rates.pallet_cost + rates.stretch_wrap_per_pallet + rates.strapping_per_pallet
        cost = cartons * rates.carton_cost + pallets * pallet_unit_cost

    logger.debug(
        f"Packing: {per_carton} books/carton, {cartons} cartons, "
        f"{per_pallet} cartons/pallet, {pallets} pallets"
    )

    return PackingResult(
        books_per_carton=per_carton,
        cartons=cartons,
        cartons_per_pallet=per_pallet,
        pallets=pallets,
        consignment_weight_kg=round(quantity * book_kg, 2),
        cost=round(cost, 2),
    )
