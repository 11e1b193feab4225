"""
Freight calculator.

Each mode picks the cheapest basis the destination carries a rate for:

- sea: per pallet, or per 20 ft container (a fixed number of pallets each)
- air: per kg of consignment
- surface: per truck (by payload), per ton, or per pallet

Overseas destinations add their fixed clearance, CHA, port handling,
documentation and BL charges.
"""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

from core.exceptions import CalculationFailure
from logging_config import get_logger
from models.cost_result import FreightResult
from models.job_spec import FreightMode
from models.rate_tables import Destination, FreightRules


logger = get_logger(__name__)


def freight_options(
    mode: FreightMode,
    destination: Destination,
    weight_kg: float,
    pallets: int,
    rules: FreightRules,
) -> List[Tuple[str, float]]:
    """(basis, cost) pairs the destination has a rate for in this mode."""
    options: List[Tuple[str, float]] = []

    if mode is FreightMode.SEA:
        if destination.sea_per_pallet > 0:
            options.append(("per_pallet", pallets * destination.sea_per_pallet))
        if destination.sea_per_container20 > 0:
            containers = math.ceil(pallets / rules.pallets_per_container20)
            options.append(("per_container20", containers * destination.sea_per_container20))

    elif mode is FreightMode.AIR:
        if destination.air_per_kg > 0:
            options.append(("per_kg", weight_kg * destination.air_per_kg))

    elif mode is FreightMode.SURFACE:
        if destination.surface_per_truck > 0:
            trucks = max(math.ceil(weight_kg / rules.truck_capacity_kg), 1)
            options.append(("per_truck", trucks * destination.surface_per_truck))
        if destination.surface_per_ton > 0:
            options.append(("per_ton", weight_kg / 1000.0 * destination.surface_per_ton))
        if destination.surface_per_pallet > 0:
            options.append(("per_pallet", pallets * destination.surface_per_pallet))

    return options


def has_rate(mode: FreightMode, destination: Optional[Destination]) -> bool:
    """Whether a destination can be shipped to in this mode at all."""
    if mode is FreightMode.NONE:
        return True
    if destination is None:
        return False
    if mode is FreightMode.SEA:
        return destination.sea_per_pallet > 0 or destination.sea_per_container20 > 0
    if mode is FreightMode.AIR:
        return destination.air_per_kg > 0
    return (
        destination.surface_per_truck > 0
        or destination.surface_per_ton > 0
        or destination.surface_per_pallet > 0
    )


def calculate_freight(
    mode: FreightMode,
    destination_id: str,
    weight_kg: float,
    pallets: int,
    rules: FreightRules,
    quantity: Optional[int] = None,
) -> FreightResult:
    """
    Freight charge for one consignment.

    Raises:
        CalculationFailure: if the destination is unknown or has no rate
            for the mode (the feasibility check should have caught it)
    """
    if mode is FreightMode.NONE:
        return FreightResult(
            mode=mode.value,
            destination_id=destination_id,
            basis="none",
            base_cost=0.0,
            overseas_charges=0.0,
            total=0.0,
        )

    destination = rules.destination(destination_id)
    if destination is None:
        raise CalculationFailure("freight", f"unknown destination '{destination_id}'", quantity)

    options = freight_options(mode, destination, weight_kg, pallets, rules)
    if not options:
        raise CalculationFailure(
            "freight", f"no {mode.value} rate for destination '{destination_id}'", quantity
        )

    basis, base_cost = min(options, key=lambda option: option[1])
    overseas = destination.overseas_charges

    logger.debug(
        f"Freight {mode.value} to {destination.destination_id}: {basis}={base_cost:.2f}, "
        f"overseas={overseas:.2f}"
    )

    return FreightResult(
        mode=mode.value,
        destination_id=destination.destination_id,
        basis=basis,
        base_cost=round(base_cost, 2),
        overseas_charges=round(overseas, 2),
        total=round(base_cost + overseas, 2),
    )
