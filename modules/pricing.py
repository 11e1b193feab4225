"""
Pricing and tax layer.

Turns a production subtotal into a sell price in a fixed order:

    1. turnaround surcharge      subtotal x multiplier
    2. volume discount           on the surcharged amount
    3. minimum-order floor       after discounting
    4. margin or markup          on the floor-adjusted amount
    5. tax                       on the sell price
    6. per-copy figures

The order matters: reordering any two steps changes the price.
"""

from __future__ import annotations

from logging_config import get_logger
from core.exceptions import CalculationFailure
from models.cost_result import PricingResult
from models.job_spec import PricingConfiguration, PricingMode, Turnaround
from models.rate_tables import RateTables


logger = get_logger(__name__)


class PricingCalculator:
    """Applies surcharge, discount, floor, margin/markup and tax."""

    def __init__(self, tables: RateTables) -> None:
        self.tables = tables

    def _turnaround_multiplier(self, turnaround: Turnaround) -> float:
        return self.tables.turnaround_multiplier(turnaround.value)

    @staticmethod
    def sell_price(cost: float, mode: PricingMode, percent: float) -> float:
        """
        Invert a margin, or apply a markup.

        margin: sell = cost / (1 - percent/100)   (percent of sell)
        markup: sell = cost x (1 + percent/100)   (percent of cost)
        """
        if mode is PricingMode.MARGIN:
            if percent >= 100:
                raise CalculationFailure("pricing", "margin of 100% or more has no sell price")
            return cost / (1 - percent / 100)
        return cost * (1 + percent / 100)

    @staticmethod
    def margin_percent(cost: float, sell: float) -> float:
        """Margin recovered from a cost and a sell price."""
        return 100 * (1 - cost / sell)

    def price(self, subtotal: float, quantity: int, config: PricingConfiguration) -> PricingResult:
        """
        Price one quantity.

        Args:
            subtotal: Sum of every cost center
            quantity: Copies
            config: Margin/markup, tax and turnaround

        Returns:
            PricingResult, money to 2 decimal places. Per-copy figures are
            the rounded totals divided by quantity, left unrounded

        Raises:
            CalculationFailure: on a non-positive quantity
        """
        if quantity <= 0:
            raise CalculationFailure("pricing", "quantity must be positive", quantity=quantity)

        surcharged = subtotal * self._turnaround_multiplier(config.turnaround)
        rush_surcharge = surcharged - subtotal

        discount_percent = self.tables.volume_discount_percent(quantity)
        discount_amount = surcharged * discount_percent / 100
        discounted = surcharged - discount_amount

        floor_value = self.tables.pricing.minimum_order_value
        floor_adjustment = max(0.0, floor_value - discounted)
        production_floor = discounted + floor_adjustment

        sell_before_tax = self.sell_price(production_floor, config.mode, config.percent)
        margin_amount = sell_before_tax - production_floor
        tax_amount = sell_before_tax * config.tax_rate / 100
        grand_total = sell_before_tax + tax_amount

        if floor_adjustment > 0:
            logger.debug(f"Minimum order floor lifts qty {quantity} by {floor_adjustment:.2f}")

        floor_subtotal = round(production_floor, 2)
        total = round(grand_total, 2)

        return PricingResult(
            subtotal=round(subtotal, 2),
            rush_surcharge=round(rush_surcharge, 2),
            surcharged_subtotal=round(surcharged, 2),
            volume_discount_percent=discount_percent,
            volume_discount_amount=round(discount_amount, 2),
            discounted_subtotal=round(discounted, 2),
            minimum_order_adjustment=round(floor_adjustment, 2),
            production_floor_subtotal=floor_subtotal,
            sell_before_tax=round(sell_before_tax, 2),
            margin_amount=round(margin_amount, 2),
            tax_amount=round(tax_amount, 2),
            grand_total=total,
            cost_per_copy=floor_subtotal / quantity,
            sell_per_copy=total / quantity,
        )
