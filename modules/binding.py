"""
Binding cost strategies.

One strategy per BindingType, looked up in BINDING_STRATEGIES. Each
resolves its own tier by quantity (wire-o by block thickness instead),
produces a per-copy rate, and adds any setup cost once:

    total = per_copy x quantity + setup_cost
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional

from core.exceptions import CalculationFailure
from logging_config import get_logger
from models.cost_result import BindingCost
from models.job_spec import BindingType, BoardSpecification, JobSpecification
from models.rate_tables import BoardType, RateTables


logger = get_logger(__name__)

PAGES_PER_SIGNATURE = 16
BOARDS_PER_BOOK = 2
MM_PER_INCH = 25.4


@dataclass(frozen=True)
class BindingContext:
    """Everything a binding strategy needs for one quantity."""

    quantity: int
    text_pages: int
    spine_mm: float
    trim_width_mm: float
    trim_height_mm: float
    board: Optional[BoardSpecification] = None

    @property
    def signatures(self) -> int:
        return math.ceil(self.text_pages / PAGES_PER_SIGNATURE)

    @classmethod
    def for_job(cls, spec: JobSpecification, quantity: int, spine_mm: float) -> "BindingContext":
        return cls(
            quantity=quantity,
            text_pages=spec.total_text_pages,
            spine_mm=spine_mm,
            trim_width_mm=spec.trim_width_mm,
            trim_height_mm=spec.trim_height_mm,
            board=spec.board,
        )


class BindingStrategy:
    """Base strategy. Subclasses return the per-copy rate and its parts."""

    binding_type: BindingType

    def per_copy(self, context: BindingContext, tables: RateTables) -> Dict[str, float]:
        raise NotImplementedError

    def setup_cost(self, context: BindingContext, tables: RateTables) -> float:
        return 0.0

    def calculate(self, context: BindingContext, tables: RateTables) -> BindingCost:
        parts = self.per_copy(context, tables)
        per_copy = sum(parts.values())
        setup = self.setup_cost(context, tables)
        total = per_copy * context.quantity + setup

        breakdown = {name: round(value * context.quantity, 2) for name, value in parts.items()}
        if setup:
            breakdown["setup"] = round(setup, 2)

        logger.debug(
            f"Binding {self.binding_type.value}: {per_copy:.4f}/copy x {context.quantity} "
            f"+ setup {setup:.2f}"
        )

        return BindingCost(
            binding_type=self.binding_type.value,
            per_copy=round(per_copy, 4),
            setup_cost=round(setup, 2),
            total=round(total, 2),
            breakdown=breakdown,
        )


class PerfectBinding(BindingStrategy):
    binding_type = BindingType.PERFECT_BINDING

    def per_copy(self, context, tables):
        tier = tables.perfect_binding_tier(context.quantity)
        return {
            "binding": context.signatures * tier.rate_per_16pp,
            "gathering": context.signatures * tier.gathering_rate,
        }

    def setup_cost(self, context, tables):
        return tables.perfect_binding_tier(context.quantity).setup_cost


class SaddleStitching(BindingStrategy):
    """Flat per-copy rate; page count does not matter."""

    binding_type = BindingType.SADDLE_STITCHING

    def per_copy(self, context, tables):
        return {"stitching": tables.saddle_stitch_tier(context.quantity).rate_per_copy}

    def setup_cost(self, context, tables):
        return tables.saddle_stitch_tier(context.quantity).setup_cost


class SectionSewnHardcase(BindingStrategy):
    binding_type = BindingType.SECTION_SEWN_HARDCASE

    def per_copy(self, context, tables):
        tier = tables.hardcase_tier(context.quantity)
        return {
            "sewing": context.signatures * tier.sewing_rate_per_16pp,
            "case_work": tier.fixed_per_copy,
            "board": self.board_cost_per_copy(context, tables),
        }

    def setup_cost(self, context, tables):
        return tables.hardcase_tier(context.quantity).setup_cost

    @staticmethod
    def resolve_board_type(board: Optional[BoardSpecification], tables: RateTables) -> Optional[BoardType]:
        if board is None:
            return None
        if board.board_type_id:
            return tables.board_type(board.board_type_id)
        return tables.board_type_for_thickness(board.thickness_mm)

    @classmethod
    def board_cost_per_copy(cls, context: BindingContext, tables: RateTables) -> float:
        """Two boards per book, cut from the board stock sheet."""
        board_type = cls.resolve_board_type(context.board, tables)
        if board_type is None:
            raise CalculationFailure(
                "binding", "hardcase board stock could not be resolved", quantity=context.quantity
            )
        board_height_in = (context.trim_height_mm + 6) / MM_PER_INCH
        board_width_in = (context.trim_width_mm + 3) / MM_PER_INCH
        boards_per_sheet = (
            math.floor(board_type.sheet_width_in / board_width_in)
            * math.floor(board_type.sheet_height_in / board_height_in)
        )
        return BOARDS_PER_BOOK / max(boards_per_sheet, 1) * board_type.rate_per_sheet


class WireO(BindingStrategy):
    """Wire size chosen by block thickness, plus punching and closing."""

    binding_type = BindingType.WIRE_O

    def per_copy(self, context, tables):
        entry = tables.wire_o_entry(context.spine_mm)
        logger.debug(f"Wire-O {entry.diameter} for {context.spine_mm}mm block")
        return {
            "wire": entry.standard_per_100 / 100,
            "punching": tables.binding.wire_o_punching_per_copy,
            "binding": tables.binding.wire_o_binding_per_copy,
        }

    def setup_cost(self, context, tables):
        return tables.binding.wire_o_setup_cost


BINDING_STRATEGIES: Dict[BindingType, BindingStrategy] = {
    strategy.binding_type: strategy
    for strategy in (PerfectBinding(), SaddleStitching(), SectionSewnHardcase(), WireO())
}


def calculate_binding_cost(
    binding_type: BindingType,
    context: BindingContext,
    tables: RateTables,
) -> BindingCost:
    """Cost the binding with the strategy registered for binding_type."""
    return BINDING_STRATEGIES[binding_type].calculate(context, tables)
