"""
Printing cost calculator: plates, impressions, press time and make-ready.

Two mutually exclusive costing paths:

- physics: the machine profile has a speed and an hourly rate, so the run
  is costed by press time (hours x hourly cost), and make-ready by its flat
  cost plus its time at the same hourly cost.
- legacy: no usable profile, so the rate per 1,000 impressions comes from
  the impression-rate table by impressions-per-form range and machine
  class, and make-ready is the table default per form. Thin papers carry
  a surcharge on this path.

Plates are costed here as well (total plates x CTP rate). Money is rounded
to 2 decimal places only when the result is built.
"""

from __future__ import annotations

from logging_config import get_logger
from models.cost_result import ImpositionResult, PrintingCost, WastageResult
from models.job_spec import PrintingMethod
from models.machine import ResolvedMachine
from models.rate_tables import RateTables
from modules.wastage import gross_sheets_per_form


logger = get_logger(__name__)

PHYSICS = "physics"
LEGACY = "legacy"
UNPRINTED = "unprinted"


def plates_per_form(colors_front: int, colors_back: int, method: PrintingMethod) -> int:
    """
    Plates needed for one form.

    Work-and-turn and work-and-tumble print both sides from one plate set;
    sheetwise and perfector need a set for each side.
    """
    if method in (PrintingMethod.WORK_AND_TURN, PrintingMethod.WORK_AND_TUMBLE):
        return max(colors_front, colors_back)
    return colors_front + colors_back


def ctp_rate(machine: ResolvedMachine, tables: RateTables) -> float:
    """Plate rate: the machine's own, else the table default."""
    if machine.profile is not None and machine.profile.ctp_rate:
        return machine.profile.ctp_rate
    return tables.printing.default_ctp_rate


class PrintingCalculator:
    """Costs printing for one component on one resolved machine."""

    def __init__(self, tables: RateTables) -> None:
        self.tables = tables

    def calculate(
        self,
        quantity: int,
        imposition: ImpositionResult,
        wastage: WastageResult,
        colors_front: int,
        colors_back: int,
        method: PrintingMethod,
        machine: ResolvedMachine,
        gsm: float,
    ) -> PrintingCost:
        sheets_per_form = gross_sheets_per_form(quantity, wastage.wastage_per_form, imposition.ups)

        if colors_front == 0 and colors_back == 0:
            return self._unprinted(sheets_per_form)

        forms = imposition.number_of_forms
        plates = plates_per_form(colors_front, colors_back, method)
        total_plates = plates * forms

        impressions_per_form = sheets_per_form
        total_impressions = impressions_per_form * forms
        if method is PrintingMethod.PERFECTOR:
            effective_impressions = total_impressions / 2
        else:
            effective_impressions = float(total_impressions)

        profile = machine.profile
        if profile is not None and profile.uses_physics:
            hourly_cost = profile.hourly_cost
            running_hours = effective_impressions / profile.speed_sph
            printing_cost = running_hours * hourly_cost
            make_ready_per_form = profile.make_ready_cost + profile.make_ready_hours * hourly_cost
            make_ready_cost = make_ready_per_form * forms
            rate_per_1000 = printing_cost / effective_impressions * 1000 if effective_impressions else 0.0
            path = PHYSICS
        else:
            entry = self.tables.impression_rate_entry(impressions_per_form)
            rate_per_1000 = entry.rate_for(machine.machine_class)
            surcharge = self.tables.thin_paper_surcharge_percent(gsm)
            printing_cost = effective_impressions / 1000 * rate_per_1000 * (1 + surcharge / 100)
            make_ready_cost = self.tables.printing.default_make_ready_per_form * forms
            running_hours = 0.0
            path = LEGACY
            if surcharge:
                logger.debug(f"Thin paper surcharge {surcharge:g}% at {gsm:g}gsm")

        plate_cost = total_plates * ctp_rate(machine, self.tables)

        logger.debug(
            f"Printing on {machine.machine_id} ({path}): {total_plates} plates, "
            f"{total_impressions} impressions, rate/1000={rate_per_1000:.2f}"
        )

        return PrintingCost(
            costing_path=path,
            plates_per_form=plates,
            total_plates=total_plates,
            gross_sheets_per_form=sheets_per_form,
            impressions_per_form=impressions_per_form,
            total_impressions=total_impressions,
            effective_impressions=effective_impressions,
            rate_per_1000=round(rate_per_1000, 2),
            running_hours=running_hours,
            printing_cost=round(printing_cost, 2),
            make_ready_cost=round(make_ready_cost, 2),
            plate_cost=round(plate_cost, 2),
        )

    @staticmethod
    def _unprinted(sheets_per_form: int) -> PrintingCost:
        return PrintingCost(
            costing_path=UNPRINTED,
            plates_per_form=0,
            total_plates=0,
            gross_sheets_per_form=sheets_per_form,
            impressions_per_form=0,
            total_impressions=0,
            effective_impressions=0.0,
            rate_per_1000=0.0,
            running_hours=0.0,
            printing_cost=0.0,
            make_ready_cost=0.0,
            plate_cost=0.0,
        )
