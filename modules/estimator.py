"""
Estimation orchestrator.

Runs the costing pipeline once per requested quantity:

    geometry -> imposition -> wastage -> paper / printing / binding /
    finishing / packing / freight -> pricing -> CostResult

Geometry and imposition do not depend on quantity, so they are resolved
once per call and shared (read-only) by every quantity. Nothing else is
shared between quantities.

Thread Safety:
    The engine holds only read-only snapshots (rate tables, resolved
    machines). With workers > 1 the quantities run on a thread pool; the
    results still come back in input order.

Failure:
    - An infeasible layout, unknown destination or missing rate found by
      the pre-check raises ValidationFailure before any costing runs.
    - A broken invariant during costing raises CalculationFailure.
    - Either way the whole batch fails; no partial list is returned.
"""

from __future__ import annotations

import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from core.exceptions import CalculationFailure, ValidationFailure
from logging_config import get_logger, set_thread_name
from models.cost_result import BookGeometry, ComponentCost, CostResult, ImpositionResult
from models.job_spec import (
    DieCutComplexity,
    FreightMode,
    JobSpecification,
    LaminationType,
    PrintingMethod,
)
from models.machine import MachineClass, MachineProfile, ResolvedMachine
from models.rate_tables import RateTables
from modules.binding import BindingContext, SectionSewnHardcase, calculate_binding_cost
from modules.finishing import calculate_finishing_cost, flat_cover_width_mm
from modules.freight import calculate_freight, has_rate
from modules.geometry import book_geometry
from modules.imposition import find_optimal_imposition, impose_flat, require_imposition
from modules.packing import calculate_packing
from modules.paper import calculate_paper_cost
from modules.pricing import PricingCalculator
from modules.printing import PrintingCalculator
from modules.wastage import calculate_wastage


logger = get_logger(__name__)

TEXT = "text"
COVER = "cover"
JACKET = "jacket"
ENDLEAVES = "endleaves"


# =============================================================================
# MACHINE RESOLUTION
# =============================================================================

def resolve_machine(machine_id: str, profiles: Mapping[str, MachineProfile]) -> ResolvedMachine:
    """
    Resolve one machine identifier to its class and (optional) profile.

    Unrecognised identifiers fall back to the FAV rate column with a
    warning.
    """
    machine_class, recognised = MachineClass.from_identifier(machine_id)
    profile = profiles.get(machine_id)
    if profile is None:
        for key, candidate in profiles.items():
            if key.lower() == (machine_id or "").lower():
                profile = candidate
                break
    if not recognised and profile is None:
        logger.warning(
            f"Machine '{machine_id}' not recognised, using {machine_class.value} rate column"
        )
    return ResolvedMachine(machine_id=machine_id, machine_class=machine_class, profile=profile)


def machine_ids(spec: JobSpecification) -> List[str]:
    """Every machine id the specification prints on, in first-use order."""
    ids: List[str] = []
    for section in spec.enabled_sections:
        ids.append(section.machine_id)
    for part in (spec.cover, spec.jacket, spec.endleaves):
        if part is not None:
            ids.append(part.machine_id)
    return list(dict.fromkeys(ids))


def resolve_machines(
    spec: JobSpecification,
    profiles: Mapping[str, MachineProfile],
) -> Dict[str, ResolvedMachine]:
    return {machine_id: resolve_machine(machine_id, profiles) for machine_id in machine_ids(spec)}


# =============================================================================
# COMPONENT PLANS
# =============================================================================

@dataclass(frozen=True)
class ComponentPlan:
    """A printed component with its quantity-independent imposition."""

    name: str
    kind: str
    gsm: float
    paper_type: str
    machine: ResolvedMachine
    colors_front: int
    colors_back: int
    method: PrintingMethod
    imposition: Optional[ImpositionResult]

    @property
    def max_colors(self) -> int:
        return max(self.colors_front, self.colors_back)


class EstimationEngine:
    """
    Pure estimation pipeline over read-only snapshots.

    Usage:
        engine = EstimationEngine(tables, resolve_machines(spec, profiles))
        results = engine.estimate(spec)
    """

    def __init__(
        self,
        tables: RateTables,
        machines: Mapping[str, ResolvedMachine],
        workers: int = 1,
    ) -> None:
        self.tables = tables
        self.machines = dict(machines)
        self.workers = max(int(workers), 1)
        self._printing = PrintingCalculator(tables)
        self._pricing = PricingCalculator(tables)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def estimate(self, spec: JobSpecification) -> List[CostResult]:
        """
        Estimate every requested quantity.

        Returns:
            One CostResult per quantity, in input order

        Raises:
            ValidationFailure: the job cannot be produced with these tables
            CalculationFailure: an invariant broke while costing
        """
        geometry = book_geometry(spec, self.tables)
        plans = self._plan_components(spec, geometry)

        violations = self.check_feasibility(spec, plans)
        if violations:
            raise ValidationFailure(violations)

        quantities = list(spec.quantities)
        if self.workers > 1 and len(quantities) > 1:
            return self._estimate_parallel(spec, geometry, plans, quantities)

        return [self._estimate_quantity(spec, geometry, plans, quantity) for quantity in quantities]

    def estimate_quantity(self, spec: JobSpecification, quantity: int) -> CostResult:
        """Estimate a single quantity (not necessarily one of spec.quantities)."""
        return self.estimate(spec.with_quantities((quantity,)))[0]

    def check_feasibility(
        self,
        spec: JobSpecification,
        plans: Optional[List[ComponentPlan]] = None,
    ) -> List[str]:
        """
        Problems that make the job impossible to cost with these tables.

        Checked before any costing: every printed component must fit on a
        press sheet, the destination must exist and ship in the chosen
        mode, and the lamination, die and board stock must have rates.
        """
        if plans is None:
            plans = self._plan_components(spec, book_geometry(spec, self.tables))

        violations: List[str] = []
        for plan in plans:
            if plan.imposition is None or plan.imposition.ups < 1:
                violations.append(
                    f"{plan.name} does not fit on any press sheet for machine "
                    f"'{plan.machine.machine_id}' (trim {spec.trim_width_mm:g}x"
                    f"{spec.trim_height_mm:g}mm)"
                )

        delivery = spec.delivery
        if delivery.freight_mode is not FreightMode.NONE:
            destination = self.tables.freight.destination(delivery.destination_id)
            if destination is None:
                violations.append(f"Unknown destination '{delivery.destination_id}'")
            elif not has_rate(delivery.freight_mode, destination):
                violations.append(
                    f"Destination '{delivery.destination_id}' has no "
                    f"{delivery.freight_mode.value} freight rate"
                )

        for part_name, part in (("Cover", spec.cover), ("Jacket", spec.jacket)):
            if part is None or part.lamination is LaminationType.NONE:
                continue
            if part.lamination.value not in self.tables.finishing.lamination:
                violations.append(f"{part_name} lamination '{part.lamination.value}' has no rate")

        die_cutting = spec.finishing.die_cutting
        if die_cutting is not DieCutComplexity.NONE and die_cutting.value not in self.tables.finishing.die_cutting:
            violations.append(f"Die cutting '{die_cutting.value}' has no rate")

        if spec.is_hardcase:
            if SectionSewnHardcase.resolve_board_type(spec.board, self.tables) is None:
                violations.append("Hardcase binding needs a board stock with a known rate")

        return violations

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def _machine(self, machine_id: str) -> ResolvedMachine:
        machine = self.machines.get(machine_id)
        if machine is None:
            machine = resolve_machine(machine_id, {})
        return machine

    def _plan_components(self, spec: JobSpecification, geometry: BookGeometry) -> List[ComponentPlan]:
        rules = self.tables.imposition
        plans: List[ComponentPlan] = []

        enabled = spec.enabled_sections
        for index, section in enumerate(enabled, start=1):
            machine = self._machine(section.machine_id)
            name = section.name if len(enabled) == 1 else f"{section.name} {index}"
            plans.append(ComponentPlan(
                name=name,
                kind=TEXT,
                gsm=section.gsm,
                paper_type=section.paper_type,
                machine=machine,
                colors_front=section.colors_front,
                colors_back=section.colors_back,
                method=section.printing_method,
                imposition=find_optimal_imposition(
                    spec.trim_width_mm, spec.trim_height_mm, section.pages, rules, machine.profile
                ),
            ))

        if spec.endleaves is not None and spec.endleaves.pages > 0:
            endleaves = spec.endleaves
            machine = self._machine(endleaves.machine_id)
            plans.append(ComponentPlan(
                name="Endleaves",
                kind=ENDLEAVES,
                gsm=endleaves.gsm,
                paper_type=endleaves.paper_type,
                machine=machine,
                colors_front=endleaves.colors_front,
                colors_back=endleaves.colors_back,
                method=PrintingMethod.SHEETWISE,
                imposition=find_optimal_imposition(
                    spec.trim_width_mm, spec.trim_height_mm, endleaves.pages, rules, machine.profile
                ),
            ))

        for name, kind, part, jacket in (
            ("Cover", COVER, spec.cover, False),
            ("Jacket", JACKET, spec.jacket, True),
        ):
            if part is None:
                continue
            machine = self._machine(part.machine_id)
            flat_width = flat_cover_width_mm(spec.trim_width_mm, geometry.spine_with_board_mm, jacket)
            plans.append(ComponentPlan(
                name=name,
                kind=kind,
                gsm=part.gsm,
                paper_type=part.paper_type,
                machine=machine,
                colors_front=part.colors_front,
                colors_back=part.colors_back,
                method=PrintingMethod.SHEETWISE,
                imposition=impose_flat(flat_width, spec.trim_height_mm, rules, machine.profile),
            ))

        return plans

    # -------------------------------------------------------------------------
    # Per-quantity pipeline
    # -------------------------------------------------------------------------

    def _estimate_parallel(
        self,
        spec: JobSpecification,
        geometry: BookGeometry,
        plans: List[ComponentPlan],
        quantities: List[int],
    ) -> List[CostResult]:
        def run(indexed: Tuple[int, int]) -> CostResult:
            index, quantity = indexed
            set_thread_name(f"Estimate-{index}")
            return self._estimate_quantity(spec, geometry, plans, quantity)

        with ThreadPoolExecutor(max_workers=min(self.workers, len(quantities))) as executor:
            # map() yields in submission order and re-raises the first failure
            return list(executor.map(run, enumerate(quantities, start=1)))

    def _cost_component(self, plan: ComponentPlan, quantity: int) -> ComponentCost:
        imposition = require_imposition(plan.imposition, plan.name, quantity)
        wastage = calculate_wastage(quantity, plan.max_colors, imposition.number_of_forms, self.tables)
        paper = calculate_paper_cost(quantity, imposition, wastage, plan.paper_type, plan.gsm, self.tables)
        printing = self._printing.calculate(
            quantity,
            imposition,
            wastage,
            plan.colors_front,
            plan.colors_back,
            plan.method,
            plan.machine,
            plan.gsm,
        )
        return ComponentCost(
            name=plan.name,
            kind=plan.kind,
            machine_id=plan.machine.machine_id,
            imposition=imposition,
            wastage=wastage,
            paper=paper,
            printing=printing,
        )

    def _estimate_quantity(
        self,
        spec: JobSpecification,
        geometry: BookGeometry,
        plans: List[ComponentPlan],
        quantity: int,
    ) -> CostResult:
        if quantity <= 0:
            raise CalculationFailure("orchestrator", "quantity must be positive", quantity=quantity)

        components = [self._cost_component(plan, quantity) for plan in plans]

        text_paper = sum(c.paper.cost for c in components if c.kind in (TEXT, ENDLEAVES))
        cover_paper = sum(c.paper.cost for c in components if c.kind in (COVER, JACKET))
        printing_cost = sum(c.printing.printing_cost for c in components)
        plate_cost = sum(c.printing.plate_cost for c in components)
        make_ready_cost = sum(c.printing.make_ready_cost for c in components)

        binding = calculate_binding_cost(
            spec.binding_type,
            BindingContext.for_job(spec, quantity, geometry.spine_mm),
            self.tables,
        )

        finishing = calculate_finishing_cost(
            spec,
            quantity,
            geometry.spine_with_board_mm,
            self.tables,
            cover_sheets=_gross_sheets(components, COVER),
            jacket_sheets=_gross_sheets(components, JACKET) if spec.jacket is not None else None,
        )

        packing = calculate_packing(
            quantity,
            geometry.total_weight_g,
            spec.trim_width_mm,
            spec.trim_height_mm,
            max(geometry.spine_mm, geometry.spine_with_board_mm),
            self.tables.packing,
            charge=spec.delivery.requires_packing,
        )

        freight = calculate_freight(
            spec.delivery.freight_mode,
            spec.delivery.destination_id,
            packing.consignment_weight_kg,
            packing.pallets,
            self.tables.freight,
            quantity,
        )

        cost_centers = (
            text_paper,
            cover_paper,
            printing_cost,
            plate_cost,
            make_ready_cost,
            binding.total,
            finishing.lamination,
            finishing.other_total,
            packing.cost,
            freight.total,
        )
        _require_finite("cost centers", cost_centers, quantity)
        subtotal = sum(cost_centers)

        pricing = self._pricing.price(subtotal, quantity, spec.pricing)

        result = CostResult(
            quantity=quantity,
            paper_cost=round(text_paper, 2),
            cover_cost=round(cover_paper, 2),
            printing_cost=round(printing_cost, 2),
            plate_cost=round(plate_cost, 2),
            make_ready_cost=round(make_ready_cost, 2),
            binding_cost=binding.total,
            lamination_cost=finishing.lamination,
            finishing_cost=finishing.other_total,
            packing_cost=packing.cost,
            freight_cost=freight.total,
            subtotal=pricing.subtotal,
            rush_surcharge=pricing.rush_surcharge,
            volume_discount_percent=pricing.volume_discount_percent,
            volume_discount_amount=pricing.volume_discount_amount,
            minimum_order_adjustment=pricing.minimum_order_adjustment,
            production_floor_subtotal=pricing.production_floor_subtotal,
            sell_before_tax=pricing.sell_before_tax,
            margin_amount=pricing.margin_amount,
            tax_amount=pricing.tax_amount,
            grand_total=pricing.grand_total,
            cost_per_copy=pricing.cost_per_copy,
            sell_per_copy=pricing.sell_per_copy,
            reams=round(sum(c.paper.reams for c in components), 2),
            plates=sum(c.printing.total_plates for c in components),
            impressions=sum(c.printing.total_impressions for c in components),
            forms=sum(c.imposition.number_of_forms for c in components),
            spine_thickness_mm=geometry.spine_mm,
            spine_with_board_mm=geometry.spine_with_board_mm,
            book_weight_g=geometry.total_weight_g,
            cartons=packing.cartons,
            pallets=packing.pallets,
            components=tuple(components),
            geometry=geometry,
            binding=binding,
            finishing=finishing,
            packing=packing,
            freight=freight,
        )

        non_finite = result.non_finite_fields()
        if non_finite:
            raise CalculationFailure(
                "result", f"non-finite values in {', '.join(non_finite)}", quantity=quantity
            )

        logger.debug(
            f"qty {quantity}: subtotal={result.subtotal:.2f}, grand total={result.grand_total:.2f}"
        )
        return result


def _gross_sheets(components: Iterable[ComponentCost], kind: str) -> int:
    return sum(c.paper.gross_sheets for c in components if c.kind == kind)


def _require_finite(stage: str, values: Iterable[float], quantity: int) -> None:
    if not all(math.isfinite(value) for value in values):
        raise CalculationFailure(stage, "non-finite intermediate value", quantity=quantity)
