"""
End-to-end tests for the estimation engine.

Runs the full pipeline on the reference job and checks the properties
every result must have: finite, non-negative, monotonic in quantity,
identical on repeat, and all-or-nothing for a batch.
"""

import math
from dataclasses import replace

import pytest

from core.exceptions import ValidationFailure
from models.job_spec import (
    BindingType,
    BoardSpecification,
    DeliverySpecification,
    EndleavesSpecification,
    FreightMode,
    JacketSpecification,
    LaminationType,
    TextSection,
)
from modules.estimator import EstimationEngine, machine_ids, resolve_machines
from modules.validator import JobValidator


# Fixtures

@pytest.fixture
def engine_for(tables, machines):
    """Build an engine with the machines a specification uses."""
    def build(spec, workers=1):
        return EstimationEngine(tables, resolve_machines(spec, machines), workers=workers)
    return build


@pytest.fixture
def hardcase_spec(scenario_spec):
    """Reference job as a jacketed, section-sewn hardcase with endleaves."""
    return replace(
        scenario_spec,
        binding_type=BindingType.SECTION_SEWN_HARDCASE,
        board=BoardSpecification(thickness_mm=2.5),
        endleaves=EndleavesSpecification(
            pages=8, gsm=140.0, paper_type="White Uncoated", machine_id="fav",
        ),
        jacket=JacketSpecification(
            gsm=150.0, paper_type="Matt Art Paper", machine_id="fav",
            lamination=LaminationType.MATT,
        ),
        delivery=DeliverySpecification(destination_id="felix", freight_mode=FreightMode.SEA),
    )


class TestReferenceScenario:
    """Test the reference job end to end."""

    def test_scenario(self, engine_for, scenario_spec):
        results = engine_for(scenario_spec).estimate(scenario_spec)

        assert len(results) == 1
        result = results[0]
        assert result.quantity == 5000
        assert math.isfinite(result.grand_total)
        assert result.grand_total > result.production_floor_subtotal > 0
        assert result.cost_per_copy * 5000 == pytest.approx(result.production_floor_subtotal, abs=0.005)

    def test_cost_per_copy_recovers_subtotal(self, engine_for, scenario_spec):
        """Test per-copy figures times quantity give back the totals to the cent."""
        spec = scenario_spec.with_quantities((1, 777, 5000, 7777, 123457))
        for result in engine_for(spec).estimate(spec):
            assert result.cost_per_copy * result.quantity == pytest.approx(
                result.production_floor_subtotal, abs=0.005
            )
            assert result.sell_per_copy * result.quantity == pytest.approx(
                result.grand_total, abs=0.005
            )

    def test_components(self, engine_for, scenario_spec):
        result = engine_for(scenario_spec).estimate(scenario_spec)[0]

        assert [c.name for c in result.components] == ["Text", "Cover"]
        assert result.spine_thickness_mm == pytest.approx(16.64)
        assert result.spine_with_board_mm == pytest.approx(18.64)
        assert result.lamination_cost > 0
        assert result.freight_cost == 0.0
        assert result.packing_cost == 0.0
        assert result.cartons > 0

    def test_margin_recovered(self, engine_for, scenario_spec):
        """Test the margin implied by the result is the one requested."""
        result = engine_for(scenario_spec).estimate(scenario_spec)[0]
        implied = 100 * (1 - result.production_floor_subtotal / result.sell_before_tax)

        assert implied == pytest.approx(20.0, abs=0.01)

    def test_subtotal_is_sum_of_cost_centers(self, engine_for, scenario_spec):
        result = engine_for(scenario_spec).estimate(scenario_spec)[0]
        centers = (
            result.paper_cost + result.cover_cost + result.printing_cost + result.plate_cost
            + result.make_ready_cost + result.binding_cost + result.lamination_cost
            + result.finishing_cost + result.packing_cost + result.freight_cost
        )

        assert result.subtotal == pytest.approx(centers, abs=0.05)


class TestResultProperties:
    """Test properties that hold for every valid job."""

    def test_finite_and_non_negative(self, engine_for, hardcase_spec):
        spec = hardcase_spec.with_quantities((500, 5000, 60000))
        for result in engine_for(spec).estimate(spec):
            for name, value in result.numeric_fields().items():
                assert math.isfinite(value), name
                assert value >= 0, name

    def test_monotonic_in_quantity(self, engine_for, scenario_spec):
        spec = scenario_spec.with_quantities((1000, 5000, 20000))
        results = engine_for(spec).estimate(spec)

        totals = [r.total_cost for r in results]
        per_copy = [r.cost_per_copy for r in results]
        assert totals == sorted(totals)
        assert per_copy == sorted(per_copy, reverse=True)

    def test_idempotent(self, engine_for, scenario_spec):
        spec = scenario_spec.with_quantities((1000, 5000))
        engine = engine_for(spec)

        assert engine.estimate(spec) == engine.estimate(spec)
        assert [r.to_dict() for r in engine.estimate(spec)] == [
            r.to_dict() for r in engine.estimate(spec)
        ]

    def test_results_in_input_order(self, engine_for, scenario_spec):
        spec = scenario_spec.with_quantities((5000, 1000, 5000))
        results = engine_for(spec).estimate(spec)

        assert [r.quantity for r in results] == [5000, 1000, 5000]
        assert results[0] == results[2]

    def test_worker_pool_matches_sequential(self, engine_for, scenario_spec):
        spec = scenario_spec.with_quantities((1000, 5000, 20000))

        assert engine_for(spec, workers=3).estimate(spec) == engine_for(spec).estimate(spec)

    def test_discount_boundary(self, engine_for, scenario_spec):
        spec = scenario_spec.with_quantities((9999, 10000))
        below, at = engine_for(spec).estimate(spec)

        assert below.volume_discount_percent == 1.5
        assert at.volume_discount_percent == 3


class TestBindings:
    """Test binding selection through the pipeline."""

    def test_saddle_stitching_is_flat_rate(self, engine_for, scenario_spec):
        costs = []
        for pages in (32, 64):
            spec = replace(
                scenario_spec,
                binding_type=BindingType.SADDLE_STITCHING,
                text_sections=(replace(scenario_spec.text_sections[0], pages=pages),),
                quantities=(3000,),
            )
            result = engine_for(spec).estimate(spec)[0]
            costs.append(result.binding_cost)
            assert result.spine_with_board_mm == 0.0

        assert costs == [3000 * 0.40, 3000 * 0.40]

    def test_hardcase_components(self, engine_for, hardcase_spec):
        result = engine_for(hardcase_spec).estimate(hardcase_spec)[0]

        assert [c.kind for c in result.components] == ["text", "endleaves", "cover", "jacket"]
        assert result.binding.breakdown["board"] > 0
        assert result.freight.basis in ("per_pallet", "per_container20")
        assert result.packing_cost > 0
        assert result.freight_cost > 19000

    def test_unprinted_endleaves(self, engine_for, hardcase_spec):
        result = engine_for(hardcase_spec).estimate(hardcase_spec)[0]
        endleaves = result.components[1]

        assert endleaves.printing.costing_path == "unprinted"
        assert endleaves.paper.cost > 0

    def test_multiple_sections_named(self, engine_for, scenario_spec):
        second = TextSection(
            pages=16, gsm=130.0, paper_type="Matt Art Paper", machine_id="rmgt",
            colors_front=1, colors_back=1,
        )
        spec = replace(scenario_spec, text_sections=scenario_spec.text_sections + (second,))
        result = engine_for(spec).estimate(spec)[0]

        assert [c.name for c in result.components][:2] == ["Text 1", "Text 2"]
        assert result.spine_thickness_mm == pytest.approx(17.68)


class TestBatchFailure:
    """Test that an infeasible job fails before any costing."""

    def test_oversize_trim(self, engine_for, scenario_spec):
        spec = replace(scenario_spec, trim_width_mm=1000.0, trim_height_mm=1000.0)

        with pytest.raises(ValidationFailure) as exc_info:
            engine_for(spec).estimate(spec)

        assert any("does not fit" in v for v in exc_info.value.violations)

    def test_unknown_destination(self, engine_for, scenario_spec):
        spec = replace(
            scenario_spec,
            delivery=DeliverySpecification(destination_id="atlantis", freight_mode=FreightMode.SEA),
            quantities=(1000, 5000),
        )

        with pytest.raises(ValidationFailure) as exc_info:
            engine_for(spec).estimate(spec)

        assert exc_info.value.violations == ["Unknown destination 'atlantis'"]

    def test_mode_without_rate(self, engine_for, scenario_spec):
        spec = replace(
            scenario_spec,
            delivery=DeliverySpecification(destination_id="bom", freight_mode=FreightMode.AIR),
        )
        assert engine_for(spec).check_feasibility(spec) == [
            "Destination 'bom' has no air freight rate"
        ]

    def test_hardcase_board_unknown(self, engine_for, scenario_spec):
        spec = replace(
            scenario_spec,
            binding_type=BindingType.SECTION_SEWN_HARDCASE,
            board=BoardSpecification(thickness_mm=4.0),
        )
        assert engine_for(spec).check_feasibility(spec) == [
            "Hardcase binding needs a board stock with a known rate"
        ]

    def test_jacketed_hardcase_is_feasible(self, engine_for, hardcase_spec):
        """Test a jacket on the reference trim fits the press and passes the pre-check."""
        assert engine_for(hardcase_spec).check_feasibility(hardcase_spec) == []

    def test_fractional_quantity_never_reaches_engine(self, scenario_payload):
        scenario_payload["quantities"] = ["1500.5"]
        outcome = JobValidator().validate(scenario_payload)

        assert outcome.specification is None
        assert any("whole number" in e for e in outcome.errors)


class TestMachineIds:
    """Test machine id collection."""

    def test_first_use_order(self, hardcase_spec):
        assert machine_ids(hardcase_spec) == ["rmgt", "fav"]
