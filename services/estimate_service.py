"""
Estimate service: the boundary between callers and the calculation engine.

The service owns one rate-table snapshot and the machine profiles for its
whole lifetime. Per request it validates the raw payload, resolves machine
identifiers once, and hands the engine only read-only inputs.

Thread Safety:
    - RateTables and MachineProfile are frozen; concurrent requests share
      them without locking
    - Every request builds its own EstimationEngine
    - The engine may fan quantities out to a thread pool (workers > 1)

Flow:
    1. Caller posts a raw job payload
    2. JobValidator turns it into a JobSpecification (or violations)
    3. Machine ids are resolved against the profiles
    4. EstimationEngine costs every quantity
    5. Results come back in input order, tagged with an estimate id

Usage:
    # At app startup
    service = EstimateService.from_config(app.config)

    # Per request
    estimate_id, results = service.estimate(payload)
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.exceptions import CalculationFailure, RateTableError, ValidationFailure
from logging_config import get_estimate_logger, get_logger
from models.cost_result import CostResult
from models.job_spec import JobSpecification
from models.machine import MachineProfile
from models.rate_tables import RateTables
from modules.estimator import EstimationEngine, resolve_machines
from modules.rate_defaults import default_machines, default_rate_tables
from modules.validator import JobValidator


# Module logger
logger = get_logger(__name__)


def load_rate_tables(path: str, config: Mapping[str, Any]) -> RateTables:
    """
    Load rate tables from a JSON file, or build the defaults.

    Args:
        path: JSON file path; empty means built-in defaults
        config: Flask config (or any mapping) with the ESTIMATOR_* settings

    Raises:
        RateTableError: file unreadable or malformed
    """
    if not path:
        return default_rate_tables(
            minimum_order_value=config.get("ESTIMATOR_MINIMUM_ORDER_VALUE", 25000.0),
            default_make_ready=config.get("ESTIMATOR_DEFAULT_MAKE_READY", 1500.0),
            default_ctp_rate=config.get("ESTIMATOR_DEFAULT_CTP_RATE", 271.0),
            bleed_mm=config.get("ESTIMATOR_BLEED_MM", 3.0),
            gripper_mm=config.get("ESTIMATOR_GRIPPER_MM", 12.0),
        )

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as e:
        raise RateTableError("rate_tables", f"cannot read {path}: {e}") from e

    tables = RateTables.from_dict(data)
    logger.info(f"Loaded rate tables '{tables.version}' from {path}")
    return tables


def load_machines(path: str) -> Dict[str, MachineProfile]:
    """
    Load machine profiles from a JSON file, or use the defaults.

    The file holds either a list of profiles or {"machines": [...]}.
    """
    if not path:
        return default_machines()

    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as e:
        raise RateTableError("machines", f"cannot read {path}: {e}") from e

    items = data.get("machines", []) if isinstance(data, dict) else data
    try:
        profiles = [MachineProfile.from_dict(item) for item in items]
    except (KeyError, TypeError, ValueError) as e:
        raise RateTableError("machines", f"malformed machine profile: {e}") from e

    logger.info(f"Loaded {len(profiles)} machine profile(s) from {Path(path).name}")
    return {profile.machine_id: profile for profile in profiles}


class EstimateService:
    """
    Validates job payloads and runs the estimation engine.

    Holds read-only snapshots only, so a single instance serves every
    request thread.
    """

    def __init__(
        self,
        tables: RateTables,
        machines: Mapping[str, MachineProfile],
        max_quantities: int = 5,
        workers: int = 1,
    ):
        self.tables = tables
        self._machines = dict(machines)
        self.workers = workers
        self.validator = JobValidator(max_quantities=max_quantities)

        logger.info(
            f"EstimateService ready: rate tables '{tables.version}', "
            f"{len(self._machines)} machine(s), workers={workers}"
        )

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "EstimateService":
        """Build the service from the ESTIMATOR_* settings."""
        tables = load_rate_tables(config.get("ESTIMATOR_RATE_TABLES_PATH", ""), config)
        machines = load_machines(config.get("ESTIMATOR_MACHINES_PATH", ""))
        return cls(
            tables,
            machines,
            max_quantities=config.get("ESTIMATOR_MAX_QUANTITIES", 5),
            workers=config.get("ESTIMATOR_WORKERS", 1),
        )

    @property
    def rate_tables_version(self) -> str:
        return self.tables.version

    def machines(self) -> List[MachineProfile]:
        """Known machine profiles, sorted by id."""
        return [self._machines[key] for key in sorted(self._machines)]

    def validate(self, payload: Optional[Dict[str, Any]]) -> JobSpecification:
        """
        Validate a raw payload.

        Raises:
            ValidationFailure: with every violation found
        """
        outcome = self.validator.validate(payload)
        if not outcome.is_valid:
            raise ValidationFailure(list(outcome.errors))
        return outcome.specification

    def estimate(self, payload: Optional[Dict[str, Any]]) -> Tuple[str, List[CostResult]]:
        """
        Validate a payload and estimate every quantity it asks for.

        Returns:
            (estimate_id, results in quantity input order)

        Raises:
            ValidationFailure: invalid payload, or a job the tables cannot produce
            CalculationFailure: an invariant broke during costing
        """
        estimate_id = str(uuid.uuid4())
        est_logger = get_estimate_logger(estimate_id)

        try:
            spec = self.validate(payload)
        except ValidationFailure as e:
            est_logger.warning(f"Estimate {estimate_id[:8]} rejected: {e.violations}")
            raise

        est_logger.info(
            f"Estimate {estimate_id[:8]}: {spec.binding_type.value}, "
            f"{spec.total_text_pages}pp, quantities={list(spec.quantities)}"
        )

        engine = EstimationEngine(
            self.tables,
            resolve_machines(spec, self._machines),
            workers=self.workers,
        )

        try:
            results = engine.estimate(spec)
        except ValidationFailure as e:
            est_logger.warning(f"Estimate {estimate_id[:8]} infeasible: {e.violations}")
            raise
        except CalculationFailure as e:
            est_logger.error(f"Estimate {estimate_id[:8]} failed at {e.stage}: {e.message}")
            raise

        for result in results:
            est_logger.info(
                f"Estimate {estimate_id[:8]} qty {result.quantity}: "
                f"total={result.grand_total:.2f}, "
                f"per copy={result.sell_per_copy:.4f}"
            )
        return estimate_id, results
