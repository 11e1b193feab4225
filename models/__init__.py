"""
Data models for the print estimator.

This module contains immutable dataclasses for:
- JobSpecification: validated job (plus RawJobSpecification, its untyped input)
- MachineProfile / MachineClass: press characteristics and legacy rate class
- RateTables: read-only rate snapshot consumed by the engine
- CostResult: itemized cost and price for one quantity

Every model is frozen so snapshots and results can cross threads safely.
"""

from .job_spec import (
    BindingType,
    BoardSpecification,
    CoverSpecification,
    DeliverySpecification,
    DieCutComplexity,
    EndleavesSpecification,
    FinishingOptions,
    FreightMode,
    JacketSpecification,
    JobSpecification,
    LaminationType,
    PricingConfiguration,
    PricingMode,
    PrintingMethod,
    RawJobSpecification,
    TextSection,
    Turnaround,
)
from .machine import MachineClass, MachineProfile, ResolvedMachine
from .rate_tables import RateTables
from .cost_result import CostResult, PricingResult

__all__ = [
    # Specification models
    "BindingType",
    "BoardSpecification",
    "CoverSpecification",
    "DeliverySpecification",
    "DieCutComplexity",
    "EndleavesSpecification",
    "FinishingOptions",
    "FreightMode",
    "JacketSpecification",
    "JobSpecification",
    "LaminationType",
    "PricingConfiguration",
    "PricingMode",
    "PrintingMethod",
    "RawJobSpecification",
    "TextSection",
    "Turnaround",
    # Machine models
    "MachineClass",
    "MachineProfile",
    "ResolvedMachine",
    # Rates and results
    "RateTables",
    "CostResult",
    "PricingResult",
]
