"""Calculation modules for the print estimator."""

__all__ = [
    "binding",
    "estimator",
    "finishing",
    "freight",
    "geometry",
    "imposition",
    "packing",
    "paper",
    "pricing",
    "printing",
    "rate_defaults",
    "validator",
    "wastage",
]
