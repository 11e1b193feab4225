"""
Core module for the print estimator.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
"""

from .exceptions import (
    PrintEstimatorError,
    ValidationFailure,
    CalculationFailure,
    RateTableError,
)

__all__ = [
    "PrintEstimatorError",
    "ValidationFailure",
    "CalculationFailure",
    "RateTableError",
]
