"""
Custom exceptions for the print estimator.

Exception Hierarchy:
    PrintEstimatorError (base)
    ├── ValidationFailure   - Specification breaks business rules (recoverable)
    ├── CalculationFailure  - Invariant broken inside the pipeline (defect)
    └── RateTableError      - Rate table is malformed (startup / reload failure)

Usage:
    ValidationFailure is expected: it carries every violation found so the
    caller can show them all at once.
    CalculationFailure names the failing stage and aborts the whole batch.
"""

from typing import Optional, Dict, Any, List


class PrintEstimatorError(Exception):
    """
    Base exception for all estimator errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationFailure(PrintEstimatorError):
    """
    The job specification violates one or more business rules.

    Raised before any calculation runs. Always recoverable by correcting
    the input. ``violations`` lists every problem, never just the first.
    """

    def __init__(self, violations: List[str]):
        count = len(violations)
        message = f"Job specification has {count} violation{'s' if count != 1 else ''}"
        super().__init__(message, {"violations": list(violations)})
        self.violations = list(violations)


class CalculationFailure(PrintEstimatorError):
    """
    An internal invariant broke while costing a valid specification.

    Typical causes:
    - Non-finite intermediate value
    - Division by a zero quantity
    - Imposition with zero ups reaching the printing stage

    Treated as a defect: never retried, and the multi-quantity batch
    fails together.
    """

    def __init__(self, stage: str, message: str, quantity: Optional[int] = None):
        details: Dict[str, Any] = {"stage": stage}
        if quantity is not None:
            details["quantity"] = quantity
        super().__init__(f"{stage}: {message}", details)
        self.stage = stage
        self.quantity = quantity


class RateTableError(PrintEstimatorError):
    """
    A rate table failed its structural checks.

    Ranges must be non-overlapping and ordered by lower bound, and
    lookup tables must not be empty.
    """

    def __init__(self, table: str, message: str):
        details = {
            "table": table,
            "resolution": "Fix the rate table source and reload",
        }
        super().__init__(f"Rate table '{table}': {message}", details)
        self.table = table
