"""
Services layer for the print estimator.

- EstimateService: owns the rate tables and machine profiles, validates
  payloads and runs the estimation engine

Thread Model:
    Main Thread (Flask)
    └── Request threads share one EstimateService (read-only state)
        └── Optional worker pool per estimate (ESTIMATOR_WORKERS > 1)
"""

from .estimate_service import EstimateService, load_machines, load_rate_tables

__all__ = [
    "EstimateService",
    "load_machines",
    "load_rate_tables",
]
