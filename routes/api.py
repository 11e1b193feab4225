"""
API routes (JSON endpoints).

Handles:
- /health - Health check with the loaded rate-table version
- /api/validate - Validate a job payload without costing it
- /api/estimate - Validate and estimate every requested quantity
- /api/rates/machines - Machine profiles known to the service

ValidationFailure, CalculationFailure and RateTableError propagate to the
error handlers registered in create_app().
"""

from flask import (
    Blueprint,
    current_app,
    request,
)

from core.exceptions import ValidationFailure
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


def _service():
    service = current_app.config.get("ESTIMATE_SERVICE")
    if service is None:
        raise RuntimeError("Estimate service is not configured")
    return service


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    service = current_app.config.get("ESTIMATE_SERVICE")
    if service is None:
        return {"status": "degraded", "rate_tables": None}, 503

    return {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "rate_tables": service.rate_tables_version,
    }


@api_bp.route("/api/validate", methods=["POST"])
def validate():
    """
    Validate a raw job payload.

    Returns 200 with the normalized specification, or 422 listing every
    violation. Unlike /api/estimate the violations are part of the normal
    response here.
    """
    payload = request.get_json(silent=True)

    try:
        spec = _service().validate(payload)
    except ValidationFailure as e:
        logger.info(f"Validation failed with {len(e.violations)} violation(s)")
        return {"valid": False, "errors": e.violations}, 422

    return {"valid": True, "specification": spec.to_dict()}


@api_bp.route("/api/estimate", methods=["POST"])
def estimate():
    """Validate a payload and return one cost result per quantity."""
    payload = request.get_json(silent=True)

    estimate_id, results = _service().estimate(payload)

    return {
        "estimate_id": estimate_id,
        "results": [result.to_dict() for result in results],
    }


@api_bp.route("/api/rates/machines", methods=["GET"])
def machines():
    """Machine profiles the estimator can cost on."""
    return {"machines": [profile.to_dict() for profile in _service().machines()]}
