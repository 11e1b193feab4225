"""
Print Estimator - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (.env, Config class)
2. Sets up logging
3. Builds the estimate service (rate tables + machine profiles, loaded once)
4. Registers route blueprints
5. Sets up JSON error handlers

ARCHITECTURE:
    Main Thread
    ├── Configuration and rate-table loading
    └── Flask request handling

    Request Threads
    └── Each builds its OWN EstimationEngine over the shared read-only
        rate tables; quantities may fan out to a worker pool

NO MUTABLE SHARED STATE between requests.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException

from logging_config import setup_logging, get_logger
from core.exceptions import CalculationFailure, RateTableError, ValidationFailure
from services.estimate_service import EstimateService
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In a frozen bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def create_app(config_object: str = "config.Config") -> Flask:
    """
    Application factory - creates and configures Flask app.

    FAIL-FAST: If the configured rate tables cannot be loaded, the app
    will not start.

    Args:
        config_object: Import path of the configuration class

    Returns:
        Configured Flask application

    Raises:
        RateTableError: If a rate table or machine file is malformed
    """
    # Load .env from base path (next to executable in production)
    base_path = _get_base_path()
    env_file = base_path / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    # Create Flask app
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production" and not app.config.get("TESTING")

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting print estimator in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # SERVICES INITIALIZATION (FAIL-FAST)
    # =========================================================================

    try:
        estimate_service = EstimateService.from_config(app.config)
    except RateTableError as e:
        logger.error(f"FATAL: Cannot start application - {e}")
        raise

    app.config["ESTIMATE_SERVICE"] = estimate_service
    logger.info("Estimate service initialized")

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(ValidationFailure)
    def handle_validation_failure(e):
        return {"errors": e.violations}, 422

    @app.errorhandler(CalculationFailure)
    def handle_calculation_failure(e):
        logger.error(f"Calculation failed at {e.stage}: {e}")
        return {"error": e.message, "stage": e.stage}, 500

    @app.errorhandler(RateTableError)
    def handle_rate_table_error(e):
        logger.error(f"Rate table error: {e}")
        return {"error": e.message, "table": e.table}, 500

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return {"error": e.description}, e.code

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
