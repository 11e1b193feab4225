"""
Configuration for the print estimator service.

The calculation engine never reads this module. The estimate service reads
it once at startup and passes the resolved values into the engine.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
# This must happen before the Config class is defined
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # 1 MB JSON bodies
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")

    # Debug mode
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # ==========================================================================
    # Rate table sources
    # ==========================================================================
    # Empty path = built-in tables from modules.rate_defaults.
    # A JSON file here replaces them wholesale (see RateTables.from_dict).
    # ==========================================================================
    ESTIMATOR_RATE_TABLES_PATH = os.environ.get("ESTIMATOR_RATE_TABLES_PATH", "")
    ESTIMATOR_MACHINES_PATH = os.environ.get("ESTIMATOR_MACHINES_PATH", "")

    # ==========================================================================
    # Pricing and production defaults
    # ==========================================================================
    # MINIMUM_ORDER_VALUE: production cost floor applied after volume discount
    # DEFAULT_MAKE_READY: per-form make-ready on the legacy impression-rate path
    # DEFAULT_CTP_RATE: per-plate rate when the machine profile has none
    # BLEED_MM / GRIPPER_MM: imposition allowances (gripper only when the
    #   machine profile does not declare one)
    # ==========================================================================
    ESTIMATOR_MINIMUM_ORDER_VALUE = float(
        os.environ.get("ESTIMATOR_MINIMUM_ORDER_VALUE", "25000")
    )
    ESTIMATOR_DEFAULT_MAKE_READY = float(
        os.environ.get("ESTIMATOR_DEFAULT_MAKE_READY", "1500")
    )
    ESTIMATOR_DEFAULT_CTP_RATE = float(
        os.environ.get("ESTIMATOR_DEFAULT_CTP_RATE", "271")
    )
    ESTIMATOR_BLEED_MM = float(os.environ.get("ESTIMATOR_BLEED_MM", "3"))
    ESTIMATOR_GRIPPER_MM = float(os.environ.get("ESTIMATOR_GRIPPER_MM", "12"))

    # Request limits and execution
    ESTIMATOR_MAX_QUANTITIES = int(os.environ.get("ESTIMATOR_MAX_QUANTITIES", "5"))
    ESTIMATOR_WORKERS = int(os.environ.get("ESTIMATOR_WORKERS", "1"))


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    ESTIMATOR_RATE_TABLES_PATH = ""
    ESTIMATOR_MACHINES_PATH = ""
    ESTIMATOR_WORKERS = 1
