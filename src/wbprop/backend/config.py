"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os

from wbprop.config.settings import Config as BaseConfig
from wbprop.config.settings import TestConfig as BaseTestConfig


class Config(BaseConfig):
    """Default configuration for the Flask backend."""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-key-change-in-prod")
    DEBUG = os.getenv("FLASK_DEBUG", "0") == "1"

    # Origins allowed to call this API
    CORS_ORIGINS = os.getenv(
        "CORS_ORIGINS", "http://localhost:*",
    ).split(",")

    # Upper bound on how long a request thread waits for a query (seconds)
    REQUEST_TIMEOUT = float(os.getenv("WBPROP_REQUEST_TIMEOUT", "120"))


class TestConfig(Config, BaseTestConfig):
    """Configuration overrides for testing."""

    TESTING = True
    DATABASE_PATH = ":memory:"
    SPARQL_RETRY_DELAY = 0.0
