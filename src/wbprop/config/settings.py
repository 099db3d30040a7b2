"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os


class Config:
    """Default configuration shared by the CLI and the backend."""

    # Result cache
    CACHE_TTL_MS = int(os.getenv("WBPROP_CACHE_TTL_MS", str(5 * 60 * 1000)))
    CACHE_MAX_ENTRIES = int(os.getenv("WBPROP_CACHE_MAX_ENTRIES", "100"))
    CACHE_STORAGE_KEY = os.getenv(
        "WBPROP_CACHE_STORAGE_KEY", "wbprop-query-cache",
    )

    # SQLite file holding the persisted cache snapshot
    DATABASE_PATH = os.getenv("WBPROP_DATABASE_PATH", "wbprop.db")

    # SPARQL client defaults
    SPARQL_TIMEOUT = float(os.getenv("WBPROP_SPARQL_TIMEOUT", "30"))
    SPARQL_RETRIES = int(os.getenv("WBPROP_SPARQL_RETRIES", "2"))
    SPARQL_RETRY_DELAY = float(os.getenv("WBPROP_SPARQL_RETRY_DELAY", "1.0"))

    # Optional YAML file with extra / overriding instances
    INSTANCES_FILE = os.getenv("WBPROP_INSTANCES_FILE", "")


class TestConfig(Config):
    """Configuration overrides for testing."""

    TESTING = True
    DATABASE_PATH = ":memory:"
    SPARQL_RETRY_DELAY = 0.0
    INSTANCES_FILE = ""
