"""Configuration Module.

Environment-driven settings and the catalog of SPARQL instances the
dashboard can query.
"""

from .instances import (
    PRESET_INSTANCES,
    InstanceCatalog,
    InstanceConfig,
    RateLimitConfig,
    load_instances_file,
)
from .settings import Config, TestConfig

__all__ = [
    "PRESET_INSTANCES",
    "Config",
    "InstanceCatalog",
    "InstanceConfig",
    "RateLimitConfig",
    "TestConfig",
    "load_instances_file",
]
