"""
Instance configuration

Pydantic models describing the SPARQL endpoints ("instances") the
dashboard can query, the built-in presets, and loading of additional
instances from a YAML file.

A YAML instances file holds a list (or an ``instances:`` mapping entry
holding a list) of objects with the same fields as :class:`InstanceConfig`::

    instances:
      - id: mywikibase
        name: My Wikibase
        sparql_endpoint: https://example.wikibase.cloud/query/sparql
        rate_limit:
          concurrent: 2
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from ..errors import UnknownInstanceError

logger = logging.getLogger(__name__)


class RateLimitConfig(BaseModel):
    """Request budget for one instance."""

    requests_per_minute: int = 60
    concurrent: int = Field(default=5, ge=1)


class InstanceConfig(BaseModel):
    """Configuration for a single SPARQL endpoint."""

    id: str
    name: str
    sparql_endpoint: str
    entity_prefix: str = "http://www.wikidata.org/entity/"
    property_prefix: str = "P"
    requires_authentication: bool = False
    cookie_based_auth: bool = False
    auth_url: str | None = None
    availability_note: str | None = None
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)


WIKIDATA = InstanceConfig(
    id="wikidata",
    name="Wikidata",
    sparql_endpoint="https://query.wikidata.org/sparql",
    entity_prefix="http://www.wikidata.org/entity/",
    rate_limit=RateLimitConfig(requests_per_minute=60, concurrent=5),
)

FACTGRID = InstanceConfig(
    id="factgrid",
    name="FactGrid",
    sparql_endpoint="https://database.factgrid.de/sparql",
    entity_prefix="https://database.factgrid.de/entity/",
    rate_limit=RateLimitConfig(requests_per_minute=30, concurrent=3),
)

# Commons uses cookie-based OAuth (wcqsOauth / wcqsSession)
COMMONS = InstanceConfig(
    id="commons",
    name="Wikimedia Commons",
    sparql_endpoint="https://commons-query.wikimedia.org/sparql",
    entity_prefix="https://commons.wikimedia.org/entity/",
    requires_authentication=True,
    cookie_based_auth=True,
    auth_url="https://commons-query.wikimedia.org/",
    availability_note=(
        "Wikimedia Commons Query Service requires login. "
        "Log in with your Wikimedia account to authenticate."
    ),
    rate_limit=RateLimitConfig(requests_per_minute=60, concurrent=5),
)

RHIZOME = InstanceConfig(
    id="rhizome",
    name="Rhizome",
    sparql_endpoint=(
        "https://query.artbase.rhizome.org/proxy/wdqs/bigdata/"
        "namespace/wdq/sparql"
    ),
    entity_prefix="https://artbase.rhizome.org/entity/",
    rate_limit=RateLimitConfig(requests_per_minute=30, concurrent=2),
)

JOHNSAMUEL = InstanceConfig(
    id="johnsamuel",
    name="John Samuel",
    sparql_endpoint="https://jsamwrites.wikibase.cloud/query/sparql",
    entity_prefix="https://jsamwrites.wikibase.cloud/entity/",
    rate_limit=RateLimitConfig(requests_per_minute=30, concurrent=3),
)

PRESET_INSTANCES: list[InstanceConfig] = [
    WIKIDATA,
    FACTGRID,
    COMMONS,
    RHIZOME,
    JOHNSAMUEL,
]


def load_instances_file(path: str | Path) -> list[InstanceConfig]:
    """Load instance definitions from a YAML file."""
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or []

    if isinstance(data, dict):
        data = data.get("instances", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of instances")

    instances = [InstanceConfig.model_validate(item) for item in data]
    logger.debug(f"Loaded {len(instances)} instances from {path}")
    return instances


class InstanceCatalog:
    """Ordered collection of instance configurations, keyed by id."""

    def __init__(self, instances: Iterable[InstanceConfig] = ()) -> None:
        self._instances: dict[str, InstanceConfig] = {}
        for instance in instances:
            self.add(instance)

    @classmethod
    def with_presets(cls, instances_file: str | Path | None = None) -> InstanceCatalog:
        """Build a catalog of the presets, extended by *instances_file*.

        Entries in the file replace presets with the same id.
        """
        catalog = cls(PRESET_INSTANCES)
        if instances_file:
            for instance in load_instances_file(instances_file):
                catalog.add(instance)
        return catalog

    def add(self, instance: InstanceConfig) -> None:
        self._instances[instance.id] = instance

    def get(self, instance_id: str) -> InstanceConfig:
        try:
            return self._instances[instance_id]
        except KeyError:
            raise UnknownInstanceError(
                f"Unknown instance: {instance_id}"
            ) from None

    def ids(self) -> list[str]:
        return list(self._instances)

    def __contains__(self, instance_id: object) -> bool:
        return instance_id in self._instances

    def __iter__(self) -> Iterator[InstanceConfig]:
        return iter(self._instances.values())

    def __len__(self) -> int:
        return len(self._instances)
