"""Query service: the composition root of the query path.

Owns the shared :class:`~wbprop.cache.QueryCache` and
:class:`~wbprop.inflight.InFlightRegistry` and keeps one
:class:`~wbprop.client.SparqlClient` per instance, so each endpoint gets its
own concurrency budget while results and in-flight requests are shared.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from wbprop.cache import CacheStats, QueryCache
from wbprop.client import SparqlClient
from wbprop.config.instances import InstanceCatalog, InstanceConfig
from wbprop.config.settings import Config
from wbprop.inflight import InFlightRegistry
from wbprop.sparql_helper import SparqlClientOptions
from wbprop.storage import SqliteStorage

logger = logging.getLogger(__name__)

ClientFactory = Callable[..., SparqlClient]


class QueryService:
    """Route queries to per-instance clients sharing one cache."""

    def __init__(
        self,
        catalog: InstanceCatalog,
        cache: QueryCache | None = None,
        *,
        registry: InFlightRegistry | None = None,
        options: SparqlClientOptions | None = None,
        client_factory: ClientFactory = SparqlClient,
    ) -> None:
        self.catalog = catalog
        self.cache = cache if cache is not None else QueryCache()
        self.registry = registry if registry is not None else InFlightRegistry()
        self.options = options or SparqlClientOptions()
        self._client_factory = client_factory
        self._clients: dict[str, SparqlClient] = {}

    @classmethod
    def from_config(cls, config: type[Config] = Config) -> QueryService:
        """Build a service from a :class:`Config` class."""
        catalog = InstanceCatalog.with_presets(config.INSTANCES_FILE or None)
        cache = QueryCache(
            SqliteStorage(config.DATABASE_PATH),
            ttl_ms=config.CACHE_TTL_MS,
            max_entries=config.CACHE_MAX_ENTRIES,
            storage_key=config.CACHE_STORAGE_KEY,
        )
        options = SparqlClientOptions(
            timeout=config.SPARQL_TIMEOUT,
            retries=config.SPARQL_RETRIES,
            retry_delay=config.SPARQL_RETRY_DELAY,
        )
        return cls(catalog, cache, options=options)

    def client(self, instance_id: str) -> SparqlClient:
        """Return the client for *instance_id*, creating it on first use."""
        client = self._clients.get(instance_id)
        if client is None:
            config = self.catalog.get(instance_id)
            client = self._client_factory(
                config,
                self.options,
                cache=self.cache,
                registry=self.registry,
            )
            self._clients[instance_id] = client
            logger.debug("Created client for %s", instance_id)
        return client

    def configure_instance(self, config: InstanceConfig) -> None:
        """Add or replace an instance; its next query uses a new client."""
        self.catalog.add(config)
        old = self._clients.pop(config.id, None)
        if old is not None:
            old.close()

    async def query(self, instance_id: str, query: str) -> Any:
        return await self.client(instance_id).query(query)

    async def query_fresh(self, instance_id: str, query: str) -> Any:
        return await self.client(instance_id).query_fresh(query)

    def is_cached(self, instance_id: str, query: str) -> bool:
        """True if a fresh cached result exists for this query."""
        return self.cache.get(self.cache.make_key(instance_id, query)) is not None

    def get_stats(self) -> CacheStats:
        return self.cache.get_stats()

    def clear(self) -> None:
        self.cache.clear()

    def invalidate_instance(self, instance_id: str) -> None:
        self.cache.invalidate_instance(instance_id)

    def close(self) -> None:
        for client in self._clients.values():
            client.close()
        self._clients.clear()
