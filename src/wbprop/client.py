"""SPARQL client: cached, deduplicated, rate-limited queries for one instance.

The client composes the pieces of the query path:

* :class:`~wbprop.cache.QueryCache` for results already fetched,
* :class:`~wbprop.inflight.InFlightRegistry` so identical queries share one
  request,
* :class:`~wbprop.sparql_helper.RetryingTransport` (with its
  :class:`~wbprop.gate.ConcurrencyGate`) for the network call itself.

The cache and registry are passed in by whoever owns them (usually
:class:`~wbprop.service.QueryService`); the gate belongs to the client.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from wbprop.cache import QueryCache, make_key
from wbprop.config.instances import InstanceConfig
from wbprop.errors import EndpointUnavailableError
from wbprop.gate import ConcurrencyGate
from wbprop.inflight import InFlightRegistry
from wbprop.sparql_helper import RetryingTransport, SparqlClientOptions

logger = logging.getLogger(__name__)


class SparqlClient:
    """Query one SPARQL instance through the cache."""

    def __init__(
        self,
        config: InstanceConfig,
        options: SparqlClientOptions | None = None,
        *,
        cache: QueryCache | None = None,
        registry: InFlightRegistry | None = None,
        transport: RetryingTransport | None = None,
    ) -> None:
        self.config = config
        self.options = options or SparqlClientOptions()
        self.cache = cache
        self.registry = registry if registry is not None else InFlightRegistry()
        self.transport = transport or RetryingTransport(config, self.options)

    @property
    def gate(self) -> ConcurrencyGate:
        return self.transport.gate

    async def query(self, sparql: str) -> Any:
        """Execute *sparql* with caching and deduplication."""
        self._check_available()
        key = make_key(self.config.id, sparql)

        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Cache hit: %s", key)
                return cached

        task = self.registry.begin(key, lambda: self._fetch(sparql, key))
        # Shield so a caller giving up does not cancel the shared request.
        return await asyncio.shield(task)

    async def query_fresh(self, sparql: str) -> Any:
        """Execute *sparql* bypassing the cache read; the result is still cached."""
        self._check_available()
        return await self._fetch(sparql, make_key(self.config.id, sparql))

    async def _fetch(self, sparql: str, key: str) -> Any:
        results = await self.transport.execute(sparql)
        if self.cache is not None:
            self.cache.set(key, results, self.config.id)
        return results

    def _check_available(self) -> None:
        # Cookie-based auth relies on session cookies, so only block
        # instances that need credentials we have no way to pass.
        if self.config.requires_authentication and not self.config.cookie_based_auth:
            note = self.config.availability_note or (
                f"{self.config.name} requires authenticated access "
                "for SPARQL queries."
            )
            raise EndpointUnavailableError(note)

    @property
    def auth_url(self) -> str | None:
        return self.config.auth_url

    def requires_auth(self) -> bool:
        return self.config.requires_authentication

    def uses_cookie_auth(self) -> bool:
        return self.config.cookie_based_auth

    def close(self) -> None:
        self.transport.close()

    def __repr__(self) -> str:
        return f"SparqlClient({self.config.id!r})"


def create_sparql_client(
    config: InstanceConfig,
    options: SparqlClientOptions | None = None,
    **kwargs: Any,
) -> SparqlClient:
    """Create a SPARQL client for *config*."""
    return SparqlClient(config, options, **kwargs)
