"""SPARQL query execution service — thin Flask-side wrapper.

All query logic lives in :class:`wbprop.service.QueryService`.  This service
runs it on the backend's event loop and shapes the result for the API.
"""

from __future__ import annotations

import time

from wbprop.backend.services.loop_runner import LoopRunner
from wbprop.cache import CacheStats
from wbprop.query import QueryResult, to_query_result
from wbprop.service import QueryService


class SparqlService:
    """Execute SPARQL queries — delegates to :class:`QueryService`."""

    def __init__(
        self,
        service: QueryService,
        runner: LoopRunner,
        timeout: float | None = None,
    ) -> None:
        self.service = service
        self.runner = runner
        self.timeout = timeout

    def execute(self, instance: str, query: str, fresh: bool = False) -> QueryResult:
        """Execute a SPARQL query, through the cache unless *fresh*."""
        t0 = time.monotonic()
        if fresh:
            cached = False
            payload = self.runner.run(
                self.service.query_fresh(instance, query), self.timeout,
            )
        else:
            cached = self.runner.call(self.service.is_cached, instance, query)
            payload = self.runner.run(
                self.service.query(instance, query), self.timeout,
            )

        return to_query_result(
            payload,
            query=query,
            instance=instance,
            duration_ms=int((time.monotonic() - t0) * 1000),
            cached=cached,
        )

    def stats(self) -> CacheStats:
        return self.runner.call(self.service.get_stats)

    def clear(self) -> None:
        self.runner.call(self.service.clear)

    def invalidate(self, instance: str) -> None:
        self.runner.call(self.service.invalidate_instance, instance)
