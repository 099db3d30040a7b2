"""Test doubles shared by the test suite: fake clock, endpoint and sleep."""

from __future__ import annotations

import asyncio

from wbprop.client import SparqlClient
from wbprop.config.instances import InstanceConfig, RateLimitConfig
from wbprop.sparql_helper import RetryingTransport

SELECT_RESULTS = {
    "head": {"vars": ["property", "count"]},
    "results": {
        "bindings": [
            {
                "property": {
                    "type": "uri",
                    "value": "http://www.wikidata.org/entity/P31",
                },
                "count": {
                    "type": "literal",
                    "value": "42",
                    "datatype": "http://www.w3.org/2001/XMLSchema#integer",
                },
            },
        ],
    },
}


class FakeClock:
    """Settable epoch-milliseconds clock."""

    def __init__(self, now: int = 1_000_000) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeEndpoint:
    """Async stand-in for one HTTP attempt.

    Pops the next entry of *responses* per call (an exception is raised,
    anything else returned); falls back to :data:`SELECT_RESULTS`.
    """

    def __init__(self, responses=None, delay: float = 0.0) -> None:
        self.responses = list(responses or [])
        self.delay = delay
        self.calls: list[str] = []
        self.started: list[str] = []
        self.active = 0
        self.max_active = 0

    async def __call__(self, query: str):
        self.calls.append(query)
        self.started.append(query)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            response = self.responses.pop(0) if self.responses else SELECT_RESULTS
            if isinstance(response, BaseException):
                raise response
            return response
        finally:
            self.active -= 1


class RecordingSleep:
    """Backoff sleep that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self.on_sleep = None

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.on_sleep is not None:
            self.on_sleep()


def make_instance(instance_id: str = "wikidata", concurrent: int = 5, **kwargs) -> InstanceConfig:
    return InstanceConfig(
        id=instance_id,
        name=kwargs.pop("name", instance_id.title()),
        sparql_endpoint=kwargs.pop(
            "sparql_endpoint", f"https://{instance_id}.example.org/sparql",
        ),
        rate_limit=RateLimitConfig(concurrent=concurrent),
        **kwargs,
    )


def fake_client_factory(endpoint: FakeEndpoint, sleep: RecordingSleep | None = None):
    """Client factory for :class:`QueryService` that never touches the network."""

    def factory(config, options=None, **kwargs):
        transport = RetryingTransport(
            config, options, send=endpoint, sleep=sleep or RecordingSleep(),
        )
        return SparqlClient(config, options, transport=transport, **kwargs)

    return factory


