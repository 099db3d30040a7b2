"""wbprop: cached, deduplicated SPARQL querying for Wikibase dashboards.

Main modules:
- cache: QueryCache, the bounded TTL result store with durable persistence
- client: SparqlClient, cached and deduplicated queries for one instance
- service: QueryService, one client per instance around a shared cache
- sparql_helper: RetryingTransport, the network layer with classified retries
- config: instance catalog and environment settings (separate module)
"""

from .cache import CacheStats, QueryCache, make_key
from .client import SparqlClient, create_sparql_client
from .config import InstanceCatalog, InstanceConfig
from .errors import (
    AuthenticationRequiredError,
    EndpointUnavailableError,
    InvalidQueryError,
    NetworkError,
    RateLimitedError,
    ServerError,
    SparqlClientError,
    UnknownInstanceError,
    UnknownStatusError,
)
from .gate import ConcurrencyGate
from .inflight import InFlightRegistry
from .service import QueryService
from .sparql_helper import RetryingTransport, SparqlClientOptions
from .version import VERSION

__all__ = [
    "VERSION",
    "AuthenticationRequiredError",
    "CacheStats",
    "ConcurrencyGate",
    "EndpointUnavailableError",
    "InFlightRegistry",
    "InstanceCatalog",
    "InstanceConfig",
    "InvalidQueryError",
    "NetworkError",
    "QueryCache",
    "QueryService",
    "RateLimitedError",
    "RetryingTransport",
    "ServerError",
    "SparqlClient",
    "SparqlClientError",
    "SparqlClientOptions",
    "UnknownInstanceError",
    "UnknownStatusError",
    "create_sparql_client",
    "make_key",
]
