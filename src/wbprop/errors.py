"""Error taxonomy for SPARQL query execution.

Every failure surfaced by :mod:`wbprop.client` is a
:class:`SparqlClientError` carrying a human-readable message.  Transient
kinds set ``retryable = True`` and are retried by the transport before
they reach the caller.
"""

from __future__ import annotations

from typing import Any


class SparqlClientError(Exception):
    """Base exception for SPARQL client errors."""

    retryable: bool = False
    kind: str = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Displayable representation for API responses."""
        return {"error": self.kind, "message": self.message}


class NetworkError(SparqlClientError):
    """Raised when no response was received (connection failure, timeout)."""

    retryable = True
    kind = "network_error"


class InvalidQueryError(SparqlClientError):
    """Raised when the endpoint rejects the query as malformed (HTTP 400)."""

    kind = "invalid_query"


class AuthenticationRequiredError(SparqlClientError):
    """Raised when the endpoint rejects the request for lack of credentials.

    ``auth_url`` is set when the instance uses cookie-based login, so the
    user can be sent there to authenticate.
    """

    kind = "authentication_required"

    def __init__(self, message: str, auth_url: str | None = None) -> None:
        super().__init__(message)
        self.auth_url = auth_url

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["auth_url"] = self.auth_url
        return data


class RateLimitedError(SparqlClientError):
    """Raised on HTTP 429."""

    retryable = True
    kind = "rate_limited"


class ServerError(SparqlClientError):
    """Raised on HTTP 5xx."""

    retryable = True
    kind = "server_error"

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnknownStatusError(SparqlClientError):
    """Raised for any other unexpected response."""

    kind = "unknown_status"

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class EndpointUnavailableError(SparqlClientError):
    """Raised before any request when an instance cannot be queried at all."""

    kind = "endpoint_unavailable"


class UnknownInstanceError(SparqlClientError, KeyError):
    """Raised when an instance id is not in the catalog."""

    kind = "unknown_instance"

    def __str__(self) -> str:
        return self.message
