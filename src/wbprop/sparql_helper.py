"""
SPARQL Helper - single-endpoint query execution with classified retries.

This module is the network layer of the query client. It handles:
- SPARQL protocol POST requests (form-encoded ``query=...``)
- Classification of failures into the :mod:`wbprop.errors` taxonomy
- Linear backoff retry for transient failures (network, 429, 5xx)
- Per-attempt concurrency gating through a :class:`ConcurrencyGate`
- HTML error page detection in responses

The blocking ``requests`` call runs in a worker thread so the event loop
keeps serving other queries while a request is in progress.

Usage:
    from wbprop.sparql_helper import RetryingTransport

    transport = RetryingTransport(instance_config)
    results = await transport.execute("SELECT ?s WHERE { ?s ?p ?o } LIMIT 10")
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import requests

from wbprop.config.instances import InstanceConfig
from wbprop.errors import (
    AuthenticationRequiredError,
    InvalidQueryError,
    NetworkError,
    RateLimitedError,
    ServerError,
    SparqlClientError,
    UnknownStatusError,
)
from wbprop.gate import ConcurrencyGate

logger = logging.getLogger(__name__)

SendFn = Callable[[str], Awaitable[Any]]
SleepFn = Callable[[float], Awaitable[None]]


# MIME types for SPARQL responses
class MimeTypes:
    """Standard MIME types for SPARQL protocol."""

    JSON = "application/sparql-results+json"
    FORM = "application/x-www-form-urlencoded; charset=UTF-8"


@dataclass
class SparqlClientOptions:
    """Network behaviour of a client.

    Attributes:
        timeout: Per-attempt request timeout in seconds
        retries: Extra attempts after the first for transient failures
        retry_delay: Base backoff in seconds; attempt *n* waits ``n * retry_delay``
        cookies: Session cookies sent to cookie-authenticated instances
    """

    timeout: float = 30.0
    retries: int = 2
    retry_delay: float = 1.0
    cookies: dict[str, str] = field(default_factory=dict)


class RetryingTransport:
    """
    Executes SPARQL queries against one instance with retry logic.

    Every attempt first takes a slot from the gate and gives it back as soon
    as the attempt settles, so queued queries keep moving while this one
    waits out its backoff.

    Attributes:
        config: The instance being queried
        options: Timeout and retry policy
        gate: Concurrency gate shared by all queries of this instance
        attempts: Total number of network attempts made so far

    Example:
        >>> transport = RetryingTransport(WIKIDATA)
        >>> results = await transport.execute("SELECT ?x { ?x ?y ?z } LIMIT 1")
        >>> results["head"]["vars"]
        ['x']
    """

    # HTML markers that indicate an error page instead of SPARQL results
    HTML_MARKERS = ("<!DOCTYPE", "<html", "<HTML", "<!doctype")

    def __init__(
        self,
        config: InstanceConfig,
        options: SparqlClientOptions | None = None,
        *,
        gate: ConcurrencyGate | None = None,
        send: SendFn | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """
        Initialize the transport.

        Args:
            config: Instance configuration (endpoint, auth mode, rate limit)
            options: Client options (default: :class:`SparqlClientOptions`)
            gate: Concurrency gate (default: one sized by ``rate_limit.concurrent``)
            send: Replacement for the single-attempt HTTP call
            sleep: Coroutine used for backoff delays
        """
        self.config = config
        self.options = options or SparqlClientOptions()
        self.gate = gate or ConcurrencyGate(config.rate_limit.concurrent)
        self.attempts = 0
        self._send = send or self._send_request
        self._sleep = sleep

        # Session for connection pooling
        self._session = requests.Session()
        self._session.headers.update({
            "Accept": MimeTypes.JSON,
            "User-Agent": "wbprop/1.0 (SPARQL client)",
        })
        if config.cookie_based_auth and self.options.cookies:
            self._session.cookies.update(self.options.cookies)

        logger.debug(f"RetryingTransport initialized for {config.sparql_endpoint}")

    async def execute(self, query: str) -> Any:
        """
        Execute a query, retrying transient failures.

        Args:
            query: SPARQL query string

        Returns:
            Parsed SPARQL JSON results document

        Raises:
            SparqlClientError: The classified failure of the last attempt
        """
        max_attempts = self.options.retries + 1
        attempt = 0
        while True:
            attempt += 1
            try:
                async with self.gate:
                    self.attempts += 1
                    return await self._send(query)
            except SparqlClientError as error:
                logger.warning(
                    f"Query attempt {attempt}/{max_attempts} on "
                    f"{self.config.id} failed: {error}"
                )
                if not error.retryable:
                    raise
                if attempt >= max_attempts:
                    logger.error(
                        f"Query on {self.config.id} failed after {attempt} attempts"
                    )
                    raise

            delay = self.options.retry_delay * attempt
            logger.info(f"Retrying in {delay:.1f}s (attempt {attempt + 1}/{max_attempts})")
            await self._sleep(delay)

    async def _send_request(self, query: str) -> Any:
        """Perform one HTTP attempt and classify its outcome."""
        try:
            response = await asyncio.to_thread(self._post_query, query)
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Network error: {e}") from e
        return self._parse_response(response)

    def _post_query(self, query: str) -> requests.Response:
        """
        Execute SPARQL query using HTTP POST.

        Uses application/x-www-form-urlencoded encoding as per SPARQL protocol.
        """
        return self._session.post(
            self.config.sparql_endpoint,
            data={"query": query},
            headers={"Content-Type": MimeTypes.FORM},
            timeout=self.options.timeout,
        )

    def _parse_response(self, response: requests.Response) -> Any:
        """Return the decoded results, or raise the matching error kind."""
        status = response.status_code
        if 200 <= status < 300:
            text = response.text
            if self._is_html_response(text):
                raise UnknownStatusError(
                    "Endpoint returned an HTML page instead of SPARQL results",
                    status,
                )
            try:
                body = json.loads(text)
            except json.JSONDecodeError as e:
                raise UnknownStatusError(
                    f"Endpoint returned invalid JSON: {e}", status,
                ) from e
            if not isinstance(body, dict):
                raise UnknownStatusError(
                    "Endpoint returned a non-object JSON body", status,
                )
            return body

        raise self._classify_status(status, self._error_detail(response))

    def _classify_status(self, status: int, message: str) -> SparqlClientError:
        name = self.config.name
        if status == 400:
            return InvalidQueryError(f"Invalid query: {message}")
        if status in (401, 403):
            if self.config.cookie_based_auth and self.config.auth_url:
                return AuthenticationRequiredError(
                    f"Authentication required. Please login to {name}.",
                    self.config.auth_url,
                )
            return AuthenticationRequiredError(
                f"Authentication required for {name}."
            )
        if status == 429:
            return RateLimitedError("Rate limit exceeded. Please try again later.")
        if status == 503:
            return ServerError("Service temporarily unavailable.", status)
        if status == 500:
            return ServerError("SPARQL endpoint error. Please try again.", status)
        if status > 500:
            return ServerError(f"Request failed ({status}): {message}", status)
        return UnknownStatusError(f"Request failed ({status}): {message}", status)

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        """Best human-readable reason from an error response."""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        text = (response.text or "").strip()
        if text and not text.startswith("<"):
            return text[:200]
        return response.reason or "unknown error"

    def _is_html_response(self, content: str) -> bool:
        """Check if content appears to be HTML (error page) instead of JSON."""
        if not content:
            return False
        stripped = content.strip()
        return any(stripped.startswith(marker) for marker in self.HTML_MARKERS)

    def close(self) -> None:
        """Close the underlying requests session."""
        self._session.close()

    def __repr__(self) -> str:
        return f"RetryingTransport({self.config.sparql_endpoint!r}, gate={self.gate!r})"
