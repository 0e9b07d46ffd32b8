"""
Transport boundary between the flows and the HTTP engine.

The flows never talk to an HTTP library directly.  They go through an
:class:`EndpointClient`, which builds the URL and headers, delegates
the exchange to a :class:`Transport`, classifies the outcome, and
records it in the metrics registry, all for every single call.

Two transports are provided:

- :class:`LocustTransport` wraps a Locust ``HttpSession`` so requests
  also show up in Locust's own statistics, using ``catch_response`` to
  mark anything outside 2xx as a failure.
- :class:`RequestsTransport` wraps a plain ``requests.Session`` for the
  single-run CLI.

Key Concepts Demonstrated:
- Protocol-based seam so flows are testable with fake transports
- Transport errors converted to status ``0`` responses instead of
  exceptions, keeping every failure local to one call
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Protocol
from urllib.parse import urlencode

import requests

from sports_load.classifier import (
    TIMING_TOTAL,
    TIMING_WAIT,
    CallResult,
    FailureSampler,
    body_preview,
    classify,
)
from sports_load.config import Settings
from sports_load.endpoints import Endpoint
from sports_load.feeds import safe_json
from sports_load.helpers import auth_header, guest_header
from sports_load.metrics import REGISTRY, MetricsRegistry

logger = logging.getLogger(__name__)


@dataclass
class TransportResponse:
    """Raw outcome of one HTTP exchange."""

    status_code: int
    body: str = ""
    timings: dict[str, float] = field(default_factory=dict)


class Transport(Protocol):
    """Anything able to perform one blocking HTTP request."""

    def request(
        self,
        method: str,
        url: str,
        *,
        name: str,
        headers: dict[str, str],
        json: Any | None = None,
    ) -> TransportResponse: ...


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


def _wait_ms(response: requests.Response) -> float | None:
    """Time until response headers were parsed, as measured by ``requests``."""
    elapsed = getattr(response, "elapsed", None)
    if elapsed is None or not response.status_code:
        return None
    return elapsed.total_seconds() * 1000.0


class LocustTransport:
    """
    Transport backed by a Locust ``HttpSession``.

    Non-2xx responses are reported to Locust via
    ``response.failure(...)`` so Locust's own failure statistics agree
    with the per-endpoint summary.
    """

    def __init__(self, client: Any, timeout: float = 30.0) -> None:
        self.client = client
        self.timeout = timeout

    def request(
        self,
        method: str,
        url: str,
        *,
        name: str,
        headers: dict[str, str],
        json: Any | None = None,
    ) -> TransportResponse:
        start = time.perf_counter()
        with self.client.request(
            method,
            url,
            name=name,
            headers=headers,
            json=json,
            timeout=self.timeout,
            catch_response=True,
        ) as response:
            total_ms = _elapsed_ms(start)
            status = response.status_code or 0
            if 200 <= status < 300:
                response.success()
            else:
                response.failure(f"Expected 2xx, got {status}")

            timings = {TIMING_TOTAL: total_ms}
            wait_ms = _wait_ms(response)
            if wait_ms is not None:
                timings[TIMING_WAIT] = wait_ms
            return TransportResponse(status_code=status, body=response.text or "", timings=timings)


class RequestsTransport:
    """Transport backed by a plain ``requests.Session``."""

    def __init__(self, session: requests.Session | None = None, timeout: float = 30.0) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def request(
        self,
        method: str,
        url: str,
        *,
        name: str,
        headers: dict[str, str],
        json: Any | None = None,
    ) -> TransportResponse:
        start = time.perf_counter()
        try:
            response = self.session.request(
                method, url, headers=headers, json=json, timeout=self.timeout
            )
        except requests.RequestException as exc:
            logger.debug("%s %s transport error: %s", method, name, exc)
            return TransportResponse(status_code=0, timings={TIMING_TOTAL: _elapsed_ms(start)})

        timings = {TIMING_TOTAL: _elapsed_ms(start)}
        wait_ms = _wait_ms(response)
        if wait_ms is not None:
            timings[TIMING_WAIT] = wait_ms
        return TransportResponse(status_code=response.status_code, body=response.text, timings=timings)


@dataclass(frozen=True)
class ApiResponse:
    """A classified response plus its body, as seen by the flows."""

    result: CallResult
    body: str

    @property
    def status_code(self) -> int:
        return self.result.status_code

    @property
    def ok(self) -> bool:
        return not self.result.is_failure

    def json(self) -> Any | None:
        """Parsed JSON body, or ``None`` if it is not valid JSON."""
        return safe_json(self.body)


class EndpointClient:
    """
    Issue calls to logical endpoints and record every outcome.

    Attributes:
        transport: The HTTP engine adapter.
        settings: Base URL and test tag source.
        registry: Metrics sink, process-wide by default.
        sampler: Capped debug logger for failed calls.
    """

    def __init__(
        self,
        transport: Transport,
        settings: Settings,
        registry: MetricsRegistry = REGISTRY,
        sampler: FailureSampler | None = None,
    ) -> None:
        self.transport = transport
        self.settings = settings
        self.registry = registry
        self.sampler = sampler or FailureSampler(
            enabled=settings.debug, limit=settings.debug_sample_limit
        )

    def call(
        self,
        endpoint: Endpoint,
        path: str,
        *,
        method: str = "GET",
        token: str | None = None,
        params: dict[str, str] | None = None,
        payload: Any | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> ApiResponse:
        """
        Perform one request and record it under *endpoint*.

        Args:
            endpoint: Logical endpoint the call is tracked under.
            path: Path relative to the base URL.
            method: HTTP method.
            token: Bearer token; ``None`` sends a guest request.
            params: Query parameters.
            payload: JSON request body.
            extra_headers: Headers merged over the defaults.

        Returns:
            The classified response.
        """
        url = self.settings.url(path)
        if params:
            url = f"{url}?{urlencode(params)}"
        headers = (
            auth_header(token, self.settings.test_tag)
            if token
            else guest_header(self.settings.test_tag)
        )
        if extra_headers:
            headers.update(extra_headers)

        raw = self.transport.request(
            method, url, name=endpoint.value, headers=headers, json=payload
        )
        result = classify(endpoint, raw.status_code, raw.timings.get(TIMING_TOTAL, 0.0), raw.timings)
        self.registry.record(result)

        if result.is_failure:
            self.sampler.maybe_log(
                "endpoint=%s status=%s body=%r",
                endpoint.value,
                result.status_code,
                body_preview(raw.body),
            )
        return ApiResponse(result=result, body=raw.body)
