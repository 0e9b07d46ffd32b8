"""
Response classification for completed HTTP exchanges.

Turns a raw transport response into a :class:`CallResult`: a 2xx/non-2xx
verdict plus whichever timing components the transport actually
reported.  Timing fields that are missing or not finite numbers are
recorded as ``None`` instead of ``0`` so that an absent measurement is
never mistaken for an instantaneous one.

Key Concepts Demonstrated:
- Status-range classification independent of any HTTP library
- Tolerant extraction of optional numeric fields (no exceptions escape)
- Capped, thread-safe debug sampling to avoid flooding logs under load
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from sports_load.endpoints import Endpoint

logger = logging.getLogger(__name__)

# Transport timing keys for the three phases tracked globally.
TIMING_CONNECT = "connect"
TIMING_TLS = "tls_handshake"
TIMING_WAIT = "wait_first_byte"
TIMING_TOTAL = "total"


def is_failure(status_code: int) -> bool:
    """Return ``True`` unless *status_code* is in the 2xx range."""
    return status_code < 200 or status_code >= 300


def _finite_ms(value: Any) -> float | None:
    """Return *value* as a float if it is a finite, non-negative number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return float(value)


@dataclass(frozen=True)
class CallResult:
    """
    Outcome of one HTTP exchange against one logical endpoint.

    Attributes:
        endpoint: Logical endpoint the call belongs to.
        status_code: HTTP status, or ``0`` when the transport failed
            before a response arrived.
        duration_ms: Total request duration.
        connect_ms: TCP connect time, if reported.
        tls_ms: TLS handshake time, if reported.
        wait_ms: Time to first byte, if reported.
    """

    endpoint: Endpoint
    status_code: int
    duration_ms: float
    connect_ms: float | None = None
    tls_ms: float | None = None
    wait_ms: float | None = None

    @property
    def is_failure(self) -> bool:
        return is_failure(self.status_code)


def classify(
    endpoint: Endpoint,
    status_code: int,
    duration_ms: float,
    timings: Mapping[str, Any] | None = None,
) -> CallResult:
    """
    Build a :class:`CallResult` from a status code and raw timing data.

    A numeric ``total`` in *timings* takes precedence over the caller's
    own *duration_ms* measurement.  Malformed timing data is treated as
    absent and never raises.

    Args:
        endpoint: Logical endpoint name.
        status_code: HTTP status code of the exchange.
        duration_ms: Caller-measured wall-clock duration.
        timings: Optional mapping with ``connect``, ``tls_handshake``,
            ``wait_first_byte`` and ``total`` entries in milliseconds.

    Returns:
        The classified result.
    """
    if not isinstance(timings, Mapping):
        timings = {}

    total = _finite_ms(timings.get(TIMING_TOTAL))
    measured = _finite_ms(duration_ms)
    return CallResult(
        endpoint=endpoint,
        status_code=status_code,
        duration_ms=total if total is not None else (measured or 0.0),
        connect_ms=_finite_ms(timings.get(TIMING_CONNECT)),
        tls_ms=_finite_ms(timings.get(TIMING_TLS)),
        wait_ms=_finite_ms(timings.get(TIMING_WAIT)),
    )


class FailureSampler:
    """
    Log at most ``limit`` failure lines per process.

    Disabled unless *enabled* is set, matching the ``DEBUG=1`` switch.
    """

    def __init__(self, enabled: bool, limit: int = 10, label: str = "FAIL") -> None:
        self.enabled = enabled
        self.limit = limit
        self.label = label
        self._logged = 0
        self._lock = threading.Lock()

    @property
    def logged(self) -> int:
        return self._logged

    def maybe_log(self, message: str, *args: Any) -> bool:
        """Emit ``message % args`` if sampling is enabled and under the cap."""
        if not self.enabled:
            return False
        with self._lock:
            if self._logged >= self.limit:
                return False
            self._logged += 1
        logger.info("%s " + message, self.label, *args)
        return True


def body_preview(body: Any, max_len: int = 200) -> str:
    """Return the first *max_len* characters of a text/bytes body, or ``""``."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not isinstance(body, str):
        return ""
    return body[:max_len]
