"""
Helper utilities shared by the load-test flows.

Provides the small building blocks every flow relies on: deterministic
test-account identities, request header factories, and randomised
think-time.  Keeping them in one module makes it easy to adjust
identity or pacing strategies in one place.

Key Concepts Demonstrated:
- Collision-free identities across distributed load generators using a
  per-generator offset into a fixed account pool
- Per-request correlation headers (test tag + request ID)
- Injectable random source and sleep function for deterministic tests
"""

from __future__ import annotations

import heapq
import random
import threading
import time
import uuid
from collections.abc import Callable

from sports_load.config import Settings

Sleeper = Callable[[float], None]


def user_email(settings: Settings, worker_index: int) -> str:
    """
    Return the test-account email for a zero-based worker slot.

    Slots wrap around the pool of ``USER_COUNT`` accounts after applying
    ``USER_OFFSET``, so slot ``0`` with offset ``0`` maps to
    ``testuser0001@chunky.test``.
    """
    slot = settings.user_offset + worker_index
    user_number = (slot % settings.user_count) + 1
    return f"{settings.user_prefix}{user_number:04d}@{settings.user_domain}"


class WorkerSlots:
    """
    Lowest-free pool of zero-based worker slot numbers.

    Locust stops and respawns users while ramping, so a slot is
    returned on stop and handed to the next user that starts.  Live
    users therefore always hold distinct slots, and distinct accounts
    while at most ``USER_COUNT`` of them are running.
    """

    def __init__(self) -> None:
        self._free: list[int] = []
        self._next = 0
        self._lock = threading.Lock()

    def acquire(self) -> int:
        with self._lock:
            if self._free:
                return heapq.heappop(self._free)
            slot = self._next
            self._next += 1
            return slot

    def release(self, slot: int) -> None:
        with self._lock:
            if slot < self._next and slot not in self._free:
                heapq.heappush(self._free, slot)

    @property
    def in_use(self) -> int:
        with self._lock:
            return self._next - len(self._free)


def guest_header(test_tag: str) -> dict[str, str]:
    """
    Build headers for an unauthenticated request.

    A fresh ``X-Request-Id`` is generated on every call so individual
    requests can be traced in server logs.
    """
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "X-Test-Tag": test_tag,
        "X-Request-Id": str(uuid.uuid4()),
    }


def auth_header(token: str, test_tag: str) -> dict[str, str]:
    """Build headers for a bearer-authenticated request."""
    headers = guest_header(test_tag)
    headers["Authorization"] = f"Bearer {token}"
    return headers


def jitter_sleep(
    bounds: tuple[float, float],
    rng: random.Random | None = None,
    sleep: Sleeper = time.sleep,
) -> float:
    """
    Pause for a uniform-random duration within *bounds* (seconds).

    Under Locust, ``time.sleep`` is gevent-patched and only yields the
    current virtual user.

    Returns:
        The chosen duration, mainly for tests.
    """
    low, high = bounds
    duration = (rng or random).uniform(low, high)
    sleep(duration)
    return duration
