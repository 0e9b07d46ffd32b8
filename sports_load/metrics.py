"""
Per-endpoint metrics aggregation and end-of-run summary rendering.

Every virtual user records each call it makes into one process-wide
:class:`MetricsRegistry`.  Users run concurrently (greenlets under
Locust, threads elsewhere), so every mutation happens under a lock and
a bucket's request count, failure count, and duration samples are
always updated together.

Percentiles use linear interpolation between the two closest ranks of
the sorted samples (``rank = p * (n - 1)``), so ``p(100)`` equals the
maximum and a single sample is its own percentile at every ``p``.

Key Concepts Demonstrated:
- Registry keyed by an enum, eagerly populated with the fixed endpoint set
- Lock-protected accumulation for shared mutable state
- "-" placeholders for empty statistics instead of division by zero
"""

from __future__ import annotations

import csv
import math
import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from sports_load.classifier import CallResult
from sports_load.endpoints import Endpoint

EMPTY = "-"


def percentile(sorted_samples: Sequence[float], p: float) -> float | None:
    """
    Return the *p*-th percentile (``0 <= p <= 100``) of pre-sorted samples.

    Returns ``None`` for an empty sequence.
    """
    if not sorted_samples:
        return None
    rank = (p / 100.0) * (len(sorted_samples) - 1)
    lower = math.floor(rank)
    upper = math.ceil(rank)
    if lower == upper:
        return float(sorted_samples[lower])
    weight = rank - lower
    return float(sorted_samples[lower] + (sorted_samples[upper] - sorted_samples[lower]) * weight)


@dataclass(frozen=True)
class TrendSnapshot:
    """Point-in-time statistics for one duration distribution."""

    count: int
    avg: float | None
    p90: float | None
    p95: float | None
    max: float | None

    @classmethod
    def from_samples(cls, samples: Iterable[float]) -> "TrendSnapshot":
        ordered = sorted(samples)
        if not ordered:
            return cls(count=0, avg=None, p90=None, p95=None, max=None)
        return cls(
            count=len(ordered),
            avg=sum(ordered) / len(ordered),
            p90=percentile(ordered, 90),
            p95=percentile(ordered, 95),
            max=ordered[-1],
        )


class Trend:
    """Thread-safe duration sample set (milliseconds)."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._samples: list[float] = []
        self._lock = threading.Lock()

    def add(self, value: float) -> None:
        with self._lock:
            self._samples.append(value)

    def snapshot(self) -> TrendSnapshot:
        with self._lock:
            samples = list(self._samples)
        return TrendSnapshot.from_samples(samples)


class Counter:
    """Thread-safe monotonically increasing counter."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._value = 0
        self._lock = threading.Lock()

    def add(self, amount: int = 1) -> None:
        with self._lock:
            self._value += amount

    @property
    def value(self) -> int:
        with self._lock:
            return self._value


@dataclass(frozen=True)
class BucketSnapshot:
    """Consistent view of one endpoint bucket."""

    endpoint: Endpoint
    requests: int
    failures: int
    durations: TrendSnapshot

    @property
    def failure_rate(self) -> float | None:
        if self.requests == 0:
            return None
        return self.failures / self.requests


class EndpointMetricBucket:
    """
    Request count, failure count, and durations for one logical endpoint.

    All three are updated under one lock so a snapshot always satisfies
    ``failures <= requests == len(durations)``.
    """

    def __init__(self, endpoint: Endpoint) -> None:
        self.endpoint = endpoint
        self._requests = 0
        self._failures = 0
        self._durations: list[float] = []
        self._lock = threading.Lock()

    def record(self, result: CallResult) -> None:
        with self._lock:
            self._requests += 1
            if result.is_failure:
                self._failures += 1
            self._durations.append(result.duration_ms)

    def snapshot(self) -> BucketSnapshot:
        with self._lock:
            requests = self._requests
            failures = self._failures
            durations = list(self._durations)
        return BucketSnapshot(
            endpoint=self.endpoint,
            requests=requests,
            failures=failures,
            durations=TrendSnapshot.from_samples(durations),
        )


class MetricsRegistry:
    """
    Process-wide registry of endpoint buckets, timing trends, and counters.

    Buckets exist for every :class:`Endpoint` from construction on, so
    the summary always lists the full endpoint set.  Named counters
    (e.g. games-screen failure classes) are created on first use.
    """

    def __init__(self) -> None:
        self._buckets = {endpoint: EndpointMetricBucket(endpoint) for endpoint in Endpoint}
        self.connect = Trend("connect_ms")
        self.tls = Trend("tls_ms")
        self.wait = Trend("wait_ms")
        self._counters: dict[str, Counter] = {}
        self._counters_lock = threading.Lock()

    def bucket(self, endpoint: Endpoint) -> EndpointMetricBucket:
        return self._buckets[endpoint]

    def record(self, result: CallResult) -> None:
        """Add *result* to its endpoint bucket and the global timing trends."""
        self._buckets[result.endpoint].record(result)
        if result.connect_ms is not None:
            self.connect.add(result.connect_ms)
        if result.tls_ms is not None:
            self.tls.add(result.tls_ms)
        if result.wait_ms is not None:
            self.wait.add(result.wait_ms)

    def counter(self, name: str) -> Counter:
        with self._counters_lock:
            counter = self._counters.get(name)
            if counter is None:
                counter = self._counters[name] = Counter(name)
            return counter

    def counters(self) -> dict[str, int]:
        with self._counters_lock:
            counters = list(self._counters.values())
        return {counter.name: counter.value for counter in counters}

    def snapshot(self) -> list[BucketSnapshot]:
        return [self._buckets[endpoint].snapshot() for endpoint in Endpoint]

    def render_summary(self, tag: str | None = None) -> str:
        """Render the per-endpoint table followed by the timing-breakdown lines."""
        return render_summary(
            self.snapshot(),
            tag=tag,
            timings=[
                ("connect", self.connect.snapshot()),
                ("tls", self.tls.snapshot()),
                ("wait", self.wait.snapshot()),
            ],
            counters=self.counters(),
        )


def _fmt_ms(value: float | None) -> str:
    return EMPTY if value is None else f"{value:.2f}"


def _fmt_rate(rate: float | None) -> str:
    return EMPTY if rate is None else f"{rate * 100:.2f}%"


def format_trend(label: str, trend: TrendSnapshot) -> str:
    """Format one ``label avg=.. p(90)=.. p(95)=.. max=..`` line."""
    return (
        f"{label:<10} avg={_fmt_ms(trend.avg)} p(90)={_fmt_ms(trend.p90)} "
        f"p(95)={_fmt_ms(trend.p95)} max={_fmt_ms(trend.max)}"
    )


def render_summary(
    buckets: Iterable[BucketSnapshot],
    timings: Iterable[tuple[str, TrendSnapshot]] = (),
    counters: dict[str, int] | None = None,
    tag: str | None = None,
) -> str:
    """
    Render a plain-text summary table.

    Columns are request count, failure count, failure percentage, and
    average / p(90) / p(95) / max duration in milliseconds.  Statistics
    with no underlying samples print as ``-``.  A *tag* is printed under
    the title so the report can be matched to the tagged traffic.
    """
    header = (
        f"{'Endpoint':<18}{'Reqs':>8}{'Fails':>8}{'Fail %':>10}"
        f"{'Avg':>11}{'p(90)':>11}{'p(95)':>11}{'Max':>11}"
    )
    width = len(header)
    lines = ["Per-endpoint summary"]
    if tag:
        lines.append(f"tag={tag}")
    lines.extend(["-" * width, header, "-" * width])

    for bucket in buckets:
        trend = bucket.durations
        lines.append(
            f"{bucket.endpoint.value:<18}{bucket.requests:>8}{bucket.failures:>8}"
            f"{_fmt_rate(bucket.failure_rate):>10}"
            f"{_fmt_ms(trend.avg):>11}{_fmt_ms(trend.p90):>11}"
            f"{_fmt_ms(trend.p95):>11}{_fmt_ms(trend.max):>11}"
        )

    lines.append("-" * width)
    for label, trend in timings:
        lines.append(format_trend(label, trend))

    if counters:
        lines.append("-" * width)
        for name in sorted(counters):
            lines.append(f"{name:<18}{counters[name]:>8}")

    return "\n".join(lines)


def write_counters_csv(path: Path, counters: dict[str, int]) -> None:
    """Write named counters as a ``Name,Count`` CSV for the threshold gate."""
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.writer(handle)
        writer.writerow(["Name", "Count"])
        for name in sorted(counters):
            writer.writerow([name, counters[name]])


# Shared by every virtual user in this process.
REGISTRY = MetricsRegistry()
