"""
Validate Locust CSV output against a threshold profile.

After a Locust run, CI invokes this script to decide whether the build
passes.  It reads the ``*_stats.csv`` file Locust writes with
``--csv``, extracts the **Aggregated** row, and compares it with one
profile from :file:`thresholds.yml`:

- **Error rate (%)**: ``Failure Count / Request Count * 100``
- **P95 latency (ms)**: the 95th-percentile response time
- **games_fail_5xx (count)**: guest profiles only, read from the
  ``*_counters.csv`` file the harness writes next to Locust's CSVs

Profiles exist per scenario because the guest launch bursts tolerate
more latency than the logged-in journey (``true_user`` 800 ms,
``web_guest`` 1500 ms, ``mobile_guest`` 1800 ms, all at 1 % errors).
The guest profiles also cap games-screen 5xx failures.

Exit codes:

- ``0``: all thresholds passed
- ``1``: at least one threshold was breached
- ``2``: the script itself failed (missing file, bad YAML, unknown profile)
"""

from __future__ import annotations

import argparse
import csv
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from sports_load.guest import GAMES_FAIL_5XX

EXIT_PASS = 0
EXIT_THRESHOLD_BREACH = 1
EXIT_SCRIPT_ERROR = 2

DEFAULT_THRESHOLDS_PATH = Path(__file__).with_name("thresholds.yml")


@dataclass(frozen=True)
class Thresholds:
    max_error_rate_percent: float
    max_p95_ms: float
    max_games_fail_5xx: float | None = None


@dataclass(frozen=True)
class CheckResult:
    metric: str
    actual: float
    limit: float

    @property
    def passed(self) -> bool:
        return self.actual <= self.limit


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the threshold checker."""
    parser = argparse.ArgumentParser(
        description="Check Locust stats CSV against performance thresholds."
    )
    parser.add_argument(
        "--stats",
        required=True,
        type=Path,
        help="Path to Locust *_stats.csv file",
    )
    parser.add_argument(
        "--thresholds",
        type=Path,
        default=DEFAULT_THRESHOLDS_PATH,
        help="Path to thresholds YAML file",
    )
    parser.add_argument(
        "--profile",
        default="true_user",
        help="Profile name inside the thresholds file",
    )
    parser.add_argument(
        "--counters",
        type=Path,
        default=None,
        help="Path to the counters CSV (default: derived from --stats)",
    )
    return parser.parse_args(argv)


def load_thresholds(path: Path, profile: str) -> Thresholds:
    """
    Read one threshold profile from a YAML file.

    Expected layout::

        profiles:
          true_user:
            max_error_rate_percent: 1.0
            max_p95_ms: 800

    Raises:
        ValueError: If the profile is missing or its values are not numeric.
    """
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    profiles = data.get("profiles") if isinstance(data, dict) else None
    if not isinstance(profiles, dict) or profile not in profiles:
        raise ValueError(f"Unknown thresholds profile: {profile}")

    entry = profiles[profile] or {}
    try:
        games_fail_5xx = entry.get("max_games_fail_5xx")
        return Thresholds(
            max_error_rate_percent=float(entry["max_error_rate_percent"]),
            max_p95_ms=float(entry["max_p95_ms"]),
            max_games_fail_5xx=None if games_fail_5xx is None else float(games_fail_5xx),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ValueError(
            f"Profile {profile} has missing or non-numeric limits"
        ) from exc


def load_aggregated_row(stats_path: Path) -> dict[str, str]:
    """
    Return the ``Aggregated`` row of a Locust stats CSV.

    Older Locust versions label it in the ``Name`` column, newer ones
    may use ``Type``; both are accepted.

    Raises:
        ValueError: If no ``Aggregated`` row is found.
    """
    with stats_path.open("r", encoding="utf-8", newline="") as handle:
        for row in csv.DictReader(handle):
            if row.get("Name") == "Aggregated" or row.get("Type") == "Aggregated":
                return row
    raise ValueError("Could not find 'Aggregated' row in stats CSV")


def counters_path_for(stats_path: Path) -> Path:
    """Return the ``*_counters.csv`` path written alongside ``*_stats.csv``."""
    name = stats_path.name
    if name.endswith("_stats.csv"):
        name = name[: -len("_stats.csv")]
    else:
        name = stats_path.stem
    return stats_path.with_name(f"{name}_counters.csv")


def load_counters(path: Path) -> dict[str, float]:
    """
    Read a ``Name,Count`` counters CSV.

    Counters that never fired are absent from the file and read as zero
    by :func:`evaluate`.
    """
    with path.open("r", encoding="utf-8", newline="") as handle:
        return {
            row["Name"]: _parse_float(row.get("Count"), row["Name"])
            for row in csv.DictReader(handle)
            if row.get("Name")
        }


def _parse_float(value: Any, field_name: str) -> float:
    if value is None:
        raise ValueError(f"Missing field: {field_name}")
    text = str(value).strip().replace("%", "")
    if text in ("", "N/A"):
        raise ValueError(f"Empty value for field: {field_name}")
    try:
        return float(text)
    except ValueError as exc:
        raise ValueError(f"Non-numeric value for {field_name}: {value}") from exc


def extract_p95_ms(row: dict[str, str]) -> float:
    """Return the P95 latency, trying the column names used across Locust versions."""
    for candidate in ("95%", "95%ile", "95th percentile", "p95"):
        if row.get(candidate) not in (None, ""):
            return _parse_float(row[candidate], candidate)
    raise ValueError("Could not find p95 column in stats CSV")


def compute_error_rate_percent(row: dict[str, str]) -> float:
    """
    Return ``Failure Count / Request Count * 100``.

    Raises:
        ValueError: If the counts are missing or no requests were made.
    """
    request_count = _parse_float(row.get("Request Count"), "Request Count")
    failure_count = _parse_float(row.get("Failure Count"), "Failure Count")
    if request_count <= 0:
        raise ValueError("Request Count must be > 0 for threshold checks")
    return (failure_count / request_count) * 100.0


def evaluate(
    row: dict[str, str],
    thresholds: Thresholds,
    counters: dict[str, float] | None = None,
) -> list[CheckResult]:
    """Compare an aggregated row, and counters where the profile caps them, with *thresholds*."""
    results = [
        CheckResult(
            "Error rate (%)",
            compute_error_rate_percent(row),
            thresholds.max_error_rate_percent,
        ),
        CheckResult("P95 latency (ms)", extract_p95_ms(row), thresholds.max_p95_ms),
    ]
    if thresholds.max_games_fail_5xx is not None:
        results.append(
            CheckResult(
                "Games 5xx (count)",
                (counters or {}).get(GAMES_FAIL_5XX, 0.0),
                thresholds.max_games_fail_5xx,
            )
        )
    return results


def format_report(profile: str, results: list[CheckResult]) -> str:
    """Render a human-readable results table for CI logs."""
    lines = [
        f"Performance Threshold Check ({profile})",
        "-" * 60,
        f"{'Metric':<22}{'Actual':>12}{'Limit':>14}{'Status':>12}",
        "-" * 60,
    ]
    for result in results:
        status = "PASS" if result.passed else "FAIL"
        lines.append(f"{result.metric:<22}{result.actual:>12.2f}{result.limit:>14.2f}{status:>12}")
    lines.append("-" * 60)
    overall = "PASS" if all(result.passed for result in results) else "FAIL"
    lines.append(f"Overall: {overall}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """
    Load the profile, parse the CSV, compare, and print the results.

    Returns:
        ``EXIT_PASS``, ``EXIT_THRESHOLD_BREACH``, or ``EXIT_SCRIPT_ERROR``.
    """
    args = parse_args(argv)

    try:
        thresholds = load_thresholds(args.thresholds, args.profile)
        counters = None
        if thresholds.max_games_fail_5xx is not None:
            counters = load_counters(args.counters or counters_path_for(args.stats))
        results = evaluate(load_aggregated_row(args.stats), thresholds, counters)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Threshold check failed: {exc}", file=sys.stderr)
        return EXIT_SCRIPT_ERROR

    print(format_report(args.profile, results))
    return EXIT_PASS if all(result.passed for result in results) else EXIT_THRESHOLD_BREACH


if __name__ == "__main__":
    raise SystemExit(main())
