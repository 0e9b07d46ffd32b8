"""
Load-test configuration.

All knobs are read from environment variables so the same locustfile
can be pointed at staging or production, and so that several load
generators can share one test-account pool without colliding (see
``USER_OFFSET``).  Every value has a default; an unset environment
yields a runnable configuration.

Key Concepts Demonstrated:
- Environment-variable overrides for 12-factor style deployability
- Immutable settings object built once per process
- Fail-fast validation of malformed numeric values
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from sports_load.teams import TEAM_IDS

DEFAULT_BASE_URL = "https://api.chunkysports.com/api/v1"
DEFAULT_GUEST_TAG = "chunky-k6-guest"

# Pacing bounds in seconds, (min, max) for a uniform-random pause.
SLEEP_AFTER_LATEST = (0.3, 1.2)
SLEEP_AFTER_LOGIN = (0.2, 0.8)
SLEEP_BETWEEN_FEEDS = (0.6, 2.2)
SLEEP_BETWEEN_TEAM_ACTIONS = (0.4, 1.6)
SLEEP_AFTER_LOGIN_FAILURE = (1.0, 2.5)


def _default_test_tag() -> str:
    return f"true_user_{datetime.now(timezone.utc).isoformat()}"


@dataclass(frozen=True)
class Pacing:
    """Think-time bounds used between steps of the true-user flow."""

    after_latest: tuple[float, float] = SLEEP_AFTER_LATEST
    after_login: tuple[float, float] = SLEEP_AFTER_LOGIN
    between_feeds: tuple[float, float] = SLEEP_BETWEEN_FEEDS
    between_team_actions: tuple[float, float] = SLEEP_BETWEEN_TEAM_ACTIONS
    after_login_failure: tuple[float, float] = SLEEP_AFTER_LOGIN_FAILURE


@dataclass(frozen=True)
class Settings:
    """
    Resolved configuration for one load-generator process.

    Attributes:
        base_url: API root, including the version prefix.
        password: Shared password of every pre-provisioned test account.
        user_domain: Email domain of the test accounts.
        user_prefix: Local-part prefix of the test accounts.
        user_count: Size of the test-account pool (``testuser0001`` ..).
        user_offset: Per-load-generator offset into the pool.
        test_tag: Free-text tag sent with every request.
        guest_tag: Tag used by the guest flows; ``TEST_TAG`` overrides both.
        debug: Enables sampled failure logging.
        debug_sample_limit: Max failure lines logged per process.
        prob_user_teams_refresh: Chance of the first ``after_date``
            repeat on the user-teams feed.
        prob_user_teams_refresh_twice: Chance of the second repeat.
        prob_team_feed_refresh: Same as above, for each team feed.
        prob_team_feed_refresh_twice: Same as above, for each team feed.
        prob_do_summary: Chance of the team summary call per team.
        comments_per_feed: Upper bound on comment fan-out per feed page.
        team_count_min: Fewest teams visited per iteration.
        team_count_max: Most teams visited per iteration.
        request_timeout: Per-request timeout in seconds.
        pacing: Think-time bounds between steps.
    """

    base_url: str = DEFAULT_BASE_URL
    password: str = "Test1234!"
    user_domain: str = "chunky.test"
    user_prefix: str = "testuser"
    user_count: int = 99
    user_offset: int = 0
    test_tag: str = field(default_factory=_default_test_tag)
    guest_tag: str = DEFAULT_GUEST_TAG
    debug: bool = False
    debug_sample_limit: int = 10
    prob_user_teams_refresh: float = 1.0
    prob_user_teams_refresh_twice: float = 0.25
    prob_team_feed_refresh: float = 1.0
    prob_team_feed_refresh_twice: float = 0.20
    prob_do_summary: float = 0.25
    comments_per_feed: int = 3
    team_count_min: int = 2
    team_count_max: int = 5
    request_timeout: float = 30.0
    pacing: Pacing = field(default_factory=Pacing)

    def url(self, path: str) -> str:
        """Join *path* onto the configured base URL."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def for_guests(self) -> "Settings":
        """Copy of these settings that tags traffic with :attr:`guest_tag`."""
        return replace(self, test_tag=self.guest_tag)

    def with_base_url(self, base_url: str) -> "Settings":
        return replace(self, base_url=base_url)


def _read_int(environ: Mapping[str, str], key: str, default: int, minimum: int = 0) -> int:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw, 10)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc
    if value < minimum:
        raise ValueError(f"{key} must be >= {minimum}, got {value}")
    return value


def _read_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc


def _read_probability(environ: Mapping[str, str], key: str, default: float) -> float:
    return min(1.0, max(0.0, _read_float(environ, key, default)))


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Build :class:`Settings` from environment variables.

    Args:
        environ: Mapping to read from.  Defaults to ``os.environ``.

    Returns:
        A validated, immutable settings object.

    Raises:
        ValueError: If a numeric key is malformed or the team-count
            bounds are inconsistent.
    """
    if environ is None:
        environ = os.environ

    defaults = Settings()
    team_count_min = _read_int(environ, "TEAM_COUNT_MIN", defaults.team_count_min, minimum=1)
    team_count_max = _read_int(environ, "TEAM_COUNT_MAX", defaults.team_count_max, minimum=1)
    if team_count_min > team_count_max:
        raise ValueError(
            f"TEAM_COUNT_MIN ({team_count_min}) must not exceed TEAM_COUNT_MAX ({team_count_max})"
        )
    if team_count_max > len(TEAM_IDS):
        raise ValueError(f"TEAM_COUNT_MAX must be <= {len(TEAM_IDS)}")

    return Settings(
        base_url=environ.get("BASE_URL") or defaults.base_url,
        password=environ.get("PASSWORD") or defaults.password,
        user_domain=environ.get("USER_DOMAIN") or defaults.user_domain,
        user_prefix=environ.get("USER_PREFIX") or defaults.user_prefix,
        user_count=_read_int(environ, "USER_COUNT", defaults.user_count, minimum=1),
        user_offset=_read_int(environ, "USER_OFFSET", defaults.user_offset),
        test_tag=environ.get("TEST_TAG") or defaults.test_tag,
        guest_tag=environ.get("TEST_TAG") or defaults.guest_tag,
        debug=environ.get("DEBUG", "0") == "1",
        debug_sample_limit=_read_int(
            environ, "DEBUG_SAMPLE_LIMIT", defaults.debug_sample_limit
        ),
        prob_user_teams_refresh=_read_probability(
            environ, "PROB_USERTEAMS_REFRESH", defaults.prob_user_teams_refresh
        ),
        prob_user_teams_refresh_twice=_read_probability(
            environ, "PROB_USERTEAMS_REFRESH_TWICE", defaults.prob_user_teams_refresh_twice
        ),
        prob_team_feed_refresh=_read_probability(
            environ, "PROB_TEAMFEED_REFRESH", defaults.prob_team_feed_refresh
        ),
        prob_team_feed_refresh_twice=_read_probability(
            environ, "PROB_TEAMFEED_REFRESH_TWICE", defaults.prob_team_feed_refresh_twice
        ),
        prob_do_summary=_read_probability(environ, "PROB_DO_SUMMARY", defaults.prob_do_summary),
        comments_per_feed=_read_int(environ, "COMMENTS_PER_FEED", defaults.comments_per_feed),
        team_count_min=team_count_min,
        team_count_max=team_count_max,
        request_timeout=_read_float(environ, "REQUEST_TIMEOUT", defaults.request_timeout),
    )
