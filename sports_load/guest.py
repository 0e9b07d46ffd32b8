"""
Guest-only browsing flows (web and mobile clients).

Both flows model an app launch without an account: latest feed, then a
team feed for a team picked from that feed, then the team's games
screen.  The games screen has been the least stable endpoint, so its
failures are split into 4xx / 5xx / other counters and a small sample
of failing responses is logged.

Key Concepts Demonstrated:
- One parameterised flow instead of two near-identical scripts
- Failure classification counters kept in the shared registry
- Capped diagnostic logging for a noisy endpoint
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass

from sports_load.classifier import FailureSampler, body_preview
from sports_load.endpoints import Endpoint, endpoint_path
from sports_load.feeds import pick_team_id
from sports_load.helpers import Sleeper, jitter_sleep
from sports_load.teams import DEFAULT_GUEST_TEAM_ID
from sports_load.transport import EndpointClient

GAMES_FAIL_4XX = "games_fail_4xx"
GAMES_FAIL_5XX = "games_fail_5xx"
GAMES_FAIL_OTHER = "games_fail_other"


@dataclass(frozen=True)
class GuestProfile:
    """Client identity and pacing of one guest flavour."""

    name: str
    user_agent: str
    after_latest: tuple[float, float]
    after_team: tuple[float, float]
    idle: tuple[float, float]


WEB_PROFILE = GuestProfile(
    name="web",
    user_agent="ChunkySports-WebLoadTest/1.0",
    after_latest=(0.3, 1.3),
    after_team=(0.6, 1.8),
    idle=(1.0, 2.5),
)

MOBILE_PROFILE = GuestProfile(
    name="mobile",
    user_agent="ChunkySports-MobileLoadTest/1.0 (Expo)",
    after_latest=(0.2, 0.8),
    after_team=(0.2, 0.8),
    idle=(1.0, 3.0),
)


def games_failure_counter(status_code: int) -> str:
    """Name of the counter a failed games-screen status belongs to."""
    if 400 <= status_code < 500:
        return GAMES_FAIL_4XX
    if 500 <= status_code < 600:
        return GAMES_FAIL_5XX
    return GAMES_FAIL_OTHER


class GuestFlow:
    """Run guest iterations for one :class:`GuestProfile`."""

    def __init__(
        self,
        api: EndpointClient,
        profile: GuestProfile,
        sampler: FailureSampler | None = None,
        rng: random.Random | None = None,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self.api = api
        self.profile = profile
        self.sampler = sampler or FailureSampler(
            enabled=api.settings.debug,
            limit=api.settings.debug_sample_limit,
            label="GAMES_FAIL",
        )
        self.rng = rng or random.Random()
        self.sleep = sleep

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.profile.user_agent,
            "X-Loadtest": self.api.settings.test_tag,
        }

    def run_iteration(self) -> int:
        """Execute latest -> team feed -> games screen; return the team visited."""
        headers = self._headers()

        latest = self.api.call(
            Endpoint.LATEST, endpoint_path(Endpoint.LATEST), extra_headers=headers
        )
        team_id = pick_team_id(latest.json(), DEFAULT_GUEST_TEAM_ID, self.rng)
        jitter_sleep(self.profile.after_latest, self.rng, self.sleep)

        self.api.call(
            Endpoint.TEAM_FEED,
            endpoint_path(Endpoint.TEAM_FEED, team_id=team_id),
            extra_headers=headers,
        )
        jitter_sleep(self.profile.after_team, self.rng, self.sleep)

        games = self.api.call(
            Endpoint.GAMES_SCREEN,
            endpoint_path(Endpoint.GAMES_SCREEN, team_id=team_id),
            extra_headers=headers,
        )
        if not games.ok:
            self.api.registry.counter(games_failure_counter(games.status_code)).add()
            self.sampler.maybe_log(
                "teamId=%s status=%s body=%r",
                team_id,
                games.status_code,
                body_preview(games.body),
            )

        jitter_sleep(self.profile.idle, self.rng, self.sleep)
        return team_id
