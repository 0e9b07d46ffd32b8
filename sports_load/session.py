"""
The "true user" session flow.

One :class:`VirtualUserSession` exists per concurrent worker slot and is
reused for every iteration that worker runs, so a token obtained in one
iteration is reused by the next.  :class:`SessionFlow` executes one
iteration of the journey:

1. Guest ``latest`` feed, plus comment fan-out.
2. Auth bootstrap: log in when no token is cached, then probe
   ``/users/me`` once.  A failed login or a rejected token ends the
   iteration.
3. Authenticated ``user-teams`` feed, optionally replayed with an
   ``after_date`` cursor once or twice.
4. Pick 2-5 distinct teams.
5. Per team: guest team feed (same replay policy), then games screen
   and team top together, then sometimes the team summary.

Everything else that fails is recorded and the flow carries on.  A
401/403 on any authenticated call drops the token and ends the
iteration, so the next one starts with a fresh login.

Both replays of a feed reuse the cursor derived from the *first* page;
they are identical requests, modelling a user pulling to refresh twice.

Key Concepts Demonstrated:
- Explicit per-worker session object instead of module-level token state
- Injectable ``random.Random`` and sleep function for deterministic tests
- Soft failures vs. iteration-ending authentication failures
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from enum import Enum

from sports_load.config import Settings
from sports_load.credentials import CredentialManager, ProbeOutcome
from sports_load.endpoints import Endpoint, endpoint_path
from sports_load.feeds import extract_cursor, extract_item_ids
from sports_load.helpers import Sleeper, jitter_sleep, user_email
from sports_load.teams import pick_unique_teams
from sports_load.transport import ApiResponse, EndpointClient

logger = logging.getLogger(__name__)


class IterationOutcome(str, Enum):
    COMPLETED = "completed"
    LOGIN_FAILED = "login_failed"
    TOKEN_REJECTED = "token_rejected"


@dataclass
class VirtualUserSession:
    """
    One simulated end user, alive for the lifetime of a worker slot.

    Attributes:
        worker_index: Zero-based slot number within this process.
        credentials: Token lifecycle owned exclusively by this session.
        iterations: Number of iterations started so far.
    """

    worker_index: int
    credentials: CredentialManager
    iterations: int = field(default=0)

    @property
    def email(self) -> str:
        return self.credentials.email

    @classmethod
    def create(cls, settings: Settings, worker_index: int) -> "VirtualUserSession":
        """Create the session for *worker_index* with its test-account identity."""
        credentials = CredentialManager(user_email(settings, worker_index), settings.password)
        return cls(worker_index=worker_index, credentials=credentials)


class SessionFlow:
    """
    Run true-user iterations for one :class:`VirtualUserSession`.

    Args:
        api: Client that performs and records every call.
        settings: Probabilities, fan-out size, team bounds, and pacing.
        session: The worker's session; its token survives iterations.
        rng: Source of every random decision in the flow.
        sleep: Blocking pause function.
    """

    def __init__(
        self,
        api: EndpointClient,
        settings: Settings,
        session: VirtualUserSession,
        rng: random.Random | None = None,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self.api = api
        self.settings = settings
        self.session = session
        self.rng = rng or random.Random()
        self.sleep = sleep

    @property
    def credentials(self) -> CredentialManager:
        return self.session.credentials

    def run_iteration(self) -> IterationOutcome:
        """Execute one full journey and report how it ended."""
        self.session.iterations += 1
        pacing = self.settings.pacing

        # 1) Guest latest feed.
        latest = self.api.call(Endpoint.LATEST, endpoint_path(Endpoint.LATEST))
        self._fan_out_comments(latest, token=None)
        self._pause(pacing.after_latest)

        # 2) Auth bootstrap.
        outcome = self._bootstrap_auth()
        if outcome is not None:
            return outcome

        # 3) Authenticated user-teams feed.
        if not self._read_feed(
            Endpoint.USER_TEAMS,
            endpoint_path(Endpoint.USER_TEAMS),
            authenticated=True,
            prob_refresh=self.settings.prob_user_teams_refresh,
            prob_refresh_twice=self.settings.prob_user_teams_refresh_twice,
        ):
            return IterationOutcome.TOKEN_REJECTED
        self._pause(pacing.between_feeds)

        # 4) Team hops.
        team_count = self.rng.randint(self.settings.team_count_min, self.settings.team_count_max)
        for team_id in pick_unique_teams(team_count, self.rng):
            if not self._visit_team(team_id):
                return IterationOutcome.TOKEN_REJECTED

        return IterationOutcome.COMPLETED

    def _bootstrap_auth(self) -> IterationOutcome | None:
        """Ensure a validated token, or return the outcome that ends the iteration."""
        pacing = self.settings.pacing
        logged_in = False

        if not self.credentials.has_token:
            if not self.credentials.login(self.api):
                self._pause(pacing.after_login_failure)
                return IterationOutcome.LOGIN_FAILED
            logged_in = True

        # Re-hydration probe, once per iteration whether or not we just logged in.
        probe = self.credentials.probe(self.api)
        if probe.outcome is ProbeOutcome.INVALID:
            return IterationOutcome.TOKEN_REJECTED

        if logged_in:
            self._pause(pacing.after_login)
        return None

    def _visit_team(self, team_id: int) -> bool:
        """Run the per-team sequence; ``False`` means the token was rejected."""
        pacing = self.settings.pacing

        self._read_feed(
            Endpoint.TEAM_FEED,
            endpoint_path(Endpoint.TEAM_FEED, team_id=team_id),
            authenticated=False,
            prob_refresh=self.settings.prob_team_feed_refresh,
            prob_refresh_twice=self.settings.prob_team_feed_refresh_twice,
        )
        self._pause(pacing.between_team_actions)

        # Games and top are always issued together: one screen, two requests.
        self.api.call(Endpoint.GAMES_SCREEN, endpoint_path(Endpoint.GAMES_SCREEN, team_id=team_id))
        if not self._authenticated_call(
            Endpoint.TEAM_TOP, endpoint_path(Endpoint.TEAM_TOP, team_id=team_id)
        ):
            return False

        if self.rng.random() < self.settings.prob_do_summary:
            if not self._authenticated_call(
                Endpoint.SUMMARY, endpoint_path(Endpoint.SUMMARY, team_id=team_id)
            ):
                return False

        self._pause(pacing.between_feeds)
        return True

    def _read_feed(
        self,
        endpoint: Endpoint,
        path: str,
        *,
        authenticated: bool,
        prob_refresh: float,
        prob_refresh_twice: float,
    ) -> bool:
        """
        Read a feed, fan out to comments, and maybe replay it with a cursor.

        The cursor comes from the first page only and is reused verbatim
        for the second replay.

        Returns:
            ``False`` if an authenticated read was rejected with 401/403.
        """
        token = self.credentials.token if authenticated else None

        first = self._feed_call(endpoint, path, token)
        if first is None:
            return False

        cursor = extract_cursor(first.json()) if first.ok else None
        if cursor is None or self.rng.random() >= prob_refresh:
            return True

        replays = 2 if self.rng.random() < prob_refresh_twice else 1
        for _ in range(replays):
            if self._feed_call(endpoint, path, token, params={"after_date": cursor}) is None:
                return False
        return True

    def _feed_call(
        self,
        endpoint: Endpoint,
        path: str,
        token: str | None,
        params: dict[str, str] | None = None,
    ) -> ApiResponse | None:
        """One feed request plus comment fan-out; ``None`` if the token was rejected."""
        response = self.api.call(endpoint, path, token=token, params=params)
        if token is not None and not self.credentials.check_authorized(response):
            return None
        if not self._fan_out_comments(response, token):
            return None
        return response

    def _fan_out_comments(self, feed: ApiResponse, token: str | None) -> bool:
        """Open up to ``comments_per_feed`` comment threads from a feed page."""
        if not feed.ok:
            return True
        for lump_id in extract_item_ids(feed.json(), self.settings.comments_per_feed):
            response = self.api.call(
                Endpoint.COMMENTS_THREAD,
                endpoint_path(Endpoint.COMMENTS_THREAD, lump_id=lump_id),
                token=token,
            )
            if token is not None and not self.credentials.check_authorized(response):
                return False
        return True

    def _authenticated_call(self, endpoint: Endpoint, path: str) -> bool:
        token = self.credentials.token
        if token is None:
            return False
        response = self.api.call(endpoint, path, token=token)
        return self.credentials.check_authorized(response)

    def _pause(self, bounds: tuple[float, float]) -> None:
        jitter_sleep(bounds, self.rng, self.sleep)
