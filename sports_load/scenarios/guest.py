"""
Guest launch-burst Locust scenarios.

:class:`WebGuestUser` and :class:`MobileGuestUser` run the same
latest -> team -> games sequence with different client headers and
pacing; see :mod:`sports_load.guest`.
"""

from __future__ import annotations

from locust import tag, task

from sports_load.guest import MOBILE_PROFILE, WEB_PROFILE, GuestFlow, GuestProfile
from sports_load.scenarios.base import GAMES_FAILURE_SAMPLER, SETTINGS, ChunkyApiUser


class _GuestUser(ChunkyApiUser):
    abstract = True
    settings = SETTINGS.for_guests()
    profile: GuestProfile
    flow: GuestFlow

    def on_start(self) -> None:
        super().on_start()
        self.flow = GuestFlow(self.api, self.profile, sampler=GAMES_FAILURE_SAMPLER)

    @task
    def launch(self) -> None:
        self.flow.run_iteration()


@tag("web")
class WebGuestUser(_GuestUser):
    """Browser guest: slightly longer think-time than mobile."""

    profile = WEB_PROFILE


@tag("mobile")
class MobileGuestUser(_GuestUser):
    """Expo app guest: short bursts, longer idle."""

    profile = MOBILE_PROFILE
