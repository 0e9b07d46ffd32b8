"""
Logged-in "true user" Locust scenario.

Defines :class:`TrueUser`.  Each Locust user keeps one
:class:`~sports_load.session.VirtualUserSession` for its whole life, so
the token from the first login is reused across iterations until the
API rejects it.
"""

from __future__ import annotations

import logging

from locust import tag, task

from sports_load.scenarios.base import ChunkyApiUser
from sports_load.session import IterationOutcome, SessionFlow, VirtualUserSession

logger = logging.getLogger(__name__)


@tag("true_user")
class TrueUser(ChunkyApiUser):
    """Guest browse, login, authenticated feeds, then 2-5 team hops per iteration."""

    session: VirtualUserSession
    flow: SessionFlow

    def on_start(self) -> None:
        super().on_start()
        self.session = VirtualUserSession.create(self.settings, self.worker_index)
        self.flow = SessionFlow(self.api, self.settings, self.session)
        logger.debug("worker %s using %s", self.worker_index, self.session.email)

    @task
    def journey(self) -> None:
        outcome = self.flow.run_iteration()
        if outcome is not IterationOutcome.COMPLETED:
            logger.debug(
                "iteration %s for %s ended early: %s",
                self.session.iterations,
                self.session.email,
                outcome.value,
            )
