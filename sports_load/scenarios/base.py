"""
Shared abstract Locust user class for the sports API scenarios.

:class:`ChunkyApiUser` adapts Locust's ``HttpSession`` to the
harness's :class:`~sports_load.transport.EndpointClient`, so every
request is classified, recorded in the process-wide metrics registry,
and reported to Locust under its logical endpoint name.

Concrete user classes only declare a ``@task`` that runs one iteration
of their flow.  Think-time lives inside the flows, so ``wait_time`` is
zero between iterations.

The target defaults to ``BASE_URL``.  A ``--host`` given to Locust
replaces it and must include the API version prefix
(``https://staging.example.com/api/v1``).

Key Concepts Demonstrated:
- Abstract Locust base class for DRY scenario authoring
- Reusable worker slots so respawned users never share a test account
- Settings resolved once per process from the environment
- End-of-run summary and counters CSV written from a ``test_stop`` listener
"""

from __future__ import annotations

import logging
from pathlib import Path

from locust import HttpUser, constant, events
from locust.runners import MasterRunner

from sports_load.classifier import FailureSampler
from sports_load.config import Settings, load_settings
from sports_load.helpers import WorkerSlots
from sports_load.metrics import REGISTRY, write_counters_csv
from sports_load.transport import EndpointClient, LocustTransport

logger = logging.getLogger(__name__)

SETTINGS = load_settings()

# Process-wide caps on sampled failure logging.
FAILURE_SAMPLER = FailureSampler(SETTINGS.debug, SETTINGS.debug_sample_limit)
GAMES_FAILURE_SAMPLER = FailureSampler(
    SETTINGS.debug, SETTINGS.debug_sample_limit, label="GAMES_FAIL"
)

WORKER_SLOTS = WorkerSlots()


class ChunkyApiUser(HttpUser):
    """
    Base user that owns an :class:`EndpointClient` bound to Locust.

    ``abstract = True`` tells Locust not to spawn this class directly,
    only its concrete subclasses.

    Attributes:
        settings: Configuration for this class; guest classes swap the tag.
        worker_index: Slot number held by this user while it runs.
        api: Client used by the flow for every call.
    """

    abstract = True
    host = SETTINGS.base_url
    wait_time = constant(0)
    settings: Settings = SETTINGS

    worker_index: int | None = None
    api: EndpointClient

    def on_start(self) -> None:
        """Claim a worker slot and bind the endpoint client to this user's session."""
        if self.host and self.host != self.settings.base_url:
            self.settings = self.settings.with_base_url(self.host)
        self.worker_index = WORKER_SLOTS.acquire()
        self.api = EndpointClient(
            LocustTransport(self.client, timeout=self.settings.request_timeout),
            self.settings,
            registry=REGISTRY,
            sampler=FAILURE_SAMPLER,
        )

    def on_stop(self) -> None:
        """Hand the worker slot back for the next user Locust spawns."""
        if self.worker_index is not None:
            WORKER_SLOTS.release(self.worker_index)
            self.worker_index = None


def _run_tags(environment) -> str:
    tags = {
        user_class.settings.test_tag
        for user_class in environment.user_classes
        if issubclass(user_class, ChunkyApiUser)
    }
    return ", ".join(sorted(tags)) or SETTINGS.test_tag


@events.test_stop.add_listener
def _print_endpoint_summary(environment, **_kwargs):
    """Print the per-endpoint table; on a master the workers print their own."""
    if isinstance(environment.runner, MasterRunner):
        return
    print()
    print(REGISTRY.render_summary(tag=_run_tags(environment)))

    csv_prefix = getattr(environment.parsed_options, "csv_prefix", None)
    if csv_prefix:
        path = Path(f"{csv_prefix}_counters.csv")
        write_counters_csv(path, REGISTRY.counters())
        logger.info("Wrote counters to %s", path)
