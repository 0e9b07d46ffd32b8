"""
Run a few true-user iterations without Locust.

Handy for checking that a host, the test accounts, and the feed
shapes all line up before starting a long load test::

    BASE_URL=https://staging.example.com/api/v1 \\
        python -m sports_load.run_once --iterations 3 --seed 42 --no-sleep

The per-endpoint summary is printed at the end.  Exit code is ``0``
when every iteration completed and ``1`` otherwise.
"""

from __future__ import annotations

import argparse
import logging
import random
import time

from sports_load.config import load_settings
from sports_load.metrics import MetricsRegistry
from sports_load.session import IterationOutcome, SessionFlow, VirtualUserSession
from sports_load.transport import EndpointClient, RequestsTransport

logger = logging.getLogger(__name__)


def _no_sleep(_seconds: float) -> None:
    return None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run true-user iterations against BASE_URL.")
    parser.add_argument("--iterations", type=int, default=1, help="Iterations to run")
    parser.add_argument("--worker-index", type=int, default=0, help="Test-account slot")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the flow's RNG")
    parser.add_argument(
        "--no-sleep", action="store_true", help="Skip think-time pauses between steps"
    )
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = load_settings()
    registry = MetricsRegistry()
    api = EndpointClient(
        RequestsTransport(timeout=settings.request_timeout), settings, registry=registry
    )
    session = VirtualUserSession.create(settings, args.worker_index)
    flow = SessionFlow(
        api,
        settings,
        session,
        rng=random.Random(args.seed),
        sleep=_no_sleep if args.no_sleep else time.sleep,
    )

    logger.info(
        "Running %s iteration(s) as %s against %s",
        args.iterations,
        session.email,
        settings.base_url,
    )
    outcomes = [flow.run_iteration() for _ in range(args.iterations)]
    for number, outcome in enumerate(outcomes, start=1):
        logger.info("iteration %s: %s", number, outcome.value)

    print(registry.render_summary(tag=settings.test_tag))
    return 0 if all(outcome is IterationOutcome.COMPLETED for outcome in outcomes) else 1


if __name__ == "__main__":
    raise SystemExit(main())
