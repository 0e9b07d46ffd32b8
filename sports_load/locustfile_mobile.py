"""
Mobile guest step ramp: 5 -> 200 -> 600 -> 1200 -> 2400 -> 0 users.

Usage::

    locust -f sports_load/locustfile_mobile.py --headless --csv out/mobile
    python -m sports_load.check_thresholds --stats out/mobile_stats.csv --profile mobile_guest
"""

from __future__ import annotations

from locust import events

from sports_load import shapes
from sports_load.scenarios import guest


class MobileStepUser(guest.MobileGuestUser):
    pass


class MobileStepShape(shapes.StagesShape):
    stages = shapes.MOBILE_STEP_STAGES
    start_users = shapes.MOBILE_STEP_START_USERS
    graceful_ramp_down = shapes.MOBILE_STEP_GRACEFUL_RAMP_DOWN


@events.init.add_listener
def _graceful_ramp_down(environment, **_kwargs):
    shapes.apply_graceful_ramp_down(environment, MobileStepShape.graceful_ramp_down)
