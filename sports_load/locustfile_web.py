"""
Web guest step ramp: 5 -> 200 -> 400 -> 1000 -> 2000 -> 0 users.

Usage::

    locust -f sports_load/locustfile_web.py --headless --csv out/web
    python -m sports_load.check_thresholds --stats out/web_stats.csv --profile web_guest
"""

from __future__ import annotations

from locust import events

from sports_load import shapes
from sports_load.scenarios import guest


class WebStepUser(guest.WebGuestUser):
    pass


class WebStepShape(shapes.StagesShape):
    stages = shapes.WEB_STEP_STAGES
    start_users = shapes.WEB_STEP_START_USERS
    graceful_ramp_down = shapes.WEB_STEP_GRACEFUL_RAMP_DOWN


@events.init.add_listener
def _graceful_ramp_down(environment, **_kwargs):
    shapes.apply_graceful_ramp_down(environment, WebStepShape.graceful_ramp_down)
