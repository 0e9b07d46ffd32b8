"""
Blended web + mobile guest ramp.

Runs both guest profiles at once under one stage plan: the sum of the
web plan (peaking at 160 users) and the mobile plan (peaking at 65).
Class weights keep roughly the same web:mobile split.

Usage::

    locust -f sports_load/locustfile_blended.py --headless
"""

from __future__ import annotations

from sports_load import shapes
from sports_load.scenarios import guest


class BlendedWebUser(guest.WebGuestUser):
    weight = 5


class BlendedMobileUser(guest.MobileGuestUser):
    weight = 2


class BlendedShape(shapes.StagesShape):
    stages = shapes.combine_stages(shapes.WEB_STAGES, shapes.MOBILE_STAGES)
    start_users = shapes.WEB_START_USERS + shapes.MOBILE_START_USERS
