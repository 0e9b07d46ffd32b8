"""
Locust entrypoint for the sports API load tests.

This is the file the ``locust`` CLI loads.  It imports every concrete
user class and wires up an ``init`` listener that maps ``--tags``
values to user classes, so Locust only spawns the profiles the
operator asked for.  The per-endpoint summary is printed when the test
stops (see :mod:`sports_load.scenarios.base`).

Usage examples::

    # Logged-in journeys only, 50 users for an hour:
    locust -f sports_load/locustfile.py --headless --tags true_user \\
        -u 50 -r 5 -t 1h

    # Guest launch bursts:
    locust -f sports_load/locustfile.py --tags web mobile ...

    # Second load generator sharing the account pool:
    USER_OFFSET=50 locust -f sports_load/locustfile.py --tags true_user ...
"""

from __future__ import annotations

from locust import events

from sports_load.scenarios.guest import MobileGuestUser, WebGuestUser
from sports_load.scenarios.true_user import TrueUser

__all__ = ["TrueUser", "WebGuestUser", "MobileGuestUser"]

TAG_TO_USER_CLASS = {
    "true_user": TrueUser,
    "web": WebGuestUser,
    "mobile": MobileGuestUser,
}


@events.init.add_listener
def _filter_user_classes_by_tag(environment, **_kwargs):
    """
    Select user classes explicitly so ``--tags`` does not spawn empty classes.

    Locust's built-in tag filtering hides individual ``@task`` methods
    but still instantiates every user class.  Each class here is a whole
    traffic profile, so the listener replaces ``environment.user_classes``
    with only the requested ones.
    """
    parsed_options = environment.parsed_options
    selected_tags = set(getattr(parsed_options, "tags", None) or [])
    if not selected_tags:
        return

    selected_classes = [
        user_class
        for tag, user_class in TAG_TO_USER_CLASS.items()
        if tag in selected_tags
    ]
    if selected_classes:
        environment.user_classes = selected_classes

