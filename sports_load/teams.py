"""
Team identifier pool used by the team-hopping part of the true-user flow.

Only IDs known to resolve on the API are listed.  Gaps are deliberate:

- NFL ``33``–``61`` are invalid placeholders on the server.
- ``62`` and ``155`` are unassigned.
- ``124`` is missing from the MLB range; ``123`` (Ducks) is listed once
  and counted under the NHL block.
- WNBA ``168`` is not a valid team.
"""

from __future__ import annotations

import random

NFL_TEAM_IDS = tuple(range(1, 33))
NBA_TEAM_IDS = tuple(range(63, 93))
MLB_TEAM_IDS = tuple(range(93, 123))
NHL_TEAM_IDS = (123,) + tuple(range(125, 155))
WNBA_TEAM_IDS = tuple(range(156, 168)) + (169, 170)

TEAM_IDS: tuple[int, ...] = (
    NFL_TEAM_IDS + NBA_TEAM_IDS + MLB_TEAM_IDS + NHL_TEAM_IDS + WNBA_TEAM_IDS
)

# Fallback team for guest flows when no team can be derived from a feed.
DEFAULT_GUEST_TEAM_ID = 5


def pick_unique_teams(count: int, rng: random.Random | None = None) -> list[int]:
    """
    Draw *count* distinct team IDs from :data:`TEAM_IDS` without replacement.

    Raises:
        ValueError: If *count* exceeds the size of the pool.
    """
    rng = rng or random.Random()
    return rng.sample(TEAM_IDS, count)
