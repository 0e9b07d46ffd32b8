"""
Unit tests for identity, header, pacing, and team-pool helpers.
"""

from __future__ import annotations

import random
import uuid

import pytest

from sports_load.config import Settings
from sports_load.helpers import WorkerSlots, auth_header, guest_header, jitter_sleep, user_email
from sports_load.teams import TEAM_IDS, pick_unique_teams

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "offset, worker_index, expected",
    [
        (0, 0, "testuser0001@chunky.test"),
        (0, 98, "testuser0099@chunky.test"),
        (0, 99, "testuser0001@chunky.test"),
        (50, 0, "testuser0051@chunky.test"),
        (50, 60, "testuser0012@chunky.test"),
    ],
)
def test_user_email_cycles_through_pool(offset, worker_index, expected):
    settings = Settings(user_offset=offset)

    assert user_email(settings, worker_index) == expected


def test_guest_header_carries_tag_and_fresh_request_id():
    first = guest_header("run-1")
    second = guest_header("run-1")

    assert first["X-Test-Tag"] == "run-1"
    assert "Authorization" not in first
    assert first["X-Request-Id"] != second["X-Request-Id"]
    uuid.UUID(first["X-Request-Id"])


def test_auth_header_adds_bearer_token():
    headers = auth_header("abc", "run-1")

    assert headers["Authorization"] == "Bearer abc"
    assert headers["X-Test-Tag"] == "run-1"


def test_jitter_sleep_stays_within_bounds():
    slept: list[float] = []
    rng = random.Random(7)

    for _ in range(50):
        jitter_sleep((0.4, 1.6), rng, slept.append)

    assert len(slept) == 50
    assert all(0.4 <= value <= 1.6 for value in slept)


def test_team_pool_skips_known_invalid_ranges():
    assert len(TEAM_IDS) == len(set(TEAM_IDS))
    assert not set(range(33, 62)) & set(TEAM_IDS)
    assert 124 not in TEAM_IDS
    assert 168 not in TEAM_IDS
    assert {1, 32, 63, 92, 93, 123, 154, 170} <= set(TEAM_IDS)


def test_pick_unique_teams_without_replacement():
    teams = pick_unique_teams(5, random.Random(3))

    assert len(teams) == len(set(teams)) == 5
    assert set(teams) <= set(TEAM_IDS)


def test_pick_unique_teams_rejects_oversized_request():
    with pytest.raises(ValueError):
        pick_unique_teams(len(TEAM_IDS) + 1)


class TestWorkerSlots:
    def test_hands_out_increasing_slots(self):
        slots = WorkerSlots()

        assert [slots.acquire() for _ in range(3)] == [0, 1, 2]
        assert slots.in_use == 3

    def test_reuses_lowest_released_slot(self):
        # Arrange
        slots = WorkerSlots()
        for _ in range(5):
            slots.acquire()

        # Act
        slots.release(3)
        slots.release(1)

        # Assert
        assert slots.acquire() == 1
        assert slots.acquire() == 3
        assert slots.acquire() == 5

    def test_double_release_and_unknown_slots_are_ignored(self):
        slots = WorkerSlots()
        slots.acquire()

        slots.release(0)
        slots.release(0)
        slots.release(42)

        assert slots.in_use == 0
        assert slots.acquire() == 0
        assert slots.acquire() == 1

    def test_live_slots_map_to_distinct_accounts(self):
        settings = Settings(user_count=10)
        slots = WorkerSlots()
        held = [slots.acquire() for _ in range(10)]
        for slot in held[:4]:
            slots.release(slot)

        held = held[4:] + [slots.acquire() for _ in range(4)]

        assert len({user_email(settings, slot) for slot in held}) == 10
