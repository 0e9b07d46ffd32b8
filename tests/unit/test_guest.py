"""
Unit tests for the web and mobile guest flows.

Key Concepts Demonstrated:
- Parameterised flows sharing one implementation
- Failure-class counters for the games screen
- Capped failure sampling observed through ``caplog``
"""

from __future__ import annotations

import dataclasses
import logging

import pytest

from sports_load.classifier import FailureSampler
from sports_load.config import Settings
from sports_load.endpoints import Endpoint
from sports_load.guest import (
    GAMES_FAIL_4XX,
    GAMES_FAIL_5XX,
    GAMES_FAIL_OTHER,
    MOBILE_PROFILE,
    WEB_PROFILE,
    GuestFlow,
    games_failure_counter,
)
from sports_load.teams import DEFAULT_GUEST_TEAM_ID
from sports_load.transport import EndpointClient
from tests.fakes import json_response, status_response

pytestmark = pytest.mark.unit


class TestGamesFailureCounter:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (400, GAMES_FAIL_4XX),
            (404, GAMES_FAIL_4XX),
            (499, GAMES_FAIL_4XX),
            (500, GAMES_FAIL_5XX),
            (503, GAMES_FAIL_5XX),
            (0, GAMES_FAIL_OTHER),
            (302, GAMES_FAIL_OTHER),
        ],
    )
    def test_status_classes(self, status, expected):
        assert games_failure_counter(status) == expected


class TestGuestFlow:
    def test_visits_team_taken_from_latest_feed(self, api, transport, rng, record_sleep, sleeps):
        # Arrange
        transport.script["latest"] = json_response({"lumps": [{"id": 1, "team_id": 63}]})
        flow = GuestFlow(api, WEB_PROFILE, rng=rng, sleep=record_sleep)

        # Act
        team_id = flow.run_iteration()

        # Assert
        assert team_id == 63
        assert transport.names() == ["latest", "team-feed", "games-screen"]
        assert transport.calls_to("team-feed")[0].path == "/api/v1/lumps/team/63"
        assert transport.calls_to("games-screen")[0].path == "/api/v1/games/by-team/63/screen"
        assert len(sleeps) == 3

    def test_falls_back_to_default_team(self, api, transport, rng, record_sleep):
        transport.script["latest"] = status_response(500)
        flow = GuestFlow(api, MOBILE_PROFILE, rng=rng, sleep=record_sleep)

        assert flow.run_iteration() == DEFAULT_GUEST_TEAM_ID

    def test_sends_client_identity_headers(self, api, transport, rng, record_sleep):
        flow = GuestFlow(api, MOBILE_PROFILE, rng=rng, sleep=record_sleep)

        flow.run_iteration()

        for call in transport.calls:
            assert call.headers["User-Agent"] == MOBILE_PROFILE.user_agent
            assert call.headers["X-Loadtest"] == "pytest-run"
            assert "Authorization" not in call.headers

    def test_guest_settings_tag_guest_traffic(self, transport, registry, rng, record_sleep):
        guest_settings = Settings(base_url="http://api.test/api/v1").for_guests()
        api = EndpointClient(transport, guest_settings, registry=registry)
        flow = GuestFlow(api, WEB_PROFILE, rng=rng, sleep=record_sleep)

        flow.run_iteration()

        for call in transport.calls:
            assert call.headers["X-Loadtest"] == "chunky-k6-guest"
            assert call.headers["X-Test-Tag"] == "chunky-k6-guest"

    def test_pauses_follow_profile_bounds(self, api, transport, rng, record_sleep, sleeps):
        flow = GuestFlow(api, WEB_PROFILE, rng=rng, sleep=record_sleep)

        flow.run_iteration()

        bounds = [WEB_PROFILE.after_latest, WEB_PROFILE.after_team, WEB_PROFILE.idle]
        for (low, high), slept in zip(bounds, sleeps):
            assert low <= slept <= high

    def test_games_failures_are_counted_by_class(self, api, transport, registry, rng, record_sleep):
        transport.script["games-screen"] = [
            status_response(404),
            status_response(502),
            status_response(0),
            json_response({"games": []}),
        ]
        flow = GuestFlow(api, WEB_PROFILE, rng=rng, sleep=record_sleep)

        for _ in range(4):
            flow.run_iteration()

        assert registry.counters() == {
            GAMES_FAIL_4XX: 1,
            GAMES_FAIL_5XX: 1,
            GAMES_FAIL_OTHER: 1,
        }
        games = registry.bucket(Endpoint.GAMES_SCREEN).snapshot()
        assert (games.requests, games.failures) == (4, 3)

    def test_failure_sampling_is_capped(self, transport, settings, registry, rng, record_sleep, caplog):
        # Arrange
        debug_settings = dataclasses.replace(settings, debug=True)
        api = EndpointClient(
            transport, debug_settings, registry=registry, sampler=FailureSampler(enabled=False)
        )
        sampler = FailureSampler(enabled=True, limit=2, label="GAMES_FAIL")
        transport.script["games-screen"] = status_response(500, body="x" * 500)
        flow = GuestFlow(api, WEB_PROFILE, sampler=sampler, rng=rng, sleep=record_sleep)

        # Act
        with caplog.at_level(logging.INFO, logger="sports_load.classifier"):
            for _ in range(5):
                flow.run_iteration()

        # Assert
        lines = [record.getMessage() for record in caplog.records if "GAMES_FAIL" in record.getMessage()]
        assert len(lines) == 2
        assert sampler.logged == 2
        assert "status=500" in lines[0]
        assert "x" * 201 not in lines[0]
        assert registry.counters()[GAMES_FAIL_5XX] == 5

    def test_sampler_disabled_without_debug(self, api, transport, rng, record_sleep, caplog):
        transport.script["games-screen"] = status_response(500)
        flow = GuestFlow(api, WEB_PROFILE, rng=rng, sleep=record_sleep)

        with caplog.at_level(logging.INFO, logger="sports_load.classifier"):
            flow.run_iteration()

        assert flow.sampler.logged == 0
        assert not [r for r in caplog.records if "GAMES_FAIL" in r.getMessage()]
