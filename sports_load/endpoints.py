"""
Logical endpoints of the sports-content API.

Each member names one class of call that is tracked independently in
the run summary, no matter how many physical requests it produces
(``after_date`` repeats of a feed still count under that feed).
"""

from __future__ import annotations

from enum import Enum


class Endpoint(str, Enum):
    """Logical endpoint names, in summary-table order."""

    LATEST = "latest"
    LOGIN = "login"
    ME = "me"
    USER_TEAMS = "user-teams"
    TEAM_FEED = "team-feed"
    GAMES_SCREEN = "games-screen"
    TEAM_TOP = "team-top"
    SUMMARY = "summary"
    COMMENTS_THREAD = "comments-thread"


# Path templates relative to the configured base URL.
ENDPOINT_PATHS: dict[Endpoint, str] = {
    Endpoint.LATEST: "/lumps/latest",
    Endpoint.LOGIN: "/users/login",
    Endpoint.ME: "/users/me",
    Endpoint.USER_TEAMS: "/lumps/user-teams",
    Endpoint.TEAM_FEED: "/lumps/team/{team_id}",
    Endpoint.GAMES_SCREEN: "/games/by-team/{team_id}/screen",
    Endpoint.TEAM_TOP: "/lumps/team/{team_id}/top",
    Endpoint.SUMMARY: "/lumps/summary/team/{team_id}",
    Endpoint.COMMENTS_THREAD: "/comments/lump/{lump_id}",
}


def endpoint_path(endpoint: Endpoint, **params: object) -> str:
    """Render the path template for *endpoint* with *params*."""
    return ENDPOINT_PATHS[endpoint].format(**params)
