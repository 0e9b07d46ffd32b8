"""
Unit tests for feed cursor and item-ID extraction.
"""

from __future__ import annotations

import random

import pytest

from sports_load.feeds import (
    extract_cursor,
    extract_item_ids,
    feed_items,
    pick_team_id,
    safe_json,
)

pytestmark = pytest.mark.unit


class TestExtractCursor:
    def test_returns_lexical_max_of_resolved_timestamps(self):
        payload = {
            "lumps": [
                {"updated_at": "2024-01-01"},
                {"updated_at": "2024-01-03"},
                {"created_at": "2024-01-02"},
            ]
        }

        assert extract_cursor(payload) == "2024-01-03"

    def test_prefers_updated_at_over_created_at_per_item(self):
        payload = {
            "lumps": [
                {"created_at": "2024-05-01", "updated_at": "2024-02-01"},
                {"created_at": "2024-03-01"},
            ]
        }

        # First item resolves to its updated_at, so created_at 2024-05-01 is ignored.
        assert extract_cursor(payload) == "2024-03-01"

    @pytest.mark.parametrize(
        "payload",
        [None, {}, {"lumps": []}, {"lumps": None}, {"lumps": "nope"}, [], "text"],
    )
    def test_missing_or_empty_items_returns_none(self, payload):
        assert extract_cursor(payload) is None

    def test_items_without_timestamps_return_none(self):
        assert extract_cursor({"lumps": [{"id": 1}, {"id": 2, "updated_at": None}]}) is None

    def test_falls_back_to_top_lumps_field(self):
        payload = {"lumps": [], "top_lumps": [{"created_at": "2024-07-04T10:00:00Z"}]}

        assert extract_cursor(payload) == "2024-07-04T10:00:00Z"

    def test_comparison_is_lexical_not_chronological(self):
        # Mixed formats are not normalised: "2024-1-9" sorts after "2024-01-10".
        payload = {"lumps": [{"created_at": "2024-01-10"}, {"created_at": "2024-1-9"}]}

        assert extract_cursor(payload) == "2024-1-9"


class TestExtractItemIds:
    def test_takes_first_ids_in_encounter_order(self):
        payload = {"lumps": [{"id": n} for n in (11, 12, 13, 14, 15)]}

        assert extract_item_ids(payload, max_count=3) == [11, 12, 13]

    def test_skips_duplicate_and_fills_from_later_items(self):
        payload = {"lumps": [{"id": 11}, {"id": 11}, {"id": 12}, {"id": 13}, {"id": 14}]}

        assert extract_item_ids(payload, max_count=3) == [11, 12, 13]

    def test_skips_missing_non_positive_and_non_numeric_ids(self):
        payload = {
            "lumps": [
                {"title": "no id"},
                {"id": 0},
                {"id": -4},
                {"id": "abc"},
                {"id": True},
                {"id": "7"},
                {"lump_id": 9},
                "not-a-dict",
                {"id": 21.0},
            ]
        }

        assert extract_item_ids(payload, max_count=5) == [7, 9, 21]

    def test_default_cap_is_three(self, feed_page):
        assert len(extract_item_ids(feed_page(count=10))) == 3

    def test_zero_cap_returns_nothing(self, feed_page):
        assert extract_item_ids(feed_page(count=2), max_count=0) == []

    def test_unusable_payload_returns_empty(self):
        assert extract_item_ids(None) == []
        assert extract_item_ids({"lumps": []}) == []


def test_feed_items_drops_non_dict_entries():
    assert feed_items({"lumps": [{"id": 1}, 2, None]}) == [{"id": 1}]


def test_safe_json_returns_none_for_invalid_bodies():
    assert safe_json('{"token": "abc"}') == {"token": "abc"}
    assert safe_json(b'{"a": 1}') == {"a": 1}
    assert safe_json("<html>502</html>") is None
    assert safe_json("") is None
    assert safe_json(None) is None


def test_pick_team_id_prefers_team_id_then_source_id():
    rng = random.Random(0)

    assert pick_team_id({"lumps": [{"team_id": 63, "source_id": 2}]}, 5, rng) == 63
    assert pick_team_id({"lumps": [{"source_id": 93}]}, 5, rng) == 93


def test_pick_team_id_defaults_when_nothing_usable():
    assert pick_team_id({"lumps": [{"id": 1}]}, 5) == 5
    assert pick_team_id(None, 5) == 5
