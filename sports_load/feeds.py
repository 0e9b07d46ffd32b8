"""
Feed payload helpers: pagination cursors and fan-out item IDs.

Feed-shaped endpoints (latest, user-teams, team feeds, team top) return
a list of "lumps".  The flows only need two things from a page:

- an ``after_date`` cursor (the newest timestamp on the page) used to
  replay the feed as a pull-to-refresh, and
- a handful of lump IDs used to open comment threads.

Every helper here returns ``None`` or an empty list for unusable input
instead of raising; a malformed page simply disables the optional
follow-up step for that call.

Key Concepts Demonstrated:
- Presence-based branching instead of exception suppression
- Bounded fan-out to cap request amplification per feed page
"""

from __future__ import annotations

import json
import random
from collections.abc import Sequence
from typing import Any

# Tolerated list fields, in lookup order.
ITEM_LIST_FIELDS = ("lumps", "top_lumps")
ITEM_ID_FIELDS = ("id", "lump_id")
TEAM_ID_FIELDS = ("team_id", "source_id")

DEFAULT_MAX_ITEM_IDS = 3


def safe_json(body: str | bytes | None) -> Any | None:
    """Parse *body* as JSON, returning ``None`` when it is empty or invalid."""
    if body is None:
        return None
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not body.strip():
        return None
    try:
        return json.loads(body)
    except ValueError:
        return None


def feed_items(payload: Any) -> list[dict[str, Any]]:
    """
    Return the item records of a feed page.

    The first field in :data:`ITEM_LIST_FIELDS` holding a non-empty list
    wins.  Non-dict entries are dropped.
    """
    if not isinstance(payload, dict):
        return []
    for field_name in ITEM_LIST_FIELDS:
        items = payload.get(field_name)
        if isinstance(items, list) and items:
            return [item for item in items if isinstance(item, dict)]
    return []


def extract_cursor(payload: Any) -> str | None:
    """
    Derive an ``after_date`` cursor from a feed page.

    Each item contributes ``updated_at`` if set, else ``created_at``.
    Values are compared as plain strings, which orders correctly only
    while the API emits one fixed-width ISO-8601 format.

    Returns:
        The lexically greatest timestamp, or ``None`` if the page has no
        items or none of them carries a timestamp.
    """
    newest: str | None = None
    for item in feed_items(payload):
        stamp = item.get("updated_at") or item.get("created_at")
        if not isinstance(stamp, str) or not stamp:
            continue
        if newest is None or stamp > newest:
            newest = stamp
    return newest


def _coerce_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            return None
    return None


def extract_item_ids(payload: Any, max_count: int = DEFAULT_MAX_ITEM_IDS) -> list[int]:
    """
    Collect up to *max_count* distinct positive item IDs in page order.

    Items whose ID is missing, non-numeric, non-positive, or already
    collected are skipped.
    """
    if max_count <= 0:
        return []

    ids: list[int] = []
    for item in feed_items(payload):
        raw = next(
            (item[name] for name in ITEM_ID_FIELDS if item.get(name) is not None),
            None,
        )
        item_id = _coerce_id(raw)
        if item_id is None or item_id <= 0 or item_id in ids:
            continue
        ids.append(item_id)
        if len(ids) >= max_count:
            break
    return ids


def pick_team_id(payload: Any, default: int, rng: random.Random | None = None) -> int:
    """
    Pick a random feed item and return its team, falling back to *default*.

    Used by the guest flows to jump from the latest feed to a team page.
    """
    items: Sequence[dict[str, Any]] = feed_items(payload)
    if not items:
        return default
    item = (rng or random).choice(items)
    for name in TEAM_ID_FIELDS:
        team_id = _coerce_id(item.get(name))
        if team_id is not None and team_id > 0:
            return team_id
    return default
