"""
tzbuddy/projection.py
─────────────────────
Derives the read-only view of the directory that the UI renders:

  filter  → case-insensitive substring on name or zone identifier
  sort    → by name, or by current UTC offset (unresolved zones last)
  group   → one bucket, by first group label, or by zone identifier

project() returns [(bucket_key, [Teammate, …]), …] with buckets in ascending
key order. Nothing is cached; the input is never mutated.

teammate_payload() renders one teammate into the JSON row the dashboard shows.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from enum import Enum
from typing import Any, Iterable

from .clock import utc_offset_seconds, zone_clock, zone_display_name
from .models import Snapshot, Teammate

ALL_BUCKET = "All"
UNGROUPED = "Ungrouped"


class SortOrder(str, Enum):
    NAME = "name"
    TIME = "time"


class GroupMode(str, Enum):
    NONE = "none"
    GROUP = "group"
    TIME_ZONE = "timeZone"


def filter_teammates(teammates: Iterable[Teammate], search_text: str = "") -> list[Teammate]:
    needle = search_text.lower()
    if not needle:
        return list(teammates)
    return [
        t for t in teammates
        if needle in t.name.lower() or needle in t.time_zone_identifier.lower()
    ]


def sort_teammates(
    teammates: Iterable[Teammate],
    order: SortOrder = SortOrder.NAME,
    at: datetime | None = None,
) -> list[Teammate]:
    if order == SortOrder.TIME:
        def by_offset(t: Teammate) -> tuple[bool, int]:
            offset = utc_offset_seconds(t.time_zone_identifier, at)
            return (offset is None, offset or 0)

        return sorted(teammates, key=by_offset)
    return sorted(teammates, key=lambda t: t.name.lower())


def first_group(teammate: Teammate) -> str:
    """Bucket label for group mode: smallest label, or UNGROUPED."""
    return min(teammate.groups) if teammate.groups else UNGROUPED


def group_teammates(
    teammates: Iterable[Teammate], mode: GroupMode = GroupMode.NONE
) -> list[tuple[str, list[Teammate]]]:
    teammates = list(teammates)
    if mode == GroupMode.NONE:
        return [(ALL_BUCKET, teammates)]

    buckets: dict[str, list[Teammate]] = {}
    for t in teammates:
        key = first_group(t) if mode == GroupMode.GROUP else t.time_zone_identifier
        buckets.setdefault(key, []).append(t)
    return sorted(buckets.items(), key=lambda item: item[0])


def project(
    source: Snapshot | Iterable[Teammate],
    search_text: str = "",
    sort_order: SortOrder | str = SortOrder.NAME,
    group_mode: GroupMode | str = GroupMode.NONE,
    at: datetime | None = None,
) -> list[tuple[str, list[Teammate]]]:
    """
    Filter, sort then group. sort_order / group_mode accept the enum or its
    string value and raise ValueError for anything else.
    """
    teammates = source.teammates if isinstance(source, Snapshot) else source
    filtered = filter_teammates(teammates, search_text)
    ordered = sort_teammates(filtered, SortOrder(sort_order), at)
    return group_teammates(ordered, GroupMode(group_mode))


def teammate_payload(
    teammate: Teammate,
    at: datetime | None = None,
    local: tzinfo | None = None,
) -> dict[str, Any]:
    clock = zone_clock(teammate.time_zone_identifier, at, local)
    return {
        "id":                 teammate.id,
        "name":               teammate.name,
        "timeZoneIdentifier": teammate.time_zone_identifier,
        "zoneName":           zone_display_name(teammate.time_zone_identifier),
        "localTime":          clock.local_time,
        "timeDifference":     clock.time_difference,
        "email":              teammate.email,
        "slackId":            teammate.slack_id,
        "groups":             sorted(teammate.groups),
        "hasImage":           teammate.image_data is not None,
    }
