"""
tzbuddy/clock.py
────────────────
Time-zone arithmetic for teammate rows.

An identifier that does not resolve (typo, zone removed from tzdata, "") never
raises: offsets come back as None and display strings come back empty.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import config

SAME_TIME = "Same time"


def resolve_zone(identifier: str) -> ZoneInfo | None:
    if not identifier:
        return None
    try:
        return ZoneInfo(identifier)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


def viewer_zone() -> tzinfo:
    """The local zone rows are compared against (TZBUDDY_LOCAL_TZ or system)."""
    override = resolve_zone(config.local_zone_name())
    if override is not None:
        return override
    return datetime.now().astimezone().tzinfo or timezone.utc


def _viewer_offset(moment: datetime, local: tzinfo | None) -> int:
    zone = local if local is not None else resolve_zone(config.local_zone_name())
    # No override: the system zone, evaluated at moment so DST is honoured
    offset = (moment.astimezone(zone) if zone else moment.astimezone()).utcoffset()
    return int(offset.total_seconds()) if offset is not None else 0


def _instant(at: datetime | None) -> datetime:
    if at is None:
        return datetime.now(timezone.utc)
    if at.tzinfo is None:
        return at.replace(tzinfo=timezone.utc)
    return at


def utc_offset_seconds(identifier: str, at: datetime | None = None) -> int | None:
    zone = resolve_zone(identifier)
    if zone is None:
        return None
    offset = _instant(at).astimezone(zone).utcoffset()
    return int(offset.total_seconds()) if offset is not None else None


def local_time(identifier: str, at: datetime | None = None, style: str | None = None) -> str:
    """Short time of day in the target zone, e.g. "3:05 PM" or "15:05"."""
    zone = resolve_zone(identifier)
    if zone is None:
        return ""
    moment = _instant(at).astimezone(zone)
    if (style or config.clock_style()) == "24h":
        return moment.strftime("%H:%M")
    return f"{moment.hour % 12 or 12}:{moment:%M %p}"


def time_difference(
    identifier: str, at: datetime | None = None, local: tzinfo | None = None
) -> str:
    """
    Whole-hour gap between the target zone and the viewer's zone:
    "Same time", "+9h" or "-5h".

    Offsets that are not whole hours are truncated toward zero, so a viewer in
    UTC sees Asia/Kolkata (+5:30) as "+5h".
    """
    target = utc_offset_seconds(identifier, at)
    if target is None:
        return ""
    mine = _viewer_offset(_instant(at), local)
    hours = int((target - mine) / 3600)
    if hours == 0:
        return SAME_TIME
    return f"+{hours}h" if hours > 0 else f"{hours}h"


def zone_display_name(identifier: str) -> str:
    """"America/New_York" → "New York, America"; single-part ids pass through."""
    parts = identifier.split("/")
    if len(parts) > 1:
        return f"{parts[-1].replace('_', ' ')}, {parts[0]}"
    return identifier


@dataclass(frozen=True)
class ZoneClock:
    """Derived display fields for one zone; both empty when it is unresolved."""

    local_time: str
    time_difference: str

    @property
    def resolved(self) -> bool:
        return bool(self.local_time)


def zone_clock(
    identifier: str,
    at: datetime | None = None,
    local: tzinfo | None = None,
    style: str | None = None,
) -> ZoneClock:
    moment = _instant(at)
    return ZoneClock(
        local_time=local_time(identifier, moment, style),
        time_difference=time_difference(identifier, moment, local),
    )
