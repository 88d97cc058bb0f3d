from .models import Teammate, Snapshot, SnapshotError, encode_teammates, decode_teammates
from .clock import (
    resolve_zone, utc_offset_seconds, local_time, time_difference,
    zone_clock, zone_display_name, ZoneClock, SAME_TIME,
)
from .storage import FileStorage, MemoryStorage, Storage
from .registry import DirectoryStore
from .projection import (
    SortOrder, GroupMode, ALL_BUCKET, UNGROUPED,
    filter_teammates, sort_teammates, group_teammates, project, teammate_payload,
)
from .lookup import search_zones, Geocoder, GeocoderError, DebouncedLookup
from .avatar import resize_avatar, AvatarError

__all__ = [
    "Teammate", "Snapshot", "SnapshotError", "encode_teammates", "decode_teammates",
    "resolve_zone", "utc_offset_seconds", "local_time", "time_difference",
    "zone_clock", "zone_display_name", "ZoneClock", "SAME_TIME",
    "FileStorage", "MemoryStorage", "Storage",
    "DirectoryStore",
    "SortOrder", "GroupMode", "ALL_BUCKET", "UNGROUPED",
    "filter_teammates", "sort_teammates", "group_teammates", "project", "teammate_payload",
    "search_zones", "Geocoder", "GeocoderError", "DebouncedLookup",
    "resize_avatar", "AvatarError",
]
