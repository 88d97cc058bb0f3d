"""
tzbuddy/models.py
─────────────────
Teammate records and the JSON wire format shared by the persisted
teammates.json file and export/import payloads.

Wire format (one element per teammate, optionals omitted when absent):
[
  {
    "id": "6F1C2B8E-…",                  ← upper-case UUID string
    "name": "Alex Chen",
    "timeZoneIdentifier": "Asia/Tokyo",
    "imageData": "/9j/4AAQ…",            ← base64 avatar bytes
    "email": "alex@example.com",
    "slackId": "U012ABCDEF",
    "groups": ["Design", "Tokyo office"]
  },
  …
]
"""

from __future__ import annotations

import base64
import binascii
import json
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Iterable


class SnapshotError(ValueError):
    """Raised when bytes do not decode to a list of teammates."""


def new_id() -> str:
    return str(uuid.uuid4()).upper()


@dataclass
class Teammate:
    name: str
    time_zone_identifier: str
    image_data: bytes | None = None
    email: str | None = None
    slack_id: str | None = None
    groups: set[str] = field(default_factory=set)
    id: str = field(default_factory=new_id)

    def copy(self, **changes: Any) -> "Teammate":
        """Detached copy; the group set is never shared with the original."""
        groups = changes.pop("groups", self.groups)
        return replace(self, groups=set(groups), **changes)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id":                 self.id,
            "name":               self.name,
            "timeZoneIdentifier": self.time_zone_identifier,
        }
        if self.image_data is not None:
            data["imageData"] = base64.b64encode(self.image_data).decode("ascii")
        if self.email is not None:
            data["email"] = self.email
        if self.slack_id is not None:
            data["slackId"] = self.slack_id
        data["groups"] = sorted(self.groups)
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Teammate":
        if not isinstance(data, dict):
            raise SnapshotError(f"Teammate entry must be an object, got {type(data).__name__}")

        for key in ("id", "name", "timeZoneIdentifier"):
            if not isinstance(data.get(key), str):
                raise SnapshotError(f"Teammate field {key!r} missing or not a string")

        for key in ("email", "slackId", "imageData"):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise SnapshotError(f"Teammate field {key!r} must be a string")

        image = None
        if data.get("imageData") is not None:
            try:
                image = base64.b64decode(data["imageData"], validate=True)
            except (binascii.Error, ValueError) as exc:
                raise SnapshotError(f"imageData is not valid base64: {exc}") from exc

        groups = data.get("groups", [])
        if not isinstance(groups, list) or not all(isinstance(g, str) for g in groups):
            raise SnapshotError("Teammate field 'groups' must be a list of strings")

        return cls(
            id=data["id"],
            name=data["name"],
            time_zone_identifier=data["timeZoneIdentifier"],
            image_data=image,
            email=data.get("email"),
            slack_id=data.get("slackId"),
            groups=set(groups),
        )


@dataclass(frozen=True)
class Snapshot:
    """The (teammates, groups) pair at one point in time."""

    teammates: tuple[Teammate, ...] = ()
    groups: frozenset[str] = frozenset()


# ── wire codec ────────────────────────────────────────────────────────────────

def _parse(data: bytes | str) -> Any:
    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SnapshotError(f"Not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise SnapshotError("JSON nested too deeply") from exc


def encode_teammates(teammates: Iterable[Teammate]) -> bytes:
    return json.dumps([t.to_dict() for t in teammates], indent=2).encode("utf-8")


def decode_teammates(data: bytes | str) -> list[Teammate]:
    payload = _parse(data)
    if not isinstance(payload, list):
        raise SnapshotError("Teammate list must be a JSON array")
    teammates = [Teammate.from_dict(entry) for entry in payload]
    seen: set[str] = set()
    for t in teammates:
        if t.id in seen:
            raise SnapshotError(f"duplicate id {t.id!r}")
        seen.add(t.id)
    return teammates


def encode_groups(groups: Iterable[str]) -> bytes:
    return json.dumps(sorted(groups)).encode("utf-8")


def decode_groups(data: bytes | str) -> set[str]:
    payload = _parse(data)
    if not isinstance(payload, list) or not all(isinstance(g, str) for g in payload):
        raise SnapshotError("Group list must be a JSON array of strings")
    return set(payload)
