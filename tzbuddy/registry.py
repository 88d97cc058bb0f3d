"""
tzbuddy/registry.py
───────────────────
The teammate directory: canonical teammate list, known group labels and the
Slack workspace id, written through to a Storage on every mutation.

One DirectoryStore is built at process start and handed to whoever needs it
(HTTP app, CLIs). Readers get detached copies; the store's own records are
never exposed. Mutations run under a re-entrant lock so the threaded HTTP
server cannot interleave read-modify-write sequences.

Listeners registered with subscribe() receive a Snapshot after every mutation.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from .models import (
    Snapshot,
    SnapshotError,
    Teammate,
    decode_groups,
    decode_teammates,
    encode_groups,
    encode_teammates,
    new_id,
)
from .storage import GROUPS, TEAMMATES, WORKSPACE_ID, Storage

log = logging.getLogger("tzbuddy.registry")

Listener = Callable[[Snapshot], None]


class DirectoryStore:
    def __init__(self, storage: Storage) -> None:
        self._storage = storage
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._teammates: list[Teammate] = []
        self._groups: set[str] = set()
        self._workspace_id = ""
        with self._lock:
            self._load()

    # ── loading ──────────────────────────────────────────────────────────────

    def _read(self, name: str) -> bytes | None:
        try:
            return self._storage.read(name)
        except OSError as exc:
            log.warning("Could not read %s, starting empty: %s", name, exc)
            return b""

    def _load(self) -> None:
        raw = self._read(TEAMMATES)
        if raw is None:
            # First launch: establish the artifacts instead of leaving them absent
            self._save_teammates()
        elif raw:
            try:
                self._teammates = decode_teammates(raw)
            except SnapshotError as exc:
                log.warning("Malformed %s, starting with no teammates: %s", TEAMMATES, exc)
                self._teammates = []

        raw = self._read(GROUPS)
        if raw is None:
            self._save_groups()
        elif raw:
            try:
                self._groups = decode_groups(raw)
            except SnapshotError as exc:
                log.warning("Malformed %s, starting with no groups: %s", GROUPS, exc)
                self._groups = set()

        raw = self._read(WORKSPACE_ID)
        if raw:
            self._workspace_id = raw.decode("utf-8", errors="replace").strip()

    # ── persistence ──────────────────────────────────────────────────────────

    def _write(self, name: str, data: bytes) -> bool:
        try:
            self._storage.write(name, data)
            return True
        except OSError:
            log.exception("Failed to persist %s; keeping in-memory state", name)
            return False

    def _save_teammates(self) -> bool:
        return self._write(TEAMMATES, encode_teammates(self._teammates))

    def _save_groups(self) -> bool:
        return self._write(GROUPS, encode_groups(self._groups))

    # ── change notification ──────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register listener; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                log.exception("Directory listener %r failed", listener)

    # ── reads ────────────────────────────────────────────────────────────────

    def snapshot(self) -> Snapshot:
        with self._lock:
            return Snapshot(
                teammates=tuple(t.copy() for t in self._teammates),
                groups=frozenset(self._groups),
            )

    @property
    def teammates(self) -> list[Teammate]:
        with self._lock:
            return [t.copy() for t in self._teammates]

    @property
    def groups(self) -> set[str]:
        with self._lock:
            return set(self._groups)

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def workspace_id(self) -> str:
        return self._workspace_id

    def get(self, teammate_id: str) -> Teammate | None:
        with self._lock:
            found = next((t for t in self._teammates if t.id == teammate_id), None)
            return found.copy() if found else None

    def index_of(self, teammate_id: str) -> int | None:
        with self._lock:
            return next(
                (i for i, t in enumerate(self._teammates) if t.id == teammate_id), None
            )

    def __len__(self) -> int:
        return len(self._teammates)

    # ── teammate mutations ───────────────────────────────────────────────────

    def add(self, teammate: Teammate) -> Teammate:
        """Append teammate under a fresh id. Returns the stored copy."""
        with self._lock:
            taken = {t.id for t in self._teammates}
            record_id = new_id()
            while record_id in taken:
                record_id = new_id()
            record = teammate.copy(id=record_id)
            self._teammates.append(record)
            self._save_teammates()
            log.info("Added teammate %s (id=%s)", record.name, record.id)
            result = record.copy()
        self._notify()
        return result

    def update(self, teammate: Teammate) -> bool:
        """Replace the record with teammate.id. Unknown ids are ignored."""
        with self._lock:
            index = self.index_of(teammate.id)
            if index is None:
                return False
            self._teammates[index] = teammate.copy()
            self._save_teammates()
        self._notify()
        return True

    def delete(self, teammate_id: str) -> bool:
        with self._lock:
            index = self.index_of(teammate_id)
            if index is None:
                return False
            self._delete_index(index)
        self._notify()
        return True

    def delete_at(self, index: int) -> Teammate:
        """
        Remove the teammate at a position in the current ordering.
        Raises IndexError when out of range.
        """
        with self._lock:
            removed = self._delete_index(index)
        self._notify()
        return removed

    def _delete_index(self, index: int) -> Teammate:
        removed = self._teammates.pop(index)
        self._save_teammates()
        log.info("Removed teammate %s (id=%s)", removed.name, removed.id)
        return removed

    # ── group mutations ──────────────────────────────────────────────────────

    def add_group(self, label: str) -> bool:
        """Returns False when the label was already known."""
        with self._lock:
            if label in self._groups:
                return False
            self._groups.add(label)
            self._save_groups()
        self._notify()
        return True

    def remove_group(self, label: str) -> None:
        """Forget label and strip it from every teammate that carries it."""
        with self._lock:
            self._groups.discard(label)
            self._save_groups()
            touched = 0
            for t in self._teammates:
                if label in t.groups:
                    t.groups.discard(label)
                    touched += 1
            self._save_teammates()
            if touched:
                log.info("Removed group %r from %d teammate(s)", label, touched)
        self._notify()

    # ── workspace id ─────────────────────────────────────────────────────────

    def set_workspace_id(self, value: str) -> None:
        with self._lock:
            self._workspace_id = value.strip()
            self._write(WORKSPACE_ID, self._workspace_id.encode("utf-8"))
        self._notify()

    # ── export / import / reset ──────────────────────────────────────────────

    def export_snapshot(self) -> bytes | None:
        """Encoded teammate list (groups and workspace id are not exported)."""
        with self._lock:
            try:
                return encode_teammates(self._teammates)
            except (TypeError, ValueError):
                log.exception("Could not encode teammates for export")
                return None

    def import_snapshot(self, data: bytes | str) -> bool:
        """
        Replace the whole teammate list with the decoded payload.
        Malformed payloads leave the directory untouched and return False.
        """
        try:
            imported = decode_teammates(data)
        except SnapshotError as exc:
            log.warning("Rejected import payload: %s", exc)
            return False
        with self._lock:
            self._teammates = imported
            self._save_teammates()
        log.info("Imported %d teammate(s)", len(imported))
        self._notify()
        return True

    def reset(self) -> None:
        """Drop every artifact and return to first-launch state."""
        with self._lock:
            try:
                self._storage.clear()
            except OSError:
                log.exception("Failed to clear storage")
            self._teammates = []
            self._groups = set()
            self._workspace_id = ""
            self._save_teammates()
            self._save_groups()
        log.info("Directory reset")
        self._notify()
