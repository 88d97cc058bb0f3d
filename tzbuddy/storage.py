"""
tzbuddy/storage.py
──────────────────
Where the directory's artifacts live.

The store only ever asks for three named blobs:

  teammates.json   ← encoded teammate list
  groups.json      ← encoded group labels
  slackTeamId.txt  ← workspace id, absent until set

FileStorage keeps them under TZBUDDY_HOME (default ~/.tzbuddy) and writes
atomically; MemoryStorage keeps them in a dict for ephemeral stores and tests.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

from . import config

log = logging.getLogger("tzbuddy.storage")

TEAMMATES = "teammates.json"
GROUPS = "groups.json"
WORKSPACE_ID = "slackTeamId.txt"

ARTIFACTS = (TEAMMATES, GROUPS, WORKSPACE_ID)


class Storage(Protocol):
    def read(self, name: str) -> bytes | None:
        """Return the artifact's bytes, or None when it does not exist."""
        ...

    def write(self, name: str, data: bytes) -> None:
        ...

    def delete(self, name: str) -> None:
        ...

    def clear(self) -> None:
        """Remove every artifact."""
        ...


class FileStorage:
    def __init__(self, home: Path | str | None = None) -> None:
        self.home = Path(home) if home is not None else config.data_home()

    def _path(self, name: str) -> Path:
        return self.home / name

    def read(self, name: str) -> bytes | None:
        path = self._path(name)
        if not path.exists():
            return None
        return path.read_bytes()

    def write(self, name: str, data: bytes) -> None:
        self.home.mkdir(parents=True, exist_ok=True)
        path = self._path(name)
        tmp = path.with_suffix(path.suffix + ".tmp")
        with open(tmp, "wb") as f:
            f.write(data)
        tmp.replace(path)
        os.chmod(path, 0o600)

    def delete(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)

    def clear(self) -> None:
        """Remove the store's own artifacts; other files in home are left alone."""
        for name in ARTIFACTS:
            path = self._path(name)
            path.unlink(missing_ok=True)
            path.with_suffix(path.suffix + ".tmp").unlink(missing_ok=True)
        if self.home.is_dir() and not any(self.home.iterdir()):
            self.home.rmdir()
        log.info("Cleared artifacts in %s", self.home)

    def __repr__(self) -> str:
        return f"FileStorage({str(self.home)!r})"


class MemoryStorage:
    def __init__(self) -> None:
        self._blobs: dict[str, bytes] = {}

    def read(self, name: str) -> bytes | None:
        return self._blobs.get(name)

    def write(self, name: str, data: bytes) -> None:
        self._blobs[name] = bytes(data)

    def delete(self, name: str) -> None:
        self._blobs.pop(name, None)

    def clear(self) -> None:
        self._blobs.clear()

    def names(self) -> list[str]:
        return sorted(self._blobs)
