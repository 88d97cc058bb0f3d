"""
tzbuddy/lookup.py
─────────────────
Free-text city / time-zone search for the teammate editor.

Tiers, first non-empty wins:
  1. substring match on the IANA identifier catalog (max 20)
  2. external geocoder: place name → the zone of its best match
  3. broader match on identifiers, city names ("new york") and current
     abbreviations ("pst", "cet"), sorted, max 20

The geocoder is slow, so interactive callers go through DebouncedLookup, which
waits for a quiet period, drops superseded queries and only ever delivers the
result of the newest query.
"""

from __future__ import annotations

import json
import logging
import threading
import urllib.parse
import urllib.request
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable
from zoneinfo import available_timezones

from . import config
from .clock import resolve_zone

log = logging.getLogger("tzbuddy.lookup")

RESULT_LIMIT = 20


class GeocoderError(RuntimeError):
    pass


@lru_cache(maxsize=1)
def zone_catalog() -> tuple[str, ...]:
    return tuple(sorted(available_timezones()))


def match_catalog(query: str, limit: int = RESULT_LIMIT) -> list[str]:
    needle = query.lower()
    return [z for z in zone_catalog() if needle in z.lower()][:limit]


def _zone_names(identifier: str, at: datetime) -> list[str]:
    names = [identifier.lower(), identifier.split("/")[-1].replace("_", " ").lower()]
    zone = resolve_zone(identifier)
    if zone is not None:
        abbrev = at.astimezone(zone).tzname()
        if abbrev and not abbrev.startswith(("+", "-")):
            names.append(abbrev.lower())
    return names


def match_names(query: str, limit: int = RESULT_LIMIT, at: datetime | None = None) -> list[str]:
    needle = query.lower()
    moment = at or datetime.now(timezone.utc)
    matches = [
        z for z in zone_catalog()
        if any(needle in name for name in _zone_names(z, moment))
    ]
    return sorted(matches[:limit])


class Geocoder:
    """Resolves a place name to an IANA zone via an Open-Meteo style search API."""

    def __init__(self, url: str | None = None, timeout: float | None = None) -> None:
        self.url = url or config.geocoder_url()
        self.timeout = timeout if timeout is not None else config.geocoder_timeout()

    def resolve(self, place: str) -> str | None:
        qs = urllib.parse.urlencode({"name": place, "count": 1, "language": "en", "format": "json"})
        try:
            with urllib.request.urlopen(f"{self.url}?{qs}", timeout=self.timeout) as resp:
                payload = json.loads(resp.read())
        except Exception as exc:
            raise GeocoderError(f"Geocoder request failed: {exc}") from exc

        if not isinstance(payload, dict):
            return None
        results = payload.get("results") or []
        if not results or not isinstance(results[0], dict):
            return None
        zone = results[0].get("timezone")
        return zone if zone and resolve_zone(zone) is not None else None


def search_zones(query: str, geocoder: Geocoder | None = None) -> list[str]:
    query = query.strip()
    if not query:
        return []

    direct = match_catalog(query)
    if direct:
        return direct

    geocoder = geocoder or Geocoder()
    try:
        zone = geocoder.resolve(query)
    except GeocoderError as exc:
        log.warning("Geocoder failed for %r, falling back to name search: %s", query, exc)
        zone = None
    if zone:
        return [zone]

    return match_names(query)


class DebouncedLookup:
    """
    Runs search_zones() for the latest submitted query after a quiet period.

    Each submit() supersedes every earlier one: a pending timer is cancelled,
    and a search already in flight is discarded when it finishes. on_result is
    called with (query, zones) for the newest query only.
    """

    def __init__(
        self,
        search: Callable[[str], list[str]] = search_zones,
        delay: float | None = None,
    ) -> None:
        self._search = search
        self._delay = delay if delay is not None else config.lookup_debounce()
        self._lock = threading.RLock()
        self._generation = 0
        self._timer: threading.Timer | None = None

    def submit(self, query: str, on_result: Callable[[str, list[str]], None]) -> int:
        with self._lock:
            self._generation += 1
            generation = self._generation
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(
                self._delay, self._run, args=(generation, query, on_result)
            )
            self._timer.daemon = True
            self._timer.start()
        return generation

    def cancel(self) -> None:
        with self._lock:
            self._generation += 1
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._generation

    def _run(self, generation: int, query: str, on_result: Callable[[str, list[str]], None]) -> None:
        if not self._current(generation):
            return
        try:
            zones = self._search(query)
        except Exception:
            log.exception("Zone search failed for %r", query)
            zones = []
        with self._lock:
            if generation != self._generation:
                log.debug("Dropping superseded result for %r", query)
                return
            on_result(query, zones)
