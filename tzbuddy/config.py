"""
tzbuddy/config.py
─────────────────
Environment-driven settings.

Every value is read fresh from the environment on each call so the same
process can be pointed at a different data home (containers, tests) without
re-importing anything.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_GEOCODER_URL = "https://geocoding-api.open-meteo.com/v1/search"


def _number(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


def data_home() -> Path:
    return Path(os.environ.get("TZBUDDY_HOME", Path.home() / ".tzbuddy"))


def local_zone_name() -> str:
    """Viewer zone override; empty means "use the system zone"."""
    return os.environ.get("TZBUDDY_LOCAL_TZ", "").strip()


def clock_style() -> str:
    style = os.environ.get("TZBUDDY_CLOCK", "12h").strip().lower()
    return style if style in ("12h", "24h") else "12h"


def geocoder_url() -> str:
    return os.environ.get("TZBUDDY_GEOCODER_URL", DEFAULT_GEOCODER_URL)


def geocoder_timeout() -> float:
    return _number("TZBUDDY_GEOCODER_TIMEOUT", 5.0)


def refresh_seconds() -> float:
    return _number("TZBUDDY_REFRESH_SECONDS", 60.0)


def lookup_debounce() -> float:
    """Quiet period for the debounced lookup, in seconds."""
    return _number("TZBUDDY_LOOKUP_DEBOUNCE_MS", 300.0) / 1000
