import pytest

from tzbuddy.models import Teammate
from tzbuddy.registry import DirectoryStore
from tzbuddy.storage import MemoryStorage


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.tzbuddy and the host time zone."""
    monkeypatch.setenv("TZBUDDY_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("TZBUDDY_LOCAL_TZ", "UTC")
    monkeypatch.setenv("TZBUDDY_CLOCK", "24h")
    yield


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return DirectoryStore(storage)


@pytest.fixture
def crew():
    return [
        Teammate(name="Bob", time_zone_identifier="America/New_York", groups={"Eng"}),
        Teammate(name="alice", time_zone_identifier="Asia/Tokyo", email="alice@example.com"),
        Teammate(name="Charlie", time_zone_identifier="Europe/London", groups={"Ops", "Eng"}),
        Teammate(name="Dana", time_zone_identifier="America/New_York", slack_id="U0DANA"),
    ]
