"""Shared fixtures for the Orbit test suite."""

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
ORBIT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ORBIT_ROOT))

from orbit.models import Context, create_item
from orbit.storage import ItemDB

# ---------------------------------------------------------------------------
# Fixed clock: every test scores against the same instant
# ---------------------------------------------------------------------------
NOW = 1_772_000_000.0
HOUR = 3600.0
DAY = 86400.0


def make_context(now=NOW, hour=9, day=2, device="desktop", place="home", session_id="test-session"):
    """Context with explicit hour/day so results don't depend on the local timezone."""
    return Context(now=now, hour=hour, day=day, device=device, place=place, session_id=session_id)


def make_item(title="Item", created_at=NOW, **signals):
    """A fresh item created at ``created_at``, with any signal fields overridden."""
    item = create_item(title, now=created_at)
    return item.with_signals(**signals) if signals else item


@pytest.fixture
def ctx():
    return make_context()


@pytest.fixture
def unknown_ctx():
    return make_context(place="unknown")


# ---------------------------------------------------------------------------
# Temporary database
# ---------------------------------------------------------------------------
@pytest.fixture
def tmp_db(tmp_path):
    """Path to a fresh, empty orbit.db."""
    return str(tmp_path / "orbit.db")


@pytest.fixture
def db(tmp_db):
    conn = ItemDB(tmp_db)
    yield conn
    conn.close()


@pytest.fixture
def populated_db(tmp_db):
    """tmp_db pre-loaded with 8 items created an hour apart, oldest first."""
    db = ItemDB(tmp_db)
    titles = [
        "Call the dentist", "Renew passport", "Read the RFC draft", "Water the plants",
        "Book train tickets", "Reply to Sam", "Plan the offsite", "Fix the bike light",
    ]
    items = [make_item(title, created_at=NOW - (10 - i) * HOUR) for i, title in enumerate(titles)]
    db.save(items)
    db.close()
    return tmp_db


@pytest.fixture
def orbit_home(tmp_path, monkeypatch):
    """Isolated ORBIT_HOME for CLI and config tests."""
    home = tmp_path / "orbit-home"
    monkeypatch.setenv("ORBIT_HOME", str(home))
    monkeypatch.setenv("ORBIT_DEVICE", "desktop")
    return home
