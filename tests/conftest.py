# Make the repository root importable during tests
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# tests/ is one level below the repo root
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

FIXTURES = Path(__file__).resolve().parent / "fixtures"
NOW = datetime(2025, 10, 5, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    from storage.database import Database

    d = Database("sqlite:///:memory:").init()
    yield d
    d.dispose()


@pytest.fixture
def settings(tmp_path):
    from common.config import Settings

    return Settings(
        database_url="sqlite:///:memory:",
        source_delay_secs=0.0,
        ai_batch_delay_secs=0.0,
        feed_cache_file=str(tmp_path / "feed_cache.json"),
        alert_state_file=str(tmp_path / "alert_state.json"),
    )


@pytest.fixture
def make_event():
    """Event factory; days_ago is relative to the fixed NOW."""
    from common.schemas import EntityBag, Event

    counter = {"n": 0}

    def _make(title=None, *, days_ago=0, countries=(), tags=(), **kw):
        counter["n"] += 1
        kw.setdefault("category", "Politics")
        kw.setdefault("severity", 5)
        kw.setdefault("region", "Global")
        kw.setdefault("entities", EntityBag(countries=list(countries)))
        return Event(
            title=title or f"Event {counter['n']}",
            date=NOW - timedelta(days=days_ago),
            impact_tags=list(tags),
            **kw,
        )

    return _make


@pytest.fixture
def now():
    return NOW
