# tests/phase2/test_pipeline.py
import io
from datetime import timedelta
from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError

from alert_engine.sinks import ConsoleSink
from common.schemas import EntityBag, Event
from data_ingest import jobs
from data_ingest.indicator_collector import IndicatorCollector
from services.pipeline import main as pipeline
from shared.datetime_utils import utc_now
from storage.event_store import EventStore
from storage.queries import latest_risk, list_connections, list_insights


@pytest.fixture
def offline_indicators(monkeypatch):
    real = jobs.run_indicators

    def run(db, settings=None, **kw):
        return real(db, settings, collector=IndicatorCollector(settings, market=None), **kw)

    monkeypatch.setattr(jobs, "run_indicators", run)


def _seed(db):
    store = EventStore(db)
    for i, title in enumerate(("Missiles fired across Taiwan Strait", "Blockade drills encircle Taiwan")):
        store.create_event(Event(
            title=title, category="Conflict", severity=9, region="Asia-Pacific", country="Taiwan",
            date=utc_now() - timedelta(days=i + 1), entities=EntityBag(countries=["Taiwan"]),
        ))


def test_batch_runs_every_stage(db, settings, offline_indicators):
    _seed(db)
    out = io.StringIO()

    run = pipeline.run_pipeline(db, settings, sinks=[ConsoleSink(stream=out)], skip_news=True)

    assert run.ok
    assert list(run.results) == ["connections", "indicators", "insights", "alerts"]
    assert run.results["connections"].inserted == 2
    assert latest_risk(db) is not None
    assert [i.category for i in list_insights(db)].count("daily_brief") == 1
    assert run.results["alerts"].sent
    assert "Rising Conflict Activity Detected" in out.getvalue()
    assert Path(settings.alert_state_file).exists()
    assert len(list_connections(db)) == 2


def test_failing_stage_does_not_stop_the_batch(db, settings, offline_indicators, monkeypatch):
    def broken(*a, **kw):
        raise RuntimeError("inference bug")

    monkeypatch.setattr(pipeline, "run_inference", broken)
    run = pipeline.run_pipeline(db, settings, sinks=[], skip_news=True, skip_alerts=True)

    assert run.failed == ["connections"]
    assert "indicators" in run.results
    assert "insights" in run.results
    assert not run.ok


def test_unreachable_datastore_ends_the_run(db, settings, monkeypatch):
    def down(*a, **kw):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(jobs, "run_indicators", down)
    with pytest.raises(OperationalError):
        pipeline.run_pipeline(db, settings, sinks=[], skip_news=True, skip_alerts=True)


def test_cli_skip_news(tmp_path, monkeypatch, offline_indicators):
    monkeypatch.setenv("ALERT_STATE_FILE", str(tmp_path / "alerts.json"))
    url = f"sqlite:///{tmp_path / 'geo.db'}"
    assert pipeline.main(["--db-url", url, "--skip-news", "--skip-alerts"]) == 0
