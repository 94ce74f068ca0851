# tests/phase2/test_queries.py
from storage import queries


def test_empty_database_reads(db):
    assert queries.list_events(db) == []
    assert queries.search_events(db, "anything") == []
    assert queries.get_event(db, 1) is None
    assert queries.list_connections(db) == []
    assert queries.get_connections_for_event(db, 1) == []
    assert queries.latest_indicators(db) == []
    assert queries.indicator_history(db, "vix") == []
    assert queries.latest_risk(db) is None
    assert queries.risk_history(db) == []
    assert queries.list_insights(db) == []
    assert queries.get_latest_daily_brief(db) is None
    assert queries.list_sources(db) == []
    assert queries.get_statistics(db) == {
        "total_events": 0,
        "critical_events": 0,
        "by_category": {},
        "by_region": {},
        "total_connections": 0,
        "total_insights": 0,
    }


def test_risk_overview_on_empty_database(db, now):
    from signal_detect.overview import risk_overview

    ov = risk_overview(db, now=now)
    assert ov.recession is None
    assert ov.recession_trend["trend"] == "stable"
    assert ov.global_risk.score == 30
    assert all(r.score == 20 for r in ov.regions)
    assert ov.supply_chain.overall == 100


def test_signal_detect_cli_risk_on_empty_database(tmp_path, capsys):
    from signal_detect.__main__ import main as signal_main

    url = f"sqlite:///{tmp_path / 'geo.db'}"
    assert signal_main(["--db-url", url, "risk"]) == 0
    out = capsys.readouterr().out
    assert "Recession risk: no snapshots yet" in out
    assert "Global risk: 30 low (stable)" in out
    assert signal_main(["--db-url", url, "patterns"]) == 0
    assert "no patterns detected" in capsys.readouterr().out
