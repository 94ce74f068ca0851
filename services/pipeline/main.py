# services/pipeline/main.py
"""
One hourly batch, start to finish:

  news -> connections -> indicators + risk snapshot -> insights -> alerts

A stage that fails is logged and the run moves on to the next stage; only an
unreachable datastore ends the run.
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import OperationalError

from alert_engine.dispatch import dispatch_alerts
from alert_engine.briefs import InsightGenerator
from alert_engine.cooldown import AlertCooldown
from alert_engine.sinks import AlertSink, ConsoleSink, SlackSink
from common.config import Settings
from common.logging import get_logger
from data_ingest import jobs
from data_ingest.sources import load_feeds_file
from signal_detect.connection_engine import run_inference
from storage.database import Database
from storage.event_store import EventStore
from storage.queries import get_latest_daily_brief, get_statistics
from storage.repositories import ConnectionRepository, InsightRepository

log = get_logger("pipeline")


@dataclass
class PipelineRun:
    results: Dict[str, Any] = field(default_factory=dict)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _stage(run: PipelineRun, name: str, fn: Callable[[], Any]) -> Any:
    log.info("stage %s starting", name)
    try:
        out = fn()
    except OperationalError:
        raise
    except Exception:  # stage isolation: the remaining stages still run
        log.exception("stage %s failed", name)
        run.failed.append(name)
        return None
    run.results[name] = out
    return out


def run_pipeline(
    db: Database,
    settings: Settings,
    *,
    sinks: Optional[List[AlertSink]] = None,
    feeds_file: Optional[str] = None,
    skip_news: bool = False,
    skip_alerts: bool = False,
) -> PipelineRun:
    db.ping()
    run = PipelineRun()
    store = EventStore(db)

    if not skip_news:
        sources = load_feeds_file(feeds_file) if feeds_file else None
        _stage(run, "news", lambda: jobs.run_news(db, settings, sources=sources))
    _stage(run, "connections", lambda: run_inference(store, ConnectionRepository(db)))
    _stage(run, "indicators", lambda: jobs.run_indicators(db, settings))
    briefs = _stage(run, "insights", lambda: InsightGenerator(store, InsightRepository(db)).generate())

    if not skip_alerts and briefs is not None:
        cooldown = AlertCooldown(os.path.expanduser(settings.alert_state_file), settings.alert_cooldown_minutes)
        _stage(run, "alerts", lambda: dispatch_alerts(
            briefs.patterns,
            sinks if sinks is not None else [ConsoleSink()],
            cooldown,
            brief=get_latest_daily_brief(db),
        ))

    stats = get_statistics(db)
    log.info(
        "pipeline done events=%d critical=%d connections=%d insights=%d failed=%s",
        stats["total_events"], stats["critical_events"], stats["total_connections"],
        stats["total_insights"], ",".join(run.failed) or "none",
    )
    return run


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(prog="python -m services.pipeline.main", description="Run one ingest/score/alert batch.")
    ap.add_argument("--db-url", default=None, help="Database URL (default: env DATABASE_URL)")
    ap.add_argument("--feeds", default=None, help="Tab-separated feeds file replacing the built-in registry")
    ap.add_argument("--skip-news", action="store_true", help="Score and alert on stored events only")
    ap.add_argument("--skip-alerts", action="store_true")
    ap.add_argument("--slack", action="store_true", help="Also send the digest to Slack (DRY-RUN unless --sinks-live)")
    ap.add_argument("--sinks-live", action="store_true")
    args = ap.parse_args(argv)

    settings = Settings.from_env()
    if args.db_url:
        settings.database_url = args.db_url

    sinks: List[AlertSink] = [ConsoleSink()]
    if args.slack:
        sinks.append(SlackSink.from_cli(args))

    db = Database.from_settings(settings).init()
    try:
        run = run_pipeline(
            db, settings, sinks=sinks, feeds_file=args.feeds,
            skip_news=args.skip_news, skip_alerts=args.skip_alerts,
        )
    finally:
        db.dispose()
    # degraded yield is not a run failure
    return 0 if run.ok or run.results else 1


if __name__ == "__main__":
    raise SystemExit(main())
