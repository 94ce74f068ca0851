# data_ingest/__main__.py
from __future__ import annotations

import argparse
from typing import List, Optional

from common.config import Settings
from common.logging import get_logger
from data_ingest import jobs
from data_ingest.feed_fetcher import FeedFetcher
from data_ingest.indicator_collector import BACKFILL_DAYS
from data_ingest.sources import ALL_SOURCES, active_sources, load_feeds_file
from storage.database import Database

log = get_logger("data_ingest")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="python -m data_ingest")
    ap.add_argument("--db-url", default=None, help="Database URL (default: env DATABASE_URL)")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_news = sub.add_parser("news", help="Fetch feeds (+NewsAPI), classify and store events")
    p_news.add_argument("--feeds", help="Tab-separated feeds file replacing the built-in registry", default=None)
    p_news.add_argument("--no-gate", action="store_true", help="Forward items below the relevance threshold")
    p_news.add_argument("--no-cache", action="store_true", help="Ignore the ETag/Last-Modified cache")

    p_ind = sub.add_parser("indicators", help="Collect today's indicators and store a risk snapshot")
    p_ind.add_argument("--day", default=None, help="YYYY-MM-DD (default: today UTC)")

    p_bf = sub.add_parser("backfill", help="Generate historical indicator data")
    p_bf.add_argument("--days", type=int, default=BACKFILL_DAYS)

    p_src = sub.add_parser("sources", help="List enabled sources in fetch order")
    p_src.add_argument("--feeds", default=None)
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env()
    if args.db_url:
        settings.database_url = args.db_url

    if args.cmd == "sources":
        pool = load_feeds_file(args.feeds) if args.feeds else ALL_SOURCES
        for s in active_sources(pool):
            print(f"{s.priority:>2}  {s.name:<32} {s.category:<16} {s.region:<14} {s.url}")
        return 0

    db = Database.from_settings(settings).init()
    try:
        if args.cmd == "news":
            sources = load_feeds_file(args.feeds) if args.feeds else None
            fetcher = FeedFetcher(settings, relevance_gate=not args.no_gate, use_cache=not args.no_cache)
            run = jobs.run_news(db, settings, sources=sources, fetcher=fetcher, relevance_gate=not args.no_gate)
            print(" ".join(f"{k}={v}" for k, v in run.counters().items()))
        elif args.cmd == "indicators":
            snap = jobs.run_indicators(db, settings, day=args.day)
            print(f"{snap.date} risk={snap.risk_score:.1f} {snap.prediction}")
        elif args.cmd == "backfill":
            snaps = jobs.run_backfill(db, settings, days=args.days)
            print(f"backfilled {len(snaps)} day(s)")
    finally:
        db.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
