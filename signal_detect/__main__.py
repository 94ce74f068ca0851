# signal_detect/__main__.py
from __future__ import annotations

import argparse
from typing import List, Optional

from common.config import Settings
from common.logging import get_logger
from signal_detect.connection_engine import MAX_CONNECTIONS, MIN_SEVERITY, WINDOW, run_inference
from signal_detect.overview import risk_overview
from signal_detect.patterns import RECENT_EVENTS, detect_patterns
from storage.database import Database
from storage.event_store import EventFilter, EventStore
from storage.repositories import ConnectionRepository

log = get_logger("signal_detect")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="python -m signal_detect", description="Connections, risk scores and patterns.")
    ap.add_argument("--db-url", default=None, help="Database URL (default: env DATABASE_URL)")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_conn = sub.add_parser("connections", help="Infer relationships among recent high-severity events")
    p_conn.add_argument("--min-severity", type=int, default=MIN_SEVERITY)
    p_conn.add_argument("--window", type=int, default=WINDOW, help="Newest N candidate events")
    p_conn.add_argument("--limit", type=int, default=MAX_CONNECTIONS, help="Max edges proposed per run")

    sub.add_parser("risk", help="Print recession, global, regional and supply-chain risk")
    sub.add_parser("patterns", help="Print patterns detected over recent events")
    return ap.parse_args(argv)


def print_risk(db: Database) -> None:
    ov = risk_overview(db)
    if ov.recession is not None:
        trend = ov.recession_trend.get("trend")
        print(f"Recession risk {ov.recession.date}: {ov.recession.risk_score:.1f}/100 ({trend})")
        print(f"  {ov.recession.prediction}")
        print(f"  {ov.recession.recommendation}")
    else:
        print("Recession risk: no snapshots yet")
    g = ov.global_risk
    print(f"Global risk: {g.score} {g.level} ({g.trend}) events={g.event_count} critical={g.critical_count}")
    for r in ov.regions:
        top = f" top: {r.top_threat}" if r.top_threat else ""
        print(f"  {r.region:<14} {r.score:>3} {r.level:<8} events={r.event_count}{top}")
    if ov.supply_chain is not None:
        sc = ov.supply_chain
        print(f"Supply chain health: {sc.overall} {sc.status}")
        for m in sc.metrics:
            print(f"  {m.name:<18} {m.score:>3} {m.status:<8} issues={m.issues}")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env()
    if args.db_url:
        settings.database_url = args.db_url
    db = Database.from_settings(settings).init()
    try:
        if args.cmd == "connections":
            res = run_inference(
                EventStore(db), ConnectionRepository(db),
                min_severity=args.min_severity, window=args.window, limit=args.limit,
            )
            print(f"candidates={res.candidates} proposed={res.proposed} inserted={res.inserted}")
        elif args.cmd == "risk":
            print_risk(db)
        elif args.cmd == "patterns":
            events = EventStore(db).get_events(EventFilter(limit=RECENT_EVENTS))
            patterns = detect_patterns(events)
            if not patterns:
                print("no patterns detected")
            for p in patterns:
                print(f"[{p.severity}] {p.title} ({p.type}, confidence {p.confidence:.2f}, events={len(p.related_events)})")
    finally:
        db.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
