# alert_engine/__main__.py
"""
Alert engine CLI.

- Generates the day's pattern insights and daily brief (once per date).
- Turns critical patterns, and high patterns with confidence >= 0.8, into one
  digest message with the latest daily brief appended.
- Delivers the digest to the console and, optionally, Slack (DRY-RUN unless
  --sinks-live). Live mode fails fast (exit 2) on a missing webhook.
- A cooldown (default 60 min, persisted in ALERT_STATE_FILE) suppresses
  repeated dispatches; insights are still generated while cooling down.
"""

from __future__ import annotations

import argparse
import os
from typing import List, Optional, Sequence

from alert_engine.briefs import InsightGenerator
from alert_engine.cooldown import AlertCooldown
from alert_engine.dispatch import dispatch_alerts
from alert_engine.sinks import AlertSink, ConsoleSink, SlackSink
from common.config import Settings
from common.logging import get_logger
from storage.database import Database
from storage.event_store import EventStore
from storage.queries import get_latest_daily_brief
from storage.repositories import InsightRepository

log = get_logger("alert_engine")


# ---- CLI ----------------------------------------------------------------------

def add_sink_args(parser: argparse.ArgumentParser) -> None:
    g = parser.add_argument_group("Slack sink")
    g.add_argument("--slack", action="store_true", help="Enable Slack sink (DRY-RUN by default)")
    g.add_argument("--slack-webhook", dest="slack_webhook", help="Slack Incoming Webhook URL (or env SLACK_WEBHOOK_URL)")
    g.add_argument("--slack-timeout", dest="slack_timeout", type=float, help="Timeout secs (env SLACK_TIMEOUT_SECS)")
    g.add_argument("--slack-mention", dest="slack_mention", help="Optional @mention text (env SLACK_MENTION)")
    parser.add_argument("--no-console", action="store_true", help="Do not print the digest to stdout")
    parser.add_argument(
        "--sinks-live",
        action="store_true",
        help="Enable LIVE sends (Slack POST). Default is DRY-RUN without this flag.",
    )
    parser.add_argument(
        "--fail-on-sink-error",
        action="store_true",
        help="Exit non-zero if any sink errors during send.",
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="python -m alert_engine",
        description="Generate daily insights and dispatch pattern alerts.",
    )
    p.add_argument("--db-url", default=None, help="Database URL (default: env DATABASE_URL)")
    p.add_argument("--cooldown-minutes", type=int, default=None, help="Override ALERT_COOLDOWN_MINUTES")
    p.add_argument("--ignore-cooldown", action="store_true", help="Dispatch even while cooling down")
    add_sink_args(p)
    return p.parse_args(argv)


def build_sinks(args: argparse.Namespace) -> List[AlertSink]:
    sinks: List[AlertSink] = []
    if not args.no_console:
        sinks.append(ConsoleSink())
    if args.slack:
        sinks.append(SlackSink.from_cli(args))
    return sinks


def preflight_live_or_die(args: argparse.Namespace, sinks: Sequence[AlertSink]) -> None:
    if not args.sinks_live:
        return
    errs = []
    for s in sinks:
        if s.name == "slack" and not getattr(s, "webhook_url", None):
            errs.append("Slack: missing webhook URL (use --slack-webhook or SLACK_WEBHOOK_URL).")
    if errs:
        print("[alert_engine] LIVE mode preflight failed:")
        for e in errs:
            print(" - " + e)
        raise SystemExit(2)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    settings = Settings.from_env()
    if args.db_url:
        settings.database_url = args.db_url

    sinks = build_sinks(args)
    preflight_live_or_die(args, sinks)

    db = Database.from_settings(settings).init()
    gen = InsightGenerator(EventStore(db), InsightRepository(db))
    result = gen.generate()

    cooldown = None
    if not args.ignore_cooldown:
        minutes = args.cooldown_minutes if args.cooldown_minutes is not None else settings.alert_cooldown_minutes
        cooldown = AlertCooldown(os.path.expanduser(settings.alert_state_file), minutes)

    res = dispatch_alerts(result.patterns, sinks, cooldown, brief=get_latest_daily_brief(db))

    for s in sinks:
        log.info("%s: %s", s.name, s.metrics.summary())
    db.dispose()

    if res.sink_errors and args.fail_on_sink_error:
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
