# alert_engine/dispatch.py
# Pattern alerts -> one digest message -> every sink, unless cooling down.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from alert_engine.cooldown import AlertCooldown
from alert_engine.formatter import alerts_for, compose_message, one_line
from alert_engine.sinks import FAILED, Alert, AlertSink
from common.logging import get_logger
from common.schemas import Insight, Pattern
from shared.datetime_utils import to_day, utc_now

log = get_logger("alerts")


@dataclass
class DispatchResult:
    alerts: List[Alert] = field(default_factory=list)
    cooldown_minutes_left: float = 0.0
    sent: bool = False
    sink_errors: int = 0


def digest(alerts: Sequence[Alert], day: str, brief: Optional[Insight]) -> Alert:
    level = "critical" if any(a["level"] == "critical" for a in alerts) else "high"
    return {
        "level": level,
        "title": f"Geopolitical intelligence alert - {day}",
        "text": compose_message(alerts, day, brief),
        "date": day,
        "count": len(alerts),
    }


def dispatch_alerts(
    patterns: Sequence[Pattern],
    sinks: Sequence[AlertSink],
    cooldown: Optional[AlertCooldown],
    *,
    brief: Optional[Insight] = None,
    now: Optional[datetime] = None,
) -> DispatchResult:
    now = now or utc_now()
    day = to_day(now)
    res = DispatchResult(alerts=alerts_for(patterns, day))
    if not res.alerts:
        log.info("no alerts meet threshold criteria")
        return res
    for a in res.alerts:
        log.info("alert %s", one_line(a))

    if cooldown is not None and cooldown.active(now):
        res.cooldown_minutes_left = cooldown.remaining(now)
        log.info("cooldown active (%d min remaining); %d alert(s) held", round(res.cooldown_minutes_left), len(res.alerts))
        return res

    message = digest(res.alerts, day, brief)
    for s in sinks:
        try:
            ok = s.emit(message)
            res.sent = res.sent or ok
        except Exception as e:  # a broken sink must not stop the others
            s.metrics.record(FAILED)
            log.error("[%s] emit failed: %s", s.name, e)
        try:
            s.flush()
        except Exception as e:
            s.metrics.errors += 1
            log.error("[%s] flush failed: %s", s.name, e)
        res.sink_errors += s.metrics.errors

    if res.sent and cooldown is not None:
        cooldown.mark_sent(now)
    return res

