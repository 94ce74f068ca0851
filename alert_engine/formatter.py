# alert_engine/formatter.py
from __future__ import annotations

from typing import List, Optional, Sequence

from common.schemas import Insight, Pattern
from alert_engine.sinks.base import Alert

HIGH_ALERT_CONFIDENCE = 0.8
SEPARATOR = "─" * 40


def pattern_alert(p: Pattern, day: str) -> Optional[Alert]:
    """Critical patterns always alert; high ones only at confidence >= 0.8."""
    if p.severity == "critical":
        text = (
            f"🚨 CRITICAL ALERT: {p.title}\n\n"
            f"{p.description}\n\n"
            f"Affected: {', '.join(p.affected_regions)}\n"
            f"Industries: {', '.join(p.impacted_industries)}\n"
            f"Confidence: {round(p.confidence * 100)}%"
        )
    elif p.severity == "high" and p.confidence >= HIGH_ALERT_CONFIDENCE:
        text = (
            f"⚠️ HIGH PRIORITY: {p.title}\n\n"
            f"{p.description}\n\n"
            f"Regions: {', '.join(p.affected_regions)}"
        )
    else:
        return None
    return {
        "level": p.severity,
        "title": p.title,
        "text": text,
        "regions": list(p.affected_regions),
        "confidence": p.confidence,
        "related_events": list(p.related_events),
        "date": day,
    }


def alerts_for(patterns: Sequence[Pattern], day: str) -> List[Alert]:
    out = [a for a in (pattern_alert(p, day) for p in patterns) if a is not None]
    # critical first, detection order otherwise
    out.sort(key=lambda a: 0 if a["level"] == "critical" else 1)
    return out


def one_line(alert: Alert) -> str:
    level = (alert.get("level") or "?").upper()
    conf = alert.get("confidence")
    conf_s = f" | confidence={round(conf * 100)}%" if isinstance(conf, (int, float)) else ""
    return f"[{level}] {alert.get('title') or '(no title)'}{conf_s} | {alert.get('date') or '?'}"


def compose_message(alerts: Sequence[Alert], day: str, brief: Optional[Insight] = None) -> str:
    parts = ["🌍 **GEOPOLITICAL INTELLIGENCE ALERT**", "", day, ""]
    body = f"\n\n{SEPARATOR}\n\n".join(a["text"] for a in alerts)
    msg = "\n".join(parts + [body])
    if brief is not None:
        msg += "\n\n📋 **DAILY BRIEF:**\n" + brief.content
    return msg
