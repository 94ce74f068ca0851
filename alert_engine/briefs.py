# alert_engine/briefs.py
"""
Insight and daily brief generation from detected patterns.

Per calendar date:
- each high/critical pattern becomes an `ai_analysis` insight, generated once
  (skipped when that date already has ai_analysis insights)
- one `daily_brief` summarizing all patterns, generated only when at least one
  pattern exists and no brief exists for the date yet
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from common.logging import get_logger
from common.schemas import Insight, Pattern
from shared.datetime_utils import to_day
from signal_detect.patterns import RECENT_EVENTS, detect_patterns
from storage.event_store import EventFilter, EventStore
from storage.repositories import InsightRepository

log = get_logger("briefs")

BRIEF_HEADER = "**GEOPOLITICAL INTELLIGENCE DAILY BRIEF**"
BRIEF_RECOMMENDATION = (
    "**RECOMMENDATION:** Review related events and assess impact on current "
    "projects and procurement plans."
)
BRIEF_INDUSTRIES = ["construction", "logistics", "procurement"]


def brief_title(day: str) -> str:
    return f"Daily Intelligence Brief - {day}"


def daily_summary(patterns: Sequence[Pattern]) -> str:
    critical = [p for p in patterns if p.severity == "critical"]
    high = [p for p in patterns if p.severity == "high"]
    medium = [p for p in patterns if p.severity == "medium"]

    lines = [BRIEF_HEADER, ""]
    if critical:
        lines.append("🚨 **CRITICAL ALERTS:**")
        lines.extend(f"- {p.title}: {p.description}" for p in critical)
        lines.append("")
    if high:
        lines.append("⚠️ **HIGH PRIORITY:**")
        lines.extend(f"- {p.title}: {p.description}" for p in high)
        lines.append("")
    if medium:
        lines.append("📊 **MONITORING:**")
        lines.extend(f"- {p.title}" for p in medium)
        lines.append("")
    lines.append(BRIEF_RECOMMENDATION)
    return "\n".join(lines)


@dataclass
class BriefResult:
    day: str
    patterns: List[Pattern] = field(default_factory=list)
    insights_created: int = 0
    brief_id: Optional[int] = None
    brief_skipped: bool = False


class InsightGenerator:
    def __init__(self, store: EventStore, repo: InsightRepository) -> None:
        self.store = store
        self.repo = repo

    def recent_patterns(self, now: Optional[datetime] = None) -> List[Pattern]:
        events = self.store.get_events(EventFilter(limit=RECENT_EVENTS))
        return detect_patterns(events, now=now)

    def _pattern_insights(self, patterns: Sequence[Pattern], day: str) -> int:
        if self.repo.has_insight("ai_analysis", day):
            log.info("pattern insights for %s already generated", day)
            return 0
        created = 0
        for p in patterns:
            if p.severity not in ("critical", "high"):
                continue
            self.repo.create(Insight(
                title=p.title,
                content=p.description,
                category="ai_analysis",
                impact_level=p.severity,
                relevant_industries=p.impacted_industries,
                related_events=p.related_events,
                date=day,
            ))
            created += 1
        return created

    def _daily_brief(self, patterns: Sequence[Pattern], day: str) -> Optional[int]:
        return self.repo.create(Insight(
            title=brief_title(day),
            content=daily_summary(patterns),
            category="daily_brief",
            impact_level="critical" if any(p.severity == "critical" for p in patterns) else "high",
            relevant_industries=list(BRIEF_INDUSTRIES),
            related_events=[],
            date=day,
        ))

    def generate(
        self,
        patterns: Optional[Sequence[Pattern]] = None,
        *,
        day: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BriefResult:
        day = day or to_day(now)
        pats = list(patterns) if patterns is not None else self.recent_patterns(now)
        res = BriefResult(day=day, patterns=pats)

        res.insights_created = self._pattern_insights(pats, day)

        if not pats:
            log.info("no patterns for %s; daily brief not generated", day)
        elif self.repo.has_daily_brief(day):
            res.brief_skipped = True
            log.info("daily brief for %s already exists", day)
        else:
            res.brief_id = self._daily_brief(pats, day)
            res.brief_skipped = res.brief_id is None
            if res.brief_id is not None:
                res.insights_created += 1

        log.info(
            "insights day=%s patterns=%d created=%d brief=%s",
            day, len(pats), res.insights_created,
            "skipped" if res.brief_skipped else (res.brief_id or "none"),
        )
        return res
