# signal_detect/patterns.py
"""
Windowed pattern detection over recent events.

Each detector is a PatternRule: which events qualify, how far back to look, how
many must fall in the window, and the pattern it becomes. Category matching is
case-insensitive. Energy volatility is the one rule whose severity depends on
the matched events (average severity >= 7 means disruption).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from common.schemas import Event, Pattern
from shared.datetime_utils import as_utc, utc_now

RECENT_EVENTS = 500
ENERGY_DISRUPTION_AVG = 7.0

COMMODITY_TAGS = {"materials", "pricing", "construction"}


def _cat(e: Event) -> str:
    return (e.category or "").lower()


def _regions(events: Sequence[Event]) -> List[str]:
    seen: List[str] = []
    for e in events:
        if e.region not in seen:
            seen.append(e.region)
    return seen


def _ids(events: Sequence[Event]) -> List[int]:
    return [e.id for e in events if e.id is not None]


@dataclass(frozen=True)
class PatternRule:
    name: str
    matches: Callable[[Event], bool]
    days: int
    min_events: int
    build: Callable[[List[Event]], Pattern]

    def detect(self, events: Sequence[Event], now: datetime) -> Optional[Pattern]:
        cutoff = now - timedelta(days=self.days)
        recent = [e for e in events if self.matches(e) and as_utc(e.date) > cutoff]
        if len(recent) < self.min_events:
            return None
        return self.build(recent)


def _conflict(recent: List[Event]) -> Pattern:
    regions = _regions(recent)
    return Pattern(
        type="escalation",
        severity="high",
        title="Rising Conflict Activity Detected",
        description=(
            f"{len(recent)} high-severity conflict events in the last 30 days across "
            f"{', '.join(regions)}. Potential supply chain disruptions for construction "
            "and logistics sectors."
        ),
        affected_regions=regions,
        impacted_industries=["construction", "logistics", "supply-chain"],
        related_events=_ids(recent),
        confidence=0.85,
    )


def _supply_chain(recent: List[Event]) -> Pattern:
    return Pattern(
        type="disruption",
        severity="high",
        title="Multiple Supply Chain Disruptions",
        description=(
            f"{len(recent)} supply chain events detected in last 60 days. Expect delays in "
            "procurement and increased costs for construction materials."
        ),
        affected_regions=_regions(recent),
        impacted_industries=["construction", "logistics", "procurement"],
        related_events=_ids(recent),
        confidence=0.9,
    )


def _commodity(recent: List[Event]) -> Pattern:
    return Pattern(
        type="trend",
        severity="medium",
        title="Rising Commodity Cost Pressure",
        description=(
            f"{len(recent)} events affecting commodity prices for construction materials. "
            "Monitor steel, copper, and cement procurement costs."
        ),
        affected_regions=["Global"],
        impacted_industries=["construction", "procurement"],
        related_events=_ids(recent),
        confidence=0.75,
    )


def _trade(recent: List[Event]) -> Pattern:
    return Pattern(
        type="opportunity",
        severity="low",
        title="Trade Agreement Opportunities",
        description=(
            f"{len(recent)} positive trade developments could reduce procurement costs "
            "or open new markets."
        ),
        affected_regions=_regions(recent),
        impacted_industries=["construction", "procurement", "logistics"],
        related_events=_ids(recent),
        confidence=0.7,
    )


def _energy(recent: List[Event]) -> Pattern:
    avg = sum(e.severity for e in recent) / len(recent)
    disruption = avg >= ENERGY_DISRUPTION_AVG
    return Pattern(
        type="disruption" if disruption else "trend",
        severity="high" if disruption else "medium",
        title="Energy Market Instability",
        description=(
            f"{len(recent)} energy-related events in last 30 days. Monitor logistics "
            "and transportation costs."
        ),
        affected_regions=_regions(recent),
        impacted_industries=["logistics", "construction", "supply-chain"],
        related_events=_ids(recent),
        confidence=0.8,
    )


def _is_commodity(e: Event) -> bool:
    flagged = bool(COMMODITY_TAGS & set(e.impact_tags)) or bool(e.entities.commodities)
    return flagged and _cat(e) in ("economy", "trade")


PATTERN_RULES: List[PatternRule] = [
    PatternRule("conflict_escalation", lambda e: _cat(e) == "conflict" and e.severity >= 7, 30, 2, _conflict),
    PatternRule("supply_chain_disruption", lambda e: "supply-chain" in e.impact_tags, 60, 2, _supply_chain),
    PatternRule("commodity_pressure", _is_commodity, 90, 3, _commodity),
    PatternRule("trade_opportunity", lambda e: _cat(e) == "trade" and e.severity <= 6, 90, 2, _trade),
    PatternRule("energy_volatility", lambda e: _cat(e) == "energy" or "energy" in e.impact_tags, 30, 2, _energy),
]


def detect_patterns(
    events: Sequence[Event],
    now: Optional[datetime] = None,
    rules: Sequence[PatternRule] = PATTERN_RULES,
) -> List[Pattern]:
    now = as_utc(now or utc_now())
    out: List[Pattern] = []
    for rule in rules:
        p = rule.detect(events, now)
        if p is not None:
            out.append(p)
    return out
