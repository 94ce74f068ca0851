# signal_detect/risk_engine.py
"""
Composite risk scoring.

Recession risk: weighted sum of indicator scores, banded into a prediction and a
recommendation. Event risk: global, regional and supply-chain sub-scores over
event populations, banded the same way. Trends compare a window against the
preceding window of equal length.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from common.schemas import Event, IndicatorContribution, RecessionRiskSnapshot
from normalize_enrich.geo import REGIONS
from shared.datetime_utils import as_utc, utc_now
from signal_detect.indicators import BY_NAME

TREND_THRESHOLD = 5.0

# (minimum score, text); first reached wins
PREDICTION_BANDS: List[Tuple[float, str]] = [
    (80, "Recession highly likely within 6-12 months"),
    (60, "Elevated recession risk in next 12-18 months"),
    (40, "Moderate risk - monitor closely"),
    (30, "Low risk - economy showing strength"),
]
DEFAULT_PREDICTION = "Very low risk - strong economic expansion"

RECOMMENDATION_BANDS: List[Tuple[float, str]] = [
    (60, "🔴 HIGH RISK: Delay major capex, secure credit lines, review supplier contracts, "
         "build cash reserves, hedge commodity exposure. Focus on liquidity and flexibility."),
    (40, "🟡 MODERATE RISK: Monitor economic indicators closely, maintain financial flexibility, "
         "diversify supplier base, review project timelines."),
]
DEFAULT_RECOMMENDATION = (
    "🟢 LOW RISK: Expansion opportunities available, lock in favorable rates, invest in "
    "efficiency improvements, secure long-term supplier contracts, hire talent."
)

THREAT_BANDS: List[Tuple[float, str]] = [(80, "critical"), (60, "high"), (40, "moderate")]
HEALTH_BANDS: List[Tuple[float, str]] = [(70, "healthy"), (40, "warning")]


def _band(score: float, bands: Sequence[Tuple[float, str]], default: str) -> str:
    for floor, label in bands:
        if score >= floor:
            return label
    return default


def prediction_for(score: float) -> str:
    return _band(score, PREDICTION_BANDS, DEFAULT_PREDICTION)


def recommendation_for(score: float) -> str:
    return _band(score, RECOMMENDATION_BANDS, DEFAULT_RECOMMENDATION)


def threat_level(score: float) -> str:
    return _band(score, THREAT_BANDS, "low")


def classify_trend(current: float, previous: Optional[float], threshold: float = TREND_THRESHOLD) -> str:
    if previous is None:
        return "stable"
    if current > previous + threshold:
        return "rising"
    if current < previous - threshold:
        return "falling"
    return "stable"


def _clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, x))


# ---- Recession risk -----------------------------------------------------------

@dataclass
class IndicatorScore:
    name: str
    value: float
    score: int
    interpretation: str
    weight: Optional[float] = None  # None -> static weight from the definition


def normalize_weights(weights: Dict[str, float]) -> Dict[str, float]:
    """Rescale so the weights sum to 1.0. Raises ValueError on an empty/zero set."""
    total = sum(w for w in weights.values() if w > 0)
    if total <= 0:
        raise ValueError("no positive weights to normalize")
    return {k: (w / total if w > 0 else 0.0) for k, w in weights.items()}


def compute_recession_risk(scores: Iterable[IndicatorScore], day: str) -> RecessionRiskSnapshot:
    """
    riskScore = sum(score_i * weight_i). Missing indicators are dropped and the
    remaining weights renormalized, so the snapshot's weights always sum to 1.0.
    """
    items = list(scores)
    if not items:
        raise ValueError("cannot compute recession risk without indicators")
    raw = {
        s.name: (s.weight if s.weight is not None else BY_NAME[s.name].weight)
        for s in items
    }
    weights = normalize_weights(raw)

    risk = sum(s.score * weights[s.name] for s in items)
    risk = round(_clamp(risk), 2)
    return RecessionRiskSnapshot(
        date=day,
        risk_score=risk,
        prediction=prediction_for(risk),
        recommendation=recommendation_for(risk),
        indicators=[
            IndicatorContribution(
                name=s.name,
                value=s.value,
                score=s.score,
                weight=round(weights[s.name], 6),
                interpretation=s.interpretation,
            )
            for s in items
        ],
    )


def risk_history_trend(
    history: Sequence[RecessionRiskSnapshot],
    window: int = 7,
    threshold: float = TREND_THRESHOLD,
) -> Dict[str, Optional[float]]:
    """
    Latest snapshot vs. the mean of the `window` snapshots before it.
    Returns {"latest", "baseline", "delta", "trend"}.
    """
    if not history:
        return {"latest": None, "baseline": None, "delta": None, "trend": "stable"}
    df = pd.DataFrame([{"date": h.date, "risk": h.risk_score} for h in history])
    df = df.drop_duplicates("date", keep="last").sort_values("date")
    latest = float(df["risk"].iloc[-1])
    prior = df["risk"].iloc[:-1].tail(window)
    if prior.empty:
        return {"latest": latest, "baseline": None, "delta": None, "trend": "stable"}
    baseline = float(prior.mean())
    return {
        "latest": latest,
        "baseline": round(baseline, 2),
        "delta": round(latest - baseline, 2),
        "trend": classify_trend(latest, baseline, threshold),
    }


# ---- Event-population sub-scores ----------------------------------------------

GLOBAL_WINDOW_DAYS = 7
GLOBAL_BASELINE = 30.0
CRITICAL_SEVERITY = 8
HIGH_SEVERITY = 6


def _in_window(events: Iterable[Event], start: datetime, end: datetime) -> List[Event]:
    return [e for e in events if start <= as_utc(e.date) < end]


@dataclass
class GlobalRisk:
    score: int
    level: str
    trend: str
    event_count: int
    critical_count: int


def global_risk(events: Sequence[Event], now: Optional[datetime] = None, days: int = GLOBAL_WINDOW_DAYS) -> GlobalRisk:
    """
    Last `days`: avg severity * 8 + critical * 3 + high * 1.5, clamped. An empty
    window scores the baseline (30). Trend compares with the preceding window's
    avg severity * 8.
    """
    now = as_utc(now or utc_now())
    cur_start = now - timedelta(days=days)
    current = _in_window(events, cur_start, now + timedelta(seconds=1))
    older = _in_window(events, cur_start - timedelta(days=days), cur_start)

    if not current:
        return GlobalRisk(score=int(GLOBAL_BASELINE), level=threat_level(GLOBAL_BASELINE), trend="stable",
                          event_count=0, critical_count=0)

    avg = sum(e.severity for e in current) / len(current)
    critical = sum(1 for e in current if e.severity >= CRITICAL_SEVERITY)
    high = sum(1 for e in current if e.severity >= HIGH_SEVERITY)
    score = _clamp(avg * 8 + critical * 3 + high * 1.5)

    previous = None
    if older:
        previous = sum(e.severity for e in older) / len(older) * 8
    return GlobalRisk(
        score=round(score),
        level=threat_level(score),
        trend=classify_trend(score, previous),
        event_count=len(current),
        critical_count=critical,
    )


@dataclass
class RegionalThreat:
    region: str
    score: int
    level: str
    event_count: int
    top_threat: Optional[str] = None


def regional_threats(events: Sequence[Event], regions: Sequence[str] = REGIONS) -> List[RegionalThreat]:
    out: List[RegionalThreat] = []
    for region in regions:
        evs = [e for e in events if e.region == region]
        if not evs:
            out.append(RegionalThreat(region=region, score=20, level="low", event_count=0))
            continue
        avg = sum(e.severity for e in evs) / len(evs)
        critical = sum(1 for e in evs if e.severity >= CRITICAL_SEVERITY)
        score = _clamp(avg * 8 + critical * 5)
        top = max(evs, key=lambda e: (e.severity, as_utc(e.date)))
        out.append(RegionalThreat(
            region=region,
            score=round(score),
            level=threat_level(score),
            event_count=len(evs),
            top_threat=top.title[:60],
        ))
    return out


LOGISTICS_TAGS = {"logistics", "shipping"}
PROCUREMENT_TAGS = {"procurement", "materials", "pricing"}


@dataclass
class HealthMetric:
    name: str
    score: int
    status: str
    issues: int


@dataclass
class SupplyChainHealth:
    overall: int
    status: str
    metrics: List[HealthMetric] = field(default_factory=list)


def health_status(score: float) -> str:
    return _band(score, HEALTH_BANDS, "critical")


def supply_chain_health(events: Sequence[Event]) -> SupplyChainHealth:
    logistics = [e for e in events if LOGISTICS_TAGS & set(e.impact_tags)]
    procurement = [e for e in events if PROCUREMENT_TAGS & set(e.impact_tags)]

    def n(evs: Sequence[Event], floor: int) -> int:
        return sum(1 for e in evs if e.severity >= floor)

    route = max(0, 100 - n(logistics, HIGH_SEVERITY) * 10)
    material = max(0, 100 - n(procurement, HIGH_SEVERITY) * 9)
    network = max(0, 100 - len(logistics) * 8 - n(logistics, CRITICAL_SEVERITY) * 15)
    buying = max(0, 100 - len(procurement) * 7 - n(procurement, CRITICAL_SEVERITY) * 12)

    metrics = [
        HealthMetric("Shipping Routes", round(route), health_status(route), n(logistics, HIGH_SEVERITY)),
        HealthMetric("Material Supply", round(material), health_status(material), n(procurement, HIGH_SEVERITY)),
        HealthMetric("Logistics Network", round(network), health_status(network), len(logistics)),
        HealthMetric("Procurement", round(buying), health_status(buying), len(procurement)),
    ]
    overall = round(sum(m.score for m in metrics) / len(metrics))
    return SupplyChainHealth(overall=overall, status=health_status(overall), metrics=metrics)
