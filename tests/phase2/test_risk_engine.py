# tests/phase2/test_risk_engine.py
import pytest

from common.schemas import RecessionRiskSnapshot
from signal_detect.indicators import INDICATORS, interpret
from signal_detect.risk_engine import (
    IndicatorScore,
    classify_trend,
    compute_recession_risk,
    global_risk,
    normalize_weights,
    prediction_for,
    recommendation_for,
    regional_threats,
    risk_history_trend,
    supply_chain_health,
    threat_level,
)

DAY = "2025-10-05"


def _scores(pick):
    out = []
    for d in INDICATORS:
        lo, hi = d.score_range
        score = pick(lo, hi)
        out.append(IndicatorScore(name=d.name, value=0.0, score=score, interpretation="x"))
    return out


def test_weights_sum_to_one_in_snapshot():
    snap = compute_recession_risk(_scores(lambda lo, hi: lo), DAY)
    assert sum(i.weight for i in snap.indicators) == pytest.approx(1.0)
    assert len(snap.indicators) == len(INDICATORS)


def test_all_minimum_scores_band_low():
    snap = compute_recession_risk(_scores(lambda lo, hi: lo), DAY)
    assert snap.risk_score == 13.75
    assert snap.prediction == "Very low risk - strong economic expansion"
    assert snap.recommendation.startswith("🟢 LOW RISK")


def test_all_maximum_scores_band_high():
    snap = compute_recession_risk(_scores(lambda lo, hi: hi), DAY)
    assert snap.risk_score == 89.75
    assert snap.prediction == "Recession highly likely within 6-12 months"
    assert snap.recommendation.startswith("🔴 HIGH RISK")


def test_deep_yield_inversion_alone_is_high_risk():
    label, score = interpret("yield_curve", -0.6)
    assert (label, score) == ("Critical - Deep Inversion", 95)
    snap = compute_recession_risk([IndicatorScore("yield_curve", -0.6, score, label)], DAY)
    assert snap.risk_score >= 90
    assert snap.indicators[0].weight == 1.0


def test_risk_is_monotone_in_each_indicator():
    base = _scores(lambda lo, hi: lo)
    before = compute_recession_risk(base, DAY).risk_score
    for i in range(len(base)):
        bumped = [IndicatorScore(s.name, s.value, s.score + (10 if j == i else 0), s.interpretation)
                  for j, s in enumerate(base)]
        assert compute_recession_risk(bumped, DAY).risk_score > before


def test_explicit_weights_are_renormalized():
    snap = compute_recession_risk([
        IndicatorScore("a", 1, 80, "x", weight=2),
        IndicatorScore("b", 1, 20, "x", weight=2),
    ], DAY)
    assert snap.risk_score == 50
    assert [i.weight for i in snap.indicators] == [0.5, 0.5]


def test_degenerate_inputs_raise():
    with pytest.raises(ValueError):
        compute_recession_risk([], DAY)
    with pytest.raises(ValueError):
        normalize_weights({"a": 0.0})


def test_band_boundaries():
    assert prediction_for(80) == "Recession highly likely within 6-12 months"
    assert prediction_for(79.99).startswith("Elevated")
    assert prediction_for(40).startswith("Moderate")
    assert prediction_for(30).startswith("Low risk")
    assert prediction_for(29.9).startswith("Very low")
    assert recommendation_for(60).startswith("🔴")
    assert recommendation_for(40).startswith("🟡")
    assert [threat_level(s) for s in (80, 60, 40, 39)] == ["critical", "high", "moderate", "low"]


def test_classify_trend():
    assert classify_trend(50, None) == "stable"
    assert classify_trend(50, 44) == "rising"
    assert classify_trend(50, 45) == "stable"
    assert classify_trend(39, 45) == "falling"


def _snap(day, score):
    return RecessionRiskSnapshot(date=day, risk_score=score, prediction="p", recommendation="r")


def test_risk_history_trend():
    history = [_snap(f"2025-10-0{d}", 40) for d in range(1, 8)] + [_snap("2025-10-08", 50)]
    t = risk_history_trend(history)
    assert t == {"latest": 50.0, "baseline": 40.0, "delta": 10.0, "trend": "rising"}

    assert risk_history_trend([])["trend"] == "stable"
    single = risk_history_trend([_snap("2025-10-01", 42)])
    assert single["latest"] == 42.0 and single["baseline"] is None


def test_global_risk_baseline_and_trend(make_event, now):
    empty = global_risk([], now=now)
    assert (empty.score, empty.level, empty.trend, empty.event_count) == (30, "low", "stable", 0)

    events = [
        make_event(severity=9, days_ago=1),
        make_event(severity=7, days_ago=2),
        make_event(severity=3, days_ago=10),
        make_event(severity=10, days_ago=30),  # outside both windows
    ]
    g = global_risk(events, now=now)
    # avg 8 * 8 + 1 critical * 3 + 2 high * 1.5
    assert g.score == 70
    assert g.level == "high"
    assert g.trend == "rising"
    assert (g.event_count, g.critical_count) == (2, 1)


def test_regional_threats(make_event):
    events = [
        make_event("Strait blockade", severity=9, region="Asia-Pacific"),
        make_event("Trade talks", severity=5, region="Asia-Pacific"),
    ]
    by_region = {r.region: r for r in regional_threats(events)}
    ap = by_region["Asia-Pacific"]
    assert (ap.score, ap.level, ap.event_count, ap.top_threat) == (61, "high", 2, "Strait blockade")
    assert (by_region["Europe"].score, by_region["Europe"].level) == (20, "low")
    assert len(by_region) == 5


def test_supply_chain_health(make_event):
    events = [
        make_event(severity=8, tags=["logistics"]),
        make_event(severity=6, tags=["materials"]),
        make_event(severity=9, tags=["general"]),
    ]
    h = supply_chain_health(events)
    assert [(m.name, m.score) for m in h.metrics] == [
        ("Shipping Routes", 90),
        ("Material Supply", 91),
        ("Logistics Network", 77),
        ("Procurement", 93),
    ]
    assert (h.overall, h.status) == (88, "healthy")

    calm = supply_chain_health([])
    assert calm.overall == 100
    assert all(m.status == "healthy" for m in calm.metrics)
