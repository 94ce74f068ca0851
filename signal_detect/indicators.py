# signal_detect/indicators.py
# Recession indicator definitions. Interpretation bands are data: an ordered list
# of (threshold, label, score) checked against the value in the indicator's
# direction, with a default band when none applies.

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

Band = Tuple[float, str, int]


@dataclass(frozen=True)
class IndicatorDef:
    name: str
    series_id: str
    weight: float
    # "below": band applies when value < threshold; "above": value > threshold
    direction: str
    bands: Tuple[Band, ...]
    default: Tuple[str, int]
    mock_range: Tuple[float, float]
    # (base value, volatility, trend per day) for the historical generator
    backfill: Tuple[float, float, float]
    market_symbol: Optional[str] = None

    def interpret(self, value: float) -> Tuple[str, int]:
        for threshold, label, score in self.bands:
            if self.direction == "below" and value < threshold:
                return label, score
            if self.direction == "above" and value > threshold:
                return label, score
        return self.default

    @property
    def score_range(self) -> Tuple[int, int]:
        scores = [s for _, _, s in self.bands] + [self.default[1]]
        return min(scores), max(scores)


INDICATORS: List[IndicatorDef] = [
    IndicatorDef(
        "yield_curve", "T10Y2Y", 0.40, "below",
        (
            (-0.5, "Critical - Deep Inversion", 95),
            (-0.2, "Warning - Inverted", 85),
            (0.0, "Concerning - Slight Inversion", 70),
            (0.5, "Flattening", 40),
            (1.5, "Normal", 20),
        ),
        ("Steep - Healthy", 10),
        mock_range=(-0.25, 1.25),
        backfill=(0.8, 0.3, -0.005),
    ),
    IndicatorDef(
        "manufacturing_pmi", "MANEMP", 0.10, "below",
        (
            (45, "Severe Contraction", 90),
            (48, "Contraction", 70),
            (50, "Weak", 55),
            (55, "Expansion", 30),
        ),
        ("Strong Growth", 15),
        mock_range=(48, 56),
        backfill=(52, 3, -0.02),
    ),
    IndicatorDef(
        "unemployment_rate", "UNRATE", 0.10, "above",
        (
            (7, "Very High", 85),
            (5.5, "Elevated", 65),
            (4.5, "Moderate", 40),
            (3.5, "Low", 20),
        ),
        ("Very Low", 15),
        mock_range=(3.5, 5.5),
        backfill=(3.7, 0.2, 0.005),
    ),
    IndicatorDef(
        "consumer_confidence", "UMCSENT", 0.05, "below",
        (
            (60, "Very Pessimistic", 80),
            (70, "Pessimistic", 60),
            (80, "Cautious", 40),
            (90, "Moderate", 25),
        ),
        ("Optimistic", 15),
        mock_range=(70, 95),
        backfill=(85, 5, -0.05),
    ),
    IndicatorDef(
        "gdp_growth", "A191RL1Q225SBEA", 0.10, "below",
        (
            (-1, "Recession", 95),
            (0, "Contraction", 85),
            (1, "Weak Growth", 60),
            (2.5, "Moderate Growth", 30),
        ),
        ("Strong Growth", 15),
        mock_range=(1.5, 3.5),
        backfill=(2.8, 0.5, -0.01),
    ),
    IndicatorDef(
        "vix", "VIXCLS", 0.05, "above",
        (
            (40, "Extreme Fear", 85),
            (30, "High Volatility", 65),
            (20, "Elevated", 45),
            (15, "Moderate", 25),
        ),
        ("Low - Complacent", 20),
        mock_range=(15, 30),
        backfill=(18, 5, 0.03),
        market_symbol="^VIX",
    ),
    IndicatorDef(
        "housing_starts", "HOUST", 0.05, "below",
        (
            (900, "Severely Depressed", 80),
            (1100, "Weak", 60),
            (1300, "Moderate", 35),
            (1500, "Healthy", 20),
        ),
        ("Strong", 15),
        mock_range=(1200, 1600),
        backfill=(1450, 80, -2),
    ),
    IndicatorDef(
        "corporate_bond_spread", "BAMLC0A4CBBB", 0.05, "above",
        (
            (4, "Credit Stress", 85),
            (3, "Elevated Risk", 65),
            (2, "Moderate", 40),
            (1.5, "Normal", 25),
        ),
        ("Tight - Low Risk", 15),
        mock_range=(1.5, 3.0),
        backfill=(1.8, 0.3, 0.005),
    ),
    IndicatorDef(
        "commodity_prices", "DCOILWTICO", 0.05, "below",
        (
            (40, "Demand Collapse", 75),
            (60, "Weak Demand", 50),
            (80, "Moderate", 30),
            (100, "Healthy", 25),
        ),
        ("Overheating", 55),
        mock_range=(65, 95),
        backfill=(75, 8, 0.05),
        market_symbol="CL=F",
    ),
    IndicatorDef(
        "banking_stress", "DRTSCILM", 0.05, "above",
        (
            (3, "Severe Stress", 90),
            (2, "Elevated Stress", 70),
            (1.5, "Moderate Stress", 45),
            (1, "Low Stress", 25),
        ),
        ("Minimal Stress", 15),
        mock_range=(0.8, 2.0),
        backfill=(0.9, 0.2, 0.002),
    ),
]

BY_NAME: Dict[str, IndicatorDef] = {d.name: d for d in INDICATORS}


def get_indicator(name: str) -> IndicatorDef:
    try:
        return BY_NAME[name]
    except KeyError:
        raise KeyError(f"unknown indicator: {name}") from None


def interpret(name: str, value: float) -> Tuple[str, int]:
    return get_indicator(name).interpret(value)
