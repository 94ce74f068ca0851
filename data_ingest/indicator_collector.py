# data_ingest/indicator_collector.py
"""
Economic indicator collector.

Per indicator and day, the first provider that answers wins:
  1. FRED observations API (only with FRED_API_KEY)
  2. yfinance quote for market-traded indicators (vix, commodity_prices)
  3. deterministic generator seeded from (indicator, date)

The generator makes reruns on the same date reproduce identical values, so an
offline run still yields one upsertable reading per indicator per day.
"""

from __future__ import annotations

import hashlib
import math
from datetime import date, timedelta
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import requests
import yfinance as yf

from common.config import Settings
from common.logging import get_logger
from common.schemas import EconomicIndicator, RecessionRiskSnapshot
from shared.datetime_utils import to_day
from signal_detect.indicators import INDICATORS, IndicatorDef
from signal_detect.risk_engine import IndicatorScore, compute_recession_risk

log = get_logger("indicators")

FRED_URL = "https://api.stlouisfed.org/fred/series/observations"
FRED_MISSING = "."
BACKFILL_DAYS = 180

# symbol -> latest close, or None
MarketQuote = Callable[[str], Optional[float]]


def seeded_rng(name: str, day: str) -> np.random.Generator:
    digest = hashlib.sha256(f"{name}:{day}".encode("utf-8")).digest()
    return np.random.default_rng(int.from_bytes(digest[:8], "big"))


def generated_value(defn: IndicatorDef, day: str) -> float:
    lo, hi = defn.mock_range
    return round(float(seeded_rng(defn.name, day).uniform(lo, hi)), 4)


def historical_value(defn: IndicatorDef, days_ago: int, day: str) -> float:
    """trend + cyclical + noise around the indicator's base value."""
    base, volatility, trend = defn.backfill
    rng = seeded_rng(defn.name, day)
    value = (
        base
        + trend * days_ago
        + math.sin(days_ago / 30) * volatility * 0.5
        + (rng.random() - 0.5) * volatility
    )
    return round(float(value), 4)


def yfinance_quote(symbol: str) -> Optional[float]:
    hist = yf.Ticker(symbol).history(period="5d")
    if hist is None or len(hist) == 0:
        return None
    closes = hist["Close"].dropna()
    if closes.empty:
        return None
    return float(closes.iloc[-1])


def reading(defn: IndicatorDef, day: str, value: float, source: str, meta: Optional[Dict] = None) -> EconomicIndicator:
    label, score = defn.interpret(value)
    return EconomicIndicator(
        indicator_name=defn.name,
        date=day,
        value=value,
        interpretation=label,
        score=score,
        source=source,
        metadata=meta or {"series_id": defn.series_id},
    )


class IndicatorCollector:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        session: Optional[requests.Session] = None,
        market: Optional[MarketQuote] = yfinance_quote,
        indicators: Sequence[IndicatorDef] = INDICATORS,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.session = session or requests.Session()
        self.market = market
        self.indicators = list(indicators)
        self.counts: Dict[str, int] = {"FRED": 0, "Yahoo": 0, "Generated": 0}

    def fred_latest(self, defn: IndicatorDef) -> Optional[Tuple[str, float]]:
        """(observation date, value) of the newest FRED observation, or None."""
        if not self.settings.fred_api_key:
            return None
        params = {
            "series_id": defn.series_id,
            "api_key": self.settings.fred_api_key,
            "file_type": "json",
            "sort_order": "desc",
            "limit": 1,
        }
        try:
            resp = self.session.get(FRED_URL, params=params, timeout=self.settings.fetch_timeout_secs)
            resp.raise_for_status()
            observations = resp.json().get("observations") or []
        except (requests.RequestException, ValueError) as e:
            log.warning("FRED %s failed: %s", defn.series_id, e)
            return None
        if not observations or observations[0].get("value") in (None, FRED_MISSING):
            return None
        try:
            return str(observations[0].get("date")), float(observations[0]["value"])
        except (TypeError, ValueError):
            return None

    def market_latest(self, defn: IndicatorDef) -> Optional[float]:
        if not defn.market_symbol or self.market is None:
            return None
        try:
            return self.market(defn.market_symbol)
        except Exception as e:  # yfinance surfaces transport and parsing failures with assorted types
            log.warning("market quote %s failed: %s", defn.market_symbol, e)
            return None

    def collect_one(self, defn: IndicatorDef, day: str) -> EconomicIndicator:
        fred = self.fred_latest(defn)
        if fred is not None:
            observed, value = fred
            self.counts["FRED"] += 1
            return reading(defn, day, value, "FRED", {"series_id": defn.series_id, "observed": observed})

        quote = self.market_latest(defn)
        if quote is not None:
            self.counts["Yahoo"] += 1
            return reading(defn, day, round(quote, 4), "Yahoo", {"symbol": defn.market_symbol})

        self.counts["Generated"] += 1
        return reading(defn, day, generated_value(defn, day), "Generated")

    def collect(self, day: Optional[str] = None) -> List[EconomicIndicator]:
        day = day or to_day()
        out = [self.collect_one(d, day) for d in self.indicators]
        log.info(
            "indicators day=%s fred=%d yahoo=%d generated=%d",
            day, self.counts["FRED"], self.counts["Yahoo"], self.counts["Generated"],
        )
        return out

    def backfill(self, days: int = BACKFILL_DAYS, today: Optional[date] = None) -> Iterator[Tuple[str, List[EconomicIndicator]]]:
        """Oldest day first, `days` back through today inclusive; generated values only."""
        today = today or date.fromisoformat(to_day())
        for days_ago in range(days, -1, -1):
            day = (today - timedelta(days=days_ago)).isoformat()
            yield day, [
                reading(d, day, historical_value(d, days_ago, day), "Generated")
                for d in self.indicators
            ]


def snapshot_for(readings: Sequence[EconomicIndicator], day: str) -> RecessionRiskSnapshot:
    return compute_recession_risk(
        (
            IndicatorScore(
                name=r.indicator_name,
                value=r.value,
                score=r.score,
                interpretation=r.interpretation,
            )
            for r in readings
        ),
        day,
    )
