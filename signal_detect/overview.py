# signal_detect/overview.py
# Read-side roll-up of every risk sub-score, for the CLI and the batch summary.

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from common.schemas import RecessionRiskSnapshot
from shared.datetime_utils import as_utc, utc_now
from signal_detect.risk_engine import (
    GLOBAL_WINDOW_DAYS,
    GlobalRisk,
    RegionalThreat,
    SupplyChainHealth,
    global_risk,
    regional_threats,
    risk_history_trend,
    supply_chain_health,
)
from storage.database import Database
from storage.event_store import EventFilter, EventStore
from storage.queries import latest_risk, risk_history

# events considered for regional / supply-chain scores
OVERVIEW_DAYS = 30
OVERVIEW_EVENTS = 500


@dataclass
class RiskOverview:
    recession: Optional[RecessionRiskSnapshot]
    recession_trend: Dict[str, Optional[float]]
    global_risk: GlobalRisk
    regions: List[RegionalThreat] = field(default_factory=list)
    supply_chain: Optional[SupplyChainHealth] = None


def risk_overview(db: Database, now: Optional[datetime] = None) -> RiskOverview:
    now = as_utc(now or utc_now())
    store = EventStore(db)
    # global risk compares two equal windows
    window = store.get_events(EventFilter(
        start_date=now - timedelta(days=2 * GLOBAL_WINDOW_DAYS),
        end_date=now,
        limit=OVERVIEW_EVENTS,
    ))
    recent = store.get_events(EventFilter(
        start_date=now - timedelta(days=OVERVIEW_DAYS),
        end_date=now,
        limit=OVERVIEW_EVENTS,
    ))
    return RiskOverview(
        recession=latest_risk(db),
        recession_trend=risk_history_trend(risk_history(db, days=8)),
        global_risk=global_risk(window, now=now),
        regions=regional_threats(recent),
        supply_chain=supply_chain_health(recent),
    )
