# storage/queries.py
"""
Read functions for the presentation layer. Each returns an empty list / None /
zeroed dict on an empty database rather than raising.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy import desc, func, or_, select

from common.schemas import Connection, EconomicIndicator, Event, Insight, RecessionRiskSnapshot
from storage.database import Database
from storage.event_store import EventFilter, EventStore
from storage.models import (
    ConnectionRow,
    EconomicIndicatorRow,
    EventRow,
    InsightRow,
    RecessionRiskRow,
    SourceRow,
)

CONNECTION_LIMIT = 100
INSIGHT_LIMIT = 20


def _connection(r: ConnectionRow) -> Connection:
    return Connection(
        id=r.id,
        event_a_id=r.event_a_id,
        event_b_id=r.event_b_id,
        relationship_type=r.relationship_type,
        basis=r.basis,
        confidence=r.confidence,
        explanation=r.explanation or "",
    )


def _indicator(r: EconomicIndicatorRow) -> EconomicIndicator:
    return EconomicIndicator(
        indicator_name=r.indicator_name,
        date=r.date,
        value=r.value,
        interpretation=r.interpretation or "",
        score=r.score,
        source=r.source,
        metadata=r.meta or {},
    )


def _snapshot(r: RecessionRiskRow) -> RecessionRiskSnapshot:
    return RecessionRiskSnapshot.model_validate({
        "date": r.date,
        "risk_score": r.risk_score,
        "prediction": r.prediction,
        "recommendation": r.recommendation,
        "indicators": r.indicators or [],
    })


def _insight(r: InsightRow) -> Insight:
    return Insight(
        id=r.id,
        title=r.title,
        content=r.content,
        category=r.category,
        impact_level=r.impact_level,
        relevant_industries=list(r.relevant_industries or []),
        related_events=list(r.related_events or []),
        date=r.date,
    )


# ---- events -------------------------------------------------------------------

def list_events(db: Database, f: Optional[EventFilter] = None) -> List[Event]:
    return EventStore(db).get_events(f)


def search_events(db: Database, term: str) -> List[Event]:
    return EventStore(db).search_events(term)


def get_event(db: Database, event_id: int) -> Optional[Event]:
    return EventStore(db).get_event(event_id)


# ---- connections --------------------------------------------------------------

def list_connections(db: Database, limit: int = CONNECTION_LIMIT) -> List[Connection]:
    q = select(ConnectionRow).order_by(desc(ConnectionRow.confidence), desc(ConnectionRow.id)).limit(limit)
    with db.session() as s:
        return [_connection(r) for r in s.scalars(q)]


def get_connections_for_event(db: Database, event_id: int) -> List[Connection]:
    q = (
        select(ConnectionRow)
        .where(or_(ConnectionRow.event_a_id == event_id, ConnectionRow.event_b_id == event_id))
        .order_by(desc(ConnectionRow.confidence))
    )
    with db.session() as s:
        return [_connection(r) for r in s.scalars(q)]


# ---- indicators & risk --------------------------------------------------------

def latest_indicators(db: Database) -> List[EconomicIndicator]:
    """Most recent row per indicator name."""
    latest = (
        select(EconomicIndicatorRow.indicator_name, func.max(EconomicIndicatorRow.date).label("max_date"))
        .group_by(EconomicIndicatorRow.indicator_name)
        .subquery()
    )
    q = (
        select(EconomicIndicatorRow)
        .join(latest, (EconomicIndicatorRow.indicator_name == latest.c.indicator_name)
              & (EconomicIndicatorRow.date == latest.c.max_date))
        .order_by(EconomicIndicatorRow.indicator_name)
    )
    with db.session() as s:
        return [_indicator(r) for r in s.scalars(q)]


def indicator_history(db: Database, name: str, days: int = 180) -> List[EconomicIndicator]:
    """Oldest first, at most `days` rows."""
    q = (
        select(EconomicIndicatorRow)
        .where(EconomicIndicatorRow.indicator_name == name)
        .order_by(desc(EconomicIndicatorRow.date))
        .limit(days)
    )
    with db.session() as s:
        rows = [_indicator(r) for r in s.scalars(q)]
    return list(reversed(rows))


def latest_risk(db: Database) -> Optional[RecessionRiskSnapshot]:
    q = select(RecessionRiskRow).order_by(desc(RecessionRiskRow.date)).limit(1)
    with db.session() as s:
        r = s.scalars(q).first()
        return _snapshot(r) if r else None


def risk_history(db: Database, days: int = 180) -> List[RecessionRiskSnapshot]:
    """Oldest first."""
    q = select(RecessionRiskRow).order_by(desc(RecessionRiskRow.date)).limit(days)
    with db.session() as s:
        rows = [_snapshot(r) for r in s.scalars(q)]
    return list(reversed(rows))


# ---- insights -----------------------------------------------------------------

def list_insights(db: Database, category: Optional[str] = None, limit: int = INSIGHT_LIMIT) -> List[Insight]:
    q = select(InsightRow)
    if category:
        q = q.where(InsightRow.category == category)
    q = q.order_by(desc(InsightRow.date), desc(InsightRow.id)).limit(limit)
    with db.session() as s:
        return [_insight(r) for r in s.scalars(q)]


def get_latest_daily_brief(db: Database) -> Optional[Insight]:
    found = list_insights(db, category="daily_brief", limit=1)
    return found[0] if found else None


# ---- misc ---------------------------------------------------------------------

def get_statistics(db: Database) -> Dict[str, Any]:
    with db.session() as s:
        total = s.execute(select(func.count(EventRow.id))).scalar_one()
        critical = s.execute(select(func.count(EventRow.id)).where(EventRow.severity >= 8)).scalar_one()
        by_category = dict(s.execute(
            select(EventRow.category, func.count(EventRow.id)).group_by(EventRow.category)
        ).all())
        by_region = dict(s.execute(
            select(EventRow.region, func.count(EventRow.id)).group_by(EventRow.region)
        ).all())
        connections = s.execute(select(func.count(ConnectionRow.id))).scalar_one()
        insights = s.execute(select(func.count(InsightRow.id))).scalar_one()
    return {
        "total_events": total,
        "critical_events": critical,
        "by_category": by_category,
        "by_region": by_region,
        "total_connections": connections,
        "total_insights": insights,
    }


def list_sources(db: Database) -> List[Dict[str, Any]]:
    q = select(SourceRow).order_by(SourceRow.name)
    with db.session() as s:
        return [
            {
                "name": r.name,
                "type": r.type,
                "url": r.url,
                "status": r.status,
                "error_message": r.error_message,
                "last_scraped": r.last_scraped.isoformat() if r.last_scraped else None,
                "items_last_run": r.items_last_run,
            }
            for r in s.scalars(q)
        ]
