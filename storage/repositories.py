# storage/repositories.py
# Write paths for the derived record types. Every write is a single-row
# insert-or-ignore or upsert against the table's unique key.

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import IntegrityError

from common.logging import get_logger
from common.schemas import Connection, EconomicIndicator, Insight, RecessionRiskSnapshot
from storage.database import Database
from storage.models import (
    ConnectionRow,
    EconomicIndicatorRow,
    InsightRow,
    RecessionRiskRow,
    SourceRow,
)

log = get_logger("repositories")


class ConnectionRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    def insert(self, c: Connection) -> bool:
        """True when a row was written; re-inserting the same edge is a no-op."""
        stmt = (
            insert(ConnectionRow)
            .values(
                event_a_id=c.event_a_id,
                event_b_id=c.event_b_id,
                relationship_type=c.relationship_type,
                basis=c.basis,
                confidence=c.confidence,
                explanation=c.explanation,
            )
            .on_conflict_do_nothing(index_elements=["event_a_id", "event_b_id", "basis"])
        )
        with self.db.session() as s:
            res = s.execute(stmt)
        written = bool(res.rowcount)
        if not written:
            log.debug("connection %s->%s (%s) already stored", c.event_a_id, c.event_b_id, c.basis)
        return written

    def insert_many(self, conns: Iterable[Connection]) -> int:
        return sum(1 for c in conns if self.insert(c))


class IndicatorRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    def upsert(self, ind: EconomicIndicator) -> None:
        values = dict(
            indicator_name=ind.indicator_name,
            date=ind.date,
            value=ind.value,
            interpretation=ind.interpretation,
            score=ind.score,
            source=ind.source,
            meta=ind.metadata,
        )
        stmt = insert(EconomicIndicatorRow).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["indicator_name", "date"],
            set_={
                "value": stmt.excluded.value,
                "interpretation": stmt.excluded.interpretation,
                "score": stmt.excluded.score,
                "source": stmt.excluded.source,
                "meta": stmt.excluded.meta,
            },
        )
        with self.db.session() as s:
            s.execute(stmt)

    def upsert_risk(self, snap: RecessionRiskSnapshot) -> None:
        stmt = insert(RecessionRiskRow).values(
            date=snap.date,
            risk_score=snap.risk_score,
            prediction=snap.prediction,
            recommendation=snap.recommendation,
            indicators=[i.model_dump() for i in snap.indicators],
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["date"],
            set_={
                "risk_score": stmt.excluded.risk_score,
                "prediction": stmt.excluded.prediction,
                "recommendation": stmt.excluded.recommendation,
                "indicators": stmt.excluded.indicators,
            },
        )
        with self.db.session() as s:
            s.execute(stmt)


class InsightRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    def has_insight(self, category: str, day: str) -> bool:
        q = select(InsightRow.id).where(InsightRow.category == category, InsightRow.date == day)
        with self.db.session() as s:
            return s.execute(q).first() is not None

    def has_daily_brief(self, day: str) -> bool:
        return self.has_insight("daily_brief", day)

    def create(self, ins: Insight) -> Optional[int]:
        """Returns the new id, or None when a daily brief for that date already exists."""
        row = InsightRow(
            title=ins.title,
            content=ins.content,
            category=ins.category,
            impact_level=ins.impact_level,
            relevant_industries=list(ins.relevant_industries),
            related_events=list(ins.related_events),
            date=ins.date,
        )
        try:
            with self.db.session() as s:
                s.add(row)
                s.flush()
                return row.id
        except IntegrityError:
            log.debug("daily brief for %s already exists", ins.date)
            return None


class SourceRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    def update_status(
        self,
        name: str,
        status: str,
        error: Optional[str] = None,
        *,
        url: Optional[str] = None,
        type_: str = "rss",
        items: int = 0,
        when: Optional[datetime] = None,
    ) -> None:
        when = (when or datetime.now(timezone.utc)).astimezone(timezone.utc).replace(tzinfo=None)
        stmt = insert(SourceRow).values(
            name=name, type=type_, url=url, status=status, error_message=error,
            last_scraped=when, items_last_run=items,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["name"],
            set_={
                "status": stmt.excluded.status,
                "error_message": stmt.excluded.error_message,
                "last_scraped": stmt.excluded.last_scraped,
                "items_last_run": stmt.excluded.items_last_run,
                "url": stmt.excluded.url,
            },
        )
        with self.db.session() as s:
            s.execute(stmt)
