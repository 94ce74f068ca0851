# storage/event_store.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import desc, func, or_, select
from sqlalchemy.dialects.sqlite import insert

from common.logging import get_logger
from common.schemas import EntityBag, Event, ImpactAssessment
from shared.dedupe import title_key
from storage.database import Database
from storage.models import EventRow

log = get_logger("event_store")

TITLE_MAX = 500
DESCRIPTION_MAX = 2000
SEARCH_LIMIT = 50


@dataclass
class EventFilter:
    category: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None
    min_severity: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: int = 100
    offset: int = 0


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def row_to_event(r: EventRow) -> Event:
    return Event(
        id=r.id,
        title=r.title,
        description=r.description or "",
        category=r.category,
        severity=r.severity,
        region=r.region,
        country=r.country,
        country_code=r.country_code,
        latitude=r.latitude,
        longitude=r.longitude,
        date=r.date.replace(tzinfo=timezone.utc),
        source_name=r.source_name,
        source_url=r.source_url,
        entities=EntityBag.model_validate(r.entities or {}),
        sentiment=r.sentiment,
        impact_tags=list(r.impact_tags or []),
        relevance_score=r.relevance_score,
        relevance_band=r.relevance_band,
        relevance_reasons=list(r.relevance_reasons or []),
        summary=r.summary or "",
        impact=ImpactAssessment.model_validate(r.impact) if r.impact else None,
    )


class EventStore:
    """Insert-or-ignore keyed on the normalized title; filtered, paged reads."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def create_event(self, e: Event) -> Optional[int]:
        """
        Returns the new row id, or None when an event with the same normalized
        title already exists (the call is then a no-op).
        """
        key = title_key(e.title)[:TITLE_MAX]
        if not key:
            return None
        values = dict(
            title=e.title[:TITLE_MAX],
            title_key=key,
            description=(e.description or "")[:DESCRIPTION_MAX],
            category=e.category,
            severity=e.severity,
            region=e.region,
            country=e.country,
            country_code=e.country_code,
            latitude=e.latitude,
            longitude=e.longitude,
            date=_naive_utc(e.date),
            source_name=e.source_name,
            source_url=e.source_url,
            entities=e.entities.model_dump(),
            sentiment=e.sentiment,
            impact_tags=list(e.impact_tags),
            relevance_score=e.relevance_score,
            relevance_band=e.relevance_band,
            relevance_reasons=list(e.relevance_reasons),
            summary=e.summary,
            impact=e.impact.model_dump() if e.impact else None,
        )
        stmt = (
            insert(EventRow)
            .values(**values)
            .on_conflict_do_nothing(index_elements=["title_key"])
            .returning(EventRow.id)
        )
        with self.db.session() as s:
            new_id = s.execute(stmt).scalar_one_or_none()
        if new_id is None:
            log.debug("duplicate event ignored: %r", e.title[:80])
        return new_id

    def exists(self, title: str) -> bool:
        with self.db.session() as s:
            q = select(EventRow.id).where(EventRow.title_key == title_key(title)[:TITLE_MAX])
            return s.execute(q).first() is not None

    def get_event(self, event_id: int) -> Optional[Event]:
        with self.db.session() as s:
            r = s.get(EventRow, event_id)
            return row_to_event(r) if r else None

    def get_events(self, f: Optional[EventFilter] = None) -> List[Event]:
        f = f or EventFilter()
        q = select(EventRow)
        if f.category:
            q = q.where(EventRow.category == f.category)
        if f.region:
            q = q.where(EventRow.region == f.region)
        if f.country:
            q = q.where(EventRow.country == f.country)
        if f.min_severity is not None:
            q = q.where(EventRow.severity >= f.min_severity)
        if f.start_date is not None:
            q = q.where(EventRow.date >= _naive_utc(f.start_date))
        if f.end_date is not None:
            q = q.where(EventRow.date <= _naive_utc(f.end_date))
        q = q.order_by(desc(EventRow.date), desc(EventRow.severity), desc(EventRow.id))
        q = q.limit(max(0, f.limit)).offset(max(0, f.offset))
        with self.db.session() as s:
            return [row_to_event(r) for r in s.scalars(q)]

    def search_events(self, term: str, limit: int = SEARCH_LIMIT) -> List[Event]:
        term = (term or "").strip()
        if not term:
            return []
        like = f"%{term}%"
        q = (
            select(EventRow)
            .where(or_(
                EventRow.title.ilike(like),
                EventRow.description.ilike(like),
                EventRow.country.ilike(like),
            ))
            .order_by(desc(EventRow.date), desc(EventRow.severity))
            .limit(limit)
        )
        with self.db.session() as s:
            return [row_to_event(r) for r in s.scalars(q)]

    def count(self) -> int:
        with self.db.session() as s:
            return s.execute(select(func.count(EventRow.id))).scalar_one()
