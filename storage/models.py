# storage/models.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from storage.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class EventRow(Base):
    """
    Normalized, enriched event. `title_key` is the casefolded title and the
    dedup key; rows are never updated after insert.
    """
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    title_key: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    description: Mapped[str] = mapped_column(Text, default="")
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    severity: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    region: Mapped[str] = mapped_column(String(40), default="Global", index=True)
    country: Mapped[str] = mapped_column(String(80), default="Unknown", index=True)
    country_code: Mapped[Optional[str]] = mapped_column(String(2))
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    # naive UTC
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    source_name: Mapped[Optional[str]] = mapped_column(String(200))
    source_url: Mapped[Optional[str]] = mapped_column(Text)
    entities: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    sentiment: Mapped[float] = mapped_column(Float, default=0.0)
    impact_tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    relevance_score: Mapped[int] = mapped_column(Integer, default=0)
    relevance_band: Mapped[str] = mapped_column(String(10), default="low")
    relevance_reasons: Mapped[List[str]] = mapped_column(JSON, default=list)
    summary: Mapped[str] = mapped_column(Text, default="")
    impact: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)

    def __repr__(self) -> str:
        return f"<EventRow {self.id} sev={self.severity} {self.title[:40]!r}>"


class ConnectionRow(Base):
    """
    Inferred edge. One row per (ordered pair, basis): re-inferring the same edge
    is a no-op, while different rules firing for one pair keep separate rows.
    """
    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("event_a_id", "event_b_id", "basis", name="uq_connection_pair_basis"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_a_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    event_b_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    relationship_type: Mapped[str] = mapped_column(String(20), nullable=False)
    basis: Mapped[str] = mapped_column(String(40), nullable=False, default="manual")
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    explanation: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class EconomicIndicatorRow(Base):
    __tablename__ = "economic_indicators"
    __table_args__ = (
        UniqueConstraint("indicator_name", "date", name="uq_indicator_name_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    indicator_name: Mapped[str] = mapped_column(String(60), nullable=False, index=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    interpretation: Mapped[str] = mapped_column(Text, default="")
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[str] = mapped_column(String(40), default="Generated")
    meta: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class RecessionRiskRow(Base):
    __tablename__ = "recession_risk_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    date: Mapped[str] = mapped_column(String(10), nullable=False, unique=True)
    risk_score: Mapped[float] = mapped_column(Float, nullable=False)
    prediction: Mapped[str] = mapped_column(Text, nullable=False)
    recommendation: Mapped[str] = mapped_column(Text, nullable=False)
    indicators: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class InsightRow(Base):
    __tablename__ = "insights"
    __table_args__ = (
        # at most one daily brief per calendar date
        Index(
            "uq_daily_brief_date",
            "date",
            unique=True,
            sqlite_where=text("category = 'daily_brief'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    impact_level: Mapped[Optional[str]] = mapped_column(String(10))
    relevant_industries: Mapped[List[str]] = mapped_column(JSON, default=list)
    related_events: Mapped[List[int]] = mapped_column(JSON, default=list)
    date: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class SourceRow(Base):
    __tablename__ = "sources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    type: Mapped[str] = mapped_column(String(20), default="rss")
    url: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(10), default="active")
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    last_scraped: Mapped[Optional[datetime]] = mapped_column(DateTime)
    items_last_run: Mapped[int] = mapped_column(Integer, default=0)
