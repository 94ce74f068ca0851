from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

CATEGORIES = ("Conflict", "Trade", "Politics", "Economy", "Climate", "Tech")
Category = Literal["Conflict", "Trade", "Politics", "Economy", "Climate", "Tech"]
RelevanceBand = Literal["low", "medium", "high", "critical"]
RelationshipType = Literal["causes", "relates_to", "follows"]
InsightCategory = Literal["daily_brief", "analysis", "prediction", "ai_analysis"]
PatternSeverity = Literal["low", "medium", "high", "critical"]
PatternType = Literal["trend", "escalation", "disruption", "opportunity"]


def _dedupe_keep_order(values: List[str]) -> List[str]:
    seen = set()
    out: List[str] = []
    for v in values:
        if v and v not in seen:
            seen.add(v)
            out.append(v)
    return out


class SourceDescriptor(BaseModel):
    name: str
    url: str
    category: str = "world"
    region: str = "Global"
    priority: int = 5
    enabled: bool = True
    type: str = "rss"


class RawItem(BaseModel):
    source: str
    source_category: Optional[str] = None
    title: Optional[str] = None
    link: Optional[str] = None
    summary: str = ""
    published: Optional[str] = None


class EntityBag(BaseModel):
    countries: List[str] = Field(default_factory=list)
    companies: List[str] = Field(default_factory=list)
    commodities: List[str] = Field(default_factory=list)
    people: List[str] = Field(default_factory=list)

    @field_validator("countries", "companies", "commodities", "people", mode="after")
    @classmethod
    def _unique(cls, v: List[str]) -> List[str]:
        return _dedupe_keep_order([str(x).strip() for x in v])


class Relevance(BaseModel):
    score: int = 0
    band: RelevanceBand = "low"
    reasons: List[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, v: Any) -> int:
        return max(0, min(100, int(round(float(v)))))


class Classification(BaseModel):
    """Complete classifier output. Severity and sentiment are clamped, never missing."""
    category: Category = "Politics"
    severity: int = 5
    sentiment: float = 0.0
    entities: EntityBag = Field(default_factory=EntityBag)
    relevance: Relevance = Field(default_factory=Relevance)
    summary: str = ""
    classifier: str = "rules"

    @field_validator("severity", mode="before")
    @classmethod
    def _clamp_severity(cls, v: Any) -> int:
        return max(1, min(10, int(round(float(v)))))

    @field_validator("sentiment", mode="before")
    @classmethod
    def _clamp_sentiment(cls, v: Any) -> float:
        return max(-1.0, min(1.0, float(v)))


class Event(BaseModel):
    id: Optional[int] = None
    title: str
    description: str = ""
    category: Category = "Politics"
    severity: int = 5
    region: str = "Global"
    country: str = "Unknown"
    country_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    date: datetime
    source_name: Optional[str] = None
    source_url: Optional[str] = None
    entities: EntityBag = Field(default_factory=EntityBag)
    sentiment: float = 0.0
    impact_tags: List[str] = Field(default_factory=list)
    relevance_score: int = 0
    relevance_band: RelevanceBand = "low"
    relevance_reasons: List[str] = Field(default_factory=list)
    summary: str = ""
    impact: Optional["ImpactAssessment"] = None

    @field_validator("severity", mode="before")
    @classmethod
    def _clamp_severity(cls, v: Any) -> int:
        return max(1, min(10, int(round(float(v if v is not None else 5)))))

    @field_validator("sentiment", mode="before")
    @classmethod
    def _clamp_sentiment(cls, v: Any) -> float:
        return max(-1.0, min(1.0, float(v if v is not None else 0.0)))


class Connection(BaseModel):
    id: Optional[int] = None
    event_a_id: int
    event_b_id: int
    relationship_type: RelationshipType = "relates_to"
    # which inference rule produced the edge
    basis: str = "manual"
    confidence: float
    explanation: str = ""


class EconomicIndicator(BaseModel):
    indicator_name: str
    date: str  # YYYY-MM-DD
    value: float
    interpretation: str
    score: int
    source: str = "Generated"
    metadata: Dict[str, Any] = Field(default_factory=dict)


class IndicatorContribution(BaseModel):
    name: str
    value: float
    score: int
    weight: float
    interpretation: str


class RecessionRiskSnapshot(BaseModel):
    date: str  # YYYY-MM-DD
    risk_score: float
    prediction: str
    recommendation: str
    indicators: List[IndicatorContribution] = Field(default_factory=list)


class Insight(BaseModel):
    id: Optional[int] = None
    title: str
    content: str
    category: InsightCategory
    impact_level: Optional[str] = None
    relevant_industries: List[str] = Field(default_factory=list)
    related_events: List[int] = Field(default_factory=list)
    date: str  # YYYY-MM-DD


class Pattern(BaseModel):
    type: PatternType
    severity: PatternSeverity
    title: str
    description: str
    affected_regions: List[str] = Field(default_factory=list)
    impacted_industries: List[str] = Field(default_factory=list)
    related_events: List[int] = Field(default_factory=list)
    confidence: float


Timeframe = Literal["immediate", "short-term", "medium-term", "long-term"]


class ImpactAssessment(BaseModel):
    """What an event means for businesses in the monitored jurisdiction."""
    summary: str
    detailed_analysis: str = ""
    affected_industries: List[str] = Field(default_factory=list)
    trade_impact: Optional[str] = None
    supply_chain_impact: Optional[str] = None
    commodity_impact: Optional[str] = None
    recommendation: str = ""
    timeframe: Timeframe = "medium-term"
    confidence: int = 60
    analyzer: str = "rules"
Event.model_rebuild()
