# data_ingest/jobs.py
"""
Ingest stages as callable jobs: news (feeds + NewsAPI -> events), indicators
(today's readings + risk snapshot) and backfill (N days of generated history).
Each job takes an initialized Database and returns its run summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import chain
from typing import Dict, Iterator, List, Optional, Sequence

from common.config import Settings
from common.logging import get_logger
from common.schemas import RawItem, RecessionRiskSnapshot, SourceDescriptor
from data_ingest.feed_fetcher import FeedFetcher, FetchReport
from data_ingest.indicator_collector import BACKFILL_DAYS, IndicatorCollector, snapshot_for
from data_ingest.news_api import NewsApiCollector
from data_ingest.sources import active_sources
from normalize_enrich.normalizer import IngestReport, Normalizer, ingest
from normalize_enrich.relevance import is_relevant, passes_relevance_gate, score_relevance
from shared.datetime_utils import to_day
from storage.database import Database
from storage.event_store import EventStore
from storage.repositories import IndicatorRepository, SourceRepository

log = get_logger("jobs")


@dataclass
class NewsRun:
    fetch: FetchReport = field(default_factory=FetchReport)
    ingest: IngestReport = field(default_factory=IngestReport)
    newsapi_skipped: int = 0

    def counters(self) -> Dict[str, int]:
        c = dict(self.fetch.counters())
        c.update(self.ingest.counters())
        c["newsapi_skipped"] = self.newsapi_skipped
        return c


def _gate_newsapi(items: Iterator[RawItem], run: NewsRun, relevance_gate: bool) -> Iterator[RawItem]:
    for item in items:
        if not is_relevant(item.title or "", item.summary):
            run.newsapi_skipped += 1
            continue
        if relevance_gate and not passes_relevance_gate(score_relevance(item.title or "", item.summary), item.source_category):
            run.newsapi_skipped += 1
            continue
        yield item


def run_news(
    db: Database,
    settings: Optional[Settings] = None,
    *,
    sources: Optional[Sequence[SourceDescriptor]] = None,
    fetcher: Optional[FeedFetcher] = None,
    normalizer: Optional[Normalizer] = None,
    news_api: Optional[NewsApiCollector] = None,
    relevance_gate: bool = True,
) -> NewsRun:
    settings = settings or Settings.from_env()
    source_repo = SourceRepository(db)

    def record(name: str, status: str, error: Optional[str], url: Optional[str], items: int) -> None:
        source_repo.update_status(name, status, error, url=url, items=items)

    fetcher = fetcher or FeedFetcher(settings, on_status=record, relevance_gate=relevance_gate)
    if fetcher.on_status is None:
        fetcher.on_status = record
    normalizer = normalizer or Normalizer(settings=settings)
    news_api = news_api or NewsApiCollector(settings)

    run = NewsRun()
    srcs = active_sources(sources)
    log.info("news run: %d sources", len(srcs))
    items = chain(
        fetcher.fetch_all(srcs, run.fetch),
        _gate_newsapi(news_api.collect(), run, relevance_gate),
    )
    run.ingest = ingest(items, normalizer, EventStore(db))
    log.info("news totals %s", " ".join(f"{k}={v}" for k, v in run.counters().items()))
    return run


def run_indicators(
    db: Database,
    settings: Optional[Settings] = None,
    *,
    collector: Optional[IndicatorCollector] = None,
    day: Optional[str] = None,
) -> RecessionRiskSnapshot:
    collector = collector or IndicatorCollector(settings)
    day = day or to_day()
    readings = collector.collect(day)
    repo = IndicatorRepository(db)
    for r in readings:
        repo.upsert(r)
    snap = snapshot_for(readings, day)
    repo.upsert_risk(snap)
    log.info("risk day=%s score=%.1f prediction=%r", day, snap.risk_score, snap.prediction)
    return snap


def run_backfill(
    db: Database,
    settings: Optional[Settings] = None,
    *,
    days: int = BACKFILL_DAYS,
    collector: Optional[IndicatorCollector] = None,
) -> List[RecessionRiskSnapshot]:
    collector = collector or IndicatorCollector(settings, market=None)
    repo = IndicatorRepository(db)
    out: List[RecessionRiskSnapshot] = []
    for day, readings in collector.backfill(days):
        for r in readings:
            repo.upsert(r)
        snap = snapshot_for(readings, day)
        repo.upsert_risk(snap)
        out.append(snap)
    if out:
        log.info("backfill days=%d first=%s last=%s", len(out), out[0].date, out[-1].date)
    return out
