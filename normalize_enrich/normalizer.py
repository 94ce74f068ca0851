# normalize_enrich/normalizer.py
"""
RawItem -> Event.

Classification, location, impact tags and the impact assessment are attached
once here; the Event is never modified after it is stored. When an AI
classifier is configured, items are classified in windows of
AI_MAX_CONCURRENT concurrent calls with AI_BATCH_DELAY_SECS between windows.
Rule-only runs classify sequentially without delays.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from common.config import Settings
from common.logging import get_logger
from common.schemas import Classification, Event, RawItem
from normalize_enrich.classifier import FallbackClassifier, build_classifier
from normalize_enrich.geo import locate
from normalize_enrich.impact import assess_impact, impact_tags
from shared.datetime_utils import parse_to_utc, utc_now
from shared.dedupe import TitleDeduper
from storage.event_store import DESCRIPTION_MAX, TITLE_MAX, EventStore

log = get_logger("normalizer")


def build_event(item: RawItem, c: Classification) -> Event:
    title = (item.title or "")[:TITLE_MAX]
    body = (item.summary or "")[:DESCRIPTION_MAX]
    loc = locate(c.entities.countries)
    try:
        when = parse_to_utc(item.published)
    except ValueError:
        when = utc_now()
    return Event(
        title=title,
        description=body,
        category=c.category,
        severity=c.severity,
        region=loc.region,
        country=loc.country,
        country_code=loc.country_code,
        latitude=loc.latitude,
        longitude=loc.longitude,
        date=when,
        source_name=item.source,
        source_url=item.link,
        entities=c.entities,
        sentiment=c.sentiment,
        impact_tags=impact_tags(title, body),
        relevance_score=c.relevance.score,
        relevance_band=c.relevance.band,
        relevance_reasons=list(c.relevance.reasons),
        summary=c.summary,
        impact=assess_impact(title, body, c.category, c.severity, loc.country, loc.region),
    )


class Normalizer:
    def __init__(
        self,
        classifier: Optional[FallbackClassifier] = None,
        settings: Optional[Settings] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.classifier = classifier or build_classifier(self.settings)
        self.sleep = sleep

    def _classify(self, item: RawItem) -> Classification:
        return self.classifier.classify(item.title or "", item.summary or "", source=item.source)

    def to_event(self, item: RawItem) -> Event:
        return build_event(item, self._classify(item))

    def try_event(self, item: RawItem) -> Optional[Event]:
        """to_event(), or None when this one item cannot be enriched."""
        try:
            return self.to_event(item)
        except Exception as e:
            log.warning("skipping item %r from %s: %s: %s",
                        (item.title or "")[:80], item.source, type(e).__name__, e)
            return None

    def normalize(self, items: Iterable[RawItem]) -> List[Event]:
        """Enrich items in order; items that fail enrichment are dropped."""
        batch = list(items)
        if self.classifier.primary is None:
            results = [self.try_event(i) for i in batch]
        else:
            window = max(1, self.settings.ai_max_concurrent)
            results = []
            with ThreadPoolExecutor(max_workers=window) as pool:
                for start in range(0, len(batch), window):
                    if start > 0 and self.settings.ai_batch_delay_secs > 0:
                        self.sleep(self.settings.ai_batch_delay_secs)
                    results.extend(pool.map(self.try_event, batch[start:start + window]))
        return [e for e in results if e is not None]


@dataclass
class IngestReport:
    received: int = 0
    duplicates: int = 0
    failed: int = 0
    stored: int = 0

    def counters(self) -> dict:
        return {
            "received": self.received,
            "duplicates": self.duplicates,
            "failed": self.failed,
            "stored": self.stored,
        }


def ingest(items: Iterable[RawItem], normalizer: Normalizer, store: EventStore) -> IngestReport:
    """
    Drop titles already seen in this run or already stored before classifying,
    then persist. A duplicate that slips past the pre-check (e.g. a concurrent
    run) is absorbed by the store and counted the same way. Items that fail
    enrichment are counted as failed; the rest are still stored.
    """
    report = IngestReport()
    deduper = TitleDeduper()
    fresh: List[RawItem] = []
    for item in items:
        report.received += 1
        if not deduper.add(item.title) or store.exists(item.title or ""):
            report.duplicates += 1
            continue
        fresh.append(item)

    events = normalizer.normalize(fresh)
    report.failed = len(fresh) - len(events)
    for event in events:
        if store.create_event(event) is None:
            report.duplicates += 1
        else:
            report.stored += 1

    log.info("ingest %s", " ".join(f"{k}={v}" for k, v in report.counters().items()))
    return report
