# tests/phase1/test_normalizer.py
import json
import threading
from datetime import datetime, timezone
from types import SimpleNamespace

from common.errors import ClassificationError
from common.schemas import Classification, RawItem
from normalize_enrich.classifier import FallbackClassifier, OpenAIClassifier
from normalize_enrich.geo import locate
from normalize_enrich.impact import assess_impact, impact_tags, timeframe_for
from normalize_enrich.normalizer import Normalizer, build_event, ingest
from shared.cache import BoundedCache
from storage.event_store import EventStore


def _item(title, summary="", published="2025-10-05T06:20:00Z", source="World desk"):
    return RawItem(source=source, source_category="world", title=title, link=f"https://n/{abs(hash(title))}",
                   summary=summary, published=published)


def _rules_normalizer(settings):
    return Normalizer(FallbackClassifier(cache=BoundedCache(64)), settings)


def test_to_event_enriches_rule_classified_item(settings):
    e = _rules_normalizer(settings).to_event(
        _item("Australia and China sign iron ore deal", "The trade agreement covers exports through 2030.")
    )
    assert e.category == "Trade"
    assert e.severity == 3
    assert e.sentiment > 0
    assert e.entities.countries == ["China", "Australia"]
    assert (e.region, e.country, e.country_code) == ("Asia-Pacific", "China", "CN")
    assert e.latitude is not None
    assert e.date == datetime(2025, 10, 5, 6, 20, tzinfo=timezone.utc)
    assert e.relevance_band == "high"
    assert e.impact_tags == ["general"]
    assert e.impact.timeframe == "long-term"
    assert "mining" in e.impact.affected_industries
    assert e.impact.trade_impact.startswith("High impact")


def test_bad_published_date_falls_back_to_now():
    c = Classification()
    e = build_event(_item("Budget passes", published="not a date"), c)
    assert (datetime.now(timezone.utc) - e.date).total_seconds() < 60


def test_locate_unknown_and_unmapped():
    assert locate([]).region == "Global"
    assert locate([]).country == "Unknown"
    loc = locate(["Qatar"])
    assert (loc.region, loc.country, loc.country_code, loc.latitude) == ("Global", "Qatar", None, None)


def test_impact_tags_and_timeframes():
    assert impact_tags("Steel price surge delays construction") == ["construction", "materials", "pricing", "disruption"]
    assert impact_tags("Budget passes") == ["general"]
    assert [timeframe_for(s) for s in (9, 6, 4, 2)] == ["immediate", "short-term", "medium-term", "long-term"]


def test_impact_chokepoint_and_taiwan_notes():
    a = assess_impact("Shipping halted in the South China Sea", "", "Trade", 8, "Unknown", "Global")
    assert a.summary.startswith("Critical shipping route disruption")
    assert a.supply_chain_impact.startswith("CRITICAL")
    assert a.timeframe == "immediate"

    t = assess_impact("Taiwan drills", "", "Conflict", 7, "Taiwan", "Asia-Pacific")
    assert t.summary.startswith("Taiwan tensions")
    assert {"construction", "logistics", "procurement"} <= set(t.affected_industries)


class _CountingPrimary:
    name = "ai"

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.threads = set()
        self.lock = threading.Lock()

    def classify(self, title, body=""):
        with self.lock:
            self.threads.add(threading.get_ident())
        if title in self.fail_on:
            raise ClassificationError("bad json")
        return Classification(category="Economy", severity=6, classifier="ai")


def test_ai_path_runs_in_windows_with_delay(settings):
    settings.ai_max_concurrent = 2
    settings.ai_batch_delay_secs = 0.5
    slept = []
    primary = _CountingPrimary(fail_on={"item 3"})
    n = Normalizer(FallbackClassifier(primary=primary, cache=BoundedCache(64)), settings, sleep=slept.append)

    events = n.normalize([_item(f"item {i}") for i in range(5)])

    assert [e.title for e in events] == [f"item {i}" for i in range(5)]
    assert slept == [0.5, 0.5]
    assert events[0].category == "Economy"
    # the failing item still gets a complete rule classification
    assert events[3].category == "Politics"
    assert n.classifier.fallbacks == 1


def test_rule_only_path_never_sleeps(settings):
    settings.ai_batch_delay_secs = 5.0
    slept = []
    n = Normalizer(FallbackClassifier(cache=BoundedCache(64)), settings, sleep=slept.append)
    assert len(n.normalize([_item(f"item {i}") for i in range(7)])) == 7
    assert slept == []


def test_ingest_dedupes_in_run_and_against_store(db, settings):
    store = EventStore(db)
    normalizer = _rules_normalizer(settings)
    ingest([_item("Tariffs rise on steel")], normalizer, store)

    report = ingest([
        _item("Tariffs rise on steel"),
        _item("Floods in Jakarta"),
        _item("FLOODS in  Jakarta"),
        _item("Sanctions widen"),
    ], normalizer, store)

    assert report.counters() == {"received": 4, "duplicates": 2, "failed": 0, "stored": 2}
    assert store.count() == 3


class _ScriptedClient:
    """OpenAI-shaped client answering from a list of JSON strings, one per call."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.lock = threading.Lock()
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self.create))

    def create(self, **kw):
        with self.lock:
            content = self.replies.pop(0)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def test_ingest_keeps_run_when_one_ai_reply_is_unusable(db, settings):
    settings.ai_max_concurrent = 1
    good = json.dumps({"category": "Economy", "severity": 6, "sentiment": 0.1})
    client = _ScriptedClient([good] * 5 + ['{"category": "Economy", "severity": NaN, "sentiment": 0}'])
    n = Normalizer(FallbackClassifier(primary=OpenAIClassifier(client), cache=BoundedCache(64)), settings)
    store = EventStore(db)

    report = ingest([_item(f"Budget update {i}") for i in range(6)], n, store)

    assert report.stored == 6
    assert report.failed == 0
    assert store.count() == 6
    assert n.classifier.fallbacks == 1


class _ExplodingClassifier(FallbackClassifier):
    def classify(self, title, body="", *, source=None):
        if title == "item 2":
            raise RuntimeError("boom")
        return super().classify(title, body, source=source)


def test_ingest_counts_failed_items_and_stores_the_rest(db, settings):
    store = EventStore(db)
    n = Normalizer(_ExplodingClassifier(cache=BoundedCache(64)), settings)

    report = ingest([_item(f"item {i}") for i in range(6)], n, store)

    assert report.counters() == {"received": 6, "duplicates": 0, "failed": 1, "stored": 5}
    assert store.count() == 5


def test_normalize_drops_failed_items_on_ai_path(settings):
    settings.ai_max_concurrent = 2
    n = Normalizer(_ExplodingClassifier(primary=_CountingPrimary(), cache=BoundedCache(64)), settings, sleep=lambda s: None)
    events = n.normalize([_item(f"item {i}") for i in range(4)])
    assert [e.title for e in events] == ["item 0", "item 1", "item 3"]
