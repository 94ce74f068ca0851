# tests/phase1/test_classifier.py
import json
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest

from common.errors import ClassificationError
from common.schemas import Classification
from normalize_enrich.classifier import (
    FallbackClassifier,
    OpenAIClassifier,
    RuleBasedClassifier,
    build_classifier,
    categorize,
    score_severity,
    score_sentiment,
)
from shared.cache import BoundedCache


def test_nuclear_war_headline_is_max_severity_conflict():
    c = RuleBasedClassifier().classify("Nuclear Crisis Erupts", "Leaders warn of war as tensions climb.")
    assert c.category == "Conflict"
    assert c.severity == 10
    assert c.sentiment < 0
    assert c.classifier == "rules"


def test_plain_meeting_is_low_severity_politics():
    c = RuleBasedClassifier().classify("Ministers hold meeting on school funding", "")
    assert c.category == "Politics"
    assert c.severity == 3
    assert c.sentiment == 0.0
    assert c.summary == "..."


def test_category_precedence_and_word_edges():
    # Conflict is checked before Trade
    assert categorize("Missile strike hits shipping lane") == "Conflict"
    # "ai" inside "Thailand" / "said" is not the Tech keyword
    assert categorize("Thailand said talks continue") == "Politics"
    assert categorize("New AI chip rules") == "Tech"
    # inflections hit the stem
    assert categorize("Tariffs imposed on imports") == "Trade"


def test_severity_boosts_and_overrides():
    assert score_severity("border conflict escalates", "Conflict") == 8  # 6 + conflict boost
    assert score_severity("flood disaster", "Climate") == 10            # 8 + disaster boost
    assert score_severity("heavy rain forecast", "Climate") == 5        # boost requires "disaster"
    assert score_severity("pandemic meeting scheduled", "Politics") == 9


def test_sentiment_counts_each_word_once_and_clamps():
    assert score_sentiment("peace deal and peace deal") == pytest.approx(0.3)
    assert score_sentiment("war " * 20) == pytest.approx(-0.15)
    many = " ".join(["crisis", "conflict", "war", "attack", "disaster", "collapse", "failure", "threat"])
    assert score_sentiment(many) == -1.0


def test_classification_bounds_are_clamped():
    c = Classification(severity=42, sentiment=-3)
    assert c.severity == 10
    assert c.sentiment == -1.0
    assert Classification(severity=-5, sentiment=7).severity == 1


class _FailingPrimary:
    name = "ai"

    def __init__(self):
        self.calls = 0

    def classify(self, title, body=""):
        self.calls += 1
        raise ClassificationError("upstream timeout")


def test_fallback_uses_rules_when_primary_fails():
    primary = _FailingPrimary()
    fc = FallbackClassifier(primary=primary, cache=BoundedCache(8))
    c = fc.classify("Missile attack near port", "", source="bbc")
    assert c.classifier == "rules"
    assert c.category == "Conflict"
    assert fc.fallbacks == 1
    assert fc.name == "ai"


def test_fallback_memoizes_by_source_and_title():
    primary = _FailingPrimary()
    cache = BoundedCache(8)
    fc = FallbackClassifier(primary=primary, cache=cache)
    first = fc.classify("Steel prices surge", "", source="reuters")
    second = fc.classify("Steel prices surge", "different body", source="reuters")
    assert first is second
    assert primary.calls == 1
    assert cache.hits == 1
    fc.classify("Steel prices surge", "", source="abc")
    assert primary.calls == 2


def _fake_client(content):
    def create(**kw):
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def test_openai_classifier_parses_and_clamps():
    payload = {
        "category": "trade",
        "severity": 14,
        "sentiment": -0.4,
        "entities": {"countries": ["China", "China"], "companies": [], "people": [], "commodities": ["copper"]},
        "summary": "Copper tariffs rise.",
    }
    c = OpenAIClassifier(_fake_client(json.dumps(payload))).classify("Copper tariffs rise in China", "")
    assert c.category == "Trade"
    assert c.severity == 10
    assert c.entities.countries == ["China"]
    assert c.classifier == "ai"
    # relevance always comes from the rule tables
    assert c.relevance.score > 0


BAD_NUMBERS_AND_ENTITIES = [
    '{"category": "Trade", "severity": NaN, "sentiment": 0}',
    '{"category": "Trade", "severity": 1e400, "sentiment": 0}',
    '{"category": "Trade", "severity": 4, "sentiment": -Infinity}',
    json.dumps({"category": "Trade", "severity": 4, "sentiment": 0, "entities": {"countries": 5}}),
    json.dumps({"category": "Trade", "severity": 4, "sentiment": 0, "entities": {"people": "Xi Jinping"}}),
]


@pytest.mark.parametrize("content", [
    "not json at all",
    json.dumps([1, 2]),
    json.dumps({"category": "Sports", "severity": 3, "sentiment": 0}),
    json.dumps({"category": "Trade", "severity": "high", "sentiment": 0}),
    *BAD_NUMBERS_AND_ENTITIES,
])
def test_openai_classifier_rejects_malformed_output(content):
    with pytest.raises(ClassificationError):
        OpenAIClassifier(_fake_client(content)).classify("x", "")


@pytest.mark.parametrize("content", BAD_NUMBERS_AND_ENTITIES)
def test_fallback_resolves_unusable_ai_payload_to_rules(content):
    fc = FallbackClassifier(primary=OpenAIClassifier(_fake_client(content)), cache=BoundedCache(8))
    c = fc.classify("Missile attack near port", "", source="bbc")
    assert c.classifier == "rules"
    assert c.category == "Conflict"
    assert 1 <= c.severity <= 10
    assert fc.fallbacks == 1


class _BuggyPrimary:
    name = "ai"

    def classify(self, title, body=""):
        raise KeyError("choices")


def test_fallback_absorbs_unexpected_primary_errors():
    fc = FallbackClassifier(primary=_BuggyPrimary(), cache=BoundedCache(8))
    c = fc.classify("Port strike halts exports", "")
    assert c.classifier == "rules"
    assert fc.fallbacks == 1


def test_openai_transport_error_becomes_classification_error():
    def create(**kw):
        raise TimeoutError("read timed out")

    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    with pytest.raises(ClassificationError):
        OpenAIClassifier(client).classify("x", "")


def test_build_classifier_without_key_is_rules_only(settings):
    settings.openai_api_key = None
    fc = build_classifier(settings)
    assert fc.primary is None
    assert fc.name == "rules"
    assert fc.cache.maxsize == settings.classifier_cache_size


def test_fallback_count_is_exact_across_worker_threads():
    fc = FallbackClassifier(primary=_FailingPrimary(), cache=BoundedCache(1024))
    titles = [f"Port strike day {i}" for i in range(200)]
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(fc.classify, titles))
    assert all(r.classifier == "rules" for r in results)
    assert fc.fallbacks == 200
    assert len(fc.cache) == 200
    assert "::Port strike day 0" not in fc.cache
    assert ":Port strike day 0" in fc.cache
