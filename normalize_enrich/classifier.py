# normalize_enrich/classifier.py
#
# Three strategies share classify(title, body) -> Classification:
#   RuleBasedClassifier  deterministic keyword tables (always available)
#   OpenAIClassifier     optional LLM call; raises ClassificationError on any failure
#   FallbackClassifier   memoizes results and drops to the rules when the AI path fails
#
# build_classifier(settings) picks the composition at construction time.

from __future__ import annotations

import json
import math
import threading
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from common.config import Settings
from common.errors import ClassificationError
from common.logging import get_logger
from common.schemas import CATEGORIES, Classification, EntityBag
from normalize_enrich import rules
from normalize_enrich.entities import extract_entities
from normalize_enrich.relevance import score_relevance
from shared.cache import BoundedCache

log = get_logger("classifier")

SUMMARY_CHARS = 200
CACHE_TITLE_CHARS = 100
ENTITY_KEYS = ("countries", "companies", "commodities", "people")


class Classifier(Protocol):
    name: str

    def classify(self, title: str, body: str = "") -> Classification: ...


def rule_summary(body: str) -> str:
    return (body or "")[:SUMMARY_CHARS] + "..."


def cache_key(prefix: Optional[str], title: str) -> str:
    return f"{prefix or ''}:{(title or '')[:CACHE_TITLE_CHARS]}"


# ---- Rules --------------------------------------------------------------------

def categorize(text: str) -> str:
    hit = rules.first_match(rules.CATEGORY_RULES, text)
    return hit.effect if hit else rules.DEFAULT_CATEGORY


def score_severity(text: str, category: str) -> int:
    severity = rules.BASE_SEVERITY
    level = rules.first_match(rules.SEVERITY_LEVEL_RULES, text)
    if level:
        severity = level.effect

    for boost in rules.SEVERITY_BOOSTS:
        if boost.category != category:
            continue
        if boost.requires is not None and not boost.requires.search(text):
            continue
        severity = min(10, severity + boost.delta)
        break

    override = rules.first_match(rules.SEVERITY_OVERRIDE_RULES, text)
    if override:
        severity = override.effect
    return max(1, min(10, severity))


def score_sentiment(text: str) -> float:
    score = sum(r.effect for r in rules.all_matches(rules.SENTIMENT_RULES, text))
    return round(max(-1.0, min(1.0, score)), 4)


class RuleBasedClassifier:
    name = "rules"

    def classify(self, title: str, body: str = "") -> Classification:
        text = f"{title or ''} {body or ''}"
        category = categorize(text)
        return Classification(
            category=category,
            severity=score_severity(text, category),
            sentiment=score_sentiment(text),
            entities=extract_entities(title, body),
            relevance=score_relevance(title, body),
            summary=rule_summary(body),
            classifier=self.name,
        )


# ---- OpenAI -------------------------------------------------------------------

SYSTEM_PROMPT = "You are a geopolitical analyst. Provide concise, accurate analysis in JSON format."

PROMPT_TEMPLATE = """Analyze this geopolitical event and provide structured output:

Title: {title}
Description: {body}

Provide:
1. Category (one of: Conflict, Trade, Politics, Economy, Climate, Tech)
2. Severity (1-10 scale, where 10 is most severe/impactful)
3. Entities (countries, companies, people, commodities mentioned)
4. Sentiment (-1 to 1, where -1 is very negative, 1 is very positive)
5. Brief summary (50 words max)

Format as JSON:
{{
  "category": "...",
  "severity": X,
  "entities": {{"countries": [], "companies": [], "people": [], "commodities": []}},
  "sentiment": X.X,
  "summary": "..."
}}"""


class OpenAIClassifier:
    """
    LLM-backed classifier. Relevance is not part of the model's JSON contract and
    is always scored by the rule tables.
    """

    name = "ai"

    def __init__(self, client: Any, model: str = "gpt-4o-mini", timeout: float = 30.0) -> None:
        self.client = client
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["OpenAIClassifier"]:
        if not settings.openai_api_key:
            return None
        from openai import OpenAI

        client = OpenAI(api_key=settings.openai_api_key, timeout=settings.ai_timeout_secs, max_retries=1)
        return cls(client, model=settings.openai_model, timeout=settings.ai_timeout_secs)

    def _complete(self, title: str, body: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": PROMPT_TEMPLATE.format(title=title, body=body)},
                ],
                temperature=0.3,
                max_tokens=500,
                response_format={"type": "json_object"},
                timeout=self.timeout,
            )
            return response.choices[0].message.content or ""
        except Exception as e:  # transport, auth, rate limit and timeout errors all fall back
            raise ClassificationError(f"AI call failed: {e}") from e

    def classify(self, title: str, body: str = "") -> Classification:
        content = self._complete(title, body)
        try:
            data: Dict[str, Any] = json.loads(content)
        except ValueError as e:
            raise ClassificationError(f"AI returned malformed JSON: {e}") from e
        if not isinstance(data, dict):
            raise ClassificationError("AI returned a non-object JSON payload")

        category = str(data.get("category") or "").strip().title()
        if category not in CATEGORIES:
            raise ClassificationError(f"AI returned unknown category {data.get('category')!r}")
        for key in ("severity", "sentiment"):
            value = data.get(key)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise ClassificationError(f"AI returned non-numeric {key}")
            if not math.isfinite(value):
                raise ClassificationError(f"AI returned non-finite {key}")

        raw_entities = data.get("entities") or {}
        if not isinstance(raw_entities, dict):
            raise ClassificationError("AI returned malformed entities")
        for k in ENTITY_KEYS:
            if not isinstance(raw_entities.get(k) or [], list):
                raise ClassificationError(f"AI returned non-list entities.{k}")

        try:
            entities = EntityBag(**{k: [str(x) for x in raw_entities.get(k) or [] if x] for k in ENTITY_KEYS})
            return Classification(
                category=category,
                severity=data["severity"],
                sentiment=data["sentiment"],
                entities=entities,
                relevance=score_relevance(title, body),
                summary=str(data.get("summary") or rule_summary(body)),
                classifier=self.name,
            )
        except (ValidationError, TypeError, ValueError, OverflowError) as e:
            raise ClassificationError(f"AI returned an unusable payload: {e}") from e


# ---- Composition --------------------------------------------------------------

class FallbackClassifier:
    """
    Memoizing front for a primary classifier. Any failure of the primary resolves
    to the rule result, so classify() always returns a complete Classification.
    """

    def __init__(
        self,
        primary: Optional[Classifier] = None,
        fallback: Optional[Classifier] = None,
        cache: Optional[BoundedCache] = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback or RuleBasedClassifier()
        self.cache = cache if cache is not None else BoundedCache(2048)
        self.fallbacks = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self.primary.name if self.primary else self.fallback.name

    def _fell_back(self) -> None:
        with self._lock:
            self.fallbacks += 1

    def classify(self, title: str, body: str = "", *, source: Optional[str] = None) -> Classification:
        key = cache_key(source, title)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        result: Optional[Classification] = None
        if self.primary is not None:
            try:
                result = self.primary.classify(title, body)
            except ClassificationError as e:
                self._fell_back()
                log.warning("classification fallback to rules for %r: %s", (title or "")[:80], e)
            except Exception as e:
                self._fell_back()
                log.warning("unexpected %s from %s classifier for %r; using rules: %s",
                            type(e).__name__, self.primary.name, (title or "")[:80], e)
        if result is None:
            result = self.fallback.classify(title, body)

        self.cache.put(key, result)
        return result


def build_classifier(
    settings: Optional[Settings] = None,
    *,
    primary: Optional[Classifier] = None,
    cache: Optional[BoundedCache] = None,
) -> FallbackClassifier:
    settings = settings or Settings.from_env()
    if primary is None:
        primary = OpenAIClassifier.from_settings(settings)
    if primary is None:
        log.info("OPENAI_API_KEY not set; using rule-based classifier")
    return FallbackClassifier(
        primary=primary,
        fallback=RuleBasedClassifier(),
        cache=cache if cache is not None else BoundedCache(settings.classifier_cache_size),
    )
