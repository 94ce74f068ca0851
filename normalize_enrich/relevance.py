# normalize_enrich/relevance.py
# Jurisdiction relevance: how strongly an item concerns Australian interests.

from __future__ import annotations

from typing import List, Sequence, Tuple

from common.schemas import Relevance
from normalize_enrich.rules import (
    RELEVANCE_BANDS,
    RELEVANCE_GROUPS,
    RELEVANCE_THRESHOLD,
    RELEVANT_PATTERN,
    RelevanceGroup,
    distinct_hits,
)


def band_for(score: int, bands: Sequence[Tuple[int, str]] = RELEVANCE_BANDS) -> str:
    for floor, band in bands:
        if score >= floor:
            return band
    return "low"


def score_relevance(title: str, body: str = "", groups: Sequence[RelevanceGroup] = RELEVANCE_GROUPS) -> Relevance:
    """Sum of capped per-group points, clamped to 0..100 and banded at 30/50/70."""
    text = f"{title or ''} {body or ''}".lower()
    score = 0
    reasons: List[str] = []
    for g in groups:
        hits = distinct_hits(g.rule, text)
        if not hits:
            continue
        score += min(g.cap, len(hits) * g.per_hit)
        reasons.append(g.reason.format(hits=", ".join(hits[: g.show])))
    score = max(0, min(100, score))
    return Relevance(score=score, band=band_for(score), reasons=reasons)


def is_relevant(title: str, body: str = "") -> bool:
    """Cheap allow-list check run before any classification."""
    return bool(RELEVANT_PATTERN.search(f"{title or ''} {body or ''}"))


def passes_relevance_gate(rel: Relevance, source_category: str | None, threshold: int = RELEVANCE_THRESHOLD) -> bool:
    if source_category == "australian_news":
        return True
    return rel.score >= threshold
