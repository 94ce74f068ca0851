# signal_detect/connection_engine.py
"""
Pairwise relationship inference over a small high-severity event window.

Every unordered pair of candidates is checked against the inference rules; each
rule that fires yields its own edge (rules are not merged per pair). The pair is
stored in candidate order (newer event first), so re-running over the same
window proposes the same ordered edges and the store treats them as no-ops.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Set

from common.logging import get_logger
from common.schemas import Connection, Event
from normalize_enrich.geo import UNKNOWN_COUNTRY
from storage.event_store import EventFilter, EventStore
from storage.repositories import ConnectionRepository

log = get_logger("connections")

MIN_SEVERITY = 6
WINDOW = 20
MAX_CONNECTIONS = 30


def event_countries(e: Event) -> Set[str]:
    out = set(e.entities.countries)
    if e.country and e.country != UNKNOWN_COUNTRY:
        out.add(e.country)
    return out


def shared_country(a: Event, b: Event) -> Optional[Connection]:
    shared = sorted(event_countries(a) & event_countries(b))
    if not shared:
        return None
    return Connection(
        event_a_id=a.id,
        event_b_id=b.id,
        relationship_type="relates_to",
        basis="shared_country",
        confidence=0.7,
        explanation=f"Both events involve {', '.join(shared)}",
    )


def same_category_region(a: Event, b: Event) -> Optional[Connection]:
    if a.category != b.category or a.region != b.region:
        return None
    return Connection(
        event_a_id=a.id,
        event_b_id=b.id,
        relationship_type="relates_to",
        basis="category_region",
        confidence=0.6,
        explanation=f"Both are {a.category} events in {a.region}",
    )


Rule = Callable[[Event, Event], Optional[Connection]]
RULES: List[Rule] = [shared_country, same_category_region]


@dataclass
class InferenceResult:
    candidates: int = 0
    proposed: int = 0
    inserted: int = 0


def infer_connections(
    events: Sequence[Event],
    rules: Sequence[Rule] = RULES,
    limit: int = MAX_CONNECTIONS,
) -> List[Connection]:
    """O(n^2) over `events`; output capped at `limit` in discovery order."""
    out: List[Connection] = []
    persisted = [e for e in events if e.id is not None]
    for i, a in enumerate(persisted):
        for b in persisted[i + 1:]:
            for rule in rules:
                conn = rule(a, b)
                if conn is None:
                    continue
                out.append(conn)
                if len(out) >= limit:
                    return out
    return out


def candidate_events(store: EventStore, min_severity: int = MIN_SEVERITY, window: int = WINDOW) -> List[Event]:
    return store.get_events(EventFilter(min_severity=min_severity, limit=window))


def run_inference(
    store: EventStore,
    repo: ConnectionRepository,
    *,
    min_severity: int = MIN_SEVERITY,
    window: int = WINDOW,
    limit: int = MAX_CONNECTIONS,
) -> InferenceResult:
    events = candidate_events(store, min_severity, window)
    proposed = infer_connections(events, limit=limit)
    inserted = repo.insert_many(proposed)
    res = InferenceResult(candidates=len(events), proposed=len(proposed), inserted=inserted)
    log.info(
        "connections candidates=%d proposed=%d inserted=%d",
        res.candidates, res.proposed, res.inserted,
    )
    return res
