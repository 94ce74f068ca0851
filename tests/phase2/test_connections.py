# tests/phase2/test_connections.py
from common.schemas import Connection
from signal_detect.connection_engine import (
    event_countries,
    infer_connections,
    run_inference,
    same_category_region,
    shared_country,
)
from storage.event_store import EventStore
from storage.queries import get_connections_for_event, list_connections
from storage.repositories import ConnectionRepository


def test_shared_country_names_the_country(make_event):
    a = make_event(id=1, countries=["Taiwan", "China"], category="Conflict", region="Asia-Pacific")
    b = make_event(id=2, countries=["Taiwan"], category="Trade", region="Asia-Pacific")
    conn = shared_country(a, b)
    assert conn.confidence == 0.7
    assert conn.relationship_type == "relates_to"
    assert "Taiwan" in conn.explanation
    assert "China" not in conn.explanation
    assert same_category_region(a, b) is None


def test_event_country_counts_unless_unknown(make_event):
    assert event_countries(make_event(country="Japan", countries=["China"])) == {"China", "Japan"}
    assert event_countries(make_event(country="Unknown")) == set()


def test_two_rules_give_two_edges(make_event):
    a = make_event(id=1, countries=["Iran"], category="Conflict", region="Middle East")
    b = make_event(id=2, countries=["Iran"], category="Conflict", region="Middle East")
    conns = infer_connections([a, b])
    assert [(c.basis, c.confidence) for c in conns] == [("shared_country", 0.7), ("category_region", 0.6)]
    assert conns[1].explanation == "Both are Conflict events in Middle East"


def test_unrelated_and_unsaved_events_yield_nothing(make_event):
    a = make_event(id=1, countries=["Chile"], category="Trade", region="Americas")
    b = make_event(id=2, countries=["Kenya"], category="Climate", region="Africa")
    assert infer_connections([a, b]) == []
    assert infer_connections([make_event(countries=["Iran"]), make_event(countries=["Iran"])]) == []


def test_limit_caps_output(make_event):
    events = [make_event(id=i, countries=["Israel"]) for i in range(1, 9)]
    assert len(infer_connections(events, limit=5)) == 5


def test_reinserting_the_same_edge_is_a_noop(db, make_event):
    store = EventStore(db)
    a = store.create_event(make_event("a"))
    b = store.create_event(make_event("b"))
    repo = ConnectionRepository(db)
    edge = Connection(event_a_id=a, event_b_id=b, basis="shared_country", confidence=0.7, explanation="x")
    assert repo.insert(edge) is True
    assert repo.insert(edge) is False
    assert len(list_connections(db)) == 1


def test_run_inference_over_store_is_idempotent(db, make_event):
    store = EventStore(db)
    store.create_event(make_event("Taiwan strait drills", severity=8, countries=["Taiwan"],
                                  category="Conflict", region="Asia-Pacific", days_ago=1))
    store.create_event(make_event("Chip export curbs on Taiwan", severity=7, countries=["Taiwan"],
                                  category="Tech", region="Asia-Pacific"))
    store.create_event(make_event("Minor Taiwan trade fair", severity=3, countries=["Taiwan"]))

    repo = ConnectionRepository(db)
    first = run_inference(store, repo)
    assert (first.candidates, first.proposed, first.inserted) == (2, 1, 1)
    second = run_inference(store, repo)
    assert (second.proposed, second.inserted) == (1, 0)

    [conn] = list_connections(db)
    assert "Taiwan" in conn.explanation
    assert get_connections_for_event(db, conn.event_a_id) == [conn]
