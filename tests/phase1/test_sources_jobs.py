# tests/phase1/test_sources_jobs.py
from pathlib import Path

from common.schemas import RawItem, SourceDescriptor
from data_ingest import jobs
from data_ingest.__main__ import main as ingest_main
from data_ingest.feed_fetcher import FeedFetcher
from data_ingest.sources import ALL_SOURCES, active_sources, load_feeds_file
from normalize_enrich.classifier import FallbackClassifier
from normalize_enrich.normalizer import Normalizer
from shared.cache import BoundedCache
from storage.queries import list_events, list_sources

FEED = Path(__file__).resolve().parents[1] / "fixtures" / "world_feed.xml"


def test_active_sources_priority_order_and_disabled():
    srcs = active_sources()
    assert all(s.enabled for s in srcs)
    assert "The Australian" not in [s.name for s in srcs]
    prios = [s.priority for s in srcs]
    assert prios == sorted(prios, reverse=True)
    # stable for equal priority
    assert [s.name for s in srcs if s.priority == 10] == ["ABC News Australia", "ABC News Business"]
    assert len(srcs) == len(ALL_SOURCES) - 1


def test_load_feeds_file(tmp_path):
    p = tmp_path / "feeds.tsv"
    p.write_text(
        "# url\tname\tcategory\tregion\tpriority\n"
        "\n"
        "https://a.example/rss\tA wire\ttrade\tEurope\t8\n"
        "https://b.example/rss\n"
        "https://c.example/rss\tC\t\t\tlots\n",
        encoding="utf-8",
    )
    srcs = load_feeds_file(p)
    assert [(s.name, s.category, s.region, s.priority) for s in srcs] == [
        ("A wire", "trade", "Europe", 8),
        ("https://b.example/rss", "world", "Global", 5),
        ("C", "world", "Global", 5),
    ]


class _FakeNewsApi:
    def __init__(self, items):
        self.items = items

    def collect(self):
        yield from self.items


def test_run_news_stores_events_and_source_status(db, settings):
    src = SourceDescriptor(name="World desk", url=FEED.as_uri(), category="world", priority=9)
    news = _FakeNewsApi([
        RawItem(source="Wire", source_category="newsapi", title="Sydney port strike spreads to Melbourne",
                link="https://n/1", summary="Shipping delays grow."),
        RawItem(source="Wire", source_category="newsapi", title="Celebrity wedding", link="https://n/2"),
    ])
    normalizer = Normalizer(FallbackClassifier(cache=BoundedCache(32)), settings)

    run = jobs.run_news(
        db, settings,
        sources=[src],
        fetcher=FeedFetcher(settings, use_cache=False),
        normalizer=normalizer,
        news_api=news,
    )

    c = run.counters()
    assert c["forwarded"] == 2
    assert c["stored"] == 3
    assert c["newsapi_skipped"] == 1
    titles = {e.title for e in list_events(db)}
    assert "Sydney port strike spreads to Melbourne" in titles
    [row] = list_sources(db)
    assert (row["name"], row["status"], row["items_last_run"]) == ("World desk", "active", 2)


def test_cli_sources_lists_feeds_file(tmp_path, capsys):
    p = tmp_path / "feeds.tsv"
    p.write_text("https://a.example/rss\tA wire\ttrade\tEurope\t8\n", encoding="utf-8")
    assert ingest_main(["sources", "--feeds", str(p)]) == 0
    out = capsys.readouterr().out
    assert "A wire" in out
    assert "https://a.example/rss" in out


def test_cli_backfill_writes_history(tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("FRED_API_KEY", raising=False)
    url = f"sqlite:///{tmp_path / 'geo.db'}"
    assert ingest_main(["--db-url", url, "backfill", "--days", "3"]) == 0
    # today plus three days back
    assert "backfilled 4 day(s)" in capsys.readouterr().out
