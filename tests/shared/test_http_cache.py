# tests/shared/test_http_cache.py
import json
from pathlib import Path

from shared.http_cache import conditional_headers, is_http, load_cache, remember_response, save_cache


def test_conditional_headers_from_cache():
    url = "https://example.com/feed.xml"
    cache = {url: {"etag": 'W/"abc"', "last_modified": "Sat, 04 Oct 2025 00:00:00 GMT"}}
    h = conditional_headers(url, cache)
    assert h == {"If-None-Match": 'W/"abc"', "If-Modified-Since": "Sat, 04 Oct 2025 00:00:00 GMT"}
    assert conditional_headers("https://example.com/other", cache) == {}


def test_file_urls_never_cached():
    assert not is_http("file:///tmp/feed.xml")
    cache = {}
    remember_response("file:///tmp/feed.xml", {"ETag": "x"}, cache, "2025-10-05T00:00:00Z")
    assert cache == {}
    assert conditional_headers("file:///tmp/feed.xml", {"file:///tmp/feed.xml": {"etag": "x"}}) == {}


def test_remember_response_updates_and_ignores_bare_responses():
    url = "http://example.com/rss"
    cache = {}
    remember_response(url, {}, cache, "t0")
    assert cache == {}
    remember_response(url, {"etag": '"v1"', "Last-Modified": "lm1"}, cache, "t1")
    assert cache[url] == {"etag": '"v1"', "last_modified": "lm1", "fetched": "t1"}
    remember_response(url, {"ETag": '"v2"'}, cache, "t2")
    assert cache[url]["etag"] == '"v2"'
    assert cache[url]["last_modified"] == "lm1"


def test_save_and_load_round_trip(tmp_path: Path):
    path = tmp_path / "nested" / "cache.json"
    save_cache(str(path), {"u": {"etag": "e"}})
    assert json.loads(path.read_text(encoding="utf-8")) == {"u": {"etag": "e"}}
    assert load_cache(str(path)) == {"u": {"etag": "e"}}


def test_load_cache_tolerates_missing_and_corrupt(tmp_path: Path):
    assert load_cache(str(tmp_path / "nope.json")) == {}
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert load_cache(str(bad)) == {}
