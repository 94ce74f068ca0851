# data_ingest/feed_fetcher.py
"""
RSS/Atom fetcher.

- One source at a time, with a fixed delay between sources.
- A failing source (network, HTTP status, parse, timeout) is logged, its status
  recorded as "error", and the run moves on.
- HTTP sources send If-None-Match / If-Modified-Since from the header cache; a
  304 yields nothing and keeps the source "active".
- file:// URLs are parsed from disk for offline runs and tests.
- Items without a title or link are skipped and counted; items that miss the
  keyword allow-list (or the relevance gate) are dropped before classification.
"""

from __future__ import annotations

import html
import re
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

import feedparser
import requests

from common.config import Settings
from common.errors import FetchError, MalformedItemError
from common.logging import get_logger
from common.schemas import RawItem, SourceDescriptor
from data_ingest.sources import JURISDICTION_CATEGORY
from normalize_enrich.relevance import is_relevant, passes_relevance_gate, score_relevance
from shared.datetime_utils import parse_entry_date, to_iso_utc
from shared.http_cache import conditional_headers, is_http, load_cache, remember_response, save_cache

log = get_logger("fetcher")

USER_AGENT = "geosignals/1.0 (+feed monitor)"

# (name, status, error, url, items)
StatusCallback = Callable[[str, str, Optional[str], Optional[str], int], None]

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")


def strip_html(s: str) -> str:
    return _WS_RE.sub(" ", html.unescape(_TAG_RE.sub(" ", s or ""))).strip()


def normalize_file_url(u: str) -> str:
    """file://C:/x and file://rel/path -> file:///..."""
    p = urlparse(u)
    if p.scheme.lower() != "file":
        return u
    if p.netloc:
        path = p.path if p.path.startswith("/") else "/" + p.path
        return f"file:///{p.netloc}{path}"
    if not u.startswith("file:///"):
        return "file:///" + u[len("file://"):]
    return u


def _first_link(entry: Any) -> str:
    if entry.get("link"):
        return str(entry["link"])
    for l in entry.get("links") or []:
        if l.get("href"):
            return str(l["href"])
    return ""


def entry_description(entry: Any) -> str:
    """summary -> content -> description -> ''"""
    if entry.get("summary"):
        return strip_html(entry["summary"])
    content = entry.get("content") or []
    if content and content[0].get("value"):
        return strip_html(content[0]["value"])
    return strip_html(entry.get("description") or "")


def entry_to_raw(entry: Any, source: SourceDescriptor) -> RawItem:
    title = strip_html(entry.get("title") or "")
    link = _first_link(entry)
    if not title or not link:
        raise MalformedItemError(f"{source.name}: entry missing {'title' if not title else 'link'}")
    return RawItem(
        source=source.name,
        source_category=source.category,
        title=title,
        link=link,
        summary=entry_description(entry),
        published=to_iso_utc(parse_entry_date(entry)),
    )


@dataclass
class SourceResult:
    name: str
    url: str
    status: str = "active"  # active | not_modified | error
    error: Optional[str] = None
    fetched: int = 0
    forwarded: int = 0
    irrelevant: int = 0
    malformed: int = 0


@dataclass
class FetchReport:
    sources: List[SourceResult] = field(default_factory=list)

    def _sum(self, attr: str) -> int:
        return sum(getattr(s, attr) for s in self.sources)

    @property
    def errors(self) -> List[SourceResult]:
        return [s for s in self.sources if s.status == "error"]

    def counters(self) -> Dict[str, int]:
        return {
            "sources": len(self.sources),
            "source_errors": len(self.errors),
            "fetched": self._sum("fetched"),
            "forwarded": self._sum("forwarded"),
            "skipped_irrelevant": self._sum("irrelevant"),
            "skipped_malformed": self._sum("malformed"),
        }


class FeedFetcher:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_status: Optional[StatusCallback] = None,
        relevance_gate: bool = True,
        use_cache: bool = True,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.session = session or requests.Session()
        self.sleep = sleep
        self.on_status = on_status
        self.relevance_gate = relevance_gate
        self.use_cache = use_cache
        self.cache: Dict[str, Dict[str, str]] = load_cache(self.settings.feed_cache_file) if use_cache else {}

    # ---- one source -------------------------------------------------------

    def _download(self, src: SourceDescriptor) -> Optional[Any]:
        """Parsed feed, or None on 304. Raises FetchError."""
        url = normalize_file_url(src.url)
        if not is_http(url):
            if urlparse(url).scheme.lower() == "file":
                parsed = feedparser.parse(url2pathname(urlparse(url).path))
            else:
                parsed = feedparser.parse(url)
        else:
            headers = {"User-Agent": USER_AGENT}
            if self.use_cache:
                headers.update(conditional_headers(url, self.cache))
            try:
                resp = self.session.get(url, headers=headers, timeout=self.settings.fetch_timeout_secs)
            except requests.RequestException as e:
                raise FetchError(src.name, f"request failed: {e}") from e
            if resp.status_code == 304:
                return None
            if resp.status_code >= 400:
                raise FetchError(src.name, f"HTTP {resp.status_code}")
            if self.use_cache:
                remember_response(url, resp.headers, self.cache, now_ts=time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))
            parsed = feedparser.parse(resp.content)

        if getattr(parsed, "bozo", 0) and not parsed.entries:
            raise FetchError(src.name, f"unparseable feed: {parsed.get('bozo_exception')}")
        return parsed

    def _record(self, res: SourceResult) -> None:
        if self.on_status is None:
            return
        status = "error" if res.status == "error" else "active"
        self.on_status(res.name, status, res.error, res.url, res.forwarded)

    def _items(self, src: SourceDescriptor, parsed: Any, res: SourceResult) -> Iterator[RawItem]:
        bypass = src.category == JURISDICTION_CATEGORY
        for entry in (parsed.entries or [])[: self.settings.max_items_per_source]:
            res.fetched += 1
            try:
                item = entry_to_raw(entry, src)
            except MalformedItemError as e:
                res.malformed += 1
                log.debug("skip malformed: %s", e)
                continue
            if not bypass:
                if not is_relevant(item.title or "", item.summary):
                    res.irrelevant += 1
                    continue
                if self.relevance_gate:
                    rel = score_relevance(item.title or "", item.summary)
                    if not passes_relevance_gate(rel, src.category):
                        res.irrelevant += 1
                        continue
            res.forwarded += 1
            yield item

    def fetch(self, src: SourceDescriptor, report: Optional[FetchReport] = None) -> Iterator[RawItem]:
        """
        Lazy, finite item sequence for one source; empty on failure. The source
        status is reported once the sequence is exhausted.
        """
        res = SourceResult(name=src.name, url=src.url)
        if report is not None:
            report.sources.append(res)
        try:
            parsed = self._download(src)
        except FetchError as e:
            res.status, res.error = "error", e.message
            log.warning("source %s failed: %s", src.name, e.message)
            self._record(res)
            return
        if parsed is None:
            res.status = "not_modified"
            log.info("source %s not modified", src.name)
            self._record(res)
            return
        yield from self._items(src, parsed, res)
        log.info(
            "source %s fetched=%d forwarded=%d irrelevant=%d malformed=%d",
            src.name, res.fetched, res.forwarded, res.irrelevant, res.malformed,
        )
        self._record(res)

    # ---- many sources -----------------------------------------------------

    def fetch_all(self, sources: Iterable[SourceDescriptor], report: Optional[FetchReport] = None) -> Iterator[RawItem]:
        report = report if report is not None else FetchReport()
        for i, src in enumerate(sources):
            if i > 0 and self.settings.source_delay_secs > 0:
                self.sleep(self.settings.source_delay_secs)
            yield from self.fetch(src, report)
        if self.use_cache:
            try:
                save_cache(self.settings.feed_cache_file, self.cache)
            except OSError as e:
                log.warning("could not save feed cache: %s", e)
        log.info("fetch totals %s", " ".join(f"{k}={v}" for k, v in report.counters().items()))
