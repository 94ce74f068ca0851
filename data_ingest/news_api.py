# data_ingest/news_api.py
# NewsAPI.org collector (free tier: 100 requests/day). Silent no-op without a key.

from __future__ import annotations

import time
from typing import Any, Callable, Iterator, List, Optional

import requests

from common.config import Settings
from common.logging import get_logger
from common.schemas import RawItem
from shared.datetime_utils import parse_entry_date, to_iso_utc

log = get_logger("news_api")

ENDPOINT = "https://newsapi.org/v2/everything"
QUERIES: List[str] = [
    "trade war",
    "supply chain disruption",
    "shipping route",
    "conflict",
    "sanctions",
    "commodity prices",
    "construction materials",
]
QUERY_DELAY_SECS = 1.0


class NewsApiCollector:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        queries: Optional[List[str]] = None,
    ) -> None:
        self.settings = settings or Settings.from_env()
        self.session = session or requests.Session()
        self.sleep = sleep
        self.queries = queries or QUERIES
        self.malformed = 0

    @property
    def enabled(self) -> bool:
        return bool(self.settings.news_api_key)

    def _query(self, q: str) -> list:
        params = {
            "q": q,
            "sortBy": "publishedAt",
            "language": "en",
            "pageSize": 10,
            "apiKey": self.settings.news_api_key,
        }
        resp = self.session.get(ENDPOINT, params=params, timeout=self.settings.fetch_timeout_secs)
        resp.raise_for_status()
        return resp.json().get("articles") or []

    def _to_item(self, a: Any) -> Optional[RawItem]:
        """One article -> RawItem; None (counted as malformed) when unusable."""
        if not isinstance(a, dict) or not a.get("title") or not a.get("url"):
            return None
        src = a.get("source")
        name = src.get("name") if isinstance(src, dict) else None
        try:
            return RawItem(
                source=str(name or "NewsAPI"),
                source_category="newsapi",
                title=str(a["title"]),
                link=str(a["url"]),
                summary=str(a.get("description") or a.get("content") or ""),
                published=to_iso_utc(parse_entry_date(a)),
            )
        except (TypeError, ValueError) as e:
            log.warning("NewsAPI article %r unusable: %s", str(a.get("title"))[:80], e)
            return None

    def collect(self) -> Iterator[RawItem]:
        if not self.enabled:
            log.debug("NEWS_API_KEY not set; skipping NewsAPI")
            return
        for i, q in enumerate(self.queries):
            if i > 0:
                self.sleep(QUERY_DELAY_SECS)
            try:
                articles = self._query(q)
            except (requests.RequestException, ValueError) as e:
                log.warning("NewsAPI query %r failed: %s", q, e)
                continue
            for a in articles:
                item = self._to_item(a)
                if item is None:
                    self.malformed += 1
                    continue
                yield item
