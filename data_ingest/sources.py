# data_ingest/sources.py
"""
Built-in feed registry.

Sources are grouped the way the desk reads them: Australian news first, then
Asia-Pacific, strategic/defence, trade/logistics and filtered global news.
A feeds file (tab-separated, see load_feeds_file) can replace the registry.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from common.logging import get_logger
from common.schemas import SourceDescriptor

log = get_logger("sources")

JURISDICTION_CATEGORY = "australian_news"


def _src(name: str, url: str, category: str, region: str, priority: int, enabled: bool = True) -> SourceDescriptor:
    return SourceDescriptor(name=name, url=url, category=category, region=region, priority=priority, enabled=enabled)


AUSTRALIAN_NEWS = [
    _src("ABC News Australia", "https://www.abc.net.au/news/feed/51120/rss.xml", JURISDICTION_CATEGORY, "Australia", 10),
    _src("ABC News Business", "https://www.abc.net.au/news/feed/2908/rss.xml", "business", "Australia", 10),
    _src("ABC News World", "https://www.abc.net.au/news/feed/45910/rss.xml", "world", "Global", 9),
    # paywalled
    _src("The Australian", "https://www.theaustralian.com.au/feed/", JURISDICTION_CATEGORY, "Australia", 9, enabled=False),
]

ASIA_PACIFIC = [
    _src("Bloomberg Asia", "https://www.bloomberg.com/feed/news", "asia_business", "Asia-Pacific", 8),
    _src("Reuters Asia", "https://www.reutersagency.com/feed/?best-region=asia&post_type=best", "asia_news", "Asia-Pacific", 8),
    _src("Nikkei Asia", "https://asia.nikkei.com/rss/feed/nar", "asia_business", "Asia-Pacific", 7),
    _src("South China Morning Post", "https://www.scmp.com/rss/91/feed", "china", "Asia-Pacific", 7),
    _src("Japan Times", "https://www.japantimes.co.jp/feed/", "japan", "Asia-Pacific", 6),
]

STRATEGIC = [
    _src("ASPI (Australian Strategic Policy Institute)", "https://www.aspi.org.au/rss.xml", "strategic", "Australia", 9),
    _src("Defense News", "https://www.defensenews.com/arc/outboundfeeds/rss/", "defense", "Global", 6),
    _src("CSIS (Center for Strategic & International Studies)", "https://www.csis.org/analysis/feed", "strategic", "Global", 6),
]

TRADE = [
    _src("Lloyd's List (Shipping News)", "https://lloydslist.maritimeintelligence.informa.com/rss", "shipping", "Global", 7),
    _src("FreightWaves", "https://www.freightwaves.com/news/feed", "logistics", "Global", 6),
    _src("JOC (Journal of Commerce)", "https://www.joc.com/rss.xml", "trade", "Global", 6),
]

GLOBAL = [
    _src("Reuters World News", "https://www.reutersagency.com/feed/?taxonomy=best-topics&post_type=best", "world", "Global", 7),
    _src("BBC World News", "http://feeds.bbci.co.uk/news/world/rss.xml", "world", "Global", 7),
    _src("Al Jazeera", "https://www.aljazeera.com/xml/rss/all.xml", "world", "Middle East", 5),
    _src("Financial Times", "https://www.ft.com/?format=rss", "finance", "Global", 7),
]

ALL_SOURCES: List[SourceDescriptor] = AUSTRALIAN_NEWS + ASIA_PACIFIC + STRATEGIC + TRADE + GLOBAL


def active_sources(sources: Optional[Iterable[SourceDescriptor]] = None) -> List[SourceDescriptor]:
    """Enabled sources, highest priority first (stable for equal priority)."""
    pool = ALL_SOURCES if sources is None else list(sources)
    return sorted((s for s in pool if s.enabled), key=lambda s: -s.priority)


def load_feeds_file(path: str | Path) -> List[SourceDescriptor]:
    """
    One source per line: url<TAB>name<TAB>category<TAB>region<TAB>priority.
    Only the url is required; '#' starts a comment. Bad priorities default to 5.
    """
    out: List[SourceDescriptor] = []
    for lineno, raw in enumerate(Path(path).read_text(encoding="utf-8").splitlines(), 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        cols = [c.strip() for c in raw.split("\t")]
        url = cols[0]
        name = cols[1] if len(cols) > 1 and cols[1] else url
        category = cols[2] if len(cols) > 2 and cols[2] else "world"
        region = cols[3] if len(cols) > 3 and cols[3] else "Global"
        try:
            priority = int(cols[4]) if len(cols) > 4 and cols[4] else 5
        except ValueError:
            log.warning("feeds file %s:%d bad priority %r; using 5", path, lineno, cols[4])
            priority = 5
        out.append(_src(name, url, category, region, priority))
    return out
