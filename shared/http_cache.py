# shared/http_cache.py
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Mapping, Optional
from urllib.parse import urlparse

# Conditional-request header cache for feed sources.
# Stores per-URL: etag, last_modified, fetched


def is_http(url: str) -> bool:
    return urlparse(url).scheme.lower() in ("http", "https")


def load_cache(path: str) -> Dict[str, Dict[str, str]]:
    p = Path(path)
    if not p.exists():
        return {}
    try:
        return json.loads(p.read_text(encoding="utf-8")) or {}
    except (OSError, ValueError):
        return {}


def save_cache(path: str, cache: Dict[str, Dict[str, str]]) -> None:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    tmp = p.with_suffix(p.suffix + ".tmp")
    tmp.write_text(json.dumps(cache, ensure_ascii=False, indent=2), encoding="utf-8")
    tmp.replace(p)


def conditional_headers(url: str, cache: Mapping[str, Dict[str, str]]) -> Dict[str, str]:
    if not is_http(url):
        return {}
    rec = cache.get(url) or {}
    h: Dict[str, str] = {}
    if rec.get("etag"):
        h["If-None-Match"] = rec["etag"]
    if rec.get("last_modified"):
        h["If-Modified-Since"] = rec["last_modified"]
    return h


def remember_response(
    url: str,
    headers: Mapping[str, str],
    cache: Dict[str, Dict[str, str]],
    now_ts: str,
) -> None:
    """Store ETag / Last-Modified from a 200 response; no-op when neither is present."""
    if not is_http(url):
        return
    etag: Optional[str] = headers.get("ETag") or headers.get("etag")
    lm: Optional[str] = headers.get("Last-Modified") or headers.get("last-modified")
    if not (etag or lm):
        return
    rec = cache.get(url, {})
    if etag:
        rec["etag"] = etag
    if lm:
        rec["last_modified"] = lm
    rec["fetched"] = now_ts
    cache[url] = rec
