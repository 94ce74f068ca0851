from __future__ import annotations

import re
import time
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional, Union

__all__ = [
    "parse_to_utc",
    "parse_entry_date",
    "to_iso_utc",
    "to_day",
    "utc_now",
    "as_utc",
    "STRICT_Z_ISO_PATTERN",
]

# Final output shape: YYYY-MM-DDTHH:MM:SSZ
STRICT_Z_ISO_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")

_MIN_DT = datetime(2000, 1, 1, tzinfo=timezone.utc)
_MAX_DT = datetime(2100, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _tidy_iso(s: str) -> str:
    """
    Massage near-ISO strings into something datetime.fromisoformat accepts:
    'YYYY/MM/DD' dates, a space before the time, '+HHMM' offsets and a trailing 'Z'.
    """
    s = s.strip()
    s = re.sub(r"^(\d{4})/(\d{2})/(\d{2})", r"\1-\2-\3", s)
    s = re.sub(r"^(\d{4}-\d{2}-\d{2})\s+(\d{2}:\d{2})", r"\1T\2", s, count=1)
    s = re.sub(r"\s*([+-]\d{2})(\d{2})$", r"\1:\2", s)
    if s[-1:] in ("Z", "z"):
        s = s[:-1] + "+00:00"
    return s


def parse_to_utc(value: Union[str, datetime, time.struct_time, None]) -> datetime:
    """
    Parse an ISO-8601-ish string, an RFC-2822 (RSS) string, a datetime or a
    feedparser struct_time into an aware UTC datetime.

    Raises ValueError with one of: "missing", "unparseable", "out_of_range".
    """
    if value is None:
        raise ValueError("missing")

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, time.struct_time):
        dt = datetime(*value[:6], tzinfo=timezone.utc)
    else:
        raw = str(value).strip()
        if not raw:
            raise ValueError("missing")
        try:
            dt = datetime.fromisoformat(_tidy_iso(raw))
        except ValueError:
            try:
                dt = parsedate_to_datetime(raw)
            except (TypeError, ValueError):
                raise ValueError("unparseable")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)

    if not (_MIN_DT <= dt < _MAX_DT):
        raise ValueError("out_of_range")
    return dt


def parse_entry_date(entry: Any, *, default: Optional[datetime] = None) -> datetime:
    """
    Best publish time for a feed entry: parsed struct_time first, then the raw
    published/updated strings, then `default` (or now).
    """
    get = entry.get if hasattr(entry, "get") else (lambda k, d=None: getattr(entry, k, d))
    for key in ("published_parsed", "updated_parsed", "published", "updated", "publishedAt"):
        v = get(key)
        if not v:
            continue
        try:
            return parse_to_utc(v)
        except ValueError:
            continue
    return default or utc_now()


def to_iso_utc(dt: datetime) -> str:
    """Strict ISO with trailing 'Z' and no fractions. Naive input is treated as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ")


def to_day(value: Union[datetime, date, str, None] = None) -> str:
    """Calendar date (UTC) as YYYY-MM-DD; None means today."""
    if value is None:
        return utc_now().date().isoformat()
    if isinstance(value, str):
        return parse_to_utc(value).date().isoformat()
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    return value.isoformat()
