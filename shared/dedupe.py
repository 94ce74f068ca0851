# shared/dedupe.py
# Title-keyed dedupe helpers.
# - Key: NFKC-normalized, whitespace-collapsed, casefolded title.
# - The database enforces uniqueness on the key; TitleDeduper only skips
#   repeats inside one run so they never reach the store.

from __future__ import annotations

import re
import unicodedata
from typing import Optional, Set


def normalize_title(s: Optional[str]) -> str:
    if not s:
        return ""
    s = unicodedata.normalize("NFKC", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s.casefold()


def title_key(title: Optional[str]) -> str:
    """Dedup key stored on the events table. Empty titles give an empty key."""
    return normalize_title(title)


class TitleDeduper:
    """In-run set of seen title keys."""

    def __init__(self) -> None:
        self._seen: Set[str] = set()
        self.duplicates = 0

    def add(self, title: Optional[str]) -> bool:
        """Record the title; False when it was already present or empty."""
        k = title_key(title)
        if not k:
            return False
        if k in self._seen:
            self.duplicates += 1
            return False
        self._seen.add(k)
        return True
