# normalize_enrich/entities.py
from __future__ import annotations

from typing import List

from common.schemas import EntityBag
from normalize_enrich.rules import (
    COMMODITY_RULES,
    COMPANY_RULES,
    COUNTRY_RULES,
    MAX_PEOPLE,
    PERSON_PATTERN,
    all_matches,
)


def extract_countries(text: str) -> List[str]:
    return [r.effect for r in all_matches(COUNTRY_RULES, text)]


def extract_companies(text: str) -> List[str]:
    return [r.effect for r in all_matches(COMPANY_RULES, text)]


def extract_commodities(text: str) -> List[str]:
    return [r.effect for r in all_matches(COMMODITY_RULES, text)]


def extract_people(text: str) -> List[str]:
    found: List[str] = []
    for m in PERSON_PATTERN.finditer(text):
        name = m.group(1)
        if name not in found:
            found.append(name)
        if len(found) >= MAX_PEOPLE:
            break
    return found


def extract_entities(title: str, body: str = "") -> EntityBag:
    """Independent scans over the raw (case-preserved) text."""
    text = f"{title or ''} {body or ''}"
    return EntityBag(
        countries=extract_countries(text),
        companies=extract_companies(text),
        commodities=extract_commodities(text),
        people=extract_people(text),
    )
