# normalize_enrich/rules.py
# Keyword tables for the rule-based classifier, kept as data.
# Every table is an ordered list of (keywords, effect) pairs; the matchers at the
# bottom are the only code that evaluates them.

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Pattern, Sequence, Tuple

# Common inflections so "attacks", "sanctioned", "threatens" hit their stems.
_SUFFIX = r"(?:s|es|ed|d|ing|ens|ened)?"


def keyword_pattern(keywords: Iterable[str], *, inflect: bool = True, case_sensitive: bool = False) -> Pattern[str]:
    """
    One alternation over `keywords`, anchored on word edges. Lookarounds are used
    instead of \\b so entries ending in punctuation ("U.S.") still match.
    """
    alts = sorted({re.escape(k) for k in keywords if k}, key=len, reverse=True)
    body = "(?:" + "|".join(alts) + ")" + (_SUFFIX if inflect else "")
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(r"(?<!\w)" + body + r"(?!\w)", flags)


@dataclass(frozen=True)
class Rule:
    pattern: Pattern[str]
    effect: Any
    label: str = ""

    def hits(self, text: str) -> List[str]:
        return [m.group(0).lower() for m in self.pattern.finditer(text)]


def make_rules(table: Sequence[Tuple[Sequence[str], Any]], **kw) -> List[Rule]:
    return [Rule(keyword_pattern(keys, **kw), effect, label=str(effect)) for keys, effect in table]


def first_match(rules: Sequence[Rule], text: str) -> Optional[Rule]:
    """Earlier rules win."""
    for r in rules:
        if r.pattern.search(text):
            return r
    return None


def all_matches(rules: Sequence[Rule], text: str) -> List[Rule]:
    return [r for r in rules if r.pattern.search(text)]


def distinct_hits(rule: Rule, text: str) -> List[str]:
    """Distinct matched keywords in order of first appearance."""
    out: List[str] = []
    for h in rule.hits(text):
        if h not in out:
            out.append(h)
    return out


# ---- Category -----------------------------------------------------------------

CATEGORY_TABLE: List[Tuple[List[str], str]] = [
    (["war", "conflict", "attack", "military", "defense", "defence", "terrorism",
      "violence", "bombing", "missile"], "Conflict"),
    (["trade", "tariff", "export", "import", "supply chain", "shipping", "logistics",
      "commodity", "commodities", "price", "cost"], "Trade"),
    (["gdp", "economy", "economic", "inflation", "recession", "market", "finance",
      "currency"], "Economy"),
    (["climate", "disaster", "earthquake", "flood", "drought", "weather", "hurricane",
      "typhoon", "wildfire"], "Climate"),
    (["technology", "tech", "cyber", "digital", "semiconductor", "ai",
      "artificial intelligence", "software"], "Tech"),
]
DEFAULT_CATEGORY = "Politics"
CATEGORY_RULES = make_rules(CATEGORY_TABLE)


# ---- Severity -----------------------------------------------------------------

BASE_SEVERITY = 5

# First match wins, high -> low.
SEVERITY_LEVEL_TABLE: List[Tuple[List[str], int]] = [
    (["war", "crisis", "attack", "invasion", "disaster", "collapse", "critical",
      "emergency", "catastrophe", "shutdown", "blockade"], 8),
    (["conflict", "disruption", "sanctions", "embargo", "escalation", "shortage",
      "warning", "threat", "tension"], 6),
    (["meeting", "discussion", "plan", "proposal", "announcement", "agreement",
      "cooperation"], 3),
]
SEVERITY_LEVEL_RULES = make_rules(SEVERITY_LEVEL_TABLE)


@dataclass(frozen=True)
class SeverityBoost:
    category: str
    delta: int
    requires: Optional[Pattern[str]] = None


SEVERITY_BOOSTS: List[SeverityBoost] = [
    SeverityBoost("Conflict", 2),
    SeverityBoost("Climate", 2, requires=keyword_pattern(["disaster"])),
]

# Evaluated last; the first matching override sets the final severity.
SEVERITY_OVERRIDE_TABLE: List[Tuple[List[str], int]] = [
    (["world war"], 10),
    (["nuclear"], 10),
    (["pandemic"], 9),
]
SEVERITY_OVERRIDE_RULES = make_rules(SEVERITY_OVERRIDE_TABLE, inflect=False)


# ---- Sentiment ----------------------------------------------------------------

SENTIMENT_STEP = 0.15

NEGATIVE_WORDS = [
    "crisis", "conflict", "war", "attack", "disaster", "collapse", "failure",
    "threat", "disruption", "decline", "shortage", "death",
]
POSITIVE_WORDS = [
    "agreement", "cooperation", "growth", "success", "improvement", "recovery",
    "peace", "stability", "deal", "partnership",
]
# One rule per word: each distinct word moves the score once.
SENTIMENT_RULES: List[Rule] = (
    [Rule(keyword_pattern([w]), -SENTIMENT_STEP, label=w) for w in NEGATIVE_WORDS]
    + [Rule(keyword_pattern([w]), SENTIMENT_STEP, label=w) for w in POSITIVE_WORDS]
)


# ---- Entities -----------------------------------------------------------------

# (surface form, canonical name)
COUNTRY_TABLE: List[Tuple[str, str]] = [
    (c, c) for c in (
        "China", "United States", "India", "Japan", "Germany", "United Kingdom",
        "France", "Italy", "Brazil", "Canada", "Russia", "Australia", "South Korea",
        "Spain", "Mexico", "Indonesia", "Turkey", "Saudi Arabia", "Iran", "Israel",
        "Egypt", "South Africa", "Ukraine", "Taiwan", "Vietnam", "Thailand",
        "Philippines", "Singapore", "Malaysia", "Pakistan", "Bangladesh", "Nigeria",
        "Kenya", "Argentina", "Chile", "Colombia", "Peru", "Venezuela", "Poland",
        "Netherlands", "Belgium", "Sweden", "Norway", "Denmark", "Finland", "Ireland",
        "New Zealand", "UAE", "Qatar", "Kuwait", "Iraq", "Syria", "Lebanon", "Jordan",
        "Yemen",
    )
] + [
    ("USA", "United States"),
    ("U.S.", "United States"),
    ("UK", "United Kingdom"),
]
COUNTRY_RULES: List[Rule] = [
    Rule(keyword_pattern([surface], inflect=False), canonical, label=surface)
    for surface, canonical in COUNTRY_TABLE
]

COMPANIES = [
    "Apple", "Microsoft", "Google", "Amazon", "Tesla", "Meta", "Facebook", "Boeing",
    "Airbus", "Samsung", "Toyota", "Volkswagen", "Shell", "BP", "ExxonMobil",
    "Chevron", "Walmart", "JPMorgan", "Bank of America", "HSBC", "Goldman Sachs",
    "Morgan Stanley", "Huawei", "Alibaba", "Tencent", "TSMC", "Intel", "NVIDIA",
    "AMD", "Qualcomm", "Lockheed Martin", "Raytheon", "Northrop Grumman",
    "General Electric", "Siemens", "Sony",
]
# Company names are proper nouns; matching them case-sensitively keeps "shell" and
# "apple" in ordinary prose out of the bag.
COMPANY_RULES: List[Rule] = [
    Rule(keyword_pattern([c], inflect=False, case_sensitive=True), c, label=c) for c in COMPANIES
]

COMMODITIES = [
    "oil", "crude oil", "natural gas", "coal", "steel", "iron ore", "copper",
    "aluminum", "zinc", "nickel", "lithium", "cobalt", "gold", "silver", "platinum",
    "wheat", "corn", "soybeans", "cotton", "sugar", "coffee", "cocoa", "lumber",
    "cement", "semiconductors", "chips", "rare earth", "uranium",
]
COMMODITY_RULES: List[Rule] = [
    Rule(keyword_pattern([c], inflect=False), c, label=c) for c in COMMODITIES
]

PERSON_TITLES = [
    "President", "Prime Minister", "Minister", "Secretary", "Chancellor", "King",
    "Queen", "Prince", "CEO", "Chairman",
]
PERSON_PATTERN = re.compile(
    r"(?:" + "|".join(re.escape(t) for t in PERSON_TITLES) + r")\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)"
)
MAX_PEOPLE = 5


# ---- Relevance ----------------------------------------------------------------

@dataclass(frozen=True)
class RelevanceGroup:
    """
    points = min(cap, distinct_hits * per_hit). `reason` is formatted with
    `hits`, the first `show` matched keywords joined by ", ".
    """
    name: str
    keywords: Tuple[str, ...]
    per_hit: int
    cap: int
    reason: str
    show: int = 0

    rule: Rule = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "rule", Rule(keyword_pattern(self.keywords, inflect=False), self.name, label=self.name)
        )

RELEVANCE_GROUPS: List[RelevanceGroup] = [
    RelevanceGroup(
        "direct",
        ("australia", "australian", "canberra", "sydney", "melbourne", "brisbane",
         "perth", "adelaide", "aukus", "quad", "anzac", "commonwealth"),
        per_hit=40, cap=40, reason="Directly mentions Australia",
    ),
    RelevanceGroup(
        "trade_partners",
        ("china", "chinese", "beijing", "japan", "tokyo", "south korea", "seoul",
         "indonesia", "india", "united states", "u.s.", "usa", "uk", "britain",
         "european union", "eu", "new zealand"),
        per_hit=10, cap=30, reason="Involves key trade partners: {hits}", show=3,
    ),
    RelevanceGroup(
        "commodities",
        ("iron ore", "coal", "lng", "liquefied natural gas", "wheat", "barley", "gold",
         "lithium", "rare earth", "beef", "wool", "wine", "education exports"),
        per_hit=10, cap=20, reason="Affects Australian exports: {hits}", show=2,
    ),
    RelevanceGroup(
        "supply_chain",
        ("supply chain", "shipping", "container", "freight", "port", "logistics",
         "semiconductor", "chip shortage", "construction materials", "steel", "copper",
         "aluminum", "timber", "cement"),
        per_hit=5, cap=15, reason="Supply chain impact",
    ),
    RelevanceGroup(
        "security",
        ("south china sea", "taiwan strait", "indo-pacific", "pacific islands", "png",
         "papua new guinea", "solomon islands", "fiji", "pacific", "strait of malacca",
         "malacca strait"),
        per_hit=10, cap=25, reason="Regional security concern: {hits}", show=2,
    ),
    RelevanceGroup(
        "economic",
        ("tariff", "trade war", "sanctions", "embargo", "recession", "inflation",
         "interest rate", "rba", "reserve bank", "commodity price", "exchange rate",
         "aud", "australian dollar"),
        per_hit=5, cap=15, reason="Economic impact",
    ),
    RelevanceGroup(
        "industries",
        ("construction", "building", "infrastructure", "mining", "agriculture",
         "farming", "energy", "renewable", "solar", "wind", "manufacturing", "tourism",
         "education", "universities"),
        per_hit=3, cap=10, reason="Industry impact: {hits}", show=2,
    ),
]

# (minimum score, band); first threshold reached wins.
RELEVANCE_BANDS: List[Tuple[int, str]] = [(70, "critical"), (50, "high"), (30, "medium")]
RELEVANCE_THRESHOLD = 25


# ---- Ingest allow-list --------------------------------------------------------

RELEVANT_KEYWORDS = [
    # conflicts & security
    "conflict", "war", "attack", "military", "defense", "security", "terrorism",
    "sanctions", "tension", "dispute", "escalation", "crisis", "invasion", "bombing",
    "missile",
    # trade & economics
    "trade", "tariff", "export", "import", "supply chain", "shipping", "logistics",
    "procurement", "commodity", "oil", "steel", "copper", "aluminum", "construction",
    "infrastructure", "port", "disruption", "shortage", "price", "cost",
    # politics & governance
    "election", "government", "policy", "regulation", "law", "treaty", "agreement",
    "diplomatic", "summit", "negotiation", "protest", "coup",
    # climate & disasters
    "climate", "disaster", "earthquake", "flood", "drought", "storm", "hurricane",
    "typhoon", "wildfire", "extreme weather",
    # technology
    "technology", "semiconductor", "cyber", "digital", "ai", "artificial intelligence",
]
RELEVANT_PATTERN = keyword_pattern(RELEVANT_KEYWORDS)


# ---- Impact tags --------------------------------------------------------------

IMPACT_TAG_TABLE: List[Tuple[List[str], str]] = [
    (["construction", "infrastructure", "building"], "construction"),
    (["shipping", "logistics", "transport", "freight"], "logistics"),
    (["procurement", "supply", "sourcing"], "procurement"),
    (["supply chain", "supply-chain", "materials"], "supply-chain"),
    (["steel", "copper", "aluminum", "commodity", "commodities"], "materials"),
    (["port", "shipping route"], "shipping"),
    (["price", "cost", "expensive"], "pricing"),
    (["delay", "disruption", "shortage"], "disruption"),
    (["energy", "oil", "natural gas", "lng", "power grid", "electricity"], "energy"),
]
IMPACT_TAG_RULES = make_rules(IMPACT_TAG_TABLE)
DEFAULT_IMPACT_TAG = "general"
