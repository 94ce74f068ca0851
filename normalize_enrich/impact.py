# normalize_enrich/impact.py
# Impact tags and the rule-based business impact assessment.

from __future__ import annotations

from typing import List, Optional

from common.schemas import ImpactAssessment
from normalize_enrich.rules import (
    DEFAULT_IMPACT_TAG,
    IMPACT_TAG_RULES,
    all_matches,
    keyword_pattern,
)

# (keywords, industry)
INDUSTRY_TABLE = [
    (["construction", "building", "infrastructure"], "construction"),
    (["shipping", "freight", "logistics", "port"], "logistics"),
    (["mining", "iron ore", "coal"], "mining"),
    (["procurement", "supply chain"], "procurement"),
    (["agriculture", "farming", "wheat", "beef"], "agriculture"),
    (["energy", "lng", "gas", "oil"], "energy"),
]
_INDUSTRY_RULES = [(keyword_pattern(keys), industry) for keys, industry in INDUSTRY_TABLE]

_CHINA = keyword_pattern(["china", "chinese"], inflect=False)
_MINING_EXPORTS = keyword_pattern(["iron ore", "coal"], inflect=False)
_EXPORT_COMMODITIES = keyword_pattern(["iron ore", "coal", "lng"], inflect=False)
_SUPPLY_ROUTES = keyword_pattern(["supply chain", "shipping", "port", "container"])
_CHOKEPOINTS = keyword_pattern(["south china sea", "malacca strait", "strait of malacca"], inflect=False)
_TAIWAN = keyword_pattern(["taiwan"], inflect=False)
_US = keyword_pattern(["u.s.", "usa", "america", "american", "washington"], inflect=False)

# (minimum severity, timeframe)
TIMEFRAMES = [(8, "immediate"), (6, "short-term"), (4, "medium-term")]
RULE_CONFIDENCE = 60


def impact_tags(title: str, body: str = "") -> List[str]:
    text = f"{title or ''} {body or ''}"
    tags = [r.effect for r in all_matches(IMPACT_TAG_RULES, text)]
    return tags or [DEFAULT_IMPACT_TAG]


def timeframe_for(severity: int) -> str:
    for floor, label in TIMEFRAMES:
        if severity >= floor:
            return label
    return "long-term"


def assess_impact(
    title: str,
    body: str,
    category: str,
    severity: int,
    country: str,
    region: str,
) -> ImpactAssessment:
    """
    Deterministic impact assessment. Later rules refine the summary set by
    earlier ones (Taiwan and US notes replace the China note, as in the
    analyst playbook), and the timeframe is always derived from severity.
    """
    text = f"{title or ''} {body or ''}"
    country_l = (country or "").lower()

    industries: List[str] = []
    for pattern, industry in _INDUSTRY_RULES:
        if pattern.search(text) and industry not in industries:
            industries.append(industry)

    summary = ""
    detail = ""
    trade: Optional[str] = None
    supply: Optional[str] = None
    commodity: Optional[str] = None
    recommendation = ""

    if "china" in country_l or _CHINA.search(text):
        summary = "China event - Australia's largest trading partner affected"
        detail = (
            "China is Australia's largest trading partner, accounting for over 30% of "
            "Australian exports (primarily iron ore, coal, LNG, and education). Any "
            "disruption in China has direct implications for Australian businesses, "
            "particularly in the mining and education sectors. Supply chain routes "
            "through the South China Sea may be affected."
        )
        trade = "High impact - China is Australia's #1 trade partner (A$250B+ annually)"
        if _MINING_EXPORTS.search(text):
            commodity = "Direct impact on Australian mining exports - monitor BHP, Rio Tinto, Fortescue operations"
        if severity >= 7:
            recommendation = (
                "URGENT: Diversify supply chains away from China. Review contract exposure. "
                "Secure alternative markets (Japan, South Korea, India). Monitor AUD/CNY "
                "exchange rate closely."
            )
        else:
            recommendation = (
                "Monitor China developments closely. Review supply chain dependencies. "
                "Consider hedging strategies for commodity price volatility."
            )

    if _SUPPLY_ROUTES.search(text):
        supply = "Potential delays in Australian imports/exports. Monitor shipping routes and container availability."
        if _CHOKEPOINTS.search(text):
            supply = (
                "CRITICAL: Major shipping route affected. 60%+ of Australian trade passes "
                "through this region. Expect delays and cost increases."
            )
            summary = "Critical shipping route disruption - affects most Australian trade"

    if _EXPORT_COMMODITIES.search(text):
        commodity = "Australian export commodities affected. Monitor spot prices and forward contracts."
        if "mining" not in industries:
            industries.append("mining")

    if _TAIWAN.search(text):
        summary = "Taiwan tensions - semiconductor supply chain and regional stability risk"
        detail = (
            "Taiwan produces 60%+ of global semiconductors, critical for Australian "
            "construction equipment, vehicles, and technology. Any conflict would disrupt "
            "Australian supply chains and increase costs. Regional instability also "
            "affects trade routes through the South China Sea."
        )
        supply = "High risk to semiconductor supply - affects construction equipment, vehicles, electronics procurement"
        for ind in ("construction", "logistics", "procurement"):
            if ind not in industries:
                industries.append(ind)
        recommendation = (
            "Secure semiconductor-dependent equipment early. Review supply chain for "
            "Taiwan exposure. Monitor insurance and shipping costs."
        )

    if "united states" in country_l or _US.search(text):
        summary = "US event - key trade partner and economic indicator"
        detail = (
            "The United States is Australia's 3rd largest trading partner and key economic "
            "indicator. US economic health, interest rates, and trade policies directly "
            "impact the AUD exchange rate, commodity demand, and Australian business confidence."
        )
        trade = "Moderate impact - affects AUD exchange rate and commodity demand"

    if not summary:
        if severity >= 7:
            summary = f"High severity {category} event - potential impact on Australian operations"
        else:
            summary = f"{category} event in {region} - monitor for Australian implications"
    if not detail:
        detail = (
            f"This {category} event in {region} may have indirect effects on Australian "
            "businesses through trade relationships, supply chain routes, or commodity "
            "markets. Monitoring recommended."
        )
    if not recommendation:
        if severity >= 7:
            recommendation = "Monitor situation closely. Review supply chain exposure. Consider contingency planning."
        else:
            recommendation = "Continue monitoring. No immediate action required unless situation escalates."

    return ImpactAssessment(
        summary=summary,
        detailed_analysis=detail,
        affected_industries=industries or ["general"],
        trade_impact=trade,
        supply_chain_impact=supply,
        commodity_impact=commodity,
        recommendation=recommendation,
        timeframe=timeframe_for(severity),
        confidence=RULE_CONFIDENCE,
        analyzer="rules",
    )
