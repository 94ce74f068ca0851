# normalize_enrich/geo.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

REGIONS = ("Asia-Pacific", "Middle East", "Europe", "Americas", "Africa")
DEFAULT_REGION = "Global"
UNKNOWN_COUNTRY = "Unknown"

REGION_BY_COUNTRY: Dict[str, str] = {
    **{c: "Asia-Pacific" for c in (
        "China", "Japan", "India", "Australia", "South Korea", "Indonesia", "Thailand",
        "Vietnam", "Philippines", "Singapore", "Malaysia", "Taiwan")},
    **{c: "Middle East" for c in (
        "Israel", "Iran", "Saudi Arabia", "UAE", "Turkey", "Iraq", "Syria", "Yemen",
        "Jordan", "Lebanon")},
    **{c: "Europe" for c in (
        "United Kingdom", "France", "Germany", "Italy", "Spain", "Russia", "Ukraine",
        "Poland", "Netherlands")},
    **{c: "Americas" for c in (
        "United States", "Canada", "Mexico", "Brazil", "Argentina", "Chile", "Colombia")},
    **{c: "Africa" for c in (
        "Egypt", "South Africa", "Nigeria", "Kenya", "Ethiopia", "Morocco")},
}

ISO2_BY_COUNTRY: Dict[str, str] = {
    "China": "CN", "United States": "US", "India": "IN", "Japan": "JP",
    "Germany": "DE", "United Kingdom": "GB", "France": "FR", "Italy": "IT",
    "Brazil": "BR", "Canada": "CA", "Russia": "RU", "Australia": "AU",
    "South Korea": "KR", "Spain": "ES", "Mexico": "MX", "Indonesia": "ID",
    "Turkey": "TR", "Saudi Arabia": "SA", "Iran": "IR", "Israel": "IL",
    "Egypt": "EG", "South Africa": "ZA", "Ukraine": "UA", "Taiwan": "TW",
}

# Capitals or main commercial city.
COORDS_BY_COUNTRY: Dict[str, Tuple[float, float]] = {
    "China": (39.9042, 116.4074),
    "United States": (38.9072, -77.0369),
    "India": (28.6139, 77.2090),
    "Japan": (35.6762, 139.6503),
    "Germany": (52.5200, 13.4050),
    "United Kingdom": (51.5074, -0.1278),
    "France": (48.8566, 2.3522),
    "Russia": (55.7558, 37.6173),
    "Australia": (-33.8688, 151.2093),
    "Brazil": (-15.8267, -47.9218),
}


@dataclass
class Location:
    region: str = DEFAULT_REGION
    country: str = UNKNOWN_COUNTRY
    country_code: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


def locate(countries: Sequence[str]) -> Location:
    """Location of the first extracted country; no countries -> Global/Unknown."""
    if not countries:
        return Location()
    country = countries[0]
    coords = COORDS_BY_COUNTRY.get(country)
    return Location(
        region=REGION_BY_COUNTRY.get(country, DEFAULT_REGION),
        country=country,
        country_code=ISO2_BY_COUNTRY.get(country),
        latitude=coords[0] if coords else None,
        longitude=coords[1] if coords else None,
    )
