"""
Grape and region reference data.

Read-only lookups consumed by Characteristic Synthesis. Unknown keys fall
back to documented defaults (with a warning) unless strict=True:

- unknown grape  -> neutral profile whose base characteristics sit on the
                    midpoints of BASE_BALANCED_RANGES
- unknown region -> altitude band DEFAULT_ALTITUDE_BAND
- unknown pair   -> suitability DEFAULT_SUITABILITY
"""

import logging
from typing import Dict, List, Tuple

from vintner.constants import AgeWorthiness, GrapeColor
from vintner.error_handling import UnknownGrapeError, UnknownRegionError
from vintner.schema import AgingProfile, GrapeProfile, WineCharacteristics, build_range_map

logger = logging.getLogger(__name__)

DEFAULT_ALTITUDE_BAND: Tuple[float, float] = (0.0, 500.0)
DEFAULT_SUITABILITY = 0.5


def _profile(name, natural_yield, fragility, oxidation, color, chars, description, aging):
    acidity, aroma, body, spice, sweetness, tannins = chars
    early, late, worthiness = aging
    return GrapeProfile(
        name=name,
        natural_yield=natural_yield,
        fragility=fragility,
        oxidation_proneness=oxidation,
        color=color,
        base_characteristics=WineCharacteristics(
            acidity=acidity, aroma=aroma, body=body, spice=spice, sweetness=sweetness, tannins=tannins
        ),
        description=description,
        aging_profile=AgingProfile(early_peak=early, late_peak=late, age_worthiness=worthiness),
    )


# (acidity, aroma, body, spice, sweetness, tannins)
GRAPE_PROFILES: Dict[str, GrapeProfile] = {
    p.name: p for p in [
        _profile('Barbera', 0.7, 0.4, 0.4, GrapeColor.RED,
                 (0.7, 0.5, 0.6, 0.5, 0.5, 0.6),
                 'A versatile grape known for high acidity and moderate tannins, producing medium-bodied wines.',
                 (3, 7, AgeWorthiness.MEDIUM)),
        _profile('Chardonnay', 0.8, 0.6, 0.7, GrapeColor.WHITE,
                 (0.4, 0.65, 0.75, 0.5, 0.5, 0.35),
                 'A noble grape variety producing aromatic, medium-bodied wines with moderate acidity.',
                 (2, 5, AgeWorthiness.MEDIUM)),
        _profile('Pinot Noir', 0.6, 0.7, 0.8, GrapeColor.RED,
                 (0.65, 0.6, 0.35, 0.5, 0.5, 0.4),
                 'A delicate grape creating light-bodied, aromatic wines with high acidity and soft tannins.',
                 (3, 7, AgeWorthiness.HIGH)),
        _profile('Primitivo', 0.9, 0.3, 0.3, GrapeColor.RED,
                 (0.5, 0.7, 0.7, 0.5, 0.7, 0.7),
                 'A robust grape yielding full-bodied, aromatic wines with natural sweetness and high tannins.',
                 (4, 10, AgeWorthiness.HIGH)),
        _profile('Sauvignon Blanc', 0.75, 0.5, 0.9, GrapeColor.WHITE,
                 (0.8, 0.75, 0.3, 0.6, 0.4, 0.3),
                 'A crisp grape variety producing aromatic, light-bodied wines with high acidity.',
                 (1, 3, AgeWorthiness.LOW)),
        _profile('Tempranillo', 0.65, 0.45, 0.5, GrapeColor.RED,
                 (0.55, 0.6, 0.65, 0.55, 0.45, 0.65),
                 'A versatile Iberian grape thriving at altitude, producing structured wines with balanced fruit and tannins.',
                 (3, 8, AgeWorthiness.HIGH)),
    ]
}


# Altitude ranges by region (in meters)
REGION_ALTITUDE_RANGES: Dict[str, Dict[str, Tuple[float, float]]] = {
    "France": {
        "Bordeaux": (0, 100),
        "Bourgogne": (200, 500),
        "Champagne": (100, 300),
        "Rhone Valley": (100, 400),
        "Jura": (250, 400),
    },
    "Germany": {
        "Ahr": (100, 300),
        "Mosel": (100, 350),
        "Pfalz": (100, 300),
        "Rheingau": (80, 250),
        "Rheinhessen": (80, 250),
    },
    "Italy": {
        "Piedmont": (150, 600),
        "Puglia": (0, 200),
        "Sicily": (50, 900),
        "Tuscany": (150, 600),
        "Veneto": (50, 400),
    },
    "Spain": {
        "Jumilla": (400, 800),
        "La Mancha": (600, 800),
        "Ribera del Duero": (700, 900),
        "Rioja": (300, 700),
        "Jerez": (0, 100),
    },
    "United States": {
        "Central Coast": (0, 500),
        "Finger Lakes": (100, 300),
        "Napa Valley": (0, 600),
        "Sonoma County": (0, 500),
        "Willamette Valley": (50, 300),
    },
}


_VARIETIES = ('Barbera', 'Chardonnay', 'Pinot Noir', 'Primitivo', 'Sauvignon Blanc', 'Tempranillo')


def _suit(*values: float) -> Dict[str, float]:
    return dict(zip(_VARIETIES, values))


# Grape variety suitability by region (0-1 scale, 1.0 is optimal)
# Columns: Barbera, Chardonnay, Pinot Noir, Primitivo, Sauvignon Blanc, Tempranillo
REGION_GRAPE_SUITABILITY: Dict[str, Dict[str, Dict[str, float]]] = {
    "Italy": {
        "Piedmont": _suit(1.0, 0.8, 0.6, 0.5, 0.6, 0.4),
        "Tuscany": _suit(0.9, 0.7, 0.5, 0.7, 0.7, 0.5),
        "Veneto": _suit(0.85, 0.75, 0.7, 0.6, 0.8, 0.35),
        "Sicily": _suit(0.8, 0.6, 0.3, 0.8, 0.5, 0.3),
        "Puglia": _suit(0.9, 0.65, 0.4, 1.0, 0.4, 0.6),
    },
    "France": {
        "Bordeaux": _suit(0.7, 0.8, 0.6, 0.6, 0.9, 0.5),
        "Bourgogne": _suit(0.4, 0.9, 0.9, 0.3, 0.7, 0.3),
        "Champagne": _suit(0.2, 0.9, 0.8, 0.2, 0.6, 0.1),
        "Rhone Valley": _suit(0.85, 0.75, 0.5, 0.7, 0.7, 0.5),
        "Jura": _suit(0.3, 0.9, 0.8, 0.2, 0.6, 0.2),
    },
    "Spain": {
        "Rioja": _suit(0.85, 0.7, 0.4, 0.5, 0.6, 0.95),
        "Ribera del Duero": _suit(0.8, 0.6, 0.35, 0.4, 0.5, 1.0),
        "Jumilla": _suit(0.9, 0.5, 0.3, 0.85, 0.4, 0.7),
        "La Mancha": _suit(0.85, 0.55, 0.25, 0.8, 0.5, 0.9),
        "Jerez": _suit(0.8, 0.5, 0.2, 0.7, 0.4, 0.4),
    },
    "United States": {
        "Napa Valley": _suit(0.9, 1.0, 0.7, 0.85, 0.8, 0.6),
        "Sonoma County": _suit(0.85, 0.95, 0.75, 0.8, 0.7, 0.5),
        "Willamette Valley": _suit(0.4, 0.85, 1.0, 0.3, 0.6, 0.3),
        "Finger Lakes": _suit(0.3, 0.7, 0.75, 0.2, 0.5, 0.25),
        "Central Coast": _suit(0.85, 0.8, 0.6, 0.75, 0.7, 0.55),
    },
    "Germany": {
        "Mosel": _suit(0.15, 0.8, 1.0, 0.1, 0.8, 0.15),
        "Rheingau": _suit(0.2, 0.85, 0.9, 0.15, 0.85, 0.2),
        "Rheinhessen": _suit(0.25, 0.8, 0.85, 0.2, 0.8, 0.25),
        "Pfalz": _suit(0.3, 0.75, 0.8, 0.25, 0.75, 0.3),
        "Ahr": _suit(0.1, 0.7, 0.95, 0.1, 0.6, 0.1),
    },
}


def default_grape_profile(variety: str = "Unknown") -> GrapeProfile:
    """Neutral profile used when a variety is not in the reference data."""
    midpoints = WineCharacteristics.midpoints(build_range_map())
    return GrapeProfile(
        name=variety,
        natural_yield=0.5,
        fragility=0.5,
        oxidation_proneness=0.5,
        color=GrapeColor.RED,
        base_characteristics=midpoints,
        description="Unknown variety - neutral midpoint profile.",
        aging_profile=AgingProfile(early_peak=2, late_peak=5, age_worthiness=AgeWorthiness.MEDIUM),
    )


def list_varieties() -> List[str]:
    return sorted(GRAPE_PROFILES)


def get_grape_profile(variety: str, strict: bool = False) -> GrapeProfile:
    """
    Look up a grape variety.

    Args:
        variety: Grape variety name
        strict: Raise instead of falling back

    Returns:
        GrapeProfile, or the neutral default profile for unknown varieties

    Raises:
        UnknownGrapeError: If strict and the variety is unknown
    """
    profile = GRAPE_PROFILES.get(variety)
    if profile is not None:
        return profile
    if strict:
        raise UnknownGrapeError(variety)
    logger.warning(f"Unknown grape variety {variety!r}, using neutral default profile")
    return default_grape_profile(variety)


def get_region_altitude_band(country: str, region: str, strict: bool = False) -> Tuple[float, float]:
    """[min, max] altitude of a region in meters."""
    band = REGION_ALTITUDE_RANGES.get(country, {}).get(region)
    if band is not None:
        return band
    if strict:
        raise UnknownRegionError(country, region)
    logger.warning(f"Unknown region {region!r} ({country!r}), using default altitude band {DEFAULT_ALTITUDE_BAND}")
    return DEFAULT_ALTITUDE_BAND


def get_region_grape_suitability(country: str, region: str, variety: str, strict: bool = False) -> float:
    """Suitability (0-1) of a grape variety for a region."""
    suitability = REGION_GRAPE_SUITABILITY.get(country, {}).get(region, {}).get(variety)
    if suitability is not None:
        return suitability
    if strict:
        if variety not in GRAPE_PROFILES:
            raise UnknownGrapeError(variety)
        raise UnknownRegionError(country, region)
    logger.warning(f"No suitability for {variety!r} in {region!r} ({country!r}), using {DEFAULT_SUITABILITY}")
    return DEFAULT_SUITABILITY
