"""
Characteristic Synthesis

Derives a harvested wine's characteristics from the grape's base profile
and the vineyard conditions at harvest. Each condition contributes named
effects; effects are applied in order and every intermediate value is
clamped to [0, 1].
"""

import logging
from typing import List, Optional, Tuple

from vintner.constants import AlgorithmConstants, Characteristic, GrapeColor
from vintner.effects import apply_effects, effect
from vintner.grapes import get_grape_profile, get_region_altitude_band, get_region_grape_suitability
from vintner.schema import (
    CharacteristicEffect,
    EffectBreakdown,
    HarvestInputs,
    Overgrowth,
    WineCharacteristics,
)
from vintner.utils import concave_curve

logger = logging.getLogger(__name__)

C = Characteristic


def ripeness_effects(ripeness: float) -> List[CharacteristicEffect]:
    """Late harvest: sweeter, fuller, less acidic, slightly more tannic."""
    r = ripeness - 0.5
    return [
        effect(C.SWEETNESS, r * 0.4, 'Grape Ripeness'),
        effect(C.ACIDITY, -r * 0.3, 'Grape Ripeness'),
        effect(C.TANNINS, r * 0.2, 'Grape Ripeness'),
        effect(C.BODY, r * 0.1, 'Grape Ripeness'),
        effect(C.AROMA, r * 0.05, 'Grape Ripeness'),
    ]


def quality_effects(quality_factor: float, color: GrapeColor) -> List[CharacteristicEffect]:
    q = quality_factor - 0.5
    white = color == GrapeColor.WHITE
    return [
        effect(C.BODY, q * (0.18 if white else 0.15), 'Grape Quality'),
        effect(C.AROMA, q * (0.22 if white else 0.18), 'Grape Quality'),
        effect(C.TANNINS, q * (0.12 if white else 0.22), 'Grape Quality'),
    ]


def altitude_position(altitude: float, min_altitude: float, max_altitude: float) -> float:
    """Position within the region's band, roughly [-1, 1] around its median."""
    median = (min_altitude + max_altitude) / 2
    return (altitude - median) / max(1.0, max_altitude - median)


def altitude_effects(position: float) -> List[CharacteristicEffect]:
    """Higher vineyards: fresher and more aromatic, lighter body."""
    return [
        effect(C.ACIDITY, position * 0.2, 'Vineyard Altitude'),
        effect(C.AROMA, position * 0.15, 'Vineyard Altitude'),
        effect(C.BODY, -position * 0.1, 'Vineyard Altitude'),
    ]


def suitability_effects(suitability: float) -> List[CharacteristicEffect]:
    s = suitability - 0.5
    return [
        effect(C.BODY, s * 0.2, 'Regional Grape Suitability'),
        effect(C.AROMA, s * 0.3, 'Regional Grape Suitability'),
    ]


def overgrowth_effects(overgrowth: Overgrowth, color: GrapeColor) -> List[CharacteristicEffect]:
    """
    Neglect effects with diminishing returns on years.

    Vegetation lifts aroma and thins body, debris adds tannins and removes
    body. Replanting (or uprooting) gives a short shock for up to two years,
    then selection benefits up to year seven, and nothing after.
    """
    effects = []
    white = color == GrapeColor.WHITE
    veg_rate = AlgorithmConstants.OVERGROWTH_RATE
    debris_rate = AlgorithmConstants.DEBRIS_RATE

    veg = overgrowth.vegetation
    for characteristic, modifier in (
        (C.AROMA, concave_curve(veg, veg_rate, 0.06 if white else 0.04)),
        (C.BODY, -concave_curve(veg, veg_rate, 0.04)),
        (C.ACIDITY, concave_curve(veg, veg_rate, 0.02) if white else 0.0),
    ):
        if modifier:
            effects.append(effect(characteristic, modifier, 'Vegetation Overgrowth'))

    debris = overgrowth.debris
    for characteristic, modifier in (
        (C.BODY, -concave_curve(debris, debris_rate, 0.05)),
        (C.TANNINS, concave_curve(debris, debris_rate, 0.03 if white else 0.05)),
        (C.AROMA, -concave_curve(debris - 2, debris_rate, 0.02) if debris >= 3 else 0.0),
    ):
        if modifier:
            effects.append(effect(characteristic, modifier, 'Debris Accumulation'))

    replant = overgrowth.replant or overgrowth.uproot
    if 0 < replant <= AlgorithmConstants.REPLANT_SHOCK_YEARS:
        shock = AlgorithmConstants.REPLANT_SHOCK_RATE
        effects += [
            effect(C.AROMA, -concave_curve(replant, shock, 0.04), 'Replant Shock'),
            effect(C.BODY, -concave_curve(replant, shock, 0.02), 'Replant Shock'),
            effect(C.ACIDITY, concave_curve(replant, shock, 0.015), 'Replant Shock'),
        ]
    elif AlgorithmConstants.REPLANT_SHOCK_YEARS < replant <= AlgorithmConstants.SELECTION_BENEFIT_YEARS:
        years = replant - AlgorithmConstants.REPLANT_SHOCK_YEARS
        effects += [
            effect(C.BODY, concave_curve(years, veg_rate, 0.04), 'Selection Benefits'),
            effect(C.TANNINS, -concave_curve(years, veg_rate, 0.02 if white else 0.035), 'Selection Benefits'),
            effect(C.AROMA, concave_curve(years, veg_rate, 0.025), 'Selection Benefits'),
        ]

    return effects


def modify_harvest_characteristics(inputs: HarvestInputs) -> Tuple[WineCharacteristics, EffectBreakdown]:
    """
    Apply vineyard conditions to base grape characteristics.

    Args:
        inputs: Base characteristics and harvest conditions

    Returns:
        (final characteristics, breakdown of named effects)
    """
    position = altitude_position(inputs.altitude, inputs.min_altitude, inputs.max_altitude)

    effects = (
        ripeness_effects(inputs.ripeness)
        + quality_effects(inputs.quality_factor, inputs.grape_color)
        + altitude_effects(position)
        + suitability_effects(inputs.suitability)
    )
    if inputs.overgrowth is not None:
        effects += overgrowth_effects(inputs.overgrowth, inputs.grape_color)

    final = apply_effects(inputs.base_characteristics, effects)
    breakdown = EffectBreakdown(base=inputs.base_characteristics, effects=effects, final=final)
    return final, breakdown


def synthesize_characteristics(
    variety: str,
    country: str,
    region: str,
    altitude: float,
    ripeness: float,
    quality_factor: float,
    overgrowth: Optional[Overgrowth] = None
) -> Tuple[WineCharacteristics, EffectBreakdown]:
    """
    Characteristics for a newly harvested batch.

    Resolves grape profile, altitude band and suitability through the
    reference lookups; unknown keys fall back to their defaults.
    """
    profile = get_grape_profile(variety)
    min_altitude, max_altitude = get_region_altitude_band(country, region)
    suitability = get_region_grape_suitability(country, region, variety)

    inputs = HarvestInputs(
        base_characteristics=profile.base_characteristics,
        ripeness=ripeness,
        quality_factor=quality_factor,
        suitability=suitability,
        altitude=altitude,
        min_altitude=min_altitude,
        max_altitude=max_altitude,
        grape_color=profile.color,
        overgrowth=overgrowth,
    )
    characteristics, breakdown = modify_harvest_characteristics(inputs)
    logger.info(f"Synthesized {variety} from {region} ({country}): {len(breakdown.effects)} effects applied")
    return characteristics, breakdown


def generate_default_characteristics(variety: str) -> WineCharacteristics:
    """Grape base characteristics, or base-range midpoints for unknown varieties."""
    return get_grape_profile(variety).base_characteristics
