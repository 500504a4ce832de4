"""
Crushing

Pressing turns harvested grapes into must. The press, destemming, cold soak
and pressing intensity each contribute named effects, applied the same way
as harvest effects. Harder pressing yields more juice at a quality cost.
"""

import logging
from typing import Dict, List

from vintner.constants import AlgorithmConstants, Characteristic, CrushingMethod, PRESSING_METHOD_MULTIPLIERS
from vintner.effects import apply_effects, effect
from vintner.schema import (
    CharacteristicEffect,
    CrushingOptions,
    CrushingResult,
    EffectBreakdown,
    WineCharacteristics,
)

logger = logging.getLogger(__name__)

C = Characteristic

METHOD_EFFECTS: Dict[CrushingMethod, List[CharacteristicEffect]] = {
    CrushingMethod.HAND: [
        effect(C.AROMA, 0.05, 'Hand Pressing'),
        effect(C.BODY, 0.03, 'Hand Pressing'),
        effect(C.TANNINS, -0.02, 'Hand Pressing'),
    ],
    # standard press, no modifications
    CrushingMethod.MECHANICAL: [],
    CrushingMethod.PNEUMATIC: [
        effect(C.AROMA, 0.08, 'Pneumatic Pressing'),
        effect(C.SPICE, 0.05, 'Pneumatic Pressing'),
        effect(C.BODY, 0.05, 'Pneumatic Pressing'),
    ],
}

DESTEMMING_EFFECTS = [
    effect(C.BODY, 0.1, 'Removing Stems'),
    effect(C.TANNINS, 0.15, 'Removing Stems'),
    effect(C.SPICE, 0.1, 'Removing Stems'),
    effect(C.AROMA, 0.05, 'Removing Stems'),
]

STEM_INCLUSION_EFFECTS = [
    effect(C.AROMA, -0.15, 'Stem Inclusion'),
    effect(C.TANNINS, -0.1, 'Stem Inclusion'),
]

COLD_SOAK_EFFECTS = [
    effect(C.AROMA, 0.12, 'Cold Soak Pressing'),
    effect(C.BODY, 0.08, 'Cold Soak Pressing'),
    effect(C.TANNINS, 0.1, 'Cold Soak Pressing'),
    effect(C.SPICE, 0.06, 'Cold Soak Pressing'),
]


def _excess_pressure(intensity: float) -> float:
    """Pressure above the gentle threshold, rescaled to [0, 1]."""
    threshold = AlgorithmConstants.PRESSING_THRESHOLD
    return (intensity - threshold) / (1 - threshold)


def pressing_intensity_effects(intensity: float, method: CrushingMethod) -> List[CharacteristicEffect]:
    """
    Extraction effects of hard pressing.

    Nothing happens up to the threshold; beyond it the effect grows with the
    square of the excess pressure, scaled by how efficiently the press extracts.
    """
    if intensity <= AlgorithmConstants.PRESSING_THRESHOLD:
        return []
    level = _excess_pressure(intensity) ** AlgorithmConstants.PRESSING_EFFECT_EXPONENT
    level *= PRESSING_METHOD_MULTIPLIERS[method]
    return [
        effect(C.SPICE, -0.15 * level, 'Pressure Extraction'),
        effect(C.AROMA, -0.12 * level, 'Pressure Extraction'),
        effect(C.TANNINS, 0.20 * level, 'Pressure Extraction'),
    ]


def calculate_yield_multiplier(intensity: float) -> float:
    """0.85x juice at no pressure, 1.0x at 0.5, 1.15x at full pressure."""
    return AlgorithmConstants.YIELD_BASE + intensity * AlgorithmConstants.YIELD_RANGE


def calculate_pressing_quality_penalty(intensity: float) -> float:
    """Negative quality adjustment from hard pressing, down to -0.20 at full pressure."""
    if intensity <= AlgorithmConstants.PRESSING_THRESHOLD:
        return 0.0
    level = _excess_pressure(intensity) ** AlgorithmConstants.PRESSING_PENALTY_EXPONENT
    return -level * AlgorithmConstants.PRESSING_MAX_QUALITY_PENALTY


def get_crushing_effects(options: CrushingOptions) -> List[CharacteristicEffect]:
    """Every effect the crushing options will apply, in application order."""
    effects = list(METHOD_EFFECTS[options.method])
    effects += DESTEMMING_EFFECTS if options.destemming else STEM_INCLUSION_EFFECTS
    if options.cold_soak:
        effects += COLD_SOAK_EFFECTS
    effects += pressing_intensity_effects(options.pressing_intensity, options.method)
    return effects


def modify_crushing_characteristics(
    characteristics: WineCharacteristics,
    options: CrushingOptions
) -> CrushingResult:
    """
    Apply crushing options to harvested characteristics.

    Args:
        characteristics: Characteristics of the harvested grapes
        options: Press, destemming, cold soak and pressing intensity

    Returns:
        CrushingResult with the new characteristics, the effect breakdown,
        the juice yield multiplier and the grape quality penalty
    """
    effects = get_crushing_effects(options)
    final = apply_effects(characteristics, effects)
    yield_multiplier = calculate_yield_multiplier(options.pressing_intensity)
    quality_penalty = calculate_pressing_quality_penalty(options.pressing_intensity)

    logger.debug(
        f"Crushed with {options.method.value}: {len(effects)} effects, "
        f"yield x{yield_multiplier:.2f}, quality {quality_penalty:+.3f}"
    )

    return CrushingResult(
        characteristics=final,
        breakdown=EffectBreakdown(base=characteristics, effects=effects, final=final),
        yield_multiplier=yield_multiplier,
        quality_penalty=quality_penalty,
    )
