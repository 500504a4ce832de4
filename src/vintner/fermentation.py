"""
Fermentation

Fermenting wine develops a little every week. The fermentation method and
the temperature each add a fixed set of weekly effects.
"""

import logging
from typing import Dict, List, Tuple

from vintner.constants import Characteristic, FermentationMethod, FermentationTemperature
from vintner.effects import apply_effects, effect
from vintner.schema import CharacteristicEffect, EffectBreakdown, FermentationOptions, WineCharacteristics

logger = logging.getLogger(__name__)

C = Characteristic

# Per-week modifiers
METHOD_EFFECTS: Dict[FermentationMethod, List[CharacteristicEffect]] = {
    FermentationMethod.BASIC: [
        effect(C.AROMA, 0.005, 'Basic Fermentation'),
        effect(C.BODY, 0.003, 'Basic Fermentation'),
    ],
    FermentationMethod.TEMPERATURE_CONTROLLED: [
        effect(C.AROMA, 0.008, 'Temperature Controlled Fermentation'),
        effect(C.BODY, 0.005, 'Temperature Controlled Fermentation'),
        effect(C.ACIDITY, 0.002, 'Temperature Controlled Fermentation'),
    ],
    FermentationMethod.EXTENDED_MACERATION: [
        effect(C.TANNINS, 0.008, 'Extended Maceration'),
        effect(C.BODY, 0.01, 'Extended Maceration'),
        effect(C.SPICE, 0.006, 'Extended Maceration'),
        effect(C.AROMA, 0.007, 'Extended Maceration'),
    ],
}

TEMPERATURE_EFFECTS: Dict[FermentationTemperature, List[CharacteristicEffect]] = {
    FermentationTemperature.AMBIENT: [],
    FermentationTemperature.COOL: [
        effect(C.ACIDITY, 0.003, 'Cool Fermentation'),
        effect(C.AROMA, 0.004, 'Cool Fermentation'),
        effect(C.SWEETNESS, 0.002, 'Cool Fermentation'),
    ],
    FermentationTemperature.WARM: [
        effect(C.BODY, 0.006, 'Warm Fermentation'),
        effect(C.TANNINS, 0.004, 'Warm Fermentation'),
        effect(C.ACIDITY, -0.002, 'Warm Fermentation'),
    ],
}


def get_combined_fermentation_effects(
    method: FermentationMethod,
    temperature: FermentationTemperature
) -> List[CharacteristicEffect]:
    """One week of effects: method first, then temperature."""
    return list(METHOD_EFFECTS[FermentationMethod(method)]) + \
        list(TEMPERATURE_EFFECTS[FermentationTemperature(temperature)])


def apply_weekly_fermentation_effects(
    characteristics: WineCharacteristics,
    options: FermentationOptions,
    weeks: int = 1
) -> Tuple[WineCharacteristics, EffectBreakdown]:
    """
    Ferment for a number of weeks.

    Args:
        characteristics: Characteristics before this fermentation period
        options: Fermentation method and temperature
        weeks: Number of weekly ticks to apply

    Returns:
        (final characteristics, breakdown listing every weekly effect applied)
    """
    if weeks < 0:
        raise ValueError(f"weeks must be non-negative, got {weeks}")

    weekly = get_combined_fermentation_effects(options.method, options.temperature)
    effects: List[CharacteristicEffect] = []
    final = characteristics
    for _ in range(weeks):
        final = apply_effects(final, weekly)
        effects += weekly

    logger.debug(f"Fermented {weeks} week(s) with {options.method.value} at {options.temperature.value}")
    return final, EffectBreakdown(base=characteristics, effects=effects, final=final)
