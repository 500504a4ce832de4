"""
Named characteristic effects.

Harvest, crushing and fermentation all describe their impact as a list of
named modifiers applied in order, each step clamped to [0, 1].
"""

from typing import Iterable

from vintner.constants import Characteristic
from vintner.schema import CharacteristicEffect, WineCharacteristics
from vintner.utils import clamp01


def effect(characteristic: Characteristic, modifier: float, description: str) -> CharacteristicEffect:
    return CharacteristicEffect(characteristic=characteristic, modifier=modifier, description=description)


def apply_effects(
    characteristics: WineCharacteristics,
    effects: Iterable[CharacteristicEffect]
) -> WineCharacteristics:
    """Apply effects in order, clamping each step to [0, 1]."""
    values = characteristics.to_dict()
    for item in effects:
        key = item.characteristic.value
        values[key] = clamp01(values[key] + item.modifier)
    return WineCharacteristics(**values).clamped()
