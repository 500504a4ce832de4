"""
Dynamic Range Adjustment

Extremity in one characteristic raises or lowers the bar for the others.
For every source characteristic that deviates from its base midpoint, the
rule table contributes:

- additive shifts to the balanced ranges of target characteristics
- multiplicative penalty scales for target characteristics, when the
  rule's conditions hold for the wine

Contributions are collected per target first and composed afterwards
(sum of shifts, product of scales), so the result does not depend on the
order in which sources are visited.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from vintner.constants import AlgorithmConstants, Characteristic, Direction
from vintner.rules import DynamicAdjustmentConfig
from vintner.schema import BalancedRange, RangeMap, WineCharacteristics
from vintner.utils import clamp01

logger = logging.getLogger(__name__)


@dataclass
class RangeAdjustment:
    """Adjusted ranges and penalty scales for one evaluation."""
    ranges: RangeMap
    penalty_scales: Dict[Characteristic, float]


@dataclass
class _TargetContributions:
    deltas: List[float] = field(default_factory=list)
    clamps: List[Tuple[float, float]] = field(default_factory=list)
    scales: List[float] = field(default_factory=list)


def normalized_deviation(value: float, base_range: BalancedRange) -> float:
    """
    Signed distance from the base midpoint in units of half-width.

    Roughly [-1, 1] inside the range; larger in magnitude outside it.
    """
    return (value - base_range.midpoint) / base_range.half_width


def _deviations(
    characteristics: WineCharacteristics,
    base_ranges: RangeMap,
    order: Optional[Sequence[Characteristic]]
) -> List[Tuple[Characteristic, float, Direction]]:
    sources = Characteristic.ordered() if order is None else [Characteristic(s) for s in order]
    result = []
    for source in sources:
        norm_diff = normalized_deviation(characteristics.get(source), base_ranges[source])
        if abs(norm_diff) < AlgorithmConstants.DEVIATION_EPSILON:
            continue
        direction = Direction.ABOVE if norm_diff > 0 else Direction.BELOW
        result.append((source, norm_diff, direction))
    return result


def _collect(
    characteristics: WineCharacteristics,
    base_ranges: RangeMap,
    config: DynamicAdjustmentConfig,
    order: Optional[Sequence[Characteristic]]
) -> Dict[Characteristic, _TargetContributions]:
    contributions: Dict[Characteristic, _TargetContributions] = {}

    for source, norm_diff, direction in _deviations(characteristics, base_ranges, order):
        rule_set = config.lookup(source, direction)

        for rule in rule_set.range_shifts:
            target_width = max(AlgorithmConstants.WIDTH_FLOOR, base_ranges[rule.target].width)
            entry = contributions.setdefault(rule.target, _TargetContributions())
            entry.deltas.append(rule.shift_per_unit * norm_diff * target_width)
            if rule.clamp is not None:
                entry.clamps.append(rule.clamp)

        for rule in rule_set.penalty_scales:
            if not rule.applies(characteristics):
                continue
            entry = contributions.setdefault(rule.target, _TargetContributions())
            entry.scales.append(rule.scale(norm_diff))

    return contributions


def _shift_range(base: BalancedRange, deltas: List[float], clamps: List[Tuple[float, float]]) -> BalancedRange:
    delta = math.fsum(deltas)
    new_min = base.min + delta
    new_max = base.max + delta

    if clamps:
        new_min = max(new_min, max(c[0] for c in clamps))
        new_max = min(new_max, min(c[1] for c in clamps))

    new_min = clamp01(new_min)
    new_max = clamp01(new_max)

    min_width = AlgorithmConstants.MIN_RANGE_WIDTH
    if new_max - new_min < min_width:
        # keep the window inside [0, 1] near the edges
        center = min(1 - min_width / 2, max(min_width / 2, (new_min + new_max) / 2))
        new_min = center - min_width / 2
        new_max = center + min_width / 2

    return BalancedRange(min=new_min, max=new_max)


def calculate_dynamic_adjustments(
    characteristics: WineCharacteristics,
    base_ranges: RangeMap,
    config: DynamicAdjustmentConfig,
    order: Optional[Sequence[Characteristic]] = None
) -> RangeAdjustment:
    """
    Compute adjusted ranges and penalty scales for a wine.

    Args:
        characteristics: Current wine characteristics
        base_ranges: Base balanced range per characteristic
        config: Dynamic adjustment rule table
        order: Optional processing order of source characteristics
               (the result is the same for every order)

    Returns:
        RangeAdjustment with one range and one penalty scale per characteristic.
        Characteristics that receive no range shift keep their base range
        exactly; penalty scales default to 1.
    """
    contributions = _collect(characteristics, base_ranges, config, order)

    ranges: RangeMap = {}
    penalty_scales: Dict[Characteristic, float] = {}
    for characteristic in Characteristic.ordered():
        entry = contributions.get(characteristic)
        base = base_ranges[characteristic]
        if entry is not None and entry.deltas:
            ranges[characteristic] = _shift_range(base, entry.deltas, entry.clamps)
        else:
            ranges[characteristic] = base
        penalty_scales[characteristic] = math.prod(entry.scales) if entry is not None else 1.0

    logger.debug(f"Dynamic adjustments touched {sorted(c.value for c in contributions)}")

    return RangeAdjustment(ranges=ranges, penalty_scales=penalty_scales)


def apply_dynamic_range_adjustments(
    characteristics: WineCharacteristics,
    base_ranges: RangeMap,
    config: DynamicAdjustmentConfig
) -> RangeMap:
    """Adjusted balanced ranges only."""
    return calculate_dynamic_adjustments(characteristics, base_ranges, config).ranges


def build_penalty_scale_map(
    characteristics: WineCharacteristics,
    base_ranges: RangeMap,
    config: DynamicAdjustmentConfig
) -> Dict[Characteristic, float]:
    """Per-target penalty scale multipliers only."""
    return calculate_dynamic_adjustments(characteristics, base_ranges, config).penalty_scales
