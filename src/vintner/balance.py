"""
Balance Scoring

Reduces a wine's characteristics, their dynamically adjusted ranges,
penalty scales and synergy reductions to a single 0-1 balance score.

Per characteristic:
    distance_inside  = |value - midpoint(adjusted range)|
    distance_outside = distance beyond the nearest bound (0 inside)
    total            = (distance_inside + 2 x distance_outside)
                       x penalty_scale x (1 - synergy_reduction)

    score = max(0, 1 - 2 x mean(total)), capped at 1

The scorer computes with raw values; characteristics outside [0, 1] are
not re-validated here.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

import numpy as np

from vintner.constants import AlgorithmConstants, Characteristic
from vintner.ranges import RangeAdjustment, calculate_dynamic_adjustments
from vintner.rules import DYNAMIC_ADJUSTMENTS, SYNERGY_RULES, DynamicAdjustmentConfig, SynergyRule
from vintner.schema import (
    BalanceResult,
    CharacteristicCalculation,
    RangeMap,
    WineCharacteristics,
    build_range_map,
)
from vintner.utils import clamp01

logger = logging.getLogger(__name__)


def get_synergy_reductions(
    characteristics: WineCharacteristics,
    base_ranges: Optional[Mapping] = None,
    synergy_rules: Iterable[SynergyRule] = SYNERGY_RULES
) -> Dict[Characteristic, float]:
    """
    Synergy reduction per characteristic.

    Synergies do not stack: each characteristic gets the strongest
    reduction among the applicable rules that target it.

    Args:
        characteristics: Wine characteristics
        base_ranges: Base balanced ranges (default BASE_BALANCED_RANGES)
        synergy_rules: Synergy rules to evaluate

    Returns:
        Dict mapping every characteristic to a reduction in [0, 1]
    """
    ranges = build_range_map(base_ranges)
    reductions = {c: 0.0 for c in Characteristic.ordered()}

    for rule in synergy_rules:
        if not rule.applies(characteristics):
            continue
        reduction = rule.reduction(characteristics, ranges)
        logger.debug(f"Synergy '{rule.name}' applies with reduction {reduction:.3f}")
        for target in rule.targets:
            reductions[target] = max(reductions[target], reduction)

    return reductions


def _calculate(
    characteristics: WineCharacteristics,
    adjustment: RangeAdjustment,
    synergy_reductions: Dict[Characteristic, float]
) -> Dict[Characteristic, CharacteristicCalculation]:
    breakdown = {}
    for characteristic, value in characteristics.items():
        adjusted = adjustment.ranges[characteristic]
        distance_inside = abs(value - adjusted.midpoint)
        distance_outside = adjusted.distance_outside(value)
        penalty = AlgorithmConstants.OUTSIDE_PENALTY_FACTOR * distance_outside
        base_total = distance_inside + penalty
        scale = adjustment.penalty_scales.get(characteristic, 1.0)
        reduction = synergy_reductions.get(characteristic, 0.0)

        breakdown[characteristic] = CharacteristicCalculation(
            value=value,
            adjusted_range=adjusted,
            distance_inside=distance_inside,
            distance_outside=distance_outside,
            penalty=penalty,
            base_total_distance=base_total,
            penalty_scale=scale,
            synergy_reduction=reduction,
            final_total_distance=base_total * scale * (1 - reduction),
        )
    return breakdown


def calculate_characteristic_breakdown(
    characteristics: WineCharacteristics,
    base_ranges: Optional[Mapping] = None,
    config: DynamicAdjustmentConfig = DYNAMIC_ADJUSTMENTS,
    synergy_rules: Iterable[SynergyRule] = SYNERGY_RULES
) -> Dict[Characteristic, CharacteristicCalculation]:
    """
    Detailed per-characteristic calculation, for display.

    Args:
        characteristics: Wine characteristics
        base_ranges: Base balanced ranges (default BASE_BALANCED_RANGES)
        config: Dynamic adjustment rule table
        synergy_rules: Synergy rules

    Returns:
        Dict of CharacteristicCalculation in canonical order
    """
    ranges = build_range_map(base_ranges)
    adjustment = calculate_dynamic_adjustments(characteristics, ranges, config)
    reductions = get_synergy_reductions(characteristics, ranges, synergy_rules)
    return _calculate(characteristics, adjustment, reductions)


def score_from_breakdown(breakdown: Mapping[Characteristic, CharacteristicCalculation]) -> float:
    """Map per-characteristic totals to the final 0-1 score."""
    if not breakdown:
        return 1.0
    totals = np.array([calc.final_total_distance for calc in breakdown.values()])
    average_deduction = float(totals.mean())
    return clamp01(1 - average_deduction * AlgorithmConstants.DEDUCTION_SCALE)


def calculate_wine_balance(
    characteristics: WineCharacteristics,
    base_ranges: Optional[Mapping] = None,
    config: DynamicAdjustmentConfig = DYNAMIC_ADJUSTMENTS,
    synergy_rules: Iterable[SynergyRule] = SYNERGY_RULES
) -> BalanceResult:
    """
    Calculate a wine's balance score.

    Args:
        characteristics: Wine characteristics
        base_ranges: Base balanced ranges (default BASE_BALANCED_RANGES)
        config: Dynamic adjustment rule table (default DYNAMIC_ADJUSTMENTS)
        synergy_rules: Synergy rules (default SYNERGY_RULES)

    Returns:
        BalanceResult with score in [0, 1] and the adjusted ranges
    """
    ranges: RangeMap = build_range_map(base_ranges)
    adjustment = calculate_dynamic_adjustments(characteristics, ranges, config)
    reductions = get_synergy_reductions(characteristics, ranges, synergy_rules)
    breakdown = _calculate(characteristics, adjustment, reductions)
    score = score_from_breakdown(breakdown)

    logger.debug(f"Balance score {score:.4f} for {characteristics.to_dict()}")

    return BalanceResult(score=score, qualifies=False, dynamic_ranges=adjustment.ranges)


__all__ = [
    'get_synergy_reductions',
    'calculate_characteristic_breakdown',
    'calculate_wine_balance',
    'score_from_breakdown',
]
