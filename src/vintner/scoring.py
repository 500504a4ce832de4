"""
Combined wine score.

The combined score averages the balance score with an independently
computed grape/vineyard quality and passes the result through a skew
curve. Every curve is a monotonic non-decreasing map [0, 1] -> [0, 1]
with 0 -> 0 and 1 -> 1; the non-linear curves make mid-range combined
scores count for less than the extremes.
"""

import logging
import math
from typing import Callable, Dict, Optional, Union

from vintner.config import DEFAULT_SKEW_CURVE
from vintner.constants import AlgorithmConstants, SkewCurve
from vintner.schema import Overgrowth
from vintner.utils import clamp01, safe_divide

logger = logging.getLogger(__name__)


# =======================
# SKEW CURVES
# =======================

def linear_skew(score: float) -> float:
    return clamp01(score)


def smoothstep_skew(score: float) -> float:
    """3x^2 - 2x^3: flat near the ends, steep through the middle."""
    x = clamp01(score)
    return x * x * (3 - 2 * x)


_STEPPED_TAIL = 1 - math.exp(-0.1)


def stepped_skew(score: float) -> float:
    """
    Multi-segment curve.

    0.0 -> 0.000, 0.4 -> 0.240, 0.7 -> 0.560, 0.9 -> 0.860,
    0.95 -> 0.960, 0.99 -> 0.992, 1.0 -> 1.000
    """
    x = clamp01(score)
    if x < 0.4:
        # polynomial for low scores
        return x * x * 1.5
    elif x < 0.7:
        # logarithmic through the middle
        return 0.24 + math.log(1 + (x - 0.4) * 3.33) * 0.3
    elif x < 0.9:
        return 0.56 + (x - 0.7) * 1.5
    elif x < 0.95:
        return 0.86 + (x - 0.9) * 2
    elif x < 0.99:
        return 0.96 + (x - 0.95) * 0.8
    else:
        # saturating tail ending exactly at 1.0
        return min(1.0, 0.992 + (1 - math.exp(-(x - 0.99) * 10)) / _STEPPED_TAIL * 0.008)


SKEW_FUNCTIONS: Dict[SkewCurve, Callable[[float], float]] = {
    SkewCurve.LINEAR: linear_skew,
    SkewCurve.SMOOTHSTEP: smoothstep_skew,
    SkewCurve.STEPPED: stepped_skew,
}


def get_skew_function(curve: Union[SkewCurve, str, None] = None) -> Callable[[float], float]:
    """Skew function for a curve name (default from config)."""
    return SKEW_FUNCTIONS[SkewCurve(curve) if curve is not None else DEFAULT_SKEW_CURVE]


# =======================
# GRAPE QUALITY
# =======================

def combine_overgrowth_years(overgrowth: Optional[Overgrowth], weights: Optional[Dict[str, float]] = None) -> float:
    """Weighted average of overgrowth years."""
    if overgrowth is None:
        return 0.0
    weights = weights or {'vegetation': 1.0, 'debris': 0.5, 'uproot': 1.0, 'replant': 1.0}
    weighted = sum(getattr(overgrowth, name) * w for name, w in weights.items())
    return safe_divide(weighted, sum(weights.values()))


def calculate_overgrowth_quality_penalty(overgrowth: Optional[Overgrowth]) -> float:
    """
    Quality multiplier for vineyard neglect.

    Returns:
        Multiplier in [0.5, 1]; 1 means no penalty
    """
    years = combine_overgrowth_years(
        overgrowth, {'vegetation': 1.0, 'debris': 0.8, 'uproot': 1.2, 'replant': 1.1}
    )
    if years <= 0:
        return 1.0
    penalty = AlgorithmConstants.OVERGROWTH_BASE_PENALTY * (
        1 - (1 - AlgorithmConstants.OVERGROWTH_DECAY_RATE) ** years
    )
    return max(1 - penalty, AlgorithmConstants.OVERGROWTH_MIN_MULTIPLIER)


def calculate_density_quality_penalty(density: float) -> float:
    """
    Quality multiplier for vine density (vines/ha).

    No penalty at 1500 vines/ha, linear down to 0.5 at 10000 vines/ha.
    """
    if not density or density <= 0:
        return 1.0
    low = AlgorithmConstants.DENSITY_NO_PENALTY
    high = AlgorithmConstants.DENSITY_MAX_PENALTY
    clamped = max(low, min(high, density))
    penalty = 1.0 - (clamped - low) / (high - low) * (1 - AlgorithmConstants.DENSITY_MIN_MULTIPLIER)
    return max(AlgorithmConstants.DENSITY_MIN_MULTIPLIER, min(1.0, penalty))


def calculate_grape_quality(
    land_value_factor: float,
    prestige_factor: float,
    overgrowth: Optional[Overgrowth] = None,
    density: float = 0.0
) -> float:
    """
    Grape quality (0-1) from normalized vineyard factors.

    Args:
        land_value_factor: Normalized land value (0-1)
        prestige_factor: Bounded vineyard prestige (0-1)
        overgrowth: Years since maintenance, if any
        density: Vine density in vines/ha (0 = no vines planted)
    """
    base = (land_value_factor * AlgorithmConstants.LAND_VALUE_WEIGHT
            + prestige_factor * AlgorithmConstants.PRESTIGE_WEIGHT)
    quality = base * calculate_overgrowth_quality_penalty(overgrowth) * calculate_density_quality_penalty(density)
    return clamp01(quality)


# =======================
# COMBINED SCORE
# =======================

def calculate_wine_combined_score(
    balance: float,
    grape_quality: float,
    curve: Union[SkewCurve, str, None] = None
) -> float:
    """
    Combine balance and grape quality into the score used for pricing.

    Args:
        balance: Balance score (0-1)
        grape_quality: Grape/vineyard quality (0-1)
        curve: Skew curve (default from config)

    Returns:
        Skewed combined score (0-1)
    """
    combined = (clamp01(balance) + clamp01(grape_quality)) / 2
    skewed = get_skew_function(curve)(combined)
    logger.debug(f"Combined score {combined:.4f} -> {skewed:.4f}")
    return skewed
