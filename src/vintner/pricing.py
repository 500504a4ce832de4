"""
Wine Pricing

Estimated bottle price from the combined wine score. The base rate grows
steeply with quality: ordinary wines sell near the base rate while only
exceptional wines reach the extreme multipliers. Company and vineyard
prestige each add up to a 25% premium.
"""

import logging
import math
from typing import Optional, Union

from vintner.batches import WineBatch, evaluate_batch
from vintner.constants import AlgorithmConstants, SkewCurve
from vintner.rules import DEFAULT_RULE_CONFIG, RuleConfig

logger = logging.getLogger(__name__)

# (lower bound, multiplier at lower bound, slope) for scores in [0.5, 0.98)
_QUALITY_SEGMENTS = (
    (0.95, 10.0, 40.0 / 0.03),
    (0.9, 3.0, 140.0),
    (0.7, 1.25, 8.75),
    (0.5, 1.1, 0.75),
)


def calculate_quality_price_multiplier(wine_score: float) -> float:
    """
    Price multiplier for a wine score.

    Piecewise linear and continuous up to 0.98:
    1.0 -> 1.1 at 0.5, 1.25 at 0.7, 3 at 0.9, 10 at 0.95 and 50 at 0.98.
    Above 0.98 the multiplier grows exponentially (50 x 10000^(5 x excess)).
    Scores are clamped to [0, 0.99999].
    """
    score = min(AlgorithmConstants.MAX_PRICED_SCORE, max(0.0, wine_score or 0.0))
    if score >= 0.98:
        return 50.0 * math.pow(10000.0, (score - 0.98) * 5)
    for lower, start, slope in _QUALITY_SEGMENTS:
        if score >= lower:
            return start + (score - lower) * slope
    return 1.0 + score * 0.2


def normalize_prestige(prestige: Optional[float]) -> float:
    """
    Map open-ended prestige onto [0, 1).

    1 - exp(-3 x prestige / 1000): 0 stays 0, 1000 gives about 0.95 and the
    tail keeps rising towards 1. Negative prestige counts as 0.
    """
    if prestige is None or prestige <= 0:
        return 0.0
    rate = AlgorithmConstants.PRESTIGE_SATURATION_RATE
    return 1.0 - math.exp(-rate * prestige / 1000.0)


def calculate_estimated_price(
    wine_score: float,
    company_prestige: Optional[float] = None,
    vineyard_prestige: Optional[float] = None
) -> float:
    """
    Estimated price per bottle.

    Args:
        wine_score: Combined wine score (0-1)
        company_prestige: Optional company prestige; adds up to 25%
        vineyard_prestige: Optional vineyard prestige; adds up to 25%

    Returns:
        Price rounded to cents, capped at MAX_PRICE
    """
    price = wine_score * AlgorithmConstants.BASE_RATE_PER_BOTTLE
    price *= calculate_quality_price_multiplier(wine_score)

    for prestige in (company_prestige, vineyard_prestige):
        if prestige is not None:
            price *= 1 + normalize_prestige(prestige) * AlgorithmConstants.PRESTIGE_PRICE_BONUS

    price = min(max(price, 0.0), AlgorithmConstants.MAX_PRICE)
    return round(price, 2)


def estimate_batch_price(
    batch: WineBatch,
    company_prestige: Optional[float] = None,
    vineyard_prestige: Optional[float] = None,
    rules: RuleConfig = DEFAULT_RULE_CONFIG,
    curve: Union[SkewCurve, str, None] = None
) -> float:
    """Price a batch from its combined score, scoring it first if needed."""
    if batch.combined_score is None:
        batch = evaluate_batch(batch, rules=rules, curve=curve)
    price = calculate_estimated_price(batch.combined_score, company_prestige, vineyard_prestige)
    logger.debug(f"Batch {batch.id}: score {batch.combined_score:.4f} -> {price:.2f} per bottle")
    return price
