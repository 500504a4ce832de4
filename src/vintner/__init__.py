"""Vintner - wine characteristic synthesis and balance scoring for a winery simulation."""

from vintner.balance import calculate_characteristic_breakdown, calculate_wine_balance, get_synergy_reductions
from vintner.batches import WineBatch, WineBatchStore, evaluate_batch
from vintner.crushing import modify_crushing_characteristics
from vintner.fermentation import apply_weekly_fermentation_effects, get_combined_fermentation_effects
from vintner.harvest import modify_harvest_characteristics, synthesize_characteristics
from vintner.pricing import calculate_estimated_price, estimate_batch_price
from vintner.ranges import apply_dynamic_range_adjustments, build_penalty_scale_map
from vintner.schema import BalancedRange, BalanceResult, WineCharacteristics
from vintner.scoring import calculate_grape_quality, calculate_wine_combined_score

__version__ = "0.1.0"

__all__ = [
    'WineCharacteristics',
    'BalancedRange',
    'BalanceResult',
    'calculate_wine_balance',
    'calculate_characteristic_breakdown',
    'get_synergy_reductions',
    'apply_dynamic_range_adjustments',
    'build_penalty_scale_map',
    'modify_harvest_characteristics',
    'synthesize_characteristics',
    'modify_crushing_characteristics',
    'get_combined_fermentation_effects',
    'apply_weekly_fermentation_effects',
    'calculate_grape_quality',
    'calculate_wine_combined_score',
    'calculate_estimated_price',
    'estimate_batch_price',
    'WineBatch',
    'WineBatchStore',
    'evaluate_batch',
    '__version__',
]
