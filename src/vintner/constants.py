"""
Vintner Constants and Enums

Centralized constants, enums, and static configuration tables shared by the
synthesis, range adjustment and balance scoring stages.
"""

from enum import Enum
from typing import Dict, Tuple


# =======================
# WINE ATTRIBUTE ENUMS
# =======================

class Characteristic(str, Enum):
    """The six sensory characteristics of a wine (0-1 scale)."""
    ACIDITY = "acidity"
    AROMA = "aroma"
    BODY = "body"
    SPICE = "spice"
    SWEETNESS = "sweetness"
    TANNINS = "tannins"

    @classmethod
    def ordered(cls) -> Tuple['Characteristic', ...]:
        """Canonical order used for arrays and breakdown tables."""
        return tuple(cls)


class Direction(str, Enum):
    """Side of the balanced-range midpoint a characteristic sits on."""
    ABOVE = "above"
    BELOW = "below"


class GrapeColor(str, Enum):
    """Grape colors."""
    RED = "red"
    WHITE = "white"


class AgeWorthiness(str, Enum):
    """Aging potential, for display."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Comparison(str, Enum):
    """Operators for threshold conditions in synergy rules."""
    GT = "gt"
    GE = "ge"
    LT = "lt"
    LE = "le"

    def evaluate(self, left: float, right: float) -> bool:
        if self is Comparison.GT:
            return left > right
        elif self is Comparison.GE:
            return left >= right
        elif self is Comparison.LT:
            return left < right
        else:
            return left <= right


class SkewCurve(str, Enum):
    """Named skew functions for the combined wine score."""
    LINEAR = "linear"
    SMOOTHSTEP = "smoothstep"
    STEPPED = "stepped"


# =======================
# WINEMAKING ENUMS
# =======================

class CrushingMethod(str, Enum):
    """Presses available at the crushing stage."""
    HAND = "Hand Press"
    MECHANICAL = "Mechanical Press"
    PNEUMATIC = "Pneumatic Press"


class FermentationMethod(str, Enum):
    """Fermentation styles."""
    BASIC = "Basic"
    TEMPERATURE_CONTROLLED = "Temperature Controlled"
    EXTENDED_MACERATION = "Extended Maceration"


class FermentationTemperature(str, Enum):
    AMBIENT = "Ambient"
    COOL = "Cool"
    WARM = "Warm"


# =======================
# BALANCED RANGES
# =======================

# Base "ideal" band per characteristic
BASE_BALANCED_RANGES: Dict[Characteristic, Tuple[float, float]] = {
    Characteristic.ACIDITY: (0.4, 0.6),
    Characteristic.AROMA: (0.3, 0.7),
    Characteristic.BODY: (0.4, 0.8),
    Characteristic.SPICE: (0.35, 0.65),
    Characteristic.SWEETNESS: (0.4, 0.6),
    Characteristic.TANNINS: (0.35, 0.65),
}


# =======================
# CRUSHING
# =======================

# Highest pressing intensity each press can reach
MAX_PRESSING_INTENSITY: Dict[CrushingMethod, float] = {
    CrushingMethod.HAND: 0.5,
    CrushingMethod.MECHANICAL: 0.8,
    CrushingMethod.PNEUMATIC: 1.0,
}

# How strongly each press extracts once pressing intensity kicks in
PRESSING_METHOD_MULTIPLIERS: Dict[CrushingMethod, float] = {
    CrushingMethod.HAND: 1.0,
    CrushingMethod.MECHANICAL: 1.5,
    CrushingMethod.PNEUMATIC: 1.9,
}


# =======================
# ALGORITHM CONSTANTS
# =======================

class AlgorithmConstants:
    """
    Algorithm constants with documentation.
    """

    # RANGE ADJUSTMENT
    # Floor applied to range widths before dividing or scaling by them
    WIDTH_FLOOR = 0.0001
    # Deviations smaller than this are treated as sitting on the midpoint
    DEVIATION_EPSILON = 1e-6
    # Adjusted ranges never get narrower than this
    MIN_RANGE_WIDTH = 0.02

    # BALANCE SCORING
    # Distance outside the adjusted range counts double
    OUTSIDE_PENALTY_FACTOR = 2.0
    # Average deduction is doubled before subtracting from 1
    DEDUCTION_SCALE = 2.0

    # RULE DEFAULTS (penalty and synergy math share the same shape)
    DEFAULT_RULE_K = 0.2
    DEFAULT_RULE_P = 1.2
    DEFAULT_SYNERGY_CAP = 0.75
    DEFAULT_PENALTY_CAP = 2.0

    # HARVEST
    # Concave overgrowth curve: (1 - (1 - rate)^years) * scale
    OVERGROWTH_RATE = 0.35
    DEBRIS_RATE = 0.4
    REPLANT_SHOCK_RATE = 0.6
    REPLANT_SHOCK_YEARS = 2
    SELECTION_BENEFIT_YEARS = 7

    # GRAPE QUALITY
    LAND_VALUE_WEIGHT = 0.6
    PRESTIGE_WEIGHT = 0.4
    OVERGROWTH_BASE_PENALTY = 0.06
    OVERGROWTH_DECAY_RATE = 0.3
    OVERGROWTH_MIN_MULTIPLIER = 0.5
    DENSITY_NO_PENALTY = 1500   # vines/ha
    DENSITY_MAX_PENALTY = 10000  # vines/ha
    DENSITY_MIN_MULTIPLIER = 0.5

    # CRUSHING
    # Pressing effects start above this intensity
    PRESSING_THRESHOLD = 0.1
    PRESSING_EFFECT_EXPONENT = 2.0
    PRESSING_PENALTY_EXPONENT = 2.5
    PRESSING_MAX_QUALITY_PENALTY = 0.20
    # Yield: 0.85x at no pressure, 1.15x at full pressure
    YIELD_BASE = 0.85
    YIELD_RANGE = 0.30

    # PRICING
    BASE_RATE_PER_BOTTLE = 25.0
    MAX_PRICE = 99999999.99
    # Each prestige source adds at most 25%
    PRESTIGE_PRICE_BONUS = 0.25
    # Saturation rate of 1 - exp(-rate x prestige / 1000)
    PRESTIGE_SATURATION_RATE = 3.0
    # Highest wine score fed to the quality multiplier
    MAX_PRICED_SCORE = 0.99999


# =======================
# COLUMN NAME CONSTANTS
# =======================

class ColumnNames:
    """Wine batch CSV column names to avoid string hardcoding."""

    ID = "id"
    COMPANY_ID = "company_id"
    VINEYARD_NAME = "vineyard_name"
    VARIETY = "variety"
    COLOR = "color"
    HARVEST_YEAR = "harvest_year"
    QUANTITY = "quantity"
    GRAPE_QUALITY = "grape_quality"
    BORN_GRAPE_QUALITY = "born_grape_quality"
    BALANCE = "balance"
    COMBINED_SCORE = "combined_score"

    @classmethod
    def characteristic_columns(cls) -> list:
        """Get list of the six characteristic columns."""
        return [c.value for c in Characteristic.ordered()]

    @classmethod
    def all_columns(cls) -> list:
        return [
            cls.ID, cls.COMPANY_ID, cls.VINEYARD_NAME, cls.VARIETY, cls.COLOR,
            cls.HARVEST_YEAR, cls.QUANTITY,
            *cls.characteristic_columns(),
            cls.GRAPE_QUALITY, cls.BORN_GRAPE_QUALITY, cls.BALANCE, cls.COMBINED_SCORE,
        ]


# =======================
# FILE PATH CONSTANTS
# =======================

class FilePaths:
    """Standard file paths used by the batch store and scripts."""

    BATCHES_CSV = "data/wine_batches.csv"
    RULES_JSON = "data/rules.json"
