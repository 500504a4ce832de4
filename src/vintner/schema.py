"""Pydantic value types for the Vintner scoring pipeline."""

from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

from vintner.constants import (
    AgeWorthiness,
    AlgorithmConstants,
    BASE_BALANCED_RANGES,
    Characteristic,
    CrushingMethod,
    FermentationMethod,
    FermentationTemperature,
    GrapeColor,
    MAX_PRESSING_INTENSITY,
)
from vintner.utils import clamp01


class WineCharacteristics(BaseModel):
    """Six-dimensional sensory profile of a wine (0-1 scale).

    Values are conventionally clamped upstream; the model does not reject
    out-of-range values so the scorer can compute with the raw numbers.
    """

    model_config = ConfigDict(frozen=True)

    acidity: float = Field(..., description="Perceived acidity")
    aroma: float = Field(..., description="Aromatic intensity")
    body: float = Field(..., description="Body weight")
    spice: float = Field(..., description="Spice character")
    sweetness: float = Field(..., description="Residual sweetness")
    tannins: float = Field(..., description="Tannin level")

    def get(self, characteristic: Characteristic) -> float:
        return getattr(self, Characteristic(characteristic).value)

    def items(self) -> Iterator[Tuple[Characteristic, float]]:
        """Iterate (characteristic, value) pairs in canonical order."""
        for characteristic in Characteristic.ordered():
            yield characteristic, self.get(characteristic)

    def to_array(self) -> np.ndarray:
        """Convert to numpy array in canonical order"""
        return np.array([value for _, value in self.items()])

    def to_dict(self) -> Dict[str, float]:
        return {characteristic.value: value for characteristic, value in self.items()}

    @classmethod
    def from_dict(cls, data: Mapping) -> 'WineCharacteristics':
        """Create from a mapping keyed by characteristic name or enum"""
        values = {Characteristic(key).value: float(value) for key, value in data.items()}
        return cls(**values)

    @classmethod
    def from_csv(cls, text: str) -> 'WineCharacteristics':
        """
        Parse "acidity,aroma,body,spice,sweetness,tannins".

        Raises:
            ValueError: If the count is wrong or a value is not a number
        """
        parts = [part.strip() for part in text.split(",")]
        if len(parts) != len(Characteristic):
            raise ValueError(f"expected {len(Characteristic)} comma-separated values, got {len(parts)}")
        return cls(**{c.value: float(part) for c, part in zip(Characteristic.ordered(), parts)})

    @classmethod
    def midpoints(cls, ranges: Mapping[Characteristic, 'BalancedRange']) -> 'WineCharacteristics':
        """Profile sitting exactly on the midpoint of every range."""
        return cls(**{c.value: ranges[c].midpoint for c in Characteristic.ordered()})

    def clamped(self) -> 'WineCharacteristics':
        return WineCharacteristics(**{c.value: clamp01(v) for c, v in self.items()})

    def with_value(self, characteristic: Characteristic, value: float) -> 'WineCharacteristics':
        return self.model_copy(update={Characteristic(characteristic).value: value})


class BalancedRange(BaseModel):
    """Ideal [min, max] band for a single characteristic."""

    model_config = ConfigDict(frozen=True)

    min: float
    max: float

    @model_validator(mode='after')
    def _check_order(self) -> 'BalancedRange':
        if self.min > self.max:
            raise ValueError(f"range min {self.min} exceeds max {self.max}")
        return self

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2

    @property
    def width(self) -> float:
        return self.max - self.min

    @property
    def half_width(self) -> float:
        """Half of the width, floored so it can be divided by."""
        return max(AlgorithmConstants.WIDTH_FLOOR, self.width / 2)

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max

    def distance_outside(self, value: float) -> float:
        """Zero inside the range, otherwise distance beyond the nearest bound."""
        return max(0.0, self.min - value, value - self.max)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.min, self.max)

    @classmethod
    def from_tuple(cls, bounds: Tuple[float, float]) -> 'BalancedRange':
        return cls(min=bounds[0], max=bounds[1])


RangeMap = Dict[Characteristic, BalancedRange]


def build_range_map(ranges: Optional[Mapping] = None) -> RangeMap:
    """Normalize a mapping of tuples or BalancedRange objects into a RangeMap.

    Defaults to BASE_BALANCED_RANGES.
    """
    source = BASE_BALANCED_RANGES if ranges is None else ranges
    result: RangeMap = {}
    for characteristic in Characteristic.ordered():
        bounds = source[characteristic] if characteristic in source else source[characteristic.value]
        if not isinstance(bounds, BalancedRange):
            bounds = BalancedRange.from_tuple(tuple(bounds))
        result[characteristic] = bounds
    return result


class BalanceResult(BaseModel):
    """Outcome of balance scoring."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., ge=0.0, le=1.0, description="Balance score (0-1)")
    qualifies: bool = Field(False, description="Reserved, always False")
    dynamic_ranges: Dict[Characteristic, BalancedRange]


class CharacteristicCalculation(BaseModel):
    """Per-characteristic scoring breakdown for display."""

    model_config = ConfigDict(frozen=True)

    value: float
    adjusted_range: BalancedRange
    distance_inside: float
    distance_outside: float
    penalty: float
    base_total_distance: float
    penalty_scale: float
    synergy_reduction: float
    final_total_distance: float


class AgingProfile(BaseModel):
    """How a grape's wines develop with age."""

    model_config = ConfigDict(frozen=True)

    early_peak: float = Field(..., ge=0, description="Years - end of fast growth phase")
    late_peak: float = Field(..., ge=0, description="Years - end of moderate growth phase")
    age_worthiness: AgeWorthiness


class GrapeProfile(BaseModel):
    """Read-only reference data for a grape variety."""

    model_config = ConfigDict(frozen=True)

    name: str
    natural_yield: float = Field(..., ge=0.0, le=1.0)
    fragility: float = Field(..., ge=0.0, le=1.0, description="0=robust, 1=fragile")
    oxidation_proneness: float = Field(..., ge=0.0, le=1.0)
    color: GrapeColor
    base_characteristics: WineCharacteristics
    description: str = ""
    aging_profile: AgingProfile


class Overgrowth(BaseModel):
    """Years since each kind of vineyard maintenance."""

    model_config = ConfigDict(frozen=True)

    vegetation: float = Field(0.0, ge=0.0)
    debris: float = Field(0.0, ge=0.0)
    uproot: float = Field(0.0, ge=0.0)
    replant: float = Field(0.0, ge=0.0)


class HarvestInputs(BaseModel):
    """Vineyard conditions at harvest."""

    model_config = ConfigDict(frozen=True)

    base_characteristics: WineCharacteristics
    ripeness: float = Field(..., ge=0.0, le=1.0)
    quality_factor: float = Field(..., ge=0.0, le=1.0)
    suitability: float = Field(..., ge=0.0, le=1.0, description="Region x grape suitability")
    altitude: float = Field(..., description="Vineyard altitude in meters")
    min_altitude: float = Field(..., description="Lowest altitude of the region")
    max_altitude: float = Field(..., description="Highest altitude of the region")
    grape_color: GrapeColor
    overgrowth: Optional[Overgrowth] = None

    @model_validator(mode='after')
    def _check_band(self) -> 'HarvestInputs':
        if self.min_altitude > self.max_altitude:
            raise ValueError("min_altitude exceeds max_altitude")
        return self


class CharacteristicEffect(BaseModel):
    """A named nudge applied to one characteristic by a winemaking stage."""

    model_config = ConfigDict(frozen=True)

    characteristic: Characteristic
    modifier: float  # positive = increase
    description: str


class EffectBreakdown(BaseModel):
    """Informational record of how one stage shaped the wine."""

    model_config = ConfigDict(frozen=True)

    base: WineCharacteristics
    effects: List[CharacteristicEffect] = Field(default_factory=list)
    final: WineCharacteristics

    def total_modifier(self, characteristic: Characteristic) -> float:
        """Sum of requested modifiers for one characteristic (before clamping)."""
        return sum(e.modifier for e in self.effects if e.characteristic == characteristic)


class CrushingOptions(BaseModel):
    """Choices made at the crushing stage."""

    model_config = ConfigDict(frozen=True)

    method: CrushingMethod = CrushingMethod.MECHANICAL
    destemming: bool = True
    cold_soak: bool = False
    pressing_intensity: float = Field(0.5, ge=0.0, le=1.0)

    @model_validator(mode='after')
    def _check_pressure(self) -> 'CrushingOptions':
        limit = MAX_PRESSING_INTENSITY[self.method]
        if self.pressing_intensity > limit:
            raise ValueError(f"{self.method.value} cannot press harder than {limit}")
        return self


class CrushingResult(BaseModel):
    """Crushed must: new characteristics plus yield and quality impact."""

    model_config = ConfigDict(frozen=True)

    characteristics: WineCharacteristics
    breakdown: EffectBreakdown
    yield_multiplier: float
    quality_penalty: float = Field(..., le=0.0, description="Added to grape quality")


class FermentationOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: FermentationMethod = FermentationMethod.BASIC
    temperature: FermentationTemperature = FermentationTemperature.AMBIENT
