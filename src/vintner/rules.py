"""
Declarative rule tables for the balance engine.

Two kinds of configuration live here:

- Dynamic adjustments, keyed by (source characteristic, direction). When a
  source sits above or below its balanced-range midpoint it shifts the
  ranges of other characteristics and scales their penalties. Penalty
  scales only fire when their conditions hold for the wine.
- Synergy rules. Combinations of characteristics that make a wine feel
  intentional reduce the balance penalty of the characteristics involved.

Rules are plain pydantic data with a small tagged condition DSL, so a table
can be loaded from JSON and compared in tests.
"""

import json
import logging
from pathlib import Path
from typing import Annotated, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from vintner.constants import AlgorithmConstants, Characteristic, Comparison, Direction
from vintner.error_handling import DataValidationError, wrap_validation_error
from vintner.schema import RangeMap, WineCharacteristics

logger = logging.getLogger(__name__)


# =======================
# CONDITIONS
# =======================

class Threshold(BaseModel):
    """characteristic <op> value"""

    model_config = ConfigDict(frozen=True)

    kind: Literal['threshold'] = 'threshold'
    characteristic: Characteristic
    op: Comparison
    value: float

    def evaluate(self, wine: WineCharacteristics) -> bool:
        return self.op.evaluate(wine.get(self.characteristic), self.value)


class Between(BaseModel):
    """low <= characteristic <= high"""

    model_config = ConfigDict(frozen=True)

    kind: Literal['between'] = 'between'
    characteristic: Characteristic
    low: float
    high: float

    def evaluate(self, wine: WineCharacteristics) -> bool:
        return self.low <= wine.get(self.characteristic) <= self.high


class Exceeds(BaseModel):
    """characteristic > other"""

    model_config = ConfigDict(frozen=True)

    kind: Literal['exceeds'] = 'exceeds'
    characteristic: Characteristic
    other: Characteristic

    def evaluate(self, wine: WineCharacteristics) -> bool:
        return wine.get(self.characteristic) > wine.get(self.other)


Condition = Annotated[Union[Threshold, Between, Exceeds], Field(discriminator='kind')]


def above(characteristic: Characteristic, value: float) -> Threshold:
    return Threshold(characteristic=characteristic, op=Comparison.GT, value=value)


def below(characteristic: Characteristic, value: float) -> Threshold:
    return Threshold(characteristic=characteristic, op=Comparison.LT, value=value)


def between(characteristic: Characteristic, low: float, high: float) -> Between:
    return Between(characteristic=characteristic, low=low, high=high)


# =======================
# DYNAMIC ADJUSTMENTS
# =======================

class RangeShiftRule(BaseModel):
    """Shift a target's balanced range by shift_per_unit x normDiff x target width."""

    model_config = ConfigDict(frozen=True)

    target: Characteristic
    shift_per_unit: float
    clamp: Optional[Tuple[float, float]] = Field(None, description="Absolute bounds for the shifted range")

    @field_validator('clamp')
    @classmethod
    def _check_clamp(cls, value):
        if value is not None and value[0] > value[1]:
            raise ValueError("clamp lower bound exceeds upper bound")
        return value


class PenaltyScaleRule(BaseModel):
    """
    Scale a target's penalty by 1 + k x |normDiff|^p.

    The scale only applies when every condition holds for the wine; a rule
    without conditions always applies.
    """

    model_config = ConfigDict(frozen=True)

    target: Characteristic
    k: float
    p: float = 1.0
    cap: Optional[Tuple[float, float]] = Field(None, description="[min_scale, max_scale]")
    conditions: List[Condition] = Field(default_factory=list)
    name: str = ""
    description: str = ""

    @field_validator('cap')
    @classmethod
    def _check_cap(cls, value):
        if value is not None and value[0] > value[1]:
            raise ValueError("cap lower bound exceeds upper bound")
        return value

    def applies(self, wine: WineCharacteristics) -> bool:
        return all(condition.evaluate(wine) for condition in self.conditions)

    def scale(self, norm_diff: float) -> float:
        raw = 1 + self.k * abs(norm_diff) ** self.p
        if self.cap is not None:
            raw = max(self.cap[0], min(self.cap[1], raw))
        return raw


class AdjustmentSet(BaseModel):
    """Rules fired by one (source, direction) pair."""

    model_config = ConfigDict(frozen=True)

    range_shifts: List[RangeShiftRule] = Field(default_factory=list)
    penalty_scales: List[PenaltyScaleRule] = Field(default_factory=list)


class DynamicAdjustmentConfig(BaseModel):
    """Rule table keyed by source characteristic, then direction."""

    model_config = ConfigDict(frozen=True)

    rules: Dict[Characteristic, Dict[Direction, AdjustmentSet]] = Field(default_factory=dict)

    def lookup(self, source: Characteristic, direction: Direction) -> AdjustmentSet:
        """Rules for a (source, direction) pair; empty when none are configured."""
        return self.rules.get(source, {}).get(direction, _EMPTY_SET)

    def penalty_rules(self) -> List[PenaltyScaleRule]:
        """Every penalty scale rule in the table, in table order."""
        return [
            rule
            for directions in self.rules.values()
            for rule_set in directions.values()
            for rule in rule_set.penalty_scales
        ]

    @classmethod
    def empty(cls) -> 'DynamicAdjustmentConfig':
        return cls()


_EMPTY_SET = AdjustmentSet()

A = Characteristic


def _penalty(
    name: str,
    description: str,
    target: Characteristic,
    conditions: List[Condition],
    k: float,
    p: float,
    cap: float = AlgorithmConstants.DEFAULT_PENALTY_CAP
) -> PenaltyScaleRule:
    """Penalty whose extra effect k x |normDiff|^p is capped at `cap`."""
    return PenaltyScaleRule(
        name=name, description=description, target=target,
        conditions=conditions, k=k, p=p, cap=(1.0, 1.0 + cap),
    )


def _shifts(*pairs: Tuple[Characteristic, float]) -> List[RangeShiftRule]:
    return [RangeShiftRule(target=target, shift_per_unit=shift) for target, shift in pairs]


# normDiff carries the sign, so the same shift_per_unit moves the target
# in opposite directions above and below the midpoint.
DYNAMIC_ADJUSTMENTS = DynamicAdjustmentConfig(rules={
    A.ACIDITY: {
        Direction.ABOVE: AdjustmentSet(
            range_shifts=_shifts((A.SWEETNESS, -0.15)),
            penalty_scales=[
                _penalty("Clashing Sweetness",
                         "High acidity with high sweetness makes the wine taste disjointed.",
                         A.SWEETNESS, [above(A.ACIDITY, 0.7), above(A.SWEETNESS, 0.6)],
                         k=0.4, p=1.5),
            ],
        ),
        Direction.BELOW: AdjustmentSet(
            range_shifts=_shifts((A.SWEETNESS, -0.15)),
            penalty_scales=[
                _penalty("Low Acidity Overpower",
                         "Without acidity a heavy body smothers the aromatics.",
                         A.AROMA, [below(A.ACIDITY, 0.5), above(A.BODY, 0.7)],
                         k=0.3, p=1.3),
                _penalty("Fixed Sweetness Penalty",
                         "Very low acidity leaves any sweetness flabby.",
                         A.SWEETNESS, [below(A.ACIDITY, 0.3)],
                         k=0.15, p=1.0, cap=0.15),
            ],
        ),
    },
    A.BODY: {
        Direction.ABOVE: AdjustmentSet(
            range_shifts=_shifts((A.SPICE, 0.08), (A.TANNINS, 0.08)),
            penalty_scales=[
                _penalty("Heavy Body Overpower",
                         "A heavy body buries a delicate aroma.",
                         A.AROMA, [above(A.BODY, 0.7), below(A.AROMA, 0.5)],
                         k=0.25, p=1.4, cap=0.36),
            ],
        ),
        Direction.BELOW: AdjustmentSet(
            range_shifts=_shifts((A.SPICE, 0.08), (A.TANNINS, 0.08)),
            penalty_scales=[
                _penalty("Astringent Tannins",
                         "Big tannins on a light body taste harsh and astringent.",
                         A.TANNINS, [below(A.BODY, 0.5), above(A.TANNINS, 0.7)],
                         k=0.35, p=1.6, cap=0.36),
            ],
        ),
    },
    A.SWEETNESS: {
        Direction.ABOVE: AdjustmentSet(
            range_shifts=_shifts((A.ACIDITY, -0.10)),
            penalty_scales=[
                _penalty("Sweet-Spice Clash",
                         "High sweetness fights with pronounced spice.",
                         A.SPICE, [above(A.SWEETNESS, 0.7), above(A.SPICE, 0.6)],
                         k=0.45, p=1.7, cap=0.2),
            ],
        ),
        Direction.BELOW: AdjustmentSet(
            range_shifts=_shifts((A.ACIDITY, -0.10)),
            penalty_scales=[
                _penalty("Acid-Sweet Imbalance",
                         "A dry wine with high acidity turns sharp.",
                         A.ACIDITY, [below(A.SWEETNESS, 0.4), above(A.ACIDITY, 0.6)],
                         k=0.3, p=1.3, cap=0.24),
            ],
        ),
    },
    A.TANNINS: {
        Direction.ABOVE: AdjustmentSet(
            range_shifts=_shifts((A.BODY, 0.10), (A.AROMA, 0.08), (A.SWEETNESS, -0.05)),
            penalty_scales=[
                _penalty("Tannin-Sweet Clash",
                         "Grippy tannins clash with noticeable sweetness.",
                         A.SWEETNESS, [above(A.TANNINS, 0.7), above(A.SWEETNESS, 0.5)],
                         k=0.4, p=1.5, cap=0.5),
                _penalty("Tannin-Aroma Overpower",
                         "Strong tannins mask a modest aroma.",
                         A.AROMA, [above(A.TANNINS, 0.7), below(A.AROMA, 0.6)],
                         k=0.25, p=1.4, cap=0.3),
            ],
        ),
        Direction.BELOW: AdjustmentSet(
            range_shifts=_shifts((A.BODY, 0.10), (A.AROMA, 0.08), (A.SWEETNESS, -0.05)),
            penalty_scales=[
                _penalty("Weak Tannin Structure",
                         "A full body without tannin structure feels flabby.",
                         A.BODY, [below(A.TANNINS, 0.4), above(A.BODY, 0.6)],
                         k=0.3, p=1.3),
            ],
        ),
    },
    A.AROMA: {
        Direction.ABOVE: AdjustmentSet(
            range_shifts=_shifts((A.BODY, 0.06)),
            penalty_scales=[
                _penalty("Aroma-Body Mismatch",
                         "An intense aroma promises more body than the wine has.",
                         A.BODY, [above(A.AROMA, 0.7), below(A.BODY, 0.6)],
                         k=0.2, p=1.2, cap=0.3),
            ],
        ),
        Direction.BELOW: AdjustmentSet(
            range_shifts=_shifts((A.BODY, 0.06)),
            penalty_scales=[
                _penalty("Aroma-Spice Imbalance",
                         "Spice dominates a muted aroma.",
                         A.SPICE, [below(A.AROMA, 0.4), above(A.SPICE, 0.6)],
                         k=0.25, p=1.4, cap=0.24),
            ],
        ),
    },
    A.SPICE: {
        Direction.ABOVE: AdjustmentSet(
            penalty_scales=[
                _penalty("Spice-Acid Clash",
                         "Heavy spice with high acidity is aggressive on the palate.",
                         A.ACIDITY, [above(A.SPICE, 0.7), above(A.ACIDITY, 0.6)],
                         k=0.4, p=1.6, cap=0.5),
                _penalty("Spice-Body Overwhelm",
                         "Intense spice overwhelms a thin body.",
                         A.BODY, [above(A.SPICE, 0.8), below(A.BODY, 0.4)],
                         k=0.5, p=1.8),
            ],
        ),
        Direction.BELOW: AdjustmentSet(
            penalty_scales=[
                _penalty("Flat Heavy Body",
                         "A heavy body with no spice tastes flat.",
                         A.BODY, [below(A.SPICE, 0.3), above(A.BODY, 0.7)],
                         k=0.25, p=1.3, cap=0.3),
            ],
        ),
    },
})


# =======================
# SYNERGY RULES
# =======================

class SynergyRule(BaseModel):
    """
    A combination of traits that mitigates balance penalties.

    When every condition holds, the reduction is
    min(cap, k x avgDeviation^p), where avgDeviation is the mean
    |normDiff| of the source characteristics over their base ranges.
    The reduction applies to every target characteristic.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    sources: List[Characteristic] = Field(..., min_length=1)
    targets: List[Characteristic] = Field(..., min_length=1)
    conditions: List[Condition] = Field(default_factory=list)
    k: float = Field(AlgorithmConstants.DEFAULT_RULE_K, ge=0.0)
    p: float = Field(AlgorithmConstants.DEFAULT_RULE_P, gt=0.0)
    cap: float = Field(AlgorithmConstants.DEFAULT_SYNERGY_CAP, ge=0.0, le=1.0)

    def applies(self, wine: WineCharacteristics) -> bool:
        return all(condition.evaluate(wine) for condition in self.conditions)

    def reduction(self, wine: WineCharacteristics, base_ranges: RangeMap) -> float:
        """Reduction magnitude in [0, cap]; does not check the conditions."""
        deviations = [
            abs(wine.get(source) - base_ranges[source].midpoint) / base_ranges[source].half_width
            for source in self.sources
        ]
        avg_deviation = sum(deviations) / len(deviations)
        return max(0.0, min(self.cap, self.k * avg_deviation ** self.p))


SYNERGY_RULES: Tuple[SynergyRule, ...] = (
    SynergyRule(
        name="Bold Red Structure",
        description="High acidity + high tannins create classic, structured red wines.",
        sources=[A.ACIDITY], targets=[A.TANNINS],
        conditions=[above(A.ACIDITY, 0.7), above(A.TANNINS, 0.7)],
        k=0.3, p=1.3, cap=0.75,
    ),
    SynergyRule(
        name="Bright & Aromatic",
        description="High aroma with good acidity creates fresh, lively wines.",
        sources=[A.ACIDITY], targets=[A.AROMA],
        conditions=[above(A.ACIDITY, 0.6), above(A.AROMA, 0.7)],
        k=0.25, p=1.2, cap=0.5,
    ),
    SynergyRule(
        name="Balanced Body & Spice",
        description="When body and spice are both in the balanced range, they work harmoniously.",
        sources=[A.BODY, A.SPICE], targets=[A.BODY, A.SPICE],
        conditions=[between(A.BODY, 0.6, 0.8), between(A.SPICE, 0.6, 0.8)],
        k=0.25, p=1.1, cap=0.75,
    ),
    SynergyRule(
        name="Powerful Red Blend",
        description="Tannins, body, and spice combine for complex, age-worthy reds.",
        sources=[A.TANNINS, A.BODY, A.SPICE], targets=[A.TANNINS, A.BODY, A.SPICE],
        conditions=[above(A.TANNINS, 0.7), above(A.BODY, 0.6), above(A.SPICE, 0.5)],
        k=0.35, p=1.4, cap=0.65,
    ),
    SynergyRule(
        name="Dessert Wine Body",
        description="Rich aroma, sweetness, and body create luxurious dessert wines.",
        sources=[A.AROMA, A.SWEETNESS, A.BODY], targets=[A.AROMA, A.SWEETNESS, A.BODY],
        conditions=[above(A.AROMA, 0.6), above(A.SWEETNESS, 0.6), above(A.BODY, 0.7)],
        k=0.3, p=1.3, cap=0.7,
    ),
    SynergyRule(
        name="Classic Balance",
        description="Acidity and sweetness in harmony - the foundation of great wine.",
        sources=[A.ACIDITY, A.SWEETNESS], targets=[A.ACIDITY, A.SWEETNESS],
        conditions=[between(A.ACIDITY, 0.4, 0.6), between(A.SWEETNESS, 0.4, 0.6)],
        k=0.4, p=1.1, cap=0.6,
    ),
    SynergyRule(
        name="Elegant Complexity",
        description="Aroma leads body with balanced sweetness for refined wines.",
        sources=[A.AROMA, A.BODY], targets=[A.AROMA, A.BODY],
        conditions=[Exceeds(characteristic=A.AROMA, other=A.BODY), between(A.SWEETNESS, 0.4, 0.6)],
        k=0.25, p=1.2, cap=0.6,
    ),
)


# =======================
# LOADING
# =======================

class RuleConfig(BaseModel):
    """Complete rule configuration as stored in JSON."""

    model_config = ConfigDict(frozen=True)

    adjustments: DynamicAdjustmentConfig = Field(default_factory=DynamicAdjustmentConfig)
    synergies: List[SynergyRule] = Field(default_factory=list)

    @model_validator(mode='after')
    def _unique_names(self) -> 'RuleConfig':
        for kind, names in (
            ("synergy", [rule.name for rule in self.synergies]),
            ("penalty", [rule.name for rule in self.adjustments.penalty_rules() if rule.name]),
        ):
            duplicates = sorted({name for name in names if names.count(name) > 1})
            if duplicates:
                raise ValueError(f"duplicate {kind} rule names: {duplicates}")
        return self


DEFAULT_RULE_CONFIG = RuleConfig(adjustments=DYNAMIC_ADJUSTMENTS, synergies=list(SYNERGY_RULES))


def load_rule_config(path: Union[str, Path]) -> RuleConfig:
    """
    Load a rule configuration from a JSON file.

    Args:
        path: Path to JSON file with "adjustments" and "synergies" keys

    Returns:
        Validated RuleConfig

    Raises:
        DataValidationError: If the file contents fail validation
    """
    path = Path(path)
    with open(path, 'r') as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Rule file {path} is not valid JSON: {e}")
            raise DataValidationError(f"Invalid JSON in {path}: {e}") from e
    try:
        config = RuleConfig.model_validate(raw)
    except ValidationError as e:
        raise wrap_validation_error(e, f"loading rules from {path}") from e
    logger.info(f"Loaded {len(config.adjustments.rules)} adjustment sources and "
                f"{len(config.synergies)} synergy rules from {path}")
    return config


def load_rule_config_or_default(path: Union[str, Path, None]) -> RuleConfig:
    """Rules from `path` when the file exists, otherwise the built-in tables."""
    if path is None or not Path(path).exists():
        logger.debug(f"No rule file at {path}; using default rules")
        return DEFAULT_RULE_CONFIG
    return load_rule_config(path)


def dump_rule_config(config: RuleConfig, path: Union[str, Path]) -> None:
    """Write a rule configuration as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        f.write(config.model_dump_json(indent=2))
    logger.info(f"Wrote rule configuration to {path}")


__all__ = [
    'RangeShiftRule',
    'PenaltyScaleRule',
    'AdjustmentSet',
    'DynamicAdjustmentConfig',
    'DYNAMIC_ADJUSTMENTS',
    'Threshold',
    'Between',
    'Exceeds',
    'Condition',
    'SynergyRule',
    'SYNERGY_RULES',
    'RuleConfig',
    'DEFAULT_RULE_CONFIG',
    'load_rule_config',
    'load_rule_config_or_default',
    'dump_rule_config',
]
