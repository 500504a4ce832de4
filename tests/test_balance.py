"""
Comprehensive tests for balance scoring.

Tests the core scoring algorithm including:
- Reference scores for simple wines
- Score bounds and optimum
- Synergy reductions
- Per-characteristic breakdown
"""

import itertools

import pytest

from vintner.balance import (
    calculate_characteristic_breakdown,
    calculate_wine_balance,
    get_synergy_reductions,
    score_from_breakdown,
)
from vintner.constants import Characteristic
from vintner.rules import DynamicAdjustmentConfig, SynergyRule
from vintner.schema import WineCharacteristics, build_range_map

C = Characteristic

NARROW_RANGES = {c: (0.4, 0.6) for c in Characteristic}


def uniform_wine(value=0.5, **overrides):
    values = {c.value: value for c in Characteristic.ordered()}
    values.update(overrides)
    return WineCharacteristics(**values)


def plain_balance(wine, ranges=None):
    """Balance without dynamic adjustments or synergies."""
    return calculate_wine_balance(
        wine,
        base_ranges=ranges,
        config=DynamicAdjustmentConfig.empty(),
        synergy_rules=(),
    )


class TestReferenceScores:
    """Hand-computed reference cases."""

    def test_all_midpoints_score_one(self):
        """A wine on every midpoint scores 1."""
        result = calculate_wine_balance(uniform_wine(0.5), base_ranges=NARROW_RANGES)
        assert result.score == pytest.approx(1.0)

    def test_single_outlier(self):
        """Acidity 0.9: inside 0.4, outside 0.3 x 2 -> total 1.0; mean 1/6; score 1 - 2/6."""
        result = plain_balance(uniform_wine(0.5, acidity=0.9), NARROW_RANGES)
        assert result.score == pytest.approx(2 / 3, abs=1e-4)

    def test_default_midpoints_score_one(self):
        """Midpoints of the default ranges score 1."""
        wine = WineCharacteristics.midpoints(build_range_map())
        assert calculate_wine_balance(wine).score == pytest.approx(1.0)

    def test_qualifies_always_false(self):
        """Balance results never qualify."""
        assert calculate_wine_balance(uniform_wine(0.5)).qualifies is False


class TestScoreBounds:
    """Score stays in [0, 1]."""

    def test_corner_wines(self):
        """Corner and centre wines score inside [0, 1]."""
        for values in itertools.product([0.0, 0.5, 1.0], repeat=6):
            wine = WineCharacteristics(**dict(zip([c.value for c in Characteristic.ordered()], values)))
            score = calculate_wine_balance(wine).score
            assert 0.0 <= score <= 1.0

    def test_values_outside_unit_interval_still_bounded(self):
        """Wild values bottom out at 0."""
        score = calculate_wine_balance(uniform_wine(0.5, acidity=3.0, tannins=-2.0)).score
        assert score == 0.0

    def test_empty_breakdown_scores_one(self):
        """No characteristics means no deduction."""
        assert score_from_breakdown({}) == 1.0


class TestMonotonicDegradation:
    """Moving away from the midpoint never improves the score."""

    def test_single_characteristic_sweep(self):
        """Score falls as acidity moves away from the midpoint."""
        scores = [plain_balance(uniform_wine(0.5, acidity=v), NARROW_RANGES).score
                  for v in (0.5, 0.55, 0.6, 0.7, 0.8, 0.9)]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] > scores[-1]

    def test_outside_penalized_more_than_inside(self):
        """Crossing the range bound adds the outside penalty."""
        inside = plain_balance(uniform_wine(0.5, acidity=0.6), NARROW_RANGES).score
        outside = plain_balance(uniform_wine(0.5, acidity=0.7), NARROW_RANGES).score
        assert (1 - outside) > 2 * (1 - inside)


class TestSynergies:
    """Synergy reductions."""

    def test_no_synergies_at_midpoints(self):
        """Midpoint wines trigger no synergy."""
        reductions = get_synergy_reductions(WineCharacteristics.midpoints(build_range_map()))
        assert all(r == 0.0 for r in reductions.values())

    def test_reductions_do_not_stack(self):
        """The strongest applicable reduction wins."""
        rules = [
            SynergyRule(name="weak", sources=[C.ACIDITY], targets=[C.TANNINS], k=0.1, p=1.0, cap=1.0),
            SynergyRule(name="strong", sources=[C.ACIDITY], targets=[C.TANNINS], k=0.3, p=1.0, cap=1.0),
        ]
        # acidity 0.6 is one half-width above its midpoint
        reductions = get_synergy_reductions(uniform_wine(0.5, acidity=0.6), synergy_rules=rules)
        assert reductions[C.TANNINS] == pytest.approx(0.3)
        assert reductions[C.ACIDITY] == 0.0

    def test_conditions_gate_reduction(self):
        """Bold Red Structure needs tannins above 0.7."""
        reductions = get_synergy_reductions(uniform_wine(0.5, acidity=0.8, tannins=0.6))
        assert reductions[C.TANNINS] == 0.0

    def test_bold_red_reduces_tannin_penalty(self):
        """High acidity and tannins cap the tannin reduction."""
        wine = uniform_wine(0.5, acidity=0.8, tannins=0.8)
        reductions = get_synergy_reductions(wine)
        assert reductions[C.TANNINS] == pytest.approx(0.75)

    def test_synergies_never_lower_score(self):
        """Synergies only ever help."""
        for wine in (
            uniform_wine(0.5, acidity=0.8, tannins=0.8),
            uniform_wine(0.5, aroma=0.8, sweetness=0.7, body=0.75),
            uniform_wine(0.5, body=0.7, spice=0.7),
        ):
            with_synergy = calculate_wine_balance(wine).score
            without = calculate_wine_balance(wine, synergy_rules=()).score
            assert with_synergy >= without


class TestCharacteristicBreakdown:
    """Detailed per-characteristic calculation."""

    def test_canonical_order(self):
        """Breakdown follows the canonical characteristic order."""
        breakdown = calculate_characteristic_breakdown(uniform_wine(0.5))
        assert list(breakdown) == list(Characteristic.ordered())

    def test_totals_compose(self):
        """Final distance is base distance x scale x (1 - synergy)."""
        wine = uniform_wine(0.5, acidity=0.9, tannins=0.8, body=0.3)
        for calc in calculate_characteristic_breakdown(wine).values():
            expected = calc.base_total_distance * calc.penalty_scale * (1 - calc.synergy_reduction)
            assert calc.final_total_distance == pytest.approx(expected)
            assert calc.penalty == pytest.approx(2 * calc.distance_outside)

    def test_breakdown_matches_score(self):
        """The breakdown reduces to the same score."""
        wine = uniform_wine(0.5, acidity=0.7, sweetness=0.2, spice=0.9)
        breakdown = calculate_characteristic_breakdown(wine)
        assert score_from_breakdown(breakdown) == pytest.approx(calculate_wine_balance(wine).score)

    def test_breakdown_uses_dynamic_ranges(self):
        """Breakdown ranges are the adjusted ranges."""
        wine = uniform_wine(0.5, acidity=0.9)
        breakdown = calculate_characteristic_breakdown(wine)
        result = calculate_wine_balance(wine)
        for c in Characteristic.ordered():
            assert breakdown[c].adjusted_range == result.dynamic_ranges[c]

    def test_inside_value_has_no_outside_distance(self):
        """Values inside their range have no outside distance."""
        breakdown = calculate_characteristic_breakdown(uniform_wine(0.5), base_ranges=NARROW_RANGES)
        assert all(calc.distance_outside == 0.0 for calc in breakdown.values())
