"""
Tests for dynamic range adjustment.

Covers:
- Range shifts and penalty scales from the default rule table
- Conditions gating penalty scales
- Order independence of source processing
- Idempotence on adjusted ranges
- Minimum width and clamping guarantees
"""

import itertools
import math

import pytest

from vintner.constants import AlgorithmConstants, Characteristic, Direction
from vintner.ranges import (
    apply_dynamic_range_adjustments,
    build_penalty_scale_map,
    calculate_dynamic_adjustments,
    normalized_deviation,
)
from vintner.rules import (
    DYNAMIC_ADJUSTMENTS,
    AdjustmentSet,
    DynamicAdjustmentConfig,
    PenaltyScaleRule,
    RangeShiftRule,
    above,
)
from vintner.schema import BalancedRange, WineCharacteristics, build_range_map

C = Characteristic


def midpoint_wine(**overrides):
    wine = WineCharacteristics.midpoints(build_range_map())
    for name, value in overrides.items():
        wine = wine.with_value(C(name), value)
    return wine


def single_rule_config(source, direction, shifts=(), scales=()):
    return DynamicAdjustmentConfig(rules={
        source: {direction: AdjustmentSet(range_shifts=list(shifts), penalty_scales=list(scales))}
    })


@pytest.fixture
def base_ranges():
    return build_range_map()


@pytest.fixture
def extreme_wine():
    """Every characteristic away from its midpoint."""
    return WineCharacteristics(acidity=0.8, aroma=0.9, body=0.2, spice=0.7, sweetness=0.3, tannins=0.85)


class TestNormalizedDeviation:
    """Test normDiff."""

    def test_bounds_map_to_unit(self):
        """Range bounds sit one half-width from the midpoint."""
        r = BalancedRange(min=0.4, max=0.6)
        assert normalized_deviation(0.6, r) == pytest.approx(1.0)
        assert normalized_deviation(0.4, r) == pytest.approx(-1.0)
        assert normalized_deviation(0.5, r) == pytest.approx(0.0)

    def test_outside_range_exceeds_unit(self):
        """Values beyond the range are more than one half-width out."""
        assert normalized_deviation(0.9, BalancedRange(min=0.4, max=0.6)) == pytest.approx(4.0)

    def test_degenerate_range_does_not_divide_by_zero(self):
        """A zero-width range still gives a finite deviation."""
        result = normalized_deviation(0.6, BalancedRange(min=0.5, max=0.5))
        assert math.isfinite(result)
        assert result > 0


class TestDefaultAdjustments:
    """Test adjustments from the default rule table."""

    def test_midpoint_wine_keeps_base_ranges(self, base_ranges):
        """A wine on every midpoint triggers nothing."""
        adjustment = calculate_dynamic_adjustments(midpoint_wine(), base_ranges, DYNAMIC_ADJUSTMENTS)
        assert adjustment.ranges == base_ranges
        assert all(scale == 1.0 for scale in adjustment.penalty_scales.values())

    def test_high_acidity_lowers_sweetness_range(self, base_ranges):
        """Acidity 0.9 is 4 half-widths above: sweetness shifts by -0.15 x 4 x 0.2."""
        adjustment = calculate_dynamic_adjustments(midpoint_wine(acidity=0.9), base_ranges, DYNAMIC_ADJUSTMENTS)
        sweetness = adjustment.ranges[C.SWEETNESS]
        assert sweetness.min == pytest.approx(0.28)
        assert sweetness.max == pytest.approx(0.48)
        # only sweetness is a target of acidity
        assert adjustment.ranges[C.ACIDITY] == base_ranges[C.ACIDITY]
        assert adjustment.ranges[C.BODY] == base_ranges[C.BODY]

    def test_high_acidity_scales_sweet_wine_penalty_to_cap(self, base_ranges):
        """Clashing Sweetness: 1 + 0.4 x 4^1.5 is capped at 1 + 2."""
        wine = midpoint_wine(acidity=0.9, sweetness=0.65)
        scales = build_penalty_scale_map(wine, base_ranges, DYNAMIC_ADJUSTMENTS)
        assert scales[C.SWEETNESS] == pytest.approx(3.0)
        assert scales[C.ACIDITY] == 1.0

    def test_high_acidity_leaves_dry_wine_unscaled(self, base_ranges):
        """Clashing Sweetness needs sweetness above 0.6."""
        scales = build_penalty_scale_map(midpoint_wine(acidity=0.9), base_ranges, DYNAMIC_ADJUSTMENTS)
        assert scales[C.SWEETNESS] == 1.0

    def test_mild_acidity_does_not_trigger_clash(self, base_ranges):
        """Acidity 0.65 deviates but stays under the 0.7 threshold."""
        wine = midpoint_wine(acidity=0.65, sweetness=0.65)
        scales = build_penalty_scale_map(wine, base_ranges, DYNAMIC_ADJUSTMENTS)
        assert scales[C.SWEETNESS] == 1.0

    def test_very_low_acidity_small_capped_sweetness_penalty(self, base_ranges):
        """Fixed Sweetness Penalty: 1 + 0.15 x 3 is capped at 1.15."""
        scales = build_penalty_scale_map(midpoint_wine(acidity=0.2), base_ranges, DYNAMIC_ADJUSTMENTS)
        assert scales[C.SWEETNESS] == pytest.approx(1.15)
        assert scales[C.AROMA] == 1.0

    def test_low_acidity_with_heavy_body_scales_aroma(self, base_ranges):
        """Low Acidity Overpower: acidity 0.45 is half a half-width below."""
        wine = midpoint_wine(acidity=0.45, body=0.75, aroma=0.55)
        scales = build_penalty_scale_map(wine, base_ranges, DYNAMIC_ADJUSTMENTS)
        assert scales[C.AROMA] == pytest.approx(1 + 0.3 * 0.5 ** 1.3)

    def test_low_acidity_raises_sweetness_range(self, base_ranges):
        """Below-midpoint acidity moves sweetness up."""
        ranges = apply_dynamic_range_adjustments(midpoint_wine(acidity=0.45), base_ranges, DYNAMIC_ADJUSTMENTS)
        assert ranges[C.SWEETNESS].min > base_ranges[C.SWEETNESS].min

    def test_penalty_scales_multiply(self, base_ranges):
        """Acidity and tannins both scale sweetness."""
        wine = midpoint_wine(acidity=0.72, tannins=0.71, sweetness=0.65)
        scales = build_penalty_scale_map(wine, base_ranges, DYNAMIC_ADJUSTMENTS)
        acidity_scale = 1 + 0.4 * ((0.72 - 0.5) / 0.1) ** 1.5
        tannin_scale = 1.5  # Tannin-Sweet Clash at its 0.5 cap
        assert scales[C.SWEETNESS] == pytest.approx(acidity_scale * tannin_scale)

    def test_shifts_from_several_sources_add(self, base_ranges):
        """Acidity and tannins both shift sweetness."""
        wine = midpoint_wine(acidity=0.6, tannins=0.65)
        ranges = apply_dynamic_range_adjustments(wine, base_ranges, DYNAMIC_ADJUSTMENTS)
        delta = -0.15 * 1.0 * 0.2 + -0.05 * 1.0 * 0.2
        assert ranges[C.SWEETNESS].min == pytest.approx(0.4 + delta)
        assert ranges[C.SWEETNESS].max == pytest.approx(0.6 + delta)


class TestPenaltyConditions:
    """Penalty scales only fire when their conditions hold."""

    def test_condition_gates_scale(self, base_ranges):
        """An unmet condition leaves the target at 1."""
        rule = PenaltyScaleRule(target=C.SWEETNESS, k=1.0, conditions=[above(C.ACIDITY, 0.7)])
        config = single_rule_config(C.ACIDITY, Direction.ABOVE, scales=[rule])
        gated = build_penalty_scale_map(midpoint_wine(acidity=0.55), base_ranges, config)
        fired = build_penalty_scale_map(midpoint_wine(acidity=0.8), base_ranges, config)
        assert gated[C.SWEETNESS] == 1.0
        assert fired[C.SWEETNESS] == pytest.approx(1 + 3.0)

    def test_gated_rule_keeps_range_shifts(self, base_ranges):
        """Range shifts in the same set still apply when the scale is gated."""
        config = single_rule_config(
            C.ACIDITY, Direction.ABOVE,
            shifts=[RangeShiftRule(target=C.SWEETNESS, shift_per_unit=-0.1)],
            scales=[PenaltyScaleRule(target=C.SWEETNESS, k=1.0, conditions=[above(C.ACIDITY, 0.7)])],
        )
        adjustment = calculate_dynamic_adjustments(midpoint_wine(acidity=0.6), base_ranges, config)
        assert adjustment.penalty_scales[C.SWEETNESS] == 1.0
        assert adjustment.ranges[C.SWEETNESS].min == pytest.approx(0.4 - 0.1 * 0.2)


class TestOrderIndependence:
    """Result must not depend on the order sources are visited."""

    def test_all_orders_agree(self, base_ranges, extreme_wine):
        """Every permutation of sources gives the same ranges and scales."""
        reference = calculate_dynamic_adjustments(extreme_wine, base_ranges, DYNAMIC_ADJUSTMENTS)

        for order in itertools.permutations(Characteristic.ordered()):
            result = calculate_dynamic_adjustments(extreme_wine, base_ranges, DYNAMIC_ADJUSTMENTS, order=order)
            for c in Characteristic.ordered():
                assert result.ranges[c].min == pytest.approx(reference.ranges[c].min)
                assert result.ranges[c].max == pytest.approx(reference.ranges[c].max)
                assert result.penalty_scales[c] == pytest.approx(reference.penalty_scales[c])


class TestIdempotence:
    """Characteristics without contributions keep the input range."""

    def test_empty_config_returns_input(self, base_ranges, extreme_wine):
        """No rules means base ranges and unit scales."""
        adjustment = calculate_dynamic_adjustments(extreme_wine, base_ranges, DynamicAdjustmentConfig.empty())
        assert adjustment.ranges == base_ranges
        assert adjustment.penalty_scales == {c: 1.0 for c in Characteristic.ordered()}

    def test_repeated_calls_agree(self, base_ranges, extreme_wine):
        """The same inputs give the same adjustment."""
        first = calculate_dynamic_adjustments(extreme_wine, base_ranges, DYNAMIC_ADJUSTMENTS)
        second = calculate_dynamic_adjustments(extreme_wine, base_ranges, DYNAMIC_ADJUSTMENTS)
        assert first == second

    @pytest.mark.parametrize("wine", [
        WineCharacteristics(acidity=0.8, aroma=0.9, body=0.2, spice=0.7, sweetness=0.3, tannins=0.85),
        WineCharacteristics(acidity=0.2, aroma=0.3, body=0.9, spice=0.1, sweetness=0.8, tannins=0.3),
        WineCharacteristics(acidity=0.65, aroma=0.5, body=0.6, spice=0.5, sweetness=0.45, tannins=0.55),
    ])
    def test_adjusted_ranges_are_a_fixed_point(self, base_ranges, wine):
        """A wine on the midpoints of adjusted ranges leaves those ranges unchanged."""
        adjusted = apply_dynamic_range_adjustments(wine, base_ranges, DYNAMIC_ADJUSTMENTS)
        again = apply_dynamic_range_adjustments(
            WineCharacteristics.midpoints(adjusted), adjusted, DYNAMIC_ADJUSTMENTS
        )
        assert again == adjusted


class TestRangeGuarantees:
    """Min width, [0, 1] bounds, and clamp bounds."""

    def test_ranges_stay_valid_for_extreme_wines(self, base_ranges):
        """Corner wines keep every range inside [0, 1] and at least the minimum width."""
        for values in itertools.product([0.0, 1.0], repeat=6):
            wine = WineCharacteristics(**dict(zip([c.value for c in Characteristic.ordered()], values)))
            ranges = apply_dynamic_range_adjustments(wine, base_ranges, DYNAMIC_ADJUSTMENTS)
            for r in ranges.values():
                assert 0.0 <= r.min <= r.max <= 1.0
                assert r.width >= AlgorithmConstants.MIN_RANGE_WIDTH - 1e-9

    def test_collapsed_range_is_widened(self, base_ranges):
        """A range clamped narrower than the minimum is re-centred at the minimum width."""
        config = single_rule_config(
            C.ACIDITY, Direction.ABOVE,
            shifts=[RangeShiftRule(target=C.SWEETNESS, shift_per_unit=0.01, clamp=(0.5, 0.505))],
        )
        ranges = apply_dynamic_range_adjustments(midpoint_wine(acidity=0.6), base_ranges, config)
        sweetness = ranges[C.SWEETNESS]
        assert sweetness.width == pytest.approx(AlgorithmConstants.MIN_RANGE_WIDTH)
        assert sweetness.midpoint == pytest.approx(0.5025)

    def test_range_pushed_below_zero_stays_in_bounds(self, base_ranges):
        """A huge negative shift pins the range at the bottom edge."""
        config = single_rule_config(
            C.ACIDITY, Direction.ABOVE,
            shifts=[RangeShiftRule(target=C.SWEETNESS, shift_per_unit=-5.0)],
        )
        ranges = apply_dynamic_range_adjustments(midpoint_wine(acidity=1.0), base_ranges, config)
        sweetness = ranges[C.SWEETNESS]
        assert sweetness.min == pytest.approx(0.0)
        assert sweetness.max == pytest.approx(AlgorithmConstants.MIN_RANGE_WIDTH)

    def test_clamp_bounds_applied(self, base_ranges):
        """Clamp bounds cap a shifted range."""
        config = single_rule_config(
            C.TANNINS, Direction.ABOVE,
            shifts=[RangeShiftRule(target=C.BODY, shift_per_unit=1.0, clamp=(0.0, 0.85))],
        )
        ranges = apply_dynamic_range_adjustments(midpoint_wine(tannins=0.65), base_ranges, config)
        # shift of 1.0 x 1 x 0.4 would move body to (0.8, 1.2)
        assert ranges[C.BODY].min == pytest.approx(0.8)
        assert ranges[C.BODY].max == pytest.approx(0.85)

    def test_penalty_scale_rule_without_shift(self, base_ranges):
        """A scale-only rule leaves the target range alone."""
        config = single_rule_config(
            C.SPICE, Direction.ABOVE,
            scales=[PenaltyScaleRule(target=C.ACIDITY, k=1.0, p=1.0)],
        )
        adjustment = calculate_dynamic_adjustments(midpoint_wine(spice=0.65), base_ranges, config)
        assert adjustment.penalty_scales[C.ACIDITY] == pytest.approx(2.0)
        assert adjustment.ranges[C.ACIDITY] == base_ranges[C.ACIDITY]
