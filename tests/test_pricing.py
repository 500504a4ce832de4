"""
Tests for wine pricing.
"""

import math

import numpy as np
import pytest

from vintner.batches import WineBatch, evaluate_batch
from vintner.constants import AlgorithmConstants, GrapeColor
from vintner.pricing import (
    calculate_estimated_price,
    calculate_quality_price_multiplier,
    estimate_batch_price,
    normalize_prestige,
)
from vintner.schema import WineCharacteristics


def make_batch(**overrides):
    values = dict(
        id="batch-1",
        company_id="company-a",
        vineyard_name="Hillside",
        variety="Barbera",
        color=GrapeColor.RED,
        harvest_year=2024,
        characteristics=WineCharacteristics(
            acidity=0.7, aroma=0.5, body=0.6, spice=0.5, sweetness=0.5, tannins=0.6
        ),
        grape_quality=0.6,
    )
    values.update(overrides)
    return WineBatch(**values)


class TestQualityMultiplier:
    """Test the quality price multiplier."""

    @pytest.mark.parametrize("score, expected", [
        (0.0, 1.0), (0.5, 1.1), (0.7, 1.25), (0.9, 3.0), (0.95, 10.0), (0.98, 50.0),
    ])
    def test_segment_joints(self, score, expected):
        """Each segment starts where the previous one ends."""
        assert calculate_quality_price_multiplier(score) == pytest.approx(expected)

    @pytest.mark.parametrize("joint", [0.5, 0.7, 0.9, 0.95, 0.98])
    def test_continuous_at_joints(self, joint):
        """No jumps at segment boundaries."""
        below = calculate_quality_price_multiplier(joint - 1e-9)
        assert below == pytest.approx(calculate_quality_price_multiplier(joint), rel=1e-5)

    def test_monotonic(self):
        """Better wines never get a smaller multiplier."""
        values = [calculate_quality_price_multiplier(s) for s in np.linspace(0.0, 1.0, 2001)]
        assert all(b >= a for a, b in zip(values, values[1:]))

    def test_scores_clamped(self):
        """Scores are clamped to [0, 0.99999]."""
        assert calculate_quality_price_multiplier(-0.5) == 1.0
        assert calculate_quality_price_multiplier(1.0) == calculate_quality_price_multiplier(0.99999)
        assert calculate_quality_price_multiplier(1.0) == pytest.approx(50 * 10000 ** (0.01999 * 5))


class TestPrestige:
    """Test prestige normalization."""

    def test_zero_and_missing(self):
        """No prestige normalizes to 0."""
        assert normalize_prestige(None) == 0.0
        assert normalize_prestige(0) == 0.0
        assert normalize_prestige(-20) == 0.0

    def test_saturating_tail(self):
        """1000 prestige is about 0.95; the tail stays below 1."""
        assert normalize_prestige(1000) == pytest.approx(1 - math.exp(-3))
        assert normalize_prestige(500) < normalize_prestige(1000) < normalize_prestige(5000) < 1.0


class TestEstimatedPrice:
    """Test the price estimate."""

    def test_base_rate(self):
        """A 0.5 wine sells at 0.5 x 25 x 1.1."""
        assert calculate_estimated_price(0.5) == pytest.approx(13.75)

    def test_worthless_wine(self):
        """A zero score gives a zero price."""
        assert calculate_estimated_price(0.0) == 0.0

    def test_prestige_premiums(self):
        """Each prestige source adds up to 25%."""
        bonus = 1 + (1 - math.exp(-3)) * 0.25
        assert calculate_estimated_price(0.5, company_prestige=1000) == pytest.approx(round(13.75 * bonus, 2))
        both = calculate_estimated_price(0.5, company_prestige=1000, vineyard_prestige=1000)
        assert both == pytest.approx(round(13.75 * bonus * bonus, 2))

    def test_zero_prestige_adds_nothing(self):
        """Zero prestige leaves the price alone."""
        assert calculate_estimated_price(0.8, company_prestige=0, vineyard_prestige=0) == calculate_estimated_price(0.8)

    def test_rounded_to_cents(self):
        """Prices are rounded to two decimals."""
        price = calculate_estimated_price(0.8731, company_prestige=123)
        assert price == round(price, 2)

    def test_price_capped(self, monkeypatch):
        """Prices never exceed MAX_PRICE."""
        monkeypatch.setattr(AlgorithmConstants, "MAX_PRICE", 100.0)
        assert calculate_estimated_price(0.99) == 100.0

    def test_monotonic_in_score(self):
        """Better wines never sell for less."""
        prices = [calculate_estimated_price(s) for s in (0.2, 0.49, 0.5, 0.69, 0.7, 0.9, 0.99)]
        assert prices == sorted(prices)


class TestBatchPrice:
    """Test pricing stored batches."""

    def test_uses_stored_combined_score(self):
        """A scored batch is priced from its combined score."""
        assert estimate_batch_price(make_batch(combined_score=0.5)) == pytest.approx(13.75)

    def test_scores_unscored_batch(self):
        """An unscored batch is evaluated first."""
        batch = make_batch()
        expected = calculate_estimated_price(evaluate_batch(batch).combined_score)
        assert estimate_batch_price(batch) == pytest.approx(expected)

    def test_prestige_passed_through(self):
        """Prestige raises the batch price."""
        batch = make_batch(combined_score=0.7)
        assert estimate_batch_price(batch, company_prestige=500) > estimate_batch_price(batch)
