"""Tests for yeastsim.growth — growth-rate model."""

import math

import numpy as np
import pytest

from yeastsim.config import GrowthSection
from yeastsim.growth import (
    growth_rate,
    is_temperature_stressed,
    oxygen_effect,
    stage_increment,
    temperature_effect,
    time_multiplier,
)


class TestComponents:
    def test_time_multiplier_linear_then_capped(self):
        assert time_multiplier(0) == 0.0
        assert time_multiplier(100) == pytest.approx(0.5)
        assert time_multiplier(600) == pytest.approx(3.0)
        assert time_multiplier(10_000) == pytest.approx(3.0)

    def test_oxygen_effect(self):
        assert oxygen_effect(19.9) == pytest.approx(0.8)
        assert oxygen_effect(20.0) == pytest.approx(1.0)

    def test_temperature_effect_gaussian(self):
        assert temperature_effect(30.0) == pytest.approx(1.0)
        assert temperature_effect(40.0) == pytest.approx(math.exp(-1.0))
        assert temperature_effect(20.0) == pytest.approx(math.exp(-1.0))


class TestGrowthRate:
    def test_baseline(self):
        """tick 0, aerobic, optimal temperature → 0.15 × 100 = 15 %."""
        assert growth_rate(0, 80.0, 30.0) == pytest.approx(15.0)

    def test_anaerobic_at_cap(self):
        # 0.15 × (1 + 3) × 0.8 × 1 × 100
        assert growth_rate(1000, 5.0, 30.0) == pytest.approx(48.0)

    def test_full_precision_retained(self):
        rate = growth_rate(37, 10.0, 27.0)
        expected = 0.15 * (1 + 37 / 200) * 0.8 * math.exp(-9 / 100) * 100
        assert rate == pytest.approx(expected, rel=1e-12)
        assert rate != round(rate, 2)

    def test_non_negative_over_domain(self):
        ticks, o2, temps = np.meshgrid(np.arange(0, 1000, 37),
                                       np.linspace(0, 100, 11),
                                       np.linspace(20, 40, 21))
        assert np.all(growth_rate(ticks, o2, temps) >= 0)

    def test_maximised_at_optimum(self):
        temps = np.linspace(20, 40, 201)
        rates = growth_rate(150, 50.0, temps)
        assert temps[np.argmax(rates)] == pytest.approx(30.0)

    def test_strictly_decreasing_away_from_optimum(self):
        deviations = np.linspace(0, 10, 51)
        above = growth_rate(150, 50.0, 30.0 + deviations)
        below = growth_rate(150, 50.0, 30.0 - deviations)
        assert np.all(np.diff(above) < 0)
        assert np.all(np.diff(below) < 0)

    def test_scalar_returns_float(self):
        assert isinstance(growth_rate(5, 50.0, 30.0), float)

    def test_custom_parameters(self):
        cfg = GrowthSection(base_rate=0.3, optimal_temperature=25.0)
        assert growth_rate(0, 80.0, 25.0, cfg) == pytest.approx(30.0)


class TestHelpers:
    def test_stage_increment(self):
        assert stage_increment(15.0) == pytest.approx(0.0075)
        assert stage_increment(15.0, stage_divisor=1000.0) == pytest.approx(0.015)

    def test_temperature_stress(self):
        assert not is_temperature_stressed(30.0)
        assert not is_temperature_stressed(35.0)
        assert is_temperature_stressed(35.5)
        assert is_temperature_stressed(24.0)
