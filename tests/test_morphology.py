"""Tests for yeastsim.morphology — oxygen → elongation and shape relaxation."""

import numpy as np
import pytest

from yeastsim.morphology import cell_length, relax_shape


class TestCellLength:
    @pytest.mark.parametrize("oxygen", [20.0, 20.5, 50.0, 80.0, 100.0])
    def test_round_when_aerobic(self, oxygen):
        assert cell_length(oxygen, max_length_ratio=2.0) == 1.0

    def test_half_anoxic_example(self):
        assert cell_length(10.0, max_length_ratio=2.0) == pytest.approx(1.5)
        assert cell_length(10.0, max_length_ratio=1.8) == pytest.approx(1.4)

    def test_zero_oxygen_reaches_max(self):
        assert cell_length(0.0, max_length_ratio=2.0) == pytest.approx(2.0)
        assert cell_length(0.0, max_length_ratio=1.8) == pytest.approx(1.8)

    def test_monotone_and_bounded_below_threshold(self):
        o2 = np.linspace(0.0, 19.99, 200)
        lengths = cell_length(o2, max_length_ratio=2.0)
        assert np.all(np.diff(lengths) <= 0)
        assert np.all(lengths <= 2.0)
        assert np.all(lengths >= 1.0)

    def test_array_input_keeps_shape(self):
        lengths = cell_length(np.array([0.0, 10.0, 30.0]), max_length_ratio=2.0)
        np.testing.assert_allclose(lengths, [2.0, 1.5, 1.0])

    def test_scalar_returns_float(self):
        assert isinstance(cell_length(5.0), float)

    def test_custom_threshold(self):
        assert cell_length(30.0, 2.0, anaerobic_threshold=40.0) == pytest.approx(1.25)


class TestRelaxShape:
    def test_moves_ten_percent(self):
        assert relax_shape(1.0, 2.0, 0.1) == pytest.approx(1.1)

    def test_fixed_point(self):
        assert relax_shape(1.5, 1.5, 0.1) == 1.5

    def test_converges(self):
        s = 1.0
        for _ in range(200):
            s = relax_shape(s, 1.75, 0.1)
        assert s == pytest.approx(1.75, abs=1e-6)
