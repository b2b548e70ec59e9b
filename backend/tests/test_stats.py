"""
Tests for core/stats.py - mean, pass rate, spread, mode, CV, correlation.
"""

import os
import sys
import pytest
import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.stats import (
    average,
    coefficient_of_variation,
    correlation,
    correlation_strength,
    mode,
    pass_percentage,
    sanitize,
    standard_deviation,
)


class TestAverage:

    def test_empty_is_zero(self):
        assert average([]) == 0

    def test_mean(self):
        assert average([10, 20]) == 15

    def test_returns_python_float(self):
        assert type(average([1, 2, 3])) is float


class TestPassPercentage:

    def test_empty_is_zero(self):
        assert pass_percentage([]) == 0

    def test_threshold_is_inclusive(self):
        assert pass_percentage([10, 9.99, 15, 4]) == pytest.approx(50.0)

    def test_custom_threshold(self):
        assert pass_percentage([12, 11, 13, 14], threshold=12) == pytest.approx(75.0)


class TestStandardDeviation:

    def test_empty_is_zero(self):
        assert standard_deviation([]) == 0

    def test_population_formula(self):
        assert standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)

    def test_single_value_has_no_spread(self):
        assert standard_deviation([13.5]) == 0


class TestMode:

    def test_most_frequent(self):
        assert mode([1, 2, 2, 3, 3, 3]) == 3

    def test_tie_goes_to_first_value_reaching_max(self):
        assert mode([1, 1, 2, 2]) == 1

    def test_tie_is_not_decided_by_value(self):
        assert mode([9, 4, 4, 9]) == 4

    def test_empty_is_zero(self):
        assert mode([]) == 0


class TestCoefficientOfVariation:

    def test_percentage_of_mean(self):
        assert coefficient_of_variation(10, 2) == pytest.approx(20.0)

    def test_zero_mean_gives_zero(self):
        assert coefficient_of_variation(0, 3.5) == 0


class TestCorrelation:

    xs = [8, 10, 11, 14, 15.5, 9]
    ys = [7, 12, 10, 13, 17, 11]

    def test_perfect_positive(self):
        assert correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)

    def test_perfect_negative(self):
        assert correlation([1, 2, 3], [6, 4, 2]) == pytest.approx(-1.0)

    def test_symmetric(self):
        assert correlation(self.xs, self.ys) == pytest.approx(correlation(self.ys, self.xs))

    def test_bounded(self):
        r = correlation(self.xs, self.ys)
        assert -1.0 <= r <= 1.0

    def test_matches_numpy(self):
        expected = np.corrcoef(self.xs, self.ys)[0, 1]
        assert correlation(self.xs, self.ys) == pytest.approx(expected)

    def test_zero_variance_gives_zero(self):
        assert correlation([12, 12, 12], [1, 5, 9]) == 0
        assert correlation([1, 5, 9], [0.1, 0.1, 0.1]) == 0

    def test_length_mismatch_gives_zero(self):
        assert correlation([1, 2, 3], [1, 2]) == 0

    def test_empty_gives_zero(self):
        assert correlation([], []) == 0


class TestCorrelationStrength:

    @pytest.mark.parametrize("r, label", [
        (0.85, "strong"), (-0.7, "strong"), (0.5, "moderate"),
        (-0.3, "moderate"), (0.1, "weak"), (0.0, "none"),
    ])
    def test_labels(self, r, label):
        assert correlation_strength(r) == label


class TestSanitize:

    def test_nan_and_numpy_scalars(self):
        result = sanitize({"a": np.float64("nan"), "b": np.int64(3), "c": (1.5, np.bool_(True))})
        assert result == {"a": None, "b": 3, "c": [1.5, True]}
