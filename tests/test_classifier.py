"""Tests for density-based severity classification."""

import pytest

from debt_radar.criticality.classifier import (
    DEFAULT_DENSITY_THRESHOLDS,
    DensityThresholds,
    classify,
)
from debt_radar.criticality.models import Dimension, SeverityLevel


class TestSeverityLevel:
    def test_total_order(self):
        assert SeverityLevel.LOW < SeverityLevel.MEDIUM < SeverityLevel.HIGH < SeverityLevel.CRITICAL

    def test_max_picks_highest(self):
        assert max([SeverityLevel.MEDIUM, SeverityLevel.CRITICAL, SeverityLevel.LOW]) is (
            SeverityLevel.CRITICAL
        )

    def test_label_round_trip(self):
        for level in SeverityLevel:
            assert SeverityLevel.from_label(level.label) is level

    def test_unknown_label_reads_low(self):
        assert SeverityLevel.from_label(None) is SeverityLevel.LOW
        assert SeverityLevel.from_label("N_A") is SeverityLevel.LOW
        assert SeverityLevel.from_label("high") is SeverityLevel.HIGH


class TestClassify:
    def test_complexity_density_critical(self):
        # 30 / 100 = 0.30 >= 0.25
        assert classify(30, 100, Dimension.COMPLEXITY) is SeverityLevel.CRITICAL

    def test_thresholds_are_inclusive(self):
        assert classify(25, 100, Dimension.COMPLEXITY) is SeverityLevel.CRITICAL
        assert classify(15, 100, Dimension.COMPLEXITY) is SeverityLevel.HIGH
        assert classify(10, 100, Dimension.COMPLEXITY) is SeverityLevel.MEDIUM
        assert classify(9, 100, Dimension.COMPLEXITY) is SeverityLevel.LOW

    @pytest.mark.parametrize("size", [0, -5, None])
    def test_non_positive_size_is_low(self, size):
        assert classify(1000, size, Dimension.ISSUES) is SeverityLevel.LOW
        assert classify(1000, size, Dimension.HALSTEAD) is SeverityLevel.LOW

    def test_missing_value_is_zero(self):
        assert classify(None, 100, Dimension.CHURN) is SeverityLevel.LOW

    def test_halstead_uses_raw_volume(self):
        # Density would be 0.9; the raw volume 90 is what gets compared.
        assert classify(90, 100, Dimension.HALSTEAD) is SeverityLevel.CRITICAL
        assert classify(50, 1000, Dimension.HALSTEAD) is SeverityLevel.HIGH
        assert classify(30, 10, Dimension.HALSTEAD) is SeverityLevel.MEDIUM
        assert classify(29.9, 10, Dimension.HALSTEAD) is SeverityLevel.LOW

    def test_reference_tables(self):
        expected = {
            Dimension.COMPLEXITY: (0.25, 0.15, 0.10),
            Dimension.ISSUES: (0.10, 0.05, 0.03),
            Dimension.COUPLING: (0.15, 0.10, 0.05),
            Dimension.CHURN: (0.50, 0.30, 0.10),
            Dimension.AUTHORS: (0.10, 0.05, 0.02),
            Dimension.HALSTEAD: (80, 50, 30),
        }
        for dim, (c, h, m) in expected.items():
            t = DEFAULT_DENSITY_THRESHOLDS[dim]
            assert (t.critical, t.high, t.medium) == (c, h, m)
            assert t.absolute is (dim is Dimension.HALSTEAD)

    @pytest.mark.parametrize("dimension", list(Dimension))
    def test_monotone_in_value(self, dimension):
        previous = SeverityLevel.LOW
        for value in range(0, 200):
            level = classify(value, 100, dimension)
            assert level >= previous
            previous = level

    def test_custom_thresholds(self):
        strict = dict(DEFAULT_DENSITY_THRESHOLDS)
        strict[Dimension.ISSUES] = DensityThresholds(critical=0.02, high=0.01, medium=0.005)
        assert classify(2, 100, Dimension.ISSUES, strict) is SeverityLevel.CRITICAL
        assert classify(2, 100, Dimension.ISSUES) is SeverityLevel.LOW

    def test_partial_thresholds_fall_back_to_defaults(self):
        only_issues = {Dimension.ISSUES: DensityThresholds(critical=0.02, high=0.01, medium=0.005)}
        assert classify(30, 100, Dimension.COMPLEXITY, only_issues) is SeverityLevel.CRITICAL
        assert classify(90, 100, Dimension.HALSTEAD, only_issues) is SeverityLevel.CRITICAL
        assert classify(2, 100, Dimension.ISSUES, only_issues) is SeverityLevel.CRITICAL


class TestDensityThresholds:
    def test_rejects_out_of_order_tiers(self):
        with pytest.raises(ValueError):
            DensityThresholds(critical=0.1, high=0.2, medium=0.05)

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            DensityThresholds(critical=0.1, high=0.05, medium=-0.01)

