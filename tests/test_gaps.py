"""Unit tests for indicator and component performance gaps."""

import logging

import pytest

from vulnerability_allocation.config import Config, GapCalculationOptions
from vulnerability_allocation.gaps import aggregate_gap, compute_gaps, performance_gap
from vulnerability_allocation.models import Component, Dataset, Indicator

NO_TRIM = GapCalculationOptions(trim_outliers=False)


def _indicators(gaps, hints=None):
    hints = hints or [1.0] * len(gaps)
    return [Indicator(value=None, benchmark=None, gap=g, weight_hint=h) for g, h in zip(gaps, hints)]


class TestPerformanceGap:
    @pytest.mark.parametrize("value, benchmark", [(None, 5), (5, None), (None, None)])
    def test_missing_input_is_zero(self, value, benchmark):
        assert performance_gap(value, benchmark) == 0.0

    def test_zero_value_zero_benchmark(self):
        assert performance_gap(0, 0, prefer_higher=True) == 0.0

    def test_zero_value_prefer_higher_sentinel(self):
        assert performance_gap(0, 5, prefer_higher=True) == 5.0

    def test_zero_value_prefer_lower(self):
        assert performance_gap(0, 5, prefer_higher=False) == 0.0

    def test_shortfall_prefer_higher(self):
        assert performance_gap(50, 80) == pytest.approx(0.6)

    def test_above_benchmark_prefer_higher(self):
        assert performance_gap(100, 90) == 0.0

    def test_excess_prefer_lower(self):
        assert performance_gap(12, 10, prefer_higher=False) == pytest.approx(2 / 12)

    def test_below_benchmark_prefer_lower(self):
        assert performance_gap(8, 10, prefer_higher=False) == 0.0

    def test_mixed_signs(self):
        assert performance_gap(-2, 3) == pytest.approx(2.5)

    def test_both_negative_prefer_higher(self):
        assert performance_gap(-5, -2, prefer_higher=True) == pytest.approx(0.6)
        assert performance_gap(-2, -5, prefer_higher=True) == 0.0

    def test_both_negative_prefer_lower(self):
        assert performance_gap(-2, -5, prefer_higher=False) == pytest.approx(1.5)
        assert performance_gap(-5, -2, prefer_higher=False) == 0.0

    @pytest.mark.parametrize("x", [-7.5, -1, 0.25, 3, 1e6])
    @pytest.mark.parametrize("prefer_higher", [True, False])
    def test_equal_value_and_benchmark(self, x, prefer_higher):
        assert performance_gap(x, x, prefer_higher) == 0.0

    @pytest.mark.parametrize("value", [-10, -1, -0.5, 0, 0.5, 1, 10])
    @pytest.mark.parametrize("benchmark", [-10, -1, 0, 1, 10])
    @pytest.mark.parametrize("prefer_higher", [True, False])
    def test_never_negative(self, value, benchmark, prefer_higher):
        assert performance_gap(value, benchmark, prefer_higher) >= 0


class TestAggregateGap:
    def test_caps_extreme_gap(self):
        assert aggregate_gap(_indicators([1, 2, 3, 20]), GapCalculationOptions(cap_max_gap=8)) == pytest.approx(3.5)

    def test_default_cap_is_eight(self):
        assert aggregate_gap(_indicators([20])) == pytest.approx(8.0)

    def test_per_component_cap(self):
        options = GapCalculationOptions(per_component_caps={"X": 2.0})
        assert aggregate_gap(_indicators([1, 2, 3, 20]), options, "X") == pytest.approx(1.75)
        assert aggregate_gap(_indicators([1, 2, 3, 20]), options, "Y") == pytest.approx(3.5)

    def test_percentile_cap_overrides_cap(self):
        options = GapCalculationOptions(use_percentile_capping=True, percentile_threshold=60)
        assert aggregate_gap(_indicators([1, 2, 3, 4, 10]), options) == pytest.approx(2.8)

    def test_percentile_cap_needs_three_indicators(self):
        options = GapCalculationOptions(use_percentile_capping=True, percentile_threshold=0)
        assert aggregate_gap(_indicators([1, 3]), options) == pytest.approx(2.0)

    def test_percentile_index_clamped(self):
        options = GapCalculationOptions(use_percentile_capping=True, percentile_threshold=100, trim_outliers=False)
        assert aggregate_gap(_indicators([1, 2, 6]), options) == pytest.approx(3.0)

    def test_trims_outliers(self):
        gaps = [0, 1, 1, 1, 1, 1, 1, 1, 1, 7]
        assert aggregate_gap(_indicators(gaps)) == pytest.approx(1.0)

    def test_trimming_disabled(self):
        gaps = [0, 1, 1, 1, 1, 1, 1, 1, 1, 7]
        assert aggregate_gap(_indicators(gaps), NO_TRIM) == pytest.approx(1.5)

    def test_no_trim_at_five_or_fewer(self):
        assert aggregate_gap(_indicators([0, 1, 1, 1, 7])) == pytest.approx(2.0)

    def test_weighted_average(self):
        options = GapCalculationOptions(use_weighted_average=True)
        assert aggregate_gap(_indicators([1, 3], [1, 3]), options) == pytest.approx(2.5)

    def test_zero_weight_hint_counts_as_one(self):
        options = GapCalculationOptions(use_weighted_average=True)
        assert aggregate_gap(_indicators([1, 3], [0, 1]), options) == pytest.approx(2.0)

    def test_no_indicators(self):
        assert aggregate_gap([]) == 0.0

    def test_uncomputed_gaps_ignored(self):
        indicators = [Indicator(value=1, benchmark=2), *_indicators([2.0])]
        assert aggregate_gap(indicators) == pytest.approx(2.0)


class TestComputeGaps:
    def test_populates_gaps(self, sample_dataset):
        result = compute_gaps(sample_dataset)
        availability = result.components["Food availability"]
        assert [i.gap for i in availability.indicators] == pytest.approx([0.6, 0.0])
        assert availability.average_gap == pytest.approx(0.3)

    def test_uses_default_metric_preference(self, sample_dataset):
        result = compute_gaps(sample_dataset)
        assert result.components["Environmental impacts"].average_gap == pytest.approx(2 / 12)

    def test_metric_preference_override(self, sample_dataset):
        config = Config(metric_preference={"Environmental impacts": True})
        result = compute_gaps(sample_dataset, config)
        assert result.components["Environmental impacts"].average_gap == 0.0

    def test_keeps_precomputed_gap(self):
        component = Component(id="X", name="X", indicators=(Indicator(value=50, benchmark=80, gap=1.25),))
        result = compute_gaps(Dataset(components={"X": component}))
        assert result.components["X"].indicators[0].gap == 1.25

    def test_recomputes_invalid_gap(self, caplog):
        component = Component(id="X", name="X", indicators=(Indicator(value=50, benchmark=80, gap=-1.0),))
        with caplog.at_level(logging.WARNING, logger="vulnerability_allocation.gaps"):
            result = compute_gaps(Dataset(components={"X": component}))
        assert "Invalid gap" in caplog.text
        assert result.components["X"].indicators[0].gap == pytest.approx(0.6)

    def test_component_without_indicators_keeps_supplied_gap(self):
        component = Component(id="X", name="X", average_gap=0.7)
        result = compute_gaps(Dataset(components={"X": component}))
        assert result.components["X"].average_gap == 0.7

    def test_component_without_anything_gets_zero(self):
        result = compute_gaps(Dataset(components={"X": Component(id="X", name="X")}))
        assert result.components["X"].average_gap == 0.0

    def test_input_untouched(self, sample_dataset):
        result = compute_gaps(sample_dataset)
        assert result is not sample_dataset
        assert result.components is not sample_dataset.components
        for component in sample_dataset.components.values():
            assert component.average_gap is None
            assert all(i.gap is None for i in component.indicators)
