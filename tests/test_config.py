"""Unit tests for configuration parsing and validation."""

import pytest

from vulnerability_allocation.config import Config, ContextualFactors, GapCalculationOptions


class TestDefaults:
    def test_gap_calculation_defaults(self):
        options = Config().gap_calculation
        assert options.use_weighted_average is False
        assert options.trim_outliers is True
        assert options.cap_max_gap == 8.0
        assert options.use_percentile_capping is False
        assert options.percentile_threshold == 95.0
        assert dict(options.per_component_caps) == {}

    def test_contextual_defaults(self):
        assert Config().contextual_factors.active() == []

    def test_metric_preference_fallbacks(self):
        config = Config(metric_preference={"Resilience": False})
        assert config.prefers_higher("Resilience") is False
        assert config.prefers_higher("Environmental impacts") is False
        assert config.prefers_higher("Unlisted") is True


class TestValidation:
    def test_negative_priority_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            Config(policy_priorities={"A": -1.0})

    def test_non_positive_cap_raises(self):
        with pytest.raises(ValueError, match="cap_max_gap"):
            GapCalculationOptions(cap_max_gap=0)

    @pytest.mark.parametrize("threshold", [-1, 101])
    def test_percentile_out_of_range_raises(self, threshold):
        with pytest.raises(ValueError, match="between 0 and 100"):
            GapCalculationOptions(percentile_threshold=threshold)

    def test_bad_component_cap_raises(self):
        with pytest.raises(ValueError, match="per_component_caps"):
            GapCalculationOptions(per_component_caps={"A": -2})


class TestFromDict:
    def test_empty(self):
        assert Config.from_dict(None) == Config()
        assert Config.from_dict({}) == Config()

    def test_camel_case(self):
        config = Config.from_dict(
            {
                "policyPriorities": {"Resilience": 1.5},
                "contextualFactors": {"climateEmergency": True, "foodCrisis": False},
                "gapCalculation": {
                    "useWeightedAverage": True,
                    "capMaxGap": 6,
                    "usePercentileCapping": True,
                    "percentileThreshold": 90,
                    "perSubsectorCaps": {"Food security": 7},
                },
                "metricPreference": {"Resilience": False},
            }
        )
        assert config.policy_priorities["Resilience"] == 1.5
        assert config.contextual_factors == ContextualFactors(climate_emergency=True)
        assert config.gap_calculation.use_weighted_average is True
        assert config.gap_calculation.cap_max_gap == 6.0
        assert config.gap_calculation.percentile_threshold == 90.0
        assert config.gap_calculation.cap_for("Food security") == 7.0
        assert config.gap_calculation.trim_outliers is True
        assert config.prefers_higher("Resilience") is False

    def test_snake_case(self):
        config = Config.from_dict({"contextual_factors": {"market_development": True}})
        assert config.contextual_factors.active() == ["market_development"]

    def test_unknown_keys_ignored(self):
        config = Config.from_dict(
            {"colour": "blue", "gapCalculation": {"smoothing": 3}, "contextualFactors": {"drought": True}}
        )
        assert config == Config()

    def test_null_values_use_defaults(self):
        config = Config.from_dict({"gapCalculation": {"capMaxGap": None}})
        assert config.gap_calculation.cap_max_gap == 8.0

    def test_invalid_value_rejected(self):
        with pytest.raises(ValueError):
            Config.from_dict({"gapCalculation": {"percentileThreshold": 150}})

    def test_to_dict_round_trip(self):
        config = Config.from_dict({"policyPriorities": {"A": 2}, "contextualFactors": {"foodCrisis": True}})
        assert Config.from_dict(config.to_dict()) == config

    def test_null_entries_skipped(self):
        config = Config.from_dict(
            {
                "policyPriorities": {"A": None, "B": 2},
                "metricPreference": {"A": None},
                "gapCalculation": {"perSubsectorCaps": {"A": None, "B": 4}},
            }
        )
        assert dict(config.policy_priorities) == {"B": 2.0}
        assert dict(config.metric_preference) == {}
        assert dict(config.gap_calculation.per_component_caps) == {"B": 4.0}


class TestBooleanParsing:
    @pytest.mark.parametrize("value", ["false", "False", "no", "0", 0, False])
    def test_false_values(self, value):
        factors = ContextualFactors.from_dict({"climateEmergency": value})
        assert factors.climate_emergency is False

    @pytest.mark.parametrize("value", ["true", " TRUE ", "yes", "1", 1, True])
    def test_true_values(self, value):
        factors = ContextualFactors.from_dict({"climateEmergency": value})
        assert factors.climate_emergency is True

    def test_gap_option_string(self):
        options = GapCalculationOptions.from_dict({"trimOutliers": "false"})
        assert options.trim_outliers is False

    def test_metric_preference_string(self):
        config = Config.from_dict({"metricPreference": {"Food security": "false"}})
        assert config.prefers_higher("Food security") is False

    @pytest.mark.parametrize("value", ["maybe", 2, [True]])
    def test_unparseable_rejected(self, value):
        with pytest.raises(ValueError, match="must be a boolean"):
            ContextualFactors.from_dict({"foodCrisis": value})
