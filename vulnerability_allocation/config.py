"""Configuration for the vulnerability index pipeline.

Holds the recognized run options (policy priorities, contextual factors, gap
aggregation settings, metric preferences) and the calibration lookup tables.
Tables are read-only module-level mappings; every stage that consumes one
accepts an override so alternative calibrations can be substituted.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

BASELINE_SENSITIVITY: Mapping[str, float] = MappingProxyType(
    {
        # Fast-responding components.
        "Food availability": 0.70,
        "Storage and distribution": 0.65,
        "Processing and packaging": 0.60,
        "Retail and marketing": 0.60,
        "Production systems and input supply": 0.50,
        "Nutritional status": 0.45,
        "Food security": 0.40,
        # Slow-responding components.
        "Resilience": 0.30,
        "Environmental impacts": 0.25,
        "Environment and climate change": 0.20,
    }
)
DEFAULT_SENSITIVITY = 0.40

BASE_WEIGHTS: Mapping[str, float] = MappingProxyType(
    {
        "Food availability": 0.18,
        "Food security": 0.15,
        "Resilience": 0.12,
        "Environment and climate change": 0.10,
        "Production systems and input supply": 0.10,
        "Storage and distribution": 0.09,
        "Processing and packaging": 0.07,
        "Retail and marketing": 0.07,
        "Environmental impacts": 0.06,
        "Nutritional status": 0.06,
    }
)
DEFAULT_WEIGHT = 0.025

# True means higher observed values are better.
DEFAULT_METRIC_PREFERENCE: Mapping[str, bool] = MappingProxyType(
    {
        "Food availability": True,
        "Food security": True,
        "Production systems and input supply": True,
        "Processing and packaging": True,
        "Retail and marketing": True,
        "Nutritional status": True,
        "Environmental impacts": False,
        "Environment and climate change": False,
        "Resilience": True,
        "Storage and distribution": True,
    }
)

# Contextual factor -> (multiplier, boosted component ids).
CONTEXTUAL_BOOSTS: Mapping[str, tuple[float, frozenset[str]]] = MappingProxyType(
    {
        "climate_emergency": (
            1.5,
            frozenset({"Environment and climate change", "Environmental impacts", "Resilience"}),
        ),
        "food_crisis": (
            1.8,
            frozenset({"Food availability", "Food security", "Storage and distribution"}),
        ),
        "nutrition_crisis": (
            1.7,
            frozenset({"Nutritional status", "Food security"}),
        ),
        "market_development": (
            1.4,
            frozenset({"Retail and marketing", "Processing and packaging", "Storage and distribution"}),
        ),
    }
)

_FIELD_MAP_IN: dict[str, str] = {
    "policyPriorities": "policy_priorities",
    "contextualFactors": "contextual_factors",
    "gapCalculation": "gap_calculation",
    "metricPreference": "metric_preference",
    "climateEmergency": "climate_emergency",
    "foodCrisis": "food_crisis",
    "nutritionCrisis": "nutrition_crisis",
    "marketDevelopment": "market_development",
    "useWeightedAverage": "use_weighted_average",
    "trimOutliers": "trim_outliers",
    "capMaxGap": "cap_max_gap",
    "usePercentileCapping": "use_percentile_capping",
    "percentileThreshold": "percentile_threshold",
    "perSubsectorCaps": "per_component_caps",
    "perComponentCaps": "per_component_caps",
}


def _recognized(raw: Mapping[str, Any] | None, names: set[str]) -> dict[str, Any]:
    """Map external keys to field names and keep only recognized, non-null ones."""
    if not raw:
        return {}
    result = {}
    for key, value in raw.items():
        name = _FIELD_MAP_IN.get(key, key)
        if name in names and value is not None:
            result[name] = value
    return result


_TRUE_STRINGS = {"true", "yes", "1"}
_FALSE_STRINGS = {"false", "no", "0"}


def _as_bool(name: str, value: Any) -> bool:
    """Parse a flag that may arrive as a bool, a 0/1 number or a string."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"{name} must be a boolean, got {value!r}.")


def _numbers(raw: Mapping[str, Any]) -> dict[str, float]:
    return {key: float(value) for key, value in raw.items() if value is not None}


@dataclass(frozen=True)
class ContextualFactors:
    """Situational flags that boost the weight of matching components."""

    climate_emergency: bool = False
    food_crisis: bool = False
    nutrition_crisis: bool = False
    market_development: bool = False

    def active(self) -> list[str]:
        """Return the names of the factors that are switched on."""
        return [name for name in CONTEXTUAL_BOOSTS if getattr(self, name, False)]

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "ContextualFactors":
        fields = _recognized(raw, set(cls.__dataclass_fields__))
        return cls(**{name: _as_bool(name, value) for name, value in fields.items()})


@dataclass(frozen=True)
class GapCalculationOptions:
    """Settings for reducing indicator gaps to one gap per component.

    Parameters
    ----------
    use_weighted_average : bool
        Weight each indicator by its ``weight_hint`` instead of a plain mean.
    trim_outliers : bool
        Drop the lowest and highest 10% of gaps when more than five remain.
    cap_max_gap : float
        Upper bound applied to every indicator gap.
    use_percentile_capping : bool
        Replace the cap by a percentile of the observed gaps (three or more).
    percentile_threshold : float
        Percentile used for percentile capping, between 0 and 100.
    per_component_caps : Mapping[str, float]
        Component-specific caps taking precedence over ``cap_max_gap``.

    Raises
    ------
    ValueError
        If a cap is not positive or the percentile is outside [0, 100].
    """

    use_weighted_average: bool = False
    trim_outliers: bool = True
    cap_max_gap: float = 8.0
    use_percentile_capping: bool = False
    percentile_threshold: float = 95.0
    per_component_caps: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.cap_max_gap > 0:
            raise ValueError("cap_max_gap must be positive.")
        if not (0 <= self.percentile_threshold <= 100):
            raise ValueError("percentile_threshold must be between 0 and 100.")
        if any(not cap > 0 for cap in self.per_component_caps.values()):
            raise ValueError("per_component_caps values must be positive.")
        object.__setattr__(self, "per_component_caps", MappingProxyType(dict(self.per_component_caps)))

    def cap_for(self, component_id: str | None) -> float:
        """Return the effective gap cap for a component."""
        if component_id is not None and component_id in self.per_component_caps:
            return float(self.per_component_caps[component_id])
        return float(self.cap_max_gap)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "GapCalculationOptions":
        fields = _recognized(raw, set(cls.__dataclass_fields__))
        for name in ("use_weighted_average", "trim_outliers", "use_percentile_capping"):
            if name in fields:
                fields[name] = _as_bool(name, fields[name])
        for name in ("cap_max_gap", "percentile_threshold"):
            if name in fields:
                fields[name] = float(fields[name])
        if "per_component_caps" in fields:
            fields["per_component_caps"] = _numbers(fields["per_component_caps"])
        return cls(**fields)


@dataclass(frozen=True)
class Config:
    """Immutable set of recognized pipeline options.

    Any omitted option resolves to its default; unknown keys passed to
    :meth:`from_dict` are ignored.

    Parameters
    ----------
    policy_priorities : Mapping[str, float]
        Weight multiplier per component id (1.0 when absent).
    contextual_factors : ContextualFactors
        Situational weight boosts.
    gap_calculation : GapCalculationOptions
        Indicator gap aggregation settings.
    metric_preference : Mapping[str, bool]
        Per-component direction; ``True`` means higher values are better.

    Raises
    ------
    ValueError
        If a policy multiplier is negative or not finite.
    """

    policy_priorities: Mapping[str, float] = field(default_factory=dict)
    contextual_factors: ContextualFactors = field(default_factory=ContextualFactors)
    gap_calculation: GapCalculationOptions = field(default_factory=GapCalculationOptions)
    metric_preference: Mapping[str, bool] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for component_id, multiplier in self.policy_priorities.items():
            if not math.isfinite(multiplier) or multiplier < 0:
                raise ValueError(f"Policy priority for {component_id!r} must be a non-negative number.")
        object.__setattr__(self, "policy_priorities", MappingProxyType(dict(self.policy_priorities)))
        object.__setattr__(self, "metric_preference", MappingProxyType(dict(self.metric_preference)))

    def prefers_higher(self, component_id: str) -> bool:
        """Resolve the metric direction for a component."""
        if component_id in self.metric_preference:
            return bool(self.metric_preference[component_id])
        return DEFAULT_METRIC_PREFERENCE.get(component_id, True)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain snake_case containers."""
        gap = self.gap_calculation
        return {
            "policy_priorities": dict(self.policy_priorities),
            "contextual_factors": {name: getattr(self.contextual_factors, name) for name in CONTEXTUAL_BOOSTS},
            "gap_calculation": {
                "use_weighted_average": gap.use_weighted_average,
                "trim_outliers": gap.trim_outliers,
                "cap_max_gap": gap.cap_max_gap,
                "use_percentile_capping": gap.use_percentile_capping,
                "percentile_threshold": gap.percentile_threshold,
                "per_component_caps": dict(gap.per_component_caps),
            },
            "metric_preference": dict(self.metric_preference),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any] | None) -> "Config":
        """Build a config from a snake_case or camelCase mapping.

        Parameters
        ----------
        raw : Mapping[str, Any] or None
            Options as supplied by an external collaborator.

        Returns
        -------
        Config
        """
        fields = _recognized(raw, set(cls.__dataclass_fields__))
        return cls(
            policy_priorities=_numbers(fields.get("policy_priorities", {})),
            contextual_factors=ContextualFactors.from_dict(fields.get("contextual_factors")),
            gap_calculation=GapCalculationOptions.from_dict(fields.get("gap_calculation")),
            metric_preference={
                k: _as_bool(f"metric_preference[{k!r}]", v)
                for k, v in fields.get("metric_preference", {}).items()
                if v is not None
            },
        )
