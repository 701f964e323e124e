"""Performance gaps at indicator and component level.

An indicator's gap is its normalized shortfall against a benchmark. A
component's gap reduces its indicator gaps in a fixed order: cap, optional
percentile cap, clamp, optional outlier trimming, then a simple or weighted
mean.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import replace

from vulnerability_allocation.config import Config, GapCalculationOptions
from vulnerability_allocation.models import Dataset, Indicator

logger = logging.getLogger(__name__)

# Gap assigned to a zero observation against a nonzero benchmark.
ZERO_VALUE_GAP = 5.0
TRIM_FRACTION = 0.1
MIN_PERCENTILE_SAMPLE = 3
MIN_TRIM_SAMPLE = 5


def performance_gap(value: float | None, benchmark: float | None, prefer_higher: bool = True) -> float:
    """Calculate the normalized gap between an observation and its benchmark.

    Parameters
    ----------
    value : float | None
        Observed performance.
    benchmark : float | None
        Benchmark performance.
    prefer_higher : bool
        Whether higher values are better for this metric.

    Returns
    -------
    float
        Non-negative gap; 0 when either input is missing.
    """
    if value is None or benchmark is None:
        return 0.0

    if value == 0:
        if benchmark == 0:
            return 0.0
        return ZERO_VALUE_GAP if prefer_higher else 0.0

    if value < 0 and benchmark < 0:
        abs_value = abs(value)
        abs_benchmark = abs(benchmark)
        if prefer_higher:
            # A larger magnitude is further below zero, hence worse.
            return 0.0 if abs_value <= abs_benchmark else (abs_value - abs_benchmark) / abs_value
        return 0.0 if abs_value >= abs_benchmark else (abs_benchmark - abs_value) / abs_value

    if prefer_higher:
        return max(0.0, (benchmark - value) / abs(value))
    return max(0.0, (value - benchmark) / abs(value))


def _is_valid_gap(gap: float | None) -> bool:
    return gap is not None and gap >= 0 and math.isfinite(gap)


def _percentile_cap(gaps: list[float], threshold: float) -> float:
    ordered = sorted(gaps)
    index = math.floor(len(ordered) * threshold / 100)
    index = min(max(index, 0), len(ordered) - 1)
    return ordered[index]


def _trim(pairs: list[tuple[float, float]]) -> list[tuple[float, float]]:
    ordered = sorted(pairs, key=lambda pair: pair[0])
    trim_count = math.floor(len(ordered) * TRIM_FRACTION)
    trimmed = ordered[trim_count : len(ordered) - trim_count]
    return trimmed or ordered


def aggregate_gap(
    indicators: Iterable[Indicator],
    options: GapCalculationOptions | None = None,
    component_id: str | None = None,
) -> float:
    """Reduce indicator gaps to a single component gap.

    Parameters
    ----------
    indicators : Iterable[Indicator]
        Indicators with ``gap`` already computed. Indicators without a valid
        gap are ignored.
    options : GapCalculationOptions, optional
        Capping, trimming and averaging settings. Defaults apply when omitted.
    component_id : str, optional
        Used to look up a component-specific cap.

    Returns
    -------
    float
        The aggregated gap, or 0 when no indicator carries a valid gap.
    """
    if options is None:
        options = GapCalculationOptions()

    valid = [i for i in indicators if _is_valid_gap(i.gap)]
    if not valid:
        return 0.0

    cap = options.cap_for(component_id)
    if options.use_percentile_capping and len(valid) >= MIN_PERCENTILE_SAMPLE:
        cap = _percentile_cap([i.gap for i in valid], options.percentile_threshold)

    # (capped gap, averaging weight)
    pairs = [(min(i.gap, cap), i.weight_hint or 1.0) for i in valid]

    if options.trim_outliers and len(pairs) > MIN_TRIM_SAMPLE:
        pairs = _trim(pairs)

    if options.use_weighted_average:
        total_weight = sum(weight for _, weight in pairs)
        if total_weight <= 0:
            return 0.0
        return sum(gap * weight for gap, weight in pairs) / total_weight
    return sum(gap for gap, _ in pairs) / len(pairs)


def compute_gaps(
    dataset: Dataset,
    config: Config | None = None,
    metric_preference: Mapping[str, bool] | None = None,
) -> Dataset:
    """Fill in indicator gaps and component average gaps.

    Indicators that already carry a finite, non-negative gap keep it; the
    others are computed from value and benchmark using the component's metric
    direction. A component without indicators keeps a supplied
    ``average_gap`` and otherwise gets 0.

    Parameters
    ----------
    dataset : Dataset
        Input dataset; not modified.
    config : Config, optional
        Supplies gap aggregation options and metric preferences.
    metric_preference : Mapping[str, bool], optional
        Overrides the config's metric preferences for the listed components.

    Returns
    -------
    Dataset
        New dataset with ``gap`` and ``average_gap`` populated.
    """
    if config is None:
        config = Config()
    overrides = dict(metric_preference or {})

    components = {}
    for cid, component in dataset.components.items():
        prefer_higher = overrides[cid] if cid in overrides else config.prefers_higher(cid)
        indicators = []
        for indicator in component.indicators:
            if _is_valid_gap(indicator.gap):
                indicators.append(indicator)
                continue
            if indicator.gap is not None:
                logger.warning("Invalid gap %r for %r recomputed from value and benchmark", indicator.gap, cid)
            gap = performance_gap(indicator.value, indicator.benchmark, prefer_higher)
            indicators.append(replace(indicator, gap=gap))

        if indicators:
            average_gap = aggregate_gap(indicators, config.gap_calculation, cid)
        else:
            average_gap = component.average_gap if _is_valid_gap(component.average_gap) else 0.0
        components[cid] = replace(component, indicators=tuple(indicators), average_gap=average_gap)

    logger.debug("Computed gaps for %d components", len(components))
    return dataset.replace_components(components)
