"""Per-component calibration: funding sensitivity and importance weights.

Both are heuristic calibrations driven by lookup tables in
:mod:`vulnerability_allocation.config`, not fitted statistical models.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace

from vulnerability_allocation.config import (
    BASE_WEIGHTS,
    BASELINE_SENSITIVITY,
    CONTEXTUAL_BOOSTS,
    DEFAULT_SENSITIVITY,
    DEFAULT_WEIGHT,
    ContextualFactors,
)
from vulnerability_allocation.models import Component

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SensitivityAdjustments:
    """Constants of the sensitivity heuristic.

    Parameters
    ----------
    complexity_penalty : float
        Subtracted, scaled by ``indicator_count / complexity_scale``, when a
        component has more than ``complexity_threshold`` indicators.
    scale_bonus : float
        Added, scaled by the normalized allocation (capped at 1), when the
        normalized allocation exceeds ``scale_threshold``.
    lag_penalty : float
        Subtracted, scaled by ``average_gap / lag_scale`` (capped at 1), when
        the average gap exceeds ``lag_threshold``.
    """

    complexity_penalty: float = 0.15
    complexity_threshold: int = 10
    complexity_scale: float = 20.0
    scale_bonus: float = 0.10
    allocation_normalizer: float = 100.0
    scale_threshold: float = 0.5
    lag_penalty: float = 0.20
    lag_threshold: float = 1.0
    lag_scale: float = 3.0
    lower: float = 0.1
    upper: float = 0.8


def _sensitivity(component: Component, baseline: float, adj: SensitivityAdjustments) -> float:
    estimate = baseline

    indicator_count = len(component.indicators)
    if indicator_count > adj.complexity_threshold:
        estimate -= adj.complexity_penalty * (indicator_count / adj.complexity_scale)

    normalized_allocation = component.allocation / adj.allocation_normalizer
    if normalized_allocation > adj.scale_threshold:
        estimate += adj.scale_bonus * min(normalized_allocation, 1.0)

    average_gap = component.average_gap or 0.0
    if average_gap > adj.lag_threshold:
        estimate -= adj.lag_penalty * min(average_gap / adj.lag_scale, 1.0)

    return max(adj.lower, min(adj.upper, estimate))


def estimate_sensitivity(
    components: Mapping[str, Component],
    baseline: Mapping[str, float] | None = None,
    default: float = DEFAULT_SENSITIVITY,
    adjustments: SensitivityAdjustments | None = None,
) -> dict[str, Component]:
    """Assign each component a funding sensitivity parameter.

    Starts from the component's baseline and applies the complexity penalty,
    scale bonus and lag penalty in that order, then clamps to
    ``[adjustments.lower, adjustments.upper]``. Does not mutate input.

    Parameters
    ----------
    components : Mapping[str, Component]
        Components with ``average_gap`` computed.
    baseline : Mapping[str, float], optional
        Baseline sensitivity per component id. Defaults to
        ``BASELINE_SENSITIVITY``.
    default : float
        Baseline for ids missing from the table.
    adjustments : SensitivityAdjustments, optional
        Heuristic constants.

    Returns
    -------
    dict[str, Component]
        New components with ``sensitivity`` populated.
    """
    if baseline is None:
        baseline = BASELINE_SENSITIVITY
    if adjustments is None:
        adjustments = SensitivityAdjustments()

    return {
        cid: replace(component, sensitivity=_sensitivity(component, baseline.get(cid, default), adjustments))
        for cid, component in components.items()
    }


def assign_weights(
    components: Mapping[str, Component],
    policy_priorities: Mapping[str, float] | None = None,
    contextual_factors: ContextualFactors | None = None,
    base_weights: Mapping[str, float] | None = None,
    default: float = DEFAULT_WEIGHT,
    boosts: Mapping[str, tuple[float, frozenset[str]]] | None = None,
) -> dict[str, Component]:
    """Assign normalized importance weights to components.

    Base weights are multiplied by policy priorities and by the boost of
    every active contextual factor whose component set contains the
    component, then normalized to sum to 1. Does not mutate input.

    Parameters
    ----------
    components : Mapping[str, Component]
        Components to weight.
    policy_priorities : Mapping[str, float], optional
        Multiplier per component id; ids not in ``components`` are ignored.
    contextual_factors : ContextualFactors, optional
        Active situational boosts.
    base_weights : Mapping[str, float], optional
        Base weight per component id. Defaults to ``BASE_WEIGHTS``.
    default : float
        Base weight for ids missing from the table.
    boosts : Mapping[str, tuple[float, frozenset[str]]], optional
        Factor name to ``(multiplier, component ids)``. Defaults to
        ``CONTEXTUAL_BOOSTS``.

    Returns
    -------
    dict[str, Component]
        New components with ``weight`` populated.
    """
    if not components:
        return {}
    if base_weights is None:
        base_weights = BASE_WEIGHTS
    if boosts is None:
        boosts = CONTEXTUAL_BOOSTS
    policy_priorities = policy_priorities or {}
    active = contextual_factors.active() if contextual_factors is not None else []

    working: dict[str, float] = {cid: base_weights.get(cid, default) for cid in components}

    for cid, multiplier in policy_priorities.items():
        if cid in working:
            working[cid] *= multiplier

    for factor in active:
        if factor not in boosts:
            continue
        multiplier, boosted = boosts[factor]
        for cid in boosted:
            if cid in working:
                working[cid] *= multiplier

    total = sum(working.values())
    if total <= 0:
        logger.warning("All component weights are zero, falling back to equal weights")
        normalized = {cid: 1.0 / len(working) for cid in working}
    else:
        normalized = {cid: weight / total for cid, weight in working.items()}

    return {cid: replace(component, weight=normalized[cid]) for cid, component in components.items()}
