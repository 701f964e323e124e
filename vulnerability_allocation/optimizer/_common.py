"""Shared utilities for allocation optimizers.

Contains the optimizer settings, per-component allocation bounds, the
projection that restores the budget identity within bounds, the objective and
its gradient, and result construction helpers.
"""

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import numpy as np

from vulnerability_allocation.optimizer._types import OptimizationResult

logger = logging.getLogger(__name__)

STATUS_CONVERGED = "Converged"
STATUS_BOUNDS_ADJUSTED = "Bounds Adjusted"
STATUS_MAX_ITERATIONS = "Max Iterations"
STATUS_NO_IMPROVEMENT = "No Improvement Possible"
STATUS_NO_COMPONENTS = "No Components"


@dataclass(frozen=True)
class OptimizerSettings:
    """Tuning parameters of the allocation search.

    Parameters
    ----------
    max_iterations : int
        Hard ceiling on descent iterations.
    learning_rate : float
        Initial step size as a fraction of the total budget.
    min_improvement : float
        Stop once an iteration improves the index by no more than this.
    step_growth : float
        Learning rate multiplier after an improving step.
    step_decay : float
        Learning rate multiplier after a non-improving step. A rejected step
        ends the search, so the decayed rate is only reported in
        ``detail["learning_rate"]`` and does not change the allocations.
    min_fraction : float
        Lower bound as a fraction of the original allocation.
    min_floor : float
        Absolute lower bound on every allocation.
    max_multiple : float
        Upper bound as a multiple of the original allocation.
    max_budget_share : float
        Upper bound as a share of the total budget.

    Raises
    ------
    ValueError
        If a parameter is outside its valid range.
    """

    max_iterations: int = 100
    learning_rate: float = 0.1
    min_improvement: float = 1e-4
    step_growth: float = 1.1
    step_decay: float = 0.5
    min_fraction: float = 0.01
    min_floor: float = 0.1
    max_multiple: float = 2.0
    max_budget_share: float = 0.4

    def __post_init__(self) -> None:
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be non-negative.")
        if not self.learning_rate > 0:
            raise ValueError("learning_rate must be positive.")
        if self.min_improvement < 0:
            raise ValueError("min_improvement must be non-negative.")
        if not (0 < self.step_decay <= 1 <= self.step_growth):
            raise ValueError("step_decay must be in (0, 1] and step_growth at least 1.")
        if self.min_fraction < 0 or self.min_floor < 0:
            raise ValueError("Lower bound parameters must be non-negative.")
        if not (self.max_multiple > 0 and self.max_budget_share > 0):
            raise ValueError("Upper bound parameters must be positive.")


def allocation_bounds(
    original: np.ndarray,
    total_budget: float,
    settings: OptimizerSettings,
) -> tuple[np.ndarray, np.ndarray]:
    """Calculate per-component lower and upper allocation bounds.

    ``min_i = max(min_fraction * f_i, min_floor)`` and
    ``max_i = min(max_multiple * f_i, max_budget_share * budget)``, with
    ``max_i`` raised to ``min_i`` where it falls below. When the bounds
    cannot accommodate the budget, the offending side is scaled so that a
    feasible allocation exists.

    Parameters
    ----------
    original : np.ndarray
        Original allocations.
    total_budget : float
        Budget the allocations must sum to.
    settings : OptimizerSettings
        Bound parameters.

    Returns
    -------
    tuple[np.ndarray, np.ndarray]
        ``(lower, upper)``.
    """
    lower = np.maximum(original * settings.min_fraction, settings.min_floor)
    upper = np.minimum(original * settings.max_multiple, total_budget * settings.max_budget_share)
    upper = np.maximum(upper, lower)

    lower_total = lower.sum()
    if lower_total > total_budget:
        logger.warning(
            "Minimum allocations (%.4f) exceed the budget (%.4f), scaling them down",
            lower_total,
            total_budget,
        )
        lower = lower * (total_budget / lower_total)

    upper_total = upper.sum()
    if upper_total < total_budget:
        logger.warning(
            "Maximum allocations (%.4f) cannot absorb the budget (%.4f), scaling them up",
            upper_total,
            total_budget,
        )
        if upper_total > 0:
            upper = upper * (total_budget / upper_total)
        else:
            upper = np.full_like(upper, total_budget)
    return lower, upper


def project_to_budget(
    allocations: np.ndarray,
    lower: np.ndarray,
    upper: np.ndarray,
    total_budget: float,
) -> np.ndarray:
    """Bring allocations back to the budget while respecting bounds.

    Clamps to the bounds, rescales to the budget, re-clamps, then spreads the
    remaining discrepancy over components in proportion to their room to move
    in the needed direction. Components pinned at the bound in that direction
    do not move.

    Parameters
    ----------
    allocations : np.ndarray
        Proposed allocations.
    lower, upper : np.ndarray
        Per-component bounds; must admit an allocation summing to the budget.
    total_budget : float
        Target sum.

    Returns
    -------
    np.ndarray
        New allocations within bounds summing to ``total_budget``.
    """
    result = np.clip(allocations, lower, upper)

    total = result.sum()
    if total > 0:
        result = np.clip(result * (total_budget / total), lower, upper)

    discrepancy = total_budget - result.sum()
    if discrepancy > 0:
        room = upper - result
    else:
        room = result - lower
    available = room.sum()
    if discrepancy != 0 and available > 0:
        share = min(1.0, abs(discrepancy) / available)
        result = result + math.copysign(share, discrepancy) * room
    return np.clip(result, lower, upper)


def weighted_index(weights: np.ndarray, gaps: np.ndarray, sensitivities: np.ndarray, allocations: np.ndarray) -> float:
    """System index ``sum(w * gap / (1 + s * f))`` for an allocation vector."""
    return float(np.sum(weights * gaps / (1 + sensitivities * np.maximum(allocations, 0))))


def index_gradient(
    weights: np.ndarray,
    gaps: np.ndarray,
    sensitivities: np.ndarray,
    allocations: np.ndarray,
) -> np.ndarray:
    """Partial derivatives of the system index with respect to each allocation."""
    return -weights * gaps * sensitivities / (1 + sensitivities * allocations) ** 2


def allocation_detail(
    original: Mapping[str, float],
    optimized: Mapping[str, float],
    total_budget: float,
) -> dict[str, dict[str, float]]:
    """Per-component allocation change diagnostics.

    Returns
    -------
    dict[str, dict[str, float]]
        ``change``, ``percent_change`` (``nan`` when the original is 0) and
        ``share_of_budget`` in percent, keyed by component id.
    """
    detail = {}
    for cid, new in optimized.items():
        old = original[cid]
        change = new - old
        detail[cid] = {
            "change": change,
            "percent_change": change / old * 100 if old != 0 else math.nan,
            "share_of_budget": new / total_budget * 100 if total_budget > 0 else 0.0,
        }
    return detail


def empty_optimization_result(status: str, detail: dict[str, Any] | None = None) -> OptimizationResult:
    """Build an ``OptimizationResult`` for a dataset with nothing to allocate."""
    return {
        "status": status,
        "original_index": 0.0,
        "optimized_index": 0.0,
        "original_allocations": {},
        "optimized_allocations": {},
        "iterations": 0,
        "bounds": {},
        "detail": detail or {},
    }
