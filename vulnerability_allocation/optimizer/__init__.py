"""Allocation optimizers.

Provides the projected gradient optimizer, the shared bound and projection
utilities, and the ``AllocationOptimizer`` protocol that optimizers satisfy.

Convenience function ``optimize_allocation`` wraps calibration + the
gradient optimizer in a single call for standalone usage.
"""

from vulnerability_allocation.config import Config
from vulnerability_allocation.index import calculate_vulnerabilities
from vulnerability_allocation.models import Dataset
from vulnerability_allocation.optimizer._common import (
    STATUS_BOUNDS_ADJUSTED,
    STATUS_CONVERGED,
    STATUS_MAX_ITERATIONS,
    STATUS_NO_COMPONENTS,
    STATUS_NO_IMPROVEMENT,
    OptimizerSettings,
    allocation_bounds,
    allocation_detail,
    empty_optimization_result,
    index_gradient,
    project_to_budget,
    weighted_index,
)
from vulnerability_allocation.optimizer._types import AllocationOptimizer, OptimizationResult
from vulnerability_allocation.optimizer.gradient import GradientOptimizer

__all__ = [
    "AllocationOptimizer",
    "GradientOptimizer",
    "OptimizationResult",
    "OptimizerSettings",
    "STATUS_BOUNDS_ADJUSTED",
    "STATUS_CONVERGED",
    "STATUS_MAX_ITERATIONS",
    "STATUS_NO_COMPONENTS",
    "STATUS_NO_IMPROVEMENT",
    "allocation_bounds",
    "allocation_detail",
    "empty_optimization_result",
    "index_gradient",
    "optimize_allocation",
    "project_to_budget",
    "weighted_index",
]


def optimize_allocation(
    dataset: Dataset,
    config: Config | None = None,
    settings: OptimizerSettings | None = None,
) -> OptimizationResult:
    """Calibrate a raw dataset and reallocate its budget in one call.

    Runs gaps, sensitivities, weights and vulnerabilities, then delegates to
    :class:`GradientOptimizer`. The result is a local improvement, not a
    certified optimum.

    Parameters
    ----------
    dataset : Dataset
        Raw dataset; not modified.
    config : Config, optional
        Pipeline options.
    settings : OptimizerSettings, optional
        Optimizer tuning.

    Returns
    -------
    OptimizationResult
    """
    calibrated = calculate_vulnerabilities(dataset, config)
    return GradientOptimizer(settings)(calibrated)
