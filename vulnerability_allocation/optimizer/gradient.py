"""Projected gradient descent over component allocations.

Moves budget toward the components whose weighted vulnerability falls
fastest with extra funding, then projects back onto the budget identity and
the per-component bounds. The step size adapts: it grows after an improving
step and shrinks after a non-improving one, which is discarded.

This is a local heuristic. The objective is convex in each allocation, but
the bounded, projected search carries no optimality certificate and callers
should treat the result as an improvement, not as the optimum.
"""

import logging
import math

import numpy as np

from vulnerability_allocation.index import apply_allocations, system_index
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
from vulnerability_allocation.optimizer._types import OptimizationResult

logger = logging.getLogger(__name__)


class GradientOptimizer:
    """Adaptive-step projected gradient descent on the system index.

    Minimizes ``sum(w_i * gap_i / (1 + s_i * f_i))`` subject to
    ``sum(f_i) == total_budget`` and per-component bounds derived from the
    original allocations.

    When the original allocations violate the bounds or the budget, the
    search starts from their projection, which can score worse than the
    original. The result then carries status ``"Bounds Adjusted"`` and the
    projected start index in ``detail["start_index"]``.

    This optimizer receives a **calibrated** dataset (``average_gap``,
    ``sensitivity`` and ``weight`` populated on every component).

    Parameters
    ----------
    settings : OptimizerSettings, optional
        Iteration, step size and bound parameters.
    """

    def __init__(self, settings: OptimizerSettings | None = None) -> None:
        self.settings = settings or OptimizerSettings()

    def __call__(self, dataset: Dataset) -> OptimizationResult:
        """Search for allocations that lower the system index.

        Parameters
        ----------
        dataset : Dataset
            Calibrated dataset; not modified.

        Returns
        -------
        OptimizationResult

        Raises
        ------
        ValueError
            If a component lacks its gap, sensitivity or weight.
        """
        if not dataset.components:
            return empty_optimization_result(STATUS_NO_COMPONENTS)

        for cid, component in dataset.components.items():
            if component.average_gap is None or component.sensitivity is None or component.weight is None:
                raise ValueError(f"Component {cid!r} has not been calibrated.")

        settings = self.settings
        budget = dataset.total_budget
        ids = list(dataset.components)
        components = [dataset.components[cid] for cid in ids]
        weights = np.array([c.weight for c in components], dtype=float)
        gaps = np.array([c.average_gap for c in components], dtype=float)
        sensitivities = np.array([c.sensitivity for c in components], dtype=float)
        original = np.array([c.allocation for c in components], dtype=float)

        original_allocations = dict(zip(ids, original.tolist()))
        original_index = system_index(apply_allocations(dataset, original_allocations).components)

        lower, upper = allocation_bounds(original, budget, settings)
        allocations = project_to_budget(original, lower, upper, budget)

        current_index = weighted_index(weights, gaps, sensitivities, allocations)
        start_index = current_index
        moved = [cid for cid, old, new in zip(ids, original, allocations) if not math.isclose(old, new, abs_tol=1e-9)]
        if moved:
            logger.warning(
                "Original allocations outside bounds or budget for %s, search starts at index %.6f (original %.6f)",
                ", ".join(moved),
                start_index,
                original_index,
            )
        previous_index = math.inf
        learning_rate = settings.learning_rate
        iterations = 0
        status = STATUS_CONVERGED

        while iterations < settings.max_iterations and previous_index - current_index > settings.min_improvement:
            previous_index = current_index
            iterations += 1

            gradient = index_gradient(weights, gaps, sensitivities, allocations)
            magnitude = np.abs(gradient).sum()
            if magnitude == 0:
                status = STATUS_NO_IMPROVEMENT
                break

            proposal = allocations - learning_rate * (gradient / magnitude) * budget
            candidate = project_to_budget(proposal, lower, upper, budget)
            candidate_index = weighted_index(weights, gaps, sensitivities, candidate)

            if candidate_index < previous_index:
                learning_rate *= settings.step_growth
                allocations = candidate
                current_index = candidate_index
            else:
                # Discard the step; the unchanged index ends the loop.
                learning_rate *= settings.step_decay
                logger.debug(
                    "Iteration %d did not improve (%.6f), step reduced to %.4f",
                    iterations,
                    candidate_index,
                    learning_rate,
                )
        else:
            if iterations >= settings.max_iterations and previous_index - current_index > settings.min_improvement:
                status = STATUS_MAX_ITERATIONS

        if moved:
            status = STATUS_BOUNDS_ADJUSTED

        allocations = project_to_budget(allocations, lower, upper, budget)
        optimized_allocations = dict(zip(ids, allocations.tolist()))
        optimized = apply_allocations(dataset, optimized_allocations)
        optimized_index = system_index(optimized.components)

        logger.info(
            "Optimization finished: status=%s, iterations=%d, index %.6f -> %.6f",
            status,
            iterations,
            original_index,
            optimized_index,
        )

        return {
            "status": status,
            "original_index": original_index,
            "optimized_index": optimized_index,
            "original_allocations": original_allocations,
            "optimized_allocations": optimized_allocations,
            "iterations": iterations,
            "bounds": {cid: (float(lo), float(hi)) for cid, lo, hi in zip(ids, lower, upper)},
            "detail": {
                "learning_rate": learning_rate,
                "start_index": start_index,
                "adjusted_components": moved,
                "components": allocation_detail(original_allocations, optimized_allocations, budget),
            },
        }
