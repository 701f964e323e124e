"""Type definitions for the optimizer protocol and result contract."""

from typing import Any, Protocol, TypedDict

from vulnerability_allocation.models import Dataset


class OptimizationResult(TypedDict):
    """Common output contract of allocation optimizers.

    Parameters
    ----------
    status : str
        Termination status (e.g. ``"Converged"``, or ``"Bounds Adjusted"``
        when the original allocations had to be moved into bounds).
    original_index : float
        System index at the dataset's own allocations.
    optimized_index : float
        System index at ``optimized_allocations``.
    original_allocations : dict[str, float]
        Allocation per component id before optimization.
    optimized_allocations : dict[str, float]
        Allocation per component id after optimization; sums to the budget.
    iterations : int
        Number of descent iterations performed.
    bounds : dict[str, tuple[float, float]]
        Effective ``(min, max)`` allocation per component id.
    detail : dict[str, Any]
        Optimizer-specific diagnostics.
    """

    status: str
    original_index: float
    optimized_index: float
    original_allocations: dict[str, float]
    optimized_allocations: dict[str, float]
    iterations: int
    bounds: dict[str, tuple[float, float]]
    detail: dict[str, Any]


class AllocationOptimizer(Protocol):
    """Protocol for allocation optimizers.

    Implementations receive a calibrated dataset (gaps, sensitivities and
    weights already computed) and return an :class:`OptimizationResult`.
    """

    def __call__(self, dataset: Dataset) -> OptimizationResult: ...
