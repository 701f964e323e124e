"""Comparison metrics between an original and an optimized system index."""

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EfficiencyMetrics:
    """Improvement achieved by a reallocation.

    Parameters
    ----------
    absolute_gap : float
        ``original - optimized``.
    gap_ratio : float
        ``absolute_gap / optimized``; ``nan`` or ``inf`` when optimized is 0.
    efficiency_index : float
        ``optimized / original``; ``nan`` or ``inf`` when original is 0.
    """

    absolute_gap: float
    gap_ratio: float
    efficiency_index: float


def _ratio(numerator: float, denominator: float) -> float:
    if denominator != 0:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    return math.copysign(math.inf, numerator)


def efficiency_metrics(original_index: float, optimized_index: float) -> EfficiencyMetrics:
    """Compare an original index with an optimized one.

    Ratios with a zero denominator are returned as ``nan`` (0/0) or a signed
    ``inf`` rather than raising; callers must guard for them.

    Parameters
    ----------
    original_index : float
        System index before reallocation.
    optimized_index : float
        System index after reallocation.

    Returns
    -------
    EfficiencyMetrics
    """
    absolute_gap = original_index - optimized_index
    if optimized_index == 0 or original_index == 0:
        logger.warning(
            "Efficiency ratios undefined: original=%s, optimized=%s",
            original_index,
            optimized_index,
        )
    return EfficiencyMetrics(
        absolute_gap=absolute_gap,
        gap_ratio=_ratio(absolute_gap, optimized_index),
        efficiency_index=_ratio(optimized_index, original_index),
    )
