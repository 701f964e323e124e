"""Vulnerability index computation and budget reallocation."""

from vulnerability_allocation.adapter import VulnerabilityComponent, dataset_from_dict
from vulnerability_allocation.config import Config, ContextualFactors, GapCalculationOptions
from vulnerability_allocation.efficiency import EfficiencyMetrics, efficiency_metrics
from vulnerability_allocation.index import (
    IndexResult,
    calculate_vulnerabilities,
    component_vulnerability,
    compute_index,
    evaluate_allocation,
    system_index,
)
from vulnerability_allocation.models import Component, Dataset, Indicator
from vulnerability_allocation.optimizer import GradientOptimizer, OptimizerSettings, optimize_allocation

__all__ = [
    "Component",
    "Config",
    "ContextualFactors",
    "Dataset",
    "EfficiencyMetrics",
    "GapCalculationOptions",
    "GradientOptimizer",
    "IndexResult",
    "Indicator",
    "OptimizerSettings",
    "VulnerabilityComponent",
    "calculate_vulnerabilities",
    "component_vulnerability",
    "compute_index",
    "dataset_from_dict",
    "efficiency_metrics",
    "evaluate_allocation",
    "optimize_allocation",
    "system_index",
]
