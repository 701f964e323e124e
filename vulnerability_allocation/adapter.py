"""Pipeline component: vulnerability index and reallocation for external payloads."""

import logging
from collections.abc import Mapping
from dataclasses import asdict
from typing import Any, Protocol

from vulnerability_allocation.config import Config
from vulnerability_allocation.efficiency import efficiency_metrics
from vulnerability_allocation.index import compute_index
from vulnerability_allocation.models import Component, Dataset, Indicator
from vulnerability_allocation.optimizer._common import OptimizerSettings
from vulnerability_allocation.optimizer._types import AllocationOptimizer
from vulnerability_allocation.optimizer.gradient import GradientOptimizer

logger = logging.getLogger(__name__)


class PipelineComponent(Protocol):
    """Structural interface for pipeline stage components."""

    def execute(self, event: dict) -> dict:
        """Process event and return result."""
        ...


_INDICATOR_FIELD_MAP_IN: dict[str, str] = {
    "projectName": "project_name",
    "matchScore": "weight_hint",
    "expenditures": "expenditure",
    "performanceGap": "gap",
}

_COMPONENT_FIELD_MAP_IN: dict[str, str] = {
    "totalExpenditures": "allocation",
    "averagePerformanceGap": "average_gap",
}

_INDICATOR_FIELDS = {"value", "benchmark", "weight_hint", "expenditure", "gap", "project_name"}


def _to_indicator(raw: Mapping[str, Any]) -> Indicator:
    """Map an external indicator dict to an :class:`Indicator`.

    Unknown keys are dropped.
    """
    fields = {_INDICATOR_FIELD_MAP_IN.get(key, key): value for key, value in raw.items()}
    fields = {key: value for key, value in fields.items() if key in _INDICATOR_FIELDS}
    if fields.get("weight_hint") is None:
        fields.pop("weight_hint", None)
    return Indicator(value=fields.pop("value", None), benchmark=fields.pop("benchmark", None), **fields)


def _to_component(component_id: str, raw: Mapping[str, Any]) -> Component:
    """Map an external subsector dict to a :class:`Component`."""
    fields = {_COMPONENT_FIELD_MAP_IN.get(key, key): value for key, value in raw.items()}
    return Component(
        id=component_id,
        name=fields.get("name", component_id),
        indicators=tuple(_to_indicator(i) for i in fields.get("indicators", [])),
        allocation=float(fields.get("allocation", 0.0) or 0.0),
        average_gap=fields.get("average_gap"),
    )


def dataset_from_dict(payload: Mapping[str, Any]) -> Dataset:
    """Build a :class:`Dataset` from an ingestion payload.

    Parameters
    ----------
    payload : Mapping[str, Any]
        Must contain ``subsectors`` (id to subsector dict with ``name``,
        ``indicators`` and ``totalExpenditures``). ``totalBudget`` defaults
        to the sum of expenditures.

    Returns
    -------
    Dataset
    """
    components = {cid: _to_component(cid, raw) for cid, raw in payload["subsectors"].items()}
    total_budget = payload.get("totalBudget", payload.get("total_budget"))
    if total_budget is None:
        total_budget = sum(c.allocation for c in components.values())
    return Dataset(components=components, total_budget=float(total_budget))


def _component_metrics(dataset: Dataset) -> dict[str, dict[str, Any]]:
    return {
        cid: {
            "name": c.name,
            "performance_gap": c.average_gap,
            "sensitivity": c.sensitivity,
            "weight": c.weight,
            "vulnerability": c.vulnerability,
            "weighted_vulnerability": (c.weight or 0.0) * (c.vulnerability or 0.0),
            "allocation": c.allocation,
        }
        for cid, c in dataset.components.items()
    }


class VulnerabilityComponent(PipelineComponent):
    """Compute the vulnerability index and optionally reallocate the budget.

    Handles field mapping from the ingestion format, calibration and index
    computation, then delegates reallocation to the configured optimizer.

    Parameters
    ----------
    config : Config, optional
        Default pipeline options; an event's ``config`` mapping overrides it.
    settings : OptimizerSettings, optional
        Settings for the default :class:`GradientOptimizer`.
    optimizer : AllocationOptimizer, optional
        Reallocation rule to use. Defaults to :class:`GradientOptimizer`.
    """

    def __init__(
        self,
        config: Config | None = None,
        settings: OptimizerSettings | None = None,
        optimizer: AllocationOptimizer | None = None,
    ) -> None:
        self.config = config or Config()
        self._optimizer = optimizer or GradientOptimizer(settings)

    def execute(self, event: dict) -> dict:
        """Run the index pipeline and return a plain result dict.

        Parameters
        ----------
        event : dict
            Must contain ``subsectors``; may contain ``totalBudget``,
            ``config`` (snake_case or camelCase mapping) and ``optimize``
            (default ``True``).

        Returns
        -------
        dict
            ``index``, ``components``, ``contributions`` and, when optimizing,
            ``optimization`` and ``efficiency``.
        """
        dataset = dataset_from_dict(event)
        config = Config.from_dict(event["config"]) if event.get("config") else self.config

        index_result = compute_index(dataset, config)
        result: dict[str, Any] = {
            "index": index_result.index,
            "total_budget": dataset.total_budget,
            "components": _component_metrics(index_result.dataset),
            "contributions": {cid: asdict(c) for cid, c in index_result.contributions.items()},
            "config": config.to_dict(),
        }

        if not event.get("optimize", True):
            return result

        optimization = self._optimizer(index_result.dataset)
        efficiency = efficiency_metrics(optimization["original_index"], optimization["optimized_index"])
        logger.info(
            "Reallocation complete: status=%s, improvement=%.6f",
            optimization["status"],
            efficiency.absolute_gap,
        )
        result["optimization"] = dict(optimization)
        result["efficiency"] = asdict(efficiency)
        return result
