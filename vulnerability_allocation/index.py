"""Component vulnerability and the system-level vulnerability index.

A component's vulnerability is its gap discounted by funding,
``gap / (1 + sensitivity * allocation)``. The system index is the weighted
sum of component vulnerabilities.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from vulnerability_allocation.calibration import assign_weights, estimate_sensitivity
from vulnerability_allocation.config import Config
from vulnerability_allocation.gaps import compute_gaps
from vulnerability_allocation.models import Component, Dataset

logger = logging.getLogger(__name__)


def component_vulnerability(gap: float, allocation: float, sensitivity: float) -> float:
    """Calculate a component's vulnerability at a given allocation.

    Parameters
    ----------
    gap : float
        Aggregated performance gap of the component.
    allocation : float
        Funding allocated to the component. Negative values are a data error
        and are treated as zero.
    sensitivity : float
        Responsiveness of the component to funding.

    Returns
    -------
    float
        ``gap / (1 + sensitivity * max(0, allocation))``.
    """
    if allocation < 0:
        logger.warning("Negative allocation %.4f treated as zero", allocation)
        allocation = 0.0
    return gap * (1 / (1 + sensitivity * allocation))


def system_index(components: Mapping[str, Component] | Iterable[Component]) -> float:
    """Sum weighted vulnerabilities into the system index.

    Components without a weight or a vulnerability contribute nothing.
    """
    if isinstance(components, Mapping):
        components = components.values()
    total = 0.0
    for component in components:
        if component.weight is None or component.vulnerability is None:
            continue
        total += component.weight * component.vulnerability
    return total


def _with_vulnerability(component: Component) -> Component:
    return replace(
        component,
        vulnerability=component_vulnerability(component.average_gap, component.allocation, component.sensitivity),
    )


def calculate_vulnerabilities(dataset: Dataset, config: Config | None = None) -> Dataset:
    """Run gaps, sensitivities, weights and vulnerabilities over a dataset.

    Parameters
    ----------
    dataset : Dataset
        Raw dataset; not modified.
    config : Config, optional
        Pipeline options. Defaults apply when omitted.

    Returns
    -------
    Dataset
        New dataset with every derived component field populated.
    """
    if config is None:
        config = Config()
    with_gaps = compute_gaps(dataset, config)
    with_sensitivity = estimate_sensitivity(with_gaps.components)
    with_weights = assign_weights(with_sensitivity, config.policy_priorities, config.contextual_factors)
    return dataset.replace_components({cid: _with_vulnerability(c) for cid, c in with_weights.items()})


def apply_allocations(dataset: Dataset, allocations: Mapping[str, float]) -> Dataset:
    """Replace allocations in a calibrated dataset and refresh vulnerabilities.

    Ids missing from ``allocations`` keep their current allocation; unknown
    ids are ignored.

    Raises
    ------
    ValueError
        If a component lacks the gap or sensitivity needed to recompute.
    """
    components = {}
    for cid, component in dataset.components.items():
        if component.average_gap is None or component.sensitivity is None:
            raise ValueError(f"Component {cid!r} has not been calibrated.")
        updated = replace(component, allocation=allocations.get(cid, component.allocation))
        components[cid] = _with_vulnerability(updated)
    return dataset.replace_components(components)


@dataclass(frozen=True)
class ComponentContribution:
    """A component's share of the system index."""

    weight: float
    vulnerability: float
    weighted_contribution: float
    share_of_total: float


@dataclass(frozen=True)
class IndexResult:
    """System index together with the dataset and diagnostics that produced it.

    Parameters
    ----------
    index : float
        The system vulnerability index.
    dataset : Dataset
        Calibrated dataset with vulnerabilities populated.
    contributions : dict[str, ComponentContribution]
        Per-component contribution; ``share_of_total`` is a percentage.
    config : Config
        The configuration actually used.
    """

    index: float
    dataset: Dataset
    contributions: dict[str, ComponentContribution] = field(default_factory=dict)
    config: Config = field(default_factory=Config)


def _contributions(dataset: Dataset, index: float) -> dict[str, ComponentContribution]:
    result = {}
    for cid, component in dataset.components.items():
        weight = component.weight or 0.0
        vulnerability = component.vulnerability or 0.0
        weighted = weight * vulnerability
        result[cid] = ComponentContribution(
            weight=weight,
            vulnerability=vulnerability,
            weighted_contribution=weighted,
            share_of_total=weighted / index * 100 if index > 0 else 0.0,
        )
    return result


def compute_index(dataset: Dataset, config: Config | None = None) -> IndexResult:
    """Compute the system index of a raw dataset.

    Parameters
    ----------
    dataset : Dataset
        Raw dataset; not modified.
    config : Config, optional
        Pipeline options.

    Returns
    -------
    IndexResult
    """
    if config is None:
        config = Config()
    calibrated = calculate_vulnerabilities(dataset, config)
    index = system_index(calibrated.components)
    logger.info("System index computed: %.6f over %d components", index, len(calibrated.components))
    return IndexResult(index=index, dataset=calibrated, contributions=_contributions(calibrated, index), config=config)


def evaluate_allocation(
    dataset: Dataset,
    allocations: Mapping[str, float],
    config: Config | None = None,
) -> IndexResult:
    """Compute the system index under a hypothetical set of allocations.

    Calibration (gaps, sensitivities, weights) uses the dataset's own
    allocations; only the vulnerabilities are re-evaluated at
    ``allocations``.

    Parameters
    ----------
    dataset : Dataset
        Raw dataset; not modified.
    allocations : Mapping[str, float]
        Allocation per component id. Missing ids keep their allocation.
    config : Config, optional
        Pipeline options.

    Returns
    -------
    IndexResult
    """
    if config is None:
        config = Config()
    calibrated = apply_allocations(calculate_vulnerabilities(dataset, config), allocations)
    index = system_index(calibrated.components)
    return IndexResult(index=index, dataset=calibrated, contributions=_contributions(calibrated, index), config=config)


def top_vulnerable(dataset: Dataset, n: int = 3) -> list[Component]:
    """Return the ``n`` components with the highest vulnerability."""
    ranked = sorted(dataset.components.values(), key=lambda c: c.vulnerability or 0.0, reverse=True)
    return ranked[:n]
