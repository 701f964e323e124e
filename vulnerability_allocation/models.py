"""Data models for the vulnerability index pipeline."""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType


@dataclass(frozen=True)
class Indicator:
    """One observed indicator attached to a component.

    Parameters
    ----------
    value : float | None
        Observed performance, ``None`` when missing.
    benchmark : float | None
        Benchmark performance, ``None`` when missing.
    weight_hint : float
        Match confidence used as the weight in weighted averaging.
    expenditure : float
        Spending linked to the indicator.
    gap : float | None
        Normalized performance gap, ``None`` until computed.
    project_name : str
        Label of the project the indicator was matched from.
    """

    value: float | None
    benchmark: float | None
    weight_hint: float = 1.0
    expenditure: float = 0.0
    gap: float | None = None
    project_name: str = ""


@dataclass(frozen=True)
class Component:
    """A weighted, fundable unit of the system (a subsector).

    Derived fields (``average_gap``, ``sensitivity``, ``weight``,
    ``vulnerability``) are ``None`` until the matching pipeline stage has run.
    """

    id: str
    name: str
    indicators: tuple[Indicator, ...] = ()
    allocation: float = 0.0
    average_gap: float | None = None
    sensitivity: float | None = None
    weight: float | None = None
    vulnerability: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "indicators", tuple(self.indicators))


@dataclass(frozen=True)
class Dataset:
    """Components keyed by id together with the budget to distribute.

    Parameters
    ----------
    components : Mapping[str, Component]
        Components keyed by their ``id``; stored as a read-only mapping.
    total_budget : float
        Budget available for allocation.

    Raises
    ------
    ValueError
        If the budget is negative or a key does not match its component id.
    """

    components: Mapping[str, Component] = field(default_factory=dict)
    total_budget: float = 0.0

    def __post_init__(self) -> None:
        if self.total_budget < 0:
            raise ValueError("total_budget must be non-negative.")
        for key, component in self.components.items():
            if key != component.id:
                raise ValueError(f"Component key {key!r} does not match component id {component.id!r}.")
        object.__setattr__(self, "components", MappingProxyType(dict(self.components)))

    def __hash__(self) -> int:
        return hash((frozenset(self.components.items()), self.total_budget))

    def allocations(self) -> dict[str, float]:
        """Return the current allocation of every component."""
        return {cid: c.allocation for cid, c in self.components.items()}

    def replace_components(self, components: Mapping[str, Component]) -> "Dataset":
        """Return a new dataset with the given components and the same budget."""
        return replace(self, components=dict(components))
