"""Shared fixtures for vulnerability index tests."""

import pytest

from vulnerability_allocation.models import Component, Dataset, Indicator


@pytest.fixture()
def sample_dataset():
    """Raw dataset of four subsectors sharing a budget of 100."""
    components = [
        Component(
            id="Food availability",
            name="Food availability",
            indicators=(Indicator(value=50, benchmark=80), Indicator(value=100, benchmark=90)),
            allocation=30,
        ),
        Component(
            id="Food security",
            name="Food security",
            indicators=(Indicator(value=20, benchmark=40), Indicator(value=10, benchmark=15)),
            allocation=25,
        ),
        Component(
            id="Resilience",
            name="Resilience",
            indicators=(Indicator(value=0, benchmark=5), Indicator(value=40, benchmark=50)),
            allocation=25,
        ),
        Component(
            id="Environmental impacts",
            name="Environmental impacts",
            indicators=(Indicator(value=12, benchmark=10),),
            allocation=20,
        ),
    ]
    return Dataset(components={c.id: c for c in components}, total_budget=100)


@pytest.fixture()
def calibrated_dataset():
    """Dataset with gaps, sensitivities and weights already assigned."""
    specs = {
        "A": (0.4, 2.0),
        "B": (0.3, 0.2),
        "C": (0.2, 0.1),
        "D": (0.1, 0.1),
    }
    components = {
        cid: Component(id=cid, name=cid, allocation=25, average_gap=gap, sensitivity=0.5, weight=weight)
        for cid, (weight, gap) in specs.items()
    }
    return Dataset(components=components, total_budget=100)


@pytest.fixture()
def sample_event(sample_dataset):
    """Ingestion-shaped event with camelCase field names."""
    subsectors = {
        cid: {
            "name": c.name,
            "totalExpenditures": c.allocation,
            "indicators": [
                {
                    "projectName": f"{cid} project {n}",
                    "matchScore": 0.8,
                    "expenditures": 1.0,
                    "value": i.value,
                    "benchmark": i.benchmark,
                }
                for n, i in enumerate(c.indicators)
            ],
        }
        for cid, c in sample_dataset.components.items()
    }
    return {"subsectors": subsectors, "totalBudget": 100}
