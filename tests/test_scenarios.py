"""Tests for scenario definitions."""

import pytest

from json_tabular.flattener import flatten
from json_tabular.scenarios import get_scenarios


def test_scenarios_have_unique_names() -> None:
    scenarios = get_scenarios()
    assert scenarios
    names = [scenario.name for scenario in scenarios]
    assert all(names)
    assert len(names) == len(set(names))


@pytest.mark.parametrize("scenario", get_scenarios(), ids=lambda s: s.name)
def test_scenario_record_count_and_depth(scenario) -> None:
    """Test every scenario flattens to its expected shape."""
    records, depth = flatten(scenario.data)
    assert len(records) == scenario.expected_records
    assert depth == scenario.expected_depth
