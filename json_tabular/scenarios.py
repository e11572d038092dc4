"""Scenario definitions for challenging flattening cases.

This module defines JSON structures that represent common challenges faced
when turning nested JSON into a single table, together with the number of
records and the nesting depth flattening is expected to produce.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List


@dataclass(frozen=True)
class Scenario:
    """A test scenario for JSON flattening.

    Attributes
    ----------
    name : str
        Unique identifier for the scenario.
    description : str
        Human-readable description of what the scenario tests.
    data : Any
        JSON-like data structure to flatten.
    expected_records : int
        Number of records flattening must produce.
    expected_depth : int
        Maximum nesting depth of ``data``.
    """
    name: str
    description: str
    data: Any
    expected_records: int
    expected_depth: int


def get_scenarios() -> List[Scenario]:
    """Get all available flattening scenarios.

    Returns
    -------
    List[Scenario]
        List of scenario definitions covering various JSON structures.
    """
    return [
        Scenario(
            name="nested_objects",
            description="Nested objects with scalar fields.",
            data={"order": {"id": 42, "meta": {"source": "api"}}, "customer": "acme"},
            expected_records=1,
            expected_depth=3,
        ),
        Scenario(
            name="list_of_primitives",
            description="Array of primitives joined into a single field.",
            data={"tags": ["blue", "green", "red"], "active": True},
            expected_records=1,
            expected_depth=2,
        ),
        Scenario(
            name="list_of_objects",
            description="List of objects exploded into one record per element.",
            data={
                "order_id": 1001,
                "items": [
                    {"sku": "A1", "qty": 2},
                    {"sku": "B2", "qty": 1},
                ],
            },
            expected_records=2,
            expected_depth=3,
        ),
        Scenario(
            name="sibling_arrays_union",
            description="Two sibling arrays contribute records additively, not as a cartesian product.",
            data={
                "order_id": 2001,
                "items": [{"sku": "A1"}, {"sku": "B2"}],
                "discounts": [{"code": "NEW10"}, {"code": "VIP"}],
            },
            expected_records=4,
            expected_depth=3,
        ),
        Scenario(
            name="mixed_types",
            description="Mixed types and null values across nested fields.",
            data={"profile": {"age": None, "score": 9.5}, "flags": [True, False]},
            expected_records=1,
            expected_depth=2,
        ),
        Scenario(
            name="deep_nesting",
            description="Deeply nested structures with optional fields.",
            data={"a": {"b": {"c": {"d": 7}}}, "optional": {}},
            expected_records=1,
            expected_depth=4,
        ),
        Scenario(
            name="nested_arrays",
            description="Arrays of objects nested inside arrays of objects multiply along the chain.",
            data={
                "user_id": 123,
                "transactions": [
                    {
                        "id": "t1",
                        "items": [{"name": "apple", "price": 1.5}, {"name": "banana", "price": 0.8}],
                        "tags": ["food", "grocery"],
                    },
                    {
                        "id": "t2",
                        "items": [{"name": "book", "price": 15.0}],
                        "tags": ["education"],
                    },
                ],
            },
            expected_records=3,
            expected_depth=5,
        ),
        Scenario(
            name="complex_mixed_types",
            description="Complex structure with arrays mixing objects and primitives.",
            data={
                "event_id": "evt_001",
                "metadata": {
                    "sources": ["api", "webhook", "batch"],
                    "timestamps": [datetime(2024, 1, 1, 12, 0, 0).isoformat()],
                    "nested": {
                        "values": [1, 2, {"special": True}],
                    },
                },
                "status": "active",
            },
            expected_records=3,
            expected_depth=5,
        ),
        Scenario(
            name="empty_and_null_handling",
            description="Handling of empty arrays, null values, and empty objects.",
            data={
                "id": 1,
                "name": "test",
                "empty_list": [],
                "null_field": None,
                "nested": {
                    "present": "value",
                    "missing": None,
                },
                "optional": {},
            },
            expected_records=1,
            expected_depth=2,
        ),
        Scenario(
            name="date_and_datetime",
            description="Structures containing date and datetime strings.",
            data={
                "order_id": 5001,
                "created_at": datetime(2024, 1, 15, 10, 30, 0).isoformat(),
                "events": [
                    {"type": "created", "timestamp": datetime(2024, 1, 15, 10, 30, 0).isoformat()},
                    {"type": "updated", "timestamp": datetime(2024, 1, 15, 11, 0, 0).isoformat()},
                ],
            },
            expected_records=2,
            expected_depth=3,
        ),
        Scenario(
            name="wide_sibling_arrays",
            description="Three sibling arrays add up (3 + 2 + 2) instead of multiplying (3 * 2 * 2).",
            data={
                "batch_id": "batch_001",
                "products": [{"id": f"p{i}"} for i in range(1, 4)],
                "regions": [{"code": f"R{i}"} for i in range(1, 3)],
                "channels": [{"name": f"C{i}"} for i in range(1, 3)],
            },
            expected_records=7,
            expected_depth=3,
        ),
        Scenario(
            name="root_array_of_objects",
            description="Top-level array of objects indexed by level.",
            data=[{"id": 1, "name": "a"}, {"id": 2, "name": "b"}],
            expected_records=2,
            expected_depth=2,
        ),
        Scenario(
            name="anonymous_nested_arrays",
            description="Arrays of arrays without keys use level-numbered index columns.",
            data=[[{"a": 1}, {"a": 2}], [{"a": 3}]],
            expected_records=3,
            expected_depth=3,
        ),
    ]
