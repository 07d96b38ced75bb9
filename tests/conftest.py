"""
Shared fixtures for the asset hierarchy tests.
"""

import pytest

from hierarchy.model import HierarchyStore

TYPE_ROWS = [
    ("Site", '{"region": "str"}'),
    ("Unit", '{"capacity": "int"}'),
    ("Pump", '{"rpm": "int"}'),
    ("Sensor", '{"range": "str"}'),
]

ENTITY_ROWS = [
    ("S1", "North Plant", "Site", "erp", '{"region": "north"}', "INSERT"),
    ("U1", "Unit 1", "Unit", "erp", '{"capacity": 10}', "INSERT"),
    ("U2", "Unit 2", "Unit", "erp", '{"capacity": 20}', "INSERT"),
    ("P1", "Feed Pump", "Pump", "historian", '{"rpm": 1500}', "INSERT"),
    ("X1", "Vibration Sensor", "Sensor", "historian", '{"range": "0-10"}', "INSERT"),
]

RELATIONSHIP_ROWS = [
    ("S1", "U1", "HAS"),
    ("S1", "U2", "HAS"),
    ("U1", "P1", "HAS"),
    ("X1", "P1", "LINK"),
]


@pytest.fixture
def sample_rows():
    """Types, entities and relationships for a small plant."""
    return list(TYPE_ROWS), list(ENTITY_ROWS), list(RELATIONSHIP_ROWS)


@pytest.fixture
def store(sample_rows):
    """Store loaded with the sample plant."""
    store = HierarchyStore()
    store.load(*sample_rows)
    return store
