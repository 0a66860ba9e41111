"""
Shared fixtures: engine field descriptors, circuit isolation and a fake clock.
"""

import pytest

from backend.resilience import reset_all_circuits
from core.field_schema import parse_field_descriptors
from tests.fakes import FakeClock


@pytest.fixture(autouse=True)
def clean_circuits():
    reset_all_circuits()
    yield
    reset_all_circuits()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def required_fields_raw():
    return [
        {"id": "salary", "label": "Salary", "dataType": "Double", "min": 0, "max": 1000000},
        {"id": "email", "label": "Email", "dataType": "String", "pattern": r"^[^@\s]+@[^@\s]+\.[^@\s]+$"},
        {"id": "retired", "label": "Retired", "dataType": "Boolean"},
        {"id": "exitDate", "label": "Exit Date", "dataType": "Date", "required": False},
    ]


@pytest.fixture
def required_fields(required_fields_raw):
    return parse_field_descriptors(required_fields_raw)
