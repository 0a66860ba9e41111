"""
Tests for form value conversion and submission payload building.

Run with: pytest tests/test_form_processor.py -v
"""

import math

import pytest

from core.field_schema import find_field, parse_field_descriptors
from core.field_validator import to_number, validate_field
from core.form_processor import (
    parse_float,
    prepare_submission_data,
    process_form_values,
    wire_type_for,
)


class TestParseFloat:
    """Lenient leading-number parsing"""

    @pytest.mark.parametrize("raw,expected", [
        ("42", 42.0),
        ("3.14", 3.14),
        ("  -2.5", -2.5),
        ("12abc", 12.0),
        ("1e3", 1000.0),
        (".5", 0.5),
        (7, 7.0),
    ])
    def test_leading_number(self, raw, expected):
        assert parse_float(raw) == expected

    def test_no_number_is_nan(self):
        assert math.isnan(parse_float("abc"))

    def test_infinity(self):
        assert parse_float("-Infinity") == float("-inf")


class TestProcessFormValues:
    """Typed conversion per descriptor"""

    def test_converts_by_declared_type(self, required_fields):
        processed = process_form_values(required_fields, {
            "salary": "50000.50",
            "email": "a@b.com",
            "retired": True,
            "exitDate": "2024-06-30",
        })

        assert processed == {
            "salary": 50000.5,
            "email": "a@b.com",
            "retired": True,
            "exitDate": "2024-06-30",
        }

    def test_every_field_gets_an_entry(self, required_fields):
        processed = process_form_values(required_fields, {"salary": "1"})

        assert list(processed) == ["salary", "email", "retired", "exitDate"]
        assert processed["email"] is None
        assert processed["exitDate"] is None

    def test_empty_values_become_none(self, required_fields):
        processed = process_form_values(required_fields, {"salary": "", "email": ""})
        assert processed["salary"] is None
        assert processed["email"] is None

    def test_unparsable_double_stays_nan(self, required_fields):
        processed = process_form_values(required_fields, {"salary": "lots"})
        assert math.isnan(processed["salary"])

    def test_boolean_false_string_is_truthy(self, required_fields):
        processed = process_form_values(required_fields, {"retired": "false"})
        assert processed["retired"] is True

    def test_boolean_false_is_kept(self, required_fields):
        processed = process_form_values(required_fields, {"retired": False})
        assert processed["retired"] is False

    def test_keys_without_descriptor_are_dropped(self, required_fields):
        processed = process_form_values(required_fields, {"salary": "1", "extra": "x"})
        assert "extra" not in processed

    def test_processing_is_idempotent(self, required_fields):
        raw = {"salary": "1200", "email": "a@b.com", "retired": True, "exitDate": "2024-01-01"}
        once = process_form_values(required_fields, raw)
        assert process_form_values(required_fields, once) == once

    @pytest.mark.parametrize("raw", [
        "250", " 250 ", "1e3", "+5", ".5", "7.", 42, 3.5,
        "1_000", "inf", "infinity", "nan", "0x10", "12abc", "5e", "Infinity",
    ])
    def test_valid_double_converts_to_the_validated_number(self, required_fields, raw):
        salary = find_field(required_fields, "salary")
        if validate_field(salary, raw) is not None:
            return

        processed = process_form_values(required_fields, {"salary": raw})["salary"]
        assert math.isfinite(processed)
        assert processed == to_number(raw)


class TestPrepareSubmissionData:
    """Submission payload"""

    def test_wire_types(self, required_fields):
        processed = process_form_values(required_fields, {
            "salary": "50000",
            "email": "a@b.com",
            "retired": False,
            "exitDate": "2024-06-30",
        })

        payload = prepare_submission_data("proc-1", required_fields, processed)

        assert payload == {
            "processInstanceId": "proc-1",
            "variables": {
                "salary": {"value": 50000.0, "type": "Double"},
                "email": {"value": "a@b.com", "type": "String"},
                "retired": {"value": False, "type": "String"},
                "exitDate": {"value": "2024-06-30", "type": "String"},
            },
        }

    def test_key_without_descriptor_is_tagged_string(self, required_fields):
        payload = prepare_submission_data("proc-1", required_fields, {"bonus": 12.0})
        assert payload["variables"] == {"bonus": {"value": 12.0, "type": "String"}}

    def test_wire_type_for(self):
        salary, name = parse_field_descriptors([
            {"id": "salary", "dataType": "Double"},
            {"id": "name", "dataType": "String"},
        ])
        assert wire_type_for(salary) == "Double"
        assert wire_type_for(name) == "String"
        assert wire_type_for(None) == "String"
