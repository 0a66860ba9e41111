"""
Tests for plan, benefit class and payment type reference data.
"""

from datetime import date

import pytest

from core.catalog import (
    BENEFIT_CLASSES,
    age_rule,
    calculate_age,
    payment_type_description,
    payment_types_for,
    plan_numbers_for,
)


class TestPaymentTypes:
    """Payment types by benefit class"""

    def test_alcan_has_no_retrenchment(self):
        ids = [pt.id for pt in payment_types_for("ALCAN")]
        assert "RBEN" not in ids
        assert "LSBEN" in ids
        assert "ERBEN" in ids

    def test_only_class_c_has_mrb1(self):
        assert "MRB1" in [pt.id for pt in payment_types_for("C")]
        assert "MRB1" not in [pt.id for pt in payment_types_for("CUE")]

    def test_no_class_no_payment_types(self):
        assert payment_types_for("") == []

    def test_every_class_has_payment_types(self):
        for benefit_class in BENEFIT_CLASSES:
            assert payment_types_for(benefit_class), benefit_class

    def test_description(self):
        assert payment_type_description("TPDBEN") == "Total and Permanent Disablement"
        assert payment_type_description("missing") == ""


class TestPlanNumbers:
    """Plans by benefit class"""

    def test_cue_plans(self):
        assert [p.id for p in plan_numbers_for("CUE")] == ["EQ9037", "EQ9074", "EQ9084", "EQ9092"]

    def test_search_is_case_insensitive(self):
        assert [p.id for p in plan_numbers_for("CUE", "jem")] == ["EQ9084"]

    def test_mapped_plan_without_catalogue_entry_is_skipped(self):
        assert "EQ9006" not in [p.id for p in plan_numbers_for("C")]

    def test_no_class_no_plans(self):
        assert plan_numbers_for("", "AGL") == []


class TestAgeRules:
    """Age ranges and age calculation"""

    def test_open_upper_bound(self):
        rule = age_rule("LRBEN", "C")
        assert rule.allows(65)
        assert rule.allows(90)
        assert not rule.allows(64)

    def test_exact_age(self):
        rule = age_rule("NRBEN", "CUE")
        assert rule.allows(65)
        assert not rule.allows(66)

    def test_unmapped_combination(self):
        assert age_rule("LRBEN", "CUE") is None
        assert age_rule("UNKNOWN", "C") is None

    @pytest.mark.parametrize("birth,on,expected", [
        (date(1960, 5, 1), date(2024, 4, 30), 63),
        (date(1960, 5, 1), date(2024, 5, 1), 64),
        (date(2030, 1, 1), date(2024, 1, 1), 0),
    ])
    def test_calculate_age(self, birth, on, expected):
        assert calculate_age(birth, on) == expected
