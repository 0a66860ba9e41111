"""
Tests for start-form validation and the start request body.

Run with: pytest tests/test_start_form.py -v
"""

from dataclasses import replace
from datetime import date

import pytest

from core.start_form import (
    StartFormData,
    build_start_request,
    validate_age,
    validate_date,
    validate_date_logic,
    validate_member_id,
    validate_name,
    validate_start_field,
    validate_start_form,
)

TODAY = date(2024, 6, 1)


@pytest.fixture
def valid_form():
    return StartFormData(
        first_name="John",
        last_name="O'Neil-Smith",
        member_id="M12345",
        date_of_birth=date(1960, 5, 1),
        effective_date=date(2024, 1, 1),
        calculation_date=date(2024, 2, 1),
        benefit_class="C",
        payment_type="ERBEN",
        plan_number="EQ9008",
    )


class TestNameValidation:
    """First and last name rules"""

    @pytest.mark.parametrize("value,expected", [
        ("", "First name is required"),
        ("   ", "First name is required"),
        ("J", "First name must be at least 2 characters long"),
        ("J" * 51, "First name must not exceed 50 characters"),
        ("John3", "First name can only contain letters, spaces, hyphens, and apostrophes"),
        ("Mary-Jane O'Brien", None),
    ])
    def test_rules(self, value, expected):
        assert validate_name(value, "First name") == expected


class TestMemberIdValidation:
    """Member ID rules"""

    @pytest.mark.parametrize("value,expected", [
        ("", "Member ID is required"),
        ("A1", "Member ID must be at least 3 characters long"),
        ("A" * 20 + "1", "Member ID must not exceed 20 characters"),
        ("AB 12", "Member ID can only contain letters, numbers, hyphens, and underscores"),
        ("ABCDE", "Member ID must contain at least one number"),
        ("MEM_001-x", None),
    ])
    def test_rules(self, value, expected):
        assert validate_member_id(value) == expected


class TestDateValidation:
    """Single date bounds"""

    def test_required(self):
        assert validate_date(None, "Date of Birth") == "Date of Birth is required"

    def test_unreadable(self):
        assert validate_date("31/12/2020", "Date of Birth") == "Date of Birth is not a valid date"

    def test_bounds(self):
        low, high = date(2000, 1, 1), date(2010, 12, 31)
        assert validate_date("1999-12-31", "X", low, high) == "X cannot be before 01/01/2000"
        assert validate_date(date(2011, 1, 1), "X", low, high) == "X cannot be after 12/31/2010"
        assert validate_date("2005-06-15", "X", low, high) is None

    def test_birth_date_cannot_be_in_future(self, valid_form):
        form = replace(valid_form, date_of_birth=date(2024, 6, 2))
        assert validate_start_field(form, "date_of_birth", TODAY) == "Date of Birth cannot be after 06/01/2024"

    def test_effective_date_within_ten_years(self, valid_form):
        form = replace(valid_form, effective_date=date(2034, 6, 2))
        assert validate_start_field(form, "effective_date", TODAY) == "Effective Date cannot be after 06/01/2034"

    def test_calculation_date_not_before_effective(self, valid_form):
        form = replace(valid_form, calculation_date=date(2023, 12, 31))
        assert validate_start_field(form, "calculation_date", TODAY) == (
            "Calculation Date cannot be before 01/01/2024"
        )

    def test_hidden_date_joined_fund_is_not_validated(self, valid_form):
        assert validate_start_field(valid_form, "date_joined_fund", TODAY) is None


class TestCrossFieldValidation:
    """Date ordering and age range"""

    def test_date_logic_skipped_without_all_dates(self, valid_form):
        assert validate_date_logic(valid_form) is None

    def test_date_logic_ordering(self, valid_form):
        form = replace(valid_form, date_joined_fund=date(1950, 1, 1))
        assert validate_date_logic(form) == "Date Joined Fund must be after Date of Birth"

        form = replace(valid_form, date_joined_fund=date(2024, 3, 1))
        assert validate_date_logic(form) == "Effective Date cannot be before Date Joined Fund"

        form = replace(valid_form, date_joined_fund=date(1990, 1, 1), calculation_date=date(2023, 1, 1))
        assert validate_date_logic(form) == "Calculation Date cannot be before Effective Date"

    def test_age_in_range(self, valid_form):
        assert validate_age(valid_form) is None

    def test_age_out_of_range(self, valid_form):
        form = replace(valid_form, date_of_birth=date(1990, 1, 1))
        assert validate_age(form) == (
            "Member's age is 34. Valid age range for this selection is 55 - 64."
        )

    def test_age_skipped_for_unmapped_class(self, valid_form):
        form = replace(valid_form, payment_type="MRB1", benefit_class="FA")
        assert validate_age(form) is None


class TestValidateStartForm:
    """Whole start-form validation"""

    def test_valid_form(self, valid_form):
        assert validate_start_form(valid_form, TODAY) == {}

    def test_empty_form_reports_every_visible_field(self):
        errors = validate_start_form(StartFormData(), TODAY)

        assert set(errors) == {
            "first_name", "last_name", "member_id", "date_of_birth", "effective_date",
            "calculation_date", "benefit_class", "payment_type", "plan_number",
        }

    def test_age_error_is_keyed_separately(self, valid_form):
        form = replace(valid_form, date_of_birth=date(1990, 1, 1))
        assert set(validate_start_form(form, TODAY)) == {"age_validation"}


class TestBuildStartRequest:
    """Start endpoint body"""

    def test_formats_dates_and_fills_defaults(self, valid_form):
        request = build_start_request(valid_form)

        assert request == {
            "firstName": "John",
            "lastName": "O'Neil-Smith",
            "memberId": "M12345",
            "dateOfBirth": "1960-05-01T00:00:00.000+0000",
            "dateJoinedFund": "2000-01-01T00:00:00.000+0000",
            "effectiveDate": "2024-01-01T00:00:00.000+0000",
            "calculationDate": "2024-02-01T00:00:00.000+0000",
            "benefitClass": "C",
            "paymentType": "ERBEN",
            "planNumber": "EQ9008",
            "paymentTypeDesc": "Early Retirement Benefit",
        }

    def test_missing_dates_are_left_out(self, valid_form):
        form = replace(valid_form, calculation_date=None, date_joined_fund="1985-07-01")
        request = build_start_request(form)

        assert "calculationDate" not in request
        assert request["dateJoinedFund"] == "1985-07-01T00:00:00.000+0000"

    def test_unknown_payment_type_has_empty_description(self, valid_form):
        request = build_start_request(replace(valid_form, payment_type="NOPE"))
        assert request["paymentTypeDesc"] == ""
