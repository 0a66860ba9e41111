"""
Member/plan details collected on the first wizard step.

Validation mirrors what the start form enforces before a process is started,
and build_start_request() produces the body for the start endpoint.
"""
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Optional, Union

from core.catalog import age_rule, calculate_age, payment_type_description

DateInput = Optional[Union[date, str]]

NAME_PATTERN = re.compile(r"^[a-zA-Z\s'-]+$")
MEMBER_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
MIN_BIRTH_DATE = date(1900, 1, 1)
DEFAULT_DATE_JOINED_FUND = date(2000, 1, 1)

# Date Joined Fund is hidden on the form; it is neither validated nor entered
SHOW_DATE_JOINED_FUND = False


@dataclass
class StartFormData:
    first_name: str = ""
    last_name: str = ""
    member_id: str = ""
    date_of_birth: DateInput = None
    date_joined_fund: DateInput = None
    effective_date: DateInput = None
    calculation_date: DateInput = None
    benefit_class: str = ""
    payment_type: str = ""
    plan_number: str = ""


def to_date(value: DateInput) -> Optional[date]:
    """Accept a date, a datetime or an ISO string; None when it can't be read."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def validate_name(name: str, label: str) -> Optional[str]:
    value = (name or "").strip()
    if not value:
        return f"{label} is required"
    if len(value) < 2:
        return f"{label} must be at least 2 characters long"
    if len(value) > 50:
        return f"{label} must not exceed 50 characters"
    if not NAME_PATTERN.match(value):
        return f"{label} can only contain letters, spaces, hyphens, and apostrophes"
    return None


def validate_member_id(member_id: str) -> Optional[str]:
    value = (member_id or "").strip()
    if not value:
        return "Member ID is required"
    if len(value) < 3:
        return "Member ID must be at least 3 characters long"
    if len(value) > 20:
        return "Member ID must not exceed 20 characters"
    if not MEMBER_ID_PATTERN.match(value):
        return "Member ID can only contain letters, numbers, hyphens, and underscores"
    if not re.search(r"\d", value):
        return "Member ID must contain at least one number"
    return None


def validate_date(
    value: DateInput,
    label: str,
    min_date: Optional[date] = None,
    max_date: Optional[date] = None,
) -> Optional[str]:
    if value is None or value == "":
        return f"{label} is required"

    parsed = to_date(value)
    if parsed is None:
        return f"{label} is not a valid date"

    if min_date and parsed < min_date:
        return f"{label} cannot be before {min_date.strftime('%m/%d/%Y')}"

    if max_date and parsed > max_date:
        return f"{label} cannot be after {max_date.strftime('%m/%d/%Y')}"

    return None


def validate_date_logic(form: StartFormData) -> Optional[str]:
    birth = to_date(form.date_of_birth)
    joined = to_date(form.date_joined_fund)
    effective = to_date(form.effective_date)
    calculation = to_date(form.calculation_date)

    if not (birth and joined and effective and calculation):
        return None

    if joined <= birth:
        return "Date Joined Fund must be after Date of Birth"
    if effective < joined:
        return "Effective Date cannot be before Date Joined Fund"
    if calculation < effective:
        return "Calculation Date cannot be before Effective Date"
    return None


def validate_age(form: StartFormData) -> Optional[str]:
    birth = to_date(form.date_of_birth)
    effective = to_date(form.effective_date)
    if not (form.benefit_class and form.payment_type and birth and effective):
        return None

    rule = age_rule(form.payment_type, form.benefit_class)
    if rule is None:
        return None

    age = calculate_age(birth, effective)
    if not rule.allows(age):
        return (
            f"Member's age is {age}. Valid age range for this selection is "
            f"{rule.min_age} - {rule.max_age}."
        )
    return None


def _ten_years_after(day: date) -> date:
    try:
        return day.replace(year=day.year + 10)
    except ValueError:
        # 29 February
        return day.replace(year=day.year + 10, day=28)


def validate_start_field(form: StartFormData, field: str, today: Optional[date] = None) -> Optional[str]:
    today = today or date.today()
    max_future = _ten_years_after(today)

    if field == "first_name":
        return validate_name(form.first_name, "First name")
    if field == "last_name":
        return validate_name(form.last_name, "Last name")
    if field == "member_id":
        return validate_member_id(form.member_id)
    if field == "date_of_birth":
        return validate_date(form.date_of_birth, "Date of Birth", MIN_BIRTH_DATE, today)
    if field == "date_joined_fund":
        if not SHOW_DATE_JOINED_FUND:
            return None
        return validate_date(form.date_joined_fund, "Date Joined Fund", to_date(form.date_of_birth))
    if field == "effective_date":
        return validate_date(form.effective_date, "Effective Date", to_date(form.date_of_birth), max_future)
    if field == "calculation_date":
        return validate_date(form.calculation_date, "Calculation Date", to_date(form.effective_date), max_future)
    if field == "benefit_class":
        return None if form.benefit_class else "Benefit Class is required"
    if field == "payment_type":
        return None if form.payment_type else "Payment Type is required"
    if field == "plan_number":
        return None if form.plan_number else "Plan Number is required"
    return None


START_FIELDS = [
    "first_name",
    "last_name",
    "member_id",
    "date_of_birth",
    "effective_date",
    "calculation_date",
    "benefit_class",
    "payment_type",
    "plan_number",
]


def visible_start_fields():
    if SHOW_DATE_JOINED_FUND:
        return START_FIELDS + ["date_joined_fund"]
    return list(START_FIELDS)


def validate_start_form(form: StartFormData, today: Optional[date] = None) -> Dict[str, str]:
    """Every start-form error, keyed by field name plus date_logic / age_validation."""
    errors: Dict[str, str] = {}
    for field in visible_start_fields():
        error = validate_start_field(form, field, today)
        if error:
            errors[field] = error

    date_logic = validate_date_logic(form)
    if date_logic:
        errors["date_logic"] = date_logic

    age_error = validate_age(form)
    if age_error:
        errors["age_validation"] = age_error

    return errors


def format_date_for_api(value: date) -> str:
    return f"{value.isoformat()}T00:00:00.000+0000"


def build_start_request(form: StartFormData) -> dict:
    """Body for the start endpoint; dates are formatted, missing ones are left out."""
    joined = to_date(form.date_joined_fund) or DEFAULT_DATE_JOINED_FUND
    request = {
        "firstName": form.first_name,
        "lastName": form.last_name,
        "memberId": form.member_id,
        "dateOfBirth": to_date(form.date_of_birth),
        "dateJoinedFund": joined,
        "effectiveDate": to_date(form.effective_date),
        "calculationDate": to_date(form.calculation_date),
        "benefitClass": form.benefit_class,
        "paymentType": form.payment_type,
        "planNumber": form.plan_number,
        "paymentTypeDesc": payment_type_description(form.payment_type),
    }
    for key in ("dateOfBirth", "dateJoinedFund", "effectiveDate", "calculationDate"):
        if request[key] is None:
            del request[key]
        else:
            request[key] = format_date_for_api(request[key])
    return request
