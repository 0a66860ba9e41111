"""
Validation of dynamic form values against workflow-supplied field descriptors.

All functions here are pure. Deciding when an error becomes visible
(touched fields, submit attempts) is left to the caller.
"""
import logging
import math
import re
from typing import Dict, List, Optional

from dateutil import parser as dateutil_parser

from core.field_schema import DataType, FieldDescriptor, FormValueMap, TypedValue

logger = logging.getLogger(__name__)


class ValidationMessages:
    REQUIRED = "This field is required"
    INVALID_NUMBER = "Please enter a valid number"
    INVALID_DATE = "Please enter a valid date"
    INVALID_EMAIL = "Please enter a valid email address"
    NETWORK_ERROR = "Failed to submit the form. Please try again."

    @staticmethod
    def min_value(bound: float) -> str:
        return f"Value must be at least {_format_bound(bound)}"

    @staticmethod
    def max_value(bound: float) -> str:
        return f"Value must be at most {_format_bound(bound)}"

    @staticmethod
    def invalid_format(label: str) -> str:
        return f"Invalid format for {label}"


def _format_bound(bound: float) -> str:
    if isinstance(bound, float) and bound.is_integer():
        return str(int(bound))
    return str(bound)


def is_empty(value: TypedValue) -> bool:
    # False is a real answer for boolean fields
    if isinstance(value, bool):
        return False
    return value is None or value == ""


# Plain decimal/exponent literal or an explicit Infinity; no hex, underscores or inf/nan spellings
_NUMBER_LITERAL = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?Infinity")


def to_number(value: TypedValue) -> Optional[float]:
    """Numeric coercion of a raw input; None when it is not a number."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif _NUMBER_LITERAL.fullmatch(str(value).strip()):
        number = float(str(value).strip())
    else:
        return None
    if math.isnan(number):
        return None
    return number


def _validate_number(value: TypedValue, field: FieldDescriptor) -> Optional[str]:
    number = to_number(value)
    if number is None:
        return ValidationMessages.INVALID_NUMBER

    if field.min is not None and number < field.min:
        return ValidationMessages.min_value(field.min)

    if field.max is not None and number > field.max:
        return ValidationMessages.max_value(field.max)

    return None


def _validate_string(value: TypedValue, field: FieldDescriptor) -> Optional[str]:
    if not field.pattern:
        return None

    try:
        regex = re.compile(field.pattern)
    except re.error as e:
        logger.warning(f"Ignoring invalid pattern for field '{field.id}': {e}")
        return None

    if not regex.search(str(value)):
        if "@" in field.pattern:
            return ValidationMessages.INVALID_EMAIL
        return ValidationMessages.invalid_format(field.label)

    return None


def _validate_date(value: TypedValue) -> Optional[str]:
    try:
        dateutil_parser.parse(str(value))
    except (ValueError, OverflowError):
        return ValidationMessages.INVALID_DATE
    return None


def _validate_boolean(value: TypedValue) -> Optional[str]:
    return None


_TYPE_VALIDATORS = {
    DataType.DOUBLE: _validate_number,
    DataType.STRING: _validate_string,
    DataType.DATE: lambda value, field: _validate_date(value),
    DataType.BOOLEAN: lambda value, field: _validate_boolean(value),
}


def validate_field(field: FieldDescriptor, value: TypedValue) -> Optional[str]:
    """Return the error message for one value, or None when it is acceptable."""
    if is_empty(value):
        return ValidationMessages.REQUIRED if field.is_required else None

    return _TYPE_VALIDATORS[field.data_type](value, field)


def validate_form(fields: List[FieldDescriptor], values: FormValueMap) -> Dict[str, str]:
    """Validate every descriptor in the active field-set; keys of `values` not in it are ignored."""
    errors: Dict[str, str] = {}
    for field in fields:
        error = validate_field(field, values.get(field.id))
        if error:
            errors[field.id] = error
    return errors


def is_form_valid(fields: List[FieldDescriptor], values: FormValueMap) -> bool:
    return not validate_form(fields, values)
