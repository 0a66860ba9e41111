# Converts raw form input into typed workflow variables and the submission payload
import re
from typing import Dict, List, Optional

from core.field_schema import (
    DataType,
    FieldDescriptor,
    FormValueMap,
    SubmissionPayload,
    SubmissionVariable,
    TypedValue,
    WireType,
    find_field,
)
from core.field_validator import is_empty

# Leading decimal literal, parsed the way a lenient float parser reads user input
_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|[+-]?Infinity)")


def parse_float(value: TypedValue) -> float:
    """Parse the leading number of str(value); NaN when there is none."""
    match = _FLOAT_PREFIX.match(str(value))
    if not match:
        return float("nan")
    literal = match.group(1)
    if literal.endswith("Infinity"):
        return float("-inf") if literal.startswith("-") else float("inf")
    return float(literal)


def _to_double(value: TypedValue) -> TypedValue:
    # No validation here: an unparsable value stays NaN
    return parse_float(value)


def _to_boolean(value: TypedValue) -> TypedValue:
    # Any non-empty non-bool input is truthy, the string "false" included
    if isinstance(value, bool):
        return value
    return True


def _passthrough(value: TypedValue) -> TypedValue:
    return value


_CONVERTERS = {
    DataType.DOUBLE: _to_double,
    DataType.BOOLEAN: _to_boolean,
    DataType.STRING: _passthrough,
    DataType.DATE: _passthrough,
}


def convert_value(value: TypedValue, data_type: DataType) -> TypedValue:
    if is_empty(value):
        return None
    return _CONVERTERS[data_type](value)


def process_form_values(fields: List[FieldDescriptor], raw_values: FormValueMap) -> Dict[str, TypedValue]:
    """
    Convert raw values to their declared types.

    Walks the descriptor list, so every field gets an entry (None when absent)
    and raw keys without a descriptor are dropped.
    """
    return {field.id: convert_value(raw_values.get(field.id), field.data_type) for field in fields}


def wire_type_for(field: Optional[FieldDescriptor]) -> str:
    # Boolean and Date fields are sent as String on purpose
    if field is not None and field.data_type == DataType.DOUBLE:
        return WireType.DOUBLE.value
    return WireType.STRING.value


def prepare_submission_data(
    process_instance_id: str,
    fields: List[FieldDescriptor],
    processed_values: Dict[str, TypedValue],
) -> SubmissionPayload:
    """
    Package processed values for the complete endpoint.

    Walks the keys of `processed_values`, not the descriptors: a key with no
    matching descriptor is still sent, tagged String.
    """
    variables: Dict[str, SubmissionVariable] = {}
    for key, value in processed_values.items():
        variables[key] = SubmissionVariable(value=value, type=wire_type_for(find_field(fields, key)))

    return SubmissionPayload(processInstanceId=process_instance_id, variables=variables)
