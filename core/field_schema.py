# Field descriptors supplied by the workflow engine for the dynamic details form
from enum import Enum
from typing import Dict, List, Optional, TypedDict, Union

from pydantic import BaseModel, Field


class DataType(str, Enum):
    STRING = "String"
    DOUBLE = "Double"
    BOOLEAN = "Boolean"
    DATE = "Date"


class WireType(str, Enum):
    """Coarse type tag attached to a submitted variable."""
    DOUBLE = "Double"
    STRING = "String"


# Date fields travel as ISO-like strings, never as date objects
TypedValue = Optional[Union[str, float, int, bool]]
FormValueMap = Dict[str, TypedValue]


class FieldDescriptor(BaseModel):
    id: str
    label: str = ""
    data_type: DataType = Field(alias="dataType")
    required: Optional[bool] = None
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None

    model_config = {"populate_by_name": True}

    @property
    def is_required(self) -> bool:
        # Omitted means required; only an explicit False opts out
        return self.required is not False

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class SubmissionVariable(TypedDict):
    value: TypedValue
    type: str


class SubmissionPayload(TypedDict):
    processInstanceId: str
    variables: Dict[str, SubmissionVariable]


def parse_field_descriptors(raw: List[dict]) -> List[FieldDescriptor]:
    """Build descriptors from the engine's JSON list; ids must be unique."""
    fields = [FieldDescriptor.model_validate(item) for item in raw]
    seen = set()
    for field in fields:
        if field.id in seen:
            raise ValueError(f"Duplicate field id in required fields: {field.id}")
        seen.add(field.id)
    return fields


def find_field(fields: List[FieldDescriptor], field_id: str) -> Optional[FieldDescriptor]:
    return next((f for f in fields if f.id == field_id), None)
