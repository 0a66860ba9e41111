from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, List, Optional
from dateutil import parser as dateutil_parser


class StartProcessRequest(BaseModel):
    firstName: str
    lastName: str
    memberId: str
    dateOfBirth: str
    dateJoinedFund: Optional[str] = None
    effectiveDate: str
    calculationDate: Optional[str] = None
    benefitClass: str
    paymentType: str = ""
    planNumber: str = ""
    paymentTypeDesc: str = ""
    model_config = {"extra": "allow"}

    @field_validator('firstName', 'lastName', 'memberId', 'benefitClass')
    @classmethod
    def validate_required(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Field is required')
        return v.strip()

    @field_validator('dateOfBirth', 'effectiveDate')
    @classmethod
    def validate_required_date(cls, v: str) -> str:
        if not v:
            raise ValueError('Date is required')
        return _check_date(v)

    @field_validator('dateJoinedFund', 'calculationDate')
    @classmethod
    def validate_optional_date(cls, v: Optional[str]) -> Optional[str]:
        return _check_date(v) if v else v


def _check_date(value: str) -> str:
    try:
        dateutil_parser.isoparse(value)
    except (ValueError, OverflowError):
        raise ValueError('Invalid date format')
    return value


class CompleteTaskRequest(BaseModel):
    processInstanceId: str
    variables: Dict[str, Any] = Field(default_factory=dict)
    model_config = {"extra": "allow"}

    @field_validator('processInstanceId')
    @classmethod
    def validate_process_instance_id(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Process instance ID is required')
        return v.strip()


class RequiredFieldResponse(BaseModel):
    id: str
    label: str = ""
    dataType: str
    model_config = {"extra": "allow"}


class ProcessResponse(BaseModel):
    processInstanceId: str
    taskId: str
    requiredFields: List[RequiredFieldResponse]


class TaskDetailsResponse(BaseModel):
    taskId: str
    requiredFields: List[RequiredFieldResponse]


class ErrorResponse(BaseModel):
    error: str
    message: str
    details: List[str] = []
