from .field_schema import (
    DataType,
    FieldDescriptor,
    SubmissionPayload,
    WireType,
    parse_field_descriptors
)
from .field_validator import validate_field, validate_form, is_form_valid, ValidationMessages
from .form_processor import process_form_values, prepare_submission_data
from .start_form import StartFormData, validate_start_form, build_start_request
from .data_formatter import ResultFormatter
from .store import Action, ActionType, ProcessHandle, WizardState, WizardStep, WizardStore

__all__ = [
    'DataType',
    'FieldDescriptor',
    'SubmissionPayload',
    'WireType',
    'parse_field_descriptors',
    'validate_field',
    'validate_form',
    'is_form_valid',
    'ValidationMessages',
    'process_form_values',
    'prepare_submission_data',
    'StartFormData',
    'validate_start_form',
    'build_start_request',
    'ResultFormatter',
    'Action',
    'ActionType',
    'ProcessHandle',
    'WizardState',
    'WizardStep',
    'WizardStore'
]
