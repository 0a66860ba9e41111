from enum import Enum

API_PREFIX = "/api/v1"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class VariableType(str, Enum):
    STRING = "String"
    DOUBLE = "Double"
    BOOLEAN = "Boolean"
    DATE = "Date"


class Operation(str, Enum):
    """Route names; also used to pick the message for an unexpected failure."""
    START = "start_benefit_calculation"
    TASK_DETAILS = "get_task_details"
    COMPLETE = "complete_task"
    COMPLETE_DIRECT = "complete_task_direct"
    RESULTS = "get_final_results"


OPERATION_FAILURE_MESSAGES = {
    Operation.START: "Failed to start process",
    Operation.TASK_DETAILS: "Failed to get task details",
    Operation.COMPLETE: "Failed to complete task",
    Operation.COMPLETE_DIRECT: "Failed to complete task",
    Operation.RESULTS: "Failed to get final results",
}

RESULT_MESSAGE = "Task completed successfully"
