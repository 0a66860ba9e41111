"""Workflow error types and the handlers that turn them into the error envelope"""
import uuid
import logging
from typing import List, NamedTuple, Optional, Tuple

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.constants import ErrorCode, OPERATION_FAILURE_MESSAGES
from backend.resilience import CircuitOpenError

logger = logging.getLogger(__name__)

TASK_NOT_FOUND_MESSAGE = "Task not found or already completed"
PROCESS_RUNNING_MESSAGE = "Process is still running. Final results not yet available."
INVALID_VARIABLES_MESSAGE = "Invalid task variables provided"
SERVICE_UNAVAILABLE_MESSAGE = "Service temporarily unavailable"


class WorkflowError(Exception):
    """Base for failures talking to, or reasoning about, the workflow engine."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class EngineRequestError(WorkflowError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class EngineUnavailableError(WorkflowError):
    pass


class TaskNotFoundError(WorkflowError):
    def __init__(self, process_instance_id: str):
        super().__init__(
            f"Failed to get task ID: no active tasks found for process instance {process_instance_id}"
        )
        self.process_instance_id = process_instance_id


class ProcessNotFoundError(WorkflowError):
    def __init__(self, process_instance_id: str):
        super().__init__(f"process not found: {process_instance_id}")
        self.process_instance_id = process_instance_id


class ProcessNotCompletedError(WorkflowError):
    def __init__(self, process_instance_id: str):
        super().__init__(f"process not completed: {process_instance_id}")
        self.process_instance_id = process_instance_id


class InvalidVariablesError(WorkflowError):
    def __init__(self, detail: str):
        super().__init__(f"invalid variables: {detail}")


class RequiredFieldsError(WorkflowError):
    pass


class ErrorCategory(NamedTuple):
    status_code: int
    error_code: ErrorCode
    message: Optional[str]


# Checked in order for exceptions that aren't WorkflowError subclasses
_MESSAGE_MARKERS = [
    ("Failed to get task ID", ErrorCategory(404, ErrorCode.NOT_FOUND, TASK_NOT_FOUND_MESSAGE)),
    ("no active tasks found", ErrorCategory(404, ErrorCode.NOT_FOUND, TASK_NOT_FOUND_MESSAGE)),
    ("process not found", ErrorCategory(404, ErrorCode.NOT_FOUND, "Process instance not found")),
    ("process not completed", ErrorCategory(400, ErrorCode.VALIDATION_ERROR, PROCESS_RUNNING_MESSAGE)),
    ("invalid variables", ErrorCategory(400, ErrorCode.VALIDATION_ERROR, INVALID_VARIABLES_MESSAGE)),
]


def classify_error(exc: BaseException) -> ErrorCategory:
    """
    Client-facing status for a failure. A None message means "use the
    operation's generic failure message and report the error in details".
    """
    if isinstance(exc, TaskNotFoundError):
        return ErrorCategory(404, ErrorCode.NOT_FOUND, TASK_NOT_FOUND_MESSAGE)
    if isinstance(exc, ProcessNotFoundError):
        return ErrorCategory(
            404, ErrorCode.NOT_FOUND, f"Process instance not found: {exc.process_instance_id}"
        )
    if isinstance(exc, ProcessNotCompletedError):
        return ErrorCategory(400, ErrorCode.VALIDATION_ERROR, PROCESS_RUNNING_MESSAGE)
    if isinstance(exc, InvalidVariablesError):
        return ErrorCategory(400, ErrorCode.VALIDATION_ERROR, INVALID_VARIABLES_MESSAGE)
    if isinstance(exc, (EngineUnavailableError, CircuitOpenError)):
        return ErrorCategory(503, ErrorCode.SERVICE_UNAVAILABLE, SERVICE_UNAVAILABLE_MESSAGE)
    if isinstance(exc, WorkflowError):
        return ErrorCategory(500, ErrorCode.INTERNAL_ERROR, None)

    text = str(exc)
    for marker, category in _MESSAGE_MARKERS:
        if marker in text:
            return category
    return ErrorCategory(500, ErrorCode.INTERNAL_ERROR, None)


def error_body(code: ErrorCode, message: str, details: Optional[List[str]] = None) -> dict:
    return {"error": code.value, "message": message, "details": details or []}


def _operation_failure_message(request: Request) -> str:
    route = request.scope.get("route")
    name = getattr(route, "name", None)
    for operation, message in OPERATION_FAILURE_MESSAGES.items():
        if operation.value == name:
            return message
    return "Internal server error"


async def workflow_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Translate any failure from the orchestration layer, once, into the envelope"""
    category = classify_error(exc)
    request_id = str(uuid.uuid4())

    if category.status_code >= 500:
        logger.error(
            f"Request failed: {request.method} {request.url.path}",
            extra={"request_id": request_id, "error": str(exc), "error_type": type(exc).__name__},
        )
    else:
        logger.warning(
            f"HTTP {category.status_code}: {request.method} {request.url.path}",
            extra={"request_id": request_id, "error": str(exc)},
        )

    if category.message is None:
        body = error_body(category.error_code, _operation_failure_message(request), [str(exc)])
    else:
        body = error_body(category.error_code, category.message)

    return JSONResponse(status_code=category.status_code, content=body)


def _validation_message(errors: List[dict]) -> Tuple[ErrorCode, str]:
    if any(e.get("type") == "json_invalid" for e in errors):
        return ErrorCode.INVALID_REQUEST, "Invalid JSON in request body"

    locations = {str(part) for e in errors for part in e.get("loc", ())}
    if "processInstanceId" in locations:
        return ErrorCode.VALIDATION_ERROR, "Process instance ID is required"
    if "variables" in locations:
        return ErrorCode.VALIDATION_ERROR, INVALID_VARIABLES_MESSAGE
    return ErrorCode.VALIDATION_ERROR, "Invalid request data"


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body failed to parse or validate"""
    errors = exc.errors()
    code, message = _validation_message(errors)

    logger.warning(
        f"Validation error: {request.method} {request.url.path}",
        extra={"errors": errors}
    )

    details = [f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg')}" for e in errors]
    return JSONResponse(status_code=400, content=error_body(code, message, details))


_HTTP_ERROR_CODES = {
    400: ErrorCode.INVALID_REQUEST,
    404: ErrorCode.NOT_FOUND,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """5xx: generic error, 4xx: specific error"""
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {request.method} {request.url.path} - {exc.detail}")
        code = _HTTP_ERROR_CODES.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        return JSONResponse(status_code=exc.status_code, content=error_body(code, "An error occurred"))

    code = _HTTP_ERROR_CODES.get(exc.status_code, ErrorCode.VALIDATION_ERROR)
    return JSONResponse(status_code=exc.status_code, content=error_body(code, str(exc.detail)))


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers"""
    app.add_exception_handler(WorkflowError, workflow_exception_handler)
    app.add_exception_handler(CircuitOpenError, workflow_exception_handler)
    app.add_exception_handler(Exception, workflow_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
