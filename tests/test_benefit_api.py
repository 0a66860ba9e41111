"""
Tests for the benefit HTTP API: routing, envelopes and error translation.

The orchestration service is replaced through dependency_overrides, so no
engine or lifespan is involved.

Run with: pytest tests/test_benefit_api.py -v
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from backend.benefit_service import BenefitCalculationService
from backend.constants import ErrorCode
from backend.dependencies import get_benefit_service
from backend.exceptions import (
    EngineRequestError,
    EngineUnavailableError,
    InvalidVariablesError,
    ProcessNotCompletedError,
    ProcessNotFoundError,
    TaskNotFoundError,
    classify_error,
)
from backend.main import app
from backend.resilience import CircuitOpenError

START_BODY = {
    "firstName": "John",
    "lastName": "Smith",
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

RESULT = {
    "message": "Task completed successfully",
    "processInstanceId": "p1",
    "taskId": "t1",
    "memberData": {"firstName": "John"},
    "subProcessData": {"pymntAmt": "1500"},
}


@pytest.fixture
def service():
    mock = MagicMock(spec=BenefitCalculationService)
    mock.start_benefit_calculation.return_value = {
        "processInstanceId": "p1",
        "taskId": "t1",
        "requiredFields": [{"id": "salary", "label": "Salary", "dataType": "Double", "min": 0.0}],
    }
    mock.get_task_details.return_value = {
        "taskId": "t1",
        "requiredFields": [{"id": "salary", "label": "Salary", "dataType": "Double"}],
    }
    mock.complete_task.return_value = RESULT
    mock.get_final_results.return_value = {**RESULT, "taskId": None}
    mock.complete_task_direct.return_value = {"success": True, "message": "Task completed successfully", "taskId": "t9"}
    return mock


@pytest.fixture
def client(service):
    app.dependency_overrides[get_benefit_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def lenient_client(service):
    """Client that returns the handler's response for unexpected exceptions instead of re-raising."""
    app.dependency_overrides[get_benefit_service] = lambda: service
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


class TestStartEndpoint:
    """POST /api/v1/benefit/start"""

    def test_success_is_bare_body(self, client, service):
        response = client.post("/api/v1/benefit/start", json=START_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["processInstanceId"] == "p1"
        assert data["requiredFields"][0]["min"] == 0.0
        assert "success" not in data

        sent = service.start_benefit_calculation.await_args.args[0]
        assert sent["firstName"] == "John"
        assert sent["paymentTypeDesc"] == "Early Retirement Benefit"

    def test_missing_field(self, client, service):
        body = {k: v for k, v in START_BODY.items() if k != "firstName"}

        response = client.post("/api/v1/benefit/start", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == ErrorCode.VALIDATION_ERROR.value
        assert data["message"] == "Invalid request data"
        assert any("firstName" in d for d in data["details"])
        service.start_benefit_calculation.assert_not_awaited()

    def test_bad_date(self, client):
        response = client.post("/api/v1/benefit/start", json={**START_BODY, "dateOfBirth": "yesterday"})

        assert response.status_code == 400
        assert any("Invalid date format" in d for d in response.json()["details"])

    def test_unexpected_engine_failure(self, client, service):
        service.start_benefit_calculation.side_effect = EngineRequestError("Failed to start process: 500 boom", status=500)

        response = client.post("/api/v1/benefit/start", json=START_BODY)

        assert response.status_code == 500
        assert response.json() == {
            "error": "INTERNAL_ERROR",
            "message": "Failed to start process",
            "details": ["Failed to start process: 500 boom"],
        }


class TestTaskEndpoints:
    """GET /task/{id} and POST /complete-task/{taskId}"""

    def test_task_details(self, client, service):
        response = client.get("/api/v1/benefit/task/p1")

        assert response.status_code == 200
        assert response.json()["taskId"] == "t1"
        service.get_task_details.assert_awaited_once_with("p1")

    def test_task_not_found(self, client, service):
        service.get_task_details.side_effect = TaskNotFoundError("p1")

        response = client.get("/api/v1/benefit/task/p1")

        assert response.status_code == 404
        assert response.json() == {
            "error": "NOT_FOUND",
            "message": "Task not found or already completed",
            "details": [],
        }

    def test_complete_direct_forwards_body(self, client, service):
        body = {"variables": {"x": {"value": 1, "type": "Long"}}}

        response = client.post("/api/v1/benefit/complete-task/t9", json=body)

        assert response.status_code == 200
        assert response.json()["taskId"] == "t9"
        service.complete_task_direct.assert_awaited_once_with("t9", body)


class TestCompleteEndpoint:
    """POST /api/v1/benefit/complete"""

    def test_success_envelope(self, client, service):
        response = client.post("/api/v1/benefit/complete", json={
            "processInstanceId": " p1 ",
            "variables": {"salary": {"value": 80000.0, "type": "Double"}},
        })

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["data"] == RESULT
        assert data["method"] == "POST"
        assert data["path"].endswith("/api/v1/benefit/complete")
        assert data["timestamp"]
        service.complete_task.assert_awaited_once_with("p1", {"salary": {"value": 80000.0, "type": "Double"}})

    def test_invalid_json(self, client):
        response = client.post(
            "/api/v1/benefit/complete",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "INVALID_REQUEST"
        assert response.json()["message"] == "Invalid JSON in request body"

    def test_missing_process_instance_id(self, client):
        response = client.post("/api/v1/benefit/complete", json={"variables": {}})

        assert response.status_code == 400
        assert response.json()["message"] == "Process instance ID is required"

    def test_blank_process_instance_id(self, client):
        response = client.post("/api/v1/benefit/complete", json={"processInstanceId": "  "})

        assert response.status_code == 400
        assert response.json()["message"] == "Process instance ID is required"

    def test_variables_must_be_object(self, client):
        response = client.post("/api/v1/benefit/complete", json={"processInstanceId": "p1", "variables": [1]})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid task variables provided"

    def test_rejected_variables(self, client, service):
        service.complete_task.side_effect = InvalidVariablesError("Cannot convert")

        response = client.post("/api/v1/benefit/complete", json={"processInstanceId": "p1", "variables": {}})

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"
        assert response.json()["message"] == "Invalid task variables provided"

    @pytest.mark.parametrize("error", [
        EngineUnavailableError("Camunda engine unreachable"),
        CircuitOpenError("Circuit 'camunda' is open"),
    ])
    def test_engine_down(self, client, service, error):
        service.complete_task.side_effect = error

        response = client.post("/api/v1/benefit/complete", json={"processInstanceId": "p1"})

        assert response.status_code == 503
        assert response.json()["error"] == "SERVICE_UNAVAILABLE"

    def test_unexpected_error_classified_by_message(self, lenient_client, service):
        service.complete_task.side_effect = RuntimeError("Failed to get task ID: nothing there")

        response = lenient_client.post("/api/v1/benefit/complete", json={"processInstanceId": "p1"})

        assert response.status_code == 404
        assert response.json()["message"] == "Task not found or already completed"

    def test_unexpected_error_uses_operation_message(self, lenient_client, service):
        service.complete_task.side_effect = RuntimeError("kaboom")

        response = lenient_client.post("/api/v1/benefit/complete", json={"processInstanceId": "p1"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "INTERNAL_ERROR",
            "message": "Failed to complete task",
            "details": ["kaboom"],
        }


class TestResultsEndpoint:
    """GET /api/v1/benefit/results/{id}"""

    def test_success_envelope(self, client, service):
        response = client.get("/api/v1/benefit/results/p1")

        assert response.status_code == 200
        assert response.json()["data"]["taskId"] is None
        assert response.json()["method"] == "GET"
        service.get_final_results.assert_awaited_once_with("p1", None)

    def test_still_running(self, client, service):
        service.get_final_results.side_effect = ProcessNotCompletedError("p1")

        response = client.get("/api/v1/benefit/results/p1")

        assert response.status_code == 400
        assert response.json()["message"] == "Process is still running. Final results not yet available."

    def test_not_found(self, client, service):
        service.get_final_results.side_effect = ProcessNotFoundError("p404")

        response = client.get("/api/v1/benefit/results/p404")

        assert response.status_code == 404
        assert response.json()["message"] == "Process instance not found: p404"


class TestHealth:
    """Service info and health"""

    def test_root(self, client):
        assert client.get("/").json()["status"] == "operational"

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["engine"]["circuit"] == "closed"


class TestClassifyError:
    """classify_error() without HTTP"""

    @pytest.mark.parametrize("message,status", [
        ("no active tasks found for process instance p1", 404),
        ("process not found: p1", 404),
        ("process not completed: p1", 400),
        ("invalid variables: x", 400),
        ("something else", 500),
    ])
    def test_message_markers(self, message, status):
        assert classify_error(ValueError(message)).status_code == status

    def test_generic_workflow_error_has_no_message(self):
        category = classify_error(EngineRequestError("boom", status=500))
        assert category.status_code == 500
        assert category.message is None
