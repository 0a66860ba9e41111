"""
Camunda engine REST client.

Every call goes through the "camunda" circuit breaker. Reads are retried on
connection errors; writes (start, complete) are sent once.
"""
import asyncio
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from backend.config import CAMUNDA_BASE_URL, CAMUNDA_TIMEOUT, PROCESS_DEFINITION_KEY
from backend.constants import VariableType
from backend.exceptions import (
    EngineRequestError,
    EngineUnavailableError,
    InvalidVariablesError,
    RequiredFieldsError,
    TaskNotFoundError,
    WorkflowError,
)
from backend.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitOpenError,
    get_circuit_breaker,
)
from core.field_schema import parse_field_descriptors

START_VARIABLES: List[Tuple[str, VariableType]] = [
    ("firstName", VariableType.STRING),
    ("lastName", VariableType.STRING),
    ("memberId", VariableType.STRING),
    ("dateOfBirth", VariableType.DATE),
    ("dateJoinedFund", VariableType.DATE),
    ("effectiveDate", VariableType.DATE),
    ("calculationDate", VariableType.DATE),
    ("benefitClass", VariableType.STRING),
    ("paymentType", VariableType.STRING),
    ("planNumber", VariableType.STRING),
    ("paymentTypeDesc", VariableType.STRING),
]

DATE_VALUE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

REQUIRED_FIELDS_VARIABLE = "requiredFields"


def is_engine_outage(error: BaseException) -> bool:
    """Only an unreachable or failing engine counts against the circuit."""
    if isinstance(error, EngineUnavailableError):
        return True
    if isinstance(error, EngineRequestError):
        return error.status is None or error.status >= 500
    return False


def infer_variable_type(value: Any) -> VariableType:
    if isinstance(value, bool):
        return VariableType.BOOLEAN
    if isinstance(value, (int, float)):
        return VariableType.DOUBLE
    if isinstance(value, str) and DATE_VALUE_PATTERN.search(value):
        return VariableType.DATE
    return VariableType.STRING


def to_engine_variables(variables: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Typed engine variables; entries already shaped as {value, type} pass through."""
    engine_variables = {}
    for name, value in variables.items():
        if isinstance(value, dict) and "value" in value and "type" in value:
            engine_variables[name] = value
            continue
        engine_variables[name] = {"value": value, "type": infer_variable_type(value).value}
    return engine_variables


@dataclass
class EngineResponse:
    status: int
    body: Any


class CamundaService:
    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str = CAMUNDA_BASE_URL,
        process_definition_key: str = PROCESS_DEFINITION_KEY,
        timeout: float = CAMUNDA_TIMEOUT,
        circuit: Optional[CircuitBreaker] = None,
    ):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.process_definition_key = process_definition_key
        self.timeout = timeout
        self.circuit = circuit or get_circuit_breaker(
            "camunda", CircuitBreakerConfig(is_failure=is_engine_outage)
        )

    # ---- transport ----

    async def _send(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        payload: Any = None,
        allow_not_found: bool = False,
    ) -> EngineResponse:
        url = f"{self.base_url}{path}"
        try:
            async with asyncio.timeout(self.timeout):
                async with self.session.request(method, url, params=params, json=payload) as response:
                    text = await response.text()
                    body = _parse_body(text)

                    if response.status == 404 and allow_not_found:
                        return EngineResponse(404, body)

                    if response.status >= 400:
                        message = body.get("message") if isinstance(body, dict) else None
                        raise EngineRequestError(
                            f"{response.status} {response.reason or ''}: {message or text}".strip(),
                            status=response.status,
                        )

                    return EngineResponse(response.status, body)

        except asyncio.TimeoutError:
            logger.error(f"Camunda {method} {path} timed out after {self.timeout}s")
            raise EngineUnavailableError(f"Camunda request timed out: {method} {path}")
        except aiohttp.ClientConnectionError as e:
            logger.error(f"Camunda {method} {path} connection error: {e}")
            raise EngineUnavailableError(f"Camunda engine unreachable: {e}") from e

    async def _call(self, method: str, path: str, **kwargs) -> EngineResponse:
        return await self.circuit.call(self._send, method, path, **kwargs)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(EngineUnavailableError),
        reraise=True
    )
    async def _get(self, path: str, **kwargs) -> EngineResponse:
        return await self._call("GET", path, **kwargs)

    async def check_connection(self) -> Tuple[bool, Optional[str]]:
        try:
            await self._get("/version")
            return True, None
        except (WorkflowError, CircuitOpenError) as e:
            return False, str(e)

    # ---- process and task operations ----

    async def start_process(self, request: Dict[str, Any]) -> str:
        """Start a process instance from the start-form data; returns its id."""
        path = f"/process-definition/key/{self.process_definition_key}/start"
        variables = {
            name: {"value": request.get(name), "type": var_type.value}
            for name, var_type in START_VARIABLES
        }

        try:
            response = await self._call("POST", path, payload={"variables": variables})
        except EngineRequestError as e:
            raise EngineRequestError(f"Failed to start process: {e}", status=e.status) from e

        body = response.body
        if isinstance(body, dict) and body.get("id"):
            logger.info(f"Started process instance {body['id']} ({self.process_definition_key})")
            return body["id"]

        raise EngineRequestError("Failed to start process: Failed to get process instance ID from response")

    async def find_task_id(self, process_instance_id: str) -> Optional[str]:
        """Id of the active task for a process instance, or None when there is none."""
        try:
            response = await self._get("/task", params={"processInstanceId": process_instance_id})
        except EngineRequestError as e:
            raise EngineRequestError(f"Failed to get task ID: {e}", status=e.status) from e

        tasks = response.body
        if isinstance(tasks, list) and tasks:
            return tasks[0].get("id")
        return None

    async def get_task_id(self, process_instance_id: str) -> str:
        task_id = await self.find_task_id(process_instance_id)
        if not task_id:
            raise TaskNotFoundError(process_instance_id)
        return task_id

    async def get_required_fields(self, task_id: str, process_instance_id: str) -> List[dict]:
        """The field descriptors the task's form asks for, read from its requiredFields variable."""
        try:
            response = await self._get(f"/task/{task_id}/form-variables")
        except EngineRequestError as e:
            raise EngineRequestError(
                f"Failed to get required fields for process {process_instance_id}: {e}", status=e.status
            ) from e

        body = response.body if isinstance(response.body, dict) else {}
        raw = (body.get(REQUIRED_FIELDS_VARIABLE) or {}).get("value")
        if raw is None or raw == "":
            raise RequiredFieldsError(
                f"Required fields not found for process {process_instance_id} (task {task_id})"
            )

        try:
            parsed = json.loads(raw) if isinstance(raw, str) else raw
            if not isinstance(parsed, list):
                raise ValueError("requiredFields is not a list")
            fields = parse_field_descriptors(parsed)
        except ValueError as e:
            raise RequiredFieldsError(
                f"Failed to parse required fields for process {process_instance_id}: {e}"
            ) from e

        return [f.to_wire() for f in fields]

    async def complete_task_with_variables(self, task_id: str, variables: Dict[str, Any]) -> None:
        path = f"/task/{task_id}/complete"
        try:
            await self._call("POST", path, payload={"variables": to_engine_variables(variables)})
        except EngineRequestError as e:
            if e.status == 400:
                raise InvalidVariablesError(f"Failed to complete task {task_id}: {e}") from e
            raise EngineRequestError(f"Failed to complete task: {e}", status=e.status) from e
        logger.info(f"Completed task {task_id} with {len(variables)} variables")

    async def complete_task_direct(self, task_id: str, request_body: Dict[str, Any]) -> None:
        """Complete a task with the body forwarded as-is."""
        try:
            await self._call("POST", f"/task/{task_id}/complete", payload=request_body)
        except EngineRequestError as e:
            raise EngineRequestError(f"Failed to complete task: {e}", status=e.status) from e
        logger.info(f"Completed task {task_id} directly")

    async def get_process_variables(self, process_instance_id: str) -> Dict[str, Any]:
        """All variables of a process instance by name; object values are JSON strings."""
        try:
            response = await self._get(
                "/variable-instance", params={"processInstanceIdIn": process_instance_id}
            )
        except EngineRequestError as e:
            raise EngineRequestError(f"Failed to get process variables: {e}", status=e.status) from e

        variables: Dict[str, Any] = {}
        if isinstance(response.body, list):
            for variable in response.body:
                value = variable.get("value")
                if isinstance(value, (dict, list)):
                    value = json.dumps(value)
                variables[variable.get("name")] = value
        return variables

    async def get_sub_process_instance_id(self, super_process_instance_id: str) -> Optional[str]:
        try:
            response = await self._get(
                "/process-instance", params={"superProcessInstance": super_process_instance_id}
            )
        except (WorkflowError, CircuitOpenError) as e:
            logger.error(f"Failed to get subprocess instance ID: {e}")
            return None

        processes = response.body
        if isinstance(processes, list) and processes:
            return processes[0].get("id")
        return None

    async def is_process_completed(self, process_instance_id: str) -> bool:
        """A runtime instance that is gone (404) has finished; otherwise check its end state."""
        try:
            response = await self._get(f"/process-instance/{process_instance_id}", allow_not_found=True)
        except EngineRequestError as e:
            logger.debug(f"Runtime lookup failed for {process_instance_id}, checking history: {e}")
            return await self._check_process_in_history(process_instance_id)

        body = response.body
        if response.status == 404 or not body:
            return True
        if not isinstance(body, dict):
            return False
        return bool(body.get("ended")) or body.get("endTime") is not None

    async def _check_process_in_history(self, process_instance_id: str) -> bool:
        try:
            response = await self._get(
                f"/history/process-instance/{process_instance_id}", allow_not_found=True
            )
        except EngineRequestError:
            return False

        if response.status == 404:
            return True
        body = response.body
        return isinstance(body, dict) and body.get("endTime") is not None


def _parse_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text
