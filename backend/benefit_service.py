"""
Benefit calculation orchestration over the Camunda process.

    start -> active task -> required fields
    complete task -> main process variables -> (subprocess wait) -> final results

The subprocess wait is bounded by a PollPolicy; when the budget runs out the
result degrades to whatever subprocess data is already there instead of failing.
"""
import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional

from loguru import logger

from backend.camunda import CamundaService
from backend.constants import RESULT_MESSAGE
from backend.exceptions import (
    EngineRequestError,
    ProcessNotCompletedError,
    ProcessNotFoundError,
    WorkflowError,
)
from backend.mappers import has_sub_process_data, map_to_member_data, map_to_sub_process_data
from backend.resilience import CircuitOpenError, PollPolicy, poll_until


class BenefitCalculationService:
    def __init__(
        self,
        camunda: CamundaService,
        poll_policy: Optional[PollPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.camunda = camunda
        self.poll_policy = poll_policy or PollPolicy()
        self.sleep = sleep
        self.clock = clock

    async def start_benefit_calculation(self, request: Dict[str, Any]) -> Dict[str, Any]:
        process_instance_id = await self.camunda.start_process(request)
        task_id = await self.camunda.get_task_id(process_instance_id)
        required_fields = await self.camunda.get_required_fields(task_id, process_instance_id)

        logger.info(
            f"Benefit calculation started: process={process_instance_id} task={task_id} "
            f"fields={len(required_fields)}"
        )
        return {
            "processInstanceId": process_instance_id,
            "taskId": task_id,
            "requiredFields": required_fields,
        }

    async def get_task_details(self, process_instance_id: str) -> Dict[str, Any]:
        task_id = await self.camunda.get_task_id(process_instance_id)
        required_fields = await self.camunda.get_required_fields(task_id, process_instance_id)
        return {"taskId": task_id, "requiredFields": required_fields}

    async def complete_task(self, process_instance_id: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        task_id = await self.camunda.get_task_id(process_instance_id)
        await self.camunda.complete_task_with_variables(task_id, variables)
        return await self.get_final_results(process_instance_id, task_id)

    async def complete_task_direct(self, task_id: str, request_body: Dict[str, Any]) -> Dict[str, Any]:
        await self.camunda.complete_task_direct(task_id, request_body)
        return {"success": True, "message": RESULT_MESSAGE, "taskId": task_id}

    async def wait_for_sub_process_completion(self, sub_process_instance_id: str) -> bool:
        return await poll_until(
            lambda: self.camunda.is_process_completed(sub_process_instance_id),
            self.poll_policy,
            sleep=self.sleep,
            clock=self.clock,
            label=f"Subprocess {sub_process_instance_id}",
        )

    async def get_final_results(self, process_instance_id: str, task_id: Optional[str]) -> Dict[str, Any]:
        """
        Member data from the main process plus the subprocess's calculated values.

        With task_id None (results looked up later) the main process must have
        no active task left and must exist in the engine.
        """
        if task_id is None:
            active_task = await self.camunda.find_task_id(process_instance_id)
            if active_task:
                raise ProcessNotCompletedError(process_instance_id)

        try:
            main_variables = await self.camunda.get_process_variables(process_instance_id)
        except EngineRequestError as e:
            raise EngineRequestError(f"Failed to get final results: {e}", status=e.status) from e

        if task_id is None and not main_variables:
            raise ProcessNotFoundError(process_instance_id)

        response = {
            "message": RESULT_MESSAGE,
            "processInstanceId": process_instance_id,
            "taskId": task_id,
            "memberData": map_to_member_data(main_variables),
            "subProcessData": {},
        }

        sub_process_instance_id = await self.camunda.get_sub_process_instance_id(process_instance_id)
        if not sub_process_instance_id:
            logger.info(f"No subprocess found for {process_instance_id}")
            return response

        logger.info(f"Found subprocess {sub_process_instance_id}, waiting for completion...")
        if await self.wait_for_sub_process_completion(sub_process_instance_id):
            try:
                sub_variables = await self.camunda.get_process_variables(sub_process_instance_id)
                response["subProcessData"] = map_to_sub_process_data(sub_variables)
            except (WorkflowError, CircuitOpenError) as e:
                logger.error(f"Failed to fetch variables for completed subprocess {sub_process_instance_id}: {e}")
            return response

        # Out of budget: take whatever the subprocess has produced so far
        try:
            sub_data = map_to_sub_process_data(
                await self.camunda.get_process_variables(sub_process_instance_id)
            )
            if has_sub_process_data(sub_data):
                response["subProcessData"] = sub_data
                logger.warning(f"Subprocess {sub_process_instance_id} variables retrieved despite timeout")
            else:
                logger.warning(f"Subprocess {sub_process_instance_id} timed out with no data")
        except (WorkflowError, CircuitOpenError) as e:
            logger.warning(f"Failed to get subprocess {sub_process_instance_id} variables after timeout: {e}")

        response["message"] = f"{RESULT_MESSAGE} {task_id}, subprocess may still be processing"
        return response
