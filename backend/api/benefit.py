"""Benefit calculation endpoints"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request

from backend.benefit_service import BenefitCalculationService
from backend.constants import Operation
from backend.dependencies import get_benefit_service
from backend.responses import success_envelope
from backend.schemas import (
    CompleteTaskRequest,
    ErrorResponse,
    ProcessResponse,
    StartProcessRequest,
    TaskDetailsResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post(
    "/start",
    name=Operation.START.value,
    response_model=ProcessResponse,
    responses=ERROR_RESPONSES,
)
async def start_benefit_calculation(
    start_request: StartProcessRequest,
    service: BenefitCalculationService = Depends(get_benefit_service)
):
    """Start a calculation process and return the fields its first task needs"""
    logger.info(f"Starting benefit calculation for member {start_request.memberId}")
    return await service.start_benefit_calculation(start_request.model_dump())


@router.get(
    "/task/{process_instance_id}",
    name=Operation.TASK_DETAILS.value,
    response_model=TaskDetailsResponse,
    responses=ERROR_RESPONSES,
)
async def get_task_details(
    process_instance_id: str,
    service: BenefitCalculationService = Depends(get_benefit_service)
):
    return await service.get_task_details(process_instance_id)


@router.post("/complete", name=Operation.COMPLETE.value, responses=ERROR_RESPONSES)
async def complete_task(
    complete_request: CompleteTaskRequest,
    request: Request,
    service: BenefitCalculationService = Depends(get_benefit_service)
):
    """Complete the process's active task and return the calculation results"""
    result = await service.complete_task(complete_request.processInstanceId, complete_request.variables)

    logger.info(
        f"Task completed successfully: process={result['processInstanceId']} task={result['taskId']}"
    )
    return success_envelope(request, result)


@router.post("/complete-task/{task_id}", name=Operation.COMPLETE_DIRECT.value, responses=ERROR_RESPONSES)
async def complete_task_direct(
    task_id: str,
    request_body: Dict[str, Any] = Body(...),
    service: BenefitCalculationService = Depends(get_benefit_service)
):
    """Complete a task by id, forwarding the body to the engine unchanged"""
    return await service.complete_task_direct(task_id, request_body)


@router.get("/results/{process_instance_id}", name=Operation.RESULTS.value, responses=ERROR_RESPONSES)
async def get_final_results(
    process_instance_id: str,
    request: Request,
    service: BenefitCalculationService = Depends(get_benefit_service)
):
    result = await service.get_final_results(process_instance_id, None)

    logger.info(f"Final results retrieved: process={result['processInstanceId']}")
    return success_envelope(request, result)
