"""
Complete-step client.

The complete endpoint answers with one of three body shapes. classify_response()
decides which one once, at the boundary, and submit_calculation() acts on the
result:

- ErrorResponse:       body has an "error" key (checked first)
- CalculationResponse: body has a "success" key
- UnrecognizedResponse: anything else, treated as a successful result
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import aiohttp
from loguru import logger

from client.base_api import ApiResponseError, BaseApiService
from client.config import API_ENDPOINTS
from core.field_schema import SubmissionPayload


@dataclass(frozen=True)
class ErrorResponse:
    error: Any
    code: Optional[str] = None
    details: Any = None


@dataclass(frozen=True)
class CalculationResponse:
    body: Dict[str, Any]


@dataclass(frozen=True)
class UnrecognizedResponse:
    body: Any


CompleteResponse = Union[ErrorResponse, CalculationResponse, UnrecognizedResponse]


def is_api_error(body: Any) -> bool:
    return isinstance(body, dict) and "error" in body


def is_calculation_result(body: Any) -> bool:
    return isinstance(body, dict) and "success" in body


def classify_response(body: Any) -> CompleteResponse:
    if is_api_error(body):
        return ErrorResponse(body["error"], body.get("code"), body.get("details"))
    if is_calculation_result(body):
        return CalculationResponse(body)
    return UnrecognizedResponse(body)


class BenefitCalculatorCompleteService(BaseApiService):
    def __init__(self, session: aiohttp.ClientSession, endpoint: Optional[str] = None, **kwargs):
        super().__init__(endpoint or API_ENDPOINTS["complete_benefit_calculator"], session, **kwargs)

    async def submit_calculation(self, payload: SubmissionPayload) -> Dict[str, Any]:
        body = await self._make_request(self.base_url, payload)
        response = classify_response(body)

        if isinstance(response, ErrorResponse):
            message = str(response.error) if response.error else "Unknown API error"
            logger.warning(f"Calculation rejected for {payload.get('processInstanceId')}: {message}")
            raise ApiResponseError(message, code=response.code, details=response.details)

        if isinstance(response, CalculationResponse):
            return response.body

        logger.debug("Unrecognized complete response, wrapping as success")
        return {"success": True, "data": response.body}
