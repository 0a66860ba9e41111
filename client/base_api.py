"""
Shared HTTP plumbing for the wizard's calls to the benefit calculation API.

Errors:
- NetworkError: no usable response (connection failure, timeout)
- ApiRequestError: non-2xx response, message taken from the body when present
- ApiResponseError: 2xx response whose body reports a failure or can't be read
"""
import asyncio
import json
import math
from typing import Any, Optional

import aiohttp
from loguru import logger

from client.config import API_TIMEOUT

NETWORK_ERROR_MESSAGE = "Network error. Please check your internet connection and try again."

# Fallbacks when the server doesn't say what went wrong
DEFAULT_STATUS_MESSAGES = {
    400: "Invalid request data",
    401: "Unauthorized access",
    403: "Access forbidden",
    404: "Service not found",
    500: "Internal server error. Please try again later.",
}

USER_STATUS_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    401: "Authentication required. Please log in again.",
    403: "You do not have permission to perform this action.",
    404: "The requested resource was not found.",
    408: "Request timeout. Please try again.",
    409: "Conflict occurred. The resource may have been modified by another user.",
    422: "Invalid data provided. Please check your input.",
    429: "Too many requests. Please wait a moment before trying again.",
    500: "Internal server error. Please try again later.",
    502: "Service temporarily unavailable. Please try again later.",
    503: "Service temporarily unavailable. Please try again later.",
    504: "Request timeout. Please try again later.",
}

RETRYABLE_STATUSES = {408, 429}


def _finite_or_none(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _finite_or_none(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_finite_or_none(v) for v in value]
    return value


def to_json_body(payload: Any) -> str:
    """JSON request body; NaN and infinities are sent as null."""
    return json.dumps(_finite_or_none(payload), allow_nan=False)


class ApiError(Exception):
    """Base for every failure raised by the API services."""
    pass


class NetworkError(ApiError):
    retryable = True


class ApiRequestError(ApiError):
    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.status >= 500 or self.status in RETRYABLE_STATUSES


class ApiResponseError(ApiError):
    def __init__(self, message: str, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    retryable = False


def get_error_message(error: BaseException) -> str:
    message = getattr(error, "message", None) or str(error)
    return message or "An unexpected error occurred"


def get_api_error_message(status: int, default_message: Optional[str] = None) -> str:
    """User-facing text for a status code; an explicit message wins."""
    return default_message or USER_STATUS_MESSAGES.get(
        status, f"An error occurred ({status}). Please try again."
    )


class BaseApiService:
    def __init__(self, endpoint: str, session: aiohttp.ClientSession, timeout: float = API_TIMEOUT):
        self.base_url = endpoint
        self.session = session
        self.timeout = timeout

    async def _make_request(self, url: str, payload: Any) -> Any:
        """POST a JSON body and return the decoded JSON response."""
        try:
            async with asyncio.timeout(self.timeout):
                async with self.session.post(
                    url,
                    data=to_json_body(payload),
                    headers={"Content-Type": "application/json"},
                ) as response:
                    data = await self._read_json(response)

                    if response.status >= 400:
                        message = self._get_error_message(response.status, data)
                        logger.warning(f"POST {url} failed with {response.status}: {message}")
                        raise ApiRequestError(response.status, message)

                    if data is None:
                        raise ApiResponseError("Invalid response from server")

                    return data

        except asyncio.TimeoutError:
            logger.error(f"POST {url} timed out after {self.timeout}s")
            raise NetworkError(get_api_error_message(408))
        except aiohttp.ClientError as e:
            logger.error(f"POST {url} failed: {e}")
            raise NetworkError(NETWORK_ERROR_MESSAGE) from e

    @staticmethod
    async def _read_json(response: aiohttp.ClientResponse) -> Any:
        try:
            return await response.json(content_type=None)
        except ValueError:
            return None

    @staticmethod
    def _get_error_message(status: int, data: Any) -> str:
        message = data.get("message") if isinstance(data, dict) else None
        if isinstance(message, str) and message:
            return message
        return DEFAULT_STATUS_MESSAGES.get(status, f"Unexpected error: {status}")
