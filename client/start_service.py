from typing import Any, Dict, Optional

import aiohttp
from loguru import logger

from client.base_api import ApiResponseError, BaseApiService
from client.config import API_ENDPOINTS


class BenefitCalculatorStartService(BaseApiService):
    def __init__(self, session: aiohttp.ClientSession, endpoint: Optional[str] = None, **kwargs):
        super().__init__(endpoint or API_ENDPOINTS["start_benefit_calculator"], session, **kwargs)

    async def start_process(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        Start a calculation process. The request is sent verbatim; errors from
        the request layer propagate unchanged.
        """
        response = await self._make_request(self.base_url, request)
        if not isinstance(response, dict):
            raise ApiResponseError("Invalid response from server")

        logger.info(f"Process started: {response.get('processInstanceId')}")
        return {**response, "success": True}
