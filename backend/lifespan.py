from contextlib import asynccontextmanager
import aiohttp
from fastapi import FastAPI
from loguru import logger

from backend.benefit_service import BenefitCalculationService
from backend.camunda import CamundaService
from backend.config import (
    CAMUNDA_BASE_URL,
    SUBPROCESS_BACKOFF_AFTER,
    SUBPROCESS_BACKOFF_INTERVAL,
    SUBPROCESS_POLL_INTERVAL,
    SUBPROCESS_WAIT_BUDGET,
)
from backend.resilience import PollPolicy


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting...")

    app.state.http_session = aiohttp.ClientSession()
    logger.info("HTTP session created")

    camunda = CamundaService(app.state.http_session)
    poll_policy = PollPolicy(
        initial_interval=SUBPROCESS_POLL_INTERVAL,
        backoff_interval=SUBPROCESS_BACKOFF_INTERVAL,
        backoff_after=SUBPROCESS_BACKOFF_AFTER,
        budget=SUBPROCESS_WAIT_BUDGET,
    )
    app.state.benefit_service = BenefitCalculationService(camunda, poll_policy)
    logger.info(f"Benefit service ready (engine: {CAMUNDA_BASE_URL}, wait budget: {poll_policy.budget}s)")

    logger.info("Application ready")

    yield

    logger.info("Shutdown signal received...")
    await app.state.http_session.close()
    logger.info("HTTP session closed")
    logger.info("Graceful shutdown complete")
