import os
from typing import List, Tuple

from dotenv import load_dotenv
from loguru import logger

load_dotenv()

ENV = os.getenv("ENV", "local")

CAMUNDA_BASE_URL = os.getenv(
    "CAMUNDA_BASE_URL",
    "https://eqs-dba-camunda-server-dev.azurewebsites.net/engine-rest",
).rstrip("/")
PROCESS_DEFINITION_KEY = os.getenv("PROCESS_DEFINITION_KEY", "dba-calculator")
CAMUNDA_TIMEOUT = float(os.getenv("CAMUNDA_TIMEOUT", "30"))

# Subprocess wait: short polls first, then slower ones, inside a fixed budget (seconds)
SUBPROCESS_WAIT_BUDGET = float(os.getenv("SUBPROCESS_WAIT_BUDGET", "8"))
SUBPROCESS_POLL_INTERVAL = float(os.getenv("SUBPROCESS_POLL_INTERVAL", "0.1"))
SUBPROCESS_BACKOFF_INTERVAL = float(os.getenv("SUBPROCESS_BACKOFF_INTERVAL", "0.5"))
SUBPROCESS_BACKOFF_AFTER = int(os.getenv("SUBPROCESS_BACKOFF_AFTER", "5"))

ALLOWED_ORIGINS = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]

REQUIRED_BACKEND_ENV_VARS = []

# Outside local development the engine and CORS origins must be set explicitly
if ENV in ("production", "test"):
    REQUIRED_BACKEND_ENV_VARS.extend(["CAMUNDA_BASE_URL", "ALLOWED_ORIGINS"])


def validate_env_vars(required_vars: List[str]) -> Tuple[bool, List[str]]:
    missing = [var for var in required_vars if not os.getenv(var)]
    return len(missing) == 0, missing


async def validate_backend_startup() -> None:
    import aiohttp

    from backend.camunda import CamundaService

    logger.info("Validating backend environment...")

    all_present, missing = validate_env_vars(REQUIRED_BACKEND_ENV_VARS)
    if not all_present:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")
    logger.info("✓ Required environment variables present")

    if SUBPROCESS_WAIT_BUDGET <= 0:
        raise RuntimeError("SUBPROCESS_WAIT_BUDGET must be greater than 0")

    async with aiohttp.ClientSession() as session:
        is_healthy, error = await CamundaService(session).check_connection()
    if not is_healthy:
        raise RuntimeError(f"Camunda engine check failed: {error}")

    logger.info(f"✓ Camunda engine reachable at {CAMUNDA_BASE_URL}")
    logger.info("Backend validation complete - ready to start")
