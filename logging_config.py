import os
import sys
import logging
from typing import Optional

from loguru import logger

NOISY_LIBRARIES = ['aiohttp.access', 'aiohttp.client', 'uvicorn.access', 'httpx', 'httpcore', 'urllib3']


def setup_logging(debug: Optional[bool] = None, json_logs: Optional[bool] = None):
    """Single stderr sink: JSON lines in production, coloured text elsewhere."""
    if debug is None:
        debug = os.getenv("DEBUG", "false").lower() in ["true", "1", "yes"]

    env = os.getenv("ENV", "local")
    if json_logs is None:
        json_logs = env == "production"
    level = "DEBUG" if debug else "INFO"

    logger.remove()

    if json_logs:
        logger.add(sys.stderr, level=level, format="{message}", serialize=True)
    else:
        logger.add(
            sys.stderr,
            level=level,
            format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        )

    for lib in NOISY_LIBRARIES:
        logging.getLogger(lib).setLevel(logging.WARNING)

    if debug:
        logger.info(f"Debug logging enabled (env={env}, json={json_logs})")
