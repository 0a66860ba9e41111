import os
import asyncio
import uvicorn
from dotenv import load_dotenv
from loguru import logger

# Load environment variables from .env file
load_dotenv()

from logging_config import setup_logging
from backend.config import validate_backend_startup
from backend.main import app

if __name__ == "__main__":
    setup_logging()

    logger.info("=" * 60)
    logger.info("Benefit Calculator - Workflow API")
    logger.info("=" * 60)

    try:
        asyncio.run(validate_backend_startup())
    except RuntimeError as e:
        logger.error(f"❌ Startup validation failed: {e}")
        logger.error("Cannot start application - fix configuration and try again")
        exit(1)

    logger.info("Starting Benefit Calculator API server...")
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", 8080)))
