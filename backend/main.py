import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.lifespan import lifespan
from backend.exceptions import register_exception_handlers
from backend.api import benefit, health
from backend.config import ALLOWED_ORIGINS
from backend.constants import API_PREFIX

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Benefit Calculator Workflow API",
    version="1.0.0",
    lifespan=lifespan
)

logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=600
)

register_exception_handlers(app)

app.include_router(health.router, tags=["Health"])
app.include_router(benefit.router, prefix=f"{API_PREFIX}/benefit", tags=["Benefit"])
