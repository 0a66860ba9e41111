from fastapi import APIRouter

from backend.config import CAMUNDA_BASE_URL, PROCESS_DEFINITION_KEY
from backend.resilience import CircuitState, get_all_circuit_statuses

router = APIRouter()


@router.get("/")
async def root():
    return {
        "service": "Benefit Calculator - Workflow API",
        "version": "1.0",
        "status": "operational",
        "endpoints": {
            "health": "/health",
            "benefit": "/api/v1/benefit/*"
        },
        "documentation": "/docs"
    }


@router.get("/health")
async def health():
    circuits = get_all_circuit_statuses()
    engine = circuits.get("camunda")
    is_open = engine is not None and engine["state"] == CircuitState.OPEN.value

    return {
        "status": "degraded" if is_open else "healthy",
        "service": "benefit-calculator-api",
        "engine": {
            "url": CAMUNDA_BASE_URL,
            "process_definition_key": PROCESS_DEFINITION_KEY,
            "circuit": engine["state"] if engine else CircuitState.CLOSED.value
        }
    }
