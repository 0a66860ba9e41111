"""Dependency injection providers for FastAPI"""
from fastapi import Request

from backend.benefit_service import BenefitCalculationService


def get_benefit_service(request: Request) -> BenefitCalculationService:
    return request.app.state.benefit_service
