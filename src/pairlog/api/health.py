"""
Health check endpoint.
"""

from typing import Dict

from fastapi import APIRouter

from ..models import HealthResponse

router = APIRouter()


@router.get(
    "/api/health",
    response_model=HealthResponse,
    summary="Liveness check",
)
async def health_check() -> Dict[str, str]:
    """Always returns 200 if the service is running."""
    return {"status": "ok"}
