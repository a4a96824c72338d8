from fastapi import APIRouter

from schemas import DetailedHealthResponse, HealthResponse
from services.health_service import get_detailed_health, get_health

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def read_health() -> HealthResponse:
    return get_health()


@router.get("/detailed", response_model=DetailedHealthResponse)
async def read_detailed_health() -> DetailedHealthResponse:
    return get_detailed_health()
