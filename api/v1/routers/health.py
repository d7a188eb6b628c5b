"""Health check router."""

from fastapi import APIRouter

from core.config import settings
from schemas.health import HealthResponse

router = APIRouter(tags=["Health"])

@router.get("/health", response_model=HealthResponse, summary="Health check endpoint")
def health_check() -> HealthResponse:
    """Check if the service is up. Does not touch the graph store."""
    return HealthResponse(status="healthy", message=f"{settings.app_name} {settings.app_version} is running")
