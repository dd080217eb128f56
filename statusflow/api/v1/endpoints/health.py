"""Health check endpoint. No dependencies; used for liveness probes."""

from fastapi import APIRouter

from statusflow import __version__
from statusflow.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse(version=__version__)
