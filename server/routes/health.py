"""Health check endpoint."""

from datetime import datetime

from fastapi import APIRouter, Request

from server.schemas.responses import HealthResponseDTO

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponseDTO)
async def health_check(request: Request):
    """Health check endpoint."""
    pipeline = getattr(request.app.state, "pipeline", None)
    return HealthResponseDTO(
        status="healthy",
        timestamp=datetime.utcnow().isoformat() + "Z",
        version=request.app.version,
        web_search_available=bool(pipeline and pipeline.search_client),
    )
