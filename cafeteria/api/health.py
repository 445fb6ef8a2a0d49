"""
Cafeteria — Health endpoint
"""
import asyncio

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text

from cafeteria.core.broadcast import get_broadcaster
from cafeteria.core.config import get_settings
from cafeteria.db.database import engine
from cafeteria.schemas.auth import HealthResponse

settings = get_settings()
router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Deep health check — verifies the database and the broadcast backend.
    Returns 200 if all dependencies are healthy, 503 otherwise.
    """
    deps: dict[str, str] = {}
    healthy = True

    try:
        async with engine.connect() as conn:
            await asyncio.wait_for(conn.execute(text("SELECT 1")), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps["database"] = "ok"
    except Exception as e:
        deps["database"] = f"error: {str(e)[:100]}"
        healthy = False

    try:
        broadcaster = get_broadcaster()
        await asyncio.wait_for(broadcaster.ping(), timeout=settings.HEALTH_CHECK_TIMEOUT)
        deps[f"broadcast:{settings.BROADCAST_BACKEND}"] = "ok"
    except Exception as e:
        deps[f"broadcast:{settings.BROADCAST_BACKEND}"] = f"error: {str(e)[:100]}"
        healthy = False

    response = HealthResponse(
        status="healthy" if healthy else "degraded",
        service=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        dependencies=deps,
    )
    return JSONResponse(content=response.model_dump(), status_code=200 if healthy else 503)
