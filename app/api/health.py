from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.config import settings
from app.db import check_db_connection
from app.utils.logger import setup_logger

logger = setup_logger("api.health")

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health():
    """Service and database liveness check."""
    try:
        await check_db_connection()
    except RuntimeError:
        logger.warning("Health check failed: database unreachable")
        return JSONResponse(
            status_code=503,
            content={"ok": False, "detail": settings.db_unavailable_hint},
        )
    return {"ok": True}
