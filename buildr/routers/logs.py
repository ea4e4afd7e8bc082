import logging
import secrets

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from buildr.config import settings
from buildr.dependencies import get_db
from buildr.schemas.event_log import LogEventCreate
from buildr.services import log_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["logs"])


@router.post("/log")
async def log_event(request: Request, db: AsyncSession = Depends(get_db)):
    # Logging must never break the caller; every failure is reported as a 200
    try:
        data = LogEventCreate.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        logger.warning("Rejected log event: %s", e)
        return {"success": False, "error": "Invalid log event"}

    try:
        await log_service.record_event(
            db, data, user_agent=request.headers.get("user-agent"), url=request.headers.get("referer")
        )
    except (SQLAlchemyError, OSError):
        logger.exception("Failed to store %s event", data.type)
        return {"success": False, "error": "Database unavailable"}

    return {"success": True}


@router.get("/debug/logs")
async def debug_logs(
    key: str | None = None,
    limit: int = 50,
    type: str | None = None,
    severity: str | None = None,
    hours: int = 24,
    db: AsyncSession = Depends(get_db),
):
    if not settings.debug_api_key or not key or not secrets.compare_digest(key, settings.debug_api_key):
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    try:
        report = await log_service.debug_report(db, hours=hours, limit=limit, type=type, severity=severity)
    except SQLAlchemyError:
        logger.exception("Debug log query failed")
        return JSONResponse({"error": "Internal error"}, status_code=500)

    return JSONResponse(report, headers={"Cache-Control": "no-store"})
