"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health     -- simple health check
GET /api/v1/admin/health/db  -- database connectivity check
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from rideshare.api.dependencies import get_database
from rideshare.api.schemas import DatabaseHealthResponse, HealthResponse
from rideshare.infrastructure.database import Database

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()


@router.get(
    "/health/db",
    response_model=DatabaseHealthResponse,
    summary="Database connectivity check",
    responses={503: {"model": DatabaseHealthResponse}},
)
async def database_health(db: Database = Depends(get_database)):
    try:
        await db.ping()
    except (SQLAlchemyError, OSError):
        logger.exception("Database health check failed")
        return JSONResponse(status_code=503, content={"db": "error"})
    return DatabaseHealthResponse(db="connected")
