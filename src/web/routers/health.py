"""
Health Check Endpoints

Provides:
1. /health/live - Simple liveness probe
2. /health/ready - Readiness probe (database reachable)
"""

import logging
from datetime import datetime

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from database.async_engine import check_database_connection

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

# Application start time for uptime calculation
_start_time = datetime.utcnow()


@router.get("/live", name="health.live")
async def liveness():
    return {"status": "alive", "uptime_seconds": int((datetime.utcnow() - _start_time).total_seconds())}


@router.get("/ready", name="health.ready")
async def readiness():
    if await check_database_connection():
        return {"status": "ready", "database": "ok"}
    logger.warning("Readiness check failed: database unreachable")
    return JSONResponse(status_code=503, content={"status": "not_ready", "database": "unreachable"})
