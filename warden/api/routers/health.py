"""
Warden - Health Router
======================

Health check and system status endpoints.
"""

import os
import sqlite3
import time

import psutil
from fastapi import APIRouter, Depends

from warden.api.dependencies import get_engine
from warden.api.models.base import APIResponse, HealthStatus, SystemHealth
from warden.core.logger import logger
from warden.engine import ModerationEngine


router = APIRouter(prefix="/health", tags=["Health"])

# Track startup time
_start_time = time.time()


def _db_status(engine: ModerationEngine) -> tuple:
    """(connected, report count) for the engine's database."""
    try:
        return True, engine.db.count_reports()
    except sqlite3.Error as e:
        logger.warning("Health Check DB Failure", [("Error", str(e)[:100])])
        return False, 0


@router.get("", response_model=APIResponse[HealthStatus])
async def health_check(engine: ModerationEngine = Depends(get_engine)) -> APIResponse[HealthStatus]:
    """
    Basic health check endpoint.

    Returns simple status for load balancers and monitoring.
    """
    db_connected, reports = _db_status(engine)
    return APIResponse(
        data=HealthStatus(
            status="healthy" if db_connected else "degraded",
            run_id=logger.run_id,
            db_connected=db_connected,
            bridge_enabled=engine.bridge is not None,
            reports=reports,
        ),
    )


@router.get("/detailed", response_model=APIResponse[SystemHealth])
async def detailed_health(engine: ModerationEngine = Depends(get_engine)) -> APIResponse[SystemHealth]:
    """Health plus process memory, CPU and database file size."""
    process = psutil.Process(os.getpid())
    memory_mb = process.memory_info().rss / (1024 * 1024)
    cpu_percent = process.cpu_percent(interval=0.1)

    db_connected, reports = _db_status(engine)
    db_size = None
    if engine.db.db_path.exists():
        db_size = engine.db.db_path.stat().st_size / (1024 * 1024)

    health = SystemHealth(
        status="healthy" if db_connected else "degraded",
        run_id=logger.run_id,
        db_connected=db_connected,
        bridge_enabled=engine.bridge is not None,
        reports=reports,
        uptime_seconds=int(time.time() - _start_time),
        memory_mb=round(memory_mb, 2),
        cpu_percent=round(cpu_percent, 2),
        db_size_mb=round(db_size, 2) if db_size is not None else None,
    )

    logger.debug("Health Check (Detailed)", [
        ("Status", health.status),
        ("Memory", f"{health.memory_mb}MB"),
        ("CPU", f"{health.cpu_percent}%"),
        ("Reports", str(reports)),
    ])

    return APIResponse(data=health)


__all__ = ["router"]
