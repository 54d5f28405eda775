"""
Health check endpoints
"""

from typing import Any
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text, func, select

from app.core.database import get_session
from app.core.redis import get_redis
from app.config import settings
from app.services.history_service import history_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/live")
async def liveness() -> Any:
    """
    Kubernetes liveness probe
    """
    return {"status": "alive", "service": "gameon-registrations"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),
    redis_client = Depends(get_redis)
) -> Any:
    """
    Kubernetes readiness probe - checks all dependencies
    """
    checks = {
        "database": False,
        "redis": False,
        "api": True
    }

    try:
        result = await db.execute(text("SELECT 1"))
        checks["database"] = result.scalar() == 1
    except Exception as e:
        logger.warning(f"Readiness database check failed: {e}")

    try:
        await redis_client.ping()
        checks["redis"] = True
    except Exception as e:
        logger.warning(f"Readiness redis check failed: {e}")

    all_healthy = all(checks.values())

    return {
        "status": "ready" if all_healthy else "not ready",
        "checks": checks,
        # Informational; history keeps working in memory without the table
        "history_table": await history_service.table_available(db) if checks["database"] else False,
        "version": settings.APP_VERSION
    }


@router.get("/status")
async def system_status(
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Get system status and counts
    """
    from app.models.event import Event
    from app.models.registration import Registration, WaitingList
    from app.models.user import User

    events_count = await db.execute(select(func.count(Event.id)))
    registrations_count = await db.execute(select(func.count(Registration.id)))
    waiting_count = await db.execute(select(func.count(WaitingList.id)))
    users_count = await db.execute(select(func.count(User.id)))

    return {
        "status": "operational",
        "environment": settings.APP_ENV,
        "version": settings.APP_VERSION,
        "statistics": {
            "total_events": events_count.scalar() or 0,
            "total_registrations": registrations_count.scalar() or 0,
            "total_waiting": waiting_count.scalar() or 0,
            "total_users": users_count.scalar() or 0
        }
    }
