"""Health check endpoint.

Always 200 so load balancers keep routing; dependency state is reported
in the body. The database check reuses the app's own engine with a short
timeout and reports ``disabled`` when the app runs on in-memory stores.
"""

from __future__ import annotations

import asyncio

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from roomrevive.api.deps import Services, get_services
from roomrevive.config import settings

logger = structlog.get_logger()

router = APIRouter(tags=["health"])

VERSION = "0.1.0"
_CHECK_TIMEOUT = 3.0  # seconds


async def _select_one(engine: AsyncEngine) -> None:
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def _check_postgres(engine: AsyncEngine | None) -> str:
    if engine is None:
        return "disabled"
    try:
        await asyncio.wait_for(_select_one(engine), timeout=_CHECK_TIMEOUT)
    except Exception as exc:
        logger.warning("health_postgres_failed", error_type=type(exc).__name__, error=str(exc))
        return "disconnected"
    return "connected"


def _check_gateway() -> str:
    return "configured" if settings.ai_gateway_api_key else "missing_api_key"


@router.get("/health")
async def health_check(services: Services = Depends(get_services)) -> dict:
    return {
        "status": "ok",
        "version": VERSION,
        "environment": settings.environment,
        "postgres": await _check_postgres(services.engine),
        "ai_gateway": _check_gateway(),
    }
