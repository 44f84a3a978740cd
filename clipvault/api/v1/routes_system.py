from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.api import deps

from .schemas import HealthResponse, ReadinessResponse


router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse, summary="Liveness probe")
async def health(settings: deps.SettingsDependency) -> HealthResponse:
    return HealthResponse(version=settings.version, environment=settings.environment)


@router.get("/ready", response_model=ReadinessResponse, summary="Readiness probe (database round-trip)")
async def ready(session: AsyncSession = Depends(deps.get_session)) -> ReadinessResponse:
    await session.execute(text("SELECT 1"))
    return ReadinessResponse(database=True)


__all__ = ["router"]
