from __future__ import annotations

import asyncio
import shutil
import subprocess
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import APIRouter
from pydantic import BaseModel, Field

from clipvault.api import deps
from clipvault.core.errors import ForbiddenError
from clipvault.ingest.probe import FFPROBE_BINARY
from clipvault.ingest.remux import FFMPEG_BINARY

from .schemas import EnvCheckResponse


router = APIRouter(prefix="/admin", tags=["admin"])


class DevTokenRequest(BaseModel):
    user_id: str = Field(..., examples=["user-123"])
    scopes: list[str] = Field(default_factory=list, examples=[["admin"]])
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    token: str
    expires_at: datetime


def _binary_available(binary: str) -> bool:
    if shutil.which(binary) is None:
        return False
    try:
        subprocess.run([binary, "-version"], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=True)
    except (OSError, subprocess.CalledProcessError):
        return False
    return True


@router.get("/env-check", response_model=EnvCheckResponse, summary="Validate ffmpeg toolchain")
async def env_check(context: deps.AuthDependency) -> EnvCheckResponse:
    if "admin" not in context.scopes:
        raise ForbiddenError("admin scope required")

    ffmpeg, ffprobe = await asyncio.gather(
        asyncio.to_thread(_binary_available, FFMPEG_BINARY),
        asyncio.to_thread(_binary_available, FFPROBE_BINARY),
    )
    return EnvCheckResponse(ffmpeg=ffmpeg, ffprobe=ffprobe)


@router.post("/dev-token", response_model=DevTokenResponse, summary="Mint development JWT")
async def mint_dev_token(payload: DevTokenRequest, settings: deps.SettingsDependency) -> DevTokenResponse:
    if settings.environment_lower not in {"development", "dev"}:
        raise ForbiddenError("dev tokens are disabled outside development")

    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(minutes=payload.ttl_minutes)
    claims: dict[str, object] = {
        "sub": payload.user_id,
        "scopes": payload.scopes,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }
    if settings.jwt_issuer:
        claims["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        claims["aud"] = settings.jwt_audience

    token = jwt.encode(claims, settings.secrets.jwt_secret, algorithm=settings.jwt_algorithm)
    return DevTokenResponse(token=token, expires_at=expires_at)


__all__ = ["router"]
