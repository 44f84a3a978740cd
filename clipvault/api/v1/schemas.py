from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(default="ok", description="Health status indicator.")
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: Optional[str] = None
    environment: Optional[str] = None


class ReadinessResponse(BaseModel):
    status: str = "ready"
    database: bool


class EnvCheckResponse(BaseModel):
    ffmpeg: bool
    ffprobe: bool


class VideoCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, json_schema_extra={"example": "Boots launch"})
    description: Optional[str] = Field(default=None, json_schema_extra={"example": "Product teaser, vertical cut"})


class VideoResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str]
    video_url: Optional[str] = Field(default=None, description="Playable URL; presigned for private buckets.")
    thumbnail_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class VideoListResponse(BaseModel):
    items: list[VideoResponse]


class ErrorResponse(BaseModel):
    code: str
    message: str


__all__ = [
    "HealthResponse",
    "ReadinessResponse",
    "EnvCheckResponse",
    "VideoCreateRequest",
    "VideoResponse",
    "VideoListResponse",
    "ErrorResponse",
]
