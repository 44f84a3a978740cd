from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clipvault.core.auth import AuthContext, get_auth_context
from clipvault.core.config import Settings, get_settings
from clipvault.core.storage import ObjectStore
from clipvault.services.ingest_service import IngestService
from clipvault.services.thumbnail_store import ThumbnailStore
from clipvault.services.video_service import VideoService


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_factory = request.app.state.session_factory
    if not isinstance(session_factory, async_sessionmaker):  # pragma: no cover - defensive
        raise RuntimeError("session_factory_not_configured")
    async with session_factory() as session:
        yield session


def get_object_store(request: Request) -> ObjectStore:
    store: ObjectStore = request.app.state.object_store
    return store


def get_thumbnail_store(request: Request) -> ThumbnailStore:
    store: ThumbnailStore = request.app.state.thumbnails
    return store


def get_app_settings() -> Settings:
    return get_settings()


def get_video_service(
    session: AsyncSession = Depends(get_session),
    store: ObjectStore = Depends(get_object_store),
    settings: Settings = Depends(get_app_settings),
) -> VideoService:
    return VideoService(settings, store, session)


def get_ingest_service(
    videos: VideoService = Depends(get_video_service),
    store: ObjectStore = Depends(get_object_store),
    settings: Settings = Depends(get_app_settings),
) -> IngestService:
    return IngestService(settings, store, videos)


AuthDependency = Annotated[AuthContext, Depends(get_auth_context)]
VideoServiceDependency = Annotated[VideoService, Depends(get_video_service)]
IngestServiceDependency = Annotated[IngestService, Depends(get_ingest_service)]
ThumbnailStoreDependency = Annotated[ThumbnailStore, Depends(get_thumbnail_store)]
SettingsDependency = Annotated[Settings, Depends(get_app_settings)]


__all__ = [
    "get_session",
    "get_object_store",
    "get_thumbnail_store",
    "get_app_settings",
    "get_video_service",
    "get_ingest_service",
    "AuthDependency",
    "VideoServiceDependency",
    "IngestServiceDependency",
    "ThumbnailStoreDependency",
    "SettingsDependency",
]
