from __future__ import annotations

import asyncio
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from clipvault.core.config import Settings
from clipvault.core.errors import ClipvaultError, ForbiddenError, InvalidVideoId, NotFoundError
from clipvault.core.logging import get_logger
from clipvault.core.storage import ObjectStore
from clipvault.db.models import Video
from clipvault.domain import decode_reference


def parse_video_id(raw: str) -> str:
    """Validate a path parameter as a UUID and return its canonical form."""
    try:
        return str(UUID(raw))
    except (TypeError, ValueError) as exc:
        raise InvalidVideoId() from exc


class VideoService:
    """Persistence of video records plus ownership checks and playback URL resolution."""

    def __init__(self, settings: Settings, store: ObjectStore, session: AsyncSession):
        self.settings = settings
        self.store = store
        self.session = session
        self.logger = get_logger(component="video_service")

    async def create_video(self, *, user_id: str, title: str, description: str | None) -> Video:
        video = Video(user_id=user_id, title=title, description=description)
        self.session.add(video)
        await self.session.commit()
        await self.session.refresh(video)
        self.logger.info("video_created", video_id=video.id, user_id=user_id)
        return video

    async def get_video(self, video_id: str) -> Video:
        video = await self.session.get(Video, video_id)
        if video is None:
            raise NotFoundError("Couldn't get video")
        return video

    async def get_owned_video(self, *, video_id: str, user_id: str) -> Video:
        video = await self.get_video(video_id)
        if video.user_id != user_id:
            raise ForbiddenError()
        return video

    async def list_videos(self, *, user_id: str) -> list[Video]:
        stmt = select(Video).where(Video.user_id == user_id).order_by(Video.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def save(self, video: Video) -> Video:
        await self.session.commit()
        await self.session.refresh(video)
        return video

    async def snapshot(self, video: Video) -> dict[str, Any]:
        """Serialise a record with its asset reference resolved to a playable URL."""
        return {
            "id": video.id,
            "user_id": video.user_id,
            "title": video.title,
            "description": video.description,
            "video_url": await self.playback_url(video.video_url),
            "thumbnail_url": video.thumbnail_url,
            "created_at": video.created_at,
            "updated_at": video.updated_at,
        }

    async def playback_url(self, stored: str | None) -> str | None:
        if not stored:
            return None
        try:
            reference = decode_reference(stored, default_bucket=self.settings.s3_bucket)
            if not reference.presigned:
                return stored
            return await asyncio.to_thread(
                self.store.presign_get,
                reference.bucket,
                reference.key,
                expires_s=self.settings.presign_ttl_seconds,
            )
        except ClipvaultError as exc:
            self.logger.warning("asset_reference_unresolvable", stored=stored, error=exc.message)
            return None


__all__ = ["VideoService", "parse_video_id"]
