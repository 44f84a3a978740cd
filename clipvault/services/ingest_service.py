from __future__ import annotations

import asyncio
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from starlette.datastructures import UploadFile

from clipvault.core.config import Settings
from clipvault.core.errors import ClipvaultError, UnsupportedMediaType
from clipvault.core.logging import get_logger
from clipvault.core.storage import ObjectStore
from clipvault.db.models import Video
from clipvault.domain import (
    SNIFF_LEN,
    AssetReference,
    classify_orientation,
    decode_reference,
    detect_content_type,
    encode_reference,
    fast_start_path,
    new_object_key,
    probe_media,
    remux_for_fast_start,
)

from .video_service import VideoService

VIDEO_MEDIA_TYPE = "video/mp4"
COPY_CHUNK_BYTES = 1024 * 1024
STAGING_PREFIX = "clipvault-upload-"


class IngestService:
    """Turns an uploaded video into a stored object referenced by its record.

    Stages, in order: sniff, stage to disk, probe, classify, remux, upload the
    new object, delete the previous object, persist the new reference. The
    upload always precedes the delete and the record is written last, so a
    failure at any point leaves the previous asset playable. Both local files
    are removed on every exit path.
    """

    def __init__(self, settings: Settings, store: ObjectStore, videos: VideoService):
        self.settings = settings
        self.store = store
        self.videos = videos
        self.logger = get_logger(component="ingest_service")

    async def ingest_video(self, *, video: Video, upload: UploadFile) -> Video:
        logger = self.logger.bind(video_id=video.id, user_id=video.user_id)

        header = await upload.read(SNIFF_LEN)
        await upload.seek(0)
        media_type = detect_content_type(header)
        if media_type != VIDEO_MEDIA_TYPE:
            logger.info("video_upload_rejected", sniffed=media_type, declared=upload.content_type)
            raise UnsupportedMediaType(media_type, expected=(VIDEO_MEDIA_TYPE,))

        async with self._staged_upload(upload) as staged:
            logger.info("video_upload_staged", path=str(staged), size_bytes=staged.stat().st_size)

            geometry = await asyncio.to_thread(probe_media, staged)
            orientation = classify_orientation(geometry.display_aspect_ratio)
            logger.info(
                "video_probed",
                width=geometry.width,
                height=geometry.height,
                display_aspect_ratio=geometry.display_aspect_ratio,
                orientation=orientation,
            )

            async with self._fast_start_copy(staged) as remuxed:
                key = new_object_key(orientation, encoding=self.settings.object_key_encoding)
                return await self._commit_asset(video, remuxed, key)

    async def _commit_asset(self, video: Video, remuxed: Path, key: str) -> Video:
        bucket = self.settings.s3_bucket
        logger = self.logger.bind(video_id=video.id, bucket=bucket, key=key)
        previous = video.video_url

        with remuxed.open("rb") as handle:
            await asyncio.to_thread(self.store.upload, bucket, key, handle, VIDEO_MEDIA_TYPE)
        logger.info("video_object_uploaded")

        if previous:
            try:
                await self._retire_previous(previous)
            except ClipvaultError:
                # The record keeps pointing at the old object; the new one has no owner.
                logger.error("orphaned_object", previous=previous)
                raise

        reference = AssetReference(kind=self.settings.asset_reference_mode, bucket=bucket, key=key)
        video.video_url = encode_reference(reference, region=self.settings.s3_region)
        saved = await self.videos.save(video)
        logger.info("video_reference_committed", video_url=saved.video_url)
        return saved

    async def _retire_previous(self, stored: str) -> None:
        old = decode_reference(stored, default_bucket=self.settings.s3_bucket)
        await asyncio.to_thread(self.store.delete, old.bucket, old.key)
        self.logger.info("old_object_deleted", bucket=old.bucket, key=old.key, encoding=old.kind)

    @asynccontextmanager
    async def _staged_upload(self, upload: UploadFile) -> AsyncIterator[Path]:
        staging_dir = self.settings.staging_dir
        if staging_dir is not None:
            staging_dir.mkdir(parents=True, exist_ok=True)
        tmp = tempfile.NamedTemporaryFile(delete=False, prefix=STAGING_PREFIX, suffix=".mp4", dir=staging_dir)
        staged = Path(tmp.name)
        try:
            with tmp:
                while chunk := await upload.read(COPY_CHUNK_BYTES):
                    tmp.write(chunk)
            yield staged
        finally:
            self._discard(staged)

    @asynccontextmanager
    async def _fast_start_copy(self, staged: Path) -> AsyncIterator[Path]:
        output = fast_start_path(staged)
        try:
            yield await asyncio.to_thread(remux_for_fast_start, staged)
        finally:
            self._discard(output)

    def _discard(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            self.logger.warning("tempfile_cleanup_failed", path=str(path), error=str(exc))


__all__ = ["IngestService", "VIDEO_MEDIA_TYPE"]
