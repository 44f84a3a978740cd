from __future__ import annotations

import threading
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from starlette.datastructures import UploadFile

from clipvault.core.config import Settings
from clipvault.core.errors import UnsupportedMediaType
from clipvault.core.logging import get_logger
from clipvault.db.models import Video
from clipvault.domain import SNIFF_LEN, detect_content_type

from .video_service import VideoService

THUMBNAIL_MEDIA_TYPES = ("image/jpeg", "image/png")


@dataclass(slots=True, frozen=True)
class Thumbnail:
    data: bytes
    media_type: str


class ThumbnailStore(ABC):
    @abstractmethod
    def put(self, video_id: str, thumbnail: Thumbnail) -> None: ...

    @abstractmethod
    def get(self, video_id: str) -> Optional[Thumbnail]: ...

    @abstractmethod
    def discard(self, video_id: str) -> None: ...


class MemoryThumbnailStore(ThumbnailStore):
    """In-process thumbnails keyed by video id.

    The keyspace is split into shards, each with its own lock, so writers to
    different records do not serialise on one global lock.
    """

    def __init__(self, shards: int = 16):
        if shards < 1:
            raise ValueError("shards must be >= 1")
        self._locks: List[threading.Lock] = [threading.Lock() for _ in range(shards)]
        self._maps: List[Dict[str, Thumbnail]] = [{} for _ in range(shards)]

    def shard_for(self, video_id: str) -> int:
        # crc32 is stable across processes, unlike hash() on str.
        return zlib.crc32(video_id.encode("utf-8")) % len(self._locks)

    def put(self, video_id: str, thumbnail: Thumbnail) -> None:
        index = self.shard_for(video_id)
        with self._locks[index]:
            self._maps[index][video_id] = thumbnail

    def get(self, video_id: str) -> Optional[Thumbnail]:
        index = self.shard_for(video_id)
        with self._locks[index]:
            return self._maps[index].get(video_id)

    def discard(self, video_id: str) -> None:
        index = self.shard_for(video_id)
        with self._locks[index]:
            self._maps[index].pop(video_id, None)

    def __len__(self) -> int:
        total = 0
        for lock, mapping in zip(self._locks, self._maps):
            with lock:
                total += len(mapping)
        return total


def thumbnail_path(video_id: str) -> str:
    return f"/v1/thumbnails/{video_id}"


async def attach_thumbnail(
    *,
    store: ThumbnailStore,
    videos: VideoService,
    video: Video,
    upload: UploadFile,
) -> Video:
    """Sniff, store and link an image as the record's thumbnail."""
    data = await upload.read()
    media_type = detect_content_type(data[:SNIFF_LEN])
    if media_type not in THUMBNAIL_MEDIA_TYPES:
        raise UnsupportedMediaType(media_type, expected=THUMBNAIL_MEDIA_TYPES)

    store.put(video.id, Thumbnail(data=data, media_type=media_type))
    video.thumbnail_url = thumbnail_path(video.id)
    saved = await videos.save(video)
    get_logger(component="thumbnail_store").info(
        "thumbnail_stored", video_id=video.id, media_type=media_type, size_bytes=len(data)
    )
    return saved


def get_thumbnail_store(settings: Settings) -> ThumbnailStore:
    return MemoryThumbnailStore(shards=settings.thumbnail_lock_shards)


__all__ = [
    "Thumbnail",
    "ThumbnailStore",
    "MemoryThumbnailStore",
    "THUMBNAIL_MEDIA_TYPES",
    "attach_thumbnail",
    "thumbnail_path",
    "get_thumbnail_store",
]
