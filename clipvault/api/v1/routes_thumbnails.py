from __future__ import annotations

from fastapi import APIRouter, Response

from clipvault.api import deps
from clipvault.core.errors import NotFoundError
from clipvault.services.video_service import parse_video_id


router = APIRouter(prefix="/thumbnails", tags=["thumbnails"])


@router.get("/{video_id}", summary="Serve a stored thumbnail", response_class=Response)
async def get_thumbnail(video_id: str, thumbnails: deps.ThumbnailStoreDependency) -> Response:
    thumbnail = thumbnails.get(parse_video_id(video_id))
    if thumbnail is None:
        raise NotFoundError("Thumbnail not found")
    return Response(content=thumbnail.data, media_type=thumbnail.media_type)


__all__ = ["router"]
