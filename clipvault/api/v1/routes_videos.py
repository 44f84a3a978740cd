from __future__ import annotations

from fastapi import APIRouter, Request, status
from starlette.datastructures import UploadFile

from clipvault.api import deps
from clipvault.api.limits import bounded_request
from clipvault.core.errors import MissingUpload
from clipvault.services.thumbnail_store import attach_thumbnail
from clipvault.services.video_service import parse_video_id

from . import schemas


router = APIRouter(prefix="/videos", tags=["videos"])

ERROR_RESPONSES = {
    code: {"model": schemas.ErrorResponse}
    for code in (
        status.HTTP_400_BAD_REQUEST,
        status.HTTP_401_UNAUTHORIZED,
        status.HTTP_403_FORBIDDEN,
        status.HTTP_404_NOT_FOUND,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
}


@router.post("", response_model=schemas.VideoResponse, status_code=status.HTTP_201_CREATED, responses=ERROR_RESPONSES)
async def create_video(
    payload: schemas.VideoCreateRequest,
    videos: deps.VideoServiceDependency,
    context: deps.AuthDependency,
) -> schemas.VideoResponse:
    video = await videos.create_video(user_id=context.user_id, title=payload.title, description=payload.description)
    return schemas.VideoResponse(**await videos.snapshot(video))


@router.get("", response_model=schemas.VideoListResponse, responses=ERROR_RESPONSES)
async def list_videos(videos: deps.VideoServiceDependency, context: deps.AuthDependency) -> schemas.VideoListResponse:
    records = await videos.list_videos(user_id=context.user_id)
    return schemas.VideoListResponse(items=[schemas.VideoResponse(**await videos.snapshot(video)) for video in records])


@router.get("/{video_id}", response_model=schemas.VideoResponse, responses=ERROR_RESPONSES)
async def get_video(
    video_id: str,
    videos: deps.VideoServiceDependency,
    context: deps.AuthDependency,
) -> schemas.VideoResponse:
    video = await videos.get_owned_video(video_id=parse_video_id(video_id), user_id=context.user_id)
    return schemas.VideoResponse(**await videos.snapshot(video))


@router.post(
    "/{video_id}/video",
    response_model=schemas.VideoResponse,
    responses={**ERROR_RESPONSES, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": schemas.ErrorResponse}},
    summary="Upload the video file (multipart field 'video')",
)
async def upload_video(
    video_id: str,
    request: Request,
    videos: deps.VideoServiceDependency,
    ingest: deps.IngestServiceDependency,
    context: deps.AuthDependency,
    settings: deps.SettingsDependency,
) -> schemas.VideoResponse:
    # Ownership is settled before a single body byte is read.
    video = await videos.get_owned_video(video_id=parse_video_id(video_id), user_id=context.user_id)

    bounded = bounded_request(request, settings.max_video_upload_bytes)
    async with bounded.form(max_files=1, max_fields=10) as form:
        upload = form.get("video")
        if not isinstance(upload, UploadFile):
            raise MissingUpload("Multipart field 'video' is required")
        updated = await ingest.ingest_video(video=video, upload=upload)

    return schemas.VideoResponse(**await videos.snapshot(updated))


@router.post(
    "/{video_id}/thumbnail",
    response_model=schemas.VideoResponse,
    responses={**ERROR_RESPONSES, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: {"model": schemas.ErrorResponse}},
    summary="Upload a png/jpeg thumbnail (multipart field 'thumbnail')",
)
async def upload_thumbnail(
    video_id: str,
    request: Request,
    videos: deps.VideoServiceDependency,
    thumbnails: deps.ThumbnailStoreDependency,
    context: deps.AuthDependency,
    settings: deps.SettingsDependency,
) -> schemas.VideoResponse:
    video = await videos.get_owned_video(video_id=parse_video_id(video_id), user_id=context.user_id)

    bounded = bounded_request(request, settings.max_thumbnail_upload_bytes)
    async with bounded.form(max_files=1, max_fields=10) as form:
        upload = form.get("thumbnail")
        if not isinstance(upload, UploadFile):
            raise MissingUpload("Multipart field 'thumbnail' is required")
        updated = await attach_thumbnail(store=thumbnails, videos=videos, video=video, upload=upload)

    return schemas.VideoResponse(**await videos.snapshot(updated))


__all__ = ["router"]
