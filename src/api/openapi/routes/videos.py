"""Video management endpoints."""

import os
from typing import Any

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel, Field
from starlette.datastructures import FormData, UploadFile

from src.api.dependencies import SettingsDep, VideoServiceDep
from src.application.dtos.upload import IncomingFile, UploadProgress
from src.domain.models.video import VideoRecord

router = APIRouter()

UPLOAD_SESSION_HEADER = "X-Upload-Session"


class MessageResponse(BaseModel):
    """Plain acknowledgment."""

    message: str = Field(description="Status message")


def _incoming_file(upload: UploadFile) -> IncomingFile:
    size = upload.size
    if size is None:
        upload.file.seek(0, os.SEEK_END)
        size = upload.file.tell()
    upload.file.seek(0)
    return IncomingFile(
        filename=upload.filename or "",
        stream=upload.file,
        size=size,
        content_type=upload.content_type,
    )


def _split_form(
    form: FormData,
    file_field: str,
) -> tuple[dict[str, str], IncomingFile | None]:
    """Separate plain fields from the file part."""
    fields = {key: value for key, value in form.multi_items() if isinstance(value, str)}
    upload = form.get(file_field)
    if isinstance(upload, UploadFile) and upload.filename:
        return fields, _incoming_file(upload)
    return fields, None


def _client_id(request: Request) -> str:
    """Identity chunks of one upload are grouped under."""
    session = request.headers.get(UPLOAD_SESSION_HEADER)
    if session:
        return session
    return request.client.host if request.client else "unknown"


@router.get(
    "/videos",
    response_model=list[VideoRecord],
    summary="List videos",
    description="List all video records, oldest first.",
)
async def list_videos(service: VideoServiceDep) -> list[VideoRecord]:
    """List all videos."""
    return await service.list_videos()


@router.post(
    "/videos",
    response_model=VideoRecord | UploadProgress,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a video",
    description=(
        "Multipart upload of `title`, `module_id`, `duration` and the file in "
        "`url_video`. Large files may be sent in chunks (Resumable.js, Dropzone "
        "or Content-Range); intermediate chunks answer 200 with `{done}` and the "
        "last one answers 201 with the created record."
    ),
    responses={status.HTTP_200_OK: {"model": UploadProgress}},
)
async def create_video(
    request: Request,
    response: Response,
    service: VideoServiceDep,
    settings: SettingsDep,
) -> Any:
    """Receive one chunk (or the whole file) of a new video."""
    form = await request.form()
    try:
        fields, file = _split_form(form, settings.upload.file_field)
        result = await service.create_video(
            fields=fields,
            headers=dict(request.headers),
            file=file,
            client_id=_client_id(request),
        )
    finally:
        await form.close()

    if isinstance(result, UploadProgress):
        response.status_code = status.HTTP_200_OK
    return result


@router.get(
    "/videos/{video_id}",
    response_model=VideoRecord,
    summary="Get video",
    description="Get a single video record.",
)
async def get_video(video_id: str, service: VideoServiceDep) -> VideoRecord:
    """Get video by ID."""
    return await service.get_video(video_id)


@router.post(
    "/videos/{video_id}",
    response_model=VideoRecord,
    summary="Update video",
    description=(
        "Overwrite `title`, `module_id` and `duration`. When a new file is sent "
        "in `url_video` it replaces the stored one."
    ),
)
async def update_video(
    video_id: str,
    request: Request,
    service: VideoServiceDep,
    settings: SettingsDep,
) -> VideoRecord:
    """Update video metadata and optionally its file."""
    form = await request.form()
    try:
        fields, file = _split_form(form, settings.upload.file_field)
        return await service.update_video(video_id, fields, file)
    finally:
        await form.close()


@router.delete(
    "/videos/{video_id}",
    response_model=MessageResponse,
    summary="Delete video",
    description="Delete a video record and its stored file.",
)
async def delete_video(video_id: str, service: VideoServiceDep) -> MessageResponse:
    """Delete a video."""
    await service.delete_video(video_id)
    return MessageResponse(message="Video deleted successfully")
