"""
EventHub Backend — Upload and File Serving Routes
===================================================

What:  POST /api/upload/event-images stores event images;
       GET /api/files/{path} serves anything in storage.

Request Flow (upload):
    1. Client sends multipart/form-data with one or more `images` parts
    2. Each part is read into memory (bounded by the size check)
    3. EventImageService validates and stores the whole batch
    4. 201 with {urls: ["/api/files/YYYY/MM/DD/<uuid>.<ext>", ...]}

Security Checks:
    - File type: extension + magic-byte MIME check
    - File size: MAX_FILE_SIZE per file
    - Serving: paths resolving outside the storage root → 400
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from eventhub.dependencies import require_roles
from eventhub.exceptions import NotFoundError
from eventhub.models.user import User, UserRole
from eventhub.schemas.ai import ImageUrlsData
from eventhub.schemas.common import Envelope, ErrorResponse
from eventhub.services.file_service import file_service
from eventhub.services.image_service import event_image_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Upload"])


@router.post(
    "/api/upload/event-images",
    status_code=201,
    response_model=Envelope[ImageUrlsData],
    response_model_exclude_none=True,
    responses={400: {"description": "Invalid file type or size", "model": ErrorResponse}},
    summary="Upload event images",
)
async def upload_event_images(
    images: List[UploadFile] = File(..., description="PNG, JPG, JPEG, WebP or GIF images"),
    user: User = Depends(require_roles(UserRole.HOST, UserRole.ADMIN)),
) -> Envelope[ImageUrlsData]:
    items = []
    for upload in images:
        content = await upload.read()
        items.append((upload.filename or "", content, upload.size))

    logger.info("User %s uploading %d image(s)", user.id, len(items))
    urls = await event_image_service.upload_images(items)
    return Envelope(message="Images uploaded successfully", data=ImageUrlsData(urls=urls))


@router.get(
    "/api/files/{file_path:path}",
    response_class=FileResponse,
    responses={
        400: {"description": "Invalid file path", "model": ErrorResponse},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Serve a stored file",
)
async def serve_file(file_path: str) -> FileResponse:
    path = file_service.resolve_public_path(file_path)
    if not path.is_file():
        raise NotFoundError(resource="File", resource_id=file_path)
    return FileResponse(path)
