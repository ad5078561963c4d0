"""
Travel Story Backend — Image Route Handlers
=============================================

What:  POST /image-upload (multipart field "image") and DELETE /delete-image.
How:   Neither route requires a token. Uploads are read into memory (bounded
       by MediaService's size limit) and handed to MediaService.

Deleting an image that is not on disk is answered with 200 and the message
"Image not found"; it is not treated as an error.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from travelstory.dependencies import get_media_service
from travelstory.exceptions import ValidationError
from travelstory.schemas.common import ErrorResponse, MessageResponse
from travelstory.schemas.story import ImageUploadResponse
from travelstory.services.media_service import MediaService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])


@router.post(
    "/image-upload",
    status_code=201,
    response_model=ImageUploadResponse,
    responses={
        400: {"description": "No file or not an image", "model": ErrorResponse},
        500: {"description": "Could not write the file", "model": ErrorResponse},
    },
    summary="Upload a story photo",
)
async def upload_image(
    image: Optional[UploadFile] = File(default=None, description="Image file"),
    media: MediaService = Depends(get_media_service),
) -> ImageUploadResponse:
    if image is None:
        raise ValidationError(message="No image uploaded", field="image")

    try:
        content = await image.read()
        logger.info(
            "Received image upload: filename=%s, content_type=%s, size=%d bytes",
            image.filename or "unknown",
            image.content_type,
            len(content),
        )
        image_url = await media.upload_image(
            content=content,
            content_type=image.content_type,
            original_filename=image.filename,
        )
    finally:
        await image.close()

    return ImageUploadResponse(image_url=image_url)


@router.delete(
    "/delete-image",
    response_model=MessageResponse,
    responses={400: {"description": "imageUrl missing", "model": ErrorResponse}},
    summary="Delete a stored story photo",
)
async def delete_image(
    image_url: Optional[str] = Query(default=None, alias="imageUrl"),
    media: MediaService = Depends(get_media_service),
) -> MessageResponse:
    if await media.delete_image(image_url):
        return MessageResponse(message="Image deleted successfully")
    return MessageResponse(message="Image not found")
