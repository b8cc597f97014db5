"""
FundFlow Backend — Image Upload Routes
========================================

What:  Relays receipt/slip images to Cloudinary and returns the hosted URLs
       that clients then attach to a transaction.

Route Inventory:
    POST /api/upload/single     field `image`
    POST /api/upload/multiple   field `images` (1-10 files)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, File, UploadFile

from fundflow.config import settings
from fundflow.exceptions import ValidationError
from fundflow.schemas.common import ErrorResponse
from fundflow.schemas.upload import UploadedImage, UploadResponse
from fundflow.services.image_service import ImageUpload, image_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/upload",
    tags=["Uploads"],
    responses={
        400: {"description": "Missing file, not an image, or too large", "model": ErrorResponse},
        500: {"description": "Image host failure", "model": ErrorResponse},
    },
)


async def _read(upload: UploadFile) -> ImageUpload:
    filename = upload.filename or "upload"
    try:
        image_service.validate_declared(filename, upload.content_type, upload.size)
        # One byte past the limit is enough for validate_size to reject it
        content = await upload.read(settings.max_upload_size + 1)
    finally:
        await upload.close()
    return ImageUpload(
        filename=filename,
        content=content,
        content_type=upload.content_type,
    )


@router.post("/single", response_model=UploadResponse[UploadedImage], summary="Upload one image")
async def upload_single(
    image: Optional[UploadFile] = File(default=None, description="Image file, max 5MB"),
) -> UploadResponse[UploadedImage]:
    if image is None:
        raise ValidationError("Please select an image", field="image")

    hosted = await image_service.upload(await _read(image))
    return UploadResponse(
        message="Image uploaded",
        data=UploadedImage(url=hosted.url, public_id=hosted.public_id),
    )


@router.post(
    "/multiple",
    response_model=UploadResponse[List[UploadedImage]],
    summary="Upload up to 10 images",
)
async def upload_multiple(
    images: Optional[List[UploadFile]] = File(default=None, description="Image files, max 5MB each"),
) -> UploadResponse[List[UploadedImage]]:
    image_service.validate_count(len(images or []))
    uploads = [await _read(image) for image in images or []]
    hosted = await image_service.upload_many(uploads)

    logger.info("Uploaded %d images", len(hosted))
    return UploadResponse(
        message=f"Uploaded {len(hosted)} images",
        data=[UploadedImage(url=h.url, public_id=h.public_id) for h in hosted],
    )
