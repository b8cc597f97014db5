"""
FundFlow Backend — Image Upload Service
=========================================

What:  Validates uploaded images and relays them to Cloudinary.
Why:   Transaction attachments (receipts, slips) are hosted on Cloudinary;
       this service only stores the returned URL/public id.
How:   The file count, declared content type and spooled size are checked
       before any bytes are read (validate_count, validate_declared); the
       read content is checked again, then streamed to Cloudinary. The
       Cloudinary SDK is synchronous, so each upload runs in Starlette's
       threadpool; multi-uploads run concurrently with asyncio.gather.
Who:   routes/uploads.py

Validation order:
    1. Presence     — an empty upload is rejected before anything else
    2. Content type — must be image/*
    3. Size         — at most settings.max_upload_size (5MB)
"""

import asyncio
import io
import logging
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

import cloudinary
import cloudinary.uploader
from starlette.concurrency import run_in_threadpool

from fundflow.config import settings
from fundflow.exceptions import IntegrationError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded file already read into memory."""

    filename: str
    content: bytes
    content_type: Optional[str]


@dataclass(frozen=True)
class HostedImage:
    url: str
    public_id: str


class ImageService:
    """
    Uploads images to Cloudinary.

    Cloudinary is configured lazily on first upload so that importing the
    module never requires credentials (tests, migrations, CLI tools).
    """

    def __init__(self, folder: Optional[str] = None):
        self.folder = folder or settings.cloudinary_folder
        self._configured = False

    # ── Validation ────────────────────────────────────────────────────────

    def _check_content_type(self, filename: str, content_type: Optional[str]) -> None:
        if not (content_type or "").lower().startswith("image/"):
            raise ValidationError(
                message="Only image files are allowed",
                field="image",
                context={"filename": filename, "content_type": content_type},
            )

    def _check_size(self, filename: str, size: int) -> None:
        max_mb = settings.max_upload_size / (1024 * 1024)
        if size == 0:
            raise ValidationError(
                message=f"File '{filename}' is empty",
                field="image",
            )
        if size > settings.max_upload_size:
            raise ValidationError(
                message=f"File '{filename}' exceeds the maximum size of {max_mb:.0f}MB",
                field="image",
                context={"max_size_mb": max_mb, "actual_size": size},
            )

    def validate_content_type(self, upload: ImageUpload) -> None:
        self._check_content_type(upload.filename, upload.content_type)

    def validate_size(self, upload: ImageUpload) -> None:
        self._check_size(upload.filename, len(upload.content))

    def validate(self, upload: ImageUpload) -> None:
        self.validate_content_type(upload)
        self.validate_size(upload)

    def validate_declared(self, filename: str, content_type: Optional[str], size: Optional[int]) -> None:
        """
        Reject a file from its multipart headers and spooled size, before
        its bytes are read into memory. `size` is None when the server did
        not record one; the full check still runs on the read content.
        """
        self._check_content_type(filename, content_type)
        if size is not None:
            self._check_size(filename, size)

    def validate_count(self, count: int) -> None:
        if count == 0:
            raise ValidationError(message="Please select at least one image", field="images")
        if count > settings.max_upload_files:
            raise ValidationError(
                message=f"At most {settings.max_upload_files} images can be uploaded at once",
                field="images",
            )

    # ── Upload ────────────────────────────────────────────────────────────

    def _ensure_configured(self) -> None:
        if self._configured:
            return
        if not (settings.cloudinary_cloud_name and settings.cloudinary_api_key and settings.cloudinary_api_secret):
            raise IntegrationError(service="cloudinary", message="Image hosting is not configured")
        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True,
        )
        self._configured = True

    def _upload_sync(self, upload: ImageUpload) -> dict:
        return cloudinary.uploader.upload(
            io.BytesIO(upload.content),
            folder=self.folder,
            resource_type="auto",
        )

    async def upload(self, upload: ImageUpload) -> HostedImage:
        """
        Validate and upload a single image.

        Raises:
            ValidationError: not an image, empty, or too large
            IntegrationError: Cloudinary not configured or upload failed
        """
        self.validate(upload)
        self._ensure_configured()
        start_time = time.perf_counter()

        try:
            result = await run_in_threadpool(self._upload_sync, upload)
        except Exception as e:
            # The SDK raises cloudinary.exceptions.Error as well as transport errors
            logger.error("Cloudinary upload failed for %s: %s", upload.filename, e)
            raise IntegrationError(
                service="cloudinary",
                message="Failed to upload image",
                context={"filename": upload.filename, "error_type": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Uploaded %s (%d bytes) to Cloudinary as %s in %.0fms",
            upload.filename,
            len(upload.content),
            result.get("public_id"),
            duration_ms,
        )
        return HostedImage(url=result["secure_url"], public_id=result["public_id"])

    async def upload_many(self, uploads: Sequence[ImageUpload]) -> List[HostedImage]:
        """
        Validate every file first, then upload them concurrently.

        Validation happens up front so a bad file rejects the whole request
        before anything is sent to Cloudinary.
        """
        self.validate_count(len(uploads))
        for upload in uploads:
            self.validate(upload)

        return list(await asyncio.gather(*(self.upload(u) for u in uploads)))


image_service = ImageService()
