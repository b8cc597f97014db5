"""
FundFlow Backend — Upload / OCR Schemas
"""

from typing import Any, Generic, Optional, TypeVar

from fundflow.schemas.common import CamelModel

T = TypeVar("T")


class UploadedImage(CamelModel):
    url: str
    public_id: str


class UploadResponse(CamelModel, Generic[T]):
    """Upload responses use the short `{message, data}` envelope."""

    message: str
    data: T


class OcrResponse(CamelModel):
    success: bool = True
    data: Optional[Any] = None
