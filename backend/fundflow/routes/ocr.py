"""
FundFlow Backend — Receipt OCR Route
======================================

What:  POST /api/ocr — forwards a receipt photo to the OCR provider and
       returns the provider's JSON untouched under `data`.
Who:   The expense form, to pre-fill transaction items from a receipt.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from fundflow.exceptions import ValidationError
from fundflow.schemas.common import ErrorResponse
from fundflow.schemas.upload import OcrResponse
from fundflow.security import get_token_claims
from fundflow.services.ocr_service import ocr_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["OCR"])


@router.post(
    "/ocr",
    response_model=OcrResponse,
    responses={
        400: {"description": "No receipt image uploaded", "model": ErrorResponse},
        401: {"description": "Missing or invalid token", "model": ErrorResponse},
        500: {"description": "OCR provider error", "model": ErrorResponse},
    },
    dependencies=[Depends(get_token_claims)],
    summary="Scan a receipt image",
)
async def scan_receipt(
    receipt_image: Optional[UploadFile] = File(default=None, alias="receiptImage"),
) -> OcrResponse:
    if receipt_image is None:
        raise ValidationError("Please upload a receipt image", field="receiptImage")

    try:
        content = await receipt_image.read()
    finally:
        await receipt_image.close()

    if not content:
        raise ValidationError("Please upload a receipt image", field="receiptImage")

    data = await ocr_service.scan_receipt(
        content,
        filename=receipt_image.filename or "receipt.jpg",
        content_type=receipt_image.content_type,
    )
    return OcrResponse(data=data)
