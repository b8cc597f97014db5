"""
FundFlow Backend — Receipt OCR Service
========================================

What:  Relays receipt images to the Cloudmersive receipt-scanning API and
       returns its JSON verbatim.
How:   multipart/form-data with the image under `imageFile`, API key in the
       `Apikey` header. The image never touches disk; the bytes from the
       upload are forwarded as-is.

Error translation:
    provider 401            → IntegrationError "Invalid API Key or Quota Exceeded."
    other provider error    → IntegrationError carrying the provider's Message
    network / timeout       → IntegrationError "Failed to connect to the OCR API."
"""

import logging
import time
from typing import Any, Optional

import httpx

from fundflow.config import settings
from fundflow.exceptions import IntegrationError

logger = logging.getLogger(__name__)


class OcrService:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    async def scan_receipt(
        self,
        content: bytes,
        filename: str,
        content_type: Optional[str] = None,
    ) -> Any:
        """
        Scan a receipt image.

        Args:
            content: Raw image bytes
            filename: Original filename; the provider infers the format from it
            content_type: MIME type from the upload, if known

        Returns:
            The provider's parsed JSON response.

        Raises:
            IntegrationError: on any provider or transport failure
        """
        if not settings.cloudmersive_api_key:
            raise IntegrationError(service="ocr", message="OCR service is not configured")

        files = {
            "imageFile": (filename, content, content_type or "application/octet-stream"),
        }
        headers = {"Apikey": settings.cloudmersive_api_key}
        start_time = time.perf_counter()

        logger.info("Sending receipt to OCR: %s (%d bytes)", filename, len(content))

        try:
            async with httpx.AsyncClient(
                timeout=settings.ocr_timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    settings.cloudmersive_receipt_url,
                    files=files,
                    headers=headers,
                )
        except httpx.HTTPError as e:
            logger.error("OCR request failed: %s", e)
            raise IntegrationError(
                service="ocr",
                message="Failed to connect to the OCR API.",
                context={"error_type": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000

        if response.status_code == 401:
            logger.error("OCR provider rejected the API key (%.0fms)", duration_ms)
            raise IntegrationError(
                service="ocr",
                message="OCR API Error: Invalid API Key or Quota Exceeded.",
                context={"status_code": 401},
            )
        if response.is_error:
            upstream = _provider_message(response)
            logger.error("OCR provider error %d: %s", response.status_code, upstream)
            raise IntegrationError(
                service="ocr",
                message=f"OCR API Error: {upstream}",
                context={"status_code": response.status_code},
            )

        try:
            data = response.json()
        except ValueError:
            raise IntegrationError(
                service="ocr",
                message="OCR API Error: response was not valid JSON",
                context={"status_code": response.status_code},
            )

        logger.info("OCR scan completed in %.0fms", duration_ms)
        return data


def _provider_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return "Unknown error"
    if isinstance(body, dict) and body.get("Message"):
        return str(body["Message"])
    return "Unknown error"


ocr_service = OcrService()
