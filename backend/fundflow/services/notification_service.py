"""
FundFlow Backend — Chat Notification Service
==============================================

What:  Pushes plain-text messages to the team's LINE chat.
How:   LINE Messaging API push endpoint over httpx:

           POST https://api.line.me/v2/bot/message/push
           Authorization: Bearer <channel access token>
           {"to": "<user/group/room id>", "messages": [{"type": "text", "text": "..."}]}

Who:   The scheduled reminder endpoints in routes/cron.py.

Failures (missing credentials, non-2xx, transport errors) raise
IntegrationError. Nothing is retried; the scheduler simply calls again on
its next run.
"""

import logging
import time
from typing import Optional

import httpx

from fundflow.config import settings
from fundflow.exceptions import IntegrationError

logger = logging.getLogger(__name__)

# LINE rejects text messages longer than this
MAX_TEXT_LENGTH = 5000


class NotificationService:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # transport is injectable so tests can route requests to httpx.MockTransport
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(settings.line_channel_access_token and settings.line_target_id)

    async def send_message(self, text: str) -> None:
        """
        Push one text message to the configured LINE target.

        Raises:
            IntegrationError: not configured, upstream error, or network failure
        """
        if not self.is_configured:
            raise IntegrationError(
                service="line",
                message="Chat notifications are not configured",
            )

        if len(text) > MAX_TEXT_LENGTH:
            logger.warning("Notification truncated from %d to %d chars", len(text), MAX_TEXT_LENGTH)
            text = text[: MAX_TEXT_LENGTH - 1] + "…"

        payload = {
            "to": settings.line_target_id,
            "messages": [{"type": "text", "text": text}],
        }
        headers = {"Authorization": f"Bearer {settings.line_channel_access_token}"}
        start_time = time.perf_counter()

        try:
            async with httpx.AsyncClient(
                timeout=settings.notify_timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(settings.line_push_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error("LINE push failed: %s", e)
            raise IntegrationError(
                service="line",
                message="Failed to connect to the chat notification service",
                context={"error_type": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        if response.is_error:
            upstream = _error_message(response)
            logger.error(
                "LINE push rejected with %d after %.0fms: %s",
                response.status_code,
                duration_ms,
                upstream,
            )
            raise IntegrationError(
                service="line",
                message=f"Chat notification failed: {upstream}",
                context={"status_code": response.status_code},
            )

        logger.info("LINE push delivered (%d chars) in %.0fms", len(text), duration_ms)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("Message") or body)
    return str(body)


notification_service = NotificationService()
