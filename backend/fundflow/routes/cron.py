"""
FundFlow Backend — Scheduled Notification Routes
==================================================

What:  Endpoints an external scheduler hits once a day to push chat
       reminders. Guarded by the X-API-Key header rather than a user token.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.database import get_db_session
from fundflow.schemas.common import ErrorResponse, MessageResponse
from fundflow.security import require_api_key
from fundflow.services.reminder_service import reminder_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/cron",
    tags=["Cron"],
    dependencies=[Depends(require_api_key)],
    responses={
        401: {"description": "Missing or wrong X-API-Key", "model": ErrorResponse},
        500: {"description": "Chat notification failed", "model": ErrorResponse},
    },
)


@router.post(
    "/notify-pending",
    response_model=MessageResponse,
    summary="Remind approvers about pending items",
)
async def notify_pending(db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    sent = await reminder_service.notify_pending(db)
    if sent == 0:
        return MessageResponse(message="No pending items")
    return MessageResponse(message=f"Pending reminder sent for {sent} items")


@router.post(
    "/daily-summary",
    response_model=MessageResponse,
    summary="Send the daily balance and backlog summary",
)
async def daily_summary(db: AsyncSession = Depends(get_db_session)) -> MessageResponse:
    await reminder_service.send_daily_summary(db)
    return MessageResponse(message="Daily summary sent")
