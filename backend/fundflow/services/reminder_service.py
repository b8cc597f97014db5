"""
FundFlow Backend — Scheduled Reminders
========================================

What:  Builds and sends the chat messages triggered by the external
       scheduler (routes/cron.py).

Messages:
    Pending reminder   one line per pending ApproveList: "- title (First Last)"
    Daily summary      net amount plus pending transaction / approval counts
"""

import logging
from decimal import Decimal
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.models.approval import STATUS_PENDING, ApproveList
from fundflow.services.approval_service import approval_service
from fundflow.services.ledger_service import ledger_service
from fundflow.services.notification_service import notification_service
from fundflow.services.transaction_service import transaction_service

logger = logging.getLogger(__name__)


def format_money(amount: Decimal) -> str:
    """1234567.5 -> '1,234,567.50'"""
    return f"{amount:,.2f}"


def _owner_name(item: ApproveList) -> str:
    if item.user is None:
        return "Unknown"
    name = " ".join(part for part in (item.user.first_name, item.user.last_name) if part)
    return name or item.user.email


def build_pending_message(items: Sequence[ApproveList]) -> str:
    lines = ["Daily reminder", "Items awaiting approval:", ""]
    lines.extend(f"- {item.title} ({_owner_name(item)})" for item in items)
    return "\n".join(lines)


def build_daily_summary(net_amount: Decimal, pending_transactions: int, pending_approvals: int) -> str:
    lines = [
        "Daily summary",
        "",
        f"Net amount remaining: {format_money(net_amount)}",
        f"Transactions awaiting approval: {pending_transactions}",
        f"Approval items awaiting decision: {pending_approvals}",
    ]
    return "\n".join(lines)


class ReminderService:
    async def notify_pending(self, db: AsyncSession) -> int:
        """
        Send the pending-approval reminder.

        Returns:
            Number of items listed; 0 means nothing was sent.
        """
        items = await approval_service.list_pending(db)
        if not items:
            logger.info("No pending approval items; reminder skipped")
            return 0

        await notification_service.send_message(build_pending_message(items))
        logger.info("Pending reminder sent for %d items", len(items))
        return len(items)

    async def send_daily_summary(self, db: AsyncSession) -> str:
        net_amount = await ledger_service.get_net_amount(db)
        pending_transactions = await transaction_service.count_by_status(db, STATUS_PENDING)
        pending_approvals = await approval_service.count_pending(db)

        message = build_daily_summary(net_amount.amount, pending_transactions, pending_approvals)
        await notification_service.send_message(message)
        logger.info("Daily summary sent")
        return message


reminder_service = ReminderService()
