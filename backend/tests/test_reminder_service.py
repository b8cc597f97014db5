"""
FundFlow Backend — Scheduled Reminder Tests
"""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from fundflow.models.approval import ApproveList
from fundflow.models.user import User
from fundflow.services.reminder_service import (
    ReminderService,
    build_daily_summary,
    build_pending_message,
    format_money,
)

SEND = "fundflow.services.reminder_service.notification_service.send_message"


class TestMessageFormatting:
    def test_format_money(self):
        assert format_money(Decimal("2572")) == "2,572.00"
        assert format_money(Decimal("1234567.5")) == "1,234,567.50"
        assert format_money(Decimal("-80")) == "-80.00"

    def test_pending_message_lists_owner_names(self):
        items = [
            ApproveList(title="Laptop", user=User(email="a@example.com", first_name="Anan", last_name="Srisuk")),
            ApproveList(title="Taxi", user=User(email="b@example.com")),
            ApproveList(title="Server rack", user=None),
        ]

        assert build_pending_message(items).splitlines() == [
            "Daily reminder",
            "Items awaiting approval:",
            "",
            "- Laptop (Anan Srisuk)",
            "- Taxi (b@example.com)",
            "- Server rack (Unknown)",
        ]

    def test_daily_summary(self):
        message = build_daily_summary(Decimal("2572.00"), 3, 1)

        assert "Net amount remaining: 2,572.00" in message
        assert "Transactions awaiting approval: 3" in message
        assert "Approval items awaiting decision: 1" in message


class TestReminderService:
    def setup_method(self):
        self.service = ReminderService()

    @pytest.mark.asyncio
    async def test_nothing_pending_sends_nothing(self, db_session):
        with patch(SEND, new_callable=AsyncMock) as send:
            sent = await self.service.notify_pending(db_session)

        assert sent == 0
        send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_pending_items_are_pushed(self, db_session):
        db_session.add_all(
            [
                ApproveList(url="https://erp/1", title="Laptop", detail="x"),
                ApproveList(url="https://erp/2", title="Decided", detail="y", status_approve_id=2),
            ]
        )
        await db_session.flush()

        with patch(SEND, new_callable=AsyncMock) as send:
            sent = await self.service.notify_pending(db_session)

        assert sent == 1
        text = send.await_args.args[0]
        assert "- Laptop (Unknown)" in text
        assert "Decided" not in text

    @pytest.mark.asyncio
    async def test_daily_summary_uses_balance(self, db_session, seed_balance):
        await seed_balance("2572")

        with patch(SEND, new_callable=AsyncMock) as send:
            message = await self.service.send_daily_summary(db_session)

        send.assert_awaited_once_with(message)
        assert "Net amount remaining: 2,572.00" in message
        assert "Transactions awaiting approval: 0" in message
