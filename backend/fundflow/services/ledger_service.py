"""
FundFlow Backend — Ledger Service (Net Amount + History)
==========================================================

What:  Owns the organizational balance. Every balance change goes through
       apply_change(), which updates the single NetAmount row and appends
       exactly one HistoryNetAmount snapshot.
Who:   TransactionService (create/update/delete) and the admin adjustment
       endpoint.
When:  Inside the request's database transaction, right next to the
       Transaction write that caused the change.

Consistency contract:
    ┌──────────────────────┐   same session / same DB transaction
    │ Transaction write    │──┐
    └──────────────────────┘  │   ┌──────────────────────────────┐
                              ├──▶│ NetAmount.amount += delta     │
                              │   ├──────────────────────────────┤
                              └──▶│ INSERT HistoryNetAmount       │
                                  │   (amount = new balance)      │
                                  └──────────────────────────────┘
    Commit happens once, in get_db_session. Any exception rolls back all
    three writes. The NetAmount row is read with SELECT ... FOR UPDATE so
    two concurrent requests serialize on the balance instead of losing an
    update.

Signed effects:
    EXPENSE → -amount, INCOME → +amount
    create: delta = effect
    update: delta = new_effect - old_effect   (one history row)
    delete: delta = -effect
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.config import settings
from fundflow.models.finance import CENT, HistoryNetAmount, LedgerAction, NetAmount
from fundflow.pagination import PageParams
from fundflow.schemas.common import PaginationMeta

logger = logging.getLogger(__name__)



def to_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class LedgerService:
    """Stateless; every method receives the request's session."""

    async def get_net_amount(self, db: AsyncSession, for_update: bool = False) -> NetAmount:
        """
        Return the balance row, creating it with the configured opening
        balance if the table is empty.
        """
        query = select(NetAmount).order_by(NetAmount.id).limit(1)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        net_amount = result.scalar_one_or_none()

        if net_amount is None:
            net_amount = NetAmount(amount=to_money(settings.initial_net_amount))
            db.add(net_amount)
            await db.flush()
            logger.info("Initialized net amount row %s at %s", net_amount.id, net_amount.amount)

        return net_amount

    async def apply_change(
        self,
        db: AsyncSession,
        delta: Decimal,
        action: LedgerAction,
        transaction_id: Optional[str] = None,
        note: Optional[str] = None,
    ) -> HistoryNetAmount:
        """
        Move the balance by `delta` and record the snapshot.

        Args:
            db: The request session; nothing is committed here
            delta: Signed change (negative lowers the balance)
            action: Why the balance moved
            transaction_id: Transaction that caused the change, if any
            note: Free text for manual adjustments

        Returns:
            The new HistoryNetAmount row (already flushed, id assigned)
        """
        delta = to_money(delta)
        net_amount = await self.get_net_amount(db, for_update=True)

        before = net_amount.amount
        net_amount.amount = to_money(before + delta)

        snapshot = HistoryNetAmount(
            net_amount_id=net_amount.id,
            amount=net_amount.amount,
            change=delta,
            action=action.value,
            transaction_id=transaction_id,
            note=note,
        )
        db.add(snapshot)
        await db.flush()

        logger.info(
            "Net amount %s: %s %+.2f -> %s (history=%s, transaction=%s)",
            action.value,
            before,
            delta,
            net_amount.amount,
            snapshot.id,
            transaction_id,
        )
        return snapshot

    async def set_balance(
        self,
        db: AsyncSession,
        amount: Decimal,
        note: Optional[str] = None,
    ) -> HistoryNetAmount:
        """Set an absolute balance by recording the difference as an ADJUST."""
        net_amount = await self.get_net_amount(db, for_update=True)
        delta = to_money(amount) - net_amount.amount
        return await self.apply_change(db, delta, LedgerAction.ADJUST, note=note)

    async def list_history(
        self,
        db: AsyncSession,
        page: PageParams,
        transaction_id: Optional[str] = None,
    ) -> tuple[list[HistoryNetAmount], PaginationMeta]:
        """Snapshots newest first (ties broken by id so paging is stable)."""
        query = select(HistoryNetAmount)
        count_query = select(func.count(HistoryNetAmount.id))
        if transaction_id:
            query = query.where(HistoryNetAmount.transaction_id == transaction_id)
            count_query = count_query.where(HistoryNetAmount.transaction_id == transaction_id)

        total = (await db.execute(count_query)).scalar() or 0
        result = await db.execute(
            query.order_by(HistoryNetAmount.created_at.desc(), HistoryNetAmount.id.desc())
            .offset(page.skip)
            .limit(page.size)
        )
        return list(result.scalars().all()), PaginationMeta.from_page_info(page.info(total))


ledger_service = LedgerService()
