"""
FundFlow Backend — Transaction Service (Business Logic Orchestrator)
======================================================================

What:  Create / edit / delete / approve expense transactions and keep the
       net amount in step with them.
Who:   Called by routes/transactions.py; calls LedgerService.
When:  Every transaction mutation; one request = one database transaction.

Mutation flow (create / update / delete):
    ┌──────────────┐    ┌──────────────────┐    ┌───────────────────┐
    │ Permission + │───▶│ Transaction rows │───▶│ LedgerService     │
    │ existence    │    │ (items, files)   │    │ .apply_change()   │
    └──────────────┘    └──────────────────┘    └───────────────────┘
    Nothing is committed here. get_db_session commits once the route
    returns, or rolls everything back (transaction rows, balance, history)
    if any step raised.

Amounts:
    amount = Σ round(item.quantity × item.price, cents). Clients never
    send the amount directly.
"""

import logging
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.database import utcnow
from fundflow.exceptions import NotFoundError, PermissionDeniedError
from fundflow.models.approval import StatusApprove
from fundflow.models.finance import (
    LedgerAction,
    Transaction,
    TransactionFile,
    TransactionItem,
)
from fundflow.models.user import User
from fundflow.pagination import PageParams
from fundflow.schemas.common import PaginationMeta
from fundflow.schemas.finance import (
    TransactionCreate,
    TransactionFileIn,
    TransactionFilters,
    TransactionItemIn,
    TransactionUpdate,
)
from fundflow.services.ledger_service import ledger_service, to_money

logger = logging.getLogger(__name__)


def compute_amount(items: Iterable[TransactionItemIn]) -> Decimal:
    """Sum of the cent-rounded line totals, so it matches Σ TransactionItem.total."""
    return sum((to_money(item.quantity * item.price) for item in items), Decimal("0.00"))


def _build_items(items: List[TransactionItemIn]) -> List[TransactionItem]:
    return [
        TransactionItem(position=index, name=item.name, quantity=item.quantity, price=item.price)
        for index, item in enumerate(items)
    ]


def _build_files(files: List[TransactionFileIn]) -> List[TransactionFile]:
    return [
        TransactionFile(url=f.url, public_id=f.public_id, file_name=f.file_name)
        for f in files
    ]


class TransactionService:
    """
    Business logic for transactions.

    Methods return ORM objects with every relationship loaded, so routes
    can hand them straight to TransactionResponse.model_validate().
    """

    async def _load(self, db: AsyncSession, transaction_id: str) -> Optional[Transaction]:
        # populate_existing refreshes an instance already in the identity map,
        # including its selectin collections
        result = await db.execute(
            select(Transaction)
            .where(Transaction.id == transaction_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _get_for_write(self, db: AsyncSession, actor: User, transaction_id: str) -> Transaction:
        transaction = await self._load(db, transaction_id)
        if transaction is None:
            raise NotFoundError(resource="Transaction", resource_id=transaction_id)
        if transaction.owner_id != actor.id and not actor.is_admin:
            raise PermissionDeniedError(
                "Only the owner or an admin can change this transaction",
                context={"transaction_id": transaction_id},
            )
        return transaction

    # ── Queries ───────────────────────────────────────────────────────────

    async def get(self, db: AsyncSession, transaction_id: str) -> Transaction:
        transaction = await self._load(db, transaction_id)
        if transaction is None:
            raise NotFoundError(resource="Transaction", resource_id=transaction_id)
        return transaction

    async def list_transactions(
        self,
        db: AsyncSession,
        page: PageParams,
        filters: Optional[TransactionFilters] = None,
    ) -> tuple[List[Transaction], PaginationMeta]:
        """
        Paginated transactions, newest first.

        dateFrom/dateTo are inclusive calendar days in UTC.
        """
        conditions = []
        if filters is not None:
            if filters.owner_id:
                conditions.append(Transaction.owner_id == filters.owner_id)
            if filters.status_approve_id is not None:
                conditions.append(Transaction.status_approve_id == filters.status_approve_id)
            if filters.type is not None:
                conditions.append(Transaction.type == filters.type.value)
            if filters.search:
                pattern = f"%{filters.search}%"
                conditions.append(
                    or_(Transaction.title.ilike(pattern), Transaction.description.ilike(pattern))
                )
            if filters.date_from:
                start = datetime.combine(filters.date_from, time.min, tzinfo=timezone.utc)
                conditions.append(Transaction.created_at >= start)
            if filters.date_to:
                end = datetime.combine(filters.date_to + timedelta(days=1), time.min, tzinfo=timezone.utc)
                conditions.append(Transaction.created_at < end)

        total = (
            await db.execute(select(func.count(Transaction.id)).where(*conditions))
        ).scalar() or 0
        result = await db.execute(
            select(Transaction)
            .where(*conditions)
            .order_by(Transaction.created_at.desc(), Transaction.id.desc())
            .offset(page.skip)
            .limit(page.size)
        )
        return list(result.scalars().all()), PaginationMeta.from_page_info(page.info(total))

    # ── Mutations ─────────────────────────────────────────────────────────

    async def create(self, db: AsyncSession, owner: User, payload: TransactionCreate) -> Transaction:
        """
        Record a new transaction and apply its effect to the net amount.

        Returns:
            The stored transaction, linked to the CREATE history snapshot.
        """
        transaction = Transaction(
            title=payload.title,
            description=payload.description,
            type=payload.type.value,
            amount=compute_amount(payload.items),
            owner_id=owner.id,
        )
        transaction.items = _build_items(payload.items)
        transaction.files = _build_files(payload.files)
        db.add(transaction)
        await db.flush()

        snapshot = await ledger_service.apply_change(
            db,
            transaction.signed_amount,
            LedgerAction.CREATE,
            transaction_id=transaction.id,
        )
        transaction.history_net_amount_id = snapshot.id
        await db.flush()

        logger.info(
            "Transaction %s created by %s: %s %s (%d items)",
            transaction.id,
            owner.id,
            transaction.type,
            transaction.amount,
            len(payload.items),
        )
        return await self.get(db, transaction.id)

    async def update(
        self,
        db: AsyncSession,
        actor: User,
        transaction_id: str,
        payload: TransactionUpdate,
    ) -> Transaction:
        """
        Edit a transaction. Items and files, when sent, replace the stored
        ones. The balance moves by (new effect - old effect) and exactly one
        UPDATE snapshot is written, even when the difference is zero.

        Raises:
            NotFoundError: no such transaction
            PermissionDeniedError: actor is neither owner nor admin
        """
        transaction = await self._get_for_write(db, actor, transaction_id)
        old_effect = transaction.signed_amount

        fields = payload.model_fields_set
        if "title" in fields and payload.title is not None:
            transaction.title = payload.title
        if "description" in fields:
            transaction.description = payload.description
        if "type" in fields and payload.type is not None:
            transaction.type = payload.type.value
        if payload.items is not None:
            transaction.items = _build_items(payload.items)
            transaction.amount = compute_amount(payload.items)
        if payload.files is not None:
            transaction.files = _build_files(payload.files)
        await db.flush()

        snapshot = await ledger_service.apply_change(
            db,
            transaction.signed_amount - old_effect,
            LedgerAction.UPDATE,
            transaction_id=transaction.id,
        )
        transaction.history_net_amount_id = snapshot.id
        await db.flush()

        logger.info("Transaction %s updated by %s: amount %s", transaction.id, actor.id, transaction.amount)
        return await self.get(db, transaction.id)

    async def delete(self, db: AsyncSession, actor: User, transaction_id: str) -> None:
        """Reverse the transaction's effect on the balance, then remove it."""
        transaction = await self._get_for_write(db, actor, transaction_id)

        await ledger_service.apply_change(
            db,
            -transaction.signed_amount,
            LedgerAction.DELETE,
            transaction_id=transaction.id,
        )
        await db.delete(transaction)
        await db.flush()

        logger.info("Transaction %s deleted by %s", transaction_id, actor.id)

    async def approve(
        self,
        db: AsyncSession,
        admin: User,
        transaction_id: str,
        status_approve_id: int,
    ) -> Transaction:
        """Set the approval status. The balance is not touched."""
        if not admin.is_admin:
            raise PermissionDeniedError("Admin role required")

        transaction = await self.get(db, transaction_id)
        status = await db.get(StatusApprove, status_approve_id)
        if status is None:
            raise NotFoundError(resource="StatusApprove", resource_id=status_approve_id)

        transaction.status_approve_id = status.id
        transaction.approver_id = admin.id
        transaction.approved_at = utcnow()
        await db.flush()

        logger.info("Transaction %s set to %s by %s", transaction.id, status.name, admin.id)
        return await self.get(db, transaction.id)

    async def count_by_status(self, db: AsyncSession, status_approve_id: int) -> int:
        result = await db.execute(
            select(func.count(Transaction.id)).where(Transaction.status_approve_id == status_approve_id)
        )
        return result.scalar() or 0


transaction_service = TransactionService()
