"""
FundFlow Backend — Approval Service
=====================================

What:  CRUD for ApproveList items pushed by other internal systems, the
       StatusApprove lookup, and the report back to the source system when a
       decision is made.
Who:   routes/approvals.py and routes/cron.py.

Decision callback (update):
    ┌─────────────┐    ┌──────────────────────┐    ┌────────────────────────┐
    │ Load item   │───▶│ Apply comment/status │───▶│ PUT {apiPath}{idFrom}  │
    │ (404)       │    │ (flush, no commit)   │    │ {statusApproveId, ...} │
    └─────────────┘    └──────────────────────┘    └────────────────────────┘
    If the callback fails, IntegrationError propagates and get_db_session
    rolls back the local change, so both systems keep the same state.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.config import settings
from fundflow.exceptions import ConflictError, IntegrationError, NotFoundError, ValidationError
from fundflow.models.approval import STATUS_PENDING, ApproveList, StatusApprove
from fundflow.models.config import Config
from fundflow.models.user import User
from fundflow.pagination import PageParams
from fundflow.schemas.approval import (
    ApproveListCreate,
    ApproveListFilters,
    ApproveListUpdate,
    StatusApproveCreate,
)
from fundflow.schemas.common import PaginationMeta

logger = logging.getLogger(__name__)


class ApprovalService:
    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        # transport is injectable so tests can answer the callback with httpx.MockTransport
        self._transport = transport

    # ── Queries ───────────────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, approve_list_id: str) -> Optional[ApproveList]:
        result = await db.execute(
            select(ApproveList)
            .where(ApproveList.id == approve_list_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get(self, db: AsyncSession, approve_list_id: str) -> ApproveList:
        approve_list = await self._load(db, approve_list_id)
        if approve_list is None:
            raise NotFoundError(resource="ApproveList", resource_id=approve_list_id)
        return approve_list

    async def list_approve_lists(
        self,
        db: AsyncSession,
        page: PageParams,
        filters: Optional[ApproveListFilters] = None,
    ) -> tuple[List[ApproveList], PaginationMeta]:
        """
        Paginated items, newest first.

        `search` matches a substring of title, detail or url.
        """
        conditions = []
        if filters is not None:
            if filters.user_id:
                conditions.append(ApproveList.user_id == filters.user_id)
            if filters.status_approve_id is not None:
                conditions.append(ApproveList.status_approve_id == filters.status_approve_id)
            if filters.config_id is not None:
                conditions.append(ApproveList.config_id == filters.config_id)
            if filters.search:
                pattern = f"%{filters.search}%"
                conditions.append(
                    or_(
                        ApproveList.title.ilike(pattern),
                        ApproveList.detail.ilike(pattern),
                        ApproveList.url.ilike(pattern),
                    )
                )

        total = (
            await db.execute(select(func.count(ApproveList.id)).where(*conditions))
        ).scalar() or 0
        result = await db.execute(
            select(ApproveList)
            .where(*conditions)
            .order_by(ApproveList.created_at.desc(), ApproveList.id.desc())
            .offset(page.skip)
            .limit(page.size)
        )
        return list(result.scalars().all()), PaginationMeta.from_page_info(page.info(total))

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        page: PageParams,
    ) -> tuple[List[ApproveList], PaginationMeta]:
        return await self.list_approve_lists(db, page, ApproveListFilters(user_id=user_id))

    async def list_pending(self, db: AsyncSession) -> List[ApproveList]:
        result = await db.execute(
            select(ApproveList)
            .where(ApproveList.status_approve_id == STATUS_PENDING)
            .order_by(ApproveList.created_at.asc())
        )
        return list(result.scalars().all())

    async def count_pending(self, db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count(ApproveList.id)).where(ApproveList.status_approve_id == STATUS_PENDING)
        )
        return result.scalar() or 0

    # ── Mutations ─────────────────────────────────────────────────────────

    async def _check_references(
        self,
        db: AsyncSession,
        status_approve_id: Optional[int] = None,
        config_id: Optional[int] = None,
        user_id: Optional[str] = None,
    ) -> None:
        # Referenced rows must exist before anything is flushed
        if status_approve_id is not None and await db.get(StatusApprove, status_approve_id) is None:
            raise NotFoundError(resource="StatusApprove", resource_id=status_approve_id)
        if config_id is not None and await db.get(Config, config_id) is None:
            raise NotFoundError(resource="Config", resource_id=config_id)
        if user_id is not None and await db.get(User, user_id) is None:
            raise NotFoundError(resource="User", resource_id=user_id)

    async def create(self, db: AsyncSession, payload: ApproveListCreate) -> ApproveList:
        """
        Store an item sent by an external system.

        Raises:
            ValidationError: url/title/detail missing, or apiKey does not
                match the configured key
            NotFoundError: statusApproveId, configId or userId does not exist
        """
        if not payload.url or not payload.title or not payload.detail:
            raise ValidationError("Please provide url, title and detail")
        if not settings.api_key or payload.api_key != settings.api_key:
            raise ValidationError("Invalid API key", field="apiKey")
        await self._check_references(
            db,
            status_approve_id=payload.status_approve_id,
            config_id=payload.config_id,
            user_id=payload.user_id,
        )

        approve_list = ApproveList(
            url=payload.url,
            title=payload.title,
            detail=payload.detail,
            comment=payload.comment,
            id_from=payload.id_from,
            api_path=payload.api_path,
            status_approve_id=payload.status_approve_id or STATUS_PENDING,
            config_id=payload.config_id,
            user_id=payload.user_id,
        )
        db.add(approve_list)
        await db.flush()

        logger.info("ApproveList %s created: '%s'", approve_list.id, approve_list.title)
        return await self.get(db, approve_list.id)

    async def update(
        self,
        db: AsyncSession,
        approve_list_id: str,
        payload: ApproveListUpdate,
    ) -> ApproveList:
        """
        Apply a decision and report it to the source system.

        Only fields present in the body change. The callback goes to
        `{apiPath}{idFrom}`, taking either value from the stored item when
        the body omits it.

        Raises:
            NotFoundError: no such item or no such status
            IntegrationError: the source system could not be notified
        """
        approve_list = await self.get(db, approve_list_id)
        await self._check_references(db, status_approve_id=payload.status_approve_id)

        if payload.comment is not None:
            approve_list.comment = payload.comment
        if payload.status_approve_id is not None:
            approve_list.status_approve_id = payload.status_approve_id
        await db.flush()

        api_path = payload.api_path or approve_list.api_path
        id_from = payload.id_from or approve_list.id_from
        if api_path:
            await self.notify_source(
                url=f"{api_path}{id_from or ''}",
                body={
                    "statusApproveId": payload.status_approve_id,
                    "comment": payload.comment,
                },
            )
        else:
            logger.warning("ApproveList %s has no apiPath; source system not notified", approve_list.id)

        logger.info("ApproveList %s updated to status %s", approve_list.id, approve_list.status_approve_id)
        return await self.get(db, approve_list.id)

    async def notify_source(self, url: str, body: Dict[str, Any]) -> None:
        try:
            async with httpx.AsyncClient(
                timeout=settings.callback_timeout,
                transport=self._transport,
            ) as client:
                response = await client.put(url, json=body)
        except httpx.HTTPError as e:
            logger.error("Approval callback to %s failed: %s", url, e)
            raise IntegrationError(
                service="approval_callback",
                message="Failed to notify the source system",
                context={"error_type": type(e).__name__},
            )

        if response.is_error:
            logger.error("Approval callback to %s returned %d", url, response.status_code)
            raise IntegrationError(
                service="approval_callback",
                message=f"Source system rejected the update ({response.status_code})",
                context={"status_code": response.status_code},
            )

    async def delete(self, db: AsyncSession, approve_list_id: str) -> None:
        approve_list = await self.get(db, approve_list_id)
        await db.delete(approve_list)
        await db.flush()
        logger.info("ApproveList %s deleted", approve_list_id)

    # ── Status lookup ─────────────────────────────────────────────────────

    async def list_statuses(self, db: AsyncSession) -> List[StatusApprove]:
        result = await db.execute(select(StatusApprove).order_by(StatusApprove.id))
        return list(result.scalars().all())

    async def create_status(self, db: AsyncSession, payload: StatusApproveCreate) -> StatusApprove:
        existing = await db.execute(select(StatusApprove).where(StatusApprove.name == payload.name))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f"Status '{payload.name}' already exists")

        status = StatusApprove(name=payload.name)
        db.add(status)
        await db.flush()
        return status


approval_service = ApprovalService()
