"""
FundFlow Backend — Approval Routes
====================================

What:  ApproveList items pushed by other systems, and the StatusApprove lookup.

Route Inventory:
    GET    /api/approve-lists                 paginated, filterable list
    POST   /api/approve-lists                 external push (apiKey in body)
    GET    /api/approve-lists/user/{userId}   items of one user
    GET    /api/approve-lists/{id}            single item
    PUT    /api/approve-lists/{id}            decide + call the source back
    DELETE /api/approve-lists/{id}
    GET    /api/status-approves
    POST   /api/status-approves

Auth:
    POST /api/approve-lists is authenticated by the shared apiKey in the body
    (the caller is another system, not a person). Everything else needs a
    bearer token.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.database import get_db_session
from fundflow.pagination import PageParams, page_params
from fundflow.schemas.approval import (
    ApproveListCreate,
    ApproveListFilters,
    ApproveListResponse,
    ApproveListUpdate,
    StatusApproveCreate,
    StatusApproveResponse,
)
from fundflow.schemas.common import ApiResponse, ErrorResponse, MessageResponse, PaginatedResponse
from fundflow.security import get_token_claims
from fundflow.services.approval_service import approval_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Approvals"])

_auth_errors = {
    401: {"description": "Missing or invalid token", "model": ErrorResponse},
}


@router.get(
    "/approve-lists",
    response_model=PaginatedResponse[ApproveListResponse],
    responses=_auth_errors,
    dependencies=[Depends(get_token_claims)],
    summary="List approval items",
)
async def list_approve_lists(
    page: PageParams = Depends(page_params),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    status_approve_id: Optional[int] = Query(default=None, alias="statusApproveId"),
    config_id: Optional[int] = Query(default=None, alias="configId"),
    search: Optional[str] = Query(default=None, max_length=200),
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedResponse[ApproveListResponse]:
    filters = ApproveListFilters(
        user_id=user_id,
        status_approve_id=status_approve_id,
        config_id=config_id,
        search=search,
    )
    items, pagination = await approval_service.list_approve_lists(db, page, filters)
    return PaginatedResponse(
        data=[ApproveListResponse.model_validate(item) for item in items],
        pagination=pagination,
    )


@router.post(
    "/approve-lists",
    status_code=201,
    response_model=ApiResponse[ApproveListResponse],
    responses={400: {"description": "Missing fields or invalid apiKey", "model": ErrorResponse}},
    summary="Push an approval item from an external system",
)
async def create_approve_list(
    payload: ApproveListCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ApproveListResponse]:
    item = await approval_service.create(db, payload)
    return ApiResponse(
        message="ApproveList created",
        data=ApproveListResponse.model_validate(item),
    )


@router.get(
    "/approve-lists/user/{user_id}",
    response_model=PaginatedResponse[ApproveListResponse],
    responses=_auth_errors,
    dependencies=[Depends(get_token_claims)],
    summary="List approval items of one user",
)
async def list_user_approve_lists(
    user_id: str,
    page: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedResponse[ApproveListResponse]:
    items, pagination = await approval_service.list_by_user(db, user_id, page)
    return PaginatedResponse(
        data=[ApproveListResponse.model_validate(item) for item in items],
        pagination=pagination,
    )


@router.get(
    "/approve-lists/{approve_list_id}",
    response_model=ApiResponse[ApproveListResponse],
    responses={**_auth_errors, 404: {"description": "Item not found", "model": ErrorResponse}},
    dependencies=[Depends(get_token_claims)],
    summary="Get an approval item",
)
async def get_approve_list(
    approve_list_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ApproveListResponse]:
    item = await approval_service.get(db, approve_list_id)
    return ApiResponse(data=ApproveListResponse.model_validate(item))


@router.put(
    "/approve-lists/{approve_list_id}",
    response_model=ApiResponse[ApproveListResponse],
    responses={
        **_auth_errors,
        404: {"description": "Item not found", "model": ErrorResponse},
        500: {"description": "Source system could not be notified", "model": ErrorResponse},
    },
    dependencies=[Depends(get_token_claims)],
    summary="Record a decision and report it to the source system",
)
async def update_approve_list(
    approve_list_id: str,
    payload: ApproveListUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ApproveListResponse]:
    item = await approval_service.update(db, approve_list_id, payload)
    return ApiResponse(
        message="Status updated",
        data=ApproveListResponse.model_validate(item),
    )


@router.delete(
    "/approve-lists/{approve_list_id}",
    response_model=MessageResponse,
    responses={**_auth_errors, 404: {"description": "Item not found", "model": ErrorResponse}},
    dependencies=[Depends(get_token_claims)],
    summary="Delete an approval item",
)
async def delete_approve_list(
    approve_list_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await approval_service.delete(db, approve_list_id)
    return MessageResponse(message="ApproveList deleted")


# ── Status lookup ─────────────────────────────────────────────────────────

@router.get(
    "/status-approves",
    response_model=ApiResponse[List[StatusApproveResponse]],
    responses=_auth_errors,
    dependencies=[Depends(get_token_claims)],
    summary="List approval statuses",
)
async def list_status_approves(
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[StatusApproveResponse]]:
    statuses = await approval_service.list_statuses(db)
    return ApiResponse(data=[StatusApproveResponse.model_validate(s) for s in statuses])


@router.post(
    "/status-approves",
    status_code=201,
    response_model=ApiResponse[StatusApproveResponse],
    responses={**_auth_errors, 409: {"description": "Name already used", "model": ErrorResponse}},
    dependencies=[Depends(get_token_claims)],
    summary="Create an approval status",
)
async def create_status_approve(
    payload: StatusApproveCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[StatusApproveResponse]:
    status = await approval_service.create_status(db, payload)
    return ApiResponse(
        message="StatusApprove created",
        data=StatusApproveResponse.model_validate(status),
    )
