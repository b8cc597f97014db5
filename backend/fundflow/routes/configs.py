"""
FundFlow Backend — Config Routes
==================================

Route Inventory (all bearer-protected):
    GET    /api/config/type
    POST   /api/config/type/create
    POST   /api/config/create
    PUT    /api/config/update/{id}
    DELETE /api/config/delete/{id}
    GET    /api/config/{id}
    GET    /api/config                 ?configTypeId=&search=&page=&size=

Fixed paths (`/type`, `/create`) are registered before `/{id}` so they are
never captured by the id parameter.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from fundflow.database import get_db_session
from fundflow.pagination import PageParams, page_params
from fundflow.schemas.common import ApiResponse, ErrorResponse, MessageResponse, PaginatedResponse
from fundflow.schemas.config import (
    ConfigCreate,
    ConfigResponse,
    ConfigTypeCreate,
    ConfigTypeResponse,
    ConfigUpdate,
)
from fundflow.security import get_token_claims
from fundflow.services.config_service import config_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/config",
    tags=["Config"],
    dependencies=[Depends(get_token_claims)],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)

_not_found = {404: {"description": "Config or type not found", "model": ErrorResponse}}


@router.get("/type", response_model=ApiResponse[List[ConfigTypeResponse]], summary="List config types")
async def list_config_types(
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[List[ConfigTypeResponse]]:
    types = await config_service.list_types(db)
    return ApiResponse(data=[ConfigTypeResponse.model_validate(t) for t in types])


@router.post(
    "/type/create",
    status_code=201,
    response_model=ApiResponse[ConfigTypeResponse],
    responses={409: {"description": "Name already used", "model": ErrorResponse}},
    summary="Create a config type",
)
async def create_config_type(
    payload: ConfigTypeCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ConfigTypeResponse]:
    config_type = await config_service.create_type(db, payload)
    return ApiResponse(message="Config type created", data=ConfigTypeResponse.model_validate(config_type))


@router.post(
    "/create",
    status_code=201,
    response_model=ApiResponse[ConfigResponse],
    responses=_not_found,
    summary="Create a config",
)
async def create_config(
    payload: ConfigCreate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ConfigResponse]:
    config = await config_service.create(db, payload)
    return ApiResponse(message="Config created", data=ConfigResponse.model_validate(config))


@router.put(
    "/update/{config_id}",
    response_model=ApiResponse[ConfigResponse],
    responses=_not_found,
    summary="Update a config",
)
async def update_config(
    config_id: int,
    payload: ConfigUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ConfigResponse]:
    config = await config_service.update(db, config_id, payload)
    return ApiResponse(message="Config updated", data=ConfigResponse.model_validate(config))


@router.delete(
    "/delete/{config_id}",
    response_model=MessageResponse,
    responses=_not_found,
    summary="Delete a config",
)
async def delete_config(
    config_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await config_service.delete(db, config_id)
    return MessageResponse(message="Config deleted")


@router.get(
    "/{config_id}",
    response_model=ApiResponse[ConfigResponse],
    responses=_not_found,
    summary="Get a config",
)
async def get_config(
    config_id: int,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[ConfigResponse]:
    config = await config_service.get(db, config_id)
    return ApiResponse(data=ConfigResponse.model_validate(config))


@router.get("", response_model=PaginatedResponse[ConfigResponse], summary="List configs")
async def list_configs(
    page: PageParams = Depends(page_params),
    config_type_id: Optional[int] = Query(default=None, alias="configTypeId"),
    search: Optional[str] = Query(default=None, max_length=200),
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedResponse[ConfigResponse]:
    configs, pagination = await config_service.list_configs(db, page, config_type_id, search)
    return PaginatedResponse(
        data=[ConfigResponse.model_validate(c) for c in configs],
        pagination=pagination,
    )
