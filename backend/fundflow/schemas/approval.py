"""
FundFlow Backend — Approval Schemas
=====================================

What:  Request/response models for ApproveList and StatusApprove.

ApproveListCreate is sent by external systems, so it carries the shared
`apiKey` in the body rather than a bearer token.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from fundflow.schemas.auth import UserSummary
from fundflow.schemas.common import CamelModel
from fundflow.schemas.config import ConfigResponse


class StatusApproveCreate(CamelModel):
    name: str = Field(min_length=1, max_length=50)


class StatusApproveResponse(CamelModel):
    id: int
    name: str


class ApproveListCreate(CamelModel):
    # Presence of url/title/detail is checked in ApprovalService so the
    # error message names all three together
    api_key: Optional[str] = None
    url: Optional[str] = None
    title: Optional[str] = None
    detail: Optional[str] = None
    comment: Optional[str] = None
    id_from: Optional[str] = None
    api_path: Optional[str] = None
    status_approve_id: Optional[int] = None
    config_id: Optional[int] = None
    user_id: Optional[str] = None


class ApproveListUpdate(CamelModel):
    comment: Optional[str] = None
    status_approve_id: Optional[int] = None
    # Override where the decision is reported; defaults to the stored values
    api_path: Optional[str] = None
    id_from: Optional[str] = None


class ApproveListFilters(CamelModel):
    user_id: Optional[str] = None
    status_approve_id: Optional[int] = None
    config_id: Optional[int] = None
    search: Optional[str] = None


class ApproveListResponse(CamelModel):
    id: str
    url: str
    title: str
    detail: str
    comment: Optional[str] = None
    id_from: Optional[str] = None
    api_path: Optional[str] = None
    status_approve_id: int
    config_id: Optional[int] = None
    user_id: Optional[str] = None
    user: Optional[UserSummary] = None
    status_approve: Optional[StatusApproveResponse] = None
    config: Optional[ConfigResponse] = None
    created_at: datetime
    updated_at: datetime
