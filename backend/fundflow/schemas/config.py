"""
FundFlow Backend — Config Schemas
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from fundflow.schemas.common import CamelModel


class ConfigTypeCreate(CamelModel):
    name: str = Field(min_length=1, max_length=100)


class ConfigTypeResponse(CamelModel):
    id: int
    name: str


class ConfigCreate(CamelModel):
    name: str = Field(min_length=1, max_length=150)
    value: Optional[str] = None
    description: Optional[str] = None
    config_type_id: int


class ConfigUpdate(CamelModel):
    """Partial update: only fields present in the body are applied."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    value: Optional[str] = None
    description: Optional[str] = None
    config_type_id: Optional[int] = None


class ConfigResponse(CamelModel):
    id: int
    name: str
    value: Optional[str] = None
    description: Optional[str] = None
    config_type_id: int
    config_type: Optional[ConfigTypeResponse] = None
    created_at: datetime
    updated_at: datetime
