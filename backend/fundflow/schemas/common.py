"""
FundFlow Backend — Shared Pydantic Schemas
============================================

What:  Response envelopes, pagination metadata, error and health models, and
       the camelCase base model every API schema inherits from.
How:   Field names are snake_case in Python and camelCase on the wire
       (`statusApproveId`, `firstName`), matching the clients that already
       talk to this API. Input accepts either spelling.

Envelopes:
    {"success": true, "message": "...", "data": {...}}
    {"success": true, "data": [...], "pagination": {...}}
    {"success": false, "message": "...", "error": "...", "details": {...}, "request_id": "..."}
"""

from decimal import Decimal
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from fundflow.pagination import PageInfo

T = TypeVar("T")

# Money travels as a JSON number; Decimal internally
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    """Base for all API schemas: camelCase aliases, ORM attribute loading."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class PaginationMeta(CamelModel):
    """
    page/size echo the request; total_pages = ceil(total / size);
    has_next = page < total_pages; has_prev = page > 1.
    """

    page: int
    size: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_page_info(cls, info: PageInfo) -> "PaginationMeta":
        return cls(
            page=info.page,
            size=info.size,
            total=info.total,
            total_pages=info.total_pages,
            has_next=info.has_next,
            has_prev=info.has_prev,
        )


class PaginatedResponse(CamelModel, Generic[T]):
    success: bool = True
    data: List[T] = Field(default_factory=list)
    pagination: PaginationMeta


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "success": false,
            "message": "Transaction with ID 'abc' was not found",
            "error": "not_found",
            "details": {"resource": "Transaction", "resource_id": "abc"},
            "request_id": "1a2b3c4d"
        }
    """

    success: bool = False
    message: str = Field(description="Human-readable error description")
    error: str = Field(description="Machine-readable error code")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
