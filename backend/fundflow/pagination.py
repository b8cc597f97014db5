"""
FundFlow Backend — Offset Pagination
======================================

What:  Page-number pagination shared by every list endpoint.

    skip        = (page - 1) * size
    total_pages = ceil(total / size)
    has_next    = page < total_pages
    has_prev    = page > 1

Routes take `page` / `size` query parameters through the `page_params`
dependency; services turn a PageParams plus a row count into PageInfo.
"""

import math
from dataclasses import dataclass

from fastapi import Query

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageParams:
    page: int = 1
    size: int = DEFAULT_PAGE_SIZE

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.size

    def info(self, total: int) -> "PageInfo":
        return PageInfo(page=self.page, size=self.size, total=total)


@dataclass(frozen=True)
class PageInfo:
    page: int
    size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.size) if self.size else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


def page_params(
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    size: int = Query(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description=f"Items per page (max {MAX_PAGE_SIZE})",
    ),
) -> PageParams:
    """FastAPI dependency collecting the page/size query parameters."""
    return PageParams(page=page, size=size)
