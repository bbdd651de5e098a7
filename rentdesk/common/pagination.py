from typing import Annotated, Any

from fastapi import Query
from pydantic import BaseModel

MAX_PAGE_SIZE = 100

PageQuery = Annotated[int, Query(ge=1)]
PageSizeQuery = Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)]


class PaginatedResponse(BaseModel):
    items: list[Any]
    total: int
    page: int
    page_size: int
    total_pages: int

    @classmethod
    def create(cls, items: list, total: int, page: int, page_size: int) -> "PaginatedResponse":
        total_pages = -(-total // page_size) if total > 0 else 0
        return cls(items=items, total=total, page=page, page_size=page_size, total_pages=total_pages)


def page_offset(page: int, page_size: int) -> int:
    return (max(page, 1) - 1) * page_size
