"""
Page envelope for list endpoints.
"""
from typing import TypeVar, Generic, List, Sequence
from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of results plus the numbers a table footer needs."""
    items: List[T]
    total: int
    page: int
    limit: int
    pages: int
    has_next: bool
    has_prev: bool


def paginate(items: Sequence[T], total: int, page: int, limit: int) -> dict:
    """Wrap a page of rows; `total` is the count before offset/limit."""
    pages = -(-total // limit) if limit > 0 else 0
    return {
        "items": list(items),
        "total": total,
        "page": page,
        "limit": limit,
        "pages": pages,
        "has_next": page < pages,
        "has_prev": page > 1,
    }
