"""Pagination service — slices an ordered collection into one page."""
import math
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, TypeVar

from app.config import settings
from app.schemas.filter_schema import PageRequest

T = TypeVar("T")


@dataclass(frozen=True)
class PageSlice(Generic[T]):
    items: List[T]
    total_items: int
    total_pages: int
    page: int
    limit: int

    @property
    def first_item(self) -> int:
        """1-based index of the first item shown, 0 when the page is empty."""
        return (self.page - 1) * self.limit + 1 if self.items else 0

    @property
    def last_item(self) -> int:
        return self.first_item + len(self.items) - 1 if self.items else 0


def paginate(items: Sequence[T], request: PageRequest, min_limit: Optional[int] = None) -> PageSlice[T]:
    """Return page ``request.page`` of ``items``.

    The page number is clamped to at least 1 and the limit to at least
    ``min_limit``. A page past the end yields an empty slice.
    """
    request = request.clamped(min_limit or settings.min_page_limit)
    total_items = len(items)
    total_pages = math.ceil(total_items / request.limit) if total_items > 0 else 0
    start = (request.page - 1) * request.limit
    return PageSlice(
        items=list(items[start:start + request.limit]),
        total_items=total_items,
        total_pages=total_pages,
        page=request.page,
        limit=request.limit,
    )
