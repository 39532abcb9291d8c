"""
In-memory pager for pre-sorted lists.

Ranked dashboard lists are computed in full and then sliced, so the
total is always the size of the complete ranking.
"""

from dataclasses import dataclass, field
from typing import Generic, Sequence, TypeVar

from restaurant_ops.core.exceptions import ValidationError

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    """
    One slice of a ranked list.

    Attributes:
        content: Items on this page
        total: Number of items in the whole list
        offset: Index of the first item on this page
        limit: Maximum number of items per page
    """
    content: list[T] = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 10

    @property
    def page(self) -> int:
        return self.offset // self.limit

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.limit)

    @property
    def has_next(self) -> bool:
        return self.offset + len(self.content) < self.total


def paginate(items: Sequence[T], offset: int = 0, limit: int = 10) -> Page[T]:
    """
    Slice a pre-sorted list.

    An offset at or beyond the end yields an empty page that still
    reports the full total.

    Raises:
        ValidationError: If offset is negative or limit is not positive
    """
    if offset < 0:
        raise ValidationError(f"offset must be >= 0, got {offset}")
    if limit < 1:
        raise ValidationError(f"limit must be >= 1, got {limit}")

    total = len(items)
    if offset >= total:
        return Page(content=[], total=total, offset=offset, limit=limit)
    return Page(
        content=list(items[offset:offset + limit]),
        total=total,
        offset=offset,
        limit=limit,
    )


def paginate_by_number(items: Sequence[T], page: int = 0, size: int = 10) -> Page[T]:
    """Page-number flavour of paginate(); pages are zero-based."""
    if page < 0:
        raise ValidationError(f"page must be >= 0, got {page}")
    if size < 1:
        raise ValidationError(f"size must be >= 1, got {size}")
    return paginate(items, offset=page * size, limit=size)
