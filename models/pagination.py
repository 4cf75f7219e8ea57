from typing import Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, NonNegativeInt, PositiveInt

T = TypeVar("T")


class PaginationDefaults(BaseModel):
    """Offset/limit substituted for an empty pagination request."""
    model_config = ConfigDict(frozen=True)

    offset: NonNegativeInt = 0
    limit: PositiveInt = 20


DEFAULT_PAGINATION = PaginationDefaults()


class Pagination(BaseModel):
    """
    Offset/limit window over a collection.

    `items` and `total` are filled in by whatever produced the page and are
    never taken from the caller.
    """
    offset: NonNegativeInt = 0
    limit: NonNegativeInt = 0
    items: NonNegativeInt = 0
    total: NonNegativeInt = 0

    def is_empty(self) -> bool:
        return self.offset == 0 and self.limit == 0


def resolve_pagination(pagination: Pagination, defaults: PaginationDefaults = DEFAULT_PAGINATION) -> Pagination:
    """
    Return the effective offset/limit for a request.

    Only the (0, 0) pair means "use defaults"; anything else, including an
    explicit zero limit, is taken literally. Caller-supplied items/total are dropped.
    """
    if pagination.is_empty():
        return Pagination(offset=defaults.offset, limit=defaults.limit)
    return Pagination(offset=pagination.offset, limit=pagination.limit)


def page_bounds(pagination: Pagination, total: int) -> tuple[int, int]:
    """Start and end indexes of the page, clamped to the collection size."""
    start = min(pagination.offset, total)
    end = min(start + pagination.limit, total)
    return start, end


def summarize(pagination: Pagination, items: int, total: int) -> Pagination:
    return Pagination(offset=pagination.offset, limit=pagination.limit, items=items, total=total)


def paginate(
        items: Sequence[T],
        pagination: Pagination,
        defaults: PaginationDefaults = DEFAULT_PAGINATION
) -> tuple[list[T], Pagination]:
    """
    Slice an in-memory sequence and describe the slice.

    Returns:
        A tuple: (page of items, pagination with `items` and `total` populated).
    """
    effective = resolve_pagination(pagination, defaults)
    start, end = page_bounds(effective, len(items))
    page = list(items[start:end])
    return page, summarize(effective, items=len(page), total=len(items))
