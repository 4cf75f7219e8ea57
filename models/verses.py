from typing import Optional

from models.pagination import DEFAULT_PAGINATION, Pagination, PaginationDefaults, paginate

VERSE_SEPARATOR = "\n\n"


def split_verses(text: Optional[str]) -> list[str]:
    """
    Split lyrics into verses on blank lines.

    Single line breaks stay inside a verse. Missing or empty lyrics give a
    single empty verse, never an empty list.
    """
    return (text or "").split(VERSE_SEPARATOR)


def paginate_verses(
        text: Optional[str],
        pagination: Pagination,
        defaults: PaginationDefaults = DEFAULT_PAGINATION
) -> tuple[list[str], Pagination]:
    """Return the requested window of verses and its pagination summary."""
    return paginate(split_verses(text), pagination, defaults)
