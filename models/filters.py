from dataclasses import dataclass
from datetime import date, datetime
from enum import IntEnum
from typing import Any, Iterable, List, Optional

from sqlalchemy import ColumnElement, extract

from models.db_models import Song


class SongFilterField(IntEnum):
    """Filterable song attributes, in the order their predicates are applied."""
    group_name = 0
    title = 1
    release_year = 2
    release_date = 3
    release_date_after = 4
    release_date_before = 5
    text = 6


TEXT_FIELDS = {
    SongFilterField.group_name: Song.group_name,
    SongFilterField.title: Song.title,
    SongFilterField.text: Song.text,
}


LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value is matched literally."""
    return value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2).replace("%", LIKE_ESCAPE + "%").replace("_", LIKE_ESCAPE + "_")


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


@dataclass(frozen=True)
class SongFilter:
    """
        One predicate of a song search.

        The value is untyped because filters are decoded from query strings; a
        value whose type does not fit the field yields no predicate at all, so
        a malformed parameter narrows nothing instead of failing the request.
    """
    field: SongFilterField
    value: Any

    def condition(self) -> Optional[ColumnElement[bool]]:
        """Return the SQL predicate for this filter, or None when the value does not fit the field."""
        if self.field in TEXT_FIELDS:
            if isinstance(self.value, str):
                return TEXT_FIELDS[self.field].ilike(f"%{escape_like(self.value)}%", escape=LIKE_ESCAPE)
            return None

        if self.field == SongFilterField.release_year:
            # bool is an int subclass
            if isinstance(self.value, int) and not isinstance(self.value, bool):
                return extract("year", Song.release_date) == self.value
            return None

        value = _as_date(self.value)
        if value is None:
            return None
        if self.field == SongFilterField.release_date:
            return Song.release_date == value
        if self.field == SongFilterField.release_date_after:
            return Song.release_date > value
        if self.field == SongFilterField.release_date_before:
            return Song.release_date < value
        return None


def build_song_conditions(filters: Iterable[SongFilter]) -> List[ColumnElement[bool]]:
    """
    Turn filters into SQL predicates meant to be AND-ed together.

    Predicates come out in field order regardless of input order, so the same
    set of filters always produces the same query.
    """
    conditions = []
    for song_filter in sorted(filters, key=lambda f: f.field):
        condition = song_filter.condition()
        if condition is not None:
            conditions.append(condition)
    return conditions
