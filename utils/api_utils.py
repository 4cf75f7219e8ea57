from typing import Optional, List

from fastapi import Query

from models.filters import SongFilter, SongFilterField
from models.pagination import Pagination
from models.schemas import parse_date
from settings import get_settings


def _parse_int(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_pagination(
        offset: Optional[str] = Query(default=None, description="Number of items to skip"),
        limit: Optional[str] = Query(default=None, description="Page size")
) -> Pagination:
    """
    Missing, malformed or negative parameters take the configured defaults;
    offset=0 with limit=0 also means the defaults.
    """
    defaults = get_settings().pagination_defaults()
    offset_value = _parse_int(offset)
    limit_value = _parse_int(limit)
    return Pagination(
        offset=defaults.offset if offset_value is None or offset_value < 0 else offset_value,
        limit=defaults.limit if limit_value is None or limit_value < 0 else limit_value,
    )


def parse_song_filters(
        group_name: Optional[str] = Query(default=None, description="Group name substring"),
        title: Optional[str] = Query(default=None, description="Title substring"),
        release_year: Optional[str] = Query(default=None, description="Release year"),
        release_date: Optional[str] = Query(default=None, description="Exact release date (dd.mm.yyyy)"),
        release_date_after: Optional[str] = Query(default=None, description="Released after (dd.mm.yyyy)"),
        release_date_before: Optional[str] = Query(default=None, description="Released before (dd.mm.yyyy)"),
        text: Optional[str] = Query(default=None, description="Lyrics substring"),
) -> List[SongFilter]:
    """
    Decode song filters from query parameters.

    Empty parameters are skipped, and so are years and dates that do not
    parse: a malformed filter narrows nothing rather than failing the request.
    """
    filters = []

    def add_string(value: Optional[str], field: SongFilterField):
        if value:
            filters.append(SongFilter(field, value))

    def add_int(value: Optional[str], field: SongFilterField):
        year = _parse_int(value)
        if year is not None:
            filters.append(SongFilter(field, year))

    def add_date(value: Optional[str], field: SongFilterField):
        if value:
            try:
                filters.append(SongFilter(field, parse_date(value)))
            except ValueError:
                pass

    add_string(group_name, SongFilterField.group_name)
    add_string(title, SongFilterField.title)
    add_int(release_year, SongFilterField.release_year)
    add_date(release_date, SongFilterField.release_date)
    add_date(release_date_after, SongFilterField.release_date_after)
    add_date(release_date_before, SongFilterField.release_date_before)
    add_string(text, SongFilterField.text)
    return filters
