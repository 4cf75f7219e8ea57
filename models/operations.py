import uuid
from typing import Any, Dict, List, Tuple

import structlog
from sqlalchemy import delete, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select, and_

from models.db_models import Song, utc_now
from models.exceptions import NotFoundError, PersistenceFailedError
from models.filters import SongFilter, build_song_conditions
from models.pagination import DEFAULT_PAGINATION, Pagination, PaginationDefaults, resolve_pagination, summarize

logger = structlog.get_logger()

UPDATABLE_FIELDS = ("release_date", "text", "link")


class SongRepository:
    """
    Song storage on top of a SQLModel session.

    Every storage error is rolled back and re-raised as PersistenceFailedError;
    a missing song is reported as NotFoundError.
    """
    def __init__(self, session: Session, pagination_defaults: PaginationDefaults = DEFAULT_PAGINATION):
        self.session = session
        self.pagination_defaults = pagination_defaults

    def _fail(self, operation: str, exc: SQLAlchemyError, **context) -> PersistenceFailedError:
        self.session.rollback()
        logger.error("storage error", operation=operation, error=str(exc), **context)
        return PersistenceFailedError("storage error", operation=operation, **context)

    def save(self, song: Song) -> Song:
        """
        Insert a new song and return it with its generated ID and timestamps.
        """
        operation = "SongRepository.save"
        if not song.group_name or not song.title:
            raise PersistenceFailedError("missing required fields for saving song", operation=operation)
        try:
            self.session.add(song)
            self.session.commit()
            self.session.refresh(song)
        except SQLAlchemyError as exc:
            raise self._fail(operation, exc, group_name=song.group_name, title=song.title) from exc
        return song

    def list_matching(self, pagination: Pagination, *filters: SongFilter) -> Tuple[List[Song], Pagination]:
        """
            Fetch one page of songs matching all filters.

            Args:
                pagination: Requested offset/limit; (0, 0) falls back to the defaults.
                filters: Predicates combined with AND.

            Returns:
                A tuple: (songs of the page, pagination with `items` and `total` filled in).
                `total` counts every matching song, not only the page.
        """
        operation = "SongRepository.list_matching"
        effective = resolve_pagination(pagination, self.pagination_defaults)
        conditions = build_song_conditions(filters)

        statement = (
            select(Song)
            .order_by(Song.created_at, Song.id)
            .offset(effective.offset)
            .limit(effective.limit)
        )
        count_statement = select(func.count()).select_from(Song)
        if conditions:
            statement = statement.where(and_(*conditions))
            count_statement = count_statement.where(and_(*conditions))

        try:
            songs = list(self.session.exec(statement).all())
            total = self.session.exec(count_statement).one()
        except SQLAlchemyError as exc:
            raise self._fail(operation, exc, pagination=effective.model_dump()) from exc

        return songs, summarize(effective, items=len(songs), total=total)

    def get_by_id(self, song_id: uuid.UUID) -> Song:
        """Retrieve a single song by ID or raise NotFoundError."""
        operation = "SongRepository.get_by_id"
        try:
            song: Song | None = self.session.get(Song, song_id)
        except SQLAlchemyError as exc:
            raise self._fail(operation, exc, song_id=str(song_id)) from exc
        if song is None:
            raise NotFoundError(
                message="Song with ID {} not found".format(song_id), operation=operation, song_id=str(song_id)
            )
        return song

    def update_fields(self, song_id: uuid.UUID, fields: Dict[str, Any]) -> Song:
        """
        Write the given detail fields of a song and refresh `updated_at` in one
        UPDATE ... RETURNING statement. Unknown keys are ignored.
        """
        operation = "SongRepository.update_fields"
        values = {name: value for name, value in fields.items() if name in UPDATABLE_FIELDS}
        statement = (
            update(Song)
            .where(Song.id == song_id)
            .values(**values, updated_at=utc_now())
            .returning(Song)
            .execution_options(populate_existing=True)
        )
        try:
            song: Song | None = self.session.execute(statement).scalars().first()
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail(operation, exc, song_id=str(song_id), fields=sorted(fields)) from exc
        if song is None:
            raise NotFoundError(
                message="Song with ID {} not found".format(song_id), operation=operation, song_id=str(song_id)
            )
        return song

    def delete(self, song_id: uuid.UUID) -> int:
        """Delete a song by ID in one statement and return the number of removed rows."""
        operation = "SongRepository.delete"
        try:
            result = self.session.execute(delete(Song).where(Song.id == song_id))
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail(operation, exc, song_id=str(song_id)) from exc
        return result.rowcount
