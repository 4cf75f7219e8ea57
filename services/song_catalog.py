import uuid
from typing import List, Protocol, Tuple

import structlog

from models.db_models import Song, SongDetail, SongWithVerses
from models.exceptions import (
    NoFieldsToUpdateError, NotFoundError, PersistenceFailedError, UpstreamLookupError, UpstreamLookupFailedError
)
from models.filters import SongFilter
from models.operations import SongRepository
from models.pagination import DEFAULT_PAGINATION, Pagination, PaginationDefaults
from models.schemas import SongCreate, SongUpdate
from models.verses import paginate_verses

logger = structlog.get_logger()


class SongInfoLookup(Protocol):
    def fetch_song_info(self, group_name: str, title: str) -> SongDetail: ...


class SongCatalog:
    """
    Song library operations: enrich-and-save, search, verse paging, partial
    update and removal.

    Each call runs on its own and makes at most one lookup call and one
    storage call; nothing is retried.
    """
    def __init__(
            self,
            lookup: SongInfoLookup,
            repository: SongRepository,
            pagination_defaults: PaginationDefaults = DEFAULT_PAGINATION
    ):
        self.lookup = lookup
        self.repository = repository
        self.pagination_defaults = pagination_defaults

    def add_song(self, song_in: SongCreate) -> Song:
        """
        Fetch the song detail from the music info service and store the song.

        Nothing is stored when the lookup fails.

        Raises:
            UpstreamLookupFailedError: the music info service could not provide the detail.
            PersistenceFailedError: the song could not be stored.
        """
        operation = "SongCatalog.add_song"
        try:
            detail = self.lookup.fetch_song_info(song_in.group_name, song_in.title)
        except UpstreamLookupError as exc:
            raise UpstreamLookupFailedError(
                "failed to fetch song detail from music info api",
                operation=operation, group_name=song_in.group_name, title=song_in.title
            ) from exc

        song = Song(group_name=song_in.group_name, title=song_in.title, **detail.model_dump())
        try:
            saved = self.repository.save(song)
        except PersistenceFailedError as exc:
            raise PersistenceFailedError(
                "failed to add song", operation=operation, group_name=song_in.group_name, title=song_in.title
            ) from exc

        logger.info("song added", song_id=str(saved.id), group_name=saved.group_name, title=saved.title)
        return saved

    def fetch_songs(self, pagination: Pagination, *filters: SongFilter) -> Tuple[List[Song], Pagination]:
        """Return one page of songs matching every filter, plus its pagination summary."""
        operation = "SongCatalog.fetch_songs"
        try:
            return self.repository.list_matching(pagination, *filters)
        except PersistenceFailedError as exc:
            raise PersistenceFailedError(
                "failed to fetch songs", operation=operation, pagination=pagination.model_dump()
            ) from exc

    def fetch_song(self, song_id: uuid.UUID) -> Song:
        return self.repository.get_by_id(song_id)

    def fetch_song_with_verses(self, song_id: uuid.UUID, pagination: Pagination) -> Tuple[SongWithVerses, Pagination]:
        """
            Load a song and return a page of its verses.

            Verses are separated by a blank line. Lyrics-less songs count as a
            single empty verse.

            Returns:
                A tuple: (song with the requested verses, verse pagination summary).
        """
        song = self.repository.get_by_id(song_id)
        verses, summary = paginate_verses(song.text, pagination, self.pagination_defaults)
        return SongWithVerses(
            id=song.id,
            group_name=song.group_name,
            title=song.title,
            verses=verses,
            created_at=song.created_at,
            updated_at=song.updated_at,
        ), summary

    def modify_song(self, song_id: uuid.UUID, song_update: SongUpdate) -> Song:
        """
        Write the detail fields present in `song_update`.

        A field explicitly set to None clears it; a field left out is kept. An
        update that sets nothing is rejected before storage is touched.
        """
        operation = "SongCatalog.modify_song"
        fields = song_update.model_dump(exclude_unset=True)
        if not fields:
            raise NoFieldsToUpdateError("no fields provided for update", operation=operation, song_id=str(song_id))

        song = self.repository.update_fields(song_id, fields)
        logger.info("song modified", song_id=str(song_id), fields=sorted(fields))
        return song

    def remove_song(self, song_id: uuid.UUID) -> int:
        """Delete a song and return the number of removed records."""
        operation = "SongCatalog.remove_song"
        removed = self.repository.delete(song_id)
        if removed == 0:
            raise NotFoundError(
                "Song with ID {} not found".format(song_id), operation=operation, song_id=str(song_id)
            )
        if removed > 1:
            logger.warning("removed more than one song", song_id=str(song_id), removed=removed)
        logger.info("song removed", song_id=str(song_id))
        return removed
