import uuid
from typing import List

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlmodel import Session

from db import get_session
from models.exceptions import (
    NoFieldsToUpdateError, NotFoundError, PersistenceFailedError, UpstreamLookupFailedError
)
from models.filters import SongFilter
from models.operations import SongRepository
from models.pagination import Pagination
from models.schemas import SongCreate, SongRead, SongsResponse, SongUpdate, SongWithVersesResponse
from music_info_client import MusicInfoClient, get_music_info_client
from services.song_catalog import SongCatalog
from settings import get_settings
from utils.api_utils import parse_pagination, parse_song_filters

router = APIRouter(tags=["Songs"], prefix="/songs")

logger = structlog.get_logger()


def get_song_catalog(
        session: Session = Depends(get_session),
        music_info: MusicInfoClient = Depends(get_music_info_client)
) -> SongCatalog:
    defaults = get_settings().pagination_defaults()
    return SongCatalog(
        lookup=music_info,
        repository=SongRepository(session, pagination_defaults=defaults),
        pagination_defaults=defaults
    )


def storage_error(exc: PersistenceFailedError) -> HTTPException:
    logger.error("request failed", error=str(exc), operation=exc.operation, **exc.context)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="server error occurred")


@router.get(
    path="/",
    response_model=SongsResponse,
    summary="Song list"
)
def read_songs(
        pagination: Pagination = Depends(parse_pagination),
        filters: List[SongFilter] = Depends(parse_song_filters),
        catalog: SongCatalog = Depends(get_song_catalog)
):
    """
        Retrieve a page of songs, optionally filtered.

        Parameters
        ----------
        `offset`: `int`, `optional`
            Number of records to skip (default is 0).\n
        `limit`: `int`, `optional`
            Maximum number of records to return (default is 20).\n
        `group_name`, `title`, `text`: `str`, `optional`
            Case-insensitive substring filters.\n
        `release_year`: `int`, `optional`
            Year of release.\n
        `release_date`, `release_date_after`, `release_date_before`: `str`, `optional`
            Release date filters in `dd.mm.yyyy` format.

        Returns
        -------
        `SongsResponse`
            Songs of the page with pagination metadata. `total` counts all matching songs.
    """
    try:
        songs, summary = catalog.fetch_songs(pagination, *filters)
    except PersistenceFailedError as exc:
        raise storage_error(exc)
    return SongsResponse(songs=[SongRead.from_song(song) for song in songs], pagination=summary)

@router.get(
    path="/{song_id}",
    response_model=SongRead,
    summary="Song details"
)
def read_song(song_id: uuid.UUID, catalog: SongCatalog = Depends(get_song_catalog)):
    """
        Retrieve a single song by its ID.

        Raises
        ------
        `HTTPException`
            If no song with the given ID is found (`404 Not Found`).
    """
    try:
        return SongRead.from_song(catalog.fetch_song(song_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Song not found")
    except PersistenceFailedError as exc:
        raise storage_error(exc)

@router.get(
    path="/{song_id}/text",
    response_model=SongWithVersesResponse,
    summary="Song verses"
)
def read_song_verses(
        song_id: uuid.UUID,
        pagination: Pagination = Depends(parse_pagination),
        catalog: SongCatalog = Depends(get_song_catalog)
):
    """
        Retrieve a song with a page of its verses.

        Parameters
        ----------
        `song_id` : `UUID`
            Unique identifier of the song.\n
        `offset`: `int`, `optional`
            Number of verses to skip (default is 0).\n
        `limit`: `int`, `optional`
            Maximum number of verses to return (default is 20).

        Returns
        -------
        `SongWithVersesResponse`
            The song with the selected verses and verse pagination metadata.

        Raises
        ------
        `HTTPException`
            If no song with the given ID is found (`404 Not Found`).
    """
    try:
        song, summary = catalog.fetch_song_with_verses(song_id, pagination)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Song not found")
    except PersistenceFailedError as exc:
        raise storage_error(exc)
    return SongWithVersesResponse(song=song, pagination=summary)

@router.post(
    path="/",
    response_model=SongRead,
    status_code=status.HTTP_201_CREATED,
    summary="Song create"
)
def create_song(song_in: SongCreate, catalog: SongCatalog = Depends(get_song_catalog)):
    """
        Create a new song.

        Release date, lyrics and link are fetched from the music info service
        by group name and title before the song is stored.

        Raises
        ------
        `HTTPException`
            `502 Bad Gateway` if the music info service fails, `500` if the song cannot be stored.
    """
    try:
        return SongRead.from_song(catalog.add_song(song_in))
    except UpstreamLookupFailedError as exc:
        logger.warning("song lookup failed", error=str(exc), **exc.context)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="music info service unavailable")
    except PersistenceFailedError as exc:
        raise storage_error(exc)

@router.patch(
    path="/{song_id}",
    response_model=SongRead,
    summary="Song update"
)
def update_song(song_id: uuid.UUID, song_data: SongUpdate, catalog: SongCatalog = Depends(get_song_catalog)):
    """
        Partially update the detail of a song.

        Only `release_date` (`dd.mm.yyyy`), `text` and `link` can be changed. Fields left
        out of the payload are kept, fields sent as `null` are cleared.

        Raises
        ------
        `HTTPException`
            `400` if the payload sets no field, `404` if the song does not exist.
    """
    try:
        return SongRead.from_song(catalog.modify_song(song_id, song_data))
    except NoFieldsToUpdateError:
        raise HTTPException(status_code=400, detail="No fields to update")
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Song not found")
    except PersistenceFailedError as exc:
        raise storage_error(exc)

@router.delete(
    path="/{song_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
    summary="Song delete"
)
def delete_song(song_id: uuid.UUID, catalog: SongCatalog = Depends(get_song_catalog)):
    """
        Delete a song by ID.

        Raises
        ------
        `HTTPException`
            If no song with the given ID is found (`404 Not Found`).
    """
    try:
        catalog.remove_song(song_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Song not found")
    except PersistenceFailedError as exc:
        raise storage_error(exc)
    return Response(status_code=204)
