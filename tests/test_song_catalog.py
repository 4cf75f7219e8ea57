import uuid
from datetime import date, datetime, timezone
from unittest.mock import Mock

import pytest
from structlog.testing import capture_logs

from models.db_models import Song, SongDetail
from models.exceptions import (
    NoFieldsToUpdateError, NotFoundError, PersistenceFailedError, UpstreamLookupError, UpstreamLookupFailedError
)
from models.filters import SongFilter, SongFilterField
from models.operations import SongRepository
from models.pagination import Pagination, PaginationDefaults
from models.schemas import SongCreate, SongUpdate
from services.song_catalog import SongCatalog
from tests.helpers import FakeMusicInfo

NOW = datetime(2024, 10, 5, 14, 48, tzinfo=timezone.utc)


def make_song(**kwargs) -> Song:
    data = dict(
        id=uuid.uuid4(), group_name="Queen", title="Bohemian Rhapsody",
        text="Is this the real life?\n\nIs this just fantasy?", created_at=NOW, updated_at=NOW
    )
    data.update(kwargs)
    return Song(**data)

@pytest.fixture
def repository():
    return Mock(spec=SongRepository)

def test_add_song_merges_detail_and_saves(repository):
    lookup = FakeMusicInfo()
    repository.save.side_effect = lambda song: song
    catalog = SongCatalog(lookup, repository)

    song = catalog.add_song(SongCreate(group_name="Muse", title="Supermassive Black Hole"))

    assert lookup.calls == [("Muse", "Supermassive Black Hole")]
    repository.save.assert_called_once()
    assert song.group_name == "Muse"
    assert song.title == "Supermassive Black Hole"
    assert song.detail.model_dump() == lookup.detail.model_dump()

def test_add_song_lookup_failure_skips_storage(repository):
    lookup = FakeMusicInfo()
    lookup.fail_with("timeout")
    catalog = SongCatalog(lookup, repository)

    with pytest.raises(UpstreamLookupFailedError) as exc_info:
        catalog.add_song(SongCreate(group_name="Muse", title="Uprising"))

    assert repository.save.call_count == 0
    assert repository.mock_calls == []
    assert exc_info.value.operation == "SongCatalog.add_song"
    assert exc_info.value.context == {"group_name": "Muse", "title": "Uprising"}
    assert isinstance(exc_info.value.__cause__, UpstreamLookupError)

def test_add_song_storage_failure(repository):
    repository.save.side_effect = PersistenceFailedError("storage error")
    catalog = SongCatalog(FakeMusicInfo(), repository)
    with pytest.raises(PersistenceFailedError) as exc_info:
        catalog.add_song(SongCreate(group_name="Muse", title="Uprising"))
    assert exc_info.value.message == "failed to add song"

def test_fetch_songs_delegates_to_repository(repository):
    songs = [make_song(), make_song()]
    summary = Pagination(offset=0, limit=20, items=2, total=7)
    repository.list_matching.return_value = (songs, summary)
    filters = [SongFilter(SongFilterField.group_name, "queen"), SongFilter(SongFilterField.release_year, 1975)]

    found, pagination = SongCatalog(FakeMusicInfo(), repository).fetch_songs(Pagination(), *filters)

    repository.list_matching.assert_called_once_with(Pagination(), *filters)
    assert found == songs
    assert pagination == summary

def test_fetch_songs_storage_failure(repository):
    repository.list_matching.side_effect = PersistenceFailedError("storage error")
    with pytest.raises(PersistenceFailedError) as exc_info:
        SongCatalog(FakeMusicInfo(), repository).fetch_songs(Pagination(offset=0, limit=5))
    assert exc_info.value.operation == "SongCatalog.fetch_songs"

def test_fetch_song_with_verses(repository):
    song = make_song()
    repository.get_by_id.return_value = song

    result, pagination = SongCatalog(FakeMusicInfo(), repository).fetch_song_with_verses(
        song.id, Pagination(offset=1, limit=5)
    )

    repository.get_by_id.assert_called_once_with(song.id)
    assert result.id == song.id
    assert result.group_name == "Queen"
    assert result.title == "Bohemian Rhapsody"
    assert result.verses == ["Is this just fantasy?"]
    assert result.created_at == NOW
    assert pagination == Pagination(offset=1, limit=5, items=1, total=2)

def test_fetch_song_with_verses_uses_configured_defaults(repository):
    repository.get_by_id.return_value = make_song(text="a\n\nb\n\nc")
    catalog = SongCatalog(FakeMusicInfo(), repository, PaginationDefaults(offset=0, limit=1))
    result, pagination = catalog.fetch_song_with_verses(uuid.uuid4(), Pagination())
    assert result.verses == ["a"]
    assert pagination == Pagination(offset=0, limit=1, items=1, total=3)

def test_fetch_song_with_verses_without_lyrics(repository):
    repository.get_by_id.return_value = make_song(text=None)
    result, pagination = SongCatalog(FakeMusicInfo(), repository).fetch_song_with_verses(uuid.uuid4(), Pagination())
    assert result.verses == [""]
    assert pagination.total == 1

def test_fetch_song_with_verses_not_found(repository):
    repository.get_by_id.side_effect = NotFoundError("Song not found")
    with pytest.raises(NotFoundError):
        SongCatalog(FakeMusicInfo(), repository).fetch_song_with_verses(uuid.uuid4(), Pagination())

def test_modify_song_writes_only_given_fields(repository):
    song_id = uuid.uuid4()
    repository.update_fields.return_value = make_song(id=song_id, link="https://x")

    SongCatalog(FakeMusicInfo(), repository).modify_song(song_id, SongUpdate(link="https://x", text=None))

    repository.update_fields.assert_called_once_with(song_id, {"link": "https://x", "text": None})

@pytest.mark.parametrize(
    "song_update",
    [
        pytest.param(SongUpdate(), id="nothing_set"),
        pytest.param(SongUpdate.model_validate({}), id="empty_payload"),
    ]
)
def test_modify_song_without_fields(song_update, repository):
    with pytest.raises(NoFieldsToUpdateError):
        SongCatalog(FakeMusicInfo(), repository).modify_song(uuid.uuid4(), song_update)
    assert repository.mock_calls == []

def test_modify_song_parses_release_date(repository):
    song_id = uuid.uuid4()
    repository.update_fields.return_value = make_song(id=song_id)
    SongCatalog(FakeMusicInfo(), repository).modify_song(song_id, SongUpdate.model_validate({"release_date": "08.11.1971"}))
    repository.update_fields.assert_called_once_with(song_id, {"release_date": date(1971, 11, 8)})

def test_modify_song_not_found(repository):
    repository.update_fields.side_effect = NotFoundError("Song not found")
    with pytest.raises(NotFoundError):
        SongCatalog(FakeMusicInfo(), repository).modify_song(uuid.uuid4(), SongUpdate(text="x"))

def test_remove_song(repository):
    repository.delete.return_value = 1
    assert SongCatalog(FakeMusicInfo(), repository).remove_song(uuid.uuid4()) == 1

def test_remove_missing_song(repository):
    repository.delete.return_value = 0
    song_id = uuid.uuid4()
    with pytest.raises(NotFoundError) as exc_info:
        SongCatalog(FakeMusicInfo(), repository).remove_song(song_id)
    assert exc_info.value.context == {"song_id": str(song_id)}

def test_remove_more_than_one_song_is_logged_not_raised(repository):
    repository.delete.return_value = 2
    with capture_logs() as logs:
        removed = SongCatalog(FakeMusicInfo(), repository).remove_song(uuid.uuid4())
    assert removed == 2
    assert any(log["log_level"] == "warning" and log["removed"] == 2 for log in logs)
