import uuid
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator
from sqlmodel import SQLModel

from models.db_models import SongWithVerses
from models.pagination import Pagination

DATE_FORMAT = "%d.%m.%Y"


def parse_date(value: str) -> date:
    """Parse a `dd.mm.yyyy` date; raises ValueError on any other shape."""
    return datetime.strptime(value, DATE_FORMAT).date()


def format_date(value: Optional[date]) -> Optional[str]:
    return value.strftime(DATE_FORMAT) if value else None


class SongDetailRead(SQLModel):
    release_date: Optional[date] = None
    text: Optional[str] = None
    link: Optional[str] = None

    @field_serializer("release_date")
    def serialize_release_date(self, release_date: Optional[date], _info):
        return format_date(release_date)


class SongRead(SQLModel):
    id: uuid.UUID
    group_name: str
    title: str
    song_detail: SongDetailRead
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_song(cls, song) -> "SongRead":
        return cls(
            id=song.id,
            group_name=song.group_name,
            title=song.title,
            song_detail=SongDetailRead(**song.detail.model_dump()),
            created_at=song.created_at,
            updated_at=song.updated_at,
        )


class SongsResponse(BaseModel):
    songs: List[SongRead] = []
    pagination: Pagination


class SongWithVersesResponse(BaseModel):
    song: SongWithVerses
    pagination: Pagination


class SongCreate(BaseModel):
    group_name: str
    title: str

    @field_validator("group_name", "title")
    def not_blank(cls, value: str, info):
        if not value.strip():
            raise ValueError(f"`{info.field_name}` must not be empty or blank")
        return value


class SongUpdate(BaseModel):
    """
    Partial update of the song detail.

    Only fields present in the payload are written; an explicit `null`
    clears the stored value. Group name and title cannot be changed.
    """
    model_config = ConfigDict(extra="forbid")

    release_date: Optional[date] = None
    text: Optional[str] = None
    link: Optional[str] = None

    @field_validator("release_date", mode="before")
    def parse_release_date(cls, value):
        if isinstance(value, str):
            try:
                return parse_date(value)
            except ValueError:
                raise ValueError("invalid format, must be like '02.01.2006'")
        return value
