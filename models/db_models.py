import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SongDetail(SQLModel):
    release_date: Optional[date] = None
    text: Optional[str] = None
    link: Optional[str] = Field(default=None, max_length=2048)


class Song(SongDetail, table=True):
    id: Optional[uuid.UUID] = Field(default_factory=uuid.uuid4, primary_key=True)
    group_name: str = Field(max_length=255)
    title: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"onupdate": utc_now}
    )

    @property
    def detail(self) -> SongDetail:
        return SongDetail(release_date=self.release_date, text=self.text, link=self.link)


class SongWithVerses(SQLModel):
    """Song projection with its lyrics cut into a page of verses. Not stored."""
    id: uuid.UUID
    group_name: str
    title: str
    verses: list[str] = []
    created_at: datetime
    updated_at: datetime
