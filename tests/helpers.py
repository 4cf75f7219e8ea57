from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlmodel import Session

from models.db_models import Song, SongDetail
from models.exceptions import UpstreamLookupError


class FakeMusicInfo:
    """Stand-in for the music info service that records every lookup."""
    def __init__(self, detail: Optional[SongDetail] = None, error: Optional[Exception] = None):
        self.detail = detail or SongDetail(
            release_date=date(2006, 7, 16),
            text="Ooh baby, don't you know I suffer?\nOoh baby, can you hear me moan?\n\nOoh\nYou set my soul alight",
            link="https://www.youtube.com/watch?v=Xsp3_a-PMTw",
        )
        self.error = error
        self.calls = []

    def fail_with(self, message: str = "service unavailable"):
        self.error = UpstreamLookupError(message)

    def fetch_song_info(self, group_name: str, title: str) -> SongDetail:
        self.calls.append((group_name, title))
        if self.error is not None:
            raise self.error
        return self.detail


def populate_test_db(session: Session, num_songs: int = 1) -> list[Song]:
    """
    Populate the test database with mock songs.

    Parameters
    ----------
    `session` : `Session`
        Active SQLModel session to write data to.

    `num_songs` : `int`
        Number of songs to generate (default is 1).

    Returns
    -------
    `list[Song]`
        Created `Song` objects, in creation order.
    """
    songs = []

    titles_pool = [
        "Morning Sunrise",
        "Night Dance",
        "Whispered Calls",
        "Mountain Echoes",
        "Endless Rivers",
        "Starry Skies",
        "Flight of Dreams",
        "Fading Shadows",
        "Heartbeat",
        "Forever Yours"
    ]

    groups_pool = [
        "The Luminaries",
        "Midnight Wanderers",
        "Echoes of Silence",
        "The Mountain Folk",
        "River Flow",
        "Starlight Ensemble",
        "Dreamcatchers",
        "Shadow Players",
        "Heartbeat Band",
        "Forever Crew"
    ]

    lyrics_pool = [
        "Sunshine in the morning",
        "Dancing through the night",
        "Whispering winds call my name",
        "Mountains echo your voice",
        "Rivers flow endlessly",
        "Stars light the dark sky",
        "Dreams take flight tonight",
        "Shadows fade away",
        "Hearts beat as one",
        "Forever in your arms"
    ]

    created_at = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for i in range(num_songs):
        verses = [lyrics_pool[(i * 3 + j) % len(lyrics_pool)] for j in range(3)]  # 3 verses per song
        song = Song(
            group_name=groups_pool[i % len(groups_pool)],
            title=titles_pool[i % len(titles_pool)],
            release_date=date(1990 + i, 1 + i % 12, 10),
            text="\n\n".join(verses),
            link=f"https://example.com/songs/{i}",
            created_at=created_at + timedelta(minutes=i),
            updated_at=created_at + timedelta(minutes=i),
        )
        session.add(song)
        songs.append(song)

    session.commit()
    for song in songs:
        session.refresh(song)

    return songs
