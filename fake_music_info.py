"""
Stand-in for the external music info service, for local runs.

Answers every lookup with the same song detail.
"""
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

from settings import get_settings

app = FastAPI(title="Music Info API")


class SongInfo(BaseModel):
    releaseDate: str
    text: str
    link: str


FAKE_SONG_INFO = SongInfo(
    releaseDate="16.07.2006",
    text=(
        "Ooh baby, don't you know I suffer?\nOoh baby, can you hear me moan?\n"
        "You caught me under false pretenses\nHow long before you let me go?\n\n"
        "Ooh\nYou set my soul alight\nOoh\nYou set my soul alight"
    ),
    link="https://www.youtube.com/watch?v=Xsp3_a-PMTw",
)


@app.get("/info", response_model=SongInfo)
def song_info(group: Optional[str] = Query(default=None), song: Optional[str] = Query(default=None)):
    if not group or not song:
        raise HTTPException(status_code=400, detail="Missing required parameters: group and song")
    return FAKE_SONG_INFO


def main() -> None:
    uvicorn.run(app, host="0.0.0.0", port=get_settings().FAKE_MUSIC_INFO_PORT)

if __name__ == "__main__":
    main()
