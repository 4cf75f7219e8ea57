from typing import Any, Optional

import requests
import structlog

from models.db_models import SongDetail
from models.exceptions import UpstreamLookupError
from models.schemas import parse_date
from settings import get_settings

logger = structlog.get_logger()

REQUIRED_FIELDS = ("releaseDate", "text", "link")


class MusicInfoClient:
    """
    Client of the external music info service.

    The service answers `GET /info?group=<group>&song=<title>` with
    `{"releaseDate": "dd.mm.yyyy", "text": "...", "link": "..."}`.
    """
    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        response = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        if response.status_code != requests.codes.ok:
            raise UpstreamLookupError(f"unexpected status code: {response.status_code}")
        return response.json()

    def fetch_song_info(self, group_name: str, title: str) -> SongDetail:
        """
        Look up release date, lyrics and link of a song.

        Raises:
            UpstreamLookupError: the service is unreachable, timed out, answered
            with a non-200 status or returned an incomplete body.
        """
        try:
            data = self._get("/info", {"group": group_name, "song": title})
        except requests.RequestException as exc:
            logger.warning("music info request failed", group_name=group_name, title=title, error=str(exc))
            raise UpstreamLookupError(f"failed to fetch song info: {exc}") from exc
        except ValueError as exc:
            raise UpstreamLookupError("failed to decode response body") from exc

        if not isinstance(data, dict):
            raise UpstreamLookupError("unexpected response body")
        missing = [field for field in REQUIRED_FIELDS if not data.get(field)]
        if missing:
            raise UpstreamLookupError(f"missing fields in response: {', '.join(missing)}")

        try:
            release_date = parse_date(data["releaseDate"])
        except (TypeError, ValueError) as exc:
            raise UpstreamLookupError(f"invalid release date: {data['releaseDate']!r}") from exc

        return SongDetail(release_date=release_date, text=data["text"], link=data["link"])


def get_music_info_client() -> MusicInfoClient:
    settings = get_settings()
    return MusicInfoClient(settings.MUSIC_INFO_API_URL, timeout=settings.MUSIC_INFO_API_TIMEOUT)
