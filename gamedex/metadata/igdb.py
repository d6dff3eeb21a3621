"""IGDB catalog client (game search, covers, genres) via the Twitch app token."""
import asyncio
import html
import logging
import re
import ssl
import time
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import certifi

logger = logging.getLogger(__name__)

TWITCH_TOKEN_URL = "https://id.twitch.tv/oauth2/token"
IGDB_API_BASE = "https://api.igdb.com/v4"
IGDB_IMAGE_BASE = "https://images.igdb.com/igdb/image/upload"

# Refresh the token this many seconds before it expires
TOKEN_EXPIRY_MARGIN = 30

REQUEST_TIMEOUT = 12.0
DOWNLOAD_TIMEOUT = 10.0

USER_AGENT = "GameDex/1.0 IGDB client"


def normalize_search_name(name: str) -> str:
    """Lowercase, letters/digits/spaces only. Used for the franchise special-cases."""
    return re.sub(r"[^a-z0-9 ]", "", name.lower()).strip()


def build_games_query(name: str, require_cover: bool = False) -> str:
    """Apicalypse query for the best match of a game name."""
    term = name.replace("\\", " ").replace('"', " ")
    parts = [
        f'search "{term}";',
        "fields id,name,summary,storyline,genres,cover,first_release_date;",
    ]
    if require_cover:
        parts.append("where cover != null;")
    if normalize_search_name(name) == "call of duty":
        # The bare series name should land on the newest entry
        parts.append("sort first_release_date desc;")
    parts.append("limit 1;")
    return " ".join(parts)


def cover_url_from_record(cover: Dict[str, Any]) -> Optional[str]:
    image_id = cover.get("image_id")
    if isinstance(image_id, str) and image_id:
        return f"{IGDB_IMAGE_BASE}/t_cover_big/{image_id}.jpg"

    url = cover.get("url")
    if isinstance(url, str) and url:
        if url.startswith("//"):
            url = "https:" + url
        return url.replace("t_thumb", "t_cover_big")
    return None


class IGDBClient:
    """
    Narrow IGDB client.

    Every public call returns None / [] on any failure (missing credentials,
    timeouts, HTTP errors, malformed JSON); nothing here raises.
    """

    def __init__(self, client_id: str = "", client_secret: str = ""):
        self.client_id = client_id or ""
        self.client_secret = client_secret or ""
        self._session: Optional[aiohttp.ClientSession] = None
        self._token: Optional[str] = None
        self._token_expiry = 0.0

    def set_credentials(self, client_id: str, client_secret: str):
        """Update credentials; a cached token is dropped if they changed."""
        client_id = client_id or ""
        client_secret = client_secret or ""
        if (client_id, client_secret) != (self.client_id, self.client_secret):
            self.client_id = client_id
            self.client_secret = client_secret
            self._token = None
            self._token_expiry = 0.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.client_id.strip() and self.client_secret.strip())

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the HTTP session with a certifi SSL context."""
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context, limit_per_host=4)
            self._session = aiohttp.ClientSession(connector=connector)
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_access_token(self) -> Optional[Tuple[str, float]]:
        """Return (token, expiry epoch seconds), reusing the cached token until near expiry."""
        now = time.time()
        if self._token and now < self._token_expiry - TOKEN_EXPIRY_MARGIN:
            return self._token, self._token_expiry
        if not self.has_credentials:
            return None

        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            session = await self._get_session()
            async with session.post(
                TWITCH_TOKEN_URL,
                data=data,
                timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
            ) as resp:
                if resp.status != 200:
                    logger.warning(f"[IGDB] Token request failed: HTTP {resp.status}")
                    return None
                payload = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"[IGDB] Token request error: {e}")
            return None

        token = payload.get("access_token") if isinstance(payload, dict) else None
        expires_in = payload.get("expires_in") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token or not isinstance(expires_in, (int, float)):
            logger.warning("[IGDB] Token response missing access_token/expires_in")
            return None

        self._token = token
        self._token_expiry = now + float(expires_in)
        logger.info(f"[IGDB] Obtained app token (expires in {int(expires_in)}s)")
        return self._token, self._token_expiry

    async def _post(self, endpoint: str, body: str) -> Optional[List[Dict[str, Any]]]:
        """POST an Apicalypse body, return the decoded JSON list or None."""
        token_info = await self.get_access_token()
        if token_info is None:
            return None
        token, _ = token_info

        headers = {
            "Client-ID": self.client_id,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Content-Type": "text/plain",
        }
        try:
            session = await self._get_session()
            async with session.post(
                f"{IGDB_API_BASE}/{endpoint}",
                data=body.encode("utf-8"),
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT),
            ) as resp:
                if resp.status == 401:
                    # Token revoked early; fetch a fresh one next time
                    self._token = None
                if resp.status < 200 or resp.status >= 300:
                    logger.warning(f"[IGDB] {endpoint}: HTTP {resp.status}")
                    return None
                payload = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning(f"[IGDB] {endpoint} request error: {e}")
            return None

        if not isinstance(payload, list):
            logger.warning(f"[IGDB] {endpoint}: unexpected response shape")
            return None
        return [item for item in payload if isinstance(item, dict)]

    async def search_game(self, name: str, require_cover: bool = False) -> Optional[Dict[str, Any]]:
        """Best match for a game name, or None."""
        if not name or not name.strip():
            return None
        results = await self._post("games", build_games_query(name, require_cover))
        if not results:
            logger.debug(f"[IGDB] No match for '{name}'")
            return None
        return results[0]

    async def resolve_cover_url(self, cover_id: int) -> Optional[str]:
        """Absolute t_cover_big URL for a cover id."""
        if not isinstance(cover_id, int) or isinstance(cover_id, bool):
            return None
        results = await self._post("covers", f"fields image_id,url; where id = {cover_id}; limit 1;")
        if not results:
            return None
        return cover_url_from_record(results[0])

    async def fetch_genres(self, ids: List[int]) -> List[str]:
        ids = [i for i in ids if isinstance(i, int) and not isinstance(i, bool)]
        if not ids:
            return []
        id_list = ",".join(str(i) for i in ids)
        results = await self._post("genres", f"fields id,name; where id = ({id_list}); limit 50;")
        if not results:
            return []
        by_id = {item.get("id"): item.get("name") for item in results}
        # Keep the game's genre order
        names = [by_id.get(i) for i in ids]
        return [n for n in names if isinstance(n, str) and n]

    async def fetch_game_info(self, name: str) -> Optional[Dict[str, Any]]:
        """{description, genres} for a game, or None when nothing matched."""
        game = await self.search_game(name)
        if game is None:
            return None

        description = game.get("summary") or game.get("storyline")
        if isinstance(description, str) and description.strip():
            description = html.unescape(description)
        else:
            description = None

        genre_ids = game.get("genres")
        genres = await self.fetch_genres(genre_ids) if isinstance(genre_ids, list) else []
        return {"description": description, "genres": genres}

    async def find_cover_url(self, name: str) -> Optional[str]:
        game = await self.search_game(name, require_cover=True)
        if game is None:
            return None
        return await self.resolve_cover_url(game.get("cover"))

    async def download_image(self, url: str) -> Optional[bytes]:
        if not url:
            return None
        try:
            session = await self._get_session()
            async with session.get(
                url,
                headers={"User-Agent": USER_AGENT},
                timeout=aiohttp.ClientTimeout(total=DOWNLOAD_TIMEOUT),
            ) as resp:
                if resp.status != 200:
                    logger.warning(f"[IGDB] Image download failed: HTTP {resp.status} for {url}")
                    return None
                data = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"[IGDB] Image download error for {url}: {e}")
            return None
        return data or None
