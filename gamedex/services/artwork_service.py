"""
ArtworkService - Handles cover image fetching and caching.

Responsibilities:
- Serve cover bytes from memory, then disk, then IGDB
- Migrate covers stored under the old MD5 file names to slug names
- Prefetch covers ahead of display
- Delete a game's cover (memory and disk)

Image failures only mean "no cover"; nothing here raises.
"""

import asyncio
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Iterable, Optional

from gamedex.cache.artwork_files import image_path, legacy_image_path

logger = logging.getLogger(__name__)

# Cover fetch timeout (seconds per game)
ARTWORK_FETCH_TIMEOUT = 30


class ArtworkService:
    """Service for fetching and managing cover art."""

    def __init__(self, client, data_dir: Path, loading_state=None):
        """Initialize ArtworkService.

        Args:
            client: IGDBClient used for cover search and download
            data_dir: Data directory holding caches/images
            loading_state: LoadingState whose prefetch flag is raised during prefetch
        """
        self.client = client
        self.data_dir = Path(data_dir)
        self.loading_state = loading_state

        self._memory: Dict[str, bytes] = {}
        self._lock = threading.Lock()
        self._images_prefetching = False

    @property
    def images_prefetching(self) -> bool:
        return self._images_prefetching

    def _set_prefetching(self, value: bool, total: int = 0):
        self._images_prefetching = value
        if self.loading_state is not None:
            self.loading_state.set_images_prefetching(value, total)

    def _read_file(self, path: Path) -> Optional[bytes]:
        try:
            if not path.is_file():
                return None
            data = path.read_bytes()
        except OSError as e:
            logger.warning(f"[Artwork] Could not read {path}: {e}")
            return None
        return data or None

    def get_cached(self, name: str) -> Optional[bytes]:
        """Cover from memory or disk only (no network)."""
        if not name or not name.strip():
            return None

        with self._lock:
            data = self._memory.get(name)
        if data is not None:
            return data

        current = image_path(self.data_dir, name)
        data = self._read_file(current)

        if data is None:
            legacy = legacy_image_path(self.data_dir, name)
            data = self._read_file(legacy)
            if data is not None:
                try:
                    os.replace(legacy, current)
                    logger.info(f"[Artwork] Migrated legacy cover for '{name}'")
                except OSError as e:
                    # The bytes are already read; keep serving them
                    logger.warning(f"[Artwork] Could not migrate {legacy}: {e}")

        if data is not None:
            with self._lock:
                self._memory[name] = data
        return data

    async def _download(self, name: str) -> Optional[bytes]:
        try:
            url = await self.client.find_cover_url(name)
            if not url:
                return None
            return await self.client.download_image(url)
        except Exception as e:
            logger.warning(f"[Artwork] Cover lookup failed for '{name}': {e}")
            return None

    def _persist(self, name: str, data: bytes):
        path = image_path(self.data_dir, name)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(data)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.warning(f"[Artwork] Could not save cover for '{name}': {e}")

    async def get(self, name: str) -> Optional[bytes]:
        """Cover bytes for a game name, or None when none can be found."""
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(None, self.get_cached, name)
        if data is not None or not name or not name.strip():
            return data

        try:
            data = await asyncio.wait_for(self._download(name), timeout=ARTWORK_FETCH_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning(f"[Artwork] Cover fetch timed out for '{name}' after {ARTWORK_FETCH_TIMEOUT}s")
            return None
        if not data:
            return None

        await loop.run_in_executor(None, self._persist, name, data)
        with self._lock:
            self._memory[name] = data
        logger.debug(f"[Artwork] Cached cover for '{name}' ({len(data)} bytes)")
        return data

    async def prefetch(self, name: str) -> bool:
        """Warm the cache for one game. Returns True if a cover is available."""
        if not name or not name.strip():
            return False
        return await self.get(name) is not None

    async def prefetch_all(self, names: Iterable[str]) -> int:
        """Warm the cache sequentially. Returns the number of covers available."""
        pending = []
        for name in names:
            if name and name.strip() and name not in pending:
                pending.append(name)
        if not pending:
            return 0

        self._set_prefetching(True, len(pending))
        found = 0
        try:
            for name in pending:
                if await self.prefetch(name):
                    found += 1
                if self.loading_state is not None:
                    await self.loading_state.increment_images(name)
        finally:
            self._set_prefetching(False)

        logger.info(f"[Artwork] Prefetch complete: {found}/{len(pending)} covers")
        return found

    def remove(self, name: str) -> bool:
        """Delete a game's cover from memory and disk (both file names)."""
        if not name:
            return False
        with self._lock:
            removed = self._memory.pop(name, None) is not None
        for path in (image_path(self.data_dir, name), legacy_image_path(self.data_dir, name)):
            try:
                if path.exists():
                    path.unlink()
                    removed = True
            except OSError as e:
                logger.warning(f"[Artwork] Could not delete {path}: {e}")
        return removed
