"""
MetadataService - Handles game metadata fetching and caching.

Responsibilities:
- In-memory lookup of cached descriptions/genres (never touches the network)
- Negative caching: a lookup that found nothing is remembered, not retried
- On-demand single-game fetch and sequential bulk prefetch (rate-limit safe)
- Per-launcher cache files, written only for launchers with a configured path
- Purging records of uninstalled games
- Grouping games by genre
"""

import asyncio
import logging
import re
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from gamedex.cache.metadata_cache import (
    get_metadata_cache_path,
    load_metadata_cache,
    save_metadata_cache,
)
from gamedex.stores.base import GameEntry, LauncherKind
from gamedex.utils.config import AppConfig

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"

# (launcher, folder name normalized) -> title the catalog actually indexes
QUERY_NAME_REMAPS: Dict[Tuple[LauncherKind, str], str] = {
    (LauncherKind.BATTLENET, "call of duty"): "Call of Duty: Black Ops 6",
}


def query_name(launcher: LauncherKind, name: str) -> str:
    """Name used for catalog lookups and as the cache key."""
    normalized = re.sub(r"\s+", " ", name.strip().lower())
    return QUERY_NAME_REMAPS.get((launcher, normalized), name)


@dataclass(frozen=True)
class MetadataRecord:
    description: Optional[str] = None
    genres: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_negative(self) -> bool:
        return not self.description and not self.genres

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MetadataRecord":
        if not data:
            return cls()
        description = data.get("description")
        genres = data.get("genres") or []
        return cls(
            description=description if isinstance(description, str) and description.strip() else None,
            genres=tuple(g for g in genres if isinstance(g, str) and g.strip()),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"description": self.description, "genres": list(self.genres)}


NEGATIVE_RECORD = MetadataRecord()


class MetadataService:
    """Service for fetching and caching IGDB descriptions and genres."""

    def __init__(
        self,
        client,
        data_dir: Path,
        config_provider: Callable[[], AppConfig],
        loading_state=None,
    ):
        """Initialize MetadataService.

        Args:
            client: IGDBClient (anything with an async fetch_game_info(name))
            data_dir: Data directory holding caches/
            config_provider: Returns the current AppConfig
            loading_state: LoadingState whose metadata flag is raised during bulk fetches
        """
        self.client = client
        self.data_dir = Path(data_dir)
        self._config_provider = config_provider
        self.loading_state = loading_state

        self._caches: Dict[LauncherKind, Dict[str, MetadataRecord]] = {}
        # Guards _caches and the cache files (file I/O can come from executor threads)
        self._lock = threading.RLock()
        # Remote lookups are single-flight and strictly sequential
        self._fetch_lock = asyncio.Lock()
        self._metadata_loading = False

    @property
    def metadata_loading(self) -> bool:
        return self._metadata_loading

    def _set_loading(self, value: bool, total: int = 0):
        self._metadata_loading = value
        if self.loading_state is not None:
            self.loading_state.set_metadata_loading(value, total)

    # ---- cache files ----

    def _cache_for(self, launcher: LauncherKind) -> Dict[str, MetadataRecord]:
        # Caller holds self._lock
        cache = self._caches.get(launcher)
        if cache is None:
            loaded = load_metadata_cache(self.data_dir, launcher)
            cache = {name: MetadataRecord.from_dict(data) for name, data in loaded.value.items()}
            self._caches[launcher] = cache
        return cache

    def _save(self, launcher: LauncherKind) -> bool:
        with self._lock:
            config = self._config_provider()
            if not config.has_configured_path(launcher):
                # No orphaned cache files for unused launchers
                if not get_metadata_cache_path(self.data_dir, launcher).exists():
                    return False
            cache = {name: record.to_dict() for name, record in self._cache_for(launcher).items()}
            return save_metadata_cache(self.data_dir, launcher, cache)

    def _load(self, launcher: LauncherKind):
        with self._lock:
            self._cache_for(launcher)

    async def ensure_loaded(self, launcher: LauncherKind):
        """Load a launcher's cache file off the event loop."""
        if launcher not in self._caches:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, self._load, launcher)

    async def _save_async(self, launcher: LauncherKind) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._save, launcher)

    def is_populated(self, launcher: LauncherKind) -> bool:
        with self._lock:
            return bool(self._cache_for(launcher))

    # ---- lookups ----

    def has_record(self, launcher: LauncherKind, name: str) -> bool:
        """True once a lookup was attempted, whether or not it found anything."""
        if not name:
            return False
        with self._lock:
            return query_name(launcher, name) in self._cache_for(launcher)

    def get(self, launcher: LauncherKind, name: str) -> Optional[MetadataRecord]:
        """Cached record, or None when absent or negative. No network."""
        if not name:
            return None
        with self._lock:
            record = self._cache_for(launcher).get(query_name(launcher, name))
        if record is None or record.is_negative:
            return None
        return record

    def _store(self, launcher: LauncherKind, qname: str, record: MetadataRecord):
        with self._lock:
            self._cache_for(launcher)[qname] = record

    async def _fetch_remote(self, qname: str) -> Optional[MetadataRecord]:
        """One catalog lookup. None means nothing was found (or the call failed)."""
        try:
            info = await self.client.fetch_game_info(qname)
        except Exception as e:
            logger.warning(f"[Metadata] Lookup failed for '{qname}': {e}")
            return None
        record = MetadataRecord.from_dict(info) if isinstance(info, dict) else None
        if record is None or record.is_negative:
            return None
        return record

    def _can_fetch(self) -> bool:
        return bool(getattr(self.client, "has_credentials", True))

    async def fetch_and_cache(self, launcher: LauncherKind, name: str) -> Optional[MetadataRecord]:
        """Return the cached record, fetching it once if never attempted.

        Misses are stored as negative records so later calls never hit the
        network again for the same key.
        """
        if not name or not name.strip():
            return None
        qname = query_name(launcher, name)
        await self.ensure_loaded(launcher)
        if self.has_record(launcher, name):
            return self.get(launcher, name)
        if not self._can_fetch():
            logger.debug("[Metadata] No IGDB credentials, skipping lookup")
            return None

        async with self._fetch_lock:
            # Another caller may have fetched it while we waited
            if self.has_record(launcher, name):
                return self.get(launcher, name)

            record = await self._fetch_remote(qname)
            self._store(launcher, qname, record or NEGATIVE_RECORD)
            await self._save_async(launcher)

        if record is None:
            logger.info(f"[Metadata] No metadata for '{qname}' ({launcher.value}), cached as negative")
        return record

    async def prefetch_all(self, items: Iterable[Tuple[LauncherKind, str]], force: bool = False) -> int:
        """Bulk-fetch metadata, one launcher at a time, one game at a time.

        Games with a positive record are skipped unless force is set. Returns
        the number of positive records fetched.
        """
        items = [(launcher, name) for launcher, name in items if name and name.strip()]
        for launcher in {launcher for launcher, _ in items}:
            await self.ensure_loaded(launcher)

        groups: "OrderedDict[LauncherKind, List[str]]" = OrderedDict()
        for launcher, name in items:
            qname = query_name(launcher, name)
            names = groups.setdefault(launcher, [])
            if qname in names:
                continue
            if not force and self.get(launcher, qname) is not None:
                continue
            names.append(qname)

        total = sum(len(names) for names in groups.values())
        if total == 0 or not self._can_fetch():
            return 0

        logger.info(f"[Metadata] Prefetching metadata for {total} games")
        self._set_loading(True, total)
        fetched = 0
        try:
            for launcher, names in groups.items():
                changed = False
                for qname in names:
                    async with self._fetch_lock:
                        record = await self._fetch_remote(qname)
                    if record is not None:
                        self._store(launcher, qname, record)
                        fetched += 1
                        changed = True
                    elif not self.has_record(launcher, qname):
                        self._store(launcher, qname, NEGATIVE_RECORD)
                        changed = True
                    if self.loading_state is not None:
                        await self.loading_state.increment_metadata(qname)
                if changed:
                    await self._save_async(launcher)
        finally:
            self._set_loading(False)

        logger.info(f"[Metadata] Prefetch complete: {fetched}/{total} found")
        return fetched

    def remove(self, launcher: LauncherKind, name: str) -> bool:
        """Forget a game's record entirely (memory and disk)."""
        if not name:
            return False
        removed = False
        with self._lock:
            cache = self._cache_for(launcher)
            for key in {query_name(launcher, name), name}:
                if cache.pop(key, None) is not None:
                    removed = True
            if removed:
                self._save(launcher)
        if removed:
            logger.info(f"[Metadata] Removed cached metadata for '{name}' ({launcher.value})")
        return removed

    def group_by_genre(
        self,
        entries: Iterable[GameEntry],
        single_category_only: bool = False,
        show_uncategorized: bool = True,
    ) -> Dict[str, List[GameEntry]]:
        """Group entries by cached genres (no network).

        Genres are sorted alphabetically with the Uncategorized bucket last.
        """
        groups: Dict[str, List[GameEntry]] = {}
        for entry in entries:
            record = self.get(entry.launcher, entry.name)
            genres = list(record.genres) if record else []
            if not genres:
                if show_uncategorized:
                    groups.setdefault(UNCATEGORIZED, []).append(entry)
                continue
            for genre in genres[:1] if single_category_only else genres:
                bucket = groups.setdefault(genre, [])
                if entry not in bucket:
                    bucket.append(entry)

        ordered = sorted((g for g in groups if g != UNCATEGORIZED), key=str.lower)
        if UNCATEGORIZED in groups:
            ordered.append(UNCATEGORIZED)
        return {genre: groups[genre] for genre in ordered}
