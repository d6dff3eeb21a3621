"""
GameDexCore - the one service object a front end talks to.

Built once at startup (``init()``), then passed to whatever needs it. All
state is file-backed, so there is no teardown beyond closing the HTTP session.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from gamedex.controllers.sync_progress_tracker import LoadingState
from gamedex.discovery.scanner import DirectoryScanner
from gamedex.metadata.igdb import IGDBClient
from gamedex.registry.exe_selections import ExeSelectionStore
from gamedex.registry.game_index import GameIndexStore
from gamedex.registry.path_mappings import PathMappings
from gamedex.registry.user_data import FavoritesStore, LaunchOptionsStore, PlayStatsStore
from gamedex.services.artwork_service import ArtworkService
from gamedex.services.launch_service import LaunchService
from gamedex.services.library_service import LibraryService, ScanResult
from gamedex.services.metadata_service import MetadataRecord, MetadataService, query_name
from gamedex.services.resolver_service import Resolution, ResolverService
from gamedex.stores.base import GameEntry, GameIndex, LauncherKind
from gamedex.stores.manager import LauncherManager
from gamedex.utils.config import AppConfig, ConfigManager
from gamedex.utils.outcome import NOT_CONFIGURED, Outcome
from gamedex.utils.paths import ensure_data_dir, get_data_dir

logger = logging.getLogger(__name__)


class GameDexCore:
    """Discovery, index, executable resolution and metadata/cover caches."""

    def __init__(self, data_dir: Optional[Union[str, Path]] = None, client: Optional[IGDBClient] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else get_data_dir()
        self._client = client
        self._config: Optional[AppConfig] = None
        self._initialized = False

    def init(self) -> "GameDexCore":
        """Load configuration and build every service. Safe to call once per process."""
        if self._initialized:
            return self

        logger.info(f"[INIT] Starting GameDex (data dir: {self.data_dir})")
        if not ensure_data_dir(self.data_dir):
            logger.error(f"[INIT] Could not create data directory {self.data_dir}")

        self.config_manager = ConfigManager(self.data_dir)
        self._config = self.config_manager.load_or_create_default()

        self.loading_state = LoadingState()

        logger.info("[INIT] Initializing stores")
        self.path_mappings = PathMappings(self.data_dir)
        self.path_mappings.ensure_file()
        self.exe_selections = ExeSelectionStore(self.data_dir)
        self.favorites = FavoritesStore(self.data_dir)
        self.launch_options = LaunchOptionsStore(self.data_dir)
        self.play_stats = PlayStatsStore(self.data_dir)

        if self._client is None:
            self._client = IGDBClient(self._config.igdb_client_id, self._config.igdb_client_secret)
        self.client = self._client

        logger.info("[INIT] Initializing services")
        self.metadata = MetadataService(
            client=self.client,
            data_dir=self.data_dir,
            config_provider=self.get_config,
            loading_state=self.loading_state,
        )
        self.artwork = ArtworkService(self.client, self.data_dir, loading_state=self.loading_state)
        self.resolver = ResolverService(self.exe_selections)
        self.library = LibraryService(
            config_provider=self.get_config,
            index_store=GameIndexStore(self.data_dir),
            exe_selections=self.exe_selections,
            scanner=DirectoryScanner(self.path_mappings),
            launcher_manager=LauncherManager(self._config.follow_steam_library_folders),
            loading_state=self.loading_state,
            on_games_removed=self._purge_games,
        )
        self.launcher = LaunchService(self.launch_options, self.play_stats)

        self._initialized = True
        logger.info("[INIT] GameDex ready")
        return self

    async def close(self):
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()

    # ---- configuration ----

    def get_config(self) -> AppConfig:
        if self._config is None:
            self._config = ConfigManager(self.data_dir).load_or_create_default()
        return self._config

    def save_config(self, config: AppConfig) -> bool:
        self._config = config
        if isinstance(self.client, IGDBClient):
            self.client.set_credentials(config.igdb_client_id, config.igdb_client_secret)
        return self.config_manager.save(config)

    def needs_setup(self) -> bool:
        return self.get_config().needs_setup()

    # ---- index ----

    @property
    def index(self) -> GameIndex:
        return self.library.current_index

    async def scan(self) -> GameIndex:
        """Fresh scan without touching the index file."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.library.scan, self.get_config())

    async def load_or_scan(self) -> ScanResult:
        return await self.library.load_or_scan()

    async def rescan_and_save(self) -> ScanResult:
        return await self.library.rescan_and_save()

    def find_entry(self, dir_path: str) -> Optional[GameEntry]:
        return self.index.find(dir_path)

    def find_by_name(self, name: str) -> List[GameEntry]:
        needle = name.strip().lower()
        return [e for e in self.index.entries if e.name.lower() == needle]

    # ---- executable resolution ----

    def resolve(self, entry: GameEntry) -> Resolution:
        return self.resolver.resolve(entry)

    async def resolve_index(self) -> Tuple[GameIndex, List[Dict[str, Any]]]:
        """Resolve the current index; returns it plus the games needing a choice."""
        loop = asyncio.get_running_loop()
        resolved, ambiguous = await loop.run_in_executor(None, self.resolver.resolve_index, self.index)
        index = self.library.apply_selections({e.dir_path: e.exe_path for e in resolved.entries})
        return index, ambiguous

    def choose(self, dir_path: str, exe_path: str) -> Outcome[bool]:
        result = self.resolver.choose(dir_path, exe_path)
        if result.ok:
            self.library.apply_selections({dir_path: exe_path})
        return result

    # ---- metadata ----

    def get_metadata(self, entry: GameEntry) -> Optional[MetadataRecord]:
        return self.metadata.get(entry.launcher, entry.name)

    def has_metadata_record(self, entry: GameEntry) -> bool:
        return self.metadata.has_record(entry.launcher, entry.name)

    async def fetch_metadata(self, entry: GameEntry) -> Optional[MetadataRecord]:
        return await self.metadata.fetch_and_cache(entry.launcher, entry.name)

    async def prefetch_metadata(self, entries: Optional[Iterable[GameEntry]] = None, force: bool = False) -> int:
        entries = self.index.entries if entries is None else entries
        return await self.metadata.prefetch_all([(e.launcher, e.name) for e in entries], force=force)

    def group_by_genre(self, entries: Optional[Iterable[GameEntry]] = None) -> Dict[str, List[GameEntry]]:
        config = self.get_config()
        return self.metadata.group_by_genre(
            self.index.entries if entries is None else entries,
            single_category_only=not config.show_games_in_multiple_categories,
            show_uncategorized=config.show_uncategorized_titles,
        )

    @property
    def metadata_loading(self) -> bool:
        return self.metadata.metadata_loading

    # ---- images ----

    @staticmethod
    def image_key(entry: GameEntry) -> str:
        return query_name(entry.launcher, entry.name)

    def get_cached_image(self, entry: GameEntry) -> Optional[bytes]:
        return self.artwork.get_cached(self.image_key(entry))

    async def get_image(self, entry: GameEntry) -> Optional[bytes]:
        return await self.artwork.get(self.image_key(entry))

    async def prefetch_images(self, entries: Optional[Iterable[GameEntry]] = None) -> int:
        entries = self.index.entries if entries is None else entries
        return await self.artwork.prefetch_all(self.image_key(e) for e in entries)

    @property
    def images_prefetching(self) -> bool:
        return self.artwork.images_prefetching

    # ---- cache cleanup ----

    def remove_game_caches(self, launcher: LauncherKind, name: str) -> bool:
        """Drop the metadata record and cover of a game (memory and disk)."""
        removed_meta = self.metadata.remove(launcher, name)
        removed_image = self.artwork.remove(query_name(launcher, name))
        return removed_meta or removed_image

    def _purge_games(self, entries: List[GameEntry], current: GameIndex):
        # The same title can remain installed in another library; keep its caches
        live_records = {(e.launcher, query_name(e.launcher, e.name)) for e in current.entries}
        live_images = {self.image_key(e) for e in current.entries}
        for entry in entries:
            key = self.image_key(entry)
            if (entry.launcher, key) not in live_records:
                self.metadata.remove(entry.launcher, entry.name)
            if key not in live_images:
                self.artwork.remove(key)

    # ---- user data / launching ----

    def toggle_favorite(self, dir_path: str) -> bool:
        return self.favorites.toggle(dir_path)

    def launch(self, entry: GameEntry) -> Outcome[bool]:
        return self.launcher.launch(entry)

    # ---- orchestration ----

    async def refresh_library(self, force_rescan: bool = False, fetch_images: bool = True) -> Dict[str, Any]:
        """Scan, resolve executables, then backfill metadata and covers.

        Metadata is fetched when the index changed or a launcher's cache is
        still empty.
        """
        if force_rescan:
            result = await self.rescan_and_save()
        else:
            result = await self.load_or_scan()

        if result.error:
            return {'success': False, 'error': result.error, 'ambiguous': []}
        if result.needs_setup:
            self.loading_state.finish()
            return {'success': False, 'error': NOT_CONFIGURED, 'needs_setup': True, 'ambiguous': []}

        self.loading_state.set_resolving()
        index, ambiguous = await self.resolve_index()

        launchers = {e.launcher for e in index.entries}
        for kind in launchers:
            await self.metadata.ensure_loaded(kind)
        needs_metadata = result.changed or any(not self.metadata.is_populated(k) for k in launchers)
        fetched = 0
        if needs_metadata:
            fetched = await self.prefetch_metadata(index.entries)

        covers = 0
        if fetch_images:
            covers = await self.prefetch_images(index.entries)

        self.loading_state.finish()
        return {
            'success': True,
            'changed': result.changed,
            'game_count': len(index.entries),
            'metadata_fetched': fetched,
            'covers_available': covers,
            'ambiguous': ambiguous,
        }

    def get_loading_state(self) -> Dict[str, Any]:
        return self.loading_state.to_dict()
