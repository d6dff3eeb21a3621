"""
LibraryService - Builds and persists the game index.

Responsibilities:
- Scan every configured launcher library into a sorted, deduplicated index
- Apply persisted executable choices to scanned entries
- Rewrite the index file only when the set of launch targets changed
- Force a rescan + save on explicit reloads
- Guard against overlapping scans
- Report games that disappeared so their caches can be purged
"""

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from gamedex.discovery.scanner import DirectoryScanner
from gamedex.registry.exe_selections import ExeSelectionStore
from gamedex.registry.game_index import GameIndexStore
from gamedex.stores.base import GameEntry, GameIndex, LauncherKind
from gamedex.stores.launchers import SteamLauncher
from gamedex.stores.manager import LauncherManager
from gamedex.utils.config import AppConfig
from gamedex.utils.outcome import SCAN_IN_PROGRESS, Outcome

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScanResult:
    index: GameIndex
    changed: bool = False
    needs_setup: bool = False
    error: Optional[str] = None

    def to_dict(self):
        return {
            'success': self.error is None,
            'error': self.error,
            'changed': self.changed,
            'needs_setup': self.needs_setup,
            'index': self.index.to_dict(),
        }


def index_changed(previous: GameIndex, scanned: GameIndex) -> bool:
    """True when the launch targets differ (compared as a multiset of exe paths)."""
    return Counter(e.exe_path for e in previous.entries) != Counter(e.exe_path for e in scanned.entries)


def removed_entries(previous: GameIndex, current: GameIndex) -> List[GameEntry]:
    """Entries of previous whose directory is no longer in current."""
    still_there = {e.dir_path for e in current.entries}
    return [e for e in previous.entries if e.dir_path not in still_there]


class LibraryService:
    """Service for scanning launcher libraries into the game index."""

    def __init__(
        self,
        config_provider: Callable[[], AppConfig],
        index_store: GameIndexStore,
        exe_selections: ExeSelectionStore,
        scanner: DirectoryScanner,
        launcher_manager: Optional[LauncherManager] = None,
        loading_state=None,
        on_games_removed: Optional[Callable[[List[GameEntry], GameIndex], None]] = None,
    ):
        """Initialize LibraryService.

        Args:
            config_provider: Returns the current AppConfig
            index_store: GameIndexStore for the index file
            exe_selections: ExeSelectionStore with persisted executable choices
            scanner: DirectoryScanner used for every scan root
            launcher_manager: LauncherManager resolving base dirs into scan roots
            loading_state: LoadingState whose scan flag is raised during scans
            on_games_removed: Called with the entries that disappeared and the new index
        """
        self._config_provider = config_provider
        self.index_store = index_store
        self.exe_selections = exe_selections
        self.scanner = scanner
        self.launchers = launcher_manager or LauncherManager()
        self.loading_state = loading_state
        self.on_games_removed = on_games_removed

        self._current: Optional[GameIndex] = None

        # Scan state
        self._scan_lock = asyncio.Lock()
        self._is_scanning = False

    @property
    def is_scanning(self) -> bool:
        return self._is_scanning

    @property
    def current_index(self) -> GameIndex:
        """Last index returned by this service (or loaded from disk)."""
        if self._current is None:
            self._current = self.load()
        return self._current

    # ---- persistence ----

    def load(self) -> GameIndex:
        """Persisted index, or an empty one when missing or unreadable."""
        result = self.index_store.load()
        if not result.ok:
            logger.info(f"[Index] No usable index on disk ({result.error}), starting empty")
        return result.value

    def save(self, index: GameIndex) -> Outcome[bool]:
        """Best-effort save; the in-memory index stays authoritative."""
        result = self.index_store.save(index)
        if not result.ok:
            logger.warning(f"[Index] Could not persist index: {result.error}")
        return result

    # ---- scanning ----

    def scan(self, config: AppConfig) -> GameIndex:
        """Scan all configured libraries (blocking)."""
        steam = self.launchers.get_launcher(LauncherKind.STEAM)
        if isinstance(steam, SteamLauncher):
            steam.follow_library_folders = config.follow_steam_library_folders

        entries: List[GameEntry] = []
        for kind in LauncherKind:
            for root in self.launchers.scan_roots(kind, config.libraries_for(kind)):
                entries.extend(self.scanner.scan(root, kind))

        # Choices pointing at a removed or renamed file no longer apply
        selections = self.exe_selections.prune_missing()
        index = GameIndex.create(entries).replace_exe(selections)
        logger.info(f"[Index] Scan found {len(index.entries)} games")
        return index

    def _stamp_after(self, previous: GameIndex) -> int:
        # Strictly newer than the snapshot it replaces
        return max(int(time.time()), previous.last_updated + 1)

    def _purge_removed(self, previous: GameIndex, current: GameIndex):
        if self.on_games_removed is None:
            return
        gone = removed_entries(previous, current)
        if not gone:
            return
        logger.info(f"[Index] {len(gone)} games disappeared, purging their caches")
        try:
            self.on_games_removed(gone, current)
        except Exception as e:
            logger.error(f"[Index] Cache purge failed: {e}")

    def _load_or_scan_blocking(self, config: AppConfig) -> ScanResult:
        previous = self.load()
        scanned = self.scan(config)
        if not index_changed(previous, scanned):
            logger.info("[Index] No changes detected, keeping existing index")
            return ScanResult(index=previous, changed=False, needs_setup=config.needs_setup())

        updated = GameIndex(last_updated=self._stamp_after(previous), entries=scanned.entries)
        self.save(updated)
        self._purge_removed(previous, updated)
        return ScanResult(index=updated, changed=True, needs_setup=config.needs_setup())

    def _rescan_blocking(self, config: AppConfig) -> ScanResult:
        previous = self.load()
        scanned = self.scan(config)
        updated = GameIndex(last_updated=self._stamp_after(previous), entries=scanned.entries)
        self.save(updated)
        self._purge_removed(previous, updated)
        return ScanResult(
            index=updated,
            changed=index_changed(previous, updated),
            needs_setup=config.needs_setup(),
        )

    async def _run_scan(self, work: Callable[[AppConfig], ScanResult], config: Optional[AppConfig]) -> ScanResult:
        # Non-blocking check: a second caller gets the current index back
        if self._is_scanning:
            logger.warning("[Index] Scan already in progress, ignoring request")
            return ScanResult(index=self._current or GameIndex.empty(), error=SCAN_IN_PROGRESS)

        async with self._scan_lock:
            self._is_scanning = True
            if self.loading_state is not None:
                self.loading_state.set_scanning(True)
            try:
                config = config or self._config_provider()
                if config.needs_setup():
                    logger.info("[Index] No launcher paths configured")
                loop = asyncio.get_running_loop()
                result = await loop.run_in_executor(None, work, config)
                self._current = result.index
                return result
            finally:
                self._is_scanning = False
                if self.loading_state is not None:
                    self.loading_state.set_scanning(False)

    async def load_or_scan(self, config: Optional[AppConfig] = None) -> ScanResult:
        """Scan and compare with the persisted index; rewrite only on change."""
        return await self._run_scan(self._load_or_scan_blocking, config)

    async def rescan_and_save(self, config: Optional[AppConfig] = None) -> ScanResult:
        """Scan and persist unconditionally."""
        return await self._run_scan(self._rescan_blocking, config)

    def apply_selections(self, selections: Dict[str, str]) -> GameIndex:
        """Apply executable choices ({dir_path: exe_path}) to the current index and save it."""
        current = self.current_index
        changes = {}
        for dir_path, exe_path in selections.items():
            entry = current.find(dir_path)
            if entry is not None and entry.exe_path != exe_path:
                changes[dir_path] = exe_path
        if not changes:
            return current
        self._current = current.replace_exe(changes)
        self.save(self._current)
        return self._current
