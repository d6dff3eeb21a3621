"""
Launcher Manager - Manages the launcher layouts.

Provides a unified interface for turning configured base directories into
scan roots for every launcher kind.
"""
from pathlib import Path
from typing import Dict, Iterable, List, Optional
import logging

from .base import Launcher, LauncherKind
from .launchers import (
    BattleNetLauncher,
    CustomLauncher,
    EALauncher,
    SteamLauncher,
    UbisoftLauncher,
)


logger = logging.getLogger(__name__)


class LauncherManager:
    """
    Manages launcher layouts.

    Every LauncherKind has exactly one registered Launcher; registering a new
    one for the same kind replaces the previous one.
    """

    def __init__(self, follow_steam_library_folders: bool = True):
        self._launchers: Dict[LauncherKind, Launcher] = {}
        self.register_launcher(SteamLauncher(follow_library_folders=follow_steam_library_folders))
        self.register_launcher(EALauncher())
        self.register_launcher(BattleNetLauncher())
        self.register_launcher(UbisoftLauncher())
        self.register_launcher(CustomLauncher())

    def register_launcher(self, launcher: Launcher):
        """Register a launcher layout."""
        self._launchers[launcher.kind] = launcher
        logger.debug(f"Registered launcher: {launcher.kind.value}")

    def get_launcher(self, kind: LauncherKind) -> Optional[Launcher]:
        """Get a specific launcher layout by kind."""
        return self._launchers.get(kind)

    @property
    def launchers(self) -> Dict[LauncherKind, Launcher]:
        """Get all registered launchers."""
        return self._launchers

    def normalize(self, kind: LauncherKind, base_dir) -> Optional[Path]:
        """
        Resolve a configured base directory into a scan root.

        Pure path logic plus existence checks. Returns None when the launcher's
        layout says nothing should be scanned under base_dir.
        """
        launcher = self._launchers.get(kind)
        if launcher is None:
            return None
        try:
            return launcher.normalize(Path(base_dir))
        except OSError as e:
            logger.warning(f"[Paths] Could not inspect {base_dir} for {kind.value}: {e}")
            return None

    def scan_roots(self, kind: LauncherKind, bases: Iterable[str]) -> List[Path]:
        """
        Get the scan roots for every configured base of one launcher.

        Includes extra libraries a launcher discovers from its bases. Each root
        is returned once, in configuration order.
        """
        launcher = self._launchers.get(kind)
        if launcher is None:
            return []

        expanded: List[Path] = []
        for base in bases:
            base_path = Path(base)
            if base_path not in expanded:
                expanded.append(base_path)
            try:
                for extra in launcher.extra_bases(base_path):
                    if extra not in expanded:
                        expanded.append(extra)
            except OSError as e:
                logger.warning(f"[Paths] Could not read extra libraries from {base}: {e}")

        roots: List[Path] = []
        for base_path in expanded:
            root = self.normalize(kind, base_path)
            if root is not None and root not in roots:
                roots.append(root)
        return roots
