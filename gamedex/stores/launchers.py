"""
Launcher layouts for Steam, EA, Battle.net, Ubisoft Connect and custom folders.
"""
from pathlib import Path
from typing import List, Optional
import logging

import vdf

from .base import Launcher, LauncherKind

logger = logging.getLogger(__name__)


class SteamLauncher(Launcher):
    """Steam games always live under <library>/steamapps/common."""

    subfolders = (("steamapps", "common"),)

    def __init__(self, follow_library_folders: bool = True):
        self.follow_library_folders = follow_library_folders

    @property
    def kind(self) -> LauncherKind:
        return LauncherKind.STEAM

    def normalize(self, base_dir: Path) -> Optional[Path]:
        # Non-optional: a base without steamapps/common yields nothing
        common = base_dir / "steamapps" / "common"
        return common if common.exists() else None

    def extra_bases(self, base_dir: Path) -> List[Path]:
        """Other Steam libraries listed in <base>/steamapps/libraryfolders.vdf"""
        if not self.follow_library_folders:
            return []
        vdf_path = base_dir / "steamapps" / "libraryfolders.vdf"
        if not vdf_path.is_file():
            return []

        try:
            with open(vdf_path, "r", encoding="utf-8") as f:
                data = vdf.load(f)
        except Exception as e:
            logger.warning(f"[Steam] Could not parse {vdf_path}: {e}")
            return []

        folders = data.get("libraryfolders") or data.get("LibraryFolders") or {}
        bases = []
        for value in folders.values():
            # New format: {"path": "..."}; old format: plain path string
            path = value.get("path") if isinstance(value, dict) else value
            if not isinstance(path, str) or not path.strip():
                continue
            candidate = Path(path)
            if candidate != base_dir and candidate not in bases:
                bases.append(candidate)

        if bases:
            logger.info(f"[Steam] Found {len(bases)} additional libraries in {vdf_path}")
        return bases


class EALauncher(Launcher):
    subfolders = (("EA Games",), ("Origin Games",))

    @property
    def kind(self) -> LauncherKind:
        return LauncherKind.EA


class BattleNetLauncher(Launcher):
    subfolders = (("Battle.net",),)

    @property
    def kind(self) -> LauncherKind:
        return LauncherKind.BATTLENET


class UbisoftLauncher(Launcher):
    subfolders = (("Ubisoft Game Launcher", "games"), ("games",))

    @property
    def kind(self) -> LauncherKind:
        return LauncherKind.UBISOFT


class CustomLauncher(Launcher):
    """User-defined folders are scanned exactly as given."""

    @property
    def kind(self) -> LauncherKind:
        return LauncherKind.CUSTOM
