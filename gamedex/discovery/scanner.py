"""
Directory scanner.

Walks a scan root one level deep. Each immediate subdirectory is one
candidate game; the first executable found directly inside it (or, failing
that, one level deeper) becomes the entry's launch target.

Listing order is made deterministic by sorting names case-insensitively.
"""
import logging
from pathlib import Path
from typing import List, Optional

from gamedex.registry.path_mappings import PathMappings
from gamedex.stores.base import GameEntry, LauncherKind

logger = logging.getLogger(__name__)

EXECUTABLE_SUFFIXES = (".exe",)


def _sorted_children(directory: Path) -> List[Path]:
    return sorted(directory.iterdir(), key=lambda p: (p.name.lower(), p.name))


def is_executable_file(path: Path) -> bool:
    return path.name.lower().endswith(EXECUTABLE_SUFFIXES) and path.is_file()


def _executables_in(directory: Path) -> List[Path]:
    return [p for p in _sorted_children(directory) if is_executable_file(p)]


def _subdirectories(directory: Path) -> List[Path]:
    return [p for p in _sorted_children(directory) if p.is_dir()]


def find_first_executable(game_dir: Path) -> Optional[Path]:
    """First executable directly in game_dir, else the first one level deeper."""
    try:
        top = _executables_in(game_dir)
        if top:
            return top[0]
        subdirs = _subdirectories(game_dir)
    except OSError as e:
        logger.warning(f"[Scanner] Could not list {game_dir}: {e}")
        return None

    for sub in subdirs:
        try:
            found = _executables_in(sub)
        except OSError as e:
            logger.debug(f"[Scanner] Skipping unreadable {sub}: {e}")
            continue
        if found:
            return found[0]
    return None


def find_executable_candidates(dir_path) -> List[str]:
    """
    Every executable directly in dir_path plus one level deeper.

    Top-level files come first, then each subdirectory's files in order.
    Filesystem errors give an empty list.
    """
    directory = Path(dir_path)
    try:
        if not directory.is_dir():
            return []
        candidates = [str(p) for p in _executables_in(directory)]
        for sub in _subdirectories(directory):
            try:
                candidates.extend(str(p) for p in _executables_in(sub))
            except OSError as e:
                logger.debug(f"[Scanner] Skipping unreadable {sub}: {e}")
        return candidates
    except OSError as e:
        logger.warning(f"[Scanner] Could not list candidates in {directory}: {e}")
        return []


class DirectoryScanner:
    """Turns a scan root into game entries, one per subdirectory at most."""

    def __init__(self, path_mappings: Optional[PathMappings] = None):
        self.path_mappings = path_mappings or PathMappings()

    def scan(self, scan_root: Path, launcher: LauncherKind) -> List[GameEntry]:
        scan_root = Path(scan_root)
        try:
            if not scan_root.is_dir():
                logger.debug(f"[Scanner] Scan root missing: {scan_root}")
                return []
            game_dirs = _subdirectories(scan_root)
        except OSError as e:
            logger.warning(f"[Scanner] Could not list {scan_root}: {e}")
            return []

        entries = []
        for game_dir in game_dirs:
            exe = find_first_executable(game_dir)
            if exe is None:
                continue

            name = game_dir.name
            exe_path = self.path_mappings.get_path_for(launcher, name) or str(exe)
            entries.append(GameEntry(
                launcher=launcher,
                name=name,
                exe_path=exe_path,
                dir_path=str(game_dir),
            ))

        logger.info(f"[Scanner] {launcher.value}: {len(entries)} games in {scan_root}")
        return entries
