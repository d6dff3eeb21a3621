"""
Launch path mappings: titles that must be started through their parent launcher.

File: <data_dir>/PathMappings/game_path_mappings.json
    [
      {"launcher": "BattleNet", "name": "Call of Duty Modern Warfare III", "path": "battlenet://game/pinta"}
    ]

The shipped defaults are written on first run. Entries in the user file are
consulted before the built-in table; an entry without "launcher" applies to
every launcher.
"""
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from gamedex.stores.base import LauncherKind
from gamedex.utils.paths import PATH_MAPPINGS_FILE

from .json_store import JsonStore

logger = logging.getLogger(__name__)

# (launcher, exact directory name) -> protocol URI
BUILTIN_PATH_MAPPINGS: Dict[Tuple[LauncherKind, str], str] = {
    (LauncherKind.BATTLENET, "Call of Duty Modern Warfare III"): "battlenet://game/pinta",
}


def _default_mappings() -> List[Dict[str, str]]:
    return [
        {"launcher": launcher.value, "name": name, "path": path}
        for (launcher, name), path in BUILTIN_PATH_MAPPINGS.items()
    ]


class PathMappings(JsonStore):
    """Protocol URI overrides keyed by launcher + exact game directory name."""

    def __init__(self, data_dir: Optional[Path] = None):
        path = Path(data_dir) / PATH_MAPPINGS_FILE if data_dir is not None else Path(PATH_MAPPINGS_FILE)
        # Without a data dir only the built-in table is used
        super().__init__(path, _default_mappings, create_if_missing=data_dir is not None)
        self._enabled = data_dir is not None

    def _decode(self, raw):
        if not isinstance(raw, list):
            return None
        items = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            name = item.get("name")
            path = item.get("path")
            if not isinstance(name, str) or not name.strip() or not isinstance(path, str) or not path.strip():
                continue
            launcher = item.get("launcher")
            if launcher is not None and LauncherKind.parse(str(launcher)) is None:
                logger.warning(f"[PathMappings] Unknown launcher '{launcher}' for '{name}', skipping")
                continue
            items.append({"launcher": launcher, "name": name, "path": path})
        return items

    def _encode(self, data):
        return [{k: v for k, v in item.items() if v is not None} for item in data]

    def ensure_file(self) -> None:
        """Write the default mappings file if it does not exist yet."""
        if not self._enabled:
            return
        with self._lock:
            self._ensure_loaded()

    def get_path_for(self, launcher: LauncherKind, name: str) -> Optional[str]:
        """Return the protocol URI for a game directory name, or None."""
        if not name:
            return None

        if self._enabled:
            with self._lock:
                items = self._ensure_loaded()
            for item in items:
                item_launcher = item.get("launcher")
                if item_launcher is not None and LauncherKind.parse(str(item_launcher)) != launcher:
                    continue
                if item["name"] == name:
                    return item["path"]

        return BUILTIN_PATH_MAPPINGS.get((launcher, name))

    def has_mapping(self, launcher: LauncherKind, name: str) -> bool:
        return self.get_path_for(launcher, name) is not None
