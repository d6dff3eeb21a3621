"""
Executable overrides, keyed by game directory.

File: <data_dir>/exe_selections.json, {"<dir_path>": "<exe_path>", ...}
"""
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from gamedex.utils.outcome import Outcome
from gamedex.utils.paths import EXE_SELECTIONS_FILE

from .json_store import JsonStore

logger = logging.getLogger(__name__)


def selection_target_exists(exe_path: str) -> bool:
    """A saved choice is usable if it is a protocol URI or an existing file."""
    return "://" in exe_path or os.path.isfile(exe_path)


class ExeSelectionStore(JsonStore):
    """Persisted dir_path -> exe_path choices (automatic or user-made)."""

    def __init__(self, data_dir: Path):
        super().__init__(Path(data_dir) / EXE_SELECTIONS_FILE, dict)

    def _decode(self, raw):
        if not isinstance(raw, dict):
            return None
        return {k: v for k, v in raw.items() if isinstance(k, str) and isinstance(v, str) and k and v}

    def get(self, dir_path: str) -> Optional[str]:
        if not dir_path:
            return None
        with self._lock:
            return self._ensure_loaded().get(dir_path)

    def put(self, dir_path: str, exe_path: str) -> Outcome[bool]:
        if not dir_path or not exe_path:
            return Outcome.failure(False, "invalid")
        with self._lock:
            self._ensure_loaded()[dir_path] = exe_path
            result = self._write()
        logger.info(f"[ExeSelection] {dir_path} -> {exe_path}")
        return result

    def remove(self, dir_path: str) -> bool:
        with self._lock:
            data = self._ensure_loaded()
            if dir_path not in data:
                return False
            del data[dir_path]
            return self._write().ok

    def get_all(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._ensure_loaded())

    def prune_missing(self) -> Dict[str, str]:
        """Drop choices whose executable is gone. Returns the choices still usable."""
        with self._lock:
            data = self._ensure_loaded()
            stale = [d for d, exe in data.items() if not selection_target_exists(exe)]
            for dir_path in stale:
                logger.info(f"[ExeSelection] Dropping stale choice {dir_path} -> {data[dir_path]}")
                del data[dir_path]
            if stale:
                self._write()
            return dict(data)
