"""
Lazily-loaded JSON file with a single writer.

Base for the small user stores (executable selections, favorites, launch
options, play stats). The file is read once on first access and kept in
memory; every mutation rewrites the file under the store's lock.
"""
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Callable

from gamedex.utils.outcome import CORRUPT, IO_ERROR, MISSING, Outcome

logger = logging.getLogger(__name__)


def read_json(path: Path) -> Outcome[Any]:
    """Read a JSON file. Missing or corrupt files give a None value with an error code."""
    if not path.exists():
        return Outcome.failure(None, MISSING)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return Outcome.success(json.load(f))
    except json.JSONDecodeError as e:
        logger.error(f"[Store] Corrupt JSON in {path}: {e}")
        return Outcome.failure(None, CORRUPT)
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"[Store] Error reading {path}: {e}")
        return Outcome.failure(None, IO_ERROR)


def write_json(path: Path, data: Any) -> Outcome[bool]:
    """Write JSON atomically (temp file + replace)."""
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_path, path)
        return Outcome.success(True)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"[Store] Error writing {path}: {e}")
        return Outcome.failure(False, IO_ERROR)


class JsonStore:
    """A JSON document on disk mirrored in memory."""

    def __init__(self, path: Path, default_factory: Callable[[], Any], create_if_missing: bool = True):
        self.path = Path(path)
        self._default_factory = default_factory
        self._create_if_missing = create_if_missing
        self._lock = threading.Lock()
        self._data: Any = None

    def _decode(self, raw: Any) -> Any:
        """Validate/convert the loaded document. Return None to reject it."""
        return raw

    def _encode(self, data: Any) -> Any:
        return data

    def _ensure_loaded(self) -> Any:
        # Caller holds self._lock
        if self._data is not None:
            return self._data

        result = read_json(self.path)
        data = self._decode(result.value) if result.ok else None
        if data is None:
            if result.ok:
                logger.warning(f"[Store] Unexpected document shape in {self.path}, starting empty")
            data = self._default_factory()
            if result.error == MISSING and self._create_if_missing:
                write_json(self.path, self._encode(data))
        self._data = data
        return self._data

    def _write(self) -> Outcome[bool]:
        # Caller holds self._lock
        return write_json(self.path, self._encode(self._data))

    def reload(self) -> None:
        """Drop the in-memory copy so the next access re-reads the file."""
        with self._lock:
            self._data = None
