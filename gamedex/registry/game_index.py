"""
Game index snapshot persistence.

File: <data_dir>/game_index.json
    {"last_updated": 1726603200, "entries": [{"launcher": "Steam", "name": ..., "exe_path": ..., "dir_path": ...}]}

A missing or corrupt file loads as an empty index. Saves are best-effort:
the caller keeps its in-memory index whatever happens here.
"""
import logging
import threading
from pathlib import Path

from gamedex.stores.base import GameEntry, GameIndex
from gamedex.utils.outcome import CORRUPT, Outcome
from gamedex.utils.paths import INDEX_FILE

from .json_store import read_json, write_json

logger = logging.getLogger(__name__)


class GameIndexStore:
    """Reads and writes the index snapshot file (single writer)."""

    def __init__(self, data_dir: Path):
        self.path = Path(data_dir) / INDEX_FILE
        self._lock = threading.Lock()

    def load(self) -> Outcome[GameIndex]:
        with self._lock:
            result = read_json(self.path)
        if not result.ok:
            return Outcome.failure(GameIndex.empty(), result.error)

        raw = result.value
        if not isinstance(raw, dict) or not isinstance(raw.get("entries"), list):
            logger.warning(f"[Index] Unexpected document shape in {self.path}, treating as empty")
            return Outcome.failure(GameIndex.empty(), CORRUPT)

        stamp = raw.get("last_updated", 0)
        if not isinstance(stamp, int) or isinstance(stamp, bool):
            stamp = 0

        entries = []
        skipped = 0
        for item in raw["entries"]:
            entry = GameEntry.from_dict(item) if isinstance(item, dict) else None
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)
        if skipped:
            logger.warning(f"[Index] Skipped {skipped} malformed entries in {self.path}")

        return Outcome.success(GameIndex.create(entries, last_updated=stamp))

    def save(self, index: GameIndex) -> Outcome[bool]:
        with self._lock:
            result = write_json(self.path, index.to_dict())
        if result.ok:
            logger.info(f"[Index] Saved {len(index.entries)} entries")
        return result
