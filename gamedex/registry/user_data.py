"""
Per-game user data: favorites, launch options and play stats.

Favorites and launch options are keyed by dir_path (stable across rescans);
play stats are keyed by display name.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Set

from gamedex.utils.paths import FAVORITES_FILE, LAUNCH_OPTIONS_FILE, PLAY_STATS_FILE

from .json_store import JsonStore

logger = logging.getLogger(__name__)


class FavoritesStore(JsonStore):
    """File: favorites.json, ["<dir_path>", ...]"""

    def __init__(self, data_dir: Path):
        super().__init__(Path(data_dir) / FAVORITES_FILE, set)

    def _decode(self, raw):
        if not isinstance(raw, list):
            return None
        return {item for item in raw if isinstance(item, str) and item}

    def _encode(self, data):
        return sorted(data)

    def is_favorite(self, dir_path: str) -> bool:
        if not dir_path:
            return False
        with self._lock:
            return dir_path in self._ensure_loaded()

    def get_all(self) -> Set[str]:
        with self._lock:
            return set(self._ensure_loaded())

    def set_favorite(self, dir_path: str, favored: bool) -> None:
        if not dir_path:
            return
        with self._lock:
            data = self._ensure_loaded()
            if favored:
                data.add(dir_path)
            else:
                data.discard(dir_path)
            self._write()

    def toggle(self, dir_path: str) -> bool:
        """Flip the favorite flag. Returns the new state."""
        if not dir_path:
            return False
        with self._lock:
            data = self._ensure_loaded()
            if dir_path in data:
                data.discard(dir_path)
                now_favorite = False
            else:
                data.add(dir_path)
                now_favorite = True
            self._write()
        return now_favorite


class LaunchOptionsStore(JsonStore):
    """File: launch_options.json, {"<dir_path>": "<argument string>"}"""

    def __init__(self, data_dir: Path):
        super().__init__(Path(data_dir) / LAUNCH_OPTIONS_FILE, dict)

    def _decode(self, raw):
        if not isinstance(raw, dict):
            return None
        return {k: v for k, v in raw.items() if isinstance(k, str) and isinstance(v, str)}

    def get(self, dir_path: str) -> str:
        with self._lock:
            return self._ensure_loaded().get(dir_path, "")

    def set(self, dir_path: str, args: str) -> None:
        if not dir_path:
            return
        with self._lock:
            data = self._ensure_loaded()
            if args and args.strip():
                data[dir_path] = args.strip()
            else:
                data.pop(dir_path, None)
            self._write()


@dataclass
class PlayStat:
    plays: int = 0
    lastplayed: str = ""


class PlayStatsStore(JsonStore):
    """File: userdata/gamestats.json, {"Game Name": {"plays": 3, "lastplayed": "2025-09-17T21:00:00"}}"""

    def __init__(self, data_dir: Path):
        super().__init__(Path(data_dir) / PLAY_STATS_FILE, dict)

    def _decode(self, raw):
        if not isinstance(raw, dict):
            return None
        stats = {}
        for name, value in raw.items():
            if not isinstance(value, dict):
                continue
            plays = value.get("plays", 0)
            stats[name] = PlayStat(
                plays=plays if isinstance(plays, int) else 0,
                lastplayed=str(value.get("lastplayed", "")),
            )
        return stats

    def _encode(self, data):
        return {name: {"plays": s.plays, "lastplayed": s.lastplayed} for name, s in data.items()}

    def get(self, name: str) -> Optional[PlayStat]:
        if not name:
            return None
        with self._lock:
            stat = self._ensure_loaded().get(name)
            return PlayStat(stat.plays, stat.lastplayed) if stat else None

    def get_all(self) -> Dict[str, PlayStat]:
        with self._lock:
            return {n: PlayStat(s.plays, s.lastplayed) for n, s in self._ensure_loaded().items()}

    def record_play(self, name: str, played_at: Optional[datetime] = None) -> PlayStat:
        when = (played_at or datetime.now()).replace(microsecond=0).isoformat()
        with self._lock:
            data = self._ensure_loaded()
            stat = data.setdefault(name, PlayStat(plays=0, lastplayed=when))
            stat.plays += 1
            stat.lastplayed = when
            self._write()
            return PlayStat(stat.plays, stat.lastplayed)
