"""
Base launcher types shared by discovery, the index and the caches.

Every launcher (Steam, EA, Battle.net, Ubisoft, custom folders) is described by a
Launcher subclass that knows how its install root is laid out on disk.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import logging
import time


logger = logging.getLogger(__name__)


class LauncherKind(Enum):
    """Closed set of launchers. Declaration order is the display/sort order."""
    STEAM = "Steam"
    EA = "EA"
    BATTLENET = "BattleNet"
    UBISOFT = "Ubisoft"
    CUSTOM = "Custom"

    @property
    def order(self) -> int:
        return list(LauncherKind).index(self)

    @classmethod
    def parse(cls, value: str) -> Optional["LauncherKind"]:
        """Parse a launcher from its value or member name (case-insensitive)."""
        if not value:
            return None
        needle = value.strip().lower()
        for kind in cls:
            if kind.value.lower() == needle or kind.name.lower() == needle:
                return kind
        return None


@dataclass(frozen=True)
class GameEntry:
    """One discovered title. dir_path is the stable identity key."""
    launcher: LauncherKind
    name: str
    exe_path: str
    dir_path: str

    @property
    def is_protocol(self) -> bool:
        return "://" in self.exe_path

    def with_exe(self, exe_path: str) -> "GameEntry":
        return GameEntry(self.launcher, self.name, exe_path, self.dir_path)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["launcher"] = self.launcher.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["GameEntry"]:
        launcher = LauncherKind.parse(str(data.get("launcher", "")))
        name = data.get("name")
        exe_path = data.get("exe_path")
        dir_path = data.get("dir_path")
        if launcher is None or not isinstance(name, str) or not isinstance(exe_path, str) or not isinstance(dir_path, str):
            return None
        return cls(launcher=launcher, name=name, exe_path=exe_path, dir_path=dir_path)


def entry_sort_key(entry: GameEntry) -> Tuple[int, str, str]:
    # dir_path breaks ties between same-named games in different libraries
    return (entry.launcher.order, entry.name.lower(), entry.dir_path)


def sort_entries(entries: List[GameEntry]) -> List[GameEntry]:
    """Sort by launcher order, case-insensitive name, then dir_path, dropping duplicate dir_paths."""
    seen = set()
    unique = []
    for entry in entries:
        if entry.dir_path in seen:
            logger.debug(f"[Index] Dropping duplicate entry for {entry.dir_path}")
            continue
        seen.add(entry.dir_path)
        unique.append(entry)
    return sorted(unique, key=entry_sort_key)


@dataclass(frozen=True)
class GameIndex:
    """Versioned snapshot of discovered games."""
    last_updated: int = field(default_factory=lambda: int(time.time()))
    entries: Tuple[GameEntry, ...] = ()

    @classmethod
    def create(cls, entries: List[GameEntry], last_updated: Optional[int] = None) -> "GameIndex":
        stamp = int(time.time()) if last_updated is None else last_updated
        return cls(last_updated=stamp, entries=tuple(sort_entries(list(entries))))

    @classmethod
    def empty(cls) -> "GameIndex":
        return cls(last_updated=0, entries=())

    def find(self, dir_path: str) -> Optional[GameEntry]:
        for entry in self.entries:
            if entry.dir_path == dir_path:
                return entry
        return None

    def replace_exe(self, selections: Dict[str, str]) -> "GameIndex":
        """Return a copy with exe_path swapped for every dir_path in selections."""
        if not selections:
            return self
        entries = tuple(
            e.with_exe(selections[e.dir_path]) if e.dir_path in selections else e
            for e in self.entries
        )
        return GameIndex(last_updated=self.last_updated, entries=entries)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_updated": self.last_updated,
            "entries": [e.to_dict() for e in self.entries],
        }


class Launcher(ABC):
    """
    Abstract base class for launcher layouts.

    A launcher turns a user-configured base directory into the directory that
    actually holds one subfolder per installed game (the scan root).
    """

    # Nested folders checked in priority order; first existing one wins
    subfolders: Tuple[Tuple[str, ...], ...] = ()

    @property
    @abstractmethod
    def kind(self) -> LauncherKind:
        """Return the launcher kind handled by this class"""
        pass

    def normalize(self, base_dir: Path) -> Optional[Path]:
        """
        Resolve a configured base directory into a scan root.

        Returns the first conventional subfolder that exists, else base_dir.
        Returns None when nothing should be scanned.
        """
        for parts in self.subfolders:
            candidate = base_dir.joinpath(*parts)
            if candidate.exists():
                return candidate
        return base_dir

    def extra_bases(self, base_dir: Path) -> List[Path]:
        """Additional base directories discovered from this base. None by default."""
        return []
