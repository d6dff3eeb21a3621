"""
ResolverService - Picks the launch executable for game directories.

Responsibilities:
- Return a persisted executable choice when one exists
- Auto-match an executable whose file name matches the game name (and persist it)
- Apply per-title pins (protocol launch, wrapper launcher binary)
- Report directories with several candidates so the user can choose
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from gamedex.discovery.scanner import EXECUTABLE_SUFFIXES, find_executable_candidates
from gamedex.registry.exe_selections import ExeSelectionStore, selection_target_exists
from gamedex.stores.base import GameEntry, GameIndex, LauncherKind
from gamedex.utils.outcome import Outcome

logger = logging.getLogger(__name__)

# Titles that always launch through their protocol URI; never prompted
PROTOCOL_PINNED_TITLES = {
    (LauncherKind.BATTLENET, "call of duty modern warfare iii"),
}

# Titles whose real launch target is a wrapper binary next to the game exe
SUFFIX_PINNED_TITLES: Dict[Tuple[LauncherKind, str], str] = {
    (LauncherKind.BATTLENET, "call of duty modern warfare 2 campaign remastered"):
        "MW2 Campaign Remastered Launcher.exe",
}


class ResolutionKind(Enum):
    ALREADY_CHOSEN = "already_chosen"
    AUTO_MATCHED = "auto_matched"
    AMBIGUOUS = "ambiguous"
    NONE = "none"


@dataclass(frozen=True)
class Resolution:
    kind: ResolutionKind
    exe_path: Optional[str] = None
    candidates: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind.value, 'exe_path': self.exe_path, 'candidates': list(self.candidates)}


def normalize_for_match(name: str) -> str:
    """Lowercase with everything but letters and digits removed."""
    return "".join(c for c in name.lower() if c.isalnum())


def _strip_executable_suffix(file_name: str) -> str:
    lowered = file_name.lower()
    for suffix in EXECUTABLE_SUFFIXES:
        if lowered.endswith(suffix):
            return file_name[:-len(suffix)]
    return file_name


class ResolverService:
    """Service for choosing between executable candidates."""

    def __init__(
        self,
        exe_selections: ExeSelectionStore,
        candidate_finder: Callable[[str], List[str]] = find_executable_candidates,
    ):
        self.exe_selections = exe_selections
        self._find_candidates = candidate_finder

    def find_candidates(self, dir_path: str) -> List[str]:
        try:
            return self._find_candidates(dir_path)
        except OSError as e:
            logger.warning(f"[Resolver] Could not list candidates in {dir_path}: {e}")
            return []

    def resolve(self, entry: GameEntry) -> Resolution:
        key = (entry.launcher, entry.name.strip().lower())

        if key in PROTOCOL_PINNED_TITLES:
            return Resolution(ResolutionKind.ALREADY_CHOSEN, exe_path=entry.exe_path)

        selected = self.exe_selections.get(entry.dir_path)
        if selected and not selection_target_exists(selected):
            logger.info(f"[Resolver] Saved choice for {entry.name} is gone: {selected}")
            self.exe_selections.remove(entry.dir_path)
            selected = None
        if selected:
            return Resolution(ResolutionKind.ALREADY_CHOSEN, exe_path=selected)

        if entry.is_protocol:
            # Mapped to a launcher URI by the path mappings file
            return Resolution(ResolutionKind.ALREADY_CHOSEN, exe_path=entry.exe_path)

        candidates = self.find_candidates(entry.dir_path)

        chosen = None
        pinned_suffix = SUFFIX_PINNED_TITLES.get(key)
        if pinned_suffix:
            chosen = next((c for c in candidates if c.lower().endswith(pinned_suffix.lower())), None)
        else:
            target = normalize_for_match(entry.name)
            if target:
                chosen = next(
                    (c for c in candidates
                     if normalize_for_match(_strip_executable_suffix(Path(c).name)) == target),
                    None,
                )

        if chosen:
            self.exe_selections.put(entry.dir_path, chosen)
            logger.info(f"[Resolver] Auto-matched {entry.name} -> {chosen}")
            return Resolution(ResolutionKind.AUTO_MATCHED, exe_path=chosen, candidates=candidates)

        if len(candidates) > 1:
            return Resolution(ResolutionKind.AMBIGUOUS, candidates=candidates)
        if len(candidates) == 1:
            return Resolution(ResolutionKind.AUTO_MATCHED, exe_path=candidates[0], candidates=candidates)
        return Resolution(ResolutionKind.NONE)

    def resolve_index(self, index: GameIndex) -> Tuple[GameIndex, List[Dict[str, Any]]]:
        """Resolve every entry.

        Returns the index with chosen/matched executables applied, plus the
        ambiguous items ({name, dir_path, candidates}) the user must pick for.
        """
        selections: Dict[str, str] = {}
        ambiguous: List[Dict[str, Any]] = []

        for entry in index.entries:
            resolution = self.resolve(entry)
            if resolution.kind == ResolutionKind.AMBIGUOUS:
                ambiguous.append({
                    'name': entry.name,
                    'dir_path': entry.dir_path,
                    'candidates': list(resolution.candidates),
                })
            elif resolution.exe_path and resolution.exe_path != entry.exe_path:
                selections[entry.dir_path] = resolution.exe_path

        if ambiguous:
            logger.info(f"[Resolver] {len(ambiguous)} games need an executable choice")
        return index.replace_exe(selections), ambiguous

    def choose(self, dir_path: str, exe_path: str) -> Outcome[bool]:
        """Persist the user's executable choice for a directory."""
        return self.exe_selections.put(dir_path, exe_path)
