"""
LaunchService - Starts games.

File targets are spawned directly (working directory = the game folder,
arguments from the per-game launch options). Protocol URIs are handed to the
platform's URI opener so the parent launcher starts the game.
"""

import logging
import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import List

from gamedex.registry.user_data import LaunchOptionsStore, PlayStatsStore
from gamedex.stores.base import GameEntry
from gamedex.utils.outcome import IO_ERROR, MISSING, Outcome

logger = logging.getLogger(__name__)


def split_launch_options(args: str) -> List[str]:
    """Split a launch option string like a shell would. Unbalanced quotes give []."""
    if not args or not args.strip():
        return []
    try:
        return shlex.split(args, posix=os.name != "nt")
    except ValueError as e:
        logger.warning(f"[Launch] Ignoring malformed launch options {args!r}: {e}")
        return []


def open_uri(uri: str):
    """Hand a URI to the OS handler registered for its scheme."""
    if sys.platform.startswith("win"):
        os.startfile(uri)
    elif sys.platform == "darwin":
        subprocess.Popen(["open", uri], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    else:
        subprocess.Popen(["xdg-open", uri], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)


class LaunchService:
    """Service for launching games and recording plays."""

    def __init__(self, launch_options: LaunchOptionsStore, play_stats: PlayStatsStore):
        self.launch_options = launch_options
        self.play_stats = play_stats

    def build_command(self, entry: GameEntry) -> List[str]:
        exe = str(Path(entry.exe_path).absolute())
        return [exe] + split_launch_options(self.launch_options.get(entry.dir_path))

    def launch(self, entry: GameEntry) -> Outcome[bool]:
        logger.info(f"[Launch] Starting {entry.name} ({entry.launcher.value})")
        try:
            if entry.is_protocol:
                open_uri(entry.exe_path)
            else:
                if not Path(entry.exe_path).is_file():
                    logger.warning(f"[Launch] Executable not found: {entry.exe_path}")
                    return Outcome.failure(False, MISSING)
                cwd = entry.dir_path if os.path.isdir(entry.dir_path) else None
                subprocess.Popen(self.build_command(entry), cwd=cwd)
        except OSError as e:
            logger.error(f"[Launch] Failed to start {entry.name}: {e}", exc_info=True)
            return Outcome.failure(False, IO_ERROR)

        self.play_stats.record_play(entry.name)
        return Outcome.success(True)
