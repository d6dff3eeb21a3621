"""Launcher layouts and the game entry model."""

from .base import GameEntry, GameIndex, Launcher, LauncherKind, sort_entries
from .launchers import (
    BattleNetLauncher,
    CustomLauncher,
    EALauncher,
    SteamLauncher,
    UbisoftLauncher,
)
from .manager import LauncherManager

__all__ = [
    "GameEntry",
    "GameIndex",
    "Launcher",
    "LauncherKind",
    "LauncherManager",
    "sort_entries",
    "SteamLauncher",
    "EALauncher",
    "BattleNetLauncher",
    "UbisoftLauncher",
    "CustomLauncher",
]
