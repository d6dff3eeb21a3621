"""JSON-backed stores for the index, overrides and per-game user data."""
from .exe_selections import ExeSelectionStore
from .game_index import GameIndexStore
from .json_store import JsonStore, read_json, write_json
from .path_mappings import BUILTIN_PATH_MAPPINGS, PathMappings
from .user_data import FavoritesStore, LaunchOptionsStore, PlayStat, PlayStatsStore

__all__ = [
    "BUILTIN_PATH_MAPPINGS",
    "ExeSelectionStore",
    "FavoritesStore",
    "GameIndexStore",
    "JsonStore",
    "LaunchOptionsStore",
    "PathMappings",
    "PlayStat",
    "PlayStatsStore",
    "read_json",
    "write_json",
]
