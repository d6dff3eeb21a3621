"""GameDex file path constants and utilities."""

import os
from pathlib import Path
from typing import Optional


APP_FOLDER = "GameDex"
DATA_DIR_ENV = "GAMEDEX_DATA_DIR"

# File names, relative to the data directory
CONFIG_FILE = "config.json"
INDEX_FILE = "game_index.json"
EXE_SELECTIONS_FILE = "exe_selections.json"
FAVORITES_FILE = "favorites.json"
LAUNCH_OPTIONS_FILE = "launch_options.json"
PLAY_STATS_FILE = os.path.join("userdata", "gamestats.json")
PATH_MAPPINGS_FILE = os.path.join("PathMappings", "game_path_mappings.json")
CACHES_DIR = "caches"
IMAGES_DIR = os.path.join(CACHES_DIR, "images")
LOG_FILE = "gamedex.log"


def get_data_dir(override: Optional[str] = None) -> Path:
    """Get the GameDex data directory.

    Resolution order: explicit override, $GAMEDEX_DATA_DIR, %APPDATA%/GameDex
    (Windows), ~/.local/share/gamedex.
    """
    if override:
        return Path(override)

    env_dir = os.environ.get(DATA_DIR_ENV)
    if env_dir:
        return Path(env_dir)

    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / APP_FOLDER

    return Path.home() / ".local" / "share" / "gamedex"


def ensure_data_dir(data_dir: Path) -> bool:
    """Ensure the data directory exists. Returns False if it could not be created."""
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
        return True
    except OSError:
        return False
