"""Application configuration (config.json in the data directory)."""

import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional

from gamedex.registry.json_store import read_json, write_json
from gamedex.stores.base import LauncherKind
from gamedex.utils.outcome import MISSING
from gamedex.utils.paths import CONFIG_FILE, ensure_data_dir, get_data_dir

logger = logging.getLogger(__name__)

MAX_LIBRARIES_PER_LAUNCHER = 5

# launcher -> (library list field, legacy single-path field)
_LAUNCHER_FIELDS: Dict[LauncherKind, tuple] = {
    LauncherKind.STEAM: ("steam_libraries", "steam_path"),
    LauncherKind.EA: ("ea_libraries", "ea_path"),
    LauncherKind.BATTLENET: ("battlenet_libraries", "battlenet_path"),
    LauncherKind.UBISOFT: ("ubisoft_libraries", "ubisoft_path"),
    LauncherKind.CUSTOM: ("custom_libraries", None),
}


def clean_library_list(paths) -> List[str]:
    """Trim, drop blanks and duplicates, keep at most MAX_LIBRARIES_PER_LAUNCHER."""
    cleaned: List[str] = []
    if not isinstance(paths, list):
        return cleaned
    for p in paths:
        if not isinstance(p, str):
            continue
        p = p.strip()
        if p and p not in cleaned:
            cleaned.append(p)
    return cleaned[:MAX_LIBRARIES_PER_LAUNCHER]


@dataclass
class AppConfig:
    theme: str = "Default"
    steam_libraries: List[str] = field(default_factory=list)
    ea_libraries: List[str] = field(default_factory=list)
    battlenet_libraries: List[str] = field(default_factory=list)
    ubisoft_libraries: List[str] = field(default_factory=list)
    custom_libraries: List[str] = field(default_factory=list)
    # Single-path settings from older config files
    steam_path: str = ""
    ea_path: str = ""
    battlenet_path: str = ""
    ubisoft_path: str = ""
    igdb_client_id: str = ""
    igdb_client_secret: str = ""
    show_uncategorized_titles: bool = True
    show_games_in_multiple_categories: bool = True
    follow_steam_library_folders: bool = True
    window_width: int = 0
    window_height: int = 0

    def libraries_for(self, launcher: LauncherKind) -> List[str]:
        """Configured base directories for a launcher, legacy path as fallback."""
        list_field, legacy_field = _LAUNCHER_FIELDS[launcher]
        libraries = clean_library_list(getattr(self, list_field))
        if not libraries and legacy_field:
            legacy = getattr(self, legacy_field).strip()
            if legacy:
                libraries = [legacy]
        return libraries

    def has_configured_path(self, launcher: LauncherKind) -> bool:
        return bool(self.libraries_for(launcher))

    def needs_setup(self) -> bool:
        """True when no launcher has any path configured."""
        return not any(self.has_configured_path(kind) for kind in LauncherKind)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "AppConfig":
        """Build from a loaded document, ignoring unknown keys and wrong types."""
        config = cls()
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            default = getattr(config, f.name)
            if isinstance(default, list):
                setattr(config, f.name, clean_library_list(value))
            elif isinstance(default, bool):
                if isinstance(value, bool):
                    setattr(config, f.name, value)
            elif isinstance(default, int):
                if isinstance(value, int) and not isinstance(value, bool):
                    setattr(config, f.name, value)
            elif isinstance(value, str):
                setattr(config, f.name, value)
        return config


class ConfigManager:
    """Loads and saves AppConfig. Never raises for missing or corrupt files."""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else get_data_dir()
        self.path = self.data_dir / CONFIG_FILE

    def load_or_create_default(self) -> AppConfig:
        if not ensure_data_dir(self.data_dir):
            logger.error(f"[Config] Could not create data directory {self.data_dir}")
            return AppConfig()

        result = read_json(self.path)
        if result.error == MISSING:
            config = AppConfig()
            self.save(config)
            logger.info(f"[Config] Created default config at {self.path}")
            return config
        if not result.ok or not isinstance(result.value, dict):
            logger.warning(f"[Config] Unreadable config at {self.path}, using defaults")
            return AppConfig()
        return AppConfig.from_dict(result.value)

    def save(self, config: AppConfig) -> bool:
        return write_json(self.path, config.to_dict()).ok
