"""IGDB metadata cache files, one per launcher.

File: <data_dir>/caches/igdb_metadata_<launcher>.json
    {"entries": [{"name": "Foo", "description": "...", "genres": ["Shooter"]},
                 {"name": "NoSuchGame", "description": null, "genres": []}]}

Entries with no description and no genres are negative records ("looked up,
nothing found") and are kept so the lookup is not repeated.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from gamedex.registry.json_store import read_json, write_json
from gamedex.stores.base import LauncherKind
from gamedex.utils.outcome import CORRUPT, Outcome
from gamedex.utils.paths import CACHES_DIR

logger = logging.getLogger(__name__)

METADATA_FILE_PREFIX = "igdb_metadata_"
METADATA_FILE_SUFFIX = ".json"


def get_metadata_cache_path(data_dir: Path, launcher: LauncherKind) -> Path:
    """Get path to the metadata cache file of one launcher."""
    return Path(data_dir) / CACHES_DIR / f"{METADATA_FILE_PREFIX}{launcher.value}{METADATA_FILE_SUFFIX}"


def _parse_entry(item) -> Optional[Dict]:
    if not isinstance(item, dict):
        return None
    name = item.get("name")
    if not isinstance(name, str) or not name:
        return None
    description = item.get("description")
    if not isinstance(description, str) or not description:
        description = None
    genres = item.get("genres")
    if not isinstance(genres, list):
        genres = []
    return {
        "name": name,
        "description": description,
        "genres": [g for g in genres if isinstance(g, str) and g],
    }


def load_metadata_cache(data_dir: Path, launcher: LauncherKind) -> Outcome[Dict[str, Dict]]:
    """Load one launcher's cache. Returns {name: {"description", "genres"}}.

    A missing or corrupt file gives an empty dict.
    """
    cache_path = get_metadata_cache_path(data_dir, launcher)
    result = read_json(cache_path)
    if not result.ok:
        return Outcome.failure({}, result.error)

    raw = result.value
    if not isinstance(raw, dict) or not isinstance(raw.get("entries"), list):
        logger.error(f"[Metadata] Unexpected cache layout in {cache_path}")
        return Outcome.failure({}, CORRUPT)

    cache = {}
    for item in raw["entries"]:
        entry = _parse_entry(item)
        if entry is not None:
            cache[entry["name"]] = {"description": entry["description"], "genres": entry["genres"]}
    logger.debug(f"[Metadata] Loaded {len(cache)} {launcher.value} records from cache")
    return Outcome.success(cache)


def save_metadata_cache(data_dir: Path, launcher: LauncherKind, cache: Dict[str, Dict]) -> bool:
    """Save one launcher's cache, negative records included."""
    entries: List[Dict] = [
        {
            "name": name,
            "description": record.get("description"),
            "genres": list(record.get("genres") or []),
        }
        for name, record in sorted(cache.items(), key=lambda kv: kv[0].lower())
    ]
    result = write_json(get_metadata_cache_path(data_dir, launcher), {"entries": entries})
    if result.ok:
        logger.info(f"[Metadata] Saved {len(entries)} {launcher.value} records to cache")
    return result.ok
