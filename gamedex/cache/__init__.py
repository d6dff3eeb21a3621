"""On-disk caches for IGDB metadata and cover images."""
from .artwork_files import image_path, legacy_image_path, slugify
from .metadata_cache import get_metadata_cache_path, load_metadata_cache, save_metadata_cache

__all__ = [
    "get_metadata_cache_path",
    "image_path",
    "legacy_image_path",
    "load_metadata_cache",
    "save_metadata_cache",
    "slugify",
]
