"""Cover image file naming.

Covers live in <data_dir>/caches/images/. The current name is a slug of the
game name; older installs keyed files by the MD5 of the name, which is still
read (and migrated) on access.
"""

import hashlib
import logging
import re
from pathlib import Path

from gamedex.utils.paths import IMAGES_DIR

logger = logging.getLogger(__name__)

IMAGE_SUFFIX = ".jpg"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def get_images_dir(data_dir: Path) -> Path:
    return Path(data_dir) / IMAGES_DIR


def legacy_key(name: str) -> str:
    return hashlib.md5(name.encode("utf-8")).hexdigest()


def slugify(name: str) -> str:
    """Filesystem-safe key: lowercase, runs of non-alphanumerics become '_'."""
    slug = _NON_ALNUM.sub("_", name.lower()).strip("_")
    if not slug:
        # Names made only of symbols or non-latin letters
        slug = "game_" + legacy_key(name)[:12]
    return slug


def image_path(data_dir: Path, name: str) -> Path:
    return get_images_dir(data_dir) / f"{slugify(name)}{IMAGE_SUFFIX}"


def legacy_image_path(data_dir: Path, name: str) -> Path:
    return get_images_dir(data_dir) / f"{legacy_key(name)}{IMAGE_SUFFIX}"
