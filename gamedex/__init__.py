# GameDex
# Discovers installed PC games across launchers, indexes them and caches IGDB metadata and covers.

from .core import GameDexCore

__version__ = "0.1.0"

__all__ = ["GameDexCore", "__version__"]
