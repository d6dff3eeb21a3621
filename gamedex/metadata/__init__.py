"""Remote game catalog clients."""
from .igdb import IGDBClient, build_games_query, cover_url_from_record

__all__ = ["IGDBClient", "build_games_query", "cover_url_from_record"]
