"""
Season data cache for Sleeper league history.

Entries are keyed by (kind, league_id, season) and expire after a fixed TTL.
Only finished seasons are written here; the reconciler decides that.
"""

import logging
from typing import Any, Optional

from backend.config import settings
from backend.services.redis_service import RedisService

logger = logging.getLogger(__name__)


class SeasonCacheService:
    """Read-through cache store for per-season league data."""

    def __init__(self, redis_service: Optional[RedisService], ttl: Optional[int] = None,
                 key_prefix: Optional[str] = None):
        self.redis_service = redis_service
        self.ttl = ttl or settings.SLEEPER_SEASON_CACHE_TTL
        self.key_prefix = key_prefix or settings.SLEEPER_SEASON_CACHE_KEY_PREFIX

    def _build_cache_key(self, kind: str, league_id: str, season: Optional[str]) -> str:
        return f"{self.key_prefix}:{kind}:{league_id}:{season}"

    def get(self, kind: str, league_id: str, season: Optional[str]) -> Optional[Any]:
        """
        Load cached data.

        Args:
            kind: Data kind (league, users, rosters, matchups, drafts, draft_picks, transactions)
            league_id: League ID (draft ID for draft_picks)
            season: Season year

        Returns:
            Cached data or None if absent, expired, or Redis is unavailable
        """
        if not league_id or not season or self.redis_service is None:
            return None

        cache_key = self._build_cache_key(kind, league_id, season)
        cached_data = self.redis_service.get_json(cache_key)

        if cached_data is None:
            logger.debug(f"Cache miss: {cache_key}")
            return None

        logger.info(f"Loaded {kind} data from cache for league {league_id}, season {season}")
        return cached_data

    def set(self, kind: str, league_id: str, season: Optional[str], data: Any) -> bool:
        """
        Save data with the season TTL. Empty data is not cached.

        Returns:
            True if the entry was written
        """
        if not data or not league_id or not season or self.redis_service is None:
            return False

        cache_key = self._build_cache_key(kind, league_id, season)
        stored = self.redis_service.set_json(cache_key, data, self.ttl)
        if stored:
            logger.info(f"Cached {kind} data for league {league_id}, season {season}")
        else:
            logger.warning(f"Failed to cache {kind} data for league {league_id}, season {season}")
        return stored

    def clear_league(self, league_id: str) -> int:
        """Remove every cached entry for a league. Returns the number of keys removed."""
        if not league_id or self.redis_service is None:
            return 0

        deleted = self.redis_service.delete_by_pattern(f"{self.key_prefix}:*:{league_id}:*")
        logger.info(f"Cleared {deleted} cache entries for league {league_id}")
        return deleted
