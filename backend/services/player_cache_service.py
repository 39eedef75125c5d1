"""
Player cache service for managing the Sleeper NFL player directory.
"""

import logging
from typing import Dict, Optional

from backend.config import settings
from backend.services.redis_service import RedisService
from backend.services.sleeper_service import SleeperService

logger = logging.getLogger(__name__)

PLAYER_FIELDS = ("player_id", "first_name", "last_name", "position", "team")


class PlayerCacheService:
    """Service for caching the NFL player directory in Redis."""

    def __init__(self, redis_service: Optional[RedisService], sleeper_service: SleeperService):
        self.redis_service = redis_service
        self.sleeper_service = sleeper_service
        self.cache_key = settings.SLEEPER_PLAYERS_CACHE_KEY
        self.cache_ttl = settings.SLEEPER_PLAYERS_CACHE_TTL

    def _transform_players(self, raw_players: Dict[str, Dict]) -> Dict[str, Dict]:
        """Keep only the fields the dashboard reads; the raw payload is several MB."""
        simplified = {}
        for player_id, data in raw_players.items():
            if not isinstance(data, dict):
                continue
            entry = {field: data.get(field) for field in PLAYER_FIELDS}
            entry["player_id"] = entry["player_id"] or player_id
            simplified[player_id] = entry
        return simplified

    def get_cached_players(self) -> Optional[Dict[str, Dict]]:
        """
        Retrieve players from Redis cache.

        Returns:
            Dict: Cached player data or None if cache miss/unavailable
        """
        if self.redis_service is None:
            return None

        cached_data = self.redis_service.get_json(self.cache_key)
        if cached_data is None:
            logger.info("Player cache miss")
            return None

        ttl_remaining = self.redis_service.get_ttl(self.cache_key)
        logger.info(f"Player cache hit: {len(cached_data)} players, TTL: {ttl_remaining}s")
        return cached_data

    async def get_players(self) -> Dict[str, Dict]:
        """
        Get the player directory, fetching and caching it on a miss.

        Returns:
            Dict: {player_id: player_data}; empty if Sleeper is unreachable
        """
        cached = self.get_cached_players()
        if cached is not None:
            return cached

        raw_players = await self.sleeper_service.get_all_players()
        if not raw_players:
            logger.error("Failed to fetch players from Sleeper API")
            return {}

        simplified_players = self._transform_players(raw_players)
        if self.redis_service is not None:
            if self.redis_service.set_json(self.cache_key, simplified_players, self.cache_ttl):
                logger.info(f"Cached {len(simplified_players)} NFL players for {self.cache_ttl / 3600:.1f} hours")
            else:
                logger.warning("Failed to cache players in Redis")

        return simplified_players
