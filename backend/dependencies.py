"""
Shared dependency injection functions for FastAPI.
"""

from typing import Optional
import logging

from fastapi import Depends, Request

from backend.services.redis_service import RedisService
from backend.services.season_cache_service import SeasonCacheService
from backend.services.player_cache_service import PlayerCacheService
from backend.services.sleeper_service import SleeperService, sleeper_service
from backend.services.history_service import HistoryResolver
from backend.services.season_data_service import SeasonDataReconciler
from backend.services.snapshot_service import ProcessSnapshot
from backend.services.transaction_history_service import TransactionHistoryService
from backend.config import settings

logger = logging.getLogger(__name__)

# Global service instances
_redis_service = None
_season_cache_service = None
_player_cache_service = None
_history_resolver = None
_season_data_reconciler = None


def get_redis_service() -> Optional[RedisService]:
    """
    Dependency to get the Redis service.

    Returns:
        RedisService: Singleton Redis service instance or None if unavailable
    """
    global _redis_service

    if _redis_service is None:
        try:
            _redis_service = RedisService(
                redis_host=settings.REDIS_HOST,
                redis_port=settings.REDIS_PORT,
                redis_db=settings.REDIS_DB,
                redis_password=settings.REDIS_PASSWORD,
                redis_ssl=settings.REDIS_SSL
            )

            # Test connection
            if not _redis_service.is_connected():
                logger.warning("Redis service created but connection failed")
                _redis_service = None
                return None

        except Exception as e:
            logger.error(f"Failed to create Redis service: {e}")
            return None

    return _redis_service


def get_sleeper_service() -> SleeperService:
    """
    Dependency to get the Sleeper service.

    Returns:
        SleeperService: Singleton Sleeper service instance
    """
    return sleeper_service


def get_season_cache_service() -> SeasonCacheService:
    """
    Dependency to get the season cache service.

    Without Redis the service still works; every read is a miss.
    """
    global _season_cache_service

    if _season_cache_service is None:
        redis_service = get_redis_service()
        if redis_service is None:
            logger.warning("Season cache running without Redis: past seasons will be fetched live")
        _season_cache_service = SeasonCacheService(redis_service=redis_service)

    return _season_cache_service


def get_player_cache_service() -> PlayerCacheService:
    """
    Dependency to get the player cache service.

    Returns:
        PlayerCacheService: Player cache service instance
    """
    global _player_cache_service

    if _player_cache_service is None:
        _player_cache_service = PlayerCacheService(
            redis_service=get_redis_service(),
            sleeper_service=sleeper_service
        )

    return _player_cache_service


def get_history_resolver() -> HistoryResolver:
    global _history_resolver

    if _history_resolver is None:
        _history_resolver = HistoryResolver(
            sleeper_service=sleeper_service,
            cache_service=get_season_cache_service()
        )

    return _history_resolver


def get_season_data_reconciler() -> SeasonDataReconciler:
    global _season_data_reconciler

    if _season_data_reconciler is None:
        _season_data_reconciler = SeasonDataReconciler(
            sleeper_service=sleeper_service,
            cache_service=get_season_cache_service()
        )

    return _season_data_reconciler


def get_snapshot(request: Request) -> ProcessSnapshot:
    """
    Dependency to get the process snapshot loaded at startup.

    Returns:
        ProcessSnapshot: NFL state and player directory
    """
    return request.app.state.snapshot


def get_transaction_history_service(
    snapshot: ProcessSnapshot = Depends(get_snapshot),
    reconciler: SeasonDataReconciler = Depends(get_season_data_reconciler)
) -> TransactionHistoryService:
    """
    Dependency to get a transaction history service bound to the current NFL season.
    """
    return TransactionHistoryService(reconciler=reconciler, current_season=snapshot.nfl_state.season)
