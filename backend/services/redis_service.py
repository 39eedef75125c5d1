"""
Redis service for JSON caching operations.
"""

import json
import logging
from typing import Any, Optional

import redis
from redis.connection import ConnectionPool

from backend.config import settings

logger = logging.getLogger(__name__)


class RedisService:
    """Thin JSON-over-Redis wrapper with connection pooling.

    Every operation degrades to a miss (or a no-op) when Redis is down, so
    callers can treat the cache as optional.
    """

    def __init__(self, redis_host: str = None, redis_port: int = None, redis_db: int = None,
                 redis_password: str = None, redis_ssl: bool = None, client: Optional[redis.Redis] = None):
        self.host = redis_host or settings.REDIS_HOST
        self.port = redis_port or settings.REDIS_PORT
        self.db = redis_db or settings.REDIS_DB
        self.password = redis_password or settings.REDIS_PASSWORD
        self.ssl = redis_ssl if redis_ssl is not None else settings.REDIS_SSL

        self.pool = None
        self.client = client
        if self.client is None:
            self._initialize_client()

    def _initialize_client(self):
        """Initialize Redis client with connection pooling."""
        try:
            pool_params = {
                'host': self.host,
                'port': self.port,
                'db': self.db,
                'decode_responses': settings.REDIS_DECODE_RESPONSES,
                'socket_connect_timeout': 5,
                'socket_timeout': 5,
                'retry_on_timeout': True
            }
            if self.password:
                pool_params['password'] = self.password
            if self.ssl:
                pool_params['connection_class'] = redis.SSLConnection

            self.pool = ConnectionPool(**pool_params)
            self.client = redis.Redis(connection_pool=self.pool)

            self.client.ping()
            logger.info(f"Redis connection established: {self.host}:{self.port}/{self.db}")

        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.error(f"Redis connection failed: {e}")
            self.client = None

    def is_connected(self) -> bool:
        """Check if Redis is connected and available."""
        if not self.client:
            return False
        try:
            self.client.ping()
            return True
        except (redis.ConnectionError, redis.TimeoutError):
            return False

    def get_json(self, key: str) -> Optional[Any]:
        """
        Retrieve and parse a JSON value.

        Returns:
            Parsed value or None on miss, expiry, or error
        """
        if not self.client:
            return None

        try:
            raw = self.client.get(key)
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.error(f"Redis get error for key {key}: {e}")
            return None

        if raw is None:
            return None

        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error(f"JSON deserialization error for key {key}: {e}")
            return None

    def set_json(self, key: str, data: Any, ttl: Optional[int] = None) -> bool:
        """
        Store a JSON-serializable value with optional TTL in seconds.

        Returns:
            True if stored, False otherwise
        """
        if not self.client:
            return False

        try:
            payload = json.dumps(data, separators=(',', ':'))
        except (TypeError, ValueError) as e:
            logger.error(f"JSON serialization error for key {key}: {e}")
            return False

        try:
            if ttl:
                return bool(self.client.setex(key, ttl, payload))
            return bool(self.client.set(key, payload))
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.error(f"Redis set error for key {key}: {e}")
            return False

    def get_ttl(self, key: str) -> int:
        """Remaining TTL in seconds; -1 no expiry, -2 missing, 0 on error."""
        if not self.client:
            return 0
        try:
            return self.client.ttl(key)
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.error(f"Redis TTL error for key {key}: {e}")
            return 0

    def delete_by_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a glob pattern.

        Returns:
            int: Number of keys deleted
        """
        if not self.client:
            return 0

        try:
            keys = list(self.client.scan_iter(match=pattern, count=100))
            if not keys:
                return 0
            deleted = self.client.delete(*keys)
            logger.info(f"Deleted {deleted} keys matching pattern: {pattern}")
            return deleted
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.error(f"Redis delete error for pattern {pattern}: {e}")
            return 0

    def close(self):
        """Close Redis connection and cleanup resources."""
        if self.client:
            try:
                self.client.close()
                logger.info("Redis connection closed")
            except redis.RedisError as e:
                logger.error(f"Error closing Redis connection: {e}")

        if self.pool:
            self.pool.disconnect()
