"""
Unit tests for SeasonCacheService and the Redis JSON wrapper
"""

import pytest

from backend.services.season_cache_service import SeasonCacheService


class TestSeasonCache:

    def test_round_trip_with_ttl(self, season_cache, fake_redis):
        rosters = [{"roster_id": 1, "owner_id": "u1"}]

        assert season_cache.set("rosters", "L1", "2023", rosters) is True

        assert season_cache.get("rosters", "L1", "2023") == rosters
        assert fake_redis.ttls["dynasty_analysis:rosters:L1:2023"] == 604800

    def test_miss(self, season_cache):
        assert season_cache.get("users", "L1", "2023") is None

    def test_empty_data_not_cached(self, season_cache, fake_redis):
        assert season_cache.set("matchups", "L1", "2023", []) is False
        assert fake_redis.store == {}

    def test_missing_identifiers(self, season_cache):
        assert season_cache.set("league", "L1", None, {"league_id": "L1"}) is False
        assert season_cache.get("league", "", "2023") is None

    def test_clear_league_only_touches_that_league(self, season_cache, fake_redis):
        season_cache.set("users", "L1", "2023", [{"user_id": "u1"}])
        season_cache.set("rosters", "L1", "2024", [{"roster_id": 1}])
        season_cache.set("users", "L2", "2023", [{"user_id": "u2"}])

        deleted = season_cache.clear_league("L1")

        assert deleted == 2
        assert list(fake_redis.store) == ["dynasty_analysis:users:L2:2023"]

    def test_without_redis(self):
        cache = SeasonCacheService(redis_service=None)

        assert cache.set("users", "L1", "2023", [{"user_id": "u1"}]) is False
        assert cache.get("users", "L1", "2023") is None
        assert cache.clear_league("L1") == 0

    def test_custom_prefix(self, redis_service, fake_redis):
        cache = SeasonCacheService(redis_service, ttl=60, key_prefix="test")

        cache.set("league", "L1", "2023", {"league_id": "L1"})

        assert fake_redis.ttls == {"test:league:L1:2023": 60}


class TestRedisService:

    def test_corrupt_json_is_a_miss(self, redis_service, fake_redis):
        fake_redis.set("broken", "{not json")

        assert redis_service.get_json("broken") is None

    def test_set_without_ttl(self, redis_service, fake_redis):
        assert redis_service.set_json("key", {"a": 1}) is True
        assert redis_service.get_ttl("key") == -1

    def test_unserializable_value(self, redis_service):
        assert redis_service.set_json("key", {"a": object()}) is False

    def test_disconnected_client(self, redis_service):
        redis_service.client = None

        assert redis_service.is_connected() is False
        assert redis_service.get_json("key") is None
        assert redis_service.set_json("key", {"a": 1}) is False
        assert redis_service.delete_by_pattern("*") == 0
