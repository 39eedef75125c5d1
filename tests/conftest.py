"""
Shared fixtures: an in-memory Redis client, a mocked Sleeper service and a
small two-team league.
"""

import fnmatch

import pytest
from unittest.mock import AsyncMock

from backend.services.redis_service import RedisService
from backend.services.season_cache_service import SeasonCacheService
from backend.services.season_data_service import SeasonDataReconciler
from backend.services.sleeper_service import SleeperService
from shared.models import LeagueUser, NflState, Player, Roster


class FakeRedis:
    """Implements the subset of the redis-py client used by RedisService."""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def ping(self):
        return True

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value):
        self.store[key] = value
        self.ttls[key] = -1
        return True

    def setex(self, key, ttl, value):
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    def ttl(self, key):
        if key not in self.store:
            return -2
        return self.ttls.get(key, -1)

    def scan_iter(self, match="*", count=None):
        return [key for key in list(self.store) if fnmatch.fnmatchcase(key, match)]

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if key in self.store:
                del self.store[key]
                self.ttls.pop(key, None)
                deleted += 1
        return deleted

    def close(self):
        pass


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def redis_service(fake_redis):
    """RedisService backed by the in-memory client"""
    return RedisService(client=fake_redis)


@pytest.fixture
def season_cache(redis_service):
    return SeasonCacheService(redis_service=redis_service)


@pytest.fixture
def mock_sleeper():
    """Sleeper service with every endpoint mocked"""
    return AsyncMock(spec=SleeperService)


@pytest.fixture
def reconciler(mock_sleeper, season_cache):
    return SeasonDataReconciler(mock_sleeper, season_cache, max_week=18, batch_size=6)


@pytest.fixture
def nfl_state():
    return NflState(season="2025", week=7, season_type="regular")


@pytest.fixture
def users_payload():
    return [
        {"user_id": "u1", "display_name": "Alice", "avatar": "a1"},
        {"user_id": "u2", "display_name": "Bob", "avatar": "b2"},
    ]


@pytest.fixture
def rosters_payload():
    return [
        {
            "roster_id": 1,
            "owner_id": "u1",
            "players": ["P1", "P2", "P3"],
            "starters": ["P1", "P2"],
            "settings": {"wins": 8, "losses": 5, "ties": 0, "fpts": 1450, "fpts_against": 1390, "rank": 2},
        },
        {
            "roster_id": 2,
            "owner_id": "u2",
            "players": ["P4", "P5"],
            "starters": ["P4"],
            "settings": {"wins": 9, "losses": 4, "ties": 0, "fpts": 1400, "fpts_against": 1300, "rank": 1},
        },
    ]


@pytest.fixture
def users(users_payload):
    return [LeagueUser.model_validate(u) for u in users_payload]


@pytest.fixture
def rosters(rosters_payload):
    return [Roster.model_validate(r) for r in rosters_payload]


@pytest.fixture
def players():
    """Small NFL player directory"""
    return {
        "P1": Player(player_id="P1", first_name="Justin", last_name="Jefferson", position="WR", team="MIN"),
        "P2": Player(player_id="P2", first_name="Bijan", last_name="Robinson", position="RB", team="ATL"),
        "P4": Player(player_id="P4", first_name="Josh", last_name="Allen", position="QB", team="BUF"),
        "P9": Player(player_id="P9", first_name="Ja'Marr", last_name="Chase", position="WR", team="CIN"),
        "P0": Player(player_id="P0", first_name="", last_name=""),
    }


@pytest.fixture
def make_league():
    """Factory for Sleeper league payloads"""
    def _make(league_id, season, previous_league_id=None, season_type="regular", playoff_week_start=15):
        return {
            "league_id": league_id,
            "name": "Dynasty Test League",
            "season": season,
            "season_type": season_type,
            "status": "in_season",
            "previous_league_id": previous_league_id,
            "settings": {"playoff_week_start": playoff_week_start, "num_teams": 2},
        }
    return _make
