"""
Unit tests for the player directory cache and the startup snapshot
"""

import json

import pytest
from pydantic import ValidationError

from backend.services.player_cache_service import PlayerCacheService
from backend.services.snapshot_service import ProcessSnapshot, load_snapshot, parse_players
from shared.models import NflState

RAW_PLAYERS = {
    "P1": {"player_id": "P1", "first_name": "Justin", "last_name": "Jefferson", "position": "WR",
           "team": "MIN", "fantasy_positions": ["WR"], "injury_status": None},
    "DEF_MIN": {"first_name": "Minnesota", "last_name": "Vikings", "position": "DEF", "team": "MIN"},
}


@pytest.fixture
def player_cache(redis_service, mock_sleeper):
    return PlayerCacheService(redis_service=redis_service, sleeper_service=mock_sleeper)


class TestPlayerCache:

    @pytest.mark.asyncio
    async def test_fetches_and_caches_on_miss(self, player_cache, mock_sleeper, fake_redis):
        mock_sleeper.get_all_players.return_value = RAW_PLAYERS

        players = await player_cache.get_players()

        assert set(players["P1"]) == {"player_id", "first_name", "last_name", "position", "team"}
        assert players["DEF_MIN"]["player_id"] == "DEF_MIN"
        assert fake_redis.ttls["sleeper:nfl:players"] == 86400

    @pytest.mark.asyncio
    async def test_cache_hit_skips_fetch(self, player_cache, mock_sleeper, fake_redis):
        fake_redis.setex("sleeper:nfl:players", 100, json.dumps({"P1": {"player_id": "P1"}}))

        players = await player_cache.get_players()

        assert players == {"P1": {"player_id": "P1"}}
        mock_sleeper.get_all_players.assert_not_called()

    @pytest.mark.asyncio
    async def test_fetch_failure_is_empty(self, player_cache, mock_sleeper):
        mock_sleeper.get_all_players.return_value = None

        assert await player_cache.get_players() == {}

    @pytest.mark.asyncio
    async def test_works_without_redis(self, mock_sleeper):
        mock_sleeper.get_all_players.return_value = RAW_PLAYERS

        players = await PlayerCacheService(None, mock_sleeper).get_players()

        assert len(players) == 2


class TestSnapshot:

    @pytest.mark.asyncio
    async def test_loads_state_and_players(self, player_cache, mock_sleeper):
        mock_sleeper.get_nfl_state.return_value = {"season": "2025", "week": 7, "season_type": "regular"}
        mock_sleeper.get_all_players.return_value = RAW_PLAYERS

        snapshot = await load_snapshot(mock_sleeper, player_cache)

        assert snapshot.nfl_state.season == "2025"
        assert snapshot.nfl_state.week == 7
        assert snapshot.players["P1"].full_name == "Justin Jefferson"

    @pytest.mark.asyncio
    async def test_missing_state_falls_back_to_calendar_year(self, player_cache, mock_sleeper):
        mock_sleeper.get_nfl_state.return_value = None
        mock_sleeper.get_all_players.return_value = None

        snapshot = await load_snapshot(mock_sleeper, player_cache)

        assert snapshot.nfl_state.season.isdigit()
        assert snapshot.nfl_state.season_type == "regular"
        assert snapshot.players == {}

    def test_parse_players_skips_malformed(self):
        players = parse_players({"P1": {"player_id": "P1", "first_name": "A"}, "P2": {"first_name": ["bad"]}})

        assert list(players) == ["P1"]

    def test_snapshot_is_read_only(self, players):
        snapshot = ProcessSnapshot(nfl_state=NflState(season="2025", season_type="regular"), players=players)

        with pytest.raises(ValidationError):
            snapshot.nfl_state = NflState(season="2026")

        assert snapshot.players["P1"].full_name == "Justin Jefferson"
        assert ProcessSnapshot(nfl_state=snapshot.nfl_state).players == {}
