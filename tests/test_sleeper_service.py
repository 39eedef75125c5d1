"""
Unit tests for SleeperService

Runs the real client against httpx.MockTransport to cover URL building,
404 handling and the weekly transaction fallback.
"""

import pytest
import httpx

from backend.config import settings
from backend.services.pacing import PacingPolicy
from backend.services.sleeper_service import SleeperService

BASE_URL = "https://api.sleeper.test/v1"


def build_service(routes):
    """Service whose requests are answered from `routes` (path -> (status, json))"""
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        requested.append(path)
        status, body = routes.get(path, (404, None))
        if isinstance(body, Exception):
            raise body
        return httpx.Response(status, json=body)

    service = SleeperService(
        base_url=BASE_URL,
        pacing=PacingPolicy.disabled(),
        transport=httpx.MockTransport(handler)
    )
    return service, requested


class TestLeagueEndpoints:

    @pytest.mark.asyncio
    async def test_get_league(self):
        service, requested = build_service({
            "/v1/league/L1": (200, {"league_id": "L1", "season": "2025", "previous_league_id": "L0"})
        })

        async with service:
            league = await service.get_league("L1")

        assert league["previous_league_id"] == "L0"
        assert requested == ["/v1/league/L1"]

    @pytest.mark.asyncio
    async def test_missing_league_is_none(self):
        service, _ = build_service({})

        async with service:
            assert await service.get_league("nope") is None

    @pytest.mark.asyncio
    async def test_server_error_is_none(self):
        service, _ = build_service({"/v1/league/L1/users": (500, {"error": "down"})})

        async with service:
            assert await service.get_league_users("L1") is None

    @pytest.mark.asyncio
    async def test_transport_error_is_none(self):
        service, _ = build_service({"/v1/league/L1/rosters": (200, httpx.ConnectError("refused"))})

        async with service:
            assert await service.get_league_rosters("L1") is None

    @pytest.mark.asyncio
    async def test_missing_matchup_week_is_empty(self):
        service, requested = build_service({})

        async with service:
            assert await service.get_matchups("L1", 17) == []

        assert requested == ["/v1/league/L1/matchups/17"]

    @pytest.mark.asyncio
    async def test_drafts_and_picks(self):
        service, _ = build_service({
            "/v1/league/L1/drafts": (200, [{"draft_id": "d1", "season": "2024"}]),
            "/v1/draft/d1/picks": (200, [{"pick_no": 1, "round": 1, "draft_slot": 1, "player_id": "P9"}]),
        })

        async with service:
            drafts = await service.get_league_drafts("L1")
            picks = await service.get_draft_picks("d1")

        assert drafts[0]["draft_id"] == "d1"
        assert picks[0]["player_id"] == "P9"

    @pytest.mark.asyncio
    async def test_global_endpoints(self):
        service, _ = build_service({
            "/v1/state/nfl": (200, {"season": "2025", "week": 7, "season_type": "regular"}),
            "/v1/players/nfl": (200, {"P1": {"player_id": "P1", "first_name": "Justin"}}),
        })

        async with service:
            state = await service.get_nfl_state()
            players = await service.get_all_players()

        assert state["season"] == "2025"
        assert players["P1"]["first_name"] == "Justin"


class TestTransactions:

    @pytest.mark.asyncio
    async def test_weekly_results_are_concatenated(self):
        service, requested = build_service({
            "/v1/league/L1/transactions/1": (200, [{"transaction_id": "t1"}]),
            "/v1/league/L1/transactions/2": (500, None),
            "/v1/league/L1/transactions/3": (200, [{"transaction_id": "t3a"}, {"transaction_id": "t3b"}]),
        })

        async with service:
            transactions = await service.get_transactions("L1", max_week=4)

        assert [t["transaction_id"] for t in transactions] == ["t1", "t3a", "t3b"]
        assert requested == [f"/v1/league/L1/transactions/{week}" for week in range(1, 5)]

    @pytest.mark.asyncio
    async def test_no_bulk_request_by_default(self):
        service, requested = build_service({})

        async with service:
            transactions = await service.get_transactions("L1")

        assert transactions == []
        assert "/v1/league/L1/transactions" not in requested
        assert len(requested) == 18

    @pytest.mark.asyncio
    async def test_bulk_endpoint_when_enabled(self, monkeypatch):
        monkeypatch.setattr(settings, "TRANSACTIONS_BULK_ENABLED", True)
        service, requested = build_service({
            "/v1/league/L1/transactions": (200, [{"transaction_id": "bulk"}]),
        })

        async with service:
            transactions = await service.get_transactions("L1")

        assert transactions == [{"transaction_id": "bulk"}]
        assert requested == ["/v1/league/L1/transactions"]
