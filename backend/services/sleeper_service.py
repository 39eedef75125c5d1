"""
Sleeper API integration service for fetching league history data.
"""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from backend.config import settings
from backend.services.pacing import PacingPolicy

logger = logging.getLogger(__name__)

USER_AGENT = "Dynasty League History App"


class SleeperService:
    """Service for interacting with the read-only Sleeper API."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 pacing: Optional[PacingPolicy] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Initialize Sleeper service with HTTP client."""
        self.base_url = base_url or settings.SLEEPER_API_BASE_URL
        self.timeout = timeout or settings.SLEEPER_API_TIMEOUT
        self.pacing = pacing or PacingPolicy.for_requests()
        self.transport = transport
        # Create persistent client for singleton usage
        self.client = self._build_client(self.timeout)

    def _build_client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            transport=self.transport
        )

    async def __aenter__(self):
        """Async context manager entry."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self):
        if self.client and not self.client.is_closed:
            await self.client.aclose()

    def _ensure_client(self):
        """Ensure the HTTP client is open and ready."""
        if self.client is None or self.client.is_closed:
            logger.info("Recreating closed Sleeper HTTP client")
            self.client = self._build_client(self.timeout)

    async def _get(self, path: str, what: str, not_found: Any = None) -> Any:
        """
        GET a Sleeper endpoint and decode the JSON body.

        Args:
            path: Endpoint path relative to the base URL
            what: Description used in log messages
            not_found: Value returned on a 404 response

        Returns:
            Decoded JSON, `not_found` on 404, or None on any other failure
        """
        try:
            self._ensure_client()
            await self.pacing.wait()

            response = await self.client.get(path)

            if response.status_code == 404:
                logger.info(f"No {what} found (404)")
                return not_found

            response.raise_for_status()
            return response.json()

        except httpx.TimeoutException:
            logger.error(f"Timeout fetching {what}")
            return None
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP {e.response.status_code} fetching {what}")
            return None
        except httpx.RequestError as e:
            logger.error(f"Request error fetching {what}: {e}")
            return None
        except ValueError as e:
            logger.error(f"JSON decode error fetching {what}: {e}")
            return None

    async def get_league(self, league_id: str) -> Optional[Dict]:
        """
        Get league metadata, including season and previous_league_id.

        Args:
            league_id: Sleeper league ID

        Returns:
            Dict: League object or None if not found/error
        """
        league_data = await self._get(f"/league/{league_id}", f"league {league_id}")
        if league_data:
            logger.info(f"Retrieved league {league_id}: {league_data.get('name', 'Unknown')} ({league_data.get('season')})")
        return league_data or None

    async def get_league_users(self, league_id: str) -> Optional[List[Dict]]:
        """
        Get all users in a league.

        Args:
            league_id: Sleeper league ID

        Returns:
            List[Dict]: User objects with user_id, display_name, avatar, or None if not found/error
        """
        users_data = await self._get(f"/league/{league_id}/users", f"users for league {league_id}")
        if users_data is not None:
            logger.info(f"Retrieved {len(users_data)} users for league {league_id}")
        return users_data

    async def get_league_rosters(self, league_id: str) -> Optional[List[Dict]]:
        """
        Get rosters for a league.

        Args:
            league_id: Sleeper league ID

        Returns:
            List[Dict]: Roster objects or None if not found/error
        """
        rosters_data = await self._get(f"/league/{league_id}/rosters", f"rosters for league {league_id}")
        if rosters_data is not None:
            if not rosters_data:
                logger.warning(f"Empty rosters list returned for league {league_id}")
            else:
                logger.info(f"Retrieved {len(rosters_data)} rosters for league {league_id}")
        return rosters_data

    async def get_matchups(self, league_id: str, week: int) -> Optional[List[Dict]]:
        """
        Get matchups for one week. A 404 means the week has no data.

        Returns:
            List[Dict]: Matchup objects, [] if the week has no data, None on error
        """
        return await self._get(
            f"/league/{league_id}/matchups/{week}",
            f"matchups for league {league_id}, week {week}",
            not_found=[]
        )

    async def get_all_players(self) -> Optional[Dict[str, Dict]]:
        """
        Get all NFL players from Sleeper API.

        Returns:
            Dict: Dictionary of {player_id: player_data} or None on error
        """
        try:
            logger.info("Fetching NFL players from Sleeper API (this may take a while)")
            start_time = time.time()

            # The directory is several MB, so it gets its own client and timeout
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=settings.SLEEPER_PLAYERS_TIMEOUT,
                headers={"User-Agent": USER_AGENT},
                transport=self.transport
            ) as client:
                response = await client.get("/players/nfl")

                if response.status_code == 404:
                    logger.warning("NFL players endpoint not found")
                    return None

                response.raise_for_status()
                players_data = response.json()

            fetch_duration = time.time() - start_time
            player_count = len(players_data) if isinstance(players_data, dict) else 0
            logger.info(f"Retrieved {player_count} NFL players in {fetch_duration:.2f}s")
            return players_data

        except httpx.TimeoutException:
            logger.error("Timeout fetching NFL players from Sleeper API (response too large)")
            return None
        except httpx.HTTPError as e:
            logger.error(f"HTTP error fetching NFL players: {e}")
            return None
        except ValueError as e:
            logger.error(f"JSON decode error fetching NFL players: {e}")
            return None

    async def get_nfl_state(self) -> Optional[Dict]:
        """
        Get current NFL state (season, week, season_type).

        Returns:
            Dict: NFL state data or None on error
        """
        state_data = await self._get("/state/nfl", "NFL state")
        if state_data:
            logger.info(f"Current NFL state: season={state_data.get('season')}, week={state_data.get('week')}, "
                        f"season_type={state_data.get('season_type')}")
        return state_data

    async def get_league_drafts(self, league_id: str) -> Optional[List[Dict]]:
        """Get drafts for a league, or None if not found/error."""
        return await self._get(f"/league/{league_id}/drafts", f"drafts for league {league_id}")

    async def get_draft_picks(self, draft_id: str) -> Optional[List[Dict]]:
        """Get completed picks for a draft, or None if not found/error."""
        return await self._get(f"/draft/{draft_id}/picks", f"picks for draft {draft_id}")

    async def get_transactions_for_week(self, league_id: str, week: int) -> Optional[List[Dict]]:
        """
        Get transactions for one week (Sleeper calls it a round).

        Returns:
            List[Dict]: Transactions, [] if none were recorded, None on error
        """
        return await self._get(
            f"/league/{league_id}/transactions/{week}",
            f"transactions for league {league_id}, week {week}",
            not_found=[]
        )

    async def get_transactions(self, league_id: str, max_week: Optional[int] = None) -> List[Dict]:
        """
        Get every transaction recorded for a league season.

        Tries the bulk endpoint when enabled, otherwise (or when it is
        unavailable) fetches weeks 1..max_week and concatenates them. A week
        that fails contributes nothing.

        Args:
            league_id: Sleeper league ID
            max_week: Last week to fetch (default from settings)

        Returns:
            List[Dict]: All transactions found, possibly empty
        """
        if settings.TRANSACTIONS_BULK_ENABLED:
            bulk = await self._get(f"/league/{league_id}/transactions", f"bulk transactions for league {league_id}")
            if bulk:
                logger.info(f"Retrieved {len(bulk)} transactions for league {league_id} from bulk endpoint")
                return bulk
            logger.info(f"Bulk transaction fetch for league {league_id} unavailable, falling back to weekly fetch")

        max_week = max_week or settings.TRANSACTION_MAX_WEEK
        all_transactions: List[Dict] = []
        for week in range(1, max_week + 1):
            weekly = await self.get_transactions_for_week(league_id, week)
            if weekly is None:
                logger.warning(f"Skipping transactions for league {league_id}, week {week}")
                continue
            all_transactions.extend(weekly)

        logger.info(f"Retrieved {len(all_transactions)} transactions for league {league_id} across {max_week} weeks")
        return all_transactions


# Singleton instance for dependency injection
sleeper_service = SleeperService()
