"""
League history resolution.

Sleeper creates a new league ID every season and links it to the prior one
through `previous_league_id`. This service walks that chain and builds a
season -> league_id map for the dashboard's season selector. A map resolved
without fetch failures is kept in the season cache, since earlier seasons of
a league never change.
"""

import logging
from typing import Dict, List, Optional, Tuple

from backend.config import settings
from backend.services.pacing import PacingPolicy
from backend.services.season_cache_service import SeasonCacheService
from backend.services.sleeper_service import SleeperService
from shared.models import League

logger = logging.getLogger(__name__)

SEASON_MAP_CACHE_KIND = "season_map"


class HistoryResolver:
    """Follows previous-league links with bounded attempts."""

    def __init__(self, sleeper_service: SleeperService, pacing: Optional[PacingPolicy] = None,
                 max_attempts: Optional[int] = None, max_consecutive_failures: Optional[int] = None,
                 fallback_seasons: Optional[int] = None, cache_service: Optional[SeasonCacheService] = None):
        self.sleeper_service = sleeper_service
        self.pacing = pacing or PacingPolicy.for_history()
        self.max_attempts = max_attempts or settings.HISTORY_MAX_ATTEMPTS
        self.max_consecutive_failures = max_consecutive_failures or settings.HISTORY_MAX_CONSECUTIVE_FAILURES
        self.fallback_seasons = fallback_seasons or settings.HISTORY_FALLBACK_SEASONS
        self.cache_service = cache_service

    async def _fetch_league(self, league_id: str) -> Optional[League]:
        league_data = await self.sleeper_service.get_league(league_id)
        if not league_data:
            return None
        return League.model_validate(league_data)

    async def _walk_history(self, starting_league_id: str) -> Tuple[List[str], bool]:
        """Previous-league walk; the flag is False when any hop failed."""
        league_ids = [starting_league_id]
        cursor = starting_league_id
        attempts = 0
        consecutive_failures = 0
        had_failure = False

        while attempts < self.max_attempts:
            if attempts > 0:
                await self.pacing.wait()

            try:
                league = await self._fetch_league(cursor)
            except Exception as e:
                logger.warning(f"Unexpected error walking history at league {cursor}: {e}")
                league = None

            if league is None:
                attempts += 1
                consecutive_failures += 1
                had_failure = True
                logger.warning(f"Error fetching historical league {cursor} (attempt {attempts})")
                if consecutive_failures >= self.max_consecutive_failures:
                    logger.warning(f"Giving up history walk after {consecutive_failures} failures in a row")
                    break
                await self.pacing.wait_after_failure()
                continue

            consecutive_failures = 0
            if not league.previous_league_id:
                break

            league_ids.append(league.previous_league_id)
            cursor = league.previous_league_id
            attempts += 1

        logger.info(f"Found {len(league_ids)} league IDs in history of {starting_league_id}")
        return league_ids, not had_failure

    async def get_historical_league_ids(self, starting_league_id: str) -> List[str]:
        """
        Collect league IDs from the starting league back through its history.

        Never raises: a failed hop counts as an attempt and the walk stops
        after too many failures in a row, returning what was collected.

        Args:
            starting_league_id: League ID to start from (usually the current season)

        Returns:
            List[str]: League IDs, newest first, starting with `starting_league_id`
        """
        league_ids, _ = await self._walk_history(starting_league_id)
        return league_ids

    async def resolve_season_league_map(self, starting_league_id: str, current_season: str,
                                        starting_league: Optional[League] = None) -> Dict[str, str]:
        """
        Build a season -> league_id map for a league's history.

        The starting league claims its own season first; older leagues only
        fill seasons that are still free. The current season and the two
        before it always map to something, falling back to the starting
        league ID.

        Args:
            starting_league_id: League ID to start from
            current_season: Current NFL season (e.g., "2025")
            starting_league: Already-fetched metadata for the starting league

        Returns:
            Dict[str, str]: Season year -> league ID
        """
        if self.cache_service is not None:
            cached_map = self.cache_service.get(SEASON_MAP_CACHE_KIND, starting_league_id, current_season)
            if cached_map:
                return cached_map

        seasons_map: Dict[str, str] = {}
        complete = True

        if starting_league is None:
            try:
                starting_league = await self._fetch_league(starting_league_id)
            except Exception as e:
                logger.warning(f"Error fetching starting league {starting_league_id}: {e}")
            if starting_league is None:
                complete = False
        starting_season = (starting_league.season if starting_league else None) or current_season
        seasons_map[starting_season] = starting_league_id

        historical_ids, walk_complete = await self._walk_history(starting_league_id)
        complete = complete and walk_complete
        for league_id in historical_ids:
            if league_id == starting_league_id:
                continue
            try:
                league = await self._fetch_league(league_id)
            except Exception as e:
                logger.warning(f"Error fetching league {league_id} during history scan: {e}")
                league = None
            if league is None:
                logger.warning(f"League {league_id} unavailable during history scan")
                complete = False
                continue
            if league.season and league.season not in seasons_map:
                seasons_map[league.season] = league_id

        for offset in range(self.fallback_seasons):
            year = str(int(current_season) - offset)
            if year not in seasons_map:
                seasons_map[year] = starting_league_id

        logger.info(f"Season map for league {starting_league_id}: {seasons_map}")
        if self.cache_service is not None:
            if complete:
                self.cache_service.set(SEASON_MAP_CACHE_KIND, starting_league_id, current_season, seasons_map)
            else:
                logger.info(f"Not caching season map for {starting_league_id}: history was only partly resolved")
        return seasons_map


def available_seasons(seasons_map: Dict[str, str]) -> List[str]:
    """Seasons in a season map, newest first."""
    return sorted(seasons_map, key=int, reverse=True)
