"""
Season data reconciliation for Sleeper leagues.

Finished seasons never change, so their league, users, rosters, matchups,
drafts and transactions are served from the season cache and fetched only on
a miss. Current and future seasons are always fetched live.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from backend.config import settings
from backend.services.season_cache_service import SeasonCacheService
from backend.services.sleeper_service import SleeperService
from shared.models import (
    Draft, DraftPickRecord, League, LeagueUser, Matchup, NflState, Roster, SeasonData, Transaction
)

logger = logging.getLogger(__name__)

ACTIVE_SEASON_TYPES = ("regular", "post")


class LeagueDataUnavailableError(Exception):
    """League, users or rosters for a requested league could not be loaded."""

    def __init__(self, league_id: str, reason: str = ""):
        self.league_id = league_id
        self.reason = reason
        super().__init__(f"Failed to fetch data for League ID {league_id}. Please check the ID and try again.")


def is_past_season(season: Optional[str], current_season: Optional[str]) -> bool:
    if not season or not current_season:
        return False
    return int(season) < int(current_season)


def is_future_season(season: Optional[str], current_season: Optional[str]) -> bool:
    if not season or not current_season:
        return False
    return int(season) > int(current_season)


def _parse_list(model, items: Optional[List[Dict]], what: str) -> List:
    parsed = []
    for item in items or []:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping malformed {what} record: {e.error_count()} validation error(s)")
    return parsed


class SeasonDataReconciler:
    """Loads one league season, preferring the cache for finished seasons."""

    def __init__(self, sleeper_service: SleeperService, cache_service: SeasonCacheService,
                 max_week: Optional[int] = None, batch_size: Optional[int] = None):
        self.sleeper_service = sleeper_service
        self.cache_service = cache_service
        self.max_week = max_week or settings.MATCHUP_MAX_WEEK
        self.batch_size = batch_size or settings.MATCHUP_BATCH_SIZE

    async def _read_through(self, kind: str, league_id: str, season: Optional[str], use_cache: bool,
                            fetch: Callable[[], Awaitable[Any]]) -> Any:
        """Serve from cache when allowed, otherwise fetch and (for cacheable data) write back."""
        if use_cache:
            cached = self.cache_service.get(kind, league_id, season)
            if cached is not None:
                return cached

        data = await fetch()
        if use_cache and data is not None:
            self.cache_service.set(kind, league_id, season, data)
        return data

    async def get_league(self, league_id: str, season: Optional[str], current_season: str) -> Optional[League]:
        use_cache = is_past_season(season, current_season)
        data = await self._read_through(
            "league", league_id, season, use_cache,
            lambda: self.sleeper_service.get_league(league_id)
        )
        if not data:
            return None
        try:
            return League.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Malformed league payload for {league_id}: {e}")
            return None

    async def get_users(self, league_id: str, season: Optional[str], current_season: str) -> Optional[List[LeagueUser]]:
        use_cache = is_past_season(season, current_season)
        data = await self._read_through(
            "users", league_id, season, use_cache,
            lambda: self.sleeper_service.get_league_users(league_id)
        )
        if data is None:
            return None
        return _parse_list(LeagueUser, data, "user")

    async def get_rosters(self, league_id: str, season: Optional[str], current_season: str) -> Optional[List[Roster]]:
        use_cache = is_past_season(season, current_season)
        data = await self._read_through(
            "rosters", league_id, season, use_cache,
            lambda: self.sleeper_service.get_league_rosters(league_id)
        )
        if data is None:
            return None
        return _parse_list(Roster, data, "roster")

    async def get_transactions(self, league_id: str, season: Optional[str], current_season: str) -> List[Transaction]:
        use_cache = is_past_season(season, current_season)
        data = await self._read_through(
            "transactions", league_id, season, use_cache,
            lambda: self.sleeper_service.get_transactions(league_id)
        )
        return _parse_list(Transaction, data, "transaction")

    async def get_drafts(self, league_id: str, season: Optional[str], current_season: str) -> List[Draft]:
        use_cache = is_past_season(season, current_season)
        data = await self._read_through(
            "drafts", league_id, season, use_cache,
            lambda: self.sleeper_service.get_league_drafts(league_id)
        )
        if data is None:
            logger.warning(f"Could not fetch drafts for league {league_id} season {season}")
        return _parse_list(Draft, data, "draft")

    async def get_draft_picks(self, draft_id: str, season: Optional[str], current_season: str) -> List[DraftPickRecord]:
        use_cache = is_past_season(season, current_season)
        data = await self._read_through(
            "draft_picks", draft_id, season, use_cache,
            lambda: self.sleeper_service.get_draft_picks(draft_id)
        )
        if data is None:
            logger.warning(f"Could not fetch picks for draft {draft_id}")
        return _parse_list(DraftPickRecord, data, "draft pick")

    def _should_skip_matchups(self, season: str, nfl_state: NflState) -> bool:
        if is_future_season(season, nfl_state.season):
            logger.info(f"Season {season} is in the future, no matchups to fetch")
            return True
        if season == nfl_state.season and nfl_state.season_type not in ACTIVE_SEASON_TYPES:
            logger.info(f"Season {season} has not started (season_type={nfl_state.season_type}), no matchups to fetch")
            return True
        return False

    def _week_batches(self) -> List[List[int]]:
        weeks = list(range(1, self.max_week + 1))
        return [weeks[i:i + self.batch_size] for i in range(0, len(weeks), self.batch_size)]

    async def fetch_matchups(self, league_id: str) -> List[Dict]:
        """
        Fetch matchups for every week, one request at a time in week order.

        Weeks are grouped into sequential batches to bound the request burst.
        A week with no data or a failed request contributes nothing. Each
        record is tagged with its week.

        Returns:
            List[Dict]: Week-tagged matchup records
        """
        all_matchups: List[Dict] = []
        for batch in self._week_batches():
            for week in batch:
                try:
                    week_matchups = await self.sleeper_service.get_matchups(league_id, week)
                except Exception as e:
                    logger.warning(f"Error fetching matchups for league {league_id}, week {week}: {e}")
                    continue
                if not week_matchups:
                    continue
                for matchup in week_matchups:
                    matchup["week"] = week
                all_matchups.extend(week_matchups)
            logger.debug(f"Fetched matchup weeks {batch[0]}-{batch[-1]} for league {league_id}: {len(all_matchups)} records so far")

        logger.info(f"Retrieved {len(all_matchups)} matchup records for league {league_id}")
        return all_matchups

    async def get_matchups(self, league_id: str, season: str, nfl_state: NflState) -> List[Matchup]:
        if self._should_skip_matchups(season, nfl_state):
            return []

        use_cache = is_past_season(season, nfl_state.season)
        data = await self._read_through(
            "matchups", league_id, season, use_cache,
            lambda: self.fetch_matchups(league_id)
        )
        return _parse_list(Matchup, data, "matchup")

    async def load_season_data(self, league_id: str, season: str, nfl_state: NflState) -> SeasonData:
        """
        Load league, users, rosters and matchups for one league season.

        League, users and rosters are fetched in that order. Matchups may
        come back empty without failing the load.

        Args:
            league_id: Sleeper league ID for the season
            season: Season year being loaded
            nfl_state: Current NFL state

        Returns:
            SeasonData: Reconciled season data

        Raises:
            LeagueDataUnavailableError: League, users or rosters could not be loaded
        """
        current_season = nfl_state.season
        logger.info(f"Loading season {season} for league {league_id} (current NFL season {current_season})")

        league = await self.get_league(league_id, season, current_season)
        if league is None:
            raise LeagueDataUnavailableError(league_id, "league")

        users = await self.get_users(league_id, season, current_season)
        if users is None:
            raise LeagueDataUnavailableError(league_id, "users")

        rosters = await self.get_rosters(league_id, season, current_season)
        if rosters is None:
            raise LeagueDataUnavailableError(league_id, "rosters")

        matchups = await self.get_matchups(league_id, season, nfl_state)
        if not matchups:
            logger.info(f"No matchups available for league {league_id}, season {season}")

        return SeasonData(league=league, users=users, rosters=rosters, matchups=matchups)
