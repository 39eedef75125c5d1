"""
Process-wide snapshot of global Sleeper data.

The NFL player directory and the NFL state are loaded once at startup and
handed to the services that need them. Nothing mutates them afterwards.
"""

import logging
from datetime import datetime
from typing import Dict

from pydantic import BaseModel, Field, ValidationError

from backend.services.player_cache_service import PlayerCacheService
from backend.services.sleeper_service import SleeperService
from shared.models import NflState, Player

logger = logging.getLogger(__name__)


class ProcessSnapshot(BaseModel):
    """Read-only global data shared by every request."""
    model_config = {"frozen": True}

    nfl_state: NflState = Field(..., description="Current NFL state")
    players: Dict[str, Player] = Field(default_factory=dict, description="Player directory by player ID")


def parse_players(raw_players: Dict[str, Dict]) -> Dict[str, Player]:
    players = {}
    for player_id, data in raw_players.items():
        try:
            players[player_id] = Player.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Skipping malformed player {player_id}: {e}")
    return players


async def load_snapshot(sleeper_service: SleeperService, player_cache_service: PlayerCacheService) -> ProcessSnapshot:
    """
    Load the NFL state and player directory.

    When the NFL state cannot be fetched the calendar year stands in as the
    current season so the dashboard can still resolve history.
    """
    state_data = await sleeper_service.get_nfl_state()
    if state_data and state_data.get("season"):
        nfl_state = NflState.model_validate(state_data)
    else:
        fallback_season = str(datetime.now().year)
        logger.warning(f"NFL state unavailable, assuming season {fallback_season}")
        nfl_state = NflState(season=fallback_season, season_type="regular")

    players = parse_players(await player_cache_service.get_players())
    logger.info(f"Snapshot loaded: season={nfl_state.season}, season_type={nfl_state.season_type}, "
                f"{len(players)} players")
    return ProcessSnapshot(nfl_state=nfl_state, players=players)
