"""
FastAPI request/response models for the Dynasty League History API.
"""

from typing import List, Dict, Any, Optional
from pydantic import BaseModel, Field
from shared.models import (
    League, LeagueUser, Roster, Matchup, StandingsRow, TrendingTeam, TeamStats, RosterSplit,
    WeeklyMatchupPair, PlayerTransactionEvent
)


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
    details: Dict[str, Any] = Field(default_factory=dict, description="Additional error details")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Service status")
    redis_connected: bool = Field(..., description="Redis connection status")
    nfl_season: Optional[str] = Field(None, description="Current NFL season from the startup snapshot")
    players_loaded: int = Field(0, description="Players in the startup snapshot")
    timestamp: str = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")


class SeasonMapResponse(BaseModel):
    """League history resolved to one league ID per season."""

    league_id: str = Field(..., description="Starting league ID")
    current_season: str = Field(..., description="Current NFL season")
    seasons: Dict[str, str] = Field(..., description="Season year -> league ID")
    available_seasons: List[str] = Field(..., description="Seasons, newest first")


class DashboardResponse(BaseModel):
    """Reconciled season data with standings and trends."""

    league_id: str = Field(..., description="Starting league ID")
    season: str = Field(..., description="Selected season")
    season_league_id: str = Field(..., description="League ID that holds the selected season")
    available_seasons: List[str] = Field(..., description="Seasons, newest first")
    league: League = Field(..., description="League metadata")
    users: List[LeagueUser] = Field(default_factory=list, description="League members")
    rosters: List[Roster] = Field(default_factory=list, description="League rosters")
    matchups: List[Matchup] = Field(default_factory=list, description="Week-tagged matchups")
    standings: List[StandingsRow] = Field(default_factory=list, description="Standings")
    trending_teams: List[TrendingTeam] = Field(default_factory=list, description="Recent scoring trends")
    available_weeks: List[int] = Field(default_factory=list, description="Weeks with matchup data")


class TeamDetailsResponse(BaseModel):
    """One roster's season summary and lineup."""

    league_id: str = Field(..., description="League ID that holds the season")
    season: str = Field(..., description="Selected season")
    roster_id: int = Field(..., description="Roster ID")
    team_name: str = Field(..., description="Owner display name or 'Team <id>'")
    avatar: Optional[str] = Field(None, description="Owner avatar ID")
    stats: TeamStats = Field(..., description="Win rates and scoring")
    roster: RosterSplit = Field(..., description="Starters and bench")


class ScorecardResponse(BaseModel):
    """Matchups for one week."""

    league_id: str = Field(..., description="League ID that holds the season")
    season: str = Field(..., description="Selected season")
    week: int = Field(..., description="Week number")
    available_weeks: List[int] = Field(default_factory=list, description="Weeks with matchup data")
    matchups: List[WeeklyMatchupPair] = Field(default_factory=list, description="Games in the week")


class PlayerHistoryResponse(BaseModel):
    """Narrated transaction history for one player."""

    league_id: str = Field(..., description="Starting league ID")
    player_id: str = Field(..., description="Sleeper player ID")
    player_name: str = Field(..., description="Player name")
    transactions: List[PlayerTransactionEvent] = Field(default_factory=list, description="Events, oldest first")
    total_count: int = Field(..., description="Number of events")


class CacheClearResponse(BaseModel):
    """Result of clearing a league's cached seasons."""

    league_id: str = Field(..., description="Starting league ID")
    league_ids: List[str] = Field(..., description="League IDs whose entries were cleared")
    keys_deleted: int = Field(..., description="Number of cache entries removed")
