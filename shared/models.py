from enum import Enum
from typing import Any, List
from typing import Dict
from typing import Optional
from pydantic import Field
from pydantic import BaseModel
from pydantic import field_validator

# ===== Sleeper Payload Models =====

class SleeperModel(BaseModel):
    """Base for Sleeper payloads; unknown fields are kept as-is."""
    model_config = {"extra": "allow", "populate_by_name": True}


class LeagueSettings(SleeperModel):
    """Subset of league settings the dashboard reads."""
    playoff_week_start: Optional[int] = Field(None, description="First playoff week")
    num_teams: Optional[int] = Field(None, description="Number of teams in the league")


class League(SleeperModel):
    """One season of a Sleeper league."""
    league_id: str = Field(..., description="Sleeper league ID")
    name: Optional[str] = Field(None, description="League name")
    season: Optional[str] = Field(None, description="Season year (e.g., '2024')")
    season_type: Optional[str] = Field(None, description="Season type (pre, regular, post, off)")
    status: Optional[str] = Field(None, description="League status (pre_draft, drafting, in_season, complete)")
    previous_league_id: Optional[str] = Field(None, description="League ID of the prior season")
    settings: LeagueSettings = Field(default_factory=LeagueSettings, description="League settings")

    @field_validator("league_id", "season", mode="before")
    @classmethod
    def _as_str(cls, value):
        return None if value is None else str(value)

    @field_validator("previous_league_id", mode="before")
    @classmethod
    def _no_history(cls, value):
        # Sleeper sends "0" or null for leagues without history
        if value in (None, "", "0", 0):
            return None
        return str(value)


class LeagueUser(SleeperModel):
    """League member."""
    user_id: str = Field(..., description="Sleeper user ID")
    display_name: Optional[str] = Field(None, description="Display name")
    avatar: Optional[str] = Field(None, description="Avatar ID")


class RosterSettings(SleeperModel):
    """Season record stored on a roster."""
    wins: int = Field(0, description="Wins")
    losses: int = Field(0, description="Losses")
    ties: int = Field(0, description="Ties")
    fpts: float = Field(0, description="Points for")
    fpts_against: float = Field(0, description="Points against")
    rank: int = Field(0, description="League rank")

    @field_validator("wins", "losses", "ties", "fpts", "fpts_against", "rank", mode="before")
    @classmethod
    def _none_is_zero(cls, value):
        return 0 if value is None else value


class Roster(SleeperModel):
    """One manager's team within a league season."""
    roster_id: int = Field(..., description="Roster ID, unique within a league")
    owner_id: Optional[str] = Field(None, description="Owner's Sleeper user ID")
    players: List[str] = Field(default_factory=list, description="Player IDs on the roster")
    starters: List[str] = Field(default_factory=list, description="Starter player IDs")
    settings: RosterSettings = Field(default_factory=RosterSettings, description="Season record")

    @field_validator("players", "starters", mode="before")
    @classmethod
    def _none_is_empty(cls, value):
        return value or []

    @field_validator("settings", mode="before")
    @classmethod
    def _none_is_default(cls, value):
        return value or {}


class Matchup(SleeperModel):
    """One roster's result for one week."""
    roster_id: int = Field(..., description="Roster ID")
    matchup_id: Optional[int] = Field(None, description="Shared by the rosters playing each other")
    week: Optional[int] = Field(None, description="Week number, tagged when fetched")
    points: Optional[float] = Field(None, description="Points scored")
    starters: List[str] = Field(default_factory=list, description="Starters that week")
    players_points: Dict[str, float] = Field(default_factory=dict, description="Points per player")
    owner_id: Optional[str] = Field(None, description="Owner user ID when present")

    @field_validator("starters", mode="before")
    @classmethod
    def _starters_default(cls, value):
        return value if value is not None else []

    @field_validator("players_points", mode="before")
    @classmethod
    def _players_points_default(cls, value):
        return value if value is not None else {}


class TransactionType(str, Enum):
    """Transaction variants handled by the narrative engine."""
    TRADE = "trade"
    WAIVER = "waiver"
    FREE_AGENT = "free_agent"
    COMMISSIONER = "commissioner"
    DRAFT = "draft"
    OTHER = "other"

    @classmethod
    def from_raw(cls, raw: Optional[str]) -> "TransactionType":
        try:
            return cls(raw)
        except ValueError:
            return cls.OTHER


class DraftPickRef(SleeperModel):
    """A draft pick moved by a transaction."""
    season: Optional[str] = Field(None, description="Year the pick belongs to")
    round: Optional[int] = Field(None, description="Draft round")
    pick: Optional[int] = Field(None, description="Overall pick number, unknown for future picks")
    roster_id: Optional[int] = Field(None, description="Roster the pick originally belonged to")
    owner_id: Optional[int] = Field(None, description="Roster that owns the pick after the transaction")
    previous_owner_id: Optional[int] = Field(None, description="Roster that owned the pick before the transaction")
    original_owner_id: Optional[int] = Field(None, description="Explicit original owner, when present")

    @property
    def original_roster_id(self) -> Optional[int]:
        return self.original_owner_id or self.roster_id

    @property
    def current_roster_id(self) -> Optional[int]:
        return self.owner_id or self.roster_id

    @field_validator("season", mode="before")
    @classmethod
    def _season_str(cls, value):
        return None if value is None else str(value)


class Transaction(SleeperModel):
    """Sleeper transaction record."""
    transaction_id: Optional[str] = Field(None, description="Transaction ID")
    type: Optional[str] = Field(None, description="Raw transaction type")
    status: Optional[str] = Field(None, description="complete, failed, pending")
    status_updated: Optional[int] = Field(None, description="Epoch millis of last status change")
    leg: Optional[int] = Field(None, description="Week the transaction happened in")
    adds: Dict[str, int] = Field(default_factory=dict, description="player_id -> destination roster_id")
    drops: Dict[str, int] = Field(default_factory=dict, description="player_id -> source roster_id")
    roster_ids: List[int] = Field(default_factory=list, description="Rosters involved")
    draft_picks: List[DraftPickRef] = Field(default_factory=list, description="Draft picks moved")
    settings: Dict[str, Any] = Field(default_factory=dict, description="waiver_bid, waiver_priority, ...")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Draft round/pick, notes, ...")

    @field_validator("adds", "drops", "settings", "metadata", mode="before")
    @classmethod
    def _none_is_empty_dict(cls, value):
        return value if value is not None else {}

    @field_validator("roster_ids", "draft_picks", mode="before")
    @classmethod
    def _none_is_empty_list(cls, value):
        return value if value is not None else []

    @property
    def kind(self) -> TransactionType:
        return TransactionType.from_raw(self.type)

    def involves_player(self, player_id: str) -> bool:
        return player_id in self.adds or player_id in self.drops


class Draft(SleeperModel):
    """League draft metadata."""
    draft_id: str = Field(..., description="Sleeper draft ID")
    season: Optional[str] = Field(None, description="Draft season")
    type: Optional[str] = Field(None, description="snake, linear, auction")
    status: Optional[str] = Field(None, description="Draft status")

    @field_validator("draft_id", "season", mode="before")
    @classmethod
    def _as_str(cls, value):
        return None if value is None else str(value)


class DraftPickRecord(SleeperModel):
    """A completed selection inside a draft."""
    draft_id: Optional[str] = Field(None, description="Sleeper draft ID")
    pick_no: Optional[int] = Field(None, description="Overall pick number")
    round: Optional[int] = Field(None, description="Round the pick was made in")
    draft_slot: Optional[int] = Field(None, description="Slot within the round")
    player_id: Optional[str] = Field(None, description="Selected player ID")
    roster_id: Optional[int] = Field(None, description="Roster that made the pick")

    @field_validator("draft_id", "player_id", mode="before")
    @classmethod
    def _as_str(cls, value):
        return None if value is None else str(value)


class Player(SleeperModel):
    """Entry of the global NFL player directory."""
    player_id: Optional[str] = Field(None, description="Sleeper player ID")
    first_name: Optional[str] = Field(None, description="First name")
    last_name: Optional[str] = Field(None, description="Last name")
    position: Optional[str] = Field(None, description="Position")
    team: Optional[str] = Field(None, description="NFL team abbreviation")

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class NflState(SleeperModel):
    """Current NFL calendar state."""
    season: str = Field(..., description="Current NFL season")
    week: Optional[int] = Field(None, description="Current week")
    season_type: Optional[str] = Field(None, description="pre, regular, post, off")

    @field_validator("season", mode="before")
    @classmethod
    def _season_str(cls, value):
        return str(value)

    @property
    def season_year(self) -> int:
        return int(self.season)


# ===== Derived Models =====

class SeasonData(BaseModel):
    """Reconciled data for one league season."""
    league: League = Field(..., description="League metadata")
    users: List[LeagueUser] = Field(default_factory=list, description="League members")
    rosters: List[Roster] = Field(default_factory=list, description="League rosters")
    matchups: List[Matchup] = Field(default_factory=list, description="Week-tagged matchups")


class PlayerTransactionEvent(BaseModel):
    """One narrated transaction in a player's history."""
    transaction_id: Optional[str] = Field(None, description="Transaction ID")
    type: Optional[str] = Field(None, description="Raw transaction type")
    type_display: str = Field(..., description="Human readable transaction type")
    timestamp: Optional[int] = Field(None, description="status_updated epoch millis")
    date: str = Field(..., description="Formatted date or 'Unknown Date'")
    season: str = Field(..., description="Season the transaction was found in")
    league_id: str = Field(..., description="League the transaction was found in")
    from_team: str = Field("", description="Where the player came from")
    to_team: str = Field("", description="Where the player went")
    description: str = Field(..., description="Narrative sentence")
    raw_transaction: Transaction = Field(..., description="Source transaction")


class StandingsRow(BaseModel):
    """League standings entry."""
    roster_id: int = Field(..., description="Roster ID")
    team_name: str = Field(..., description="Owner display name or 'Team <id>'")
    avatar: Optional[str] = Field(None, description="Owner avatar ID")
    wins: int = Field(0, description="Wins")
    losses: int = Field(0, description="Losses")
    ties: int = Field(0, description="Ties")
    points_for: float = Field(0, description="Points for")
    points_against: float = Field(0, description="Points against")
    rank: int = Field(0, description="Rank reported by Sleeper")


class TrendingTeam(BaseModel):
    """Recent scoring trend for one roster."""
    roster_id: int = Field(..., description="Roster ID")
    team_name: str = Field(..., description="Owner display name or 'Team <id>'")
    avatar: Optional[str] = Field(None, description="Owner avatar ID")
    weekly_points: Dict[int, float] = Field(default_factory=dict, description="Points by week")
    most_recent_week: int = Field(..., description="Latest week considered")
    previous_weeks_avg: float = Field(0, description="Mean of the other considered weeks")
    trend: float = Field(0, description="Latest points minus previous average")


class TeamStats(BaseModel):
    """Season summary for one roster."""
    roster_id: int = Field(..., description="Roster ID")
    team_name: str = Field(..., description="Owner display name or 'Team <id>'")
    playoff_week_start: int = Field(..., description="First playoff week")
    overall_win_rate: float = Field(0, description="Win rate over all weeks (0-100)")
    regular_season_win_rate: float = Field(0, description="Win rate before the playoffs (0-100)")
    playoff_win_rate: float = Field(0, description="Win rate in the playoffs (0-100)")
    avg_points_overall: float = Field(0, description="Average points over all weeks")
    avg_points_regular: float = Field(0, description="Average points before the playoffs")
    avg_points_playoff: float = Field(0, description="Average points in the playoffs")
    highest_score: float = Field(0, description="Best weekly score")
    lowest_score: float = Field(0, description="Worst weekly score")
    games_played: int = Field(0, description="Weeks with a matchup record")


class ScorecardTeam(BaseModel):
    """One side of a weekly matchup."""
    roster_id: int = Field(..., description="Roster ID")
    team_name: str = Field(..., description="Owner display name or 'Team <id>'")
    avatar: Optional[str] = Field(None, description="Owner avatar ID")
    points: float = Field(0, description="Points scored")


class WeeklyMatchupPair(BaseModel):
    """Rosters sharing a matchup ID in one week."""
    week: int = Field(..., description="Week number")
    matchup_id: Optional[int] = Field(None, description="Matchup ID (None for byes)")
    teams: List[ScorecardTeam] = Field(default_factory=list, description="Teams in the matchup")


class RosterPlayer(BaseModel):
    """Player entry of a split roster."""
    player_id: str = Field(..., description="Sleeper player ID")
    name: str = Field(..., description="Player name")
    position: Optional[str] = Field(None, description="Position")
    team: Optional[str] = Field(None, description="NFL team abbreviation")
    is_starter: bool = Field(..., description="Whether the player is in the starting lineup")


class RosterSplit(BaseModel):
    """Roster split into starters and bench."""
    starters: List[RosterPlayer] = Field(default_factory=list, description="Starting lineup")
    bench: List[RosterPlayer] = Field(default_factory=list, description="Bench players")
