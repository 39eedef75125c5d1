"""
League statistics computed from reconciled season data.

Everything here is pure: no I/O, and empty input yields zero-valued
defaults rather than errors.
"""

from typing import Dict, List, Optional, Tuple

from backend.config import settings
from shared.models import (
    League, LeagueUser, Matchup, Player, Roster, RosterPlayer, RosterSplit, ScorecardTeam,
    StandingsRow, TeamStats, TrendingTeam, WeeklyMatchupPair
)


def _users_by_id(users: Optional[List[LeagueUser]]) -> Dict[str, LeagueUser]:
    return {user.user_id: user for user in users or []}


def _team_identity(roster_id: int, owner_id: Optional[str],
                   users_by_id: Dict[str, LeagueUser]) -> Tuple[str, Optional[str]]:
    """(team name, avatar) for a roster, falling back to 'Team <id>'."""
    user = users_by_id.get(owner_id) if owner_id else None
    if user is None:
        return f"Team {roster_id}", None
    return user.display_name or f"Team {roster_id}", user.avatar


def _points(matchup: Matchup) -> float:
    return matchup.points or 0


def calculate_average_points(matchups: List[Matchup], roster_id: int) -> float:
    """Mean weekly points for a roster; 0 when it has no matchups."""
    team_matchups = [m for m in matchups or [] if m.roster_id == roster_id]
    if not team_matchups:
        return 0
    return sum(_points(m) for m in team_matchups) / len(team_matchups)


def calculate_win_rate(matchups: List[Matchup], roster_id: int) -> float:
    """
    Percentage (0-100) of a roster's games won.

    Games are matchup records sharing a week and matchup ID. A roster alone
    in its group (bye or missing data) has not played. When more than two
    rosters share a group, the first other roster is taken as the opponent.
    Ties count as games but not wins.
    """
    if not matchups:
        return 0

    groups: Dict[Tuple[Optional[int], Optional[int]], List[Matchup]] = {}
    for matchup in matchups:
        groups.setdefault((matchup.week, matchup.matchup_id), []).append(matchup)

    wins = 0
    total_games = 0
    for matchup in matchups:
        if matchup.roster_id != roster_id:
            continue
        group = groups[(matchup.week, matchup.matchup_id)]
        if len(group) < 2:
            continue
        opponent = next((m for m in group if m.roster_id != roster_id), None)
        if opponent is None:
            continue
        total_games += 1
        if _points(matchup) > _points(opponent):
            wins += 1

    return (wins / total_games) * 100 if total_games > 0 else 0


def get_standings(rosters: Optional[List[Roster]], users: Optional[List[LeagueUser]]) -> List[StandingsRow]:
    """Standings ordered by wins, then points for, both descending."""
    if rosters is None or users is None:
        return []

    users_by_id = _users_by_id(users)
    standings = []
    for roster in rosters:
        team_name, avatar = _team_identity(roster.roster_id, roster.owner_id, users_by_id)
        standings.append(StandingsRow(
            roster_id=roster.roster_id,
            team_name=team_name,
            avatar=avatar,
            wins=roster.settings.wins,
            losses=roster.settings.losses,
            ties=roster.settings.ties,
            points_for=roster.settings.fpts,
            points_against=roster.settings.fpts_against,
            rank=roster.settings.rank
        ))

    standings.sort(key=lambda row: (row.wins, row.points_for), reverse=True)
    return standings


def get_trending_teams(matchups: List[Matchup], users: Optional[List[LeagueUser]],
                       weeks_to_consider: Optional[int] = None,
                       rosters: Optional[List[Roster]] = None) -> List[TrendingTeam]:
    """
    Rank rosters by how their latest week compares to the weeks before it.

    Uses the most recent `weeks_to_consider` distinct weeks. For each roster,
    trend = latest week's points - mean of its points in the other considered
    weeks (only weeks where it has a record). Fewer than two weeks of data
    gives no trend at all.

    Args:
        matchups: Week-tagged matchups
        users: League members, used for team names
        weeks_to_consider: Number of recent weeks (default from settings)
        rosters: Optional rosters to resolve owners when matchups lack owner_id

    Returns:
        List[TrendingTeam]: Highest trend first
    """
    if not matchups or users is None:
        return []
    weeks_to_consider = weeks_to_consider or settings.TRENDING_WEEKS_TO_CONSIDER

    by_week: Dict[int, List[Matchup]] = {}
    for matchup in matchups:
        if matchup.week is not None:
            by_week.setdefault(matchup.week, []).append(matchup)

    weeks = sorted(by_week, reverse=True)[:weeks_to_consider]
    if len(weeks) < 2:
        return []

    users_by_id = _users_by_id(users)
    owners = {roster.roster_id: roster.owner_id for roster in rosters or []}
    weekly_points: Dict[int, Dict[int, float]] = {}
    identities: Dict[int, Tuple[str, Optional[str]]] = {}

    for week in weeks:
        for matchup in by_week[week]:
            if matchup.roster_id not in weekly_points:
                owner_id = matchup.owner_id or owners.get(matchup.roster_id)
                identities[matchup.roster_id] = _team_identity(matchup.roster_id, owner_id, users_by_id)
                weekly_points[matchup.roster_id] = {}
            weekly_points[matchup.roster_id][week] = _points(matchup)

    most_recent_week = weeks[0]
    teams = []
    for roster_id, points_by_week in weekly_points.items():
        previous = [points_by_week[week] for week in weeks[1:] if week in points_by_week]
        previous_avg = sum(previous) / len(previous) if previous else 0
        team_name, avatar = identities[roster_id]
        teams.append(TrendingTeam(
            roster_id=roster_id,
            team_name=team_name,
            avatar=avatar,
            weekly_points=points_by_week,
            most_recent_week=most_recent_week,
            previous_weeks_avg=previous_avg,
            trend=points_by_week.get(most_recent_week, 0) - previous_avg
        ))

    teams.sort(key=lambda team: team.trend, reverse=True)
    return teams


def get_team_stats(matchups: List[Matchup], roster: Roster, users: Optional[List[LeagueUser]],
                   league: Optional[League] = None) -> TeamStats:
    """
    Season summary for one roster, split at the league's first playoff week.

    Win rates are computed over every roster's matchups in the period so the
    opponent can be found; averages only use the roster's own records.
    """
    playoff_week_start = settings.DEFAULT_PLAYOFF_WEEK_START
    if league is not None and league.settings.playoff_week_start:
        playoff_week_start = league.settings.playoff_week_start

    def is_playoff(matchup: Matchup) -> bool:
        return matchup.week is not None and matchup.week >= playoff_week_start

    matchups = matchups or []
    regular = [m for m in matchups if not is_playoff(m)]
    playoff = [m for m in matchups if is_playoff(m)]
    team_matchups = [m for m in matchups if m.roster_id == roster.roster_id]
    scores = [_points(m) for m in team_matchups]
    team_name, _ = _team_identity(roster.roster_id, roster.owner_id, _users_by_id(users))

    return TeamStats(
        roster_id=roster.roster_id,
        team_name=team_name,
        playoff_week_start=playoff_week_start,
        overall_win_rate=calculate_win_rate(matchups, roster.roster_id),
        regular_season_win_rate=calculate_win_rate(regular, roster.roster_id),
        playoff_win_rate=calculate_win_rate(playoff, roster.roster_id),
        avg_points_overall=calculate_average_points(team_matchups, roster.roster_id),
        avg_points_regular=calculate_average_points(regular, roster.roster_id),
        avg_points_playoff=calculate_average_points(playoff, roster.roster_id),
        highest_score=max(scores) if scores else 0,
        lowest_score=min(scores) if scores else 0,
        games_played=len(team_matchups)
    )


def get_available_weeks(matchups: List[Matchup]) -> List[int]:
    return sorted({m.week for m in matchups or [] if m.week is not None})


def get_weekly_scorecard(matchups: List[Matchup], week: int, rosters: Optional[List[Roster]],
                         users: Optional[List[LeagueUser]]) -> List[WeeklyMatchupPair]:
    """Group one week's matchups into games, in order of first appearance."""
    users_by_id = _users_by_id(users)
    owners = {roster.roster_id: roster.owner_id for roster in rosters or []}

    grouped: Dict[Optional[int], List[ScorecardTeam]] = {}
    for matchup in matchups or []:
        if matchup.week != week:
            continue
        team_name, avatar = _team_identity(matchup.roster_id, owners.get(matchup.roster_id), users_by_id)
        grouped.setdefault(matchup.matchup_id, []).append(ScorecardTeam(
            roster_id=matchup.roster_id,
            team_name=team_name,
            avatar=avatar,
            points=_points(matchup)
        ))

    return [
        WeeklyMatchupPair(week=week, matchup_id=matchup_id, teams=teams)
        for matchup_id, teams in grouped.items()
    ]


def split_roster_by_role(roster: Roster, players: Dict[str, Player]) -> RosterSplit:
    """Starters in lineup order, then every other rostered player as bench."""

    def entry(player_id: str, is_starter: bool) -> RosterPlayer:
        player = players.get(player_id)
        if player is None:
            return RosterPlayer(player_id=player_id, name=f"Player {player_id}", is_starter=is_starter)
        return RosterPlayer(
            player_id=player_id,
            name=player.full_name or "Unknown Player",
            position=player.position,
            team=player.team,
            is_starter=is_starter
        )

    starters = set(roster.starters)
    return RosterSplit(
        starters=[entry(pid, True) for pid in roster.starters],
        bench=[entry(pid, False) for pid in roster.players if pid not in starters]
    )
