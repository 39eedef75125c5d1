"""
Player transaction history across a league's seasons.

Given a player and the season -> league_id map, collects every transaction
that moved the player, removes duplicates across aliased seasons, and turns
each one into a readable sentence ("Traded from A to B", "Claimed off waivers
by C for $12 FAAB", ...). Draft picks traded alongside the player are
resolved to the drafted player when the draft has already happened.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set, Tuple

from pydantic import BaseModel, Field

from backend.services.season_data_service import SeasonDataReconciler
from shared.models import (
    Draft, DraftPickRecord, DraftPickRef, LeagueUser, Player, PlayerTransactionEvent, Roster,
    Transaction, TransactionType
)

logger = logging.getLogger(__name__)

TYPE_DISPLAY_NAMES = {
    TransactionType.TRADE: "Trade",
    TransactionType.WAIVER: "Waiver Claim",
    TransactionType.FREE_AGENT: "Free Agent",
    TransactionType.COMMISSIONER: "Commissioner Action",
    TransactionType.DRAFT: "Draft",
}


def format_date(timestamp: Optional[int]) -> str:
    """Format an epoch-millis timestamp as 'Sep 7, 2024' (UTC)."""
    if not timestamp:
        return "Unknown Date"
    moment = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
    return f"{moment:%b} {moment.day}, {moment.year}"


def transaction_type_display(raw_type: Optional[str]) -> str:
    kind = TransactionType.from_raw(raw_type)
    if kind in TYPE_DISPLAY_NAMES:
        return TYPE_DISPLAY_NAMES[kind]
    return raw_type[:1].upper() + raw_type[1:] if raw_type else "Unknown"


def get_player_name(player: Optional[Player]) -> str:
    if player is None:
        return "Unknown Player"
    return player.full_name or "Unknown Player"


class DraftLookup(BaseModel):
    """Drafts by season and completed picks by draft ID."""
    drafts_by_season: Dict[str, List[Draft]] = Field(default_factory=dict, description="Drafts keyed by season")
    picks_by_draft: Dict[str, List[DraftPickRecord]] = Field(default_factory=dict, description="Picks keyed by draft ID")

    def find_pick(self, season: str, pick_no: int) -> Optional[DraftPickRecord]:
        """Selection with the given overall number in the season's first draft."""
        drafts = self.drafts_by_season.get(season)
        if not drafts:
            return None
        for record in self.picks_by_draft.get(drafts[0].draft_id, []):
            if record.pick_no is not None and record.pick_no == pick_no:
                return record
        return None


class NarrativeContext:
    """Name lookups for one season, used to narrate its transactions."""

    def __init__(self, rosters: Optional[List[Roster]], users: Optional[List[LeagueUser]],
                 players: Dict[str, Player], drafts: DraftLookup, current_year: int):
        self.rosters = rosters
        self.users = users
        self.players = players
        self.drafts = drafts
        self.current_year = current_year
        self._owner_by_roster = {r.roster_id: r.owner_id for r in rosters or []}
        self._name_by_user = {u.user_id: u.display_name for u in users or []}

    def player_name(self, player_id: str) -> str:
        player = self.players.get(player_id)
        if player is None:
            return f"Player {player_id}"
        return get_player_name(player)

    def manager_name(self, roster_id: Optional[int]) -> str:
        if self.rosters is None or self.users is None or not roster_id:
            return "Unknown Manager"
        if roster_id not in self._owner_by_roster:
            return f"Roster {roster_id}"
        return self._name_by_user.get(self._owner_by_roster[roster_id]) or f"Roster {roster_id}"

    def _ownership_clause(self, original_owner: str, current_owner: str) -> str:
        if original_owner != current_owner:
            return f" (orig. {original_owner} to {current_owner})"
        return f" (owned by {current_owner})"

    def format_draft_pick(self, pick: DraftPickRef) -> str:
        """
        Describe a traded pick.

        A pick from a draft that already happened is shown as the player it
        became, using the round recorded by the draft itself. Future picks,
        and picks the draft data cannot resolve, fall back to year/round/pick.
        """
        original_owner = self.manager_name(pick.original_roster_id) if pick.original_roster_id else "Unknown"
        current_owner = self.manager_name(pick.current_roster_id) if pick.current_roster_id else "Unknown"
        year = pick.season or "Unknown Year"
        round_label = pick.round or "?"
        ownership = self._ownership_clause(original_owner, current_owner)

        if pick.pick and year.isdigit() and int(year) < self.current_year:
            drafted = self.drafts.find_pick(year, pick.pick)
            if drafted is not None and drafted.player_id:
                actual_round = drafted.round or round_label
                drafted_name = self.player_name(drafted.player_id)
                return f"{drafted_name} ({year} Round {actual_round} Pick {drafted.draft_slot}){ownership}"

        pick_string = f"{year} Round {round_label}"
        if pick.pick:
            pick_string += f" Pick {pick.pick}"
        return pick_string + ownership

    def other_players(self, transaction: Transaction, player_id: str) -> List[str]:
        names = [self.player_name(pid) for pid in transaction.adds if pid != player_id]
        names.extend(
            self.player_name(pid) for pid in transaction.drops
            if pid != player_id and pid not in transaction.adds
        )
        return names

    # Each handler returns (from_team, to_team, base description)

    def _narrate_trade(self, transaction: Transaction, added_to: Optional[int],
                       dropped_from: Optional[int]) -> Tuple[str, str, str]:
        from_team, to_team, description = "", "", ""
        others = transaction.roster_ids if len(transaction.roster_ids) > 1 else []

        if added_to:
            to_team = self.manager_name(added_to)
            if dropped_from:
                from_team = self.manager_name(dropped_from)
                other_assets = len(transaction.adds) + len(transaction.drops) - 2
                description = f"Traded from {from_team} to {to_team}"
                if other_assets > 0:
                    description += f" along with {other_assets} other player(s)/pick(s)"
            else:
                source = next((rid for rid in others if rid != added_to), None)
                if source:
                    from_team = self.manager_name(source)
                    description = f"Acquired by {to_team} in a trade with {from_team}"
                else:
                    from_team = "Unknown"
                    description = f"Acquired by {to_team} via trade (source not explicitly recorded)"
        elif dropped_from:
            from_team = self.manager_name(dropped_from)
            destination = next((rid for rid in others if rid != dropped_from), None)
            if destination:
                to_team = self.manager_name(destination)
                description = f"Traded from {from_team} to {to_team}"
            else:
                to_team = "Unknown"
                description = f"Traded away by {from_team} (destination not explicitly recorded)"

        if description and transaction.draft_picks:
            description += f" (trade included {len(transaction.draft_picks)} draft pick(s))"
        return from_team, to_team, description

    def _narrate_waiver(self, transaction: Transaction, added_to: Optional[int],
                        dropped_from: Optional[int]) -> Tuple[str, str, str]:
        if added_to:
            to_team = self.manager_name(added_to)
            description = f"Claimed off waivers by {to_team}"
            if transaction.settings.get("waiver_bid") is not None:
                description += f" for ${transaction.settings['waiver_bid']} FAAB"
            if transaction.settings.get("waiver_priority") is not None:
                description += f" (waiver priority: {transaction.settings['waiver_priority']})"
            return "Waivers", to_team, description
        if dropped_from:
            from_team = self.manager_name(dropped_from)
            return from_team, "Waivers", f"Waived by {from_team}"
        return "", "", ""

    def _narrate_free_agent(self, transaction: Transaction, added_to: Optional[int],
                            dropped_from: Optional[int]) -> Tuple[str, str, str]:
        if added_to:
            to_team = self.manager_name(added_to)
            description = f"Signed as free agent by {to_team}"
            if transaction.drops:
                description += f" ({len(transaction.drops)} player(s) dropped)"
            return "Free Agency", to_team, description
        if dropped_from:
            from_team = self.manager_name(dropped_from)
            return from_team, "Free Agency", f"Released to free agency by {from_team}"
        return "", "", ""

    def _narrate_commissioner(self, transaction: Transaction, added_to: Optional[int],
                              dropped_from: Optional[int]) -> Tuple[str, str, str]:
        if added_to:
            to_team = self.manager_name(added_to)
            return "Commissioner", to_team, f"Added to {to_team} by commissioner action"
        if dropped_from:
            from_team = self.manager_name(dropped_from)
            return from_team, "Commissioner", f"Removed from {from_team} by commissioner action"
        return "", "", ""

    def _narrate_draft(self, transaction: Transaction, added_to: Optional[int],
                       dropped_from: Optional[int]) -> Tuple[str, str, str]:
        if not added_to:
            return "", "", ""
        to_team = self.manager_name(added_to)
        pick = transaction.metadata.get("pick")
        if pick:
            round_label = transaction.metadata.get("round") or "?"
            return "Draft", to_team, f"Drafted by {to_team} (Round {round_label}, Pick {pick})"
        return "Draft", to_team, f"Drafted by {to_team}"

    def _narrate_other(self, transaction: Transaction, added_to: Optional[int],
                       dropped_from: Optional[int]) -> Tuple[str, str, str]:
        return "", "", f"Involved in a {transaction.type or 'unknown'} transaction"

    def _handler_for(self, kind: TransactionType) -> Callable[..., Tuple[str, str, str]]:
        handlers = {
            TransactionType.TRADE: self._narrate_trade,
            TransactionType.WAIVER: self._narrate_waiver,
            TransactionType.FREE_AGENT: self._narrate_free_agent,
            TransactionType.COMMISSIONER: self._narrate_commissioner,
            TransactionType.DRAFT: self._narrate_draft,
        }
        return handlers.get(kind, self._narrate_other)

    def narrate(self, transaction: Transaction, player_id: str) -> Tuple[str, str, str]:
        """
        Build (from_team, to_team, description) for one transaction.

        The description ends with the other players and draft picks involved,
        e.g. "Traded from A to B. Other players: X. Draft picks: 2023 Round 1 (owned by A)."
        """
        added_to = transaction.adds.get(player_id)
        dropped_from = transaction.drops.get(player_id)
        handler = self._handler_for(transaction.kind)
        from_team, to_team, description = handler(transaction, added_to, dropped_from)

        additional_info = []
        other_players = self.other_players(transaction, player_id)
        if other_players:
            additional_info.append(f"Other players: {', '.join(other_players)}")
        if transaction.draft_picks:
            picks = [self.format_draft_pick(pick) for pick in transaction.draft_picks]
            additional_info.append(f"Draft picks: {'; '.join(picks)}")

        if additional_info:
            description = f"{description}. {'. '.join(additional_info)}."
        return from_team, to_team, description


class TransactionHistoryService:
    """Builds a player's narrated transaction history across seasons."""

    def __init__(self, reconciler: SeasonDataReconciler, current_season: str):
        self.reconciler = reconciler
        self.current_season = current_season

    async def load_draft_lookup(self, season_league_map: Dict[str, str], current_year: int) -> DraftLookup:
        """
        Load drafts and their picks for every season before `current_year`.

        Drafts are filed under their own season when they report one, so a
        season aliased to another league's ID does not pick up that league's
        draft. Fetch failures leave the lookup partially filled.
        """
        lookup = DraftLookup()
        seen_drafts: Set[str] = set()

        for season in sorted(season_league_map, key=int):
            if int(season) >= current_year:
                continue
            league_id = season_league_map[season]
            try:
                drafts = await self.reconciler.get_drafts(league_id, season, self.current_season)
            except Exception as e:
                logger.warning(f"Could not fetch drafts for league {league_id} season {season}: {e}")
                continue

            for draft in drafts:
                if draft.draft_id in seen_drafts:
                    continue
                seen_drafts.add(draft.draft_id)
                draft_season = draft.season or season
                lookup.drafts_by_season.setdefault(draft_season, []).append(draft)
                try:
                    picks = await self.reconciler.get_draft_picks(draft.draft_id, draft_season, self.current_season)
                except Exception as e:
                    logger.warning(f"Could not fetch picks for draft {draft.draft_id}: {e}")
                    picks = []
                lookup.picks_by_draft[draft.draft_id] = picks

        logger.info(f"Loaded {len(seen_drafts)} drafts across {len(lookup.drafts_by_season)} seasons")
        return lookup

    async def build_player_history(self, player_id: str, season_league_map: Dict[str, str],
                                   players: Dict[str, Player],
                                   current_year: Optional[int] = None) -> List[PlayerTransactionEvent]:
        """
        Collect and narrate every transaction that moved a player.

        Args:
            player_id: Sleeper player ID
            season_league_map: Season year -> league ID
            players: Global player directory
            current_year: Year separating past drafts from future picks (default: this year)

        Returns:
            List[PlayerTransactionEvent]: Events sorted oldest first
        """
        current_year = current_year or datetime.now().year
        player_label = get_player_name(players.get(player_id))
        logger.info(f"Building transaction history for player {player_id} ({player_label})")

        drafts = await self.load_draft_lookup(season_league_map, current_year)
        events: List[PlayerTransactionEvent] = []
        seen_transaction_ids: Set[str] = set()

        for season in sorted(season_league_map, key=int):
            league_id = season_league_map[season]
            try:
                rosters = await self.reconciler.get_rosters(league_id, season, self.current_season)
                users = await self.reconciler.get_users(league_id, season, self.current_season)
                if rosters is None or users is None:
                    logger.warning(f"Skipping season {season}: rosters or users unavailable for league {league_id}")
                    continue
                transactions = await self.reconciler.get_transactions(league_id, season, self.current_season)
            except Exception as e:
                logger.warning(f"Skipping season {season} for league {league_id}: {e}")
                continue

            context = NarrativeContext(rosters, users, players, drafts, current_year)
            player_transactions = [t for t in transactions if t.involves_player(player_id)]
            logger.info(f"Found {len(player_transactions)} transactions involving player {player_id} in {season}")

            for transaction in player_transactions:
                if transaction.transaction_id:
                    if transaction.transaction_id in seen_transaction_ids:
                        logger.debug(f"Skipping duplicate transaction {transaction.transaction_id}")
                        continue
                    seen_transaction_ids.add(transaction.transaction_id)

                try:
                    from_team, to_team, description = context.narrate(transaction, player_id)
                except Exception as e:
                    logger.warning(f"Could not narrate transaction {transaction.transaction_id}: {e}")
                    continue

                events.append(PlayerTransactionEvent(
                    transaction_id=transaction.transaction_id,
                    type=transaction.type,
                    type_display=transaction_type_display(transaction.type),
                    timestamp=transaction.status_updated,
                    date=format_date(transaction.status_updated),
                    season=season,
                    league_id=league_id,
                    from_team=from_team,
                    to_team=to_team,
                    description=description,
                    raw_transaction=transaction
                ))

        events.sort(key=lambda event: event.timestamp or 0)
        logger.info(f"Total transactions found for player {player_id}: {len(events)}")
        return events
