"""Season-long player usage for the no-repeat rule."""

import logging
from typing import Optional

from .constants import PICK_POSITIONS, Position
from .store import LeagueStore

logger = logging.getLogger('threeman.usage')


class UsageTracker:
    """
    Per (season, league, member, position) record of players already started.

    Entries are written when a pick locks and only removed by an
    administrative undo-lock, which must revert the pick in the same
    operation (see ``locking.PickLocker.undo_lock``).
    """

    def __init__(self, store: LeagueStore):
        self.store = store

    def record_usage(
        self,
        season: int,
        league: str,
        member: str,
        position: Position,
        player_id: str,
        week: int,
    ) -> bool:
        """
        Record that a member started a player at a position.

        Recording the same entry twice is a no-op so retried lock
        operations are safe.

        Returns:
            True if a new entry was written
        """
        added = self.store.add_usage(season, league, member, position, player_id, week)
        if added:
            logger.debug(f'{league}/{member}: {player_id} used at {position.value} in week {week}')
        return added

    def has_used(
        self,
        season: int,
        league: str,
        member: str,
        position: Position,
        player_id: str,
        exclude_week: Optional[int] = None,
    ) -> bool:
        """Whether the player is already used at this position (optionally ignoring one week)."""
        first_week = self.first_used_week(season, league, member, position, player_id)
        if first_week is None:
            return False
        return exclude_week is None or first_week != exclude_week

    def has_used_anywhere(
        self,
        season: int,
        league: str,
        member: str,
        player_id: str,
        exclude_week: Optional[int] = None,
    ) -> bool:
        """Like has_used, across every pick position."""
        return any(
            self.has_used(season, league, member, pos, player_id, exclude_week)
            for pos in PICK_POSITIONS
        )

    def first_used_week(
        self, season: int, league: str, member: str, position: Position, player_id: str
    ) -> Optional[int]:
        return self.store.get_usage(season, league, member, position).get(player_id)

    def used_players(self, season: int, league: str, member: str, position: Position) -> set[str]:
        return set(self.store.get_usage(season, league, member, position))

    def undo_usage(
        self, season: int, league: str, member: str, position: Position, player_id: str
    ) -> bool:
        """Administrative removal. Callers must revert the matching pick too."""
        removed = self.store.remove_usage(season, league, member, position, player_id)
        if removed:
            logger.info(f'{league}/{member}: usage of {player_id} at {position.value} undone')
        return removed
