"""Lock transitions: kickoff sweeps, admin locks and administrative undo."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from .exceptions import LockConflictError
from .locks import KeyedLocks, week_key
from .models import Pick, PickKey
from .schedule import ScheduleBook, as_utc
from .schemas import LeagueRules
from .store import LeagueStore
from .usage import UsageTracker

logger = logging.getLogger('threeman.locking')


@dataclass
class LockResult:
    """Outcome of a lock sweep."""
    locked: list[Pick] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class PickLocker:
    """
    Moves picks from unlocked to locked and records usage.

    Every transition holds the (league, season, week) token that backfill
    also takes, so scores are never rewritten while picks are locking.
    """

    def __init__(
        self,
        store: LeagueStore,
        usage: UsageTracker,
        schedule: ScheduleBook,
        guards: Optional[KeyedLocks] = None,
        rules: Optional[LeagueRules] = None,
    ):
        self.store = store
        self.usage = usage
        self.schedule = schedule
        self.guards = guards or KeyedLocks()
        self.rules = rules or LeagueRules()

    def lock_due_picks(self, league: str, season: int, week: int, now: datetime) -> LockResult:
        """
        Lock every unlocked pick whose game kicks off within the lock lead.

        Safe to re-run: already-locked picks and recorded usage are skipped.
        """
        now = as_utc(now)
        lead = timedelta(minutes=self.rules.lock_lead_minutes)
        deadline = self.rules.week_deadlines.get(week)
        if deadline is not None:
            deadline = as_utc(deadline)
        result = LockResult()

        with self.guards.hold(week_key(league, season, week)):
            for pick in self.store.picks_for_week(league, season, week):
                if pick.locked:
                    continue
                game = self.schedule.get_game(pick.game_id)
                due = deadline is not None and now >= deadline
                if game is not None:
                    due = due or now >= as_utc(game.kickoff) - lead
                if not due:
                    continue
                if self._lock_one(pick, result):
                    result.locked.append(pick.lock())

        if result.locked:
            logger.info(f'Locked {len(result.locked)} picks for {league} week {week}')
        for warning in result.warnings:
            logger.warning(warning)
        return result

    def admin_lock(self, key: PickKey) -> Pick:
        """Lock a single pick immediately, regardless of kickoff."""
        with self.guards.hold(week_key(key.league, key.season, key.week)):
            pick = self.store.get_pick(key)
            if pick is None:
                raise KeyError(f'No pick at {key}')
            if pick.locked:
                return pick
            result = LockResult()
            if not self._lock_one(pick, result):
                raise LockConflictError(f'Pick {key} changed while locking')
            for warning in result.warnings:
                logger.warning(warning)
            logger.info(f'Admin locked {key.member} {key.position.value} in week {key.week}')
            return pick.lock()

    def undo_lock(self, key: PickKey) -> Pick:
        """
        Revert a locked pick to unlocked and drop its usage entry.

        Both changes happen under the week token; if the pick cannot be
        reverted the usage entry is left alone.
        """
        with self.guards.hold(week_key(key.league, key.season, key.week)):
            pick = self.store.get_pick(key)
            if pick is None:
                raise KeyError(f'No pick at {key}')
            if not pick.locked:
                return pick
            if not self.store.compare_and_set_pick(pick, pick.unlock()):
                raise LockConflictError(f'Pick {key} changed while unlocking')
            if self.usage.first_used_week(
                key.season, key.league, key.member, key.position, pick.player_id
            ) == key.week:
                self.usage.undo_usage(key.season, key.league, key.member, key.position, pick.player_id)
            logger.info(f'Undid lock of {key.member} {key.position.value} in week {key.week}')
            return pick.unlock()

    def _lock_one(self, pick: Pick, result: LockResult) -> bool:
        if not self.store.compare_and_set_pick(pick, pick.lock()):
            result.warnings.append(f'{pick.key}: pick changed during lock sweep, skipped')
            return False

        first_week = self.usage.first_used_week(
            pick.season, pick.league, pick.member, pick.position, pick.player_id
        )
        if first_week is not None and first_week != pick.week:
            result.warnings.append(
                f'{pick.member}: {pick.player_id} at {pick.position.value} already used in week {first_week}'
            )
        self.usage.record_usage(
            pick.season, pick.league, pick.member, pick.position, pick.player_id, pick.week
        )
        return True
