"""Backfill: re-derive a week's scores and standings after stat corrections.

State per (league, season, week)::

    PENDING -> IN_PROGRESS -> COMPLETED
                           -> FAILED

A run fails only when the week itself cannot be located. Errors scoring a
single member are recorded in the report and the run still completes.
Nothing is written until every member has been scored, and a failed run
writes nothing.
"""

import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from .config import get_backfill_workers
from .constants import ZERO, Position, week_id
from .exceptions import BackfillInProgressError, PerMemberBackfillError, SystemicBackfillFailure
from .locks import KeyedLocks, week_key
from .models import Pick, PlayerGameStatistics, SeasonStanding, WeeklyScore
from .normalizer import normalize_stats
from .schedule import ScheduleBook
from .schemas import LeagueRules
from .standings import recompute
from .store import LeagueStore
from .weekly import StatsProvider, compute_weekly_score, provider_lookup

logger = logging.getLogger('threeman.backfill')


class BackfillState(str, Enum):
    PENDING = 'pending'
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    FAILED = 'failed'


@dataclass(frozen=True)
class MemberChange:
    """A member whose weekly score moved."""
    member: str
    old_total: Optional[Decimal]
    new_total: Decimal

    @property
    def delta(self) -> Decimal:
        return self.new_total - (self.old_total or Decimal('0.00'))


@dataclass
class BackfillReport:
    """Status report for one backfill run."""
    league: str
    season: int
    week: int
    status: BackfillState = BackfillState.PENDING
    changes: list[MemberChange] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    withdrawn: list[str] = field(default_factory=list)
    errors: dict[str, str] = field(default_factory=dict)
    standings: dict[str, SeasonStanding] = field(default_factory=dict)
    applied: bool = False
    failure: Optional[str] = None

    @property
    def changed_members(self) -> list[str]:
        return [c.member for c in self.changes]

    def summary(self) -> str:
        if self.status == BackfillState.FAILED:
            return f'{self.league} {week_id(self.week)}: FAILED ({self.failure})'
        return (
            f'{self.league} {week_id(self.week)}: {self.status.value}, '
            f'{len(self.changes)} changed, {len(self.unchanged)} unchanged, '
            f'{len(self.skipped)} skipped, {len(self.errors)} errors'
            + ('' if self.applied or not self.changes else ' (not applied)')
        )


class BackfillCoordinator:
    """
    Re-runs normalization, scoring and standings for one league week.

    Args:
        store: Persistence collaborator
        schedule: Schedule/roster collaborator
        provider: Raw statistics provider
        rules: League rules used for weekly scoring
        guards: Token registry shared with PickLocker
        max_workers: Member worker pool size (defaults to config)
        normalizer: Raw record -> PlayerGameStatistics
    """

    def __init__(
        self,
        store: LeagueStore,
        schedule: ScheduleBook,
        provider: StatsProvider,
        rules: Optional[LeagueRules] = None,
        guards: Optional[KeyedLocks] = None,
        max_workers: Optional[int] = None,
        normalizer: Callable[[Mapping[str, Any]], PlayerGameStatistics] = normalize_stats,
    ):
        self.store = store
        self.schedule = schedule
        self.rules = rules or LeagueRules()
        self.guards = guards or KeyedLocks()
        self.max_workers = max_workers or get_backfill_workers()
        self.stats_lookup = provider_lookup(provider, normalizer)
        self._running: set[tuple[str, int, int]] = set()
        self._running_guard = threading.Lock()

    def run_backfill(
        self,
        league: str,
        season: int,
        week: int,
        overrides: Optional[Mapping[str, Mapping[Position, Decimal]]] = None,
    ) -> BackfillReport:
        """
        Recompute one week and reconcile stored scores and standings.

        Args:
            league: League id
            season: Season year
            week: Week number
            overrides: Member -> position -> points replacing computed values

        Returns:
            BackfillReport with COMPLETED or FAILED status
        """
        key = week_key(league, season, week)
        with self._running_guard:
            if key in self._running:
                raise BackfillInProgressError(f'Backfill already running for {league} {week_id(week)}')
            self._running.add(key)

        try:
            report = BackfillReport(league=league, season=season, week=week)
            self._set_state(report, BackfillState.PENDING)

            with self.guards.hold(key):
                self._set_state(report, BackfillState.IN_PROGRESS)
                try:
                    self._run(report, overrides or {})
                except SystemicBackfillFailure as e:
                    report.failure = str(e)
                    report.changes.clear()
                    report.standings.clear()
                    report.applied = False
                    self._set_state(report, BackfillState.FAILED)
                    logger.error(report.summary())
                    return report
                except Exception:
                    self._set_state(report, BackfillState.FAILED)
                    raise
        finally:
            with self._running_guard:
                self._running.discard(key)

        self._set_state(report, BackfillState.COMPLETED)
        logger.info(report.summary())
        return report

    def run_range(self, league: str, season: int, from_week: int, to_week: int) -> list[BackfillReport]:
        """Backfill consecutive weeks; each week is its own run."""
        if from_week > to_week:
            raise ValueError(f'Invalid week range {from_week}-{to_week}')
        return [self.run_backfill(league, season, week) for week in range(from_week, to_week + 1)]

    def _set_state(self, report: BackfillReport, state: BackfillState) -> None:
        report.status = state
        self.store.set_backfill_status(report.league, report.season, report.week, state.value)

    def _run(self, report: BackfillReport, overrides: Mapping[str, Mapping[Position, Decimal]]) -> None:
        league, season, week = report.league, report.season, report.week

        games = self.schedule.games_for_week(week)
        if not games:
            raise SystemicBackfillFailure(f'No games found for week {week}')
        week_games = {g.game_id for g in games}

        picks_by_member: dict[str, list[Pick]] = defaultdict(list)
        for pick in self.store.picks_for_week(league, season, week):
            picks_by_member[pick.member].append(pick)

        to_score = {}
        for member, picks in sorted(picks_by_member.items()):
            if any(p.locked for p in picks):
                to_score[member] = picks
            else:
                report.skipped.append(member)

        previous = self.store.weekly_scores_for_week(league, season, week)
        # Stored scores whose picks were all unlocked since the last run
        report.withdrawn = sorted(member for member in previous if member not in to_score)

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix='backfill') as pool:
            futures = {
                member: pool.submit(
                    self._score_member, member, week, picks, week_games, overrides.get(member)
                )
                for member, picks in to_score.items()
            }
            results: dict[str, WeeklyScore] = {}
            for member, future in futures.items():
                try:
                    results[member] = future.result()
                except PerMemberBackfillError as e:
                    report.errors[member] = e.message

        changed_scores: dict[str, WeeklyScore] = {}
        for member, new_score in results.items():
            old_score = previous.get(member)
            if old_score == new_score:
                report.unchanged.append(member)
                continue
            changed_scores[member] = new_score
            report.changes.append(
                MemberChange(
                    member=member,
                    old_total=old_score.total_points if old_score else None,
                    new_total=new_score.total_points,
                )
            )

        for member in report.withdrawn:
            report.changes.append(
                MemberChange(member=member, old_total=previous[member].total_points, new_total=ZERO)
            )

        for member in [*changed_scores, *report.withdrawn]:
            history = [
                s for s in self.store.weekly_scores_for_member(league, season, member) if s.week != week
            ]
            if member in changed_scores:
                history.append(changed_scores[member])
            report.standings[member] = recompute(member, history)

        if not report.changes:
            return
        if self.store.is_week_frozen(league, season, week):
            logger.warning(
                f'{league} {week_id(week)} is frozen; {len(report.changes)} score changes not applied'
            )
            return

        self.store.write_week_results(
            league, season, week, changed_scores, report.standings, withdrawn=report.withdrawn
        )
        report.applied = True

    def _score_member(
        self,
        member: str,
        week: int,
        picks: list[Pick],
        week_games: set[str],
        overrides: Optional[Mapping[Position, Decimal]],
    ) -> WeeklyScore:
        try:
            for pick in picks:
                if pick.locked and pick.game_id not in week_games:
                    raise PerMemberBackfillError(
                        member, f'{pick.position.value} game {pick.game_id} is not on the week {week} schedule'
                    )
            return compute_weekly_score(
                member, week, picks, self.stats_lookup, rules=self.rules, overrides=overrides
            )
        except PerMemberBackfillError:
            raise
        except Exception as e:
            logger.exception(f'Backfill failed for {member} in week {week}')
            raise PerMemberBackfillError(member, str(e)) from e
