"""Main scoring engine that ties everything together."""

import logging
from collections import defaultdict
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from .constants import week_id
from .locks import KeyedLocks, week_key
from .models import Pick, PlayerGameStatistics, SeasonStanding, WeeklyScore
from .normalizer import normalize_stats
from .schemas import LeagueRules
from .standings import fold, rank_standings, recompute
from .store import LeagueStore
from .validators import validate_standing, validate_weekly_score
from .weekly import StatsProvider, compute_weekly_score, provider_lookup

logger = logging.getLogger('threeman.scorer')


@dataclass
class WeekResult:
    """Scores, standings and sanity warnings from one scoring run."""
    league: str
    season: int
    week: int
    scores: dict[str, WeeklyScore] = field(default_factory=dict)
    standings: dict[str, SeasonStanding] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    withdrawn: list[str] = field(default_factory=list)
    frozen: bool = False


class WeekScorer:
    """Scores a league week from locked picks and publishes the results."""

    def __init__(
        self,
        store: LeagueStore,
        provider: StatsProvider,
        rules: Optional[LeagueRules] = None,
        guards: Optional[KeyedLocks] = None,
        normalizer: Callable[[Mapping[str, Any]], PlayerGameStatistics] = normalize_stats,
    ):
        self.store = store
        self.rules = rules or LeagueRules()
        self.guards = guards or KeyedLocks()
        self.stats_lookup = provider_lookup(provider, normalizer)

    def score_week(self, league: str, season: int, week: int) -> WeekResult:
        """
        Score every member with locked picks and write scores and standings.

        Members whose picks are all unlocked are left out, and a score
        stored for them earlier in the week is withdrawn. Standings fold
        the new week into each member's stored standing, so scoring the
        same week twice replaces rather than double counts. A frozen week
        is scored for the report but nothing is written.
        """
        result = WeekResult(league=league, season=season, week=week)

        with self.guards.hold(week_key(league, season, week)):
            result.frozen = self.store.is_week_frozen(league, season, week)
            picks_by_member: dict[str, list[Pick]] = defaultdict(list)
            for pick in self.store.picks_for_week(league, season, week):
                if pick.locked:
                    picks_by_member[pick.member].append(pick)

            current = self.store.standings(league, season)
            for member, picks in sorted(picks_by_member.items()):
                weekly = compute_weekly_score(member, week, picks, self.stats_lookup, rules=self.rules)
                result.scores[member] = weekly
                result.standings[member] = fold(current.get(member), weekly)
                result.warnings.extend(validate_weekly_score(weekly))
                result.warnings.extend(validate_standing(result.standings[member]))

            stored = self.store.weekly_scores_for_week(league, season, week)
            result.withdrawn = sorted(m for m in stored if m not in picks_by_member)
            for member in result.withdrawn:
                history = self.store.weekly_scores_for_member(league, season, member)
                result.standings[member] = recompute(member, [s for s in history if s.week != week])

            if result.frozen:
                result.warnings.append(
                    f'{league} {week_id(week)} is frozen; stored scores and standings left unchanged'
                )
            elif result.scores or result.withdrawn:
                self.store.write_week_results(
                    league, season, week, result.scores, result.standings, withdrawn=result.withdrawn
                )

        for warning in result.warnings:
            logger.warning(warning)
        self._log_summary(result)
        return result

    def _log_summary(self, result: WeekResult) -> None:
        if not result.scores:
            logger.info(f'{result.league} {week_id(result.week)}: no locked picks to score')
            return
        logger.info(f'{result.league} {week_id(result.week)}: scored {len(result.scores)} members')
        ranked = sorted(result.scores.values(), key=lambda s: (-s.total_points, s.member))
        for rank, weekly in enumerate(ranked, 1):
            logger.info(f'  {rank}. {weekly.member}: {weekly.total_points} pts')


def season_table(store: LeagueStore, league: str, season: int) -> list[SeasonStanding]:
    """Stored standings in rank order."""
    return rank_standings(store.standings(league, season).values())
