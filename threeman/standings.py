"""Season standings folded from weekly scores."""

from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from .constants import ZERO
from .models import SeasonStanding, WeeklyScore
from .scoring import round_points


def _derive(member: str, totals: dict[int, Decimal]) -> SeasonStanding:
    weekly = tuple(sorted(totals.items()))
    if not weekly:
        return SeasonStanding.empty(member)

    best_week, best_points = weekly[0]
    for week, points in weekly[1:]:
        # strictly greater: ties keep the earlier week
        if points > best_points:
            best_week, best_points = week, points

    return SeasonStanding(
        member=member,
        weekly_totals=weekly,
        season_total_points=round_points(sum((p for _, p in weekly), ZERO)),
        weeks_played=len(weekly),
        best_week=best_week,
        best_week_points=best_points,
    )


def fold(existing: Optional[SeasonStanding], weekly_score: WeeklyScore) -> SeasonStanding:
    """
    Add one week to a standing.

    A week already present is replaced, not added, so re-folding a
    corrected score and folding weeks in any order give the same result
    as recompute().
    """
    if existing is not None and existing.member != weekly_score.member:
        raise ValueError(f'Cannot fold {weekly_score.member} into {existing.member} standing')

    totals = dict(existing.weekly_totals) if existing else {}
    totals[weekly_score.week] = weekly_score.total_points
    return _derive(weekly_score.member, totals)


def recompute(member: str, weekly_scores: Iterable[WeeklyScore]) -> SeasonStanding:
    """Rebuild a standing from all of a member's weekly scores."""
    totals: dict[int, Decimal] = {}
    for weekly_score in weekly_scores:
        if weekly_score.member != member:
            raise ValueError(f'Score for {weekly_score.member} passed to {member} standing')
        totals[weekly_score.week] = weekly_score.total_points
    return _derive(member, totals)


def rank_standings(standings: Iterable[SeasonStanding]) -> list[SeasonStanding]:
    """Order standings: total points, then best week points, then member id."""
    return sorted(
        standings,
        key=lambda s: (-s.season_total_points, -s.best_week_points, s.member),
    )
