"""Fantasy scoring for weekly QB/RB/WR picks."""

from decimal import ROUND_HALF_UP, Decimal

from .constants import (
    CENTS,
    FUMBLE_LOST_POINTS,
    FUMBLE_RECOVERY_TD_POINTS,
    INTERCEPTION_POINTS,
    PASSING_BONUS_YARDS,
    PASSING_TD_POINTS,
    PASSING_YARD_POINTS,
    RECEIVING_BONUS_YARDS,
    RECEIVING_TD_POINTS,
    RECEIVING_YARD_POINTS,
    RECEPTION_POINTS,
    RUSHING_BONUS_YARDS,
    RUSHING_TD_POINTS,
    RUSHING_YARD_POINTS,
    TWO_POINT_CONVERSION_POINTS,
    YARDAGE_BONUS_POINTS,
)
from .models import PlayerGameStatistics


def round_points(value: Decimal) -> Decimal:
    """Round to cents, half up."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def score_breakdown(stats: PlayerGameStatistics) -> tuple[Decimal, dict[str, Decimal]]:
    """
    Score a player's game and itemize where the points came from.

    Scoring:
        - Passing TD: 4 pts
        - Passing yards: 0.04 pts per yard, +3 bonus at 300+
        - Rushing TD: 6 pts
        - Rushing yards: 0.1 pts per yard, +3 bonus at 100+
        - Receiving TD: 6 pts
        - Receiving yards: 0.1 pts per yard, +3 bonus at 100+
        - Reception: 1 pt (full PPR)
        - Interception: -1 pt
        - Fumble lost: -1 pt
        - Two point conversion: 2 pts
        - Offensive fumble recovery TD: 6 pts

    Args:
        stats: Canonical statistics for one player in one game

    Returns:
        Tuple of (total points rounded to cents, breakdown of non-zero items)
    """
    items = {
        'passing_tds': PASSING_TD_POINTS * stats.passing_tds,
        'passing_yards': PASSING_YARD_POINTS * stats.passing_yards,
        'passing_bonus': YARDAGE_BONUS_POINTS if stats.passing_yards >= PASSING_BONUS_YARDS else 0,
        'rushing_tds': RUSHING_TD_POINTS * stats.rushing_tds,
        'rushing_yards': RUSHING_YARD_POINTS * stats.rushing_yards,
        'rushing_bonus': YARDAGE_BONUS_POINTS if stats.rushing_yards >= RUSHING_BONUS_YARDS else 0,
        'receiving_tds': RECEIVING_TD_POINTS * stats.receiving_tds,
        'receiving_yards': RECEIVING_YARD_POINTS * stats.receiving_yards,
        'receiving_bonus': (
            YARDAGE_BONUS_POINTS if stats.receiving_yards >= RECEIVING_BONUS_YARDS else 0
        ),
        'receptions': RECEPTION_POINTS * stats.receptions,
        'interceptions': INTERCEPTION_POINTS * stats.interceptions,
        'fumbles_lost': FUMBLE_LOST_POINTS * stats.fumbles_lost,
        'two_point_conversions': TWO_POINT_CONVERSION_POINTS * stats.two_point_conversions,
        'fumble_recovery_tds': FUMBLE_RECOVERY_TD_POINTS * stats.offensive_fumble_recovery_tds,
    }

    breakdown = {key: round_points(Decimal(value)) for key, value in items.items() if value}
    total = round_points(sum((Decimal(value) for value in items.values()), Decimal(0)))
    return total, breakdown


def score(stats: PlayerGameStatistics) -> Decimal:
    """Fantasy points for one player's game, rounded half-up to cents."""
    total, _ = score_breakdown(stats)
    return total
