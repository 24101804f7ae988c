"""Weekly score aggregation for a member's locked picks."""

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Any, Optional, Protocol

from .constants import PICK_POSITIONS, ZERO, Position
from .models import Pick, PlayerGameStatistics, WeeklyScore, picks_by_position
from .normalizer import normalize_stats
from .schemas import LeagueRules
from .scoring import round_points, score

logger = logging.getLogger('threeman.weekly')

StatsLookup = Callable[[str, str], Optional[PlayerGameStatistics]]
DoublePickPolicy = Callable[[Position, Sequence[Decimal]], Decimal]


class StatsProvider(Protocol):
    """Anything that returns a raw stat record for (player, game)."""

    def get_player_stats(self, player_id: str, game_id: str) -> Optional[Mapping[str, Any]]:
        ...


def no_adjustment(position: Position, points: Sequence[Decimal]) -> Decimal:
    """Default double-pick policy: both picks count in full."""
    return round_points(sum(points, Decimal(0)))


def best_of_pair(position: Position, points: Sequence[Decimal]) -> Decimal:
    """Only the better of the two picks counts."""
    return max(points)


def average_of_pair(position: Position, points: Sequence[Decimal]) -> Decimal:
    """The pair is worth its mean."""
    return round_points(sum(points, Decimal(0)) / len(points))


DOUBLE_PICK_POLICIES: dict[str, DoublePickPolicy] = {
    'none': no_adjustment,
    'best': best_of_pair,
    'average': average_of_pair,
}


def get_double_pick_policy(name: str) -> DoublePickPolicy:
    try:
        return DOUBLE_PICK_POLICIES[name]
    except KeyError:
        raise ValueError(f'Unknown double pick policy: {name}') from None


def provider_lookup(
    provider: StatsProvider,
    normalizer: Callable[[Mapping[str, Any]], PlayerGameStatistics] = normalize_stats,
) -> StatsLookup:
    """Wrap a raw statistics provider as a canonical StatsLookup."""

    def lookup(player_id: str, game_id: str) -> Optional[PlayerGameStatistics]:
        raw = provider.get_player_stats(player_id, game_id)
        return normalizer(raw) if raw else None

    return lookup


def compute_weekly_score(
    member: str,
    week: int,
    locked_picks: Iterable[Pick],
    stats_lookup: StatsLookup,
    rules: Optional[LeagueRules] = None,
    overrides: Optional[Mapping[Position, Decimal]] = None,
) -> WeeklyScore:
    """
    Score a member's week from their locked picks.

    Unlocked picks contribute nothing. Missing statistics (game not final,
    player inactive) count as a zero stat line. With identical picks and
    statistics the result is identical, which backfill relies on.

    Args:
        member: Member id
        week: Week number
        locked_picks: The member's picks for the week
        stats_lookup: (player_id, game_id) -> statistics or None
        rules: League rules (double-pick positions and policy)
        overrides: Position -> points replacing the computed slot value

    Returns:
        WeeklyScore with points for every slot

    Raises:
        ValueError: If picks belong to another member/week, or a position
            holds two picks without the double pick rule
    """
    rules = rules or LeagueRules()
    overrides = overrides or {}
    policy = get_double_pick_policy(rules.double_pick_policy)

    picks = list(locked_picks)
    for pick in picks:
        if pick.member != member or pick.week != week:
            raise ValueError(f'Pick {pick.key} does not belong to {member} week {week}')

    slot_points: dict[Position, Decimal] = {}
    doubled: list[Position] = []
    overridden: list[Position] = []

    for position, position_picks in picks_by_position(p for p in picks if p.locked).items():
        if position in overrides:
            slot_points[position] = round_points(Decimal(overrides[position]))
            overridden.append(position)
            continue

        values = []
        for pick in position_picks:
            stats = stats_lookup(pick.player_id, pick.game_id)
            if stats is None:
                logger.debug(f'No stats for {pick.player_id} in {pick.game_id}; scoring as zero')
                stats = PlayerGameStatistics.empty()
            values.append(score(stats))

        if len(values) > 1:
            if position not in rules.double_pick_positions:
                raise ValueError(f'{member} has {len(values)} {position.value} picks in week {week}')
            slot_points[position] = policy(position, values)
            doubled.append(position)
        else:
            slot_points[position] = values[0] if values else ZERO

    for position in PICK_POSITIONS:
        slot_points.setdefault(position, ZERO)

    total = round_points(sum(slot_points.values(), Decimal(0)))
    return WeeklyScore(
        member=member,
        week=week,
        slot_points=slot_points,
        total_points=total,
        double_pick_positions=tuple(doubled),
        override_positions=tuple(overridden),
    )
