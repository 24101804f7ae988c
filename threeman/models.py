"""Data models for the three-man league core."""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType
from typing import NamedTuple, Optional

from .constants import PICK_POSITIONS, ZERO, Position


@dataclass(frozen=True)
class PlayerGameStatistics:
    """Canonical per-player, per-game stat line."""
    passing_yards: int = 0
    passing_tds: int = 0
    interceptions: int = 0
    rushing_yards: int = 0
    rushing_tds: int = 0
    receiving_yards: int = 0
    receiving_tds: int = 0
    receptions: int = 0
    fumbles_lost: int = 0
    two_point_conversions: int = 0
    offensive_fumble_recovery_tds: int = 0

    @classmethod
    def empty(cls) -> 'PlayerGameStatistics':
        return cls()

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in self.field_names()}


class PickKey(NamedTuple):
    """Composite key addressing one pick slot."""
    league: str
    season: int
    week: int
    member: str
    position: Position
    slot: int = 0


@dataclass(frozen=True)
class Pick:
    """One member's pick for one position slot in one week."""
    league: str
    season: int
    week: int
    member: str
    position: Position
    player_id: str
    game_id: str
    locked: bool = False
    slot: int = 0

    @property
    def key(self) -> PickKey:
        return PickKey(self.league, self.season, self.week, self.member, self.position, self.slot)

    def lock(self) -> 'Pick':
        return replace(self, locked=True)

    def unlock(self) -> 'Pick':
        return replace(self, locked=False)


@dataclass(frozen=True)
class PlayerInfo:
    """Roster entry from the schedule/roster collaborator."""
    player_id: str
    name: str
    team: str
    eligible_positions: frozenset[Position] = frozenset()


@dataclass(frozen=True)
class Game:
    """An NFL game on the schedule."""
    game_id: str
    week: int
    home_team: str
    away_team: str
    kickoff: datetime
    status: str = 'scheduled'

    @property
    def teams(self) -> tuple[str, str]:
        return self.home_team, self.away_team


@dataclass(frozen=True)
class WeeklyScore:
    """Derived weekly result for one member. slot_points is read-only."""
    member: str
    week: int
    slot_points: Mapping[Position, Decimal] = field(default_factory=dict)
    total_points: Decimal = ZERO
    double_pick_positions: tuple[Position, ...] = ()
    override_positions: tuple[Position, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'slot_points', MappingProxyType(dict(self.slot_points)))

    def points_for(self, position: Position) -> Decimal:
        return self.slot_points.get(position, ZERO)

    def to_dict(self) -> dict:
        return {
            'member': self.member,
            'week': self.week,
            'slot_points': {pos.value: str(pts) for pos, pts in self.slot_points.items()},
            'total_points': str(self.total_points),
            'double_pick_positions': [pos.value for pos in self.double_pick_positions],
            'override_positions': [pos.value for pos in self.override_positions],
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WeeklyScore':
        return cls(
            member=data['member'],
            week=int(data['week']),
            slot_points={
                Position(pos): Decimal(pts) for pos, pts in data.get('slot_points', {}).items()
            },
            total_points=Decimal(data.get('total_points', '0.00')),
            double_pick_positions=tuple(
                Position(pos) for pos in data.get('double_pick_positions', [])
            ),
            override_positions=tuple(Position(pos) for pos in data.get('override_positions', [])),
        )


@dataclass(frozen=True)
class SeasonStanding:
    """Season standing for one member, derived from its weekly totals."""
    member: str
    weekly_totals: tuple[tuple[int, Decimal], ...] = ()
    season_total_points: Decimal = ZERO
    weeks_played: int = 0
    best_week: Optional[int] = None
    best_week_points: Decimal = ZERO

    @classmethod
    def empty(cls, member: str) -> 'SeasonStanding':
        return cls(member=member)

    def week_total(self, week: int) -> Optional[Decimal]:
        for wk, total in self.weekly_totals:
            if wk == week:
                return total
        return None

    def to_dict(self) -> dict:
        return {
            'member': self.member,
            'weekly_totals': {str(wk): str(total) for wk, total in self.weekly_totals},
            'season_total_points': str(self.season_total_points),
            'weeks_played': self.weeks_played,
            'best_week': self.best_week,
            'best_week_points': str(self.best_week_points),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'SeasonStanding':
        return cls(
            member=data['member'],
            weekly_totals=tuple(
                sorted((int(wk), Decimal(total)) for wk, total in data.get('weekly_totals', {}).items())
            ),
            season_total_points=Decimal(data.get('season_total_points', '0.00')),
            weeks_played=int(data.get('weeks_played', 0)),
            best_week=data.get('best_week'),
            best_week_points=Decimal(data.get('best_week_points', '0.00')),
        )


def picks_by_position(picks) -> dict[Position, list[Pick]]:
    """Group picks by position, ordered by slot."""
    grouped: dict[Position, list[Pick]] = {pos: [] for pos in PICK_POSITIONS}
    for pick in sorted(picks, key=lambda p: (p.position.value, p.slot)):
        grouped.setdefault(pick.position, []).append(pick)
    return grouped
