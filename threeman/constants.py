"""Constants and mappings for the three-man league core."""

from decimal import Decimal
from enum import Enum


class Position(str, Enum):
    """Weekly pick slots."""

    QB = 'QB'
    RB = 'RB'
    WR = 'WR'


PICK_POSITIONS = (Position.QB, Position.RB, Position.WR)

# Provider position strings -> pick slot. TEs are not eligible for the WR slot.
POSITION_ALIASES = {
    'QB': Position.QB,
    'QUARTERBACK': Position.QB,
    'RB': Position.RB,
    'RUNNING BACK': Position.RB,
    'WR': Position.WR,
    'WIDE RECEIVER': Position.WR,
}

REGULAR_SEASON_WEEKS = 18

# Picks lock this long before kickoff unless a league overrides it
DEFAULT_LOCK_LEAD_MINUTES = 60

# DraftKings-style PPR scoring
PASSING_TD_POINTS = Decimal('4')
PASSING_YARD_POINTS = Decimal('0.04')
PASSING_BONUS_YARDS = 300
RUSHING_TD_POINTS = Decimal('6')
RUSHING_YARD_POINTS = Decimal('0.1')
RUSHING_BONUS_YARDS = 100
RECEIVING_TD_POINTS = Decimal('6')
RECEIVING_YARD_POINTS = Decimal('0.1')
RECEIVING_BONUS_YARDS = 100
YARDAGE_BONUS_POINTS = Decimal('3')
RECEPTION_POINTS = Decimal('1')
INTERCEPTION_POINTS = Decimal('-1')
FUMBLE_LOST_POINTS = Decimal('-1')
TWO_POINT_CONVERSION_POINTS = Decimal('2')
FUMBLE_RECOVERY_TD_POINTS = Decimal('6')

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')

# Team abbreviation normalization (league data -> nflreadpy format)
TEAM_ABBREV_NORMALIZE = {
    'LAR': 'LA',   # Los Angeles Rams
    'JAC': 'JAX',  # Jacksonville Jaguars
    'WSH': 'WAS',  # Washington Commanders
}


def week_id(week: int) -> str:
    """Document id for a week number (e.g. 'week-3')."""
    return f'week-{week}'


def parse_week_id(value: str) -> int:
    """Inverse of week_id()."""
    prefix, _, number = value.partition('-')
    if prefix != 'week' or not number.isdigit():
        raise ValueError(f'Invalid week id: {value}')
    return int(number)
