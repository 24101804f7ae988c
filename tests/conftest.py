"""Shared fixtures: a small week 3/4 schedule, stores and pick helpers."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from threeman.constants import Position
from threeman.models import Pick
from threeman.schedule import ScheduleBook
from threeman.schemas import LeagueRules
from threeman.store import MemoryStore
from threeman.usage import UsageTracker
from threeman.validators import PickValidator

LEAGUE = 'main'
SEASON = 2025

# Week 3: KC @ BUF at 17:00 UTC, DAL @ PHI at 20:25 UTC. MIA on bye.
EARLY_KICKOFF = datetime(2025, 9, 21, 17, 0, tzinfo=timezone.utc)
LATE_KICKOFF = datetime(2025, 9, 21, 20, 25, tzinfo=timezone.utc)

PLAYERS = [
    {'player_id': 'qb-kc', 'name': 'Patrick Mahomes', 'team': 'KC', 'position': 'QB'},
    {'player_id': 'qb-buf', 'name': 'Josh Allen', 'team': 'BUF', 'position': 'QB'},
    {'player_id': 'qb-phi', 'name': 'Jalen Hurts', 'team': 'PHI', 'position': 'QB'},
    {'player_id': 'rb-kc', 'name': 'Isiah Pacheco', 'team': 'KC', 'position': 'RB'},
    {'player_id': 'rb-phi', 'name': 'Saquon Barkley', 'team': 'PHI', 'position': 'RB'},
    {'player_id': 'wr-dal', 'name': 'CeeDee Lamb', 'team': 'DAL', 'position': 'WR'},
    {'player_id': 'wr-buf', 'name': 'Khalil Shakir', 'team': 'BUF', 'position': 'WR'},
    {'player_id': 'wr-mia', 'name': 'Tyreek Hill', 'team': 'MIA', 'position': 'WR'},
    {'player_id': 'te-kc', 'name': 'Travis Kelce', 'team': 'KC', 'position': 'TE'},
    {
        'player_id': 'flex-dal',
        'name': 'KaVontae Turpin',
        'team': 'DAL',
        'eligible_positions': ['RB', 'WR'],
    },
]

GAMES = [
    {
        'game_id': 'g3-kc-buf', 'week': 3, 'home_team': 'BUF', 'away_team': 'KC',
        'kickoff': '2025-09-21T17:00:00Z',
    },
    {
        'game_id': 'g3-dal-phi', 'week': 3, 'home_team': 'PHI', 'away_team': 'DAL',
        'kickoff': '2025-09-21T20:25:00Z',
    },
    {
        'game_id': 'g4-kc-dal', 'week': 4, 'home_team': 'DAL', 'away_team': 'KC',
        'kickoff': '2025-09-28T17:00:00Z',
    },
    {
        'game_id': 'g4-buf-phi', 'week': 4, 'home_team': 'PHI', 'away_team': 'BUF',
        'kickoff': '2025-09-28T20:25:00Z',
    },
]

PLAYER_GAMES = {
    'qb-kc': 'g3-kc-buf',
    'qb-buf': 'g3-kc-buf',
    'qb-phi': 'g3-dal-phi',
    'rb-kc': 'g3-kc-buf',
    'rb-phi': 'g3-dal-phi',
    'wr-dal': 'g3-dal-phi',
    'wr-buf': 'g3-kc-buf',
    'flex-dal': 'g3-dal-phi',
}


def make_pick(member, position, player_id, game_id=None, week=3, locked=False, slot=0):
    """Build a pick in the test league, defaulting to the player's week 3 game."""
    return Pick(
        league=LEAGUE,
        season=SEASON,
        week=week,
        member=member,
        position=position,
        player_id=player_id,
        game_id=game_id or PLAYER_GAMES[player_id],
        locked=locked,
        slot=slot,
    )


def stats_provider(stats_by_player):
    """Mock statistics provider returning raw records keyed by player id."""
    provider = Mock()
    provider.get_player_stats.side_effect = lambda player_id, game_id: stats_by_player.get(player_id)
    return provider


@pytest.fixture
def schedule():
    return ScheduleBook.from_records(PLAYERS, GAMES)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def usage(store):
    return UsageTracker(store)


@pytest.fixture
def rules():
    return LeagueRules()


@pytest.fixture
def validator(schedule, usage, rules):
    return PickValidator(schedule, usage, rules)


@pytest.fixture
def before_lock():
    """Sunday morning of week 3, well before the early lock."""
    return datetime(2025, 9, 21, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def alice_picks():
    return [
        make_pick('alice', Position.QB, 'qb-kc'),
        make_pick('alice', Position.RB, 'rb-phi'),
        make_pick('alice', Position.WR, 'wr-dal'),
    ]
