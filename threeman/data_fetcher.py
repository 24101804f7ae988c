"""Statistics and schedule providers.

``NFLDataFetcher`` reads weekly player stats, schedules and rosters through
nflreadpy. ``BoxScoreProvider`` serves stats from stored game summaries,
which is how corrected stat lines are fed to a backfill.
"""

import logging
import threading
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo

import polars as pl

try:
    import nflreadpy as nfl
except ImportError:
    raise ImportError("Please install nflreadpy: pip install nflreadpy")

from .exceptions import StatsProviderError
from .models import Game, PlayerGameStatistics, PlayerInfo
from .normalizer import normalize_box_score
from .schedule import ScheduleBook, eligible_positions, normalize_team
from .utils import load_json

logger = logging.getLogger('threeman.data_fetcher')

# nflreadpy schedule times are US Eastern
SCHEDULE_TZ = ZoneInfo('America/New_York')


class NFLDataFetcher:
    """Fetches and caches NFL stats from nflreadpy."""

    def __init__(self, season: int, week: int):
        self.season = season
        self.week = week
        self._player_stats: Optional[pl.DataFrame] = None
        self._schedules: Optional[pl.DataFrame] = None
        self._rosters: Optional[pl.DataFrame] = None
        self._load_lock = threading.Lock()

    @property
    def player_stats(self) -> pl.DataFrame:
        """Lazy load player stats."""
        with self._load_lock:
            if self._player_stats is None:
                logger.info(f'Loading player stats for {self.season} week {self.week}...')
                try:
                    stats = nfl.load_player_stats(seasons=self.season, summary_level='week')
                except Exception as e:
                    raise StatsProviderError(f'Failed to load player stats: {e}') from e
                self._player_stats = stats.filter(pl.col('week') == self.week)
            return self._player_stats

    @property
    def schedules(self) -> pl.DataFrame:
        """Lazy load schedules."""
        with self._load_lock:
            if self._schedules is None:
                logger.info(f'Loading schedules for {self.season}...')
                try:
                    schedules = nfl.load_schedules(seasons=self.season)
                except Exception as e:
                    raise StatsProviderError(f'Failed to load schedules: {e}') from e
                self._schedules = schedules.filter(pl.col('week') == self.week)
            return self._schedules

    @property
    def rosters(self) -> pl.DataFrame:
        """Lazy load season rosters."""
        with self._load_lock:
            if self._rosters is None:
                logger.info(f'Loading rosters for {self.season}...')
                try:
                    self._rosters = nfl.load_rosters(seasons=self.season)
                except Exception as e:
                    raise StatsProviderError(f'Failed to load rosters: {e}') from e
            return self._rosters

    def _game_row(self, game_id: str) -> Optional[dict]:
        games = self.schedules.filter(pl.col('game_id') == game_id)
        if games.height == 0:
            return None
        return games.row(0, named=True)

    def get_player_stats(self, player_id: str, game_id: str) -> Optional[dict]:
        """
        Raw weekly stat row for a player in a game.

        Returns:
            Dict of nflreadpy columns, or None if the game is unknown or the
            player has no line (game not final, inactive)
        """
        game = self._game_row(game_id)
        if game is None:
            logger.debug(f'Game {game_id} not on {self.season} week {self.week} schedule')
            return None

        teams = [normalize_team(game['home_team']), normalize_team(game['away_team'])]
        matches = self.player_stats.filter(
            (pl.col('player_id') == player_id) & pl.col('team').is_in(teams)
        )
        if matches.height == 0:
            return None
        return matches.row(0, named=True)

    def games(self) -> list[Game]:
        """Games for the fetcher's week with kickoff converted to UTC."""
        games = []
        for row in self.schedules.iter_rows(named=True):
            kickoff = datetime.strptime(
                f"{row['gameday']} {row.get('gametime') or '13:00'}", '%Y-%m-%d %H:%M'
            ).replace(tzinfo=SCHEDULE_TZ)
            games.append(
                Game(
                    game_id=row['game_id'],
                    week=int(row['week']),
                    home_team=normalize_team(row['home_team']),
                    away_team=normalize_team(row['away_team']),
                    kickoff=kickoff.astimezone(timezone.utc),
                    status='final' if row.get('home_score') is not None else 'scheduled',
                )
            )
        return games

    def players(self) -> list[PlayerInfo]:
        """Rostered players eligible for at least one pick slot."""
        players = []
        for row in self.rosters.iter_rows(named=True):
            eligible = eligible_positions(row.get('position') or '')
            if not eligible or not row.get('gsis_id'):
                continue
            players.append(
                PlayerInfo(
                    player_id=row['gsis_id'],
                    name=row.get('full_name') or '',
                    team=normalize_team(row.get('team') or ''),
                    eligible_positions=eligible,
                )
            )
        return players

    def build_schedule_book(self) -> ScheduleBook:
        return ScheduleBook(players=self.players(), games=self.games())


class BoxScoreProvider:
    """
    Statistics provider backed by game summary payloads.

    Each game's payload is normalized once; lookups return canonical stat
    dicts that ``normalize_stats`` accepts unchanged.
    """

    def __init__(self, summaries: Mapping[str, Mapping[str, Any]]):
        self._summaries = dict(summaries)
        self._parsed: dict[str, dict[str, PlayerGameStatistics]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_directory(cls, directory: Path | str) -> 'BoxScoreProvider':
        """Load {game_id}.json summaries from a directory."""
        directory = Path(directory)
        if not directory.is_dir():
            raise FileNotFoundError(f'Box score directory not found: {directory}')
        return cls({path.stem: load_json(path) for path in sorted(directory.glob('*.json'))})

    def _game(self, game_id: str) -> Optional[dict[str, PlayerGameStatistics]]:
        with self._lock:
            if game_id not in self._parsed:
                payload = self._summaries.get(game_id)
                if payload is None:
                    return None
                self._parsed[game_id] = normalize_box_score(payload)
            return self._parsed[game_id]

    def get_player_stats(self, player_id: str, game_id: str) -> Optional[dict[str, int]]:
        game = self._game(game_id)
        if game is None or player_id not in game:
            return None
        return game[player_id].to_dict()
