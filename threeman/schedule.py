"""Schedule and roster lookups: eligible positions, teams and weekly games."""

from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from .constants import POSITION_ALIASES, TEAM_ABBREV_NORMALIZE, Position
from .models import Game, PlayerInfo


def normalize_team(team: str) -> str:
    """Normalize team abbreviation to nflreadpy format."""
    team = (team or '').strip().upper()
    return TEAM_ABBREV_NORMALIZE.get(team, team)


def eligible_positions(position: str) -> frozenset[Position]:
    """
    Pick slots a roster position may fill.

    QBs, RBs and WRs are eligible for their own slot only; TEs and every
    other position are not eligible for any slot.
    """
    slot = POSITION_ALIASES.get((position or '').upper().strip())
    return frozenset({slot}) if slot else frozenset()


def as_utc(moment: datetime) -> datetime:
    """Treat a naive datetime as UTC."""
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


def _parse_kickoff(value: Any) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    return as_utc(datetime.fromisoformat(str(value).replace('Z', '+00:00')))


class ScheduleBook:
    """
    In-memory schedule/roster collaborator.

    Players and games are addressed by id; team -> game lookups are built
    per week so a team's bye week simply has no entry.
    """

    def __init__(self, players: Iterable[PlayerInfo] = (), games: Iterable[Game] = ()):
        self._players: dict[str, PlayerInfo] = {}
        self._games: dict[str, Game] = {}
        self._team_games: dict[tuple[int, str], str] = {}
        for player in players:
            self.add_player(player)
        for game in games:
            self.add_game(game)

    def add_player(self, player: PlayerInfo) -> None:
        self._players[player.player_id] = player

    def add_game(self, game: Game) -> None:
        self._games[game.game_id] = game
        for team in game.teams:
            self._team_games[(game.week, normalize_team(team))] = game.game_id

    def get_player(self, player_id: str) -> Optional[PlayerInfo]:
        return self._players.get(player_id)

    def get_game(self, game_id: str) -> Optional[Game]:
        return self._games.get(game_id)

    def games_for_week(self, week: int) -> list[Game]:
        """All games in a week, ordered by kickoff."""
        games = [g for g in self._games.values() if g.week == week]
        return sorted(games, key=lambda g: (g.kickoff, g.game_id))

    def game_for_team(self, team: str, week: int) -> Optional[Game]:
        game_id = self._team_games.get((week, normalize_team(team)))
        return self._games.get(game_id) if game_id else None

    def game_for_player(self, player_id: str, week: int) -> Optional[Game]:
        """The game a player's team plays in a week, or None (bye/unknown)."""
        player = self.get_player(player_id)
        if player is None:
            return None
        return self.game_for_team(player.team, week)

    @classmethod
    def from_records(
        cls,
        players: Iterable[Mapping[str, Any]],
        games: Iterable[Mapping[str, Any]],
    ) -> 'ScheduleBook':
        """
        Build a book from plain dict records (e.g. loaded from JSON).

        Player records need 'player_id', 'name', 'team' and either
        'eligible_positions' or a single 'position'. Game records need
        'game_id', 'week', 'home_team', 'away_team' and 'kickoff' (ISO 8601).
        """
        book = cls()
        for rec in players:
            if 'eligible_positions' in rec:
                eligible = frozenset(Position(p) for p in rec['eligible_positions'])
            else:
                eligible = eligible_positions(rec.get('position', ''))
            book.add_player(
                PlayerInfo(
                    player_id=str(rec['player_id']),
                    name=rec.get('name', ''),
                    team=normalize_team(rec.get('team', '')),
                    eligible_positions=eligible,
                )
            )
        for rec in games:
            book.add_game(
                Game(
                    game_id=str(rec['game_id']),
                    week=int(rec['week']),
                    home_team=normalize_team(rec['home_team']),
                    away_team=normalize_team(rec['away_team']),
                    kickoff=_parse_kickoff(rec['kickoff']),
                    status=rec.get('status', 'scheduled'),
                )
            )
        return book
