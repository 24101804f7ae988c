"""Persistence collaborator: picks, usage, weekly scores and standings.

Everything is addressed by composite key (league, season, week, member,
position, slot); no entity holds a reference to another.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import Optional

from .constants import Position, parse_week_id, week_id
from .exceptions import LockConflictError
from .models import Pick, PickKey, SeasonStanding, WeeklyScore
from .schemas import PickDocument, UsageDocument
from .utils import load_json, save_json

logger = logging.getLogger('threeman.store')

UsageKey = tuple[int, str, str, Position]


class LeagueStore(ABC):
    """Interface the core needs from persistence."""

    # Picks

    @abstractmethod
    def get_pick(self, key: PickKey) -> Optional[Pick]:
        ...

    @abstractmethod
    def picks_for_week(self, league: str, season: int, week: int) -> list[Pick]:
        ...

    def picks_for_member(self, league: str, season: int, week: int, member: str) -> list[Pick]:
        return [p for p in self.picks_for_week(league, season, week) if p.member == member]

    @abstractmethod
    def save_pick(self, pick: Pick) -> None:
        """Write an unlocked pick. Raises LockConflictError over a locked one."""

    @abstractmethod
    def compare_and_set_pick(self, expected: Pick, new: Pick) -> bool:
        """Replace expected with new only if the stored pick still equals expected."""

    @abstractmethod
    def delete_pick(self, key: PickKey) -> bool:
        """Remove an unlocked pick. Raises LockConflictError for a locked one."""

    def replace_member_picks(self, picks: Sequence[Pick]) -> None:
        """
        Make picks the member's full selection for their week.

        Stored unlocked picks in slots not present in picks are removed;
        locked ones are kept. Conflicts with locked picks are checked
        before anything is written, so a rejected call changes nothing.

        Raises:
            LockConflictError: A pick would replace a different locked pick
        """
        if not picks:
            return
        first = picks[0]
        stored = {
            p.key: p
            for p in self.picks_for_member(first.league, first.season, first.week, first.member)
        }
        for pick in picks:
            current = stored.get(pick.key)
            if current is not None and current.locked and (
                (current.player_id, current.game_id) != (pick.player_id, pick.game_id)
            ):
                raise LockConflictError(f'Pick {pick.key} is locked')

        keys = {p.key for p in picks}
        for pick in picks:
            self.save_pick(pick)
        for key, stale in stored.items():
            if key not in keys and not stale.locked:
                self.delete_pick(key)

    # Usage

    @abstractmethod
    def get_usage(self, season: int, league: str, member: str, position: Position) -> dict[str, int]:
        """Player id -> first week used, for one member and position."""

    @abstractmethod
    def add_usage(
        self, season: int, league: str, member: str, position: Position, player_id: str, week: int
    ) -> bool:
        """Record usage; returns False if the player was already recorded."""

    @abstractmethod
    def remove_usage(
        self, season: int, league: str, member: str, position: Position, player_id: str
    ) -> bool:
        ...

    # Scores and standings

    @abstractmethod
    def weekly_scores_for_week(self, league: str, season: int, week: int) -> dict[str, WeeklyScore]:
        ...

    @abstractmethod
    def weekly_scores_for_member(self, league: str, season: int, member: str) -> list[WeeklyScore]:
        ...

    @abstractmethod
    def standings(self, league: str, season: int) -> dict[str, SeasonStanding]:
        ...

    @abstractmethod
    def write_week_results(
        self,
        league: str,
        season: int,
        week: int,
        scores: dict[str, WeeklyScore],
        standings: dict[str, SeasonStanding],
        withdrawn: Sequence[str] = (),
    ) -> None:
        """
        Publish a week's scores and the resulting standings together.

        Members in withdrawn lose their stored score for the week (their
        picks are no longer locked); standings should already exclude it.
        """

    # Week flags

    @abstractmethod
    def is_week_frozen(self, league: str, season: int, week: int) -> bool:
        ...

    @abstractmethod
    def freeze_week(self, league: str, season: int, week: int) -> None:
        ...

    @abstractmethod
    def get_backfill_status(self, league: str, season: int, week: int) -> Optional[str]:
        ...

    @abstractmethod
    def set_backfill_status(self, league: str, season: int, week: int, status: str) -> None:
        ...


class MemoryStore(LeagueStore):
    """Thread-safe in-memory store; every method holds one re-entrant lock."""

    def __init__(self):
        self._lock = threading.RLock()
        self._picks: dict[PickKey, Pick] = {}
        self._usage: dict[UsageKey, dict[str, int]] = {}
        self._scores: dict[tuple[str, int, int, str], WeeklyScore] = {}
        self._standings: dict[tuple[str, int, str], SeasonStanding] = {}
        self._frozen: set[tuple[str, int, int]] = set()
        self._backfill_status: dict[tuple[str, int, int], str] = {}

    def _changed(self, league: str, season: int) -> None:
        """Hook for persistent subclasses; called after every mutation."""

    def get_pick(self, key: PickKey) -> Optional[Pick]:
        with self._lock:
            return self._picks.get(key)

    def picks_for_week(self, league: str, season: int, week: int) -> list[Pick]:
        with self._lock:
            picks = [
                p for k, p in self._picks.items()
                if k.league == league and k.season == season and k.week == week
            ]
        return sorted(picks, key=lambda p: (p.member, p.position.value, p.slot))

    def save_pick(self, pick: Pick) -> None:
        with self._lock:
            current = self._picks.get(pick.key)
            if current is not None and current.locked:
                if (current.player_id, current.game_id) != (pick.player_id, pick.game_id):
                    raise LockConflictError(f'Pick {pick.key} is locked')
                return
            self._picks[pick.key] = pick
            self._changed(pick.league, pick.season)

    def replace_member_picks(self, picks: Sequence[Pick]) -> None:
        with self._lock:
            super().replace_member_picks(picks)

    def compare_and_set_pick(self, expected: Pick, new: Pick) -> bool:
        if expected.key != new.key:
            raise ValueError('compare_and_set_pick requires matching keys')
        with self._lock:
            if self._picks.get(expected.key) != expected:
                return False
            self._picks[new.key] = new
            self._changed(new.league, new.season)
            return True

    def delete_pick(self, key: PickKey) -> bool:
        with self._lock:
            current = self._picks.get(key)
            if current is None:
                return False
            if current.locked:
                raise LockConflictError(f'Pick {key} is locked')
            del self._picks[key]
            self._changed(key.league, key.season)
            return True

    def get_usage(self, season: int, league: str, member: str, position: Position) -> dict[str, int]:
        with self._lock:
            return dict(self._usage.get((season, league, member, position), {}))

    def add_usage(
        self, season: int, league: str, member: str, position: Position, player_id: str, week: int
    ) -> bool:
        with self._lock:
            used = self._usage.setdefault((season, league, member, position), {})
            if player_id in used:
                return False
            used[player_id] = week
            self._changed(league, season)
            return True

    def remove_usage(
        self, season: int, league: str, member: str, position: Position, player_id: str
    ) -> bool:
        with self._lock:
            used = self._usage.get((season, league, member, position), {})
            if used.pop(player_id, None) is None:
                return False
            self._changed(league, season)
            return True

    def weekly_scores_for_week(self, league: str, season: int, week: int) -> dict[str, WeeklyScore]:
        with self._lock:
            return {
                member: score for (lg, ssn, wk, member), score in self._scores.items()
                if lg == league and ssn == season and wk == week
            }

    def weekly_scores_for_member(self, league: str, season: int, member: str) -> list[WeeklyScore]:
        with self._lock:
            scores = [
                score for (lg, ssn, _, mbr), score in self._scores.items()
                if lg == league and ssn == season and mbr == member
            ]
        return sorted(scores, key=lambda s: s.week)

    def standings(self, league: str, season: int) -> dict[str, SeasonStanding]:
        with self._lock:
            return {
                member: standing for (lg, ssn, member), standing in self._standings.items()
                if lg == league and ssn == season
            }

    def write_week_results(
        self,
        league: str,
        season: int,
        week: int,
        scores: dict[str, WeeklyScore],
        standings: dict[str, SeasonStanding],
        withdrawn: Sequence[str] = (),
    ) -> None:
        with self._lock:
            for member in withdrawn:
                self._scores.pop((league, season, week, member), None)
            for member, score in scores.items():
                self._scores[(league, season, week, member)] = score
            for member, standing in standings.items():
                self._standings[(league, season, member)] = standing
            self._changed(league, season)
        logger.debug(
            f'Wrote {len(scores)} scores and {len(standings)} standings '
            f'(withdrew {len(withdrawn)}) for '
            f'{league} {season} {week_id(week)}'
        )

    def is_week_frozen(self, league: str, season: int, week: int) -> bool:
        with self._lock:
            return (league, season, week) in self._frozen

    def freeze_week(self, league: str, season: int, week: int) -> None:
        with self._lock:
            self._frozen.add((league, season, week))
            self._changed(league, season)

    def get_backfill_status(self, league: str, season: int, week: int) -> Optional[str]:
        with self._lock:
            return self._backfill_status.get((league, season, week))

    def set_backfill_status(self, league: str, season: int, week: int, status: str) -> None:
        with self._lock:
            self._backfill_status[(league, season, week)] = status
            self._changed(league, season)


class JsonFileStore(MemoryStore):
    """
    MemoryStore persisted as one JSON document per league and season.

    Layout: {root}/leagues/{league}/{season}.json. Documents are rewritten
    atomically after each mutation.
    """

    def __init__(self, root: Path | str):
        super().__init__()
        self.root = Path(root)
        self._loading = False
        self._load_all()

    def _path(self, league: str, season: int) -> Path:
        return self.root / 'leagues' / league / f'{season}.json'

    def _load_all(self) -> None:
        leagues_dir = self.root / 'leagues'
        if not leagues_dir.exists():
            return
        self._loading = True
        try:
            for path in sorted(leagues_dir.glob('*/*.json')):
                self._load_document(path.parent.name, int(path.stem), load_json(path))
        finally:
            self._loading = False

    def _load_document(self, league: str, season: int, doc: dict) -> None:
        for wk_id, members in doc.get('picks', {}).items():
            week = parse_week_id(wk_id)
            for member, entries in members.items():
                for entry in entries:
                    rec = PickDocument.model_validate(entry)
                    pick = Pick(
                        league=league, season=season, week=week, member=member,
                        position=rec.position, player_id=rec.player_id,
                        game_id=rec.game_id, locked=rec.locked, slot=rec.slot,
                    )
                    self._picks[pick.key] = pick
        for member, usage in doc.get('usage', {}).items():
            rec = UsageDocument.model_validate(usage)
            for position, players in rec.positions.items():
                self._usage[(season, league, member, position)] = dict(players)
        for wk_id, members in doc.get('scores', {}).items():
            week = parse_week_id(wk_id)
            for member, score in members.items():
                self._scores[(league, season, week, member)] = WeeklyScore.from_dict(score)
        for member, standing in doc.get('standings', {}).items():
            self._standings[(league, season, member)] = SeasonStanding.from_dict(standing)
        for week in doc.get('frozen_weeks', []):
            self._frozen.add((league, season, int(week)))
        for wk_id, status in doc.get('backfill_status', {}).items():
            self._backfill_status[(league, season, parse_week_id(wk_id))] = status

    def _document(self, league: str, season: int) -> dict:
        picks: dict[str, dict[str, list[dict]]] = {}
        for key, pick in sorted(self._picks.items()):
            if key.league != league or key.season != season:
                continue
            entry = PickDocument(
                position=pick.position, slot=pick.slot, player_id=pick.player_id,
                game_id=pick.game_id, locked=pick.locked,
            )
            picks.setdefault(week_id(key.week), {}).setdefault(key.member, []).append(
                entry.model_dump(mode='json')
            )

        usage: dict[str, dict] = {}
        for (ssn, lg, member, position), players in self._usage.items():
            if lg == league and ssn == season and players:
                usage.setdefault(member, {'positions': {}})['positions'][position.value] = dict(players)

        scores: dict[str, dict[str, dict]] = {}
        for (lg, ssn, week, member), score in self._scores.items():
            if lg == league and ssn == season:
                scores.setdefault(week_id(week), {})[member] = score.to_dict()

        return {
            'league': league,
            'season': season,
            'picks': picks,
            'usage': usage,
            'scores': scores,
            'standings': {
                member: standing.to_dict()
                for (lg, ssn, member), standing in self._standings.items()
                if lg == league and ssn == season
            },
            'frozen_weeks': sorted(wk for lg, ssn, wk in self._frozen if lg == league and ssn == season),
            'backfill_status': {
                week_id(wk): status
                for (lg, ssn, wk), status in self._backfill_status.items()
                if lg == league and ssn == season
            },
        }

    def _changed(self, league: str, season: int) -> None:
        if self._loading:
            return
        save_json(self._path(league, season), self._document(league, season))
