"""Pick legality rules and sanity checks for scoring results."""

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from .constants import Position
from .models import Game, Pick, PlayerInfo, SeasonStanding, WeeklyScore
from .schedule import ScheduleBook, as_utc, normalize_team
from .schemas import LeagueRules
from .usage import UsageTracker


class RejectionCode(str, Enum):
    """Why a proposed pick set was refused."""

    EMPTY_PICKS = 'EmptyPicks'
    WEEK_LOCKED = 'WeekLocked'
    PICK_LOCKED = 'PickLocked'
    UNKNOWN_PLAYER = 'UnknownPlayer'
    INELIGIBLE_POSITION = 'IneligiblePosition'
    NO_GAME_THIS_WEEK = 'NoGameThisWeek'
    GAME_MISMATCH = 'GameMismatch'
    PLAYER_ALREADY_USED = 'PlayerAlreadyUsed'
    TOO_MANY_PICKS = 'TooManyPicks'
    DUPLICATE_PLAYER = 'DuplicatePlayer'
    TEAM_LIMIT_EXCEEDED = 'TeamLimitExceeded'


@dataclass(frozen=True)
class RejectionReason:
    """User-facing reason a pick set failed validation."""
    code: RejectionCode
    message: str
    position: Optional[Position] = None
    player_id: Optional[str] = None

    def __str__(self) -> str:
        return f'{self.code.value}: {self.message}'


@dataclass(frozen=True)
class ProposedPick:
    """A member's requested selection for one slot."""
    position: Position
    player_id: str
    game_id: Optional[str] = None


@dataclass(frozen=True)
class ValidatedPicks:
    """Immutable result of a successful validation; the caller persists it."""
    league: str
    season: int
    week: int
    member: str
    picks: tuple[Pick, ...]
    lock_threshold: Optional[datetime] = None


@dataclass
class _Candidate:
    proposal: ProposedPick
    slot: int
    player: Optional[PlayerInfo] = None
    game: Optional[Game] = None
    carried: Optional[Pick] = None  # existing locked pick resubmitted unchanged


class PickValidator:
    """
    Decides whether a proposed weekly pick set is legal.

    Checks run in a fixed order and stop at the first failure:

    1. the week is still open (and no locked pick is being changed;
       locked picks the proposal leaves out are carried over)
    2. each player is eligible for the slot
    3. each player has a game in the target week
    4. no player repeats at a position already used this season
    5. league constraints (slot counts, duplicates, per-team limits)
    """

    def __init__(self, schedule: ScheduleBook, usage: UsageTracker, rules: Optional[LeagueRules] = None):
        self.schedule = schedule
        self.usage = usage
        self.rules = rules or LeagueRules()

    def lock_threshold(self, week: int, games: Sequence[Game]) -> Optional[datetime]:
        """
        Moment after which the selection can no longer change.

        The earliest kickoff (less the league's lock lead) and the explicit
        week deadline are both candidates; the earlier one wins.
        """
        candidates = []
        if games:
            earliest = min(as_utc(g.kickoff) for g in games)
            candidates.append(earliest - timedelta(minutes=self.rules.lock_lead_minutes))
        deadline = self.rules.week_deadlines.get(week)
        if deadline is not None:
            candidates.append(as_utc(deadline))
        return min(candidates) if candidates else None

    def validate(
        self,
        proposed: Sequence[ProposedPick],
        league: str,
        season: int,
        week: int,
        member: str,
        now: datetime,
        existing: Sequence[Pick] = (),
    ) -> ValidatedPicks | RejectionReason:
        """
        Validate a member's pick set for a week.

        Args:
            proposed: Requested selections; a position appears twice only for double picks
            league: League id
            season: Season year
            week: Week number
            member: Member id
            now: Current time (timezone-aware; naive values are taken as UTC)
            existing: The member's stored picks for the week

        Returns:
            ValidatedPicks on success, otherwise the RejectionReason for the first failed rule
        """
        if not proposed:
            return RejectionReason(RejectionCode.EMPTY_PICKS, 'No picks submitted')

        now = as_utc(now)
        existing_by_slot = {(p.position, p.slot): p for p in existing}
        candidates = self._resolve(proposed, week, existing_by_slot)

        rejection = (
            self._check_open(candidates, week, now, existing_by_slot)
            or self._check_eligibility(candidates)
            or self._check_games(candidates, week)
            or self._check_no_repeat(candidates, league, season, week, member)
            or self._check_league_constraints(candidates)
        )
        if rejection:
            return rejection

        picks = tuple(
            c.carried or Pick(
                league=league,
                season=season,
                week=week,
                member=member,
                position=c.proposal.position,
                player_id=c.proposal.player_id,
                game_id=c.game.game_id,
                slot=c.slot,
            )
            for c in candidates
        )
        open_games = [c.game for c in candidates if c.carried is None and c.game]
        return ValidatedPicks(
            league=league,
            season=season,
            week=week,
            member=member,
            picks=picks,
            lock_threshold=self.lock_threshold(week, open_games),
        )

    def _resolve(self, proposed, week, existing_by_slot) -> list[_Candidate]:
        candidates = []
        slots: Counter = Counter()
        for proposal in proposed:
            slot = slots[proposal.position]
            slots[proposal.position] += 1
            candidate = _Candidate(proposal=proposal, slot=slot)
            candidate.player = self.schedule.get_player(proposal.player_id)
            candidate.game = self.schedule.game_for_player(proposal.player_id, week)
            current = existing_by_slot.get((proposal.position, slot))
            if (
                current is not None
                and current.locked
                and current.player_id == proposal.player_id
                and proposal.game_id in (None, current.game_id)
            ):
                candidate.carried = current
            candidates.append(candidate)

        # Locked slots left out of the proposal stay in the selection.
        proposed_slots = {(c.proposal.position, c.slot) for c in candidates}
        for current in sorted(existing_by_slot.values(), key=lambda p: (p.position.value, p.slot)):
            if not current.locked or (current.position, current.slot) in proposed_slots:
                continue
            candidates.append(_Candidate(
                proposal=ProposedPick(current.position, current.player_id, current.game_id),
                slot=current.slot,
                player=self.schedule.get_player(current.player_id),
                game=self.schedule.get_game(current.game_id),
                carried=current,
            ))
        return candidates

    def _check_open(self, candidates, week, now, existing_by_slot) -> Optional[RejectionReason]:
        for c in candidates:
            current = existing_by_slot.get((c.proposal.position, c.slot))
            if current is not None and current.locked and c.carried is None:
                return RejectionReason(
                    RejectionCode.PICK_LOCKED,
                    f'{c.proposal.position.value} pick is locked ({current.player_id})',
                    c.proposal.position,
                    c.proposal.player_id,
                )

        open_games = [c.game for c in candidates if c.carried is None and c.game]
        if not any(c.carried is None for c in candidates):
            return None
        threshold = self.lock_threshold(week, open_games)
        if threshold is not None and now >= threshold:
            return RejectionReason(
                RejectionCode.WEEK_LOCKED,
                f'Picks for week {week} locked at {threshold.isoformat()}',
            )
        return None

    def _check_eligibility(self, candidates) -> Optional[RejectionReason]:
        for c in candidates:
            if c.carried:
                continue
            pos = c.proposal.position
            if c.player is None:
                return RejectionReason(
                    RejectionCode.UNKNOWN_PLAYER,
                    f'{pos.value}: unknown player {c.proposal.player_id}',
                    pos,
                    c.proposal.player_id,
                )
            if pos not in c.player.eligible_positions:
                return RejectionReason(
                    RejectionCode.INELIGIBLE_POSITION,
                    f'{pos.value}: {c.player.name} is not eligible for this position',
                    pos,
                    c.proposal.player_id,
                )
        return None

    def _check_games(self, candidates, week) -> Optional[RejectionReason]:
        for c in candidates:
            if c.carried:
                continue
            pos = c.proposal.position
            if c.game is None:
                return RejectionReason(
                    RejectionCode.NO_GAME_THIS_WEEK,
                    f'{pos.value}: {c.player.name} ({c.player.team}) has no game in week {week}',
                    pos,
                    c.proposal.player_id,
                )
            if c.proposal.game_id is not None and c.proposal.game_id != c.game.game_id:
                return RejectionReason(
                    RejectionCode.GAME_MISMATCH,
                    f'{pos.value}: {c.player.name} plays in game {c.game.game_id}, '
                    f'not {c.proposal.game_id}',
                    pos,
                    c.proposal.player_id,
                )
        return None

    def _check_no_repeat(self, candidates, league, season, week, member) -> Optional[RejectionReason]:
        for c in candidates:
            if c.carried:
                continue
            pos = c.proposal.position
            player_id = c.proposal.player_id
            if self.rules.allow_cross_position_reuse:
                used = self.usage.has_used(season, league, member, pos, player_id, exclude_week=week)
            else:
                used = self.usage.has_used_anywhere(season, league, member, player_id, exclude_week=week)
            if used:
                return RejectionReason(
                    RejectionCode.PLAYER_ALREADY_USED,
                    f'{pos.value}: {c.player.name} was already used this season',
                    pos,
                    player_id,
                )
        return None

    def _check_league_constraints(self, candidates) -> Optional[RejectionReason]:
        per_position = Counter(c.proposal.position for c in candidates)
        for pos, count in per_position.items():
            allowed = 2 if pos in self.rules.double_pick_positions else 1
            if count > allowed:
                return RejectionReason(
                    RejectionCode.TOO_MANY_PICKS,
                    f'{count} {pos.value} picks submitted (max {allowed})',
                    pos,
                )

        seen: set[str] = set()
        for c in candidates:
            if c.proposal.player_id in seen:
                return RejectionReason(
                    RejectionCode.DUPLICATE_PLAYER,
                    f'{c.proposal.player_id} selected more than once',
                    c.proposal.position,
                    c.proposal.player_id,
                )
            seen.add(c.proposal.player_id)

        limit = self.rules.max_players_per_team
        if limit:
            teams = Counter(
                normalize_team(c.player.team) for c in candidates if c.player is not None
            )
            for team, count in teams.items():
                if count > limit:
                    return RejectionReason(
                        RejectionCode.TEAM_LIMIT_EXCEEDED,
                        f'{count} players from {team} (max {limit})',
                    )
        return None


def validate_weekly_score(score: WeeklyScore) -> list[str]:
    """
    Check that a weekly score is reasonable and internally consistent.

    Sanity checks:
    - Slot points add up to the total
    - Total in a plausible range (-15 to 150)

    Returns:
        List of warning messages (empty if no issues)
    """
    warnings = []

    slot_sum = sum(score.slot_points.values(), Decimal(0))
    if slot_sum != score.total_points:
        warnings.append(
            f'{score.member} week {score.week}: slot sum ({slot_sum}) != total ({score.total_points})'
        )

    if score.total_points > 150:
        warnings.append(
            f'{score.member} week {score.week} scored {score.total_points} pts '
            f'(unusually high - check for scoring bug)'
        )
    elif score.total_points < -15:
        warnings.append(
            f'{score.member} week {score.week} scored {score.total_points} pts '
            f'(unusually low - check for scoring bug)'
        )

    return warnings


def validate_standing(standing: SeasonStanding) -> list[str]:
    """Check a standing's derived fields against its weekly totals."""
    errors = []
    totals = [total for _, total in standing.weekly_totals]

    if sum(totals, Decimal(0)) != standing.season_total_points:
        errors.append(f'{standing.member}: season total does not match weekly totals')
    if standing.weeks_played != len(totals):
        errors.append(f'{standing.member}: weeks played {standing.weeks_played} != {len(totals)}')
    if totals and max(totals) != standing.best_week_points:
        errors.append(f'{standing.member}: best week points do not match weekly totals')

    return errors
