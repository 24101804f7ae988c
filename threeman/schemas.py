"""Pydantic schemas for configuration, provider payloads and stored JSON."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .constants import DEFAULT_LOCK_LEAD_MINUTES, REGULAR_SEASON_WEEKS, Position


class LeagueRules(BaseModel):
    """Per-league pick and scoring options."""

    double_pick_positions: list[Position] = Field(default_factory=list)
    double_pick_policy: str = Field(default='none', pattern=r'^(none|best|average)$')
    max_players_per_team: int | None = Field(default=None, ge=1, le=3)
    allow_cross_position_reuse: bool = True
    lock_lead_minutes: int = Field(default=DEFAULT_LOCK_LEAD_MINUTES, ge=0, le=24 * 60)
    week_deadlines: dict[int, datetime] = Field(default_factory=dict)

    @field_validator('week_deadlines')
    @classmethod
    def validate_deadlines(cls, v):
        """Ensure deadline weeks are real weeks and timestamps are timezone-aware."""
        for week, deadline in v.items():
            if not (1 <= week <= REGULAR_SEASON_WEEKS):
                raise ValueError(f'Week must be 1-{REGULAR_SEASON_WEEKS}, got {week}')
            if deadline.tzinfo is None:
                raise ValueError(f'Deadline for week {week} must include a timezone')
        return v

    class Config:
        extra = 'forbid'


class LeagueConfig(BaseModel):
    """Global configuration settings."""

    current_season: int = Field(..., ge=2020, le=2035)
    regular_season_weeks: int = Field(default=REGULAR_SEASON_WEEKS, ge=1, le=18)
    backfill_workers: int = Field(default=4, ge=1, le=32)
    default_rules: LeagueRules = Field(default_factory=LeagueRules)
    leagues: dict[str, LeagueRules] = Field(default_factory=dict)

    class Config:
        extra = 'forbid'


class BoxScoreAthlete(BaseModel):
    """One athlete row inside a box-score category."""

    athlete: dict[str, Any]
    stats: list[str] = Field(default_factory=list)

    @field_validator('athlete')
    @classmethod
    def validate_athlete(cls, v):
        """Ensure the athlete carries an id."""
        if not v.get('id'):
            raise ValueError('Athlete entry is missing an id')
        return v


class BoxScoreCategory(BaseModel):
    """A stat category (passing, rushing, ...) for one team."""

    name: str
    labels: list[str] = Field(default_factory=list)
    athletes: list[BoxScoreAthlete] = Field(default_factory=list)


class BoxScoreTeam(BaseModel):
    """Box-score statistics for one side of a game."""

    team: dict[str, Any] = Field(default_factory=dict)
    statistics: list[BoxScoreCategory] = Field(default_factory=list)


class BoxScore(BaseModel):
    """Game summary payload from the statistics provider."""

    players: list[BoxScoreTeam] = Field(default_factory=list)


class GameSummary(BaseModel):
    """Top-level game summary response."""

    boxscore: BoxScore | None = None
    header: dict | None = None


class PickDocument(BaseModel):
    """Stored pick slot."""

    position: Position
    slot: int = Field(default=0, ge=0, le=1)
    player_id: str = Field(..., min_length=1)
    game_id: str = Field(..., min_length=1)
    locked: bool = False

    class Config:
        extra = 'forbid'


class UsageDocument(BaseModel):
    """Stored player usage: player_id -> first used week, per position."""

    positions: dict[Position, dict[str, int]] = Field(default_factory=dict)

    class Config:
        extra = 'forbid'
