"""Map provider-specific statistics onto PlayerGameStatistics.

Two provider shapes are understood:

* flat per-player records, using either a sports API's camelCase names
  or nflreadpy's weekly player-stats columns
* box-score summaries grouped by category (passing, rushing, receiving,
  fumbles), where each athlete row is a list of strings aligned with the
  category's labels
"""

import logging
import math
import re
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from .exceptions import StatsProviderError
from .models import PlayerGameStatistics
from .schemas import BoxScoreCategory, GameSummary

logger = logging.getLogger('threeman.normalizer')

# Canonical field -> provider column names, first present wins
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    'passing_yards': ('passing_yards', 'passingYards'),
    'passing_tds': ('passing_tds', 'passingTD', 'passingTouchdowns'),
    'interceptions': ('interceptions', 'passing_interceptions'),
    'rushing_yards': ('rushing_yards', 'rushingYards'),
    'rushing_tds': ('rushing_tds', 'rushingTD', 'rushingTouchdowns'),
    'receiving_yards': ('receiving_yards', 'receivingYards'),
    'receiving_tds': ('receiving_tds', 'receivingTD', 'receivingTouchdowns'),
    'receptions': ('receptions',),
    'fumbles_lost': ('fumbles_lost', 'fumblesLost'),
    'two_point_conversions': ('two_point_conversions', 'twoPtConversions'),
    'offensive_fumble_recovery_tds': (
        'offensive_fumble_recovery_tds',
        'offensiveFumbleRecoveryTD',
        'fumble_recovery_tds',
    ),
}

# Canonical field -> provider columns summed when no direct alias is present
SUMMED_FIELDS: dict[str, tuple[str, ...]] = {
    'fumbles_lost': ('sack_fumbles_lost', 'rushing_fumbles_lost', 'receiving_fumbles_lost'),
    'two_point_conversions': (
        'passing_2pt_conversions',
        'rushing_2pt_conversions',
        'receiving_2pt_conversions',
    ),
}

YARDAGE_FIELDS = frozenset({'passing_yards', 'rushing_yards', 'receiving_yards'})

_LEADING_NUMBER = re.compile(r'^\s*(-?\d+(?:\.\d+)?)')


def _to_int(value: Any) -> int:
    """Coerce a provider value to int; absent or unparseable values are 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return 0
        return int(value)
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        return int(float(match.group(1))) if match else 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _lookup(raw: Mapping[str, Any], canonical: str) -> int:
    for column in FIELD_ALIASES[canonical]:
        if column in raw and raw[column] is not None:
            return _to_int(raw[column])
    summed = SUMMED_FIELDS.get(canonical)
    if summed:
        return sum(_to_int(raw.get(column)) for column in summed)
    return 0


def normalize_stats(raw: Mapping[str, Any] | None) -> PlayerGameStatistics:
    """
    Convert one flat provider record into canonical statistics.

    Args:
        raw: Provider record (dict or polars named row); None means no data

    Returns:
        PlayerGameStatistics; counts are clamped at zero, yards may be negative
    """
    if not raw:
        return PlayerGameStatistics.empty()

    values = {}
    for canonical in PlayerGameStatistics.field_names():
        value = _lookup(raw, canonical)
        if canonical not in YARDAGE_FIELDS and value < 0:
            logger.warning(f'Negative {canonical}={value} from provider, clamping to 0')
            value = 0
        values[canonical] = value
    return PlayerGameStatistics(**values)


def _apply_category(accum: dict[str, int], category: BoxScoreCategory, values: list[str]) -> None:
    name = category.name.lower()
    for label, raw_value in zip(category.labels, values):
        label = label.upper()
        value = _to_int(raw_value)
        if name == 'passing':
            if label == 'YDS':
                accum['passing_yards'] = value
            elif label == 'TD':
                accum['passing_tds'] = value
            elif label == 'INT':
                accum['interceptions'] = value
        elif name == 'rushing':
            if label == 'YDS':
                accum['rushing_yards'] = value
            elif label == 'TD':
                accum['rushing_tds'] = value
            elif label == 'FUM':
                accum['fumbles_lost'] += value
        elif name == 'receiving':
            if label == 'YDS':
                accum['receiving_yards'] = value
            elif label == 'TD':
                accum['receiving_tds'] = value
            elif label == 'REC':
                accum['receptions'] = value
            elif label == 'FUM':
                accum['fumbles_lost'] += value
        elif name == 'fumbles':
            # LOST follows FUM in the label order, so lost fumbles win
            if label in ('FUM', 'LOST'):
                accum['fumbles_lost'] = value


def normalize_box_score(payload: Mapping[str, Any]) -> dict[str, PlayerGameStatistics]:
    """
    Parse a game summary payload into statistics per provider player id.

    Args:
        payload: Game summary with 'boxscore' -> 'players' -> 'statistics'

    Returns:
        Dict mapping provider player id to PlayerGameStatistics

    Raises:
        StatsProviderError: If the payload does not have the expected shape
    """
    try:
        summary = GameSummary.model_validate(payload)
    except ValidationError as e:
        raise StatsProviderError(f'Malformed box score payload: {e}') from e

    if summary.boxscore is None:
        return {}

    accumulated: dict[str, dict[str, int]] = {}
    for team in summary.boxscore.players:
        for category in team.statistics:
            for row in category.athletes:
                player_id = str(row.athlete['id'])
                accum = accumulated.setdefault(
                    player_id, {name: 0 for name in PlayerGameStatistics.field_names()}
                )
                _apply_category(accum, category, row.stats)

    return {player_id: normalize_stats(values) for player_id, values in accumulated.items()}


def box_score_status(payload: Mapping[str, Any]) -> str:
    """Game status name from a summary payload (e.g. 'STATUS_FINAL')."""
    header = payload.get('header') or {}
    competitions = header.get('competitions') or [{}]
    status = (competitions[0] or {}).get('status') or {}
    return (status.get('type') or {}).get('name') or 'STATUS_SCHEDULED'
