"""League configuration management."""

from datetime import timedelta
from functools import lru_cache
from pathlib import Path

from .schemas import LeagueConfig, LeagueRules
from .utils import load_json

CONFIG_PATH = Path(__file__).parent.parent / 'data' / 'league_config.json'


@lru_cache(maxsize=1)
def get_config() -> LeagueConfig:
    """
    Season settings and per-league rules from data/league_config.json.

    Read once and cached; call clear_config_cache() after editing the file.
    A league missing from ``leagues`` plays under ``default_rules``.

    Raises:
        FileNotFoundError: league_config.json is missing
        ValueError: A rule is invalid (unknown double pick policy, bad deadline)
    """
    return load_json(CONFIG_PATH, schema=LeagueConfig)


def get_current_season() -> int:
    """Get the current season from config."""
    return get_config().current_season


def get_regular_season_weeks() -> int:
    """Get number of regular season weeks from config."""
    return get_config().regular_season_weeks


def get_backfill_workers() -> int:
    """Get the size of the backfill worker pool."""
    return get_config().backfill_workers


def get_default_rules() -> LeagueRules:
    """Get the rules applied to leagues without their own entry."""
    return get_config().default_rules


def get_league_rules(league: str) -> LeagueRules:
    """Get rules for a league, falling back to the defaults."""
    config = get_config()
    return config.leagues.get(league, config.default_rules)


def get_lock_lead(league: str | None = None) -> timedelta:
    """Get how long before kickoff picks lock."""
    rules = get_league_rules(league) if league else get_default_rules()
    return timedelta(minutes=rules.lock_lead_minutes)


def clear_config_cache() -> None:
    """Forget the cached config so the next call re-reads the file."""
    get_config.cache_clear()
