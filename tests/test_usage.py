"""Unit tests for season usage tracking."""

from conftest import LEAGUE, SEASON
from threeman.constants import Position


class TestUsageTracker:
    """Tests for recording and querying player usage."""

    def test_record_and_query(self, usage):
        assert usage.record_usage(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc', 1) is True
        assert usage.has_used(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc')
        assert usage.first_used_week(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc') == 1
        assert usage.used_players(SEASON, LEAGUE, 'alice', Position.QB) == {'qb-kc'}

    def test_record_is_idempotent(self, usage):
        """Recording again (retried lock) keeps the first week."""
        usage.record_usage(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc', 1)
        assert usage.record_usage(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc', 4) is False
        assert usage.first_used_week(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc') == 1

    def test_exclude_week(self, usage):
        usage.record_usage(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc', 3)
        assert not usage.has_used(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc', exclude_week=3)
        assert usage.has_used(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc', exclude_week=4)

    def test_usage_is_per_position(self, usage):
        usage.record_usage(SEASON, LEAGUE, 'alice', Position.RB, 'flex-dal', 2)
        assert not usage.has_used(SEASON, LEAGUE, 'alice', Position.WR, 'flex-dal')
        assert usage.has_used_anywhere(SEASON, LEAGUE, 'alice', 'flex-dal')

    def test_usage_is_isolated(self, usage):
        """Leagues, seasons and members do not share usage."""
        usage.record_usage(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc', 1)
        assert not usage.has_used(SEASON, 'other', 'alice', Position.QB, 'qb-kc')
        assert not usage.has_used(SEASON + 1, LEAGUE, 'alice', Position.QB, 'qb-kc')
        assert not usage.has_used(SEASON, LEAGUE, 'bob', Position.QB, 'qb-kc')

    def test_undo_usage(self, usage):
        usage.record_usage(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc', 1)
        assert usage.undo_usage(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc') is True
        assert not usage.has_used(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc')
        assert usage.undo_usage(SEASON, LEAGUE, 'alice', Position.QB, 'qb-kc') is False
