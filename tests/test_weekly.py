"""Unit tests for weekly score aggregation."""

from decimal import Decimal

import pytest

from conftest import make_pick, stats_provider
from threeman.constants import Position
from threeman.models import PlayerGameStatistics
from threeman.schemas import LeagueRules
from threeman.weekly import compute_weekly_score, get_double_pick_policy, provider_lookup

QB, RB, WR = Position.QB, Position.RB, Position.WR

STATS = {
    'qb-kc': PlayerGameStatistics(passing_yards=320, passing_tds=2, interceptions=1),  # 22.80
    'qb-phi': PlayerGameStatistics(passing_yards=150, rushing_yards=40, rushing_tds=1),  # 16.00
    'rb-phi': PlayerGameStatistics(rushing_yards=100, rushing_tds=1, receptions=3),  # 22.00
    'wr-dal': PlayerGameStatistics(receptions=6, receiving_yards=85),  # 14.50
}


def lookup(player_id, game_id):
    return STATS.get(player_id)


def locked_week(member='alice'):
    return [
        make_pick(member, QB, 'qb-kc', locked=True),
        make_pick(member, RB, 'rb-phi', locked=True),
        make_pick(member, WR, 'wr-dal', locked=True),
    ]


class TestComputeWeeklyScore:
    """Tests for scoring a member's week."""

    def test_locked_picks_scored(self):
        weekly = compute_weekly_score('alice', 3, locked_week(), lookup)
        assert weekly.slot_points == {QB: Decimal('22.80'), RB: Decimal('22.00'), WR: Decimal('14.50')}
        assert weekly.total_points == Decimal('59.30')
        assert weekly.double_pick_positions == ()

    def test_unlocked_picks_contribute_nothing(self):
        picks = locked_week()
        picks[2] = make_pick('alice', WR, 'wr-dal', locked=False)
        weekly = compute_weekly_score('alice', 3, picks, lookup)
        assert weekly.points_for(WR) == Decimal('0.00')
        assert weekly.total_points == Decimal('44.80')

    def test_missing_stats_score_zero(self):
        picks = [make_pick('alice', WR, 'wr-buf', locked=True)]
        weekly = compute_weekly_score('alice', 3, picks, lookup)
        assert weekly.total_points == Decimal('0.00')
        assert set(weekly.slot_points) == {QB, RB, WR}

    def test_no_picks(self):
        weekly = compute_weekly_score('alice', 3, [], lookup)
        assert weekly.total_points == Decimal('0.00')

    def test_idempotent(self):
        """Identical picks and stats give identical scores."""
        first = compute_weekly_score('alice', 3, locked_week(), lookup)
        second = compute_weekly_score('alice', 3, locked_week(), lookup)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_published_score_read_only(self):
        weekly = compute_weekly_score('alice', 3, locked_week(), lookup)
        with pytest.raises(TypeError):
            weekly.slot_points[QB] = Decimal('99.00')
        assert weekly.total_points == Decimal('59.30')

    def test_pick_for_other_member_rejected(self):
        with pytest.raises(ValueError, match='does not belong'):
            compute_weekly_score('bob', 3, locked_week('alice'), lookup)

    def test_pick_for_other_week_rejected(self):
        with pytest.raises(ValueError):
            compute_weekly_score('alice', 4, locked_week(), lookup)

    def test_override_replaces_slot(self):
        weekly = compute_weekly_score('alice', 3, locked_week(), lookup, overrides={RB: Decimal('5.5')})
        assert weekly.points_for(RB) == Decimal('5.50')
        assert weekly.override_positions == (RB,)
        assert weekly.total_points == Decimal('42.80')


class TestDoublePick:
    """Tests for double-pick policies."""

    def double_qb(self):
        return locked_week() + [make_pick('alice', QB, 'qb-phi', locked=True, slot=1)]

    def test_default_policy_sums_pair(self):
        rules = LeagueRules(double_pick_positions=[QB])
        weekly = compute_weekly_score('alice', 3, self.double_qb(), lookup, rules=rules)
        assert weekly.points_for(QB) == Decimal('38.80')
        assert weekly.double_pick_positions == (QB,)

    def test_best_policy(self):
        rules = LeagueRules(double_pick_positions=[QB], double_pick_policy='best')
        weekly = compute_weekly_score('alice', 3, self.double_qb(), lookup, rules=rules)
        assert weekly.points_for(QB) == Decimal('22.80')

    def test_average_policy(self):
        rules = LeagueRules(double_pick_positions=[QB], double_pick_policy='average')
        weekly = compute_weekly_score('alice', 3, self.double_qb(), lookup, rules=rules)
        assert weekly.points_for(QB) == Decimal('19.40')

    def test_two_picks_without_rule_rejected(self):
        with pytest.raises(ValueError):
            compute_weekly_score('alice', 3, self.double_qb(), lookup)

    def test_unknown_policy(self):
        with pytest.raises(ValueError, match='Unknown double pick policy'):
            get_double_pick_policy('triple')


class TestProviderLookup:
    """Tests for wrapping raw providers."""

    def test_raw_record_normalized(self):
        provider = stats_provider({'qb-kc': {'passingYards': 320, 'passingTD': 2, 'interceptions': 1}})
        stats = provider_lookup(provider)('qb-kc', 'g3-kc-buf')
        assert stats == STATS['qb-kc']
        provider.get_player_stats.assert_called_once_with('qb-kc', 'g3-kc-buf')

    def test_missing_record(self):
        provider = stats_provider({})
        assert provider_lookup(provider)('qb-kc', 'g3-kc-buf') is None
