"""Unit tests for provider statistics normalization."""

import logging

import pytest

from threeman.exceptions import StatsProviderError
from threeman.models import PlayerGameStatistics
from threeman.normalizer import box_score_status, normalize_box_score, normalize_stats


def make_summary(status='STATUS_FINAL'):
    """Box score for one game: a QB and an RB on the home side."""
    qb = {'id': '3139477', 'displayName': 'Patrick Mahomes', 'headshot': {'href': 'https://example.test/qb.png'}}
    rb = {'id': '4241457', 'displayName': 'Isiah Pacheco'}
    return {
        'header': {'competitions': [{'status': {'type': {'name': status}}}]},
        'boxscore': {
            'players': [
                {
                    'team': {'abbreviation': 'KC', 'logos': [{'href': 'https://example.test/kc.png'}]},
                    'statistics': [
                        {
                            'name': 'passing',
                            'labels': ['C/ATT', 'YDS', 'AVG', 'TD', 'INT'],
                            'athletes': [{'athlete': qb, 'stats': ['22/31', '320', '10.3', '2', '1']}],
                        },
                        {
                            'name': 'rushing',
                            'labels': ['CAR', 'YDS', 'AVG', 'TD', 'LONG'],
                            'athletes': [
                                {'athlete': qb, 'stats': ['4', '18', '4.5', '0', '9']},
                                {'athlete': rb, 'stats': ['20', '100', '5.0', '1', '22']},
                            ],
                        },
                        {
                            'name': 'receiving',
                            'labels': ['REC', 'YDS', 'AVG', 'TD', 'LONG', 'TGTS'],
                            'athletes': [{'athlete': rb, 'stats': ['3', '15', '5.0', '0', '8', '4']}],
                        },
                        {
                            'name': 'fumbles',
                            'labels': ['FUM', 'LOST', 'REC'],
                            'athletes': [{'athlete': rb, 'stats': ['2', '1', '0']}],
                        },
                    ],
                }
            ]
        },
    }


class TestNormalizeStats:
    """Tests for flat provider records."""

    def test_camel_case_record(self):
        """Sports API field names map onto canonical fields."""
        raw = {'passingYards': 320, 'passingTD': 2, 'interceptions': 1, 'receptions': 0}
        stats = normalize_stats(raw)
        assert stats == PlayerGameStatistics(passing_yards=320, passing_tds=2, interceptions=1)

    def test_nflreadpy_columns_are_summed(self):
        """Fumble and two-point columns are split by play type in nflreadpy."""
        raw = {
            'passing_yards': 210,
            'passing_interceptions': 2,
            'sack_fumbles_lost': 1,
            'rushing_fumbles_lost': 1,
            'receiving_fumbles_lost': 0,
            'passing_2pt_conversions': 1,
            'rushing_2pt_conversions': 1,
        }
        stats = normalize_stats(raw)
        assert stats.interceptions == 2
        assert stats.fumbles_lost == 2
        assert stats.two_point_conversions == 2

    def test_direct_column_wins_over_sum(self):
        raw = {'fumbles_lost': 1, 'sack_fumbles_lost': 3}
        assert normalize_stats(raw).fumbles_lost == 1

    def test_missing_and_nan_values_are_zero(self):
        raw = {'passing_yards': float('nan'), 'rushing_yards': None, 'receptions': 'n/a'}
        assert normalize_stats(raw) == PlayerGameStatistics.empty()

    def test_numeric_strings_and_floats(self):
        raw = {'rushing_yards': '45', 'receptions': 6.0, 'receiving_yards': '72.0'}
        stats = normalize_stats(raw)
        assert stats.rushing_yards == 45
        assert stats.receptions == 6
        assert stats.receiving_yards == 72

    def test_none_record_is_empty(self):
        assert normalize_stats(None) == PlayerGameStatistics.empty()
        assert normalize_stats({}) == PlayerGameStatistics.empty()

    def test_negative_yards_are_kept(self):
        assert normalize_stats({'rushing_yards': -7}).rushing_yards == -7

    def test_negative_counts_are_clamped(self, caplog):
        """Negative counting stats are provider errors; they become 0 with a warning."""
        with caplog.at_level(logging.WARNING, logger='threeman.normalizer'):
            stats = normalize_stats({'receptions': -2})
        assert stats.receptions == 0
        assert 'Negative receptions' in caplog.text

    def test_unknown_columns_ignored(self):
        raw = {'player_display_name': 'CeeDee Lamb', 'receiving_yards': 88, 'target_share': 0.31}
        assert normalize_stats(raw) == PlayerGameStatistics(receiving_yards=88)


class TestNormalizeBoxScore:
    """Tests for category/label box scores."""

    def test_players_parsed_by_category(self):
        stats = normalize_box_score(make_summary())
        assert set(stats) == {'3139477', '4241457'}

        qb = stats['3139477']
        assert qb.passing_yards == 320
        assert qb.passing_tds == 2
        assert qb.interceptions == 1
        assert qb.rushing_yards == 18

        rb = stats['4241457']
        assert rb.rushing_yards == 100
        assert rb.rushing_tds == 1
        assert rb.receptions == 3
        assert rb.receiving_yards == 15

    def test_fumbles_category_uses_lost(self):
        """FUM is followed by LOST, so only lost fumbles count."""
        assert normalize_box_score(make_summary())['4241457'].fumbles_lost == 1

    def test_no_boxscore_yet(self):
        assert normalize_box_score({'header': {}}) == {}

    def test_athlete_without_id_is_malformed(self):
        payload = {
            'boxscore': {
                'players': [
                    {'statistics': [{'name': 'passing', 'labels': ['YDS'], 'athletes': [{'athlete': {}, 'stats': ['10']}]}]}
                ]
            }
        }
        with pytest.raises(StatsProviderError, match='Malformed box score'):
            normalize_box_score(payload)

    def test_wrong_shape_is_malformed(self):
        with pytest.raises(StatsProviderError):
            normalize_box_score({'boxscore': {'players': 'not-a-list'}})


class TestBoxScoreStatus:
    """Tests for game status extraction."""

    def test_final(self):
        assert box_score_status(make_summary()) == 'STATUS_FINAL'

    def test_missing_header_defaults_to_scheduled(self):
        assert box_score_status({}) == 'STATUS_SCHEDULED'
        assert box_score_status({'header': {'competitions': []}}) == 'STATUS_SCHEDULED'
