"""
Tests for the full analysis report
"""

import json

import pytest

from lotto645.analysis import average_adjacent_gap, run_full_analysis, special_numbers


class TestFullAnalysis:
    """Tests for run_full_analysis"""

    def test_empty_history(self):
        report = run_full_analysis([])
        assert report['total_rounds'] == 0
        assert report['latest_round'] == 0
        assert report['pairs'] == []
        assert report['carryover'] == {'zero': 0, 'one': 0, 'two_plus': 0}
        assert report['sum_range']['average'] == 0.0
        assert report['odd_even']['most_common_pattern'] == '3:3'

    def test_report_structure(self, sample_history):
        report = run_full_analysis(sample_history)
        for key in ('latest_round', 'total_rounds', 'frequency', 'number_stats', 'hot_cold',
                    'not_appeared', 'avg_cycle', 'odd_even', 'high_low', 'sum_range', 'ac_value',
                    'consecutive', 'pairs', 'prime_count', 'end_digit', 'carryover', 'trend',
                    'avg_gap', 'color', 'ranges', 'special_numbers'):
            assert key in report
        assert report['total_rounds'] == 120
        assert report['latest_round'] == 120

    def test_json_safe(self, sample_history):
        json.dumps(run_full_analysis(sample_history))

    def test_counts_are_consistent(self, sample_history):
        report = run_full_analysis(sample_history)
        assert sum(report['odd_even']['pattern_distribution'].values()) == 120
        assert sum(report['high_low']['pattern_distribution'].values()) == 120
        assert sum(report['carryover'].values()) == 119
        assert sum(report['ac_value']['distribution'].values()) == 120
        assert sum(report['color'].values()) == pytest.approx(1.0)
        assert report['odd_even']['odd_ratio'] + report['odd_even']['even_ratio'] == pytest.approx(1.0)
        assert len(report['hot_cold']['hot']) == 5
        assert len(report['hot_cold']['cold']) == 5
        assert len(report['pairs']) == 10

    def test_not_appeared_sorted_by_gap(self, sample_history):
        gaps = [entry['gap'] for entry in run_full_analysis(sample_history)['not_appeared']]
        assert gaps == sorted(gaps, reverse=True)

    def test_frequency_leaders(self, always_seven_history):
        report = run_full_analysis(always_seven_history)
        assert report['frequency']['most'][0] == {'number': 7, 'count': 100}
        assert report['hot_cold']['hot'][0] == 7
        assert report['frequency']['least'][0] == {'number': 40, 'count': 0}
        assert report['not_appeared'][0] == {'number': 40, 'gap': 100}

    def test_frequency_map_and_number_stats(self, always_seven_history):
        report = run_full_analysis(always_seven_history)
        assert set(report['frequency']['all']) == set(range(1, 46))
        assert report['frequency']['all'][7] == 100
        assert sum(report['frequency']['all'].values()) == 600

        stats = {entry['number']: entry for entry in report['number_stats']}
        assert len(stats) == 45
        # 45 is the bonus of every draw and never a main number
        assert stats[45] == {'number': 45, 'as_main': 0, 'as_bonus': 100, 'total_count': 100}
        assert stats[7] == {'number': 7, 'as_main': 100, 'as_bonus': 0, 'total_count': 100}

    def test_avg_cycle(self):
        history = [
            {'round': 1, 'numbers': [1, 2, 3, 4, 5, 6], 'bonus': 7},
            {'round': 3, 'numbers': [1, 2, 3, 4, 5, 6], 'bonus': 7},
        ]
        assert run_full_analysis(history)['avg_cycle'] == pytest.approx(2.0)
        assert run_full_analysis([])['avg_cycle'] == pytest.approx(7.5)


class TestHelpers:
    """Tests for report helpers"""

    def test_special_numbers(self):
        history = [
            {'round': 1, 'numbers': [1, 11, 22, 24, 45, 30], 'bonus': 7},
            {'round': 2, 'numbers': [2, 3, 4, 5, 6, 7], 'bonus': 8},
        ]
        result = special_numbers(history)
        # doubles 11 and 22 in round 1; symmetric pairs 1+45 and 22+24 in round 1
        assert result['double_avg'] == pytest.approx(1.0)
        assert result['symmetric_avg'] == pytest.approx(1.0)

    def test_average_adjacent_gap(self):
        history = [{'round': 1, 'numbers': [1, 3, 5, 7, 9, 11], 'bonus': 2}]
        assert average_adjacent_gap(history) == pytest.approx(2.0)
        assert average_adjacent_gap([]) == 0.0
