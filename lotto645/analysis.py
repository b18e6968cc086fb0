"""
LOTTO645 Full Analysis Report
=============================

Aggregates the feature extractors into one JSON-safe summary of a draw
history: frequency leaders, main and bonus counts, hot/cold numbers,
gaps, the pooled average cycle, parity and low/high patterns, sum range,
AC values, consecutive and prime statistics, end digits, carryover,
trend, colors and special numbers.
"""

from typing import Dict, List

import numpy as np
from loguru import logger

from .draws import (
    MAX_NUMBER,
    MIN_NUMBER,
    NUMBERS_PER_DRAW,
    History,
    latest_round,
    number_matrix,
    to_history_frame,
)
from .features import (
    DEFAULT_RECENT_WINDOW,
    DEFAULT_TREND_WINDOW,
    DOUBLE_NUMBERS,
    HIGH_NUMBER_THRESHOLD,
    PRIME_NUMBERS,
    SYMMETRIC_SUM,
    ac_values,
    analyze_trend,
    bonus_frequency,
    carryover_counts,
    color_distribution,
    end_digit_distribution,
    frequency,
    high_low_distribution,
    last_seen_gaps,
    odd_even_distribution,
    overall_average_cycle,
    range_distribution,
    recent_frequency,
    sum_statistics,
    top_pairs,
)
from .utils import convert_numpy_types


def _ranked(values: np.ndarray, limit: int, descending: bool = True) -> List[Dict]:
    """[{number, count}] ordered by value (desc or asc), ties by number asc."""
    numbers = np.arange(MIN_NUMBER, MAX_NUMBER + 1)
    keys = -values if descending else values
    order = np.lexsort((numbers, keys))
    return [{'number': int(numbers[i]), 'count': int(values[i])} for i in order[:limit]]


def _most_common(distribution: Dict[str, int], default: str) -> str:
    if not distribution or max(distribution.values()) == 0:
        return default
    return max(distribution.items(), key=lambda item: item[1])[0]


def _shares(counts: Dict, total: int) -> Dict:
    return {key: (value / total if total else 0.0) for key, value in counts.items()}


def special_numbers(history: History) -> Dict[str, float]:
    """
    Average per draw of doubles (11, 22, 33, 44) and of symmetric pairs
    (two drawn numbers summing to 46).
    """
    numbers = number_matrix(to_history_frame(history))
    if len(numbers) == 0:
        return {'double_avg': 0.0, 'symmetric_avg': 0.0}

    doubles = np.isin(numbers, DOUBLE_NUMBERS).sum(axis=1)
    symmetric = [
        sum(1 for n in row if n < SYMMETRIC_SUM - n and (SYMMETRIC_SUM - n) in row)
        for row in numbers.tolist()
    ]
    return {
        'double_avg': float(doubles.mean()),
        'symmetric_avg': float(np.mean(symmetric)),
    }


def average_adjacent_gap(history: History) -> float:
    """Mean difference between neighbouring numbers of each sorted draw."""
    numbers = number_matrix(to_history_frame(history))
    if len(numbers) == 0:
        return 0.0
    return float(np.diff(np.sort(numbers, axis=1), axis=1).mean())


def run_full_analysis(
    history: History,
    recent_window: int = DEFAULT_RECENT_WINDOW,
    hot_count: int = 5,
    pair_count: int = 10,
) -> Dict:
    """
    Build the full statistics report.

    Args:
        history: Draw history in any order
        recent_window: Window for hot/cold numbers
        hot_count: Size of the hot, cold and frequency leader lists
        pair_count: Number of top co-occurring pairs

    Returns:
        JSON-safe dict; an empty history yields total_rounds 0 and neutral values
    """
    frame = to_history_frame(history)
    total = len(frame)

    if total == 0:
        logger.warning("Full analysis requested on an empty history")

    numbers = number_matrix(frame)
    freq = frequency(frame)
    bonus_freq = bonus_frequency(frame)
    recent = recent_frequency(frame, recent_window)
    gaps = last_seen_gaps(frame)
    trend = analyze_trend(frame, window=DEFAULT_TREND_WINDOW)

    odd_even = odd_even_distribution(frame)
    high_low = high_low_distribution(frame)
    odd_total = int((numbers % 2 == 1).sum())
    high_total = int((numbers >= HIGH_NUMBER_THRESHOLD).sum())
    slots = total * NUMBERS_PER_DRAW

    acs = ac_values(frame)
    ac_distribution = {int(k): int(v) for k, v in zip(*np.unique(acs, return_counts=True))}

    consecutive = (np.diff(np.sort(numbers, axis=1), axis=1) == 1).sum(axis=1)
    primes = np.isin(numbers, PRIME_NUMBERS).sum(axis=1)

    digits = end_digit_distribution(frame)
    digit_order = sorted(digits, key=lambda d: (-digits[d], d))

    carry = carryover_counts(frame)
    sums = sum_statistics(frame)

    report = {
        'latest_round': latest_round(frame),
        'total_rounds': total,
        'frequency': {
            'most': _ranked(freq, hot_count),
            'least': _ranked(freq, hot_count, descending=False),
            'all': {n: int(freq[n - MIN_NUMBER]) for n in range(MIN_NUMBER, MAX_NUMBER + 1)},
        },
        'number_stats': [
            {
                'number': n,
                'as_main': int(freq[n - MIN_NUMBER]),
                'as_bonus': int(bonus_freq[n - MIN_NUMBER]),
                'total_count': int(freq[n - MIN_NUMBER] + bonus_freq[n - MIN_NUMBER]),
            }
            for n in range(MIN_NUMBER, MAX_NUMBER + 1)
        ],
        'hot_cold': {
            'hot': [entry['number'] for entry in _ranked(recent, hot_count)],
            'cold': [entry['number'] for entry in _ranked(recent, hot_count, descending=False)],
        },
        'not_appeared': [
            {'number': entry['number'], 'gap': entry['count']}
            for entry in _ranked(gaps, hot_count * 2)
        ],
        'avg_cycle': overall_average_cycle(frame),
        'odd_even': {
            'odd_ratio': odd_total / slots if slots else 0.0,
            'even_ratio': (slots - odd_total) / slots if slots else 0.0,
            'most_common_pattern': _most_common(odd_even, '3:3'),
            'pattern_distribution': odd_even,
        },
        'high_low': {
            'low_ratio': (slots - high_total) / slots if slots else 0.0,
            'high_ratio': high_total / slots if slots else 0.0,
            'most_common_pattern': _most_common(high_low, '3:3'),
            'pattern_distribution': high_low,
        },
        'sum_range': {
            'average': sums.average,
            'min': sums.minimum,
            'max': sums.maximum,
            'recommended': {'min': sums.recommended_min, 'max': sums.recommended_max},
        },
        'ac_value': {
            'average': float(acs.mean()) if total else 0.0,
            'distribution': ac_distribution,
            'current': int(acs[0]) if total else 0,
        },
        'consecutive': {
            'has_consecutive_ratio': float((consecutive > 0).mean()) if total else 0.0,
            'avg_consecutive_count': float(consecutive.mean()) if total else 0.0,
        },
        'pairs': [{'pair': list(p.pair), 'count': p.count} for p in top_pairs(frame, pair_count)],
        'prime_count': float(primes.mean()) if total else 0.0,
        'end_digit': {
            'most': digit_order[0] if total else None,
            'least': digit_order[-1] if total else None,
            'distribution': digits,
        },
        'carryover': {
            'zero': int((carry == 0).sum()),
            'one': int((carry == 1).sum()),
            'two_plus': int((carry >= 2).sum()),
        },
        'trend': {'rising': trend.rising, 'falling': trend.falling},
        'avg_gap': average_adjacent_gap(frame),
        'color': _shares(color_distribution(frame), slots),
        'ranges': _shares(range_distribution(frame), slots),
        'special_numbers': special_numbers(frame),
    }

    logger.debug(f"Full analysis built for {total} draws (latest round {report['latest_round']})")
    return convert_numpy_types(report)
