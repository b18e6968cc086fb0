"""
LOTTO645 Feature Extractors
===========================

Pure, deterministic functions over a draw history. Every extractor
accepts anything `to_history_frame` accepts; per-number results are
numpy arrays of shape (45,) indexed by (number - 1).

Components:
- Frequency: overall, recent-window and bonus-ball counts
- Gaps: rounds since last appearance (never seen -> latest round)
- Cycles: mean round delta between consecutive appearances (per number and pooled)
- Trend: recent window vs the window before it
- Co-occurrence: 45x45 pair counts and per-number pair bonus
- Distributions: parity, low/high, ranges, colors, end digits
- Set metrics: AC value, odd/high/consecutive/prime counts, carryover
"""

from collections import Counter
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, Iterable, List, Tuple

import numpy as np
from loguru import logger

from .draws import (
    MAX_NUMBER,
    MIN_NUMBER,
    NUMBER_RANGE,
    NUMBERS_PER_DRAW,
    History,
    latest_round,
    number_matrix,
    presence_matrix,
    to_history_frame,
)

DEFAULT_RECENT_WINDOW = 50
DEFAULT_TREND_WINDOW = 20
DEFAULT_TREND_LIMIT = 5
DEFAULT_TREND_MARGIN = 1
# Expected average gap for a 6-of-45 draw
DEFAULT_CYCLE_FALLBACK = 7.5
HIGH_NUMBER_THRESHOLD = 23

PRIME_NUMBERS = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43)
DOUBLE_NUMBERS = (11, 22, 33, 44)
SYMMETRIC_SUM = MIN_NUMBER + MAX_NUMBER

RANGE_LABELS = ('1-10', '11-20', '21-30', '31-40', '41-45')
COLOR_NAMES = ('yellow', 'blue', 'red', 'gray', 'green')


def range_bucket(number: int) -> int:
    """Bucket index 0-4 for 1-10, 11-20, 21-30, 31-40, 41-45."""
    return min((int(number) - 1) // 10, len(RANGE_LABELS) - 1)


def ball_color(number: int) -> str:
    """Ball color; the color buckets are the range buckets."""
    return COLOR_NAMES[range_bucket(number)]


def expected_frequency(total_draws: int) -> float:
    """Average appearances per number for a history of `total_draws` draws."""
    return (total_draws * NUMBERS_PER_DRAW) / NUMBER_RANGE


# ---------------------------------------------------------------------------
# Per-number extractors
# ---------------------------------------------------------------------------

def _frequency_from(presence: np.ndarray) -> np.ndarray:
    return presence.sum(axis=0).astype(np.int64)


def _last_seen_from(presence: np.ndarray, rounds: np.ndarray) -> np.ndarray:
    """Round of most recent appearance per number, 0 when never seen."""
    if presence.shape[0] == 0:
        return np.zeros(NUMBER_RANGE, dtype=np.int64)
    seen = presence.any(axis=0)
    # Rows are most-recent-first, so the first True row is the last appearance
    newest_idx = presence.argmax(axis=0)
    return np.where(seen, rounds[newest_idx], 0).astype(np.int64)


def _spans_from(presence: np.ndarray, rounds: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Appearance counts and (newest - oldest) round span per number.

    The sum of consecutive deltas between appearances telescopes to the span.
    """
    counts = presence.sum(axis=0)
    if presence.shape[0] == 0:
        return counts, np.zeros(NUMBER_RANGE, dtype=np.int64)
    newest = rounds[presence.argmax(axis=0)]
    oldest = rounds[presence.shape[0] - 1 - presence[::-1].argmax(axis=0)]
    return counts, np.where(counts > 0, newest - oldest, 0)


def _cycles_from(presence: np.ndarray, rounds: np.ndarray, fallback: float) -> np.ndarray:
    cycles = np.full(NUMBER_RANGE, float(fallback))
    counts, spans = _spans_from(presence, rounds)
    repeated = counts >= 2
    cycles[repeated] = spans[repeated] / (counts[repeated] - 1)
    return cycles


def _cooccurrence_from(presence: np.ndarray) -> np.ndarray:
    as_float = presence.astype(np.float64)
    matrix = as_float.T @ as_float
    np.fill_diagonal(matrix, 0)
    return matrix.astype(np.int64)


def frequency(history: History) -> np.ndarray:
    """
    Count of appearances per number across the full history.

    Returns:
        int array of shape (45,)
    """
    frame = to_history_frame(history)
    return _frequency_from(presence_matrix(frame))


def recent_frequency(history: History, window: int = DEFAULT_RECENT_WINDOW) -> np.ndarray:
    """Appearances per number in the most recent min(window, draws) draws."""
    frame = to_history_frame(history)
    size = max(0, min(window, len(frame)))
    if 0 < len(frame) < window:
        logger.debug(f"Recent window clamped to {size} draws (requested {window})")
    return _frequency_from(presence_matrix(frame.iloc[:size]))


def last_seen_gaps(history: History) -> np.ndarray:
    """
    Rounds since each number last appeared, relative to the latest round.

    A number absent from the whole history gets `latest_round - 0`, the
    maximal gap. An empty history yields all zeros.
    """
    frame = to_history_frame(history)
    if frame.empty:
        return np.zeros(NUMBER_RANGE, dtype=np.int64)
    rounds = frame['round'].to_numpy(dtype=np.int64)
    return latest_round(frame) - _last_seen_from(presence_matrix(frame), rounds)


def average_cycles(history: History, fallback: float = DEFAULT_CYCLE_FALLBACK) -> np.ndarray:
    """
    Mean round delta between consecutive appearances of each number.

    Numbers with fewer than two appearances get `fallback`.
    """
    frame = to_history_frame(history)
    rounds = frame['round'].to_numpy(dtype=np.int64)
    return _cycles_from(presence_matrix(frame), rounds, fallback)


def overall_average_cycle(history: History, fallback: float = DEFAULT_CYCLE_FALLBACK) -> float:
    """
    Pooled mean of every consecutive appearance delta across all numbers.

    Each delta counts once, so frequently drawn numbers weigh more than in
    a mean of the per-number cycles. `fallback` when no number repeats.
    """
    frame = to_history_frame(history)
    rounds = frame['round'].to_numpy(dtype=np.int64)
    counts, spans = _spans_from(presence_matrix(frame), rounds)
    repeated = counts >= 2
    gap_count = int((counts[repeated] - 1).sum())
    if gap_count == 0:
        return float(fallback)
    return float(spans[repeated].sum() / gap_count)


def bonus_frequency(history: History) -> np.ndarray:
    """Times each number was drawn as the bonus ball, shape (45,)."""
    frame = to_history_frame(history)
    bonuses = frame['bonus'].to_numpy(dtype=np.int64) - MIN_NUMBER
    return np.bincount(bonuses, minlength=NUMBER_RANGE).astype(np.int64)


@dataclass
class TrendAnalysis:
    """Container for recent-vs-previous window comparison"""
    rising: List[int]
    falling: List[int]
    delta: np.ndarray  # Shape: (45,) - recent count minus previous count
    window: int


def analyze_trend(
    history: History,
    window: int = DEFAULT_TREND_WINDOW,
    limit: int = DEFAULT_TREND_LIMIT,
    margin: int = DEFAULT_TREND_MARGIN,
) -> TrendAnalysis:
    """
    Compare the most recent `window` draws against the `window` draws before them.

    A number is rising when recent > previous + margin and falling when
    previous > recent + margin. Both lists keep the first `limit` numbers
    found in ascending number order.
    """
    frame = to_history_frame(history)
    total = len(frame)
    recent_end = min(window, total)
    previous_end = min(2 * window, total)

    recent = _frequency_from(presence_matrix(frame.iloc[:recent_end]))
    previous = _frequency_from(presence_matrix(frame.iloc[recent_end:previous_end]))
    delta = recent - previous

    rising = [n for n in range(MIN_NUMBER, MAX_NUMBER + 1)
              if recent[n - 1] > previous[n - 1] + margin][:limit]
    falling = [n for n in range(MIN_NUMBER, MAX_NUMBER + 1)
               if previous[n - 1] > recent[n - 1] + margin][:limit]

    return TrendAnalysis(rising=rising, falling=falling, delta=delta, window=window)


def cooccurrence_matrix(history: History) -> np.ndarray:
    """
    Symmetric 45x45 matrix where [i][j] = draws in which i+1 and j+1 appeared together.
    The diagonal is zero.
    """
    frame = to_history_frame(history)
    return _cooccurrence_from(presence_matrix(frame))


def pair_bonus(history: History) -> np.ndarray:
    """Sum of co-occurrence counts over every pair containing each number."""
    return cooccurrence_matrix(history).sum(axis=1)


@dataclass
class PairCount:
    pair: Tuple[int, int]
    count: int


def top_pairs(history: History, limit: int = 10) -> List[PairCount]:
    """Most frequent pairs, ordered by count desc then by pair ascending."""
    matrix = cooccurrence_matrix(history)
    rows, cols = np.triu_indices(NUMBER_RANGE, k=1)
    counts = matrix[rows, cols]

    order = np.lexsort((cols, rows, -counts))
    result = []
    for idx in order[:limit]:
        if counts[idx] == 0:
            break
        result.append(PairCount(pair=(int(rows[idx]) + 1, int(cols[idx]) + 1), count=int(counts[idx])))
    return result


@dataclass
class FeatureSet:
    """Everything the scorer needs, extracted in one pass over the history"""
    total_draws: int
    latest_round: int
    latest_numbers: Tuple[int, ...]
    frequency: np.ndarray
    recent_frequency: np.ndarray
    gaps: np.ndarray
    avg_cycles: np.ndarray
    trend: TrendAnalysis
    pair_bonus: np.ndarray

    @property
    def expected_frequency(self) -> float:
        return expected_frequency(self.total_draws)


def extract_features(
    history: History,
    recent_window: int = DEFAULT_RECENT_WINDOW,
    trend_window: int = DEFAULT_TREND_WINDOW,
    trend_limit: int = DEFAULT_TREND_LIMIT,
    cycle_fallback: float = DEFAULT_CYCLE_FALLBACK,
) -> FeatureSet:
    """
    Extract all per-number features with a single presence matrix.

    Args:
        history: Draw history in any order
        recent_window: Size of the "hot" window
        trend_window: Size of each trend window
        trend_limit: Maximum rising/falling numbers
        cycle_fallback: Cycle for numbers seen fewer than twice

    Returns:
        FeatureSet
    """
    frame = to_history_frame(history)
    presence = presence_matrix(frame)
    rounds = frame['round'].to_numpy(dtype=np.int64)
    newest_round = latest_round(frame)

    if frame.empty:
        logger.warning("No draws available, features default to neutral values")

    features = FeatureSet(
        total_draws=len(frame),
        latest_round=newest_round,
        latest_numbers=tuple(int(n) for n in number_matrix(frame.iloc[:1]).ravel()),
        frequency=_frequency_from(presence),
        recent_frequency=_frequency_from(presence[:max(0, min(recent_window, len(frame)))]),
        gaps=(newest_round - _last_seen_from(presence, rounds)) if len(frame) else np.zeros(NUMBER_RANGE, dtype=np.int64),
        avg_cycles=_cycles_from(presence, rounds, cycle_fallback),
        trend=analyze_trend(frame, window=trend_window, limit=trend_limit),
        pair_bonus=_cooccurrence_from(presence).sum(axis=1),
    )

    logger.debug(
        f"Features extracted (draws={features.total_draws}, latest={features.latest_round}, "
        f"rising={features.trend.rising})"
    )
    return features


# ---------------------------------------------------------------------------
# Distribution extractors
# ---------------------------------------------------------------------------

def odd_even_distribution(history: History) -> Dict[str, int]:
    """Draw count per 'odd:even' pattern, from '0:6' to '6:0'."""
    numbers = number_matrix(to_history_frame(history))
    odd_counts = Counter(int(c) for c in (numbers % 2 == 1).sum(axis=1))
    return {f"{odd}:{NUMBERS_PER_DRAW - odd}": odd_counts.get(odd, 0)
            for odd in range(NUMBERS_PER_DRAW + 1)}


def high_low_distribution(history: History, threshold: int = HIGH_NUMBER_THRESHOLD) -> Dict[str, int]:
    """Draw count per 'low:high' pattern (high = number >= threshold)."""
    numbers = number_matrix(to_history_frame(history))
    high_counts = Counter(int(c) for c in (numbers >= threshold).sum(axis=1))
    return {f"{NUMBERS_PER_DRAW - high}:{high}": high_counts.get(high, 0)
            for high in range(NUMBERS_PER_DRAW + 1)}


def range_distribution(history: History) -> Dict[str, int]:
    """Numbers drawn per range bucket (1-10, 11-20, 21-30, 31-40, 41-45)."""
    numbers = number_matrix(to_history_frame(history)).ravel()
    buckets = np.minimum((numbers - 1) // 10, len(RANGE_LABELS) - 1)
    counts = np.bincount(buckets, minlength=len(RANGE_LABELS))
    return {label: int(counts[i]) for i, label in enumerate(RANGE_LABELS)}


def color_distribution(history: History) -> Dict[str, int]:
    """Numbers drawn per ball color."""
    by_range = range_distribution(history)
    return {color: by_range[label] for color, label in zip(COLOR_NAMES, RANGE_LABELS)}


def end_digit_distribution(history: History) -> Dict[int, int]:
    """Numbers drawn per last digit 0-9."""
    numbers = number_matrix(to_history_frame(history)).ravel()
    counts = np.bincount(numbers % 10, minlength=10)
    return {digit: int(counts[digit]) for digit in range(10)}


def ac_values(history: History) -> np.ndarray:
    """AC value of every draw, most recent first."""
    numbers = number_matrix(to_history_frame(history))
    return np.array([ac_value(row) for row in numbers], dtype=np.int64)


def carryover_counts(history: History) -> np.ndarray:
    """
    Numbers shared by each draw and the draw immediately before it.

    Returns:
        int array of length draws - 1, most recent pair first
    """
    presence = presence_matrix(to_history_frame(history))
    if presence.shape[0] < 2:
        return np.zeros(0, dtype=np.int64)
    return (presence[:-1] & presence[1:]).sum(axis=1).astype(np.int64)


@dataclass
class SumStatistics:
    average: float
    minimum: int
    maximum: int
    recommended_min: int
    recommended_max: int


def sum_statistics(history: History, spread: int = 23) -> SumStatistics:
    """Sum of the 6 main numbers per draw: average, extremes and avg +/- spread."""
    sums = number_matrix(to_history_frame(history)).sum(axis=1)
    if len(sums) == 0:
        return SumStatistics(average=0.0, minimum=0, maximum=0, recommended_min=0, recommended_max=0)

    average = float(np.mean(sums))
    return SumStatistics(
        average=round(average, 2),
        minimum=int(sums.min()),
        maximum=int(sums.max()),
        recommended_min=int(round(average - spread)),
        recommended_max=int(round(average + spread)),
    )


# ---------------------------------------------------------------------------
# Single-set metrics
# ---------------------------------------------------------------------------

def _distinct(numbers: Iterable[int]) -> List[int]:
    # Metrics count distinct members only
    return sorted(set(int(n) for n in numbers))


def ac_value(numbers: Iterable[int]) -> int:
    """
    Arithmetic complexity: distinct pairwise differences minus (k - 1).

    For a 6-number set that is "distinct differences - 5", so [1..6] -> 0
    and the maximum is 10.
    """
    distinct = _distinct(numbers)
    if len(distinct) < 2:
        return 0
    differences = {b - a for a, b in combinations(distinct, 2)}
    return len(differences) - (len(distinct) - 1)


def count_odd(numbers: Iterable[int]) -> int:
    return sum(1 for n in _distinct(numbers) if n % 2 == 1)


def count_high(numbers: Iterable[int], threshold: int = HIGH_NUMBER_THRESHOLD) -> int:
    return sum(1 for n in _distinct(numbers) if n >= threshold)


def count_consecutive(numbers: Iterable[int]) -> int:
    """Adjacent pairs (after sorting) that differ by exactly 1."""
    distinct = _distinct(numbers)
    return sum(1 for a, b in zip(distinct, distinct[1:]) if b - a == 1)


def count_prime(numbers: Iterable[int]) -> int:
    return sum(1 for n in _distinct(numbers) if n in PRIME_NUMBERS)


def count_carryover(current: Iterable[int], previous: Iterable[int]) -> int:
    return len(set(current) & set(previous))


def end_digit_counts(numbers: Iterable[int]) -> Dict[int, int]:
    return dict(Counter(n % 10 for n in _distinct(numbers)))


def max_end_digit_repeat(numbers: Iterable[int]) -> int:
    counts = end_digit_counts(numbers)
    return max(counts.values()) if counts else 0
