"""
LOTTO645 Number Scoring Engine
==============================

Combines extracted features into one 0-100 score per number (1-45).

Each feature adds a bounded term to a raw score:
- Not-appeared gap (longer absence scores higher)
- Recent hot-window frequency
- Rising trend bonus
- Overall frequency closeness to the theoretical average
- Pairwise co-occurrence bonus
- Prize optimization (business heuristic, swappable)
- Carryover bonus for the numbers of the latest draw

The raw vector is then min-max normalized to [0, 100].
"""

from dataclasses import asdict, dataclass
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np
from loguru import logger

from .draws import MAX_NUMBER, MIN_NUMBER, NUMBER_RANGE, History
from .features import (
    DEFAULT_CYCLE_FALLBACK,
    DEFAULT_RECENT_WINDOW,
    DEFAULT_TREND_LIMIT,
    DEFAULT_TREND_WINDOW,
    FeatureSet,
    extract_features,
)

NEUTRAL_SCORE = 50.0
SCORE_DECIMALS = 1


@dataclass(frozen=True)
class ScoringWeights:
    """Scorer configuration. Weights need not sum to 1; the output is re-normalized."""
    gap: float = 0.25
    recent: float = 0.20
    trend: float = 0.15
    frequency: float = 0.15
    pair: float = 0.10
    prize: float = 0.15
    carryover_bonus: float = 5.0
    prize_high_threshold: int = 32
    prize_low_threshold: int = 12
    recent_window: int = DEFAULT_RECENT_WINDOW
    trend_window: int = DEFAULT_TREND_WINDOW
    trend_limit: int = DEFAULT_TREND_LIMIT
    cycle_fallback: float = DEFAULT_CYCLE_FALLBACK


class PrizeOptimizer:
    """
    Prize optimization adjustment.

    Low numbers (birthday range) are over-selected by players, so sharing a
    jackpot is more likely when they win. Numbers <= low_threshold lose
    weight * 50 points and numbers >= high_threshold gain weight * 100.
    This is a business heuristic, not a statistical one.
    """

    def __init__(self, weight: float = 0.15, high_threshold: int = 32, low_threshold: int = 12):
        self.weight = weight
        self.high_threshold = high_threshold
        self.low_threshold = low_threshold

    def __call__(self, number: int) -> float:
        if number >= self.high_threshold:
            return self.weight * 100
        if number <= self.low_threshold:
            return -self.weight * 50
        return 0.0


def no_prize_adjustment(number: int) -> float:
    """Drop-in replacement for PrizeOptimizer that leaves every number untouched."""
    return 0.0


@dataclass(frozen=True)
class NumberStat:
    """Per-number statistics and composite score"""
    number: int
    score: float            # 0.0 - 100.0
    raw_score: float
    frequency: int
    recent_frequency: int
    gap: int                # rounds since last seen
    avg_cycle: float
    trend_delta: int
    pair_bonus: int
    rising: bool

    def to_dict(self) -> Dict:
        data = asdict(self)
        data['last_appeared_gap'] = data.pop('gap')
        return data


def normalize_scores(raw: np.ndarray, decimals: int = SCORE_DECIMALS) -> np.ndarray:
    """
    Min-max normalize to [0, 100]; a flat vector maps to 50 everywhere.
    """
    raw = np.asarray(raw, dtype=np.float64)
    low, high = raw.min(), raw.max()
    if high == low:
        return np.full(raw.shape, NEUTRAL_SCORE)
    return np.round((raw - low) / (high - low) * 100, decimals)


def _ratio(values: np.ndarray, maximum: float) -> np.ndarray:
    if maximum <= 0:
        return np.zeros(NUMBER_RANGE)
    return values / maximum


class Scorer:
    """
    Weighted-additive number scorer.

    Stateless apart from its configuration: two calls with the same history
    return identical results.
    """

    def __init__(
        self,
        weights: Optional[ScoringWeights] = None,
        prize_adjustment: Optional[Callable[[int], float]] = None,
    ):
        """
        Initialize scorer.

        Args:
            weights: Feature weights and windows (defaults when None)
            prize_adjustment: Callable number -> points; defaults to a
                PrizeOptimizer built from the weights
        """
        self.weights = weights or ScoringWeights()
        self.prize_adjustment = prize_adjustment or PrizeOptimizer(
            weight=self.weights.prize,
            high_threshold=self.weights.prize_high_threshold,
            low_threshold=self.weights.prize_low_threshold,
        )
        logger.info(f"Scorer initialized (weights={self.weights})")

    def extract(self, history: History) -> FeatureSet:
        w = self.weights
        return extract_features(
            history,
            recent_window=w.recent_window,
            trend_window=w.trend_window,
            trend_limit=w.trend_limit,
            cycle_fallback=w.cycle_fallback,
        )

    def raw_scores(self, features: FeatureSet) -> np.ndarray:
        """
        Additive raw score per number, shape (45,).

        Every ratio term is bounded by its weight * 100.
        """
        w = self.weights
        score = np.zeros(NUMBER_RANGE)

        # Not-appeared gap (longer absence scores higher)
        score += _ratio(features.gaps, features.gaps.max()) * w.gap * 100

        # Recent hot window
        score += _ratio(features.recent_frequency, features.recent_frequency.max()) * w.recent * 100

        # Rising trend bonus
        rising = np.zeros(NUMBER_RANGE, dtype=bool)
        rising[[n - 1 for n in features.trend.rising]] = True
        score += rising * w.trend * 100

        # Overall frequency, closest to the theoretical average scores highest
        expected = features.expected_frequency
        if expected > 0:
            closeness = np.clip(1 - np.abs(features.frequency - expected) / expected, 0.0, 1.0)
            score += closeness * w.frequency * 100

        # Pair co-occurrence bonus
        score += _ratio(features.pair_bonus, features.pair_bonus.max()) * w.pair * 100

        # Prize optimization
        score += np.array([self.prize_adjustment(n) for n in range(MIN_NUMBER, MAX_NUMBER + 1)],
                          dtype=np.float64)

        # Carryover from the latest draw
        for n in features.latest_numbers:
            score[n - 1] += w.carryover_bonus

        return score

    def compute_scores(self, history: History) -> List[NumberStat]:
        """
        Score every number 1-45.

        Args:
            history: Draw history in any order

        Returns:
            45 NumberStat entries sorted by score desc, ties by number asc
        """
        features = self.extract(history)

        if features.total_draws == 0:
            raw = np.zeros(NUMBER_RANGE)
        else:
            raw = self.raw_scores(features)
        normalized = normalize_scores(raw)

        rising = set(features.trend.rising)
        stats = [
            NumberStat(
                number=n,
                score=float(normalized[n - 1]),
                raw_score=float(raw[n - 1]),
                frequency=int(features.frequency[n - 1]),
                recent_frequency=int(features.recent_frequency[n - 1]),
                gap=int(features.gaps[n - 1]),
                avg_cycle=float(features.avg_cycles[n - 1]),
                trend_delta=int(features.trend.delta[n - 1]),
                pair_bonus=int(features.pair_bonus[n - 1]),
                rising=n in rising,
            )
            for n in range(MIN_NUMBER, MAX_NUMBER + 1)
        ]
        stats.sort(key=lambda s: (-s.score, s.number))

        logger.debug(
            f"Scores computed for {features.total_draws} draws "
            f"(top={[s.number for s in stats[:5]]})"
        )
        return stats

    def top_pool(self, history: History, size: int = 20) -> List[NumberStat]:
        """Highest-scoring `size` numbers."""
        return self.compute_scores(history)[:size]


def score_map(stats: Iterable[NumberStat]) -> Dict[int, float]:
    return {s.number: s.score for s in stats}
