"""
LOTTO645 Validation Layer
=========================

Historical back-test of the scorer and Monte-Carlo simulation of a pool.

Backtester: walk-forward evaluation. For every cut-point the scorer only
sees draws at or before the cut, and its top-20 pool is checked against
the draw that followed.

Simulator: uniform 6-of-45 draws without replacement from an injected
numpy Generator, tallied in vectorized batches. The exact hypergeometric
distribution (scipy.stats) is reported next to the empirical one.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from loguru import logger
from scipy import stats

from .draws import (
    MAX_NUMBER,
    MIN_NUMBER,
    NUMBER_RANGE,
    NUMBERS_PER_DRAW,
    History,
    as_number_list,
    number_matrix,
    to_history_frame,
)
from .exceptions import InvalidPoolError
from .scoring import Scorer
from .utils import convert_numpy_types

HIT_LEVELS = tuple(range(NUMBERS_PER_DRAW + 1))


@dataclass(frozen=True)
class ValidationSettings:
    warmup: int = 50                 # first cut index; the newest draws are never targets
    min_history: int = 20            # skip cut-points with fewer draws behind them
    pool_size: int = 20
    simulation_iterations: int = 100_000
    batch_size: int = 50_000


def _empty_distribution() -> Dict[int, int]:
    return {k: 0 for k in HIT_LEVELS}


def _distribution_from_hits(hits: np.ndarray) -> Dict[int, int]:
    counts = np.bincount(np.asarray(hits, dtype=np.int64), minlength=len(HIT_LEVELS))
    return {k: int(counts[k]) for k in HIT_LEVELS}


def _summarize(distribution: Dict[int, int], total: int):
    if total == 0:
        return 0.0, 0.0
    avg_hits = sum(k * c for k, c in distribution.items()) / total
    hit_4plus = sum(c for k, c in distribution.items() if k >= 4) / total
    return avg_hits, hit_4plus


def _validate_pool(pool: Sequence) -> List[int]:
    numbers = as_number_list(pool)
    if not numbers:
        raise InvalidPoolError("Pool must not be empty")
    if len(set(numbers)) != len(numbers):
        raise InvalidPoolError(f"Pool contains duplicate numbers: {numbers}")
    if any(n < MIN_NUMBER or n > MAX_NUMBER for n in numbers):
        raise InvalidPoolError(f"Pool numbers must be between {MIN_NUMBER} and {MAX_NUMBER}")
    return numbers


@dataclass
class RoundHit:
    """Outcome of one back-test cut-point"""
    round: int
    actual: List[int]
    pool: List[int]
    hits: int

    def to_dict(self) -> Dict:
        return {'round': self.round, 'actual': self.actual, 'pool': self.pool, 'hits': self.hits}


@dataclass
class BacktestResult:
    hit_distribution: Dict[int, int] = field(default_factory=_empty_distribution)
    avg_hits: float = 0.0
    hit_4plus_rate: float = 0.0
    rounds_evaluated: int = 0
    records: List[RoundHit] = field(default_factory=list)

    def to_dict(self, include_records: bool = True) -> Dict:
        data = {
            'hit_distribution': self.hit_distribution,
            'avg_hits': round(self.avg_hits, 3),
            'hit_4plus_rate': round(self.hit_4plus_rate, 4),
            'rounds_evaluated': self.rounds_evaluated,
        }
        if include_records:
            data['records'] = [r.to_dict() for r in self.records]
        return convert_numpy_types(data)


class Backtester:
    """
    Walk-forward back-test of a Scorer.

    With the history most-recent-first, cut index i scores history[i:]
    and checks the pool against history[i - 1], for i from `warmup`
    to D - 1.
    """

    def __init__(self, scorer: Optional[Scorer] = None, settings: Optional[ValidationSettings] = None):
        self.scorer = scorer or Scorer()
        self.settings = settings or ValidationSettings()
        logger.info(
            f"Backtester initialized (warmup={self.settings.warmup}, "
            f"min_history={self.settings.min_history}, pool_size={self.settings.pool_size})"
        )

    def run(self, history: History, rounds: Optional[int] = None) -> BacktestResult:
        """
        Back-test the scorer over the history.

        Args:
            history: Draw history in any order
            rounds: Maximum number of cut-points, most recent first (all when None)

        Returns:
            BacktestResult; zero counts when no cut-point qualifies
        """
        frame = to_history_frame(history)
        total = len(frame)
        s = self.settings

        if total == 0:
            logger.warning("Backtest requested on an empty history")
            return BacktestResult()

        numbers = number_matrix(frame)
        rounds_col = frame['round'].to_numpy()
        cut_points = [i for i in range(max(s.warmup, 1), total) if total - i >= s.min_history]
        if rounds is not None:
            cut_points = cut_points[:max(0, rounds)]

        records = []
        for i in cut_points:
            pool = [stat.number for stat in self.scorer.top_pool(frame.iloc[i:], s.pool_size)]
            actual = [int(n) for n in numbers[i - 1]]
            hits = len(set(pool) & set(actual))
            records.append(RoundHit(round=int(rounds_col[i - 1]), actual=actual, pool=pool, hits=hits))

        if not records:
            logger.warning(
                f"No back-test cut-point qualifies ({total} draws, warmup={s.warmup}, "
                f"min_history={s.min_history})"
            )
            return BacktestResult()

        distribution = _distribution_from_hits([r.hits for r in records])
        avg_hits, hit_4plus = _summarize(distribution, len(records))

        logger.info(f"Backtest complete: {len(records)} rounds, avg hits {avg_hits:.3f}")
        return BacktestResult(
            hit_distribution=distribution,
            avg_hits=avg_hits,
            hit_4plus_rate=hit_4plus,
            rounds_evaluated=len(records),
            records=records,
        )

    def evaluate_pool(self, history: History, pool: Sequence,
                      rounds: Optional[int] = None) -> BacktestResult:
        """
        Count hits of a fixed pool against every draw (most recent first).

        Args:
            history: Draw history in any order
            pool: Numbers to evaluate
            rounds: Maximum number of draws to evaluate

        Returns:
            BacktestResult
        """
        numbers = _validate_pool(pool)
        frame = to_history_frame(history)
        if rounds is not None:
            frame = frame.iloc[:max(0, rounds)]
        if frame.empty:
            return BacktestResult()

        mask = np.zeros(MAX_NUMBER + 1, dtype=bool)
        mask[numbers] = True
        drawn = number_matrix(frame)
        hits = mask[drawn].sum(axis=1)

        records = [
            RoundHit(round=int(r), actual=[int(n) for n in row], pool=list(numbers), hits=int(h))
            for r, row, h in zip(frame['round'], drawn, hits)
        ]
        distribution = _distribution_from_hits(hits)
        avg_hits, hit_4plus = _summarize(distribution, len(records))
        return BacktestResult(
            hit_distribution=distribution,
            avg_hits=avg_hits,
            hit_4plus_rate=hit_4plus,
            rounds_evaluated=len(records),
            records=records,
        )


def hypergeometric_distribution(pool_size: int, draw_size: int = NUMBERS_PER_DRAW,
                                population: int = NUMBER_RANGE) -> Dict[int, float]:
    """
    Exact P(k hits) when `draw_size` numbers are drawn from `population`
    and `pool_size` of them are covered.
    """
    dist = stats.hypergeom(population, pool_size, draw_size)
    return {k: float(dist.pmf(k)) for k in range(draw_size + 1)}


@dataclass
class SimulationResult:
    pool: List[int]
    iterations: int
    hit_distribution: Dict[int, int]
    probabilities: Dict[int, float]
    theoretical: Dict[int, float]
    hit_4plus_rate: float
    avg_hits: float

    def to_dict(self) -> Dict:
        return convert_numpy_types({
            'pool': self.pool,
            'iterations': self.iterations,
            'hit_distribution': self.hit_distribution,
            'probabilities': {k: round(v, 6) for k, v in self.probabilities.items()},
            'theoretical': {k: round(v, 6) for k, v in self.theoretical.items()},
            'hit_4plus_rate': round(self.hit_4plus_rate, 6),
            'avg_hits': round(self.avg_hits, 4),
        })


class Simulator:
    """
    Monte-Carlo hit-count simulator.

    Each simulated draw takes the 6 smallest of 45 uniform keys, which is a
    uniform 6-subset of 1-45.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None, batch_size: int = 50_000):
        """
        Args:
            rng: Random source; an unseeded default_rng() when None
            batch_size: Draws simulated per vectorized batch
        """
        self.rng = rng if rng is not None else np.random.default_rng()
        self.batch_size = max(1, int(batch_size))
        logger.info(f"Simulator initialized (batch_size={self.batch_size})")

    def sample_draws(self, count: int) -> np.ndarray:
        """`count` independent draws as an int array of shape (count, 6)."""
        keys = self.rng.random((count, NUMBER_RANGE))
        return np.argpartition(keys, NUMBERS_PER_DRAW - 1, axis=1)[:, :NUMBERS_PER_DRAW] + MIN_NUMBER

    def run(self, pool: Sequence, iterations: int) -> SimulationResult:
        """
        Simulate `iterations` draws and tally hits against the pool.

        Args:
            pool: Numbers covered (typically the top-20 pool)
            iterations: Number of simulated draws (>= 0)

        Returns:
            SimulationResult; all-zero distribution when iterations == 0
        """
        numbers = _validate_pool(pool)
        if iterations < 0:
            raise InvalidPoolError(f"iterations must be >= 0, got {iterations}")

        mask = np.zeros(MAX_NUMBER + 1, dtype=bool)
        mask[numbers] = True

        counts = np.zeros(len(HIT_LEVELS), dtype=np.int64)
        remaining = iterations
        while remaining > 0:
            batch = min(self.batch_size, remaining)
            hits = mask[self.sample_draws(batch)].sum(axis=1)
            counts += np.bincount(hits, minlength=len(HIT_LEVELS))
            remaining -= batch

        distribution = {k: int(counts[k]) for k in HIT_LEVELS}
        if iterations:
            probabilities = {k: counts[k] / iterations for k in HIT_LEVELS}
        else:
            probabilities = {k: 0.0 for k in HIT_LEVELS}
        avg_hits, hit_4plus = _summarize(distribution, iterations)

        logger.debug(f"Simulation complete: {iterations} draws, 4+ rate {hit_4plus:.5f}")
        return SimulationResult(
            pool=numbers,
            iterations=iterations,
            hit_distribution=distribution,
            probabilities={k: float(v) for k, v in probabilities.items()},
            theoretical=hypergeometric_distribution(len(numbers)),
            hit_4plus_rate=hit_4plus,
            avg_hits=avg_hits,
        )
