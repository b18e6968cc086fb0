"""
LOTTO645 Engine Facade
======================

Wires configuration, scorer, generator, back-tester and simulator into
one explicitly constructed object. Every component can be injected,
which is how tests swap the random source or the prize heuristic.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from .analysis import run_full_analysis
from .combinations import CandidateSet, CombinationGenerator, GenerationResult
from .config import EngineConfig
from .draws import History, latest_round, to_history_frame
from .scoring import NumberStat, Scorer, score_map
from .utils import convert_numpy_types
from .validation import Backtester, BacktestResult, SimulationResult, Simulator


@dataclass
class Recommendation:
    """Scores, top pool and recommended sets for the next round"""
    target_round: int
    pool: List[NumberStat]
    scores: List[NumberStat]
    sets: List[CandidateSet] = field(default_factory=list)
    relaxed_count: int = 0

    def to_dict(self) -> Dict:
        return convert_numpy_types({
            'target_round': self.target_round,
            'top20_numbers': [s.to_dict() for s in self.pool],
            'recommended_sets': [list(c.numbers) for c in self.sets],
            'sets': [c.to_dict() for c in self.sets],
            'scores': {s.number: s.score for s in self.scores},
            'relaxed_count': self.relaxed_count,
        })


class LottoEngine:
    """
    Scoring and combination-selection engine.

    Args:
        config: Engine configuration (defaults when None)
        scorer: Scorer override
        generator: CombinationGenerator override
        backtester: Backtester override
        simulator: Simulator override
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        scorer: Optional[Scorer] = None,
        generator: Optional[CombinationGenerator] = None,
        backtester: Optional[Backtester] = None,
        simulator: Optional[Simulator] = None,
    ):
        self.config = config or EngineConfig()
        self.scorer = scorer or Scorer(self.config.scoring)
        self.generator = generator or CombinationGenerator(self.config.generator)
        self.backtester = backtester or Backtester(self.scorer, self.config.validation)
        self.simulator = simulator or Simulator(batch_size=self.config.validation.batch_size)
        logger.info("LottoEngine initialized")

    @property
    def pool_size(self) -> int:
        return self.config.generator.pool_size

    def compute_scores(self, history: History) -> List[NumberStat]:
        return self.scorer.compute_scores(history)

    def top_pool(self, history: History) -> List[NumberStat]:
        return self.scorer.top_pool(history, self.pool_size)

    def generate_sets(self, pool: Sequence, set_count: int,
                      scores: Optional[Dict[int, float]] = None) -> GenerationResult:
        return self.generator.generate_sets(pool, set_count, scores)

    def recommend(self, history: History, set_count: Optional[int] = None) -> Recommendation:
        """
        Score the history and generate recommended sets for the next round.

        Args:
            history: Draw history in any order
            set_count: Sets to generate; defaults to and is capped at max_sets

        Returns:
            Recommendation (no sets when the history is empty)
        """
        max_sets = self.config.generator.max_sets
        if set_count is None:
            set_count = max_sets
        elif set_count > max_sets:
            logger.warning(f"Requested {set_count} sets, capped at {max_sets}")
            set_count = max_sets

        frame = to_history_frame(history)
        scores = self.scorer.compute_scores(frame)
        pool = scores[:self.pool_size]
        target_round = latest_round(frame) + 1

        if frame.empty:
            logger.warning("No draws available, returning neutral scores without sets")
            return Recommendation(target_round=target_round, pool=pool, scores=scores)

        result = self.generator.generate_sets(pool, set_count, score_map(scores))
        logger.info(f"Recommendation for round {target_round}: {len(result.sets)} sets")
        return Recommendation(
            target_round=target_round,
            pool=pool,
            scores=scores,
            sets=result.sets,
            relaxed_count=result.relaxed_count,
        )

    def backtest(self, history: History, pool: Optional[Sequence] = None,
                 rounds: Optional[int] = None) -> BacktestResult:
        """Walk-forward back-test, or fixed-pool evaluation when `pool` is given."""
        if pool is None:
            return self.backtester.run(history, rounds=rounds)
        return self.backtester.evaluate_pool(history, pool, rounds=rounds)

    def simulate(self, pool: Sequence, iterations: Optional[int] = None,
                 seed: Optional[int] = None) -> SimulationResult:
        """
        Monte-Carlo hit distribution of a pool.

        A seed builds a dedicated seeded simulator for reproducible runs;
        otherwise the engine's simulator is used.
        """
        if iterations is None:
            iterations = self.config.validation.simulation_iterations
        simulator = self.simulator
        if seed is not None:
            simulator = Simulator(rng=np.random.default_rng(seed),
                                  batch_size=self.config.validation.batch_size)
        return simulator.run(pool, iterations)

    def analyze(self, history: History) -> Dict:
        return run_full_analysis(history, recent_window=self.config.scoring.recent_window)
