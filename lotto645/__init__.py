"""
LOTTO645 - 6/45 Scoring and Combination-Selection Engine
========================================================

- Per-number feature statistics (frequency, gaps, cycles, trend, pairs)
- Weighted composite score per number, normalized to 0-100
- Constrained, diverse set selection from the top-20 pool
- Walk-forward back-test and Monte-Carlo simulation
- Full statistics report

The HTTP layer lives in lotto645.api and is imported separately.
"""

__version__ = "1.0.0"

from .exceptions import LottoEngineError, InvalidDrawError, InvalidPoolError

from .draws import Draw, to_history_frame, to_draws

from .features import (
    FeatureSet,
    TrendAnalysis,
    extract_features,
    ac_value,
)

from .scoring import (
    ScoringWeights,
    PrizeOptimizer,
    NumberStat,
    Scorer,
    normalize_scores,
)

from .combinations import (
    SUM_RANGE_WIDE,
    SUM_RANGE_RECOMMENDED,
    GeneratorSettings,
    CandidateSet,
    GenerationResult,
    CombinationGenerator,
    is_valid_combination,
    generate_incremental_sets,
)

from .validation import (
    ValidationSettings,
    Backtester,
    BacktestResult,
    Simulator,
    SimulationResult,
    hypergeometric_distribution,
)

from .analysis import run_full_analysis
from .cache import TTLCache, MISS, history_cache_key
from .config import EngineConfig, load_config
from .engine import LottoEngine, Recommendation

__all__ = [
    # Errors
    'LottoEngineError',
    'InvalidDrawError',
    'InvalidPoolError',

    # Data model
    'Draw',
    'to_history_frame',
    'to_draws',

    # Features
    'FeatureSet',
    'TrendAnalysis',
    'extract_features',
    'ac_value',

    # Scoring
    'ScoringWeights',
    'PrizeOptimizer',
    'NumberStat',
    'Scorer',
    'normalize_scores',

    # Combinations
    'SUM_RANGE_WIDE',
    'SUM_RANGE_RECOMMENDED',
    'GeneratorSettings',
    'CandidateSet',
    'GenerationResult',
    'CombinationGenerator',
    'is_valid_combination',
    'generate_incremental_sets',

    # Validation
    'ValidationSettings',
    'Backtester',
    'BacktestResult',
    'Simulator',
    'SimulationResult',
    'hypergeometric_distribution',

    # Engine
    'run_full_analysis',
    'TTLCache',
    'MISS',
    'history_cache_key',
    'EngineConfig',
    'load_config',
    'LottoEngine',
    'Recommendation',
]
