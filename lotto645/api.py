"""
LOTTO645 HTTP API
=================

Thin FastAPI boundary over LottoEngine. The draw history is supplied in
the request body; the engine itself never touches storage.

Endpoints (prefix /api/v1/engine):
- POST /scores     per-number scores
- POST /recommend  top-20 pool and recommended sets
- POST /backtest   walk-forward or fixed-pool back-test
- POST /simulate   Monte-Carlo hit distribution of a pool
- POST /analysis   full statistics report

Every response uses the {success, data, cached} envelope. Results are
cached per history content hash.
"""

from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, FastAPI, HTTPException
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from . import __version__
from .cache import MISS, TTLCache, history_cache_key
from .config import EngineConfig, load_config
from .draws import MAX_NUMBER, MIN_NUMBER, NUMBERS_PER_DRAW
from .engine import LottoEngine
from .exceptions import LottoEngineError
from .utils import convert_numpy_types

MAX_SIMULATION_ITERATIONS = 5_000_000


class DrawModel(BaseModel):
    model_config = ConfigDict(extra='ignore')

    round: int = Field(..., ge=1, description="Draw round number")
    numbers: List[int] = Field(..., min_length=NUMBERS_PER_DRAW, max_length=NUMBERS_PER_DRAW,
                               description="6 distinct main numbers")
    bonus: int = Field(..., ge=MIN_NUMBER, le=MAX_NUMBER, description="Bonus number")

    @field_validator('numbers')
    @classmethod
    def validate_numbers(cls, value: List[int]) -> List[int]:
        if any(n < MIN_NUMBER or n > MAX_NUMBER for n in value):
            raise ValueError(f"numbers must be between {MIN_NUMBER} and {MAX_NUMBER}")
        if len(set(value)) != len(value):
            raise ValueError("numbers must be distinct")
        return sorted(value)


class HistoryRequest(BaseModel):
    draws: List[DrawModel] = Field(default_factory=list, description="Draw history in any order")

    @model_validator(mode='after')
    def validate_unique_rounds(self):
        rounds = [d.round for d in self.draws]
        if len(set(rounds)) != len(rounds):
            raise ValueError("draws contain duplicated rounds")
        return self

    def history(self) -> List[Dict[str, Any]]:
        return [d.model_dump() for d in self.draws]


class RecommendRequest(HistoryRequest):
    set_count: Optional[int] = Field(None, ge=0, description="Number of sets (capped at max_sets)")


class BacktestRequest(HistoryRequest):
    pool: Optional[List[int]] = Field(None, description="Fixed pool; walk-forward back-test when omitted")
    rounds: Optional[int] = Field(None, ge=0, description="Maximum rounds to evaluate")
    include_records: bool = Field(False, description="Include per-round records")


class SimulateRequest(BaseModel):
    pool: List[int] = Field(..., min_length=1, max_length=MAX_NUMBER)
    iterations: Optional[int] = Field(None, ge=0, le=MAX_SIMULATION_ITERATIONS)
    seed: Optional[int] = Field(None, description="Seed for a reproducible run")


class EngineResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]
    cached: bool = False


def _execute(operation: str, compute: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
    """Run an engine call, mapping engine errors to 400 and anything else to 500."""
    try:
        return compute()
    except HTTPException:
        raise
    except LottoEngineError as e:
        logger.warning(f"{operation} rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"{operation} failed: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to {operation}: {str(e)}")


def create_engine_router(engine: LottoEngine, cache: Optional[TTLCache] = None) -> APIRouter:
    """
    Build the engine router.

    Args:
        engine: Engine serving every endpoint
        cache: Result cache; a fresh TTLCache with the configured ttl when None

    Returns:
        APIRouter mounted at /api/v1/engine
    """
    cache = cache if cache is not None else TTLCache(engine.config.cache_ttl_seconds)
    router = APIRouter(prefix="/api/v1/engine", tags=["Engine"])

    def respond(key: Optional[str], operation: str, compute: Callable[[], Dict[str, Any]]) -> EngineResponse:
        if key is not None:
            hit = cache.get(key)
            if hit is not MISS:
                logger.debug(f"{operation}: served from cache")
                return EngineResponse(data=hit, cached=True)
        data = convert_numpy_types(_execute(operation, compute))
        if key is not None:
            cache.set(key, data)
        return EngineResponse(data=data, cached=False)

    @router.post("/scores", response_model=EngineResponse, summary="Score numbers 1-45")
    def get_scores(request: HistoryRequest) -> EngineResponse:
        history = request.history()

        def compute():
            stats = engine.compute_scores(history)
            return {'total_draws': len(history), 'scores': [s.to_dict() for s in stats]}

        return respond(history_cache_key(history, 'scores'), "compute scores", compute)

    @router.post("/recommend", response_model=EngineResponse, summary="Recommend sets for the next round")
    def recommend(request: RecommendRequest) -> EngineResponse:
        history = request.history()
        logger.info(f"Recommendation requested ({len(history)} draws, set_count={request.set_count})")
        return respond(
            history_cache_key(history, 'recommend', request.set_count),
            "generate recommendation",
            lambda: engine.recommend(history, request.set_count).to_dict(),
        )

    @router.post("/backtest", response_model=EngineResponse, summary="Back-test the scorer")
    def backtest(request: BacktestRequest) -> EngineResponse:
        history = request.history()
        key = history_cache_key(history, 'backtest', request.pool, request.rounds, request.include_records)
        return respond(
            key,
            "run backtest",
            lambda: engine.backtest(history, pool=request.pool, rounds=request.rounds)
            .to_dict(include_records=request.include_records),
        )

    @router.post("/simulate", response_model=EngineResponse, summary="Simulate random draws against a pool")
    def simulate(request: SimulateRequest) -> EngineResponse:
        # Unseeded runs are never cached
        key = None
        if request.seed is not None:
            key = history_cache_key([], 'simulate', request.pool, request.iterations, request.seed)
        return respond(
            key,
            "run simulation",
            lambda: engine.simulate(request.pool, request.iterations, seed=request.seed).to_dict(),
        )

    @router.post("/analysis", response_model=EngineResponse, summary="Full statistics report")
    def analysis(request: HistoryRequest) -> EngineResponse:
        history = request.history()
        return respond(history_cache_key(history, 'analysis'), "build analysis", lambda: engine.analyze(history))

    return router


def create_app(config: Optional[EngineConfig] = None, engine: Optional[LottoEngine] = None,
               cache: Optional[TTLCache] = None) -> FastAPI:
    """Application factory."""
    config = config or (engine.config if engine is not None else load_config())
    engine = engine or LottoEngine(config)

    app = FastAPI(
        title="LOTTO645 Engine API",
        description="Scoring and combination-selection engine for 6/45 draws",
        version=__version__,
    )
    app.include_router(create_engine_router(engine, cache))

    @app.get("/health", tags=["Health"])
    def health() -> Dict[str, str]:
        return {"status": "ok", "version": __version__}

    logger.info("LOTTO645 API application created")
    return app


app = create_app()
