"""
LOTTO645 Combination Generator
==============================

Selects recommended 6-number sets from a ranked pool of 20 numbers.

Primary strategy (exhaustive):
1. Enumerate all C(20, 6) = 38,760 index combinations in lexicographic order
2. Keep combinations passing the validity predicate
3. Rank by the sum of member scores (stable on enumeration order)
4. Greedily accept sets overlapping every accepted set in at most 3 numbers
5. Fill remaining slots from the ranked valid combinations (relaxed)

Secondary strategy (incremental): builds each set number by number from
the ranked list with live range and parity caps.
"""

from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from .draws import MAX_NUMBER, MIN_NUMBER, as_number_list
from .exceptions import InvalidPoolError
from .features import (
    HIGH_NUMBER_THRESHOLD,
    ac_value,
    count_consecutive,
    count_high,
    count_odd,
    max_end_digit_repeat,
    range_bucket,
)

SUM_RANGE_WIDE = (100, 180)
SUM_RANGE_RECOMMENDED = (115, 160)

MIN_AC_VALUE = 7
ODD_COUNT_RANGE = (2, 4)
HIGH_COUNT_RANGE = (2, 4)
MAX_CONSECUTIVE_PAIRS = 2
MAX_END_DIGIT_REPEAT = 2
MAX_SHARED_NUMBERS = 3

# Incremental strategy limits
BUCKET_CAP = 2
PARITY_CAP = 4
WRAP_INDEX = 35


@dataclass(frozen=True)
class GeneratorSettings:
    """Validity predicate and selection limits"""
    pool_size: int = 20
    set_size: int = 6
    sum_range: Tuple[int, int] = SUM_RANGE_WIDE
    min_ac: int = MIN_AC_VALUE
    odd_range: Tuple[int, int] = ODD_COUNT_RANGE
    high_range: Tuple[int, int] = HIGH_COUNT_RANGE
    high_threshold: int = HIGH_NUMBER_THRESHOLD
    max_consecutive_pairs: int = MAX_CONSECUTIVE_PAIRS
    max_end_digit_repeat: int = MAX_END_DIGIT_REPEAT
    max_shared: int = MAX_SHARED_NUMBERS
    max_sets: int = 5


@dataclass(frozen=True)
class CandidateSet:
    numbers: Tuple[int, ...]
    sum: int
    odd_count: int
    high_count: int
    ac_value: int
    total_score: float
    relaxed: bool = False
    valid: bool = True

    def to_dict(self) -> Dict:
        return {
            'numbers': list(self.numbers),
            'sum': self.sum,
            'odd_count': self.odd_count,
            'high_count': self.high_count,
            'ac_value': self.ac_value,
            'total_score': round(self.total_score, 1),
            'relaxed': self.relaxed,
            'valid': self.valid,
        }


@dataclass
class GenerationResult:
    sets: List[CandidateSet] = field(default_factory=list)
    relaxed_count: int = 0
    valid_count: int = 0

    def to_lists(self) -> List[List[int]]:
        return [list(s.numbers) for s in self.sets]

    def to_dict(self) -> Dict:
        return {
            'sets': [s.to_dict() for s in self.sets],
            'relaxed_count': self.relaxed_count,
            'valid_count': self.valid_count,
        }


def is_valid_combination(numbers: Sequence[int], settings: Optional[GeneratorSettings] = None) -> bool:
    """
    Validity predicate for one candidate set.

    Rules: sum within range, AC >= min_ac, odd and high counts within
    range, at most max_consecutive_pairs consecutive pairs, no last digit
    repeated more than max_end_digit_repeat times.
    """
    s = settings or GeneratorSettings()
    numbers = list(numbers)
    if len(set(numbers)) != len(numbers):
        return False

    total = sum(numbers)
    odd = count_odd(numbers)
    high = count_high(numbers, s.high_threshold)

    return (
        s.sum_range[0] <= total <= s.sum_range[1]
        and ac_value(numbers) >= s.min_ac
        and s.odd_range[0] <= odd <= s.odd_range[1]
        and s.high_range[0] <= high <= s.high_range[1]
        and count_consecutive(numbers) <= s.max_consecutive_pairs
        and max_end_digit_repeat(numbers) <= s.max_end_digit_repeat
    )


def _build_candidate(numbers: Sequence[int], total_score: float, relaxed: bool,
                     settings: GeneratorSettings) -> CandidateSet:
    ordered = tuple(sorted(int(n) for n in numbers))
    return CandidateSet(
        numbers=ordered,
        sum=sum(ordered),
        odd_count=count_odd(ordered),
        high_count=count_high(ordered, settings.high_threshold),
        ac_value=ac_value(ordered),
        total_score=float(total_score),
        relaxed=relaxed,
        valid=is_valid_combination(ordered, settings),
    )


class CombinationGenerator:
    """
    Exhaustive constrained set generator.

    The C(pool_size, set_size) index table is built once per generator and
    reused across calls.
    """

    def __init__(self, settings: Optional[GeneratorSettings] = None):
        self.settings = settings or GeneratorSettings()
        self._index_table = np.array(
            list(combinations(range(self.settings.pool_size), self.settings.set_size)),
            dtype=np.int64,
        )
        logger.info(
            f"CombinationGenerator initialized ({len(self._index_table)} combinations, "
            f"sum_range={self.settings.sum_range})"
        )

    def _validate_pool(self, pool: Sequence) -> List[int]:
        numbers = as_number_list(pool)
        size = self.settings.pool_size
        if len(numbers) != size:
            raise InvalidPoolError(f"Pool must contain exactly {size} numbers, got {len(numbers)}")
        if len(set(numbers)) != size:
            raise InvalidPoolError(f"Pool contains duplicate numbers: {numbers}")
        if any(n < MIN_NUMBER or n > MAX_NUMBER for n in numbers):
            raise InvalidPoolError(f"Pool numbers must be between {MIN_NUMBER} and {MAX_NUMBER}")
        return numbers

    def _score_vector(self, pool: Sequence, numbers: List[int],
                      scores: Optional[Dict[int, float]]) -> np.ndarray:
        if scores is None:
            scores = {getattr(p, 'number'): getattr(p, 'score')
                      for p in pool if hasattr(p, 'score')} or None
        if scores is None:
            # Pool order is the ranking: first element weighs most
            return np.arange(len(numbers), 0, -1, dtype=np.float64)
        return np.array([float(scores.get(n, 0.0)) for n in numbers], dtype=np.float64)

    def validity_mask(self, combos: np.ndarray) -> np.ndarray:
        """
        Vectorized validity predicate.

        Args:
            combos: int array of shape (N, set_size), each row sorted ascending

        Returns:
            bool array of shape (N,)
        """
        s = self.settings
        totals = combos.sum(axis=1)
        odd = (combos % 2 == 1).sum(axis=1)
        high = (combos >= s.high_threshold).sum(axis=1)
        consecutive = (np.diff(combos, axis=1) == 1).sum(axis=1)

        digits = combos % 10
        digit_repeat = (digits[:, :, None] == np.arange(10)).sum(axis=1).max(axis=1)

        first, second = np.triu_indices(combos.shape[1], k=1)
        diffs = np.sort(combos[:, second] - combos[:, first], axis=1)
        distinct_diffs = (np.diff(diffs, axis=1) != 0).sum(axis=1) + 1
        ac = distinct_diffs - (combos.shape[1] - 1)

        return (
            (totals >= s.sum_range[0]) & (totals <= s.sum_range[1])
            & (ac >= s.min_ac)
            & (odd >= s.odd_range[0]) & (odd <= s.odd_range[1])
            & (high >= s.high_range[0]) & (high <= s.high_range[1])
            & (consecutive <= s.max_consecutive_pairs)
            & (digit_repeat <= s.max_end_digit_repeat)
        )

    def generate_sets(self, pool: Sequence, set_count: int,
                      scores: Optional[Dict[int, float]] = None) -> GenerationResult:
        """
        Generate up to `set_count` diverse valid sets from a ranked pool.

        Args:
            pool: Ranked numbers (ints or NumberStat objects), best first
            set_count: Number of sets requested (>= 0)
            scores: Optional number -> score map; taken from NumberStat
                pools when omitted, else derived from pool order

        Returns:
            GenerationResult with at most `set_count` sets

        Raises:
            InvalidPoolError: malformed pool or negative set_count
        """
        if set_count < 0:
            raise InvalidPoolError(f"set_count must be >= 0, got {set_count}")

        numbers = self._validate_pool(pool)
        if set_count == 0:
            return GenerationResult()

        pool_arr = np.array(numbers, dtype=np.int64)
        score_arr = self._score_vector(pool, numbers, scores)

        combos = np.sort(pool_arr[self._index_table], axis=1)
        totals = score_arr[self._index_table].sum(axis=1)

        valid_idx = np.flatnonzero(self.validity_mask(combos))
        ranked = valid_idx[np.argsort(-totals[valid_idx], kind='stable')]

        chosen: List[int] = []
        chosen_sets: List[set] = []
        for idx in ranked:
            candidate = set(combos[idx].tolist())
            if all(len(candidate & other) <= self.settings.max_shared for other in chosen_sets):
                chosen.append(int(idx))
                chosen_sets.append(candidate)
                if len(chosen) == set_count:
                    break

        diverse_count = len(chosen)
        if diverse_count < set_count:
            taken = set(chosen)
            for idx in ranked:
                if len(chosen) == set_count:
                    break
                if int(idx) not in taken:
                    chosen.append(int(idx))
            logger.warning(
                f"Only {diverse_count} diverse sets found for {set_count} requested; "
                f"{len(chosen) - diverse_count} filled without the overlap limit"
            )

        sets = [
            _build_candidate(combos[idx], totals[idx], relaxed=position >= diverse_count,
                             settings=self.settings)
            for position, idx in enumerate(chosen)
        ]
        result = GenerationResult(
            sets=sets,
            relaxed_count=len(chosen) - diverse_count,
            valid_count=len(valid_idx),
        )
        logger.debug(
            f"Generated {len(sets)}/{set_count} sets from {len(valid_idx)} valid combinations"
        )
        return result


def generate_incremental_sets(ranked_numbers: Sequence, set_count: int,
                              settings: Optional[GeneratorSettings] = None) -> GenerationResult:
    """
    Lighter-weight generator that walks the ranked list number by number.

    Set i starts at offset 2*i, accepts a number while its range bucket
    holds fewer than 2 members and its parity fewer than 4, and wraps back
    to the top of the list after index 35. Sets are not checked against
    each other; `valid` records whether the full predicate holds.

    Args:
        ranked_numbers: Numbers (or NumberStat objects) ordered best first
        set_count: Number of sets requested (>= 0)
        settings: Generator settings (set_size, predicate)

    Returns:
        GenerationResult
    """
    s = settings or GeneratorSettings()
    if set_count < 0:
        raise InvalidPoolError(f"set_count must be >= 0, got {set_count}")

    ranked = as_number_list(ranked_numbers)
    if len(set(ranked)) != len(ranked) or len(ranked) < s.set_size:
        raise InvalidPoolError(
            f"Ranked list needs at least {s.set_size} distinct numbers, got {len(ranked)}"
        )

    scores = {n: float(len(ranked) - i) for i, n in enumerate(ranked)}
    wrap_at = min(WRAP_INDEX, len(ranked) - 1)
    sets: List[CandidateSet] = []

    for set_index in range(set_count):
        selected: List[int] = []
        bucket_counts: Dict[int, int] = {}
        parity_counts = {0: 0, 1: 0}
        index = (set_index * 2) % len(ranked)

        # Two full passes are enough to visit every number once under the caps
        for _ in range(2 * len(ranked)):
            if len(selected) == s.set_size:
                break
            number = ranked[index]
            bucket = range_bucket(number)
            parity = number % 2
            if (number not in selected
                    and bucket_counts.get(bucket, 0) < BUCKET_CAP
                    and parity_counts[parity] < PARITY_CAP):
                selected.append(number)
                bucket_counts[bucket] = bucket_counts.get(bucket, 0) + 1
                parity_counts[parity] += 1
            index = 0 if index >= wrap_at else index + 1

        if len(selected) < s.set_size:
            logger.warning(f"Incremental set {set_index + 1} could not be completed under the caps")
            continue

        sets.append(_build_candidate(selected, sum(scores[n] for n in selected),
                                     relaxed=False, settings=s))

    return GenerationResult(sets=sets, relaxed_count=0,
                            valid_count=sum(1 for c in sets if c.valid))
