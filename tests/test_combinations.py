"""
Tests for the combination generator
"""

from itertools import combinations

import numpy as np
import pytest

from lotto645.combinations import (
    SUM_RANGE_RECOMMENDED,
    SUM_RANGE_WIDE,
    CombinationGenerator,
    GeneratorSettings,
    generate_incremental_sets,
    is_valid_combination,
)
from lotto645.exceptions import InvalidPoolError
from lotto645.features import range_bucket
from lotto645.scoring import Scorer


@pytest.fixture(scope="module")
def generator():
    return CombinationGenerator()


class TestValidityPredicate:
    """Tests for is_valid_combination"""

    def test_valid_set(self):
        assert is_valid_combination([4, 9, 17, 28, 36, 43])

    def test_repeated_end_digit_rejected(self):
        # sum, AC, parity and high count pass; last digit 0 appears four times
        assert not is_valid_combination([1, 10, 20, 30, 40, 45])

    def test_low_ac_rejected(self):
        assert not is_valid_combination([3, 11, 19, 26, 34, 42])

    def test_consecutive_run_rejected(self):
        assert not is_valid_combination([1, 2, 3, 4, 5, 6])

    def test_duplicates_rejected(self):
        assert not is_valid_combination([4, 4, 17, 28, 36, 43])

    def test_sum_range_setting(self):
        numbers = [4, 9, 17, 28, 36, 43]   # sum 137
        narrow = GeneratorSettings(sum_range=(140, 160))
        assert not is_valid_combination(numbers, narrow)
        assert is_valid_combination(numbers, GeneratorSettings(sum_range=SUM_RANGE_RECOMMENDED))

    def test_named_ranges(self):
        assert SUM_RANGE_WIDE == (100, 180)
        assert SUM_RANGE_RECOMMENDED == (115, 160)

    def test_vectorized_mask_matches_predicate(self, generator, spread_pool):
        rows = np.array([sorted(c) for c in combinations(spread_pool, 6)][:3000])
        mask = generator.validity_mask(rows)
        expected = [is_valid_combination(row.tolist()) for row in rows]
        assert mask.tolist() == expected

    def test_vectorized_mask_handpicked(self, generator):
        rows = np.array([
            [4, 9, 17, 28, 36, 43],
            [1, 10, 20, 30, 40, 45],
            [1, 2, 3, 4, 5, 6],
            [3, 11, 19, 26, 34, 42],
        ])
        assert generator.validity_mask(rows).tolist() == [True, False, False, False]


class TestGenerateSets:
    """Tests for CombinationGenerator.generate_sets"""

    def test_initialization(self, generator):
        assert len(generator._index_table) == 38760
        assert generator.settings.pool_size == 20

    def test_sets_are_valid_and_distinct(self, generator, spread_pool):
        result = generator.generate_sets(spread_pool, 5)
        assert len(result.sets) == 5
        assert result.relaxed_count == 0
        for candidate in result.sets:
            numbers = list(candidate.numbers)
            assert numbers == sorted(numbers)
            assert len(set(numbers)) == 6
            assert set(numbers) <= set(spread_pool)
            assert is_valid_combination(numbers)
            assert candidate.valid
            assert candidate.sum == sum(numbers)
        assert len({c.numbers for c in result.sets}) == 5

    def test_diversity(self, generator, spread_pool):
        sets = [set(c.numbers) for c in generator.generate_sets(spread_pool, 5).sets]
        for a, b in combinations(sets, 2):
            assert len(a & b) <= 3

    def test_ranked_by_total_score(self, generator, spread_pool):
        result = generator.generate_sets(spread_pool, 5)
        # First pick is the best valid combination overall
        assert result.sets[0].total_score >= result.sets[-1].total_score

    def test_explicit_scores(self, generator, spread_pool):
        # Favor the high numbers heavily
        scores = {n: (100.0 if n >= 31 else 1.0) for n in spread_pool}
        best = generator.generate_sets(spread_pool, 1, scores=scores).sets[0]
        assert best.high_count == 4

    def test_number_stat_pool(self, generator, sample_history):
        pool = Scorer().top_pool(sample_history, 20)
        result = generator.generate_sets(pool, 3)
        for candidate in result.sets:
            assert set(candidate.numbers) <= {s.number for s in pool}

    def test_determinism(self, generator, spread_pool):
        assert generator.generate_sets(spread_pool, 5).to_lists() == \
            generator.generate_sets(spread_pool, 5).to_lists()

    def test_zero_sets(self, generator, spread_pool):
        result = generator.generate_sets(spread_pool, 0)
        assert result.sets == []
        assert result.to_lists() == []

    def test_relaxed_fill(self, spread_pool):
        # No shared numbers allowed: at most 3 disjoint 6-sets fit in 20 numbers
        strict = CombinationGenerator(GeneratorSettings(max_shared=0))
        result = strict.generate_sets(spread_pool, 5)
        assert len(result.sets) == 5
        assert result.relaxed_count >= 2
        assert all(c.relaxed for c in result.sets[-result.relaxed_count:])
        assert not any(c.relaxed for c in result.sets[:-result.relaxed_count])
        assert all(c.valid for c in result.sets)
        assert len({c.numbers for c in result.sets}) == 5

    def test_unsatisfiable_pool_returns_fewer(self, generator):
        # No number >= 23, so the high-count rule can never hold
        result = generator.generate_sets(list(range(1, 21)), 5)
        assert result.sets == []
        assert result.valid_count == 0

    @pytest.mark.parametrize("pool", [
        list(range(1, 20)),                 # too short
        list(range(1, 20)) + [1],           # duplicate
        list(range(27, 47)),                # out of range
    ])
    def test_invalid_pool(self, generator, pool):
        with pytest.raises(InvalidPoolError):
            generator.generate_sets(pool, 5)

    def test_negative_set_count(self, generator, spread_pool):
        with pytest.raises(InvalidPoolError):
            generator.generate_sets(spread_pool, -1)

    def test_to_dict(self, generator, spread_pool):
        data = generator.generate_sets(spread_pool, 2).to_dict()
        assert len(data['sets']) == 2
        assert {'numbers', 'sum', 'ac_value', 'relaxed'} <= set(data['sets'][0])


class TestIncrementalSets:
    """Tests for the incremental generator"""

    def test_caps_hold(self):
        ranked = list(range(45, 0, -1))
        result = generate_incremental_sets(ranked, 3)
        assert len(result.sets) == 3
        for candidate in result.sets:
            numbers = candidate.numbers
            assert len(set(numbers)) == 6
            buckets = [range_bucket(n) for n in numbers]
            assert max(buckets.count(b) for b in set(buckets)) <= 2
            odd = sum(1 for n in numbers if n % 2)
            assert odd <= 4 and 6 - odd <= 4

    def test_offsets(self):
        ranked = list(range(45, 0, -1))
        result = generate_incremental_sets(ranked, 2)
        assert result.sets[0].numbers == (29, 30, 39, 40, 44, 45)
        assert 43 in result.sets[1].numbers

    def test_invalid_input(self):
        with pytest.raises(InvalidPoolError):
            generate_incremental_sets([1, 2, 3], 1)
        with pytest.raises(InvalidPoolError):
            generate_incremental_sets(list(range(1, 21)), -1)
