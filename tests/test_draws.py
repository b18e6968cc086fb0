"""
Tests for the draw model and history normalization
"""

import pandas as pd
import pytest

from lotto645.draws import (
    HISTORY_COLUMNS,
    Draw,
    latest_round,
    presence_matrix,
    to_draws,
    to_history_frame,
)
from lotto645.exceptions import InvalidDrawError, LottoEngineError


class TestDraw:
    """Tests for Draw validation"""

    def test_numbers_are_sorted(self):
        draw = Draw(round=1, numbers=(40, 3, 22, 1, 9, 15), bonus=7)
        assert draw.numbers == (1, 3, 9, 15, 22, 40)

    @pytest.mark.parametrize("numbers", [
        (1, 2, 3, 4, 5),            # too few
        (1, 2, 3, 4, 5, 6, 7),      # too many
        (1, 1, 2, 3, 4, 5),         # duplicate
        (0, 2, 3, 4, 5, 6),         # below range
        (1, 2, 3, 4, 5, 46),        # above range
    ])
    def test_invalid_numbers_rejected(self, numbers):
        with pytest.raises(InvalidDrawError):
            Draw(round=1, numbers=numbers, bonus=7)

    def test_invalid_bonus_rejected(self):
        with pytest.raises(InvalidDrawError):
            Draw(round=1, numbers=(1, 2, 3, 4, 5, 6), bonus=50)

    @pytest.mark.parametrize("field", [
        {'numbers': (1.9, 2, 3, 4, 5, 6)},
        {'round': 1.5},
        {'bonus': 7.2},
        {'bonus': True},
    ])
    def test_fractional_values_rejected(self, field):
        """Non-integral values are rejected rather than truncated"""
        values = {'round': 1, 'numbers': (1, 2, 3, 4, 5, 6), 'bonus': 7}
        values.update(field)
        with pytest.raises(InvalidDrawError):
            Draw(**values)

    def test_integral_floats_accepted(self):
        draw = Draw(round=3.0, numbers=(1.0, 2, 3, 4, 5, 6), bonus=7.0)
        assert draw.round == 3
        assert draw.numbers == (1, 2, 3, 4, 5, 6)
        assert isinstance(draw.bonus, int)

    def test_error_hierarchy(self):
        """InvalidDrawError is both an engine error and a ValueError"""
        with pytest.raises(ValueError):
            Draw(round=1, numbers=(1, 2, 3), bonus=7)
        assert issubclass(InvalidDrawError, LottoEngineError)

    def test_from_storage_record(self):
        record = {'round_no': 1150, 'num1': 5, 'num2': 12, 'num3': 19,
                  'num4': 28, 'num5': 33, 'num6': 41, 'bonus': 2}
        draw = Draw.from_record(record)
        assert draw.round == 1150
        assert draw.numbers == (5, 12, 19, 28, 33, 41)

    def test_from_record_without_numbers(self):
        with pytest.raises(InvalidDrawError):
            Draw.from_record({'round': 3, 'bonus': 1})

    def test_to_dict(self):
        draw = Draw(round=2, numbers=(6, 5, 4, 3, 2, 1), bonus=9)
        assert draw.to_dict() == {'round': 2, 'numbers': [1, 2, 3, 4, 5, 6], 'bonus': 9}


class TestHistoryFrame:
    """Tests for to_history_frame and helpers"""

    def test_sorted_most_recent_first(self, history_factory):
        draws = history_factory(10)
        frame = to_history_frame(list(reversed(draws[:5])) + draws[5:])
        assert list(frame.columns) == HISTORY_COLUMNS
        assert list(frame['round']) == list(range(10, 0, -1))
        assert latest_round(frame) == 10

    def test_empty_inputs(self):
        assert to_history_frame([]).empty
        assert to_history_frame(None).empty
        assert to_history_frame(pd.DataFrame()).empty
        assert latest_round(to_history_frame([])) == 0

    def test_duplicate_rounds_rejected(self):
        draws = [
            {'round': 1, 'numbers': [1, 2, 3, 4, 5, 6], 'bonus': 7},
            {'round': 1, 'numbers': [7, 8, 9, 10, 11, 12], 'bonus': 13},
        ]
        with pytest.raises(InvalidDrawError, match="Duplicated rounds"):
            to_history_frame(draws)

    def test_normalized_frame_passes_through(self, history_factory):
        frame = to_history_frame(history_factory(30))
        assert to_history_frame(frame) is frame
        # Row slices of a normalized frame stay normalized
        sliced = frame.iloc[5:]
        assert to_history_frame(sliced) is sliced

    def test_unsorted_dataframe_is_normalized(self, history_factory):
        frame = to_history_frame(history_factory(8))
        shuffled = frame.sample(frac=1, random_state=3)
        result = to_history_frame(shuffled)
        assert list(result['round']) == list(range(8, 0, -1))

    def test_presence_matrix(self):
        frame = to_history_frame([{'round': 1, 'numbers': [1, 2, 3, 43, 44, 45], 'bonus': 4}])
        presence = presence_matrix(frame)
        assert presence.shape == (1, 45)
        assert presence.sum() == 6
        assert presence[0, 0] and presence[0, 44]

    def test_to_draws_round_trip_order(self, history_factory):
        draws = to_draws(history_factory(5))
        assert [d.round for d in draws] == [5, 4, 3, 2, 1]
        assert all(isinstance(d, Draw) for d in draws)
