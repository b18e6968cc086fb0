"""
LOTTO645 Draw Model
===================

Immutable draw records and the normalized history frame used by every
extractor. The frame has columns [round, n1..n6, bonus] and is always
sorted by round descending (most recent draw first).
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple, Union

import numpy as np
import pandas as pd
from loguru import logger

from .exceptions import InvalidDrawError

MIN_NUMBER = 1
MAX_NUMBER = 45
NUMBER_RANGE = MAX_NUMBER - MIN_NUMBER + 1
NUMBERS_PER_DRAW = 6

NUMBER_COLUMNS = ['n1', 'n2', 'n3', 'n4', 'n5', 'n6']
HISTORY_COLUMNS = ['round'] + NUMBER_COLUMNS + ['bonus']

# Column aliases accepted from storage-layer records
_ROUND_KEYS = ('round', 'round_no')
_NUMBER_KEY_SETS = (
    NUMBER_COLUMNS,
    ['num1', 'num2', 'num3', 'num4', 'num5', 'num6'],
)

History = Union[pd.DataFrame, Iterable[Any]]


def _whole_number(value: Any) -> int:
    """int(value), rejecting fractional and boolean values."""
    if isinstance(value, (bool, np.bool_)):
        raise ValueError(f"{value!r} is not a draw number")
    number = int(value)
    if not isinstance(value, str) and number != value:
        raise ValueError(f"{value!r} is not a whole number")
    return number


@dataclass(frozen=True)
class Draw:
    """One published draw: round id, 6 main numbers (stored ascending) and a bonus."""
    round: int
    numbers: Tuple[int, ...]
    bonus: int

    def __post_init__(self):
        try:
            numbers = tuple(sorted(_whole_number(n) for n in self.numbers))
            round_no = _whole_number(self.round)
            bonus = _whole_number(self.bonus)
        except (TypeError, ValueError) as e:
            raise InvalidDrawError(f"Malformed draw record (round={self.round!r}): {e}") from e

        if len(numbers) != NUMBERS_PER_DRAW:
            raise InvalidDrawError(
                f"Round {round_no}: expected {NUMBERS_PER_DRAW} numbers, got {len(numbers)}"
            )
        if len(set(numbers)) != NUMBERS_PER_DRAW:
            raise InvalidDrawError(f"Round {round_no}: duplicate numbers in {list(numbers)}")
        if any(n < MIN_NUMBER or n > MAX_NUMBER for n in numbers):
            raise InvalidDrawError(
                f"Round {round_no}: numbers must be between {MIN_NUMBER} and {MAX_NUMBER}"
            )
        if not MIN_NUMBER <= bonus <= MAX_NUMBER:
            raise InvalidDrawError(
                f"Round {round_no}: bonus must be between {MIN_NUMBER} and {MAX_NUMBER}"
            )

        object.__setattr__(self, 'round', round_no)
        object.__setattr__(self, 'numbers', numbers)
        object.__setattr__(self, 'bonus', bonus)

    @classmethod
    def from_record(cls, record: Any) -> 'Draw':
        """
        Build a Draw from a Draw, a mapping or a pandas row.

        Accepts {'round', 'numbers', 'bonus'}, the storage layout
        {'round_no', 'num1'..'num6', 'bonus'} and the frame layout
        {'round', 'n1'..'n6', 'bonus'}.
        """
        if isinstance(record, Draw):
            return record
        if not hasattr(record, 'get'):
            raise InvalidDrawError(f"Unsupported draw record type: {type(record).__name__}")

        round_no = next((record.get(k) for k in _ROUND_KEYS if record.get(k) is not None), None)
        if round_no is None:
            raise InvalidDrawError(f"Draw record without a round: {dict(record)}")

        numbers = record.get('numbers')
        if numbers is None:
            for keys in _NUMBER_KEY_SETS:
                if all(record.get(k) is not None for k in keys):
                    numbers = [record.get(k) for k in keys]
                    break
        if numbers is None:
            raise InvalidDrawError(f"Round {round_no}: draw record without numbers")

        return cls(round=round_no, numbers=tuple(numbers), bonus=record.get('bonus'))

    def to_dict(self) -> dict:
        return {'round': self.round, 'numbers': list(self.numbers), 'bonus': self.bonus}


def empty_history_frame() -> pd.DataFrame:
    return pd.DataFrame({col: pd.Series(dtype='int64') for col in HISTORY_COLUMNS})


def _is_normalized(frame: pd.DataFrame) -> bool:
    """Frames produced by to_history_frame (or row slices of one) skip re-validation."""
    return (
        list(frame.columns) == HISTORY_COLUMNS
        and frame['round'].is_monotonic_decreasing
        and frame['round'].is_unique
    )


def to_history_frame(history: History) -> pd.DataFrame:
    """
    Normalize any supported history input into the canonical frame.

    Args:
        history: DataFrame or iterable of Draw / mapping records, in any order

    Returns:
        DataFrame with HISTORY_COLUMNS sorted by round descending

    Raises:
        InvalidDrawError: malformed record or duplicated round
    """
    if history is None:
        return empty_history_frame()

    if isinstance(history, pd.DataFrame):
        if history.empty:
            return empty_history_frame()
        if _is_normalized(history):
            return history
        records = history.to_dict('records')
    else:
        records = list(history)

    if not records:
        return empty_history_frame()

    draws = [Draw.from_record(r) for r in records]

    rounds = [d.round for d in draws]
    if len(set(rounds)) != len(rounds):
        seen, duplicated = set(), set()
        for r in rounds:
            if r in seen:
                duplicated.add(r)
            seen.add(r)
        raise InvalidDrawError(f"Duplicated rounds in history: {sorted(duplicated)}")

    frame = pd.DataFrame(
        [[d.round, *d.numbers, d.bonus] for d in draws],
        columns=HISTORY_COLUMNS,
    ).astype('int64')
    frame = frame.sort_values('round', ascending=False, kind='mergesort').reset_index(drop=True)

    logger.debug(
        f"History normalized: {len(frame)} draws (rounds {frame['round'].iloc[-1]}-{frame['round'].iloc[0]})"
    )
    return frame


def to_draws(history: History) -> List[Draw]:
    """History as a list of Draw objects, most recent first."""
    frame = to_history_frame(history)
    return [
        Draw(round=row[0], numbers=tuple(row[1:7]), bonus=row[7])
        for row in frame.itertuples(index=False, name=None)
    ]


def number_matrix(frame: pd.DataFrame) -> np.ndarray:
    """Main numbers as an int array of shape (draws, 6)."""
    return frame[NUMBER_COLUMNS].to_numpy(dtype=np.int64)


def presence_matrix(frame: pd.DataFrame) -> np.ndarray:
    """
    Boolean matrix of shape (draws, 45) where [i, n-1] is True when
    number n was drawn in row i of the frame.
    """
    numbers = number_matrix(frame)
    presence = np.zeros((len(numbers), NUMBER_RANGE), dtype=bool)
    if len(numbers):
        rows = np.arange(len(numbers))[:, None]
        presence[rows, numbers - MIN_NUMBER] = True
    return presence


def latest_round(frame: pd.DataFrame) -> int:
    return int(frame['round'].iloc[0]) if len(frame) else 0


def as_number_list(values: Iterable[Any]) -> List[int]:
    """Plain ints from NumberStat-like objects or raw numbers."""
    return [int(getattr(v, 'number', v)) for v in values]
