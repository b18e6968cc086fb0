"""
LOTTO645 Engine Exceptions
==========================

Hard failures are reserved for malformed input shapes. "Not enough data"
conditions never raise; they fall back to neutral values instead.
"""


class LottoEngineError(Exception):
    """Base exception for engine contract violations."""
    pass


class InvalidDrawError(LottoEngineError, ValueError):
    """Draw record with the wrong number count, duplicates or out-of-range values."""
    pass


class InvalidPoolError(LottoEngineError, ValueError):
    """Number pool or set count that the generator/simulator cannot accept."""
    pass
