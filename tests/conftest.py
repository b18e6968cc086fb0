import os
import sys

import numpy as np
import pytest

# Ensure repository root is on sys.path so `import lotto645` works during tests
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


def build_random_history(count, seed=0):
    """`count` uniformly random draws with rounds 1..count, oldest first."""
    rng = np.random.default_rng(seed)
    draws = []
    for round_no in range(1, count + 1):
        picks = rng.choice(np.arange(1, 46), size=7, replace=False)
        draws.append({
            'round': round_no,
            'numbers': sorted(int(n) for n in picks[:6]),
            'bonus': int(picks[6]),
        })
    return draws


def build_always_seven_history(count=100):
    """
    Number 7 is drawn every round; the other five slots cycle through
    1-39 (without 7), so 40-45 are never drawn.
    """
    pool = [n for n in range(1, 40) if n != 7]
    draws = []
    for round_no in range(1, count + 1):
        start = 5 * (round_no - 1)
        others = [pool[(start + j) % len(pool)] for j in range(5)]
        draws.append({'round': round_no, 'numbers': sorted([7] + others), 'bonus': 45})
    return draws


@pytest.fixture
def history_factory():
    return build_random_history


@pytest.fixture
def sample_history():
    """120 random draws"""
    return build_random_history(120, seed=645)


@pytest.fixture
def always_seven_history():
    return build_always_seven_history()


@pytest.fixture
def spread_pool():
    """20 numbers spread over every range bucket"""
    return [1, 3, 5, 8, 11, 14, 17, 19, 22, 24, 26, 28, 31, 33, 35, 37, 39, 41, 43, 45]
