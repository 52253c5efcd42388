"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def three_subjects():
    """Small hand-checkable dataset.

    Subject 1: (0,2] event, (2,5] event, (5,8] censored
    Subject 2: (0,3] event, (3,6] censored
    Subject 3: (0,4] censored, no events

    Interval ends 2, 3, 4, 5, 6, 8 with n_risk 3, 3, 3, 2, 2, 1.
    """
    time1 = np.array([0, 2, 5, 0, 3, 0], dtype=np.float64)
    time2 = np.array([2, 5, 8, 3, 6, 4], dtype=np.float64)
    id_ = np.array([1, 1, 1, 2, 2, 3])
    event = np.array([1, 1, 0, 1, 0, 0], dtype=np.float64)
    return time1, time2, id_, event


def simulate_recurrent(rng, n_subjects, rate=0.5, follow_up=(5.0, 10.0)):
    """Homogeneous Poisson recurrences with uniform administrative censoring.

    Each subject contributes one row per event plus a final censored row.
    """
    time1, time2, ids, event = [], [], [], []
    for i in range(n_subjects):
        end = rng.uniform(*follow_up)
        start = 0.0
        t = rng.exponential(1.0 / rate)
        while t < end:
            time1.append(start)
            time2.append(t)
            ids.append(i + 1)
            event.append(1.0)
            start = t
            t += rng.exponential(1.0 / rate)
        time1.append(start)
        time2.append(end)
        ids.append(i + 1)
        event.append(0.0)
    return (
        np.array(time1), np.array(time2),
        np.array(ids), np.array(event),
    )


@pytest.fixture
def recurrent_data(rng):
    """Forty simulated subjects."""
    return simulate_recurrent(rng, 40)


@pytest.fixture
def simulate():
    """Factory fixture: simulate(rng, n_subjects, ...) -> row arrays."""
    return simulate_recurrent
