"""
Running mean / M2 recurrences.

incremental_update is the single-pass recurrence shared by the initial seed
fold and the steady-state update:

    delta = x - avg
    avg'  = avg + delta / counter
    m2'   = m2 + delta * (x - avg')

sliding_window_update and window_statistics are the conventional fixed-window
estimator and the direct numpy computation it must agree with.
"""

import math
from typing import Iterable, Tuple

import numpy as np


def incremental_update(
    average: float,
    m2: float,
    sample: float,
    counter: int,
) -> Tuple[float, float]:
    """
    Fold one sample into (average, m2).

    Args:
        average: Current running average
        m2: Current sum of squared deviations
        sample: New data point
        counter: Weight denominator (1..N while seeding, N in steady state)

    Returns:
        Tuple of (new_average, new_m2)
    """
    delta = sample - average
    new_average = average + delta / counter
    new_m2 = m2 + delta * (sample - new_average)
    return new_average, new_m2


def fold_samples(samples: Iterable[float]) -> Tuple[float, float]:
    """Fold samples in order with counter running 1..N"""
    average = 0.0
    m2 = 0.0
    for counter, sample in enumerate(samples, start=1):
        average, m2 = incremental_update(average, m2, float(sample), counter)
    return average, m2


def eviction_delta_update(
    average: float,
    m2: float,
    new_sample: float,
    evicted_sample: float,
    window_size: int,
) -> Tuple[float, float]:
    """
    Steady-state update that folds |new - evicted| as the data point.

    This is not a fixed-window estimator: the average tracks the eviction
    deltas rather than the prices, so with a constant price it decays toward
    zero and m2 grows.
    """
    diff = abs(new_sample - evicted_sample)
    return incremental_update(average, m2, diff, window_size)


def sliding_window_update(
    average: float,
    m2: float,
    new_sample: float,
    evicted_sample: float,
    window_size: int,
) -> Tuple[float, float]:
    """Replace evicted_sample by new_sample in a full window of window_size"""
    change = new_sample - evicted_sample
    new_average = average + change / window_size
    new_m2 = m2 + change * (new_sample - new_average + evicted_sample - average)
    return new_average, new_m2


def sample_std(m2: float, window_size: int) -> float:
    """sqrt(m2 / (N - 1)); m2 below zero from rounding is treated as zero"""
    if window_size < 2:
        raise ValueError("window_size must be at least 2")
    return math.sqrt(max(m2, 0.0) / (window_size - 1))


def window_statistics(samples: np.ndarray) -> Tuple[float, float]:
    """Direct mean and sample standard deviation of a window"""
    if len(samples) < 2:
        raise ValueError("need at least 2 samples")
    return float(np.mean(samples)), float(np.std(samples, ddof=1))


UPDATE_RULES = {
    "eviction_delta": eviction_delta_update,
    "sliding_window": sliding_window_update,
}
