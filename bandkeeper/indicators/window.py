"""
Fixed-capacity observation window.

A numpy backing array plus a single write cursor. The slot under the cursor
always holds the oldest retained sample. The array is never resized; a new
window shape means a new ObservationWindow.
"""

from typing import Sequence

import numpy as np


class ObservationWindow:
    """Circular buffer of price samples"""

    def __init__(self, capacity: int):
        if capacity < 2:
            raise ValueError("window capacity must be at least 2")
        self._capacity = capacity
        self._samples = np.zeros(capacity, dtype=float)
        self._next_index = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def next_index(self) -> int:
        return self._next_index

    @property
    def oldest(self) -> float:
        """Sample that the next push will overwrite"""
        return float(self._samples[self._next_index])

    @property
    def latest(self) -> float:
        """Most recently written sample"""
        return float(self._samples[(self._next_index - 1) % self._capacity])

    def load(self, samples: Sequence[float]):
        """Copy a full window of samples verbatim and rewind the cursor"""
        if len(samples) != self._capacity:
            raise ValueError(f"expected {self._capacity} samples, got {len(samples)}")
        self._samples[:] = np.asarray(samples, dtype=float)
        self._next_index = 0

    def push(self, sample: float) -> float:
        """
        Overwrite the oldest sample and advance the cursor.

        Returns:
            The evicted sample
        """
        evicted = float(self._samples[self._next_index])
        self._samples[self._next_index] = sample
        self._next_index = (self._next_index + 1) % self._capacity
        return evicted

    def ordered(self) -> np.ndarray:
        """Samples oldest first"""
        return np.roll(self._samples, -self._next_index).copy()

    def __len__(self) -> int:
        return self._capacity
