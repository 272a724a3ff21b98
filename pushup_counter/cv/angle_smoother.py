"""
Moving-average smoothing for joint angle readings.

A plain sliding-window mean: cheap, lag of roughly half a window, and good
enough to absorb per-frame pose jitter before the rep state machine sees it.
"""

from collections import deque
from typing import Deque


class AngleSmoother:
    """Sliding-window mean over a scalar signal."""

    def __init__(self, window_size: int = 5):
        """
        Initialize smoother.

        Args:
            window_size: Number of most recent samples averaged
        """
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")

        self.window_size = window_size
        self._values: Deque[float] = deque(maxlen=window_size)

    def add(self, value: float) -> float:
        """Add a reading and return the mean of the current window."""
        self._values.append(value)
        # Best effort: average whatever is held, even before the window fills
        return sum(self._values) / len(self._values)

    def reset(self):
        """Clear all history."""
        self._values.clear()

    @property
    def has_enough_data(self) -> bool:
        return len(self._values) >= self.window_size

    def __len__(self) -> int:
        return len(self._values)
