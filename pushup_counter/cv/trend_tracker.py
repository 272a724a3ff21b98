"""Bounded history of a scalar signal with short-term trend and range."""

from collections import deque
from typing import Deque, Optional


class TrendTracker:
    """
    Tracks recent values of a signal (e.g. smoothed elbow angle).

    Diagnostic only: the rep state machine does not consult it.
    """

    MIN_TREND_SAMPLES = 3

    def __init__(self, history_size: int = 15):
        if history_size <= 0:
            raise ValueError(f"history_size must be positive, got {history_size}")

        self.history_size = history_size
        self._history: Deque[float] = deque(maxlen=history_size)

    def add(self, value: float):
        self._history.append(value)

    @property
    def trend(self) -> Optional[float]:
        """Last minus first sample (positive = increasing)."""
        if len(self._history) < self.MIN_TREND_SAMPLES:
            return None
        return self._history[-1] - self._history[0]

    @property
    def range(self) -> Optional[float]:
        """Spread (max - min) of the buffered samples."""
        if not self._history:
            return None
        return max(self._history) - min(self._history)

    def reset(self):
        self._history.clear()

    def __len__(self) -> int:
        return len(self._history)
