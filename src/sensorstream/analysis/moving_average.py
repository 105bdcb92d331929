import numpy as np

from ..common.error_handling import InvalidConfigError


class MovingAverageFilter:
    """Bounded-window average over a fixed-capacity circular buffer.

    Until the window first fills, the average is taken over the samples seen
    so far rather than the full window size.
    """

    def __init__(self, window_size: int):
        if isinstance(window_size, bool) or not isinstance(window_size, (int, np.integer)) or window_size <= 0:
            raise InvalidConfigError(f"window_size must be a positive integer, got {window_size!r}")
        self.window_size = int(window_size)
        self.buffer = np.zeros(self.window_size, dtype=float)
        self.index = 0  # slot the next value is written to
        self.count = 0
        self.sum = 0.0

    def update(self, value: float) -> float:
        value = float(value)
        if self.count >= self.window_size:
            self.sum -= self.buffer[self.index]
        else:
            self.count += 1

        self.buffer[self.index] = value
        self.sum += value
        self.index = (self.index + 1) % self.window_size
        return self.sum / self.count

    def current_average(self) -> float:
        if self.count == 0:
            return 0.0
        return self.sum / self.count

    def is_full(self) -> bool:
        return self.count >= self.window_size

    def values(self) -> np.ndarray:
        """Valid slots, oldest first."""
        if self.count < self.window_size:
            return self.buffer[:self.count].copy()
        return np.roll(self.buffer, -self.index)

    def __len__(self):
        return self.count
