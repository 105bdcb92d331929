import math
from typing import Any, Dict, List, Optional

import numpy as np

from ..common.error_handling import InsufficientDataError


class StatAccumulator:
    """Running mean/min/max/variance over an unbounded stream in O(1) memory.

    ``count``, ``sum``, ``sum_of_squares``, ``min`` and ``max`` are valid after
    every ``update``. ``mean``, ``variance``, ``std_dev`` and ``median_approx``
    are only refreshed by ``finalize``.

    ``median_approx`` is the mean, not a true median. Pass
    ``retain_values=True`` to keep the observations and use ``exact_median``
    instead; this gives up the constant-memory property.
    """

    def __init__(self, retain_values: bool = False):
        self.count = 0
        self.sum = 0.0
        self.sum_of_squares = 0.0
        self.min = math.inf
        self.max = -math.inf
        self.mean = 0.0
        self.variance = 0.0
        self.std_dev = 0.0
        self.median_approx = 0.0
        self.retain_values = retain_values
        self._values: Optional[List[float]] = [] if retain_values else None

    def update(self, value: float) -> None:
        value = float(value)
        self.count += 1
        self.sum += value
        self.sum_of_squares += value * value
        if value < self.min:
            self.min = value
        if value > self.max:
            self.max = value
        if self._values is not None:
            self._values.append(value)

    def finalize(self) -> 'StatAccumulator':
        """Computes the derived statistics. A no-op while ``count == 0``."""
        if self.count == 0:
            return self

        self.mean = self.sum / self.count
        # Population variance; cancellation can push it slightly negative
        if self.min == self.max:
            self.variance = 0.0
        else:
            self.variance = max(self.sum_of_squares / self.count - self.mean * self.mean, 0.0)
        self.std_dev = math.sqrt(self.variance)
        self.median_approx = self.mean
        return self

    def exact_median(self) -> float:
        if self._values is None:
            raise InsufficientDataError("exact_median requires StatAccumulator(retain_values=True)")
        if not self._values:
            raise InsufficientDataError("exact_median requires at least one value")
        return float(np.median(self._values))

    @classmethod
    def from_values(cls, values, retain_values: bool = False) -> 'StatAccumulator':
        acc = cls(retain_values=retain_values)
        for value in values:
            acc.update(value)
        return acc.finalize()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'count': self.count,
            'mean': self.mean,
            'min': self.min if self.count else None,
            'max': self.max if self.count else None,
            'variance': self.variance,
            'std_dev': self.std_dev,
            'median_approx': self.median_approx,
        }

    def __repr__(self):
        return (f"StatAccumulator(count={self.count}, mean={self.mean:.6f}, "
                f"std_dev={self.std_dev:.6f}, min={self.min}, max={self.max})")
