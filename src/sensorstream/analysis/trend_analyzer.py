from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np
from scipy.stats import linregress

from ..acquisition.models import Sample
from ..common.error_handling import DegenerateInputError
from ..common.logging import setup_logging

DENOMINATOR_EPSILON = 1e-10
STABLE_SLOPE_THRESHOLD = 1e-6

SeriesLike = Union[Sequence[Sample], Sequence[float], np.ndarray]


class TrendDirection(str, Enum):
    INCREASING = 'increasing'
    DECREASING = 'decreasing'
    STABLE = 'stable'


@dataclass(frozen=True)
class TrendResult:
    slope: float = 0.0
    correlation: float = 0.0
    direction: TrendDirection = TrendDirection.STABLE
    confidence: float = 0.0
    intercept: float = 0.0
    p_value: float = 1.0
    window_size: int = 0

    @classmethod
    def neutral(cls, window_size: int = 0) -> 'TrendResult':
        return cls(window_size=window_size)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'slope': self.slope,
            'correlation': self.correlation,
            'direction': self.direction.value,
            'confidence': self.confidence,
            'intercept': self.intercept,
            'p_value': self.p_value,
            'window_size': self.window_size,
        }


def series_values(samples: SeriesLike) -> np.ndarray:
    """Float array of sample values; plain numbers pass through."""
    if isinstance(samples, np.ndarray):
        return samples.astype(float, copy=False)
    return np.array([s.value if isinstance(s, Sample) else s for s in samples], dtype=float)


def rate_of_change(samples: Sequence[Sample], window_size: int) -> float:
    """Value change per second between the ends of the trailing window.

    Uses the whole series when it is shorter than ``window_size``.
    """
    count = len(samples)
    if count < 2 or window_size < 2:
        return 0.0

    start_idx = count - window_size if count >= window_size else 0
    end_idx = count - 1
    if start_idx >= end_idx:
        return 0.0

    first, last = samples[start_idx], samples[end_idx]
    elapsed_s = first.timestamp.elapsed_ms(last.timestamp) / 1000.0
    if elapsed_s <= 0:
        return 0.0
    return (last.value - first.value) / elapsed_s


class TrendAnalyzer:
    """Least-squares trend over the most recent ``window_size`` samples.

    Values are regressed against their position in the window (0..n-1),
    not against wall-clock time.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.default_window = self.config.get('window_size', 50)
        self.setup_logging()

    def setup_logging(self):
        self.logger = setup_logging('TrendAnalyzer', self.config.get('logging'))

    def analyze(self, samples: SeriesLike, window_size: Optional[int] = None) -> TrendResult:
        window_size = self.default_window if window_size is None else window_size
        values = series_values(samples)

        if window_size < 2 or len(values) < window_size:
            self.logger.debug(f"Trend analysis skipped: {len(values)} samples for window {window_size}")
            return TrendResult.neutral(window_size)

        try:
            y = values[-window_size:]
            if not np.all(np.isfinite(y)):
                raise DegenerateInputError("Trend window contains non-finite values")
            x = np.arange(window_size, dtype=float)
            n = float(window_size)

            sum_x = x.sum()
            sum_y = y.sum()
            sum_xy = float(np.dot(x, y))
            sum_x2 = float(np.dot(x, x))

            denominator = n * sum_x2 - sum_x * sum_x
            if abs(denominator) < DENOMINATOR_EPSILON:
                self.logger.warning("Trend regression denominator is degenerate; returning neutral trend")
                return TrendResult.neutral(window_size)

            slope = (n * sum_xy - sum_x * sum_y) / denominator

            dx = x - sum_x / n
            dy = y - sum_y / n
            sum_dx2 = float(np.dot(dx, dx))
            sum_dy2 = float(np.dot(dy, dy))
            correlation = 0.0
            if sum_dx2 > 0 and sum_dy2 > 0:
                correlation = float(np.clip(np.dot(dx, dy) / np.sqrt(sum_dx2 * sum_dy2), -1.0, 1.0))

            if abs(slope) < STABLE_SLOPE_THRESHOLD:
                direction = TrendDirection.STABLE
            elif slope > 0:
                direction = TrendDirection.INCREASING
            else:
                direction = TrendDirection.DECREASING

            regression = linregress(x, y)
            p_value = float(regression.pvalue) if np.isfinite(regression.pvalue) else 1.0

            return TrendResult(
                slope=float(slope),
                correlation=correlation,
                direction=direction,
                confidence=abs(correlation),
                intercept=float(regression.intercept),
                p_value=p_value,
                window_size=window_size,
            )
        except Exception as e:
            self.logger.error(f"Trend analysis failed: {str(e)}")
            raise

    def rate_of_change(self, samples: Sequence[Sample], window_size: Optional[int] = None) -> float:
        return rate_of_change(samples, self.default_window if window_size is None else window_size)
