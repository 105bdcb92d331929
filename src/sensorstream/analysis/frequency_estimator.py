from typing import Any, Dict, Optional, Tuple

import numpy as np

from ..common.error_handling import InsufficientDataError
from ..common.logging import setup_logging
from ..common.validation import validate_input
from .trend_analyzer import SeriesLike, series_values

MIN_SAMPLES = 4
DEFAULT_SAMPLE_PERIOD_S = 0.1


class FrequencyEstimator:
    """Approximates the dominant frequency of a buffer by counting peaks.

    Strict interior local maxima are counted and divided by the buffer
    duration, assuming a fixed sample period (100 ms by default). This is a
    coarse proxy, not a Fourier transform: noisy or multi-tone signals
    produce many spurious peaks and overestimate the frequency.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.sample_period_s = validate_input(
            self.config.get('sample_period_s', DEFAULT_SAMPLE_PERIOD_S), 'sample_period_s', strictly_positive=True)
        self.setup_logging()

    def setup_logging(self):
        self.logger = setup_logging('FrequencyEstimator', self.config.get('logging'))

    def estimate(self, values: SeriesLike) -> Tuple[float, float]:
        """Returns ``(dominant_frequency_hz, amplitude)``.

        ``amplitude`` is the highest peak value, or 0.0 when no peak rises
        above zero.

        Raises:
            InsufficientDataError: fewer than four values.
        """
        data = series_values(values)
        count = len(data)
        if count < MIN_SAMPLES:
            raise InsufficientDataError(f"Frequency estimation needs at least {MIN_SAMPLES} samples, got {count}")

        interior = data[1:-1]
        is_peak = (interior > data[:-2]) & (interior > data[2:])
        peak_count = int(is_peak.sum())

        amplitude = 0.0
        if peak_count:
            amplitude = max(0.0, float(interior[is_peak].max()))

        total_time = count * self.sample_period_s
        dominant_frequency = peak_count / total_time if peak_count > 0 else 0.0

        self.logger.debug(f"Counted {peak_count} peaks over {total_time:.1f}s -> {dominant_frequency:.3f} Hz")
        return dominant_frequency, amplitude
