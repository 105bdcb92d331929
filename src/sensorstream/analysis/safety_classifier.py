from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np

from ..common.error_handling import InvalidConfigError
from ..common.logging import setup_logging
from ..common.validation import validate_input
from .frequency_estimator import FrequencyEstimator
from .trend_analyzer import SeriesLike, series_values

MIN_SAMPLES = 10


class SafetyStatus(Enum):
    SAFE = 0
    WARNING = 1
    CRITICAL = 2
    INSUFFICIENT_DATA = -1


SAFETY_MESSAGES = {
    SafetyStatus.SAFE: "Normal vibration levels - Structure is safe",
    SafetyStatus.WARNING: "Elevated vibration levels - Monitor closely",
    SafetyStatus.CRITICAL: "CRITICAL: Excessive vibration - Immediate inspection required",
    SafetyStatus.INSUFFICIENT_DATA: "Insufficient data",
}


@dataclass(frozen=True)
class SafetyThresholds:
    """RMS/peak vibration limits in m/s². Defaults are typical bridge limits."""
    safe_rms: float = 0.1
    safe_peak: float = 0.3
    warning_rms: float = 0.3
    warning_peak: float = 0.8

    def __post_init__(self):
        for name in ('safe_rms', 'safe_peak', 'warning_rms', 'warning_peak'):
            validate_input(getattr(self, name), name, strictly_positive=True)
        if self.safe_rms > self.warning_rms or self.safe_peak > self.warning_peak:
            raise InvalidConfigError("Safe limits must not exceed warning limits")

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]]) -> 'SafetyThresholds':
        config = config or {}
        defaults = cls()
        return cls(
            safe_rms=config.get('safe_rms', defaults.safe_rms),
            safe_peak=config.get('safe_peak', defaults.safe_peak),
            warning_rms=config.get('warning_rms', defaults.warning_rms),
            warning_peak=config.get('warning_peak', defaults.warning_peak),
        )


@dataclass(frozen=True)
class BridgeAnalysis:
    rms_amplitude: float = 0.0
    peak_amplitude: float = 0.0
    dominant_frequency: float = 0.0
    safety_status: SafetyStatus = SafetyStatus.INSUFFICIENT_DATA
    message: str = SAFETY_MESSAGES[SafetyStatus.INSUFFICIENT_DATA]

    @classmethod
    def insufficient_data(cls) -> 'BridgeAnalysis':
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rms_amplitude': self.rms_amplitude,
            'peak_amplitude': self.peak_amplitude,
            'dominant_frequency': self.dominant_frequency,
            'safety_status': self.safety_status.name,
            'message': self.message,
        }


class SafetyClassifier:
    """Maps RMS and peak vibration amplitude to a three-level safety verdict."""

    def __init__(self, thresholds: Optional[SafetyThresholds] = None,
                 frequency_estimator: Optional[FrequencyEstimator] = None,
                 config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.thresholds = thresholds or SafetyThresholds.from_dict(self.config.get('safety'))
        self.frequency_estimator = frequency_estimator or FrequencyEstimator(self.config.get('frequency'))
        self.setup_logging()

    def setup_logging(self):
        self.logger = setup_logging('SafetyClassifier', self.config.get('logging'))

    def status_for(self, rms: float, peak: float) -> SafetyStatus:
        t = self.thresholds
        if rms < t.safe_rms and peak < t.safe_peak:
            return SafetyStatus.SAFE
        if rms < t.warning_rms and peak < t.warning_peak:
            return SafetyStatus.WARNING
        return SafetyStatus.CRITICAL

    def classify(self, samples: SeriesLike) -> BridgeAnalysis:
        values = series_values(samples)
        if len(values) < MIN_SAMPLES:
            self.logger.info(f"Safety classification skipped: {len(values)} samples, need {MIN_SAMPLES}")
            return BridgeAnalysis.insufficient_data()

        try:
            rms = float(np.sqrt(np.mean(values * values)))
            peak = float(values.max())
            dominant_frequency, _ = self.frequency_estimator.estimate(values)

            status = self.status_for(rms, peak)
            if status is SafetyStatus.CRITICAL:
                self.logger.warning(f"Critical vibration: rms={rms:.4f} peak={peak:.4f}")

            return BridgeAnalysis(
                rms_amplitude=rms,
                peak_amplitude=peak,
                dominant_frequency=dominant_frequency,
                safety_status=status,
                message=SAFETY_MESSAGES[status],
            )
        except Exception as e:
            self.logger.error(f"Safety classification failed: {str(e)}")
            raise
