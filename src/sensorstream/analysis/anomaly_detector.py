from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..acquisition.models import Sample, Timestamp
from ..common.error_handling import CapacityExceededError, InsufficientDataError
from ..common.logging import setup_logging
from ..common.validation import validate_input
from .statistics import StatAccumulator

MAX_DESCRIPTION_LENGTH = 128
MAX_FIXED_POINT_WIDTH = 16


def format_magnitude(value: float) -> str:
    """Two decimals, or 6 significant digits once that would be wider than 16 characters."""
    text = f"{value:.2f}"
    if len(text) > MAX_FIXED_POINT_WIDTH:
        text = f"{value:.6g}"
    return text


@dataclass(frozen=True)
class AnomalyConfig:
    threshold_multiplier: float = 3.0
    absolute_threshold: float = 1.0
    window_size: int = 50
    min_samples_for_analysis: int = 20

    def __post_init__(self):
        validate_input(self.threshold_multiplier, 'threshold_multiplier', strictly_positive=True)
        validate_input(self.absolute_threshold, 'absolute_threshold', strictly_positive=True)
        validate_input(self.window_size, 'window_size', strictly_positive=True, integer=True)
        validate_input(self.min_samples_for_analysis, 'min_samples_for_analysis', minimum=0, integer=True)

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]]) -> 'AnomalyConfig':
        config = config or {}
        defaults = cls()
        return cls(
            threshold_multiplier=config.get('threshold_multiplier', defaults.threshold_multiplier),
            absolute_threshold=config.get('absolute_threshold', defaults.absolute_threshold),
            window_size=config.get('window_size', defaults.window_size),
            min_samples_for_analysis=config.get('min_samples_for_analysis', defaults.min_samples_for_analysis),
        )


@dataclass(frozen=True)
class AnomalyResult:
    is_anomaly: bool
    severity: float
    description: str
    detected_at: Optional[Timestamp]

    def __post_init__(self):
        if len(self.description) > MAX_DESCRIPTION_LENGTH:
            raise CapacityExceededError(MAX_DESCRIPTION_LENGTH,
                                        f"Anomaly description exceeds {MAX_DESCRIPTION_LENGTH} characters")

    @classmethod
    def normal(cls, detected_at: Optional[Timestamp] = None) -> 'AnomalyResult':
        return cls(is_anomaly=False, severity=0.0, description='Normal', detected_at=detected_at)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['detected_at'] = self.detected_at.format() if self.detected_at else None
        return result


class AnomalyDetector:
    """Flags samples that stray from a baseline or exceed an absolute limit.

    Two independent checks run per sample:

    * statistical: ``|value - mean| > threshold_multiplier * std_dev``, with
      severity expressed in standard deviations. A zero-variance baseline
      never triggers this check.
    * absolute: ``|value| > absolute_threshold``. Its severity,
      ``|value| / absolute_threshold``, is only used when the statistical
      check did not fire.
    """

    def __init__(self, config: Optional[AnomalyConfig] = None, logging_config: Optional[Dict[str, Any]] = None):
        self.config = config or AnomalyConfig()
        self.logging_config = logging_config
        self.setup_logging()

    def setup_logging(self):
        self.logger = setup_logging('AnomalyDetector', self.logging_config)

    def detect(self, sample: Sample, baseline: StatAccumulator,
               config: Optional[AnomalyConfig] = None) -> AnomalyResult:
        config = config or self.config

        if baseline.count < config.min_samples_for_analysis:
            return AnomalyResult.normal(sample.timestamp)

        is_anomaly = False
        severity = 0.0
        description = 'Normal'

        if baseline.std_dev > 0.0:
            deviation = abs(sample.value - baseline.mean)
            if deviation > config.threshold_multiplier * baseline.std_dev:
                is_anomaly = True
                severity = deviation / baseline.std_dev
                description = f"Statistical anomaly: {format_magnitude(severity)} std devs from mean"

        if abs(sample.value) > config.absolute_threshold:
            is_anomaly = True
            if severity == 0.0:
                severity = abs(sample.value) / config.absolute_threshold
                description = f"Absolute threshold exceeded: {format_magnitude(sample.value)}"

        if is_anomaly:
            self.logger.debug(f"{sample.kind.display_name} anomaly at {sample.timestamp.format()}: {description}")

        return AnomalyResult(is_anomaly=is_anomaly, severity=severity,
                             description=description, detected_at=sample.timestamp)

    def detect_batch(self, samples: Sequence[Sample],
                     config: Optional[AnomalyConfig] = None) -> Tuple[List[AnomalyResult], int]:
        """Re-evaluates every sample against statistics of the whole batch.

        This is a retrospective pass: each sample is judged against a
        baseline that already includes it and every later sample.
        """
        if not samples:
            raise InsufficientDataError("detect_batch requires at least one sample")

        try:
            baseline = StatAccumulator.from_values(s.value for s in samples)
            results = [self.detect(sample, baseline, config) for sample in samples]
            anomaly_count = sum(1 for r in results if r.is_anomaly)
            self.logger.info(f"Batch anomaly detection: {anomaly_count} of {len(samples)} samples flagged")
            return results, anomaly_count
        except Exception as e:
            self.logger.error(f"Batch anomaly detection failed: {str(e)}")
            raise
