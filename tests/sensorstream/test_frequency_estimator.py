import pytest
import numpy as np
from sensorstream.analysis.frequency_estimator import FrequencyEstimator
from sensorstream.common.error_handling import InsufficientDataError, InvalidConfigError


@pytest.fixture
def estimator():
    return FrequencyEstimator()


def test_requires_four_values(estimator):
    with pytest.raises(InsufficientDataError):
        estimator.estimate([0.1, 0.3, 0.1])


def test_counts_strict_interior_peaks(estimator):
    values = [0.0, 1.0, 0.0, 2.0, 0.0, 1.5, 0.0, 0.0, 0.0, 0.0]

    frequency, amplitude = estimator.estimate(values)

    # 3 peaks over 10 samples * 0.1 s
    assert frequency == pytest.approx(3.0)
    assert amplitude == pytest.approx(2.0)


def test_plateaus_and_endpoints_are_not_peaks(estimator):
    values = [5.0, 1.0, 2.0, 2.0, 1.0, 0.0, 9.0]

    frequency, amplitude = estimator.estimate(values)

    assert frequency == 0.0
    assert amplitude == 0.0


def test_cosine_wave_frequency(estimator, vibration_values):
    frequency, amplitude = estimator.estimate(vibration_values)

    # 1 Hz cosine over 10 s: nine interior crests
    assert frequency == pytest.approx(1.0, abs=0.15)
    assert amplitude == pytest.approx(0.12, abs=1e-3)


def test_negative_peaks_report_zero_amplitude(estimator):
    frequency, amplitude = estimator.estimate([-3.0, -1.0, -3.0, -3.0])

    assert frequency == pytest.approx(2.5)
    assert amplitude == 0.0


def test_custom_sample_period(sample_factory):
    estimator = FrequencyEstimator({'sample_period_s': 0.01})
    values = np.tile([0.0, 1.0], 50)

    frequency, _ = estimator.estimate(sample_factory(values))

    assert frequency == pytest.approx(49 / 1.0)


def test_invalid_sample_period():
    with pytest.raises(InvalidConfigError):
        FrequencyEstimator({'sample_period_s': 0})
