import pytest
import numpy as np
from sensorstream.analysis.safety_classifier import (
    SAFETY_MESSAGES, SafetyClassifier, SafetyStatus, SafetyThresholds
)
from sensorstream.common.error_handling import InvalidConfigError


@pytest.fixture
def classifier():
    return SafetyClassifier()


def test_insufficient_data(classifier):
    result = classifier.classify([0.05] * 9)

    assert result.safety_status is SafetyStatus.INSUFFICIENT_DATA
    assert result.rms_amplitude == 0.0
    assert result.message == "Insufficient data"


def test_safe_vibration(classifier, vibration_values, sample_factory):
    result = classifier.classify(sample_factory(vibration_values * 0.5))

    assert result.safety_status is SafetyStatus.SAFE
    assert result.message == "Normal vibration levels - Structure is safe"
    assert result.dominant_frequency == pytest.approx(1.0, abs=0.15)


def test_warning_on_rms(classifier):
    values = np.full(20, 0.2)

    result = classifier.classify(values)

    assert result.rms_amplitude == pytest.approx(0.2)
    assert result.peak_amplitude == pytest.approx(0.2)
    assert result.safety_status is SafetyStatus.WARNING
    assert result.message == SAFETY_MESSAGES[SafetyStatus.WARNING]


def test_warning_on_single_peak(classifier):
    values = np.full(20, 0.05)
    values[10] = 0.5

    result = classifier.classify(values)

    assert result.peak_amplitude == pytest.approx(0.5)
    assert result.safety_status is SafetyStatus.WARNING


def test_critical_vibration(classifier):
    values = np.full(20, 0.05)
    values[5] = 1.2

    result = classifier.classify(values)

    assert result.safety_status is SafetyStatus.CRITICAL
    assert result.message.startswith("CRITICAL")


def test_rms_formula(classifier):
    values = np.array([0.03, 0.04] * 5)

    result = classifier.classify(values)

    assert result.rms_amplitude == pytest.approx(np.sqrt((0.03 ** 2 + 0.04 ** 2) / 2))


def test_boundaries_are_exclusive(classifier):
    assert classifier.status_for(0.1, 0.0) is SafetyStatus.WARNING
    assert classifier.status_for(0.0, 0.8) is SafetyStatus.CRITICAL
    assert classifier.status_for(0.0999, 0.2999) is SafetyStatus.SAFE


def test_thresholds_from_config():
    classifier = SafetyClassifier(config={'safety': {'safe_rms': 1.0, 'safe_peak': 2.0,
                                                     'warning_rms': 3.0, 'warning_peak': 4.0}})

    assert classifier.classify(np.full(10, 0.9)).safety_status is SafetyStatus.SAFE
    assert classifier.classify(np.full(10, 2.5)).safety_status is SafetyStatus.WARNING


def test_inconsistent_thresholds_rejected():
    with pytest.raises(InvalidConfigError):
        SafetyThresholds(safe_rms=0.5, warning_rms=0.3)


def test_to_dict(classifier):
    result = classifier.classify(np.full(10, 0.05)).to_dict()

    assert result['safety_status'] == 'SAFE'
    assert result['rms_amplitude'] == pytest.approx(0.05)
