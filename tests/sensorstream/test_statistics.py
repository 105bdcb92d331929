import math
import pytest
import numpy as np
from sensorstream.analysis.statistics import StatAccumulator
from sensorstream.common.error_handling import InsufficientDataError


def test_empty_accumulator_defaults():
    acc = StatAccumulator()

    assert acc.count == 0
    assert acc.min == math.inf
    assert acc.max == -math.inf
    assert acc.mean == 0.0
    assert acc.std_dev == 0.0


def test_finalize_on_empty_is_noop():
    acc = StatAccumulator()
    acc.finalize()

    assert acc.count == 0
    assert acc.mean == 0.0
    assert acc.variance == 0.0
    assert acc.median_approx == 0.0


def test_mean_and_extrema_match_numpy():
    rng = np.random.default_rng(7)
    values = rng.normal(5.0, 2.0, 500)

    acc = StatAccumulator()
    for v in values:
        acc.update(v)
    acc.finalize()

    assert acc.count == 500
    assert acc.mean == pytest.approx(values.mean(), rel=1e-9)
    assert acc.min == values.min()
    assert acc.max == values.max()
    # Population (biased) variance
    assert acc.variance == pytest.approx(values.var(ddof=0), rel=1e-6)
    assert acc.std_dev == pytest.approx(values.std(ddof=0), rel=1e-6)


def test_incremental_fields_valid_before_finalize():
    acc = StatAccumulator()
    for v in [3.0, -1.0, 4.0]:
        acc.update(v)

    assert acc.count == 3
    assert acc.sum == 6.0
    assert acc.sum_of_squares == 26.0
    assert acc.min == -1.0
    assert acc.max == 4.0
    # Derived values are not refreshed until finalize
    assert acc.mean == 0.0


def test_finalize_is_idempotent():
    acc = StatAccumulator.from_values([0.1, 0.7, 0.3, 0.9, 0.2])
    first = (acc.mean, acc.variance, acc.std_dev, acc.median_approx)

    acc.finalize()
    second = (acc.mean, acc.variance, acc.std_dev, acc.median_approx)

    assert first == second


def test_median_is_approximated_by_mean():
    acc = StatAccumulator.from_values([1.0, 2.0, 100.0])

    # Deliberate approximation: the median reported is the mean, not 2.0
    assert acc.median_approx == pytest.approx(acc.mean)
    assert acc.median_approx == pytest.approx(103.0 / 3)


def test_exact_median_when_values_retained():
    acc = StatAccumulator.from_values([1.0, 2.0, 100.0], retain_values=True)

    assert acc.exact_median() == 2.0
    assert acc.median_approx == pytest.approx(103.0 / 3)


def test_exact_median_requires_retained_values():
    acc = StatAccumulator.from_values([1.0, 2.0])

    with pytest.raises(InsufficientDataError):
        acc.exact_median()

    with pytest.raises(InsufficientDataError):
        StatAccumulator(retain_values=True).exact_median()


def test_constant_stream_has_zero_variance():
    acc = StatAccumulator.from_values([0.1] * 25)

    assert acc.mean == pytest.approx(0.1)
    assert acc.variance == 0.0
    assert acc.std_dev == 0.0


def test_variance_never_negative_for_large_offsets():
    acc = StatAccumulator.from_values([1e8 + 0.1] * 1000)

    assert acc.variance >= 0.0
    assert not math.isnan(acc.std_dev)


def test_to_dict_contains_finalized_view():
    result = StatAccumulator.from_values([1.0, 3.0]).to_dict()

    assert result['count'] == 2
    assert result['mean'] == 2.0
    assert result['min'] == 1.0
    assert result['max'] == 3.0
    assert result['std_dev'] == pytest.approx(1.0)
    assert StatAccumulator().to_dict()['min'] is None


def test_low_noise_on_large_offset_keeps_variance():
    # an hour of pressure readings at 10 Hz with 0.002 hPa noise
    rng = np.random.default_rng(2024)
    values = 1013.25 + rng.normal(0.0, 0.002, 36000)

    acc = StatAccumulator.from_values(values)

    assert acc.std_dev > 0.0
    assert acc.std_dev == pytest.approx(values.std(), rel=0.1)


def test_negative_rounding_is_clamped_to_zero():
    acc = StatAccumulator()
    acc.count = 3
    acc.sum = 0.3
    acc.sum_of_squares = 0.029999999999999
    acc.min, acc.max = 0.09999, 0.10001

    acc.finalize()

    assert acc.variance == 0.0
    assert acc.std_dev == 0.0
