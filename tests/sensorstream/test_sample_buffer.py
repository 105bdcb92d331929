import pytest
from sensorstream.acquisition.models import SensorKind
from sensorstream.analysis.sample_buffer import SampleBuffer, samples_to_frame
from sensorstream.common.error_handling import CapacityExceededError, InvalidConfigError


def test_session_capacity():
    assert SampleBuffer.for_session(60, 100).capacity == 600
    assert SampleBuffer.for_session(1, 300).capacity == 3
    assert SampleBuffer.for_session(0.01, 100).capacity == 1


@pytest.mark.parametrize("capacity", [0, -1, 1.5, True])
def test_invalid_capacity(capacity):
    with pytest.raises(InvalidConfigError):
        SampleBuffer(capacity)


def test_invalid_session_parameters():
    with pytest.raises(InvalidConfigError):
        SampleBuffer.for_session(10, 0)


def test_append_until_full(sample_factory):
    buffer = SampleBuffer(3)
    samples = sample_factory([1.0, 2.0, 3.0, 4.0])

    for sample in samples[:3]:
        buffer.append(sample)

    assert buffer.is_full()
    assert buffer.remaining == 0
    with pytest.raises(CapacityExceededError) as exc_info:
        buffer.append(samples[3])
    assert exc_info.value.capacity == 3
    assert len(buffer) == 3
    assert list(buffer.values()) == [1.0, 2.0, 3.0]


def test_filter_by_kind(sample_factory):
    buffer = SampleBuffer(10)
    for sample in sample_factory([1.0, 2.0]) + sample_factory([20.0], kind=SensorKind.TEMPERATURE, unit='°C'):
        buffer.append(sample)

    assert list(buffer.values(SensorKind.TEMPERATURE)) == [20.0]
    assert len(buffer.samples(SensorKind.VIBRATION)) == 2


def test_frame(sample_factory):
    buffer = SampleBuffer(5)
    for sample in sample_factory([0.1, 0.2]):
        buffer.append(sample)

    frame = buffer.to_frame()

    assert list(frame.columns) == ['timestamp', 'sensor_kind', 'value', 'unit', 'label']
    assert frame['value'].tolist() == [0.1, 0.2]
    assert (frame['sensor_kind'] == 'vibration').all()
    assert samples_to_frame([]).empty


def test_capacity_scales_with_channels_per_tick():
    buffer = SampleBuffer.for_session(1, 100, channels_per_tick=3)

    assert buffer.ticks == 10
    assert buffer.capacity == 30


def test_widen_only_grows():
    buffer = SampleBuffer(4)
    buffer.widen(3)
    buffer.widen(2)

    assert buffer.capacity == 12
    with pytest.raises(InvalidConfigError):
        SampleBuffer(4, channels_per_tick=0)
