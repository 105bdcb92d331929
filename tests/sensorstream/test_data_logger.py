import pytest
import pandas as pd
from datetime import datetime
from sensorstream.analysis.orchestrator import AnalysisOrchestrator
from sensorstream.common.error_handling import InvalidConfigError, LogWriteError
from sensorstream.persistence.data_logger import CSV_COLUMNS, DataLogger

FIXED_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def logger_factory(tmp_path):
    def factory(**overrides):
        config = {'directory': str(tmp_path / 'logs'), 'buffer_size': 3, 'flush_interval_ms': 60000}
        config.update(overrides)
        return DataLogger('bridge', config, clock=lambda: FIXED_TIME, monotonic=lambda: 0.0)
    return factory


def read_lines(path):
    return path.read_text(encoding='utf-8').splitlines()


def test_creates_file_with_header(logger_factory, tmp_path):
    data_logger = logger_factory()

    assert data_logger.current_path == tmp_path / 'logs' / 'bridge_20240101_120000.csv'
    assert read_lines(data_logger.current_path) == [','.join(CSV_COLUMNS)]


def test_records_buffered_until_full(logger_factory, sample_factory):
    data_logger = logger_factory()
    samples = sample_factory([0.1, 0.2, 0.3])

    data_logger.log(samples[0])
    data_logger.log(samples[1])
    assert data_logger.stats()['buffered'] == 2
    assert len(read_lines(data_logger.current_path)) == 1

    data_logger.log(samples[2])
    lines = read_lines(data_logger.current_path)

    assert len(lines) == 4
    assert lines[1] == '2024-01-01 12:00:00.000000,Vibration,0.100000,m/s²,Test'
    assert data_logger.stats()['buffered'] == 0


def test_flush_interval(tmp_path, sample_factory):
    times = iter([0.0, 0.5, 2.0, 2.0])
    data_logger = DataLogger('timed', {'directory': str(tmp_path), 'buffer_size': 100},
                             clock=lambda: FIXED_TIME, monotonic=lambda: next(times))

    data_logger.log_batch(sample_factory([1.0, 2.0]))

    assert len(read_lines(data_logger.current_path)) == 3


def test_close_flushes_and_blocks_writes(logger_factory, sample_factory):
    with logger_factory() as data_logger:
        data_logger.log(sample_factory([0.5])[0])

    frame = pd.read_csv(data_logger.current_path)
    assert list(frame.columns) == CSV_COLUMNS
    assert frame['Value'].tolist() == [0.5]
    with pytest.raises(LogWriteError):
        data_logger.log(sample_factory([0.6])[0])


def test_rotation(logger_factory, sample_factory):
    data_logger = logger_factory(buffer_size=1, max_file_size_mb=0.0001)

    data_logger.log_batch(sample_factory([0.1, 0.2, 0.3]))
    stats = data_logger.stats()

    assert stats['sample_count'] == 3
    # header plus one row fits, the second row pushes the file over the limit
    assert len(stats['rotated_files']) == 1
    assert stats['rotated_files'][0].endswith('bridge_20240101_120000.csv')
    assert stats['filename'].endswith('bridge_20240101_120000_1.csv')


def test_unwritable_directory(tmp_path):
    blocker = tmp_path / 'blocker'
    blocker.write_text('not a directory')

    with pytest.raises(LogWriteError):
        DataLogger(config={'directory': str(blocker / 'logs')})


def test_invalid_config(tmp_path):
    with pytest.raises(InvalidConfigError):
        DataLogger(config={'directory': str(tmp_path), 'buffer_size': 0})


def test_logs_every_accepted_sample(logger_factory, analysis_config, sample_factory):
    data_logger = logger_factory()
    orchestrator = AnalysisOrchestrator(analysis_config, sink=data_logger)

    report = orchestrator.run(sample_factory([0.1] * 8), sleep=lambda s: None, clock=lambda: 0.0)
    data_logger.close()

    frame = pd.read_csv(data_logger.current_path)
    assert len(frame) == report['sample_count'] == 8
    assert set(frame['Sensor_Type']) == {'Vibration'}
