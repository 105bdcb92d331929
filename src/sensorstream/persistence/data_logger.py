import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from ..acquisition.models import Sample
from ..common.error_handling import LogWriteError
from ..common.logging import setup_logging
from ..common.validation import validate_config

CSV_COLUMNS = ['Timestamp', 'Sensor_Type', 'Value', 'Unit', 'Description']

DEFAULT_LOGGER_CONFIG = {
    'directory': 'data',
    'max_file_size_mb': 10,
    'auto_rotate': True,
    'buffer_size': 100,
    'flush_interval_ms': 1000,
}


class DataLogger:
    """Buffered, append-only CSV writer for accepted samples.

    Records are written as ``Timestamp,Sensor_Type,Value,Unit,Description``
    to ``<directory>/<base>_YYYYMMDD_HHMMSS.csv``. The buffer is flushed when
    it holds ``buffer_size`` records or ``flush_interval_ms`` has passed, and
    a new file is started once the current one exceeds ``max_file_size_mb``.
    """

    def __init__(self, base_filename: str = 'sensor_data', config: Optional[Dict[str, Any]] = None,
                 clock: Callable[[], datetime] = datetime.now,
                 monotonic: Callable[[], float] = time.monotonic):
        self.config = dict(DEFAULT_LOGGER_CONFIG, **(config or {}))
        validate_config(self.config, positive_keys=('max_file_size_mb', 'buffer_size'),
                        non_negative_keys=('flush_interval_ms',))
        self.base_filename = base_filename
        self.directory = Path(self.config['directory'])
        self.clock = clock
        self.monotonic = monotonic
        self.setup_logging()

        self.buffer: List[Tuple[str, str, float, str, str]] = []
        self.sample_count = 0
        self.current_file_size = 0
        self.current_path: Optional[Path] = None
        self.rotated_files: List[Path] = []
        self.closed = False
        self.last_flush = self.monotonic()
        self.open()

    def setup_logging(self):
        self.logger = setup_logging('DataLogger', self.config.get('logging'))

    def _new_path(self) -> Path:
        stamp = self.clock().strftime('%Y%m%d_%H%M%S')
        path = self.directory / f"{self.base_filename}_{stamp}.csv"
        suffix = 1
        while path.exists():
            path = self.directory / f"{self.base_filename}_{stamp}_{suffix}.csv"
            suffix += 1
        return path

    def open(self) -> Path:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            self.current_path = self._new_path()
            pd.DataFrame(columns=CSV_COLUMNS).to_csv(self.current_path, index=False)
            self.current_file_size = self.current_path.stat().st_size
        except OSError as e:
            self.logger.error(f"Creating log file failed: {str(e)}")
            raise LogWriteError(f"Cannot create log file in {self.directory}: {e}") from e

        self.logger.info(f"Data logger writing to {self.current_path}")
        return self.current_path

    def log(self, sample: Sample) -> None:
        if self.closed:
            raise LogWriteError("Data logger is closed")

        self.buffer.append(sample.to_record())
        self.sample_count += 1

        elapsed_ms = (self.monotonic() - self.last_flush) * 1000.0
        if len(self.buffer) >= self.config['buffer_size'] or elapsed_ms >= self.config['flush_interval_ms']:
            self.flush()

    def log_batch(self, samples: Iterable[Sample]) -> int:
        logged = 0
        for sample in samples:
            self.log(sample)
            logged += 1
        return logged

    def flush(self) -> int:
        """Writes buffered records; returns how many were written."""
        if not self.buffer:
            return 0

        records = self.buffer
        try:
            frame = pd.DataFrame.from_records(records, columns=CSV_COLUMNS)
            frame.to_csv(self.current_path, mode='a', header=False, index=False, float_format='%.6f')
            self.current_file_size = self.current_path.stat().st_size
        except OSError as e:
            self.logger.error(f"Flushing {len(records)} records failed: {str(e)}")
            raise LogWriteError(f"Cannot write to {self.current_path}: {e}") from e

        self.buffer = []
        self.last_flush = self.monotonic()

        max_bytes = self.config['max_file_size_mb'] * 1024 * 1024
        if self.config.get('auto_rotate', True) and self.current_file_size > max_bytes:
            self.rotate()
        return len(records)

    def rotate(self) -> Path:
        previous = self.current_path
        self.logger.info(f"Rotating log file {previous} ({self.current_file_size / (1024.0 * 1024.0):.2f} MB)")
        self.rotated_files.append(previous)
        return self.open()

    def stats(self) -> Dict[str, Any]:
        return {
            'sample_count': self.sample_count,
            'file_size': self.current_file_size,
            'filename': str(self.current_path),
            'buffered': len(self.buffer),
            'rotated_files': [str(p) for p in self.rotated_files],
        }

    def close(self) -> None:
        if self.closed:
            return
        self.flush()
        self.closed = True
        self.logger.info(f"Data logger closed. Total samples logged: {self.sample_count}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
