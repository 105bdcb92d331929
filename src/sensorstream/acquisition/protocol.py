"""
Parsers for the line protocols spoken by field hardware.

Two formats are understood:

* tagged:   ``SENSOR:<TAG>:<VALUE>:<UNIT>[:<LABEL>]``  e.g. ``SENSOR:TEMP:23.45:C:Temperature``
* register: ``MB:<ADDR>:<REG>:<RAW>``                  e.g. ``MB:01:0001:2345``
"""

from typing import Any, Callable, Dict, IO, Optional

from ..common.error_handling import ProtocolParseError, SensorReadError
from ..common.logging import setup_logging
from .models import Sample, SensorKind, Timestamp

DEFAULT_LABEL = 'Hardware Sensor'

# register -> (kind, scale divisor, unit, label)
REGISTER_MAP = {
    1: (SensorKind.TEMPERATURE, 100.0, '°C', 'Modbus Temperature'),
    2: (SensorKind.HUMIDITY, 100.0, '%', 'Modbus Humidity'),
    3: (SensorKind.PRESSURE, 10.0, 'hPa', 'Modbus Pressure'),
}


def _fields(raw: str):
    return raw.strip('\r\n').split(':')


def parse_tagged_line(raw: str, timestamp: Optional[Timestamp] = None) -> Sample:
    fields = _fields(raw)
    if len(fields) < 4 or fields[0] != 'SENSOR':
        raise ProtocolParseError(raw)

    try:
        kind = SensorKind.from_tag(fields[1])
    except KeyError:
        raise ProtocolParseError(raw, f"Unknown sensor tag {fields[1]!r}")

    try:
        value = float(fields[2])
    except ValueError:
        raise ProtocolParseError(raw, f"Invalid sensor value {fields[2]!r}")

    label = fields[4] if len(fields) > 4 and fields[4] else DEFAULT_LABEL
    return Sample(kind=kind, value=value, timestamp=timestamp or Timestamp.now(), unit=fields[3], label=label)


def parse_register_line(raw: str, timestamp: Optional[Timestamp] = None) -> Sample:
    fields = _fields(raw)
    if len(fields) < 4 or fields[0] != 'MB':
        raise ProtocolParseError(raw)

    try:
        address, register, raw_value = (int(f) for f in fields[1:4])
    except ValueError:
        raise ProtocolParseError(raw, "Register line fields must be integers")

    timestamp = timestamp or Timestamp.now()
    if register in REGISTER_MAP:
        kind, divisor, unit, label = REGISTER_MAP[register]
        return Sample(kind=kind, value=raw_value / divisor, timestamp=timestamp, unit=unit, label=label)

    # Unmapped registers are passed through unscaled
    return Sample(kind=SensorKind.TEMPERATURE, value=float(raw_value), timestamp=timestamp,
                  unit='raw', label=f"Modbus Addr:{address} Reg:{register}")


def parse_line(raw: str, timestamp: Optional[Timestamp] = None) -> Sample:
    """Parses a line in either supported format.

    Raises:
        ProtocolParseError: the line matches neither format.
    """
    for parser in (parse_tagged_line, parse_register_line):
        try:
            return parser(raw, timestamp)
        except ProtocolParseError:
            continue
    raise ProtocolParseError(raw)


class LineSource:
    """Iterator of samples parsed from a line-oriented stream.

    ``stream`` is anything with ``readline()`` (a serial port wrapper, a
    socket file, ``io.StringIO``). Reads that return an empty string end the
    iteration. Unparseable lines raise ``SensorReadError`` for that read
    only; iteration can continue afterwards.
    """

    def __init__(self, stream: IO[str], clock: Callable[[], Timestamp] = Timestamp.now,
                 config: Optional[Dict[str, Any]] = None):
        self.stream = stream
        self.clock = clock
        self.config = config or {}
        self.lines_read = 0
        self.parse_failures = 0
        self.setup_logging()

    def setup_logging(self):
        self.logger = setup_logging('LineSource', self.config.get('logging'))

    def read(self) -> Sample:
        try:
            raw = self.stream.readline()
        except OSError as e:
            self.logger.error(f"Reading from sensor stream failed: {str(e)}")
            raise SensorReadError(f"Reading from sensor stream failed: {e}") from e

        if isinstance(raw, bytes):
            raw = raw.decode('utf-8', errors='replace')
        if raw == '':
            raise StopIteration

        self.lines_read += 1
        if not raw.strip():
            self.parse_failures += 1
            raise SensorReadError("Empty line from sensor stream")

        try:
            return parse_line(raw, self.clock())
        except ProtocolParseError:
            self.parse_failures += 1
            self.logger.warning(f"Unparseable sensor line: {raw.strip()!r}")
            raise

    def __iter__(self):
        return self

    def __next__(self) -> Sample:
        return self.read()
