import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from ..acquisition.models import Sample, SensorKind
from ..common.configuration import merge_config
from ..common.error_handling import (
    CapacityExceededError,
    LogWriteError,
    SensorReadError,
    SensorStreamError,
    SessionStateError,
    handle_error,
)
from ..common.logging import setup_logging
from ..common.validation import validate_input
from .anomaly_detector import AnomalyConfig, AnomalyDetector, AnomalyResult, format_magnitude
from .moving_average import MovingAverageFilter
from .safety_classifier import BridgeAnalysis, SafetyClassifier
from .sample_buffer import SampleBuffer
from .statistics import StatAccumulator
from .trend_analyzer import TrendAnalyzer, TrendResult, rate_of_change

Tick = Union[Sample, Sequence[Sample]]

DEFAULT_CONFIG: Dict[str, Any] = {
    'anomaly': {
        'threshold_multiplier': 3.0,
        'absolute_threshold': 1.0,  # m/s²
        'window_size': 50,
        'min_samples_for_analysis': 20
    },
    'moving_average': {
        'window_size': 20,
        'channels': ['vibration']
    },
    'trend': {
        'window_size': 50
    },
    'frequency': {
        'sample_period_s': 0.1
    },
    'safety': {
        'safe_rms': 0.1,
        'safe_peak': 0.3,
        'warning_rms': 0.3,
        'warning_peak': 0.8
    },
    'statistics': {
        'retain_values': False
    },
    'session': {
        'duration_s': 60,
        'interval_ms': 100,
        'primary_channel': 'vibration',
        'channels_per_tick': 1
    },
    'logging': {
        'level': 'INFO',
        'log_file': None
    }
}


class SessionState(Enum):
    IDLE = 'idle'
    COLLECTING = 'collecting'
    FINALIZING = 'finalizing'
    REPORTED = 'reported'


@dataclass
class ChannelState:
    """Per-sensor-kind accumulator state owned by one session."""
    kind: SensorKind
    stats: StatAccumulator
    moving_average: Optional[MovingAverageFilter] = None
    anomaly_count: int = 0
    last_anomaly: Optional[AnomalyResult] = None
    last_value: Optional[float] = None

    def summary(self) -> Dict[str, Any]:
        self.stats.finalize()
        return {
            'stats': self.stats.to_dict(),
            'anomaly_count': self.anomaly_count,
            'last_anomaly': self.last_anomaly.to_dict() if self.last_anomaly else None,
            'moving_average': self.moving_average.current_average() if self.moving_average else None,
            'last_value': self.last_value,
        }


class AnalysisOrchestrator:
    """Runs one monitoring session: IDLE -> COLLECTING -> FINALIZING -> REPORTED.

    Each accepted sample is judged against the statistics of the samples
    that preceded it on the same channel (once that channel has
    ``min_samples_for_analysis`` samples), then folded into those
    statistics. At the end of the session the buffered batch feeds the trend
    analysis and, for vibration, the safety classifier.

    Analysis errors never abort a session; a neutral result is substituted
    and logged instead.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, sink=None,
                 anomaly_detector: Optional[AnomalyDetector] = None,
                 trend_analyzer: Optional[TrendAnalyzer] = None,
                 safety_classifier: Optional[SafetyClassifier] = None):
        self.config = merge_config(DEFAULT_CONFIG, config)
        self.sink = sink
        self.setup_logging()

        self.anomaly_config = AnomalyConfig.from_dict(self.config.get('anomaly'))
        self.anomaly_detector = anomaly_detector or AnomalyDetector(self.anomaly_config, self.config.get('logging'))
        self.trend_analyzer = trend_analyzer or TrendAnalyzer(
            dict(self.config.get('trend', {}), logging=self.config.get('logging')))
        self.safety_classifier = safety_classifier or SafetyClassifier(config=self.config)

        ma_config = self.config.get('moving_average', {})
        self.smoothing_window = validate_input(ma_config.get('window_size', 20), 'moving_average.window_size',
                                               strictly_positive=True, integer=True)
        self.smoothing_channels = {SensorKind(name) for name in ma_config.get('channels', [])}
        self.retain_values = self.config.get('statistics', {}).get('retain_values', False)

        session_config = self.config.get('session', {})
        self.primary_channel = SensorKind(session_config.get('primary_channel', 'vibration'))

        self.state = SessionState.IDLE
        self.channels: Dict[SensorKind, ChannelState] = {}
        self.buffer: Optional[SampleBuffer] = None
        self.duration_s: Optional[float] = None
        self.interval_ms: Optional[float] = None
        self.anomaly_count = 0
        self.last_anomaly: Optional[AnomalyResult] = None
        self.log_failures = 0
        self.read_failures = 0
        self.started_at: Optional[datetime] = None
        self.report: Optional[Dict[str, Any]] = None

    def setup_logging(self):
        self.logger = setup_logging('AnalysisOrchestrator', self.config.get('logging'))

    def start_session(self, duration_s: Optional[float] = None, interval_ms: Optional[float] = None,
                      channels_per_tick: Optional[int] = None) -> SampleBuffer:
        if self.state is not SessionState.IDLE:
            raise SessionStateError(f"Cannot start a session in state {self.state.value}")

        session_config = self.config.get('session', {})
        duration_s = session_config.get('duration_s', 60) if duration_s is None else duration_s
        interval_ms = session_config.get('interval_ms', 100) if interval_ms is None else interval_ms
        if channels_per_tick is None:
            channels_per_tick = session_config.get('channels_per_tick', 1)

        self.buffer = SampleBuffer.for_session(duration_s, interval_ms, channels_per_tick)
        self.duration_s = duration_s
        self.interval_ms = interval_ms
        self.started_at = datetime.now()
        self.state = SessionState.COLLECTING
        self.logger.info(f"Session started: duration={duration_s}s interval={interval_ms}ms "
                         f"capacity={self.buffer.capacity} samples")
        return self.buffer

    def _channel(self, kind: SensorKind) -> ChannelState:
        channel = self.channels.get(kind)
        if channel is None:
            moving_average = None
            if kind in self.smoothing_channels:
                moving_average = MovingAverageFilter(self.smoothing_window)
            channel = ChannelState(kind=kind, stats=StatAccumulator(retain_values=self.retain_values),
                                   moving_average=moving_average)
            self.channels[kind] = channel
        return channel

    def accept(self, sample: Sample) -> AnomalyResult:
        """Ingests one sample in arrival order and returns its anomaly verdict.

        Raises:
            SessionStateError: no session is collecting.
            CapacityExceededError: the session's sample buffer is full; the
                session moves to FINALIZING.
        """
        if self.state is not SessionState.COLLECTING:
            raise SessionStateError(f"Cannot accept samples in state {self.state.value}")

        try:
            self.buffer.append(sample)
        except CapacityExceededError:
            self.state = SessionState.FINALIZING
            self.logger.warning(f"Sample buffer full after {len(self.buffer)} samples; session is finalizing")
            raise
        channel = self._channel(sample.kind)

        result = AnomalyResult.normal(sample.timestamp)
        if channel.stats.count >= self.anomaly_config.min_samples_for_analysis:
            try:
                result = self.anomaly_detector.detect(sample, channel.stats.finalize(), self.anomaly_config)
            except SensorStreamError as e:
                self.logger.warning(f"Anomaly detection failed for {sample.kind.display_name}: {str(e)}")

        channel.stats.update(sample.value)
        channel.last_value = sample.value
        if channel.moving_average is not None:
            channel.moving_average.update(sample.value)

        if result.is_anomaly:
            channel.anomaly_count += 1
            channel.last_anomaly = result
            self.anomaly_count += 1
            self.last_anomaly = result
            self.logger.info(f"ANOMALY DETECTED at {sample.timestamp.format()}: "
                             f"{result.description} (Severity: {format_magnitude(result.severity)})")

        self._persist(sample)
        return result

    def _persist(self, sample: Sample) -> None:
        if self.sink is None:
            return
        try:
            self.sink.log(sample)
        except (LogWriteError, OSError) as e:
            self.log_failures += 1
            self.logger.warning(f"Persisting sample failed: {str(e)}")

    def snapshot(self, kind: Optional[SensorKind] = None) -> Dict[str, Any]:
        """Finalized statistics plus anomaly counters.

        With ``kind`` the view is restricted to that channel; otherwise the
        primary channel (or the first channel seen) provides ``stats``.
        """
        if kind is None:
            kind = self._primary_kind()
        channel = self.channels.get(kind) if kind is not None else None

        stats = channel.stats.finalize() if channel else StatAccumulator()
        return {
            'state': self.state.value,
            'channel': kind.value if kind else None,
            'stats': stats,
            'anomaly_count': channel.anomaly_count if channel else 0,
            'last_anomaly': channel.last_anomaly if channel else None,
            'moving_average': channel.moving_average.current_average() if channel and channel.moving_average else None,
            'total_samples': len(self.buffer) if self.buffer is not None else 0,
            'total_anomalies': self.anomaly_count,
        }

    def _primary_kind(self) -> Optional[SensorKind]:
        if self.primary_channel in self.channels:
            return self.primary_channel
        return next(iter(self.channels), None)

    def finalize_session(self, batch: Optional[Iterable[Sample]] = None) -> Dict[str, Any]:
        """Runs the end-of-session analyses and moves the session to REPORTED.

        ``batch`` defaults to the samples buffered during the session. Trend
        analysis runs per channel; the safety verdict covers vibration only.
        """
        if self.state not in (SessionState.COLLECTING, SessionState.FINALIZING):
            raise SessionStateError(f"Cannot finalize a session in state {self.state.value}")
        self.state = SessionState.FINALIZING

        samples: List[Sample] = list(batch) if batch is not None else self.buffer.samples()
        self.logger.info(f"Finalizing session with {len(samples)} samples")

        by_kind: Dict[SensorKind, List[Sample]] = {}
        for sample in samples:
            by_kind.setdefault(sample.kind, []).append(sample)

        trend_window = self.config.get('trend', {}).get('window_size', 50)
        trends: Dict[str, TrendResult] = {}
        rates: Dict[str, float] = {}
        for kind, kind_samples in by_kind.items():
            trends[kind.value] = self._safe_trend(kind_samples, trend_window)
            rates[kind.value] = rate_of_change(kind_samples, trend_window)

        bridge = None
        vibration_samples = by_kind.get(SensorKind.VIBRATION)
        if vibration_samples is not None:
            bridge = self._safe_classify(vibration_samples)

        primary = self.primary_channel if self.primary_channel in by_kind else next(iter(by_kind), None)
        trend = trends[primary.value] if primary is not None else TrendResult.neutral(trend_window)

        self.report = {
            'trend': trend,
            'trends': trends,
            'rate_of_change': rates,
            'bridge': bridge,
            'channels': {kind.value: channel.summary() for kind, channel in self.channels.items()},
            'sample_count': len(samples),
            'anomaly_count': self.anomaly_count,
            'anomaly_rate': (self.anomaly_count / len(samples)) if samples else 0.0,
            'log_failures': self.log_failures,
            'read_failures': self.read_failures,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'timestamp': datetime.now().isoformat()
        }
        self.state = SessionState.REPORTED
        self.logger.info(f"Session reported: {len(samples)} samples, {self.anomaly_count} anomalies")
        return self.report

    def _safe_trend(self, samples: List[Sample], window_size: int) -> TrendResult:
        try:
            return self.trend_analyzer.analyze(samples, window_size)
        except SensorStreamError as e:
            self.logger.warning(f"Trend analysis failed, using neutral trend: {str(e)}")
            return TrendResult.neutral(window_size)

    def _safe_classify(self, samples: List[Sample]) -> BridgeAnalysis:
        try:
            return self.safety_classifier.classify(samples)
        except SensorStreamError as e:
            self.logger.warning(f"Safety classification failed, reporting insufficient data: {str(e)}")
            return BridgeAnalysis.insufficient_data()

    def run(self, source: Iterable[Tick], duration_s: Optional[float] = None,
            interval_ms: Optional[float] = None, stop_event=None,
            fallback: Optional[Iterator[Tick]] = None,
            channels_per_tick: Optional[int] = None,
            sleep: Callable[[float], None] = time.sleep,
            clock: Callable[[], float] = time.monotonic) -> Dict[str, Any]:
        """Collects from ``source`` until the budget, duration or ``stop_event`` ends the session.

        Each item from ``source`` is one tick: a single ``Sample`` or a
        sequence of samples read together (an environmental set). All samples
        of a tick are accepted before the single sleep of ``interval_ms``, and
        the buffer holds ``ticks * channels_per_tick`` samples so a set is
        never split. ``channels_per_tick`` widens to the largest tick seen.

        ``stop_event`` is anything with ``is_set()`` (e.g. ``threading.Event``)
        and is checked once per tick, before the next read. A read that raises
        ``SensorReadError`` or ``OSError`` is replaced by the next ``fallback``
        tick when a fallback is given, otherwise the tick produces no sample.
        Any other error finalizes the session before it is re-raised.
        """
        self.start_session(duration_s, interval_ms, channels_per_tick)
        iterator = iter(source)
        started = clock()
        duration_ms = self.duration_s * 1000.0

        try:
            while self.state is SessionState.COLLECTING:
                if stop_event is not None and stop_event.is_set():
                    self.logger.info("Stop requested; finalizing with collected samples")
                    break
                if self.buffer.is_full():
                    break

                try:
                    samples = tick_samples(self._read(iterator, fallback))
                except StopIteration:
                    self.logger.info("Sensor source exhausted")
                    break

                if samples:
                    self.buffer.widen(len(samples))
                    if len(samples) > self.buffer.remaining:
                        self.logger.warning(f"Sample buffer cannot hold a tick of {len(samples)} samples")
                        break
                    for sample in samples:
                        self.accept(sample)

                if (clock() - started) * 1000.0 >= duration_ms:
                    break
                sleep(self.interval_ms / 1000.0)
        except Exception as e:
            if self.state in (SessionState.COLLECTING, SessionState.FINALIZING):
                self.finalize_session()
            handle_error(self.logger, e, "Monitoring session")

        return self.finalize_session()

    def _read(self, iterator: Iterator[Tick], fallback: Optional[Iterator[Tick]]) -> Optional[Tick]:
        try:
            return next(iterator)
        except (SensorReadError, OSError) as e:
            self.read_failures += 1
            if fallback is None:
                self.logger.warning(f"Sensor read failed, skipping tick: {str(e)}")
                return None
            self.logger.warning(f"Sensor read failed, using fallback: {str(e)}")
            return next(fallback, None)


def tick_samples(tick: Optional[Tick]) -> List[Sample]:
    """Samples read in one tick: ``None``, a ``Sample`` or a sequence of them."""
    if tick is None:
        return []
    if isinstance(tick, Sample):
        return [tick]
    return list(tick)
