"""
Analysis Components
Provides the streaming statistics, anomaly, trend, frequency and safety analyses
"""

from .statistics import StatAccumulator
from .moving_average import MovingAverageFilter
from .anomaly_detector import AnomalyConfig, AnomalyResult, AnomalyDetector
from .trend_analyzer import TrendAnalyzer, TrendResult, TrendDirection, rate_of_change
from .frequency_estimator import FrequencyEstimator
from .safety_classifier import SafetyClassifier, SafetyThresholds, SafetyStatus, BridgeAnalysis
from .sample_buffer import SampleBuffer, samples_to_frame
from .orchestrator import AnalysisOrchestrator, SessionState, ChannelState, DEFAULT_CONFIG

__all__ = [
    'StatAccumulator',
    'MovingAverageFilter',
    'AnomalyConfig',
    'AnomalyResult',
    'AnomalyDetector',
    'TrendAnalyzer',
    'TrendResult',
    'TrendDirection',
    'rate_of_change',
    'FrequencyEstimator',
    'SafetyClassifier',
    'SafetyThresholds',
    'SafetyStatus',
    'BridgeAnalysis',
    'SampleBuffer',
    'samples_to_frame',
    'AnalysisOrchestrator',
    'SessionState',
    'ChannelState',
    'ANALYSIS_CONFIG',
]

# Analysis configuration
ANALYSIS_CONFIG = DEFAULT_CONFIG
