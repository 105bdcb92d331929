"""
sensorstream
Streaming statistics, anomaly detection, trend and vibration safety analysis for sensor readings
"""

__version__ = '1.0.0'
