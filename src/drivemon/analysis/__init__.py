"""
Driving event detection engine.

Provides the session processor, calibration presets and statistics.
"""

from .calibration import (
    AVAILABLE_CONFIGS,
    DEFAULT_MODE,
    DetectionConfig,
    SpeedLimits,
    Thresholds,
    get_config,
)
from .processor import DrivingDataProcessor
from .statistics import generate_session_stats
from .types import DrivingEvent, EnrichedSample, ProcessingResult, RawSample

__all__ = [
    "AVAILABLE_CONFIGS",
    "DEFAULT_MODE",
    "DetectionConfig",
    "DrivingDataProcessor",
    "DrivingEvent",
    "EnrichedSample",
    "ProcessingResult",
    "RawSample",
    "SpeedLimits",
    "Thresholds",
    "generate_session_stats",
    "get_config",
]
