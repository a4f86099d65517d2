"""
Constants and enumerations for driving event detection.

Calibration values are the field-tested defaults; the named presets in
analysis.calibration reference them.
"""

from enum import Enum
from pathlib import Path

# ============================================================================
# Enumerations
# ============================================================================


class EventType(str, Enum):
    """Classified aggressive driving events."""

    HARSH_ACCELERATION = "harsh_acceleration"
    HARSH_BRAKING = "harsh_braking"
    AGGRESSIVE_TURN = "aggressive_turn"
    SPEEDING = "speeding"


class Severity(str, Enum):
    """Event severity, ordered from least to most severe."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


class DrivingContext(str, Enum):
    """Road context used to pick a speed limit."""

    HIGHWAY = "highway"
    URBAN_FAST = "urban_fast"
    URBAN = "urban"
    RESIDENTIAL = "residential"
    SCHOOL = "school"  # Never auto-detected, manual override only
    STATIONARY = "stationary"


class DetectionMethod(str, Enum):
    """Sensor evidence behind a sample's movement decision."""

    GPS_ACCEL = "GPS+Accel"
    ACCEL_ONLY = "Accel-Only"


class ParticipantGroup(str, Enum):
    """Study arm of the participant."""

    CONTROL = "control"
    EXPERIMENTAL = "experimental"


EVENT_TYPES: tuple[EventType, ...] = tuple(EventType)

# ============================================================================
# Detection Constants
# ============================================================================


class DetectionConstants:
    """
    Calibrated thresholds for movement classification and event detection.

    These are the field-tested values. Acceleration thresholds are m/s²,
    speeds km/h, times milliseconds.
    """

    HARSH_ACCELERATION = 2.0
    HARSH_BRAKING = 2.0
    AGGRESSIVE_TURN = 3.0
    SPEEDING_MARGIN = 25.0
    MINIMUM_SPEED = 3.0
    MOTION_THRESHOLD = 1.5
    GPS_NOISE = 1.0
    STABILITY_TIME_MS = 2000.0
    RECORD_INTERVAL_MS = 1500.0

    SPEEDING_DEBOUNCE_FACTOR = 3
    TURN_MIN_SPEED = 15.0
    SPEEDING_MIN_SPEED = 30.0

    # Movement classifier windows
    BASELINE_SAMPLES = 5
    ACCEL_HISTORY_SIZE = 10
    MOTION_HISTORY_SIZE = 20
    SUSTAINED_WINDOW = 5
    SUSTAINED_MIN_MOVING = 3
    BUFFER_SIZE = 8

    # Confidence weights
    GPS_SPEED_WEIGHT = 40
    GPS_DISPLACEMENT_WEIGHT = 30
    GPS_ACCEL_WEIGHT = 30
    ACCEL_ONLY_MOTION_WEIGHT = 70
    ACCEL_ONLY_SUSTAINED_WEIGHT = 30
    MAX_CONFIDENCE = 100
    GPS_MOVING_CONFIDENCE = 50
    ACCEL_ONLY_MOVING_CONFIDENCE = 40

    # Speed estimation from accelerometer variation: (min variation, km/h)
    SPEED_ESTIMATION_WINDOW = 3
    SPEED_ESTIMATION_STEPS: tuple[tuple[float, float], ...] = (
        (4.0, 60.0),
        (2.0, 35.0),
        (1.0, 15.0),
    )
    SPEED_ESTIMATION_FLOOR = 5.0

    # Driving context buckets: (min speed exclusive, context)
    CONTEXT_SPEED_BUCKETS: tuple[tuple[float, DrivingContext], ...] = (
        (90.0, DrivingContext.HIGHWAY),
        (50.0, DrivingContext.URBAN_FAST),
        (20.0, DrivingContext.URBAN),
        (5.0, DrivingContext.RESIDENTIAL),
    )

    # Severity by ratio of value to threshold
    SEVERITY_RATIO_EXTREME = 2.5
    SEVERITY_RATIO_HIGH = 2.0
    SEVERITY_RATIO_MODERATE = 1.5

    # Speeding severity by absolute excess (km/h)
    SPEEDING_EXCESS_EXTREME = 40.0
    SPEEDING_EXCESS_HIGH = 30.0
    SPEEDING_EXCESS_MODERATE = 20.0

    KMH_PER_MS = 3.6


class SpeedLimitDefaults:
    """Default speed limits (km/h) per driving context."""

    HIGHWAY = 110.0
    URBAN_FAST = 70.0
    URBAN = 60.0
    RESIDENTIAL = 40.0
    SCHOOL = 20.0
    DEFAULT = 60.0


# ============================================================================
# Session Statistics
# ============================================================================


class StatisticsConstants:
    """Breakpoints for session risk and quality assessment."""

    RISK_HIGH_EVENTS_PER_KM = 3.0
    RISK_MODERATE_EVENTS_PER_KM = 1.0
    RISK_SCORE_PER_EVENT_PER_KM = 25.0

    RELIABILITY_EXCELLENT = 80.0
    RELIABILITY_GOOD = 60.0
    RELIABILITY_ACCEPTABLE = 40.0

    QUALITY_EXCELLENT = 90.0
    QUALITY_GOOD = 75.0
    QUALITY_ACCEPTABLE = 60.0

    MIN_GPS_COMPLETENESS = 80.0
    MIN_ACCEL_COMPLETENESS = 90.0
    MIN_SESSION_RECORDS = 100

    # Per-type events/km above which a driving recommendation is issued
    RECOMMENDATION_EVENTS_PER_KM: dict[EventType, float] = {
        EventType.HARSH_ACCELERATION: 0.5,
        EventType.HARSH_BRAKING: 0.5,
        EventType.AGGRESSIVE_TURN: 0.5,
        EventType.SPEEDING: 0.2,
    }


EARTH_RADIUS_M = 6371000.0

# ============================================================================
# Paths
# ============================================================================

DEFAULT_DATA_DIR = Path.home() / ".drivemon"
DEFAULT_LOG_DIR = DEFAULT_DATA_DIR / "logs"
DEFAULT_LOG_FILE = "drivemon.log"
DEFAULT_LOG_BACKUP_COUNT = 5
DEFAULT_CONFIG_FILE = "config.toml"
