"""Type definitions for driving samples, events and session statistics."""

from datetime import datetime, timezone
from typing import Literal

import numpy as np

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictStr,
    field_validator,
)

from drivemon.constants import (
    EVENT_TYPES,
    DetectionMethod,
    DrivingContext,
    EventType,
    ParticipantGroup,
    Severity,
)

# ============================================================================
# Sensor Types
# ============================================================================


class AccelerationVector(BaseModel):
    """Three-axis acceleration in m/s²."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    z: float

    @classmethod
    def from_array(cls, values: np.ndarray) -> "AccelerationVector":
        return cls(x=float(values[0]), y=float(values[1]), z=float(values[2]))

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    @property
    def magnitude(self) -> float:
        return float(np.linalg.norm(self.as_array()))


class GeoPoint(BaseModel):
    """Latitude/longitude in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float


class RawSample(BaseModel):
    """
    One merged sensor observation.

    GPS fields (lat, lon, velocidad) and accelerometer axes (x, y, z) are
    each optional; a sample may carry either group or both. The legacy field
    names ``participante`` and ``grupo`` are accepted on input.

    Attributes:
        timestamp: Observation time; naive values are taken as UTC
        participant_id: Opaque participant identifier
        group: Study arm
        lat: Latitude (degrees)
        lon: Longitude (degrees)
        velocidad: GPS speed (km/h)
        x: Lateral acceleration including gravity (m/s²)
        y: Longitudinal acceleration including gravity (m/s²)
        z: Vertical acceleration including gravity (m/s²)
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    timestamp: datetime = Field(description="Observation time")
    participant_id: StrictStr = Field(
        validation_alias=AliasChoices("participant_id", "participante"),
        description="Participant identifier",
    )
    group: ParticipantGroup = Field(
        default=ParticipantGroup.CONTROL,
        validation_alias=AliasChoices("group", "grupo"),
        description="Study arm",
    )
    lat: float | None = Field(default=None, ge=-90, le=90)
    lon: float | None = Field(default=None, ge=-180, le=180)
    velocidad: float | None = Field(default=None, description="GPS speed (km/h)")
    x: float | None = None
    y: float | None = None
    z: float | None = None

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def has_gps(self) -> bool:
        return self.lat is not None and self.lon is not None

    @property
    def has_acceleration(self) -> bool:
        return self.x is not None and self.y is not None and self.z is not None

    @property
    def acceleration(self) -> AccelerationVector | None:
        if not self.has_acceleration:
            return None
        return AccelerationVector(x=self.x, y=self.y, z=self.z)  # type: ignore[arg-type]

    @property
    def location(self) -> GeoPoint | None:
        if not self.has_gps:
            return None
        return GeoPoint(lat=self.lat, lon=self.lon)  # type: ignore[arg-type]


# ============================================================================
# Engine State Types
# ============================================================================


class MovementState(BaseModel):
    """Per-sample movement decision."""

    model_config = ConfigDict(frozen=True)

    is_moving: bool = False
    confidence: int = Field(default=0, ge=0, le=100)
    gps_available: bool = False


class EnrichedSample(RawSample):
    """
    Raw sample plus derived kinematics and detection metadata.

    ``event_flags`` is filled in after event detection so that per-record
    events can be reconstructed by exporters.
    """

    model_config = ConfigDict(frozen=False)

    acceleration_magnitude: float | None = None
    filtered_acceleration: AccelerationVector | None = None
    longitudinal_acceleration: float = Field(
        default=0.0, description="Speed-derived acceleration (m/s²)"
    )
    lateral_acceleration: float = Field(
        default=0.0, description="Filtered X-axis acceleration (m/s²)"
    )
    speed: float | None = Field(default=None, description="Measured or estimated km/h")
    estimated_speed: float | None = Field(
        default=None, description="Accelerometer speed estimate (km/h)"
    )
    speed_limit: float = Field(description="Context speed limit (km/h)")
    driving_context: DrivingContext
    vehicle_moving: bool
    movement_confidence: int = Field(ge=0, le=100)
    gps_available: bool
    detection_method: DetectionMethod
    event_flags: dict[EventType, bool] = Field(
        default_factory=lambda: {event_type: False for event_type in EVENT_TYPES}
    )


class DrivingEvent(BaseModel):
    """
    Detected aggressive driving event.

    Attributes:
        event_type: Kind of event
        severity: Ordinal severity
        value: Magnitude that triggered the event (m/s², or km/h over limit)
        timestamp: Timestamp of the triggering sample
        location: Position of the triggering sample, if known
        confidence: Movement confidence at detection time (0-100)
        detection_method: Sensor evidence used
        direction: Turn direction (aggressive_turn only)
        speed: Speed at detection (speeding only)
        speed_limit: Applicable limit (speeding only)
    """

    model_config = ConfigDict(frozen=True)

    event_type: EventType
    severity: Severity
    value: float
    timestamp: datetime
    location: GeoPoint | None = None
    confidence: int = Field(ge=0, le=100)
    detection_method: DetectionMethod
    direction: Literal["left", "right"] | None = None
    speed: float | None = None
    speed_limit: float | None = None


EventCounters = dict[EventType, int]


class ProcessingResult(BaseModel):
    """Outcome of processing one accepted sample."""

    enriched: EnrichedSample
    events: list[DrivingEvent] = Field(default_factory=list)
    counters: EventCounters


# ============================================================================
# Session Statistics Types
# ============================================================================


class SessionSummary(BaseModel):
    total_records: int = Field(ge=0)
    moving_records: int = Field(ge=0)
    stationary_records: int = Field(ge=0)
    gps_records: int = Field(ge=0)
    accel_only_records: int = Field(ge=0)
    total_time_minutes: float = Field(ge=0)
    total_distance_km: float = Field(ge=0)
    average_confidence: float = Field(ge=0, le=100)


class DetectionMethodBreakdown(BaseModel):
    gps_available_percent: float
    accel_only_percent: float
    moving_percent: float


class EventsSummary(BaseModel):
    counts: dict[EventType, int]
    total_events: int = Field(ge=0)


class EventsPerKm(BaseModel):
    rates: dict[EventType, float]
    total: float = Field(ge=0)


class RiskAssessment(BaseModel):
    level: Literal["low", "moderate", "high"]
    score: float = Field(ge=0, le=100)
    description: str


class FieldPerformance(BaseModel):
    events_per_minute: float = Field(ge=0)
    detection_reliability: (
        Literal["excellent", "good", "acceptable", "needs_improvement"] | None
    ) = None


class DataQuality(BaseModel):
    gps_completeness: float
    accel_completeness: float
    speed_completeness: float
    overall_quality: Literal["excellent", "good", "acceptable", "poor"]


class SessionStats(BaseModel):
    """Read-only projection over a session's enriched samples."""

    session_summary: SessionSummary
    detection_methods: DetectionMethodBreakdown
    events_summary: EventsSummary
    events_per_km: EventsPerKm
    risk_assessment: RiskAssessment
    field_performance: FieldPerformance
    data_quality: DataQuality
    recommendations: list[str] = Field(default_factory=list)
