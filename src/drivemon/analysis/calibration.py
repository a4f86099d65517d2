"""Calibration models and predefined detection presets."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from drivemon.constants import DetectionConstants as DC
from drivemon.constants import DrivingContext, SpeedLimitDefaults

__all__ = [
    "Thresholds",
    "SpeedLimits",
    "DetectionConfig",
    "FIELD_TESTED_CONFIG",
    "STANDARD_CONFIG",
    "AVAILABLE_CONFIGS",
    "DEFAULT_MODE",
    "get_config",
]


class Thresholds(BaseModel):
    """
    Event and movement thresholds.

    Event thresholds must be strictly positive; a zero threshold would make
    every moving sample an event.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    harsh_acceleration: float = Field(
        default=DC.HARSH_ACCELERATION, gt=0, description="Longitudinal m/s²"
    )
    harsh_braking: float = Field(
        default=DC.HARSH_BRAKING, gt=0, description="Longitudinal deceleration m/s²"
    )
    aggressive_turn: float = Field(
        default=DC.AGGRESSIVE_TURN, gt=0, description="Lateral m/s²"
    )
    speeding: float = Field(
        default=DC.SPEEDING_MARGIN, gt=0, description="km/h over the limit"
    )
    minimum_speed: float = Field(
        default=DC.MINIMUM_SPEED, ge=0, description="GPS moving speed (km/h)"
    )
    motion_threshold: float = Field(
        default=DC.MOTION_THRESHOLD,
        gt=0,
        description="Accelerometer variation from baseline (m/s²)",
    )
    gps_noise: float = Field(
        default=DC.GPS_NOISE, ge=0, description="GPS displacement speed noise (km/h)"
    )
    stability_time: float = Field(
        default=DC.STABILITY_TIME_MS,
        ge=0,
        description="Minimum interval between events of one type (ms)",
    )

    def merged(self, **overrides: Any) -> "Thresholds":
        """Return a validated copy with ``overrides`` applied."""
        return Thresholds.model_validate({**self.model_dump(), **overrides})


class SpeedLimits(BaseModel):
    """Speed limit table (km/h) keyed by driving context."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    highway: float = Field(default=SpeedLimitDefaults.HIGHWAY, gt=0)
    urban_fast: float = Field(default=SpeedLimitDefaults.URBAN_FAST, gt=0)
    urban: float = Field(default=SpeedLimitDefaults.URBAN, gt=0)
    residential: float = Field(default=SpeedLimitDefaults.RESIDENTIAL, gt=0)
    school: float = Field(default=SpeedLimitDefaults.SCHOOL, gt=0)
    default: float = Field(default=SpeedLimitDefaults.DEFAULT, gt=0)

    def for_context(self, context: DrivingContext) -> float:
        if context == DrivingContext.STATIONARY:
            return self.default
        limit: float = getattr(self, context.value)
        return limit

    def merged(self, **overrides: Any) -> "SpeedLimits":
        """Return a validated copy with ``overrides`` applied."""
        return SpeedLimits.model_validate({**self.model_dump(), **overrides})


class DetectionConfig(BaseModel):
    """Complete engine calibration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(description="Preset name (e.g., 'field_tested')")
    description: str = Field(default="", description="Preset description")
    thresholds: Thresholds = Field(default_factory=Thresholds)
    speed_limits: SpeedLimits = Field(default_factory=SpeedLimits)
    record_interval: float = Field(
        default=DC.RECORD_INTERVAL_MS,
        ge=0,
        description="Minimum time between accepted samples (ms)",
    )
    buffer_size: int = Field(
        default=DC.BUFFER_SIZE, ge=2, le=64, description="Sliding buffer length"
    )
    accel_only_detection: bool = Field(
        default=True, description="Detect movement without a GPS fix"
    )

    def with_overrides(
        self,
        thresholds: dict[str, Any] | None = None,
        speed_limits: dict[str, Any] | None = None,
        **fields: Any,
    ) -> "DetectionConfig":
        """Return a validated copy with nested overrides merged in."""
        data = self.model_dump()
        if thresholds:
            data["thresholds"] = {**data["thresholds"], **thresholds}
        if speed_limits:
            data["speed_limits"] = {**data["speed_limits"], **speed_limits}
        data.update(fields)
        return DetectionConfig.model_validate(data)


# ============================================================================
# Field-Tested Configuration
# ============================================================================

FIELD_TESTED_CONFIG = DetectionConfig(
    name="field_tested",
    description="Hybrid GPS + accelerometer detection calibrated on road trials",
)

# ============================================================================
# Standard Configuration
# ============================================================================

STANDARD_CONFIG = DetectionConfig(
    name="standard",
    description="Pre-trial calibration, movement requires a GPS fix",
    thresholds=Thresholds(
        harsh_acceleration=3.5,
        harsh_braking=3.5,
        aggressive_turn=5.5,
        speeding=20.0,
        minimum_speed=5.0,
        motion_threshold=1.5,
        gps_noise=2.0,
        stability_time=3000.0,
    ),
    record_interval=2000.0,
    buffer_size=5,
    accel_only_detection=False,
)

# ============================================================================
# Preset Registry
# ============================================================================

AVAILABLE_CONFIGS: dict[str, DetectionConfig] = {
    "field_tested": FIELD_TESTED_CONFIG,
    "standard": STANDARD_CONFIG,
}

DEFAULT_MODE = "field_tested"


def get_config(name: str) -> DetectionConfig:
    """
    Look up a calibration preset by name.

    Args:
        name: Preset name

    Returns:
        DetectionConfig preset

    Raises:
        ValueError: If the preset is not recognized
    """
    if name not in AVAILABLE_CONFIGS:
        raise ValueError(
            f"Unknown mode: {name}. Available: {list(AVAILABLE_CONFIGS.keys())}"
        )
    return AVAILABLE_CONFIGS[name]
