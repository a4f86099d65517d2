"""Derived kinematics for raw samples."""

import logging

from datetime import datetime

from drivemon.analysis.calibration import SpeedLimits
from drivemon.analysis.movement import MovementClassifier
from drivemon.analysis.types import (
    AccelerationVector,
    EnrichedSample,
    MovementState,
    RawSample,
)
from drivemon.constants import DetectionConstants as DC
from drivemon.constants import DetectionMethod, DrivingContext

logger = logging.getLogger(__name__)


def estimate_speed(variation: float | None) -> float:
    """
    Map mean accelerometer variation to a coarse speed (km/h).

    This is a step function the event thresholds were calibrated against,
    not an integration of acceleration.

    Args:
        variation: Mean variation from baseline, None if not enough history

    Returns:
        Estimated speed in km/h
    """
    if variation is None:
        return 0.0
    for min_variation, speed in DC.SPEED_ESTIMATION_STEPS:
        if variation > min_variation:
            return speed
    return DC.SPEED_ESTIMATION_FLOOR


def classify_context(speed: float) -> DrivingContext:
    """Bucket a speed (km/h) into a driving context."""
    for min_speed, context in DC.CONTEXT_SPEED_BUCKETS:
        if speed > min_speed:
            return context
    return DrivingContext.STATIONARY


def longitudinal_acceleration(
    speed: float | None,
    timestamp: datetime,
    previous: EnrichedSample | None,
) -> float:
    """
    Finite-difference acceleration (m/s²) between two speed readings.

    Returns 0.0 when there is no previous sample, either speed is unknown or
    the time delta is not positive.
    """
    if previous is None or speed is None or previous.speed is None:
        return 0.0

    time_delta = (timestamp - previous.timestamp).total_seconds()
    if time_delta <= 0:
        return 0.0

    return (speed - previous.speed) / time_delta / DC.KMH_PER_MS


class SampleEnricher:
    """Turn a raw sample plus movement state into an EnrichedSample."""

    def __init__(self, speed_limits: SpeedLimits):
        self.speed_limits = speed_limits
        self.context_override: DrivingContext | None = None

    def enrich(
        self,
        sample: RawSample,
        state: MovementState,
        classifier: MovementClassifier,
        previous: EnrichedSample | None,
    ) -> EnrichedSample:
        """
        Derive kinematics for ``sample``.

        Args:
            sample: Validated raw sample
            state: Movement state computed for this sample
            classifier: Classifier holding the baseline and acceleration history
            previous: Most recent buffered sample, if any

        Returns:
            EnrichedSample with event flags all unset
        """
        acceleration = sample.acceleration
        magnitude: float | None = None
        filtered: AccelerationVector | None = None
        lateral = 0.0

        if acceleration is not None:
            magnitude = acceleration.magnitude
            baseline = classifier.baseline
            if baseline is None:
                filtered = acceleration
            else:
                filtered = AccelerationVector.from_array(
                    acceleration.as_array() - baseline.as_array()
                )
            lateral = filtered.x

        estimated: float | None = None
        speed: float | None
        if sample.velocidad is not None:
            speed = sample.velocidad
        elif state.is_moving:
            estimated = estimate_speed(classifier.recent_variation())
            speed = estimated
            logger.debug(f"No GPS speed, estimated {estimated:.0f} km/h")
        else:
            speed = None

        context = self.context_override or classify_context(speed or 0.0)

        return EnrichedSample(
            **sample.model_dump(include=set(RawSample.model_fields)),
            acceleration_magnitude=magnitude,
            filtered_acceleration=filtered,
            longitudinal_acceleration=longitudinal_acceleration(
                speed, sample.timestamp, previous
            ),
            lateral_acceleration=lateral,
            speed=speed,
            estimated_speed=estimated,
            speed_limit=self.speed_limits.for_context(context),
            driving_context=context,
            vehicle_moving=state.is_moving,
            movement_confidence=state.confidence,
            gps_available=state.gps_available,
            detection_method=(
                DetectionMethod.GPS_ACCEL
                if state.gps_available
                else DetectionMethod.ACCEL_ONLY
            ),
        )
