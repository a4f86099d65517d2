"""
Vehicle movement classification.

Fuses two independent signals into a 0-100 confidence score:

- GPS: reported speed above ``minimum_speed`` and displacement between
  consecutive fixes faster than ``gps_noise``.
- Accelerometer: deviation of the current vector from an at-rest baseline
  (gravity plus mount bias) larger than ``motion_threshold``.

The baseline is the mean of the first five accelerometer vectors of the
session. Until it exists the accelerometer contributes nothing.
"""

import logging

from collections import deque
from datetime import datetime

import numpy as np

from drivemon.analysis.calibration import Thresholds
from drivemon.analysis.types import AccelerationVector, MovementState, RawSample
from drivemon.analysis.utils import haversine_m
from drivemon.constants import DetectionConstants as DC

logger = logging.getLogger(__name__)


class MovementClassifier:
    """Decide per sample whether the vehicle is genuinely moving."""

    def __init__(self, thresholds: Thresholds, accel_only_detection: bool = True):
        self.thresholds = thresholds
        self.accel_only_detection = accel_only_detection
        self.reset()

    def reset(self) -> None:
        """Drop baseline, histories and the last GPS fix."""
        self.acceleration_history: deque[np.ndarray] = deque(
            maxlen=DC.ACCEL_HISTORY_SIZE
        )
        self.motion_history: deque[bool] = deque(maxlen=DC.MOTION_HISTORY_SIZE)
        self._baseline: np.ndarray | None = None
        self._last_gps_fix: tuple[float, float, datetime] | None = None
        self.state = MovementState()

    @property
    def baseline(self) -> AccelerationVector | None:
        if self._baseline is None:
            return None
        return AccelerationVector.from_array(self._baseline)

    def update(self, sample: RawSample) -> MovementState:
        """
        Classify a sample and store the resulting state.

        Args:
            sample: Validated raw sample

        Returns:
            Updated MovementState
        """
        gps_available = sample.has_gps
        speed_criteria = False
        gps_motion = False

        if sample.lat is not None and sample.lon is not None:
            speed_criteria = (sample.velocidad or 0.0) > self.thresholds.minimum_speed
            gps_motion = self._has_gps_displacement(
                sample.lat, sample.lon, sample.timestamp
            )

        accel_motion = self._detect_accelerometer_motion(sample)

        confidence = 0
        if gps_available:
            if speed_criteria:
                confidence += DC.GPS_SPEED_WEIGHT
            if gps_motion:
                confidence += DC.GPS_DISPLACEMENT_WEIGHT
            if accel_motion:
                confidence += DC.GPS_ACCEL_WEIGHT
        elif self.accel_only_detection:
            if accel_motion:
                confidence += DC.ACCEL_ONLY_MOTION_WEIGHT
            if self.has_sustained_motion():
                confidence += DC.ACCEL_ONLY_SUSTAINED_WEIGHT

        confidence = min(confidence, DC.MAX_CONFIDENCE)
        threshold = (
            DC.GPS_MOVING_CONFIDENCE
            if gps_available
            else DC.ACCEL_ONLY_MOVING_CONFIDENCE
        )
        is_moving = confidence > threshold

        if is_moving != self.state.is_moving:
            logger.info(
                f"Movement: {is_moving} (GPS: {gps_available}, confidence: {confidence}%)"
            )

        self.state = MovementState(
            is_moving=is_moving, confidence=confidence, gps_available=gps_available
        )
        return self.state

    def has_sustained_motion(self) -> bool:
        """True when at least 3 of the last 5 motion flags are set."""
        if len(self.motion_history) < DC.SUSTAINED_WINDOW:
            return False
        recent = list(self.motion_history)[-DC.SUSTAINED_WINDOW :]
        return sum(recent) >= DC.SUSTAINED_MIN_MOVING

    def variation(self, vector: np.ndarray) -> float:
        """Euclidean distance of ``vector`` from the baseline (0 without one)."""
        if self._baseline is None:
            return 0.0
        return float(np.linalg.norm(vector - self._baseline))

    def recent_variation(self, window: int = DC.SPEED_ESTIMATION_WINDOW) -> float | None:
        """
        Mean baseline variation over the last ``window`` vectors.

        Returns:
            Mean variation, or None if fewer than ``window`` vectors exist
        """
        if len(self.acceleration_history) < window:
            return None
        recent = list(self.acceleration_history)[-window:]
        return float(np.mean([self.variation(vector) for vector in recent]))

    # ========================================================================
    # Evidence
    # ========================================================================

    def _has_gps_displacement(self, lat: float, lon: float, timestamp: datetime) -> bool:
        previous = self._last_gps_fix
        self._last_gps_fix = (lat, lon, timestamp)

        if previous is None:
            return False

        prev_lat, prev_lon, prev_time = previous
        distance = haversine_m(prev_lat, prev_lon, lat, lon)
        time_diff = (timestamp - prev_time).total_seconds()
        if time_diff <= 0:
            return False

        calculated_speed = (distance / time_diff) * DC.KMH_PER_MS
        return calculated_speed > self.thresholds.gps_noise

    def _detect_accelerometer_motion(self, sample: RawSample) -> bool:
        acceleration = sample.acceleration
        if acceleration is None:
            return False

        current = acceleration.as_array()
        self.acceleration_history.append(current)

        if (
            self._baseline is None
            and len(self.acceleration_history) >= DC.BASELINE_SAMPLES
        ):
            recent = np.array(list(self.acceleration_history)[-DC.BASELINE_SAMPLES :])
            self._baseline = recent.mean(axis=0)
            logger.debug(
                f"Acceleration baseline established: "
                f"({self._baseline[0]:.2f}, {self._baseline[1]:.2f}, {self._baseline[2]:.2f})"
            )

        if self._baseline is None:
            return False

        variation = self.variation(current)
        is_moving = variation > self.thresholds.motion_threshold
        self.motion_history.append(is_moving)
        return is_moving
