"""Threshold-based driving event detector."""

import logging

from datetime import datetime

from drivemon.analysis.calibration import Thresholds
from drivemon.analysis.types import DrivingEvent, EnrichedSample
from drivemon.analysis.utils import elapsed_ms
from drivemon.constants import DetectionConstants as DC
from drivemon.constants import EventType, Severity

logger = logging.getLogger(__name__)


def classify_severity(value: float, threshold: float) -> Severity:
    """
    Severity from the ratio of a triggering value to its threshold.

    Args:
        value: Absolute triggering magnitude
        threshold: Threshold the value exceeded

    Returns:
        Severity (>=2.5x extreme, >=2.0x high, >=1.5x moderate, else low)
    """
    ratio = value / threshold
    if ratio >= DC.SEVERITY_RATIO_EXTREME:
        return Severity.EXTREME
    if ratio >= DC.SEVERITY_RATIO_HIGH:
        return Severity.HIGH
    if ratio >= DC.SEVERITY_RATIO_MODERATE:
        return Severity.MODERATE
    return Severity.LOW


def classify_speeding_severity(excess: float) -> Severity:
    """Severity from absolute km/h over the limit."""
    if excess >= DC.SPEEDING_EXCESS_EXTREME:
        return Severity.EXTREME
    if excess >= DC.SPEEDING_EXCESS_HIGH:
        return Severity.HIGH
    if excess >= DC.SPEEDING_EXCESS_MODERATE:
        return Severity.MODERATE
    return Severity.LOW


class EventDetector:
    """
    Evaluate enriched samples against calibrated thresholds.

    Each event type is debounced independently: an event is suppressed when
    one of the same type fired within ``stability_time`` ms of the sample
    (speeding uses three times that window).
    """

    def __init__(self, thresholds: Thresholds):
        self.thresholds = thresholds
        self.last_event_time: dict[EventType, datetime] = {}

    def reset(self) -> None:
        self.last_event_time.clear()

    def detect(self, sample: EnrichedSample) -> list[DrivingEvent]:
        """
        Detect events in a single sample.

        Args:
            sample: Enriched sample

        Returns:
            Events raised by this sample, possibly empty
        """
        if not sample.vehicle_moving:
            return []

        events: list[DrivingEvent] = []
        th = self.thresholds
        filtered = sample.filtered_acceleration
        speed = sample.speed or 0.0

        longitudinal = sample.longitudinal_acceleration
        if not longitudinal and filtered is not None:
            # Fall back to the instantaneous Y reading when no speed delta exists
            longitudinal = filtered.y

        if longitudinal > th.harsh_acceleration:
            self._try_emit(
                events,
                sample,
                EventType.HARSH_ACCELERATION,
                value=longitudinal,
                severity=classify_severity(longitudinal, th.harsh_acceleration),
            )

        if longitudinal < -th.harsh_braking:
            braking = abs(longitudinal)
            self._try_emit(
                events,
                sample,
                EventType.HARSH_BRAKING,
                value=braking,
                severity=classify_severity(braking, th.harsh_braking),
            )

        if filtered is not None:
            lateral = sample.lateral_acceleration
            if abs(lateral) > th.aggressive_turn and speed > DC.TURN_MIN_SPEED:
                self._try_emit(
                    events,
                    sample,
                    EventType.AGGRESSIVE_TURN,
                    value=abs(lateral),
                    severity=classify_severity(abs(lateral), th.aggressive_turn),
                    direction="right" if lateral > 0 else "left",
                )

        if speed > DC.SPEEDING_MIN_SPEED:
            excess = speed - sample.speed_limit
            if excess > th.speeding:
                self._try_emit(
                    events,
                    sample,
                    EventType.SPEEDING,
                    value=excess,
                    severity=classify_speeding_severity(excess),
                    speed=speed,
                    speed_limit=sample.speed_limit,
                )

        return events

    def _debounce_window(self, event_type: EventType) -> float:
        if event_type == EventType.SPEEDING:
            return self.thresholds.stability_time * DC.SPEEDING_DEBOUNCE_FACTOR
        return self.thresholds.stability_time

    def _is_debounced(self, event_type: EventType, timestamp: datetime) -> bool:
        last = self.last_event_time.get(event_type)
        if last is None:
            return False
        return elapsed_ms(last, timestamp) <= self._debounce_window(event_type)

    def _try_emit(
        self,
        events: list[DrivingEvent],
        sample: EnrichedSample,
        event_type: EventType,
        **details: object,
    ) -> None:
        if self._is_debounced(event_type, sample.timestamp):
            logger.debug(f"Suppressed {event_type.value} at {sample.timestamp}")
            return

        event = DrivingEvent.model_validate(
            {
                "event_type": event_type,
                "timestamp": sample.timestamp,
                "location": sample.location,
                "confidence": sample.movement_confidence,
                "detection_method": sample.detection_method,
                **details,
            }
        )
        self.last_event_time[event_type] = sample.timestamp
        events.append(event)
        logger.debug(
            f"{event_type.value}: value={event.value:.2f}, severity={event.severity.value}"
        )
