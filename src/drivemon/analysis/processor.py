"""
Real-time driving data processor.

One DrivingDataProcessor owns all state of a recording session: movement
classifier history, sliding buffer, event counters, debounce timestamps and
registered observers. Samples must be fed one at a time in timestamp order.
"""

import logging

from collections import deque
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from drivemon.analysis.calibration import (
    FIELD_TESTED_CONFIG,
    DetectionConfig,
    SpeedLimits,
    Thresholds,
)
from drivemon.analysis.detector import EventDetector
from drivemon.analysis.enrichment import SampleEnricher
from drivemon.analysis.movement import MovementClassifier
from drivemon.analysis.statistics import generate_session_stats
from drivemon.analysis.types import (
    AccelerationVector,
    DrivingEvent,
    EnrichedSample,
    EventCounters,
    MovementState,
    ProcessingResult,
    RawSample,
    SessionStats,
)
from drivemon.analysis.utils import elapsed_ms
from drivemon.constants import EVENT_TYPES, DrivingContext

logger = logging.getLogger(__name__)

EventCallback = Callable[[DrivingEvent, EventCounters, EnrichedSample], None]


class DrivingDataProcessor:
    """
    Hybrid GPS + accelerometer event detection engine.

    Example:
        processor = DrivingDataProcessor()
        processor.on_event(lambda event, counters, sample: print(event))
        result = processor.process_sample({"timestamp": ..., "participant_id": "P01"})
    """

    def __init__(self, config: DetectionConfig = FIELD_TESTED_CONFIG):
        self.config = config
        self.classifier = MovementClassifier(
            config.thresholds, accel_only_detection=config.accel_only_detection
        )
        self.enricher = SampleEnricher(config.speed_limits)
        self.detector = EventDetector(config.thresholds)
        self._observers: list[EventCallback] = []
        self.reset()

        logger.info(
            f"DrivingDataProcessor initialized with '{config.name}' calibration: "
            f"{config.thresholds.model_dump()}"
        )

    @property
    def thresholds(self) -> Thresholds:
        return self.config.thresholds

    @property
    def speed_limits(self) -> SpeedLimits:
        return self.config.speed_limits

    @property
    def movement_state(self) -> MovementState:
        return self.classifier.state

    @property
    def baseline(self) -> AccelerationVector | None:
        return self.classifier.baseline

    # ========================================================================
    # Processing
    # ========================================================================

    def process_sample(
        self, raw: RawSample | Mapping[str, Any]
    ) -> ProcessingResult | None:
        """
        Process one merged sensor reading.

        Args:
            raw: RawSample or a mapping with RawSample fields

        Returns:
            ProcessingResult, or None if the sample is structurally invalid or
            arrived within ``record_interval`` of the last accepted sample
        """
        sample = self._validate(raw)
        if sample is None:
            return None

        if self._is_rate_limited(sample):
            return None
        self._last_record_time = sample.timestamp

        state = self.classifier.update(sample)
        previous = self.buffer[-1] if self.buffer else None
        enriched = self.enricher.enrich(sample, state, self.classifier, previous)

        events = self.detector.detect(enriched)
        for event in events:
            enriched.event_flags[event.event_type] = True

        self.buffer.append(enriched)

        for event in events:
            self.counters[event.event_type] += 1
            self._notify(event, enriched)

        return ProcessingResult(
            enriched=enriched, events=events, counters=self.get_counters()
        )

    def _validate(self, raw: RawSample | Mapping[str, Any]) -> RawSample | None:
        if isinstance(raw, RawSample):
            return raw
        try:
            return RawSample.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                f"Invalid sample structure ({e.error_count()} errors): {raw!r}"
            )
            return None

    def _is_rate_limited(self, sample: RawSample) -> bool:
        if self._last_record_time is None:
            return False
        elapsed = elapsed_ms(self._last_record_time, sample.timestamp)
        if elapsed < self.config.record_interval:
            logger.debug(f"Dropped sample {elapsed:.0f} ms after last accepted one")
            return True
        return False

    # ========================================================================
    # Configuration
    # ========================================================================

    def set_thresholds(self, **overrides: Any) -> None:
        """
        Merge threshold overrides into the active calibration.

        Raises:
            ValueError: On unknown names or invalid values
        """
        self._apply_config(self.config.with_overrides(thresholds=overrides))
        logger.info(f"Thresholds updated: {self.config.thresholds.model_dump()}")

    def set_speed_limits(self, **overrides: Any) -> None:
        """
        Merge speed limit overrides into the active calibration.

        Raises:
            ValueError: On unknown contexts or invalid values
        """
        self._apply_config(self.config.with_overrides(speed_limits=overrides))
        logger.info(f"Speed limits updated: {self.config.speed_limits.model_dump()}")

    def set_driving_context(self, context: DrivingContext | None) -> None:
        """Force a driving context (e.g. school zone), or None for auto-detection."""
        self.enricher.context_override = context
        logger.info(f"Driving context override: {context.value if context else None}")

    def _apply_config(self, config: DetectionConfig) -> None:
        self.config = config
        self.classifier.thresholds = config.thresholds
        self.classifier.accel_only_detection = config.accel_only_detection
        self.detector.thresholds = config.thresholds
        self.enricher.speed_limits = config.speed_limits

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def reset(self) -> None:
        """Clear all session state. Calibration and observers are kept."""
        self.classifier.reset()
        self.detector.reset()
        self.buffer: deque[EnrichedSample] = deque(maxlen=self.config.buffer_size)
        self.counters: EventCounters = {event_type: 0 for event_type in EVENT_TYPES}
        self._last_record_time: datetime | None = None

    def get_counters(self) -> EventCounters:
        return dict(self.counters)

    # ========================================================================
    # Observation
    # ========================================================================

    def on_event(self, callback: EventCallback) -> Callable[[], None]:
        """
        Register a callback invoked once per emitted event.

        Callbacks run synchronously inside ``process_sample`` and must not
        call back into this processor.

        Returns:
            Function that unregisters the callback
        """
        self._observers.append(callback)
        return lambda: self.off_event(callback)

    def off_event(self, callback: EventCallback) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, event: DrivingEvent, sample: EnrichedSample) -> None:
        for callback in list(self._observers):
            try:
                callback(event, self.get_counters(), sample)
            except Exception:
                logger.exception(
                    f"Event observer {callback!r} failed for {event.event_type.value}"
                )

    # ========================================================================
    # Aggregation
    # ========================================================================

    def generate_session_stats(self, samples: Iterable[EnrichedSample]) -> SessionStats:
        """Summarize externally retained samples; engine state is untouched."""
        return generate_session_stats(list(samples))
