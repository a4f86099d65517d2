"""
Tests for threshold-based event detection.

Samples are built directly with make_enriched so each rule can be exercised
without driving the movement classifier.
"""

import pytest

from drivemon.analysis.calibration import Thresholds
from drivemon.analysis.detector import (
    EventDetector,
    classify_severity,
    classify_speeding_severity,
)
from drivemon.constants import DetectionMethod, EventType, Severity
from tests.helpers.synthetic_data import START_LAT, START_LON, make_enriched


@pytest.fixture
def detector():
    return EventDetector(Thresholds())


def types_of(events):
    return [event.event_type for event in events]


class TestSeverity:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (2.1, Severity.LOW),
            (3.0, Severity.MODERATE),
            (4.0, Severity.HIGH),
            (5.0, Severity.EXTREME),
            (9.0, Severity.EXTREME),
        ],
    )
    def test_ratio_breakpoints(self, value, expected):
        assert classify_severity(value, 2.0) == expected

    @pytest.mark.parametrize(
        "excess,expected",
        [
            (26.0, Severity.LOW),
            (20.0, Severity.MODERATE),
            (30.0, Severity.HIGH),
            (45.0, Severity.EXTREME),
        ],
    )
    def test_speeding_breakpoints(self, excess, expected):
        assert classify_speeding_severity(excess) == expected

    def test_severity_is_monotonic(self):
        ranks = [classify_severity(v / 10, 2.0).rank for v in range(20, 80)]
        assert ranks == sorted(ranks)


class TestMotionGating:
    def test_no_events_when_stationary(self, detector):
        sample = make_enriched(
            0.0, speed=120.0, filtered=(9.0, 9.0, 0.0), longitudinal=8.0, moving=False
        )
        assert detector.detect(sample) == []

    def test_quiet_moving_sample(self, detector):
        sample = make_enriched(0.0, speed=40.0, filtered=(0.5, 0.5, 0.0))
        assert detector.detect(sample) == []


@pytest.mark.business_logic
class TestLongitudinalEvents:
    def test_harsh_acceleration_from_speed_delta(self, detector):
        events = detector.detect(make_enriched(0.0, speed=40.0, longitudinal=3.1))

        assert types_of(events) == [EventType.HARSH_ACCELERATION]
        assert events[0].value == pytest.approx(3.1)
        assert events[0].severity == Severity.MODERATE

    def test_harsh_braking_records_magnitude(self, detector):
        events = detector.detect(make_enriched(0.0, speed=40.0, longitudinal=-4.2))

        assert types_of(events) == [EventType.HARSH_BRAKING]
        assert events[0].value == pytest.approx(4.2)
        assert events[0].severity == Severity.HIGH

    def test_threshold_is_exclusive(self, detector):
        assert detector.detect(make_enriched(0.0, speed=40.0, longitudinal=2.0)) == []
        assert detector.detect(make_enriched(5.0, speed=40.0, longitudinal=-2.0)) == []

    def test_falls_back_to_filtered_y(self, detector):
        sample = make_enriched(0.0, speed=None, filtered=(0.0, 6.5, 0.0))
        events = detector.detect(sample)

        assert types_of(events) == [EventType.HARSH_ACCELERATION]
        assert events[0].severity == Severity.EXTREME

    def test_filtered_y_braking_fallback(self, detector):
        sample = make_enriched(0.0, speed=None, filtered=(0.0, -3.2, 0.0))
        assert types_of(detector.detect(sample)) == [EventType.HARSH_BRAKING]

    def test_speed_delta_takes_precedence(self, detector):
        sample = make_enriched(
            0.0, speed=40.0, filtered=(0.0, 6.5, 0.0), longitudinal=-3.0
        )
        assert types_of(detector.detect(sample)) == [EventType.HARSH_BRAKING]

    def test_gps_only_speed_delta_raises_events(self, detector):
        def gps_only(seconds, longitudinal):
            return make_enriched(
                seconds,
                speed=40.0,
                filtered=None,
                longitudinal=longitudinal,
                lat=START_LAT,
                lon=START_LON,
            )

        accel = detector.detect(gps_only(0.0, 5.0))
        braking = detector.detect(gps_only(3.0, -4.2))

        assert types_of(accel) == [EventType.HARSH_ACCELERATION]
        assert accel[0].severity == Severity.EXTREME
        assert accel[0].detection_method == DetectionMethod.GPS_ACCEL
        assert types_of(braking) == [EventType.HARSH_BRAKING]
        assert braking[0].value == pytest.approx(4.2)

    def test_gps_only_without_speed_delta_is_quiet(self, detector):
        sample = make_enriched(
            0.0, speed=40.0, filtered=None, lat=START_LAT, lon=START_LON
        )
        assert detector.detect(sample) == []


@pytest.mark.business_logic
class TestTurns:
    def test_right_turn(self, detector):
        events = detector.detect(make_enriched(0.0, speed=30.0, filtered=(4.0, 0.0, 0.0)))

        assert types_of(events) == [EventType.AGGRESSIVE_TURN]
        assert events[0].direction == "right"
        assert events[0].value == pytest.approx(4.0)

    def test_left_turn(self, detector):
        events = detector.detect(
            make_enriched(0.0, speed=30.0, filtered=(-6.5, 0.0, 0.0))
        )

        assert events[0].direction == "left"
        assert events[0].value == pytest.approx(6.5)
        assert events[0].severity == Severity.HIGH

    def test_turn_requires_minimum_speed(self, detector):
        for speed in (None, 10.0, 15.0):
            sample = make_enriched(0.0, speed=speed, filtered=(5.0, 0.0, 0.0))
            assert detector.detect(sample) == []


@pytest.mark.business_logic
class TestSpeeding:
    def test_speeding_over_limit(self, detector):
        sample = make_enriched(
            0.0, speed=70.0, speed_limit=40.0, lat=START_LAT, lon=START_LON
        )
        events = detector.detect(sample)

        assert types_of(events) == [EventType.SPEEDING]
        event = events[0]
        assert event.value == pytest.approx(30.0)
        assert event.severity == Severity.HIGH
        assert event.speed == 70.0
        assert event.speed_limit == 40.0
        assert event.location.lat == START_LAT
        assert event.detection_method == DetectionMethod.GPS_ACCEL

    def test_margin_is_exclusive(self, detector):
        sample = make_enriched(0.0, speed=85.0, speed_limit=60.0)
        assert detector.detect(sample) == []

    def test_low_speed_never_speeding(self, detector):
        sample = make_enriched(0.0, speed=30.0, speed_limit=1.0)
        assert detector.detect(sample) == []

    def test_speeding_without_accelerometer(self, detector):
        sample = make_enriched(
            0.0,
            speed=100.0,
            speed_limit=60.0,
            filtered=None,
            lat=START_LAT,
            lon=START_LON,
        )
        assert types_of(detector.detect(sample)) == [EventType.SPEEDING]


@pytest.mark.business_logic
class TestDebounce:
    def test_repeat_within_window_suppressed(self, detector):
        first = detector.detect(make_enriched(0.0, speed=40.0, longitudinal=3.0))
        second = detector.detect(make_enriched(0.5, speed=40.0, longitudinal=3.0))

        assert len(first) == 1
        assert second == []

    def test_harsh_braking_repeat_within_window_suppressed(self, detector):
        first = detector.detect(make_enriched(0.0, speed=40.0, longitudinal=-3.0))
        second = detector.detect(make_enriched(0.5, speed=40.0, longitudinal=-3.0))

        assert types_of(first) == [EventType.HARSH_BRAKING]
        assert second == []
        assert detector.last_event_time[EventType.HARSH_BRAKING] == first[0].timestamp

    def test_window_boundary_is_inclusive(self, detector):
        detector.detect(make_enriched(0.0, speed=40.0, longitudinal=3.0))

        assert detector.detect(make_enriched(2.0, speed=40.0, longitudinal=3.0)) == []
        assert len(detector.detect(make_enriched(2.1, speed=40.0, longitudinal=3.0))) == 1

    def test_suppressed_event_does_not_extend_window(self, detector):
        detector.detect(make_enriched(0.0, speed=40.0, longitudinal=3.0))
        detector.detect(make_enriched(1.5, speed=40.0, longitudinal=3.0))

        assert len(detector.detect(make_enriched(2.5, speed=40.0, longitudinal=3.0))) == 1

    def test_types_debounced_independently(self, detector):
        detector.detect(make_enriched(0.0, speed=40.0, longitudinal=3.0))
        events = detector.detect(make_enriched(0.5, speed=40.0, longitudinal=-3.0))

        assert types_of(events) == [EventType.HARSH_BRAKING]

    def test_speeding_uses_longer_window(self, detector):
        def speeding(seconds):
            return detector.detect(make_enriched(seconds, speed=100.0, speed_limit=60.0))

        assert len(speeding(0.0)) == 1
        assert speeding(5.0) == []
        assert speeding(6.0) == []
        assert len(speeding(6.5)) == 1

    def test_reset_clears_debounce(self, detector):
        detector.detect(make_enriched(0.0, speed=40.0, longitudinal=3.0))
        detector.reset()

        assert len(detector.detect(make_enriched(0.5, speed=40.0, longitudinal=3.0))) == 1


def test_multiple_events_from_one_sample(detector):
    sample = make_enriched(
        0.0, speed=100.0, speed_limit=60.0, filtered=(-4.0, 0.0, 0.0), longitudinal=2.5
    )
    events = detector.detect(sample)

    assert set(types_of(events)) == {
        EventType.HARSH_ACCELERATION,
        EventType.AGGRESSIVE_TURN,
        EventType.SPEEDING,
    }


def test_event_confidence_copied_from_sample(detector):
    sample = make_enriched(0.0, speed=40.0, longitudinal=3.0, confidence=85)
    assert detector.detect(sample)[0].confidence == 85
