"""Session statistics over recorded enriched samples."""

from collections.abc import Sequence

import numpy as np

from drivemon.analysis.types import (
    DataQuality,
    DetectionMethodBreakdown,
    EnrichedSample,
    EventsPerKm,
    EventsSummary,
    FieldPerformance,
    RiskAssessment,
    SessionStats,
    SessionSummary,
)
from drivemon.analysis.utils import haversine_m, percent
from drivemon.constants import EVENT_TYPES, EventType
from drivemon.constants import StatisticsConstants as SC

DRIVING_RECOMMENDATIONS: dict[EventType, str] = {
    EventType.HARSH_ACCELERATION: (
        "Accelerate gradually; press the pedal progressively when pulling away"
    ),
    EventType.HARSH_BRAKING: (
        "Increase following distance and anticipate stops to brake smoothly"
    ),
    EventType.AGGRESSIVE_TURN: "Slow down before entering curves and intersections",
    EventType.SPEEDING: "Respect posted speed limits, especially in urban zones",
}

RISK_DESCRIPTIONS = {
    "low": "Smooth driving with few aggressive events",
    "moderate": "Some aggressive events; room for improvement",
    "high": "Frequent aggressive events; driving style needs attention",
}


def calculate_total_distance_km(samples: Sequence[EnrichedSample]) -> float:
    """
    Great-circle distance over consecutive GPS fixes.

    Args:
        samples: Samples in timestamp order

    Returns:
        Distance in kilometers
    """
    fixes = [(s.lat, s.lon) for s in samples if s.lat is not None and s.lon is not None]
    total_m = sum(
        haversine_m(lat1, lon1, lat2, lon2)
        for (lat1, lon1), (lat2, lon2) in zip(fixes, fixes[1:])
    )
    return total_m / 1000.0


def calculate_total_minutes(samples: Sequence[EnrichedSample]) -> float:
    """Minutes between the first and last sample."""
    if len(samples) < 2:
        return 0.0
    delta = samples[-1].timestamp - samples[0].timestamp
    return max(delta.total_seconds(), 0.0) / 60.0


def calculate_average_confidence(samples: Sequence[EnrichedSample]) -> float:
    if not samples:
        return 0.0
    return round(float(np.mean([s.movement_confidence for s in samples])), 1)


def count_events(samples: Sequence[EnrichedSample]) -> dict[EventType, int]:
    """Per-type event counts from each record's event flags."""
    return {
        event_type: sum(1 for s in samples if s.event_flags.get(event_type, False))
        for event_type in EVENT_TYPES
    }


def assess_risk(events_per_km: float) -> RiskAssessment:
    """
    Coarse risk level from total events per kilometer.

    >3 events/km is high, >1 moderate, otherwise low. The score scales
    linearly (25 points per event/km) and saturates at 100.
    """
    if events_per_km > SC.RISK_HIGH_EVENTS_PER_KM:
        level = "high"
    elif events_per_km > SC.RISK_MODERATE_EVENTS_PER_KM:
        level = "moderate"
    else:
        level = "low"

    score = float(min(100, round(events_per_km * SC.RISK_SCORE_PER_EVENT_PER_KM)))
    return RiskAssessment(
        level=level,  # type: ignore[arg-type]
        score=score,
        description=RISK_DESCRIPTIONS[level],
    )


def detection_reliability(average_confidence: float | None) -> str | None:
    if average_confidence is None:
        return None
    if average_confidence >= SC.RELIABILITY_EXCELLENT:
        return "excellent"
    if average_confidence >= SC.RELIABILITY_GOOD:
        return "good"
    if average_confidence >= SC.RELIABILITY_ACCEPTABLE:
        return "acceptable"
    return "needs_improvement"


def assess_data_quality(samples: Sequence[EnrichedSample]) -> DataQuality:
    total = len(samples)
    gps = sum(1 for s in samples if s.has_gps)
    accel = sum(1 for s in samples if s.has_acceleration)
    speed = sum(1 for s in samples if s.velocidad is not None and s.velocidad >= 0)

    gps_pct = percent(gps, total)
    accel_pct = percent(accel, total)
    overall = (gps_pct + accel_pct) / 2

    if overall >= SC.QUALITY_EXCELLENT:
        quality = "excellent"
    elif overall >= SC.QUALITY_GOOD:
        quality = "good"
    elif overall >= SC.QUALITY_ACCEPTABLE:
        quality = "acceptable"
    else:
        quality = "poor"

    return DataQuality(
        gps_completeness=gps_pct,
        accel_completeness=accel_pct,
        speed_completeness=percent(speed, total),
        overall_quality=quality,  # type: ignore[arg-type]
    )


def generate_recommendations(
    rates: dict[EventType, float], quality: DataQuality, total_records: int
) -> list[str]:
    """
    Canned recommendations for exceeded per-km rates and data quality gaps.

    Args:
        rates: Events per kilometer by type
        quality: Data quality assessment
        total_records: Number of records in the session

    Returns:
        List of recommendation strings
    """
    recommendations = [
        DRIVING_RECOMMENDATIONS[event_type]
        for event_type in EVENT_TYPES
        if rates[event_type] > SC.RECOMMENDATION_EVENTS_PER_KM[event_type]
    ]

    if quality.gps_completeness < SC.MIN_GPS_COMPLETENESS:
        recommendations.append(
            "Check GPS signal; possible interference or indoor placement"
        )
    if quality.accel_completeness < SC.MIN_ACCEL_COMPLETENESS:
        recommendations.append("Check device mounting; it must be firmly fixed")
    if total_records < SC.MIN_SESSION_RECORDS:
        recommendations.append("Session too short; extend the recording time")

    return recommendations


def generate_session_stats(samples: Sequence[EnrichedSample]) -> SessionStats:
    """
    Summarize a recorded session.

    Args:
        samples: All enriched samples of the session, in timestamp order

    Returns:
        SessionStats

    Raises:
        ValueError: If ``samples`` is empty
    """
    if not samples:
        raise ValueError("No samples to analyze")

    total = len(samples)
    moving = [s for s in samples if s.vehicle_moving]
    gps_records = sum(1 for s in samples if s.gps_available)
    accel_only = sum(1 for s in moving if not s.gps_available)

    total_minutes = calculate_total_minutes(samples)
    distance_km = calculate_total_distance_km(samples)

    counts = count_events(samples)
    total_events = sum(counts.values())

    if distance_km > 0:
        rates = {t: round(counts[t] / distance_km, 2) for t in EVENT_TYPES}
        total_rate = round(total_events / distance_km, 2)
    else:
        rates = {t: 0.0 for t in EVENT_TYPES}
        total_rate = 0.0

    moving_minutes = calculate_total_minutes(moving)
    events_per_minute = (
        round(total_events / moving_minutes, 2) if moving_minutes > 0 else 0.0
    )

    quality = assess_data_quality(samples)

    return SessionStats(
        session_summary=SessionSummary(
            total_records=total,
            moving_records=len(moving),
            stationary_records=total - len(moving),
            gps_records=gps_records,
            accel_only_records=accel_only,
            total_time_minutes=round(total_minutes, 2),
            total_distance_km=round(distance_km, 2),
            average_confidence=calculate_average_confidence(samples),
        ),
        detection_methods=DetectionMethodBreakdown(
            gps_available_percent=percent(gps_records, total),
            accel_only_percent=percent(accel_only, total),
            moving_percent=percent(len(moving), total),
        ),
        events_summary=EventsSummary(counts=counts, total_events=total_events),
        events_per_km=EventsPerKm(rates=rates, total=total_rate),
        risk_assessment=assess_risk(total_rate),
        field_performance=FieldPerformance(
            events_per_minute=events_per_minute,
            detection_reliability=detection_reliability(  # type: ignore[arg-type]
                calculate_average_confidence(moving) if moving else None
            ),
        ),
        data_quality=quality,
        recommendations=generate_recommendations(rates, quality, total),
    )
