"""Text summary generation for driving sessions."""

from drivemon.analysis.types import DrivingEvent, SessionStats
from drivemon.constants import EventType

EVENT_LABELS = {
    EventType.HARSH_ACCELERATION: "harsh acceleration",
    EventType.HARSH_BRAKING: "harsh braking",
    EventType.AGGRESSIVE_TURN: "aggressive turn",
    EventType.SPEEDING: "speeding",
}


def format_event(event: DrivingEvent) -> str:
    """One-line description of a detected event."""
    label = EVENT_LABELS[event.event_type]
    unit = "km/h over limit" if event.event_type == EventType.SPEEDING else "m/s²"
    parts = [
        f"[{event.timestamp.isoformat()}] {label}",
        f"({event.severity.value})",
        f"{event.value:.2f} {unit}",
    ]
    if event.direction:
        parts.append(f"turning {event.direction}")
    parts.append(f"via {event.detection_method.value}, {event.confidence}% confidence")
    return " ".join(parts)


def generate_session_summary(stats: SessionStats) -> str:
    """
    Generate a human-readable summary of session statistics.

    Args:
        stats: Session statistics

    Returns:
        Multi-line summary text
    """
    summary = stats.session_summary
    lines = [
        f"Recorded {summary.total_records} samples over "
        f"{summary.total_time_minutes:.1f} min and {summary.total_distance_km:.2f} km.",
        f"Moving in {summary.moving_records} samples "
        f"({stats.detection_methods.moving_percent:.1f}%), "
        f"GPS available in {stats.detection_methods.gps_available_percent:.1f}%, "
        f"average confidence {summary.average_confidence:.1f}%.",
    ]

    events = stats.events_summary
    if events.total_events:
        details = ", ".join(
            f"{count} {EVENT_LABELS[event_type]}"
            for event_type, count in events.counts.items()
            if count > 0
        )
        lines.append(f"Detected {events.total_events} events: {details}.")
    else:
        lines.append("No aggressive driving events were detected.")

    risk = stats.risk_assessment
    lines.append(
        f"Risk: {risk.level} ({risk.score:.0f}/100, "
        f"{stats.events_per_km.total:.2f} events/km). {risk.description}."
    )

    if stats.field_performance.detection_reliability:
        lines.append(
            f"Detection reliability: {stats.field_performance.detection_reliability}; "
            f"data quality: {stats.data_quality.overall_quality}."
        )

    if stats.recommendations:
        lines.append("Recommendations:")
        lines.extend(f"  - {rec}" for rec in stats.recommendations)

    return "\n".join(lines)
