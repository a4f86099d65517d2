"""
drivemon: real-time aggressive driving detection

Classifies vehicle movement and harsh acceleration, harsh braking,
aggressive turn and speeding events from GPS and accelerometer samples.
"""

from typing import Any

__all__ = ["DrivingDataProcessor"]


def __getattr__(name: str) -> Any:
    """Lazy load the processor to keep CLI startup light."""
    if name == "DrivingDataProcessor":
        from drivemon.analysis.processor import DrivingDataProcessor

        return DrivingDataProcessor
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
