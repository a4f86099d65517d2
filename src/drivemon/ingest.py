"""
Reading acquisition helpers.

GPS and motion readings arrive from independent sources at uncorrelated
rates. SampleMerger fills each reading forward with the last known values of
the other sensor so the processor always sees the most complete sample.
"""

import csv
import json
import logging

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

GPS_FIELDS = ("lat", "lon", "velocidad")
MOTION_FIELDS = ("x", "y", "z")
NUMERIC_FIELDS = GPS_FIELDS + MOTION_FIELDS


def reading_type(reading: Mapping[str, Any]) -> str | None:
    """
    Sensor type of a reading: explicit ``type`` field, else inferred.

    Returns:
        "gps", "motion", or None when the reading carries neither
    """
    explicit = reading.get("type")
    if explicit in ("gps", "motion"):
        return str(explicit)
    if reading.get("lat") is not None and reading.get("lon") is not None:
        return "gps"
    if all(reading.get(axis) is not None for axis in MOTION_FIELDS):
        return "motion"
    return None


class SampleMerger:
    """Fill-forward merge of GPS and accelerometer readings."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._last_gps: dict[str, Any] | None = None
        self._last_motion: dict[str, Any] | None = None

    def merge(self, reading: Mapping[str, Any]) -> dict[str, Any]:
        """
        Merge a reading with the last known values of the other sensor.

        Args:
            reading: GPS or motion reading plus shared fields (timestamp,
                participant id, group)

        Returns:
            New dict; the input is not modified
        """
        merged = dict(reading)
        kind = reading_type(reading)

        if kind == "motion":
            self._last_motion = {axis: reading.get(axis) for axis in MOTION_FIELDS}
            if self._last_gps is not None:
                merged.update(self._last_gps)
        elif kind == "gps":
            self._last_gps = {field: reading.get(field) for field in GPS_FIELDS}
            if self._last_motion is not None:
                merged.update(self._last_motion)

        return merged

    def merge_all(self, readings: Iterable[Mapping[str, Any]]) -> Iterator[dict[str, Any]]:
        for reading in readings:
            yield self.merge(reading)


def _coerce_csv_row(row: dict[str, str]) -> dict[str, Any]:
    record: dict[str, Any] = {}
    for key, value in row.items():
        if key is None:
            continue
        value = value.strip() if value is not None else ""
        if value == "":
            continue
        if key in NUMERIC_FIELDS:
            try:
                record[key] = float(value)
            except ValueError:
                record[key] = value
        else:
            record[key] = value
    return record


def load_readings(path: Path) -> list[dict[str, Any]]:
    """
    Load recorded readings from JSON Lines, a JSON array, or CSV.

    Args:
        path: Recording file (.jsonl, .json or .csv)

    Returns:
        List of reading dicts in file order

    Raises:
        ValueError: If the file format is unsupported or malformed
    """
    suffix = path.suffix.lower()

    if suffix == ".csv":
        with open(path, newline="", encoding="utf-8") as f:
            readings = [_coerce_csv_row(row) for row in csv.DictReader(f)]
    elif suffix == ".json":
        with open(path, encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Malformed JSON in {path}: {e}") from e
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON array of readings in {path}")
        readings = data
    elif suffix in (".jsonl", ".ndjson"):
        readings = []
        with open(path, encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    readings.append(json.loads(line))
                except json.JSONDecodeError as e:
                    raise ValueError(
                        f"Malformed JSON on line {line_number} of {path}: {e}"
                    ) from e
    else:
        raise ValueError(
            f"Unsupported recording format: '{suffix}'. Use .jsonl, .json or .csv"
        )

    logger.info(f"Loaded {len(readings)} readings from {path}")
    return readings
