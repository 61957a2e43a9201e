"""
Measurement entry domain model.

Defines the MeasurementEntry dataclass, input validation for the entry form,
and the mapping to/from the persisted JSON record shape.
"""
from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Dict, Optional, Tuple

import pandas as pd
import pytz
from dateutil import parser as dateparser

from config import MIN_ENTRY_DATE


@dataclass(frozen=True)
class MeasurementEntry:
    """
    One dated measurement.

    Attributes:
        id: Opaque unique identifier assigned at creation.
        entry_date: Calendar date the measurement pertains to.
        last_modified: UTC timestamp of the last create/update.
        weight: Body weight, always positive.
        fat_percent: Body-fat percentage in [0, 100], if recorded.
        muscle_percent: Muscle percentage in [0, 100], if recorded.
    """

    id: str
    entry_date: date
    last_modified: datetime
    weight: float
    fat_percent: Optional[float] = None
    muscle_percent: Optional[float] = None

    def to_record(self) -> Dict[str, object]:
        record: Dict[str, object] = {
            "id": self.id,
            "date": self.entry_date.isoformat(),
            "updatedAt": self.last_modified.isoformat(),
            "currentWeight": self.weight,
        }
        if self.fat_percent is not None:
            record["fatPercentage"] = self.fat_percent
        if self.muscle_percent is not None:
            record["musclePercentage"] = self.muscle_percent
        return record

    @classmethod
    def from_record(cls, record: Dict[str, object], legacy: bool = True) -> "MeasurementEntry":
        """
        Build an entry from a persisted record.

        Older records have no ``updatedAt``; with ``legacy`` set they fall back to the
        entry date at midnight UTC, otherwise the record is rejected.

        >>> e = MeasurementEntry.from_record({"id": "a", "date": "2024-05-01T00:00:00.000Z", "currentWeight": 80})
        >>> e.entry_date, e.last_modified.isoformat()
        (datetime.date(2024, 5, 1), '2024-05-01T00:00:00+00:00')
        """
        try:
            entry_id = str(record["id"])
            entry_date = ensure_date(record["date"])
            weight = float(record["currentWeight"])
        except KeyError as e:
            raise ValueError(f"Entry record is missing field {e}") from e

        updated = record.get("updatedAt")
        if updated:
            last_modified = ensure_utc(dateparser.parse(str(updated)))
        elif legacy:
            last_modified = pytz.utc.localize(datetime.combine(entry_date, time.min))
        else:
            raise ValueError(f"Entry record {entry_id} has no updatedAt")

        return cls(
            id=entry_id,
            entry_date=entry_date,
            last_modified=last_modified,
            weight=weight,
            fat_percent=_optional_float(record.get("fatPercentage")),
            muscle_percent=_optional_float(record.get("musclePercentage")),
        )


def new_entry_id(entry_date: date) -> str:
    return f"{entry_date.isoformat()}-{uuid.uuid4().hex[:7]}"


def ensure_date(obj) -> date:
    """Reduce a date, datetime, Timestamp or date string to a calendar date."""
    if isinstance(obj, pd.Timestamp):
        return obj.date()
    if isinstance(obj, datetime):
        return obj.date()
    if isinstance(obj, date):
        return obj
    return dateparser.parse(str(obj)).date()


def ensure_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def _optional_float(value) -> Optional[float]:
    if value is None or value == "":
        return None
    value = float(value)
    if math.isnan(value):
        return None
    return value


def _check_percent(value, label: str) -> Optional[float]:
    try:
        pct = _optional_float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{label} must be a number.")
    if pct is None:
        return None
    if pct < 0:
        raise ValueError(f"{label} cannot be negative.")
    if pct > 100:
        raise ValueError(f"{label} cannot exceed 100.")
    return pct


def validate_measurements(weight, fat_percent=None, muscle_percent=None) -> Tuple[float, Optional[float], Optional[float]]:
    """
    Coerce and check form values. Blank percentages mean "not recorded".

    >>> validate_measurements("81.5", "", 40)
    (81.5, None, 40.0)
    """
    try:
        w = _optional_float(weight)
    except (TypeError, ValueError):
        raise ValueError("Weight must be a number.")
    if w is None:
        raise ValueError("Weight is required.")
    if w <= 0:
        raise ValueError("Weight must be positive.")
    return w, _check_percent(fat_percent, "Fat %"), _check_percent(muscle_percent, "Muscle %")


def validate_entry_date(entry_date, today: Optional[date] = None) -> date:
    d = ensure_date(entry_date)
    today = today or date.today()
    if d > today:
        raise ValueError("Entry date cannot be in the future.")
    if d < MIN_ENTRY_DATE:
        raise ValueError(f"Entry date cannot be before {MIN_ENTRY_DATE:%b %d, %Y}.")
    return d
