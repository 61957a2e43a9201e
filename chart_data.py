"""
Chart data preparation.

Turns the date-ordered entry list into one ChartPoint per entry, carrying the
raw metric values plus a fitted trend value and slope for every metric that
has at least two recorded samples.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, fields
from typing import Dict, List, Optional, Sequence

import pandas as pd

from config import DATE_LABEL_FORMAT, TREND_THRESHOLD
from models import MeasurementEntry
from trendline import IndexedSample, fit_trend, trend_value

# metric key -> entry attribute
METRICS = {
    "weight": "weight",
    "fat": "fat_percent",
    "muscle": "muscle_percent",
}

METRIC_LABELS = {"weight": "Weight", "fat": "Fat %", "muscle": "Muscle %"}

TREND_ARROWS = {"up": "↑", "down": "↓", "flat": ""}


@dataclass
class ChartPoint:
    date_label: str
    weight: Optional[float] = None
    fat_percent: Optional[float] = None
    muscle_percent: Optional[float] = None
    trend_weight: Optional[float] = None
    trend_fat: Optional[float] = None
    trend_muscle: Optional[float] = None
    slope_weight: Optional[float] = None
    slope_fat: Optional[float] = None
    slope_muscle: Optional[float] = None

    def as_dict(self) -> Dict[str, object]:
        """Raw values always; trend and slope keys only for metrics that have a trend."""
        out = asdict(self)
        for metric in METRICS:
            if out[f"trend_{metric}"] is None:
                del out[f"trend_{metric}"]
                del out[f"slope_{metric}"]
        return out


def _present(value) -> bool:
    return value is not None and not (isinstance(value, float) and math.isnan(value))


def build_samples(entries: Sequence[MeasurementEntry], attr: str) -> List[IndexedSample]:
    """Samples for one metric, keeping each entry's position in the full sequence."""
    return [
        IndexedSample(position, float(getattr(entry, attr)))
        for position, entry in enumerate(entries)
        if _present(getattr(entry, attr))
    ]


def compute_chart_points(entries: Sequence[MeasurementEntry]) -> List[ChartPoint]:
    """
    Build chart points for entries already sorted by entry date.

    >>> from datetime import date, datetime
    >>> ts = datetime(2024, 1, 1)
    >>> es = [MeasurementEntry(str(i), date(2024, 1, i + 1), ts, 80.0 - i) for i in range(3)]
    >>> [(p.date_label, p.trend_weight, p.slope_weight, p.trend_fat) for p in compute_chart_points(es)]
    [('Jan 01', 80.0, -1.0, None), ('Jan 02', 79.0, -1.0, None), ('Jan 03', 78.0, -1.0, None)]
    >>> compute_chart_points([])
    []
    """
    fits = {}
    for metric, attr in METRICS.items():
        samples = build_samples(entries, attr)
        if len(samples) >= 2:
            fits[metric] = fit_trend(samples)

    points: List[ChartPoint] = []
    for position, entry in enumerate(entries):
        point = ChartPoint(
            date_label=entry.entry_date.strftime(DATE_LABEL_FORMAT),
            weight=entry.weight if _present(entry.weight) else None,
            fat_percent=entry.fat_percent if _present(entry.fat_percent) else None,
            muscle_percent=entry.muscle_percent if _present(entry.muscle_percent) else None,
        )
        for metric, params in fits.items():
            setattr(point, f"trend_{metric}", trend_value(params, position))
            setattr(point, f"slope_{metric}", params.slope)
        points.append(point)
    return points


def trend_direction(slope: Optional[float], threshold: float = TREND_THRESHOLD) -> Optional[str]:
    """
    >>> trend_direction(0.5), trend_direction(-0.02), trend_direction(0.005), trend_direction(None)
    ('up', 'down', 'flat', None)
    """
    if slope is None:
        return None
    if slope > threshold:
        return "up"
    if slope < -threshold:
        return "down"
    return "flat"


def summarize_trends(points: Sequence[ChartPoint]) -> Dict[str, Optional[float]]:
    """Series-wide slope per metric, None where no trend line exists."""
    if not points:
        return {metric: None for metric in METRICS}
    first = points[0]
    return {metric: getattr(first, f"slope_{metric}") for metric in METRICS}


def chart_points_frame(points: Sequence[ChartPoint]) -> pd.DataFrame:
    columns = [f.name for f in fields(ChartPoint)]
    return pd.DataFrame([asdict(p) for p in points], columns=columns)
