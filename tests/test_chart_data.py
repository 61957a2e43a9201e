import math

import pandas as pd
import pytest

from chart_data import (
    ChartPoint,
    build_samples,
    chart_points_frame,
    compute_chart_points,
    summarize_trends,
    trend_direction,
)


def test_empty_entries_give_no_points():
    assert compute_chart_points([]) == []


def test_single_entry_has_no_trend(make_entry):
    (point,) = compute_chart_points([make_entry(0, weight=80.0, fat=20.0, muscle=40.0)])
    assert point.weight == 80.0
    assert point.fat_percent == 20.0
    assert point.muscle_percent == 40.0
    assert point.trend_weight is None and point.slope_weight is None
    assert point.trend_fat is None and point.slope_fat is None
    assert point.trend_muscle is None and point.slope_muscle is None


def test_sparse_metric_trend_uses_original_positions(make_entry):
    entries = [
        make_entry(0, weight=80.0, fat=25.0),
        make_entry(1, weight=79.0),
        make_entry(2, weight=78.0),
        make_entry(3, weight=77.0, fat=22.0),
    ]
    points = compute_chart_points(entries)

    assert len(points) == 4
    # Weight: exact line through all four positions
    assert [p.trend_weight for p in points] == pytest.approx([80.0, 79.0, 78.0, 77.0])
    assert all(p.slope_weight == pytest.approx(-1.0) for p in points)
    # Fat: two samples at positions 0 and 3 -> slope -1, interpolated across the gap
    assert [p.trend_fat for p in points] == pytest.approx([25.0, 24.0, 23.0, 22.0])
    assert all(p.slope_fat == pytest.approx(-1.0) for p in points)
    # Raw fat stays absent where not recorded
    assert [p.fat_percent for p in points] == [25.0, None, None, 22.0]
    # Muscle never recorded
    assert all(p.trend_muscle is None and p.slope_muscle is None for p in points)


def test_one_sample_metric_gets_no_trend_while_others_do(make_entry):
    entries = [make_entry(0, weight=80.0, muscle=38.0), make_entry(1, weight=81.0)]
    points = compute_chart_points(entries)
    assert all(p.trend_weight is not None for p in points)
    assert all(p.trend_muscle is None for p in points)


def test_flat_metric_gives_zero_slope(make_entry):
    entries = [make_entry(i, weight=75.0) for i in range(4)]
    points = compute_chart_points(entries)
    assert all(p.slope_weight == 0.0 and p.trend_weight == 75.0 for p in points)


def test_output_order_and_labels_follow_input(make_entry):
    entries = [make_entry(i, weight=80.0 + i) for i in (0, 9, 40)]
    points = compute_chart_points(entries)
    assert [p.date_label for p in points] == ["Jan 01", "Jan 10", "Feb 10"]
    assert [p.weight for p in points] == [80.0, 81.0, 82.0]


def test_nan_metric_values_are_treated_as_absent(make_entry):
    entries = [make_entry(0, fat=float("nan")), make_entry(1, fat=20.0)]
    assert build_samples(entries, "fat_percent") == [(1, 20.0)]
    points = compute_chart_points(entries)
    assert points[0].fat_percent is None
    assert points[0].trend_fat is None


def test_recomputation_is_idempotent_and_does_not_mutate(make_entry):
    entries = [make_entry(0, weight=80.0, fat=21.0), make_entry(1, weight=79.4), make_entry(2, weight=79.9, fat=20.2)]
    snapshot = list(entries)
    assert compute_chart_points(entries) == compute_chart_points(entries)
    assert entries == snapshot


def test_as_dict_omits_missing_trends():
    point = ChartPoint(date_label="Jan 01", weight=80.0, trend_weight=79.5, slope_weight=-0.2)
    d = point.as_dict()
    assert d["trend_weight"] == 79.5
    assert d["fat_percent"] is None
    assert "trend_fat" not in d and "slope_fat" not in d
    assert "trend_muscle" not in d


@pytest.mark.parametrize(
    "slope, expected",
    [(0.02, "up"), (-0.5, "down"), (0.01, "flat"), (-0.01, "flat"), (0.0, "flat"), (None, None)],
)
def test_trend_direction(slope, expected):
    assert trend_direction(slope) == expected


def test_summarize_trends(make_entry):
    points = compute_chart_points([make_entry(0, weight=80.0), make_entry(1, weight=79.0, fat=20.0)])
    slopes = summarize_trends(points)
    assert slopes["weight"] == pytest.approx(-1.0)
    assert slopes["fat"] is None
    assert slopes["muscle"] is None
    assert summarize_trends([]) == {"weight": None, "fat": None, "muscle": None}


def test_chart_points_frame(make_entry):
    points = compute_chart_points([make_entry(0, weight=80.0), make_entry(1, weight=79.0)])
    df = chart_points_frame(points)
    assert isinstance(df, pd.DataFrame)
    assert len(df) == 2
    assert list(df["date_label"]) == ["Jan 01", "Jan 02"]
    assert df["fat_percent"].isna().all()
    assert not math.isnan(df["trend_weight"].iloc[1])


def test_huge_and_infinite_values_still_produce_points(make_entry):
    entries = [
        make_entry(0, weight=1e308, fat=math.inf),
        make_entry(1, weight=1e308, fat=-math.inf),
        make_entry(2, weight=80.0),
    ]
    points = compute_chart_points(entries)
    assert len(points) == 3
    assert [p.weight for p in points] == [1e308, 1e308, 80.0]
    assert all(p.slope_fat is not None for p in points)
