"""
Least-squares trendline fitting over sparse, position-indexed samples.

Positions are zero-based ranks of entries in date order, not dates, so a
metric with gaps keeps the positions of the entries it was recorded on.
"""
from __future__ import annotations

from typing import Iterable, NamedTuple, Tuple, Union

import numpy as np


class IndexedSample(NamedTuple):
    position: float
    value: float


class TrendParams(NamedTuple):
    slope: float
    intercept: float


SampleLike = Union[IndexedSample, Tuple[float, float]]


def fit_trend(samples: Iterable[SampleLike]) -> TrendParams:
    """
    Fit value = slope * position + intercept by ordinary least squares.

    Fewer than two samples give a flat line at the single value (or 0).
    Samples are summed in a canonical (position, value) order, so input order never
    changes the result. Overflowing or infinite values propagate as inf/nan.

    >>> fit_trend([(0, 1), (1, 2), (2, 3)])
    TrendParams(slope=1.0, intercept=1.0)
    >>> fit_trend([(0, 5), (1, 5), (2, 5), (3, 5)])
    TrendParams(slope=0.0, intercept=5.0)
    >>> fit_trend([(4, 72.5)])
    TrendParams(slope=0.0, intercept=72.5)
    >>> fit_trend([])
    TrendParams(slope=0.0, intercept=0.0)
    """
    pairs = np.asarray([tuple(s) for s in samples], dtype=float).reshape(-1, 2)
    n = len(pairs)

    if n < 2:
        return TrendParams(0.0, float(pairs[0, 1]) if n == 1 else 0.0)

    pairs = pairs[np.lexsort((pairs[:, 1], pairs[:, 0]))]
    x = pairs[:, 0]
    y = pairs[:, 1]
    with np.errstate(over="ignore", invalid="ignore"):
        sum_x = np.sum(x)
        sum_y = np.sum(y)
        sum_xy = np.sum(x * y)
        sum_xx = np.sum(x * x)

        denominator = n * sum_xx - sum_x * sum_x
        if denominator == 0:
            # Every position is the same; no direction to fit
            return TrendParams(0.0, float(sum_y / n))

        slope = (n * sum_xy - sum_x * sum_y) / denominator
        intercept = (sum_y - slope * sum_x) / n
    return TrendParams(float(slope), float(intercept))


def trend_value(params: TrendParams, position: float) -> float:
    """Evaluate the fitted line at a position."""
    return params.slope * position + params.intercept
