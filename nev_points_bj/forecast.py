"""Linear trend projection of the minimum qualifying household score."""

import math
from typing import Iterable

from nev_points_bj.params import HistoryPoint
from nev_points_bj.rules import FORECAST_WINDOW


def normalize_history(history: Iterable[HistoryPoint]) -> list[HistoryPoint]:
    """Sort by year ascending; unknown scores are kept for display."""
    return sorted(history, key=lambda p: p.year)


def recent_history(history: Iterable[HistoryPoint], window: int = FORECAST_WINDOW) -> list[HistoryPoint]:
    """The latest ``window`` years of history, sorted by year ascending."""
    points = normalize_history(history)
    if window <= 0:
        return []
    return points[-window:]


def fit_line(history: Iterable[HistoryPoint]) -> tuple[float, float] | None:
    """Ordinary least squares over the known (year, score) pairs.

    Returns (slope, intercept), or None with fewer than 2 known points or
    when all known years coincide (n·Σx² − (Σx)² == 0).
    """
    known = [(p.year, p.score) for p in history if p.score is not None]
    n = len(known)
    if n < 2:
        return None
    sum_x = sum(x for x, _ in known)
    sum_y = sum(y for _, y in known)
    sum_xy = sum(x * y for x, y in known)
    sum_xx = sum(x * x for x, _ in known)
    denominator = n * sum_xx - sum_x * sum_x
    if denominator == 0:
        return None
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def _round_half_up(value: float, digits: int = 1) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def predict(history: Iterable[HistoryPoint], future_years: Iterable[int]) -> list[HistoryPoint]:
    """Project scores for each requested year, in the order requested.

    Scores are rounded to one decimal and floored at 0. With insufficient
    data every prediction is None.
    """
    years = list(future_years)
    line = fit_line(history)
    if line is None:
        return [HistoryPoint(year, None) for year in years]
    slope, intercept = line
    return [
        HistoryPoint(year, max(0.0, _round_half_up(slope * year + intercept)))
        for year in years
    ]


def next_years(history: Iterable[HistoryPoint], count: int = FORECAST_WINDOW) -> list[int]:
    """The ``count`` calendar years following the latest history year."""
    years = [p.year for p in history]
    if not years:
        return []
    last = max(years)
    return list(range(last + 1, last + 1 + count))
