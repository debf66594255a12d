"""Point forecasts over a single numeric series.

The series is the column's numeric values in row order; row order stands in
for time order and positions are re-indexed from 0 after non-numeric cells
are dropped. Each method returns ``FORECAST_HORIZON`` points whose
confidence never increases with the horizon, or an empty ``Forecast`` with a
``reason`` when the series is too short.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence, Union

import numpy as np

from edakit.config import (
    FORECAST_HORIZON,
    MAX_MOVING_AVERAGE_WINDOW,
    MAX_SEASON_LENGTH,
    SMOOTHING_ALPHA,
)
from edakit.models import Forecast, ForecastPoint
from edakit.values import numeric_values

logger = logging.getLogger(__name__)

RandomState = Union[None, int, np.random.Generator]


def _insufficient(method: str, reason: str) -> Forecast:
    logger.info("%s forecast skipped: %s", method, reason)
    return Forecast(
        method=method,
        points=[],
        confidence=0.0,
        accuracy=0.0,
        trend="insufficient_data",
        reason=reason,
    )


def _points(
    start: int,
    predict: Callable[[int], float],
    initial_confidence: float,
    decay: float,
    floor: float,
    horizon: int,
) -> list[ForecastPoint]:
    return [
        ForecastPoint(
            index=start + step,
            predicted=float(predict(step)),
            confidence=max(floor, initial_confidence - decay * step),
        )
        for step in range(horizon)
    ]


def linear_trend(values: Sequence[Any], horizon: int = FORECAST_HORIZON) -> Forecast:
    """Extrapolate an OLS line fitted on (position, value)."""
    method = "Linear Regression"
    series = numeric_values(values)
    n = len(series)
    if n < 2:
        return _insufficient(method, f"need at least 2 values, got {n}")

    x = np.arange(n, dtype=float)
    y = np.asarray(series)
    dx = x - x.mean()
    slope = float(np.dot(dx, y - y.mean()) / np.dot(dx, dx))
    intercept = float(y.mean() - slope * x.mean())

    trend = "increasing" if slope > 0 else "decreasing" if slope < 0 else "stable"
    accuracy = min(95.0, max(70.0, 90 - abs(slope) * 10))
    return Forecast(
        method=method,
        points=_points(n, lambda step: slope * (n + step) + intercept, 95, 2, 60, horizon),
        confidence=accuracy,
        accuracy=accuracy,
        trend=trend,
    )


def moving_average(
    values: Sequence[Any],
    horizon: int = FORECAST_HORIZON,
    jitter: float = 0.1,
    random_state: RandomState = None,
) -> Forecast:
    """Hold the mean of the last ``min(5, n // 3)`` values flat.

    Each forecast point is perturbed by uniform noise of up to ``jitter / 2``
    of the average (in either direction); ``jitter=0`` gives a flat line.
    """
    method = "Moving Average"
    series = numeric_values(values)
    window = min(MAX_MOVING_AVERAGE_WINDOW, len(series) // 3)
    if window < 1:
        return _insufficient(method, f"need at least 3 values, got {len(series)}")

    average = float(np.mean(series[-window:]))
    rng = random_state if isinstance(random_state, np.random.Generator) else np.random.default_rng(random_state)
    noise = rng.uniform(-0.5, 0.5, size=horizon) * average * jitter
    return Forecast(
        method=method,
        points=_points(len(series), lambda step: average + noise[step], 80, 3, 50, horizon),
        confidence=75.0,
        accuracy=75.0,
        trend="stable",
    )


def exponential_smoothing(
    values: Sequence[Any], horizon: int = FORECAST_HORIZON, alpha: float = SMOOTHING_ALPHA
) -> Forecast:
    """Single exponential smoothing; the final level is held flat."""
    method = "Exponential Smoothing"
    series = numeric_values(values)
    if not series:
        return _insufficient(method, "series has no numeric values")

    level = series[0]
    for value in series[1:]:
        level = alpha * value + (1 - alpha) * level

    return Forecast(
        method=method,
        points=_points(len(series), lambda step: level, 85, 2.5, 60, horizon),
        confidence=82.0,
        accuracy=82.0,
        trend="stable",
    )


def seasonal(values: Sequence[Any], horizon: int = FORECAST_HORIZON) -> Forecast:
    """Repeat the average seasonal profile.

    The season length is ``min(12, n // 4)``. Each phase's level is the mean
    of every historical value at that phase, and forecast position ``n + i``
    takes the level of phase ``(n + i) % season``. At least two full seasons
    of length two or more are required.
    """
    method = "Seasonal Analysis"
    series = numeric_values(values)
    n = len(series)
    season = min(MAX_SEASON_LENGTH, n // 4)
    if season < 2 or n < 2 * season:
        return _insufficient(
            method, f"need two full seasons of at least 2 values, got {n} values"
        )

    profile = [float(np.mean(series[phase::season])) for phase in range(season)]
    return Forecast(
        method=method,
        points=_points(n, lambda step: profile[(n + step) % season], 88, 2, 65, horizon),
        confidence=78.0,
        accuracy=78.0,
        trend="seasonal",
    )


FORECAST_METHODS: dict[str, Callable[..., Forecast]] = {
    "linear": linear_trend,
    "moving_average": moving_average,
    "exponential": exponential_smoothing,
    "seasonal": seasonal,
}


def forecast(
    values: Sequence[Any],
    method: str = "all",
    random_state: RandomState = None,
) -> list[Forecast]:
    """Run one forecasting method, or every method with ``method="all"``.

    Raises:
        ValueError: If *method* is unknown.
    """
    if method != "all" and method not in FORECAST_METHODS:
        raise ValueError(
            f"Invalid method '{method}'. Must be 'all' or one of {sorted(FORECAST_METHODS)}."
        )
    names = list(FORECAST_METHODS) if method == "all" else [method]
    results: list[Forecast] = []
    for name in names:
        if name == "moving_average":
            results.append(moving_average(values, random_state=random_state))
        else:
            results.append(FORECAST_METHODS[name](values))
    return results
