"""Least-squares regression: simple, multiple and quadratic polynomial fits."""

from __future__ import annotations

import logging
import math
from typing import Any, Mapping, Sequence

import numpy as np

from edakit.errors import DegenerateDataError, InsufficientDataError
from edakit.models import (
    Dataset,
    FeatureCoefficient,
    RegressionKind,
    RegressionModel,
    ResidualPoint,
)
from edakit.tools.linalg import invert, solve_normal_equations, two_sided_p_value
from edakit.values import to_number

logger = logging.getLogger(__name__)


def _valid_pairs(x: Sequence[Any], y: Sequence[Any]) -> tuple[np.ndarray, np.ndarray]:
    xs: list[float] = []
    ys: list[float] = []
    for raw_x, raw_y in zip(x, y):
        xv, yv = to_number(raw_x), to_number(raw_y)
        if xv is not None and yv is not None:
            xs.append(xv)
            ys.append(yv)
    return np.asarray(xs, dtype=float), np.asarray(ys, dtype=float)


def _goodness_of_fit(y: np.ndarray, predicted: np.ndarray, n_params: int) -> tuple[float, float, float]:
    """Return (r_squared, standard_error, ss_residual).

    R² is NaN for a constant response; the standard error is NaN when
    there are no residual degrees of freedom.
    """
    residuals = y - predicted
    ss_res = float(np.dot(residuals, residuals))
    centered = y - y.mean()
    ss_tot = float(np.dot(centered, centered))
    r_squared = 1 - ss_res / ss_tot if ss_tot > 0 else math.nan
    dof = len(y) - n_params
    standard_error = math.sqrt(ss_res / dof) if dof > 0 else math.nan
    return r_squared, standard_error, ss_res


def _t_statistic(coefficient: float, std_error: float) -> float:
    if math.isnan(std_error):
        return math.nan
    if std_error == 0:
        return math.copysign(math.inf, coefficient) if coefficient != 0 else 0.0
    return coefficient / std_error


def _residual_points(x: np.ndarray, y: np.ndarray, predicted: np.ndarray) -> list[ResidualPoint]:
    return [
        ResidualPoint(x=float(xi), y=float(yi), predicted=float(pi), residual=float(yi - pi))
        for xi, yi, pi in zip(x, y, predicted)
    ]


def _importances(coefficients: Sequence[float]) -> list[float]:
    largest = max((abs(c) for c in coefficients), default=0.0)
    return [abs(c) / largest if largest > 0 else 0.0 for c in coefficients]


def fit_simple_linear(x: Sequence[Any], y: Sequence[Any]) -> RegressionModel:
    """Ordinary least squares of *y* on a single predictor, in closed form.

    Only pairs where both values are numeric are used.

    Args:
        x: Predictor values.
        y: Response values aligned with *x*.

    Returns:
        A ``RegressionModel`` of kind ``linear``.

    Raises:
        InsufficientDataError: Fewer than two valid pairs.
        DegenerateDataError: The predictor is constant.
    """
    xs, ys = _valid_pairs(x, y)
    n = len(xs)
    if n < 2:
        raise InsufficientDataError(
            f"Simple regression needs at least 2 valid (x, y) pairs, got {n}"
        )

    dx = xs - xs.mean()
    sxx = float(np.dot(dx, dx))
    if sxx == 0:
        raise DegenerateDataError("Predictor has zero variance; slope is undefined")

    slope = float(np.dot(dx, ys - ys.mean())) / sxx
    intercept = float(ys.mean() - slope * xs.mean())
    predicted = slope * xs + intercept
    r_squared, standard_error, _ = _goodness_of_fit(ys, predicted, 2)

    slope_error = standard_error / math.sqrt(sxx) if not math.isnan(standard_error) else math.nan
    p_value = two_sided_p_value(_t_statistic(slope, slope_error), n - 2)

    logger.debug("Simple regression on %d pairs: slope=%.4g r2=%.4g", n, slope, r_squared)
    return RegressionModel(
        kind=RegressionKind.LINEAR,
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        standard_error=standard_error,
        p_value=p_value,
        n_observations=n,
        residuals=_residual_points(xs, ys, predicted),
    )


def _fit_design(
    design: np.ndarray, ys: np.ndarray, names: Sequence[str], rank_features: bool = True
) -> tuple[np.ndarray, np.ndarray, float, float, list[FeatureCoefficient]]:
    """Solve the normal equations for *design* (intercept in column 0).

    Importance is NaN for every coefficient unless *rank_features* is set.
    """
    beta, xtx = solve_normal_equations(design, ys)
    predicted = design @ beta
    r_squared, standard_error, _ = _goodness_of_fit(ys, predicted, design.shape[1])

    if math.isnan(standard_error):
        std_errors = [math.nan] * len(beta)
    else:
        diagonal = np.clip(np.diag(invert(xtx)), 0.0, None)
        std_errors = [standard_error * math.sqrt(float(d)) for d in diagonal]

    dof = len(ys) - design.shape[1]
    feature_betas = [float(b) for b in beta[1:]]
    importances = _importances(feature_betas) if rank_features else [math.nan] * len(feature_betas)
    coefficients = [
        FeatureCoefficient(
            feature=name,
            coefficient=coef,
            importance=importance,
            std_error=std_errors[j + 1],
            p_value=two_sided_p_value(_t_statistic(coef, std_errors[j + 1]), dof),
        )
        for j, (name, coef, importance) in enumerate(
            zip(names, feature_betas, importances)
        )
    ]
    return beta, predicted, r_squared, standard_error, coefficients


def fit_multiple_linear(
    features: Mapping[str, Sequence[Any]], y: Sequence[Any]
) -> RegressionModel:
    """Multiple linear regression solved through the normal equations.

    A row is used only when the response and every feature are numeric.
    An intercept column is prepended to the design matrix and
    ``(XᵗX)β = Xᵗy`` is solved by Gaussian elimination with partial
    pivoting. Feature importance is each |coefficient| relative to the
    largest feature |coefficient|.

    Args:
        features: Mapping of feature name to values, all aligned with *y*.
        y: Response values.

    Returns:
        A ``RegressionModel`` of kind ``multiple``; ``slope`` is the first
        feature's coefficient and residual ``x`` values use that feature.

    Raises:
        InsufficientDataError: No features, or usable rows do not exceed
            the number of features.
        DegenerateDataError: The features are collinear.
    """
    names = list(features)
    if not names:
        raise InsufficientDataError("Multiple regression needs at least one feature")

    rows: list[list[float]] = []
    targets: list[float] = []
    columns = [features[name] for name in names]
    for i, raw_y in enumerate(y):
        yv = to_number(raw_y)
        xs = [to_number(col[i]) if i < len(col) else None for col in columns]
        if yv is None or any(v is None for v in xs):
            continue
        rows.append([1.0, *xs])
        targets.append(yv)

    n = len(rows)
    if n <= len(names):
        raise InsufficientDataError(
            f"Multiple regression with {len(names)} features needs more than "
            f"{len(names)} complete rows, got {n}"
        )

    design = np.asarray(rows, dtype=float)
    ys = np.asarray(targets, dtype=float)
    beta, predicted, r_squared, standard_error, coefficients = _fit_design(design, ys, names)

    logger.debug("Multiple regression on %d rows, %d features: r2=%.4g", n, len(names), r_squared)
    return RegressionModel(
        kind=RegressionKind.MULTIPLE,
        slope=float(beta[1]),
        intercept=float(beta[0]),
        r_squared=r_squared,
        standard_error=standard_error,
        p_value=coefficients[0].p_value,
        n_observations=n,
        residuals=_residual_points(design[:, 1], ys, predicted),
        coefficients=coefficients,
    )


def fit_polynomial(x: Sequence[Any], y: Sequence[Any]) -> RegressionModel:
    """Quadratic regression on the design columns ``[1, x, x²]``.

    Raises:
        InsufficientDataError: Fewer than three valid pairs.
        DegenerateDataError: Fewer than three distinct x values.
    """
    xs, ys = _valid_pairs(x, y)
    n = len(xs)
    if n < 3:
        raise InsufficientDataError(
            f"Polynomial regression needs at least 3 valid (x, y) pairs, got {n}"
        )

    design = np.column_stack([np.ones(n), xs, xs * xs])
    beta, predicted, r_squared, standard_error, coefficients = _fit_design(
        design, ys, ["x", "x^2"], rank_features=False
    )
    return RegressionModel(
        kind=RegressionKind.POLYNOMIAL,
        slope=float(beta[1]),
        intercept=float(beta[0]),
        r_squared=r_squared,
        standard_error=standard_error,
        p_value=coefficients[0].p_value,
        n_observations=n,
        residuals=_residual_points(xs, ys, predicted),
        coefficients=coefficients,
    )


def run_regression(
    dataset: Dataset,
    target: str,
    features: Sequence[str],
    kind: RegressionKind | str = RegressionKind.LINEAR,
) -> RegressionModel:
    """Fit a regression of *target* on *features* over *dataset*.

    ``linear`` and ``polynomial`` take exactly one feature; ``multiple``
    takes one or more.

    Raises:
        ValueError: Unknown kind or column, or wrong number of features.
        InsufficientDataError: Too few usable rows for the chosen kind.
        DegenerateDataError: The fit has no unique solution.
    """
    kind = RegressionKind(kind)
    for column in [target, *features]:
        if column not in dataset.columns:
            raise ValueError(f"Column '{column}' not found in dataset.")

    y = dataset.column(target)
    if kind == RegressionKind.MULTIPLE:
        return fit_multiple_linear({name: dataset.column(name) for name in features}, y)

    if len(features) != 1:
        raise ValueError(f"{kind.value} regression takes exactly one feature, got {len(features)}")
    x = dataset.column(features[0])
    if kind == RegressionKind.POLYNOMIAL:
        return fit_polynomial(x, y)
    return fit_simple_linear(x, y)
