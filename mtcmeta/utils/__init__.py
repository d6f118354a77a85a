"""
Utility functions for mtcmeta.

This module provides the descriptive statistics and pooling helpers
used to derive variance-prior bounds and starting values.
"""

from __future__ import annotations
from typing import Optional, Tuple, Sequence
import numpy as np
from scipy import stats


# ============================================================================
# Statistical Utilities
# ============================================================================

def z_score(level: float = 0.95) -> float:
    """
    Get z-score for a confidence level.

    Args:
        level: Confidence level (0 to 1)

    Returns:
        z-score for two-tailed interval
    """
    return stats.norm.ppf((1 + level) / 2)


def _sample(values: Sequence[float]) -> np.ndarray:
    x = np.asarray(values, dtype=float)
    if x.size == 0:
        raise ValueError("Cannot compute a percentile of an empty sample")
    return x


def percentile(values: Sequence[float], p: float) -> float:
    """
    Estimate the p-th percentile with the (n + 1) interpolation rule.

    The position is ``pos = p * (n + 1) / 100`` on the sorted values
    (1-based). Below position 1 the minimum is returned, at or above
    position n the maximum; otherwise the result interpolates linearly
    between the two neighbouring order statistics. This is quantile
    type 6 in R's numbering, numpy's ``method="weibull"``.

    Args:
        values: Sample values
        p: Percentile in (0, 100]

    Returns:
        Percentile estimate
    """
    if not 0 < p <= 100:
        raise ValueError(f"p must be in (0, 100], got {p}")
    return float(np.percentile(_sample(values), p, method="weibull"))


def interquartile_range(values: Sequence[float]) -> float:
    """Distance between the 75th and 25th percentiles (see ``percentile``)."""
    q1, q3 = np.percentile(_sample(values), [25, 75], method="weibull")
    return float(q3 - q1)


# ============================================================================
# Effect Size Computations
# ============================================================================

def log_odds(responders: int, sample_size: int, correction: bool = True) -> Tuple[float, float]:
    """
    Log-odds of an event rate and its standard error.

    Args:
        responders: Number of events
        sample_size: Number of patients
        correction: Add 0.5 to both cells (events and non-events)

    Returns:
        Tuple of (log_odds, standard_error)
    """
    c = 0.5 if correction else 0.0
    a = responders + c
    b = sample_size - responders + c
    return float(np.log(a / b)), float(np.sqrt(1 / a + 1 / b))


def log_odds_ratio(
    responders0: int,
    sample_size0: int,
    responders1: int,
    sample_size1: int,
    correction: bool = True
) -> Tuple[float, float]:
    """
    Log odds ratio of arm 1 versus arm 0 and its standard error.

    Args:
        responders0: Events in the baseline arm
        sample_size0: Patients in the baseline arm
        responders1: Events in the compared arm
        sample_size1: Patients in the compared arm
        correction: Add 0.5 to all four cells when any cell is zero

    Returns:
        Tuple of (log_odds_ratio, standard_error)
    """
    cells = np.array([
        responders0, sample_size0 - responders0,
        responders1, sample_size1 - responders1,
    ], dtype=float)
    if correction and np.any(cells == 0):
        cells += 0.5
    a, b, c, d = cells
    return float(np.log((c * b) / (d * a))), float(np.sqrt(np.sum(1 / cells)))


def mean_difference(
    mean0: float,
    se0: float,
    mean1: float,
    se1: float
) -> Tuple[float, float]:
    """
    Mean difference of arm 1 versus arm 0 and its standard error.

    Returns:
        Tuple of (mean_difference, standard_error)
    """
    return float(mean1 - mean0), float(np.sqrt(se0 ** 2 + se1 ** 2))


# ============================================================================
# Pooling Functions
# ============================================================================

def tau_squared_dl(estimates: np.ndarray, variances: np.ndarray) -> float:
    """
    Estimate between-study variance using the DerSimonian-Laird method.

    Args:
        estimates: Effect estimates
        variances: Within-study variances

    Returns:
        Estimated tau-squared (zero for fewer than two estimates)
    """
    k = len(estimates)
    if k < 2:
        return 0.0

    weights = 1 / variances
    fitted = np.sum(weights * estimates) / np.sum(weights)
    q = np.sum(weights * (estimates - fitted) ** 2)
    c = np.sum(weights) - np.sum(weights ** 2) / np.sum(weights)

    if c <= 0:
        return 0.0
    return float(max(0, (q - (k - 1)) / c))


def pool_dersimonian_laird(
    estimates: Sequence[float],
    standard_errors: Sequence[float]
) -> Tuple[float, float]:
    """
    Random-effects pooled estimate with DerSimonian-Laird heterogeneity.

    Args:
        estimates: Per-study effect estimates
        standard_errors: Per-study standard errors

    Returns:
        Tuple of (pooled_estimate, pooled_standard_error)
    """
    y = np.asarray(estimates, dtype=float)
    v = np.asarray(standard_errors, dtype=float) ** 2
    if y.size == 0:
        raise ValueError("Cannot pool an empty set of estimates")

    tau_sq = tau_squared_dl(y, v)
    weights = 1 / (v + tau_sq)
    pooled = np.sum(weights * y) / np.sum(weights)
    return float(pooled), float(np.sqrt(1 / np.sum(weights)))


# ============================================================================
# Formatting Utilities
# ============================================================================

def format_estimate(
    estimate: float,
    sd: Optional[float] = None,
    ci: Optional[Tuple[float, float]] = None,
    decimals: int = 3,
    exponentiate: bool = False
) -> str:
    """
    Format estimate with optional SD or interval.

    Args:
        estimate: Point estimate
        sd: Posterior standard deviation (optional)
        ci: Credible interval (optional)
        decimals: Number of decimal places
        exponentiate: Whether to exponentiate

    Returns:
        Formatted string
    """
    if exponentiate:
        estimate = np.exp(estimate)
        if ci:
            ci = (np.exp(ci[0]), np.exp(ci[1]))

    result = f"{estimate:.{decimals}f}"

    if sd is not None:
        result += f" (SD: {sd:.{decimals}f})"

    if ci is not None:
        result += f" [{ci[0]:.{decimals}f}, {ci[1]:.{decimals}f}]"

    return result


__all__ = [
    "z_score",
    "percentile",
    "interquartile_range",
    "log_odds",
    "log_odds_ratio",
    "mean_difference",
    "tau_squared_dl",
    "pool_dersimonian_laird",
    "format_estimate",
]
