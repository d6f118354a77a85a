"""
Forest Plot Visualization for network meta-analysis.

This module draws the posterior relative effects of every treatment
against a common reference treatment.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List, Tuple
import numpy as np

from mtcmeta.core.network import Treatment
from mtcmeta.models.results import MTCResults
from mtcmeta.utils import z_score


def relative_effect_table(
    results: MTCResults,
    reference: Treatment,
    ci_level: float = 0.95,
    exponentiate: bool = False
) -> Dict[str, Any]:
    """
    Estimates of every treatment against ``reference``, on the display scale.

    Args:
        results: Results of a model run
        reference: Common comparator
        ci_level: Interval level (normal approximation, mean +- z * sd)
        exponentiate: Report odds ratios instead of log odds ratios

    Returns:
        Dictionary with treatment labels, estimates and interval bounds
    """
    z = z_score(ci_level)
    labels: List[str] = []
    estimates, lower, upper = [], [], []

    for t in results.treatments:
        if t == reference:
            continue
        est = results.relative_effect(reference, t)
        lo, hi = est.interval(z)
        labels.append(t.description or t.id)
        estimates.append(est.mean)
        lower.append(lo)
        upper.append(hi)

    estimates = np.array(estimates)
    lower = np.array(lower)
    upper = np.array(upper)
    if exponentiate:
        estimates, lower, upper = np.exp(estimates), np.exp(lower), np.exp(upper)

    return {
        "reference": reference.id,
        "labels": labels,
        "estimates": estimates,
        "ci_lower": lower,
        "ci_upper": upper,
        "null_value": 1.0 if exponentiate else 0.0,
    }


def relative_effect_forest_plot(
    results: MTCResults,
    reference: Treatment,
    exponentiate: bool = False,
    ci_level: float = 0.95,
    title: Optional[str] = None,
    xlabel: Optional[str] = None,
    figsize: Tuple[float, float] = (8, 6),
    sort_by: Optional[str] = None,
    **kwargs
) -> Any:
    """
    Create a forest plot of relative effects against a reference treatment.

    Args:
        results: Results of a model run
        reference: Common comparator
        exponentiate: Plot on the ratio scale (log axis)
        ci_level: Interval level
        title: Plot title
        xlabel: X-axis label
        figsize: Figure size (width, height)
        sort_by: Sort treatments by 'effect', 'name', or None
        **kwargs: Additional arguments passed to ``ax.scatter``

    Returns:
        Matplotlib figure object
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError("matplotlib is required for plotting")

    data = relative_effect_table(results, reference, ci_level, exponentiate)
    est = data["estimates"]
    lower = data["ci_lower"]
    upper = data["ci_upper"]
    labels = data["labels"]
    n = len(est)

    if sort_by == "effect":
        order = np.argsort(est)
    elif sort_by == "name":
        order = np.argsort(labels)
    else:
        order = np.arange(n)

    est, lower, upper = est[order], lower[order], upper[order]
    labels = [labels[i] for i in order]

    fig, ax = plt.subplots(figsize=figsize)
    y_pos = np.arange(n)

    for i in range(n):
        ax.plot([lower[i], upper[i]], [y_pos[i], y_pos[i]], color='black', linewidth=1)
        ax.plot([lower[i], lower[i]], [y_pos[i] - 0.1, y_pos[i] + 0.1], color='black', linewidth=1)
        ax.plot([upper[i], upper[i]], [y_pos[i] - 0.1, y_pos[i] + 0.1], color='black', linewidth=1)

    ax.scatter(
        est, y_pos, s=kwargs.pop("s", 80), c=kwargs.pop("c", 'steelblue'),
        edgecolors='black', linewidth=0.5, zorder=3, **kwargs
    )

    ax.axvline(x=data["null_value"], color='gray', linestyle='--', linewidth=1, alpha=0.7)
    if exponentiate:
        ax.set_xscale('log')

    ax.set_yticks(y_pos)
    ax.set_yticklabels(labels)
    ax.set_xlabel(xlabel or ("Odds ratio" if exponentiate else "Relative effect"))
    ax.set_title(title or f"Relative effects vs {reference.description or reference.id}")
    ax.set_ylim(-0.5, n - 0.5)
    ax.invert_yaxis()

    plt.tight_layout()
    return fig
