"""Visualization tools for network meta-analysis results."""

from mtcmeta.visualization.forest import relative_effect_forest_plot, relative_effect_table

__all__ = [
    "relative_effect_forest_plot",
    "relative_effect_table",
]
