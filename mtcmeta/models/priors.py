"""
Prior Specifications for Bayesian network meta-analysis.

This module defines the prior distributions placed on study baselines,
basic parameters and the heterogeneity / inconsistency standard deviations.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Any, Union
import numpy as np
from scipy import stats

from mtcmeta.exceptions import ConfigurationError


VAGUE_SCALE = np.sqrt(1000)
VARIANCE_FLOOR = 1e-5


class Prior(ABC):
    """Abstract base class for prior distributions."""

    @abstractmethod
    def log_pdf(self, x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Compute log probability density at x."""
        pass

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        pass


@dataclass
class NormalPrior(Prior):
    """
    Normal (Gaussian) prior distribution.

    Attributes:
        loc: Mean of the distribution
        scale: Standard deviation
    """
    loc: float = 0.0
    scale: float = 1.0

    def __post_init__(self):
        if self.scale <= 0:
            raise ValueError(f"scale must be positive, got {self.scale}")

    def log_pdf(self, x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        return stats.norm.logpdf(x, loc=self.loc, scale=self.scale)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "normal", "loc": self.loc, "scale": self.scale}


@dataclass
class UniformPrior(Prior):
    """
    Uniform prior distribution.

    Attributes:
        lower: Lower bound
        upper: Upper bound
    """
    lower: float = 0.0
    upper: float = 1.0

    def __post_init__(self):
        if self.lower >= self.upper:
            raise ValueError(f"lower must be < upper, got [{self.lower}, {self.upper}]")

    def log_pdf(self, x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        return stats.uniform.logpdf(x, loc=self.lower, scale=self.upper - self.lower)

    def contains(self, x: float) -> bool:
        return self.lower <= x <= self.upper

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "uniform", "lower": self.lower, "upper": self.upper}


def get_vague_prior(scale: float = VAGUE_SCALE) -> NormalPrior:
    """Vague normal prior for study baselines and basic parameters."""
    return NormalPrior(loc=0.0, scale=scale)


def get_variance_prior(upper: float, floor: float = VARIANCE_FLOOR) -> UniformPrior:
    """
    Uniform prior for a heterogeneity or inconsistency standard deviation.

    Args:
        upper: Upper bound, usually ``NetworkModel.variance_prior``
        floor: Small positive lower bound keeping the standard deviation
            away from zero

    Returns:
        UniformPrior on [floor, upper]
    """
    if not upper > floor:
        raise ConfigurationError(
            f"Variance prior bound must exceed {floor}, got {upper}; "
            "the arm-level data show no spread"
        )
    return UniformPrior(lower=floor, upper=upper)
