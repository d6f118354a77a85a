"""
Probabilistic relationships of the network meta-analysis model.

Data bonds give the likelihood of each study arm given its linear
predictor theta = mu[study] + delta[arm]; the random-effects bond ties
each relative effect to its decomposition over basic and inconsistency
parameters.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, List
import numpy as np
from scipy import stats, special

from mtcmeta.core.network import MeasurementType
from mtcmeta.models.network_model import NetworkModel


class DataBond(ABC):
    """Likelihood of the observed arm-level data."""

    @abstractmethod
    def log_likelihood(self, theta: np.ndarray, arms: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Per-arm log-likelihood.

        Args:
            theta: Linear predictor for each selected arm
            arms: Indices of the arms ``theta`` refers to (default: all arms)

        Returns:
            Array of log-likelihood contributions, one per selected arm
        """
        pass

    @property
    @abstractmethod
    def n_arms(self) -> int:
        pass


@dataclass
class BinomialDataBond(DataBond):
    """
    r_i ~ Binomial(n_i, p_i), p_i = logit^-1(theta_i).

    Attributes:
        responders: Events per arm
        sample_size: Patients per arm
    """
    responders: np.ndarray
    sample_size: np.ndarray

    def __post_init__(self):
        self.responders = np.asarray(self.responders, dtype=float)
        self.sample_size = np.asarray(self.sample_size, dtype=float)
        self._log_binom = (
            special.gammaln(self.sample_size + 1)
            - special.gammaln(self.responders + 1)
            - special.gammaln(self.sample_size - self.responders + 1)
        )

    @property
    def n_arms(self) -> int:
        return len(self.responders)

    def log_likelihood(self, theta: np.ndarray, arms: Optional[np.ndarray] = None) -> np.ndarray:
        if arms is None:
            arms = slice(None)
        r = self.responders[arms]
        n = self.sample_size[arms]
        # log p = -log(1 + e^-theta), log(1 - p) = -log(1 + e^theta)
        return self._log_binom[arms] + r * theta - n * np.logaddexp(0.0, theta)

    def success_probability(self, theta: np.ndarray) -> np.ndarray:
        return special.expit(theta)


@dataclass
class NormalDataBond(DataBond):
    """
    m_i ~ Normal(theta_i, s_i) with the reported standard error s_i taken as known.

    Attributes:
        means: Observed mean per arm
        std_errs: Reported standard error per arm
    """
    means: np.ndarray
    std_errs: np.ndarray

    def __post_init__(self):
        self.means = np.asarray(self.means, dtype=float)
        self.std_errs = np.asarray(self.std_errs, dtype=float)

    @property
    def n_arms(self) -> int:
        return len(self.means)

    def log_likelihood(self, theta: np.ndarray, arms: Optional[np.ndarray] = None) -> np.ndarray:
        if arms is None:
            arms = slice(None)
        return stats.norm.logpdf(self.means[arms], loc=theta, scale=self.std_errs[arms])


def data_bond(model: NetworkModel) -> DataBond:
    """Create the data bond matching the network's measurement type."""
    measurements = [m for _, _, m in model.data]
    if model.network.measurement_type is MeasurementType.DICHOTOMOUS:
        return BinomialDataBond(
            responders=[m.responders for m in measurements],
            sample_size=[m.sample_size for m in measurements],
        )
    return NormalDataBond(
        means=[m.mean for m in measurements],
        std_errs=[m.std_err for m in measurements],
    )


@dataclass
class RandomEffectsBond:
    """
    delta_j ~ Normal(sum_k B[j, k] basic_k + sum_l W[j, l] incons_l, sigma).

    Attributes:
        basic_matrix: Coefficients of basic parameters, one row per relative effect
        inconsistency_matrix: Coefficients of inconsistency parameters
        include_inconsistency: Whether inconsistency parameters enter the means
    """
    basic_matrix: np.ndarray
    inconsistency_matrix: np.ndarray
    include_inconsistency: bool = True

    @classmethod
    def from_model(cls, model: NetworkModel, include_inconsistency: bool) -> RandomEffectsBond:
        basic, incons = model.parameterization.design_matrices(model.relative_effects)
        return cls(basic, incons, include_inconsistency)

    def means(self, basic: np.ndarray, incons: np.ndarray) -> np.ndarray:
        mu = self.basic_matrix @ basic
        if self.include_inconsistency and incons.size:
            mu = mu + self.inconsistency_matrix @ incons
        return mu

    def log_density(
        self,
        delta: np.ndarray,
        basic: np.ndarray,
        incons: np.ndarray,
        sigma: float
    ) -> np.ndarray:
        """Per-relative-effect log density of ``delta``."""
        return stats.norm.logpdf(delta, loc=self.means(basic, incons), scale=sigma)
