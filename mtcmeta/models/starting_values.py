"""
Starting values for the MCMC sampler.

Generators supply initial values for study baselines, random effects,
basic parameters and the heterogeneity standard deviation. The data-based
generators derive them from the measurements, optionally perturbed so that
independent chains start from dispersed points.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, List, Tuple
import numpy as np

from mtcmeta.core.network import Network, Study, Treatment, MeasurementType
from mtcmeta.core.parameters import BasicParameter
from mtcmeta.exceptions import ConfigurationError
from mtcmeta.utils import log_odds, log_odds_ratio, mean_difference, pool_dersimonian_laird


class StartingValueGenerator(ABC):
    """Source of initial values for the latent vectors."""

    @abstractmethod
    def treatment_effect(self, study: Study, treatment: Treatment) -> float:
        """Initial baseline effect (mu) of a study arm."""
        pass

    @abstractmethod
    def relative_effect(self, study: Study, parameter: BasicParameter) -> float:
        """Initial random effect (delta) of a study comparison."""
        pass

    @abstractmethod
    def pooled_effect(self, parameter: BasicParameter) -> float:
        """Initial value of a basic parameter."""
        pass

    @abstractmethod
    def standard_deviation(self) -> float:
        """Initial heterogeneity standard deviation."""
        pass


class DefaultStartingValueGenerator(StartingValueGenerator):
    """Start every location parameter at zero and sigma at a fixed value."""

    def __init__(self, sigma: float = 0.25):
        self.sigma = sigma

    def treatment_effect(self, study: Study, treatment: Treatment) -> float:
        return 0.0

    def relative_effect(self, study: Study, parameter: BasicParameter) -> float:
        return 0.0

    def pooled_effect(self, parameter: BasicParameter) -> float:
        return 0.0

    def standard_deviation(self) -> float:
        return self.sigma


class DataStartingValueGenerator(StartingValueGenerator):
    """
    Starting values estimated from the data.

    Without an rng the point estimates are returned unchanged. With an rng
    each value is perturbed by ``scale * se * N(0, 1)``.

    Args:
        network: Network to generate starting values for
        rng: Random generator for dispersed starting values
        scale: Multiplier of the estimate's standard error
    """

    measurement_type: MeasurementType = None

    def __init__(
        self,
        network: Network,
        rng: Optional[np.random.Generator] = None,
        scale: float = 0.0
    ):
        if network.measurement_type is not self.measurement_type:
            raise ConfigurationError(
                f"{type(self).__name__} requires a {self.measurement_type.value} network, "
                f"got {network.measurement_type.value}"
            )
        self.network = network
        self.rng = rng
        self.scale = scale

    @abstractmethod
    def estimate_treatment_effect(self, study: Study, treatment: Treatment) -> Tuple[float, float]:
        """(estimate, standard error) of one arm."""
        pass

    @abstractmethod
    def estimate_relative_effect(self, study: Study, parameter: BasicParameter) -> Tuple[float, float]:
        """(estimate, standard error) of subject versus base within one study."""
        pass

    def _generate(self, estimate: Tuple[float, float]) -> float:
        mean, se = estimate
        if self.rng is None:
            return mean
        return mean + self.rng.standard_normal() * self.scale * se

    def _pooled(self, parameter: BasicParameter) -> Tuple[float, float]:
        studies = self.network.studies_including(parameter.base, parameter.subject)
        if not studies:
            raise ConfigurationError(f"No study compares {parameter.base} and {parameter.subject}")
        estimates = [self.estimate_relative_effect(s, parameter) for s in studies]
        return pool_dersimonian_laird([e for e, _ in estimates], [se for _, se in estimates])

    def treatment_effect(self, study: Study, treatment: Treatment) -> float:
        return self._generate(self.estimate_treatment_effect(study, treatment))

    def relative_effect(self, study: Study, parameter: BasicParameter) -> float:
        return self._generate(self.estimate_relative_effect(study, parameter))

    def pooled_effect(self, parameter: BasicParameter) -> float:
        return self._generate(self._pooled(parameter))

    def standard_deviation(self) -> float:
        errors: List[float] = [
            self._pooled(BasicParameter(a, b))[1] for a, b in self.network.comparisons()
        ]
        if self.rng is None:
            return float(np.mean(errors))
        return float(errors[self.rng.integers(len(errors))])


class DichotomousDataStartingValueGenerator(DataStartingValueGenerator):
    """Starting values from event counts (log-odds scale, 0.5 continuity correction)."""

    measurement_type = MeasurementType.DICHOTOMOUS

    def estimate_treatment_effect(self, study: Study, treatment: Treatment) -> Tuple[float, float]:
        m = study.measurement(treatment)
        return log_odds(m.responders, m.sample_size, correction=True)

    def estimate_relative_effect(self, study: Study, parameter: BasicParameter) -> Tuple[float, float]:
        m0 = study.measurement(parameter.base)
        m1 = study.measurement(parameter.subject)
        return log_odds_ratio(m0.responders, m0.sample_size, m1.responders, m1.sample_size)


class ContinuousDataStartingValueGenerator(DataStartingValueGenerator):
    """Starting values from arm means (mean-difference scale)."""

    measurement_type = MeasurementType.CONTINUOUS

    def estimate_treatment_effect(self, study: Study, treatment: Treatment) -> Tuple[float, float]:
        m = study.measurement(treatment)
        return float(m.mean), float(m.std_err)

    def estimate_relative_effect(self, study: Study, parameter: BasicParameter) -> Tuple[float, float]:
        m0 = study.measurement(parameter.base)
        m1 = study.measurement(parameter.subject)
        return mean_difference(m0.mean, m0.std_err, m1.mean, m1.std_err)


def data_starting_values(
    network: Network,
    rng: Optional[np.random.Generator] = None,
    scale: float = 0.0
) -> DataStartingValueGenerator:
    """Create the data-based generator matching the network's measurement type."""
    if network.measurement_type is MeasurementType.DICHOTOMOUS:
        return DichotomousDataStartingValueGenerator(network, rng, scale)
    return ContinuousDataStartingValueGenerator(network, rng, scale)
