"""
Network model prototype.

Aggregates a network's parameterization and baseline assignment into the
fixed index structures used when assembling the Bayesian model: ordered
study and treatment lists, the ordered list of relative effects, the data
vector and the variance-prior bound.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Tuple, Iterable
import numpy as np

from mtcmeta.core.network import (
    Network, Study, Treatment, Measurement, DichotomousMeasurement, ContinuousMeasurement
)
from mtcmeta.core.parameters import BasicParameter, InconsistencyParameter, NetworkModelParameter
from mtcmeta.exceptions import BaselineAssignmentError
from mtcmeta.parameterization.basis import FundamentalGraphBasis
from mtcmeta.parameterization.inconsistency import InconsistencyParameterization
from mtcmeta.parameterization.baseline import BaselineSearch
from mtcmeta.utils import interquartile_range


def index_map(items: Iterable) -> Dict[object, int]:
    """Map each item to its 1-based position."""
    return {item: i + 1 for i, item in enumerate(items)}


def point_value(measurement: Measurement) -> float:
    """
    Scalar summary of one arm used for the variance-prior bound.

    Dichotomous arms give the log-odds of responders / sample_size, with
    zero responders counted as 0.5. All responders are counted as
    sample_size - 0.5; this guard goes beyond the zero-only adjustment so
    that an all-responder arm gives a finite log-odds, and with it a finite
    variance-prior bound. Continuous arms give their mean.
    """
    if isinstance(measurement, DichotomousMeasurement):
        r = float(measurement.responders)
        n = float(measurement.sample_size)
        if r == 0:
            r = 0.5
        elif r == n:
            r = n - 0.5
        p = r / n
        return float(np.log(p / (1 - p)))
    return float(measurement.mean)


@dataclass(frozen=True)
class NetworkModel:
    """
    Index structures of a network meta-analysis model.

    Attributes:
        parameterization: Basic/inconsistency parameterization of the network
        study_baselines: Baseline treatment of every study
        treatment_list: Treatments in natural order
        study_list: Studies in id order
    """
    parameterization: InconsistencyParameterization
    study_baselines: Dict[Study, Treatment] = field(compare=False)
    treatment_list: Tuple[Treatment, ...] = ()
    study_list: Tuple[Study, ...] = ()

    def __post_init__(self):
        network = self.parameterization.network
        if not self.treatment_list:
            object.__setattr__(self, "treatment_list", tuple(network.treatments))
        if not self.study_list:
            object.__setattr__(self, "study_list", tuple(network.studies))

        if set(self.study_list) != set(network.studies):
            raise ValueError("study_list must contain exactly the studies of the network")
        if set(self.treatment_list) != set(network.treatments):
            raise ValueError("treatment_list must contain exactly the treatments of the network")
        if set(self.study_baselines) != set(network.studies):
            raise ValueError("Every study needs exactly one baseline")
        for study, baseline in self.study_baselines.items():
            if baseline not in study.treatments:
                raise ValueError(f"Baseline {baseline} is not a treatment of study '{study.id}'")

    @classmethod
    def build(
        cls,
        network: Network,
        root: Optional[Treatment] = None,
        tree_edges: Optional[Iterable[Tuple[Treatment, Treatment]]] = None
    ) -> NetworkModel:
        """
        Build the model prototype for a network.

        Args:
            network: The evidence network
            root: Root of the spanning tree (default: smallest treatment)
            tree_edges: Explicit spanning tree as (parent, child) pairs;
                overrides ``root``

        Returns:
            NetworkModel

        Raises:
            BaselineAssignmentError: if no consistent baseline assignment exists
        """
        if tree_edges is not None:
            basis = FundamentalGraphBasis.from_tree_edges(network, tree_edges)
        else:
            basis = FundamentalGraphBasis.from_network(network, root)
        parameterization = InconsistencyParameterization(network, basis)
        return cls(parameterization, assign_baselines(parameterization))

    @property
    def network(self) -> Network:
        return self.parameterization.network

    @property
    def basis(self) -> FundamentalGraphBasis:
        return self.parameterization.basis

    @property
    def basic_parameters(self) -> List[BasicParameter]:
        return list(self.parameterization.basic_parameters)

    @property
    def inconsistency_parameters(self) -> List[InconsistencyParameter]:
        return list(self.parameterization.inconsistency_parameters)

    @property
    def parameter_vector(self) -> List[NetworkModelParameter]:
        """Basic parameters followed by inconsistency parameters."""
        return self.basic_parameters + self.inconsistency_parameters

    @property
    def study_map(self) -> Dict[Study, int]:
        """1-based index of each study."""
        return index_map(self.study_list)

    @property
    def treatment_map(self) -> Dict[Treatment, int]:
        """1-based index of each treatment."""
        return index_map(self.treatment_list)

    @property
    def data(self) -> List[Tuple[Study, Treatment, Measurement]]:
        """One entry per study arm: studies in order, arms in treatment order."""
        return [
            (study, t, study.measurements[t])
            for study in self.study_list
            for t in self.treatment_list
            if t in study.treatments
        ]

    def study_relative_effects(self, study: Study) -> List[Tuple[Treatment, Treatment]]:
        """(baseline, treatment) pairs of a study, in treatment order."""
        baseline = self.study_baselines[study]
        return [
            (baseline, t) for t in self.treatment_list
            if t in study.treatments and t != baseline
        ]

    @property
    def relative_effects(self) -> List[Tuple[Treatment, Treatment]]:
        """All relative effects, study by study."""
        return [re for study in self.study_list for re in self.study_relative_effects(study)]

    @property
    def relative_effect_index(self) -> Dict[Study, int]:
        """0-based offset of each study's first relative effect in ``relative_effects``."""
        offsets = {}
        i = 0
        for study in self.study_list:
            offsets[study] = i
            i += len(study.treatments) - 1
        return offsets

    def decompose(self, base: Treatment, subject: Treatment) -> Dict[NetworkModelParameter, int]:
        return self.parameterization.decompose(base, subject)

    @property
    def variance_prior(self) -> float:
        """
        Upper bound for the heterogeneity standard deviation priors.

        Twice the interquartile range of the per-arm point values (see
        ``point_value``), with percentiles taken by the (n + 1)
        interpolation rule.
        """
        return 2 * interquartile_range([point_value(m) for _, _, m in self.data])


def assign_baselines(parameterization: InconsistencyParameterization) -> Dict[Study, Treatment]:
    """
    Choose a baseline for every study.

    Raises:
        BaselineAssignmentError: if the search is exhausted without a result
    """
    assignment = BaselineSearch(parameterization).search()
    if assignment is None:
        raise BaselineAssignmentError(
            "No baseline assignment covers every inconsistency parameter; "
            "the network is malformed for this spanning tree"
        )
    return assignment
