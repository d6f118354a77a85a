"""
Treatments, measurements, studies and networks.

This module defines the evidence a network meta-analysis is built from:
studies that each compare a subset of treatments and report one
measurement per treatment arm. All structures are immutable once built.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Optional, Dict, Any, List, Tuple, Union, Iterable, Mapping, ClassVar
import networkx as nx

from mtcmeta.exceptions import ConfigurationError


class MeasurementType(Enum):
    """Kind of outcome data reported by the studies of a network."""
    DICHOTOMOUS = "dichotomous"
    CONTINUOUS = "continuous"


@dataclass(frozen=True, order=True)
class Treatment:
    """
    A treatment (intervention) compared in the network.

    Treatments are identified, ordered and hashed by their id; the
    description is informational only.

    Attributes:
        id: Treatment identifier
        description: Optional human-readable description
    """
    id: str
    description: str = field(default="", compare=False)

    def __post_init__(self):
        if not self.id:
            raise ConfigurationError("Treatment id must be a non-empty string")

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class DichotomousMeasurement:
    """
    Event count outcome for one study arm.

    Attributes:
        responders: Number of patients with the event
        sample_size: Number of patients in the arm
    """
    responders: int
    sample_size: int

    kind: ClassVar[MeasurementType] = MeasurementType.DICHOTOMOUS

    def __post_init__(self):
        if self.sample_size <= 0:
            raise ConfigurationError(f"sample_size must be positive, got {self.sample_size}")
        if not 0 <= self.responders <= self.sample_size:
            raise ConfigurationError(
                f"responders must be in [0, {self.sample_size}], got {self.responders}"
            )


@dataclass(frozen=True)
class ContinuousMeasurement:
    """
    Continuous outcome for one study arm.

    Attributes:
        mean: Observed arm mean
        std_err: Standard error of the mean (treated as known)
        sample_size: Number of patients in the arm, if reported
    """
    mean: float
    std_err: float
    sample_size: Optional[int] = None

    kind: ClassVar[MeasurementType] = MeasurementType.CONTINUOUS

    def __post_init__(self):
        if not self.std_err > 0:
            raise ConfigurationError(f"std_err must be positive, got {self.std_err}")


Measurement = Union[DichotomousMeasurement, ContinuousMeasurement]


@dataclass(frozen=True)
class Study:
    """
    A study comparing two or more treatments.

    Studies are identified and hashed by id. The measurement mapping is
    copied into a read-only view on construction.

    Attributes:
        id: Study identifier
        measurements: One measurement per included treatment
    """
    id: str
    measurements: Mapping[Treatment, Measurement] = field(compare=False, repr=False)

    def __post_init__(self):
        measurements = dict(self.measurements)
        if len(measurements) < 2:
            raise ConfigurationError(
                f"Study '{self.id}' must include at least 2 treatments, got {len(measurements)}"
            )
        kinds = {m.kind for m in measurements.values()}
        if len(kinds) != 1:
            raise ConfigurationError(f"Study '{self.id}' mixes measurement types")
        object.__setattr__(self, "measurements", MappingProxyType(measurements))

    @property
    def treatments(self) -> frozenset:
        """Treatments included in this study."""
        return frozenset(self.measurements)

    @property
    def measurement_type(self) -> MeasurementType:
        return next(iter(self.measurements.values())).kind

    def measurement(self, treatment: Treatment) -> Measurement:
        """Get the measurement reported for a treatment arm."""
        if treatment not in self.measurements:
            raise KeyError(f"Treatment '{treatment}' not included in study '{self.id}'")
        return self.measurements[treatment]

    def includes(self, *treatments: Treatment) -> bool:
        return all(t in self.measurements for t in treatments)

    def __repr__(self) -> str:
        ids = ", ".join(t.id for t in sorted(self.measurements))
        return f"Study({self.id!r}, [{ids}])"


@dataclass(frozen=True)
class Network:
    """
    Evidence network for a network meta-analysis.

    Holds the studies and the derived set of treatments. Studies are kept
    in id order and treatments in their natural order, which every
    downstream index and tie-break relies on.

    Attributes:
        studies: Studies in the network (sorted by id on construction)
        treatments: All treatments appearing in any study
        measurement_type: Shared measurement variant of all studies
        description: Optional free-text description
    """
    studies: Tuple[Study, ...]
    description: str = field(default="", compare=False)
    treatments: Tuple[Treatment, ...] = field(init=False)
    measurement_type: MeasurementType = field(init=False)

    def __post_init__(self):
        studies = tuple(sorted(self.studies, key=lambda s: s.id))
        if not studies:
            raise ConfigurationError("A network needs at least one study")

        ids = [s.id for s in studies]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate study ids: {duplicates}")

        kinds = {s.measurement_type for s in studies}
        if len(kinds) != 1:
            raise ConfigurationError(
                "All studies in a network must share one measurement type, got "
                f"{sorted(k.value for k in kinds)}"
            )

        treatments = sorted({t for s in studies for t in s.treatments})
        object.__setattr__(self, "studies", studies)
        object.__setattr__(self, "treatments", tuple(treatments))
        object.__setattr__(self, "measurement_type", kinds.pop())

    @property
    def n_studies(self) -> int:
        return len(self.studies)

    @property
    def n_treatments(self) -> int:
        return len(self.treatments)

    @property
    def is_dichotomous(self) -> bool:
        return self.measurement_type is MeasurementType.DICHOTOMOUS

    def get_treatment(self, treatment_id: str) -> Treatment:
        """Look up a treatment by id."""
        for t in self.treatments:
            if t.id == treatment_id:
                return t
        raise KeyError(f"Treatment '{treatment_id}' not found in network")

    def get_study(self, study_id: str) -> Study:
        """Look up a study by id."""
        for s in self.studies:
            if s.id == study_id:
                return s
        raise KeyError(f"Study '{study_id}' not found in network")

    def studies_including(self, *treatments: Treatment) -> List[Study]:
        """Studies that include all of the given treatments."""
        return [s for s in self.studies if s.includes(*treatments)]

    def comparisons(self) -> List[Tuple[Treatment, Treatment]]:
        """Directly observed comparisons (a, b) with a < b, in order."""
        pairs = set()
        for s in self.studies:
            ts = sorted(s.treatments)
            for i in range(len(ts)):
                for j in range(i + 1, len(ts)):
                    pairs.add((ts[i], ts[j]))
        return sorted(pairs)

    def treatment_graph(self) -> nx.Graph:
        """
        Build the undirected treatment graph.

        Vertices are treatments; an edge joins two treatments that are
        compared in at least one study. Each edge carries a ``studies``
        attribute listing the supporting study ids.

        Returns:
            networkx Graph
        """
        graph = nx.Graph()
        graph.add_nodes_from(self.treatments)
        for a, b in self.comparisons():
            graph.add_edge(a, b, studies=[s.id for s in self.studies_including(a, b)])
        return graph

    def is_connected(self) -> bool:
        return nx.is_connected(self.treatment_graph())

    def summary(self) -> Dict[str, Any]:
        """Short description of the network size and type."""
        return {
            "n_studies": self.n_studies,
            "n_treatments": self.n_treatments,
            "n_comparisons": len(self.comparisons()),
            "measurement_type": self.measurement_type.value,
            "connected": self.is_connected(),
        }

    @classmethod
    def from_studies(cls, studies: Iterable[Study], description: str = "") -> Network:
        return cls(studies=tuple(studies), description=description)
