"""
Network model parameters and posterior estimates.

A network model is parameterized by basic parameters (one per edge of
the spanning tree) and inconsistency parameters (one per cycle closed by
a non-tree edge). Posterior summaries are reported as Estimates.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple, Union
import numpy as np

from mtcmeta.core.network import Treatment


@dataclass(frozen=True)
class BasicParameter:
    """
    Relative effect of ``subject`` versus ``base`` along one tree edge.

    Attributes:
        base: Baseline treatment
        subject: Treatment compared against the baseline
    """
    base: Treatment
    subject: Treatment

    @property
    def name(self) -> str:
        return f"d.{self.base.id}.{self.subject.id}"

    def reversed(self) -> BasicParameter:
        return BasicParameter(self.subject, self.base)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class InconsistencyParameter:
    """
    Inconsistency factor for one fundamental cycle of the treatment graph.

    The cycle is stored as a closed walk: the first treatment is repeated
    at the end, so a triangle A-B-C is ``(A, B, C, A)``.

    Attributes:
        cycle: Closed walk of treatments
    """
    cycle: Tuple[Treatment, ...]

    def __post_init__(self):
        cycle = tuple(self.cycle)
        if len(cycle) < 4 or cycle[0] != cycle[-1]:
            raise ValueError(
                "cycle must be a closed walk of at least 3 edges, got "
                f"{[t.id for t in cycle]}"
            )
        object.__setattr__(self, "cycle", cycle)

    @property
    def name(self) -> str:
        return "w." + ".".join(t.id for t in self.cycle[:-1])

    @property
    def treatments(self) -> Tuple[Treatment, ...]:
        """Distinct treatments on the cycle, in walk order."""
        return self.cycle[:-1]

    def edges(self) -> Tuple[Tuple[Treatment, Treatment], ...]:
        """Directed edges traversed by the walk."""
        return tuple(zip(self.cycle[:-1], self.cycle[1:]))

    def traverses(self, a: Treatment, b: Treatment) -> bool:
        """Whether the walk steps directly from ``a`` to ``b``."""
        return (a, b) in self.edges()

    def __str__(self) -> str:
        return self.name


NetworkModelParameter = Union[BasicParameter, InconsistencyParameter]


@dataclass(frozen=True)
class Estimate:
    """
    Posterior summary of a parameter.

    Attributes:
        mean: Posterior mean
        sd: Posterior standard deviation
    """
    mean: float
    sd: float

    def interval(self, z: float = 1.959963984540054) -> Tuple[float, float]:
        """Normal-approximation interval ``mean +- z * sd``."""
        return (self.mean - z * self.sd, self.mean + z * self.sd)

    def negated(self) -> Estimate:
        """Estimate of the reversed comparison: mean flips sign, sd is kept."""
        return Estimate(-self.mean, self.sd)

    def exp(self) -> Tuple[float, Tuple[float, float]]:
        """Mean and interval on the exponentiated (ratio) scale."""
        lower, upper = self.interval()
        return float(np.exp(self.mean)), (float(np.exp(lower)), float(np.exp(upper)))

    def __str__(self) -> str:
        return f"{self.mean:.4f} ({self.sd:.4f})"
