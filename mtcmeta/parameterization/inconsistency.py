"""
Inconsistency parameterization of a treatment network.

Expresses any relative effect as an integer linear combination of basic
parameters (tree edges) and, for comparisons along a non-tree edge, the
inconsistency parameter of the cycle that edge closes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Tuple, Sequence
import numpy as np

from mtcmeta.core.network import Network, Treatment
from mtcmeta.core.parameters import (
    BasicParameter, InconsistencyParameter, NetworkModelParameter
)
from mtcmeta.parameterization.basis import FundamentalGraphBasis


@dataclass(frozen=True)
class InconsistencyParameterization:
    """
    Parameterization of a network relative to a fundamental graph basis.

    Attributes:
        network: The evidence network
        basis: Spanning tree and cycle classification of the network
        basic_parameters: One parameter per tree edge, oriented parent -> child
        inconsistency_parameters: One parameter per non-tree edge
    """
    network: Network
    basis: FundamentalGraphBasis
    basic_parameters: Tuple[BasicParameter, ...] = field(init=False)
    inconsistency_parameters: Tuple[InconsistencyParameter, ...] = field(init=False)

    def __post_init__(self):
        basic = tuple(BasicParameter(a, b) for a, b in self.basis.tree_edges)
        edge_cycles = {
            frozenset(edge): InconsistencyParameter(self.basis.cycle(*edge))
            for edge in self.basis.non_tree_edges
        }
        object.__setattr__(self, "basic_parameters", basic)
        object.__setattr__(self, "inconsistency_parameters", tuple(
            edge_cycles[frozenset(edge)] for edge in self.basis.non_tree_edges
        ))
        object.__setattr__(self, "_edge_cycles", edge_cycles)

    @classmethod
    def from_network(cls, network: Network, root: Optional[Treatment] = None) -> InconsistencyParameterization:
        return cls(network, FundamentalGraphBasis.from_network(network, root))

    @property
    def parameters(self) -> List[NetworkModelParameter]:
        """Basic parameters followed by inconsistency parameters."""
        return list(self.basic_parameters) + list(self.inconsistency_parameters)

    def inconsistency_for_edge(self, a: Treatment, b: Treatment) -> Optional[InconsistencyParameter]:
        """Inconsistency parameter attached to the comparison a-b, if any."""
        return self._edge_cycles.get(frozenset((a, b)))

    def decompose(self, base: Treatment, subject: Treatment) -> Dict[NetworkModelParameter, int]:
        """
        Decompose the relative effect of ``subject`` versus ``base``.

        The effect is the signed sum of basic parameters along the tree
        path from base to subject (+1 when an edge is walked parent to
        child, -1 otherwise). If base-subject is a non-tree edge, the
        inconsistency parameter of its cycle is added with +1 when the
        stored cycle walks base -> subject and -1 when it walks the other way.

        Args:
            base: Baseline treatment
            subject: Compared treatment

        Returns:
            Mapping from parameter to non-zero integer coefficient

        Raises:
            ParameterNotFoundError: if the treatments are not connected
        """
        if base == subject:
            raise ValueError(f"Cannot decompose the effect of {base} versus itself")

        coefficients: Dict[NetworkModelParameter, int] = {}
        path = self.basis.tree_path(base, subject)
        for x, y in zip(path[:-1], path[1:]):
            if self.basis.tree.has_edge(x, y):
                coefficients[BasicParameter(x, y)] = 1
            else:
                coefficients[BasicParameter(y, x)] = -1

        incons = self.inconsistency_for_edge(base, subject)
        if incons is not None:
            coefficients[incons] = 1 if incons.traverses(base, subject) else -1

        return coefficients

    def design_matrices(
        self,
        relative_effects: Sequence[Tuple[Treatment, Treatment]]
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Coefficient matrices for a list of relative effects.

        Args:
            relative_effects: (base, subject) pairs

        Returns:
            Tuple of (basic_matrix, inconsistency_matrix) with one row per
            relative effect and one column per parameter
        """
        basic_index = {p: i for i, p in enumerate(self.basic_parameters)}
        incons_index = {p: i for i, p in enumerate(self.inconsistency_parameters)}
        basic = np.zeros((len(relative_effects), len(basic_index)))
        incons = np.zeros((len(relative_effects), len(incons_index)))

        for row, (base, subject) in enumerate(relative_effects):
            for param, coef in self.decompose(base, subject).items():
                if isinstance(param, BasicParameter):
                    basic[row, basic_index[param]] = coef
                else:
                    incons[row, incons_index[param]] = coef

        return basic, incons
