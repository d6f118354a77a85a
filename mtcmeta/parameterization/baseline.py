"""
Baseline assignment for the studies of a network.

Every study reports its relative effects against one of its own
treatments, the study baseline. Baselines are chosen jointly so that each
inconsistency parameter is expressed by at least one relative effect: for
every non-tree edge a-b some study including both a and b must use a or b
as its baseline.

A non-tree edge whose supporting studies are all multi-arm and each
contain the whole fundamental cycle of the edge cannot carry
inconsistency, so such edges are exempt from the rule.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Set, Tuple, FrozenSet

from mtcmeta.core.network import Study, Treatment
from mtcmeta.parameterization.inconsistency import InconsistencyParameterization


def covers(study: Study, baseline: Treatment, edge: Tuple[Treatment, Treatment]) -> bool:
    """Whether a study with this baseline reports a relative effect along ``edge``."""
    a, b = edge
    return study.includes(a, b) and baseline in (a, b)


@dataclass
class BaselineSearch:
    """
    Depth-first search for a jointly consistent baseline assignment.

    Studies are assigned in id order and, for each study, candidate
    baselines are tried in treatment order. The search runs on an explicit
    stack of partial assignments, each carrying the set of required edges
    it already covers. A partial assignment is discarded when it leaves an
    edge uncovered which no remaining study could still cover, and a
    (study index, covered set) state that has already been explored is not
    explored again. The first complete assignment found is returned.

    Attributes:
        parameterization: Network parameterization whose non-tree edges must be covered
    """

    parameterization: InconsistencyParameterization
    studies: List[Study] = field(init=False)
    required_edges: List[Tuple[Treatment, Treatment]] = field(init=False)

    # Index of the last study (in search order) that includes each edge
    _last_chance: Dict[Tuple[Treatment, Treatment], int] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        self.studies = list(self.parameterization.network.studies)
        self.required_edges = [
            edge for edge in self.parameterization.basis.non_tree_edges
            if self._needs_cover(edge)
        ]
        self._last_chance = {
            edge: max(
                (i for i, s in enumerate(self.studies) if s.includes(*edge)),
                default=-1
            )
            for edge in self.required_edges
        }

    def _needs_cover(self, edge: Tuple[Treatment, Treatment]) -> bool:
        cycle = set(self.parameterization.basis.cycle(*edge))
        supporting = [s for s in self.studies if s.includes(*edge)]
        return any(
            len(s.treatments) == 2 or not cycle <= s.treatments
            for s in supporting
        )

    def candidates(self, study: Study) -> List[Treatment]:
        """Baseline candidates for a study, in the order they are tried."""
        return sorted(study.treatments)

    def _covered_by(self, study: Study, baseline: Treatment) -> FrozenSet[Tuple[Treatment, Treatment]]:
        return frozenset(e for e in self.required_edges if covers(study, baseline, e))

    def _covered(self, partial: Tuple[Treatment, ...]) -> FrozenSet[Tuple[Treatment, Treatment]]:
        covered = frozenset()
        for study, baseline in zip(self.studies, partial):
            covered |= self._covered_by(study, baseline)
        return covered

    def _feasible(self, index: int, covered: FrozenSet[Tuple[Treatment, Treatment]]) -> bool:
        return all(
            edge in covered or self._last_chance[edge] >= index
            for edge in self.required_edges
        )

    def search(self) -> Optional[Dict[Study, Treatment]]:
        """
        Run the search.

        Returns:
            Mapping from study to baseline treatment, or None if no
            assignment covers every required edge
        """
        if any(self._last_chance[edge] < 0 for edge in self.required_edges):
            return None

        # Studies that include no required edge keep their first candidate
        relevant = [
            any(s.includes(*edge) for edge in self.required_edges)
            for s in self.studies
        ]
        explored: Set[Tuple[int, FrozenSet[Tuple[Treatment, Treatment]]]] = set()
        stack = [((), frozenset())]
        while stack:
            partial, covered = stack.pop()
            index = len(partial)
            if (index, covered) in explored:
                continue
            explored.add((index, covered))
            if not self._feasible(index, covered):
                continue
            if index == len(self.studies):
                return dict(zip(self.studies, partial))
            study = self.studies[index]
            candidates = self.candidates(study)
            if not relevant[index]:
                candidates = candidates[:1]
            # Reversed so the first candidate is popped first
            for candidate in reversed(candidates):
                stack.append((partial + (candidate,), covered | self._covered_by(study, candidate)))
        return None

    def is_valid(self, assignment: Dict[Study, Treatment]) -> bool:
        """Check a complete assignment against the coverage rule."""
        if set(assignment) != set(self.studies):
            return False
        if any(b not in s.treatments for s, b in assignment.items()):
            return False
        partial = tuple(assignment[s] for s in self.studies)
        return self._covered(partial) == frozenset(self.required_edges)
