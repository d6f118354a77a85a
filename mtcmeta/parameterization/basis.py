"""
Spanning trees and fundamental graph bases for treatment networks.

A fundamental graph basis pairs the treatment graph with a spanning tree
(a spanning forest for disconnected networks). Tree edges become basic
parameters; every remaining edge closes exactly one cycle through the
tree and becomes an inconsistency parameter.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Tuple, Iterable, Sequence
import heapq
import networkx as nx

from mtcmeta.core.network import Network, Treatment
from mtcmeta.core.parameters import InconsistencyParameter
from mtcmeta.exceptions import ConfigurationError, ParameterNotFoundError


def _support(graph: nx.Graph, a: Treatment, b: Treatment) -> int:
    """Number of studies supporting the comparison a-b."""
    return len(graph.edges[a, b].get("studies", [None]))


def spanning_tree(graph: nx.Graph, root: Optional[Treatment] = None) -> nx.DiGraph:
    """
    Select the maximum-evidence spanning tree of a treatment graph.

    The tree is grown from ``root`` with Prim's rule, always adding the
    frontier edge (u, v) with the smallest key
    ``(-support(u, v), depth(u), u, v)``: most supporting studies first,
    then the shallowest attachment point, then treatment order. Once the
    root's component is exhausted the smallest unvisited treatment roots
    the next component.

    Args:
        graph: Undirected treatment graph (see ``Network.treatment_graph``)
        root: Treatment to grow the tree from (default: smallest treatment)

    Returns:
        Directed forest with edges oriented parent -> child
    """
    if graph.number_of_nodes() == 0:
        raise ConfigurationError("Cannot build a spanning tree of an empty graph")
    nodes = sorted(graph.nodes)
    if root is None:
        root = nodes[0]
    elif root not in graph:
        raise ConfigurationError(f"Root treatment '{root}' is not in the network")

    tree = nx.DiGraph()
    tree.add_nodes_from(nodes)
    depth: Dict[Treatment, int] = {}

    def push_frontier(heap: list, u: Treatment) -> None:
        for v in graph.neighbors(u):
            if v not in depth:
                heapq.heappush(heap, (-_support(graph, u, v), depth[u], u, v))

    start = root
    while start is not None:
        depth[start] = 0
        frontier: list = []
        push_frontier(frontier, start)
        while frontier:
            _, _, u, v = heapq.heappop(frontier)
            if v in depth:
                continue
            tree.add_edge(u, v)
            depth[v] = depth[u] + 1
            push_frontier(frontier, v)
        start = next((t for t in nodes if t not in depth), None)

    return tree


def _normal_cycle(walk: Sequence[Treatment]) -> Tuple[Treatment, ...]:
    """Rotate a cycle to start at its smallest treatment, in the direction of the smaller neighbour."""
    walk = list(walk)
    i = walk.index(min(walk))
    rotated = walk[i:] + walk[:i]
    if rotated[1] > rotated[-1]:
        rotated = [rotated[0]] + rotated[:0:-1]
    return tuple(rotated) + (rotated[0],)


@dataclass(frozen=True)
class FundamentalGraphBasis:
    """
    Treatment graph together with a spanning tree.

    Attributes:
        graph: Undirected treatment graph
        tree: Directed spanning forest (parent -> child) over the same vertices
    """
    graph: nx.Graph = field(compare=False)
    tree: nx.DiGraph = field(compare=False)
    tree_edges: Tuple[Tuple[Treatment, Treatment], ...] = field(init=False)
    non_tree_edges: Tuple[Tuple[Treatment, Treatment], ...] = field(init=False)

    def __post_init__(self):
        self._validate()
        tree_edges = tuple(sorted(self.tree.edges))
        in_tree = {frozenset(e) for e in tree_edges}
        non_tree = tuple(sorted(
            tuple(sorted(e)) for e in self.graph.edges if frozenset(e) not in in_tree
        ))
        object.__setattr__(self, "tree_edges", tree_edges)
        object.__setattr__(self, "non_tree_edges", non_tree)
        object.__setattr__(self, "_undirected", self.tree.to_undirected(as_view=True))

    def _validate(self) -> None:
        if set(self.tree.nodes) != set(self.graph.nodes):
            raise ConfigurationError("Spanning tree must cover exactly the treatments of the graph")
        for a, b in self.tree.edges:
            if not self.graph.has_edge(a, b):
                raise ConfigurationError(
                    f"Tree edge {a}-{b} is not a directly observed comparison"
                )
        if any(d > 1 for _, d in self.tree.in_degree):
            raise ConfigurationError("Every treatment may have at most one parent in the tree")
        if self.tree.number_of_nodes() and not nx.is_forest(self.tree.to_undirected()):
            raise ConfigurationError("Spanning tree must not contain cycles")
        n_components = nx.number_connected_components(self.graph)
        expected = self.graph.number_of_nodes() - n_components
        if self.tree.number_of_edges() != expected:
            raise ConfigurationError(
                f"Spanning tree must have {expected} edges, got {self.tree.number_of_edges()}"
            )

    @classmethod
    def from_network(cls, network: Network, root: Optional[Treatment] = None) -> FundamentalGraphBasis:
        """Build the basis of a network using the maximum-evidence tree rule."""
        graph = network.treatment_graph()
        return cls(graph=graph, tree=spanning_tree(graph, root))

    @classmethod
    def from_tree_edges(
        cls,
        network: Network,
        edges: Iterable[Tuple[Treatment, Treatment]]
    ) -> FundamentalGraphBasis:
        """
        Build the basis of a network from an explicit spanning tree.

        Args:
            network: The evidence network
            edges: Tree edges as (parent, child) pairs

        Returns:
            FundamentalGraphBasis
        """
        graph = network.treatment_graph()
        tree = nx.DiGraph()
        tree.add_nodes_from(graph.nodes)
        tree.add_edges_from(edges)
        return cls(graph=graph, tree=tree)

    @property
    def treatments(self) -> List[Treatment]:
        return sorted(self.graph.nodes)

    def is_tree_edge(self, a: Treatment, b: Treatment) -> bool:
        return self.tree.has_edge(a, b) or self.tree.has_edge(b, a)

    def connected(self, a: Treatment, b: Treatment) -> bool:
        return nx.has_path(self._undirected, a, b)

    def tree_path(self, a: Treatment, b: Treatment) -> List[Treatment]:
        """
        Unique path from ``a`` to ``b`` through the tree.

        Raises:
            ParameterNotFoundError: if the treatments lie in different components
        """
        if a not in self.tree or b not in self.tree:
            raise ParameterNotFoundError(f"Treatment(s) not found: {a}, {b}")
        try:
            return nx.shortest_path(self._undirected, a, b)
        except nx.NetworkXNoPath:
            raise ParameterNotFoundError(f"Treatments {a} and {b} are not connected") from None

    def cycle(self, a: Treatment, b: Treatment) -> Tuple[Treatment, ...]:
        """
        Fundamental cycle closed by the non-tree edge a-b, in normal form.

        The walk steps across the edge and returns through the tree; it is
        then rotated to start at its smallest treatment and oriented so the
        second treatment is smaller than the last distinct one.
        """
        if not self.graph.has_edge(a, b) or self.is_tree_edge(a, b):
            raise ValueError(f"{a}-{b} is not a non-tree edge of the basis")
        u, v = sorted((a, b))
        back = self.tree_path(v, u)
        return _normal_cycle([u] + back[:-1])

    def cycles(self) -> List[Tuple[Treatment, ...]]:
        """Fundamental cycles, one per non-tree edge, in edge order."""
        return [self.cycle(a, b) for a, b in self.non_tree_edges]

    def inconsistency_parameters(self) -> List[InconsistencyParameter]:
        return [InconsistencyParameter(c) for c in self.cycles()]
