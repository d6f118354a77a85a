"""
Tests for spanning trees and fundamental graph bases.
"""

import pytest

from mtcmeta.core.network import Treatment, DichotomousMeasurement, Study, Network
from mtcmeta.exceptions import ConfigurationError, ParameterNotFoundError
from mtcmeta.parameterization.basis import FundamentalGraphBasis, spanning_tree


A, B, C, D, E = (Treatment(t) for t in "ABCDE")


class TestSpanningTree:
    """Test the maximum-evidence tree rule."""

    def test_equal_support_prefers_shallow_edges(self, triangle_network):
        tree = spanning_tree(triangle_network.treatment_graph())
        assert sorted(tree.edges) == [(A, B), (A, C)]

    def test_support_beats_depth(self, weighted_triangle_network):
        tree = spanning_tree(weighted_triangle_network.treatment_graph())
        assert sorted(tree.edges) == [(A, B), (B, C)]

    def test_root(self, triangle_network):
        tree = spanning_tree(triangle_network.treatment_graph(), root=C)
        assert sorted(tree.edges) == [(C, A), (C, B)]

    def test_unknown_root(self, triangle_network):
        with pytest.raises(ConfigurationError):
            spanning_tree(triangle_network.treatment_graph(), root=E)

    def test_forest_for_disconnected_network(self, disconnected_network):
        tree = spanning_tree(disconnected_network.treatment_graph())
        assert sorted(tree.edges) == [(A, B), (C, D)]

    def test_square(self, square_network):
        tree = spanning_tree(square_network.treatment_graph())
        assert sorted(tree.edges) == [(A, B), (A, D), (B, C)]

    def test_deterministic(self, multi_arm_network):
        studies = list(multi_arm_network.studies)
        reordered = Network.from_studies(reversed(studies))
        first = FundamentalGraphBasis.from_network(multi_arm_network)
        for network in (multi_arm_network, reordered):
            for _ in range(3):
                basis = FundamentalGraphBasis.from_network(network)
                assert basis.tree_edges == first.tree_edges
                assert basis.non_tree_edges == first.non_tree_edges
                assert basis.cycles() == first.cycles()
                assert basis.inconsistency_parameters() == first.inconsistency_parameters()


class TestFundamentalGraphBasis:
    """Test tree/non-tree classification and cycles."""

    def test_triangle_classification(self, triangle_network):
        basis = FundamentalGraphBasis.from_network(triangle_network)
        assert basis.tree_edges == ((A, B), (A, C))
        assert basis.non_tree_edges == ((B, C),)
        assert basis.is_tree_edge(B, A)
        assert not basis.is_tree_edge(B, C)
        assert basis.treatments == [A, B, C]

    def test_cycle_normal_form(self, triangle_network):
        basis = FundamentalGraphBasis.from_network(triangle_network)
        assert basis.cycle(B, C) == (A, B, C, A)
        assert basis.cycle(C, B) == (A, B, C, A)

    def test_cycle_is_reoriented(self, triangle_network):
        basis = FundamentalGraphBasis.from_tree_edges(triangle_network, [(A, B), (B, C)])
        assert basis.non_tree_edges == ((A, C),)
        assert basis.cycle(A, C) == (A, B, C, A)

    def test_square_cycle(self, square_network):
        basis = FundamentalGraphBasis.from_network(square_network)
        assert basis.non_tree_edges == ((C, D),)
        [param] = basis.inconsistency_parameters()
        assert param.cycle == (A, B, C, D, A)
        assert param.name == "w.A.B.C.D"

    def test_cycle_of_tree_edge(self, triangle_network):
        basis = FundamentalGraphBasis.from_network(triangle_network)
        with pytest.raises(ValueError):
            basis.cycle(A, B)

    def test_one_cycle_per_non_tree_edge(self, multi_arm_network):
        basis = FundamentalGraphBasis.from_network(multi_arm_network)
        assert basis.tree_edges == ((A, B), (A, C), (B, D))
        assert basis.non_tree_edges == ((B, C), (C, D))
        assert basis.cycles() == [(A, B, C, A), (A, B, D, C, A)]

    def test_tree_path(self, square_network):
        basis = FundamentalGraphBasis.from_network(square_network)
        assert basis.tree_path(C, D) == [C, B, A, D]
        assert basis.tree_path(A, A) == [A]

    def test_disconnected_path(self, disconnected_network):
        basis = FundamentalGraphBasis.from_network(disconnected_network)
        assert basis.connected(A, B)
        assert not basis.connected(A, C)
        with pytest.raises(ParameterNotFoundError):
            basis.tree_path(A, C)

    def test_unknown_treatment_path(self, triangle_network):
        basis = FundamentalGraphBasis.from_network(triangle_network)
        with pytest.raises(ParameterNotFoundError):
            basis.tree_path(A, E)


class TestExplicitTree:
    """Test validation of user-supplied spanning trees."""

    def test_valid_tree(self, triangle_network):
        basis = FundamentalGraphBasis.from_tree_edges(triangle_network, [(B, A), (B, C)])
        assert basis.tree_edges == ((B, A), (B, C))

    def test_unobserved_edge(self, disconnected_network):
        with pytest.raises(ConfigurationError, match="not a directly observed"):
            FundamentalGraphBasis.from_tree_edges(disconnected_network, [(A, B), (B, C), (C, D)])

    def test_too_few_edges(self, triangle_network):
        with pytest.raises(ConfigurationError):
            FundamentalGraphBasis.from_tree_edges(triangle_network, [(A, B)])

    def test_cycle_rejected(self, triangle_network):
        with pytest.raises(ConfigurationError):
            FundamentalGraphBasis.from_tree_edges(triangle_network, [(A, B), (B, C), (C, A)])

    def test_two_parents_rejected(self, triangle_network):
        with pytest.raises(ConfigurationError, match="one parent"):
            FundamentalGraphBasis.from_tree_edges(triangle_network, [(A, C), (B, C)])

    def test_foreign_treatment_rejected(self, triangle_network):
        with pytest.raises(ConfigurationError):
            FundamentalGraphBasis.from_tree_edges(triangle_network, [(A, B), (B, C), (C, E)])

    def test_multi_arm_study_edges_count_as_observed(self):
        network = Network.from_studies([
            Study("s1", {
                A: DichotomousMeasurement(1, 10),
                B: DichotomousMeasurement(2, 10),
                C: DichotomousMeasurement(3, 10),
            }),
        ])
        basis = FundamentalGraphBasis.from_tree_edges(network, [(B, C), (C, A)])
        assert basis.non_tree_edges == ((A, B),)
