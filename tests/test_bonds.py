"""
Tests for likelihood and random-effects bonds.
"""

import numpy as np
import pytest
from scipy import stats

from mtcmeta.models.bonds import (
    BinomialDataBond, NormalDataBond, RandomEffectsBond, data_bond
)
from mtcmeta.models.network_model import NetworkModel


class TestBinomialDataBond:
    """Test the binomial likelihood on the logit scale."""

    def test_matches_scipy(self):
        bond = BinomialDataBond([3, 0, 10], [10, 10, 10])
        theta = np.array([-0.5, 0.2, 1.5])
        expected = stats.binom.logpmf([3, 0, 10], [10, 10, 10], 1 / (1 + np.exp(-theta)))
        np.testing.assert_allclose(bond.log_likelihood(theta), expected)

    def test_extreme_theta_is_finite(self):
        bond = BinomialDataBond([5], [10])
        assert np.isfinite(bond.log_likelihood(np.array([800.0]))).all()
        assert np.isfinite(bond.log_likelihood(np.array([-800.0]))).all()

    def test_arm_subset(self):
        bond = BinomialDataBond([1, 2, 3], [10, 10, 10])
        theta = np.array([0.1, 0.3])
        full = bond.log_likelihood(np.array([0.0, 0.1, 0.3]))
        np.testing.assert_allclose(bond.log_likelihood(theta, arms=np.array([1, 2])), full[1:])
        assert bond.n_arms == 3

    def test_success_probability(self):
        bond = BinomialDataBond([1], [2])
        assert bond.success_probability(np.array([0.0]))[0] == pytest.approx(0.5)


class TestNormalDataBond:
    """Test the normal likelihood with known standard errors."""

    def test_matches_scipy(self):
        bond = NormalDataBond([1.0, 2.0], [0.5, 0.4])
        theta = np.array([0.8, 2.5])
        expected = stats.norm.logpdf([1.0, 2.0], loc=theta, scale=[0.5, 0.4])
        np.testing.assert_allclose(bond.log_likelihood(theta), expected)
        assert bond.n_arms == 2


class TestDataBondFactory:
    """Test selection of the likelihood from the network."""

    def test_dichotomous(self, triangle_network):
        bond = data_bond(NetworkModel.build(triangle_network))
        assert isinstance(bond, BinomialDataBond)
        np.testing.assert_array_equal(bond.responders, [10, 20, 18, 30, 12, 33])

    def test_continuous(self, continuous_network):
        bond = data_bond(NetworkModel.build(continuous_network))
        assert isinstance(bond, NormalDataBond)
        np.testing.assert_array_equal(bond.means, [1.0, 2.0, 2.5, 4.0, 1.5, 3.0])


class TestRandomEffectsBond:
    """Test the random-effects means and density."""

    def test_means(self, triangle_network):
        model = NetworkModel.build(triangle_network)
        bond = RandomEffectsBond.from_model(model, include_inconsistency=True)
        # relative effects: s1 A-B, s2 B-C, s3 A-C
        basic = np.array([0.5, 1.0])
        incons = np.array([0.2])
        np.testing.assert_allclose(bond.means(basic, incons), [0.5, 0.7, 1.0])

    def test_consistency_ignores_inconsistency(self, triangle_network):
        model = NetworkModel.build(triangle_network)
        bond = RandomEffectsBond.from_model(model, include_inconsistency=False)
        basic = np.array([0.5, 1.0])
        np.testing.assert_allclose(bond.means(basic, np.array([0.2])), [0.5, 0.5, 1.0])

    def test_log_density(self, two_arm_network):
        model = NetworkModel.build(two_arm_network)
        bond = RandomEffectsBond.from_model(model, include_inconsistency=False)
        delta = np.array([0.1, 0.3])
        density = bond.log_density(delta, np.array([0.2]), np.zeros(0), 0.5)
        np.testing.assert_allclose(density, stats.norm.logpdf(delta, loc=0.2, scale=0.5))
