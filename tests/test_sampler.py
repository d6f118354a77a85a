"""
Tests for Metropolis updates, proposal tuning and running statistics.
"""

import numpy as np
import pytest
from scipy import stats

from mtcmeta.models.sampler import (
    LatentVector, UpdateTuner, VectorUpdate, RunningStatistics,
    metropolis_elementwise, metropolis_componentwise,
)


class TestLatentVector:
    """Test LatentVector construction."""

    def test_shapes_must_match(self):
        with pytest.raises(ValueError):
            LatentVector("x", [0.0, 1.0], [0.1])

    def test_constant(self):
        vec = LatentVector.constant("incons", 3)
        assert vec.fixed
        assert vec.size == 3
        np.testing.assert_array_equal(vec.values, np.zeros(3))
        np.testing.assert_array_equal(vec.scales, np.zeros(3))


class TestUpdateTuner:
    """Test batch-wise adaptation of proposal scales."""

    def test_all_accepted_batch_widens(self):
        vec = LatentVector("x", [0.0, 0.0], [0.1, 0.1])
        tuner = UpdateTuner(vec, n_batches=2, batch_size=50)
        for _ in range(50):
            tuner.record(np.ones(2, dtype=bool))
        assert tuner.batch == 1
        np.testing.assert_allclose(vec.scales, 0.1 * np.exp(0.56))

    def test_all_rejected_batch_narrows(self):
        vec = LatentVector("x", [0.0], [0.1])
        tuner = UpdateTuner(vec, n_batches=2, batch_size=50)
        for _ in range(50):
            tuner.record(np.zeros(1, dtype=bool))
        np.testing.assert_allclose(vec.scales, 0.1 * np.exp(-0.44))

    def test_gain_decays(self):
        vec = LatentVector("x", [0.0], [0.1])
        tuner = UpdateTuner(vec, n_batches=2, batch_size=50)
        for _ in range(100):
            tuner.record(np.ones(1, dtype=bool))
        expected = 0.1 * np.exp(0.56) * np.exp(np.exp(-0.5) * 0.56)
        np.testing.assert_allclose(vec.scales, expected)
        assert tuner.frozen

    def test_frozen_tuner_keeps_scales(self):
        vec = LatentVector("x", [0.0], [0.1])
        tuner = UpdateTuner(vec, n_batches=2, batch_size=50)
        tuner.freeze()
        for _ in range(100):
            tuner.record(np.ones(1, dtype=bool))
        np.testing.assert_array_equal(vec.scales, [0.1])
        assert tuner.acceptance_rate == 1.0

    def test_acceptance_rate(self):
        vec = LatentVector("x", [0.0, 0.0], [0.1, 0.1])
        tuner = UpdateTuner(vec, n_batches=0)
        assert np.isnan(tuner.acceptance_rate)
        tuner.record(np.array([True, False]))
        tuner.record(np.array([True, True]))
        assert tuner.acceptance_rate == pytest.approx(0.75)
        tuner.reset_counts()
        assert np.isnan(tuner.acceptance_rate)


class TestMetropolis:
    """Test the Metropolis steps."""

    def test_elementwise_rejects_impossible_moves(self):
        vec = LatentVector("x", [0.0, 0.0, 0.0], [1.0, 1.0, 1.0])
        rng = np.random.default_rng(0)

        def density(x):
            return np.where(x == 0.0, 0.0, -np.inf)

        accepted = metropolis_elementwise(vec, density, rng)
        assert not accepted.any()
        np.testing.assert_array_equal(vec.values, [0.0, 0.0, 0.0])

    def test_componentwise_accepts_flat_density(self):
        vec = LatentVector("x", [0.0, 0.0], [1.0, 1.0])
        rng = np.random.default_rng(0)
        accepted = metropolis_componentwise(vec, lambda x: 0.0, rng)
        assert accepted.all()
        assert np.all(vec.values != 0.0)

    def test_normal_target(self):
        vec = LatentVector("x", [0.0], [1.0])
        update = VectorUpdate(
            vec,
            lambda x: float(stats.norm.logpdf(x[0], loc=2.0, scale=0.5)),
            UpdateTuner(vec, n_batches=0),
        )
        rng = np.random.default_rng(42)
        draws = []
        for i in range(5000):
            update.update(rng)
            if i >= 500:
                draws.append(vec.values[0])
        assert np.mean(draws) == pytest.approx(2.0, abs=0.15)
        assert np.std(draws) == pytest.approx(0.5, abs=0.15)

    def test_fixed_vector_not_updated(self):
        vec = LatentVector.constant("sigmaw", 1)
        tuner = UpdateTuner(vec, n_batches=0)
        update = VectorUpdate(vec, lambda x: 0.0, tuner)
        update.update(np.random.default_rng(0))
        np.testing.assert_array_equal(vec.values, [0.0])
        assert np.isnan(tuner.acceptance_rate)


class TestRunningStatistics:
    """Test streaming mean and standard deviation."""

    def test_matches_numpy(self):
        rng = np.random.default_rng(1)
        samples = rng.normal(size=(200, 3))
        stats_ = RunningStatistics(3)
        for row in samples:
            stats_.update(row)
        assert stats_.count == 200
        np.testing.assert_allclose(stats_.mean, samples.mean(axis=0))
        np.testing.assert_allclose(stats_.sd, samples.std(axis=0, ddof=0))

    def test_constant_has_zero_sd(self):
        stats_ = RunningStatistics(1)
        for _ in range(10):
            stats_.update(np.array([0.0]))
        assert stats_.mean[0] == 0.0
        assert stats_.sd[0] == 0.0

    def test_empty(self):
        assert np.isnan(RunningStatistics(2).sd).all()
