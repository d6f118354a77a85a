"""
Metropolis updates with adaptive proposal scales.

Latent vectors are updated by random-walk Metropolis with an independent
Gaussian proposal scale per element. During burn-in an UpdateTuner adapts
the scales in fixed-size batches toward a target acceptance rate; the
adaptation gain decays exponentially over the batches and the scales are
frozen once burn-in ends.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Dict, List, Callable
import numpy as np


@dataclass
class LatentVector:
    """
    Named vector of sampled values.

    Attributes:
        name: Vector name (mu, delta, basic, incons, sigma, sigmaw)
        values: Current values
        scales: Proposal standard deviation per element
        fixed: Fixed vectors are never updated
    """
    name: str
    values: np.ndarray
    scales: np.ndarray
    fixed: bool = False

    def __post_init__(self):
        self.values = np.array(self.values, dtype=float)
        self.scales = np.array(self.scales, dtype=float)
        if self.values.shape != self.scales.shape:
            raise ValueError(f"{self.name}: values and scales must have the same shape")

    @property
    def size(self) -> int:
        return self.values.size

    @classmethod
    def constant(cls, name: str, size: int, value: float = 0.0) -> LatentVector:
        """A fixed vector whose values and scales are zero-width."""
        return cls(name, np.full(size, value), np.zeros(size), fixed=True)


@dataclass
class UpdateTuner:
    """
    Batch-wise adaptation of proposal scales.

    After every ``batch_size`` updates, each element's log-scale moves by
    ``gain * decay ** (batch / n_batches) * (rate - target)`` where rate is
    the element's acceptance rate in that batch. After ``n_batches``
    batches the tuner freezes.

    Attributes:
        vector: The latent vector being tuned
        n_batches: Number of adaptation batches
        batch_size: Updates per batch
        gain: Initial adaptation gain
        decay: Gain decay over the whole schedule
        target: Target acceptance rate
    """
    vector: LatentVector
    n_batches: int
    batch_size: int = 50
    gain: float = 1.0
    decay: float = float(np.exp(-1))
    target: float = 0.44

    batch: int = field(default=0, init=False)
    frozen: bool = field(default=False, init=False)
    _in_batch: int = field(default=0, init=False, repr=False)
    _batch_accepted: np.ndarray = field(default=None, init=False, repr=False)
    _accepted: np.ndarray = field(default=None, init=False, repr=False)
    _proposed: int = field(default=0, init=False, repr=False)

    def __post_init__(self):
        self._batch_accepted = np.zeros(self.vector.size)
        self._accepted = np.zeros(self.vector.size)
        if self.n_batches <= 0:
            self.frozen = True

    def record(self, accepted: np.ndarray) -> None:
        """Register the outcome of one update of the whole vector."""
        self._accepted += accepted
        self._proposed += 1
        if self.frozen:
            return
        self._batch_accepted += accepted
        self._in_batch += 1
        if self._in_batch == self.batch_size:
            self._adapt()

    def _adapt(self) -> None:
        rate = self._batch_accepted / self.batch_size
        step = self.gain * self.decay ** (self.batch / self.n_batches)
        self.vector.scales *= np.exp(step * (rate - self.target))
        self._batch_accepted[:] = 0
        self._in_batch = 0
        self.batch += 1
        if self.batch >= self.n_batches:
            self.frozen = True

    def freeze(self) -> None:
        self.frozen = True

    def reset_counts(self) -> None:
        self._accepted[:] = 0
        self._proposed = 0

    @property
    def acceptance_rate(self) -> float:
        """Mean acceptance rate over all elements since the last reset."""
        if self._proposed == 0 or self.vector.size == 0:
            return float("nan")
        return float(np.mean(self._accepted) / self._proposed)


def metropolis_elementwise(
    vector: LatentVector,
    log_density: Callable[[np.ndarray], np.ndarray],
    rng: np.random.Generator
) -> np.ndarray:
    """
    Update conditionally independent elements in a single pass.

    ``log_density`` maps a full candidate vector to the per-element log
    full conditional; element i of a proposal is accepted or rejected on
    element i of the density alone.

    Returns:
        Boolean acceptance mask
    """
    current = log_density(vector.values)
    proposal = vector.values + rng.standard_normal(vector.size) * vector.scales
    proposed = log_density(proposal)
    accept = np.log(rng.uniform(size=vector.size)) < proposed - current
    vector.values = np.where(accept, proposal, vector.values)
    return accept


def metropolis_componentwise(
    vector: LatentVector,
    log_density: Callable[[np.ndarray], float],
    rng: np.random.Generator
) -> np.ndarray:
    """
    Update the elements of a vector one at a time.

    ``log_density`` maps a full candidate vector to the scalar log full
    conditional of the vector.

    Returns:
        Boolean acceptance mask
    """
    accept = np.zeros(vector.size, dtype=bool)
    current = log_density(vector.values)
    for i in range(vector.size):
        proposal = vector.values.copy()
        proposal[i] += rng.standard_normal() * vector.scales[i]
        proposed = log_density(proposal)
        if np.log(rng.uniform()) < proposed - current:
            vector.values = proposal
            current = proposed
            accept[i] = True
    return accept


@dataclass
class VectorUpdate:
    """
    One step of the sweep: a Metropolis update of a latent vector.

    Attributes:
        vector: Vector to update
        log_density: Log full conditional (per element if ``elementwise``)
        tuner: Proposal scale tuner
        elementwise: Whether the elements are conditionally independent
    """
    vector: LatentVector
    log_density: Callable[[np.ndarray], np.ndarray]
    tuner: UpdateTuner
    elementwise: bool = False

    def update(self, rng: np.random.Generator) -> None:
        if self.vector.fixed or self.vector.size == 0:
            return
        if self.elementwise:
            accepted = metropolis_elementwise(self.vector, self.log_density, rng)
        else:
            accepted = metropolis_componentwise(self.vector, self.log_density, rng)
        self.tuner.record(accepted)


class RunningStatistics:
    """
    Streaming mean and standard deviation of a vector of quantities.

    Uses Welford's algorithm, so memory does not grow with the number of
    recorded sweeps. The standard deviation is the population one
    (divisor n).
    """

    def __init__(self, size: int):
        self.count = 0
        self._mean = np.zeros(size)
        self._m2 = np.zeros(size)

    def update(self, values: np.ndarray) -> None:
        self.count += 1
        delta = values - self._mean
        self._mean += delta / self.count
        self._m2 += delta * (values - self._mean)

    @property
    def mean(self) -> np.ndarray:
        return self._mean.copy()

    @property
    def sd(self) -> np.ndarray:
        if self.count == 0:
            return np.full(self._mean.shape, np.nan)
        return np.sqrt(np.maximum(self._m2, 0.0) / self.count)
