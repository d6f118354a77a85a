"""
Assembly of the Bayesian network meta-analysis model.

``assemble`` turns a NetworkModel into a fully wired ModelAssembly in one
step: the latent vectors with their starting values and proposal scales,
the Metropolis update for each vector (with its full conditional density
and proposal tuner), and the linear map from basic and inconsistency
parameters to every reported relative effect.

Arm-level data are indexed by two integer arrays built once here:
``arm_study`` (study of each arm) and ``arm_delta`` (random effect of each
arm, -1 for the study's baseline arm). The linear predictor of an arm is
``mu[arm_study] + delta[arm_delta]`` with ``delta`` padded by a trailing
zero, so the baseline arms pick up no random effect.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Any, List, Tuple
import warnings
import numpy as np
from scipy import stats

from mtcmeta.core.network import Treatment
from mtcmeta.core.parameters import BasicParameter
from mtcmeta.models.network_model import NetworkModel
from mtcmeta.models.priors import UniformPrior, get_vague_prior, get_variance_prior
from mtcmeta.models.bonds import DataBond, RandomEffectsBond, data_bond
from mtcmeta.models.sampler import LatentVector, UpdateTuner, VectorUpdate
from mtcmeta.models.starting_values import StartingValueGenerator


@dataclass(frozen=True, eq=False)
class ModelAssembly:
    """
    Latent vectors, updates and reporting map of one model run.

    Attributes:
        model: The network model the assembly was built from
        mu: Study baseline effects, one per study
        delta: Random effects, one per relative effect
        basic: Basic parameters
        incons: Inconsistency parameters (fixed at zero when not modeled)
        sigma: Heterogeneity standard deviation
        sigmaw: Inconsistency standard deviation (fixed at zero when not modeled)
        updates: Metropolis updates in sweep order
        report_pairs: (base, subject) pairs reported as relative effects
        report_matrix: Coefficients of [basic, incons] for each reported pair
        priors: Prior specifications by vector name
        warnings: Messages raised while choosing starting values
    """
    model: NetworkModel
    mu: LatentVector
    delta: LatentVector
    basic: LatentVector
    incons: LatentVector
    sigma: LatentVector
    sigmaw: LatentVector
    updates: Tuple[VectorUpdate, ...]
    report_pairs: Tuple[Tuple[Treatment, Treatment], ...]
    report_matrix: np.ndarray
    priors: Dict[str, Any]
    warnings: Tuple[str, ...] = ()

    @property
    def vectors(self) -> Tuple[LatentVector, ...]:
        return (self.mu, self.delta, self.basic, self.incons, self.sigma, self.sigmaw)

    @property
    def tuners(self) -> List[UpdateTuner]:
        return [u.tuner for u in self.updates]

    @property
    def sampled_updates(self) -> List[VectorUpdate]:
        """Updates that actually move their vector."""
        return [u for u in self.updates if not u.vector.fixed and u.vector.size > 0]

    @property
    def n_reported(self) -> int:
        return len(self.report_pairs) + self.incons.size + 2

    def sweep(self, rng: np.random.Generator) -> None:
        """Update every latent vector once, in fixed order."""
        for update in self.updates:
            update.update(rng)

    def reported_values(self) -> np.ndarray:
        """Relative effects, inconsistency factors, sigma and sigmaw at the current state."""
        params = np.concatenate([self.basic.values, self.incons.values])
        return np.concatenate([
            self.report_matrix @ params,
            self.incons.values,
            self.sigma.values,
            self.sigmaw.values,
        ])


def report_structure(model: NetworkModel) -> Tuple[List[Tuple[Treatment, Treatment]], np.ndarray]:
    """
    Relative effects to report and their coefficient matrix.

    The basic parameters come first in their tree orientation, followed by
    every other connected pair (a, b) with a < b in treatment order.

    Returns:
        Tuple of (pairs, matrix) where ``matrix`` has one row per pair and
        one column per entry of ``model.parameter_vector``
    """
    pairs = [(p.base, p.subject) for p in model.basic_parameters]
    direct = {frozenset(pair) for pair in pairs}
    treatments = model.treatment_list
    for i, a in enumerate(treatments):
        for b in treatments[i + 1:]:
            if frozenset((a, b)) not in direct and model.basis.connected(a, b):
                pairs.append((a, b))

    index = {p: k for k, p in enumerate(model.parameter_vector)}
    matrix = np.zeros((len(pairs), len(index)))
    for row, (a, b) in enumerate(pairs):
        for param, coef in model.decompose(a, b).items():
            matrix[row, index[param]] = coef
    return pairs, matrix


def arm_indices(model: NetworkModel) -> Tuple[np.ndarray, np.ndarray]:
    """
    Study index and random-effect index of every arm in ``model.data``.

    Returns:
        Tuple of (arm_study, arm_delta); ``arm_delta`` is -1 for baseline arms
    """
    study_index = {s: i for i, s in enumerate(model.study_list)}
    offsets = model.relative_effect_index
    arm_study = []
    arm_delta = []
    seen: Dict[object, int] = {}
    for study, treatment, _ in model.data:
        arm_study.append(study_index[study])
        if treatment == model.study_baselines[study]:
            arm_delta.append(-1)
        else:
            k = seen.get(study, 0)
            arm_delta.append(offsets[study] + k)
            seen[study] = k + 1
    return np.array(arm_study, dtype=int), np.array(arm_delta, dtype=int)


def _start_within(prior: UniformPrior, value: float, name: str, messages: List[str]) -> float:
    if prior.contains(value):
        return float(value)
    clipped = float(np.clip(value, prior.lower, prior.upper))
    msg = (
        f"Starting value {value:.4g} for {name} is outside its prior support "
        f"[{prior.lower:.4g}, {prior.upper:.4g}]; using {clipped:.4g}"
    )
    warnings.warn(msg)
    messages.append(msg)
    return clipped


def assemble(
    model: NetworkModel,
    settings,
    inconsistency: bool,
    starting_values: StartingValueGenerator
) -> ModelAssembly:
    """
    Build all sampler state for one run.

    Args:
        model: The network model
        settings: SamplerSettings of the run
        inconsistency: Whether inconsistency parameters are sampled
        starting_values: Source of initial values

    Returns:
        ModelAssembly

    Raises:
        ConfigurationError: if the variance prior is degenerate
    """
    messages: List[str] = []
    studies = model.study_list
    n_incons = len(model.inconsistency_parameters)

    vague = get_vague_prior(settings.prior_sd)
    variance = get_variance_prior(model.variance_prior, settings.variance_floor)

    # Starting values
    mu0 = [starting_values.treatment_effect(s, model.study_baselines[s]) for s in studies]
    delta0 = [
        starting_values.relative_effect(s, BasicParameter(a, b))
        for s in studies for a, b in model.study_relative_effects(s)
    ]
    basic0 = [starting_values.pooled_effect(p) for p in model.basic_parameters]
    sigma0 = _start_within(variance, starting_values.standard_deviation(), "sigma", messages)

    def scales(n: int) -> np.ndarray:
        return np.full(n, settings.initial_scale)

    mu = LatentVector("mu", mu0, scales(len(mu0)))
    delta = LatentVector("delta", delta0, scales(len(delta0)))
    basic = LatentVector("basic", basic0, scales(len(basic0)))
    sigma = LatentVector("sigma", [sigma0], scales(1))
    if inconsistency:
        incons = LatentVector("incons", np.zeros(n_incons), scales(n_incons))
        sigmaw0 = _start_within(variance, settings.initial_sigma, "sigmaw", messages)
        sigmaw = LatentVector("sigmaw", [sigmaw0], scales(1))
    else:
        incons = LatentVector.constant("incons", n_incons)
        sigmaw = LatentVector.constant("sigmaw", 1)

    data: DataBond = data_bond(model)
    effects = RandomEffectsBond.from_model(model, include_inconsistency=inconsistency)
    arm_study, arm_delta = arm_indices(model)
    treated = np.flatnonzero(arm_delta >= 0)

    def mu_density(candidate: np.ndarray) -> np.ndarray:
        theta = candidate[arm_study] + np.append(delta.values, 0.0)[arm_delta]
        ll = data.log_likelihood(theta)
        return np.bincount(arm_study, weights=ll, minlength=len(studies)) + vague.log_pdf(candidate)

    def delta_density(candidate: np.ndarray) -> np.ndarray:
        theta = mu.values[arm_study[treated]] + candidate[arm_delta[treated]]
        ll = np.zeros(candidate.size)
        ll[arm_delta[treated]] = data.log_likelihood(theta, arms=treated)
        return ll + effects.log_density(candidate, basic.values, incons.values, sigma.values[0])

    def basic_density(candidate: np.ndarray) -> float:
        return float(
            np.sum(effects.log_density(delta.values, candidate, incons.values, sigma.values[0]))
            + np.sum(vague.log_pdf(candidate))
        )

    def incons_density(candidate: np.ndarray) -> float:
        return float(
            np.sum(effects.log_density(delta.values, basic.values, candidate, sigma.values[0]))
            + np.sum(stats.norm.logpdf(candidate, loc=0.0, scale=sigmaw.values[0]))
        )

    def sigma_density(candidate: np.ndarray) -> float:
        s = candidate[0]
        if not variance.contains(s):
            return -np.inf
        return float(
            np.sum(effects.log_density(delta.values, basic.values, incons.values, s))
            + variance.log_pdf(s)
        )

    def sigmaw_density(candidate: np.ndarray) -> float:
        s = candidate[0]
        if not variance.contains(s):
            return -np.inf
        return float(np.sum(stats.norm.logpdf(incons.values, loc=0.0, scale=s)) + variance.log_pdf(s))

    n_batches = settings.burn_in_iterations // settings.tuning_batch_size

    def tuner(vector: LatentVector) -> UpdateTuner:
        return UpdateTuner(
            vector,
            n_batches=n_batches,
            batch_size=settings.tuning_batch_size,
            gain=settings.tuning_gain,
            decay=settings.tuning_decay,
            target=settings.target_acceptance,
        )

    updates = (
        VectorUpdate(mu, mu_density, tuner(mu), elementwise=True),
        VectorUpdate(delta, delta_density, tuner(delta), elementwise=True),
        VectorUpdate(basic, basic_density, tuner(basic)),
        VectorUpdate(incons, incons_density, tuner(incons)),
        VectorUpdate(sigma, sigma_density, tuner(sigma)),
        VectorUpdate(sigmaw, sigmaw_density, tuner(sigmaw)),
    )

    priors: Dict[str, Any] = {
        "mu": vague.to_dict(),
        "basic": vague.to_dict(),
        "sigma": variance.to_dict(),
    }
    if inconsistency:
        priors["incons"] = {"type": "normal", "loc": 0.0, "scale": "sigmaw"}
        priors["sigmaw"] = variance.to_dict()

    pairs, matrix = report_structure(model)
    return ModelAssembly(
        model=model,
        mu=mu,
        delta=delta,
        basic=basic,
        incons=incons,
        sigma=sigma,
        sigmaw=sigmaw,
        updates=updates,
        report_pairs=tuple(pairs),
        report_matrix=matrix,
        priors=priors,
        warnings=tuple(messages),
    )
