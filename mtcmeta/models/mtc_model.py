"""
Bayesian mixed treatment comparison model.

MTCModel runs the full pipeline on a network: build the NetworkModel
(spanning tree, parameterization, baselines), assemble the latent vectors
and their Metropolis updates, adapt the proposal scales during burn-in,
then stream posterior summaries of every reported parameter during the
simulation phase.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, List, Tuple, Sequence, Union
import warnings
import numpy as np

from mtcmeta.core.network import Network, Treatment
from mtcmeta.core.parameters import Estimate, InconsistencyParameter
from mtcmeta.exceptions import ConfigurationError, ModelNotReadyError
from mtcmeta.models.assembly import ModelAssembly, assemble
from mtcmeta.models.network_model import NetworkModel
from mtcmeta.models.priors import VAGUE_SCALE, VARIANCE_FLOOR
from mtcmeta.models.results import MTCResults
from mtcmeta.models.sampler import RunningStatistics
from mtcmeta.models.starting_values import StartingValueGenerator, DefaultStartingValueGenerator
from mtcmeta.progress import (
    ModelPhase, EventType, ProgressEvent, ProgressCallback, PrintReporter, notify
)


ITERATION_STEP = 100

# Acceptance rates outside this band at the end of burn-in are reported
LOW_ACCEPTANCE = 0.1
HIGH_ACCEPTANCE = 0.9


def validate_iterations(n: int, name: str = "iterations") -> int:
    """
    Check an iteration count.

    Raises:
        ConfigurationError: unless ``n`` is a strictly positive multiple of
            ITERATION_STEP
    """
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        raise ConfigurationError(f"{name} must be an integer, got {n!r}")
    if n <= 0 or n % ITERATION_STEP != 0:
        raise ConfigurationError(
            f"{name} must be a positive multiple of {ITERATION_STEP}, got {n}"
        )
    return int(n)


@dataclass
class SamplerSettings:
    """
    Settings of the MCMC sampler.

    Attributes:
        burn_in_iterations: Sweeps used to adapt proposal scales (discarded)
        simulation_iterations: Sweeps recorded into the posterior summaries
        reporting_interval: Sweeps between progress events
        tuning_batch_size: Sweeps per proposal-scale adaptation batch
        tuning_gain: Initial adaptation gain
        tuning_decay: Decay of the gain over the whole burn-in
        target_acceptance: Acceptance rate the tuner steers toward
        initial_scale: Initial proposal standard deviation of every element
        initial_sigma: Starting value of sigma (and sigmaw) without data-based
            starting values
        prior_sd: Standard deviation of the vague priors on mu and basic
        variance_floor: Lower bound of the uniform priors on sigma and sigmaw
        seed: Random seed
    """
    burn_in_iterations: int = 20000
    simulation_iterations: int = 100000
    reporting_interval: int = 100
    tuning_batch_size: int = 50
    tuning_gain: float = 1.0
    tuning_decay: float = float(np.exp(-1))
    target_acceptance: float = 0.44
    initial_scale: float = 0.1
    initial_sigma: float = 0.25
    prior_sd: float = float(VAGUE_SCALE)
    variance_floor: float = VARIANCE_FLOOR
    seed: Optional[int] = None

    def __post_init__(self):
        self.burn_in_iterations = validate_iterations(self.burn_in_iterations, "burn_in_iterations")
        self.simulation_iterations = validate_iterations(
            self.simulation_iterations, "simulation_iterations"
        )
        if self.reporting_interval <= 0:
            raise ConfigurationError(f"reporting_interval must be positive, got {self.reporting_interval}")
        if self.tuning_batch_size <= 0 or ITERATION_STEP % self.tuning_batch_size != 0:
            raise ConfigurationError(
                f"tuning_batch_size must divide {ITERATION_STEP}, got {self.tuning_batch_size}"
            )
        if not 0 < self.target_acceptance < 1:
            raise ConfigurationError(
                f"target_acceptance must be in (0, 1), got {self.target_acceptance}"
            )
        for name in ("tuning_gain", "tuning_decay", "initial_scale", "initial_sigma",
                     "prior_sd", "variance_floor"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive, got {getattr(self, name)}")

    @property
    def n_tuning_batches(self) -> int:
        return self.burn_in_iterations // self.tuning_batch_size


@dataclass
class MTCModel:
    """
    Random-effects network meta-analysis by Metropolis-within-Gibbs sampling.

    Implements the model:
        data_i ~ Binomial(n_i, logit^-1(mu_s + delta_i))   (dichotomous)
        data_i ~ Normal(mu_s + delta_i, se_i)               (continuous)
        delta_j ~ N(B_j' basic + W_j' incons, sigma)
        mu_s, basic_k ~ N(0, sqrt(1000))
        incons_l ~ N(0, sigmaw)                             (inconsistency model)
        sigma, sigmaw ~ Uniform(1e-5, variance_prior)

    Attributes:
        network: The evidence network
        inconsistency: Sample inconsistency parameters (otherwise they are
            fixed at zero, giving the consistency model)
        settings: Sampler settings
        root: Root treatment of the spanning tree
        tree_edges: Explicit spanning tree as (parent, child) pairs
        starting_values: Source of initial values (default: zeros and
            ``settings.initial_sigma``)
        verbose: Print progress to stderr when ``run`` gets no callback

    Example:
        >>> model = MTCModel(network, settings=SamplerSettings(seed=1))
        >>> model.run()
        >>> model.get_relative_effect(placebo, drug)
    """

    network: Network
    inconsistency: bool = False
    settings: SamplerSettings = field(default_factory=SamplerSettings)
    root: Optional[Treatment] = None
    tree_edges: Optional[Sequence[Tuple[Treatment, Treatment]]] = None
    starting_values: Optional[StartingValueGenerator] = None
    verbose: bool = False

    # Internal state
    _model: Optional[NetworkModel] = field(default=None, init=False, repr=False)
    _results: Optional[MTCResults] = field(default=None, init=False, repr=False)
    _phase: ModelPhase = field(default=ModelPhase.NOT_STARTED, init=False, repr=False)
    _iteration: int = field(default=0, init=False, repr=False)

    def __post_init__(self):
        self._model = NetworkModel.build(self.network, root=self.root, tree_edges=self.tree_edges)

    @property
    def network_model(self) -> NetworkModel:
        return self._model

    @property
    def phase(self) -> ModelPhase:
        """Current lifecycle phase."""
        return self._phase

    @property
    def iteration(self) -> int:
        """Sweeps completed in the current sampling phase."""
        return self._iteration

    @property
    def results(self) -> Optional[MTCResults]:
        """Results of the last completed run."""
        return self._results

    def is_ready(self) -> bool:
        return self._phase is ModelPhase.READY and self._results is not None

    # ------------------------------------------------------------------
    # Iteration counts
    # ------------------------------------------------------------------

    def get_burn_in_iterations(self) -> int:
        return self.settings.burn_in_iterations

    def set_burn_in_iterations(self, n: int) -> None:
        self.settings.burn_in_iterations = validate_iterations(n, "burn_in_iterations")

    def get_simulation_iterations(self) -> int:
        return self.settings.simulation_iterations

    def set_simulation_iterations(self, n: int) -> None:
        self.settings.simulation_iterations = validate_iterations(n, "simulation_iterations")

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    def run(self, callback: Optional[ProgressCallback] = None) -> MTCResults:
        """
        Construct the model, burn in and simulate.

        Every call starts from scratch; the results of a previous run are
        discarded first. Progress events are delivered synchronously to
        ``callback``.

        Args:
            callback: Called with each ProgressEvent

        Returns:
            MTCResults
        """
        if callback is None and self.verbose:
            callback = PrintReporter()
        settings = self.settings
        self._results = None
        self._iteration = 0

        self._phase = ModelPhase.CONSTRUCTING_MODEL
        notify(callback, ProgressEvent(ModelPhase.CONSTRUCTING_MODEL, EventType.STARTED))
        starting_values = self.starting_values
        if starting_values is None:
            starting_values = DefaultStartingValueGenerator(settings.initial_sigma)
        assembly = assemble(self._model, settings, self.inconsistency, starting_values)
        rng = np.random.default_rng(settings.seed)
        messages = list(assembly.warnings)
        notify(callback, ProgressEvent(ModelPhase.CONSTRUCTING_MODEL, EventType.FINISHED))

        burn_in = settings.burn_in_iterations
        self._sample(ModelPhase.BURN_IN, burn_in, assembly, rng, callback)
        messages.extend(self._check_acceptance(assembly))
        for tuner in assembly.tuners:
            tuner.freeze()
            tuner.reset_counts()
        notify(callback, ProgressEvent(ModelPhase.BURN_IN, EventType.FINISHED, burn_in, burn_in))

        simulation = settings.simulation_iterations
        summary = RunningStatistics(assembly.n_reported)
        self._sample(ModelPhase.SIMULATING, simulation, assembly, rng, callback, summary)

        self._results = self._summarize(assembly, summary, messages)
        self._phase = ModelPhase.READY
        notify(callback, ProgressEvent(ModelPhase.SIMULATING, EventType.FINISHED, simulation, simulation))
        return self._results

    def _sample(
        self,
        phase: ModelPhase,
        n: int,
        assembly: ModelAssembly,
        rng: np.random.Generator,
        callback: Optional[ProgressCallback],
        summary: Optional[RunningStatistics] = None
    ) -> None:
        self._phase = phase
        self._iteration = 0
        notify(callback, ProgressEvent(phase, EventType.STARTED, 0, n))
        interval = self.settings.reporting_interval
        for i in range(n):
            if i > 0 and i % interval == 0:
                notify(callback, ProgressEvent(phase, EventType.PROGRESS, i, n))
            assembly.sweep(rng)
            if summary is not None:
                summary.update(assembly.reported_values())
            self._iteration = i + 1

    def _check_acceptance(self, assembly: ModelAssembly) -> List[str]:
        messages = []
        for update in assembly.sampled_updates:
            rate = update.tuner.acceptance_rate
            if rate < LOW_ACCEPTANCE or rate > HIGH_ACCEPTANCE:
                msg = (
                    f"Acceptance rate of {update.vector.name} at the end of burn-in is "
                    f"{rate:.3f}; consider a longer burn-in"
                )
                warnings.warn(msg)
                messages.append(msg)
        return messages

    def _summarize(
        self,
        assembly: ModelAssembly,
        summary: RunningStatistics,
        messages: List[str]
    ) -> MTCResults:
        means = summary.mean
        sds = summary.sd
        estimates = [Estimate(float(m), float(s)) for m, s in zip(means, sds)]

        n_pairs = len(assembly.report_pairs)
        n_incons = assembly.incons.size
        relative = dict(zip(assembly.report_pairs, estimates[:n_pairs]))
        incons = dict(zip(
            self._model.inconsistency_parameters, estimates[n_pairs:n_pairs + n_incons]
        ))

        return MTCResults(
            relative_effects=relative,
            inconsistency=incons,
            sigma=estimates[-2],
            sigmaw=estimates[-1],
            inconsistency_model=self.inconsistency,
            burn_in_iterations=self.settings.burn_in_iterations,
            simulation_iterations=self.settings.simulation_iterations,
            acceptance_rates={
                u.vector.name: u.tuner.acceptance_rate for u in assembly.sampled_updates
            },
            prior_specs=assembly.priors,
            warnings=messages,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _require_ready(self) -> MTCResults:
        if not self.is_ready():
            raise ModelNotReadyError("Model has not been run; call run() first")
        return self._results

    def _treatment(self, treatment: Union[Treatment, str]) -> Treatment:
        if isinstance(treatment, Treatment):
            return treatment
        return self.network.get_treatment(treatment)

    def get_relative_effect(
        self,
        base: Union[Treatment, str],
        subject: Union[Treatment, str]
    ) -> Estimate:
        """
        Posterior estimate of the effect of ``subject`` relative to ``base``.

        Raises:
            ModelNotReadyError: before ``run`` completed
            ParameterNotFoundError: if the treatments are not connected
        """
        results = self._require_ready()
        return results.relative_effect(self._treatment(base), self._treatment(subject))

    def get_inconsistency_factors(self) -> List[InconsistencyParameter]:
        """All inconsistency parameters, also when inconsistency is not modeled."""
        self._require_ready()
        return list(self._model.inconsistency_parameters)

    def get_inconsistency(self, parameter: InconsistencyParameter) -> Estimate:
        return self._require_ready().inconsistency_factor(parameter)

    def get_results(self) -> MTCResults:
        return self._require_ready()


def consistency_model(network: Network, **kwargs) -> MTCModel:
    """Create a model with inconsistency parameters fixed at zero."""
    return MTCModel(network, inconsistency=False, **kwargs)


def inconsistency_model(network: Network, **kwargs) -> MTCModel:
    """Create a model that samples inconsistency parameters."""
    return MTCModel(network, inconsistency=True, **kwargs)
