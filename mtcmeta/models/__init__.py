"""
Statistical models for mtcmeta.

This module provides the network model prototype, the Bayesian
consistency and inconsistency models and their MCMC machinery.
"""

from mtcmeta.models.network_model import NetworkModel, assign_baselines, point_value
from mtcmeta.models.priors import (
    Prior,
    NormalPrior,
    UniformPrior,
    get_vague_prior,
    get_variance_prior,
)
from mtcmeta.models.bonds import (
    DataBond,
    BinomialDataBond,
    NormalDataBond,
    RandomEffectsBond,
    data_bond,
)
from mtcmeta.models.sampler import (
    LatentVector,
    UpdateTuner,
    VectorUpdate,
    RunningStatistics,
)
from mtcmeta.models.starting_values import (
    StartingValueGenerator,
    DefaultStartingValueGenerator,
    DichotomousDataStartingValueGenerator,
    ContinuousDataStartingValueGenerator,
    data_starting_values,
)
from mtcmeta.models.assembly import ModelAssembly, assemble
from mtcmeta.models.results import MTCResults
from mtcmeta.models.mtc_model import (
    ITERATION_STEP,
    SamplerSettings,
    MTCModel,
    consistency_model,
    inconsistency_model,
    validate_iterations,
)

__all__ = [
    # Network model
    "NetworkModel",
    "assign_baselines",
    "point_value",
    # Priors
    "Prior",
    "NormalPrior",
    "UniformPrior",
    "get_vague_prior",
    "get_variance_prior",
    # Likelihood and random effects
    "DataBond",
    "BinomialDataBond",
    "NormalDataBond",
    "RandomEffectsBond",
    "data_bond",
    # Sampler
    "LatentVector",
    "UpdateTuner",
    "VectorUpdate",
    "RunningStatistics",
    "ModelAssembly",
    "assemble",
    # Starting values
    "StartingValueGenerator",
    "DefaultStartingValueGenerator",
    "DichotomousDataStartingValueGenerator",
    "ContinuousDataStartingValueGenerator",
    "data_starting_values",
    # Main model
    "ITERATION_STEP",
    "SamplerSettings",
    "MTCModel",
    "MTCResults",
    "consistency_model",
    "inconsistency_model",
    "validate_iterations",
]
