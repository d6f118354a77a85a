"""
mtcmeta: Bayesian Network Meta-Analysis (Mixed Treatment Comparisons)

Synthesizes studies that each compare a subset of treatments into joint
estimates of the relative effects between all treatments. The network's
spanning tree defines the basic parameters, every remaining comparison
closes a cycle with its own inconsistency parameter, and a random-effects
model is fitted by adaptive Metropolis-within-Gibbs sampling.

Key Features:
    - Deterministic maximum-evidence spanning tree and fundamental cycles
    - Decomposition of any relative effect into basic/inconsistency parameters
    - Constrained search for study baselines
    - Consistency and inconsistency models for dichotomous and continuous data
    - Streaming posterior summaries with progress callbacks

Example Usage:
    >>> from mtcmeta import read_csv, MTCModel, SamplerSettings
    >>>
    >>> network = read_csv("smoking.csv")
    >>> model = MTCModel(network, settings=SamplerSettings(seed=42))
    >>> results = model.run()
    >>> print(results.summary_table(exponentiate=True))
    >>>
    >>> a, c = network.get_treatment("A"), network.get_treatment("C")
    >>> model.get_relative_effect(a, c)

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"

# Exceptions
from mtcmeta.exceptions import (
    MTCError,
    ConfigurationError,
    ParameterNotFoundError,
    BaselineAssignmentError,
    ModelNotReadyError,
)

# Core classes
from mtcmeta.core.network import (
    MeasurementType,
    Treatment,
    DichotomousMeasurement,
    ContinuousMeasurement,
    Study,
    Network,
)
from mtcmeta.core.parameters import BasicParameter, InconsistencyParameter, Estimate

# Parameterization
from mtcmeta.parameterization import (
    FundamentalGraphBasis,
    InconsistencyParameterization,
    BaselineSearch,
)

# Models
from mtcmeta.models.network_model import NetworkModel
from mtcmeta.models.starting_values import (
    StartingValueGenerator,
    DefaultStartingValueGenerator,
    DichotomousDataStartingValueGenerator,
    ContinuousDataStartingValueGenerator,
)
from mtcmeta.models.results import MTCResults
from mtcmeta.models.mtc_model import (
    SamplerSettings,
    MTCModel,
    consistency_model,
    inconsistency_model,
)

# Progress
from mtcmeta.progress import ModelPhase, EventType, ProgressEvent, PrintReporter

# I/O
from mtcmeta.io.readers import read_csv, read_json, network_from_records, network_from_dataframe

# Visualization
from mtcmeta.visualization.forest import relative_effect_forest_plot

__all__ = [
    # Version info
    "__version__",

    # Exceptions
    "MTCError",
    "ConfigurationError",
    "ParameterNotFoundError",
    "BaselineAssignmentError",
    "ModelNotReadyError",

    # Core classes
    "MeasurementType",
    "Treatment",
    "DichotomousMeasurement",
    "ContinuousMeasurement",
    "Study",
    "Network",
    "BasicParameter",
    "InconsistencyParameter",
    "Estimate",

    # Parameterization
    "FundamentalGraphBasis",
    "InconsistencyParameterization",
    "BaselineSearch",

    # Models
    "NetworkModel",
    "StartingValueGenerator",
    "DefaultStartingValueGenerator",
    "DichotomousDataStartingValueGenerator",
    "ContinuousDataStartingValueGenerator",
    "MTCResults",
    "SamplerSettings",
    "MTCModel",
    "consistency_model",
    "inconsistency_model",

    # Progress
    "ModelPhase",
    "EventType",
    "ProgressEvent",
    "PrintReporter",

    # I/O
    "read_csv",
    "read_json",
    "network_from_records",
    "network_from_dataframe",

    # Visualization
    "relative_effect_forest_plot",
]
