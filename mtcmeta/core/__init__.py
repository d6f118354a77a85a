"""Core data structures for mtcmeta."""

from mtcmeta.core.network import (
    MeasurementType,
    Treatment,
    DichotomousMeasurement,
    ContinuousMeasurement,
    Measurement,
    Study,
    Network,
)
from mtcmeta.core.parameters import (
    BasicParameter,
    InconsistencyParameter,
    NetworkModelParameter,
    Estimate,
)

__all__ = [
    "MeasurementType",
    "Treatment",
    "DichotomousMeasurement",
    "ContinuousMeasurement",
    "Measurement",
    "Study",
    "Network",
    "BasicParameter",
    "InconsistencyParameter",
    "NetworkModelParameter",
    "Estimate",
]
