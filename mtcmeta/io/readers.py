"""
Data readers for network meta-analysis.

This module provides functions for reading arm-level study data from
various file formats and converting them to Network objects. All readers
use the long format: one row per study arm.

    study,treatment,responders,sample_size
    Smith 2001,Placebo,12,100
    Smith 2001,Drug A,20,101

Continuous data use ``mean`` and ``std_err`` (and optionally
``sample_size``) instead of ``responders``.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List, Iterable, Mapping, Union
import json
import csv
from pathlib import Path

from mtcmeta.core.network import (
    Network, Study, Treatment, Measurement, DichotomousMeasurement, ContinuousMeasurement
)
from mtcmeta.exceptions import ConfigurationError


def _missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    # NaN from pandas
    return value != value


def _measurement(
    row: Mapping[str, Any],
    responders_col: str,
    sample_size_col: str,
    mean_col: str,
    std_err_col: str
) -> Measurement:
    if not _missing(row.get(responders_col)):
        return DichotomousMeasurement(
            responders=int(float(row[responders_col])),
            sample_size=int(float(row[sample_size_col])),
        )
    if not _missing(row.get(mean_col)):
        sample_size = row.get(sample_size_col)
        return ContinuousMeasurement(
            mean=float(row[mean_col]),
            std_err=float(row[std_err_col]),
            sample_size=None if _missing(sample_size) else int(float(sample_size)),
        )
    raise ConfigurationError(
        f"Row {dict(row)} has neither '{responders_col}' nor '{mean_col}'"
    )


def network_from_records(
    records: Iterable[Mapping[str, Any]],
    study_col: str = "study",
    treatment_col: str = "treatment",
    responders_col: str = "responders",
    sample_size_col: str = "sample_size",
    mean_col: str = "mean",
    std_err_col: str = "std_err",
    descriptions: Optional[Dict[str, str]] = None,
    description: str = ""
) -> Network:
    """
    Build a network from long-format records.

    Args:
        records: One mapping per study arm
        study_col: Key of the study identifier
        treatment_col: Key of the treatment identifier
        responders_col: Key of the event count (dichotomous data)
        sample_size_col: Key of the arm size
        mean_col: Key of the arm mean (continuous data)
        std_err_col: Key of the standard error of the mean
        descriptions: Optional description per treatment id
        description: Description of the network

    Returns:
        Network

    Raises:
        ConfigurationError: on missing fields, duplicate arms or invalid studies
    """
    descriptions = descriptions or {}
    treatments: Dict[str, Treatment] = {}
    arms: Dict[str, Dict[Treatment, Measurement]] = {}

    for row in records:
        study_id = str(row[study_col]).strip()
        treatment_id = str(row[treatment_col]).strip()
        if treatment_id not in treatments:
            treatments[treatment_id] = Treatment(treatment_id, descriptions.get(treatment_id, ""))
        treatment = treatments[treatment_id]

        study_arms = arms.setdefault(study_id, {})
        if treatment in study_arms:
            raise ConfigurationError(
                f"Study '{study_id}' lists treatment '{treatment_id}' more than once"
            )
        study_arms[treatment] = _measurement(
            row, responders_col, sample_size_col, mean_col, std_err_col
        )

    if not arms:
        raise ConfigurationError("No study arms found")

    studies = [Study(study_id, measurements) for study_id, measurements in arms.items()]
    return Network.from_studies(studies, description=description)


def read_csv(
    filepath: Union[str, Path],
    delimiter: str = ",",
    **kwargs
) -> Network:
    """
    Read a network from a long-format CSV file.

    Args:
        filepath: Path to CSV file
        delimiter: CSV delimiter
        **kwargs: Column names and descriptions passed to network_from_records

    Returns:
        Network
    """
    filepath = Path(filepath)

    with open(filepath, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f, delimiter=delimiter)
        rows = list(reader)

    kwargs.setdefault("description", filepath.stem)
    return network_from_records(rows, **kwargs)


def read_json(
    filepath: Union[str, Path],
    **kwargs
) -> Network:
    """
    Read a network from a JSON file.

    Expected format:
    {
        "description": "Smoking cessation",
        "treatments": [{"id": "A", "description": "No contact"}, ...],
        "studies": [
            {
                "id": "Study 1",
                "arms": [
                    {"treatment": "A", "responders": 9, "sample_size": 140},
                    {"treatment": "B", "responders": 23, "sample_size": 140}
                ]
            },
            ...
        ]
    }

    A plain list of long-format records is accepted as well.

    Args:
        filepath: Path to JSON file
        **kwargs: Column names passed to network_from_records

    Returns:
        Network
    """
    filepath = Path(filepath)

    with open(filepath, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, list):
        return network_from_records(data, **kwargs)

    descriptions = {
        t["id"]: t.get("description", "") for t in data.get("treatments", [])
    }
    study_col = kwargs.get("study_col", "study")
    records: List[Dict[str, Any]] = []
    for study in data.get("studies", []):
        for arm in study.get("arms", []):
            records.append({study_col: study["id"], **arm})

    kwargs.setdefault("descriptions", descriptions)
    kwargs.setdefault("description", data.get("description", ""))
    return network_from_records(records, **kwargs)


def network_from_dataframe(df, **kwargs) -> Network:
    """
    Convert a long-format pandas DataFrame to a Network.

    Args:
        df: pandas DataFrame with one row per study arm
        **kwargs: Column names and descriptions passed to network_from_records

    Returns:
        Network
    """
    try:
        import pandas as pd
    except ImportError:
        raise ImportError("pandas is required for network_from_dataframe()")

    if not isinstance(df, pd.DataFrame):
        raise TypeError(f"Expected a pandas DataFrame, got {type(df).__name__}")
    return network_from_records(df.to_dict(orient="records"), **kwargs)
