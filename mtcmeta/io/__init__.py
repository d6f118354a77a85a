"""I/O utilities for network meta-analysis data."""

from mtcmeta.io.readers import (
    read_csv,
    read_json,
    network_from_records,
    network_from_dataframe,
)

__all__ = [
    "read_csv",
    "read_json",
    "network_from_records",
    "network_from_dataframe",
]
