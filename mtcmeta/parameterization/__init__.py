"""
Parameterization of treatment networks.

Spanning trees and fundamental cycles, the decomposition of relative
effects into basic and inconsistency parameters, and the search for a
study baseline assignment.
"""

from mtcmeta.parameterization.basis import FundamentalGraphBasis, spanning_tree
from mtcmeta.parameterization.inconsistency import InconsistencyParameterization
from mtcmeta.parameterization.baseline import BaselineSearch, covers

__all__ = [
    "FundamentalGraphBasis",
    "spanning_tree",
    "InconsistencyParameterization",
    "BaselineSearch",
    "covers",
]
