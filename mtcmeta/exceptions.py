"""
Exception types for mtcmeta.

Each error also derives from the builtin exception the rest of the
package raises for the same situation, so callers may catch either.
"""

from __future__ import annotations


class MTCError(Exception):
    """Base class for all mtcmeta errors."""


class ConfigurationError(MTCError, ValueError):
    """Invalid input or settings, detected before any sampling starts."""


class ParameterNotFoundError(MTCError, KeyError):
    """A requested parameter or treatment pair is not part of the model."""


class BaselineAssignmentError(MTCError, RuntimeError):
    """No jointly consistent baseline assignment exists for the network."""


class ModelNotReadyError(MTCError, RuntimeError):
    """Results were requested before the model finished running."""
