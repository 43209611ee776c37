"""Validation and sanity checks for engine outputs."""

from .sanity_checks import SanityChecker, ValidationWarning, validate_projection_results

__all__ = [
    "SanityChecker",
    "ValidationWarning",
    "validate_projection_results"
]
