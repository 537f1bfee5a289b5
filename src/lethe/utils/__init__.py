"""Utility functions and helpers for Lethe."""

from lethe.utils.exceptions import (
    ConfigurationError,
    EmptyPolicyResultsError,
    InvalidPolicyConfigError,
    LetheError,
    PolicyError,
    PolicyNotFoundError,
    PolicyValidationError,
    ProtectedPolicyError,
)
from lethe.utils.logging import configure_logging

__all__ = [
    "configure_logging",
    "LetheError",
    "ConfigurationError",
    "PolicyError",
    "PolicyValidationError",
    "InvalidPolicyConfigError",
    "PolicyNotFoundError",
    "ProtectedPolicyError",
    "EmptyPolicyResultsError",
]
