"""Custom exceptions for Lethe."""


class LetheError(Exception):
    """Base exception for all Lethe errors."""

    pass


class ConfigurationError(LetheError):
    """Configuration loading or validation error."""

    pass


class PolicyError(LetheError):
    """Base exception for policy registry errors."""

    pass


class PolicyValidationError(PolicyError, ValueError):
    """Policy, rule or condition failed validation."""

    pass


class InvalidPolicyConfigError(PolicyValidationError):
    """Imported policy configuration is missing required sections."""

    pass


class PolicyNotFoundError(PolicyError, KeyError):
    """No policy (or preset) registered under the given id."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class ProtectedPolicyError(PolicyError):
    """Attempted to delete a protected policy."""

    pass


class EmptyPolicyResultsError(PolicyError, ValueError):
    """Effective decision requested over zero policy results."""

    pass
