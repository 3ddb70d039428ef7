"""
Rogers-Castro Bayes — Error Taxonomy
====================================
Errors abort a call with no partial result; warnings are surfaced but
never block it.
"""

from typing import Optional, Sequence


class RogersCastroError(Exception):
    """Base class for all package errors."""


class ValidationError(RogersCastroError, ValueError):
    """Malformed parameter set (partial family, missing baseline, unknown name)."""

    def __init__(self, message: str,
                 family: Optional[str] = None,
                 missing: Sequence[str] = ()):
        super().__init__(message)
        self.family = family
        self.missing = tuple(missing)


class ConfigurationError(RogersCastroError, ValueError):
    """Ambiguous or contradictory estimation inputs."""


class EngineFailure(RogersCastroError, RuntimeError):
    """The MCMC engine failed to build or sample the model."""


class ConvergenceWarning(UserWarning):
    """High R-hat, low ESS, divergent transitions or tree-depth saturation."""
