"""
Rogers-Castro Bayes - Migration Age Schedules

Evaluation of the Rogers-Castro multi-exponential model of migration by
age, and Bayesian estimation of its parameters from observed counts or
rates via MCMC.
"""

__version__ = "0.1.0"

# Exceptions
from .exceptions import (
    RogersCastroError,
    ValidationError,
    ConfigurationError,
    EngineFailure,
    ConvergenceWarning,
)

# Parameters and curve
from .parameters import (
    ModelSpec,
    RogersCastroParams,
    PreWorkingAgeParams,
    WorkingAgeParams,
    RetirementParams,
    PostRetirementParams,
    validate_parameters,
)
from .curve import calculate_curve, rogers_castro_curve

# Data
from .schedule_data import (
    AgeSchedule,
    CountsData,
    RatesData,
    load_age_schedule,
    simulate_age_schedule,
)

# Estimation
from .sampler import SamplerBackend, SamplerConfig, PyMCSampler
from .posterior import PosteriorResult
from .bayesian import (
    BayesianEstimator,
    PriorSpec,
    build_model,
    estimate_curve,
    get_default_priors,
)

__all__ = [
    "RogersCastroError",
    "ValidationError",
    "ConfigurationError",
    "EngineFailure",
    "ConvergenceWarning",
    "ModelSpec",
    "RogersCastroParams",
    "PreWorkingAgeParams",
    "WorkingAgeParams",
    "RetirementParams",
    "PostRetirementParams",
    "validate_parameters",
    "calculate_curve",
    "rogers_castro_curve",
    "AgeSchedule",
    "CountsData",
    "RatesData",
    "load_age_schedule",
    "simulate_age_schedule",
    "SamplerBackend",
    "SamplerConfig",
    "PyMCSampler",
    "PosteriorResult",
    "BayesianEstimator",
    "PriorSpec",
    "build_model",
    "estimate_curve",
    "get_default_priors",
]
