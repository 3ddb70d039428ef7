"""
Rogers-Castro Bayes — Curve Evaluator
=====================================
Deterministic evaluation of the multi-exponential migration schedule:

    m(x) = c
         + a1 * exp(alpha1 * x)                                   [pre-working]
         + a2 * exp(-alpha2*(x-mu2) - exp(-lambda2*(x-mu2)))      [working]
         + a3 * exp(-alpha3*(x-mu3) - exp(-lambda3*(x-mu3)))      [retirement]
         + a4 * exp(lambda4 * x)                                  [post-retirement]

Only active families are evaluated. The ``exp`` argument lets the same
formula run on NumPy arrays (calculation path, posterior draws) and on
PyMC tensors (inside the probabilistic model).

Overflow follows IEEE semantics: extreme parameters yield inf/nan rather
than an exception, and callers are expected to check.
"""

from typing import Callable, Mapping, Sequence

import numpy as np

from .parameters import (
    PostRetirementParams,
    PreWorkingAgeParams,
    RetirementParams,
    RogersCastroParams,
    WorkingAgeParams,
    validate_parameters,
)


ExpFunc = Callable


def pre_working_age_component(x, p: PreWorkingAgeParams, exp: ExpFunc = np.exp):
    return p.a1 * exp(p.alpha1 * x)


def _double_exponential(x, a, alpha, mu, lam, exp: ExpFunc):
    return a * exp(-alpha * (x - mu) - exp(-lam * (x - mu)))


def working_age_component(x, p: WorkingAgeParams, exp: ExpFunc = np.exp):
    return _double_exponential(x, p.a2, p.alpha2, p.mu2, p.lambda2, exp)


def retirement_component(x, p: RetirementParams, exp: ExpFunc = np.exp):
    return _double_exponential(x, p.a3, p.alpha3, p.mu3, p.lambda3, exp)


def post_retirement_component(x, p: PostRetirementParams, exp: ExpFunc = np.exp):
    return p.a4 * exp(p.lambda4 * x)


COMPONENTS = {
    'pre_working_age': pre_working_age_component,
    'working_age': working_age_component,
    'retirement': retirement_component,
    'post_retirement': post_retirement_component,
}


def rogers_castro_curve(ages, params: RogersCastroParams, exp: ExpFunc = np.exp,
                        zeros_like: Callable = np.zeros_like):
    """Evaluate m(x) for an already validated parameter record.

    Args:
        ages: Ages to evaluate at. With NumPy, parameter values shaped
            ``(n_draws, 1)`` broadcast against ``(n_ages,)`` ages to give an
            ``(n_draws, n_ages)`` result.
        params: Validated parameters (floats, arrays or tensors)
        exp: Elementwise exponential of the numeric backend
        zeros_like: Zero array of the backend, used to broadcast c

    Returns:
        Rates with the broadcast shape of ages and parameters
    """
    # broadcast c over ages (and draws)
    total = params.c + zeros_like(ages)
    for family in params.active_families:
        total = total + COMPONENTS[family](ages, getattr(params, family), exp)
    return total


def calculate_curve(ages: Sequence[float],
                    parameters: Mapping[str, float]) -> np.ndarray:
    """Calculate a Rogers-Castro migration schedule.

    Args:
        ages: Ages (any order, duplicates allowed)
        parameters: Name→value mapping; see ``validate_parameters``

    Returns:
        [len(ages)] array of migration rates

    Raises:
        ValidationError: if the parameter mapping is malformed
    """
    params = validate_parameters(parameters)
    x = np.asarray(ages, dtype=np.float64)
    with np.errstate(over='ignore', invalid='ignore'):
        return np.asarray(rogers_castro_curve(x, params), dtype=np.float64)
