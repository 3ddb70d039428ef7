"""
Rogers-Castro Bayes — Posterior Summarizer
==========================================
Turns raw MCMC draws into the tables callers consume:

    pars_df         variable, median, lower, upper
    fit_df          age, data, median, lower, upper, diff_sq
    check_converge  variable, mean, se_mean, n_eff, Rhat

The fitted band is computed by pushing every posterior draw through the
curve evaluator at every observed age (one broadcast NumPy evaluation of
shape [n_draws, n_ages]) and taking order statistics across draws.

The result is fully detached from the engine: draws are copied into plain
NumPy arrays and the InferenceData is not kept.
"""

import warnings
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import arviz as az
import numpy as np
import pandas as pd

from .curve import rogers_castro_curve
from .exceptions import ConvergenceWarning, EngineFailure
from .parameters import PARAMETER_NAMES, ModelSpec, RogersCastroParams
from .sampler import SamplerConfig


@dataclass
class PosteriorResult:
    """Everything an estimation call returns."""
    draws: Dict[str, np.ndarray]      # name -> [chains, draws]
    pars_df: pd.DataFrame
    fit_df: pd.DataFrame
    check_converge: pd.DataFrame
    likelihood: str                   # 'poisson' or 'normal'
    model_spec: ModelSpec
    diagnostics: Dict[str, float] = field(default_factory=dict)

    @property
    def converged(self) -> bool:
        d = self.diagnostics
        return (not d.get('rhat_warning', False)
                and not d.get('ess_warning', False)
                and d.get('divergences', 0) == 0)

    def median_parameters(self) -> Dict[str, float]:
        """Posterior medians of the curve parameters (sigma excluded)."""
        medians = self.pars_df.set_index('variable')['median']
        return {name: float(medians[name]) for name in medians.index
                if name in PARAMETER_NAMES}


def extract_draws(idata: az.InferenceData,
                  var_names: List[str]) -> Dict[str, np.ndarray]:
    """Copy per-chain draws out of the engine's InferenceData."""
    posterior = getattr(idata, 'posterior', None)
    if posterior is None:
        raise EngineFailure("Sampler returned no posterior group")

    missing = [name for name in var_names if name not in posterior]
    if missing:
        raise EngineFailure(f"Sampler returned no draws for {missing}")

    return {name: np.array(posterior[name].values, dtype=np.float64, copy=True)
            for name in var_names}


def _quantile_bounds(credible_interval: float):
    tail = (1.0 - credible_interval) / 2.0
    return tail, 1.0 - tail


def summarize_parameters(draws: Dict[str, np.ndarray],
                         credible_interval: float = 0.95) -> pd.DataFrame:
    lo, hi = _quantile_bounds(credible_interval)
    rows = []
    for name, values in draws.items():
        lower, median, upper = np.quantile(values.ravel(), [lo, 0.5, hi])
        rows.append({'variable': name, 'median': median,
                     'lower': lower, 'upper': upper})
    return pd.DataFrame(rows, columns=['variable', 'median', 'lower', 'upper'])


def fitted_curve_draws(ages: np.ndarray,
                       draws: Dict[str, np.ndarray]) -> np.ndarray:
    """Evaluate m(age) for every draw: returns [n_draws, n_ages]."""
    flat = {name: values.reshape(-1, 1) for name, values in draws.items()
            if name in PARAMETER_NAMES}
    params = RogersCastroParams.from_values(flat)
    with np.errstate(over='ignore', invalid='ignore'):
        return rogers_castro_curve(np.asarray(ages, dtype=np.float64), params)


def summarize_fit(ages: np.ndarray,
                  observed: np.ndarray,
                  draws: Dict[str, np.ndarray],
                  credible_interval: float = 0.95) -> pd.DataFrame:
    lo, hi = _quantile_bounds(credible_interval)
    curves = fitted_curve_draws(ages, draws)
    lower, median, upper = np.quantile(curves, [lo, 0.5, hi], axis=0)
    return pd.DataFrame({
        'age': ages,
        'data': observed,
        'median': median,
        'lower': lower,
        'upper': upper,
        'diff_sq': (observed - median) ** 2,
    })


def convergence_table(idata: az.InferenceData,
                      var_names: List[str]) -> pd.DataFrame:
    """Mean, MCSE of the mean, bulk ESS and rank-normalized R-hat."""
    rhat = az.rhat(idata, var_names=var_names)
    ess = az.ess(idata, var_names=var_names)
    mcse = az.mcse(idata, var_names=var_names)
    rows = []
    for name in var_names:
        rows.append({
            'variable': name,
            'mean': float(idata.posterior[name].mean()),
            'se_mean': float(mcse[name]),
            'n_eff': float(ess[name]),
            'Rhat': float(rhat[name]),
        })
    return pd.DataFrame(rows, columns=['variable', 'mean', 'se_mean', 'n_eff', 'Rhat'])


def check_convergence(check_converge: pd.DataFrame,
                      config: SamplerConfig) -> Dict[str, float]:
    """Flag high R-hat and low ESS. Warns, never raises."""
    max_rhat = float(check_converge['Rhat'].max(skipna=False))
    min_ess = float(check_converge['n_eff'].min(skipna=False))
    ess_floor = config.min_ess * config.chains

    # NaN diagnostics (too few draws) count as failures
    rhat = check_converge['Rhat']
    n_eff = check_converge['n_eff']
    high = check_converge.loc[rhat.isna() | (rhat > config.rhat_threshold), 'variable']
    low = check_converge.loc[n_eff.isna() | (n_eff < ess_floor), 'variable']

    if len(high):
        warnings.warn(
            f"R-hat above {config.rhat_threshold} or undefined for {list(high)} "
            f"(max {max_rhat:.3f}); chains have not mixed. "
            f"Try more iterations or a higher adapt_delta.",
            ConvergenceWarning,
        )
    if len(low):
        warnings.warn(
            f"Effective sample size below {ess_floor:.0f} or undefined for {list(low)} "
            f"(min {min_ess:.0f}). Posterior summaries may be unreliable.",
            ConvergenceWarning,
        )

    return {
        'max_rhat': max_rhat,
        'min_ess': min_ess,
        'rhat_warning': bool(len(high)),
        'ess_warning': bool(len(low)),
    }


def summarize_posterior(idata: az.InferenceData,
                        var_names: List[str],
                        ages: np.ndarray,
                        observed: np.ndarray,
                        likelihood: str,
                        model_spec: ModelSpec,
                        config: Optional[SamplerConfig] = None,
                        sampler_diagnostics: Optional[Dict[str, int]] = None) -> PosteriorResult:
    """Build a PosteriorResult from raw draws.

    Args:
        idata: Engine output with a ``posterior`` group
        var_names: Free variables to summarize (curve parameters, maybe sigma)
        ages: Observed ages
        observed: Observed rates at those ages
        likelihood: 'poisson' or 'normal'
        model_spec: Families that were estimated
        config: Sampler configuration (thresholds, interval width)
        sampler_diagnostics: Divergence / tree-depth counts from the driver

    Returns:
        PosteriorResult with no reference to ``idata``
    """
    config = config or SamplerConfig()
    draws = extract_draws(idata, var_names)

    check_converge = convergence_table(idata, var_names)
    diagnostics = dict(sampler_diagnostics or {})
    diagnostics.update(check_convergence(check_converge, config))

    return PosteriorResult(
        draws=draws,
        pars_df=summarize_parameters(draws, config.credible_interval),
        fit_df=summarize_fit(np.asarray(ages, dtype=np.float64),
                             np.asarray(observed, dtype=np.float64),
                             draws, config.credible_interval),
        check_converge=check_converge,
        likelihood=likelihood,
        model_spec=model_spec,
        diagnostics=diagnostics,
    )
