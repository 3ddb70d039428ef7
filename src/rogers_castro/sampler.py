"""
Rogers-Castro Bayes — Sampler Driver
====================================
Thin adapter between a built Rogers-Castro model and an MCMC engine.

The engine sits behind ``SamplerBackend.sample(model, config)``, which
returns an ``arviz.InferenceData``. ``PyMCSampler`` runs PyMC's NUTS;
tests plug in a backend that returns synthetic draws.

Chains are independent and may run in parallel (``cores``); the caller
blocks until all of them finish. Cancellation is whatever the engine
offers (PyMC stops on KeyboardInterrupt).
"""

import numbers
import warnings
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, Optional

import arviz as az
import pymc as pm

from .exceptions import ConfigurationError, ConvergenceWarning, EngineFailure

if TYPE_CHECKING:
    from .bayesian import RogersCastroModel


# ═══════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════

@dataclass
class SamplerConfig:
    """Configuration for MCMC sampling and convergence checks."""
    chains: int = 4                  # Independent Markov chains
    iterations: int = 2000           # Per chain, first half is tuning
    adapt_delta: float = 0.8         # NUTS target acceptance rate
    max_tree_depth: int = 10         # NUTS max tree depth

    # Computational
    cores: Optional[int] = None      # Parallel chains (None = engine default)
    random_seed: Optional[int] = None
    progressbar: bool = False

    # Diagnostics
    rhat_threshold: float = 1.1      # Warn above this R-hat
    min_ess: float = 100.0           # Per chain; warn below min_ess * chains
    credible_interval: float = 0.95  # Width of pars_df / fit_df bands

    # Forwarded untouched to the engine
    engine_kwargs: Dict = field(default_factory=dict)

    @property
    def n_tune(self) -> int:
        return self.iterations // 2

    @property
    def n_draws(self) -> int:
        return self.iterations - self.n_tune

    def validate(self) -> 'SamplerConfig':
        for name in ('chains', 'iterations', 'max_tree_depth'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        if self.iterations < 2:
            raise ConfigurationError("iterations must be at least 2 (tuning + sampling)")
        if not 0.0 < self.adapt_delta < 1.0:
            raise ConfigurationError(f"adapt_delta must be in (0, 1), got {self.adapt_delta}")
        if not 0.0 < self.credible_interval < 1.0:
            raise ConfigurationError(
                f"credible_interval must be in (0, 1), got {self.credible_interval}"
            )
        if self.cores is not None and self.cores < 1:
            raise ConfigurationError(f"cores must be positive, got {self.cores}")
        return self


# ═══════════════════════════════════════════════════════════════
# Engine interface
# ═══════════════════════════════════════════════════════════════

class SamplerBackend:
    """Narrow MCMC engine interface: sample a built model, return draws."""

    name = 'base'

    def sample(self, model: 'RogersCastroModel',
               config: SamplerConfig) -> az.InferenceData:
        raise NotImplementedError


class PyMCSampler(SamplerBackend):
    """PyMC NUTS backend."""

    name = 'pymc'

    def sample(self, model: 'RogersCastroModel',
               config: SamplerConfig) -> az.InferenceData:
        print(f"[Sampler] Starting MCMC sampling...")
        print(f"  Chains: {config.chains}")
        print(f"  Draws per chain: {config.n_draws}")
        print(f"  Tuning steps: {config.n_tune}")

        engine_kwargs = dict(config.engine_kwargs)
        # NUTS settings go through pm.sample so chains keep jittered inits
        nuts = {'target_accept': config.adapt_delta,
                'max_treedepth': config.max_tree_depth}
        nuts.update(engine_kwargs.pop('nuts', None) or {})

        try:
            with model.pymc_model:
                return pm.sample(
                    draws=config.n_draws,
                    tune=config.n_tune,
                    chains=config.chains,
                    cores=config.cores,
                    nuts=nuts,
                    random_seed=config.random_seed,
                    progressbar=config.progressbar,
                    return_inferencedata=True,
                    **engine_kwargs
                )
        except Exception as e:
            raise EngineFailure(f"PyMC sampling failed: {e}") from e


# ═══════════════════════════════════════════════════════════════
# Engine-level diagnostics
# ═══════════════════════════════════════════════════════════════

def _count_stat(idata: az.InferenceData, stat: str) -> int:
    sample_stats = getattr(idata, 'sample_stats', None)
    if sample_stats is None or stat not in sample_stats:
        return 0
    return int(sample_stats[stat].values.sum())


def check_sampler_diagnostics(idata: az.InferenceData,
                              config: SamplerConfig) -> Dict[str, int]:
    """Count divergent transitions and tree-depth saturation.

    Each non-zero count raises a ConvergenceWarning; nothing is fatal.
    """
    divergences = _count_stat(idata, 'diverging')
    treedepth_hits = _count_stat(idata, 'reached_max_treedepth')
    total = config.chains * config.n_draws

    if divergences:
        warnings.warn(
            f"{divergences} of {total} transitions diverged after tuning. "
            f"Consider increasing adapt_delta above {config.adapt_delta}.",
            ConvergenceWarning,
        )
    if treedepth_hits:
        warnings.warn(
            f"{treedepth_hits} of {total} transitions hit max_tree_depth="
            f"{config.max_tree_depth}. Consider increasing max_tree_depth.",
            ConvergenceWarning,
        )

    return {'divergences': divergences, 'treedepth_hits': treedepth_hits}
