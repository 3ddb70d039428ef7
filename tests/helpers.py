"""Shared test helpers: reference parameters and a stub sampler backend."""
import numpy as np
import arviz as az

from rogers_castro.sampler import SamplerBackend


LITERAL_PARAMETERS = {
    'a1': 0.09, 'alpha1': 0.1,
    'a2': 0.2, 'alpha2': 0.1, 'mu2': 21.0, 'lambda2': 0.4,
    'a3': 0.02, 'alpha3': 0.25, 'mu3': 67.0, 'lambda3': 0.6,
    'a4': 0.01, 'lambda4': 0.01,
    'c': 0.01,
}


class StubSampler(SamplerBackend):
    """Returns Normal draws centred on fixed values for every model variable.

    Args:
        centers: Mean draw per variable (missing ones default to 0.05)
        scale: Draw sd, relative to the centre
        chain_offsets: Optional per-chain shift, to fake non-mixing chains
        diverging: Number of divergent transitions to report
        treedepth: Number of transitions to report at max tree depth
        error: Exception to raise instead of sampling
    """

    name = 'stub'

    def __init__(self, centers=None, scale=0.01, chain_offsets=None,
                 diverging=0, treedepth=0, error=None, seed=0):
        self.centers = centers or {}
        self.scale = scale
        self.chain_offsets = chain_offsets
        self.diverging = diverging
        self.treedepth = treedepth
        self.error = error
        self.seed = seed
        self.calls = []

    def sample(self, model, config):
        self.calls.append((model, config))
        if self.error is not None:
            raise self.error

        rng = np.random.default_rng(self.seed)
        shape = (config.chains, config.n_draws)
        posterior = {}
        for name in model.var_names:
            center = self.centers.get(name, 0.05)
            draws = center + abs(center) * self.scale * rng.standard_normal(shape)
            if self.chain_offsets is not None:
                draws = draws + np.asarray(self.chain_offsets)[:, None] * abs(center)
            posterior[name] = np.abs(draws)

        diverging = np.zeros(shape, dtype=bool)
        diverging.flat[:self.diverging] = True
        saturated = np.zeros(shape, dtype=bool)
        saturated.flat[:self.treedepth] = True
        return az.from_dict(posterior=posterior,
                            sample_stats={'diverging': diverging,
                                          'reached_max_treedepth': saturated})
