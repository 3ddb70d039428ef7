"""
Age schedule data loading utilities for Rogers-Castro Bayes.

Observed data comes in one of two forms:
- Counts: migrants and population at risk per age (Poisson likelihood)
- Rates: observed migration rates per age (Normal likelihood)

Example CSV format for count data:
    age,migrants,pop
    0,214,10520
    1,198,10233
    ...

Example CSV format for rate data:
    age,mx
    0,0.0203
    1,0.0193
    ...
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .curve import calculate_curve
from .exceptions import ConfigurationError


@dataclass(frozen=True)
class CountsData:
    """Migrant counts with population at risk."""
    likelihood = 'poisson'

    migrants: np.ndarray
    pop: np.ndarray

    def __post_init__(self):
        migrants = np.asarray(self.migrants, dtype=np.float64)
        pop = np.asarray(self.pop, dtype=np.float64)

        if migrants.ndim != 1 or pop.ndim != 1:
            raise ConfigurationError("migrants and pop must be 1D sequences")
        if len(migrants) != len(pop):
            raise ConfigurationError(
                f"migrants and pop length mismatch: {len(migrants)} vs {len(pop)}"
            )
        if not np.all(np.isfinite(migrants)) or np.any(migrants < 0):
            raise ConfigurationError("migrants must be finite and non-negative")
        if np.any(migrants != np.round(migrants)):
            raise ConfigurationError("migrants must be whole counts")
        if not np.all(np.isfinite(pop)) or np.any(pop <= 0):
            raise ConfigurationError("pop must be finite and strictly positive")

        object.__setattr__(self, 'migrants', migrants.astype(np.int64))
        object.__setattr__(self, 'pop', pop)

    def __len__(self) -> int:
        return len(self.migrants)

    @property
    def observed_rates(self) -> np.ndarray:
        return self.migrants / self.pop


@dataclass(frozen=True)
class RatesData:
    """Observed migration rates with an optional fixed observation sd."""
    likelihood = 'normal'

    mx: np.ndarray
    sigma: Optional[float] = None

    def __post_init__(self):
        mx = np.asarray(self.mx, dtype=np.float64)
        if mx.ndim != 1:
            raise ConfigurationError("mx must be a 1D sequence")
        if not np.all(np.isfinite(mx)):
            raise ConfigurationError("mx must contain only finite values")
        if self.sigma is not None:
            if not np.isfinite(self.sigma) or self.sigma <= 0:
                raise ConfigurationError(f"sigma must be positive, got {self.sigma}")
            object.__setattr__(self, 'sigma', float(self.sigma))
        object.__setattr__(self, 'mx', mx)

    def __len__(self) -> int:
        return len(self.mx)

    @property
    def observed_rates(self) -> np.ndarray:
        return self.mx


ObservedData = Union[CountsData, RatesData]


@dataclass(frozen=True)
class AgeSchedule:
    """Ages paired with observed data at each age."""
    ages: np.ndarray
    data: ObservedData = field(repr=False)

    def __post_init__(self):
        ages = np.asarray(self.ages, dtype=np.float64)
        if ages.ndim != 1 or len(ages) == 0:
            raise ConfigurationError("ages must be a non-empty 1D sequence")
        if not np.all(np.isfinite(ages)):
            raise ConfigurationError("ages must be finite")
        if len(ages) != len(self.data):
            raise ConfigurationError(
                f"ages and observed data length mismatch: {len(ages)} vs {len(self.data)}"
            )
        object.__setattr__(self, 'ages', ages)

    def __len__(self) -> int:
        return len(self.ages)


def make_observed_data(migrants: Optional[Sequence[int]] = None,
                       pop: Optional[Sequence[float]] = None,
                       mx: Optional[Sequence[float]] = None,
                       sigma: Optional[float] = None) -> ObservedData:
    """Pick the data modality from the supplied arguments.

    Exactly one of (migrants + pop) or mx must be given.
    """
    has_counts = migrants is not None or pop is not None
    has_rates = mx is not None

    if has_counts and has_rates:
        raise ConfigurationError("Supply either migrants and pop, or mx, not both")
    if not has_counts and not has_rates:
        raise ConfigurationError("Supply either migrants and pop, or mx")
    if has_counts:
        if migrants is None or pop is None:
            raise ConfigurationError("Count data needs both migrants and pop")
        if sigma is not None:
            raise ConfigurationError("sigma only applies to rate data (mx)")
        return CountsData(migrants, pop)
    return RatesData(mx, sigma)


def load_age_schedule(filepath: Union[str, Path],
                      age_col: str = 'age',
                      migrants_col: str = 'migrants',
                      pop_col: str = 'pop',
                      mx_col: str = 'mx',
                      delimiter: str = ',',
                      sigma: Optional[float] = None) -> AgeSchedule:
    """Load an age schedule from CSV.

    Count columns take precedence when present; otherwise the rate column
    is used.

    Args:
        filepath: CSV path
        age_col: Name of the age column
        migrants_col: Name of the migrant count column
        pop_col: Name of the population-at-risk column
        mx_col: Name of the rate column
        delimiter: Column delimiter
        sigma: Fixed observation sd for rate data

    Returns:
        AgeSchedule in file order
    """
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"Age schedule file not found: {filepath}")

    _engine = 'python' if len(delimiter) > 1 else 'c'
    df = pd.read_csv(filepath, sep=delimiter, engine=_engine)
    if age_col not in df.columns:
        raise ValueError(f"Age column '{age_col}' not found in {filepath.name}")

    if migrants_col in df.columns and pop_col in df.columns:
        data = CountsData(df[migrants_col].values, df[pop_col].values)
    elif mx_col in df.columns:
        data = RatesData(df[mx_col].values, sigma)
    else:
        raise ValueError(
            f"{filepath.name} needs '{migrants_col}' and '{pop_col}' columns, "
            f"or a '{mx_col}' column"
        )

    schedule = AgeSchedule(df[age_col].values, data)
    print(f"[OK] Loaded age schedule: {len(schedule)} ages "
          f"({schedule.ages.min():g} - {schedule.ages.max():g}), {data.likelihood} data")
    return schedule


def simulate_age_schedule(parameters: Mapping[str, float],
                          ages: Optional[Sequence[float]] = None,
                          pop: Union[float, Sequence[float]] = 10000.0,
                          seed: Optional[int] = None) -> AgeSchedule:
    """Draw synthetic Poisson counts from a known Rogers-Castro schedule.

    Args:
        parameters: True parameter mapping
        ages: Ages to simulate (default 0..80)
        pop: Population at risk, scalar or per age
        seed: Random seed

    Returns:
        AgeSchedule with CountsData
    """
    if ages is None:
        ages = np.arange(0, 81)
    ages = np.asarray(ages, dtype=np.float64)
    pop = np.broadcast_to(np.asarray(pop, dtype=np.float64), ages.shape).copy()

    rates = calculate_curve(ages, parameters)
    rng = np.random.default_rng(seed)
    migrants = rng.poisson(pop * rates)
    return AgeSchedule(ages, CountsData(migrants, pop))
