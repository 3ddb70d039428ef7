"""
Unit tests for observed age schedule data
"""

import pytest
import numpy as np
import pandas as pd

from rogers_castro.curve import calculate_curve
from rogers_castro.exceptions import ConfigurationError
from rogers_castro.schedule_data import (
    AgeSchedule, CountsData, RatesData, load_age_schedule, make_observed_data,
    simulate_age_schedule,
)
from tests.helpers import LITERAL_PARAMETERS


class TestCountsData:
    """Migrant counts with population at risk."""

    def test_valid_counts(self):
        data = CountsData([10, 20, 0], [1000, 2000, 500])
        assert data.likelihood == 'poisson'
        assert data.migrants.dtype == np.int64
        np.testing.assert_allclose(data.observed_rates, [0.01, 0.01, 0.0])

    def test_zero_population_rejected(self):
        with pytest.raises(ConfigurationError, match="pop"):
            CountsData([1, 2], [100, 0])

    def test_negative_counts_rejected(self):
        with pytest.raises(ConfigurationError):
            CountsData([-1, 2], [100, 100])

    def test_fractional_counts_rejected(self):
        with pytest.raises(ConfigurationError, match="whole"):
            CountsData([1.5, 2], [100, 100])

    def test_length_mismatch(self):
        with pytest.raises(ConfigurationError, match="mismatch"):
            CountsData([1, 2, 3], [100, 100])


class TestRatesData:
    """Observed rates with optional fixed sigma."""

    def test_valid_rates(self):
        data = RatesData([0.01, 0.02])
        assert data.likelihood == 'normal'
        assert data.sigma is None

    def test_fixed_sigma(self):
        assert RatesData([0.01], sigma=0.001).sigma == 0.001

    @pytest.mark.parametrize("sigma", [0.0, -1.0, float('nan')])
    def test_bad_sigma(self, sigma):
        with pytest.raises(ConfigurationError):
            RatesData([0.01], sigma=sigma)

    def test_non_finite_rates(self):
        with pytest.raises(ConfigurationError):
            RatesData([0.01, np.inf])


class TestModalitySelection:
    """Exactly one of counts or rates."""

    def test_both_rejected(self):
        with pytest.raises(ConfigurationError, match="not both"):
            make_observed_data(migrants=[1], pop=[10], mx=[0.1])

    def test_neither_rejected(self):
        with pytest.raises(ConfigurationError):
            make_observed_data()

    def test_counts_need_pop(self):
        with pytest.raises(ConfigurationError, match="both migrants and pop"):
            make_observed_data(migrants=[1, 2])

    def test_sigma_with_counts_rejected(self):
        with pytest.raises(ConfigurationError, match="sigma"):
            make_observed_data(migrants=[1], pop=[10], sigma=0.1)

    def test_counts_selected(self):
        assert isinstance(make_observed_data(migrants=[1], pop=[10]), CountsData)

    def test_rates_selected(self):
        assert isinstance(make_observed_data(mx=[0.1], sigma=0.01), RatesData)


class TestAgeSchedule:
    """Ages paired with observed data."""

    def test_length_mismatch(self):
        with pytest.raises(ConfigurationError, match="length mismatch"):
            AgeSchedule([0, 1, 2], RatesData([0.1, 0.2]))

    def test_empty_ages(self):
        with pytest.raises(ConfigurationError):
            AgeSchedule([], RatesData([]))

    def test_non_monotonic_ages_allowed(self):
        schedule = AgeSchedule([3, 1, 2], RatesData([0.1, 0.2, 0.3]))
        assert len(schedule) == 3


class TestLoading:
    """CSV loading."""

    def test_load_counts(self, tmp_path, capsys):
        path = tmp_path / 'schedule.csv'
        pd.DataFrame({'age': [0, 1, 2], 'migrants': [10, 12, 9],
                      'pop': [1000, 1100, 900]}).to_csv(path, index=False)

        schedule = load_age_schedule(path)

        assert isinstance(schedule.data, CountsData)
        np.testing.assert_array_equal(schedule.ages, [0, 1, 2])
        assert "Loaded age schedule: 3 ages" in capsys.readouterr().out

    def test_load_rates_custom_columns(self, tmp_path):
        path = tmp_path / 'rates.tsv'
        pd.DataFrame({'x': [20, 25], 'rate': [0.05, 0.07]}).to_csv(path, sep='\t', index=False)

        schedule = load_age_schedule(path, age_col='x', mx_col='rate',
                                     delimiter='\t', sigma=0.01)

        assert isinstance(schedule.data, RatesData)
        assert schedule.data.sigma == 0.01

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_age_schedule(tmp_path / 'nope.csv')

    def test_missing_data_columns(self, tmp_path):
        path = tmp_path / 'bad.csv'
        pd.DataFrame({'age': [0, 1], 'other': [1, 2]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="needs"):
            load_age_schedule(path)


class TestSimulation:
    """Synthetic schedules from known parameters."""

    def test_simulated_counts_track_curve(self):
        ages = np.arange(0, 81)
        schedule = simulate_age_schedule(LITERAL_PARAMETERS, ages=ages[:40],
                                         pop=1e7, seed=3)
        expected = calculate_curve(ages[:40], LITERAL_PARAMETERS)

        np.testing.assert_allclose(schedule.data.observed_rates, expected, rtol=0.05)

    def test_seed_reproducible(self):
        s1 = simulate_age_schedule({'c': 0.02}, seed=7)
        s2 = simulate_age_schedule({'c': 0.02}, seed=7)
        np.testing.assert_array_equal(s1.data.migrants, s2.data.migrants)
        assert len(s1) == 81
