"""
Pytest configuration and fixtures for reproducible testing.

This file provides centralized test configuration including:
- Random seed management for reproducibility
- The ``slow`` marker for real MCMC runs
- A stub sampler fixture returning synthetic draws
"""
import pytest
import numpy as np

from tests.helpers import LITERAL_PARAMETERS, StubSampler


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: runs the real MCMC engine")


@pytest.fixture(scope="session", autouse=True)
def set_random_seeds():
    """Set random seeds at the start of test session for reproducibility."""
    np.random.seed(42)
    yield


@pytest.fixture
def stub_sampler():
    return StubSampler(centers=LITERAL_PARAMETERS)
