"""Shared fixtures: the Holzinger-Swineford sample and synthetic factor data."""

import numpy as np
import pandas as pd
import pytest

from ega_core import correlation, data


def simulate_factor_data(n_obs, n_factors, items_per_factor, loading=0.7, seed=0):
    """Simple-structure data: each item loads on exactly one orthogonal factor."""
    rng = np.random.default_rng(seed)
    factors = rng.standard_normal((n_obs, n_factors))
    columns = {}
    for f in range(n_factors):
        for i in range(items_per_factor):
            noise = rng.standard_normal(n_obs) * np.sqrt(1 - loading ** 2)
            columns[f'f{f + 1}_i{i + 1}'] = loading * factors[:, f] + noise
    return pd.DataFrame(columns)


@pytest.fixture(scope='session')
def hs_data():
    return data.load_holzinger_swineford()


@pytest.fixture(scope='session')
def hs_corr(hs_data):
    return correlation.correlation_matrix(hs_data)


@pytest.fixture(scope='session')
def three_block_data():
    return simulate_factor_data(n_obs=600, n_factors=3, items_per_factor=4, seed=7)


@pytest.fixture(scope='session')
def one_block_data():
    return simulate_factor_data(n_obs=600, n_factors=1, items_per_factor=6, seed=11)
