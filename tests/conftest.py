"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides fixtures
available to all test modules.
"""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def one_d_groups():
    """Six 1-D observations forming two obvious groups."""
    return np.array([[1.0], [2.0], [3.0], [100.0], [101.0], [102.0]])


@pytest.fixture
def three_blobs():
    """Three tight, well-separated 2-D blobs of 10 points each."""
    rng = np.random.default_rng(7)
    centers = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0]])
    X = np.vstack([c + rng.standard_normal((10, 2)) * 0.2 for c in centers])
    truth = np.repeat(np.arange(3), 10)
    return X, truth


@pytest.fixture
def random_data():
    rng = np.random.default_rng(42)
    return rng.standard_normal((40, 3))


@pytest.fixture
def country_frame():
    """Small country table in the layout of the country statistics CSV."""
    return pd.DataFrame(
        {
            "country": ["Aland", "Borduria", "Carpania", "Dorne", "Elbonia", "Freedonia"],
            "child_mort": [90.2, 16.6, 27.3, 119.0, 10.3, 4.5],
            "income": [1610, 9930, 12900, 5900, 19100, 41400],
            "life_expec": [56.2, 76.3, 76.5, 60.1, 76.8, 81.4],
            "health": [7.58, 6.55, 4.17, 2.85, 6.03, 11.0],
        }
    )
