"""Shared fixtures for ridge estimator tests."""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def linear_data() -> pd.DataFrame:
    """Well-conditioned data with a known linear signal and small noise."""
    np.random.seed(42)
    n_samples = 100
    X = np.random.randn(n_samples, 3) * np.array([1.0, 10.0, 0.1])
    y = 1.5 + X @ np.array([2.0, -0.3, 5.0]) + np.random.randn(n_samples) * 0.1
    return pd.DataFrame({"x1": X[:, 0], "x2": X[:, 1], "x3": X[:, 2], "y": y})


@pytest.fixture
def doubling_data() -> dict:
    """y = 2x on four points."""
    return {"x": [1.0, 2.0, 3.0, 4.0], "y": [2.0, 4.0, 6.0, 8.0]}


@pytest.fixture
def flights_like() -> pd.DataFrame:
    """Small delay table with a categorical carrier column."""
    return pd.DataFrame(
        {
            "carrier": ["AA", "DL", "UA", "AA", "DL", "UA", "AA", "DL"],
            "distance": [500.0, 1200.0, 800.0, 300.0, 2000.0, 950.0, 1500.0, 700.0],
            "wind_speed": [5.0, 12.0, 3.0, 8.0, 15.0, 7.0, 10.0, 4.0],
            "dep_delay": [3.0, 20.0, 1.0, 6.0, 35.0, 9.0, 18.0, 2.0],
        }
    )
