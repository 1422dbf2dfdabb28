"""
Pytest configuration and fixtures for simplenn tests
"""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from simplenn.matrix import Matrix


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks long-running training tests (deselect with '-m \"not slow\"')"
    )


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def random_matrix(rng):
    """Factory for matrices with standard-normal entries."""

    def make(rows, cols, dtype=np.float32):
        return Matrix.from_numpy(rng.standard_normal((rows, cols)), dtype)

    return make


@pytest.fixture
def xor_batch():
    """The four XOR points as one (2 x 4) feature batch and (1 x 4) labels."""
    x = Matrix.from_numpy(np.array([[0, 0, 1, 1], [0, 1, 0, 1]]))
    y = Matrix.from_numpy(np.array([[0, 1, 1, 0]]))
    return x, y
