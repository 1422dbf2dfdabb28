"""Finite-difference check of the hand-derived backward pass."""

import numpy as np
import pytest

from simplenn.gradcheck import gradient_check
from simplenn.matrix import Matrix
from simplenn.model import MLP


@pytest.fixture
def batch():
    rng = np.random.default_rng(7)
    x = Matrix.from_numpy(rng.uniform(0, 1, (3, 6)), np.float64)
    y = Matrix.from_numpy(np.array([[0, 1, 1, 0, 1, 0]]), np.float64)
    return x, y


@pytest.fixture
def model():
    return MLP(3, 5, 4, 6, init_range=0.5, seed=3, dtype=np.float64)


def test_every_parameter_agrees(model, batch):
    x, y = batch
    result = gradient_check(model, x, y)

    ## W1 + b1, W2 + b2, W3 + b3
    assert len(result["records"]) == (5 * 3 + 5) + (4 * 5 + 4) + (1 * 4 + 1)
    assert {r["param"] for r in result["records"]} == {"W1", "b1", "W2", "b2", "W3", "b3"}
    assert result["max_rel_error"] < 1e-2


def test_narrow_batch(model, batch):
    x, y = batch
    x = Matrix.from_numpy(x.to_numpy()[:, :4], np.float64)
    y = Matrix.from_numpy(y.to_numpy()[:, :4], np.float64)
    assert gradient_check(model, x, y)["max_rel_error"] < 1e-2


def test_parameters_restored_and_gradients_cleared(model, batch):
    x, y = batch
    before = model.get_params()
    gradient_check(model, x, y)
    after = model.get_params()
    for key in before:
        np.testing.assert_array_equal(before[key], after[key])
    for layer in model.dense_layers:
        assert np.all(layer.W["grad"].data == 0)


def test_detects_a_wrong_gradient(model, batch):
    x, y = batch
    backward = model.fc2.backward

    def doubled(d_out, d_x=None):
        result = backward(d_out, d_x)
        model.fc2.W["grad"].scale(2.0)
        return result

    model.fc2.backward = doubled
    result = gradient_check(model, x, y)
    bad = [r for r in result["records"] if r["param"] == "W2" and r["analytic"] != 0]
    assert bad
    assert result["max_rel_error"] > 0.1
