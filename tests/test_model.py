"""Tests for the MLP orchestrator and the training driver."""

import numpy as np
import pytest

from simplenn.dataloader import Dataset
from simplenn.errors import DatasetIntegrityError, ShapeMismatchError
from simplenn.matrix import Matrix
from simplenn.model import MLP
from simplenn.utils import evaluate, initialize_network, train_epochs, train_step


@pytest.fixture
def model():
    return initialize_network(2, 4, 4, 4, init_range=0.5, seed=0)


def test_topology(model):
    assert str(model) == "Dense(2, 4) -> ReLU -> Dense(4, 4) -> ReLU -> Dense(4, 1) -> Sigmoid"
    assert [layer.W["val"].shape for layer in model.dense_layers] == [(4, 2), (4, 4), (1, 4)]
    assert all(m.max_cols == 4 for m in model.outputs + model.grads)


def test_train_step_updates_and_zeroes_gradients(model, xor_batch):
    x, y = xor_batch
    before = model.get_params()
    loss = train_step(model, x, y, 0.1)

    assert isinstance(loss, float)
    assert np.isfinite(loss) and loss > 0
    after = model.get_params()
    assert any(not np.array_equal(before[k], after[k]) for k in before)
    for layer in model.dense_layers:
        assert np.all(layer.W["grad"].data == 0)
        assert np.all(layer.b["grad"].data == 0)


def test_step_is_sgd(model, xor_batch):
    x, y = xor_batch
    model.compute_gradients(x, y)
    W = model.fc2.W["val"].to_numpy()
    dW = model.fc2.W["grad"].to_numpy()
    model.step(0.5)
    np.testing.assert_allclose(model.fc2.W["val"].to_numpy(), W - 0.5 * dW, rtol=1e-6, atol=1e-7)


def test_same_seed_is_reproducible(xor_batch):
    x, y = xor_batch
    a = MLP(2, 4, 4, 4, init_range=0.5, seed=11)
    b = MLP(2, 4, 4, 4, init_range=0.5, seed=11)
    losses_a = [a.train_step(x, y, 0.3) for _ in range(20)]
    losses_b = [b.train_step(x, y, 0.3) for _ in range(20)]
    assert losses_a == losses_b


def test_narrower_batches_reuse_buffers(model, xor_batch):
    x, y = xor_batch
    storage = [m._storage for m in model.outputs]

    narrow_x = Matrix.from_numpy(x.to_numpy()[:, :3])
    narrow_y = Matrix.from_numpy(y.to_numpy()[:, :3])
    model.train_step(narrow_x, narrow_y, 0.1)
    assert model.outputs[-1].shape == (1, 3)

    model.train_step(x, y, 0.1)
    assert model.outputs[-1].shape == (1, 4)
    assert all(m._storage is s for m, s in zip(model.outputs, storage))


def test_batch_wider_than_max_is_rejected(model):
    x = Matrix.allocate(2, 5)
    y = Matrix.allocate(1, 5)
    with pytest.raises(ShapeMismatchError):
        model.train_step(x, y, 0.1)


def test_mismatched_batch_is_rejected(model):
    with pytest.raises(DatasetIntegrityError):
        model.train_step(Matrix.allocate(2, 4), Matrix.allocate(1, 3), 0.1)


def test_wrong_feature_count_is_rejected(model):
    with pytest.raises(ShapeMismatchError):
        model.train_step(Matrix.allocate(3, 4), Matrix.allocate(1, 4), 0.1)
    with pytest.raises(ShapeMismatchError):
        model.train_step(Matrix.allocate(2, 4), Matrix.allocate(2, 4), 0.1)


def test_predict_does_not_touch_caches(model, xor_batch):
    x, y = xor_batch
    model.compute_gradients(x, y)
    cached = model.fc1.cache["x"].to_numpy()

    pred = model.predict(Matrix.from_numpy(np.array([[0.5], [0.5]])))
    assert pred.shape == (1, 1)
    assert 0 < pred[0, 0] < 1
    assert model.fc1.cached_width == 4
    np.testing.assert_array_equal(model.fc1.cache["x"].to_numpy(), cached)


def test_evaluate_loss_matches_training_loss(model, xor_batch):
    x, y = xor_batch
    assert model.evaluate_loss(x, y) == model.compute_gradients(x, y)


def test_weights_pickle_round_trip(model, xor_batch, tmp_path):
    x, y = xor_batch
    model.train_step(x, y, 0.1)
    path = str(tmp_path / "weights.pkl")
    model.save_model_weights_pickle(path)

    other = MLP(2, 4, 4, 4, init_range=0.5, seed=99)
    other.load_model_weights_pickle(path)
    np.testing.assert_array_equal(other.predict(x).to_numpy(), model.predict(x).to_numpy())


def test_load_rejects_other_architecture(model, tmp_path):
    path = str(tmp_path / "weights.pkl")
    MLP(2, 8, 4, 4).save_model_weights_pickle(path)
    with pytest.raises(ShapeMismatchError):
        model.load_model_weights_pickle(path)


def test_train_epochs_runs_batches_in_order(xor_batch):
    x = xor_batch[0].to_numpy().T
    y = xor_batch[1].to_numpy().reshape(-1)
    dataset = Dataset.from_arrays(x, y, batch_size=2)

    a = MLP(2, 4, 4, 4, init_range=0.5, seed=5)
    seen = []
    losses = train_epochs(a, dataset, 3, 0.2, on_epoch_end=lambda epoch, loss: seen.append((epoch, loss)))

    b = MLP(2, 4, 4, 4, init_range=0.5, seed=5)
    expected = []
    for _ in range(3):
        batch_losses = [b.train_step(bx, by, 0.2) for bx, by in dataset]
        expected.append(sum(batch_losses) / len(batch_losses))

    assert losses == expected
    assert seen == list(enumerate(expected))


def test_train_epochs_with_progress_bar(model, xor_batch):
    losses = train_epochs(model, [xor_batch], 2, 0.1, progress=True)
    assert len(losses) == 2


def test_train_epochs_rejects_empty_dataset(model):
    with pytest.raises(DatasetIntegrityError):
        train_epochs(model, [], 1, 0.1)


def test_evaluate(model, xor_batch):
    metrics = evaluate(model, [xor_batch])
    assert set(metrics) == {"loss", "accuracy", "f1"}
    assert metrics["loss"] == pytest.approx(model.evaluate_loss(*xor_batch))
    assert 0 <= metrics["accuracy"] <= 100


@pytest.mark.slow
def test_xor_converges(xor_batch):
    x, y = xor_batch
    ## a handful of fixed seeds; the first that reaches the threshold passes
    for seed in range(5):
        model = MLP(2, 4, 4, 4, init_range=1.0, seed=seed)
        for epoch in range(5000):
            loss = model.train_step(x, y, 0.5)
            if loss < 0.3:
                break
        if loss < 0.3:
            break
    assert loss < 0.3, "no seed reached mean loss < 0.3 within 5000 epochs"
