import logging

import numpy as np
from sklearn.metrics import f1_score
from tqdm import tqdm

from simplenn.errors import DatasetIntegrityError
from simplenn.matrix import Matrix
from simplenn.model import MLP

logger = logging.getLogger(__name__)


def initialize_network(input_dim, hidden1, hidden2, max_batch, **kwargs):
    return MLP(input_dim, hidden1, hidden2, max_batch, **kwargs)


def train_step(network, x, y, lr):
    return network.train_step(x, y, lr)


def train_epochs(network, dataset, epochs, lr, on_epoch_end=None, progress=False):
    """
    Runs one train step per batch, in dataset order, for every epoch.
    dataset must be re-iterable (a list of pairs or a Dataset).
    on_epoch_end(epoch, mean_loss) is called after each epoch.
    returns the list of per-epoch mean losses
    """
    history = []
    for epoch in range(epochs):
        batches = dataset
        if progress:
            batches = tqdm(dataset, desc="epoch {}/{}".format(epoch + 1, epochs), leave=False)

        total = 0.0
        count = 0
        for x_batch, y_batch in batches:
            total += network.train_step(x_batch, y_batch, lr)
            count += 1
        if count == 0:
            raise DatasetIntegrityError("dataset yielded no batches in epoch {}".format(epoch + 1))

        mean_loss = total / count
        history.append(mean_loss)
        logger.info("epoch %d/%d: mean loss %.6f over %d batches", epoch + 1, epochs, mean_loss, count)
        if on_epoch_end is not None:
            on_epoch_end(epoch, mean_loss)
    return history


def _as_array(m):
    if isinstance(m, Matrix):
        m = m.to_numpy()
    return np.asarray(m).reshape(-1)


def accuracy(y_pred, y_true, threshold=0.5):
    """
    y_pred: predicted probabilities, any shape with N entries
    y_true: 0/1 labels, N entries
    """
    y_pred = _as_array(y_pred) >= threshold
    y_true = _as_array(y_true) >= 0.5
    return np.mean(y_pred == y_true) * 100


def macro_f1(y_pred, y_true, threshold=0.5):
    y_pred = (_as_array(y_pred) >= threshold).astype(int)
    y_true = (_as_array(y_true) >= 0.5).astype(int)
    f1 = f1_score(y_true, y_pred, average='macro', zero_division=0)
    return f1 * 100


def evaluate(network, dataset):
    """Inference-mode loss, accuracy and macro F1 over every batch."""
    preds = []
    labels = []
    loss_sum = 0.0
    for x_batch, y_batch in dataset:
        loss_sum += network.evaluate_loss(x_batch, y_batch) * x_batch.cols
        preds.append(network.predict(x_batch).to_numpy().reshape(-1))
        labels.append(y_batch.to_numpy().reshape(-1))
    if not preds:
        raise DatasetIntegrityError("cannot evaluate an empty dataset")

    y_pred = np.concatenate(preds)
    y_true = np.concatenate(labels)
    return {
        "loss": loss_sum / y_true.size,
        "accuracy": accuracy(y_pred, y_true),
        "f1": macro_f1(y_pred, y_true),
    }
