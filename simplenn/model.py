import logging
import pickle

import numpy as np

from simplenn.dense import Dense
from simplenn.errors import DatasetIntegrityError, ShapeMismatchError
from simplenn.loss import binary_cross_entropy, binary_cross_entropy_grad
from simplenn.matrix import Matrix
from simplenn.relu import ReLU
from simplenn.sigmoid import Sigmoid

logger = logging.getLogger(__name__)


class MLP():
    """
    Fixed chain: Dense -> ReLU -> Dense -> ReLU -> Dense -> Sigmoid, trained
    with binary cross-entropy and plain SGD.

    Every scratch buffer is allocated here, sized to max_batch columns, and
    narrowed per batch with set_width(); training never allocates.
    """

    def __init__(self, input_dim, hidden1, hidden2, max_batch, init_range=0.01, seed=None, dtype=np.float32):
        self.input_dim = input_dim
        self.max_batch = max_batch
        self.dtype = np.dtype(dtype)
        rng = np.random.default_rng(seed)

        self.fc1 = Dense(input_dim, hidden1, max_batch, init_range, rng, dtype)
        self.relu1 = ReLU(hidden1, max_batch, dtype)
        self.fc2 = Dense(hidden1, hidden2, max_batch, init_range, rng, dtype)
        self.relu2 = ReLU(hidden2, max_batch, dtype)
        self.fc3 = Dense(hidden2, 1, max_batch, init_range, rng, dtype)
        self.sigmoid = Sigmoid(1, max_batch, dtype)
        self.layers = [self.fc1, self.relu1, self.fc2, self.relu2, self.fc3, self.sigmoid]

        ## outputs[i] is the output of layers[i]: z1, a1, z2, a2, z3, a3
        self.outputs = [Matrix.allocate(layer.out_features, max_batch, dtype) for layer in self.layers]
        ## grads[i] is dL/d outputs[i], up to the logits z3
        self.grads = [Matrix.allocate(m.rows, max_batch, dtype) for m in self.outputs[:-1]]

        logger.debug("initialised %s with max batch %d", self, max_batch)

    def __str__(self):
        return " -> ".join(str(layer) for layer in self.layers)

    @property
    def dense_layers(self):
        return [layer for layer in self.layers if layer.trainable]

    def check_batch(self, x, y=None):
        if x.rows != self.input_dim:
            raise ShapeMismatchError("features have {} rows, network expects {}".format(x.rows, self.input_dim))
        if x.cols > self.max_batch:
            raise ShapeMismatchError("batch of {} exceeds max batch {}".format(x.cols, self.max_batch))
        if y is not None:
            if y.rows != 1:
                raise ShapeMismatchError("labels must be a single row, got {}".format(y.shape))
            if y.cols != x.cols:
                raise DatasetIntegrityError("{} feature columns but {} labels".format(x.cols, y.cols))

    def _set_width(self, width):
        for m in self.outputs + self.grads:
            m.set_width(width)

    def forward(self, x, training=False):
        """Returns the (1, N) prediction buffer; valid until the next call."""
        self.check_batch(x)
        self._set_width(x.cols)
        for layer, out in zip(self.layers, self.outputs):
            layer.forward(x, out, training)
            x = out
        return x

    def backward(self, y):
        ## fused sigmoid + BCE: grads[-1] is already dL/dz3, so the sigmoid is skipped
        d_out = binary_cross_entropy_grad(self.outputs[-1], y, self.grads[-1])
        for i in reversed(range(len(self.grads))):
            d_x = self.grads[i - 1] if i > 0 else None
            self.layers[i].backward(d_out, d_x)
            d_out = d_x

    def compute_gradients(self, x, y):
        self.check_batch(x, y)
        y_pred = self.forward(x, training=True)
        loss = binary_cross_entropy(y_pred, y)
        self.backward(y)
        return loss

    def step(self, lr):
        for layer in self.dense_layers:
            layer.update(lr)

    def zero_grad(self):
        for layer in self.dense_layers:
            layer.zero_grad()

    def train_step(self, x, y, lr):
        loss = self.compute_gradients(x, y)
        self.step(lr)
        self.zero_grad()
        return loss

    def predict(self, x):
        return self.forward(x, training=False)

    def evaluate_loss(self, x, y):
        self.check_batch(x, y)
        return binary_cross_entropy(self.forward(x, training=False), y)

    def get_params(self):
        params = {}
        for i, layer in enumerate(self.dense_layers):
            layer_params = layer.get_params()
            params['W' + str(i+1)] = layer_params["W"]
            params['b' + str(i+1)] = layer_params["b"]
        return params

    def set_params(self, params):
        for i, layer in enumerate(self.dense_layers):
            layer.set_params({"W": params['W' + str(i+1)], "b": params['b' + str(i+1)]})

    def save_model_weights_pickle(self, file_name):
        params = self.get_params()
        with open(file_name, "wb") as f:
            pickle.dump(params, f)
        logger.info("saved weights to %s", file_name)

    def load_model_weights_pickle(self, file_name):
        with open(file_name, "rb") as f:
            params_new = pickle.load(f)
        self.set_params(params_new)
        logger.info("loaded weights from %s", file_name)

    def free(self):
        for layer in self.layers:
            layer.free()
        for m in self.outputs + self.grads:
            m.free()
