import logging

import h5py
import numpy as np
from sklearn.model_selection import train_test_split

from simplenn.errors import DatasetIntegrityError
from simplenn.matrix import Matrix

logger = logging.getLogger(__name__)


class Dataset:
    """
    Ordered, re-iterable list of (features, labels) batches.

    features: (feature_count, N) matrix, labels: (1, N) matrix of 0/1 values
    """

    def __init__(self, batches):
        self.batches = list(batches)
        feature_count = None
        for i, (x, y) in enumerate(self.batches):
            if y.rows != 1:
                raise DatasetIntegrityError("batch {}: labels must be a single row, got {}".format(i, y.shape))
            if x.cols != y.cols:
                raise DatasetIntegrityError("batch {}: {} samples but {} labels".format(i, x.cols, y.cols))
            if feature_count is not None and x.rows != feature_count:
                raise DatasetIntegrityError("batch {}: {} features, expected {}".format(i, x.rows, feature_count))
            if not np.all((y.data == 0) | (y.data == 1)):
                raise DatasetIntegrityError("batch {}: labels must be 0 or 1".format(i))
            feature_count = x.rows

    def __len__(self):
        return len(self.batches)

    def __iter__(self):
        return iter(self.batches)

    @classmethod
    def from_arrays(cls, x, y, batch_size, dtype=np.float32):
        """
        x: (N, ...) sample-major array, flattened per sample
        y: N labels
        Samples are split in order into column batches of batch_size; the
        last batch may be narrower.
        """
        x = np.asarray(x)
        y = np.asarray(y).reshape(-1)
        if x.shape[0] != y.shape[0]:
            raise DatasetIntegrityError("{} samples but {} labels".format(x.shape[0], y.shape[0]))
        x = x.reshape(x.shape[0], -1)

        batches = []
        for i in range(0, x.shape[0], batch_size):
            x_batch = Matrix.from_numpy(x[i:i+batch_size].T, dtype)
            y_batch = Matrix.from_numpy(y[i:i+batch_size].reshape(1, -1), dtype)
            batches.append((x_batch, y_batch))
        return cls(batches)


class DataLoader:
    def __init__(self, path, x_name="train_set_x", y_name="train_set_y"):
        self.path = path
        self.x_name = x_name
        self.y_name = y_name

    def read(self):
        if self.path.endswith((".h5", ".hdf5")):
            with h5py.File(self.path, "r") as f:
                x = f[self.x_name][()]
                y = f[self.y_name][()]
        elif self.path.endswith(".npz"):
            with np.load(self.path) as f:
                x = f[self.x_name]
                y = f[self.y_name]
        else:
            raise ValueError("unsupported dataset file: {}".format(self.path))
        return x, y

    def load(self, validation_split=0.0, seed=42):
        x, y = self.read()
        y = y.reshape(-1)
        if x.shape[0] != y.shape[0]:
            raise DatasetIntegrityError("{}: {} samples but {} labels".format(self.path, x.shape[0], y.shape[0]))

        ## flatten (N, H, W, C) -> (N, H*W*C)
        x = x.reshape(x.shape[0], -1)

        ## normalize raw pixel values
        if np.issubdtype(x.dtype, np.integer):
            x = x / 255.0
        x = x.astype(np.float32)
        y = y.astype(np.float32)
        logger.info("loaded %s: x %s, y %s", self.path, x.shape, y.shape)

        if not validation_split:
            return x, y

        """
        stratified split
        """
        X_train, X_val, y_train, y_val = train_test_split(
            x, y, test_size=validation_split, random_state=seed, stratify=y)
        logger.info("train %s, validation %s", X_train.shape, X_val.shape)
        logger.debug("train distribution: %s", np.unique(y_train, return_counts=True))
        return X_train, X_val, y_train, y_val
