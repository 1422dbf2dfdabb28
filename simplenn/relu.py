import numpy as np

from simplenn.errors import ShapeMismatchError
from simplenn.matrix import Matrix, check_same_shape


class ReLU:
    def __init__(self, features, max_batch, dtype=np.float32):
        self.in_features = features
        self.out_features = features
        self.max_batch = max_batch
        self.trainable = False

        ## pre-activation input; its sign is the local derivative
        self.cache = Matrix.allocate(features, max_batch, dtype)
        self.cached_width = None

    def __str__(self):
        return "ReLU"

    def forward(self, x, out, training=False):
        check_unit_shape(self, x, out)
        np.maximum(x.data, 0, out=out.data)
        if training:
            self.cache.set_width(x.cols)
            self.cache.copy_from(x)
            self.cached_width = x.cols
        return out

    def backward(self, d_out, d_x):
        check_unit_shape(self, d_out, d_x)
        if self.cached_width != d_out.cols:
            raise ShapeMismatchError("ReLU: backward width {} does not match cached forward width {}".format(
                d_out.cols, self.cached_width))
        np.multiply(d_out.data, self.cache.data > 0, out=d_x.data)
        return d_x

    def free(self):
        self.cache.free()
        self.cached_width = None


def check_unit_shape(unit, *matrices):
    """All operands of an activation unit share one (features, N) shape, N <= max_batch."""
    check_same_shape(str(unit), *matrices)
    rows, cols = matrices[0].shape
    if rows != unit.out_features or cols > unit.max_batch:
        raise ShapeMismatchError("{}: operand {} does not fit ({}, <={})".format(
            unit, matrices[0].shape, unit.out_features, unit.max_batch))
