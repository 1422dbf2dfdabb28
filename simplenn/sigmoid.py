import numpy as np

from simplenn.errors import ShapeMismatchError
from simplenn.matrix import Matrix
from simplenn.relu import check_unit_shape


class Sigmoid:
    def __init__(self, features, max_batch, dtype=np.float32):
        self.in_features = features
        self.out_features = features
        self.max_batch = max_batch
        self.trainable = False

        ## output a; the derivative is a * (1 - a)
        self.cache = Matrix.allocate(features, max_batch, dtype)
        self.cached_width = None

        ## outputs stay strictly inside (0, 1) even where exp() saturates
        dtype = np.dtype(dtype)
        self.low = np.finfo(dtype).tiny
        self.high = np.nextafter(dtype.type(1), dtype.type(0))

    def __str__(self):
        return "Sigmoid"

    def forward(self, x, out, training=False):
        check_unit_shape(self, x, out)
        a = out.data
        with np.errstate(over="ignore"):
            np.negative(x.data, out=a)
            np.exp(a, out=a)
        a += 1
        np.reciprocal(a, out=a)
        np.clip(a, self.low, self.high, out=a)

        if training:
            self.cache.set_width(out.cols)
            self.cache.copy_from(out)
            self.cached_width = out.cols
        return out

    def backward(self, d_out, d_x):
        check_unit_shape(self, d_out, d_x)
        if self.cached_width != d_out.cols:
            raise ShapeMismatchError("Sigmoid: backward width {} does not match cached forward width {}".format(
                d_out.cols, self.cached_width))
        a = self.cache.data
        np.multiply(d_out.data, a, out=d_x.data)
        d_x.data *= 1 - a
        return d_x

    def free(self):
        self.cache.free()
        self.cached_width = None
