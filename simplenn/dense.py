import numpy as np

from simplenn.errors import ShapeMismatchError
from simplenn.matrix import Matrix, matmul, matmul_nt, matmul_tn, add_column, sum_columns


class Dense:
    """
    Affine layer: out = W . x + b, with b broadcast over the batch columns.

    W: (out_features, in_features), b: (out_features, 1)
    x: (in_features, N), out: (out_features, N), N <= max_batch
    """

    def __init__(self, in_features, out_features, max_batch, init_range=0.01, rng=None, dtype=np.float32):
        self.in_features = in_features
        self.out_features = out_features
        self.max_batch = max_batch

        W = Matrix.allocate(out_features, in_features, dtype)
        W.uniform_fill(-init_range, init_range, rng)
        b = Matrix.allocate(out_features, 1, dtype)

        self.trainable = True
        self.W = {"val": W, "grad": Matrix.allocate(out_features, in_features, dtype)}
        self.b = {"val": b, "grad": Matrix.allocate(out_features, 1, dtype)}

        ## x feeds the weight gradient; z is kept for inspection
        self.cache = {
            "x": Matrix.allocate(in_features, max_batch, dtype),
            "z": Matrix.allocate(out_features, max_batch, dtype),
        }
        self.cached_width = None

    def __str__(self):
        return "Dense({}, {})".format(self.in_features, self.out_features)

    def forward(self, x, out, training=False):
        if x.rows != self.in_features or x.cols > self.max_batch:
            raise ShapeMismatchError("{}: input {} does not fit ({}, <={})".format(
                self, x.shape, self.in_features, self.max_batch))

        matmul(out, self.W["val"], x)
        add_column(out, self.b["val"])

        if training:
            for name, m in (("x", x), ("z", out)):
                self.cache[name].set_width(x.cols)
                self.cache[name].copy_from(m)
            self.cached_width = x.cols
        return out

    def backward(self, d_out, d_x=None):
        """
        d_out: (out_features, N) gradient of the loss w.r.t. this layer's output
        d_x: optional (in_features, N) buffer receiving W^T . d_out
        """
        N = d_out.cols
        if d_out.rows != self.out_features:
            raise ShapeMismatchError("{}: upstream gradient has {} rows".format(self, d_out.rows))
        if self.cached_width != N:
            raise ShapeMismatchError("{}: backward width {} does not match cached forward width {}".format(
                self, N, self.cached_width))

        dW = self.W["grad"]
        db = self.b["grad"]
        matmul_nt(dW, d_out, self.cache["x"])
        sum_columns(db, d_out)
        dW.divide(N)
        db.divide(N)

        if d_x is not None:
            matmul_tn(d_x, self.W["val"], d_out)
        return d_x

    def update(self, lr):
        for param in (self.W, self.b):
            param["grad"].scale(lr)
            param["val"].subtract(param["grad"])

    def zero_grad(self):
        self.W["grad"].zero()
        self.b["grad"].zero()

    def get_params(self):
        return {"W": self.W["val"].to_numpy(), "b": self.b["val"].to_numpy()}

    def set_params(self, params):
        for name, param in (("W", self.W), ("b", self.b)):
            value = np.asarray(params[name])
            if value.shape != param["val"].shape:
                raise ShapeMismatchError("{}: {} has shape {}, expected {}".format(
                    self, name, value.shape, param["val"].shape))
            param["val"].view()[...] = value

    def free(self):
        for m in (self.W["val"], self.W["grad"], self.b["val"], self.b["grad"], *self.cache.values()):
            m.free()
        self.cached_width = None
