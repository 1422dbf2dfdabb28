import numpy as np

from simplenn.errors import ShapeMismatchError
from simplenn.matrix import check_same_shape

EPS = 1e-8


def _check_pair(op, y_pred, y_true):
    check_same_shape(op, y_pred, y_true)
    if y_pred.rows != 1:
        raise ShapeMismatchError("{}: expected a (1, N) row, got {}".format(op, y_pred.shape))


def binary_cross_entropy(y_pred, y_true):
    """
    y_pred: (1, N) matrix of sigmoid outputs
    y_true: (1, N) matrix of 0/1 labels
    returns the mean loss over the batch as a float
    """
    _check_pair("binary_cross_entropy", y_pred, y_true)
    N = y_pred.cols
    a = y_pred.view()
    y = y_true.view()
    terms = y * np.log(a + EPS) + (1 - y) * np.log(1 - a + EPS)
    return -float(np.sum(terms, dtype=np.float64)) / N


def binary_cross_entropy_grad(y_pred, y_true, out):
    """
    Gradient w.r.t. the pre-sigmoid logits: the sigmoid derivative is
    already folded in, so the output sigmoid's backward must not run.
    """
    _check_pair("binary_cross_entropy_grad", y_pred, y_true)
    check_same_shape("binary_cross_entropy_grad", out, y_pred)
    np.subtract(y_pred.data, y_true.data, out=out.data)
    return out
