"""
Dense matrix kernel.

Every matrix owns a flat buffer laid out row-major: the element at (r, c)
lives at data[r * cols + c]. Buffers are allocated once, with a column
capacity, and reused; set_width() changes the active column count inside
that capacity without allocating.

The multiply routines are written out by hand. Each output element is
accumulated from zero over the contraction index in ascending order, one
product and one add per step, in the matrix dtype. The innermost output
dimension is swept as a numpy row so the loops stay readable, which leaves
that per-element order untouched.
"""

import sys

import numpy as np

from simplenn.errors import AllocationError, InvalidMatrixError, ShapeMismatchError, DivideByZeroError

SUPPORTED_DTYPES = (np.dtype(np.float32), np.dtype(np.float64))


class Matrix:
    def __init__(self, rows, cols, storage):
        self.rows = rows
        self.cols = cols
        self.max_cols = cols
        self._storage = storage
        self.data = storage[:rows * cols]

    def __str__(self):
        return "Matrix({} x {})".format(self.rows, self.cols)

    def __repr__(self):
        return "Matrix(rows={}, cols={}, dtype={})".format(self.rows, self.cols, self.dtype)

    @classmethod
    def allocate(cls, rows, cols, dtype=np.float32):
        """
        rows, cols: positive integers
        returns a zero-initialised (rows x cols) matrix
        """
        dtype = np.dtype(dtype)
        if dtype not in SUPPORTED_DTYPES:
            raise AllocationError("unsupported matrix dtype: {}".format(dtype))
        if not _is_dim(rows) or not _is_dim(cols):
            raise AllocationError("invalid matrix size: {} x {}".format(rows, cols))

        rows, cols = int(rows), int(cols)
        count = rows * cols
        if count * dtype.itemsize > sys.maxsize:
            raise AllocationError("matrix size overflows: {} x {}".format(rows, cols))

        try:
            storage = np.zeros(count, dtype=dtype)
        except (MemoryError, ValueError) as e:
            raise AllocationError("cannot allocate {} x {} matrix".format(rows, cols)) from e
        return cls(rows, cols, storage)

    @classmethod
    def from_numpy(cls, array, dtype=np.float32):
        array = np.asarray(array)
        if array.ndim != 2:
            raise ShapeMismatchError("expected a 2D array, got shape {}".format(array.shape))
        m = cls.allocate(array.shape[0], array.shape[1], dtype)
        m.view()[...] = array
        return m

    @property
    def shape(self):
        return (self.rows, self.cols)

    @property
    def dtype(self):
        return None if self._storage is None else self._storage.dtype

    @property
    def is_valid(self):
        return self.data is not None

    def view(self):
        """(rows, cols) numpy view of the active region; no copy."""
        _check_valid(self)
        return self.data.reshape(self.rows, self.cols)

    def to_numpy(self):
        return self.view().copy()

    def __getitem__(self, index):
        _check_valid(self)
        r, c = self._offset(index)
        return self.data[r * self.cols + c]

    def __setitem__(self, index, value):
        _check_valid(self)
        r, c = self._offset(index)
        self.data[r * self.cols + c] = value

    def _offset(self, index):
        r, c = index
        if not (0 <= r < self.rows and 0 <= c < self.cols):
            raise IndexError("index {} out of range for {}".format(index, self))
        return r, c

    def set_width(self, cols):
        """Change the active column count within the allocated capacity."""
        _check_valid(self)
        if not _is_dim(cols) or cols > self.max_cols:
            raise ShapeMismatchError(
                "width {} outside capacity of {} (max {} columns)".format(cols, self, self.max_cols))
        self.cols = int(cols)
        self.data = self._storage[:self.rows * self.cols]

    def free(self):
        self._storage = None
        self.data = None

    def zero(self):
        if self.data is None:
            return
        self.data.fill(0)

    def fill(self, value):
        if self.data is None:
            return
        self.data.fill(value)

    def copy_from(self, src):
        _check_valid(self, src)
        check_same_shape("copy", self, src)
        np.copyto(self.data, src.data)
        return self

    def subtract(self, other):
        _check_valid(self, other)
        check_same_shape("subtract", self, other)
        np.subtract(self.data, other.data, out=self.data)
        return self

    def scale(self, scalar):
        _check_valid(self)
        np.multiply(self.data, self.data.dtype.type(scalar), out=self.data)
        return self

    def divide(self, scalar):
        _check_valid(self)
        if scalar == 0:
            raise DivideByZeroError("cannot divide {} by zero".format(self))
        np.divide(self.data, self.data.dtype.type(scalar), out=self.data)
        return self

    def uniform_fill(self, low, high, rng=None):
        """Fill with independent draws from U[low, high)."""
        _check_valid(self)
        if rng is None:
            rng = np.random.default_rng()
        self.data[:] = rng.uniform(low, high, size=self.data.size)
        return self


def _is_dim(n):
    return isinstance(n, (int, np.integer)) and not isinstance(n, bool) and n > 0


def _check_valid(*matrices):
    for m in matrices:
        if m.data is None:
            raise InvalidMatrixError("{} has no buffer (released?)".format(m))


def check_same_shape(op, *matrices):
    shape = matrices[0].shape
    for m in matrices[1:]:
        if m.shape != shape:
            raise ShapeMismatchError("{}: shape {} does not match {}".format(op, m.shape, shape))


def _check_out(op, out, shape):
    if out.shape != shape:
        raise ShapeMismatchError("{}: output is {}, expected {}".format(op, out.shape, shape))


def _check_no_alias(op, out, *operands):
    for m in operands:
        if np.may_share_memory(out.data, m.data):
            raise ShapeMismatchError("{}: output must not alias an operand".format(op))


def matmul(out, a, b):
    """out = a . b"""
    _check_valid(out, a, b)
    if a.cols != b.rows:
        raise ShapeMismatchError("matmul: cannot multiply {} by {}".format(a.shape, b.shape))
    _check_out("matmul", out, (a.rows, b.cols))
    _check_no_alias("matmul", out, a, b)

    o, x, y = out.view(), a.view(), b.view()
    o.fill(0)
    for i in range(a.rows):
        row = o[i]
        for k in range(a.cols):
            row += x[i, k] * y[k]
    return out


def matmul_tn(out, a, b):
    """out = a^T . b, contracting over the rows of both operands"""
    _check_valid(out, a, b)
    if a.rows != b.rows:
        raise ShapeMismatchError("matmul_tn: cannot multiply {}^T by {}".format(a.shape, b.shape))
    _check_out("matmul_tn", out, (a.cols, b.cols))
    _check_no_alias("matmul_tn", out, a, b)

    o, x, y = out.view(), a.view(), b.view()
    o.fill(0)
    for i in range(a.cols):
        row = o[i]
        for k in range(a.rows):
            row += x[k, i] * y[k]
    return out


def matmul_nt(out, a, b):
    """out = a . b^T, contracting over the columns of both operands"""
    _check_valid(out, a, b)
    if a.cols != b.cols:
        raise ShapeMismatchError("matmul_nt: cannot multiply {} by {}^T".format(a.shape, b.shape))
    _check_out("matmul_nt", out, (a.rows, b.rows))
    _check_no_alias("matmul_nt", out, a, b)

    o, x, y = out.view(), a.view(), b.view()
    o.fill(0)
    for i in range(a.rows):
        row = o[i]
        for k in range(a.cols):
            row += x[i, k] * y[:, k]
    return out


def add(out, a, b):
    _check_valid(out, a, b)
    check_same_shape("add", out, a, b)
    np.add(a.data, b.data, out=out.data)
    return out


def sum_columns(dst, src):
    """dst (rows x 1) = each row of src summed left to right"""
    _check_valid(dst, src)
    _check_out("sum_columns", dst, (src.rows, 1))
    _check_no_alias("sum_columns", dst, src)

    d, s = dst.data, src.view()
    d.fill(0)
    for c in range(src.cols):
        d += s[:, c]
    return dst


def add_column(m, column):
    """Add a (rows x 1) column to every column of m, in place."""
    _check_valid(m, column)
    if column.shape != (m.rows, 1):
        raise ShapeMismatchError("add_column: column is {}, expected {}".format(column.shape, (m.rows, 1)))
    v = m.view()
    v += column.view()
    return m
