"""
simplenn
~~~~~~~~

Feed-forward network trainer on a hand-written dense matrix kernel:
Dense -> ReLU -> Dense -> ReLU -> Dense -> Sigmoid, binary cross-entropy,
manual backward pass and plain SGD.
"""

from simplenn.errors import (
    SimpleNNError,
    AllocationError,
    ShapeMismatchError,
    DivideByZeroError,
    DatasetIntegrityError,
    InvalidMatrixError,
    ConfigError,
)
from simplenn.matrix import Matrix
from simplenn.model import MLP
from simplenn.utils import initialize_network, train_step, train_epochs, evaluate

__version__ = "1.0.0"
