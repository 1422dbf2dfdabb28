class SimpleNNError(Exception):
    pass


class AllocationError(SimpleNNError):
    """A matrix buffer could not be obtained."""


class ShapeMismatchError(SimpleNNError):
    """Operand shapes violate an operation's contract."""


class DivideByZeroError(SimpleNNError):
    pass


class DatasetIntegrityError(SimpleNNError):
    """Feature and label batches disagree, or the dataset is empty."""


class InvalidMatrixError(SimpleNNError):
    """Operation on a matrix whose buffer has been released."""


class ConfigError(SimpleNNError):
    pass
