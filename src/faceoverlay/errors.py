class TensorDisposedError(RuntimeError):
    """Raised when a tensor is read or disposed after it was already disposed."""


class ModelNotReadyError(RuntimeError):
    """Raised when the inference engine is requested before the model has loaded."""


class ModelContractError(ValueError):
    """Raised when the model output does not follow the fixed 8-tensor layout."""


class FrameNotReadyError(RuntimeError):
    """Raised when a frame is requested from a source that has nothing buffered."""
