"""
Exception hierarchy for the style-transfer pipeline.
Every error raised by the package derives from PipelineError.
"""


class PipelineError(Exception):
    pass


class InvalidInputError(PipelineError, ValueError):
    """Image or tensor has the wrong rank, size, channel count or dtype."""


class ImageReadError(PipelineError, OSError):
    pass


class ImageWriteError(PipelineError, OSError):
    pass


class ModelLoadError(PipelineError, RuntimeError):
    """Model file missing/corrupt, or session could not be created."""


class ProviderUnavailableError(ModelLoadError):
    pass


class UnknownProviderError(ModelLoadError, ValueError):
    """Provider mode is not one of the supported names."""


class SessionNotReadyError(PipelineError, RuntimeError):
    """Inference requested before a session was successfully loaded."""


class SessionClosedError(SessionNotReadyError):
    pass


class ShapeMismatchError(PipelineError, ValueError):
    def __init__(self, expected, actual):
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        super().__init__(
            f"Input tensor shape {list(self.actual)} does not match "
            f"model input shape {list(self.expected)}"
        )


class InferenceExecutionError(PipelineError, RuntimeError):
    pass
