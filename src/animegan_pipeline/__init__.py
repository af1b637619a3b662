"""
AnimeGAN image style transfer on ONNX Runtime.
"""
from animegan_pipeline.errors import (
    ImageReadError,
    ImageWriteError,
    InferenceExecutionError,
    InvalidInputError,
    ModelLoadError,
    PipelineError,
    ProviderUnavailableError,
    SessionClosedError,
    SessionNotReadyError,
    ShapeMismatchError,
    UnknownProviderError,
)
from animegan_pipeline.imaging import denormalize, normalize, postprocess, preprocess, resize_image
from animegan_pipeline.models import AnimeGANONNX, BaseProcessor, LoadResult

__version__ = "0.1.0"

__all__ = [
    "AnimeGANONNX",
    "BaseProcessor",
    "LoadResult",
    "ImageReadError",
    "ImageWriteError",
    "InferenceExecutionError",
    "InvalidInputError",
    "ModelLoadError",
    "PipelineError",
    "ProviderUnavailableError",
    "UnknownProviderError",
    "SessionClosedError",
    "SessionNotReadyError",
    "ShapeMismatchError",
    "denormalize",
    "normalize",
    "postprocess",
    "preprocess",
    "resize_image",
]
