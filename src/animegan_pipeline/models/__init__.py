from animegan_pipeline.models.animegan_onnx import AnimeGANONNX, LoadResult
from animegan_pipeline.models.base_processor import BaseProcessor

__all__ = ["AnimeGANONNX", "BaseProcessor", "LoadResult"]
