import logging
import os
import threading
from collections import namedtuple

import numpy as np
import onnxruntime as ort

from animegan_pipeline import imaging
from animegan_pipeline.errors import (
    InferenceExecutionError,
    ModelLoadError,
    SessionClosedError,
    SessionNotReadyError,
    ShapeMismatchError,
)
from animegan_pipeline.models.base_processor import BaseProcessor
from animegan_pipeline.providers import build_providers

logger = logging.getLogger(__name__)

DEFAULT_INPUT_NAME = "AnimeGANv3_input:0"
DEFAULT_INPUT_SIZE = (512, 512)


class LoadResult(namedtuple("LoadResult", ["processor", "error"])):
    """
    Outcome of AnimeGANONNX.load: the processor (ready or not) and the
    ModelLoadError that prevented it from becoming ready, if any.
    """

    __slots__ = ()

    @property
    def ok(self):
        return self.error is None


class AnimeGANONNX(BaseProcessor):
    """
    AnimeGAN generator running on an ONNX Runtime session.

    The processor owns its session: `close()` releases it exactly once and
    every later call fails with SessionClosedError. Inference calls on one
    processor are serialized by an internal lock.
    """

    def __init__(
        self,
        model_path=None,
        provider="auto",
        device_id=0,
        input_name=DEFAULT_INPUT_NAME,
        output_name=None,
        input_size=DEFAULT_INPUT_SIZE,
        strict=True,
        enable_profiling=False,
        session=None,
    ):
        super().__init__()

        self.model_path = model_path
        self.input_name = input_name
        self.output_name = output_name
        self.target_width, self.target_height = input_size
        self.expected_shape = None
        self.dtype = np.float32
        self.providers = []
        self.session = None
        self.load_error = None
        self._closed = False
        self._lock = threading.Lock()

        try:
            if session is None:
                session = self._create_session(model_path, provider, device_id, enable_profiling)
            self._bind_session(session)
        except ModelLoadError as exc:
            self.load_error = exc
            logger.error("Failed to load model %s: %s", model_path, exc)
            if strict:
                raise

    @classmethod
    def load(cls, model_path, **kwargs):
        """
        Non-raising constructor. Returns a LoadResult; on failure the
        processor is kept (not ready) so callers can degrade gracefully.
        """
        kwargs["strict"] = False
        processor = cls(model_path, **kwargs)
        return LoadResult(processor, processor.load_error)

    @classmethod
    def from_session(cls, session, **kwargs):
        return cls(session=session, **kwargs)

    def _create_session(self, model_path, provider, device_id, enable_profiling):
        if not model_path or not os.path.isfile(model_path):
            raise ModelLoadError(f"Model file not found: {model_path}")

        so = ort.SessionOptions()
        so.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        so.execution_mode = ort.ExecutionMode.ORT_SEQUENTIAL
        if enable_profiling:
            so.enable_profiling = True

        providers = build_providers(provider, device_id)

        try:
            session = ort.InferenceSession(
                model_path,
                sess_options=so,
                providers=providers
            )
        except Exception as exc:
            raise ModelLoadError(f"Cannot create session for {model_path}: {exc}") from exc

        logger.info("Session providers: %s", session.get_providers())
        return session

    def _bind_session(self, session):
        inputs = session.get_inputs()
        outputs = session.get_outputs()
        if not inputs or not outputs:
            raise ModelLoadError("Model declares no inputs or no outputs")

        input_names = [item.name for item in inputs]
        output_names = [item.name for item in outputs]

        if self.input_name is None:
            self.input_name = input_names[0]
        elif self.input_name not in input_names:
            raise ModelLoadError(
                f"Input '{self.input_name}' not found in model inputs {input_names}"
            )

        if self.output_name is None:
            self.output_name = output_names[0]
        elif self.output_name not in output_names:
            raise ModelLoadError(
                f"Output '{self.output_name}' not found in model outputs {output_names}"
            )

        model_input = inputs[input_names.index(self.input_name)]
        self.expected_shape = tuple(model_input.shape) if model_input.shape is not None else None

        static_hw = self._resolve_expected_hw()
        if static_hw is not None:
            self.target_height, self.target_width = static_hw
            logger.info("Static model input detected: %dx%d", self.target_width, self.target_height)

        if "float16" in (model_input.type or ""):
            self.dtype = np.float16
        else:
            self.dtype = np.float32

        self.session = session
        logger.info(
            "Model ready: input=%s %s output=%s",
            self.input_name,
            list(self.expected_shape) if self.expected_shape is not None else "?",
            self.output_name,
        )

    def _resolve_expected_hw(self):
        # NHWC: [batch, height, width, channels]
        shape = self.expected_shape
        if shape is None or len(shape) != 4:
            return None
        h = shape[1]
        w = shape[2]
        if isinstance(h, int) and isinstance(w, int) and h > 0 and w > 0:
            return (h, w)
        return None

    @property
    def is_ready(self):
        return self.session is not None and not self._closed

    @property
    def closed(self):
        return self._closed

    def _check_ready(self):
        if self._closed:
            raise SessionClosedError("Inference session has been released")
        if self.session is None:
            reason = f": {self.load_error}" if self.load_error is not None else ""
            raise SessionNotReadyError(f"Inference session is not ready{reason}")

    def _shape_matches(self, shape):
        expected = self.expected_shape
        if expected is None:
            return True
        if len(expected) != len(shape):
            return False
        for want, got in zip(expected, shape):
            if isinstance(want, int) and want > 0:
                if want != got:
                    return False
            elif got <= 0:
                return False
        return True

    def preprocess(self, image):
        return imaging.preprocess(image, self.target_width, self.target_height)

    def infer(self, tensor):
        """
        Run the graph synchronously on `tensor` and return the configured
        output. Blocks until the run finishes; there is no cancellation.
        """
        self._check_ready()

        tensor = np.asarray(tensor)
        if not self._shape_matches(tensor.shape):
            raise ShapeMismatchError(self.expected_shape, tensor.shape)
        if tensor.dtype != self.dtype:
            tensor = tensor.astype(self.dtype)

        with self._lock:
            self._check_ready()
            try:
                outputs = self.session.run([self.output_name], {self.input_name: tensor})
            except Exception as exc:
                raise InferenceExecutionError(f"Inference failed: {exc}") from exc

        return outputs[0]

    def postprocess(self, output):
        return imaging.postprocess(output)

    def end_profiling(self):
        self._check_ready()
        if hasattr(self.session, "end_profiling"):
            return self.session.end_profiling()
        return None

    def close(self):
        """
        Release the session. A second call raises SessionClosedError.
        """
        with self._lock:
            if self._closed:
                raise SessionClosedError("Inference session already released")
            self._closed = True
            self.session = None
        logger.debug("Released session for %s", self.model_path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if not self._closed:
            self.close()
        return False
