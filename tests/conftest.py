"""Shared fixtures for animegan_pipeline tests.

This module provides pytest fixtures for:
- Synthetic RGB images (solid gray, random noise)
- An in-memory session double exposing the onnxruntime session surface
- A real identity ONNX model on disk (requires the `onnx` package)
"""

import threading
import time

import numpy as np
import pytest

MODEL_INPUT_NAME = "AnimeGANv3_input:0"
MODEL_OUTPUT_NAME = "generator/G_MODEL/out_layer/Tanh:0"


class FakeNode:
    """Mimics onnxruntime.NodeArg."""

    def __init__(self, name, shape, type="tensor(float)"):
        self.name = name
        self.shape = list(shape) if shape is not None else None
        self.type = type


class IdentitySession:
    """Session double: every output echoes the input, optionally transformed.

    Records the feeds it receives and the peak number of concurrent runs.
    """

    def __init__(
        self,
        input_name=MODEL_INPUT_NAME,
        input_shape=(1, 512, 512, 3),
        outputs=None,
        input_type="tensor(float)",
        fail_with=None,
        delay=0.0,
    ):
        if outputs is None:
            outputs = {MODEL_OUTPUT_NAME: lambda x: x}
        self.input_name = input_name
        self.input_shape = input_shape
        self.input_type = input_type
        self.outputs = outputs
        self.fail_with = fail_with
        self.delay = delay
        self.feeds = []
        self.requested = []
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def get_inputs(self):
        return [FakeNode(self.input_name, self.input_shape, self.input_type)]

    def get_outputs(self):
        return [FakeNode(name, self.input_shape) for name in self.outputs]

    def run(self, output_names, feed):
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if self.fail_with is not None:
                raise self.fail_with
            self.feeds.append(feed)
            self.requested.append(output_names)
            names = output_names or list(self.outputs)
            x = feed[self.input_name]
            return [np.array(self.outputs[name](x), copy=True) for name in names]
        finally:
            with self._guard:
                self.active -= 1

    @property
    def calls(self):
        return len(self.feeds)


@pytest.fixture
def make_session():
    """Factory for IdentitySession doubles."""
    return IdentitySession


@pytest.fixture
def identity_session():
    return IdentitySession()


@pytest.fixture
def gray_image():
    """Solid mid-gray 512x512 RGB image (all channels 128)."""
    return np.full((512, 512, 3), 128, dtype=np.uint8)


@pytest.fixture
def random_image():
    rng = np.random.default_rng(42)
    return rng.integers(0, 256, size=(240, 320, 3), dtype=np.uint8)


@pytest.fixture
def identity_model_path(tmp_path):
    """Identity ONNX model with AnimeGANv3 tensor names, NHWC [1, 512, 512, 3]."""
    onnx = pytest.importorskip("onnx")
    pytest.importorskip("onnxruntime")
    from onnx import TensorProto, helper

    shape = [1, 512, 512, 3]
    inp = helper.make_tensor_value_info(MODEL_INPUT_NAME, TensorProto.FLOAT, shape)
    out = helper.make_tensor_value_info(MODEL_OUTPUT_NAME, TensorProto.FLOAT, shape)
    node = helper.make_node("Identity", [MODEL_INPUT_NAME], [MODEL_OUTPUT_NAME])
    graph = helper.make_graph([node], "animegan_identity", [inp], [out])
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8

    path = tmp_path / "identity.onnx"
    onnx.save(model, str(path))
    return path
