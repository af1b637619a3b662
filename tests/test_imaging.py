"""Tests for image <-> tensor conversion.

Tests cover:
- Affine normalization and its inverse
- Bilinear resize and the identity case
- Preprocess input validation
- Postprocess clamping and alpha channel
"""

import warnings

import numpy as np
import pytest

from animegan_pipeline.errors import InvalidInputError
from animegan_pipeline.imaging import (
    denormalize,
    normalize,
    postprocess,
    preprocess,
    resize_image,
)


class TestNormalization:
    """Test the [0, 255] <-> [-1, 1] mapping."""

    def test_boundaries(self):
        assert normalize(0) == -1.0
        assert normalize(255) == pytest.approx(1.0, abs=1e-6)
        assert normalize(128) == pytest.approx(0.0, abs=0.01)
        assert normalize(127) == pytest.approx(0.0, abs=0.01)

    def test_dtype_is_float32(self):
        assert normalize(np.arange(4, dtype=np.uint8)).dtype == np.float32

    def test_round_trip_all_values(self):
        raw = np.arange(256, dtype=np.uint8)
        restored = denormalize(normalize(raw))

        assert restored.dtype == np.uint8
        assert np.max(np.abs(restored.astype(int) - raw.astype(int))) <= 1

    def test_denormalize_endpoints(self):
        assert denormalize(np.float32(-1.0)) == 0
        assert denormalize(np.float32(1.0)) == 255

    def test_denormalize_clamps_instead_of_wrapping(self):
        values = np.array([-5.0, -1.01, 1.01, 5.0], dtype=np.float32)
        np.testing.assert_array_equal(denormalize(values), [0, 0, 255, 255])

    def test_denormalize_non_finite_values(self):
        values = np.array([np.nan, np.inf, -np.inf], dtype=np.float32)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            restored = denormalize(values)

        np.testing.assert_array_equal(restored, [128, 255, 0])

    def test_postprocess_nan_output(self):
        tensor = np.full((1, 2, 2, 3), np.nan, dtype=np.float32)
        image = postprocess(tensor)

        assert np.all(image[..., :3] == 128)
        assert np.all(image[..., 3] == 255)


class TestResize:
    def test_identity_resize_returns_same_pixels(self, random_image):
        h, w = random_image.shape[:2]
        resized = resize_image(random_image, w, h)

        np.testing.assert_array_equal(resized, random_image)
        assert resized is not random_image

    def test_resize_to_target(self, random_image):
        resized = resize_image(random_image, 512, 256)
        assert resized.shape == (256, 512, 3)
        assert resized.dtype == np.uint8

    def test_resize_solid_color_keeps_color(self):
        image = np.full((37, 91, 3), (10, 200, 90), dtype=np.uint8)
        resized = resize_image(image, 512, 512)
        assert np.all(resized == np.array([10, 200, 90], dtype=np.uint8))

    def test_non_positive_target_rejected(self, random_image):
        with pytest.raises(InvalidInputError):
            resize_image(random_image, 0, 512)


class TestPreprocess:
    def test_gray_image_maps_to_zero(self, gray_image):
        tensor = preprocess(gray_image)

        assert tensor.shape == (1, 512, 512, 3)
        assert tensor.dtype == np.float32
        assert np.all(np.abs(tensor) <= 0.01)

    def test_resizes_to_target(self, random_image):
        tensor = preprocess(random_image, target_width=256, target_height=128)
        assert tensor.shape == (1, 128, 256, 3)
        assert tensor.min() >= -1.0
        assert tensor.max() <= 1.0

    def test_channel_order_preserved(self):
        image = np.zeros((512, 512, 3), dtype=np.uint8)
        image[..., 0] = 255
        tensor = preprocess(image)

        assert np.all(tensor[..., 0] == 1.0)
        assert np.all(tensor[..., 1] == -1.0)
        assert np.all(tensor[..., 2] == -1.0)

    def test_input_not_mutated(self, random_image):
        before = random_image.copy()
        preprocess(random_image)
        np.testing.assert_array_equal(random_image, before)

    @pytest.mark.parametrize(
        "image",
        [
            np.zeros((64, 64), dtype=np.uint8),
            np.zeros((64, 64, 4), dtype=np.uint8),
            np.zeros((0, 64, 3), dtype=np.uint8),
            np.zeros((64, 0, 3), dtype=np.uint8),
            np.zeros((64, 64, 3), dtype=np.float32),
        ],
        ids=["grayscale", "rgba", "zero-height", "zero-width", "float-pixels"],
    )
    def test_invalid_images_rejected(self, image):
        with pytest.raises(InvalidInputError):
            preprocess(image)

    def test_non_array_rejected(self):
        with pytest.raises(InvalidInputError):
            preprocess([[1, 2, 3]])

    def test_invalid_input_is_value_error(self):
        with pytest.raises(ValueError):
            preprocess(np.zeros((8, 8, 1), dtype=np.uint8))


class TestPostprocess:
    def test_alpha_always_opaque(self):
        rng = np.random.default_rng(0)
        tensor = rng.uniform(-3.0, 3.0, size=(1, 64, 48, 3)).astype(np.float32)
        image = postprocess(tensor)

        assert image.shape == (64, 48, 4)
        assert image.dtype == np.uint8
        assert np.all(image[..., 3] == 255)

    def test_out_of_range_values_saturate(self):
        tensor = np.empty((1, 2, 1, 3), dtype=np.float32)
        tensor[0, 0, 0] = [-2.0, -1.0, 0.0]
        tensor[0, 1, 0] = [1.0, 2.0, 1.5]
        image = postprocess(tensor)

        np.testing.assert_array_equal(image[0, 0, :3], [0, 0, 128])
        np.testing.assert_array_equal(image[1, 0, :3], [255, 255, 255])

    def test_accepts_unbatched_tensor(self):
        image = postprocess(np.zeros((4, 4, 3), dtype=np.float32))
        assert image.shape == (4, 4, 4)

    def test_accepts_float16(self):
        image = postprocess(np.ones((1, 4, 4, 3), dtype=np.float16))
        assert np.all(image[..., :3] == 255)

    @pytest.mark.parametrize(
        "shape",
        [(2, 4, 4, 3), (1, 4, 4, 1), (4, 4), (1, 1, 4, 4, 3)],
    )
    def test_bad_shapes_rejected(self, shape):
        with pytest.raises(InvalidInputError):
            postprocess(np.zeros(shape, dtype=np.float32))

    def test_gray_round_trip(self, gray_image):
        image = postprocess(preprocess(gray_image))
        assert np.all(np.abs(image[..., :3].astype(int) - 128) <= 1)
