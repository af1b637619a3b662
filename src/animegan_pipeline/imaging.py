"""
Image <-> tensor conversion for AnimeGAN-style generators.

Models in this family take NHWC float input in [-1, 1] and produce output in
the same range. Images at the boundary are plain uint8 numpy arrays:
RGB (H, W, 3) going in, RGBA (H, W, 4) coming out.
"""
import cv2
import numpy as np

from animegan_pipeline.errors import InvalidInputError

PIXEL_SCALE = 127.5
OPAQUE_ALPHA = 255


def normalize(raw):
    """
    Map 8-bit pixel values [0, 255] to [-1.0, 1.0] as float32.
    """
    return np.asarray(raw, dtype=np.float32) / np.float32(PIXEL_SCALE) - np.float32(1.0)


def denormalize(values):
    """
    Map model output [-1.0, 1.0] back to uint8 [0, 255].
    Values are rounded to nearest and clamped before narrowing, so noise
    outside [-1, 1] saturates instead of wrapping around. NaN maps to 128.
    """
    values = np.asarray(values)
    if values.dtype != np.float32 and values.dtype != np.float64:
        values = values.astype(np.float32)
    values = np.nan_to_num(values, nan=0.0, posinf=1.0, neginf=-1.0)
    raw = (values + 1.0) * PIXEL_SCALE
    raw = np.clip(np.rint(raw), 0, 255)
    return raw.astype(np.uint8)


def validate_image(image):
    if not isinstance(image, np.ndarray):
        raise InvalidInputError(f"Expected a numpy array, got {type(image).__name__}")
    if image.ndim != 3:
        raise InvalidInputError(f"Expected an (H, W, 3) image, got shape {image.shape}")
    h, w, c = image.shape
    if h <= 0 or w <= 0:
        raise InvalidInputError(f"Image width and height must be positive, got {w}x{h}")
    if c != 3:
        raise InvalidInputError(f"Expected 3 RGB channels, got {c}")
    if image.dtype != np.uint8:
        raise InvalidInputError(f"Expected uint8 pixels, got {image.dtype}")


def resize_image(image, width, height):
    """
    Bilinear resize to (width, height). An image already at the target size
    is returned as an unchanged copy.
    """
    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Target size must be positive, got {width}x{height}")

    h, w = image.shape[:2]
    if (w, h) == (width, height):
        return image.copy()
    return cv2.resize(image, (width, height), interpolation=cv2.INTER_LINEAR)


def preprocess(image, target_width=512, target_height=512):
    """
    RGB uint8 (H, W, 3) -> float32 tensor (1, target_height, target_width, 3).
    """
    validate_image(image)
    resized = resize_image(image, target_width, target_height)
    tensor = normalize(resized)
    return np.ascontiguousarray(tensor[np.newaxis, ...])


def postprocess(tensor):
    """
    Model output (1, H, W, 3) or (H, W, 3) -> RGBA uint8 (H, W, 4), alpha 255.
    """
    output = np.asarray(tensor)
    if output.ndim == 4:
        if output.shape[0] != 1:
            raise InvalidInputError(f"Expected batch size 1, got shape {output.shape}")
        output = output[0]
    if output.ndim != 3 or output.shape[2] != 3:
        raise InvalidInputError(f"Expected (1, H, W, 3) output tensor, got shape {np.shape(tensor)}")
    if output.dtype == np.float16:
        output = output.astype(np.float32, copy=False)

    h, w = output.shape[:2]
    image = np.empty((h, w, 4), dtype=np.uint8)
    image[..., :3] = denormalize(output)
    image[..., 3] = OPAQUE_ALPHA
    return image
