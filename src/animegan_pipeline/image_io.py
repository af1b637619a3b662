import logging
import os
import subprocess
import sys

import cv2

from animegan_pipeline.errors import ImageReadError, ImageWriteError, InvalidInputError

logger = logging.getLogger(__name__)


def read_image(path):
    """
    Load an image file as RGB uint8 (H, W, 3).
    """
    frame_bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if frame_bgr is None:
        raise ImageReadError(f"Cannot read image: {path}")
    return cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)


def to_bgr(image):
    """
    RGB / RGBA -> BGR / BGRA for OpenCV writers and windows.
    """
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise InvalidInputError(f"Expected an RGB or RGBA image, got shape {image.shape}")
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)
    return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)


def write_image(path, image):
    path = str(path)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    try:
        written = cv2.imwrite(path, to_bgr(image))
    except cv2.error as exc:
        raise ImageWriteError(f"Cannot write image: {path}: {exc}") from exc
    if not written:
        raise ImageWriteError(f"Cannot write image: {path}")
    logger.info("Saved %s", path)
    return path


def open_folder(path):
    """
    Open a directory in the platform file browser.
    """
    path = os.path.abspath(str(path))
    os.makedirs(path, exist_ok=True)
    if sys.platform.startswith("win"):
        os.startfile(path)
    elif sys.platform == "darwin":
        subprocess.run(["open", path], check=True)
    else:
        subprocess.run(["xdg-open", path], check=True)
    return path
