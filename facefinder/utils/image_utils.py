"""
Image loading and conversion utilities.
All pixel grids handed to the detector are RGB, uint8, shape (height, width, 3).
"""

import io

import cv2
import numpy as np
from PIL import Image

from facefinder.core.errors import InvalidArgument
from facefinder.core.models import Region


def load_image_from_bytes(data: bytes) -> np.ndarray:
    """
    Load image from encoded bytes (PNG, JPEG, GIF, ...).

    Args:
        data: Raw image bytes

    Returns:
        RGB image as numpy array
    """
    # Use PIL to handle various formats, including palette GIFs
    pil_image = Image.open(io.BytesIO(data))

    if pil_image.mode != "RGB":
        pil_image = pil_image.convert("RGB")

    return np.array(pil_image)


def load_image_from_path(path: str) -> np.ndarray | None:
    """
    Load image from file path.

    Returns:
        RGB image as numpy array or None if the file could not be decoded
    """
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        return None
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


def resize_image(
    image: np.ndarray,
    max_dimension: int = 640,
) -> tuple[np.ndarray, float]:
    """
    Shrink an image so its longest side is at most max_dimension.

    Smaller images are returned as they are. The returned scale maps
    working-copy coordinates back to the input (divide by it).

    Returns:
        Tuple of (working image, scale factor)
    """
    h, w = image.shape[:2]
    if max(h, w) <= max_dimension:
        return image, 1.0

    scale = max_dimension / max(h, w)
    size = (max(1, round(w * scale)), max(1, round(h * scale)))
    return cv2.resize(image, size, interpolation=cv2.INTER_AREA), scale


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """RGB -> single channel; 2-D input is returned unchanged."""
    if image.ndim == 2:
        return image
    return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)


def crop_region(image: np.ndarray, region: Region) -> np.ndarray:
    """Copy of the pixels inside region."""
    h, w = image.shape[:2]
    if not region.lies_within((w, h)):
        raise InvalidArgument(f"Region {region} lies outside image of size {(w, h)}")
    return image[region.top:region.bottom, region.left:region.right].copy()


def resize_to(image: np.ndarray, size: tuple[int, int]) -> np.ndarray:
    """Resize to an exact (width, height)."""
    h, w = image.shape[:2]
    if (w, h) == tuple(size):
        return image
    # Area interpolation when shrinking, bilinear when enlarging
    interpolation = cv2.INTER_AREA if w >= size[0] and h >= size[1] else cv2.INTER_LINEAR
    return cv2.resize(image, tuple(size), interpolation=interpolation)
