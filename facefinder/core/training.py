"""
Assembly of labelled training crops from annotated photographs.

Annotation parsing stays with the caller; this module only needs the pixels of
each image and the face rectangles known to be in it. Faces become positive
samples (reshaped to the sample aspect ratio like detected candidates are) and
random windows clear of every face become negatives.
"""

import logging
from typing import Iterable

import numpy as np

from facefinder.config import DEFAULT_CONFIG, DetectionConfig
from facefinder.core.aspect import adjust_aspect
from facefinder.core.errors import InvalidArgument
from facefinder.core.models import Region
from facefinder.utils.image_utils import crop_region

logger = logging.getLogger(__name__)


def clip_to_image(region: Region, image_size: tuple[int, int]) -> Region | None:
    """Intersection of region with the image, None when nothing is left."""
    width, height = image_size
    left, top = max(0, region.left), max(0, region.top)
    right, bottom = min(width, region.right), min(height, region.bottom)
    if right <= left or bottom <= top:
        return None
    return Region.from_ltrb(left, top, right, bottom)


def generate_negative_regions(
    image_size: tuple[int, int],
    face_regions: Iterable[Region],
    count: int,
    sample_size: tuple[int, int],
    rng: np.random.Generator,
    max_overlap: float = 0.1,
    attempts_per_region: int = 50,
) -> list[Region]:
    """
    Random windows at the sample aspect ratio that avoid every known face.

    Window widths range from the sample width up to the largest that fits.
    A window is rejected if any face covers more than ``max_overlap`` of it.
    Fewer than ``count`` regions are returned when the image is too crowded.
    """
    if count < 0:
        raise InvalidArgument("count must not be negative")
    width, height = image_size
    sample_width, sample_height = sample_size
    ratio = sample_width / sample_height
    faces = list(face_regions)

    largest_width = min(width, int(height * ratio))
    smallest_width = min(sample_width, largest_width)
    if largest_width <= 0 or int(smallest_width / ratio) <= 0:
        return []

    regions = []
    for _ in range(count * attempts_per_region):
        if len(regions) >= count:
            break
        window_width = int(rng.integers(smallest_width, largest_width + 1))
        window_height = max(1, min(height, int(window_width / ratio)))
        left = int(rng.integers(0, width - window_width + 1))
        top = int(rng.integers(0, height - window_height + 1))
        window = Region(x=left, y=top, width=window_width, height=window_height)

        if any(face.intersection_area(window) > max_overlap * window.area for face in faces):
            continue
        regions.append(window)

    return regions


def samples_from_annotations(
    image: np.ndarray,
    face_regions: Iterable[Region],
    negatives_per_image: int,
    rng: np.random.Generator,
    config: DetectionConfig = DEFAULT_CONFIG,
) -> list[tuple[np.ndarray, bool]]:
    """
    Labelled crops for one annotated image.

    Args:
        image: RGB pixel grid
        face_regions: Ground-truth face rectangles (may extend past the image)
        negatives_per_image: Non-face windows to sample
        rng: Random generator, so sample sets are reproducible
        config: Supplies the sample size

    Returns:
        List of (crop, is_face) pairs, positives first
    """
    h, w = image.shape[:2]
    faces = [clipped for clipped in (clip_to_image(r, (w, h)) for r in face_regions) if clipped]

    samples = [
        (crop_region(image, adjust_aspect(face, (w, h), config.sample_aspect_ratio)), True)
        for face in faces
    ]
    negatives = generate_negative_regions(
        (w, h), faces, negatives_per_image, config.sample_size, rng
    )
    samples.extend((crop_region(image, region), False) for region in negatives)

    logger.debug(f"Collected {len(faces)} face and {len(negatives)} non-face samples")
    return samples
