"""
Connected region extraction from a skin mask.
"""

import cv2
import numpy as np

from facefinder.core.errors import InvalidArgument
from facefinder.core.models import Region


def extract_regions(mask: np.ndarray) -> list[Region]:
    """
    Bounding rectangle of every 4-connected component of True pixels.

    Regions are ordered by the first pixel of each component met in a
    row-major scan, so the same mask always yields the same sequence.
    """
    if mask is None:
        raise InvalidArgument("Mask must not be None")
    mask = np.asarray(mask)
    if mask.ndim != 2:
        raise InvalidArgument(f"Mask must be 2-D, got shape {mask.shape}")
    if mask.size == 0 or not mask.any():
        return []

    _, labels, stats, _ = cv2.connectedComponentsWithStats(
        mask.astype(np.uint8), connectivity=4, ltype=cv2.CV_32S
    )

    # First raster index of every label; label 0 is background
    label_values, first_seen = np.unique(labels.ravel(), return_index=True)
    foreground = label_values != 0
    ordered_labels = label_values[foreground][np.argsort(first_seen[foreground], kind="stable")]

    return [
        Region(
            x=int(stats[label, cv2.CC_STAT_LEFT]),
            y=int(stats[label, cv2.CC_STAT_TOP]),
            width=int(stats[label, cv2.CC_STAT_WIDTH]),
            height=int(stats[label, cv2.CC_STAT_HEIGHT]),
        )
        for label in ordered_labels
    ]
