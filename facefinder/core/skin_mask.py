"""
Skin mask construction.
A strict filter seeds the mask, then a bounded number of relaxed passes grow it
into neighbouring pixels (typically shaded skin at face edges).
"""

import cv2
import numpy as np

from facefinder.config import DEFAULT_CONFIG, DetectionConfig
from facefinder.core.errors import InvalidArgument
from facefinder.core.models import HueSaturationGrid

# 4-connected neighbourhood
_CROSS_KERNEL = cv2.getStructuringElement(cv2.MORPH_CROSS, (3, 3))


def _validate(hue_saturation: HueSaturationGrid | None) -> None:
    if hue_saturation is None:
        raise InvalidArgument("Hue/saturation grid must not be None")
    if hue_saturation.hue.ndim != 2 or hue_saturation.hue.size == 0:
        raise InvalidArgument("Hue/saturation grid must be a non-empty 2-D grid")


def build_strict_mask(
    hue_saturation: HueSaturationGrid, config: DetectionConfig = DEFAULT_CONFIG
) -> np.ndarray:
    """Pixels accepted by the strict filter (hue, saturation and texture)."""
    _validate(hue_saturation)
    accepted = config.skin_filter(
        hue_saturation.hue,
        hue_saturation.saturation,
        hue_saturation.texture_amplitude,
    )
    return np.asarray(accepted, dtype=bool)


def relax_mask(
    mask: np.ndarray,
    hue_saturation: HueSaturationGrid,
    config: DetectionConfig = DEFAULT_CONFIG,
    passes: int | None = None,
) -> np.ndarray:
    """
    Grow a mask by exactly ``passes`` relaxed expansions.

    Each pass marks every unmarked pixel that is 4-adjacent to the current mask
    and accepted by the relaxed filter (texture is not checked). The result is
    always a superset of the input.

    Args:
        mask: Boolean seed mask
        hue_saturation: Grid the mask was built from
        config: Supplies the relaxed filter and default pass count
        passes: Overrides config.relaxed_expansions

    Returns:
        New boolean mask; the input is not modified
    """
    _validate(hue_saturation)
    passes = config.relaxed_expansions if passes is None else passes
    if passes < 0:
        raise InvalidArgument("Number of relaxed expansions must not be negative")
    if mask.shape != hue_saturation.shape:
        raise InvalidArgument(
            f"Mask shape {mask.shape} does not match grid shape {hue_saturation.shape}"
        )

    relaxed = np.asarray(
        config.relaxed_skin_filter(hue_saturation.hue, hue_saturation.saturation),
        dtype=bool,
    )
    grown = mask.astype(bool, copy=True)

    for _ in range(passes):
        # Dilation by the cross kernel marks the 4-neighbourhood of every mask pixel
        neighbours = cv2.dilate(grown.astype(np.uint8), _CROSS_KERNEL).astype(bool)
        grown |= neighbours & relaxed

    return grown


def build_skin_mask(
    hue_saturation: HueSaturationGrid, config: DetectionConfig = DEFAULT_CONFIG
) -> np.ndarray:
    """Strict seed mask grown by config.relaxed_expansions relaxed passes."""
    strict = build_strict_mask(hue_saturation, config)
    return relax_mask(strict, hue_saturation, config)
