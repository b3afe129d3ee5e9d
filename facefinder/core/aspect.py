"""
Reshape candidate regions to the aspect ratio of classifier samples.
"""

import math

from facefinder.core.errors import InvalidArgument
from facefinder.core.models import Region


def adjust_aspect(
    region: Region, image_size: tuple[int, int], target_ratio: float
) -> Region:
    """
    Grow a region towards ``target_ratio`` (width / height).

    A region narrower than the target gains width, a wider one gains height,
    split evenly between both sides (odd pixel on the right/bottom). Each side
    is clamped to the image on its own; growth cut off at one edge is not
    moved to the other, so near the border the result only approximates the
    target ratio.

    Args:
        region: Filtered face region inside the image
        image_size: (width, height) of the source image
        target_ratio: Desired width / height, strictly positive

    Returns:
        Adjusted region, never extending past the image bounds
    """
    if target_ratio is None or not math.isfinite(target_ratio) or target_ratio <= 0:
        raise InvalidArgument(f"target_ratio must be greater than zero, got {target_ratio}")
    if region.width <= 0 or region.height <= 0:
        raise InvalidArgument(f"Region dimensions must be positive, got {region}")
    if not region.lies_within(image_size):
        raise InvalidArgument(f"Region {region} lies outside image of size {image_size}")

    image_width, image_height = image_size
    left, top, right, bottom = region.left, region.top, region.right, region.bottom

    if region.aspect_ratio < target_ratio:
        # Narrower than wanted, widen
        ideal_width = int(region.height * target_ratio + 0.5)
        deficit = max(0, ideal_width - region.width)
        left = max(0, left - deficit // 2)
        right = min(image_width, right + deficit - deficit // 2)
    elif region.aspect_ratio > target_ratio:
        # Wider than wanted, heighten
        ideal_height = int(region.width / target_ratio + 0.5)
        deficit = max(0, ideal_height - region.height)
        top = max(0, top - deficit // 2)
        bottom = min(image_height, bottom + deficit - deficit // 2)

    return Region.from_ltrb(left, top, right, bottom)
