"""
Geometric filtering of skin regions.

Candidate counts per image are small (tens), so overlap suppression is a plain
pairwise comparison.
"""

import math
from typing import Iterable

from facefinder.config import DEFAULT_CONFIG, DetectionConfig
from facefinder.core.errors import InvalidArgument
from facefinder.core.models import Region


def _require_positive(region) -> None:
    if region.width <= 0 or region.height <= 0:
        raise InvalidArgument(
            f"Encountered invalid region {region} (both dimensions must be positive)"
        )


def filter_by_aspect_ratio(regions: Iterable[Region], max_ratio: float) -> list[Region]:
    """Drop regions whose longest side exceeds max_ratio times the shortest."""
    allowed = []
    for region in regions:
        _require_positive(region)
        if max(region.width, region.height) / min(region.width, region.height) > max_ratio:
            continue
        allowed.append(region)
    return allowed


def suppress_overlapping(
    regions: list[Region],
    area_multiple: float = 2.0,
    overlap_fraction: float = 0.75,
) -> list[Region]:
    """
    Remove regions made redundant by a much larger, nearly containing region.

    A region is dropped when another region has more than ``area_multiple``
    times its area and covers more than ``overlap_fraction`` of it. This is
    usually a small spurious match inside a correctly sized face match.
    """
    kept = []
    for region in regions:
        area = region.area
        obsolete = any(
            other.area > area * area_multiple
            and other.intersection_area(region) > overlap_fraction * area
            for other in regions
        )
        if not obsolete:
            kept.append(region)
    return kept


def _grow(start: int, length: int, fraction: float, bound: int) -> tuple[int, int]:
    # Total growth rounds half up; the odd pixel goes on the far side
    growth = int(length * fraction + 0.5)
    before = growth // 2
    after = growth - before
    return max(0, start - before), min(bound, start + length + after)


def expand_regions(
    regions: Iterable[Region],
    fraction: float,
    image_size: tuple[int, int],
    max_ratio: float | None = None,
) -> list[Region]:
    """
    Grow each region by ``fraction`` of its own size, clamped to the image.

    Args:
        regions: Regions to expand
        fraction: Growth as a fraction of width/height (0.1 = 10%)
        image_size: (width, height) of the source image
        max_ratio: When set, a region whose expanded rectangle would exceed
            this longest/shortest side ratio is returned unexpanded. Either
            clamping at an image edge or rounding of the growth on a thin
            region (7x3 grows to 8x3) can push it over

    Returns:
        Expanded regions, in input order
    """
    width, height = image_size
    expanded = []
    for region in regions:
        left, right = _grow(region.x, region.width, fraction, width)
        top, bottom = _grow(region.y, region.height, fraction, height)
        grown = Region.from_ltrb(left, top, right, bottom)
        if max_ratio is not None and grown.longest_side_multiple > max_ratio:
            grown = region
        expanded.append(grown)
    return expanded


def scale_regions(
    regions: Iterable[Region], scale: float, image_size: tuple[int, int]
) -> list[Region]:
    """
    Map regions found on a resized copy back onto the full image.

    ``scale`` is the factor the copy was resized by. Edges are widened outwards
    (floor for left/top, ceiling for right/bottom) and clamped to image_size.
    """
    if scale == 1.0:
        return list(regions)
    width, height = image_size
    return [
        Region.from_ltrb(
            max(0, int(region.left / scale)),
            max(0, int(region.top / scale)),
            min(width, math.ceil(region.right / scale)),
            min(height, math.ceil(region.bottom / scale)),
        )
        for region in regions
    ]


def filter_regions(
    regions: Iterable[Region],
    image_size: tuple[int, int],
    config: DetectionConfig = DEFAULT_CONFIG,
) -> list[Region]:
    """Aspect-ratio rejection, overlap suppression, then margin expansion."""
    allowed = filter_by_aspect_ratio(regions, config.aspect_ratio_reject_threshold)
    kept = suppress_overlapping(
        allowed,
        area_multiple=config.overlap_area_multiple,
        overlap_fraction=config.overlap_suppress_threshold,
    )
    return expand_regions(
        kept,
        config.region_expand_fraction,
        image_size,
        max_ratio=config.aspect_ratio_reject_threshold,
    )
