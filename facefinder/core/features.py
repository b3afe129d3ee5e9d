"""
Feature extraction for face / non-face classification.

Candidate crops are converted to grayscale, resized to a fixed sample size and
split into overlapping blocks. Each block is contrast normalised on its own so
that a face lit from one side produces much the same features as an evenly
lit one.
"""

from dataclasses import dataclass

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from skimage.feature import hog

from facefinder.config import DEFAULT_CONFIG, DetectionConfig, FeatureMode
from facefinder.core.errors import InvalidArgument
from facefinder.core.models import Region
from facefinder.utils.image_utils import crop_region, resize_to, to_grayscale


@dataclass(frozen=True)
class BlockConfig:
    """Block layout for normalisation."""
    block_size: int = 8
    block_overlap: int = 4
    spread_floor: float = 1.0  # Minimum std, keeps flat blocks from blowing up

    def __post_init__(self):
        if self.block_size <= 0:
            raise InvalidArgument("block_size must be greater than zero")
        if not 0 <= self.block_overlap < self.block_size:
            raise InvalidArgument("block_overlap must be in [0, block_size)")
        if self.spread_floor <= 0:
            raise InvalidArgument("spread_floor must be greater than zero")

    @property
    def stride(self) -> int:
        return self.block_size - self.block_overlap

    @classmethod
    def from_config(cls, config: DetectionConfig) -> "BlockConfig":
        return cls(
            block_size=config.block_size,
            block_overlap=config.block_overlap,
            spread_floor=config.spread_floor,
        )

    def blocks_along(self, length: int) -> int:
        """Number of blocks fitting a dimension, or 0 if it doesn't tile exactly."""
        if length < self.block_size or (length - self.block_size) % self.stride:
            return 0
        return (length - self.block_size) // self.stride + 1


def _validate_crop(crop: np.ndarray | None) -> np.ndarray:
    if crop is None:
        raise InvalidArgument("Crop must not be None")
    crop = np.asarray(crop)
    if crop.ndim != 2 or crop.size == 0:
        raise InvalidArgument(f"Expected a non-empty 2-D grayscale crop, got shape {crop.shape}")
    return crop.astype(np.float64)


def extract_features(
    crop: np.ndarray, block_config: BlockConfig = BlockConfig()
) -> np.ndarray:
    """
    Block-normalised feature vector for a grayscale crop.

    Args:
        crop: 2-D grayscale array whose dimensions tile exactly with the
            block size and stride
        block_config: Block size, overlap and spread floor

    Returns:
        1-D float64 vector, blocks concatenated in row-major order
    """
    crop = _validate_crop(crop)
    h, w = crop.shape
    if not block_config.blocks_along(h) or not block_config.blocks_along(w):
        raise InvalidArgument(
            f"Crop of {w}x{h} cannot be tiled by {block_config.block_size}px blocks "
            f"with stride {block_config.stride}"
        )

    size, stride = block_config.block_size, block_config.stride
    blocks = sliding_window_view(crop, (size, size))[::stride, ::stride]

    means = blocks.mean(axis=(2, 3), keepdims=True)
    spreads = np.maximum(blocks.std(axis=(2, 3), keepdims=True), block_config.spread_floor)
    normalised = (blocks - means) / spreads

    return normalised.reshape(-1)


def extract_hog_features(
    crop: np.ndarray, cell_size: int = 8, cells_per_block: int = 2
) -> np.ndarray:
    """Histogram-of-gradients vector with overlapping cell-block normalisation."""
    crop = _validate_crop(crop)
    h, w = crop.shape
    minimum = cell_size * cells_per_block
    if h < minimum or w < minimum or h % cell_size or w % cell_size:
        raise InvalidArgument(
            f"Crop of {w}x{h} is incompatible with {cell_size}px cells "
            f"in blocks of {cells_per_block}"
        )

    return hog(
        crop,
        orientations=9,
        pixels_per_cell=(cell_size, cell_size),
        cells_per_block=(cells_per_block, cells_per_block),
        block_norm="L2-Hys",
        feature_vector=True,
    ).astype(np.float64)


def extract_sample(
    image: np.ndarray, region: Region | None, sample_size: tuple[int, int]
) -> np.ndarray:
    """Crop region (whole image when None), convert to grayscale and resize."""
    if image is None or np.asarray(image).size == 0:
        raise InvalidArgument("Image must be a non-empty pixel grid")
    crop = crop_region(image, region) if region is not None else image
    return resize_to(to_grayscale(crop), sample_size).astype(np.float64)


def features_for_sample(
    sample: np.ndarray, config: DetectionConfig = DEFAULT_CONFIG
) -> np.ndarray:
    """Feature vector for a prepared sample using the configured feature mode."""
    if config.feature_mode == FeatureMode.HOG:
        return extract_hog_features(sample, config.block_size, config.hog_cells_per_block)
    return extract_features(sample, BlockConfig.from_config(config))
