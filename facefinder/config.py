"""
Configuration parameters for skin-colour face detection.
Defaults follow the Fleck/Forsyth skin filter as tweaked for face photographs.
"""

import math
import os
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Callable

import numpy as np
from dotenv import load_dotenv

from facefinder.core.errors import InvalidArgument


class FeatureMode(Enum):
    """Feature extraction used ahead of the classifier."""
    BLOCKS = "blocks"  # Overlapping block contrast normalisation
    HOG = "hog"  # Gradient histograms with overlapping cell-block normalisation


def strict_skin_filter(
    hue: np.ndarray, saturation: np.ndarray, texture_amplitude: np.ndarray
) -> np.ndarray:
    """First-pass skin test on hue, saturation and texture amplitude."""
    bands = (
        # Minimum hue lowered slightly to allow some lighter tones
        ((hue >= 105) & (hue <= 120) & (saturation >= 10) & (saturation <= 60))
        | ((hue >= 120) & (hue <= 160) & (saturation >= 10) & (saturation <= 60))
        # Narrow saturation so strong yellow tones aren't readily accepted
        | ((hue >= 160) & (hue <= 180) & (saturation >= 30) & (saturation <= 40))
    )
    # Wood and fabric can be skin coloured but are far more textured
    return bands & (texture_amplitude <= 9)


def relaxed_skin_filter(hue: np.ndarray, saturation: np.ndarray) -> np.ndarray:
    """Looser test used when growing the mask into shaded edge pixels."""
    return (hue >= 110) & (hue <= 180) & (saturation >= 0) & (saturation <= 180)


@dataclass(frozen=True)
class DetectionConfig:
    """Tunable detection and classification parameters."""

    # Skin mask
    skin_filter: Callable[..., np.ndarray] = field(default=strict_skin_filter, repr=False)
    relaxed_skin_filter: Callable[..., np.ndarray] = field(default=relaxed_skin_filter, repr=False)
    relaxed_expansions: int = 5

    # Smoothing windows are multiplier * scale, scale = (w + h) / divisor
    rgby_smoothing_multiplier: int = 2
    texture_first_pass_multiplier: int = 8
    texture_second_pass_multiplier: int = 12
    smoothing_scale_divisor: int = 320

    # Stages up to region extraction run on a copy no larger than this (longest side)
    max_working_dimension: int = 640

    # Region filtering
    aspect_ratio_reject_threshold: float = 2.4
    overlap_area_multiple: float = 2.0
    overlap_suppress_threshold: float = 0.75
    region_expand_fraction: float = 0.1

    # Classifier samples
    sample_width: int = 64
    sample_height: int = 64
    feature_mode: FeatureMode = FeatureMode.BLOCKS
    block_size: int = 8
    block_overlap: int = 4
    spread_floor: float = 1.0
    hog_cells_per_block: int = 2

    # Training
    minimum_training_examples: int = 2000
    svm_c: float = 1.0
    svm_max_iter: int = 5000

    # Batch processing
    max_workers: int = 4

    def __post_init__(self):
        if not callable(self.skin_filter) or not callable(self.relaxed_skin_filter):
            raise InvalidArgument("Skin filters must be callable")
        if self.relaxed_expansions < 0:
            raise InvalidArgument("relaxed_expansions must not be negative")
        for name in (
            "rgby_smoothing_multiplier",
            "texture_first_pass_multiplier",
            "texture_second_pass_multiplier",
            "smoothing_scale_divisor",
            "max_working_dimension",
            "sample_width",
            "sample_height",
            "block_size",
            "hog_cells_per_block",
            "svm_max_iter",
            "max_workers",
        ):
            if getattr(self, name) <= 0:
                raise InvalidArgument(f"{name} must be greater than zero")
        if not self.aspect_ratio_reject_threshold >= 1:
            raise InvalidArgument("aspect_ratio_reject_threshold must be at least 1")
        if self.overlap_area_multiple <= 0 or not 0 <= self.overlap_suppress_threshold <= 1:
            raise InvalidArgument("Overlap suppression thresholds are out of range")
        if self.region_expand_fraction < 0:
            raise InvalidArgument("region_expand_fraction must not be negative")
        if not 0 <= self.block_overlap < self.block_size:
            raise InvalidArgument("block_overlap must be in [0, block_size)")
        if not (self.spread_floor > 0 and math.isfinite(self.spread_floor)):
            raise InvalidArgument("spread_floor must be a positive number")
        if self.minimum_training_examples < 0 or self.svm_c <= 0:
            raise InvalidArgument("Training parameters are out of range")

    @property
    def sample_size(self) -> tuple[int, int]:
        """(width, height) that candidate crops are resized to."""
        return self.sample_width, self.sample_height

    @property
    def sample_aspect_ratio(self) -> float:
        return self.sample_width / self.sample_height

    @classmethod
    def from_env(cls, prefix: str = "FACEFINDER_", **overrides) -> "DetectionConfig":
        """
        Build a config from environment variables (a .env file is loaded first).

        Each numeric field reads ``<prefix><FIELD_NAME>``; ``feature_mode`` reads
        its enum value ("blocks" or "hog"). Keyword overrides win over the
        environment.
        """
        load_dotenv()

        values = {}
        for f in fields(cls):
            raw = os.environ.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            if f.name == "feature_mode":
                values[f.name] = FeatureMode(raw.strip().lower())
            elif isinstance(f.default, bool) or callable(f.default):
                continue
            elif isinstance(f.default, int):
                values[f.name] = int(raw)
            elif isinstance(f.default, float):
                values[f.name] = float(raw)

        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> dict:
        """Numeric tunables for reporting (filters are omitted)."""
        return {
            f.name: (getattr(self, f.name).value if f.name == "feature_mode" else getattr(self, f.name))
            for f in fields(self)
            if not callable(getattr(self, f.name))
        }


# Default configuration instance
DEFAULT_CONFIG = DetectionConfig()
