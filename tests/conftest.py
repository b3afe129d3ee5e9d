import numpy as np
import pytest

from facefinder.config import DetectionConfig
from tests.helpers import make_image, paint, pattern_crop


@pytest.fixture
def skin_patch_image():
    """120x120 blue image with a 50x60 skin-toned patch at (40, 30)."""
    return paint(make_image(120, 120), 40, 30, 50, 60)


@pytest.fixture
def small_training_config():
    return DetectionConfig(minimum_training_examples=10)


@pytest.fixture
def labelled_crops():
    rng = np.random.default_rng(7)
    samples = []
    for _ in range(12):
        samples.append((pattern_crop("face", rng.uniform(40, 120), rng.uniform(10, 100)), True))
        samples.append((pattern_crop("other", rng.uniform(40, 120), rng.uniform(10, 100)), False))
    return samples
