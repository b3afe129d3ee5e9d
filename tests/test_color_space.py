import math
import time

import numpy as np
import pytest

from facefinder.config import DetectionConfig
from facefinder.core.color_space import (
    convert_color_space,
    scaled_median,
    smoothing_scale,
    texture_amplitude,
    to_irgby,
)
from facefinder.core.errors import InvalidArgument
from tests.helpers import SKIN_RGB, make_image


def L(x):
    return 105 * math.log10(x + 1)


def test_irgby_matches_log_opponent_formula():
    r, g, b = SKIN_RGB
    irgby = to_irgby(make_image(3, 2, SKIN_RGB))

    assert irgby.rg.shape == (2, 3)
    assert irgby.rg[0, 0] == pytest.approx(L(r) - L(g))
    assert irgby.by[0, 0] == pytest.approx(L(b) - (L(g) + L(r)) / 2)
    assert irgby.i[0, 0] == pytest.approx((L(r) + L(b) + L(g)) / 3)


def test_uniform_skin_tone_hue_and_saturation():
    r, g, b = SKIN_RGB
    rg = L(r) - L(g)
    by = L(b) - (L(g) + L(r)) / 2

    grid = convert_color_space(make_image(20, 20, SKIN_RGB))

    assert np.allclose(grid.hue, math.degrees(math.atan2(rg, by)))
    assert np.allclose(grid.saturation, math.hypot(rg, by))
    assert np.allclose(grid.texture_amplitude, 0.0)


@pytest.mark.parametrize("shape", [(1, 1), (4, 4), (17, 31), (60, 45)])
def test_output_shape_matches_input_and_texture_non_negative(shape):
    rng = np.random.default_rng(1)
    pixels = rng.integers(0, 256, size=shape + (3,), dtype=np.uint8)

    grid = convert_color_space(pixels)

    assert grid.hue.shape == shape
    assert grid.saturation.shape == shape
    assert grid.texture_amplitude.shape == shape
    assert (grid.texture_amplitude >= 0).all()


def test_texture_is_higher_on_noise_than_flat_area():
    rng = np.random.default_rng(2)
    intensity = np.full((40, 80), 100.0)
    intensity[:, 40:] += rng.normal(0, 30, size=(40, 40))

    amplitude = texture_amplitude(intensity)

    assert amplitude[:, :30].max() == 0
    assert amplitude[:, 50:].mean() > 5


def test_smoothing_scale_grows_with_image_size():
    config = DetectionConfig()
    assert smoothing_scale((4, 4), config) == 1
    assert smoothing_scale((480, 640), config) == 4


@pytest.mark.parametrize(
    "pixels",
    [
        None,
        np.zeros((0, 5, 3), dtype=np.uint8),
        np.zeros((5, 0, 3), dtype=np.uint8),
        np.zeros((5, 5), dtype=np.uint8),
        np.zeros((5, 5, 4), dtype=np.uint8),
    ],
)
def test_rejects_missing_or_malformed_grids(pixels):
    with pytest.raises(InvalidArgument):
        convert_color_space(pixels)


def test_photo_sized_image_converts_quickly():
    rng = np.random.default_rng(3)
    pixels = rng.integers(0, 256, size=(768, 1024, 3), dtype=np.uint8)

    start = time.perf_counter()
    grid = convert_color_space(pixels)
    elapsed = time.perf_counter() - start

    assert grid.hue.shape == (768, 1024)
    assert (grid.texture_amplitude >= 0).all()
    assert elapsed < 5.0


def test_large_uniform_image_matches_small_one():
    small = convert_color_space(make_image(20, 20, SKIN_RGB))
    large = convert_color_space(make_image(1024, 768, SKIN_RGB))

    assert np.allclose(large.hue, small.hue[0, 0])
    assert np.allclose(large.saturation, small.saturation[0, 0])
    assert np.allclose(large.texture_amplitude, 0.0)


def test_texture_on_large_grid_still_separates_noise_from_flat():
    rng = np.random.default_rng(4)
    intensity = np.full((768, 1024), 100.0)
    intensity[:, 512:] += rng.normal(0, 30, size=(768, 512))

    amplitude = texture_amplitude(intensity)

    assert amplitude.shape == intensity.shape
    assert amplitude[:, :400].max() < 1e-6
    assert amplitude[:, 600:].mean() > 5


def test_scaled_median_keeps_shape():
    grid = np.arange(35 * 47, dtype=np.float64).reshape(35, 47)
    assert scaled_median(grid, 4, 3).shape == (35, 47)
    assert np.array_equal(scaled_median(grid, 1, 1), grid)
