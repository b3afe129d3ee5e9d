import io

import numpy as np
import pytest
from PIL import Image

from facefinder.core.errors import InvalidArgument
from facefinder.core.models import Region
from facefinder.utils.image_utils import (
    crop_region,
    load_image_from_bytes,
    load_image_from_path,
    resize_image,
    to_grayscale,
)
from tests.helpers import SKIN_RGB, make_image, paint


def encode(image, fmt="PNG"):
    buffer = io.BytesIO()
    Image.fromarray(image).save(buffer, format=fmt)
    return buffer.getvalue()


def test_load_from_bytes_keeps_rgb_order():
    image = paint(make_image(20, 10), 0, 0, 5, 5)
    loaded = load_image_from_bytes(encode(image))

    assert loaded.shape == (10, 20, 3)
    assert tuple(loaded[0, 0]) == SKIN_RGB


def test_load_palette_gif_converts_to_rgb():
    image = paint(make_image(16, 16), 4, 4, 8, 8)
    loaded = load_image_from_bytes(encode(image, "GIF"))
    assert loaded.shape == (16, 16, 3)


def test_load_from_path(tmp_path):
    image = paint(make_image(12, 8), 0, 0, 3, 3)
    path = tmp_path / "sample.png"
    path.write_bytes(encode(image))

    loaded = load_image_from_path(path)

    assert np.array_equal(loaded, image)
    assert load_image_from_path(tmp_path / "missing.png") is None


def test_resize_image_limits_largest_side():
    resized, scale = resize_image(make_image(400, 200), max_dimension=100)
    assert resized.shape[:2] == (50, 100)
    assert scale == pytest.approx(0.25)


def test_crop_and_grayscale():
    image = paint(make_image(30, 30), 10, 10, 5, 5)
    crop = crop_region(image, Region(10, 10, 5, 5))

    assert crop.shape == (5, 5, 3)
    assert to_grayscale(crop).shape == (5, 5)
    with pytest.raises(InvalidArgument):
        crop_region(image, Region(28, 0, 5, 5))


def test_resize_image_leaves_small_images_alone():
    image = make_image(64, 48)
    resized, scale = resize_image(image, max_dimension=64)
    assert resized is image
    assert scale == 1.0
