import numpy as np

SKIN_RGB = (220, 170, 140)
BACKGROUND_RGB = (40, 80, 200)


def make_image(width, height, color=BACKGROUND_RGB):
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[:, :] = color
    return image


def paint(image, x, y, width, height, color=SKIN_RGB):
    image[y:y + height, x:x + width] = color
    return image


def pattern_crop(kind, contrast, brightness, size=64):
    """
    Synthetic grayscale crop. "face" has two dark eye blocks above a mouth bar,
    "other" has vertical stripes. Contrast/brightness vary the lighting only.
    """
    base = np.zeros((size, size), dtype=np.float64)
    if kind == "face":
        base[16:24, 12:24] = 1.0
        base[16:24, 40:52] = 1.0
        base[44:48, 20:44] = 1.0
    else:
        base[:, ::8] = 1.0
        base[:, 1::8] = 1.0
    return base * contrast + brightness
