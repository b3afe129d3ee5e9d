"""
Colour space conversion for skin detection.

RGB values are mapped through a logarithmic luminance curve into log-opponent
channels (I, Rg, By). Hue and saturation are then taken over the Rg/By plane,
where skin tones fall into far tighter bands than in raw RGB, and a texture
amplitude map is estimated from the intensity channel.

Reference: Fleck, Forsyth & Bregler, "Finding Naked People" (1996).
"""

import cv2
import numpy as np
from scipy import ndimage

from facefinder.config import DEFAULT_CONFIG, DetectionConfig
from facefinder.core.errors import InvalidArgument
from facefinder.core.models import HueSaturationGrid, IRgByGrid


def _log_luminance(channel: np.ndarray) -> np.ndarray:
    return 105.0 * np.log10(channel.astype(np.float64) + 1.0)


def validate_pixels(pixels: np.ndarray | None) -> np.ndarray:
    if pixels is None:
        raise InvalidArgument("Pixel grid must not be None")
    pixels = np.asarray(pixels)
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise InvalidArgument(f"Expected an (height, width, 3) RGB grid, got shape {pixels.shape}")
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise InvalidArgument("Pixel grid is empty")
    return pixels


def smoothing_scale(shape: tuple[int, int], config: DetectionConfig = DEFAULT_CONFIG) -> int:
    """Scale factor for smoothing windows, so larger images smooth over more pixels."""
    height, width = shape
    return max(1, int(round((width + height) / config.smoothing_scale_divisor)))


def scaled_median(grid: np.ndarray, multiplier: int, scale: int) -> np.ndarray:
    """
    Median filter with a window of roughly ``multiplier * scale`` pixels.

    For scale > 1 the grid is first shrunk by ``scale`` (area averaging), the
    median runs there with a ``multiplier`` wide window and the result is
    interpolated back. Cost then stays flat as images grow instead of rising
    with the square of the window.
    """
    if scale == 1:
        return ndimage.median_filter(grid, size=multiplier, mode="reflect")

    height, width = grid.shape
    coarse_size = (-(-width // scale), -(-height // scale))
    coarse = cv2.resize(np.ascontiguousarray(grid), coarse_size, interpolation=cv2.INTER_AREA)
    filtered = ndimage.median_filter(coarse, size=multiplier, mode="reflect")
    return cv2.resize(filtered, (width, height), interpolation=cv2.INTER_LINEAR)


def to_irgby(pixels: np.ndarray) -> IRgByGrid:
    """
    Convert an RGB grid into log-opponent channels.

    Args:
        pixels: uint8 array of shape (height, width, 3), RGB order

    Returns:
        IRgByGrid with float64 rg, by and i arrays of shape (height, width)
    """
    pixels = validate_pixels(pixels)

    lr = _log_luminance(pixels[:, :, 0])
    lg = _log_luminance(pixels[:, :, 1])
    lb = _log_luminance(pixels[:, :, 2])

    return IRgByGrid(
        rg=lr - lg,
        by=lb - (lg + lr) / 2,
        i=(lr + lb + lg) / 3,
    )


def texture_amplitude(
    intensity: np.ndarray, config: DetectionConfig = DEFAULT_CONFIG
) -> np.ndarray:
    """
    Estimate local texture from the intensity channel.

    The first median pass gives a smoothed intensity; the absolute residual
    against it is median filtered again with a wider window, which damps
    isolated noise while keeping genuine edges such as hairlines.
    """
    scale = smoothing_scale(intensity.shape, config)

    smoothed = scaled_median(intensity, config.texture_first_pass_multiplier, scale)
    # Residual is taken at full resolution
    residual = np.abs(intensity - smoothed)
    amplitude = scaled_median(residual, config.texture_second_pass_multiplier, scale)

    # Median and interpolation of non-negative values are non-negative; clip guards float noise
    return np.clip(amplitude, 0.0, None)


def to_hue_saturation(
    irgby: IRgByGrid, config: DetectionConfig = DEFAULT_CONFIG
) -> HueSaturationGrid:
    """Derive hue (degrees), saturation and texture amplitude from IRgBy channels."""
    if irgby is None:
        raise InvalidArgument("IRgBy grid must not be None")
    if irgby.i.size == 0:
        raise InvalidArgument("IRgBy grid is empty")

    scale = smoothing_scale(irgby.shape, config)
    rg = scaled_median(irgby.rg, config.rgby_smoothing_multiplier, scale)
    by = scaled_median(irgby.by, config.rgby_smoothing_multiplier, scale)

    return HueSaturationGrid(
        hue=np.degrees(np.arctan2(rg, by)),
        saturation=np.hypot(rg, by),
        texture_amplitude=texture_amplitude(irgby.i, config),
    )


def convert_color_space(
    pixels: np.ndarray, config: DetectionConfig = DEFAULT_CONFIG
) -> HueSaturationGrid:
    """RGB grid -> per-pixel hue, saturation and texture amplitude."""
    return to_hue_saturation(to_irgby(pixels), config)
