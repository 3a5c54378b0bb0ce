from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np
from PIL import Image


@dataclass(frozen=True)
class PixelStatistics:
    brightness: float
    contrast: float
    blur_variance: float


def _to_luma_array(pixels: np.ndarray) -> np.ndarray:
    rgb = np.asarray(pixels, dtype=np.float64)
    if rgb.ndim == 2:
        return rgb
    # ITU-R BT.709 luma; any alpha channel is ignored.
    return 0.2126 * rgb[:, :, 0] + 0.7152 * rgb[:, :, 1] + 0.0722 * rgb[:, :, 2]


def laplacian_variance(luma: np.ndarray) -> float:
    """Variance of the 4-neighbour Laplacian over interior pixels.

    Images narrower or shorter than three pixels have no interior and score 0.
    """
    height, width = luma.shape[:2]
    if height < 3 or width < 3:
        return 0.0
    center = luma[1:-1, 1:-1]
    lap = (
        4.0 * center
        - luma[1:-1, :-2]
        - luma[1:-1, 2:]
        - luma[:-2, 1:-1]
        - luma[2:, 1:-1]
    )
    return float(np.var(lap))


def pixel_statistics(pixels: np.ndarray) -> PixelStatistics:
    luma = _to_luma_array(pixels)
    if luma.size == 0:
        return PixelStatistics(brightness=0.0, contrast=0.0, blur_variance=0.0)

    brightness = float(np.mean(luma))
    # Population standard deviation around the mean.
    contrast = float(np.std(luma))

    return PixelStatistics(
        brightness=brightness,
        contrast=contrast,
        blur_variance=laplacian_variance(luma),
    )


def estimate_quality(image: Union[Image.Image, np.ndarray]) -> PixelStatistics:
    if isinstance(image, Image.Image):
        image = np.asarray(image.convert("RGB"))
    return pixel_statistics(image)
