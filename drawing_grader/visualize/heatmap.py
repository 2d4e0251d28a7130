"""Per-pixel difference heatmaps."""

from __future__ import annotations

import numpy as np

from ..io.models import HeatmapImage, ImageSample
from ..sample.loader import resample

DEFAULT_SIZE = 256


def difference_intensity(pixels_a: np.ndarray, pixels_b: np.ndarray) -> np.ndarray:
    """Return ``min(255, (|dR| + |dG| + |dB|) / 3)`` for two equally sized RGBA grids."""
    a = np.asarray(pixels_a, dtype=np.float64)[..., :3]
    b = np.asarray(pixels_b, dtype=np.float64)[..., :3]
    if a.shape != b.shape:
        raise ValueError(f"Pixel grids differ in shape: {a.shape} != {b.shape}")
    return np.minimum(255.0, np.abs(a - b).sum(axis=-1) / 3.0)


def colorize(intensity: np.ndarray) -> np.ndarray:
    """Map intensities in [0, 255] to RGBA: redder and more opaque as they grow."""
    i = np.asarray(intensity, dtype=np.float64)
    rgba = np.stack(
        (
            np.minimum(255.0, i * 1.5),
            np.maximum(0.0, 128.0 - i),
            np.maximum(0.0, 255.0 - i * 2.0),
            np.minimum(255.0, i + 50.0),
        ),
        axis=-1,
    )
    return np.rint(rgba).astype(np.uint8)


def difference_heatmap(
    image_a: ImageSample,
    image_b: ImageSample,
    size: int = DEFAULT_SIZE,
) -> HeatmapImage:
    """Resample both images to ``size`` x ``size`` and render their difference."""
    sample_a = resample(image_a, size, size)
    sample_b = resample(image_b, size, size)
    return HeatmapImage(colorize(difference_intensity(sample_a.pixels, sample_b.pixels)))
