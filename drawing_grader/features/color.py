"""Global colour signature."""

from __future__ import annotations

import numpy as np


def channel_means(tensor: np.ndarray) -> np.ndarray:
    """Return the mean R, G and B intensity of a normalised ``(h, w, 3)`` image."""
    rgb = np.asarray(tensor, dtype=np.float64)
    if rgb.ndim == 4:
        rgb = rgb[0]
    if rgb.ndim != 3 or rgb.shape[2] < 3:
        raise ValueError(f"Expected an (h, w, 3) image, got shape {rgb.shape}")
    if rgb.shape[0] == 0 or rgb.shape[1] == 0:
        return np.zeros(3, dtype=np.float64)
    return rgb[:, :, :3].mean(axis=(0, 1))
