"""Edge-strength features computed with Sobel gradients."""

from __future__ import annotations

import cv2
import numpy as np

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)

_SOBEL_X = np.array([[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]], dtype=np.float64)
_SOBEL_Y = np.array([[-1, -2, -1], [0, 0, 0], [1, 2, 1]], dtype=np.float64)


def luma(rgb: np.ndarray) -> np.ndarray:
    """Return the grayscale image ``0.299 R + 0.587 G + 0.114 B``."""
    array = np.asarray(rgb, dtype=np.float64)
    return array[..., :3] @ LUMA_WEIGHTS


def sobel_magnitude(gray: np.ndarray) -> np.ndarray:
    """Return ``sqrt(gx^2 + gy^2)`` with zero padding, same size as *gray*."""
    source = np.asarray(gray, dtype=np.float64)
    gx = cv2.filter2D(source, cv2.CV_64F, _SOBEL_X, borderType=cv2.BORDER_CONSTANT)
    gy = cv2.filter2D(source, cv2.CV_64F, _SOBEL_Y, borderType=cv2.BORDER_CONSTANT)
    return np.sqrt(gx * gx + gy * gy)


def edge_magnitude(tensor: np.ndarray) -> float:
    """Return the mean Sobel magnitude of a normalised ``(h, w, 3)`` image."""
    rgb = np.asarray(tensor, dtype=np.float64)
    if rgb.ndim == 4:
        rgb = rgb[0]
    if rgb.size == 0:
        return 0.0
    return float(sobel_magnitude(luma(rgb)).mean())
