"""Feature extraction for one image."""

from __future__ import annotations

import logging

import numpy as np

from ..errors import ExtractionError, InferenceError
from ..io.models import FeatureSet, ImageSample
from ..sample.loader import resample
from .color import channel_means
from .edges import edge_magnitude
from .embedding import EmbeddingProvider

logger = logging.getLogger(__name__)


def to_tensor(image: ImageSample, size: int) -> np.ndarray:
    """Resample *image* (nearest neighbour) and return a ``(1, size, size, 3)`` tensor in [0, 1]."""
    try:
        resized = resample(image, size, size, smooth=False)
    except (ValueError, OSError) as exc:
        raise ExtractionError(f"Cannot resample image to {size}x{size}: {exc}") from exc
    rgb = resized.pixels[:, :, :3].astype(np.float32) / 255.0
    return rgb[np.newaxis, ...]


def extract_features(image: ImageSample, provider: EmbeddingProvider) -> FeatureSet:
    """Return the embedding, colour signature and edge magnitude of *image*.

    The image is resampled to ``provider.input_size``; any exception raised by
    the provider is re-raised as :class:`InferenceError`.
    """
    size = int(getattr(provider, "input_size", 0) or 0)
    if size <= 0:
        raise ExtractionError("Embedding provider does not declare a positive input_size")

    tensor = to_tensor(image, size)
    try:
        raw = provider.infer(tensor)
    except Exception as exc:
        raise InferenceError(f"Embedding provider failed: {exc}") from exc

    try:
        embedding = np.asarray(raw, dtype=np.float64).ravel()
    except (TypeError, ValueError) as exc:
        raise InferenceError(f"Embedding provider returned non-numeric output: {exc}") from exc
    if embedding.size == 0:
        raise InferenceError("Embedding provider returned an empty vector")
    if not np.all(np.isfinite(embedding)):
        raise InferenceError("Embedding provider returned non-finite values")

    features = FeatureSet(
        embedding=embedding,
        color_histogram=channel_means(tensor),
        edge_magnitude=np.array([edge_magnitude(tensor)]),
    )
    logger.debug(
        "Extracted %d-dim embedding, colour=%s, edges=%.4f",
        features.embedding.size,
        np.round(features.color_histogram, 4).tolist(),
        float(features.edge_magnitude[0]),
    )
    return features
