"""Embedding providers turning normalised pixel tensors into feature vectors."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import cv2
import numpy as np

from ..errors import ConfigError, ExtractionError
from .edges import luma


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Anything that maps a ``(1, size, size, 3)`` float tensor in [0, 1] to a vector.

    ``input_size`` is the square resolution the provider expects. ``infer`` may
    raise any exception; feature extraction reports it as an inference failure.
    """

    input_size: int

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        ...


class HogEmbeddingProvider:
    """Histogram-of-oriented-gradients descriptor computed with OpenCV.

    A deterministic stand-in for a pretrained network: no weights to download,
    and the output length depends only on ``input_size`` and the cell layout.
    """

    def __init__(
        self,
        input_size: int = 224,
        cell_size: int = 16,
        block_cells: int = 2,
        bins: int = 9,
    ) -> None:
        block = cell_size * block_cells
        if input_size < block or (input_size - block) % cell_size:
            raise ConfigError(
                f"input_size {input_size} is not compatible with {block}px blocks "
                f"and {cell_size}px strides"
            )
        self.input_size = input_size
        try:
            self._descriptor = cv2.HOGDescriptor(
                (input_size, input_size),
                (block, block),
                (cell_size, cell_size),
                (cell_size, cell_size),
                bins,
            )
        except (AttributeError, cv2.error) as exc:
            raise ExtractionError(
                f"OpenCV {cv2.__version__} cannot build a HOG descriptor: {exc}"
            ) from exc

    @property
    def dimension(self) -> int:
        return int(self._descriptor.getDescriptorSize())

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        batch = np.asarray(tensor, dtype=np.float32)
        if batch.shape != (1, self.input_size, self.input_size, 3):
            raise ValueError(
                f"Expected tensor of shape (1, {self.input_size}, {self.input_size}, 3), "
                f"got {batch.shape}"
            )
        gray = np.clip(np.rint(luma(batch[0]) * 255.0), 0, 255).astype(np.uint8)
        descriptor = self._descriptor.compute(gray)
        return np.asarray(descriptor, dtype=np.float64).ravel()
