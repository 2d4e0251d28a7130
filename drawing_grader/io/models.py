"""Data models shared across the grading pipeline."""

from __future__ import annotations

import base64
from dataclasses import asdict, dataclass, field
from io import BytesIO
from typing import Any, Dict, Optional, Tuple

import numpy as np
from PIL import Image

STYLE_LABELS: Tuple[str, ...] = ("cartoon", "sketch", "realistic", "abstract")


def _readonly_rgba(pixels: Any) -> np.ndarray:
    array = np.asarray(pixels)
    if array.ndim != 3 or array.shape[2] != 4:
        raise ValueError(f"Expected an RGBA grid of shape (h, w, 4), got {array.shape}")
    if array.shape[0] == 0 or array.shape[1] == 0:
        raise ValueError("Pixel grids must be at least 1x1")
    array = np.array(array, dtype=np.uint8, copy=True)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, slots=True, eq=False)
class ImageSample:
    """An immutable RGBA pixel grid, one byte per channel."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "pixels", _readonly_rgba(self.pixels))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @classmethod
    def from_pil(cls, img: Image.Image) -> "ImageSample":
        rgba = img.convert("RGBA") if img.mode != "RGBA" else img
        return cls(np.asarray(rgba))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels))


@dataclass(frozen=True, slots=True, eq=False)
class FeatureSet:
    """Features extracted from one image for one comparison."""

    embedding: np.ndarray
    color_histogram: np.ndarray
    edge_magnitude: np.ndarray

    def __post_init__(self) -> None:
        for name in ("embedding", "color_histogram", "edge_magnitude"):
            array = np.array(getattr(self, name), dtype=np.float64, copy=True).ravel()
            array.setflags(write=False)
            object.__setattr__(self, name, array)
        if self.color_histogram.shape != (3,):
            raise ValueError("color_histogram must hold exactly three channel means")
        if self.edge_magnitude.shape != (1,):
            raise ValueError("edge_magnitude must hold a single value")


@dataclass(frozen=True, slots=True)
class SimilarityScores:
    """The three similarity metrics of a comparison, each in [0, 1]."""

    cosine: float
    structural: float
    statistical: float

    def __post_init__(self) -> None:
        for name in ("cosine", "structural", "statistical"):
            object.__setattr__(self, name, unit_interval(getattr(self, name)))

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class StyleResult:
    """Detected drawing style and the confidence attached to the rule that fired."""

    label: str
    confidence: float

    def __post_init__(self) -> None:
        if self.label not in STYLE_LABELS:
            raise ValueError(f"Unknown style label: {self.label!r}")
        object.__setattr__(self, "confidence", unit_interval(self.confidence))


@dataclass(frozen=True, slots=True)
class GradeResult:
    """Terminal output of one comparison."""

    percentage: int
    grade: str
    color: str
    style_label: str
    style_confidence: float
    feedback: Tuple[str, ...] = field(default_factory=tuple)
    ssim_percentage: int = 0

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["feedback"] = list(self.feedback)
        return payload


@dataclass(frozen=True, slots=True, eq=False)
class HeatmapImage:
    """Per-pixel difference visualisation encoded as RGBA."""

    pixels: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "pixels", _readonly_rgba(self.pixels))

    @property
    def size(self) -> Tuple[int, int]:
        return int(self.pixels.shape[1]), int(self.pixels.shape[0])

    def to_pil(self) -> Image.Image:
        return Image.fromarray(np.array(self.pixels))

    def to_png_bytes(self) -> bytes:
        buffer = BytesIO()
        image = self.to_pil()
        try:
            image.save(buffer, format="PNG")
        finally:
            image.close()
        return buffer.getvalue()

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.to_png_bytes()).decode("ascii")
        return f"data:image/png;base64,{encoded}"


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """Everything produced by grading one submission against a reference."""

    grade: GradeResult
    scores: SimilarityScores
    style: StyleResult
    heatmap: Optional[HeatmapImage] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "grade": self.grade.to_dict(),
            "scores": self.scores.as_dict(),
            "style": {"label": self.style.label, "confidence": self.style.confidence},
        }


def unit_interval(value: float) -> float:
    """Return *value* clamped into [0, 1]; non-finite values collapse to 0."""
    number = float(value)
    if not np.isfinite(number):
        return 0.0
    return float(max(0.0, min(1.0, number)))
