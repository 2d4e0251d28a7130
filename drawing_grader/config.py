"""Tunable constants for the scoring pipeline.

Every weight, exponent, threshold and sample size used while grading lives in
one of the dataclasses below. ``PipelineConfig`` bundles them and can be
loaded from a JSON document. Missing keys keep their defaults, and the
``thresholds``, ``style_adjustments`` and ``weights`` mappings are merged
entry by entry over the default mappings::

    {
        "grading": {"thresholds": {"A+": 95, "A": 85, "B": 75, "C": 65, "D": 55, "F": 0}},
        "similarity": {"ssim_fallback": 0.0},
        "style": {"sketch_confidence": 0.9}
    }
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping

from .errors import ConfigError
from .io.models import STYLE_LABELS

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS: Dict[str, float] = {
    "A+": 90.0,
    "A": 80.0,
    "B": 70.0,
    "C": 60.0,
    "D": 50.0,
    "F": 0.0,
}

DEFAULT_STYLE_ADJUSTMENTS: Dict[str, float] = {
    "cartoon": 1.05,
    "sketch": 1.03,
    "realistic": 1.0,
    "abstract": 0.98,
}

DEFAULT_WEIGHTS: Dict[str, float] = {
    "cosine": 0.5,
    "structural": 0.35,
    "statistical": 0.15,
}

FLOOR_GRADE = "F"

_MAPPING_DEFAULTS: Dict[str, Mapping[str, float]] = {
    "thresholds": DEFAULT_THRESHOLDS,
    "style_adjustments": DEFAULT_STYLE_ADJUSTMENTS,
    "weights": DEFAULT_WEIGHTS,
}


def _frozen_floats(values: Mapping[str, Any], what: str) -> Mapping[str, float]:
    converted: Dict[str, float] = {}
    for key, value in values.items():
        try:
            converted[str(key)] = float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"{what} value for {key!r} is not a number: {value!r}") from exc
    return MappingProxyType(converted)


@dataclass(frozen=True)
class GradingConfig:
    """Grade thresholds, per-style multipliers and metric weights."""

    thresholds: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_THRESHOLDS))
    style_adjustments: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_STYLE_ADJUSTMENTS)
    )
    weights: Mapping[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    def __post_init__(self) -> None:
        thresholds = _frozen_floats(self.thresholds, "threshold")
        adjustments = _frozen_floats(self.style_adjustments, "style adjustment")
        weights = _frozen_floats(self.weights, "weight")

        if not thresholds:
            raise ConfigError("At least one grade threshold is required")
        previous = None
        for grade, minimum in thresholds.items():
            if previous is not None and minimum > previous:
                raise ConfigError(
                    f"Grade thresholds must not increase in grade order ({grade}={minimum})"
                )
            previous = minimum

        unknown_styles = set(adjustments) - set(STYLE_LABELS)
        if unknown_styles:
            raise ConfigError(f"Unknown style adjustments: {sorted(unknown_styles)}")
        if any(value < 0 for value in adjustments.values()):
            raise ConfigError("Style adjustments must be non-negative")

        if set(weights) != set(DEFAULT_WEIGHTS):
            raise ConfigError(f"Weights must name exactly {sorted(DEFAULT_WEIGHTS)}")
        if any(value < 0 for value in weights.values()):
            raise ConfigError("Metric weights must be non-negative")

        object.__setattr__(self, "thresholds", thresholds)
        object.__setattr__(self, "style_adjustments", adjustments)
        object.__setattr__(self, "weights", weights)

    def adjustment_for(self, label: str) -> float:
        return float(self.style_adjustments.get(label, 1.0))


@dataclass(frozen=True)
class SimilarityConfig:
    """Sample sizes, exponents and scale constants for the similarity metrics."""

    embedding_size: int = 224
    cosine_exponent: float = 2.0
    ssim_size: int = 128
    ssim_k1: float = 0.01
    ssim_k2: float = 0.03
    ssim_dynamic_range: float = 255.0
    ssim_exponent: float = 1.5
    ssim_fallback: float = 0.1
    mean_scale: float = 10.0
    variance_scale: float = 100.0
    skewness_scale: float = 5.0
    mean_weight: float = 0.2
    variance_weight: float = 0.2
    skewness_weight: float = 0.2
    correlation_weight: float = 0.4
    statistical_exponent: float = 2.0
    heatmap_size: int = 256

    def __post_init__(self) -> None:
        for name in ("embedding_size", "ssim_size", "heatmap_size"):
            if int(getattr(self, name)) <= 0:
                raise ConfigError(f"{name} must be a positive integer")
        if self.cosine_exponent <= 0 or self.ssim_exponent <= 0 or self.statistical_exponent <= 0:
            raise ConfigError("Sharpening exponents must be positive")
        if not 0.0 <= self.ssim_fallback <= 1.0:
            raise ConfigError("ssim_fallback must lie in [0, 1]")

    @property
    def ssim_c1(self) -> float:
        return (self.ssim_k1 * self.ssim_dynamic_range) ** 2

    @property
    def ssim_c2(self) -> float:
        return (self.ssim_k2 * self.ssim_dynamic_range) ** 2


@dataclass(frozen=True)
class StyleThresholds:
    """Decision thresholds and confidences of the style heuristic."""

    sparse_level: float = 0.001
    complex_level: float = 0.05

    sketch_min_sparsity: float = 0.8
    sketch_max_variance: float = 0.01
    sketch_max_activation: float = 0.1
    sketch_confidence: float = 0.85

    cartoon_max_complexity: float = 0.2
    cartoon_min_variance: float = 0.05
    cartoon_max_activation: float = 0.3
    cartoon_confidence: float = 0.8

    realistic_min_complexity: float = 0.5
    realistic_min_variance: float = 0.1
    realistic_min_activation: float = 0.2
    realistic_confidence: float = 0.9

    abstract_confidence: float = 0.7


@dataclass(frozen=True)
class PipelineConfig:
    """All configuration used by one comparison."""

    grading: GradingConfig = field(default_factory=GradingConfig)
    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    style: StyleThresholds = field(default_factory=StyleThresholds)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PipelineConfig":
        """Build a config from nested mappings, starting from the defaults."""
        unknown = set(data) - {"grading", "similarity", "style"}
        if unknown:
            raise ConfigError(f"Unknown config sections: {sorted(unknown)}")

        grading = _build(GradingConfig, data.get("grading") or {}, "grading")
        similarity = _build(SimilarityConfig, data.get("similarity") or {}, "similarity")
        style = _build(StyleThresholds, data.get("style") or {}, "style")
        return cls(grading=grading, similarity=similarity, style=style)


def _build(factory: Any, section: Mapping[str, Any], name: str) -> Any:
    if not isinstance(section, Mapping):
        raise ConfigError(f"Config section {name!r} must be an object")
    allowed = {item.name for item in fields(factory)}
    unknown = set(section) - allowed
    if unknown:
        raise ConfigError(f"Unknown keys in {name!r}: {sorted(unknown)}")
    values = dict(section)
    for key, given in values.items():
        default = _MAPPING_DEFAULTS.get(key)
        if default is None or factory is not GradingConfig:
            continue
        if not isinstance(given, Mapping):
            raise ConfigError(f"{name}.{key} must be an object")
        # Partial overrides keep the remaining default entries and their order.
        values[key] = {**default, **given}
    try:
        return factory(**values)
    except TypeError as exc:
        raise ConfigError(f"Invalid {name!r} section: {exc}") from exc


def load_config(path: str | Path) -> PipelineConfig:
    """Read a JSON config file and merge it over the defaults."""
    config_path = Path(path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {config_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {config_path} is not valid JSON: {exc}") from exc
    if not isinstance(data, Mapping):
        raise ConfigError(f"Config file {config_path} must contain a JSON object")
    logger.info("Loaded grading config from %s", config_path)
    return PipelineConfig.from_mapping(data)
