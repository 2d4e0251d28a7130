"""Exception hierarchy for the drawing grader."""

from __future__ import annotations


class GradingError(Exception):
    """Base class for failures that abort a comparison."""


class DecodeError(GradingError):
    """Raised when an image reference cannot be read, decoded or resized."""

    def __init__(self, reference: str, reason: str) -> None:
        super().__init__(f"Could not load image {reference}: {reason}")
        self.reference = reference
        self.reason = reason


class ExtractionError(GradingError):
    """Raised when features cannot be derived from a decoded image."""


class InferenceError(ExtractionError):
    """Raised when the embedding provider fails or returns unusable output."""


class DimensionMismatchError(GradingError, ValueError):
    """Raised when two feature vectors of unequal length are compared."""

    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Feature vectors differ in length ({left} != {right})")
        self.left = left
        self.right = right


class ConfigError(GradingError, ValueError):
    """Raised for invalid or unknown configuration values."""
