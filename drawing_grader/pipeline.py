"""End-to-end comparison of a submission against a reference image."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Mapping, Optional, Tuple, Union

from tqdm import tqdm

from .config import PipelineConfig
from .errors import GradingError
from .features.embedding import EmbeddingProvider
from .features.extract import extract_features
from .grading.grader import grade
from .io.models import ComparisonResult, FeatureSet, ImageSample
from .sample.loader import ImageRef, load_image
from .similarity.metrics import compute_scores
from .style.classifier import classify_style
from .visualize.heatmap import difference_heatmap

logger = logging.getLogger(__name__)

Observer = Callable[[str, Mapping[str, float]], None]


def log_observer(stage: str, values: Mapping[str, float]) -> None:
    """Observer that writes intermediate values to the module logger at DEBUG."""
    rendered = ", ".join(f"{key}={value:.4f}" for key, value in values.items())
    logger.debug("[%s] %s", stage, rendered)


def _notify(observer: Optional[Observer], stage: str, values: Mapping[str, float]) -> None:
    if observer is not None:
        observer(stage, dict(values))


@dataclass(frozen=True, slots=True, eq=False)
class PreparedImage:
    """A decoded image with its extracted features."""

    sample: ImageSample
    features: FeatureSet


def prepare_image(ref: ImageRef, provider: EmbeddingProvider) -> PreparedImage:
    """Load *ref* and extract its features."""
    sample = load_image(ref)
    return PreparedImage(sample=sample, features=extract_features(sample, provider))


def _prepare_pair(
    reference: ImageRef, submission: ImageRef, provider: EmbeddingProvider
) -> Tuple[PreparedImage, PreparedImage]:
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="grader") as pool:
        reference_future = pool.submit(prepare_image, reference, provider)
        submission_future = pool.submit(prepare_image, submission, provider)
        return reference_future.result(), submission_future.result()


def score_prepared(
    reference: PreparedImage,
    submission: PreparedImage,
    config: PipelineConfig,
    observer: Optional[Observer] = None,
    with_heatmap: bool = True,
) -> ComparisonResult:
    """Score, classify and grade two already prepared images."""
    _notify(
        observer,
        "features",
        {
            "reference_edges": float(reference.features.edge_magnitude[0]),
            "submission_edges": float(submission.features.edge_magnitude[0]),
        },
    )
    scores = compute_scores(
        reference.features,
        submission.features,
        reference.sample,
        submission.sample,
        config.similarity,
    )
    _notify(observer, "scores", scores.as_dict())

    style = classify_style(reference.features.embedding, config.style)
    _notify(observer, "style", {style.label: style.confidence})

    result = grade(scores, style, config.grading)
    _notify(observer, "grade", {"percentage": float(result.percentage)})

    heatmap = None
    if with_heatmap:
        heatmap = difference_heatmap(
            reference.sample, submission.sample, config.similarity.heatmap_size
        )
    return ComparisonResult(grade=result, scores=scores, style=style, heatmap=heatmap)


def compare_images(
    reference: ImageRef,
    submission: ImageRef,
    provider: EmbeddingProvider,
    config: Optional[PipelineConfig] = None,
    observer: Optional[Observer] = None,
    with_heatmap: bool = True,
) -> ComparisonResult:
    """Grade *submission* against *reference*.

    Both images are loaded and embedded concurrently. Any
    :class:`~drawing_grader.errors.GradingError` raised while doing so aborts
    the comparison; no partial result is returned.
    """
    config = config or PipelineConfig()
    prepared_reference, prepared_submission = _prepare_pair(reference, submission, provider)
    return score_prepared(
        prepared_reference, prepared_submission, config, observer, with_heatmap
    )


BatchOutcome = Union[ComparisonResult, GradingError]


def grade_many(
    reference: ImageRef,
    submissions: Iterable[ImageRef],
    provider: EmbeddingProvider,
    config: Optional[PipelineConfig] = None,
    observer: Optional[Observer] = None,
    with_heatmap: bool = False,
    progress: bool = True,
) -> Iterator[Tuple[ImageRef, BatchOutcome]]:
    """Yield ``(submission, outcome)`` for every submission against one reference.

    The reference is prepared once and a failure there raises immediately. A
    submission that fails yields its ``GradingError`` as the outcome.
    """
    config = config or PipelineConfig()
    prepared_reference = prepare_image(reference, provider)
    items = list(submissions)
    for submission in tqdm(
        items, desc="Grading submissions", unit="image", leave=False, disable=not progress
    ):
        try:
            prepared = prepare_image(submission, provider)
            outcome: BatchOutcome = score_prepared(
                prepared_reference, prepared, config, observer, with_heatmap
            )
        except GradingError as exc:
            logger.warning("Grading %s failed: %s", submission, exc)
            outcome = exc
        yield submission, outcome
