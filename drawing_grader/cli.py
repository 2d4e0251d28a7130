"""Command-line interface for the drawing grader."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, Optional

from .config import PipelineConfig, load_config
from .errors import GradingError
from .features.embedding import HogEmbeddingProvider
from .io.models import ComparisonResult
from .io.outputs import write_heatmap, write_result, write_results_table
from .pipeline import compare_images, grade_many, log_observer


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the grader."""
    parser = argparse.ArgumentParser(
        description="Grade one or more drawings against a reference image."
    )
    parser.add_argument(
        "--reference",
        required=True,
        help="Path or URL of the reference image.",
    )
    parser.add_argument(
        "--submission",
        required=True,
        action="append",
        help="Path or URL of a submitted image; repeat to grade several.",
    )
    parser.add_argument(
        "--config",
        required=False,
        default=None,
        help="JSON file overriding grading, similarity or style constants.",
    )
    parser.add_argument(
        "--out",
        required=False,
        default=None,
        help="Directory where result.json, heatmap.png or the results table are written.",
    )
    parser.add_argument(
        "--no-heatmap",
        action="store_true",
        help="Skip rendering the difference heatmap.",
    )
    parser.add_argument(
        "--table-format",
        choices=("parquet", "csv"),
        default="parquet",
        help="File format of the batch results table (default parquet).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging level; DEBUG also prints intermediate metric values.",
    )
    return parser.parse_args(list(argv) if argv is not None else None)


def _print_result(label: str, result: ComparisonResult) -> None:
    grade = result.grade
    scores = result.scores
    print(f"[grade] {label}: {grade.percentage}% {grade.grade}")
    print(
        f"  cosine={scores.cosine:.3f}, structural={scores.structural:.3f}, "
        f"statistical={scores.statistical:.3f}"
    )
    print(f"  style={grade.style_label} (conf={grade.style_confidence:.2f})")
    for line in grade.feedback:
        print(f"  - {line}")


def _run_single(
    args: argparse.Namespace, config: PipelineConfig, out_dir: Optional[Path]
) -> None:
    provider = HogEmbeddingProvider(input_size=config.similarity.embedding_size)
    observer = log_observer if args.log_level == "DEBUG" else None
    submission = args.submission[0]
    result = compare_images(
        args.reference,
        submission,
        provider,
        config=config,
        observer=observer,
        with_heatmap=not args.no_heatmap,
    )
    _print_result(submission, result)
    if out_dir is None:
        return
    result_path = write_result(out_dir / "result.json", result)
    print(f"[saved] {result_path}")
    if result.heatmap is not None:
        heatmap_path = write_heatmap(out_dir / "heatmap.png", result.heatmap)
        print(f"[saved] {heatmap_path}")


def _run_batch(
    args: argparse.Namespace, config: PipelineConfig, out_dir: Optional[Path]
) -> int:
    provider = HogEmbeddingProvider(input_size=config.similarity.embedding_size)
    outcomes = []
    failures = 0
    for submission, outcome in grade_many(args.reference, args.submission, provider, config=config):
        label = str(submission)
        outcomes.append((label, outcome))
        if isinstance(outcome, GradingError):
            failures += 1
            print(f"[error] {label}: {outcome}")
        else:
            _print_result(label, outcome)

    print(f"Graded: {len(outcomes) - failures} of {len(outcomes)} submissions")
    if out_dir is not None:
        table_path = write_results_table(out_dir / f"results.{args.table_format}", outcomes)
        print(f"[saved] {table_path}")
    return 1 if failures else 0


def main(argv: Iterable[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    out_dir = Path(args.out) if args.out else None
    try:
        config = load_config(args.config) if args.config else PipelineConfig()
        if len(args.submission) == 1:
            _run_single(args, config, out_dir)
            return 0
        return _run_batch(args, config, out_dir)
    except GradingError as exc:
        print(f"[error] {exc}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
