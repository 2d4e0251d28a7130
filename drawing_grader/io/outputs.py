"""Output helpers for persisting grading results."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

import pandas as pd

from ..errors import GradingError
from .models import ComparisonResult, HeatmapImage


def write_result(path: Path, result: ComparisonResult) -> Path:
    """Write *result* to *path* as JSON and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(result.to_dict(), indent=2), encoding="utf-8")
    return path


def write_heatmap(path: Path, heatmap: HeatmapImage) -> Path:
    """Write *heatmap* to *path* as PNG and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(heatmap.to_png_bytes())
    return path


RESULT_COLUMNS: Tuple[str, ...] = (
    "submission",
    "percentage",
    "grade",
    "style",
    "style_confidence",
    "cosine",
    "structural",
    "statistical",
    "error",
)


def result_row(submission: str, outcome: ComparisonResult | GradingError) -> Dict[str, Any]:
    """Flatten one batch outcome into a table row."""
    if isinstance(outcome, GradingError):
        row: Dict[str, Any] = dict.fromkeys(RESULT_COLUMNS)
        row.update(submission=submission, error=str(outcome))
        return row
    return {
        "submission": submission,
        "percentage": outcome.grade.percentage,
        "grade": outcome.grade.grade,
        "style": outcome.style.label,
        "style_confidence": outcome.style.confidence,
        "cosine": outcome.scores.cosine,
        "structural": outcome.scores.structural,
        "statistical": outcome.scores.statistical,
        "error": None,
    }


def write_results_table(
    path: Path, outcomes: Iterable[Tuple[str, ComparisonResult | GradingError]]
) -> Path:
    """Write batch outcomes as parquet, or CSV when *path* ends in ``.csv``."""
    rows: List[Dict[str, Any]] = [result_row(name, outcome) for name, outcome in outcomes]
    df = pd.DataFrame(rows, columns=list(RESULT_COLUMNS))
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".csv":
        df.to_csv(path, index=False)
    else:
        df.to_parquet(path, index=False, engine="pyarrow")
    return path
