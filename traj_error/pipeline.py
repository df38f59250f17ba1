"""
Batch pipeline: validate -> align & compute errors -> statistics -> datasets.

Usage:
    from traj_error.pipeline import run_analysis
    from traj_error.config import load_config

    result = run_analysis(reference, logged, load_config("configs/default.yaml"))
    print(result.stats.position_mean)
"""

from dataclasses import dataclass, field
from typing import List, Optional

import pandas as pd

from .config import EvalConfig
from .data_loaders import Series
from .errors import ErrorSample, UnmatchedSample, compute_errors
from .reporting import build_full_report, build_graph_series, build_outlier_report
from .statistics import ErrorStatistics, compute_statistics


@dataclass
class AnalysisResult:
    reference_count: int
    errors: List[ErrorSample]
    unmatched: List[UnmatchedSample]
    stats: ErrorStatistics
    full_report: pd.DataFrame = field(repr=False)
    outlier_report: pd.DataFrame = field(repr=False)
    graph_series: pd.DataFrame = field(repr=False)

    @property
    def unmatched_count(self) -> int:
        return len(self.unmatched)


def run_analysis(reference: Series, logged: Series,
                 config: Optional[EvalConfig] = None) -> AnalysisResult:
    """
    Run the complete comparison on two decoded series.

    Raises:
        InputInvalidError: if either series is empty or unsorted
        ValueError: if no reference sample could be matched
    """
    config = config or EvalConfig()

    reference.validate()
    logged.validate()

    error_result = compute_errors(
        reference, logged,
        search_radius=config.search_radius,
        verbose=config.verbose,
    )
    if not error_result.errors:
        raise ValueError(
            f"None of the {len(reference)} ground truth samples matched a logged timestamp"
        )

    stats = compute_statistics(error_result.errors, z_threshold=config.z_score_threshold)

    return AnalysisResult(
        reference_count=len(reference),
        errors=error_result.errors,
        unmatched=error_result.unmatched,
        stats=stats,
        full_report=build_full_report(error_result.errors),
        outlier_report=build_outlier_report(error_result.errors, stats),
        graph_series=build_graph_series(error_result.errors),
    )
