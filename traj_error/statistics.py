"""
Error statistics and z-score outlier classification.

Each error dimension (position, orientation) is summarised by its population
mean and standard deviation. A sample is an outlier in a dimension when its
z-score magnitude is strictly greater than the significance level.

Inlier-only means are kept per dimension: an outlier in one dimension does not
invalidate the other dimension's value for that sample, so a position-only
outlier still contributes its orientation error (and vice versa). A sample
flagged in both dimensions contributes to neither.

Non-finite errors are left out of their dimension's statistics (mean, standard
deviation and inlier-only mean) and never flagged in that dimension. Orientation
errors are NaN when the matched logged sample had no valid yaw; position errors
are NaN when the logged x/y is.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Sequence

import numpy as np

from .errors import ErrorSample


DEFAULT_Z_SCORE_THRESHOLD = 3.0


class OutlierKind(IntEnum):
    """Which error dimension(s) exceeded the significance level."""
    NONE = 0
    POSITION = 1
    ORIENTATION = 2
    BOTH = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class OutlierRecord:
    error_index: int  # index into the ErrorSample list
    kind: OutlierKind


@dataclass(frozen=True)
class Statistics:
    mean: float
    std: float


@dataclass(frozen=True)
class ErrorStatistics:
    position: Statistics
    orientation: Statistics
    position_mean_inliers: float
    orientation_mean_inliers: float
    outliers: List[OutlierRecord] = field(default_factory=list)

    @property
    def position_mean(self) -> float:
        return self.position.mean

    @property
    def orientation_mean(self) -> float:
        return self.orientation.mean

    @property
    def position_std(self) -> float:
        return self.position.std

    @property
    def orientation_std(self) -> float:
        return self.orientation.std


def describe(values: np.ndarray) -> Statistics:
    """Population mean and standard deviation (ddof=0) of the finite values."""
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return Statistics(mean=np.nan, std=np.nan)
    # Identical values: np.mean can land an ulp off and leave a ~1e-17 std
    if np.ptp(finite) == 0.0:
        return Statistics(mean=float(finite[0]), std=0.0)
    return Statistics(mean=float(np.mean(finite)), std=float(np.std(finite)))


def z_scores(values: np.ndarray, stats: Statistics) -> np.ndarray:
    """
    Signed deviation from the mean in units of standard deviation.

    A zero (or undefined) standard deviation yields all-zero scores, as do
    non-finite values.
    """
    if not np.isfinite(stats.std) or stats.std == 0.0:
        return np.zeros_like(values, dtype=float)
    z = (values - stats.mean) / stats.std
    return np.where(np.isfinite(z), z, 0.0)


def classify_outlier(z_position: float, z_orientation: float,
                     threshold: float = DEFAULT_Z_SCORE_THRESHOLD) -> OutlierKind:
    """Strict |z| > threshold test on both dimensions."""
    position_out = abs(z_position) > threshold
    orientation_out = abs(z_orientation) > threshold
    if position_out and orientation_out:
        return OutlierKind.BOTH
    if position_out:
        return OutlierKind.POSITION
    if orientation_out:
        return OutlierKind.ORIENTATION
    return OutlierKind.NONE


def _mean_or_nan(total: float, count: int) -> float:
    return total / count if count else float("nan")


def compute_statistics(errors: Sequence[ErrorSample],
                       z_threshold: float = DEFAULT_Z_SCORE_THRESHOLD) -> ErrorStatistics:
    """
    Summarise an error series and flag outliers.

    Args:
        errors: Matched error samples (at least one)
        z_threshold: Significance level in standard deviations

    Returns:
        ErrorStatistics with all-sample and inlier-only means

    Raises:
        ValueError: if ``errors`` is empty
    """
    if len(errors) == 0:
        raise ValueError("Cannot compute statistics without matched samples")

    position = np.array([e.position_error for e in errors], dtype=float)
    orientation = np.array([e.orientation_error for e in errors], dtype=float)

    position_stats = describe(position)
    orientation_stats = describe(orientation)

    z_position = z_scores(position, position_stats)
    z_orientation = z_scores(orientation, orientation_stats)

    outliers = []
    position_total, position_count = 0.0, 0
    orientation_total, orientation_count = 0.0, 0
    position_valid = np.isfinite(position)
    orientation_valid = np.isfinite(orientation)

    for i in range(len(errors)):
        kind = classify_outlier(z_position[i], z_orientation[i], z_threshold)
        if kind != OutlierKind.NONE:
            outliers.append(OutlierRecord(error_index=i, kind=kind))

        if kind in (OutlierKind.NONE, OutlierKind.ORIENTATION) and position_valid[i]:
            position_total += position[i]
            position_count += 1
        if kind in (OutlierKind.NONE, OutlierKind.POSITION) and orientation_valid[i]:
            orientation_total += orientation[i]
            orientation_count += 1

    print(f"[Stats] {len(errors)} samples, {len(outliers)} outliers "
          f"(|z| > {z_threshold:g})")
    if position_stats.std == 0.0:
        print("[Stats] Position error has zero spread, no position outliers possible")
    if orientation_stats.std == 0.0:
        print("[Stats] Orientation error has zero spread, no orientation outliers possible")

    return ErrorStatistics(
        position=position_stats,
        orientation=orientation_stats,
        position_mean_inliers=_mean_or_nan(position_total, position_count),
        orientation_mean_inliers=_mean_or_nan(orientation_total, orientation_count),
        outliers=outliers,
    )
