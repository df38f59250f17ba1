"""
Per-sample position and orientation error between two aligned trajectories.

A ground truth sample only counts as matched when the aligned logged sample
carries the exact same timestamp. Both streams are expected to come from the
same logging event stream, so a near miss means the streams diverged and is
reported instead of approximated.
"""

import math
from dataclasses import dataclass, field
from typing import List

from .alignment import DEFAULT_SEARCH_RADIUS, align
from .data_loaders import Series
from .math_utils import angular_error


@dataclass(frozen=True)
class ErrorSample:
    """Error of one matched sample."""
    t: float  # logged timestamp (seconds)
    position_error: float  # meters
    orientation_error: float  # radians


@dataclass(frozen=True)
class UnmatchedSample:
    """Ground truth sample with no exact-timestamp counterpart."""
    t: float
    nearest_index: int


@dataclass
class ErrorResult:
    errors: List[ErrorSample] = field(default_factory=list)
    unmatched: List[UnmatchedSample] = field(default_factory=list)

    @property
    def unmatched_count(self) -> int:
        return len(self.unmatched)


def compute_errors(reference: Series, logged: Series,
                   search_radius: int = DEFAULT_SEARCH_RADIUS,
                   verbose: bool = False) -> ErrorResult:
    """
    Pair every reference sample with its logged counterpart.

    Args:
        reference: Ground truth series
        logged: Odometry series (non-empty, sorted)
        search_radius: Refinement window for the aligner
        verbose: Report matches whose logged yaw is NaN

    Returns:
        ErrorResult with errors in reference order. Invariant:
        ``len(errors) + unmatched_count == len(reference)``
    """
    result = ErrorResult()

    for i, ref in enumerate(reference):
        idx = align(logged, ref, search_radius)
        found = logged[idx]

        if found.t != ref.t:
            print(f"[Align] Unable to find log entry at time {ref.t:.5f}, "
                  f"but it's somewhere around index {idx}")
            result.unmatched.append(UnmatchedSample(t=ref.t, nearest_index=idx))
            continue

        if verbose and math.isnan(logged.yaw[idx]):
            print(f"[Align] Reference #{i} at {ref.t:.5f} matched index {idx} with NaN yaw")

        position_error = math.hypot(ref.x - found.x, ref.y - found.y)
        orientation_error = angular_error(ref.yaw, found.yaw)
        result.errors.append(ErrorSample(
            t=found.t,
            position_error=position_error,
            orientation_error=orientation_error,
        ))

    return result
