"""
Temporal alignment of a query sample against a time-sorted series.

Finding the logged sample that belongs to a ground truth sample is done in
two steps:

1. Binary search on the timestamps (clamped to the ends of the series).
   On runs of equal timestamps the search lands on the leftmost entry.
2. Refinement within ``search_radius`` samples of the candidate: among the
   entries sharing the query timestamp, the ones with a valid (non-NaN) yaw
   are kept, and the one closest in yaw to the query wins. Remaining ties go
   to the entry nearest the candidate.

Refinement is skipped when the window would run off either end of the series.
"""

import numpy as np

from .data_loaders import InputInvalidError, Sample, Series
from .math_utils import angular_error_array


DEFAULT_SEARCH_RADIUS = 10


def find_candidate(times: np.ndarray, t: float) -> int:
    """Index of the entry matching or bracketing ``t`` (leftmost on ties)."""
    if t <= times[0]:
        return 0
    if t >= times[-1]:
        return int(times.size - 1)
    return int(np.searchsorted(times, t, side="left"))


def find_valid(reference: Series, query: Sample, index: int,
               search_radius: int = DEFAULT_SEARCH_RADIUS) -> int:
    """
    Correct a candidate index for invalid yaw and duplicate timestamps.

    Args:
        reference: Series the index refers to
        query: Sample being aligned
        index: Candidate index from find_candidate
        search_radius: Half-width of the scan window (samples)

    Returns:
        Refined index, or ``index`` unchanged if no usable alternative exists
    """
    n = len(reference)
    if index < search_radius or index >= n - search_radius:
        return index

    lo = index - search_radius
    hi = index + search_radius + 1
    window = np.arange(lo, hi)

    same_time = reference.t[lo:hi] == query.t
    valid_yaw = ~np.isnan(reference.yaw[lo:hi])
    options = window[same_time & valid_yaw]
    if options.size == 0:
        return index

    errors = angular_error_array(reference.yaw[options], query.yaw)
    # A NaN query yaw makes closeness meaningless; fall through to distance
    errors = np.where(np.isnan(errors), np.inf, errors)
    distance = np.abs(options - index)

    # Primary key: yaw error, secondary: distance from the candidate
    order = np.lexsort((distance, errors))
    return int(options[order[0]])


def align(reference: Series, query: Sample,
          search_radius: int = DEFAULT_SEARCH_RADIUS) -> int:
    """
    Index of the sample in ``reference`` that best matches ``query``.

    Raises:
        InputInvalidError: if ``reference`` is empty
    """
    if len(reference) == 0:
        raise InputInvalidError(f"{reference.name}: cannot align against an empty series")

    candidate = find_candidate(reference.t, query.t)
    return find_valid(reference, query, candidate, search_radius)
