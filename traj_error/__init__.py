"""
Trajectory Error Analysis Package

Compares a ground truth trajectory (time, x, y, yaw) against the trajectory
recorded in a robot's odometry log, computes per-sample position and
orientation error, flags z-score outliers and writes reports.

Version: 1.0.0

Submodules:
- config: YAML configuration loading (EvalConfig)
- math_utils: Wraparound-aware angular error, quaternion to yaw
- data_loaders: Sample/Series data model, ground truth CSV and bag decoders
- alignment: Timestamp alignment with NaN-yaw / duplicate-stamp refinement
- errors: Per-sample position and orientation error
- statistics: Mean/std, z-score outlier classification, inlier-only means
- reporting: Output datasets, console/CSV writers, timeline plot
- pipeline: run_analysis() tying the stages together

Usage:
    # Import specific modules (lazy loading)
    from traj_error import alignment
    from traj_error import statistics

    # Or import specific functions
    from traj_error.config import load_config
    from traj_error.data_loaders import load_ground_truth_csv, load_odometry_bag
    from traj_error.pipeline import run_analysis
    from traj_error.reporting import print_report, write_error_csv
"""

__version__ = "1.0.0"

# Lazy module imports - access as traj_error.config, traj_error.alignment, etc.
# This avoids importing all dependencies at once
import importlib

# Available submodules
_SUBMODULES = {
    "config", "math_utils", "data_loaders", "alignment",
    "errors", "statistics", "reporting", "pipeline",
}


def __getattr__(name):
    """Lazy module loading to avoid importing all dependencies at once."""
    if name in _SUBMODULES:
        module = importlib.import_module(f".{name}", __name__)
        globals()[name] = module  # Cache in globals to avoid repeated import
        return module
    raise AttributeError(f"module 'traj_error' has no attribute '{name}'")


def __dir__():
    """List available submodules."""
    return list(_SUBMODULES)


__all__ = list(_SUBMODULES)
