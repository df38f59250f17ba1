#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Trajectory Error Configuration Module
=====================================

Handles YAML configuration loading for the trajectory error analysis.

Configuration Model:
--------------------
YAML is the single source of truth for algorithm settings; the command line
only provides input/output paths and runtime flags. Every key is optional and
falls back to the defaults below.

Configuration Structure:
------------------------
- alignment.search_radius: Half-width (samples) of the window scanned when
  correcting a timestamp match for NaN yaw / duplicate stamps
- statistics.z_score_threshold: Significance level (standard deviations)
  for outlier classification
- bag.odometry_topic: Only read this topic (null = all nav_msgs/Odometry)
- bag.typestore / bag.ros2_typestore: rosbags type stores for ROS1/ROS2 bags
- output.*: Output file suffixes and plot toggle
- verbose: Extra per-sample diagnostics

Example:
--------
    alignment:
      search_radius: 10
    statistics:
      z_score_threshold: 3.0
    bag:
      odometry_topic: /odom
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml
from rosbags.typesys import Stores

from .alignment import DEFAULT_SEARCH_RADIUS
from .statistics import DEFAULT_Z_SCORE_THRESHOLD


@dataclass
class EvalConfig:
    search_radius: int = DEFAULT_SEARCH_RADIUS
    z_score_threshold: float = DEFAULT_Z_SCORE_THRESHOLD
    odometry_topic: Optional[str] = None
    typestore: str = "ROS1_NOETIC"
    ros2_typestore: str = "ROS2_HUMBLE"
    error_csv_suffix: str = "_error.csv"
    graph_csv_suffix: str = "_error_graph_data.csv"
    plot_suffix: str = "_error_timeline.png"
    save_plot: bool = False
    verbose: bool = False

    def validate(self) -> None:
        """
        Raises:
            ValueError: on out-of-range or unknown values
        """
        if int(self.search_radius) != self.search_radius or self.search_radius < 0:
            raise ValueError(f"search_radius must be a non-negative integer, got {self.search_radius}")
        if not self.z_score_threshold > 0:
            raise ValueError(f"z_score_threshold must be positive, got {self.z_score_threshold}")
        for name in (self.typestore, self.ros2_typestore):
            if name not in Stores.__members__:
                raise ValueError(f"Unknown rosbags typestore: {name}")


def _typed(section: Dict[str, Any], key: str, default, types, allow_none: bool = False):
    """Fetch ``key`` and check its YAML type; bool never passes as a number."""
    value = section.get(key, default)
    if value is None and allow_none:
        return None
    if isinstance(value, bool) and bool not in types:
        raise ValueError(f"{key} must not be a boolean, got {value!r}")
    if not isinstance(value, types):
        expected = "/".join(t.__name__ for t in types)
        raise ValueError(f"{key} must be {expected}, got {value!r}")
    return value


def config_from_dict(raw: Optional[Dict[str, Any]]) -> EvalConfig:
    """Flatten the nested YAML structure into an EvalConfig."""
    raw = raw or {}
    alignment = raw.get('alignment') or {}
    stats = raw.get('statistics') or {}
    bag = raw.get('bag') or {}
    output = raw.get('output') or {}
    defaults = EvalConfig()

    config = EvalConfig(
        search_radius=_typed(alignment, 'search_radius', defaults.search_radius, (int,)),
        z_score_threshold=float(_typed(stats, 'z_score_threshold',
                                       defaults.z_score_threshold, (int, float))),
        odometry_topic=_typed(bag, 'odometry_topic', defaults.odometry_topic, (str,),
                              allow_none=True),
        typestore=_typed(bag, 'typestore', defaults.typestore, (str,)),
        ros2_typestore=_typed(bag, 'ros2_typestore', defaults.ros2_typestore, (str,)),
        error_csv_suffix=_typed(output, 'error_csv_suffix', defaults.error_csv_suffix, (str,)),
        graph_csv_suffix=_typed(output, 'graph_csv_suffix', defaults.graph_csv_suffix, (str,)),
        plot_suffix=_typed(output, 'plot_suffix', defaults.plot_suffix, (str,)),
        save_plot=_typed(output, 'save_plot', defaults.save_plot, (bool,)),
        verbose=_typed(raw, 'verbose', defaults.verbose, (bool,)),
    )
    config.validate()
    return config


def load_config(config_path: Optional[str] = None) -> EvalConfig:
    """
    Load YAML configuration file.

    Args:
        config_path: Path to YAML file, or None for the built-in defaults

    Returns:
        Validated EvalConfig

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is malformed
        ValueError: If a value is out of range
    """
    if config_path is None:
        return config_from_dict({})

    with open(config_path, 'r') as f:
        raw = yaml.safe_load(f)

    if raw is not None and not isinstance(raw, dict):
        raise ValueError(f"Config root must be a mapping: {config_path}")

    config = config_from_dict(raw)
    print(f"[Config] Loaded {config_path} "
          f"(search_radius={config.search_radius}, z_threshold={config.z_score_threshold:g})")
    return config
