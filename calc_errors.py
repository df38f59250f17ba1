#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Odometry Error Calculator (calc_errors.py)

Compares a ground truth CSV against the nav_msgs/Odometry stream recorded in
a bag and reports per-sample position/orientation error, z-score outliers and
summary means.

Configuration Model:
--------------------
    YAML config is the single source of truth for algorithm settings
    (search radius, z-score threshold, odometry topic, output suffixes).
    CLI provides only paths and runtime flags.

Outputs (named after the bag):
    <bag>_error.csv              analysis, outliers, individual entries
    <bag>_error_graph_data.csv   dt,position_error,orientation_error
    <bag>_error_timeline.png     with --plot (or output.save_plot: true)

Usage:
    python calc_errors.py ground_truth.csv run.bag
    python calc_errors.py ground_truth.csv run.bag --config configs/default.yaml \\
        --output_dir results/ --plot
"""

import argparse
import os
import sys

import yaml
from rosbags.rosbag1 import ReaderError as Rosbag1ReaderError
from rosbags.rosbag2 import ReaderError as Rosbag2ReaderError

from traj_error.config import load_config
from traj_error.data_loaders import load_ground_truth_csv, load_odometry_bag
from traj_error.pipeline import run_analysis
from traj_error.reporting import (
    get_bag_name, plot_error_timeline, print_report,
    write_error_csv, write_graph_csv,
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Compare a ground truth trajectory against logged odometry",
    )
    parser.add_argument('ground_truth', type=str,
                        help='Ground truth CSV (secs, nsecs, x, y, yaw)')
    parser.add_argument('bag', type=str,
                        help='ROS1 .bag file or ROS2 bag directory with nav_msgs/Odometry')
    parser.add_argument('--config', type=str, default=None,
                        help='YAML configuration file (defaults used if omitted)')
    parser.add_argument('--output_dir', type=str, default='.',
                        help='Directory for the CSV/PNG outputs')
    parser.add_argument('--plot', action='store_true',
                        help='Also save an error timeline PNG')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        config = load_config(args.config)
        reference = load_ground_truth_csv(args.ground_truth)
        logged = load_odometry_bag(
            args.bag,
            topic=config.odometry_topic,
            typestore=config.typestore,
            ros2_typestore=config.ros2_typestore,
        )
        result = run_analysis(reference, logged, config)
    except (OSError, ValueError, yaml.YAMLError,
            Rosbag1ReaderError, Rosbag2ReaderError) as exc:
        print(f"[Error] {exc}")
        return 1

    print_report(result)

    try:
        os.makedirs(args.output_dir, exist_ok=True)
        base = os.path.join(args.output_dir, get_bag_name(args.bag))
        write_error_csv(base + config.error_csv_suffix, result)
        write_graph_csv(base + config.graph_csv_suffix, result)
        if args.plot or config.save_plot:
            plot_error_timeline(base + config.plot_suffix, result)
    except OSError as exc:
        print(f"[Error] Could not write outputs: {exc}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
