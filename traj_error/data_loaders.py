#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Trajectory Data Loaders Module

Data model and decoders for the two trajectories being compared:

- Ground truth: CSV file with a header row followed by
  ``secs, nsecs, x, y, yaw`` columns.
- Logged odometry: every ``nav_msgs/Odometry`` message of a ROS1 ``.bag``
  file or a ROS2 bag directory, with yaw extracted from the orientation
  quaternion.

Both decoders produce a :class:`Series`, which is all the core needs to know
about the input formats.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

import numpy as np
import pandas as pd
from rosbags.rosbag1 import Reader as Rosbag1Reader
from rosbags.rosbag2 import Reader as Rosbag2Reader
from rosbags.serde import SerdeError
from rosbags.typesys import Stores, get_typestore

from .math_utils import quaternion_to_yaw, stamp_to_seconds


ODOMETRY_MSGTYPE = "nav_msgs/msg/Odometry"

# Ground truth columns, in file order
GT_COLUMNS = ["secs", "nsecs", "x", "y", "yaw"]


class InputInvalidError(ValueError):
    """Raised when a series is empty or not sorted by time."""


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class Sample:
    """Single timestamped 2-D pose."""
    t: float  # timestamp (seconds)
    x: float  # meters
    y: float  # meters
    yaw: float  # radians, NaN if the orientation is invalid


@dataclass(frozen=True, eq=False)
class Series:
    """
    Time-ordered trajectory stored column-wise.

    The arrays are made read-only on construction so a series can be shared
    between pipeline stages without copies.
    """
    t: np.ndarray
    x: np.ndarray
    y: np.ndarray
    yaw: np.ndarray
    name: str = "series"

    def __post_init__(self):
        columns = {}
        for field_name in ("t", "x", "y", "yaw"):
            arr = np.array(getattr(self, field_name), dtype=float).reshape(-1)
            arr.setflags(write=False)
            columns[field_name] = arr
        lengths = {arr.size for arr in columns.values()}
        if len(lengths) > 1:
            raise ValueError(f"{self.name}: column lengths differ {sorted(lengths)}")
        for field_name, arr in columns.items():
            object.__setattr__(self, field_name, arr)

    @classmethod
    def from_samples(cls, samples: Iterable[Sample], name: str = "series") -> "Series":
        samples = list(samples)
        return cls(
            t=[s.t for s in samples],
            x=[s.x for s in samples],
            y=[s.y for s in samples],
            yaw=[s.yaw for s in samples],
            name=name,
        )

    @classmethod
    def from_frame(cls, df: pd.DataFrame, name: str = "series") -> "Series":
        """Build from a DataFrame with t, x, y, yaw columns."""
        return cls(
            t=df["t"].to_numpy(dtype=float),
            x=df["x"].to_numpy(dtype=float),
            y=df["y"].to_numpy(dtype=float),
            yaw=df["yaw"].to_numpy(dtype=float),
            name=name,
        )

    def __len__(self) -> int:
        return int(self.t.size)

    def __getitem__(self, index: int) -> Sample:
        return Sample(
            t=float(self.t[index]),
            x=float(self.x[index]),
            y=float(self.y[index]),
            yaw=float(self.yaw[index]),
        )

    def __iter__(self) -> Iterator[Sample]:
        for i in range(len(self)):
            yield self[i]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({"t": self.t, "x": self.x, "y": self.y, "yaw": self.yaw})

    def validate(self) -> None:
        """
        Check the alignment preconditions.

        Raises:
            InputInvalidError: if the series is empty, has non-finite
                timestamps, or is not sorted by ascending time
        """
        if len(self) == 0:
            raise InputInvalidError(f"{self.name}: series is empty")
        if not np.all(np.isfinite(self.t)):
            raise InputInvalidError(f"{self.name}: series contains non-finite timestamps")
        decreasing = np.flatnonzero(np.diff(self.t) < 0)
        if decreasing.size:
            i = int(decreasing[0])
            raise InputInvalidError(
                f"{self.name}: series not sorted by time "
                f"(t[{i}]={self.t[i]:.9f} > t[{i + 1}]={self.t[i + 1]:.9f})"
            )


# =============================================================================
# Ground Truth CSV
# =============================================================================

def load_ground_truth_csv(csv_path: str) -> Series:
    """
    Load the ground truth trajectory.

    CSV format (header names are ignored, columns are read by position):
        secs, nsecs, x, y, yaw

    Args:
        csv_path: Path to ground truth CSV

    Returns:
        Series sorted by time, t = secs + nsecs * 1e-9

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If fewer than five columns are present
    """
    if not os.path.isfile(csv_path):
        raise FileNotFoundError(f"Ground truth file not found: {csv_path}")

    df = pd.read_csv(csv_path, skipinitialspace=True)
    if df.shape[1] < len(GT_COLUMNS):
        raise ValueError(
            f"Ground truth needs {len(GT_COLUMNS)} columns {GT_COLUMNS}, got {df.shape[1]}"
        )
    df = df.iloc[:, :len(GT_COLUMNS)]
    df.columns = GT_COLUMNS
    df = df.apply(pd.to_numeric, errors="coerce")
    df = df.dropna(subset=["secs", "nsecs", "x", "y"])

    # Same float arithmetic as stamp_to_seconds so timestamps compare exactly
    df["t"] = df["secs"].astype(float) + df["nsecs"].astype(float) * 1e-9
    df = df.sort_values("t", kind="mergesort").reset_index(drop=True)

    print(f"[GT] Loaded {len(df)} ground truth samples from {csv_path}")
    if len(df):
        print(f"[GT] Time range: {df['t'].min():.3f} - {df['t'].max():.3f} s")

    return Series.from_frame(df, name="reference")


# =============================================================================
# Odometry Bag
# =============================================================================

def odometry_to_sample(msg) -> Sample:
    """Convert a deserialized nav_msgs/Odometry message to a Sample."""
    stamp = msg.header.stamp
    q = msg.pose.pose.orientation
    position = msg.pose.pose.position
    return Sample(
        t=stamp_to_seconds(stamp.sec, stamp.nanosec),
        x=float(position.x),
        y=float(position.y),
        yaw=quaternion_to_yaw((q.w, q.x, q.y, q.z)),
    )


def _odometry_connections(connections, topic: Optional[str]) -> list:
    return [
        c for c in connections
        if c.msgtype == ODOMETRY_MSGTYPE and (topic is None or c.topic == topic)
    ]


def _read_odometry(reader, deserialize, topic: Optional[str]) -> List[Sample]:
    samples = []
    connections = _odometry_connections(reader.connections, topic)
    if not connections:
        wanted = topic if topic is not None else ODOMETRY_MSGTYPE
        print(f"[Bag] Warning: no connections matching {wanted}")
        return samples

    for connection, _timestamp, rawdata in reader.messages(connections=connections):
        try:
            msg = deserialize(rawdata, connection.msgtype)
        except SerdeError as exc:
            print(f"[Bag] Could not decode message on {connection.topic} "
                  f"({connection.msgtype}): {exc}")
            continue
        samples.append(odometry_to_sample(msg))
    return samples


def load_odometry_bag(bag_path: str,
                      topic: Optional[str] = None,
                      typestore: str = "ROS1_NOETIC",
                      ros2_typestore: str = "ROS2_HUMBLE") -> Series:
    """
    Load the logged trajectory from nav_msgs/Odometry messages.

    A path ending in ``.bag`` is read as ROS1, anything else as a ROS2 bag.

    Args:
        bag_path: Path to the bag
        topic: Restrict to this topic (None = every odometry connection)
        typestore: rosbags Stores member used for ROS1 bags
        ros2_typestore: rosbags Stores member used for ROS2 bags

    Returns:
        Series sorted by header stamp
    """
    path = Path(bag_path)
    if not path.exists():
        raise FileNotFoundError(f"Bag not found: {bag_path}")

    if path.is_file() and path.suffix == ".bag":
        store = get_typestore(Stores[typestore])
        with Rosbag1Reader(path) as reader:
            samples = _read_odometry(reader, store.deserialize_ros1, topic)
    else:
        store = get_typestore(Stores[ros2_typestore])
        with Rosbag2Reader(path) as reader:
            samples = _read_odometry(reader, store.deserialize_cdr, topic)

    # Stable sort keeps bag order within duplicate stamps
    samples.sort(key=lambda s: s.t)

    nan_yaw = sum(1 for s in samples if np.isnan(s.yaw))
    print(f"[Bag] Loaded {len(samples)} odometry samples from {bag_path}")
    if nan_yaw:
        print(f"[Bag] {nan_yaw} samples have invalid (NaN) yaw")

    return Series.from_samples(samples, name="logged")
