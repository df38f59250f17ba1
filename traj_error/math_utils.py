#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Trajectory Error Math Utilities
===============================

Angle helpers shared by the aligner, the error computer and the bag decoder.

Angle Convention:
-----------------
Yaw is a rotation about the Z-axis in radians. Values coming from the ground
truth file and from the odometry quaternions both live (nominally) in [-π, π],
but nothing here assumes that: comparisons are done modulo 2π.

Quaternion Convention:
----------------------
Quaternions use Hamilton convention with [w, x, y, z] ordering, the same as
the `geometry_msgs/Quaternion` fields read out of the bag.

Author: Trajectory evaluation project
"""

import numpy as np


TWO_PI = 2.0 * np.pi


def angular_error(a: float, b: float) -> float:
    """
    Absolute yaw difference corrected for radian looping.

    |a - b| overstates the error near the ±π boundary: comparing 0.01 rad
    to 6.27 rad should read as ~0.01, not ~6.26. When the raw difference lies
    strictly between π and 2π the complement 2π - |a - b| is returned.

    Args:
        a: First yaw (radians)
        b: Second yaw (radians)

    Returns:
        Wrapped absolute difference. NaN if either input is NaN.
    """
    error = abs(a - b)
    if np.pi < error < TWO_PI:
        error = TWO_PI - error
    return error


def angular_error_array(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Vectorised angular_error over two equally shaped arrays."""
    error = np.abs(np.asarray(a, dtype=float) - np.asarray(b, dtype=float))
    wrap = (error > np.pi) & (error < TWO_PI)
    return np.where(wrap, TWO_PI - error, error)


def quaternion_to_yaw(q_wxyz) -> float:
    """
    Extract yaw angle from quaternion [w,x,y,z].
    Yaw = rotation around Z-axis

    A quaternion with NaN components yields NaN, which downstream code treats
    as an invalid orientation sample.

    Returns:
        Yaw angle in radians [-π, π]
    """
    w, x, y, z = q_wxyz
    # Using atan2 formula for yaw from quaternion
    siny_cosp = 2.0 * (w * z + x * y)
    cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
    yaw = np.arctan2(siny_cosp, cosy_cosp)
    return float(yaw)


def stamp_to_seconds(sec, nsec) -> float:
    """Combine a ROS (sec, nsec) stamp into float seconds."""
    return float(sec) + float(nsec) * 1e-9
