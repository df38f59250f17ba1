#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Trajectory Error Reporting Module

Shapes the error series and statistics into the three output datasets and
writes them out:

- Full report: every matched sample (time, position error, orientation error)
- Outlier report: the flagged subset, annotated by outlier kind
- Graph series: the full report with time shifted to start at zero

Writers cover the console report, the ``*_error.csv`` summary file, the
headerless ``*_error_graph_data.csv`` plotting file and a timeline PNG.
"""

import os
from typing import Sequence

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from .errors import ErrorSample
from .statistics import ErrorStatistics, OutlierKind


FULL_COLUMNS = ["time", "position_error", "orientation_error"]
OUTLIER_COLUMNS = ["time", "position_error", "orientation_error", "kind"]
GRAPH_COLUMNS = ["dt", "position_error", "orientation_error"]

SEPARATOR = "-" * 99


# =============================================================================
# Datasets
# =============================================================================

def build_full_report(errors: Sequence[ErrorSample]) -> pd.DataFrame:
    """Per-sample listing in error-series order."""
    return pd.DataFrame(
        [(e.t, e.position_error, e.orientation_error) for e in errors],
        columns=FULL_COLUMNS,
    )


def build_outlier_report(errors: Sequence[ErrorSample],
                         stats: ErrorStatistics) -> pd.DataFrame:
    """Outlier-only listing; ``kind`` holds the OutlierKind label."""
    rows = []
    for record in stats.outliers:
        e = errors[record.error_index]
        rows.append((e.t, e.position_error, e.orientation_error, record.kind.label))
    return pd.DataFrame(rows, columns=OUTLIER_COLUMNS)


def build_graph_series(errors: Sequence[ErrorSample]) -> pd.DataFrame:
    """Full listing with dt = time - first error sample time."""
    if len(errors) == 0:
        return pd.DataFrame(columns=GRAPH_COLUMNS)
    start = errors[0].t
    return pd.DataFrame(
        [(e.t - start, e.position_error, e.orientation_error) for e in errors],
        columns=GRAPH_COLUMNS,
    )


# =============================================================================
# Writers
# =============================================================================

def get_bag_name(full_path: str) -> str:
    """File name without directory and extension (bag directories keep their name)."""
    file_name = os.path.basename(os.path.normpath(full_path))
    return os.path.splitext(file_name)[0]


def _shows_position(kind: OutlierKind) -> bool:
    return kind in (OutlierKind.POSITION, OutlierKind.BOTH)


def _shows_orientation(kind: OutlierKind) -> bool:
    return kind in (OutlierKind.ORIENTATION, OutlierKind.BOTH)


def print_report(result):
    """Print individual entries, outliers and the analysis summary."""
    stats = result.stats

    print(SEPARATOR)
    print("INDIVIDUAL ENTRIES\n")
    for e in result.errors:
        print(f"Time: [{e.t:014.3f}], Position Error: [{e.position_error:07.5f}], "
              f"Orientation Error: [{e.orientation_error:07.5f}]")

    print(SEPARATOR)
    print("OUTLIERS\n")
    for record in stats.outliers:
        e = result.errors[record.error_index]
        line = f"Time: [{e.t:014.3f}], "
        if _shows_position(record.kind):
            line += f"Position Error: [{e.position_error:07.5f}]"
            if record.kind == OutlierKind.BOTH:
                line += ", "
        else:
            line += " " * 27
        if _shows_orientation(record.kind):
            line += f"Orientation Error: [{e.orientation_error:07.5f}]"
        print(line)

    print(SEPARATOR)
    print("ANALYSIS\n")
    print(f"Total Entries: {len(result.errors)}, "
          f"failed to find {result.unmatched_count} entries in the bag file\n")
    print(f"Found {len(stats.outliers)} outliers\n")
    print("Counting Outliers:")
    print(f"Position Error Mean: [{stats.position_mean:.5f}]")
    print(f"Orientation Error Mean: [{stats.orientation_mean:.5f}]\n")
    print("Not Counting Outliers:")
    print(f"Position Error Mean: [{stats.position_mean_inliers:.5f}]")
    print(f"Orientation Error Mean: [{stats.orientation_mean_inliers:.5f}]\n")


def write_error_csv(output_path: str, result):
    """
    Write the analysis summary, outliers and individual entries.

    Outlier rows only carry the value(s) of the flagged dimension(s); an
    orientation-only outlier leaves the position column empty.
    """
    stats = result.stats

    with open(output_path, 'w') as f:
        f.write("ANALYSIS\n")
        f.write(f"Total Entries,{len(result.errors)}\n")
        f.write(f"Entries not Found,{result.unmatched_count}\n")
        f.write(f"Outliers Found,{len(stats.outliers)}\n\n")
        f.write("Counting Outliers\n")
        f.write(f"Position Error Mean,{stats.position_mean:.7f}\n")
        f.write(f"Orientation Error Mean,{stats.orientation_mean:.7f}\n\n")
        f.write("Not Counting Outliers\n")
        f.write(f"Position Error Mean,{stats.position_mean_inliers:.7f}\n")
        f.write(f"Orientation Error Mean,{stats.orientation_mean_inliers:.7f}\n\n\n")

        f.write("OUTLIERS\n")
        f.write("Time Stamp, Position Error, Orientation Error\n")
        for record in stats.outliers:
            e = result.errors[record.error_index]
            line = f"{e.t:.3f},"
            if _shows_position(record.kind):
                line += f"{e.position_error:.5f}"
            if _shows_orientation(record.kind):
                line += f",{e.orientation_error:.5f}"
            f.write(line + "\n")

        f.write("\n\nINDIVIDUAL ENTRIES\n")
        f.write("Time Stamp, Position Error, Orientation Error\n")
        for row in result.full_report.itertuples(index=False):
            f.write(f"{row.time:.5f},{row.position_error:.5f},{row.orientation_error:.5f}\n")
        f.write("\n\n")

    print(f"[Report] Saved error report: {output_path}")


def write_graph_csv(output_path: str, result):
    """Headerless dt,position_error,orientation_error rows for plotting tools."""
    result.graph_series.to_csv(output_path, header=False, index=False, float_format="%.5f")
    print(f"[Report] Saved graph data: {output_path}")


def plot_error_timeline(output_path: str, result):
    """Plot position and orientation error over time with outliers marked."""
    graph = result.graph_series
    stats = result.stats
    fig, axes = plt.subplots(2, 1, figsize=(14, 8), sharex=True)

    outlier_idx = [r.error_index for r in stats.outliers]
    outlier_kinds = [r.kind for r in stats.outliers]

    panels = [
        (axes[0], 'position_error', 'Position Error (m)', 'b-',
         stats.position_mean, stats.position_mean_inliers, _shows_position),
        (axes[1], 'orientation_error', 'Orientation Error (rad)', 'orange',
         stats.orientation_mean, stats.orientation_mean_inliers, _shows_orientation),
    ]
    for ax, column, label, style, mean_all, mean_inliers, flagged in panels:
        ax.plot(graph['dt'], graph[column], style, linewidth=0.8, alpha=0.8)
        ax.set_ylabel(label, fontsize=12)
        ax.grid(True, alpha=0.3)
        ax.axhline(mean_all, color='r', linestyle='--', linewidth=1.5,
                   label=f'Mean: {mean_all:.4f}')
        if np.isfinite(mean_inliers):
            ax.axhline(mean_inliers, color='g', linestyle=':', linewidth=1.5,
                       label=f'Mean (no outliers): {mean_inliers:.4f}')
        idx = [i for i, kind in zip(outlier_idx, outlier_kinds) if flagged(kind)]
        if idx:
            ax.scatter(graph['dt'].iloc[idx], graph[column].iloc[idx],
                       color='k', marker='x', s=30, zorder=3, label='Outliers')
        ax.legend(loc='upper right')

    axes[0].set_title('Odometry vs Ground Truth: Error Timeline', fontsize=14, fontweight='bold')
    axes[1].set_xlabel('Time (s)', fontsize=12)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches='tight')
    print(f"[Plot] Saved error timeline: {output_path}")
    plt.close(fig)
