from types import SimpleNamespace

import numpy as np
import pytest
from rosbags.rosbag2 import Writer
from rosbags.typesys import Stores, get_typestore

from traj_error.data_loaders import (
    ODOMETRY_MSGTYPE,
    InputInvalidError,
    Sample,
    Series,
    load_ground_truth_csv,
    load_odometry_bag,
    odometry_to_sample,
)
from traj_error.math_utils import stamp_to_seconds


def _write_gt(tmp_path, lines):
    path = tmp_path / "ground_truth.csv"
    path.write_text("\n".join(lines) + "\n")
    return str(path)


def test_load_ground_truth_csv_combines_secs_and_nsecs(tmp_path):
    path = _write_gt(tmp_path, [
        "secs,nsecs,x,y,yaw",
        "1600000000,250000000,1.0,2.0,0.5",
        "1600000000,500000000,1.5,2.5,nan",
    ])
    series = load_ground_truth_csv(path)

    assert len(series) == 2
    assert series.name == "reference"
    assert series[0].t == stamp_to_seconds(1600000000, 250000000)
    assert series[1].t == stamp_to_seconds(1600000000, 500000000)
    assert series[0].x == 1.0
    assert series[1].y == 2.5
    assert np.isnan(series[1].yaw)


def test_load_ground_truth_csv_ignores_header_names(tmp_path):
    path = _write_gt(tmp_path, [
        "%time_s, time_ns, pos_x, pos_y, heading",
        "10, 0, 0.0, 0.0, 0.1",
    ])
    series = load_ground_truth_csv(path)
    assert series[0].t == 10.0
    assert series[0].yaw == pytest.approx(0.1)


def test_load_ground_truth_csv_sorts_by_time(tmp_path):
    path = _write_gt(tmp_path, [
        "secs,nsecs,x,y,yaw",
        "3,0,3.0,0,0",
        "1,0,1.0,0,0",
        "2,0,2.0,0,0",
    ])
    series = load_ground_truth_csv(path)
    assert list(series.t) == [1.0, 2.0, 3.0]
    assert list(series.x) == [1.0, 2.0, 3.0]


def test_load_ground_truth_csv_missing_columns(tmp_path):
    path = _write_gt(tmp_path, ["secs,nsecs,x", "1,0,0.0"])
    with pytest.raises(ValueError):
        load_ground_truth_csv(path)


def test_load_ground_truth_csv_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_ground_truth_csv(str(tmp_path / "missing.csv"))


def test_load_odometry_bag_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_odometry_bag(str(tmp_path / "missing.bag"))


def _odometry_msg(types, stamp_sec, x, yaw):
    return types["nav_msgs/msg/Odometry"](
        header=types["std_msgs/msg/Header"](
            stamp=types["builtin_interfaces/msg/Time"](sec=stamp_sec, nanosec=0),
            frame_id="odom",
        ),
        child_frame_id="base_link",
        pose=types["geometry_msgs/msg/PoseWithCovariance"](
            pose=types["geometry_msgs/msg/Pose"](
                position=types["geometry_msgs/msg/Point"](x=x, y=0.0, z=0.0),
                orientation=types["geometry_msgs/msg/Quaternion"](
                    x=0.0, y=0.0, z=np.sin(yaw / 2), w=np.cos(yaw / 2)),
            ),
            covariance=np.zeros(36, dtype=np.float64),
        ),
        twist=types["geometry_msgs/msg/TwistWithCovariance"](
            twist=types["geometry_msgs/msg/Twist"](
                linear=types["geometry_msgs/msg/Vector3"](x=0.0, y=0.0, z=0.0),
                angular=types["geometry_msgs/msg/Vector3"](x=0.0, y=0.0, z=0.0),
            ),
            covariance=np.zeros(36, dtype=np.float64),
        ),
    )


def _write_ros2_bag(path, stamps, topic="/odom"):
    """ROS2 bag with one odometry message per stamp; x equals the stamp."""
    typestore = get_typestore(Stores.ROS2_HUMBLE)
    with Writer(path) as writer:
        connection = writer.add_connection(topic, ODOMETRY_MSGTYPE, typestore=typestore)
        for sec in stamps:
            msg = _odometry_msg(typestore.types, sec, float(sec), 0.5)
            writer.write(connection, sec * 1_000_000_000,
                         typestore.serialize_cdr(msg, ODOMETRY_MSGTYPE))
    return str(path)


def test_load_odometry_bag_reads_ros2_bag_sorted(tmp_path, capsys):
    bag = _write_ros2_bag(tmp_path / "odom_bag", [3, 1, 2])

    series = load_odometry_bag(bag)

    assert series.name == "logged"
    assert list(series.t) == [1.0, 2.0, 3.0]
    assert list(series.x) == [1.0, 2.0, 3.0]
    assert list(series.y) == [0.0, 0.0, 0.0]
    assert np.allclose(series.yaw, 0.5)
    assert "[Bag] Loaded 3 odometry samples" in capsys.readouterr().out


def test_load_odometry_bag_unknown_topic_is_empty(tmp_path, capsys):
    bag = _write_ros2_bag(tmp_path / "odom_bag", [1, 2])

    series = load_odometry_bag(bag, topic="/other")

    assert len(series) == 0
    out = capsys.readouterr().out
    assert "[Bag] Warning: no connections matching /other" in out
    assert "[Bag] Loaded 0 odometry samples" in out


def test_odometry_to_sample_extracts_yaw():
    yaw = 0.8
    msg = SimpleNamespace(
        header=SimpleNamespace(stamp=SimpleNamespace(sec=42, nanosec=125000000)),
        pose=SimpleNamespace(pose=SimpleNamespace(
            position=SimpleNamespace(x=1.5, y=-2.0, z=0.0),
            orientation=SimpleNamespace(w=np.cos(yaw / 2), x=0.0, y=0.0, z=np.sin(yaw / 2)),
        )),
    )
    sample = odometry_to_sample(msg)

    assert sample.t == stamp_to_seconds(42, 125000000)
    assert sample.x == 1.5
    assert sample.y == -2.0
    assert sample.yaw == pytest.approx(yaw)


def test_series_is_read_only():
    series = Series.from_samples([Sample(0.0, 1.0, 2.0, 0.3)])
    with pytest.raises(ValueError):
        series.t[0] = 5.0
    with pytest.raises(AttributeError):
        series.name = "other"


def test_series_indexing_and_iteration():
    samples = [Sample(float(i), float(i), -float(i), 0.1 * i) for i in range(4)]
    series = Series.from_samples(samples)

    assert series[2] == samples[2]
    assert series[-1] == samples[-1]
    assert list(series) == samples
    assert list(series.to_frame().columns) == ["t", "x", "y", "yaw"]


def test_series_rejects_ragged_columns():
    with pytest.raises(ValueError):
        Series(t=[0.0, 1.0], x=[0.0], y=[0.0, 1.0], yaw=[0.0, 0.0])


def test_validate_rejects_empty_and_unsorted():
    with pytest.raises(InputInvalidError):
        Series.from_samples([], name="logged").validate()

    unsorted = Series(t=[0.0, 2.0, 1.0], x=[0, 0, 0], y=[0, 0, 0], yaw=[0, 0, 0])
    with pytest.raises(InputInvalidError, match="not sorted"):
        unsorted.validate()

    with pytest.raises(InputInvalidError):
        Series(t=[0.0, np.nan], x=[0, 0], y=[0, 0], yaw=[0, 0]).validate()


def test_validate_accepts_duplicate_stamps():
    Series(t=[0.0, 1.0, 1.0, 2.0], x=[0] * 4, y=[0] * 4, yaw=[0] * 4).validate()


def test_input_invalid_is_value_error():
    assert issubclass(InputInvalidError, ValueError)
