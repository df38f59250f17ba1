import numpy as np
import pytest

import calc_errors
from traj_error.config import EvalConfig
from traj_error.data_loaders import InputInvalidError, Sample, Series
from traj_error.pipeline import run_analysis
from traj_error.statistics import OutlierKind


def _series(rows, name):
    return Series.from_samples([Sample(*row) for row in rows], name=name)


def test_end_to_end_three_samples():
    reference = _series([(0, 0, 0, 0.0), (1, 1, 0, 0.0), (2, 0, 0, 3.14)], "reference")
    logged = _series([(0, 0, 0, 0.0), (1, 1, 0, 0.0), (2, 0, 0, -3.14)], "logged")

    result = run_analysis(reference, logged)

    assert result.reference_count == 3
    assert result.unmatched_count == 0
    assert result.stats.position_std == 0.0
    assert result.stats.position_mean == 0.0
    assert result.stats.outliers == []
    assert result.full_report["orientation_error"].iloc[2] == pytest.approx(0.0031853, abs=1e-6)
    assert result.graph_series["dt"].tolist() == [0.0, 1.0, 2.0]


def test_config_threshold_and_radius_are_used():
    n = 40
    t = np.arange(n, dtype=float)
    t[21] = 20.0
    log_yaw = np.zeros(n)
    log_yaw[20] = np.nan
    ref_x = np.zeros(n)
    ref_x[30] = 1.0
    reference = Series(t=t, x=ref_x, y=np.zeros(n), yaw=np.zeros(n), name="reference")
    logged = Series(t=t, x=np.zeros(n), y=np.zeros(n), yaw=log_yaw, name="logged")

    strict = run_analysis(reference, logged, EvalConfig(search_radius=0, z_score_threshold=3.0))
    relaxed = run_analysis(reference, logged, EvalConfig(search_radius=10, z_score_threshold=1.0))

    # Without refinement both t=20 reference samples land on the NaN-yaw entry
    assert np.isnan(strict.errors[20].orientation_error)
    assert relaxed.errors[20].orientation_error == 0.0
    assert [r.error_index for r in relaxed.stats.outliers] == [30]
    assert relaxed.stats.outliers[0].kind == OutlierKind.POSITION


def test_empty_logged_series_fails_fast():
    reference = _series([(0, 0, 0, 0)], "reference")
    logged = _series([], "logged")
    with pytest.raises(InputInvalidError, match="logged"):
        run_analysis(reference, logged)


def test_unsorted_reference_fails_fast():
    reference = Series(t=[1.0, 0.0], x=[0, 0], y=[0, 0], yaw=[0, 0], name="reference")
    logged = _series([(0, 0, 0, 0), (1, 0, 0, 0)], "logged")
    with pytest.raises(InputInvalidError, match="reference"):
        run_analysis(reference, logged)


def test_no_matches_raises():
    reference = _series([(0.5, 0, 0, 0)], "reference")
    logged = _series([(0, 0, 0, 0), (1, 0, 0, 0)], "logged")
    with pytest.raises(ValueError, match="matched"):
        run_analysis(reference, logged)


def test_cli_reports_missing_input(tmp_path, capsys):
    code = calc_errors.main([str(tmp_path / "gt.csv"), str(tmp_path / "run.bag")])
    assert code == 1
    assert "[Error]" in capsys.readouterr().out


def _stub_inputs(monkeypatch):
    reference = _series([(0, 0, 0, 0.0), (1, 1, 0, 0.0), (2, 0, 0, 0.5)], "reference")
    logged = _series([(0, 0, 0, 0.0), (1, 1, 0, 0.0), (2, 0, 0, 0.0)], "logged")
    monkeypatch.setattr(calc_errors, "load_ground_truth_csv", lambda path: reference)
    monkeypatch.setattr(calc_errors, "load_odometry_bag", lambda path, **kwargs: logged)


def test_cli_writes_outputs_named_after_bag(tmp_path, monkeypatch):
    _stub_inputs(monkeypatch)
    out_dir = tmp_path / "results"

    code = calc_errors.main(["gt.csv", "/data/run_7.bag", "--output_dir", str(out_dir)])

    assert code == 0
    assert (out_dir / "run_7_error.csv").exists()
    assert len((out_dir / "run_7_error_graph_data.csv").read_text().splitlines()) == 3
    assert not (out_dir / "run_7_error_timeline.png").exists()


def test_cli_reports_unwritable_output_dir(tmp_path, monkeypatch, capsys):
    _stub_inputs(monkeypatch)
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")

    code = calc_errors.main(["gt.csv", "run.bag", "--output_dir", str(blocker)])

    assert code == 1
    assert "[Error] Could not write outputs" in capsys.readouterr().out
