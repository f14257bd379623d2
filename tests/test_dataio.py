import numpy as np
import pytest

from landmark_pf.dataio import (
    LOG_HEADER,
    read_controls,
    read_dataset,
    read_map,
    read_observations,
    write_dataset,
    write_log,
)
from landmark_pf.errors import DataFormatError
from landmark_pf.types import Dataset, Pose2D, StepRecord


def test_dataset_written_and_read_back(tmp_path, deterministic_dataset: Dataset) -> None:
    write_dataset(tmp_path, deterministic_dataset)
    loaded = read_dataset(tmp_path)

    assert [lm.landmark_id for lm in loaded.landmarks] == [lm.landmark_id for lm in deterministic_dataset.landmarks]
    assert len(loaded.controls) == len(deterministic_dataset.controls)
    assert loaded.num_steps == deterministic_dataset.num_steps
    assert [len(batch) for batch in loaded.observations] == [len(batch) for batch in deterministic_dataset.observations]
    assert np.isclose(loaded.ground_truth[-1].phi, deterministic_dataset.ground_truth[-1].phi)


def test_read_map_tab_separated(tmp_path) -> None:
    path = tmp_path / "map.txt"
    path.write_text("92.064\t-34.777\t1\n61.109\t-47.132\t2\n")
    landmarks = read_map(path)
    assert [lm.landmark_id for lm in landmarks] == [1, 2]
    assert landmarks[0].x == pytest.approx(92.064)


def test_read_map_rejects_fractional_ids(tmp_path) -> None:
    path = tmp_path / "map.txt"
    path.write_text("1.0 2.0 1.5\n")
    with pytest.raises(DataFormatError):
        read_map(path)


def test_read_controls_rejects_malformed_rows(tmp_path) -> None:
    path = tmp_path / "controls.txt"
    path.write_text("1.0 0.1\nfast 0.2\n")
    with pytest.raises(DataFormatError):
        read_controls(path)


def test_read_controls_rejects_missing_column(tmp_path) -> None:
    path = tmp_path / "controls.txt"
    path.write_text("1.0\n2.0\n")
    with pytest.raises(DataFormatError):
        read_controls(path)


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(DataFormatError, match="missing.txt"):
        read_controls(tmp_path / "missing.txt")


def test_undecodable_file_raises(tmp_path) -> None:
    path = tmp_path / "map.txt"
    path.write_bytes(b"1.0\t2.0\t1\n\xff\xfe bad\n")
    with pytest.raises(DataFormatError, match="map.txt"):
        read_map(path)


def test_observations_sorted_by_name_and_empty_files_allowed(tmp_path) -> None:
    (tmp_path / "observations_000002.txt").write_text("1.0 2.0\n3.0 4.0\n")
    (tmp_path / "observations_000001.txt").write_text("")
    batches = read_observations(tmp_path)
    assert [len(batch) for batch in batches] == [0, 2]
    assert batches[1][1].as_array().tolist() == [3.0, 4.0]


def test_missing_observation_directory_raises(tmp_path) -> None:
    with pytest.raises(DataFormatError):
        read_observations(tmp_path / "nope")


def test_write_log_header_and_rows(tmp_path) -> None:
    records = [
        StepRecord(predicted=Pose2D(1.0, 2.0, 0.1), ground_truth=Pose2D(1.1, 2.1, 0.0)),
        StepRecord(predicted=Pose2D(3.0, 4.0, 0.2)),
    ]
    path = write_log(tmp_path / "log.csv", records)
    lines = path.read_text().splitlines()
    assert lines[0] == ",".join(LOG_HEADER)

    rows = np.loadtxt(path, delimiter=",", skiprows=1, ndmin=2)
    assert rows.shape == (2, 6)
    assert np.allclose(rows[0], [1.0, 2.0, 0.1, 1.1, 2.1, 0.0])
    assert np.all(np.isnan(rows[1, 3:]))
