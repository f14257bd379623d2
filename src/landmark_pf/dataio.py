"""Readers and writers for the plain-text dataset layout.

Layout of a dataset directory::

    map_data.txt            x  y  id        (tab or space separated)
    control_data.txt        velocity  yawrate
    ground_truth_data.txt   x  y  phi
    observation/            one file per step, sorted by name, rows "x y"

Every reader raises :class:`~landmark_pf.errors.DataFormatError` naming the
offending file when it is missing or malformed.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from landmark_pf.errors import DataFormatError
from landmark_pf.types import Controls, Dataset, Landmark, Pose2D, StepRecord

logger = logging.getLogger(__name__)

MAP_FILE = "map_data.txt"
CONTROLS_FILE = "control_data.txt"
GROUND_TRUTH_FILE = "ground_truth_data.txt"
OBSERVATION_DIR = "observation"
LOG_HEADER = ("pred_x", "pred_y", "pred_phi", "true_x", "true_y", "true_phi")


def _read_rows(path: str | Path, n_cols: int) -> np.ndarray:
    """Load a whitespace separated numeric table with at least ``n_cols`` columns."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DataFormatError(f"Cannot read {path}: {exc}") from exc
    if not text.strip():
        return np.empty((0, n_cols), dtype=float)
    try:
        rows = np.loadtxt(text.splitlines(), dtype=float, ndmin=2)
    except ValueError as exc:
        raise DataFormatError(f"Malformed numeric data in {path}: {exc}") from exc
    if rows.shape[1] < n_cols:
        raise DataFormatError(f"{path} needs {n_cols} columns per row, got {rows.shape[1]}")
    if not np.all(np.isfinite(rows[:, :n_cols])):
        raise DataFormatError(f"{path} contains non-finite values")
    return rows[:, :n_cols]


def read_map(path: str | Path) -> list[Landmark]:
    """Read landmarks as ``x y id`` rows."""
    rows = _read_rows(path, 3)
    if np.any(rows[:, 2] != np.round(rows[:, 2])):
        raise DataFormatError(f"Landmark ids in {path} must be integers")
    landmarks = [Landmark(x=float(x), y=float(y), landmark_id=int(lid)) for x, y, lid in rows]
    logger.info("Read %d landmarks from %s", len(landmarks), path)
    return landmarks


def read_controls(path: str | Path) -> list[Controls]:
    """Read controls as ``velocity yawrate`` rows."""
    rows = _read_rows(path, 2)
    controls = [Controls(velocity=float(v), yawrate=float(w)) for v, w in rows]
    logger.info("Read %d control samples from %s", len(controls), path)
    return controls


def read_observation_file(path: str | Path) -> list[Landmark]:
    """Read one step of vehicle-frame observations as ``x y`` rows."""
    return [Landmark(x=float(x), y=float(y)) for x, y in _read_rows(path, 2)]


def read_observations(directory: str | Path) -> list[list[Landmark]]:
    """Read every observation file in ``directory``, ordered by file name."""
    directory = Path(directory)
    if not directory.is_dir():
        raise DataFormatError(f"Observation directory not found: {directory}")
    files = sorted(path for path in directory.iterdir() if path.is_file())
    batches = [read_observation_file(path) for path in files]
    logger.info("Read %d observation steps from %s", len(batches), directory)
    return batches


def read_ground_truth(path: str | Path) -> list[Pose2D]:
    """Read ground-truth poses as ``x y phi`` rows."""
    rows = _read_rows(path, 3)
    poses = [Pose2D(x=float(x), y=float(y), phi=float(phi)) for x, y, phi in rows]
    logger.info("Read %d ground-truth poses from %s", len(poses), path)
    return poses


def read_dataset(directory: str | Path, with_ground_truth: bool = True) -> Dataset:
    """Read a complete dataset laid out as described in the module docstring."""
    directory = Path(directory)
    ground_truth = read_ground_truth(directory / GROUND_TRUTH_FILE) if with_ground_truth else []
    return Dataset(
        landmarks=read_map(directory / MAP_FILE),
        controls=read_controls(directory / CONTROLS_FILE),
        observations=read_observations(directory / OBSERVATION_DIR),
        ground_truth=ground_truth,
    )


def write_dataset(directory: str | Path, dataset: Dataset) -> Path:
    """Write ``dataset`` in the layout read by :func:`read_dataset`."""
    directory = Path(directory)
    obs_dir = directory / OBSERVATION_DIR
    obs_dir.mkdir(parents=True, exist_ok=True)

    map_rows = np.array([[lm.x, lm.y, lm.landmark_id] for lm in dataset.landmarks], dtype=float).reshape(-1, 3)
    np.savetxt(directory / MAP_FILE, map_rows, fmt=["%.6f", "%.6f", "%d"], delimiter="\t")
    np.savetxt(directory / CONTROLS_FILE, np.array([c.as_array() for c in dataset.controls]).reshape(-1, 2), fmt="%.8f")
    if dataset.ground_truth:
        np.savetxt(directory / GROUND_TRUTH_FILE, np.array([p.as_array() for p in dataset.ground_truth]), fmt="%.8f")

    width = max(6, len(str(len(dataset.observations))))
    for index, batch in enumerate(dataset.observations, start=1):
        rows = np.array([obs.as_array() for obs in batch], dtype=float).reshape(-1, 2)
        np.savetxt(obs_dir / f"observations_{index:0{width}d}.txt", rows, fmt="%.6f")
    return directory


def write_log(path: str | Path, records: list[StepRecord]) -> Path:
    """Write per-step estimates as CSV with a ``pred_*``/``true_*`` header."""
    path = Path(path)
    rows = np.array([record.as_row() for record in records], dtype=float).reshape(-1, len(LOG_HEADER))
    np.savetxt(path, rows, delimiter=",", header=",".join(LOG_HEADER), comments="", fmt="%.8f")
    logger.info("Wrote %d log rows to %s", len(records), path)
    return path
