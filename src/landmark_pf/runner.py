"""Drive a :class:`ParticleFilter` over a recorded or simulated dataset."""

from __future__ import annotations

import logging
import time
from typing import Callable

import numpy as np

from landmark_pf.errors import DataFormatError
from landmark_pf.particle_filter import ParticleFilter
from landmark_pf.types import Controls, Dataset, FilterConfig, Landmark, Pose2D, StepRecord

logger = logging.getLogger(__name__)

StepCallback = Callable[[int, ParticleFilter, Pose2D | None], None]


def check_inputs(
    observations: list[list[Landmark]],
    controls: list[Controls],
    ground_truth: list[Pose2D] | None,
    initial_pose: Pose2D | None,
) -> None:
    """Reject input sequences that cannot cover every observation step."""
    n_steps = len(observations)
    if n_steps and len(controls) < n_steps - 1:
        raise DataFormatError(f"{n_steps} observation steps need at least {n_steps - 1} controls, got {len(controls)}")
    if ground_truth and len(ground_truth) < n_steps:
        raise DataFormatError(f"{n_steps} observation steps need {n_steps} ground-truth poses, got {len(ground_truth)}")
    if initial_pose is None and not ground_truth and n_steps:
        raise DataFormatError("An initial pose or a ground-truth sequence is required to initialize the filter")


def run_filter(
    landmarks: list[Landmark],
    observations: list[list[Landmark]],
    controls: list[Controls],
    config: FilterConfig,
    ground_truth: list[Pose2D] | None = None,
    initial_pose: Pose2D | None = None,
    seed: int | None = None,
    callback: StepCallback | None = None,
) -> list[StepRecord]:
    """Run the filter over every observation batch and collect best estimates.

    The filter is initialized from ``initial_pose`` or, if omitted, from the
    first ground-truth pose. Step ``i > 0`` predicts with ``controls[i - 1]``.
    ``callback(step_index, pf, truth)`` is invoked after each step.
    """
    check_inputs(observations, controls, ground_truth, initial_pose)
    pf = ParticleFilter(seed=seed)
    records: list[StepRecord] = []

    t_start = time.perf_counter()
    for index, batch in enumerate(observations):
        truth = ground_truth[index] if ground_truth else None
        if not pf.initialized:
            pf.init(initial_pose if initial_pose is not None else truth, config)
            best = pf.step(batch, landmarks)
        else:
            best = pf.step(batch, landmarks, controls=controls[index - 1])

        records.append(StepRecord(predicted=best.pose, ground_truth=truth))
        if callback is not None:
            callback(index, pf, truth)
    elapsed = time.perf_counter() - t_start

    logger.info("Ran %d steps in %.3f s", len(records), elapsed)
    if ground_truth and records:
        error = mean_position_error(records)
        logger.info("Mean position error of best particle: %.4f m", error)
    return records


def run_dataset(
    dataset: Dataset,
    config: FilterConfig,
    initial_pose: Pose2D | None = None,
    seed: int | None = None,
    callback: StepCallback | None = None,
) -> list[StepRecord]:
    """Convenience wrapper around :func:`run_filter` for a :class:`Dataset`."""
    return run_filter(
        landmarks=dataset.landmarks,
        observations=dataset.observations,
        controls=dataset.controls,
        config=config,
        ground_truth=dataset.ground_truth or None,
        initial_pose=initial_pose,
        seed=seed,
        callback=callback,
    )


def mean_position_error(records: list[StepRecord]) -> float:
    """Mean Euclidean distance between best estimates and ground truth."""
    pairs = [(r.predicted, r.ground_truth) for r in records if r.ground_truth is not None]
    if not pairs:
        return float("nan")
    errors = [np.hypot(pred.x - truth.x, pred.y - truth.y) for pred, truth in pairs]
    return float(np.mean(errors))
