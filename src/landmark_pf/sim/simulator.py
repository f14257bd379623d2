"""2D simulator for generating deterministic localization datasets.

The simulator provides:
- landmark visibility limited by sensor range, judged like the filter does
- several trajectory generators
- noisy velocity/yaw-rate controls
- noisy vehicle-frame landmark observations with dropout

Step ``0`` observes from the initial pose; step ``i > 0`` first moves the
vehicle with the true control ``i - 1``. The reported control sequence is the
noisy one, matching what a filter would receive from odometry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

import numpy as np

from landmark_pf.models.motion import ctrv_predict_states
from landmark_pf.sim.landmark_map import LandmarkMap
from landmark_pf.types import Controls, Dataset, Landmark, Pose2D

TrajectoryMode = Literal["straight", "circle", "figure_eight"]


@dataclass(slots=True)
class SimConfig:
    """Configuration for :class:`Simulator`.

    Attributes
    ----------
    dt:
        Fixed simulation timestep in seconds.
    steps:
        Number of observation steps per run.
    sensor_range:
        Max landmark sensing distance in meters.
    trajectory_mode:
        One of ``straight``, ``circle``, ``figure_eight``.
    nominal_velocity:
        Nominal speed in m/s.
    nominal_yawrate:
        Yaw-rate scale in rad/s for turning trajectories.
    control_noise_std:
        Standard deviation of reported control noise ``[velocity, yawrate]``.
    observation_noise_std:
        Standard deviation ``[x, y]`` of vehicle-frame observation noise.
    observation_dropout_prob:
        Probability of dropping an otherwise visible landmark.
    """

    dt: float = 0.1
    steps: int = 200
    sensor_range: float = 50.0
    trajectory_mode: TrajectoryMode = "figure_eight"
    nominal_velocity: float = 5.0
    nominal_yawrate: float = 0.3
    control_noise_std: tuple[float, float] = (0.05, 0.005)
    observation_noise_std: tuple[float, float] = (0.1, 0.1)
    observation_dropout_prob: float = 0.0


def trajectory_control(config: SimConfig, step_idx: int) -> Controls:
    """True control applied between step ``step_idx`` and ``step_idx + 1``."""
    mode = config.trajectory_mode
    v = config.nominal_velocity
    if mode == "straight":
        return Controls(velocity=v, yawrate=0.0)
    if mode == "circle":
        return Controls(velocity=v, yawrate=config.nominal_yawrate)
    if mode == "figure_eight":
        time_s = step_idx * config.dt
        return Controls(velocity=v, yawrate=config.nominal_yawrate * np.sin(0.2 * time_s))
    raise ValueError(f"Unsupported trajectory mode: {mode}")


def propagate_pose(pose: Pose2D, control: Controls, dt: float) -> Pose2D:
    x, y, phi = ctrv_predict_states(pose.as_array(), control, dt=dt, epsilon=1e-9)
    return Pose2D(x=float(x), y=float(y), phi=float(phi))


def nominal_route(config: SimConfig, initial_pose: Pose2D = Pose2D(0.0, 0.0, 0.0), steps: int | None = None) -> list[Pose2D]:
    """Noise-free poses the simulator will visit, one per observation step.

    Useful to lay out a :class:`LandmarkMap` before the simulator exists.
    """
    total_steps = config.steps if steps is None else steps
    route: list[Pose2D] = []
    pose = initial_pose
    for index in range(total_steps):
        if index > 0:
            pose = propagate_pose(pose, trajectory_control(config, index - 1), config.dt)
        route.append(pose)
    return route


@dataclass(slots=True)
class Simulator:
    """Generate controls, observations, and ground truth for localization runs."""

    landmark_map: LandmarkMap
    config: SimConfig = field(default_factory=SimConfig)
    seed: int | None = None
    initial_pose: Pose2D = field(default_factory=lambda: Pose2D(0.0, 0.0, 0.0))

    _rng: np.random.Generator = field(init=False, repr=False)
    _step_count: int = field(init=False, repr=False)
    _true_pose: Pose2D = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.reset()

    def reset(self, seed: int | None = None) -> None:
        """Reset vehicle state and random generator.

        If ``seed`` is omitted the constructor seed is reused.
        """
        self._rng = np.random.default_rng(self.seed if seed is None else seed)
        self._step_count = 0
        self._true_pose = self.initial_pose

    def run(self, steps: int | None = None) -> Dataset:
        """Simulate ``steps`` observation steps (``config.steps`` by default)."""
        total_steps = self.config.steps if steps is None else steps
        controls: list[Controls] = []
        observations: list[list[Landmark]] = []
        ground_truth: list[Pose2D] = []

        for index in range(total_steps):
            if index > 0:
                control_true = trajectory_control(self.config, self._step_count)
                self._true_pose = propagate_pose(self._true_pose, control_true, self.config.dt)
                controls.append(self._sample_noisy_control(control_true))
                self._step_count += 1
            ground_truth.append(self._true_pose)
            observations.append(self._sample_observations(self._true_pose))

        return Dataset(
            landmarks=list(self.landmark_map.landmarks),
            controls=controls,
            observations=observations,
            ground_truth=ground_truth,
        )

    def _sample_noisy_control(self, control_true: Controls) -> Controls:
        std_v, std_w = self.config.control_noise_std
        noise = self._rng.normal(loc=[0.0, 0.0], scale=[std_v, std_w], size=2)
        return Controls(
            velocity=float(control_true.velocity + noise[0]),
            yawrate=float(control_true.yawrate + noise[1]),
        )

    def _sample_observations(self, pose: Pose2D) -> list[Landmark]:
        std_x, std_y = self.config.observation_noise_std
        cos_phi, sin_phi = np.cos(pose.phi), np.sin(pose.phi)
        observations: list[Landmark] = []

        for landmark in self.landmark_map.visible_from(pose, self.config.sensor_range):
            if self._rng.random() < self.config.observation_dropout_prob:
                continue

            # Inverse of the vehicle-to-map rotation.
            dx = landmark.x - pose.x
            dy = landmark.y - pose.y
            ox = cos_phi * dx + sin_phi * dy
            oy = -sin_phi * dx + cos_phi * dy
            observations.append(
                Landmark(
                    x=float(ox + self._rng.normal(0.0, std_x)),
                    y=float(oy + self._rng.normal(0.0, std_y)),
                )
            )
        return observations
