import numpy as np
import pytest

from landmark_pf.math_utils import to_map_frame
from landmark_pf.sim.landmark_map import LandmarkMap
from landmark_pf.sim.simulator import SimConfig, Simulator, nominal_route
from landmark_pf.types import Landmark, Pose2D


def test_simulator_generates_steps() -> None:
    landmark_map = LandmarkMap.scatter((-5, -5, 5, 5), n_landmarks=5, seed=1)
    dataset = Simulator(landmark_map=landmark_map, config=SimConfig(steps=10, dt=0.1), seed=3).run()
    assert dataset.num_steps == 10
    assert len(dataset.controls) == 9
    assert len(dataset.ground_truth) == 10
    assert [lm.landmark_id for lm in dataset.landmarks] == [1, 2, 3, 4, 5]


def test_simulator_reset_reproducible() -> None:
    landmark_map = LandmarkMap.scatter((-8, -8, 8, 8), n_landmarks=10, seed=2)
    sim = Simulator(landmark_map=landmark_map, config=SimConfig(trajectory_mode="figure_eight"), seed=5)

    rollout_a = sim.run(5)
    sim.reset(seed=5)
    rollout_b = sim.run(5)

    assert rollout_a.controls == rollout_b.controls
    assert rollout_a.ground_truth == rollout_b.ground_truth
    assert rollout_a.observations == rollout_b.observations


def test_simulator_ground_truth_follows_nominal_route() -> None:
    config = SimConfig(steps=25, trajectory_mode="figure_eight")
    landmark_map = LandmarkMap.scatter((-10, -10, 10, 10), n_landmarks=5, seed=0)
    dataset = Simulator(landmark_map=landmark_map, config=config, seed=9, initial_pose=Pose2D(1.0, 2.0, 0.5)).run()
    assert dataset.ground_truth == nominal_route(config, initial_pose=Pose2D(1.0, 2.0, 0.5))


def test_simulator_observations_are_vehicle_frame() -> None:
    config = SimConfig(steps=6, sensor_range=15.0, trajectory_mode="circle", observation_noise_std=(0.0, 0.0))
    landmark_map = LandmarkMap.around_route(nominal_route(config), n_landmarks=16, sensor_range=15.0, seed=0, min_spacing=3.0)
    dataset = Simulator(landmark_map=landmark_map, config=config, seed=7).run()
    landmarks_xy = landmark_map.as_array()

    for truth, batch in zip(dataset.ground_truth, dataset.observations):
        assert len(batch) == len(landmark_map.visible_from(truth, 15.0))
        obs_xy = np.array([obs.as_array() for obs in batch]).reshape(-1, 2)
        mapped = to_map_frame(obs_xy, truth.as_array()[None, :])[0]
        for point in mapped:
            distances = np.hypot(*(landmarks_xy - point).T)
            assert np.min(distances) < 1e-9
            assert np.hypot(point[0] - truth.x, point[1] - truth.y) <= 15.0 + 1e-9


def test_simulator_dropout() -> None:
    landmark_map = LandmarkMap.scatter((-5, -5, 5, 5), n_landmarks=50, seed=0)
    sim = Simulator(landmark_map=landmark_map, config=SimConfig(steps=3, observation_dropout_prob=1.0), seed=7)
    assert all(batch == [] for batch in sim.run().observations)


def test_scatter_keeps_min_spacing() -> None:
    landmark_map = LandmarkMap.scatter((0, 0, 40, 40), n_landmarks=25, seed=4, min_spacing=4.0)
    xy = landmark_map.as_array()
    distances = np.hypot(*(xy[:, None, :] - xy[None, :, :]).transpose(2, 0, 1))
    np.fill_diagonal(distances, np.inf)
    assert [lm.landmark_id for lm in landmark_map.landmarks] == list(range(1, 26))
    assert np.min(distances) >= 4.0
    assert np.all((xy >= 0.0) & (xy <= 40.0))


def test_scatter_rejects_impossible_spacing() -> None:
    with pytest.raises(ValueError, match="Could not place"):
        LandmarkMap.scatter((0, 0, 1, 1), n_landmarks=10, seed=0, min_spacing=5.0)


def test_around_route_pads_route_by_sensor_range() -> None:
    route = [Pose2D(0.0, 0.0, 0.0), Pose2D(10.0, 4.0, 0.0)]
    xy = LandmarkMap.around_route(route, n_landmarks=200, sensor_range=5.0, seed=1).as_array()
    assert np.all(xy >= [-5.0, -5.0])
    assert np.all(xy <= [15.0, 9.0])


def test_around_route_rejects_empty_route() -> None:
    with pytest.raises(ValueError):
        LandmarkMap.around_route([], n_landmarks=3, sensor_range=5.0)


def test_visible_from_includes_boundary() -> None:
    landmark_map = LandmarkMap.scatter((0, 0, 0, 0), n_landmarks=1, seed=0)
    landmark_map.landmarks.extend([Landmark(3.0, 4.0, 2), Landmark(6.0, 8.0, 3)])
    visible = landmark_map.visible_from(Pose2D(0.0, 0.0, 1.0), sensor_range=5.0)
    assert [lm.landmark_id for lm in visible] == [1, 2]
