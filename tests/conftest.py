from __future__ import annotations

import pytest

from landmark_pf.sim.landmark_map import LandmarkMap
from landmark_pf.sim.simulator import SimConfig, Simulator, nominal_route
from landmark_pf.types import Dataset, FilterConfig


@pytest.fixture
def sim_config() -> SimConfig:
    return SimConfig(
        dt=0.1,
        steps=40,
        sensor_range=50.0,
        trajectory_mode="figure_eight",
        nominal_velocity=5.0,
        nominal_yawrate=0.3,
        control_noise_std=(0.02, 0.002),
        observation_noise_std=(0.05, 0.05),
    )


@pytest.fixture
def landmark_map(sim_config: SimConfig) -> LandmarkMap:
    return LandmarkMap.around_route(
        nominal_route(sim_config), n_landmarks=30, sensor_range=sim_config.sensor_range, seed=11, min_spacing=2.0
    )


@pytest.fixture
def deterministic_dataset(landmark_map: LandmarkMap, sim_config: SimConfig) -> Dataset:
    """Small seeded dataset used for stable end-to-end regression tests."""
    return Simulator(landmark_map=landmark_map, config=sim_config, seed=7).run()


@pytest.fixture
def filter_config() -> FilterConfig:
    return FilterConfig(num_particles=100, dt=0.1, sensor_range=50.0)


@pytest.fixture
def noiseless_config() -> FilterConfig:
    """Config without pose noise so predictions are exactly deterministic."""
    return FilterConfig(num_particles=5, position_std=(0.0, 0.0, 0.0), landmark_std=(0.3, 0.3), dt=1.0, sensor_range=50.0)
