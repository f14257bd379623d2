"""Motion model used by the prediction step."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from landmark_pf.types import Controls


def ctrv_predict_states(states: np.ndarray, controls: Controls, dt: float, epsilon: float) -> np.ndarray:
    """Propagate poses ``[x, y, phi]`` with the constant turn-rate model.

    Yaw rates with ``|yawrate| < epsilon`` use the straight-line branch so the
    ``velocity / yawrate`` term is never evaluated near zero. Headings are not
    wrapped.
    """
    states = np.asarray(states, dtype=float)
    x, y, phi = states[..., 0], states[..., 1], states[..., 2]
    v, w = controls.velocity, controls.yawrate

    if abs(w) < epsilon:
        x_next = x + v * dt * np.cos(phi)
        y_next = y + v * dt * np.sin(phi)
        phi_next = phi.copy()
    else:
        phi_next = phi + w * dt
        x_next = x + (v / w) * (np.sin(phi_next) - np.sin(phi))
        y_next = y + (v / w) * (np.cos(phi) - np.cos(phi_next))
    return np.stack([x_next, y_next, phi_next], axis=-1)


def sample_pose_noise(rng: np.random.Generator, std: tuple[float, float, float], n: int) -> np.ndarray:
    """Draw ``n`` independent ``[x, y, phi]`` Gaussian offsets with per-axis std-devs."""
    return rng.normal(loc=0.0, scale=np.asarray(std, dtype=float), size=(n, 3))


@dataclass(slots=True)
class ConstantTurnRateMotionModel:
    """Constant turn-rate and velocity motion model with additive pose noise.

    State convention: ``[x, y, phi]``.
    Control convention: ``velocity`` (m/s), ``yawrate`` (rad/s).

    The pose noise std-devs are the ones used to spread the initial ensemble;
    they double as per-step process noise.
    """

    dt: float
    epsilon: float
    noise_std: tuple[float, float, float]

    def predict_states(self, states: np.ndarray, controls: Controls) -> np.ndarray:
        """Noise-free propagation of every pose over one ``dt``."""
        return ctrv_predict_states(states, controls, dt=self.dt, epsilon=self.epsilon)

    def sample(self, states: np.ndarray, controls: Controls, rng: np.random.Generator) -> np.ndarray:
        """Propagate poses and add independent process noise per particle."""
        predicted = self.predict_states(states, controls)
        return predicted + sample_pose_noise(rng, self.noise_std, predicted.shape[0])
