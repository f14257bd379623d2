r"""Observation likelihood model for landmark-based particle weighting.

For every particle the vehicle-frame observations are moved into the map frame
using the particle's pose, associated with the nearest visible landmark, and
scored with an independent bivariate Gaussian:

.. math::
   w = \prod_k \max\left(\epsilon,\;
       \frac{1}{2\pi\sigma_x\sigma_y}
       \exp\left(-\frac{\Delta x_k^2}{2\sigma_x^2} - \frac{\Delta y_k^2}{2\sigma_y^2}\right)\right)

Observations are folded into the weight in order. An observation without an
associated landmark discards the product accumulated so far and resets the
weight to :math:`\epsilon`; later terms still multiply in. A particle that sees
no landmark at all therefore ends with weight exactly :math:`\epsilon`.

Weights are left unnormalized. Only when the raw product overflows are all
weights of the batch rescaled so the largest becomes 1.0.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from landmark_pf.data_association import NO_MATCH, NearestNeighborAssociator, landmark_arrays, visible_landmarks
from landmark_pf.math_utils import gaussian_likelihood_2d, to_map_frame
from landmark_pf.types import Landmark, ParticleSet


def observations_array(observations: list[Landmark]) -> np.ndarray:
    """Stack observations into an ``(K, 2)`` array."""
    return np.array([[obs.x, obs.y] for obs in observations], dtype=float).reshape(-1, 2)


@dataclass(slots=True)
class ScoreResult:
    """Weights of one scoring pass plus association diagnostics."""

    weights: np.ndarray
    associations: np.ndarray
    num_unmatched_particles: int


@dataclass(slots=True)
class ObservationScorer:
    """Compute unnormalized importance weights from landmark observations."""

    landmark_std: tuple[float, float]
    sensor_range: float
    epsilon: float
    associator: NearestNeighborAssociator | None = None
    _std: np.ndarray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.associator is None:
            self.associator = NearestNeighborAssociator(search_radius=2.0 * self.sensor_range)
        self._std = np.asarray(self.landmark_std, dtype=float)

    def score(self, ensemble: ParticleSet, observations: list[Landmark], landmarks: list[Landmark]) -> ScoreResult:
        """Score every particle of ``ensemble`` against one observation batch."""
        obs_xy = observations_array(observations)
        lm_xy, _ = landmark_arrays(landmarks)
        return self.score_arrays(ensemble.states, obs_xy, lm_xy)

    def score_arrays(self, states: np.ndarray, obs_xy: np.ndarray, lm_xy: np.ndarray) -> ScoreResult:
        n = states.shape[0]
        if obs_xy.shape[0] == 0:
            empty = np.empty((n, 0), dtype=int)
            return ScoreResult(weights=np.ones(n, dtype=float), associations=empty, num_unmatched_particles=0)

        visible = visible_landmarks(states[:, :2], lm_xy, self.sensor_range)
        map_obs = to_map_frame(obs_xy, states)
        associations = self.associator.associate(map_obs, lm_xy, visible)

        matched = associations != NO_MATCH
        safe_index = np.where(matched, associations, 0)
        if lm_xy.shape[0]:
            offsets = map_obs - lm_xy[safe_index]
            likelihood = gaussian_likelihood_2d(offsets[..., 0], offsets[..., 1], self._std[0], self._std[1])
        else:
            likelihood = np.ones(associations.shape, dtype=float)

        terms = np.where(likelihood < self.epsilon, self.epsilon, likelihood)
        terms = np.where(matched, terms, 1.0)

        # An unmatched observation resets the running product to epsilon.
        k = associations.shape[1]
        unmatched = ~np.all(matched, axis=1)
        last_miss = np.where(unmatched, k - 1 - np.argmax(~matched[:, ::-1], axis=1), -1)
        counted = np.arange(k)[None, :] > last_miss[:, None]
        factors = np.where(counted, terms, 1.0)
        start = np.where(unmatched, self.epsilon, 1.0)
        with np.errstate(over="ignore"):
            weights = start * np.prod(factors, axis=1)

        if not np.all(np.isfinite(weights)):
            # Product overflowed: rescale in log space, keeping ratios between particles.
            log_weights = np.log(start) + np.sum(np.log(factors), axis=1)
            weights = np.exp(log_weights - np.max(log_weights))
        return ScoreResult(
            weights=weights,
            associations=associations,
            num_unmatched_particles=int(np.count_nonzero(unmatched)),
        )
