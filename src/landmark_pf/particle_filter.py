r"""Monte Carlo localization of a 2D vehicle against a known landmark map.

Ensemble
--------
The filter holds ``N`` weighted pose hypotheses :math:`(x, y, \phi, w)`. The
ensemble is an immutable :class:`~landmark_pf.types.ParticleSet`; each stage
builds a new set and swaps the filter's reference, so no partially updated
ensemble is ever observable.

Step
----
One step runs prediction (skipped on the first step), observation scoring,
multinomial resampling and best-estimate extraction:

.. math::
   x_t^{(i)} \sim p(x_t \mid x_{t-1}^{(i)}, u_t), \quad
   w_t^{(i)} = p(z_t \mid x_t^{(i)}, m), \quad
   \hat x_t = x_t^{(\arg\max_i w_t^{(i)})}

Randomness comes from one ``numpy.random.Generator`` owned by the filter; any
stage that draws samples accepts an explicit generator instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from landmark_pf.errors import FilterStateError
from landmark_pf.models.measurement import ObservationScorer
from landmark_pf.models.motion import ConstantTurnRateMotionModel, sample_pose_noise
from landmark_pf.resampling import multinomial_resample
from landmark_pf.types import Controls, FilterConfig, Landmark, Particle, ParticleSet, Pose2D

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ParticleFilter:
    """Landmark-based particle filter for 2D pose estimation."""

    seed: int | None = None
    rng: np.random.Generator | None = None

    _config: FilterConfig | None = field(init=False, default=None, repr=False)
    _ensemble: ParticleSet | None = field(init=False, default=None, repr=False)
    _best: Particle | None = field(init=False, default=None, repr=False)
    _motion_model: ConstantTurnRateMotionModel | None = field(init=False, default=None, repr=False)
    _scorer: ObservationScorer | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        if self.rng is None:
            self.rng = np.random.default_rng(self.seed)

    @property
    def initialized(self) -> bool:
        return self._ensemble is not None

    @property
    def config(self) -> FilterConfig | None:
        return self._config

    @property
    def ensemble(self) -> ParticleSet:
        self._require_initialized()
        return self._ensemble

    @property
    def particles(self) -> list[Particle]:
        """Current ensemble as :class:`Particle` records."""
        return self.ensemble.particles()

    @property
    def best_particle(self) -> Particle | None:
        """Highest-weight particle from the last :meth:`estimate`, ``None`` before that."""
        return self._best

    def init(self, initial_pose: Pose2D, config: FilterConfig) -> None:
        """Spread ``config.num_particles`` particles around ``initial_pose``.

        Every particle gets weight 1.0 and an id in ``1..N``. Calling this on an
        already initialized filter does nothing.

        Raises
        ------
        ConfigurationError
            If ``config`` is invalid.
        """
        if self.initialized:
            return
        config.validate()

        n = config.num_particles
        states = initial_pose.as_array()[None, :] + sample_pose_noise(self.rng, config.position_std, n)

        self._config = config
        self._motion_model = ConstantTurnRateMotionModel(dt=config.dt, epsilon=config.epsilon, noise_std=config.position_std)
        self._scorer = ObservationScorer(
            landmark_std=config.landmark_std,
            sensor_range=config.sensor_range,
            epsilon=config.epsilon,
        )
        self._ensemble = ParticleSet.create(states)
        self._best = None
        logger.info("Initialized %d particles around (%.3f, %.3f, %.3f)", n, initial_pose.x, initial_pose.y, initial_pose.phi)

    def predict(self, controls: Controls, rng: np.random.Generator | None = None) -> None:
        """Propagate every particle over one ``dt`` and reset weights to 1.0."""
        self._require_initialized()
        rng = self.rng if rng is None else rng
        states = self._motion_model.sample(self._ensemble.states, controls, rng)
        self._ensemble = self._ensemble.with_states(states, weights=np.ones(len(self._ensemble)))

    def update_weights(self, observations: list[Landmark], landmarks: list[Landmark]) -> None:
        """Recompute every particle weight from vehicle-frame ``observations``."""
        self._require_initialized()
        result = self._scorer.score(self._ensemble, observations, landmarks)
        if result.num_unmatched_particles:
            logger.debug(
                "%d of %d particles had an observation without a landmark match",
                result.num_unmatched_particles,
                len(self._ensemble),
            )
        self._ensemble = self._ensemble.with_weights(result.weights)

    def resample(self, rng: np.random.Generator | None = None) -> None:
        """Replace the ensemble by a weighted draw with replacement.

        Raises
        ------
        ResamplingError
            If no particle has a strictly positive weight.
        """
        self._require_initialized()
        rng = self.rng if rng is None else rng
        self._ensemble = multinomial_resample(self._ensemble, rng)

    def estimate(self) -> Particle:
        """Store and return the particle with maximum weight (first one on ties)."""
        self._require_initialized()
        index = int(np.argmax(self._ensemble.weights))
        self._best = self._ensemble.particle(index)
        return self._best

    def best_error(self, ground_truth: Pose2D) -> tuple[float, float, float]:
        """Return ``(|dx|, |dy|, |dphi|)`` between the best particle and ``ground_truth``."""
        if self._best is None:
            raise FilterStateError("No estimate available; run at least one full filter step first")
        return (
            abs(self._best.x - ground_truth.x),
            abs(self._best.y - ground_truth.y),
            abs(self._best.phi - ground_truth.phi),
        )

    def step(
        self,
        observations: list[Landmark],
        landmarks: list[Landmark],
        controls: Controls | None = None,
    ) -> Particle:
        """Run one predict-update-resample-estimate cycle.

        Prediction is skipped when ``controls`` is ``None``, which is the case
        for the step right after initialization.
        """
        if controls is not None:
            self.predict(controls)
        self.update_weights(observations, landmarks)
        self.resample()
        return self.estimate()

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise FilterStateError("ParticleFilter.init must be called before running filter stages")
