r"""Common typed dataclasses used across landmark_pf.

Value records (poses, landmarks, controls, particles) are small immutable
dataclasses. The particle ensemble itself is stored as read-only numpy arrays
in :class:`ParticleSet` so every filter stage can work on all particles at
once and hand back a fresh set instead of mutating the old one.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, field, fields
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

from landmark_pf.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class Pose2D:
    """2D vehicle pose in map frame.

    Attributes
    ----------
    x, y:
        Position in meters.
    phi:
        Heading in radians. Not wrapped.
    """

    x: float
    y: float
    phi: float

    def as_array(self) -> np.ndarray:
        """Return ``[x, y, phi]`` as a numpy array."""
        return np.array([self.x, self.y, self.phi], dtype=float)


@dataclass(frozen=True, slots=True)
class Landmark:
    """Point landmark in the 2D plane.

    Map landmarks carry an integer ``landmark_id``. Raw observations reuse the
    same record in vehicle coordinates with ``landmark_id=None``.
    """

    x: float
    y: float
    landmark_id: int | None = None

    def as_array(self) -> np.ndarray:
        """Return ``[x, y]`` as a numpy array."""
        return np.array([self.x, self.y], dtype=float)


@dataclass(frozen=True, slots=True)
class Controls:
    """Vehicle control sample applied over one timestep ``dt``.

    ``velocity`` is in m/s and ``yawrate`` in rad/s.
    """

    velocity: float
    yawrate: float

    def as_array(self) -> np.ndarray:
        """Return ``[velocity, yawrate]`` as a numpy array."""
        return np.array([self.velocity, self.yawrate], dtype=float)


@dataclass(frozen=True, slots=True)
class Particle:
    """One weighted pose hypothesis."""

    particle_id: int
    x: float
    y: float
    phi: float
    weight: float

    @property
    def pose(self) -> Pose2D:
        return Pose2D(self.x, self.y, self.phi)


@dataclass(frozen=True, slots=True)
class FilterConfig:
    """Particle filter parameters, fixed once the filter is initialized.

    Parameters
    ----------
    num_particles:
        Ensemble size ``N``.
    position_std:
        Standard deviations ``(x, y, phi)`` of the initial pose estimate. The
        same values are used as process noise during prediction.
    landmark_std:
        Standard deviations ``(x, y)`` of landmark observations.
    dt:
        Time covered by one control sample in seconds.
    sensor_range:
        Maximum distance at which a landmark can be observed.
    epsilon:
        Floor for likelihood terms and particle weights, and the threshold
        below which a yaw rate counts as straight-line motion.
    """

    num_particles: int = 42
    position_std: tuple[float, float, float] = (0.3, 0.3, 0.01)
    landmark_std: tuple[float, float] = (0.3, 0.3)
    dt: float = 0.1
    sensor_range: float = 50.0
    epsilon: float = 1e-5

    def validate(self) -> None:
        """Raise :class:`ConfigurationError` if any parameter is unusable."""
        if isinstance(self.num_particles, bool) or not isinstance(self.num_particles, (int, np.integer)):
            raise ConfigurationError(f"num_particles must be an integer, got {self.num_particles!r}")
        if self.num_particles <= 0:
            raise ConfigurationError(f"num_particles must be positive, got {self.num_particles}")
        for name in ("dt", "sensor_range", "epsilon"):
            value = getattr(self, name)
            if not _is_real(value) or not math.isfinite(value) or value <= 0.0:
                raise ConfigurationError(f"{name} must be a positive finite number, got {value!r}")
        _check_std("position_std", self.position_std, 3)
        _check_std("landmark_std", self.landmark_std, 2)
        if min(self.landmark_std) <= 0.0:
            raise ConfigurationError(f"landmark_std entries must be positive, got {self.landmark_std}")

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "FilterConfig":
        """Build a config from a plain mapping, e.g. a parsed YAML document."""
        known = {item.name for item in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
        kwargs: dict[str, Any] = dict(values)
        try:
            for name in ("position_std", "landmark_std"):
                if name in kwargs:
                    kwargs[name] = tuple(float(value) for value in kwargs[name])
            for name in ("dt", "sensor_range", "epsilon"):
                if name in kwargs:
                    kwargs[name] = float(kwargs[name])
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid configuration value: {exc}") from exc
        return cls(**kwargs)


def _is_real(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _check_std(name: str, values: Sequence[float], size: int) -> None:
    try:
        count = len(values)
    except TypeError:
        raise ConfigurationError(f"{name} must be a sequence of {size} numbers, got {values!r}") from None
    if count != size:
        raise ConfigurationError(f"{name} needs {size} entries, got {count}")
    for value in values:
        if not _is_real(value) or not math.isfinite(value) or value < 0.0:
            raise ConfigurationError(f"{name} entries must be finite and non-negative, got {values!r}")


@dataclass(frozen=True, slots=True)
class ParticleSet:
    """Immutable ensemble of particles.

    Attributes
    ----------
    ids:
        Particle ids, shape ``(N,)``.
    states:
        Poses ``[x, y, phi]`` per particle, shape ``(N, 3)``.
    weights:
        Unnormalized importance weights, shape ``(N,)``.
    """

    ids: np.ndarray
    states: np.ndarray
    weights: np.ndarray

    def __post_init__(self) -> None:
        if self.states.ndim != 2 or self.states.shape[1] != 3:
            raise ValueError(f"states must have shape (N, 3), got {self.states.shape}")
        n = self.states.shape[0]
        if self.ids.shape != (n,) or self.weights.shape != (n,):
            raise ValueError("ids, states and weights must describe the same number of particles")
        for array in (self.ids, self.states, self.weights):
            array.flags.writeable = False

    @classmethod
    def create(cls, states: np.ndarray, weights: np.ndarray | None = None) -> "ParticleSet":
        """Build a set with ids ``1..N`` from a state array, weights default to 1.0."""
        states = np.array(states, dtype=float)
        n = states.shape[0]
        weights = np.ones(n, dtype=float) if weights is None else np.array(weights, dtype=float)
        return cls(ids=np.arange(1, n + 1, dtype=int), states=states, weights=weights)

    @classmethod
    def from_particles(cls, particles: Iterable[Particle]) -> "ParticleSet":
        items = list(particles)
        return cls(
            ids=np.array([p.particle_id for p in items], dtype=int),
            states=np.array([[p.x, p.y, p.phi] for p in items], dtype=float).reshape(-1, 3),
            weights=np.array([p.weight for p in items], dtype=float),
        )

    def __len__(self) -> int:
        return int(self.states.shape[0])

    def with_states(self, states: np.ndarray, weights: np.ndarray | None = None) -> "ParticleSet":
        """Return a copy carrying new poses (and optionally new weights)."""
        new_weights = self.weights.copy() if weights is None else np.array(weights, dtype=float)
        return ParticleSet(ids=self.ids.copy(), states=np.array(states, dtype=float), weights=new_weights)

    def with_weights(self, weights: np.ndarray) -> "ParticleSet":
        """Return a copy with the same poses and new weights."""
        return ParticleSet(ids=self.ids.copy(), states=self.states.copy(), weights=np.array(weights, dtype=float))

    def particle(self, index: int) -> Particle:
        x, y, phi = self.states[index]
        return Particle(
            particle_id=int(self.ids[index]),
            x=float(x),
            y=float(y),
            phi=float(phi),
            weight=float(self.weights[index]),
        )

    def particles(self) -> list[Particle]:
        """Materialize the ensemble as a list of :class:`Particle` records."""
        return [self.particle(index) for index in range(len(self))]


@dataclass(frozen=True, slots=True)
class StepRecord:
    """Best estimate of one filter step, optionally paired with ground truth."""

    predicted: Pose2D
    ground_truth: Pose2D | None = None

    def as_row(self) -> list[float]:
        """Return ``[pred_x, pred_y, pred_phi, true_x, true_y, true_phi]``.

        Truth columns are NaN when no ground truth was supplied.
        """
        truth = [math.nan] * 3 if self.ground_truth is None else list(self.ground_truth.as_array())
        return [self.predicted.x, self.predicted.y, self.predicted.phi, *truth]


@dataclass(slots=True)
class Dataset:
    """Inputs of one localization run."""

    landmarks: list[Landmark]
    controls: list[Controls]
    observations: list[list[Landmark]]
    ground_truth: list[Pose2D] = field(default_factory=list)

    @property
    def num_steps(self) -> int:
        return len(self.observations)
