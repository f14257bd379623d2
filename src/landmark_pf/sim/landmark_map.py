"""Landmark maps for simulated localization runs.

Landmarks are scattered around the route the vehicle is going to drive: a
landmark farther than the sensor range from every pose of the route can never
be observed. A minimum spacing between landmarks keeps nearest-neighbour
association unambiguous at the simulated observation noise. Landmark ids
start at 1.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from landmark_pf.data_association import visible_landmarks
from landmark_pf.types import Landmark, Pose2D


@dataclass(slots=True)
class LandmarkMap:
    """Static map of uniquely numbered landmarks."""

    landmarks: list[Landmark]

    @classmethod
    def scatter(
        cls,
        bounds: tuple[float, float, float, float],
        n_landmarks: int,
        seed: int | None = None,
        min_spacing: float = 0.0,
        max_attempts: int = 100,
    ) -> "LandmarkMap":
        """Place landmarks uniformly inside ``(x_min, y_min, x_max, y_max)``.

        Parameters
        ----------
        bounds:
            Axis-aligned box that receives the landmarks.
        n_landmarks:
            Number of landmarks to place.
        seed:
            Seed for the placement generator.
        min_spacing:
            Smallest allowed distance between two landmarks. Candidates that
            land too close to an already placed landmark are redrawn.
        max_attempts:
            Redraws allowed per landmark before giving up.

        Raises
        ------
        ValueError
            If the box is empty or ``min_spacing`` cannot be honored.
        """
        x_min, y_min, x_max, y_max = bounds
        if x_max < x_min or y_max < y_min:
            raise ValueError(f"Invalid map bounds: {bounds}")
        if n_landmarks < 0:
            raise ValueError(f"n_landmarks must be non-negative, got {n_landmarks}")

        rng = np.random.default_rng(seed)
        placed = np.empty((0, 2), dtype=float)
        for _ in range(n_landmarks):
            for _ in range(max_attempts):
                candidate = rng.uniform((x_min, y_min), (x_max, y_max))
                if placed.shape[0] == 0 or np.min(np.hypot(*(placed - candidate).T)) >= min_spacing:
                    break
            else:
                raise ValueError(
                    f"Could not place {n_landmarks} landmarks {min_spacing} m apart inside {bounds}; "
                    f"placed {placed.shape[0]}"
                )
            placed = np.vstack([placed, candidate])

        landmarks = [Landmark(x=float(x), y=float(y), landmark_id=i) for i, (x, y) in enumerate(placed, start=1)]
        return cls(landmarks=landmarks)

    @classmethod
    def around_route(
        cls,
        route: Sequence[Pose2D],
        n_landmarks: int,
        sensor_range: float,
        seed: int | None = None,
        min_spacing: float = 0.0,
    ) -> "LandmarkMap":
        """Scatter landmarks over the route's bounding box padded by ``sensor_range``."""
        if not route:
            raise ValueError("Route must contain at least one pose")
        xy = np.array([[pose.x, pose.y] for pose in route], dtype=float)
        low = xy.min(axis=0) - sensor_range
        high = xy.max(axis=0) + sensor_range
        return cls.scatter(
            bounds=(float(low[0]), float(low[1]), float(high[0]), float(high[1])),
            n_landmarks=n_landmarks,
            seed=seed,
            min_spacing=min_spacing,
        )

    def visible_from(self, pose: Pose2D, sensor_range: float) -> list[Landmark]:
        """Landmarks within ``sensor_range`` of ``pose``, in map order."""
        if not self.landmarks:
            return []
        mask = visible_landmarks(np.array([[pose.x, pose.y]]), self.as_array(), sensor_range)[0]
        return [landmark for landmark, visible in zip(self.landmarks, mask) if visible]

    def as_array(self) -> np.ndarray:
        """Return landmark positions as an ``(M, 2)`` array."""
        return np.array([[lm.x, lm.y] for lm in self.landmarks], dtype=float).reshape(-1, 2)
