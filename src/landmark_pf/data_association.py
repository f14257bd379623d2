"""Data association between map-frame observations and known landmarks."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from landmark_pf.math_utils import pairwise_distance
from landmark_pf.types import Landmark

NO_MATCH = -1


def landmark_arrays(landmarks: list[Landmark]) -> tuple[np.ndarray, np.ndarray]:
    """Split landmarks into an ``(M, 2)`` position array and an ``(M,)`` id array."""
    xy = np.array([[lm.x, lm.y] for lm in landmarks], dtype=float).reshape(-1, 2)
    ids = np.array([-1 if lm.landmark_id is None else lm.landmark_id for lm in landmarks], dtype=int)
    return xy, ids


def visible_landmarks(positions: np.ndarray, landmarks_xy: np.ndarray, sensor_range: float) -> np.ndarray:
    """Boolean mask ``(N, M)`` of landmarks within ``sensor_range`` of each position.

    Visibility is judged from each particle's own hypothesized position.
    """
    return pairwise_distance(positions, landmarks_xy) <= sensor_range


@dataclass(slots=True)
class NearestNeighborAssociator:
    """Euclidean nearest-neighbor associator over visible landmarks.

    ``search_radius`` bounds how far a landmark may be from an observation and
    still be picked; a landmark must be strictly closer than that.
    """

    search_radius: float = np.inf

    def associate(self, map_observations: np.ndarray, landmarks_xy: np.ndarray, visible: np.ndarray) -> np.ndarray:
        """Assign each observation the index of its nearest visible landmark.

        Parameters
        ----------
        map_observations:
            Observations in map frame, shape ``(N, K, 2)``.
        landmarks_xy:
            Landmark positions, shape ``(M, 2)``.
        visible:
            Visibility mask from :func:`visible_landmarks`, shape ``(N, M)``.

        Returns
        -------
        np.ndarray
            Landmark indices, shape ``(N, K)``, ``NO_MATCH`` where nothing was
            found. On exact distance ties the first landmark in map order wins.
        """
        n, k = map_observations.shape[:2]
        if landmarks_xy.shape[0] == 0 or k == 0:
            return np.full((n, k), NO_MATCH, dtype=int)

        distances = pairwise_distance(map_observations, landmarks_xy)
        distances = np.where(visible[:, None, :], distances, np.inf)
        # argmin keeps the first minimum, matching a strict less-than scan.
        nearest = np.argmin(distances, axis=-1)
        nearest_dist = np.take_along_axis(distances, nearest[..., None], axis=-1)[..., 0]
        return np.where(nearest_dist < self.search_radius, nearest, NO_MATCH)


def associated_ids(indices: np.ndarray, landmark_ids: np.ndarray) -> np.ndarray:
    """Translate landmark indices from :meth:`associate` into landmark ids (``None`` if unmatched)."""
    output = np.full(indices.shape, None, dtype=object)
    matched = indices != NO_MATCH
    output[matched] = landmark_ids[indices[matched]]
    return output
