"""Multinomial resampling of a weighted particle ensemble."""

from __future__ import annotations

import numpy as np

from landmark_pf.errors import ResamplingError
from landmark_pf.types import ParticleSet


def normalized_weights(weights: np.ndarray) -> np.ndarray:
    """Return ``weights / sum(weights)`` after checking they form a valid distribution."""
    weights = np.asarray(weights, dtype=float)
    if weights.size == 0:
        raise ResamplingError("Cannot resample an empty ensemble")
    if not np.all(np.isfinite(weights)):
        raise ResamplingError("Particle weights contain NaN or infinite values")
    if np.any(weights < 0.0):
        raise ResamplingError("Particle weights must be non-negative")
    peak = float(np.max(weights))
    if peak <= 0.0:
        raise ResamplingError("No particle has a strictly positive weight; the filter has diverged")
    # Dividing by the peak first keeps the sum finite for weights near float max.
    scaled = weights / peak
    return scaled / np.sum(scaled)


def multinomial_resample(ensemble: ParticleSet, rng: np.random.Generator) -> ParticleSet:
    """Draw ``N`` particles with replacement, probability proportional to weight.

    Drawn particles keep their pose and weight; ids are relabeled ``1..N`` in
    draw order. The input ensemble is left untouched.
    """
    probabilities = normalized_weights(ensemble.weights)
    n = len(ensemble)
    indices = rng.choice(n, size=n, replace=True, p=probabilities)
    return ParticleSet(
        ids=np.arange(1, n + 1, dtype=int),
        states=ensemble.states[indices].copy(),
        weights=ensemble.weights[indices].copy(),
    )
