import numpy as np
import pytest

from landmark_pf.errors import ResamplingError
from landmark_pf.resampling import multinomial_resample, normalized_weights
from landmark_pf.types import ParticleSet


def _ensemble(weights: list[float]) -> ParticleSet:
    n = len(weights)
    states = np.column_stack([np.arange(n, dtype=float), np.zeros(n), np.zeros(n)])
    return ParticleSet.create(states, weights=np.array(weights))


def test_dominant_particle_takes_over() -> None:
    weights = [1e-5] * 1000
    weights[123] = 1.0
    resampled = multinomial_resample(_ensemble(weights), np.random.default_rng(3))
    share = np.mean(resampled.states[:, 0] == 123.0)
    assert share > 0.9


def test_resample_relabels_ids_and_copies_weights() -> None:
    ensemble = ParticleSet(
        ids=np.array([9, 4, 2]),
        states=np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [2.0, 2.0, 2.0]]),
        weights=np.array([0.0, 0.0, 0.5]),
    )
    resampled = multinomial_resample(ensemble, np.random.default_rng(0))
    assert resampled.ids.tolist() == [1, 2, 3]
    assert np.allclose(resampled.states, [[2.0, 2.0, 2.0]] * 3)
    assert np.allclose(resampled.weights, 0.5)
    assert ensemble.ids.tolist() == [9, 4, 2]


def test_resample_preserves_ensemble_size() -> None:
    ensemble = _ensemble(list(np.random.default_rng(1).uniform(0.1, 1.0, size=57)))
    assert len(multinomial_resample(ensemble, np.random.default_rng(2))) == 57


def test_resample_is_reproducible_with_seed() -> None:
    ensemble = _ensemble([0.1, 0.2, 0.3, 0.4])
    first = multinomial_resample(ensemble, np.random.default_rng(5))
    second = multinomial_resample(ensemble, np.random.default_rng(5))
    assert np.array_equal(first.states, second.states)


@pytest.mark.parametrize(
    "weights",
    [
        [0.0, 0.0, 0.0],
        [1.0, -0.5, 1.0],
        [1.0, np.nan, 1.0],
        [1.0, np.inf, 1.0],
    ],
)
def test_invalid_weights_raise(weights: list[float]) -> None:
    with pytest.raises(ResamplingError):
        multinomial_resample(_ensemble(weights), np.random.default_rng(0))


def test_normalized_weights_sum_to_one() -> None:
    assert np.isclose(np.sum(normalized_weights(np.array([2.0, 6.0]))), 1.0)


def test_weights_near_float_max_resample() -> None:
    ensemble = _ensemble([1e308, 1e308, 0.0])
    probabilities = normalized_weights(ensemble.weights)
    assert np.allclose(probabilities, [0.5, 0.5, 0.0])
    resampled = multinomial_resample(ensemble, np.random.default_rng(4))
    assert len(resampled) == 3
    assert not np.any(resampled.states[:, 0] == 2.0)
