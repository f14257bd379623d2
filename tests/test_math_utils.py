import numpy as np

from landmark_pf.math_utils import gaussian_likelihood_2d, pairwise_distance, to_map_frame, wrap_angle


def test_wrap_angle_range() -> None:
    value = wrap_angle(3 * np.pi)
    assert -np.pi <= value < np.pi
    assert np.isclose(value, -np.pi)


def test_to_map_frame_identity_pose() -> None:
    observations = np.array([[5.0, 5.0], [-1.0, 2.0]])
    poses = np.array([[0.0, 0.0, 0.0]])
    mapped = to_map_frame(observations, poses)
    assert mapped.shape == (1, 2, 2)
    assert np.allclose(mapped[0], observations)


def test_to_map_frame_rotates_and_translates_per_pose() -> None:
    observations = np.array([[1.0, 0.0]])
    poses = np.array([[2.0, 3.0, np.pi / 2.0], [-1.0, 0.0, np.pi]])
    mapped = to_map_frame(observations, poses)
    assert np.allclose(mapped[0, 0], [2.0, 4.0])
    assert np.allclose(mapped[1, 0], [-2.0, 0.0])


def test_gaussian_likelihood_peak_and_decay() -> None:
    peak = gaussian_likelihood_2d(np.array(0.0), np.array(0.0), 0.3, 0.3)
    assert np.isclose(peak, 1.0 / (2.0 * np.pi * 0.3 * 0.3))

    one_sigma = gaussian_likelihood_2d(np.array(0.3), np.array(0.0), 0.3, 0.3)
    assert np.isclose(one_sigma, peak * np.exp(-0.5))


def test_pairwise_distance_shapes() -> None:
    a = np.zeros((4, 3, 2))
    b = np.array([[3.0, 4.0], [0.0, 1.0]])
    distances = pairwise_distance(a, b)
    assert distances.shape == (4, 3, 2)
    assert np.allclose(distances[..., 0], 5.0)
    assert np.allclose(distances[..., 1], 1.0)
