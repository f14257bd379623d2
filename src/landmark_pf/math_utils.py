"""Math helpers used by the filter, simulation, and visualization."""

from __future__ import annotations

import numpy as np


def wrap_angle(angle_rad: float) -> float:
    """Wrap angle to ``[-pi, pi)``.

    Only used for display and simulated sensors; particle headings are never
    wrapped.
    """
    return (angle_rad + np.pi) % (2.0 * np.pi) - np.pi


def pairwise_distance(points_a: np.ndarray, points_b: np.ndarray) -> np.ndarray:
    """Euclidean distances between every pair of rows.

    ``points_a`` has shape ``(..., A, 2)`` and ``points_b`` shape ``(B, 2)``;
    the result has shape ``(..., A, B)``.
    """
    diff = points_a[..., :, None, :] - points_b[None, :, :]
    return np.hypot(diff[..., 0], diff[..., 1])


def to_map_frame(observations_xy: np.ndarray, poses: np.ndarray) -> np.ndarray:
    """Transform vehicle-frame observations into map frame for every pose.

    .. math::
        x_m = o_x\\cos\\phi - o_y\\sin\\phi + x,
        \\quad y_m = o_x\\sin\\phi + o_y\\cos\\phi + y

    Parameters
    ----------
    observations_xy:
        Observations in vehicle coordinates, shape ``(K, 2)``.
    poses:
        Poses ``[x, y, phi]``, shape ``(N, 3)``.

    Returns
    -------
    np.ndarray
        Map-frame observations, shape ``(N, K, 2)``.
    """
    cos_phi = np.cos(poses[:, 2])[:, None]
    sin_phi = np.sin(poses[:, 2])[:, None]
    ox = observations_xy[None, :, 0]
    oy = observations_xy[None, :, 1]
    x_m = ox * cos_phi - oy * sin_phi + poses[:, 0][:, None]
    y_m = ox * sin_phi + oy * cos_phi + poses[:, 1][:, None]
    return np.stack([x_m, y_m], axis=-1)


def gaussian_likelihood_2d(dx: np.ndarray, dy: np.ndarray, std_x: float, std_y: float) -> np.ndarray:
    """Bivariate Gaussian density with independent axes, evaluated at ``(dx, dy)``."""
    norm = 1.0 / (2.0 * np.pi * std_x * std_y)
    exponent = dx**2 / (2.0 * std_x**2) + dy**2 / (2.0 * std_y**2)
    return norm * np.exp(-exponent)


def covariance_ellipse_params(
    mean_xy: np.ndarray,
    covariance_xy: np.ndarray,
    n_std: float = 2.0,
) -> tuple[np.ndarray, float, float, float]:
    """Return covariance ellipse geometry for efficient artist updates.

    Returns
    -------
    tuple[np.ndarray, float, float, float]
        ``(center_xy, width, height, angle_deg)`` for Matplotlib-style ellipses.
    """
    eigenvalues, eigenvectors = np.linalg.eigh(covariance_xy)
    order = np.argsort(eigenvalues)[::-1]
    eigenvalues = eigenvalues[order]
    eigenvectors = eigenvectors[:, order]

    width, height = 2.0 * n_std * np.sqrt(np.maximum(eigenvalues, 0.0))
    angle_deg = np.degrees(np.arctan2(eigenvectors[1, 0], eigenvectors[0, 0]))
    return np.asarray(mean_xy, dtype=float), float(width), float(height), float(angle_deg)
