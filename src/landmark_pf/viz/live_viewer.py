"""Live plotting helper for particle filter demos."""

from __future__ import annotations

from dataclasses import dataclass, field

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.patches import Ellipse

from landmark_pf.math_utils import covariance_ellipse_params
from landmark_pf.types import Particle, ParticleSet


@dataclass
class ParticleViewer:
    """Matplotlib view of landmarks, particle cloud, and trajectories.

    Notes
    -----
    Artists are created once and updated in place on every call to
    :meth:`update`.
    """

    show_ground_truth: bool = True
    show_particles: bool = True
    show_spread: bool = True
    heading_length_m: float = 2.0
    fig: plt.Figure = field(init=False)
    ax: plt.Axes = field(init=False)

    def __post_init__(self) -> None:
        self.fig, self.ax = plt.subplots(figsize=(8, 8))
        if self.fig.canvas.manager is not None:
            self.fig.canvas.manager.set_window_title("landmark_pf live viewer")

        self.ax.set_title("landmark_pf live view")
        self.ax.set_xlabel("x [m]")
        self.ax.set_ylabel("y [m]")
        self.ax.axis("equal")
        self.ax.grid(True, alpha=0.3)

        (self._true_traj_line,) = self.ax.plot([], [], "k-", lw=1.6, label="true trajectory")
        (self._est_traj_line,) = self.ax.plot([], [], "tab:blue", ls="--", lw=1.8, label="best particle trajectory")
        self._landmarks = self.ax.scatter([], [], c="k", marker="x", label="landmarks")
        self._particles = self.ax.scatter([], [], c="tab:green", s=6, alpha=0.5, label="particles")
        (self._heading_line,) = self.ax.plot([], [], color="tab:orange", lw=2.0, label="heading")

        self._spread_ellipse = Ellipse((0.0, 0.0), width=0.0, height=0.0, angle=0.0, fill=False, edgecolor="tab:green", lw=1.5)
        self.ax.add_patch(self._spread_ellipse)

        self.ax.legend(loc="upper right")

    def update(
        self,
        landmarks_xy: np.ndarray,
        ensemble: ParticleSet,
        best: Particle,
        est_traj: np.ndarray,
        true_traj: np.ndarray | None = None,
        pause_s: float = 0.001,
    ) -> None:
        """Redraw all artists for the newest filter state."""
        self._landmarks.set_offsets(landmarks_xy if landmarks_xy.size else np.empty((0, 2)))

        xy = ensemble.states[:, :2]
        self._particles.set_offsets(xy)
        self._particles.set_visible(self.show_particles)

        if est_traj.size:
            self._est_traj_line.set_data(est_traj[:, 0], est_traj[:, 1])
        if true_traj is not None and true_traj.size:
            self._true_traj_line.set_data(true_traj[:, 0], true_traj[:, 1])
        self._true_traj_line.set_visible(self.show_ground_truth and true_traj is not None)

        self._heading_line.set_data(
            [best.x, best.x + self.heading_length_m * np.cos(best.phi)],
            [best.y, best.y + self.heading_length_m * np.sin(best.phi)],
        )

        if self.show_spread and len(ensemble) > 2:
            center, width, height, angle = covariance_ellipse_params(xy.mean(axis=0), np.cov(xy, rowvar=False))
            self._spread_ellipse.set_center((center[0], center[1]))
            self._spread_ellipse.width = width
            self._spread_ellipse.height = height
            self._spread_ellipse.angle = angle
            self._spread_ellipse.set_visible(True)
        else:
            self._spread_ellipse.set_visible(False)

        self._autoscale_view([landmarks_xy, xy, est_traj] + ([true_traj] if true_traj is not None else []))
        self.fig.canvas.draw_idle()
        if pause_s > 0.0:
            plt.pause(pause_s)

    def _autoscale_view(self, arrays: list[np.ndarray]) -> None:
        points = [np.atleast_2d(array)[:, :2] for array in arrays if array.size]
        if not points:
            return
        all_pts = np.vstack(points)
        x_min, y_min = np.min(all_pts, axis=0)
        x_max, y_max = np.max(all_pts, axis=0)
        pad = 3.0
        self.ax.set_xlim(x_min - pad, x_max + pad)
        self.ax.set_ylim(y_min - pad, y_max + pad)
