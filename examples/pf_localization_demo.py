r"""Run an end-to-end particle filter demo with simulation and live visualization."""

from __future__ import annotations

import matplotlib.pyplot as plt
import numpy as np

from landmark_pf.particle_filter import ParticleFilter
from landmark_pf.runner import run_dataset
from landmark_pf.sim.landmark_map import LandmarkMap
from landmark_pf.sim.simulator import SimConfig, Simulator, nominal_route
from landmark_pf.types import FilterConfig, Pose2D
from landmark_pf.viz.live_viewer import ParticleViewer


def main() -> None:
    sim_config = SimConfig(steps=300, dt=0.1, trajectory_mode="figure_eight")
    landmark_map = LandmarkMap.around_route(
        nominal_route(sim_config), n_landmarks=40, sensor_range=sim_config.sensor_range, seed=7, min_spacing=3.0
    )
    sim = Simulator(landmark_map=landmark_map, config=sim_config, seed=42)
    dataset = sim.run()

    config = FilterConfig(num_particles=200, dt=sim.config.dt, sensor_range=sim.config.sensor_range)

    viewer = ParticleViewer()
    paused = False

    def on_key_press(event) -> None:
        nonlocal paused
        if event.key == "g":
            viewer.show_ground_truth = not viewer.show_ground_truth
            print(f"Ground truth: {'ON' if viewer.show_ground_truth else 'OFF'}")
        elif event.key == "p":
            viewer.show_particles = not viewer.show_particles
            print(f"Particles: {'ON' if viewer.show_particles else 'OFF'}")
        elif event.key == " ":
            paused = not paused
            print(f"Simulation: {'PAUSED' if paused else 'RUNNING'}")

    viewer.fig.canvas.mpl_connect("key_press_event", on_key_press)

    landmarks_xy = landmark_map.as_array()
    true_traj: list[np.ndarray] = []
    est_traj: list[np.ndarray] = []

    def draw(step_index: int, pf: ParticleFilter, truth: Pose2D | None) -> None:
        while paused and plt.fignum_exists(viewer.fig.number):
            plt.pause(0.05)
        best = pf.best_particle
        est_traj.append(best.pose.as_array())
        if truth is not None:
            true_traj.append(truth.as_array())
        viewer.update(
            landmarks_xy=landmarks_xy,
            ensemble=pf.ensemble,
            best=best,
            est_traj=np.array(est_traj),
            true_traj=np.array(true_traj) if true_traj else None,
        )

    records = run_dataset(dataset, config, seed=1, callback=draw)
    errors = [np.hypot(r.predicted.x - r.ground_truth.x, r.predicted.y - r.ground_truth.y) for r in records]
    print(f"Mean position error: {np.mean(errors):.3f} m over {len(records)} steps")

    print("Demo complete. Close the plot window to exit.")
    plt.show()


if __name__ == "__main__":
    main()
