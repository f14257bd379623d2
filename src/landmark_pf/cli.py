"""Command line entry point: run the particle filter over a dataset directory."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

import yaml

from landmark_pf.dataio import (
    CONTROLS_FILE,
    GROUND_TRUTH_FILE,
    MAP_FILE,
    OBSERVATION_DIR,
    read_controls,
    read_ground_truth,
    read_map,
    read_observations,
    write_log,
)
from landmark_pf.errors import ConfigurationError, LocalizationError
from landmark_pf.runner import run_filter
from landmark_pf.types import FilterConfig, Pose2D

logger = logging.getLogger(__name__)


def load_config(path: str | Path) -> FilterConfig:
    """Load a :class:`FilterConfig` from a YAML mapping of field names to values."""
    path = Path(path)
    try:
        with path.open("r") as handle:
            values = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if values is None:
        return FilterConfig()
    if not isinstance(values, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")
    return FilterConfig.from_mapping(values)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="landmark-pf",
        description="Estimate a vehicle trajectory from controls and landmark observations with a particle filter.",
    )
    parser.add_argument("--data-dir", type=Path, default=Path("data"), help="Directory holding the dataset files.")
    parser.add_argument("--map", type=Path, help=f"Landmark map (default: DATA_DIR/{MAP_FILE}).")
    parser.add_argument("--controls", type=Path, help=f"Control samples (default: DATA_DIR/{CONTROLS_FILE}).")
    parser.add_argument("--observations", type=Path, help=f"Observation directory (default: DATA_DIR/{OBSERVATION_DIR}).")
    parser.add_argument("--ground-truth", type=Path, help=f"Ground-truth poses (default: DATA_DIR/{GROUND_TRUTH_FILE}).")
    parser.add_argument("--no-ground-truth", action="store_true", help="Do not read ground truth; requires --initial-pose.")
    parser.add_argument("--output", type=Path, default=Path("log.csv"), help="CSV log of best estimates.")
    parser.add_argument("--config", type=Path, help="YAML file with FilterConfig fields.")
    parser.add_argument("--num-particles", type=int)
    parser.add_argument("--sensor-range", type=float)
    parser.add_argument("--dt", type=float)
    parser.add_argument("--epsilon", type=float)
    parser.add_argument("--seed", type=int, help="Seed for the filter's random generator.")
    parser.add_argument("--initial-pose", type=float, nargs=3, metavar=("X", "Y", "PHI"))
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def resolve_config(args: argparse.Namespace) -> FilterConfig:
    """Dataclass defaults, overlaid by the YAML file, overlaid by CLI flags."""
    config = load_config(args.config) if args.config else FilterConfig()
    overrides: dict[str, Any] = {
        name: getattr(args, name)
        for name in ("num_particles", "sensor_range", "dt", "epsilon")
        if getattr(args, name) is not None
    }
    return replace(config, **overrides)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    data_dir: Path = args.data_dir
    try:
        config = resolve_config(args)
        config.validate()
        landmarks = read_map(args.map or data_dir / MAP_FILE)
        observations = read_observations(args.observations or data_dir / OBSERVATION_DIR)
        controls = read_controls(args.controls or data_dir / CONTROLS_FILE)
        ground_truth = None if args.no_ground_truth else read_ground_truth(args.ground_truth or data_dir / GROUND_TRUTH_FILE)
        initial_pose = Pose2D(*args.initial_pose) if args.initial_pose else None
        logger.info("Finished reading in data")

        records = run_filter(
            landmarks=landmarks,
            observations=observations,
            controls=controls,
            config=config,
            ground_truth=ground_truth,
            initial_pose=initial_pose,
            seed=args.seed,
        )
        write_log(args.output, records)
    except (LocalizationError, OSError) as exc:
        logger.error("Application error: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
