"""
Register two 2-D scan files with ICP

Loads a reference scan and a movable scan, aligns the movable scan onto the
reference and reports the recovered transform. Optionally writes a
before/after plot.
"""

import sys
import argparse
import logging
from pathlib import Path

import numpy as np

# Add the src to the path to import modules
sys.path.append(str(Path(__file__).parent.parent / "src"))

from scan_matching.alignment import ICPRegistration, RegistrationError
from scan_matching.preprocessing import load_scan_points
from scan_matching.utils.config import load_config, AppConfig
from scan_matching.utils.logging import setup_logger, set_package_log_level
from scan_matching.visualization import plot_registration


def main() -> int:
    parser = argparse.ArgumentParser(description="2-D scan registration (ICP)")
    parser.add_argument("reference", type=str, help="Reference scan file ('x y' per line)")
    parser.add_argument("movable", type=str, help="Movable scan file ('x y' per line)")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file (defaults to config/default.yaml)",
    )
    parser.add_argument("--x", type=float, default=None, help="Initial x translation (meters)")
    parser.add_argument("--y", type=float, default=None, help="Initial y translation (meters)")
    parser.add_argument("--angle-deg", type=float, default=None, help="Initial rotation (degrees)")
    parser.add_argument(
        "--plot",
        type=str,
        default=None,
        help="Write a before/after plot to this path (.html or image suffix)",
    )
    args = parser.parse_args()

    cfg: AppConfig = load_config(args.config)
    if args.x is not None:
        cfg.initial_guess.x = args.x
    if args.y is not None:
        cfg.initial_guess.y = args.y
    if args.angle_deg is not None:
        cfg.initial_guess.angle_deg = args.angle_deg
    if args.plot:
        cfg.plot.enabled = True
        cfg.plot.output = args.plot

    log_level = getattr(logging, cfg.logging.level.upper(), logging.INFO)
    logger = setup_logger(__name__, level=log_level, log_file=cfg.logging.file)
    set_package_log_level(log_level, cfg.logging.file)

    reference = load_scan_points(args.reference)
    movable = load_scan_points(args.movable)

    try:
        icp = ICPRegistration.from_config(reference, list(movable), cfg.registration)
        result, aligned = icp.do_icp(
            cfg.initial_guess.x,
            cfg.initial_guess.y,
            cfg.initial_guess.angle_rad,
        )
    except RegistrationError as e:
        logger.error("Registration failed: %s", e)
        return 1

    logger.info(
        "Result: x=%.2f cm, y=%.2f cm, rot=%.3f deg, convergence=%.2f%% (%d iterations, %s)",
        result.x_offset * 100.0,
        result.y_offset * 100.0,
        np.rad2deg(result.rotation_offset_rad),
        result.convergence * 100.0,
        result.iterations,
        "converged" if result.converged else "iteration limit reached",
    )

    if cfg.plot.enabled:
        output = cfg.plot.output or "registration.html"
        plot_registration(
            reference,
            aligned,
            movable,
            result,
            output,
            axis_range=(cfg.plot.axis_min, cfg.plot.axis_max),
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
