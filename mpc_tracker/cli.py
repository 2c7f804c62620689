"""
Command-line interface for the simple-car MPC tracker.

Usage:
    simple-car-mpc run --config config/simple_car.yaml --plot
    simple-car-mpc plan --out data/simple_car_path_geometric.txt
    simple-car-mpc validate config/simple_car.yaml
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import load_config
from .exceptions import SimpleCarMPCError
from .log import get_logger, setup_logging

logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="simple-car-mpc",
        description="MPC trajectory tracking for a simple car",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  simple-car-mpc run                          Track the default reference path
  simple-car-mpc run -c my.yaml --plot        Track with a custom config and plot
  simple-car-mpc plan --out path.txt          Plan a reference path with OMPL
  simple-car-mpc validate my.yaml             Validate a configuration file
        """,
    )
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase verbosity (use -vv for debug)")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Suppress all output except errors")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Track a reference path in closed loop")
    run_parser.add_argument("-c", "--config", help="YAML configuration file")
    run_parser.add_argument("--path", help="Reference path file (overrides config)")
    run_parser.add_argument("--states-out", help="Output file for process states")
    run_parser.add_argument("--controls-out", help="Output file for feedback controls")
    run_parser.add_argument("--plot", action="store_true", help="Plot the result")

    plan_parser = subparsers.add_parser("plan", help="Plan a reference path with OMPL")
    plan_parser.add_argument("-c", "--config", help="YAML configuration file")
    plan_parser.add_argument("--out", help="Output path file (default: reference.path_file)")

    validate_parser = subparsers.add_parser("validate", help="Validate a configuration file")
    validate_parser.add_argument("config", help="YAML configuration file")

    return parser


def _log_level(args: argparse.Namespace) -> Optional[int]:
    """Level from -v/-q, or None to fall back to SIMPLE_CAR_MPC_LOG_LEVEL."""
    if args.quiet:
        return logging.ERROR
    if args.verbose >= 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    return None


def cmd_run(args: argparse.Namespace) -> int:
    from .simulation import run_tracking

    config = load_config(args.config)
    reference, result = run_tracking(config, path_file=args.path,
                                     states_file=args.states_out,
                                     controls_file=args.controls_out)
    if args.plot:
        import matplotlib.pyplot as plt
        from .plotting import plot_tracking, tracking_errors

        errors = tracking_errors(reference, result)
        logger.info("max position error %.3f m, max heading error %.3f rad",
                    errors['max_position_error'], errors['max_heading_error'])
        plot_tracking(reference, result)
        plt.show()
    return 0


def cmd_plan(args: argparse.Namespace) -> int:
    from path_planning.planner import plan_reference_path
    from .reference_path import write_trajectory

    config = load_config(args.config)
    waypoints = plan_reference_path(config)
    write_trajectory(args.out or config.reference.path_file, waypoints)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    load_config(args.config)
    print(f"{args.config}: OK")
    return 0


COMMANDS = {
    "run": cmd_run,
    "plan": cmd_plan,
    "validate": cmd_validate,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    setup_logging(_log_level(args), force=True)
    try:
        return COMMANDS[args.command](args)
    except SimpleCarMPCError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
