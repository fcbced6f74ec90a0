"""CLI argument parsing for the flight simulator."""

from __future__ import annotations

import argparse


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Terminal-first 3D drone flight simulator.")
    parser.add_argument(
        "--frontend",
        type=str,
        choices=["terminal", "viewer"],
        default=None,
        help="Output adapter (default: frontend.name from YAML, else terminal).",
    )
    parser.add_argument(
        "--world",
        type=str,
        choices=["open", "room"],
        default=None,
        help="Physics world variant (default: physics.world from YAML).",
    )
    parser.add_argument(
        "--scene",
        type=str,
        choices=["grid", "cubes"],
        default=None,
        help="Scene content drawn by the renderer.",
    )
    parser.add_argument(
        "--render-mode",
        type=str,
        choices=["braille", "block", "ascii"],
        default=None,
        help="Terminal glyph mode (Tab cycles it at runtime).",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print a fixed number of frames to stdout instead of opening a front-end.",
    )
    parser.add_argument(
        "--frames",
        type=int,
        default=None,
        help="Frame count for --raw (overrides sim_config.yaml).",
    )
    parser.add_argument(
        "--dt",
        type=float,
        default=None,
        help="Fixed time step [s] for --raw (overrides sim_config.yaml).",
    )
    parser.add_argument(
        "--fps",
        type=float,
        default=None,
        help="Target frame rate for interactive front-ends.",
    )
    parser.add_argument(
        "--sim-config",
        type=str,
        default=None,
        help="Path to sim_config.yaml (defaults to the packaged one).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging verbosity.",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Write logs to this file (the terminal front-end owns the screen).",
    )
    return parser.parse_args(argv)
