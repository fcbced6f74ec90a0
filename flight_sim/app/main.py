"""Main entrypoint for the flight simulator app."""

from __future__ import annotations

import logging
import sys

from ..core.config import NormalizedSimConfig, normalize_sim_config
from ..core.registry import create_frontend, register_builtin_components
from ..core.renderer import Renderer
from ..core.runner import FrameLoop, run_realtime
from .cli import parse_args
from .terminal import run_raw

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
DEFAULT_TERMINAL_LOG = "flight_sim.log"

logger = logging.getLogger(__name__)


def configure_logging(level: str, log_file: str | None) -> None:
    """Log to ``log_file`` when given, else to stderr."""
    kwargs = {"filename": log_file, "filemode": "a", "encoding": "utf-8"} if log_file else {}
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=True,
        **kwargs,
    )


def run_interactive(cfg_norm: NormalizedSimConfig) -> int:
    register_builtin_components()
    frontend = create_frontend(cfg_norm.frontend_name, cfg_norm)
    renderer = Renderer(cfg_norm.core_cfg())
    loop = FrameLoop(renderer, frontend, log_every_frames=int(cfg_norm.frontend_cfg.get("log_every_frames", 60)))

    if cfg_norm.frontend_name == "viewer":
        return frontend.run(loop, cfg_norm.fps)
    return run_realtime(loop, cfg_norm.fps)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    cfg_norm = normalize_sim_config(args)

    log_file = cfg_norm.log_file
    if log_file is None and not args.raw and cfg_norm.frontend_name == "terminal":
        # curses owns the screen, so log lines would corrupt the frame.
        log_file = DEFAULT_TERMINAL_LOG
    configure_logging(args.log_level, log_file)

    logger.info("=" * 60)
    logger.info("Starting flight sim")
    logger.info("=" * 60)
    logger.info(f"Loading config from: {cfg_norm.sim_config_path}")
    logger.info(f"World: {cfg_norm.world_name}, scene: {cfg_norm.scene}")

    if args.raw:
        renderer = Renderer(cfg_norm.core_cfg())
        positions = run_raw(renderer, cfg_norm.frames, cfg_norm.dt, cfg_norm.render_mode, out=sys.stdout)
        if len(positions):
            final = positions[-1]
            logger.info(f"Raw run finished: final position [{final[0]:.3f}, {final[1]:.3f}, {final[2]:.3f}]")
        return

    try:
        frames = run_interactive(cfg_norm)
    except RuntimeError as exc:
        logger.error(str(exc))
        raise SystemExit(1)
    logger.info(f"Session ended after {frames} frames")


if __name__ == "__main__":
    main()
