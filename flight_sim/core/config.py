"""Config loading and normalization for the flight simulator."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .types import RenderMode

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "sim_config.yaml"


@dataclass
class NormalizedSimConfig:
    """Normalized config used by the front-end launcher."""

    sim_config_path: Path
    frontend_name: str
    world_name: str
    scene: str
    render_mode: RenderMode
    frames: int
    dt: float
    fps: float
    log_file: str | None
    physics_cfg: dict[str, Any]
    camera_cfg: dict[str, Any]
    controls_cfg: dict[str, Any]
    render_cfg: dict[str, Any]
    frontend_cfg: dict[str, Any]
    raw_cfg: dict[str, Any]

    def core_cfg(self) -> dict[str, Any]:
        """Sections consumed by ``Renderer``."""
        return {
            "physics": self.physics_cfg,
            "camera": self.camera_cfg,
            "controls": self.controls_cfg,
            "render": self.render_cfg,
        }


def load_sim_config(path: Path) -> dict[str, Any]:
    """Load simulator YAML config from disk.

    Missing files are handled gracefully and return an empty config.
    """
    if not path.exists():
        return {}

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_render_mode(value: Any) -> RenderMode:
    key = str(value).lower().strip()
    for mode in RenderMode:
        if mode.value == key:
            return mode
    available = ", ".join(m.value for m in RenderMode)
    raise ValueError(f"Unknown render mode '{value}'. Available: {available}")


def normalize_sim_config(args: argparse.Namespace) -> NormalizedSimConfig:
    """Merge CLI overrides over YAML values into one runtime object."""
    sim_config_path = Path(args.sim_config) if args.sim_config else DEFAULT_CONFIG_PATH
    raw_cfg = load_sim_config(sim_config_path)

    physics_cfg = dict(raw_cfg.get("physics", {}) or {})
    camera_cfg = dict(raw_cfg.get("camera", {}) or {})
    controls_cfg = dict(raw_cfg.get("controls", {}) or {})
    render_cfg = dict(raw_cfg.get("render", {}) or {})
    frontend_cfg = dict(raw_cfg.get("frontend", {}) or {})

    frontend_name = (
        str(args.frontend)
        if args.frontend is not None
        else str(frontend_cfg.get("name", "terminal"))
    )
    world_name = str(args.world) if args.world is not None else str(physics_cfg.get("world", "open"))
    scene = str(args.scene) if args.scene is not None else str(render_cfg.get("scene", "grid"))
    render_mode = parse_render_mode(
        args.render_mode if args.render_mode is not None else frontend_cfg.get("render_mode", "braille")
    )

    frames = int(args.frames) if args.frames is not None else int(frontend_cfg.get("raw_frames", 6))
    dt = float(args.dt) if args.dt is not None else float(frontend_cfg.get("raw_dt", 0.2))
    fps = float(args.fps) if args.fps is not None else float(frontend_cfg.get("fps", 30.0))
    log_file = args.log_file if args.log_file is not None else frontend_cfg.get("log_file")

    # Components only see their own section, so CLI overrides are folded back in.
    physics_cfg["world"] = world_name
    render_cfg["scene"] = scene

    return NormalizedSimConfig(
        sim_config_path=sim_config_path,
        frontend_name=frontend_name,
        world_name=world_name,
        scene=scene,
        render_mode=render_mode,
        frames=frames,
        dt=dt,
        fps=fps,
        log_file=None if log_file is None else str(log_file),
        physics_cfg=physics_cfg,
        camera_cfg=camera_cfg,
        controls_cfg=controls_cfg,
        render_cfg=render_cfg,
        frontend_cfg=frontend_cfg,
        raw_cfg=raw_cfg,
    )
