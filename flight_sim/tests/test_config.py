from __future__ import annotations

import argparse
import tempfile
import unittest
from pathlib import Path

import yaml

from flight_sim.core.config import DEFAULT_CONFIG_PATH, normalize_sim_config, parse_render_mode
from flight_sim.core.types import RenderMode


def _args(**overrides: object) -> argparse.Namespace:
    values = dict(
        sim_config=None,
        frontend=None,
        world=None,
        scene=None,
        render_mode=None,
        frames=None,
        dt=None,
        fps=None,
        log_file=None,
    )
    values.update(overrides)
    return argparse.Namespace(**values)


class TestConfigNormalization(unittest.TestCase):
    def test_packaged_defaults(self) -> None:
        cfg = normalize_sim_config(_args())
        self.assertEqual(cfg.sim_config_path, DEFAULT_CONFIG_PATH)
        self.assertEqual(cfg.frontend_name, "terminal")
        self.assertEqual(cfg.world_name, "open")
        self.assertEqual(cfg.scene, "grid")
        self.assertIs(cfg.render_mode, RenderMode.BRAILLE)
        self.assertEqual(cfg.frames, 6)
        self.assertAlmostEqual(cfg.dt, 0.2)
        self.assertEqual(cfg.camera_cfg.get("mode"), "third_person")
        self.assertAlmostEqual(cfg.controls_cfg["thrust_planar"], 0.3)
        self.assertAlmostEqual(cfg.controls_cfg["thrust_vertical"], 0.5)

    def test_missing_file_falls_back_to_builtin_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            cfg = normalize_sim_config(_args(sim_config=str(Path(d) / "missing.yaml")))
        self.assertEqual(cfg.raw_cfg, {})
        self.assertEqual(cfg.world_name, "open")
        self.assertAlmostEqual(cfg.fps, 30.0)
        self.assertIsNone(cfg.log_file)

    def test_yaml_values_and_cli_overrides(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            cfg_path = Path(d) / "sim.yaml"
            cfg_path.write_text(
                yaml.safe_dump(
                    {
                        "physics": {"world": "room"},
                        "render": {"scene": "cubes"},
                        "frontend": {"name": "viewer", "render_mode": "ascii", "raw_frames": 3},
                    }
                ),
                encoding="utf-8",
            )

            cfg = normalize_sim_config(_args(sim_config=str(cfg_path)))
            self.assertEqual(cfg.frontend_name, "viewer")
            self.assertEqual(cfg.world_name, "room")
            self.assertEqual(cfg.scene, "cubes")
            self.assertIs(cfg.render_mode, RenderMode.ASCII)
            self.assertEqual(cfg.frames, 3)

            cfg = normalize_sim_config(
                _args(
                    sim_config=str(cfg_path),
                    frontend="terminal",
                    world="open",
                    scene="grid",
                    render_mode="block",
                    frames=10,
                    dt=0.05,
                    log_file="sim.log",
                )
            )
            self.assertEqual(cfg.frontend_name, "terminal")
            self.assertIs(cfg.render_mode, RenderMode.BLOCK)
            self.assertEqual(cfg.frames, 10)
            self.assertAlmostEqual(cfg.dt, 0.05)
            self.assertEqual(cfg.log_file, "sim.log")
            # Overrides reach the sections the core reads.
            core = cfg.core_cfg()
            self.assertEqual(core["physics"]["world"], "open")
            self.assertEqual(core["render"]["scene"], "grid")

    def test_parse_render_mode(self) -> None:
        self.assertIs(parse_render_mode(" Braille "), RenderMode.BRAILLE)
        with self.assertRaises(ValueError) as e:
            parse_render_mode("sixel")
        self.assertIn("Unknown render mode", str(e.exception))


if __name__ == "__main__":
    unittest.main()
