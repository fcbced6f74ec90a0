"""Frame orchestration: input -> forces -> physics -> camera -> pixels."""

from __future__ import annotations

import itertools
import logging
import math
from typing import Any, Iterable, Mapping

import numpy as np

from ..dynamics import quat_wxyz_to_rotation
from .camera import Camera, project_points, world_to_screen
from .physics_world import PhysicsWorld
from .pixel_buffer import PixelBuffer
from .registry import create_world, register_builtin_components
from .types import Color, DroneState, EventKind, InputEvent

logger = logging.getLogger(__name__)

SCENES = ("grid", "cubes")
STEER_MODES = ("direct", "torque")
THRUST_FRAMES = ("body", "world")

# Corner order: front face (z-) then back face (z+), counter-clockwise.
CUBE_CORNER_SIGNS = np.array(
    [
        [-1.0, -1.0, -1.0],
        [1.0, -1.0, -1.0],
        [1.0, 1.0, -1.0],
        [-1.0, 1.0, -1.0],
        [-1.0, -1.0, 1.0],
        [1.0, -1.0, 1.0],
        [1.0, 1.0, 1.0],
        [-1.0, 1.0, 1.0],
    ],
    dtype=float,
)
CUBE_EDGES = (
    (0, 1), (1, 2), (2, 3), (3, 0),
    (4, 5), (5, 6), (6, 7), (7, 4),
    (0, 4), (1, 5), (2, 6), (3, 7),
)

_THRUST_AXES: dict[EventKind, tuple[tuple[float, float, float], str]] = {
    EventKind.THRUST_FORWARD: ((0.0, 0.0, 1.0), "thrust_planar"),
    EventKind.THRUST_BACKWARD: ((0.0, 0.0, -1.0), "thrust_planar"),
    EventKind.THRUST_LEFT: ((-1.0, 0.0, 0.0), "thrust_planar"),
    EventKind.THRUST_RIGHT: ((1.0, 0.0, 0.0), "thrust_planar"),
    EventKind.THRUST_UP: ((0.0, 1.0, 0.0), "thrust_vertical"),
    EventKind.THRUST_DOWN: ((0.0, -1.0, 0.0), "thrust_vertical"),
}

_STEER_AXES: dict[EventKind, tuple[float, float, float]] = {
    EventKind.STEER_PITCH_UP: (-1.0, 0.0, 0.0),
    EventKind.STEER_PITCH_DOWN: (1.0, 0.0, 0.0),
    EventKind.STEER_YAW_LEFT: (0.0, -1.0, 0.0),
    EventKind.STEER_YAW_RIGHT: (0.0, 1.0, 0.0),
    EventKind.STEER_ROLL_LEFT: (0.0, 0.0, -1.0),
    EventKind.STEER_ROLL_RIGHT: (0.0, 0.0, 1.0),
}

_LOOK_AXES: dict[EventKind, tuple[float, float, float]] = {
    EventKind.LOOK_PITCH_UP: (-1.0, 0.0, 0.0),
    EventKind.LOOK_PITCH_DOWN: (1.0, 0.0, 0.0),
    EventKind.LOOK_YAW_LEFT: (0.0, -1.0, 0.0),
    EventKind.LOOK_YAW_RIGHT: (0.0, 1.0, 0.0),
    EventKind.LOOK_ROLL_LEFT: (0.0, 0.0, -1.0),
    EventKind.LOOK_ROLL_RIGHT: (0.0, 0.0, 1.0),
}


def _color(value: Any) -> Color:
    r, g, b, a = (int(c) for c in value)
    return r, g, b, a


def _choice(cfg: Mapping[str, Any], key: str, default: str, allowed: tuple[str, ...]) -> str:
    value = str(cfg.get(key, default)).lower().strip()
    if value not in allowed:
        raise ValueError(f"Unknown {key} '{value}'. Available: {', '.join(allowed)}")
    return value


def round_half_away(values: np.ndarray) -> np.ndarray:
    """Round to nearest integer, ties away from zero (``np.round`` ties to even)."""
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def clip_segment(
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    rect: tuple[float, float, float, float],
) -> tuple[float, float, float, float] | None:
    """Liang-Barsky clip of a screen-space segment to ``(xmin, ymin, xmax, ymax)``.

    Returns the clipped endpoints, or None when nothing of the segment lies
    inside. Endpoints already inside are returned unchanged.
    """
    if not all(math.isfinite(v) for v in (x0, y0, x1, y1)):
        return None
    xmin, ymin, xmax, ymax = rect
    dx = x1 - x0
    dy = y1 - y0
    t0, t1 = 0.0, 1.0
    for p, q in ((-dx, x0 - xmin), (dx, xmax - x0), (-dy, y0 - ymin), (dy, ymax - y0)):
        if p == 0.0:
            if q < 0.0:
                return None
            continue
        t = q / p
        if p < 0.0:
            if t > t1:
                return None
            t0 = max(t0, t)
        else:
            if t < t0:
                return None
            t1 = min(t1, t)

    cx1, cy1 = (x1, y1) if t1 >= 1.0 else (x0 + t1 * dx, y0 + t1 * dy)
    cx0, cy0 = (x0, y0) if t0 <= 0.0 else (x0 + t0 * dx, y0 + t0 * dy)
    return cx0, cy0, cx1, cy1


class Renderer:
    """Owns the physics world, camera and pixel buffer for one session.

    Call ``update`` then ``render`` once per frame, in that order.
    """

    def __init__(
        self,
        cfg: Mapping[str, Any] | None = None,
        *,
        physics: PhysicsWorld | None = None,
    ) -> None:
        cfg = dict(cfg or {})
        physics_cfg = dict(cfg.get("physics", {}) or {})
        camera_cfg = dict(cfg.get("camera", {}) or {})
        controls_cfg = dict(cfg.get("controls", {}) or {})
        render_cfg = dict(cfg.get("render", {}) or {})

        self.thrust_magnitudes = {
            "thrust_planar": float(controls_cfg.get("thrust_planar", 0.3)),
            "thrust_vertical": float(controls_cfg.get("thrust_vertical", 0.5)),
        }
        self.steer_step = float(controls_cfg.get("steer_step", 0.02))
        self.torque_step = float(controls_cfg.get("torque_step", 0.05))
        self.look_step = float(controls_cfg.get("look_step", 0.02))
        self.steer_mode = _choice(controls_cfg, "steer_mode", "direct", STEER_MODES)
        self.thrust_frame = _choice(controls_cfg, "thrust_frame", "body", THRUST_FRAMES)

        self.scene = _choice(render_cfg, "scene", "grid", SCENES)
        self.background = _color(render_cfg.get("background", (20, 20, 30, 255)))
        self.cube_color = _color(render_cfg.get("cube_color", (255, 255, 255, 255)))
        self.drone_color = _color(render_cfg.get("drone_color", (255, 0, 0, 255)))
        self.cube_size = float(render_cfg.get("cube_size", 2.0))
        self.cube_spacing = float(render_cfg.get("cube_spacing", 15.0))
        self.grid_radius = int(render_cfg.get("grid_radius", 1))
        self.fixed_cubes = np.asarray(render_cfg.get("cubes", [[0.0, 0.0, 0.0]]), dtype=float).reshape(-1, 3)
        self.marker_size = int(render_cfg.get("marker_size", 8))
        self.marker_dot = int(render_cfg.get("marker_dot", 4))
        self.guard_band = float(render_cfg.get("guard_band", 2.0))

        if physics is None:
            register_builtin_components()
            physics = create_world(str(physics_cfg.get("world", "open")), physics_cfg)
        self.physics = physics
        self.buffer = PixelBuffer(
            int(render_cfg.get("width", 320)),
            int(render_cfg.get("height", 240)),
        )
        self.camera = Camera(camera_cfg, width=self.buffer.width, height=self.buffer.height)
        self.camera.update(self.physics.get_drone_position(), self.physics.get_drone_rotation())

        self._force = np.zeros(3, dtype=float)
        self._torque = np.zeros(3, dtype=float)
        self._rotation_delta = np.zeros(3, dtype=float)

    def update(self, dt: float, events: Iterable[InputEvent]) -> None:
        """Consume this frame's events and advance the world by one step."""
        for event in events:
            self._apply_event(event)

        if np.any(self._rotation_delta != 0.0):
            self.physics.apply_rotation_delta(self._rotation_delta)

        force = self._force
        if self.thrust_frame == "body" and np.any(force != 0.0):
            force = quat_wxyz_to_rotation(self.physics.get_drone_rotation()).apply(force)

        drone_pos = self.physics.step_with_torque(dt, force, self._torque)

        self._force = np.zeros(3, dtype=float)
        self._torque = np.zeros(3, dtype=float)
        self._rotation_delta = np.zeros(3, dtype=float)

        self.camera.update(drone_pos, self.physics.get_drone_rotation())

    def _apply_event(self, event: InputEvent) -> None:
        kind = event.kind
        if kind in _THRUST_AXES:
            axis, magnitude_key = _THRUST_AXES[kind]
            self._force += np.asarray(axis) * self.thrust_magnitudes[magnitude_key]
        elif kind in _STEER_AXES:
            if self.steer_mode == "direct":
                self._rotation_delta += np.asarray(_STEER_AXES[kind]) * self.steer_step
            else:
                self._torque += np.asarray(_STEER_AXES[kind]) * self.torque_step
        elif kind in _LOOK_AXES:
            self.camera.rotate_look(np.asarray(_LOOK_AXES[kind]) * self.look_step)
        elif kind is EventKind.CAMERA_MODE:
            if event.mode is not None:
                self.camera.set_mode(event.mode)
        elif kind is EventKind.RESET:
            self.physics.reset_drone()
            self.camera.reset_look()
        elif kind is EventKind.STOP:
            self.physics.stop_drone()
        elif kind is EventKind.GENTLE_STOP:
            self.physics.gentle_stop()
        elif kind is EventKind.EMERGENCY_BRAKE:
            self.physics.emergency_brake()
        # EXIT and TOGGLE_RENDER_MODE belong to the front-end.

    def render(self) -> None:
        """Redraw the whole buffer from the current physics/camera state."""
        self.buffer.clear(self.background)
        view_proj = self.camera.get_view_projection_matrix()

        for center in self.scene_cube_centers():
            self._render_cube(view_proj, center, self.cube_size, self.cube_color)

        self._render_drone(view_proj)

    def scene_cube_centers(self) -> np.ndarray:
        if self.scene == "cubes":
            return self.fixed_cubes

        # Sparse grid re-centred on the drone's cell; cubes pop in/out per cell.
        cell = round_half_away(self.physics.get_drone_position() / self.cube_spacing).astype(int)
        r = self.grid_radius
        offsets = np.array(list(itertools.product(range(-r, r + 1), repeat=3)), dtype=int)
        return (cell + offsets).astype(float) * self.cube_spacing

    def _guard_rect(self) -> tuple[float, float, float, float]:
        w = self.buffer.width
        h = self.buffer.height
        g = self.guard_band
        return -g * w, -g * h, (1.0 + g) * w, (1.0 + g) * h

    def _draw_clipped_line(self, x0: float, y0: float, x1: float, y1: float, color: Color) -> None:
        """Clip to the guard band in screen space, then rasterize the remainder."""
        clipped = clip_segment(x0, y0, x1, y1, self._guard_rect())
        if clipped is None:
            return
        cx0, cy0, cx1, cy1 = clipped
        self.buffer.draw_line(math.floor(cx0), math.floor(cy0), math.floor(cx1), math.floor(cy1), color)

    def _render_cube(self, view_proj: np.ndarray, center: np.ndarray, size: float, color: Color) -> None:
        corners = np.asarray(center, dtype=float) + CUBE_CORNER_SIGNS * (size / 2.0)
        screen, valid = project_points(corners, view_proj, self.buffer.width, self.buffer.height)

        for a, b in CUBE_EDGES:
            # Behind-camera endpoints drop the whole edge; it is not clipped at the near plane.
            if not (valid[a] and valid[b]):
                continue
            self._draw_clipped_line(
                float(screen[a, 0]),
                float(screen[a, 1]),
                float(screen[b, 0]),
                float(screen[b, 1]),
                color,
            )

    def _render_drone(self, view_proj: np.ndarray) -> None:
        projected = world_to_screen(
            self.physics.get_drone_position(),
            view_proj,
            self.buffer.width,
            self.buffer.height,
        )
        if projected is None or not (math.isfinite(projected[0]) and math.isfinite(projected[1])):
            return

        x = math.floor(projected[0])
        y = math.floor(projected[1])
        s = self.marker_size
        self._draw_clipped_line(x - s, y, x + s, y, self.drone_color)
        self._draw_clipped_line(x, y - s, x, y + s, self.drone_color)
        half = self.marker_dot // 2
        self.buffer.draw_rect(x - half, y - half, self.marker_dot, self.marker_dot, self.drone_color)

    def get_drone_position(self) -> np.ndarray:
        return self.physics.get_drone_position()

    def get_drone_velocity(self) -> np.ndarray:
        return self.physics.get_drone_velocity()

    def state(self) -> DroneState:
        return self.physics.state()
