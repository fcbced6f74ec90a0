"""Chase/first-person/free camera and the world-to-screen projection."""

from __future__ import annotations

import logging
import math
from typing import Any, Iterable, Mapping

import numpy as np
from scipy.spatial.transform import Rotation

from ..dynamics import quat_wxyz_to_rotation
from .types import CameraMode

logger = logging.getLogger(__name__)

WORLD_UP = np.array([0.0, 1.0, 0.0], dtype=float)
BODY_FORWARD = np.array([0.0, 0.0, 1.0], dtype=float)


def _vec3(value: Any) -> np.ndarray:
    return np.asarray(value, dtype=float).reshape(3).copy()


def parse_camera_mode(value: Any) -> CameraMode:
    if isinstance(value, CameraMode):
        return value
    key = str(value).lower().strip().replace("-", "_")
    for mode in CameraMode:
        if mode.value == key:
            return mode
    available = ", ".join(m.value for m in CameraMode)
    raise ValueError(f"Unknown camera mode '{value}'. Available: {available}")


def look_at_rh(eye: np.ndarray, target: np.ndarray, up: np.ndarray) -> np.ndarray:
    """Right-handed look-at view matrix (camera looks down its -Z)."""
    f = np.asarray(target, dtype=float) - np.asarray(eye, dtype=float)
    f_norm = float(np.linalg.norm(f))
    f = BODY_FORWARD.copy() if f_norm < 1e-9 else f / f_norm

    s = np.cross(f, up)
    if np.linalg.norm(s) < 1e-9:
        # Looking straight along ``up``; any perpendicular axis will do.
        alt = np.array([1.0, 0.0, 0.0]) if abs(f[0]) < 0.9 else np.array([0.0, 0.0, 1.0])
        s = np.cross(f, alt)
    s /= np.linalg.norm(s)
    u = np.cross(s, f)

    view = np.eye(4, dtype=float)
    view[0, :3] = s
    view[1, :3] = u
    view[2, :3] = -f
    view[0, 3] = -float(np.dot(s, eye))
    view[1, 3] = -float(np.dot(u, eye))
    view[2, 3] = float(np.dot(f, eye))
    return view


def perspective(aspect: float, fovy: float, near: float, far: float) -> np.ndarray:
    """OpenGL-style perspective matrix; clip ``w`` equals view-space ``-z``."""
    f = 1.0 / math.tan(fovy / 2.0)
    proj = np.zeros((4, 4), dtype=float)
    proj[0, 0] = f / aspect
    proj[1, 1] = f
    proj[2, 2] = (far + near) / (near - far)
    proj[2, 3] = 2.0 * far * near / (near - far)
    proj[3, 2] = -1.0
    return proj


def world_to_screen(
    point: Iterable[float],
    view_projection: np.ndarray,
    width: int,
    height: int,
) -> tuple[float, float, float] | None:
    """Project a world point to pixel coordinates ``(x, y, ndc_depth)``.

    Returns None only when the point is at or behind the camera (``w <= 0``).
    There is no frustum clipping: off-screen points still return coordinates
    outside ``[0, width) x [0, height)``.
    """
    p = np.asarray(point, dtype=float).reshape(3)
    clip = view_projection @ np.array([p[0], p[1], p[2], 1.0])
    w = float(clip[3])
    if w <= 0.0:
        return None

    ndc_x = float(clip[0]) / w
    ndc_y = float(clip[1]) / w
    ndc_z = float(clip[2]) / w

    screen_x = (ndc_x + 1.0) * 0.5 * width
    # Screen Y grows downward, NDC Y grows upward.
    screen_y = (1.0 - ndc_y) * 0.5 * height
    return screen_x, screen_y, ndc_z


def project_points(
    points: np.ndarray,
    view_projection: np.ndarray,
    width: int,
    height: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Vectorised ``world_to_screen`` for an ``(N, 3)`` array.

    Returns ``(screen, valid)`` where ``screen`` is ``(N, 3)`` and rows with
    ``valid == False`` are behind the camera (their values are undefined).
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    homo = np.hstack([pts, np.ones((pts.shape[0], 1))])
    clip = homo @ view_projection.T
    w = clip[:, 3]
    valid = w > 0.0
    safe_w = np.where(valid, w, 1.0)
    ndc = clip[:, :3] / safe_w[:, None]

    screen = np.empty_like(ndc)
    screen[:, 0] = (ndc[:, 0] + 1.0) * 0.5 * width
    screen[:, 1] = (1.0 - ndc[:, 1]) * 0.5 * height
    screen[:, 2] = ndc[:, 2]
    return screen, valid


class Camera:
    """Camera that follows the drone according to its mode."""

    def __init__(
        self,
        cfg: Mapping[str, Any] | None = None,
        *,
        width: int = 320,
        height: int = 240,
    ) -> None:
        cfg = dict(cfg or {})
        self.mode = parse_camera_mode(cfg.get("mode", CameraMode.THIRD_PERSON))
        self.position = np.array([0.0, 0.0, -3.0], dtype=float)
        self.target = np.zeros(3, dtype=float)
        self.up = WORLD_UP.copy()
        self.fov = math.radians(float(cfg.get("fov_deg", 60.0)))
        self.aspect = float(width) / float(height)
        self.near = float(cfg.get("near", 0.1))
        self.far = float(cfg.get("far", 100.0))
        self.third_person_offset = _vec3(cfg.get("third_person_offset", (-1.5, 1.0, -2.0)))
        self.look_rotation = Rotation.identity()

    def set_aspect(self, width: int, height: int) -> None:
        self.aspect = float(width) / float(height)

    def set_mode(self, mode: CameraMode) -> None:
        if mode != self.mode:
            logger.debug("Camera mode %s -> %s", self.mode.value, mode.value)
        self.mode = mode

    def update(self, drone_position: Iterable[float], drone_rotation: Iterable[float] | None = None) -> None:
        """Re-anchor the camera on the drone. Free mode is left untouched."""
        drone = _vec3(drone_position)

        if self.mode is CameraMode.THIRD_PERSON:
            self.position = drone + self.look_rotation.apply(self.third_person_offset)
            self.target = drone
            self.up = WORLD_UP.copy()
        elif self.mode is CameraMode.FIRST_PERSON:
            body = Rotation.identity() if drone_rotation is None else quat_wxyz_to_rotation(drone_rotation)
            view_rot = body * self.look_rotation
            self.position = drone
            self.target = drone + view_rot.apply(BODY_FORWARD)
            self.up = view_rot.apply(WORLD_UP)

    def rotate_look(self, delta: Iterable[float]) -> None:
        """Apply an XYZ Euler delta [rad] to the view direction."""
        delta_rot = Rotation.from_euler("xyz", _vec3(delta))
        if self.mode is CameraMode.FREE:
            self.target = self.position + delta_rot.apply(self.target - self.position)
            self.up = delta_rot.apply(self.up)
        else:
            self.look_rotation = delta_rot * self.look_rotation

    def reset_look(self) -> None:
        self.look_rotation = Rotation.identity()

    def get_view_matrix(self) -> np.ndarray:
        return look_at_rh(self.position, self.target, self.up)

    def get_projection_matrix(self) -> np.ndarray:
        return perspective(self.aspect, self.fov, self.near, self.far)

    def get_view_projection_matrix(self) -> np.ndarray:
        return self.get_projection_matrix() @ self.get_view_matrix()
