"""
Rigid-body drone dynamics for the flight simulation core.

A single sphere body is integrated with semi-implicit Euler and collides
against static half-space planes (the room variant): one body,
plane contacts only, no broad phase.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np
from scipy.spatial.transform import Rotation


def quat_wxyz_to_rotation(quat_wxyz: np.ndarray) -> Rotation:
    """Build a scipy rotation from a ``[w, x, y, z]`` quaternion."""
    w, x, y, z = np.asarray(quat_wxyz, dtype=float).reshape(4)
    # scipy uses [x, y, z, w]
    return Rotation.from_quat([x, y, z, w])


def rotation_to_quat_wxyz(rot: Rotation) -> np.ndarray:
    x, y, z, w = rot.as_quat()
    return np.array([w, x, y, z], dtype=float)


@dataclass
class DroneParams:
    radius: float = 0.35
    density: float = 1.0
    linear_damping: float = 0.9
    angular_damping: float = 0.9
    restitution: float = 0.3
    friction: float = 0.7

    @property
    def mass(self) -> float:
        return self.density * (4.0 / 3.0) * math.pi * self.radius**3

    @property
    def inertia(self) -> float:
        # Solid sphere.
        return 0.4 * self.mass * self.radius**2


class DroneBody:
    """
    Dynamic sphere body.

    State:
      position (world): [x, y, z]
      velocity (world): [vx, vy, vz]
      attitude quaternion: [w, x, y, z]
      angular velocity (world): [wx, wy, wz]
    """

    def __init__(self, params: DroneParams | None = None, position: np.ndarray | None = None):
        self.params = params or DroneParams()
        self.position = (
            np.zeros(3, dtype=float) if position is None else np.asarray(position, dtype=float).copy()
        )
        self.velocity = np.zeros(3, dtype=float)
        self.attitude_quat = np.array([1.0, 0.0, 0.0, 0.0], dtype=float)
        self.angular_velocity = np.zeros(3, dtype=float)

    @property
    def rotation(self) -> Rotation:
        return quat_wxyz_to_rotation(self.attitude_quat)

    def integrate(
        self,
        dt: float,
        force: np.ndarray,
        torque: np.ndarray,
        gravity: np.ndarray,
    ) -> None:
        """Advance one tick. Damping is applied as a velocity multiplier."""
        p = self.params

        acc = np.asarray(force, dtype=float) / p.mass + np.asarray(gravity, dtype=float)
        self.velocity += acc * dt
        self.velocity *= 1.0 / (1.0 + dt * p.linear_damping)

        alpha = np.asarray(torque, dtype=float) / p.inertia
        self.angular_velocity += alpha * dt
        self.angular_velocity *= 1.0 / (1.0 + dt * p.angular_damping)

        self.position += self.velocity * dt

        if np.linalg.norm(self.angular_velocity) > 1e-9:
            delta = Rotation.from_rotvec(self.angular_velocity * dt)
            self.attitude_quat = rotation_to_quat_wxyz(delta * self.rotation)
            self.attitude_quat /= np.linalg.norm(self.attitude_quat)

    def rotate(self, delta: Rotation) -> None:
        """Compose ``delta`` onto the current attitude (world frame)."""
        self.attitude_quat = rotation_to_quat_wxyz(delta * self.rotation)
        self.attitude_quat /= np.linalg.norm(self.attitude_quat)


@dataclass
class StaticPlane:
    """Half-space collider; the free side is ``dot(normal, x) >= offset``."""

    normal: np.ndarray
    offset: float
    name: str = ""

    def __post_init__(self) -> None:
        n = np.asarray(self.normal, dtype=float).reshape(3)
        self.normal = n / np.linalg.norm(n)
        self.offset = float(self.offset)

    def signed_distance(self, point: np.ndarray) -> float:
        return float(np.dot(self.normal, point) - self.offset)

    def resolve(self, body: DroneBody) -> bool:
        """Push ``body`` out of the plane and apply restitution/friction.

        Returns True when the sphere was in contact.
        """
        p = body.params
        dist = self.signed_distance(body.position)
        if dist >= p.radius:
            return False

        body.position += (p.radius - dist) * self.normal

        vn = float(np.dot(body.velocity, self.normal))
        if vn < 0.0:
            jn = -(1.0 + p.restitution) * vn
            body.velocity += jn * self.normal

            v_t = body.velocity - float(np.dot(body.velocity, self.normal)) * self.normal
            speed_t = float(np.linalg.norm(v_t))
            if speed_t > 1e-9:
                # Coulomb friction bounded by the normal impulse.
                body.velocity -= (v_t / speed_t) * min(speed_t, p.friction * jn)
        return True


@dataclass
class RoomGeometry:
    half_extents: np.ndarray = field(default_factory=lambda: np.array([10.0, 5.0, 10.0]))
    center: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def planes(self) -> list[StaticPlane]:
        """Floor, ceiling and four walls, all facing into the room."""
        c = np.asarray(self.center, dtype=float).reshape(3)
        h = np.asarray(self.half_extents, dtype=float).reshape(3)
        names = {
            (0, -1): "wall_west",
            (0, 1): "wall_east",
            (1, -1): "floor",
            (1, 1): "ceiling",
            (2, -1): "wall_south",
            (2, 1): "wall_north",
        }
        planes: list[StaticPlane] = []
        for axis in range(3):
            axis_vec = np.zeros(3, dtype=float)
            axis_vec[axis] = 1.0
            planes.append(StaticPlane(axis_vec, c[axis] - h[axis], names[(axis, -1)]))
            planes.append(StaticPlane(-axis_vec, -(c[axis] + h[axis]), names[(axis, 1)]))
        return planes
