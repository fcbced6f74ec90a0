"""Physics world wrapping the single drone body and its static geometry."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

import numpy as np
from scipy.spatial.transform import Rotation

from ..dynamics import DroneBody, DroneParams, RoomGeometry, StaticPlane
from .types import DroneState

logger = logging.getLogger(__name__)

DEFAULT_START_POSITION = (0.0, 0.0, -3.0)
DEFAULT_MIN_DT = 1.0 / 240.0
DEFAULT_ROOM_GRAVITY = (0.0, -0.2, 0.0)


def _vec3(value: Any) -> np.ndarray:
    return np.asarray(value, dtype=float).reshape(3).copy()


def drone_params_from_cfg(cfg: Mapping[str, Any]) -> DroneParams:
    drone_cfg = dict(cfg.get("drone", {}) or {})
    return DroneParams(
        radius=float(drone_cfg.get("radius", 0.35)),
        density=float(drone_cfg.get("density", 1.0)),
        linear_damping=float(drone_cfg.get("linear_damping", 0.9)),
        angular_damping=float(drone_cfg.get("angular_damping", 0.9)),
        restitution=float(drone_cfg.get("restitution", 0.3)),
        friction=float(drone_cfg.get("friction", 0.7)),
    )


class PhysicsWorld:
    """One dynamic drone plus zero or more fixed colliders.

    Every ``step``/``step_with_torque`` call is one integration tick; forces
    passed in are applied for that tick only.
    """

    def __init__(
        self,
        cfg: Mapping[str, Any] | None = None,
        *,
        gravity: Iterable[float] | None = None,
        static_planes: Iterable[StaticPlane] | None = None,
    ) -> None:
        cfg = dict(cfg or {})
        self.gravity = _vec3(gravity if gravity is not None else cfg.get("gravity", (0.0, 0.0, 0.0)))
        self.static_planes: tuple[StaticPlane, ...] = tuple(static_planes or ())
        self.start_position = _vec3(cfg.get("start_position", DEFAULT_START_POSITION))
        self.min_dt = float(cfg.get("min_dt", DEFAULT_MIN_DT))
        self.gentle_stop_factor = float(cfg.get("gentle_stop_factor", 0.8))
        self.emergency_brake_factor = float(cfg.get("emergency_brake_factor", 0.5))
        self.last_contacts: list[str] = []

        self._drone: DroneBody | None = DroneBody(drone_params_from_cfg(cfg), self.start_position)

    @classmethod
    def open_space(cls, cfg: Mapping[str, Any] | None = None) -> "PhysicsWorld":
        """Zero gravity, no colliders."""
        return cls(cfg)

    @classmethod
    def room(cls, cfg: Mapping[str, Any] | None = None) -> "PhysicsWorld":
        """Enclosed room with a faint downward gravity."""
        cfg = dict(cfg or {})
        room_cfg = dict(cfg.get("room", {}) or {})
        geometry = RoomGeometry(
            half_extents=_vec3(room_cfg.get("half_extents", (10.0, 5.0, 10.0))),
            center=_vec3(room_cfg.get("center", (0.0, 0.0, 0.0))),
        )
        return cls(
            cfg,
            gravity=room_cfg.get("gravity", DEFAULT_ROOM_GRAVITY),
            static_planes=geometry.planes(),
        )

    @property
    def drone_params(self) -> DroneParams | None:
        return None if self._drone is None else self._drone.params

    def step(self, dt: float, force: Iterable[float]) -> np.ndarray:
        """Apply ``force`` for one tick of ``dt`` seconds; return the drone position."""
        return self.step_with_torque(dt, force, (0.0, 0.0, 0.0))

    def step_with_torque(self, dt: float, force: Iterable[float], torque: Iterable[float]) -> np.ndarray:
        dt = max(float(dt), self.min_dt)
        if self._drone is None:
            return np.zeros(3, dtype=float)

        self._drone.integrate(dt, _vec3(force), _vec3(torque), self.gravity)

        self.last_contacts = [plane.name for plane in self.static_planes if plane.resolve(self._drone)]
        if self.last_contacts:
            logger.debug("Drone contact with %s", ", ".join(self.last_contacts))

        return self._drone.position.copy()

    def apply_rotation_delta(self, delta: Iterable[float]) -> None:
        """Compose an XYZ Euler delta [rad] onto the attitude and stop spinning."""
        if self._drone is None:
            return
        self._drone.rotate(Rotation.from_euler("xyz", _vec3(delta)))
        self._drone.angular_velocity[:] = 0.0

    def get_drone_position(self) -> np.ndarray:
        if self._drone is None:
            return np.zeros(3, dtype=float)
        return self._drone.position.copy()

    def get_drone_velocity(self) -> np.ndarray:
        if self._drone is None:
            return np.zeros(3, dtype=float)
        return self._drone.velocity.copy()

    def get_drone_angular_velocity(self) -> np.ndarray:
        if self._drone is None:
            return np.zeros(3, dtype=float)
        return self._drone.angular_velocity.copy()

    def get_drone_rotation(self) -> np.ndarray:
        """Attitude quaternion ``[w, x, y, z]``."""
        if self._drone is None:
            return np.array([1.0, 0.0, 0.0, 0.0], dtype=float)
        return self._drone.attitude_quat.copy()

    def state(self) -> DroneState:
        return DroneState(
            position=self.get_drone_position(),
            velocity=self.get_drone_velocity(),
            attitude_quat=self.get_drone_rotation(),
            angular_velocity=self.get_drone_angular_velocity(),
        )

    def reset_drone(self) -> None:
        """Teleport to the start pose and zero all motion."""
        if self._drone is None:
            return
        self._drone.position = self.start_position.copy()
        self._drone.velocity[:] = 0.0
        self._drone.attitude_quat = np.array([1.0, 0.0, 0.0, 0.0], dtype=float)
        self._drone.angular_velocity[:] = 0.0
        logger.debug("Drone reset to %s", self.start_position.tolist())

    def stop_drone(self) -> None:
        self._scale_velocity(0.0)

    def gentle_stop(self) -> None:
        self._scale_velocity(self.gentle_stop_factor)

    def emergency_brake(self) -> None:
        self._scale_velocity(self.emergency_brake_factor)

    def _scale_velocity(self, factor: float) -> None:
        if self._drone is None:
            return
        self._drone.velocity *= factor
        self._drone.angular_velocity *= factor
