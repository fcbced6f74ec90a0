"""Core datatypes shared by the simulation core and its front-ends."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np

Color = tuple[int, int, int, int]


class CameraMode(Enum):
    FIRST_PERSON = "first_person"
    THIRD_PERSON = "third_person"
    FREE = "free"


class RenderMode(Enum):
    """Glyph conversion used by the terminal front-end."""

    BRAILLE = "braille"
    BLOCK = "block"
    ASCII = "ascii"

    def next(self) -> "RenderMode":
        order = [RenderMode.BRAILLE, RenderMode.BLOCK, RenderMode.ASCII]
        return order[(order.index(self) + 1) % len(order)]


class EventKind(Enum):
    THRUST_FORWARD = "thrust_forward"
    THRUST_BACKWARD = "thrust_backward"
    THRUST_LEFT = "thrust_left"
    THRUST_RIGHT = "thrust_right"
    THRUST_UP = "thrust_up"
    THRUST_DOWN = "thrust_down"

    STEER_PITCH_UP = "steer_pitch_up"
    STEER_PITCH_DOWN = "steer_pitch_down"
    STEER_YAW_LEFT = "steer_yaw_left"
    STEER_YAW_RIGHT = "steer_yaw_right"
    STEER_ROLL_LEFT = "steer_roll_left"
    STEER_ROLL_RIGHT = "steer_roll_right"

    LOOK_PITCH_UP = "look_pitch_up"
    LOOK_PITCH_DOWN = "look_pitch_down"
    LOOK_YAW_LEFT = "look_yaw_left"
    LOOK_YAW_RIGHT = "look_yaw_right"
    LOOK_ROLL_LEFT = "look_roll_left"
    LOOK_ROLL_RIGHT = "look_roll_right"

    CAMERA_MODE = "camera_mode"
    RESET = "reset"
    GENTLE_STOP = "gentle_stop"
    EMERGENCY_BRAKE = "emergency_brake"
    STOP = "stop"
    TOGGLE_RENDER_MODE = "toggle_render_mode"
    EXIT = "exit"


@dataclass(frozen=True)
class InputEvent:
    """One discrete input produced by a front-end and consumed once by the core.

    ``mode`` is only set for ``EventKind.CAMERA_MODE``.
    """

    kind: EventKind
    mode: CameraMode | None = None

    @classmethod
    def camera(cls, mode: CameraMode) -> "InputEvent":
        return cls(EventKind.CAMERA_MODE, mode)

    def __str__(self) -> str:
        if self.mode is not None:
            return f"{self.kind.value}({self.mode.value})"
        return self.kind.value


@dataclass
class DroneState:
    """Snapshot of the drone body.

    Quaternion convention is ``[w, x, y, z]``.
    """

    position: np.ndarray
    velocity: np.ndarray
    attitude_quat: np.ndarray
    angular_velocity: np.ndarray

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))
