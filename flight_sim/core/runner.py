"""Frame loop orchestration between the core renderer and a front-end."""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable

import numpy as np

from .interfaces import FrontEnd
from .renderer import Renderer
from .types import EventKind, InputEvent

logger = logging.getLogger(__name__)


class FrameLoop:
    """Drives one ``update``/``render`` pair per tick and hands the buffer out.

    The frame counter lives here, owned by the running session.
    """

    def __init__(
        self,
        renderer: Renderer,
        frontend: FrontEnd,
        *,
        log_every_frames: int = 60,
        max_dt: float = 0.25,
    ) -> None:
        self.renderer = renderer
        self.frontend = frontend
        self.log_every_frames = max(0, int(log_every_frames))
        self.max_dt = float(max_dt)
        self.frame_count = 0
        self.sim_time = 0.0
        self.running = True

    def tick(self, dt: float) -> bool:
        """Run one frame. Returns False once the session should end."""
        if not self.running:
            return False

        events = self.frontend.handle_input()
        if self.frontend.should_exit() or any(e.kind is EventKind.EXIT for e in events):
            logger.info(f"Exit requested after {self.frame_count} frames")
            self.running = False
            return False

        dt = min(max(float(dt), 0.0), self.max_dt)
        self.renderer.update(dt, events)
        self.renderer.render()
        self.sim_time += dt
        self.frame_count += 1

        self.frontend.present(self.renderer.buffer, self.hud())

        if self.log_every_frames and self.frame_count % self.log_every_frames == 0:
            pos = self.renderer.get_drone_position()
            vel = self.renderer.get_drone_velocity()
            logger.info(
                f"frame={self.frame_count} t={self.sim_time:.2f}s "
                f"drone pos=({pos[0]:.2f},{pos[1]:.2f},{pos[2]:.2f}) "
                f"vel=({vel[0]:.2f},{vel[1]:.2f},{vel[2]:.2f})"
            )
        return True

    def hud(self) -> dict[str, object]:
        state = self.renderer.state()
        return {
            "frame": self.frame_count,
            "t": self.sim_time,
            "position": state.position,
            "velocity": state.velocity,
            "speed": state.speed,
            "camera_mode": self.renderer.camera.mode.value,
        }


def run_realtime(
    loop: FrameLoop,
    fps: float,
    max_frames: int | None = None,
    clock: Callable[[], float] = time.perf_counter,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Run ``loop`` against the wall clock until exit; returns frames run."""
    frame_period = 1.0 / fps if fps > 0.0 else 0.0
    frames = 0
    loop.frontend.open()
    try:
        last = clock()
        while max_frames is None or frames < max_frames:
            now = clock()
            dt = now - last
            last = now
            if not loop.tick(dt):
                break
            frames += 1
            elapsed = clock() - now
            if frame_period > elapsed:
                sleep(frame_period - elapsed)
    finally:
        loop.frontend.close()
    return frames


def run_headless(
    renderer: Renderer,
    frames: int,
    dt: float,
    events: Callable[[int], Iterable[InputEvent]] | None = None,
    on_frame: Callable[[int, Renderer], None] | None = None,
) -> np.ndarray:
    """Fixed-dt run without a front-end; returns an ``(frames, 3)`` position log."""
    positions: list[np.ndarray] = []
    for i in range(int(frames)):
        frame_events = list(events(i)) if events is not None else []
        renderer.update(dt, frame_events)
        renderer.render()
        positions.append(renderer.get_drone_position())
        if on_frame is not None:
            on_frame(i, renderer)
    if not positions:
        return np.zeros((0, 3), dtype=float)
    return np.vstack(positions)
