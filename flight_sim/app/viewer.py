"""Interactive Matplotlib window showing the pixel buffer."""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping

import matplotlib as mpl
import matplotlib.pyplot as plt

from ..core.interfaces import FrontEnd
from ..core.pixel_buffer import PixelBuffer
from ..core.runner import FrameLoop
from ..core.types import EventKind, InputEvent
from .keymap import CONTROLS_HELP, KeyState

logger = logging.getLogger(__name__)


def _disable_mpl_keymaps() -> dict[str, list[str]]:
    """Disable Matplotlib default keybindings that conflict with flight keys."""
    keymap_names = [
        "keymap.back",
        "keymap.copy",
        "keymap.forward",
        "keymap.fullscreen",
        "keymap.grid",
        "keymap.grid_minor",
        "keymap.home",
        "keymap.pan",
        "keymap.quit",
        "keymap.quit_all",
        "keymap.save",
        "keymap.xscale",
        "keymap.yscale",
        "keymap.zoom",
    ]
    saved: dict[str, list[str]] = {}
    for name in keymap_names:
        if name not in mpl.rcParams:
            continue
        saved[name] = list(mpl.rcParams[name])
        mpl.rcParams[name] = []
    return saved


def _restore_mpl_keymaps(saved: dict[str, list[str]]) -> None:
    for name, value in saved.items():
        mpl.rcParams[name] = value


class ViewerFrontEnd(FrontEnd):
    """Shows each presented buffer with ``imshow`` and collects key events.

    Matplotlib reports both press and release, so thrust and steer keys are
    held for as long as the key is down.
    """

    def __init__(self, cfg: Mapping[str, Any] | None = None) -> None:
        cfg = dict(cfg or {})
        self.scale = float(cfg.get("window_scale", 3.0))
        self.title = str(cfg.get("title", "Flight Sim"))
        self.keys = KeyState()
        self._exit = False
        self._fig: Any | None = None
        self._image: Any | None = None
        self._status_text: Any | None = None
        self._saved_keymaps: dict[str, list[str]] = {}

    def open(self) -> None:
        if self._fig is not None:
            return
        self._saved_keymaps = _disable_mpl_keymaps()
        fig = plt.figure(figsize=(320 * self.scale / 100.0, 260 * self.scale / 100.0))
        ax = fig.add_axes((0.0, 0.08, 1.0, 0.92))
        ax.set_axis_off()
        self._image = ax.imshow(PixelBuffer().pixels, interpolation="nearest")
        self._status_text = fig.text(0.01, 0.01, "", fontsize=8, family="monospace")
        if fig.canvas.manager is not None:
            fig.canvas.manager.set_window_title(self.title)
        fig.canvas.mpl_connect("key_press_event", self._on_key_press)
        fig.canvas.mpl_connect("key_release_event", self._on_key_release)
        fig.canvas.mpl_connect("close_event", self._on_close)
        self._fig = fig
        logger.info("Viewer controls: %s", CONTROLS_HELP)

    def close(self) -> None:
        if self._fig is not None and plt.fignum_exists(self._fig.number):
            plt.close(self._fig)
        self._fig = None
        _restore_mpl_keymaps(self._saved_keymaps)
        self._saved_keymaps = {}

    def _on_key_press(self, event: Any) -> None:
        self.keys.on_press(getattr(event, "key", None))

    def _on_key_release(self, event: Any) -> None:
        self.keys.on_release(getattr(event, "key", None))

    def _on_close(self, _event: Any) -> None:
        self._exit = True

    def handle_input(self) -> list[InputEvent]:
        events = self.keys.poll()
        if any(e.kind is EventKind.EXIT for e in events):
            self._exit = True
        return events

    def should_exit(self) -> bool:
        return self._exit

    def present(self, buffer: PixelBuffer, hud: Mapping[str, Any]) -> None:
        if self._fig is None:
            return
        self._image.set_data(buffer.pixels)
        pos = hud.get("position", (0.0, 0.0, 0.0))
        self._status_text.set_text(
            f"t={float(hud.get('t', 0.0)):6.2f}s  pos=[{pos[0]:6.2f},{pos[1]:6.2f},{pos[2]:6.2f}]  "
            f"speed={float(hud.get('speed', 0.0)):4.2f}  cam={hud.get('camera_mode', '?')}"
        )
        self._fig.canvas.draw_idle()

    def run(self, loop: FrameLoop, fps: float) -> int:
        """Drive ``loop`` from a canvas timer until the window closes."""
        self.open()
        fig = self._fig
        interval_ms = max(1, int(1000.0 / fps)) if fps > 0.0 else 33
        timer = fig.canvas.new_timer(interval=interval_ms)
        last = time.perf_counter()

        def _on_tick() -> None:
            nonlocal last
            now = time.perf_counter()
            dt = now - last
            last = now
            if not loop.tick(dt):
                timer.stop()
                plt.close(fig)

        timer.add_callback(_on_tick)
        logger.info("Starting viewer at %.0f fps", fps)
        timer.start()
        try:
            plt.show()
        finally:
            timer.stop()
            self.close()
        return loop.frame_count
