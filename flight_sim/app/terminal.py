"""Curses terminal front-end and pixel-buffer-to-glyph conversion."""

from __future__ import annotations

import curses
import logging
import sys
from typing import Any, Mapping, TextIO

import numpy as np

from ..core.interfaces import FrontEnd
from ..core.pixel_buffer import PixelBuffer
from ..core.renderer import Renderer
from ..core.runner import run_headless
from ..core.types import EventKind, InputEvent, RenderMode
from .keymap import CONTROLS_HELP, events_for_key

logger = logging.getLogger(__name__)

GRID_W = 80
GRID_H = 30
ASCII_RAMP = " .:-=+*#%@"
GLYPH_THRESHOLD = 0.25

# Unicode braille dot bits indexed [row][column] within a 2x4 cell.
BRAILLE_BITS = (
    (0x01, 0x08),
    (0x02, 0x10),
    (0x04, 0x20),
    (0x40, 0x80),
)

_CURSES_KEY_NAMES = {
    curses.KEY_UP: "up",
    curses.KEY_DOWN: "down",
    curses.KEY_LEFT: "left",
    curses.KEY_RIGHT: "right",
    curses.KEY_BACKSPACE: "backspace",
    127: "backspace",
    8: "backspace",
    9: "tab",
    27: "escape",
    32: "space",
}


def luma(pixels: np.ndarray) -> np.ndarray:
    """Rec.601 luma in [0, 1] for an ``(..., 4)`` RGBA array."""
    rgb = pixels[..., :3].astype(float)
    return (rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114) / 255.0


def pooled_luma(buffer: PixelBuffer, rows: int, cols: int) -> np.ndarray:
    """Max-pool buffer luma onto a ``rows x cols`` grid so 1px lines survive."""
    lum = luma(buffer.pixels)
    rows = min(rows, buffer.height)
    cols = min(cols, buffer.width)
    row_starts = (np.arange(rows) * buffer.height) // rows
    col_starts = (np.arange(cols) * buffer.width) // cols
    pooled = np.maximum.reduceat(lum, row_starts, axis=0)
    return np.maximum.reduceat(pooled, col_starts, axis=1)


def brightness_to_ascii(brightness: float) -> str:
    index = int(max(0.0, min(1.0, brightness)) * (len(ASCII_RAMP) - 1))
    return ASCII_RAMP[index]


def buffer_to_ascii(buffer: PixelBuffer, grid_w: int = GRID_W, grid_h: int = GRID_H) -> list[str]:
    grid = pooled_luma(buffer, grid_h, grid_w)
    return ["".join(brightness_to_ascii(v) for v in row) for row in grid]


def buffer_to_braille(buffer: PixelBuffer, grid_w: int = GRID_W, grid_h: int = GRID_H) -> list[str]:
    dots = pooled_luma(buffer, grid_h * 4, grid_w * 2) > GLYPH_THRESHOLD
    lines: list[str] = []
    for cy in range(dots.shape[0] // 4):
        chars = []
        for cx in range(dots.shape[1] // 2):
            value = 0
            for dy in range(4):
                for dx in range(2):
                    if dots[cy * 4 + dy, cx * 2 + dx]:
                        value |= BRAILLE_BITS[dy][dx]
            chars.append(chr(0x2800 + value))
        lines.append("".join(chars))
    return lines


def buffer_to_blocks(buffer: PixelBuffer, grid_w: int = GRID_W, grid_h: int = GRID_H) -> list[str]:
    halves = pooled_luma(buffer, grid_h * 2, grid_w) > GLYPH_THRESHOLD
    glyphs = {(False, False): " ", (True, False): "▀", (False, True): "▄", (True, True): "█"}
    return [
        "".join(glyphs[(bool(top), bool(bottom))] for top, bottom in zip(halves[r], halves[r + 1]))
        for r in range(0, halves.shape[0] - 1, 2)
    ]


def buffer_to_lines(
    buffer: PixelBuffer,
    mode: RenderMode,
    grid_w: int = GRID_W,
    grid_h: int = GRID_H,
) -> list[str]:
    if mode is RenderMode.BRAILLE:
        return buffer_to_braille(buffer, grid_w, grid_h)
    if mode is RenderMode.BLOCK:
        return buffer_to_blocks(buffer, grid_w, grid_h)
    return buffer_to_ascii(buffer, grid_w, grid_h)


def format_hud(hud: Mapping[str, Any]) -> str:
    pos = hud.get("position", (0.0, 0.0, 0.0))
    vel = hud.get("velocity", (0.0, 0.0, 0.0))
    return (
        f"pos=({pos[0]:6.2f},{pos[1]:6.2f},{pos[2]:6.2f}) "
        f"vel=({vel[0]:5.2f},{vel[1]:5.2f},{vel[2]:5.2f}) "
        f"cam={hud.get('camera_mode', '?')}"
    )


class TerminalFrontEnd(FrontEnd):
    """Full-screen curses adapter. Keys arrive without release events, so
    every key press becomes one event for the next frame."""

    def __init__(
        self,
        render_mode: RenderMode = RenderMode.BRAILLE,
        *,
        grid_w: int = GRID_W,
        grid_h: int = GRID_H,
    ) -> None:
        self.render_mode = render_mode
        self.grid_w = grid_w
        self.grid_h = grid_h
        self._stdscr: Any | None = None
        self._exit = False

    def open(self) -> None:
        try:
            stdscr = curses.initscr()
        except curses.error as exc:
            raise RuntimeError(f"Terminal front-end needs an interactive terminal: {exc}") from exc
        curses.noecho()
        curses.cbreak()
        stdscr.keypad(True)
        stdscr.nodelay(True)
        try:
            curses.curs_set(0)
        except curses.error:
            pass
        self._stdscr = stdscr
        logger.info("Terminal front-end started (%s). %s", self.render_mode.value, CONTROLS_HELP)

    def close(self) -> None:
        if self._stdscr is None:
            return
        self._stdscr.keypad(False)
        curses.nocbreak()
        curses.echo()
        curses.endwin()
        self._stdscr = None

    def handle_input(self) -> list[InputEvent]:
        events: list[InputEvent] = []
        if self._stdscr is None:
            return events
        while True:
            code = self._stdscr.getch()
            if code == -1:
                break
            name = _CURSES_KEY_NAMES.get(code)
            if name is None and 0 < code < 256:
                name = chr(code)
            if name is None:
                continue
            for event in events_for_key(name):
                if event.kind is EventKind.TOGGLE_RENDER_MODE:
                    self.render_mode = self.render_mode.next()
                    logger.debug("Render mode -> %s", self.render_mode.value)
                elif event.kind is EventKind.EXIT:
                    self._exit = True
                events.append(event)
        return events

    def should_exit(self) -> bool:
        return self._exit

    def present(self, buffer: PixelBuffer, hud: Mapping[str, Any]) -> None:
        if self._stdscr is None:
            return
        stdscr = self._stdscr
        term_h, term_w = stdscr.getmaxyx()
        stdscr.erase()

        if term_w < self.grid_w or term_h < self.grid_h + 1:
            messages = [
                f"Terminal size: {term_w}x{term_h}",
                f"Minimum required: {self.grid_w}x{self.grid_h + 1}",
                "",
                "Please resize your terminal",
            ]
            top = max(0, (term_h - len(messages)) // 2)
            for i, message in enumerate(messages):
                self._put(top + i, max(0, (term_w - len(message)) // 2), message)
            stdscr.refresh()
            return

        left = (term_w - self.grid_w) // 2
        top = (term_h - self.grid_h - 1) // 2
        for i, line in enumerate(buffer_to_lines(buffer, self.render_mode, self.grid_w, self.grid_h)):
            self._put(top + i, left, line)
        self._put(top + self.grid_h, left, format_hud(hud)[: self.grid_w])
        stdscr.refresh()

    def _put(self, y: int, x: int, text: str) -> None:
        try:
            self._stdscr.addstr(y, x, text)
        except curses.error:
            # Writing the bottom-right cell moves the cursor off-screen.
            pass


def run_raw(
    renderer: Renderer,
    frames: int,
    dt: float,
    mode: RenderMode = RenderMode.BRAILLE,
    out: TextIO | None = None,
) -> np.ndarray:
    """Print ``frames`` fixed-dt frames as glyphs; returns the position log."""
    stream = out if out is not None else sys.stdout

    def _print_frame(i: int, r: Renderer) -> None:
        pos = r.get_drone_position()
        stream.write(
            f"=== t={(i + 1) * dt:.1f}s - Drone position: "
            f"x={pos[0]:.3f}m, y={pos[1]:.3f}m, z={pos[2]:.3f}m ===\n"
        )
        for line in buffer_to_lines(r.buffer, mode):
            stream.write(line + "\n")
        stream.write("\n\n")

    return run_headless(renderer, frames, dt, on_frame=_print_frame)
