"""Keyboard bindings shared by the front-ends.

Key names follow Matplotlib's spelling (``"up"``, ``"escape"``, ``"shift+i"``).
Shifted steer keys map to the look-only variants.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..core.types import CameraMode, EventKind, InputEvent

HELD_BINDINGS: dict[str, EventKind] = {
    "w": EventKind.THRUST_FORWARD,
    "up": EventKind.THRUST_FORWARD,
    "s": EventKind.THRUST_BACKWARD,
    "down": EventKind.THRUST_BACKWARD,
    "a": EventKind.THRUST_LEFT,
    "left": EventKind.THRUST_LEFT,
    "d": EventKind.THRUST_RIGHT,
    "right": EventKind.THRUST_RIGHT,
    "space": EventKind.THRUST_UP,
    "c": EventKind.THRUST_DOWN,
    "i": EventKind.STEER_PITCH_UP,
    "k": EventKind.STEER_PITCH_DOWN,
    "j": EventKind.STEER_YAW_LEFT,
    "l": EventKind.STEER_YAW_RIGHT,
    "u": EventKind.STEER_ROLL_LEFT,
    "o": EventKind.STEER_ROLL_RIGHT,
}

LOOK_BINDINGS: dict[str, EventKind] = {
    "i": EventKind.LOOK_PITCH_UP,
    "k": EventKind.LOOK_PITCH_DOWN,
    "j": EventKind.LOOK_YAW_LEFT,
    "l": EventKind.LOOK_YAW_RIGHT,
    "u": EventKind.LOOK_ROLL_LEFT,
    "o": EventKind.LOOK_ROLL_RIGHT,
}

ONE_SHOT_BINDINGS: dict[str, InputEvent] = {
    "0": InputEvent(EventKind.RESET),
    "9": InputEvent(EventKind.GENTLE_STOP),
    "x": InputEvent(EventKind.EMERGENCY_BRAKE),
    "backspace": InputEvent(EventKind.STOP),
    "1": InputEvent.camera(CameraMode.FIRST_PERSON),
    "2": InputEvent.camera(CameraMode.THIRD_PERSON),
    "3": InputEvent.camera(CameraMode.FREE),
    "tab": InputEvent(EventKind.TOGGLE_RENDER_MODE),
    "q": InputEvent(EventKind.EXIT),
    "escape": InputEvent(EventKind.EXIT),
}

CONTROLS_HELP = (
    "WASD/arrows thrust, Space/C up/down, IJKL/UO steer, Shift+IJKL/UO look, "
    "0 reset, 9 gentle stop, X brake, Backspace stop, 1/2/3 camera, Tab glyphs, Q/Esc quit"
)


def normalize_key(key: str | None) -> tuple[str, bool]:
    """Split a key name into ``(base, shifted)``."""
    if key is None:
        return "", False
    raw = str(key)
    if raw == " ":
        return "space", False
    shifted = len(raw) == 1 and raw.isalpha() and raw.isupper()
    parts = [p.strip() for p in raw.lower().split("+") if p.strip()]
    if not parts:
        return "", False
    if "shift" in parts[:-1]:
        shifted = True
    base = parts[-1]
    if base == " ":
        base = "space"
    return base, shifted


def held_event(key: str, shift_down: bool = False) -> InputEvent | None:
    base, shifted = normalize_key(key)
    if (shifted or shift_down) and base in LOOK_BINDINGS:
        return InputEvent(LOOK_BINDINGS[base])
    if base in HELD_BINDINGS:
        return InputEvent(HELD_BINDINGS[base])
    return None


def one_shot_event(key: str) -> InputEvent | None:
    base, _ = normalize_key(key)
    return ONE_SHOT_BINDINGS.get(base)


def events_for_key(key: str) -> list[InputEvent]:
    """Events for a single key press when there is no release tracking."""
    event = one_shot_event(key) or held_event(key)
    return [] if event is None else [event]


@dataclass
class KeyState:
    """Held keys plus one-shot events queued since the last poll."""

    pressed: set[str] = field(default_factory=set)
    queued: list[InputEvent] = field(default_factory=list)

    def on_press(self, key: str | None) -> None:
        base, shifted = normalize_key(key)
        if not base:
            return
        event = one_shot_event(base)
        if event is not None:
            self.queued.append(event)
            return
        self.pressed.add(f"shift+{base}" if shifted else base)

    def on_release(self, key: str | None) -> None:
        base, _ = normalize_key(key)
        if not base:
            return
        self.pressed.discard(base)
        self.pressed.discard(f"shift+{base}")
        if base == "shift":
            # Shifted keys released after shift come back unshifted.
            for name in [p for p in self.pressed if p.startswith("shift+")]:
                self.pressed.discard(name)
                self.pressed.add(name.split("+", 1)[1])

    def poll(self) -> list[InputEvent]:
        shift_down = "shift" in self.pressed
        events = list(self.queued)
        self.queued.clear()
        for key in sorted(self.pressed):
            event = held_event(key, shift_down=shift_down)
            if event is not None:
                events.append(event)
        return events
