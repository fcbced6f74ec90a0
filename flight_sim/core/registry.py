"""Component registries for physics world variants and front-ends."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Mapping

from .interfaces import FrontEnd

if TYPE_CHECKING:  # pragma: no cover
    from .config import NormalizedSimConfig
    from .physics_world import PhysicsWorld

WorldFactory = Callable[[Mapping[str, Any]], "PhysicsWorld"]
FrontEndFactory = Callable[["NormalizedSimConfig"], FrontEnd]

WORLDS: dict[str, WorldFactory] = {}
FRONTENDS: dict[str, FrontEndFactory] = {}

_BUILTINS_REGISTERED = False


def _normalize_name(name: str) -> str:
    return str(name).lower().strip()


def register_world(name: str, factory: WorldFactory) -> None:
    WORLDS[_normalize_name(name)] = factory


def register_frontend(name: str, factory: FrontEndFactory) -> None:
    FRONTENDS[_normalize_name(name)] = factory


def create_world(name: str, cfg: Mapping[str, Any] | None = None) -> "PhysicsWorld":
    key = _normalize_name(name)
    if key not in WORLDS:
        available = ", ".join(sorted(WORLDS)) or "none"
        raise ValueError(f"Unknown world '{name}'. Available: {available}")
    return WORLDS[key](dict(cfg or {}))


def create_frontend(name: str, cfg_norm: "NormalizedSimConfig") -> FrontEnd:
    key = _normalize_name(name)
    if key not in FRONTENDS:
        available = ", ".join(sorted(FRONTENDS)) or "none"
        raise ValueError(f"Unknown frontend '{name}'. Available: {available}")
    return FRONTENDS[key](cfg_norm)


def _terminal_frontend(cfg_norm: "NormalizedSimConfig") -> FrontEnd:
    from ..app.terminal import TerminalFrontEnd

    return TerminalFrontEnd(render_mode=cfg_norm.render_mode)


def _viewer_frontend(cfg_norm: "NormalizedSimConfig") -> FrontEnd:
    from ..app.viewer import ViewerFrontEnd

    return ViewerFrontEnd(cfg_norm.frontend_cfg)


def register_builtin_components() -> None:
    """Register built-in worlds/front-ends once."""
    global _BUILTINS_REGISTERED
    if _BUILTINS_REGISTERED:
        return

    from .physics_world import PhysicsWorld

    register_world("open", PhysicsWorld.open_space)
    register_world("room", PhysicsWorld.room)

    register_frontend("terminal", _terminal_frontend)
    register_frontend("viewer", _viewer_frontend)

    _BUILTINS_REGISTERED = True
