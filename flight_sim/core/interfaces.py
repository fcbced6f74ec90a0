"""Abstract interface implemented by every output adapter."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from .pixel_buffer import PixelBuffer
from .types import InputEvent


class FrontEnd(ABC):
    """Thin I/O adapter around the simulation core.

    The frame loop calls ``handle_input`` then, after the core has updated and
    rendered, ``present`` with the finished buffer.
    """

    @abstractmethod
    def handle_input(self) -> list[InputEvent]:
        """Return the input events gathered since the previous frame."""

    @abstractmethod
    def present(self, buffer: PixelBuffer, hud: Mapping[str, Any]) -> None:
        """Show ``buffer`` on the adapter's output medium."""

    @abstractmethod
    def should_exit(self) -> bool:
        """True once the user asked to quit."""

    def close(self) -> None:
        """Release adapter resources (default no-op)."""

    def open(self) -> None:
        """Acquire adapter resources before the first frame (default no-op)."""
