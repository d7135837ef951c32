from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence, Tuple

from docnav.models.location import Location


class FractionIndex(ABC):
    """Maps fractional positions over the weighted document size to sections."""

    @abstractmethod
    def get_section(self, fraction: float) -> Tuple[int, Any]:
        """Return ``(index, anchor)`` for a fraction in ``[0, 1]``."""

    @abstractmethod
    def get_progress(self, index: int, fraction: float, size: Optional[float] = None) -> Dict[str, Any]:
        """Describe overall progress for a position inside a section."""

    @property
    @abstractmethod
    def section_fractions(self) -> Sequence[float]:
        """Fraction at which each section starts."""


class Renderer(ABC):
    """Presentation layer component that displays a resolved location."""

    @abstractmethod
    async def go_to(self, location: Location) -> None:
        """Display ``location``; raising leaves the reader where it was."""


class OverlaySink(ABC):
    """Highlight layer of one displayed section."""

    @abstractmethod
    def add(self, value: str, range: Any, style: str, **options: Any) -> None:
        """Draw the overlay identified by ``value``."""

    @abstractmethod
    def remove(self, value: str) -> None:
        """Remove the overlay identified by ``value`` if present."""


__all__ = ["FractionIndex", "OverlaySink", "Renderer"]
