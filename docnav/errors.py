from __future__ import annotations

from typing import Any


class DocnavError(Exception):
    """Base class for every error raised by the navigation core."""


class ResolutionError(DocnavError):
    """A navigation target could not be turned into a concrete location."""

    def __init__(self, target: Any, message: str | None = None) -> None:
        self.target = target
        super().__init__(message or f"Unable to resolve target {target!r}")


class UnsupportedTargetError(ResolutionError):
    """The raw value is not a section index, fraction, identifier or destination reference."""

    def __init__(self, target: Any) -> None:
        super().__init__(target, f"Unsupported navigation target {target!r}")


class NavigationError(DocnavError):
    """Resolve-then-render failed; the current location is unchanged."""

    def __init__(self, target: Any, message: str | None = None) -> None:
        self.target = target
        super().__init__(message or f"Unable to navigate to {target!r}")


class SearchError(DocnavError):
    """A search over a single section could not run."""


__all__ = [
    "DocnavError",
    "NavigationError",
    "ResolutionError",
    "SearchError",
    "UnsupportedTargetError",
]
