from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from docnav.models.section import ChapterRange


@dataclass(slots=True, frozen=True)
class BySection:
    """Navigate to the start of a section ordinal."""

    index: int


@dataclass(slots=True, frozen=True)
class ByFraction:
    """Navigate to a fractional position over the weighted size of the document."""

    fraction: float


@dataclass(slots=True, frozen=True)
class ByIdentifier:
    """Navigate to a canonical fragment identifier."""

    value: str


@dataclass(slots=True, frozen=True)
class ByDestinationRef:
    """Navigate to a format-opaque destination reference (serialized destination or key)."""

    href: str


NavigationTarget = Union[BySection, ByFraction, ByIdentifier, ByDestinationRef]
HistoryEntry = NavigationTarget


@dataclass(slots=True, frozen=True)
class Location:
    """Canonical result of every resolution: a section ordinal plus an optional anchor.

    ``anchor`` is opaque: ``None`` means the start of the section, a callable is evaluated
    lazily against a materialized document, anything else is passed through as-is.
    """

    index: int
    anchor: Any = None

    def anchor_for(self, document: Any) -> Any:
        """Evaluate a callable anchor against ``document``; without a document it is returned as-is."""

        if callable(self.anchor) and document is not None:
            return self.anchor(document)
        return self.anchor


@dataclass(slots=True)
class LocationBundle:
    """Everything the presentation layer needs whenever the current location changes."""

    index: int
    identifier: str
    progress: Dict[str, Any] = field(default_factory=dict)
    toc_item: Optional[ChapterRange] = None
    page_item: Optional[ChapterRange] = None
    range: Any = None
    reason: Optional[str] = None


@dataclass(slots=True, frozen=True)
class AnnotationPlacement:
    """Where an annotation landed: its section and the label of the enclosing chapter."""

    index: int
    label: str


__all__ = [
    "AnnotationPlacement",
    "ByDestinationRef",
    "ByFraction",
    "ByIdentifier",
    "BySection",
    "HistoryEntry",
    "Location",
    "LocationBundle",
    "NavigationTarget",
]
