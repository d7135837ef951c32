"""Domain records shared by the navigation components."""

from .document import BookMetadata, Landmark, TextDocument, TextRange
from .location import (
    AnnotationPlacement,
    ByDestinationRef,
    ByFraction,
    ByIdentifier,
    BySection,
    HistoryEntry,
    Location,
    LocationBundle,
    NavigationTarget,
)
from .search import (
    SEARCH_DONE,
    SEARCH_PREFIX,
    AnnotationRecord,
    Excerpt,
    SearchDone,
    SearchMatch,
    SearchOptions,
    SearchProgress,
    SectionResults,
)
from .section import ChapterEntry, ChapterRange, FlatOutlineEntry, OutlineNode

__all__ = [
    "AnnotationPlacement",
    "AnnotationRecord",
    "BookMetadata",
    "ByDestinationRef",
    "ByFraction",
    "ByIdentifier",
    "BySection",
    "ChapterEntry",
    "ChapterRange",
    "Excerpt",
    "FlatOutlineEntry",
    "HistoryEntry",
    "Landmark",
    "Location",
    "LocationBundle",
    "NavigationTarget",
    "OutlineNode",
    "SEARCH_DONE",
    "SEARCH_PREFIX",
    "SearchDone",
    "SearchMatch",
    "SearchOptions",
    "SearchProgress",
    "SectionResults",
    "TextDocument",
    "TextRange",
]
