"""Chapter indexing, location resolution, history and fractional progress."""

from .events import EventEmitter
from .history import HistoryStack
from .progress import SectionFractionIndex
from .resolver import IdentifierAnchor, LocationResolver
from .toc import ChapterIndex, ContentCache, TOCIndexer, flatten, parse_destination, select_chapter_entries

__all__ = [
    "ChapterIndex",
    "ContentCache",
    "EventEmitter",
    "HistoryStack",
    "IdentifierAnchor",
    "LocationResolver",
    "SectionFractionIndex",
    "TOCIndexer",
    "flatten",
    "parse_destination",
    "select_chapter_entries",
]
