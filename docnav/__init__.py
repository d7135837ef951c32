"""Navigation and addressing core for multi-format document readers."""

from .models.location import ByDestinationRef, ByFraction, ByIdentifier, BySection, Location
from .models.section import ChapterRange, FlatOutlineEntry, OutlineNode
from .session import ReaderSession

__all__ = [
    "ByDestinationRef",
    "ByFraction",
    "ByIdentifier",
    "BySection",
    "ChapterRange",
    "FlatOutlineEntry",
    "Location",
    "OutlineNode",
    "ReaderSession",
]
