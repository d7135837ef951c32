from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(slots=True, frozen=True)
class BookMetadata:
    """Descriptive metadata exposed by a format loader; every field is optional."""

    title: Optional[str] = None
    author: Optional[str] = None
    contributor: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None
    publisher: Optional[str] = None
    subject: Optional[str] = None
    identifier: Optional[str] = None
    source: Optional[str] = None
    rights: Optional[str] = None


@dataclass(slots=True, frozen=True)
class Landmark:
    """A semantic landmark (e.g. ``bodymatter``) pointing at a destination reference."""

    type: str
    href: str
    label: str = ""


@dataclass(slots=True, frozen=True)
class TextRange:
    """Character offsets ``[start, end)`` inside a materialized text document."""

    start: int
    end: int


@dataclass(slots=True)
class TextDocument:
    """Materialized, searchable plain-text view of one section."""

    text: str
    section_index: Optional[int] = None

    def slice(self, text_range: TextRange) -> str:
        return self.text[text_range.start : text_range.end]


__all__ = ["BookMetadata", "Landmark", "TextDocument", "TextRange"]
