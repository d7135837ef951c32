from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


SEARCH_PREFIX = "docnav-search:"


@dataclass(slots=True, frozen=True)
class SearchOptions:
    """Matching switches understood by the default text matcher."""

    match_case: bool = False
    match_whole_words: bool = False
    match_diacritics: bool = False


@dataclass(slots=True, frozen=True)
class Excerpt:
    """Text around a hit: ``pre`` + ``match`` + ``post``."""

    pre: str
    match: str
    post: str

    def __str__(self) -> str:
        return f"{self.pre}{self.match}{self.post}"


@dataclass(slots=True, frozen=True)
class SearchMatch:
    identifier: str
    excerpt: Excerpt


@dataclass(slots=True, frozen=True)
class SearchProgress:
    """Heartbeat emitted once per scanned section; ``progress`` is in ``(0, 1]``."""

    progress: float


@dataclass(slots=True, frozen=True)
class SectionResults:
    """All hits of one section, flushed as soon as that section has been scanned."""

    section_index: int
    subitems: Tuple[SearchMatch, ...]
    label: str = ""


class SearchDone:
    """Terminal sentinel closing a search stream."""

    _instance: "SearchDone | None" = None

    def __new__(cls) -> "SearchDone":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SEARCH_DONE"


SEARCH_DONE = SearchDone()


@dataclass(slots=True, frozen=True)
class AnnotationRecord:
    """An entry of the per-section annotation registry.

    ``value`` is either a search identifier carrying ``SEARCH_PREFIX`` or the location
    value of a user annotation.
    """

    value: str

    @classmethod
    def for_search(cls, identifier: str) -> "AnnotationRecord":
        return cls(value=f"{SEARCH_PREFIX}{identifier}")

    @property
    def is_search(self) -> bool:
        return self.value.startswith(SEARCH_PREFIX)

    @property
    def identifier(self) -> str:
        if self.is_search:
            return self.value[len(SEARCH_PREFIX) :]
        return self.value


__all__ = [
    "AnnotationRecord",
    "Excerpt",
    "SEARCH_DONE",
    "SEARCH_PREFIX",
    "SearchDone",
    "SearchMatch",
    "SearchOptions",
    "SearchProgress",
    "SectionResults",
]
