from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Tuple


@dataclass(slots=True, frozen=True)
class OutlineNode:
    """One entry of a document outline with its ordered subitems."""

    label: str
    href: Optional[str] = None
    subitems: Tuple["OutlineNode", ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.subitems, tuple):
            object.__setattr__(self, "subitems", tuple(self.subitems or ()))


@dataclass(slots=True, frozen=True)
class FlatOutlineEntry:
    """An outline node projected to a single level-tagged record."""

    label: str
    href: Optional[str]
    level: int
    subitems: Tuple[OutlineNode, ...] = ()

    @property
    def has_children(self) -> bool:
        return bool(self.subitems)


@dataclass(slots=True, frozen=True)
class ChapterEntry:
    """A kept outline entry with its resolved section index (None when resolution failed)."""

    label: str
    href: Optional[str]
    level: int
    index: Optional[int]
    url: Any = None


@dataclass(slots=True, frozen=True)
class ChapterRange:
    """Half-open interval ``[start, end)`` of section ordinals owned by one outline entry."""

    start: int
    end: int
    label: str = ""
    href: Optional[str] = None
    level: int = 0
    url: Any = None
    path: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", f"page:{self.start}-{self.end}")

    @property
    def index(self) -> int:
        return self.start

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and self.start <= index < self.end


__all__ = ["ChapterEntry", "ChapterRange", "FlatOutlineEntry", "OutlineNode"]
