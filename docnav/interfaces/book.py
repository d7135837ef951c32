from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence, Tuple

from docnav.models.document import BookMetadata, Landmark
from docnav.models.location import Location
from docnav.models.section import OutlineNode


_EXTERNAL_URI = re.compile(r"^\w+:", re.IGNORECASE)


class Section(ABC):
    """One lazily-loaded logical unit of content owned by a format loader."""

    def __init__(
        self,
        id: int,
        size: int,
        *,
        linear: Optional[str] = None,
        cfi: Optional[str] = None,
    ) -> None:
        self.id = id
        self.size = size
        self.linear = linear
        self.cfi = cfi

    @abstractmethod
    async def load_text(self) -> str:
        """Return the section's readable text."""

    @property
    def materializable(self) -> bool:
        """Whether ``create_document`` can produce a navigable document."""

        return False

    async def create_document(self) -> Any:
        """Materialize a navigable document; may perform I/O."""

        raise NotImplementedError(f"Section {self.id} has no navigable document")


class BookSource(ABC):
    """Contract of a format loader as seen by the navigation core."""

    sections: Sequence[Section]
    toc: Optional[Sequence[OutlineNode]] = None
    page_list: Optional[Sequence[OutlineNode]] = None
    landmarks: Sequence[Landmark] = ()
    metadata: BookMetadata = BookMetadata()

    @abstractmethod
    async def resolve_href(self, href: str) -> int:
        """Resolve a destination reference to a section ordinal."""

    async def split_toc_href(self, href: str) -> Tuple[int, Optional[Any]]:
        """Split a TOC href into a section ordinal and an optional in-section locator."""

        return await self.resolve_href(href), None

    async def resolve_identifier(self, value: str) -> Location:
        """Format-native identifier resolution; ``NotImplemented`` defers to the grammar."""

        return NotImplemented

    def is_external(self, uri: str) -> bool:
        return bool(_EXTERNAL_URI.match(uri))

    def close(self) -> None:
        """Release loader resources."""


__all__ = ["BookSource", "Section"]
