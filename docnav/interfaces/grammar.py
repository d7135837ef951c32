from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Tuple


class FragmentGrammar(ABC):
    """Canonical fragment identifier service.

    The core never looks inside identifiers; it only parses, splits, joins and converts
    them through this contract.
    """

    @abstractmethod
    def is_identifier(self, value: str) -> bool:
        """Fast-path check for identifier-shaped strings."""

    @abstractmethod
    def parse(self, value: str) -> Any:
        """Parse an identifier into the grammar's path representation."""

    @abstractmethod
    def split(self, parts: Any) -> Tuple[Any, Any]:
        """Split parsed parts into the base section address and the in-section address."""

    @abstractmethod
    def section_index(self, base: Any) -> int:
        """Convert a base section address to a section ordinal."""

    @abstractmethod
    def from_index(self, index: int) -> str:
        """Synthesize a base identifier for formats without a native identifier grammar."""

    @abstractmethod
    def join(self, base: str, local: str) -> str:
        """Compose a base identifier with an in-section identifier."""

    @abstractmethod
    def from_range(self, text_range: Any) -> str:
        """Convert an in-section range into an in-section identifier."""

    @abstractmethod
    def to_range(self, document: Any, parts: Any) -> Any:
        """Convert an in-section address to a range against a materialized document."""


__all__ = ["FragmentGrammar"]
