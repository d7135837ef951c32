from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any, Dict, Optional

from docnav.errors import ResolutionError, UnsupportedTargetError
from docnav.interfaces.book import BookSource
from docnav.interfaces.grammar import FragmentGrammar
from docnav.interfaces.presentation import FractionIndex
from docnav.models.location import (
    ByDestinationRef,
    ByFraction,
    ByIdentifier,
    BySection,
    Location,
    NavigationTarget,
)

logger = logging.getLogger(__name__)

_TARGET_TYPES = (BySection, ByFraction, ByIdentifier, ByDestinationRef)


class IdentifierAnchor:
    """Lazy in-section anchor: converts an identifier's local part once a document exists."""

    __slots__ = ("grammar", "parts")

    def __init__(self, grammar: FragmentGrammar, parts: Any) -> None:
        self.grammar = grammar
        self.parts = parts

    def __call__(self, document: Any) -> Any:
        return self.grammar.to_range(document, self.parts)

    def __repr__(self) -> str:
        return f"IdentifierAnchor({self.parts!r})"


class LocationResolver:
    """Resolves every addressing form into a ``Location`` and composes identifiers.

    Reads the book and the grammar only; the one piece of state it keeps is the per-section
    base identifier memo, owned by the session that created it.
    """

    def __init__(
        self,
        book: BookSource,
        grammar: FragmentGrammar,
        fraction_index: Optional[FractionIndex] = None,
    ) -> None:
        self.book = book
        self.grammar = grammar
        self.fraction_index = fraction_index
        self._base_identifiers: Dict[int, str] = {}

    def coerce(self, value: Any) -> NavigationTarget:
        """Tag a raw value (int, ``{"fraction": x}``, identifier or destination string)."""

        if isinstance(value, _TARGET_TYPES):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return BySection(value)
        if isinstance(value, Mapping):
            fraction = value.get("fraction")
            if isinstance(fraction, (int, float)) and not isinstance(fraction, bool):
                return ByFraction(float(fraction))
        if isinstance(value, str) and value:
            if self.grammar.is_identifier(value):
                return ByIdentifier(value)
            return ByDestinationRef(value)
        raise UnsupportedTargetError(value)

    async def resolve(self, target: Any) -> Location:
        try:
            tagged = self.coerce(target)
            if isinstance(tagged, BySection):
                return self._resolve_section(tagged)
            if isinstance(tagged, ByFraction):
                return self._resolve_fraction(tagged)
            if isinstance(tagged, ByIdentifier):
                return await self._resolve_identifier(tagged)
            return await self._resolve_destination(tagged)
        except ResolutionError as exc:
            logger.error("Unable to resolve target %r: %s", target, exc)
            raise
        except Exception as exc:
            logger.error("Unable to resolve target %r: %s", target, exc)
            raise ResolutionError(target, f"Unable to resolve target {target!r}: {exc}") from exc

    def _resolve_section(self, target: BySection) -> Location:
        self._check_index(target, target.index)
        return Location(index=target.index)

    def _resolve_fraction(self, target: ByFraction) -> Location:
        if self.fraction_index is None:
            raise ResolutionError(target, "No fractional-position index available")
        if not math.isfinite(target.fraction):
            raise ResolutionError(target, f"Fraction {target.fraction!r} is not a finite number")
        index, anchor = self.fraction_index.get_section(target.fraction)
        return Location(index=index, anchor=anchor)

    async def _resolve_identifier(self, target: ByIdentifier) -> Location:
        native = await self.book.resolve_identifier(target.value)
        if native is not NotImplemented:
            self._check_index(target, native.index)
            return native
        parts = self.grammar.parse(target.value)
        base, local = self.grammar.split(parts)
        index = self.grammar.section_index(base)
        self._check_index(target, index)
        return Location(index=index, anchor=IdentifierAnchor(self.grammar, local))

    async def _resolve_destination(self, target: ByDestinationRef) -> Location:
        index, locator = await self.book.split_toc_href(target.href)
        self._check_index(target, index)
        return Location(index=index, anchor=locator)

    def _check_index(self, target: NavigationTarget, index: Any) -> None:
        if not isinstance(index, int) or not 0 <= index < len(self.book.sections):
            raise ResolutionError(target, f"Section index {index!r} is outside the document")

    # ------------------------------------------------------------------ identifiers
    def base_identifier(self, index: int) -> str:
        cached = self._base_identifiers.get(index)
        if cached is None:
            cached = self.book.sections[index].cfi or self.grammar.from_index(index)
            self._base_identifiers[index] = cached
        return cached

    def compute_identifier(self, index: int, text_range: Any = None) -> str:
        """Identifier of a section, or of a range inside it when ``text_range`` is given."""

        base = self.base_identifier(index)
        if text_range is None:
            return base
        return self.grammar.join(base, self.grammar.from_range(text_range))

    def reset(self) -> None:
        self._base_identifiers.clear()


__all__ = ["IdentifierAnchor", "LocationResolver"]
