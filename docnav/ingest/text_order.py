from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence


NO_TEXT_PLACEHOLDER = "[No readable text content found on this page]"


@dataclass(slots=True, frozen=True)
class TextFragment:
    """A positioned glyph run: string value plus a 2-D affine placement ``(a, b, c, d, x, y)``."""

    text: Optional[str]
    transform: Sequence[float]

    @property
    def x(self) -> float:
        return float(self.transform[4])

    @property
    def y(self) -> float:
        return float(self.transform[5])


@dataclass(slots=True)
class TextOrderReconstructor:
    """Rebuild reading order from unordered fragments of one page.

    Fragments are grouped into lines in a single pass over the input: a fragment joins the
    current line while its vertical coordinate stays within ``tolerance`` of the line's
    first fragment. Lines are then ordered top of page first (descending y) and fragments
    left to right. This is a heuristic; multi-column and rotated layouts come out mixed.
    """

    tolerance: float = 5.0

    def lines(self, fragments: Iterable[TextFragment]) -> List[str]:
        grouped: List[List[TextFragment]] = []
        current: List[TextFragment] = []
        anchor_y: float | None = None

        for fragment in fragments:
            if not _is_valid(fragment):
                continue
            if anchor_y is None or abs(anchor_y - fragment.y) > self.tolerance:
                if current:
                    grouped.append(current)
                current = [fragment]
                anchor_y = fragment.y
            else:
                current.append(fragment)
        if current:
            grouped.append(current)

        grouped.sort(key=lambda line: line[0].y, reverse=True)
        return [
            " ".join(fragment.text for fragment in sorted(line, key=lambda item: item.x))  # type: ignore[misc]
            for line in grouped
        ]

    def body(self, fragments: Iterable[TextFragment]) -> str:
        return "\n".join(self.lines(fragments))

    def reconstruct(self, fragments: Iterable[TextFragment], page_index: int) -> str:
        """Return the page text wrapped in ``----- page:N start/end -----`` delimiters."""

        text = self.body(fragments)
        return wrap_page(text or NO_TEXT_PLACEHOLDER, page_index)


def wrap_page(text: str, page_index: int) -> str:
    return f"\n----- page:{page_index} start -----\n{text}\n----- page:{page_index} end -----\n\n"


def _is_valid(fragment: TextFragment) -> bool:
    if not isinstance(fragment.text, str) or not fragment.text:
        return False
    transform = fragment.transform
    try:
        if len(transform) < 6:
            return False
        x, y = float(transform[4]), float(transform[5])
    except (TypeError, ValueError):
        return False
    return math.isfinite(x) and math.isfinite(y)


__all__ = ["NO_TEXT_PLACEHOLDER", "TextFragment", "TextOrderReconstructor", "wrap_page"]
