from __future__ import annotations

import re
import unicodedata
from typing import Any, Callable, Iterable, Iterator, List, Tuple

from docnav.models.document import TextDocument, TextRange
from docnav.models.search import Excerpt, SearchOptions

Matcher = Callable[[Any, str], Iterable[Tuple[Any, Excerpt]]]
MatcherFactory = Callable[[SearchOptions], Matcher]

_WHITESPACE = re.compile(r"\s+")


def _fold(text: str, options: SearchOptions) -> Tuple[str, List[int]]:
    """Normalise ``text`` for comparison, keeping the source offset of every output char."""

    chars: List[str] = []
    offsets: List[int] = []
    for offset, char in enumerate(text):
        folded = char
        if not options.match_diacritics:
            folded = "".join(c for c in unicodedata.normalize("NFD", folded) if not unicodedata.combining(c))
        if not options.match_case:
            folded = folded.lower()
        for piece in folded:
            chars.append(piece)
            offsets.append(offset)
    return "".join(chars), offsets


def _clean(text: str) -> str:
    return _WHITESPACE.sub(" ", text)


def _excerpt(text: str, start: int, end: int, context: int) -> Excerpt:
    return Excerpt(
        pre=_clean(text[max(start - context, 0) : start]),
        match=_clean(text[start:end]),
        post=_clean(text[end : end + context]),
    )


def match_text(
    document: TextDocument,
    query: str,
    options: SearchOptions | None = None,
    context: int = 50,
) -> Iterator[Tuple[TextRange, Excerpt]]:
    """Yield ``(range, excerpt)`` for every non-overlapping occurrence of ``query``."""

    if not isinstance(document, TextDocument):
        raise TypeError(f"Cannot search {type(document).__name__}; expected TextDocument")
    options = options or SearchOptions()
    needle, _ = _fold(query, options)
    if not needle.strip():
        return

    haystack, offsets = _fold(document.text, options)
    pattern = re.escape(needle)
    if options.match_whole_words:
        pattern = rf"(?<!\w){pattern}(?!\w)"
    for match in re.finditer(pattern, haystack):
        start = offsets[match.start()]
        end = offsets[match.end() - 1] + 1
        yield TextRange(start, end), _excerpt(document.text, start, end, context)


def text_matcher(options: SearchOptions | None = None, context: int = 50) -> Matcher:
    """Bind options so the pipeline can call ``matcher(document, query)``."""

    def matcher(document: Any, query: str) -> Iterable[Tuple[Any, Excerpt]]:
        return match_text(document, query, options, context)

    return matcher


__all__ = ["Matcher", "MatcherFactory", "match_text", "text_matcher"]
