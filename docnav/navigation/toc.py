from __future__ import annotations

import asyncio
import json
import logging
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from docnav.models.section import ChapterEntry, ChapterRange, FlatOutlineEntry, OutlineNode
from docnav.settings import Settings, get_settings

logger = logging.getLogger(__name__)

DestinationResolver = Callable[[str], Awaitable[int]]
TextLoader = Callable[[int], Awaitable[str]]


def flatten(items: Iterable[OutlineNode], level: int = 0) -> List[FlatOutlineEntry]:
    """Pre-order flatten of an outline tree; ``level`` is the depth from the root."""

    flat: List[FlatOutlineEntry] = []
    for item in items:
        flat.append(FlatOutlineEntry(label=item.label, href=item.href, level=level, subitems=item.subitems))
        if item.subitems:
            flat.extend(flatten(item.subitems, level + 1))
    return flat


def parse_destination(href: Optional[str]) -> Any:
    """Decode a serialized destination; non-JSON keys are returned unchanged."""

    if href is None:
        return None
    try:
        return json.loads(href)
    except (TypeError, ValueError):
        return href


def select_chapter_entries(flat: Sequence[FlatOutlineEntry]) -> List[FlatOutlineEntry]:
    """Keep sub-chapters (level 2) and childless entries at level <= 1 when the outline is nested."""

    if any(entry.level in (1, 2) for entry in flat):
        return [entry for entry in flat if entry.level == 2 or (entry.level <= 1 and not entry.has_children)]
    return list(flat)


class ContentCache:
    """Per-document memo of chapter content keyed by range path."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def get(self, path: str) -> Optional[str]:
        return self._items.get(path)

    def set(self, path: str, content: str) -> None:
        self._items[path] = content

    def clear(self) -> None:
        self._items.clear()

    def __contains__(self, path: object) -> bool:
        return path in self._items

    def __len__(self) -> int:
        return len(self._items)


@dataclass(slots=True)
class ChapterIndex:
    """Ordered chapter boundaries over ``section_count`` sections.

    Entries keep outline order, including those whose destination could not be resolved
    (``index is None``). Ranges are derived from the resolved entries only, ordered by
    start, so they are monotonic and contiguous; the final range ends at ``section_count``.
    """

    entries: List[ChapterEntry]
    section_count: int
    synthesized: bool = False
    _ranges: List[ChapterRange] = field(default_factory=list, init=False, repr=False)
    _starts: List[int] = field(default_factory=list, init=False, repr=False)
    _memo: Dict[int, ChapterRange] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        resolved = sorted((entry for entry in self.entries if entry.index is not None), key=lambda e: e.index)
        for position, entry in enumerate(resolved):
            end = resolved[position + 1].index if position + 1 < len(resolved) else self.section_count
            self._ranges.append(
                ChapterRange(
                    start=entry.index,  # type: ignore[arg-type]
                    end=end,  # type: ignore[arg-type]
                    label=entry.label,
                    href=entry.href,
                    level=entry.level,
                    url=entry.url,
                )
            )
        self._starts = [chapter.start for chapter in self._ranges]

    @property
    def ranges(self) -> List[ChapterRange]:
        return list(self._ranges)

    @property
    def boundaries(self) -> List[int]:
        return sorted(set(self._starts))

    def partition(self) -> List[ChapterRange]:
        """Non-empty ranges covering ``[0, section_count)``, including the pre-first range."""

        first_start = self._starts[0] if self._starts else self.section_count
        head = [ChapterRange(start=0, end=first_start)] if first_start > 0 else []
        return head + [chapter for chapter in self._ranges if chapter.end > chapter.start]

    def range_for_index(self, index: int) -> Optional[ChapterRange]:
        """Return the range containing ``index``; indices before the first boundary map to ``[0, firstStart)``."""

        if index < 0 or index >= self.section_count:
            return None
        cached = self._memo.get(index)
        if cached is not None:
            return cached

        first_start = self._starts[0] if self._starts else self.section_count
        if index < first_start:
            chapter = ChapterRange(start=0, end=first_start)
        else:
            chapter = self._ranges[bisect_right(self._starts, index) - 1]
        self._memo[index] = chapter
        return chapter

    def label_for(self, index: int) -> str:
        chapter = self.range_for_index(index)
        return chapter.label if chapter else ""

    def next_boundary(self, index: int) -> Optional[int]:
        """Least boundary strictly after ``index``; ``None`` past the last entry."""

        boundaries = self.boundaries
        position = bisect_right(boundaries, index)
        return boundaries[position] if position < len(boundaries) else None

    def prev_boundary(self, index: int) -> Optional[int]:
        """Greatest boundary strictly before ``index``; ``None`` at or before the first entry."""

        boundaries = self.boundaries
        position = bisect_left(boundaries, index)
        return boundaries[position - 1] if position > 0 else None


class TOCIndexer:
    """Turns outline trees into chapter indices and serves chapter content."""

    def __init__(self, settings: Settings | None = None, cache: ContentCache | None = None) -> None:
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else ContentCache()

    # ------------------------------------------------------------------ outline
    def flatten(self, outline: Iterable[OutlineNode]) -> List[FlatOutlineEntry]:
        return flatten(outline)

    async def build_chapter_index(
        self,
        outline: Optional[Sequence[OutlineNode]],
        resolve_destination: DestinationResolver,
        section_count: int,
    ) -> ChapterIndex:
        flat = flatten(outline) if outline else []
        if len(flat) <= 1:
            return self.uniform_index(section_count)

        selected = select_chapter_entries(flat)
        entries = await asyncio.gather(
            *(self._resolve_entry(entry, resolve_destination, section_count) for entry in selected)
        )
        return ChapterIndex(entries=list(entries), section_count=section_count)

    def uniform_index(self, section_count: int) -> ChapterIndex:
        """One boundary every ``chapter_stride`` sections, for documents without an outline."""

        stride = self.settings.chapter_stride
        entries = [
            ChapterEntry(
                label=f"Pages {start + 1}-{min(start + stride, section_count)}",
                href=None,
                level=0,
                index=start,
            )
            for start in range(0, section_count, stride)
        ]
        return ChapterIndex(entries=entries, section_count=section_count, synthesized=True)

    async def _resolve_entry(
        self,
        entry: FlatOutlineEntry,
        resolve_destination: DestinationResolver,
        section_count: int,
    ) -> ChapterEntry:
        index: Optional[int] = None
        if entry.href is None:
            logger.warning("Outline entry %r has no destination", entry.label)
        else:
            try:
                resolved = await resolve_destination(entry.href)
            except Exception as exc:
                logger.warning("Could not resolve destination %s for %r: %s", entry.href, entry.label, exc)
            else:
                if isinstance(resolved, int) and 0 <= resolved < section_count:
                    index = resolved
                else:
                    logger.warning(
                        "Destination %s for %r points outside the document (%s)", entry.href, entry.label, resolved
                    )
        return ChapterEntry(
            label=entry.label,
            href=entry.href,
            level=entry.level,
            index=index,
            url=parse_destination(entry.href),
        )

    # ------------------------------------------------------------------ lookups
    def range_for_index(self, index: int, chapters: ChapterIndex) -> Optional[ChapterRange]:
        return chapters.range_for_index(index)

    def next_chapter_boundary(self, index: int, chapters: ChapterIndex) -> Optional[int]:
        return chapters.next_boundary(index)

    def prev_chapter_boundary(self, index: int, chapters: ChapterIndex) -> Optional[int]:
        return chapters.prev_boundary(index)

    # ------------------------------------------------------------------ content
    async def chapter_content(self, chapter: Optional[ChapterRange], load_text: TextLoader) -> str:
        """Concatenate the text of every section in ``chapter``, memoized by its path."""

        if chapter is None:
            return ""
        cached = self.cache.get(chapter.path)
        if cached is not None:
            return cached

        parts: List[str] = []
        for index in range(chapter.start, chapter.end):
            parts.append(await load_text(index))
        content = "".join(parts)
        self.cache.set(chapter.path, content)
        return content


__all__ = [
    "ChapterIndex",
    "ContentCache",
    "TOCIndexer",
    "flatten",
    "parse_destination",
    "select_chapter_entries",
]
