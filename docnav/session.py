from __future__ import annotations

import logging
import sys
from typing import Any, Dict, List, Optional, Tuple

from docnav.errors import NavigationError, ResolutionError
from docnav.interfaces.book import BookSource
from docnav.interfaces.grammar import FragmentGrammar
from docnav.interfaces.presentation import FractionIndex, OverlaySink, Renderer
from docnav.models.location import (
    AnnotationPlacement,
    ByFraction,
    BySection,
    Location,
    LocationBundle,
)
from docnav.models.search import AnnotationRecord, SearchOptions
from docnav.models.section import ChapterRange
from docnav.navigation.events import EventEmitter, Listener
from docnav.navigation.history import HistoryStack
from docnav.navigation.progress import SectionFractionIndex
from docnav.navigation.resolver import LocationResolver
from docnav.navigation.toc import ChapterIndex, ContentCache, TOCIndexer
from docnav.search.annotations import AnnotationRegistry
from docnav.search.matcher import MatcherFactory, text_matcher
from docnav.search.pipeline import SearchPipeline, SearchStream
from docnav.settings import Settings, get_settings

logger = logging.getLogger(__name__)

RELOCATE = "relocate"
DRAW_ANNOTATION = "draw-annotation"
SHOW_ANNOTATION = "show-annotation"
SEARCH_ANNOTATION = "search-annotation"
EXTERNAL_LINK = "external-link"
SEARCH_STYLE = "outline"

_TEXT_START_LANDMARKS = ("bodymatter", "text")


class ReaderSession:
    """All per-document navigation state for one open book.

    The session owns the chapter indices, the content cache, the history stack, the
    search annotation registry and the last reported location; ``close`` drops all of it.
    """

    def __init__(
        self,
        book: BookSource,
        grammar: FragmentGrammar,
        *,
        fraction_index: FractionIndex | None = None,
        renderer: Renderer | None = None,
        matcher_factory: MatcherFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.book = book
        self.grammar = grammar
        self.renderer = renderer
        self.fraction_index = fraction_index or SectionFractionIndex(book.sections)

        self.cache = ContentCache()
        self.indexer = TOCIndexer(self.settings, self.cache)
        self.resolver = LocationResolver(book, grammar, self.fraction_index)
        self.history = HistoryStack()
        self.registry = AnnotationRegistry()
        self._events = EventEmitter()
        self._overlays: Dict[int, Tuple[OverlaySink, Any]] = {}

        context = self.settings.excerpt_context
        self.search_pipeline = SearchPipeline(
            book,
            self.resolver,
            self.registry,
            matcher_factory=matcher_factory or (lambda options: text_matcher(options, context)),
            label_for=self._chapter_label,
            on_register=self._draw_search_annotation,
            on_clear=self._remove_search_annotation,
        )

        self.chapters: Optional[ChapterIndex] = None
        self.pages: Optional[ChapterIndex] = None
        self.last_location: Optional[LocationBundle] = None
        self.current_index = 0

    # ------------------------------------------------------------------ lifecycle
    async def open(self) -> "ReaderSession":
        """Build the chapter index (and page index when the book has a page list)."""

        section_count = len(self.book.sections)
        self.chapters = await self.indexer.build_chapter_index(
            self.book.toc, self.book.resolve_href, section_count
        )
        if self.book.page_list:
            self.pages = await self.indexer.build_chapter_index(
                self.book.page_list, self.book.resolve_href, section_count
            )
        logger.info(
            "Opened document: %s sections, %s chapter ranges%s",
            section_count,
            len(self.chapters.ranges),
            " (synthesized)" if self.chapters.synthesized else "",
        )
        return self

    def close(self) -> None:
        self.search_pipeline.clear()
        self._overlays.clear()
        self.cache.clear()
        self.resolver.reset()
        self.history.clear()
        self.chapters = None
        self.pages = None
        self.last_location = None
        self.current_index = 0
        self.book.close()

    async def init(self, last_location: Any = None, show_text_start: bool = False) -> Location:
        """Show the saved location if it still resolves, else the text start or section 0."""

        if last_location is not None:
            try:
                return await self.go_to(last_location)
            except NavigationError as exc:
                logger.warning("Saved location %r is no longer reachable: %s", last_location, exc)
        if show_text_start:
            return await self.go_to_text_start()
        return await self.go_to(BySection(0))

    # ------------------------------------------------------------------ observers
    def on(self, event: str, listener: Listener) -> Listener:
        return self._events.on(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        self._events.off(event, listener)

    # ------------------------------------------------------------------ navigation
    async def resolve(self, target: Any) -> Location:
        return await self.resolver.resolve(target)

    async def go_to(self, target: Any) -> Location:
        """Resolve and render ``target``, then record it in the history.

        Raises ``NavigationError`` when either step fails; history and the last location
        are left untouched in that case.
        """

        try:
            entry = self.resolver.coerce(target)
        except ResolutionError as exc:
            raise NavigationError(target, str(exc)) from exc
        location = await self._render(entry)
        self.history.push_state(entry)
        return location

    async def go_to_fraction(self, fraction: float) -> Location:
        return await self.go_to(ByFraction(float(fraction)))

    async def follow_link(self, href: str) -> Optional[Location]:
        """Go to an in-book link; external URIs are handed to listeners instead."""

        if self.book.is_external(href):
            self._events.emit(EXTERNAL_LINK, {"uri": href})
            return None
        return await self.go_to(href)

    async def go_to_text_start(self) -> Location:
        for landmark in self.book.landmarks:
            if any(kind in landmark.type for kind in _TEXT_START_LANDMARKS):
                return await self.go_to(landmark.href)
        first_linear = next(
            (index for index, section in enumerate(self.book.sections) if section.linear != "no"),
            0,
        )
        return await self.go_to(BySection(first_linear))

    async def back(self) -> Optional[Location]:
        entry = self.history.back()
        if entry is None:
            return None
        return await self._render(entry)

    async def forward(self) -> Optional[Location]:
        entry = self.history.forward()
        if entry is None:
            return None
        return await self._render(entry)

    async def next_chapter(self) -> Optional[Location]:
        if self.chapters is None:
            return None
        boundary = self.chapters.next_boundary(self.current_index)
        if boundary is None:
            return None
        return await self.go_to(BySection(boundary))

    async def prev_chapter(self) -> Optional[Location]:
        if self.chapters is None:
            return None
        boundary = self.chapters.prev_boundary(self.current_index)
        if boundary is None:
            return None
        return await self.go_to(BySection(boundary))

    async def _render(self, target: Any) -> Location:
        try:
            location = await self.resolver.resolve(target)
        except ResolutionError as exc:
            raise NavigationError(target, str(exc)) from exc
        if self.renderer is not None:
            try:
                await self.renderer.go_to(location)
            except Exception as exc:
                logger.error("Renderer failed to show %r: %s", target, exc)
                raise NavigationError(target, f"Unable to display {target!r}: {exc}") from exc
        self.current_index = location.index
        return location

    # ------------------------------------------------------------------ location reporting
    def relocate(
        self,
        index: int,
        *,
        fraction: float = 0.0,
        size: Optional[float] = None,
        range: Any = None,
        reason: Optional[str] = None,
    ) -> LocationBundle:
        """Record the location the presentation layer is now showing and notify observers."""

        identifier = self.resolver.compute_identifier(index, range)
        bundle = LocationBundle(
            index=index,
            identifier=identifier,
            progress=self.fraction_index.get_progress(index, fraction, size),
            toc_item=self.chapters.range_for_index(index) if self.chapters else None,
            page_item=self.pages.range_for_index(index) if self.pages else None,
            range=range,
            reason=reason,
        )
        if reason in self.settings.history_replace_reasons:
            self.history.replace_state(self.resolver.coerce(identifier))
        self.last_location = bundle
        self.current_index = index
        self._events.emit(RELOCATE, bundle)
        return bundle

    def get_progress_of(self, index: int, range: Any = None) -> Dict[str, Optional[ChapterRange]]:
        return {
            "toc_item": self.chapters.range_for_index(index) if self.chapters else None,
            "page_item": self.pages.range_for_index(index) if self.pages else None,
        }

    async def get_toc_item_of(self, target: Any) -> Optional[ChapterRange]:
        try:
            location = await self.resolver.resolve(target)
        except ResolutionError:
            return None
        if self.chapters is None:
            return None
        return self.chapters.range_for_index(location.index)

    def get_section_fractions(self) -> List[float]:
        return [fraction + sys.float_info.epsilon for fraction in self.fraction_index.section_fractions]

    async def chapter_content(self, index: int) -> str:
        """Concatenated text of the chapter containing section ``index``."""

        chapter = self.chapters.range_for_index(index) if self.chapters else None
        return await self.indexer.chapter_content(chapter, self._load_text)

    async def _load_text(self, index: int) -> str:
        return await self.book.sections[index].load_text()

    def _chapter_label(self, index: int) -> str:
        return self.chapters.label_for(index) if self.chapters else ""

    # ------------------------------------------------------------------ annotations
    async def attach_overlay(self, index: int, sink: OverlaySink, document: Any = None) -> None:
        """Register the highlight layer of a displayed section and replay its search hits."""

        self._overlays[index] = (sink, document)
        for record in self.registry.get(index):
            await self.add_annotation(record)

    def detach_overlay(self, index: int) -> None:
        self._overlays.pop(index, None)

    async def add_annotation(self, annotation: AnnotationRecord | str, remove: bool = False) -> AnnotationPlacement:
        record = annotation if isinstance(annotation, AnnotationRecord) else AnnotationRecord(annotation)
        target = record.identifier if record.is_search else record.value
        location = await self.resolver.resolve(target)
        overlay = self._overlays.get(location.index)

        if overlay is not None:
            sink, document = overlay
            if record.is_search:
                if remove:
                    sink.remove(record.value)
                else:
                    sink.add(record.value, location.anchor_for(document), SEARCH_STYLE)
            else:
                sink.remove(record.value)
                if not remove:
                    text_range = location.anchor_for(document)

                    def draw(style: str, **options: Any) -> None:
                        sink.add(record.value, text_range, style, **options)

                    self._events.emit(
                        DRAW_ANNOTATION,
                        {"draw": draw, "annotation": record, "document": document, "range": text_range},
                    )
        return AnnotationPlacement(index=location.index, label=self._chapter_label(location.index))

    async def delete_annotation(self, annotation: AnnotationRecord | str) -> AnnotationPlacement:
        return await self.add_annotation(annotation, remove=True)

    async def show_annotation(self, annotation: AnnotationRecord | str) -> Location:
        record = annotation if isinstance(annotation, AnnotationRecord) else AnnotationRecord(annotation)
        location = await self.go_to(record.identifier)
        overlay = self._overlays.get(location.index)
        document = overlay[1] if overlay is not None else None
        text_range = location.anchor_for(document) if document is not None else None
        self._events.emit(SHOW_ANNOTATION, {"value": record.value, "index": location.index, "range": text_range})
        return location

    async def _draw_search_annotation(self, location: Location, record: AnnotationRecord) -> None:
        overlay = self._overlays.get(location.index)
        if overlay is not None:
            sink, document = overlay
            sink.add(record.value, location.anchor_for(document), SEARCH_STYLE)
        self._events.emit(SEARCH_ANNOTATION, {"value": record.value, "index": location.index})

    def _remove_search_annotation(self, index: int, record: AnnotationRecord) -> None:
        overlay = self._overlays.get(index)
        if overlay is not None:
            overlay[0].remove(record.value)

    # ------------------------------------------------------------------ search
    def search(
        self,
        query: str,
        options: SearchOptions | None = None,
        section_index: int | None = None,
    ) -> SearchStream:
        return self.search_pipeline.search(query, options, section_index)

    def clear_search(self) -> None:
        self.search_pipeline.clear()


__all__ = [
    "DRAW_ANNOTATION",
    "EXTERNAL_LINK",
    "RELOCATE",
    "ReaderSession",
    "SEARCH_ANNOTATION",
    "SHOW_ANNOTATION",
]
