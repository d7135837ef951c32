from __future__ import annotations

import inspect
import logging
from contextlib import aclosing
from typing import Any, AsyncGenerator, AsyncIterator, Awaitable, Callable, Optional, Union

from docnav.errors import ResolutionError, SearchError
from docnav.interfaces.book import BookSource
from docnav.models.location import ByIdentifier, Location
from docnav.models.search import (
    SEARCH_DONE,
    AnnotationRecord,
    SearchDone,
    SearchMatch,
    SearchOptions,
    SearchProgress,
    SectionResults,
)
from docnav.navigation.resolver import LocationResolver
from docnav.search.annotations import AnnotationRegistry
from docnav.search.matcher import Matcher, MatcherFactory, text_matcher

logger = logging.getLogger(__name__)

SearchItem = Union[SearchMatch, SearchProgress, SectionResults, SearchDone]
RegisterHook = Callable[[Location, AnnotationRecord], Awaitable[None]]
ClearHook = Callable[[int, AnnotationRecord], None]


async def release_document(document: Any) -> None:
    """Close a materialized document if it holds resources."""

    close = getattr(document, "close", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result


class SearchStream:
    """Pull-based handle over one search run.

    Iterate with ``async for`` (or ``await stream.next()``) and call ``aclose`` to stop
    early; closing releases the section document currently being scanned.
    """

    def __init__(self, generator: AsyncGenerator[SearchItem, None]) -> None:
        self._generator = generator
        self.closed = False

    def __aiter__(self) -> AsyncIterator[SearchItem]:
        return self

    async def __anext__(self) -> SearchItem:
        if self.closed:
            raise StopAsyncIteration
        return await self._generator.__anext__()

    async def next(self) -> Optional[SearchItem]:
        try:
            return await self.__anext__()
        except StopAsyncIteration:
            return None

    async def aclose(self) -> None:
        if not self.closed:
            self.closed = True
            await self._generator.aclose()

    async def __aenter__(self) -> "SearchStream":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class SearchPipeline:
    """Lazy search over one section or the whole book, feeding the annotation registry."""

    def __init__(
        self,
        book: BookSource,
        resolver: LocationResolver,
        registry: AnnotationRegistry,
        *,
        matcher_factory: MatcherFactory | None = None,
        label_for: Callable[[int], str] | None = None,
        on_register: RegisterHook | None = None,
        on_clear: ClearHook | None = None,
    ) -> None:
        self.book = book
        self.resolver = resolver
        self.registry = registry
        self.matcher_factory = matcher_factory or (lambda options: text_matcher(options))
        self.label_for = label_for or (lambda index: "")
        self.on_register = on_register
        self.on_clear = on_clear
        self._generation = 0

    def search(
        self,
        query: str,
        options: SearchOptions | None = None,
        section_index: int | None = None,
    ) -> SearchStream:
        """Start a search; previous search annotations are removed first.

        Starting a search or clearing retires any stream still open, so hits it yields
        afterwards are no longer registered.
        """

        self.clear()
        if section_index is not None and not 0 <= section_index < len(self.book.sections):
            raise SearchError(f"Section {section_index} is outside the document")

        matcher = self.matcher_factory(options or SearchOptions())
        logger.debug("Searching %r (section=%s)", query, section_index)
        return SearchStream(self._run(matcher, query, section_index, self._generation))

    def clear(self) -> None:
        self._generation += 1
        for index, records in self.registry.items():
            if self.on_clear is not None:
                for record in records:
                    self.on_clear(index, record)
        self.registry.clear()

    async def _run(
        self,
        matcher: Matcher,
        query: str,
        section_index: int | None,
        generation: int,
    ) -> AsyncGenerator[SearchItem, None]:
        if section_index is not None:
            async with aclosing(self._search_section(matcher, query, section_index)) as matches:
                async for match in matches:
                    await self._register(match.identifier, generation)
                    yield match
        else:
            async with aclosing(self._search_book(matcher, query)) as results:
                async for result in results:
                    if isinstance(result, SectionResults):
                        for match in result.subitems:
                            await self._register(match.identifier, generation)
                    yield result
        logger.debug("Search for %r finished", query)
        yield SEARCH_DONE

    async def _search_section(
        self,
        matcher: Matcher,
        query: str,
        index: int,
    ) -> AsyncGenerator[SearchMatch, None]:
        section = self.book.sections[index]
        if not section.materializable:
            raise SearchError(f"Section {index} has no searchable document")
        try:
            document = await section.create_document()
        except Exception as exc:
            raise SearchError(f"Unable to load section {index}: {exc}") from exc

        try:
            for text_range, excerpt in matcher(document, query):
                yield SearchMatch(identifier=self.resolver.compute_identifier(index, text_range), excerpt=excerpt)
        finally:
            await release_document(document)

    async def _search_book(self, matcher: Matcher, query: str) -> AsyncGenerator[SearchItem, None]:
        sections = self.book.sections
        total = len(sections)
        for index, section in enumerate(sections):
            if not section.materializable:
                continue
            try:
                document = await section.create_document()
            except Exception as exc:
                logger.warning("Skipping section %s during search: %s", index, exc)
                yield SearchProgress(progress=(index + 1) / total)
                continue

            try:
                subitems = tuple(
                    SearchMatch(identifier=self.resolver.compute_identifier(index, text_range), excerpt=excerpt)
                    for text_range, excerpt in matcher(document, query)
                )
            finally:
                await release_document(document)

            yield SearchProgress(progress=(index + 1) / total)
            if subitems:
                yield SectionResults(section_index=index, subitems=subitems, label=self.label_for(index))

    async def _register(self, identifier: str, generation: int) -> None:
        """Register a hit as a search annotation once its location resolves."""

        if generation != self._generation:
            logger.debug("Dropping hit %s from a superseded search", identifier)
            return
        try:
            location = await self.resolver.resolve(ByIdentifier(identifier))
        except ResolutionError:
            logger.warning("Search hit %s could not be located; not highlighted", identifier)
            return
        if generation != self._generation:
            return
        record = AnnotationRecord.for_search(identifier)
        self.registry.add(location.index, record)
        if self.on_register is not None:
            try:
                await self.on_register(location, record)
            except Exception as exc:
                logger.warning("Unable to draw search hit %s: %s", identifier, exc)


__all__ = ["SearchItem", "SearchPipeline", "SearchStream", "release_document"]
